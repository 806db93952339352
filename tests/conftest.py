"""pytest configuration for tablevoice tests."""

import os
import sys
from pathlib import Path

import pytest

# Add src directory to path so tests can import tablevoice
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Keep the process-wide metrics collector off unless a test opts in
os.environ.setdefault("TABLEVOICE_ENABLE_METRICS", "false")

from tablevoice.commands.matcher import CommandMatcher, MatcherOptions  # noqa: E402
from tablevoice.commands.patterns import CommandPattern  # noqa: E402
from tablevoice.context.manager import ContextManager  # noqa: E402
from tablevoice.pattern_config import clear_pattern_config_cache, load_pattern_config  # noqa: E402
from tablevoice.scheduling import ManualScheduler  # noqa: E402

COMMANDS_CONFIG = Path(__file__).parent.parent / "config" / "commands.yaml"


@pytest.fixture
def scheduler():
    """Deterministic clock starting at a fixed epoch (ms)."""
    return ManualScheduler(start_ms=1_700_000_000_000)


@pytest.fixture
def context_manager(scheduler):
    """Context manager on the manual scheduler, starting in idle."""
    manager = ContextManager(scheduler=scheduler)
    yield manager
    manager.destroy()


@pytest.fixture
def new_order_pattern():
    """The NEW_ORDER command with a numeric table slot."""
    return CommandPattern(
        intent="NEW_ORDER",
        category="orders",
        patterns=["neue bestellung [für|fürs] tisch {table}"],
        examples=["neue Bestellung für Tisch 5", "Bestellung aufnehmen"],
        param_types={"table": "number"},
    )


@pytest.fixture
def order_matcher(new_order_pattern):
    """Matcher with only the NEW_ORDER command registered."""
    return CommandMatcher({"orders": [new_order_pattern]})


@pytest.fixture
def registry():
    """Command registry loaded from config/commands.yaml."""
    clear_pattern_config_cache()
    config = load_pattern_config(str(COMMANDS_CONFIG))
    yield config
    clear_pattern_config_cache()


@pytest.fixture
def matcher(registry):
    """Matcher over the default registry (Swiss-German locale)."""
    return CommandMatcher.from_config(registry, options=MatcherOptions())
