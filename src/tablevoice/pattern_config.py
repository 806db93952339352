"""Command pattern registry loader.

Loads the command registry (standard categories plus an optional parallel
``dialect`` registry) from a YAML file. Malformed definitions fail fast with
``PatternConfigError``; a missing file yields an empty registry.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .commands.patterns import CommandPattern
from .errors import PatternConfigError

logger = logging.getLogger(__name__)

_PATTERN_FIELDS = {f.name for f in fields(CommandPattern)}


@dataclass
class PatternConfig:
    """Command registry loaded from YAML."""

    categories: dict[str, list[CommandPattern]] = field(default_factory=dict)
    dialect: dict[str, list[CommandPattern]] = field(default_factory=dict)

    @property
    def command_count(self) -> int:
        return sum(len(commands) for commands in self.categories.values()) + sum(
            len(commands) for commands in self.dialect.values()
        )


def default_config_path() -> str:
    """Return ``config/commands.yaml`` relative to the project root."""
    project_root = Path(__file__).parent.parent.parent
    return os.path.join(project_root, "config", "commands.yaml")


def _parse_command(category: str, data: Any) -> CommandPattern:
    """Parse one command entry into a CommandPattern.

    Raises:
        PatternConfigError: If the entry is not a mapping, has unknown keys or
            fails CommandPattern validation.
    """
    if not isinstance(data, dict):
        raise PatternConfigError(f"Command entries in '{category}' must be dictionaries")

    unknown = sorted(set(data) - _PATTERN_FIELDS)
    if unknown:
        raise PatternConfigError(f"Unknown fields {unknown} in category '{category}'")

    for required in ("intent", "patterns"):
        if required not in data:
            raise PatternConfigError(
                f"Missing required field '{required}' in category '{category}'"
            )

    entry = dict(data)
    entry.setdefault("category", category)
    if entry["category"] != category:
        raise PatternConfigError(
            f"{entry['intent']}: category '{entry['category']}' does not match section '{category}'"
        )
    if entry.get("param_types") is None:
        entry["param_types"] = {}
    elif not isinstance(entry["param_types"], dict):
        raise PatternConfigError(f"{entry['intent']}: 'param_types' must be a dictionary")
    if entry.get("examples") is None:
        entry["examples"] = []

    return CommandPattern(**entry)


def _parse_registry(section: str, data: Any) -> dict[str, list[CommandPattern]]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise PatternConfigError(f"Section '{section}' must be a dictionary of categories")

    registry: dict[str, list[CommandPattern]] = {}
    for category, commands in data.items():
        if not isinstance(category, str):
            raise PatternConfigError(f"Category name must be a string: {category}")
        if not isinstance(commands, list):
            raise PatternConfigError(f"Category '{category}' must contain a list of commands")
        registry[category] = [_parse_command(category, command) for command in commands]
    return registry


def parse_pattern_config(data: Any) -> PatternConfig:
    """Build a PatternConfig from already-parsed YAML data.

    Raises:
        PatternConfigError: If the structure or any command definition is invalid.
    """
    if data is None:
        return PatternConfig()
    if not isinstance(data, dict):
        raise PatternConfigError("Pattern config must contain a YAML dictionary")

    unknown = sorted(set(data) - {"categories", "dialect"})
    if unknown:
        raise PatternConfigError(f"Unknown top-level sections: {unknown}")

    return PatternConfig(
        categories=_parse_registry("categories", data.get("categories")),
        dialect=_parse_registry("dialect", data.get("dialect")),
    )


def load_pattern_config(config_path: str | None = None) -> PatternConfig:
    """Load the command registry from a YAML file.

    Args:
        config_path: Path to the registry YAML file.
                    If None, uses default path: config/commands.yaml

    Returns:
        PatternConfig with standard and dialect categories.
        If the file is missing, returns an empty registry.

    Raises:
        PatternConfigError: If the file is not valid YAML or a definition is malformed.
    """
    if config_path is None:
        config_path = default_config_path()

    if not os.path.exists(config_path):
        logger.warning("Command pattern config not found at %s; using empty registry", config_path)
        return PatternConfig()

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise PatternConfigError(f"Invalid YAML in {config_path}: {e}") from e

    config = parse_pattern_config(data)
    logger.info("Loaded %d command patterns from %s", config.command_count, config_path)
    return config


# Cache the loaded configuration
_cached_config: PatternConfig | None = None


def get_pattern_config(config_path: str | None = None) -> PatternConfig:
    """Get the command registry (cached).

    Args:
        config_path: Optional path to config file. Uses default if None.

    Returns:
        PatternConfig with the registry.
    """
    global _cached_config
    if _cached_config is None:
        _cached_config = load_pattern_config(config_path)
    return _cached_config


def reload_pattern_config(config_path: str | None = None) -> PatternConfig:
    """Reload the command registry from file.

    Args:
        config_path: Optional path to config file. Uses default if None.

    Returns:
        Newly loaded PatternConfig.
    """
    global _cached_config
    _cached_config = load_pattern_config(config_path)
    return _cached_config


def clear_pattern_config_cache():
    """Clear the cached command registry.

    Used primarily for testing to ensure clean state between tests.
    """
    global _cached_config
    _cached_config = None
