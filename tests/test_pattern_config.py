"""Tests for the command registry loader."""

import os
import tempfile

import pytest

from tablevoice.commands.patterns import ParamType
from tablevoice.errors import PatternConfigError
from tablevoice.pattern_config import (
    PatternConfig,
    clear_pattern_config_cache,
    get_pattern_config,
    load_pattern_config,
    parse_pattern_config,
    reload_pattern_config,
)


@pytest.fixture(autouse=True)
def clear_cache():
    """Clear the registry cache before and after each test."""
    clear_pattern_config_cache()
    yield
    clear_pattern_config_cache()


def write_config(content: str) -> str:
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        f.write(content)
        return f.name


def test_load_default_registry(registry):
    """Test that the shipped registry loads with both sections."""
    assert "orders" in registry.categories
    assert "orders" in registry.dialect

    new_order = registry.categories["orders"][0]
    assert new_order.intent == "NEW_ORDER"
    assert new_order.category == "orders"
    assert new_order.param_types == {"table": ParamType.NUMBER}
    assert registry.command_count > 10


def test_load_custom_config():
    """Test loading a small registry from a custom path."""
    path = write_config(
        """
categories:
  system:
    - intent: HELP
      patterns: ["hilfe"]
      examples: ["Hilfe"]
dialect:
"""
    )
    try:
        config = load_pattern_config(path)
        assert config.categories["system"][0].intent == "HELP"
        assert config.categories["system"][0].category == "system"
        assert config.dialect == {}
        assert config.command_count == 1
    finally:
        os.unlink(path)


def test_missing_file_returns_empty_registry():
    """Test that a missing registry file is not an error."""
    config = load_pattern_config("/nonexistent/commands.yaml")
    assert config == PatternConfig()
    assert config.command_count == 0


def test_invalid_yaml_raises():
    path = write_config("categories: [unclosed")
    try:
        with pytest.raises(PatternConfigError, match="Invalid YAML"):
            load_pattern_config(path)
    finally:
        os.unlink(path)


@pytest.mark.parametrize(
    "data,message",
    [
        (["not", "a", "dict"], "YAML dictionary"),
        ({"commands": {}}, "Unknown top-level"),
        ({"categories": ["orders"]}, "dictionary of categories"),
        ({"categories": {"orders": {"intent": "X"}}}, "list of commands"),
        ({"categories": {"orders": ["hilfe"]}}, "must be dictionaries"),
        ({"categories": {"orders": [{"intent": "X"}]}}, "Missing required field 'patterns'"),
        ({"categories": {"orders": [{"intent": "X", "patterns": ["a"], "prio": 1}]}}, "prio"),
        (
            {"categories": {"orders": [{"intent": "X", "patterns": ["a"], "category": "menu"}]}},
            "does not match",
        ),
        (
            {"categories": {"orders": [{"intent": "X", "patterns": ["a"], "param_types": ["a"]}]}},
            "param_types",
        ),
    ],
)
def test_malformed_registry_raises(data, message):
    with pytest.raises(PatternConfigError, match=message):
        parse_pattern_config(data)


def test_null_optional_fields_default():
    config = parse_pattern_config(
        {"categories": {"system": [{"intent": "HELP", "patterns": ["hilfe"], "examples": None}]}}
    )
    assert config.categories["system"][0].examples == []
    assert config.categories["system"][0].param_types == {}


def test_empty_document():
    assert parse_pattern_config(None) == PatternConfig()


def test_get_pattern_config_is_cached():
    path = write_config("categories:\n  system:\n    - intent: HELP\n      patterns: [hilfe]\n")
    try:
        first = get_pattern_config(path)
        assert get_pattern_config(path) is first

        reloaded = reload_pattern_config(path)
        assert reloaded is not first
        assert get_pattern_config() is reloaded

        clear_pattern_config_cache()
        assert get_pattern_config(path) is not reloaded
    finally:
        os.unlink(path)
