"""Context workflow configuration loader.

Overlays a YAML file on ``ContextConfig.default()``; only the keys present in
the file replace the defaults.
"""

import logging
import os
from typing import Any

import yaml

from ..errors import ConfigurationError
from .types import ContextConfig, ContextType

logger = logging.getLogger(__name__)

_INT_FIELDS = ("max_retries", "history_size", "variable_max_age_ms", "sweep_interval_ms")
_KNOWN_KEYS = {
    "transitions",
    "timeouts",
    "priorities",
    "timeout_transitions",
    "critical_contexts",
    "fallback_context",
    "strict_transitions",
    *_INT_FIELDS,
}


def _context_type(value: Any, where: str) -> ContextType:
    try:
        return ContextType(value)
    except ValueError:
        raise ConfigurationError(f"Unknown context '{value}' in {where}") from None


def _mapping(data: dict[str, Any], key: str) -> dict[Any, Any]:
    value = data[key]
    if not isinstance(value, dict):
        raise ConfigurationError(f"Field '{key}' must be a dictionary")
    return value


def apply_context_overrides(config: ContextConfig, data: dict[str, Any]) -> ContextConfig:
    """Apply a parsed override mapping to ``config`` in place.

    Raises:
        ConfigurationError: On unknown keys, unknown context names or invalid values.
    """
    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise ConfigurationError(f"Unknown context config fields: {unknown}")

    if "transitions" in data:
        for source, targets in _mapping(data, "transitions").items():
            if not isinstance(targets, list):
                raise ConfigurationError(f"Transitions of '{source}' must be a list")
            config.transitions[_context_type(source, "transitions")] = tuple(
                _context_type(target, f"transitions of '{source}'") for target in targets
            )

    if "timeouts" in data:
        for name, value in _mapping(data, "timeouts").items():
            context_type = _context_type(name, "timeouts")
            if value is None:
                config.timeouts.pop(context_type, None)
            elif isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigurationError(f"Timeout of '{name}' must be a positive integer (ms)")
            else:
                config.timeouts[context_type] = value

    if "priorities" in data:
        for name, value in _mapping(data, "priorities").items():
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"Priority of '{name}' must be an integer")
            config.priorities[_context_type(name, "priorities")] = value

    if "timeout_transitions" in data:
        for source, target in _mapping(data, "timeout_transitions").items():
            config.timeout_transitions[_context_type(source, "timeout_transitions")] = (
                _context_type(target, "timeout_transitions")
            )

    if "critical_contexts" in data:
        names = data["critical_contexts"]
        if not isinstance(names, list):
            raise ConfigurationError("Field 'critical_contexts' must be a list")
        config.critical_contexts = frozenset(
            _context_type(name, "critical_contexts") for name in names
        )

    if "fallback_context" in data:
        config.fallback_context = _context_type(data["fallback_context"], "fallback_context")

    if "strict_transitions" in data:
        if not isinstance(data["strict_transitions"], bool):
            raise ConfigurationError("Field 'strict_transitions' must be a boolean")
        config.strict_transitions = data["strict_transitions"]

    for name in _INT_FIELDS:
        if name in data:
            value = data[name]
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigurationError(f"Field '{name}' must be a positive integer")
            setattr(config, name, value)

    return config


def load_context_config(config_path: str | None = None) -> ContextConfig:
    """Load the context workflow configuration.

    Args:
        config_path: Path to a YAML override file. If None or missing, the
                    default restaurant workflow is returned.

    Returns:
        ContextConfig with the overrides applied.

    Raises:
        ConfigurationError: If the file is not valid YAML or an override is invalid.
    """
    config = ContextConfig.default()

    if config_path is None:
        return config

    if not os.path.exists(config_path):
        logger.warning("Context config not found at %s; using defaults", config_path)
        return config

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return config
    if not isinstance(data, dict):
        raise ConfigurationError("Context config must contain a YAML dictionary")

    return apply_context_overrides(config, data)
