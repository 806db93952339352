"""Configuration errors raised at load/compile time."""


class ConfigurationError(ValueError):
    """Invalid command registry or context configuration."""


class PatternConfigError(ConfigurationError):
    """Malformed command pattern definition or template."""
