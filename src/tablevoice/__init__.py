"""Voice command interpretation engine for restaurant workflows."""

__version__ = "0.1.0"
