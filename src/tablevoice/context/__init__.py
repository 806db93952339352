"""Workflow context state machine.

This module implements:
- Context types, transition/timeout/priority tables
- The context manager (stack, variables, timeouts, error recovery)
- Typed context notifications
"""

from .config import load_context_config
from .events import (
    ContextChanged,
    ContextError,
    ContextEvent,
    ContextTimeout,
    VariableChanged,
    VariableRemoved,
)
from .manager import ContextManager, ContextSuggestion, RecoveryAction
from .types import Context, ContextConfig, ContextType, ContextVariable

__all__ = [
    "ContextManager",
    "ContextSuggestion",
    "RecoveryAction",
    "Context",
    "ContextConfig",
    "ContextType",
    "ContextVariable",
    "ContextEvent",
    "ContextChanged",
    "ContextError",
    "ContextTimeout",
    "VariableChanged",
    "VariableRemoved",
    "load_context_config",
]
