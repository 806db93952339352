"""Typed notifications emitted by the context manager."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from ..logging_utils import log_error, log_warning
from .types import Context, ContextType

logger = logging.getLogger(__name__)


class ContextEvent(str, Enum):
    """Notification kinds a subscriber can register for."""

    CONTEXT_CHANGED = "context_changed"
    CONTEXT_TIMEOUT = "context_timeout"
    CONTEXT_ERROR = "context_error"
    VARIABLE_CHANGED = "variable_changed"
    VARIABLE_REMOVED = "variable_removed"


# camelCase names used by the browser-side event emitter
EVENT_ALIASES = {
    "contextChanged": ContextEvent.CONTEXT_CHANGED,
    "contextTimeout": ContextEvent.CONTEXT_TIMEOUT,
    "contextError": ContextEvent.CONTEXT_ERROR,
    "variableChanged": ContextEvent.VARIABLE_CHANGED,
    "variableRemoved": ContextEvent.VARIABLE_REMOVED,
}


def coerce_event(event: Any) -> ContextEvent | None:
    """Resolve an event enum, snake_case value or camelCase alias; None if unknown."""
    if isinstance(event, ContextEvent):
        return event
    if not isinstance(event, str):
        return None
    try:
        return ContextEvent(event)
    except ValueError:
        return EVENT_ALIASES.get(event)


@dataclass(frozen=True)
class ContextChanged:
    event: ClassVar[ContextEvent] = ContextEvent.CONTEXT_CHANGED

    new_context: Context
    previous_context: Context | None


@dataclass(frozen=True)
class ContextTimeout:
    event: ClassVar[ContextEvent] = ContextEvent.CONTEXT_TIMEOUT

    context: Context
    timeout_duration: int


@dataclass(frozen=True)
class ContextError:
    """An operational error reported through ``handle_error``."""

    event: ClassVar[ContextEvent] = ContextEvent.CONTEXT_ERROR

    error: str
    error_type: str
    original_context: ContextType | None
    timestamp: int
    retry_count: int
    details: dict[str, Any] = field(default_factory=dict)

    def to_data(self) -> dict[str, Any]:
        """Flatten into the error-recovery context's seed data."""
        return {
            **self.details,
            "error": self.error,
            "errorType": self.error_type,
            "originalContext": self.original_context.value if self.original_context else None,
            "timestamp": self.timestamp,
            "retryCount": self.retry_count,
        }


@dataclass(frozen=True)
class VariableChanged:
    event: ClassVar[ContextEvent] = ContextEvent.VARIABLE_CHANGED

    key: str
    value: Any
    is_global: bool


@dataclass(frozen=True)
class VariableRemoved:
    event: ClassVar[ContextEvent] = ContextEvent.VARIABLE_REMOVED

    key: str
    is_global: bool


Notification = ContextChanged | ContextTimeout | ContextError | VariableChanged | VariableRemoved
Subscriber = Callable[[Any], None]


class EventBus:
    """Synchronous in-order delivery with per-subscriber failure isolation."""

    def __init__(self) -> None:
        self._subscribers: dict[ContextEvent, list[Subscriber]] = {}

    def on(self, event: ContextEvent | str, callback: Subscriber) -> bool:
        """Subscribe ``callback``; returns False for an unknown event name."""
        kind = coerce_event(event)
        if kind is None:
            log_warning(logger, "Unknown context event", event=event)
            return False
        self._subscribers.setdefault(kind, []).append(callback)
        return True

    def off(self, event: ContextEvent | str, callback: Subscriber) -> bool:
        kind = coerce_event(event)
        if kind is None:
            log_warning(logger, "Unknown context event", event=event)
            return False
        callbacks = self._subscribers.get(kind)
        if callbacks and callback in callbacks:
            callbacks.remove(callback)
            return True
        return False

    def emit(self, notification: Notification) -> None:
        # Snapshot so subscribers may (un)subscribe while being notified
        for callback in list(self._subscribers.get(notification.event, ())):
            try:
                callback(notification)
            except Exception as e:
                log_error(
                    logger,
                    "Context event subscriber failed",
                    exc_info=True,
                    error=e,
                    event=notification.event.value,
                )

    def clear(self) -> None:
        self._subscribers.clear()

    def subscriber_count(self, event: ContextEvent | str) -> int:
        kind = coerce_event(event)
        return len(self._subscribers.get(kind, ())) if kind else 0
