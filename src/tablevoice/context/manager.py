"""Context state machine for voice-driven restaurant workflows.

Tracks the current workflow context (ordering, payment, reservation, ...),
enforces the allowed-transition table, times contexts out, keeps a stack of
suspended contexts for resumable flows and scopes variables per context.

All public methods are synchronous and never raise; failures are reported as
``False`` and through counters, notifications and logs. Timer callbacks and
public calls are serialised by a re-entrant lock.
"""

import logging
import threading
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from ..bounded import RingBuffer
from ..logging_utils import log_with_context
from ..scheduling import Scheduler, ThreadingScheduler
from .events import (
    ContextChanged,
    ContextError,
    ContextEvent,
    ContextTimeout,
    EventBus,
    Notification,
    Subscriber,
    VariableChanged,
    VariableRemoved,
)
from .models import (
    ContextManagerState,
    ContextSnapshot,
    GlobalVariableSnapshot,
    HistorySnapshot,
    StatisticsSnapshot,
)
from .types import (
    Context,
    ContextConfig,
    ContextMetadata,
    ContextType,
    ContextVariable,
    GlobalVariable,
    HistoryEntry,
    coerce_context_type,
)

logger = logging.getLogger(__name__)

EXPORT_HISTORY_LIMIT = 10

_STAT_COUNTERS = ("total_transitions", "error_count", "timeout_count", "invalid_transitions")


class RecoveryAction:
    """Actions accepted by ``recover_from_error``."""

    RETRY = "retry"
    ABORT = "abort"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ContextSuggestion:
    """A likely next context, ranked by priority."""

    type: ContextType
    priority: int
    reason: str


@dataclass(frozen=True)
class _ArmedTimer:
    token: object
    handle: Any


@dataclass
class ContextStatistics:
    total_transitions: int = 0
    error_count: int = 0
    timeout_count: int = 0
    invalid_transitions: int = 0
    # Milliseconds spent in each superseded context, per type
    context_durations: dict[ContextType, list[int]] = field(default_factory=dict)


class ContextManager:
    """Finite-state machine over ``ContextType`` with timeouts, stack and variables."""

    def __init__(
        self,
        config: ContextConfig | None = None,
        scheduler: Scheduler | None = None,
        enable_logging: bool = True,
        auto_cleanup: bool = True,
        strict_transitions: bool | None = None,
    ) -> None:
        """Initialize the manager in the idle context.

        Args:
            config: Transition/timeout/priority tables (defaults to the restaurant workflow)
            scheduler: Clock and timers (defaults to a threading scheduler)
            enable_logging: Emit diagnostic log records
            auto_cleanup: Arm the periodic variable-expiry sweep
            strict_transitions: Override ``config.strict_transitions``
        """
        self.config = config or ContextConfig.default()
        self.scheduler = scheduler or ThreadingScheduler()
        self.enable_logging = enable_logging
        self.auto_cleanup = auto_cleanup
        self.strict_transitions = (
            self.config.strict_transitions if strict_transitions is None else strict_transitions
        )

        self._lock = threading.RLock()
        self._events = EventBus()

        self.current_context: Context | None = None
        self._stack: list[Context] = []
        self._history = RingBuffer(self.config.history_size)
        self._global_variables: dict[str, GlobalVariable] = {}
        self._timers: dict[str, _ArmedTimer] = {}
        self._sweep_handle: Any = None
        self._destroyed = False

        self.stats = ContextStatistics()

        self._initialize()

    def _initialize(self) -> None:
        self._set_context(ContextType.IDLE)
        if self.auto_cleanup:
            self._schedule_sweep()
        self._log(logging.INFO, "ContextManager initialized")

    # ------------------------------------------------------------------
    # Context management
    # ------------------------------------------------------------------

    def set_context(
        self,
        context_type: ContextType | str,
        data: Mapping[str, Any] | None = None,
        *,
        force: bool = False,
        preserve_variables: bool = False,
        timeout: int | None = None,
        push_to_stack: bool = True,
        reason: str | None = None,
        user_initiated: bool = True,
    ) -> bool:
        """Transition to a new context.

        Args:
            context_type: Target context type
            data: Seed variables for the new context
            force: Bypass the allowed-transition table
            preserve_variables: Carry the current context's variables over
            timeout: Timeout override in milliseconds (default: the type's timeout)
            push_to_stack: Suspend the current context on the stack
            reason: Transition reason recorded in the context metadata
            user_initiated: Whether the user (not an automatic path) triggered this

        Returns:
            True if the transition happened, False if it was rejected
        """
        with self._lock:
            return self._set_context(
                context_type,
                data,
                force=force,
                preserve_variables=preserve_variables,
                timeout=timeout,
                push_to_stack=push_to_stack,
                reason=reason,
                user_initiated=user_initiated,
            )

    def _set_context(
        self,
        context_type: ContextType | str,
        data: Mapping[str, Any] | None = None,
        *,
        force: bool = False,
        preserve_variables: bool = False,
        timeout: int | None = None,
        push_to_stack: bool = True,
        reason: str | None = None,
        user_initiated: bool = True,
        inherited: Mapping[str, Any] | None = None,
    ) -> bool:
        target = coerce_context_type(context_type)
        if target is None:
            self._log(logging.ERROR, "Invalid context type", context_type=context_type)
            return False

        if data is not None and not isinstance(data, Mapping):
            self._log(logging.ERROR, "Context data must be a mapping", context_type=target.value)
            return False

        if timeout is not None and (not isinstance(timeout, int) or isinstance(timeout, bool)):
            self._log(
                logging.ERROR,
                "Context timeout must be an integer",
                context_type=target.value,
                timeout=timeout,
            )
            return False

        previous = self.current_context

        if not force and previous is not None and self.strict_transitions:
            if not self.is_valid_transition(previous.type, target):
                self.stats.invalid_transitions += 1
                self._log(
                    logging.WARNING,
                    "Invalid context transition",
                    source=previous.type.value,
                    target=target.value,
                )
                return False

        now = self.scheduler.now()

        if previous is not None:
            if push_to_stack:
                previous.paused_at = now
                self._stack.append(previous)

            self._clear_context_timeout(previous.id)

            duration = now - previous.start_time
            self._history.append(HistoryEntry(context=previous, end_time=now, duration=duration))
            self.stats.context_durations.setdefault(previous.type, []).append(duration)

        variables: dict[str, Any] = dict(inherited or {})
        if preserve_variables and previous is not None:
            variables.update(previous.variables)
        variables.update(data or {})

        new_context = Context(
            id=self._generate_context_id(now),
            type=target,
            start_time=now,
            data=dict(data or {}),
            variables=variables,
            metadata=ContextMetadata(
                previous_context=previous.type if previous else None,
                transition_reason=reason or "manual",
                user_initiated=user_initiated,
            ),
        )
        self.current_context = new_context

        duration_ms = timeout if timeout is not None else self.config.timeout_for(target)
        if duration_ms and duration_ms > 0:
            self._set_context_timeout(new_context.id, duration_ms)

        self.stats.total_transitions += 1

        self._emit(ContextChanged(new_context=new_context, previous_context=previous))
        self._log(
            logging.INFO,
            "Context changed",
            context_type=target.value,
            previous=previous.type.value if previous else None,
            reason=new_context.metadata.transition_reason,
        )
        return True

    def get_current_context(self) -> Context | None:
        return self.current_context

    def get_context_type(self) -> ContextType:
        if self.current_context is None:
            return ContextType.IDLE
        return self.current_context.type

    def is_in_context(self, context_type: ContextType | str) -> bool:
        return self.current_context is not None and self.current_context.type == context_type

    def has_context(self) -> bool:
        """Whether a non-idle context is active."""
        current = self.current_context
        return current is not None and current.type is not ContextType.IDLE

    # ------------------------------------------------------------------
    # Context stack
    # ------------------------------------------------------------------

    def push_context(
        self, context_type: ContextType | str, data: Mapping[str, Any] | None = None, **options: Any
    ) -> bool:
        """``set_context`` with the current context always suspended on the stack."""
        options["push_to_stack"] = True
        return self.set_context(context_type, data, **options)

    def pop_context(self, *, reason: str | None = None, user_initiated: bool = True) -> bool:
        """Resume the most recently suspended context, or go idle if none is suspended.

        Resuming bypasses the allowed-transition table; the resumed context gets
        its own variables back plus the current context's variables, and
        ``resumedAt`` / ``pauseDuration`` in its data.
        """
        with self._lock:
            if not self._stack:
                self._log(logging.WARNING, "No context to pop from stack")
                return self._set_context(
                    ContextType.IDLE, {}, reason=reason, user_initiated=user_initiated
                )

            suspended = self._stack.pop()
            now = self.scheduler.now()
            paused_at = suspended.paused_at if suspended.paused_at is not None else now
            resume_data = {
                **suspended.data,
                "resumedAt": now,
                "pauseDuration": now - paused_at,
            }

            return self._set_context(
                suspended.type,
                resume_data,
                force=True,
                push_to_stack=False,
                preserve_variables=True,
                reason=reason,
                user_initiated=user_initiated,
                inherited=suspended.variables,
            )

    def clear_context_stack(self) -> None:
        with self._lock:
            self._stack.clear()
            self._log(logging.DEBUG, "Context stack cleared")

    def get_context_stack(self) -> list[Context]:
        """Suspended contexts, oldest first (the last element resumes next)."""
        return list(self._stack)

    def get_stack_depth(self) -> int:
        return len(self._stack)

    # ------------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------------

    def set_variable(self, key: str, value: Any, is_global: bool = False) -> None:
        """Set a context-local (default) or global variable."""
        if not self._valid_key(key):
            return
        with self._lock:
            if is_global:
                self._global_variables[key] = GlobalVariable(
                    value=value,
                    timestamp=self.scheduler.now(),
                    context_id=self.current_context.id if self.current_context else None,
                )
            elif self.current_context is not None:
                self.current_context.variables[key] = value

            self._emit(VariableChanged(key=key, value=value, is_global=is_global))
            self._log(logging.DEBUG, "Variable set", key=key, is_global=is_global)

    def get_variable(self, key: str, default: Any = None) -> Any:
        """Look a variable up in the current context first, then globally."""
        if not isinstance(key, str):
            return default
        with self._lock:
            if self.current_context is not None and key in self.current_context.variables:
                return self.current_context.variables[key]
            if key in self._global_variables:
                return self._global_variables[key].value
            return default

    def has_variable(self, key: str) -> bool:
        if not isinstance(key, str):
            return False
        with self._lock:
            in_context = self.current_context is not None and key in self.current_context.variables
            return in_context or key in self._global_variables

    def remove_variable(self, key: str, is_global: bool = False) -> None:
        if not self._valid_key(key):
            return
        with self._lock:
            if is_global:
                self._global_variables.pop(key, None)
            elif self.current_context is not None:
                self.current_context.variables.pop(key, None)

            self._emit(VariableRemoved(key=key, is_global=is_global))

    def get_all_variables(self) -> dict[str, dict[str, Any]]:
        with self._lock:
            return {
                "context": dict(self.current_context.variables) if self.current_context else {},
                "global": {key: var.value for key, var in self._global_variables.items()},
            }

    def _valid_key(self, key: Any) -> bool:
        if isinstance(key, str):
            return True
        self._log(logging.ERROR, "Variable key must be a string", key=repr(key))
        return False

    def clear_variables(self, context_only: bool = False) -> None:
        with self._lock:
            if self.current_context is not None:
                self.current_context.variables.clear()
            if not context_only:
                self._global_variables.clear()
            self._log(logging.DEBUG, "Variables cleared", context_only=context_only)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def is_valid_transition(
        self, source: ContextType | str | None, target: ContextType | str | None
    ) -> bool:
        if not source or not target:
            return True
        source_type = coerce_context_type(source)
        target_type = coerce_context_type(target)
        if source_type is None or target_type is None:
            return False
        return target_type in self.config.allowed_transitions(source_type)

    def get_valid_transitions(
        self, context_type: ContextType | str | None = None
    ) -> tuple[ContextType, ...]:
        source = coerce_context_type(context_type) if context_type else self.get_context_type()
        if source is None:
            return ()
        return self.config.allowed_transitions(source)

    def can_transition_to(self, context_type: ContextType | str) -> bool:
        return self.is_valid_transition(self.get_context_type(), context_type)

    def suggest_next_contexts(self) -> list[ContextSuggestion]:
        """Allowed next contexts, highest priority first, with a human-readable reason."""
        current = self.get_context_type()
        suggestions = [
            ContextSuggestion(
                type=target,
                priority=self.config.priority_for(target),
                reason=self.config.reason_for(current, target),
            )
            for target in self.get_valid_transitions(current)
        ]
        return sorted(suggestions, key=lambda suggestion: suggestion.priority, reverse=True)

    # ------------------------------------------------------------------
    # Timeouts
    # ------------------------------------------------------------------

    def _set_context_timeout(self, context_id: str, duration_ms: int) -> None:
        self._clear_context_timeout(context_id)
        # Each arming gets its own token; a callback only acts while its token is current
        token = object()
        handle = self.scheduler.call_later(
            duration_ms, lambda: self._handle_context_timeout(context_id, token)
        )
        self._timers[context_id] = _ArmedTimer(token=token, handle=handle)
        self._log(logging.DEBUG, "Context timeout set", duration_ms=duration_ms)

    def _clear_context_timeout(self, context_id: str) -> None:
        armed = self._timers.pop(context_id, None)
        if armed is not None:
            self.scheduler.cancel(armed.handle)

    def extend_context_timeout(self, context_id: str, additional_ms: int) -> bool:
        """Re-arm the current context's timer for its default duration plus ``additional_ms``.

        Returns:
            False if ``context_id`` is not current or its type has no timeout
        """
        with self._lock:
            current = self.current_context
            if current is None or current.id != context_id:
                return False

            default = self.config.timeout_for(current.type)
            if not default:
                return False

            self._set_context_timeout(context_id, default + additional_ms)
            self._log(logging.DEBUG, "Context timeout extended", additional_ms=additional_ms)
            return True

    def _handle_context_timeout(self, context_id: str, token: object) -> None:
        with self._lock:
            # A superseded or re-armed timer must never mutate state
            armed = self._timers.get(context_id)
            if armed is None or armed.token is not token:
                return
            del self._timers[context_id]
            current = self.current_context
            if current is None or current.id != context_id:
                return

            self.stats.timeout_count += 1
            self._emit(
                ContextTimeout(
                    context=current,
                    timeout_duration=self.scheduler.now() - current.start_time,
                )
            )
            self._log(logging.WARNING, "Context timed out", context_type=current.type.value)

            self._set_context(
                self.config.timeout_target(current.type),
                {"reason": "timeout", "previousContext": current.type.value},
                force=True,
                push_to_stack=False,
                reason="timeout_transition",
                user_initiated=False,
            )

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------

    def handle_error(self, error: Any, details: Mapping[str, Any] | None = None) -> bool:
        """Record an operational error and enter error recovery where appropriate.

        Args:
            error: Exception, message string, or mapping with ``message``/``type``
            details: Extra fields carried into the error-recovery context's data

        Returns:
            True if the manager entered the error-recovery context
        """
        with self._lock:
            self.stats.error_count += 1

            message, error_type = _describe_error(error)
            error_context = ContextError(
                error=message,
                error_type=error_type,
                original_context=self.current_context.type if self.current_context else None,
                timestamp=self.scheduler.now(),
                retry_count=self._retry_count() + 1,
                details=dict(details or {}),
            )

            self._emit(error_context)
            self._log(
                logging.ERROR,
                "Context error",
                error=message,
                error_type=error_type,
                retry_count=error_context.retry_count,
            )

            if not self.should_enter_error_recovery(error_context):
                return False

            return self._set_context(
                ContextType.ERROR_RECOVERY,
                error_context.to_data(),
                force=True,
                push_to_stack=True,
                reason="error_handling",
                user_initiated=False,
            )

    def _retry_count(self) -> int:
        value = self.get_variable(ContextVariable.RETRY_COUNT, 0)
        return value if isinstance(value, int) and not isinstance(value, bool) else 0

    def should_enter_error_recovery(self, error_context: ContextError) -> bool:
        return (
            error_context.retry_count < self.config.max_retries
            and error_context.original_context in self.config.critical_contexts
        )

    def recover_from_error(self, action: str = RecoveryAction.RETRY) -> bool:
        """Leave the error-recovery context.

        Args:
            action: ``retry`` (resume the interrupted context), ``abort`` (clear
                the stack and go idle) or ``fallback`` (go to the safe fallback context)

        Returns:
            False when not in error recovery or the action is unknown
        """
        with self._lock:
            if not self.is_in_context(ContextType.ERROR_RECOVERY):
                self._log(logging.WARNING, "Not in error recovery context")
                return False

            error_data = self.current_context.data

            if action == RecoveryAction.RETRY:
                if error_data.get("originalContext"):
                    recovered = self.pop_context(reason="error_recovery_retry")
                else:
                    recovered = self._set_context(
                        ContextType.IDLE,
                        force=True,
                        push_to_stack=False,
                        reason="error_recovery_retry",
                    )
            elif action == RecoveryAction.ABORT:
                self._stack.clear()
                recovered = self._set_context(
                    ContextType.IDLE,
                    {"reason": "error_recovery_abort"},
                    force=True,
                    push_to_stack=False,
                    reason="error_recovery_abort",
                )
            elif action == RecoveryAction.FALLBACK:
                recovered = self._set_context(
                    self.config.fallback_context,
                    {"reason": "error_recovery_fallback"},
                    force=True,
                    push_to_stack=False,
                    reason="error_recovery_fallback",
                )
            else:
                self._log(logging.WARNING, "Unknown recovery action", action=action)
                return False

            self._log(logging.INFO, "Recovered from error", action=action)
            return recovered

    # ------------------------------------------------------------------
    # History & analytics
    # ------------------------------------------------------------------

    def get_history(self, limit: int | None = 10) -> list[HistoryEntry]:
        """Superseded contexts, most recent first."""
        return self._history.latest(limit)

    def get_context_duration(self, context_type: ContextType | str) -> dict[str, float] | None:
        """Aggregate time spent in a context type, or None if it was never left."""
        target = coerce_context_type(context_type)
        durations = self.stats.context_durations.get(target) if target else None
        if not durations:
            return None

        total = sum(durations)
        return {
            "average": total / len(durations),
            "total": total,
            "count": len(durations),
            "min": min(durations),
            "max": max(durations),
        }

    def get_statistics(self) -> dict[str, Any]:
        with self._lock:
            return {
                "total_transitions": self.stats.total_transitions,
                "error_count": self.stats.error_count,
                "timeout_count": self.stats.timeout_count,
                "invalid_transitions": self.stats.invalid_transitions,
                "context_durations": {
                    context_type.value: self.get_context_duration(context_type)
                    for context_type in self.stats.context_durations
                },
                "current_context": (
                    self.current_context.type.value if self.current_context else None
                ),
                "stack_depth": len(self._stack),
                "history_length": len(self._history),
                "active_timers": len(self._timers),
            }

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: ContextEvent | str, callback: Subscriber) -> bool:
        """Subscribe to an event by enum, snake_case value or camelCase name.

        Returns:
            False if the event name is unknown
        """
        return self._events.on(event, callback)

    def off(self, event: ContextEvent | str, callback: Subscriber) -> bool:
        return self._events.off(event, callback)

    def _emit(self, notification: Notification) -> None:
        self._events.emit(notification)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _schedule_sweep(self) -> None:
        self._sweep_handle = self.scheduler.call_later(
            self.config.sweep_interval_ms, self._run_sweep
        )

    def _run_sweep(self) -> None:
        with self._lock:
            if self._destroyed or self._sweep_handle is None:
                return
            self.perform_cleanup()
            self._schedule_sweep()

    def perform_cleanup(self) -> int:
        """Drop global variables older than the configured maximum age.

        Returns:
            Number of variables removed
        """
        with self._lock:
            now = self.scheduler.now()
            max_age = self.config.variable_max_age_ms
            expired = [
                key
                for key, variable in self._global_variables.items()
                if now - variable.timestamp > max_age
            ]
            for key in expired:
                del self._global_variables[key]

            self._log(logging.DEBUG, "Cleanup performed", expired=len(expired))
            return len(expired)

    def _cancel_all_timers(self) -> None:
        for armed in self._timers.values():
            self.scheduler.cancel(armed.handle)
        self._timers.clear()

    def _cancel_sweep(self) -> None:
        if self._sweep_handle is not None:
            self.scheduler.cancel(self._sweep_handle)
            self._sweep_handle = None

    def reset(self) -> None:
        """Cancel timers, clear all state and statistics, and start over in idle."""
        with self._lock:
            self._cancel_all_timers()
            self._cancel_sweep()

            self.current_context = None
            self._stack.clear()
            self._history.clear()
            self._global_variables.clear()
            self.stats = ContextStatistics()
            self._destroyed = False

            self._initialize()
            self._log(logging.INFO, "ContextManager reset")

    def destroy(self) -> None:
        """Cancel the sweep and every timer, and drop all subscribers."""
        with self._lock:
            self._destroyed = True
            self._cancel_sweep()
            self._cancel_all_timers()
            self._events.clear()
            self._log(logging.INFO, "ContextManager destroyed")

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def export_state(self) -> dict[str, Any]:
        """Snapshot current context, stack, recent history, globals and statistics."""
        with self._lock:
            state = ContextManagerState(
                current_context=(
                    ContextSnapshot.from_context(self.current_context)
                    if self.current_context
                    else None
                ),
                context_stack=[ContextSnapshot.from_context(ctx) for ctx in self._stack],
                context_history=[
                    HistorySnapshot.from_entry(entry)
                    for entry in self._history.latest(EXPORT_HISTORY_LIMIT)
                ],
                global_variables={
                    key: GlobalVariableSnapshot(
                        value=var.value, timestamp=var.timestamp, context_id=var.context_id
                    )
                    for key, var in self._global_variables.items()
                },
                stats=StatisticsSnapshot(
                    total_transitions=self.stats.total_transitions,
                    error_count=self.stats.error_count,
                    timeout_count=self.stats.timeout_count,
                    invalid_transitions=self.stats.invalid_transitions,
                    context_durations={
                        context_type: list(durations)
                        for context_type, durations in self.stats.context_durations.items()
                    },
                ),
                timestamp=self.scheduler.now(),
            )
            return state.model_dump()

    def import_state(self, state: Any) -> bool:
        """Restore a snapshot produced by ``export_state``.

        Sections missing from the snapshot are left untouched. The restored
        current context gets a fresh timeout for its type.

        Returns:
            False (with no state change) if the snapshot is malformed
        """
        if not isinstance(state, Mapping):
            self._log(logging.ERROR, "Failed to import state", error="state must be a mapping")
            return False

        try:
            snapshot = ContextManagerState.model_validate(dict(state))
        except ValidationError as e:
            self._log(logging.ERROR, "Failed to import state", error=e.errors()[:3])
            return False

        with self._lock:
            if snapshot.current_context is not None:
                if self.current_context is not None:
                    self._clear_context_timeout(self.current_context.id)
                restored = snapshot.current_context.to_context()
                self.current_context = restored
                timeout = self.config.timeout_for(restored.type)
                if timeout:
                    self._set_context_timeout(restored.id, timeout)

            if "context_stack" in snapshot.model_fields_set:
                self._stack = [ctx.to_context() for ctx in snapshot.context_stack]

            if "global_variables" in snapshot.model_fields_set:
                self._global_variables = {
                    key: var.to_variable() for key, var in snapshot.global_variables.items()
                }

            if snapshot.stats is not None:
                provided = snapshot.stats.model_fields_set
                for name in _STAT_COUNTERS:
                    if name in provided:
                        setattr(self.stats, name, getattr(snapshot.stats, name))
                if "context_durations" in provided:
                    self.stats.context_durations = {
                        ContextType(key): list(values)
                        for key, values in snapshot.stats.context_durations.items()
                    }

            self._log(logging.INFO, "State imported")
            return True

    # ------------------------------------------------------------------
    # Utilities
    # ------------------------------------------------------------------

    @staticmethod
    def _generate_context_id(now: int) -> str:
        return f"ctx_{now}_{uuid.uuid4().hex[:9]}"

    def _log(self, level: int, message: str, **kwargs: Any) -> None:
        if not self.enable_logging:
            return
        context_type = self.current_context.type.value if self.current_context else "none"
        log_with_context(logger, level, message, context=context_type, **kwargs)


def _describe_error(error: Any) -> tuple[str, str]:
    """Return ``(message, type)`` for an exception, string or error mapping."""
    if isinstance(error, Mapping):
        message = error.get("message") or error.get("error") or "unknown error"
        return str(message), str(error.get("type") or "unknown")
    if isinstance(error, BaseException):
        name = type(error).__name__
        return str(error) or name, getattr(error, "type", None) or name
    return str(error), "unknown"
