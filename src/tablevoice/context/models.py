"""Pydantic models for context manager snapshots (export_state / import_state)."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .types import Context, ContextMetadata, ContextType, GlobalVariable, HistoryEntry


class ContextMetadataSnapshot(BaseModel):
    """Context metadata."""

    model_config = ConfigDict(use_enum_values=True)

    previous_context: ContextType | None = None
    transition_reason: str = "manual"
    user_initiated: bool = True


class ContextSnapshot(BaseModel):
    """One context activation."""

    model_config = ConfigDict(use_enum_values=True)

    id: str = Field(..., min_length=1, examples=["ctx_1718000000000_k3j9x0a1b"])
    type: ContextType
    start_time: int = Field(..., ge=0)
    data: dict[str, Any] = Field(default_factory=dict)
    variables: dict[str, Any] = Field(default_factory=dict)
    metadata: ContextMetadataSnapshot = Field(default_factory=ContextMetadataSnapshot)
    paused_at: int | None = Field(default=None, ge=0)

    @classmethod
    def from_context(cls, context: Context) -> "ContextSnapshot":
        return cls.model_validate(context.to_dict())

    def to_context(self) -> Context:
        previous = self.metadata.previous_context
        return Context(
            id=self.id,
            type=ContextType(self.type),
            start_time=self.start_time,
            data=dict(self.data),
            variables=dict(self.variables),
            metadata=ContextMetadata(
                previous_context=ContextType(previous) if previous else None,
                transition_reason=self.metadata.transition_reason,
                user_initiated=self.metadata.user_initiated,
            ),
            paused_at=self.paused_at,
        )


class HistorySnapshot(ContextSnapshot):
    """A superseded context with its active duration."""

    end_time: int = Field(..., ge=0)
    duration: int = Field(..., ge=0)

    @classmethod
    def from_entry(cls, entry: HistoryEntry) -> "HistorySnapshot":
        return cls.model_validate(entry.to_dict())

    def to_entry(self) -> HistoryEntry:
        return HistoryEntry(
            context=self.to_context(), end_time=self.end_time, duration=self.duration
        )


class GlobalVariableSnapshot(BaseModel):
    """Global variable with its sweep timestamp."""

    value: Any = None
    timestamp: int = Field(..., ge=0)
    context_id: str | None = None

    def to_variable(self) -> GlobalVariable:
        return GlobalVariable(
            value=self.value, timestamp=self.timestamp, context_id=self.context_id
        )


class StatisticsSnapshot(BaseModel):
    """Context manager counters."""

    model_config = ConfigDict(use_enum_values=True)

    total_transitions: int = Field(default=0, ge=0)
    error_count: int = Field(default=0, ge=0)
    timeout_count: int = Field(default=0, ge=0)
    invalid_transitions: int = Field(default=0, ge=0)
    context_durations: dict[ContextType, list[int]] = Field(default_factory=dict)


class ContextManagerState(BaseModel):
    """Snapshot of a context manager: current context, stack, history, globals, stats."""

    current_context: ContextSnapshot | None = None
    context_stack: list[ContextSnapshot] = Field(default_factory=list)
    context_history: list[HistorySnapshot] = Field(default_factory=list)
    global_variables: dict[str, GlobalVariableSnapshot] = Field(default_factory=dict)
    stats: StatisticsSnapshot | None = None
    timestamp: int = Field(default=0, ge=0)
