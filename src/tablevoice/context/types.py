"""Context types and the restaurant workflow configuration."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ContextType(str, Enum):
    """States of the operational workflow state machine."""

    IDLE = "idle"
    ORDER_CREATION = "order_creation"
    PRODUCT_SELECTION = "product_selection"
    CART_MANAGEMENT = "cart_management"
    PAYMENT = "payment"
    RESERVATION = "reservation"
    MENU_BROWSING = "menu_browsing"
    SEARCH = "search"
    NAVIGATION = "navigation"
    HELP = "help"
    SETTINGS = "settings"
    CONFIRMATION = "confirmation"
    ADMIN = "admin"
    ERROR_RECOVERY = "error_recovery"


class ContextVariable:
    """Well-known variable names shared with the command execution layer."""

    ORDER_ID = "orderId"
    TABLE_NUMBER = "tableNumber"
    CUSTOMER_INFO = "customerInfo"
    SELECTED_ITEMS = "selectedItems"
    PAYMENT_METHOD = "paymentMethod"
    RESERVATION_DATE = "reservationDate"
    RESERVATION_TIME = "reservationTime"
    GUEST_COUNT = "guestCount"
    SEARCH_QUERY = "searchQuery"
    SEARCH_RESULTS = "searchResults"
    CURRENT_PRODUCT = "currentProduct"
    CART_TOTAL = "cartTotal"
    CONFIRMATION_TYPE = "confirmationType"
    ERROR_TYPE = "errorType"
    RETRY_COUNT = "retryCount"
    USER_PREFERENCES = "userPreferences"


def coerce_context_type(value: "ContextType | str") -> ContextType | None:
    """Return the matching ContextType, or None for unknown values."""
    if isinstance(value, ContextType):
        return value
    try:
        return ContextType(value)
    except ValueError:
        return None


C = ContextType

DEFAULT_TRANSITIONS: dict[ContextType, tuple[ContextType, ...]] = {
    C.IDLE: (
        C.ORDER_CREATION,
        C.MENU_BROWSING,
        C.SEARCH,
        C.NAVIGATION,
        C.HELP,
        C.SETTINGS,
        C.RESERVATION,
        C.CART_MANAGEMENT,
    ),
    C.MENU_BROWSING: (
        C.PRODUCT_SELECTION,
        C.SEARCH,
        C.CART_MANAGEMENT,
        C.ORDER_CREATION,
        C.NAVIGATION,
        C.IDLE,
    ),
    C.PRODUCT_SELECTION: (C.CART_MANAGEMENT, C.ORDER_CREATION, C.MENU_BROWSING, C.SEARCH, C.IDLE),
    C.CART_MANAGEMENT: (C.PAYMENT, C.ORDER_CREATION, C.PRODUCT_SELECTION, C.MENU_BROWSING, C.IDLE),
    C.ORDER_CREATION: (C.CONFIRMATION, C.CART_MANAGEMENT, C.PRODUCT_SELECTION, C.PAYMENT, C.IDLE),
    C.PAYMENT: (C.CONFIRMATION, C.ORDER_CREATION, C.CART_MANAGEMENT, C.ERROR_RECOVERY, C.IDLE),
    C.RESERVATION: (C.CONFIRMATION, C.ORDER_CREATION, C.MENU_BROWSING, C.IDLE),
    C.SEARCH: (C.PRODUCT_SELECTION, C.MENU_BROWSING, C.CART_MANAGEMENT, C.IDLE),
    C.CONFIRMATION: (C.IDLE, C.ORDER_CREATION, C.PAYMENT, C.ERROR_RECOVERY),
    C.ERROR_RECOVERY: (C.IDLE, C.HELP),
    C.HELP: (C.IDLE,),
    C.NAVIGATION: (C.IDLE,),
    C.SETTINGS: (C.IDLE,),
}

# Milliseconds; contexts without an entry never time out
DEFAULT_TIMEOUTS: dict[ContextType, int] = {
    C.ORDER_CREATION: 300_000,
    C.PRODUCT_SELECTION: 120_000,
    C.CART_MANAGEMENT: 180_000,
    C.PAYMENT: 600_000,
    C.RESERVATION: 300_000,
    C.SEARCH: 60_000,
    C.CONFIRMATION: 30_000,
    C.HELP: 120_000,
    C.ERROR_RECOVERY: 60_000,
}

# Only used to rank suggestions; unlisted contexts rank 0
DEFAULT_PRIORITIES: dict[ContextType, int] = {
    C.ERROR_RECOVERY: 10,
    C.CONFIRMATION: 9,
    C.PAYMENT: 8,
    C.ORDER_CREATION: 7,
    C.RESERVATION: 6,
    C.CART_MANAGEMENT: 5,
    C.PRODUCT_SELECTION: 4,
    C.SEARCH: 3,
    C.MENU_BROWSING: 2,
    C.NAVIGATION: 1,
    C.IDLE: 0,
}

# Target of the automatic transition when a context times out; default idle
DEFAULT_TIMEOUT_TRANSITIONS: dict[ContextType, ContextType] = {
    C.ORDER_CREATION: C.IDLE,
    C.PRODUCT_SELECTION: C.MENU_BROWSING,
    C.CART_MANAGEMENT: C.IDLE,
    C.PAYMENT: C.CART_MANAGEMENT,
    C.RESERVATION: C.IDLE,
    C.SEARCH: C.MENU_BROWSING,
    C.CONFIRMATION: C.IDLE,
    C.ERROR_RECOVERY: C.IDLE,
}

DEFAULT_TRANSITION_REASONS: dict[tuple[ContextType, ContextType], str] = {
    (C.MENU_BROWSING, C.PRODUCT_SELECTION): "User found interesting product",
    (C.PRODUCT_SELECTION, C.CART_MANAGEMENT): "User wants to add to cart",
    (C.CART_MANAGEMENT, C.PAYMENT): "User ready to checkout",
    (C.ORDER_CREATION, C.CONFIRMATION): "Order needs confirmation",
    (C.PAYMENT, C.CONFIRMATION): "Payment needs confirmation",
}

DEFAULT_TRANSITION_REASON = "Natural progression"

del C


@dataclass
class ContextConfig:
    """Tables and limits driving a ContextManager.

    Build the restaurant workflow with ``ContextConfig.default()``; tests and
    deployments can override individual tables.
    """

    transitions: dict[ContextType, tuple[ContextType, ...]] = field(default_factory=dict)
    timeouts: dict[ContextType, int] = field(default_factory=dict)
    priorities: dict[ContextType, int] = field(default_factory=dict)
    timeout_transitions: dict[ContextType, ContextType] = field(default_factory=dict)
    transition_reasons: dict[tuple[ContextType, ContextType], str] = field(default_factory=dict)
    critical_contexts: frozenset[ContextType] = frozenset()
    max_retries: int = 3
    fallback_context: ContextType = ContextType.MENU_BROWSING
    history_size: int = 50
    variable_max_age_ms: int = 24 * 60 * 60 * 1000
    sweep_interval_ms: int = 60_000
    strict_transitions: bool = True

    @classmethod
    def default(cls) -> "ContextConfig":
        """Restaurant ordering/payment/reservation workflow."""
        return cls(
            transitions=dict(DEFAULT_TRANSITIONS),
            timeouts=dict(DEFAULT_TIMEOUTS),
            priorities=dict(DEFAULT_PRIORITIES),
            timeout_transitions=dict(DEFAULT_TIMEOUT_TRANSITIONS),
            transition_reasons=dict(DEFAULT_TRANSITION_REASONS),
            critical_contexts=frozenset(
                [ContextType.PAYMENT, ContextType.ORDER_CREATION, ContextType.RESERVATION]
            ),
        )

    def allowed_transitions(self, source: ContextType) -> tuple[ContextType, ...]:
        """Targets reachable from ``source``; a context without a table entry is unrestricted."""
        if source in self.transitions:
            return self.transitions[source]
        return tuple(target for target in ContextType if target is not source)

    def timeout_for(self, context_type: ContextType) -> int | None:
        return self.timeouts.get(context_type)

    def priority_for(self, context_type: ContextType) -> int:
        return self.priorities.get(context_type, 0)

    def timeout_target(self, context_type: ContextType) -> ContextType:
        return self.timeout_transitions.get(context_type, ContextType.IDLE)

    def reason_for(self, source: ContextType, target: ContextType) -> str:
        return self.transition_reasons.get((source, target), DEFAULT_TRANSITION_REASON)


@dataclass
class ContextMetadata:
    previous_context: ContextType | None = None
    transition_reason: str = "manual"
    user_initiated: bool = True


@dataclass
class Context:
    """One activation of a context type.

    ``variables`` belong to this activation only and are dropped when it is
    superseded, unless the next ``set_context`` call preserves them.
    """

    id: str
    type: ContextType
    start_time: int
    data: dict[str, Any] = field(default_factory=dict)
    variables: dict[str, Any] = field(default_factory=dict)
    metadata: ContextMetadata = field(default_factory=ContextMetadata)
    paused_at: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "start_time": self.start_time,
            "data": dict(self.data),
            "variables": dict(self.variables),
            "metadata": {
                "previous_context": (
                    self.metadata.previous_context.value if self.metadata.previous_context else None
                ),
                "transition_reason": self.metadata.transition_reason,
                "user_initiated": self.metadata.user_initiated,
            },
            "paused_at": self.paused_at,
        }


@dataclass(frozen=True)
class HistoryEntry:
    """A superseded context with the time it was active."""

    context: Context
    end_time: int
    duration: int

    def to_dict(self) -> dict[str, Any]:
        return {**self.context.to_dict(), "end_time": self.end_time, "duration": self.duration}


@dataclass
class GlobalVariable:
    """Global variable value with the timestamp used for sweep expiry."""

    value: Any
    timestamp: int
    context_id: str | None = None
