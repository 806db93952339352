"""Lightweight in-process metrics for command matching.

Metrics are best-effort in multi-worker environments (each worker has its own state).
"""

import os
import threading
from dataclasses import dataclass, field
from typing import Any


@dataclass
class MatchMetrics:
    """In-memory metrics collector for match outcomes.

    Thread-safe; each process maintains its own metrics state.
    """

    # Counters per recognized intent (e.g. NEW_ORDER)
    intent_counts: dict[str, int] = field(default_factory=dict)

    # Counters per match type (exact, fuzzy, partial, semantic)
    match_type_counts: dict[str, int] = field(default_factory=dict)

    total_matches: int = 0
    failed_matches: int = 0

    # Running mean over successful (non-zero confidence) matches
    average_confidence: float = 0.0
    _confidence_samples: int = 0

    _lock: threading.Lock = field(default_factory=threading.Lock)

    def record_match(self, intent: str | None, match_type: str | None, confidence: float) -> None:
        """Record the outcome of one match call.

        Args:
            intent: Recognized intent, or None when nothing matched
            match_type: Winning strategy, or None when nothing matched
            confidence: Final confidence in [0, 1]
        """
        with self._lock:
            self.total_matches += 1

            if intent is None or confidence <= 0:
                self.failed_matches += 1
                return

            self.intent_counts[intent] = self.intent_counts.get(intent, 0) + 1
            if match_type:
                self.match_type_counts[match_type] = self.match_type_counts.get(match_type, 0) + 1

            self._confidence_samples += 1
            self.average_confidence += (
                confidence - self.average_confidence
            ) / self._confidence_samples

    def get_snapshot(self) -> dict[str, Any]:
        """Get a snapshot of current metrics."""
        with self._lock:
            success_rate = 0.0
            if self.total_matches:
                success_rate = (self.total_matches - self.failed_matches) / self.total_matches

            return {
                "intent_counts": dict(self.intent_counts),
                "match_type_counts": dict(self.match_type_counts),
                "total_matches": self.total_matches,
                "failed_matches": self.failed_matches,
                "average_confidence": self.average_confidence,
                "success_rate": success_rate,
            }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self.intent_counts.clear()
            self.match_type_counts.clear()
            self.total_matches = 0
            self.failed_matches = 0
            self.average_confidence = 0.0
            self._confidence_samples = 0


# Global metrics collector instance
_metrics_collector: MatchMetrics | None = None
_metrics_lock = threading.Lock()


def get_metrics_collector() -> MatchMetrics:
    """Get or create the global metrics collector instance."""
    global _metrics_collector
    with _metrics_lock:
        if _metrics_collector is None:
            _metrics_collector = MatchMetrics()
        return _metrics_collector


def is_metrics_enabled() -> bool:
    """Check if metrics collection is enabled via environment variable.

    Returns:
        True if TABLEVOICE_ENABLE_METRICS=true, False otherwise.
    """
    return os.getenv("TABLEVOICE_ENABLE_METRICS", "false").lower() in ("true", "1", "yes")
