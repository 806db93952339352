"""Tests for match metrics."""

import pytest

from tablevoice.commands.matcher import CommandMatcher
from tablevoice.metrics import MatchMetrics, get_metrics_collector, is_metrics_enabled


@pytest.fixture
def reset_metrics():
    """Reset metrics before and after each test."""
    collector = get_metrics_collector()
    collector.reset()
    yield
    collector.reset()


def test_record_match_counts(reset_metrics):
    """Test that MatchMetrics records intents and match types."""
    collector = get_metrics_collector()

    collector.record_match("NEW_ORDER", "exact", 1.0)
    collector.record_match("NEW_ORDER", "fuzzy", 0.6)
    collector.record_match("SHOW_MENU", "partial", 0.5)
    collector.record_match(None, None, 0.0)

    snapshot = collector.get_snapshot()

    assert snapshot["intent_counts"] == {"NEW_ORDER": 2, "SHOW_MENU": 1}
    assert snapshot["match_type_counts"] == {"exact": 1, "fuzzy": 1, "partial": 1}
    assert snapshot["total_matches"] == 4
    assert snapshot["failed_matches"] == 1
    assert snapshot["average_confidence"] == pytest.approx(0.7)
    assert snapshot["success_rate"] == pytest.approx(0.75)


def test_empty_snapshot():
    """Test snapshot of a fresh collector."""
    snapshot = MatchMetrics().get_snapshot()
    assert snapshot["total_matches"] == 0
    assert snapshot["success_rate"] == 0.0
    assert snapshot["average_confidence"] == 0.0


def test_reset(reset_metrics):
    """Test that reset clears all counters."""
    collector = get_metrics_collector()
    collector.record_match("HELP", "exact", 0.9)
    collector.reset()

    snapshot = collector.get_snapshot()
    assert snapshot["total_matches"] == 0
    assert snapshot["intent_counts"] == {}


def test_get_metrics_collector_is_singleton():
    """Test that the global collector is shared."""
    assert get_metrics_collector() is get_metrics_collector()


def test_is_metrics_enabled(monkeypatch):
    """Test the opt-in environment flag."""
    monkeypatch.setenv("TABLEVOICE_ENABLE_METRICS", "true")
    assert is_metrics_enabled() is True

    monkeypatch.setenv("TABLEVOICE_ENABLE_METRICS", "1")
    assert is_metrics_enabled() is True

    monkeypatch.setenv("TABLEVOICE_ENABLE_METRICS", "false")
    assert is_metrics_enabled() is False

    monkeypatch.delenv("TABLEVOICE_ENABLE_METRICS")
    assert is_metrics_enabled() is False


def test_matcher_feeds_collector_when_enabled(monkeypatch, reset_metrics, new_order_pattern):
    """Test that the matcher reports to the global collector only when enabled."""
    matcher = CommandMatcher({"orders": [new_order_pattern]})

    monkeypatch.setenv("TABLEVOICE_ENABLE_METRICS", "false")
    matcher.match("neue bestellung für tisch 5")
    assert get_metrics_collector().get_snapshot()["total_matches"] == 0

    monkeypatch.setenv("TABLEVOICE_ENABLE_METRICS", "true")
    matcher.match("neue bestellung für tisch 5")
    snapshot = get_metrics_collector().get_snapshot()
    assert snapshot["total_matches"] == 1
    assert snapshot["intent_counts"] == {"NEW_ORDER": 1}
    assert snapshot["match_type_counts"] == {"exact": 1}
