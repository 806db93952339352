"""Tests for the command matcher strategy cascade."""

from types import SimpleNamespace

import pytest

from tablevoice.commands.matcher import (
    FUZZY_CAP,
    PARTIAL_CAP,
    SEMANTIC_CAP,
    CommandMatcher,
    MatcherOptions,
    MatchType,
)
from tablevoice.commands.patterns import CommandPattern
from tablevoice.context.types import ContextType


@pytest.fixture
def help_pattern():
    return CommandPattern(intent="HELP", category="system", patterns=["hilfe"], examples=["Hilfe"])


class TestExactMatch:
    """Test structural (exact) matching."""

    def test_new_order_with_table(self, order_matcher):
        result = order_matcher.match("neue Bestellung für Tisch 5")

        assert result.intent == "NEW_ORDER"
        assert result.match_type is MatchType.EXACT
        assert result.confidence == pytest.approx(1.0)
        assert result.params == {"table": 5}
        assert result.category == "orders"
        assert result.command_id == "orders_0"
        assert result.pattern == "neue bestellung [für|fürs] tisch {table}"
        assert result.original_text == "neue Bestellung für Tisch 5"
        assert result.preprocessed_text == "neue bestellung für tisch 5"

    def test_confidence_scaled_by_command_confidence(self, matcher):
        result = matcher.match("neue Bestellung für Tisch 5")

        assert result.intent == "NEW_ORDER"
        assert result.confidence == pytest.approx(0.95)
        assert result.params == {"table": 5}

    def test_number_word_slot(self, order_matcher):
        result = order_matcher.match("neue Bestellung fürs Tisch föif")
        assert result.match_type is MatchType.EXACT
        assert result.params == {"table": 5}

    def test_span_ratio_lowers_confidence(self, order_matcher):
        full = order_matcher.match("neue bestellung für tisch 5")
        padded = order_matcher.match("neue bestellung für tisch 5 sofort bitte")

        assert padded.match_type is MatchType.EXACT
        assert padded.confidence < full.confidence
        assert padded.confidence == pytest.approx(27 / 40 * 1.2)

    def test_dialect_pattern(self, matcher):
        result = matcher.match("E neui Bstellig fürs Tisch föif")

        assert result.intent == "NEW_ORDER"
        assert result.match_type is MatchType.EXACT
        assert result.command_id == "dialect_orders_0"
        assert result.params == {"table": 5}

    def test_typed_slots(self, matcher):
        result = matcher.match("Reservierung für 4 Personen morgen um 19 Uhr")

        assert result.intent == "NEW_RESERVATION"
        assert result.params == {"guests": 4, "date": "tomorrow", "time": "19:00"}

    def test_string_slot_is_trimmed(self, matcher):
        result = matcher.match("suche nach veganer Pizza")
        assert result.intent == "SEARCH_PRODUCT"
        assert result.params == {"query": "veganer pizza"}

    def test_exact_is_not_displaced(self, order_matcher):
        result = order_matcher.match(
            "also gut dann hätten wir gerne jetzt sofort eine neue bestellung für tisch 5 bitte"
        )
        assert result.match_type is MatchType.EXACT
        assert result.intent == "NEW_ORDER"


class TestFallbackStrategies:
    """Test the fuzzy, partial and semantic strategies."""

    def test_dialect_transcript_matches_fuzzily(self, order_matcher):
        result = order_matcher.match("bstellig fürs tisch föif")

        assert result.intent == "NEW_ORDER"
        assert result.match_type is MatchType.FUZZY
        assert 0 < result.confidence < FUZZY_CAP
        # Parameters come from entity extraction when no template matched
        assert result.params == {"table": 5}

    def test_partial_match_on_example_keywords(self):
        pattern = CommandPattern(
            intent="ORDER_PIZZA", category="orders", patterns=["xq"], examples=["Pizza bestellen"]
        )
        matcher = CommandMatcher({"orders": [pattern]})

        result = matcher.match("pizza bestellen")

        assert result.intent == "ORDER_PIZZA"
        assert result.match_type is MatchType.PARTIAL
        # 2/2 keywords * 0.6, boosted for an ordering verb
        assert result.confidence == pytest.approx(0.78)
        assert result.pattern is None

    def test_semantic_match_tolerates_inflection(self):
        pattern = CommandPattern(
            intent="SHOW_MENU", category="menu", patterns=["xq"], examples=["Speisekarte anzeigen"]
        )
        matcher = CommandMatcher({"menu": [pattern]})

        result = matcher.match("speisekarten anzeige")

        assert result.intent == "SHOW_MENU"
        assert result.match_type is MatchType.SEMANTIC
        assert result.confidence == pytest.approx(2 / 3 * 0.7)

    def test_semantic_can_be_disabled(self):
        pattern = CommandPattern(
            intent="SHOW_MENU", category="menu", patterns=["xq"], examples=["Speisekarte anzeigen"]
        )
        options = MatcherOptions(semantic_enabled=False)
        matcher = CommandMatcher({"menu": [pattern]}, options=options)

        result = matcher.match("speisekarten anzeige")

        assert result.intent is None
        assert result.confidence == 0.0

    @pytest.mark.parametrize(
        "transcript",
        [
            "neue bestellung für tisch 5",
            "bstellig fürs tisch föif",
            "zeig mir d karte",
            "warenkorb",
            "zahle bitte",
            "reservierig für zwöi",
            "mit karte",
            "zrugg",
            "was chani säge",
        ],
    )
    def test_confidence_within_strategy_caps(self, matcher, transcript):
        result = matcher.match(transcript)
        caps = {
            MatchType.EXACT: 1.0,
            MatchType.FUZZY: FUZZY_CAP,
            MatchType.PARTIAL: PARTIAL_CAP,
            MatchType.SEMANTIC: SEMANTIC_CAP,
        }

        assert 0.0 <= result.confidence <= 1.0
        if result.matched:
            assert result.confidence <= caps[result.match_type]
        else:
            assert result.intent is None
            assert result.confidence == 0.0

    def test_unrelated_transcript_does_not_match(self, order_matcher):
        result = order_matcher.match("xyzzy plugh")
        assert result.intent is None
        assert result.match_type is None
        assert not result.matched


class TestInvalidInput:
    @pytest.mark.parametrize("transcript", ["", "   ", None, 42])
    def test_invalid_input_is_a_failed_match(self, order_matcher, transcript):
        result = order_matcher.match(transcript)

        assert result.intent is None
        assert result.confidence == 0.0
        assert order_matcher.get_statistics()["failed_matches"] == 1
        assert order_matcher.get_history() == []

    def test_internal_error_returns_empty_result(self, order_matcher, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(order_matcher, "_match", explode)
        result = order_matcher.match("neue bestellung für tisch 5")

        assert result.intent is None
        assert result.original_text == "neue bestellung für tisch 5"
        assert order_matcher.get_statistics()["failed_matches"] == 1


class TestContext:
    """Test context filtering and boosting."""

    def test_context_restricted_command(self, matcher):
        assert matcher.match("ja").intent == "CONFIRM"
        assert matcher.match("ja", context="payment").intent != "CONFIRM"

        result = matcher.match("ja", context=ContextType.CONFIRMATION)
        assert result.intent == "CONFIRM"
        assert result.confidence == pytest.approx(0.9 * 1.1)

    def test_context_category_filter(self, matcher):
        assert matcher.match("hilfe", context="navigation").intent == "HELP"
        assert matcher.match("hilfe", context="order_creation").intent != "HELP"

    def test_context_boost(self, order_matcher):
        text = "neue bestellung für tisch 5 sofort bitte"
        plain = order_matcher.match(text)
        boosted = order_matcher.match(text, context="order_creation")

        assert boosted.confidence == pytest.approx(plain.confidence * 1.1)

    def test_set_context_accepts_context_objects(self, matcher):
        matcher.set_context(SimpleNamespace(type=ContextType.CONFIRMATION))
        result = matcher.match("ja")

        assert result.intent == "CONFIRM"
        assert result.confidence == pytest.approx(0.99)

    def test_context_filter_can_be_disabled(self, registry):
        matcher = CommandMatcher.from_config(registry, MatcherOptions(context_enabled=False))
        assert matcher.match("hilfe", context="order_creation").intent == "HELP"


class TestPreprocessing:
    def test_preprocess_keeps_numeric_separators(self, order_matcher):
        assert order_matcher.preprocess("Tisch 5, bitte!") == "tisch 5 bitte"
        assert order_matcher.preprocess("12,50 CHF um 14:30!") == "12,50 chf um 14:30"
        assert order_matcher.preprocess("  Hallo;   Welt  ") == "hallo welt"

    def test_stopword_removal_and_language_hint(self):
        matcher = CommandMatcher(options=MatcherOptions(remove_stopwords=True))

        assert matcher.preprocess("Bitte die Karte!") == "die karte"
        assert matcher.match("Bitte die Karte", language="de").preprocessed_text == "karte"


class TestHistoryAndStatistics:
    def test_statistics(self, order_matcher):
        order_matcher.match("neue bestellung für tisch 5")
        order_matcher.match("xyzzy plugh")

        stats = order_matcher.get_statistics()
        assert stats["total_matches"] == 2
        assert stats["exact_matches"] == 1
        assert stats["failed_matches"] == 1
        assert stats["average_confidence"] == pytest.approx(1.0)
        assert stats["success_rate"] == pytest.approx(0.5)

    def test_history_is_most_recent_first(self, order_matcher):
        order_matcher.match("neue bestellung für tisch 1")
        order_matcher.match("neue bestellung für tisch 2")

        history = order_matcher.get_history()
        assert [entry["params"]["table"] for entry in history] == [2, 1]
        assert history[0]["match_type"] == "exact"
        assert "timestamp" in history[0]
        assert len(order_matcher.get_history(1)) == 1

        order_matcher.clear_history()
        assert order_matcher.get_history() == []

    def test_history_is_bounded(self, new_order_pattern):
        options = MatcherOptions(history_size=2)
        matcher = CommandMatcher({"orders": [new_order_pattern]}, options=options)
        for table in range(5):
            matcher.match(f"neue bestellung für tisch {table}")

        assert len(matcher.get_history()) == 2


class TestUtilities:
    def test_find_similar(self, order_matcher):
        results = order_matcher.find_similar("neue bestellung")

        assert results
        assert results[0].intent == "NEW_ORDER"
        assert results[0].example == "neue Bestellung für Tisch 5"
        similarities = [r.similarity for r in results]
        assert similarities == sorted(similarities, reverse=True)
        assert all(s > 0.3 for s in similarities)

    def test_find_similar_limits_results(self, matcher):
        assert len(matcher.find_similar("bestellung", max_results=2)) <= 2
        assert matcher.find_similar("") == []

    def test_to_dict(self, order_matcher):
        data = order_matcher.match("neue bestellung für tisch 5").to_dict()

        assert data["intent"] == "NEW_ORDER"
        assert data["match_type"] == "exact"
        assert data["params"] == {"table": 5}
        assert data["command_id"] == "orders_0"

    def test_recompile_replaces_registry(self, order_matcher, help_pattern):
        order_matcher.recompile({"system": [help_pattern]})

        assert set(order_matcher.compiled_patterns) == {"system_0"}
        assert order_matcher.match("hilfe").intent == "HELP"
        assert order_matcher.match("neue bestellung für tisch 5").intent != "NEW_ORDER"

    def test_extract_entities(self, order_matcher):
        entities = order_matcher.extract_entities("tisch 5 um 19 uhr")
        assert entities["table"][0].normalized == 5
        assert entities["time"][0].normalized == "19:00"
