"""Tests for string similarity helpers."""

import pytest

from tablevoice.commands.similarity import (
    best_alignment_similarity,
    jaro_winkler,
    levenshtein_distance,
    levenshtein_similarity,
)


class TestLevenshtein:
    def test_distance(self):
        assert levenshtein_distance("kitten", "sitting") == 3
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("tisch", "tisch") == 0

    def test_similarity_range(self):
        assert levenshtein_similarity("tisch", "tisch") == 1.0
        assert 0.0 < levenshtein_similarity("bstellig", "bestellung") < 1.0


class TestJaroWinkler:
    def test_identical_and_empty(self):
        assert jaro_winkler("föif", "föif") == 1.0
        assert jaro_winkler("", "") == 1.0
        assert jaro_winkler("abc", "") == 0.0
        assert jaro_winkler("", "abc") == 0.0

    def test_known_value(self):
        # Classic reference pair
        assert jaro_winkler("martha", "marhta") == pytest.approx(0.961, abs=0.001)

    def test_common_prefix_scores_higher(self):
        assert jaro_winkler("bstellig", "bestellung") > jaro_winkler("bstellig", "rechnung")

    def test_symmetric(self):
        assert jaro_winkler("fürs", "für") == pytest.approx(jaro_winkler("für", "fürs"))


class TestBestAlignment:
    def test_perfect_alignment(self):
        words = ["neue", "bestellung"]
        assert best_alignment_similarity(words, ["bestellung", "neue", "tisch"]) == 1.0

    def test_average_over_transcript_words(self):
        score = best_alignment_similarity(["tisch", "xyz"], ["tisch"])
        assert 0.5 <= score < 1.0

    def test_empty_inputs(self):
        assert best_alignment_similarity([], ["tisch"]) == 0.0
        assert best_alignment_similarity(["tisch"], []) == 0.0
