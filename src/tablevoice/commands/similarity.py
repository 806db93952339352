"""String similarity helpers used by the fuzzy and semantic strategies.

Thin wrappers over rapidfuzz so the matcher works with plain 0..1 floats.
"""

from rapidfuzz.distance import JaroWinkler, Levenshtein

# Winkler prefix bonus: 0.1 per shared leading character, at most 4 characters
PREFIX_WEIGHT = 0.1


def levenshtein_distance(first: str | None, second: str | None) -> int:
    """Return the edit distance (insertions, deletions, substitutions)."""
    first = first or ""
    second = second or ""
    if not first or not second:
        return max(len(first), len(second))
    return Levenshtein.distance(first, second)


def levenshtein_similarity(first: str | None, second: str | None) -> float:
    """Return ``1 - distance / max_length`` in [0, 1]."""
    if not first and not second:
        return 1.0
    if not first or not second:
        return 0.0
    return Levenshtein.normalized_similarity(first, second)


def jaro_winkler(first: str | None, second: str | None) -> float:
    """Return the prefix-weighted Jaro-Winkler similarity in [0, 1].

    The prefix bonus only applies once the plain Jaro score reaches 0.7.
    """
    if not first and not second:
        return 1.0
    if not first or not second:
        return 0.0
    if first == second:
        return 1.0
    return JaroWinkler.similarity(first, second, prefix_weight=PREFIX_WEIGHT)


def best_alignment_similarity(words: list[str], candidates: list[str]) -> float:
    """Average, over ``words``, of each word's best similarity against ``candidates``.

    Returns 0.0 when either side is empty.
    """
    if not words or not candidates:
        return 0.0

    total = 0.0
    for word in words:
        total += max(jaro_winkler(word, candidate) for candidate in candidates)

    return total / len(words)
