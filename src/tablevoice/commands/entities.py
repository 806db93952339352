"""Entity extraction and locale-aware normalization.

Recognizes numbers, times, dates, currency amounts, quantities, table
references and person counts in a transcript. Normalizers are idempotent:
feeding an already-normalized value back returns it unchanged.
"""

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from ..bounded import LRUCache
from .locales import (
    DATE_WORDS,
    MONTH_WORDS,
    TIME_WORDS,
    WEEKDAY_WORDS,
    number_words_for,
)

logger = logging.getLogger(__name__)

ENTITY_TYPES = ("number", "time", "date", "currency", "quantity", "table", "person")

TIME_PATTERN = re.compile(r"(\d{1,2}):?(\d{0,2})\s?(uhr|am|pm|h)?", re.IGNORECASE)
QUANTITY_PATTERN = re.compile(r"(\d+)x?", re.IGNORECASE)
LEADING_INTEGER_PATTERN = re.compile(r"^[+-]?\d+")
INTEGER_PATTERN = re.compile(r"\d+")
CURRENCY_STRIP_PATTERN = re.compile(r"[^\d.,]")

CURRENCY_UNITS = r"chf|franken|franke|fr\.|rappen|euro|eur|€|dollar|usd|stutz"
QUANTITY_UNITS = r"stück|stk|portionen|portion|liter|kilo|gramm|mal|x"
PERSON_UNITS = (
    r"personen|person|leute|menschen|gäste|gäst|gast|guests|guest|people|personnes|persone"
)
TABLE_WORDS = r"tisch|table|tavolo"


@dataclass(frozen=True)
class EntityMatch:
    """One recognized sub-span of a transcript."""

    type: str
    text: str
    normalized: Any
    position: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "text": self.text,
            "normalized": self.normalized,
            "position": self.position,
        }


@lru_cache(maxsize=16)
def _number_words(language: str | None) -> dict[str, int]:
    # Shared across callers; never mutated
    return number_words_for(language)


def normalize_number(value: Any, language: str | None = None) -> Any:
    """Map a number word or numeric string to an integer.

    Falls back to the raw value when it is neither a known number word nor
    starts with an integer.
    """
    if isinstance(value, (int, float)):
        return value
    if not isinstance(value, str):
        return value

    cleaned = value.lower().strip()
    words = _number_words(language)
    if cleaned in words:
        return words[cleaned]

    match = LEADING_INTEGER_PATTERN.match(cleaned)
    if match:
        return int(match.group(0))

    return value


def normalize_time(value: Any) -> Any:
    """Convert ``H[:MM] [uhr|am|pm|h]`` to 24-hour ``HH:MM``.

    ``pm`` adds 12 hours unless the hour is already 12 or more; ``12am`` is
    midnight. Text without a recognizable clock time is returned unchanged.
    """
    if not isinstance(value, str):
        return value

    match = TIME_PATTERN.search(value)
    if not match:
        return value

    hours = int(match.group(1))
    minutes = int(match.group(2) or "0")
    period = (match.group(3) or "").lower()

    if period == "pm" and hours < 12:
        hours += 12
    elif period == "am" and hours == 12:
        hours = 0

    if hours > 23 or minutes > 59:
        return value

    return f"{hours:02d}:{minutes:02d}"


def normalize_date(value: Any) -> Any:
    """Map relative date words to symbolic tokens (``morn`` -> ``tomorrow``)."""
    if not isinstance(value, str):
        return value
    return DATE_WORDS.get(value.lower().strip(), value)


def normalize_currency(value: Any) -> Any:
    """Parse an amount like ``12,50 chf`` to a float, or return the raw text."""
    if isinstance(value, (int, float)):
        return value
    if not isinstance(value, str):
        return value

    digits = CURRENCY_STRIP_PATTERN.sub("", value).replace(",", ".", 1)
    try:
        return float(digits)
    except ValueError:
        return value


def normalize_quantity(value: Any, language: str | None = None) -> Any:
    """Extract the integer of ``3x`` / ``3 stück``; falls back to the number normalizer."""
    if isinstance(value, (int, float)):
        return value
    if not isinstance(value, str):
        return value

    match = QUANTITY_PATTERN.search(value)
    if match:
        return int(match.group(1))

    return normalize_number(value, language)


def normalize_reference(value: Any, language: str | None = None) -> Any:
    """Extract the number from a table reference or person count (``tisch föif`` -> 5)."""
    if isinstance(value, (int, float)):
        return value
    if not isinstance(value, str):
        return value

    match = INTEGER_PATTERN.search(value)
    if match:
        return int(match.group(0))

    words = _number_words(language)
    for token in value.lower().split():
        if token in words:
            return words[token]

    return value.lower().strip()


def word_alternation(words: Any) -> str:
    """Regex alternation of literal words, longest first so "drüü" wins over "drü"."""
    return "|".join(re.escape(word) for word in sorted(words, key=len, reverse=True))


def _bounded(body: str) -> re.Pattern[str]:
    return re.compile(rf"(?<!\w)(?:{body})(?!\w)", re.IGNORECASE)


def build_entity_patterns(language: str | None = None) -> dict[str, re.Pattern[str]]:
    """Compile the entity regular expressions for a locale."""
    numbers = rf"\d+|{word_alternation(_number_words(language))}"

    return {
        "number": _bounded(numbers),
        "time": _bounded(
            rf"\d{{1,2}}(?::\d{{2}})?\s?(?:uhr|am|pm|h)|\d{{1,2}}:\d{{2}}"
            rf"|{word_alternation(TIME_WORDS)}"
        ),
        "date": _bounded(
            rf"{word_alternation(DATE_WORDS)}|{word_alternation(WEEKDAY_WORDS)}"
            rf"|{word_alternation(MONTH_WORDS)}|\d{{1,2}}\.\d{{1,2}}\.(?:\d{{2,4}})?"
        ),
        "currency": re.compile(
            rf"(?<!\w)\d+(?:[.,]\d+)?\s?(?:{CURRENCY_UNITS})(?![^\W\d_])", re.IGNORECASE
        ),
        "quantity": _bounded(rf"\d+\s?(?:{QUANTITY_UNITS})"),
        "table": _bounded(rf"(?:{TABLE_WORDS})\s?(?:{numbers})|\d+er\s?tisch"),
        "person": _bounded(rf"(?:{numbers})\s?(?:{PERSON_UNITS})"),
    }


class EntityExtractor:
    """Run all entity patterns over a text, caching results per input string.

    The cache is bounded (least recently used entries are evicted) and is only
    ever invalidated explicitly via ``clear_cache``.
    """

    def __init__(self, language: str | None = None, cache_size: int = 256) -> None:
        self.language = language
        self.patterns = build_entity_patterns(language)
        self._cache = LRUCache(cache_size)

    def extract(self, text: str) -> dict[str, tuple[EntityMatch, ...]]:
        """Extract entities grouped by type, in first-occurrence order.

        Args:
            text: Transcript text (usually preprocessed)

        Returns:
            Mapping of entity type to matches; types without matches are omitted
        """
        cached = self._cache.get(text)
        if cached is not None:
            return dict(cached)

        entities: dict[str, tuple[EntityMatch, ...]] = {}
        for entity_type, pattern in self.patterns.items():
            found = tuple(
                EntityMatch(
                    type=entity_type,
                    text=match.group(0),
                    normalized=self.normalize(match.group(0), entity_type),
                    position=match.start(),
                )
                for match in pattern.finditer(text)
            )
            if found:
                entities[entity_type] = found

        self._cache.put(text, entities)
        return dict(entities)

    def normalize(self, value: str, entity_type: str) -> Any:
        """Normalize a raw entity span according to its type."""
        if entity_type == "number":
            return normalize_number(value, self.language)
        if entity_type == "time":
            return normalize_time(value)
        if entity_type == "date":
            return normalize_date(value)
        if entity_type == "currency":
            return normalize_currency(value)
        if entity_type == "quantity":
            return normalize_quantity(value, self.language)
        if entity_type in ("table", "person"):
            return normalize_reference(value, self.language)
        return value.lower().strip()

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.debug("Entity cache cleared")

    @property
    def cache_size(self) -> int:
        return len(self._cache)
