"""Command matcher for converting transcripts to structured intents.

Runs a strategy cascade over the compiled pattern registry:

1. exact    - structural template match (may reach full confidence)
2. fuzzy    - word-level Jaro-Winkler alignment against de-structured templates
3. partial  - keyword overlap with the pattern's example phrases
4. semantic - similarity-tolerant keyword overlap (intent name + examples)

A later strategy only runs while the best confidence is below its activation
threshold, and only replaces the best result when strictly more confident.
"""

import logging
import re
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..bounded import RingBuffer
from ..logging_utils import log_debug, log_error
from ..metrics import get_metrics_collector, is_metrics_enabled
from .entities import (
    EntityExtractor,
    EntityMatch,
    normalize_date,
    normalize_number,
    normalize_time,
)
from .locales import BOOLEAN_TRUE_WORDS, DEFAULT_LANGUAGE, IMPORTANT_KEYWORDS, stopwords_for
from .patterns import CommandPattern, CompiledCommand, ParamType, compile_registry
from .similarity import best_alignment_similarity, jaro_winkler

logger = logging.getLogger(__name__)

# Confidence thresholds
EXACT_CONFIDENCE = 1.0
HIGH_CONFIDENCE = 0.9
MEDIUM_CONFIDENCE = 0.7
LOW_CONFIDENCE = 0.5
MINIMUM_CONFIDENCE = 0.3

# Strategy scaling factors and caps
EXACT_SPAN_BOOST = 1.2
CONTEXT_BOOST = 1.1
FUZZY_PENALTY = 0.8
FUZZY_CAP = 0.95
PARTIAL_SCALE = 0.6
PARTIAL_KEYWORD_BOOST = 1.3
PARTIAL_CAP = 0.8
SEMANTIC_SCALE = 0.7
SEMANTIC_CAP = 0.85
SEMANTIC_CUTOFF = 0.8

# Commands outside these categories are skipped while in the keyed context
CONTEXT_CATEGORIES: dict[str, tuple[str, ...]] = {
    "order_creation": ("orders", "cart", "menu"),
    "navigation": ("navigation", "system"),
}

# Parameter type -> compatible entity types, in preference order
ENTITY_TYPES_FOR_PARAM: dict[ParamType, tuple[str, ...]] = {
    ParamType.NUMBER: ("number", "quantity"),
    ParamType.DATE: ("date",),
    ParamType.TIME: ("time",),
    ParamType.ENTITY: ("table", "person", "currency"),
}

# Sentence punctuation; separators inside numbers (12,50 / 14:30 / 5.) are kept
PUNCTUATION_PATTERN = re.compile(r"[!?;]|(?<!\d)[.,:]|[,:](?!\d)")
WHITESPACE_PATTERN = re.compile(r"\s+")
WORD_PATTERN = re.compile(r"\w+")


class MatchType(str, Enum):
    """Strategy that produced a match."""

    EXACT = "exact"
    FUZZY = "fuzzy"
    PARTIAL = "partial"
    SEMANTIC = "semantic"


@dataclass(frozen=True)
class MatchResult:
    """Outcome of one ``match`` call. ``intent`` is None when nothing matched."""

    intent: str | None
    confidence: float
    match_type: MatchType | None
    category: str | None = None
    params: dict[str, Any] = field(default_factory=dict)
    original_text: str = ""
    preprocessed_text: str = ""
    pattern: str | None = None
    command_id: str | None = None

    @property
    def matched(self) -> bool:
        return self.intent is not None and self.confidence > 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for the command execution layer."""
        return {
            "intent": self.intent,
            "confidence": self.confidence,
            "match_type": self.match_type.value if self.match_type else None,
            "category": self.category,
            "params": dict(self.params),
            "original_text": self.original_text,
            "preprocessed_text": self.preprocessed_text,
            "pattern": self.pattern,
            "command_id": self.command_id,
        }


@dataclass(frozen=True)
class SimilarCommand:
    """A "did you mean" candidate returned by ``find_similar``."""

    intent: str
    category: str
    example: str
    similarity: float
    command_id: str


@dataclass
class MatcherOptions:
    """Tuning knobs for a ``CommandMatcher``."""

    language: str = DEFAULT_LANGUAGE
    fuzzy_threshold: float = MEDIUM_CONFIDENCE
    context_enabled: bool = True
    semantic_enabled: bool = True
    remove_stopwords: bool = False
    history_size: int = 100
    entity_cache_size: int = 256
    important_keywords: tuple[str, ...] = IMPORTANT_KEYWORDS
    semantic_cutoff: float = SEMANTIC_CUTOFF


def _context_type(context: Any) -> str | None:
    """Accept a context object (with ``.type``), an enum member or a plain string."""
    if context is None:
        return None
    value = getattr(context, "type", context)
    return getattr(value, "value", value)


class CommandMatcher:
    """Classify transcripts against a registry of command patterns.

    ``match`` never raises; a failed match is a zero-confidence result with
    ``intent=None``.
    """

    def __init__(
        self,
        patterns: Mapping[str, Sequence[CommandPattern]] | None = None,
        dialect_patterns: Mapping[str, Sequence[CommandPattern]] | None = None,
        options: MatcherOptions | None = None,
    ) -> None:
        """Initialize the matcher and compile the registry.

        Args:
            patterns: Category -> command patterns
            dialect_patterns: Optional parallel dialect registry merged into the main one
            options: Matcher options (defaults to Swiss-German, medium fuzzy threshold)

        Raises:
            PatternConfigError: If a template cannot be compiled
        """
        self.options = options or MatcherOptions()
        self.language = self.options.language
        self.stopwords = stopwords_for(self.language)
        self.extractor = EntityExtractor(self.language, cache_size=self.options.entity_cache_size)

        self.current_context: Any = None
        self._history = RingBuffer(self.options.history_size)
        self._keyword_cache: dict[tuple[str, frozenset[str]], frozenset[str]] = {}
        self.compiled_patterns: dict[str, CompiledCommand] = {}

        self.stats: dict[str, Any] = {}
        self._reset_stats()

        self.recompile(patterns or {}, dialect_patterns)

    @classmethod
    def from_config(cls, config: Any, options: MatcherOptions | None = None) -> "CommandMatcher":
        """Build a matcher from a loaded ``PatternConfig``."""
        return cls(config.categories, config.dialect, options=options)

    def recompile(
        self,
        patterns: Mapping[str, Sequence[CommandPattern]],
        dialect_patterns: Mapping[str, Sequence[CommandPattern]] | None = None,
    ) -> None:
        """Replace the compiled registry wholesale and drop cached entities."""
        self.compiled_patterns = compile_registry(patterns, dialect_patterns, self.language)
        self._keyword_cache.clear()
        self.extractor.clear_cache()

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def match(
        self, transcript: Any, context: Any = None, language: str | None = None
    ) -> MatchResult:
        """Match a transcript against the registry.

        Args:
            transcript: Raw transcript from speech-to-text
            context: Optional context override (otherwise the one from ``set_context``)
            language: Optional locale hint switching the stop-word list for this call

        Returns:
            Best MatchResult; zero confidence and ``intent=None`` on failure
        """
        if not isinstance(transcript, str) or not transcript.strip():
            result = self._empty_result(transcript if isinstance(transcript, str) else "")
            self._record(result, add_to_history=False)
            return result

        try:
            result = self._match(transcript, context, language)
        except Exception as e:
            log_error(
                logger, "Command matching failed", exc_info=True, error=e, transcript=transcript
            )
            result = self._empty_result(transcript)

        self._record(result)
        return result

    def _match(self, transcript: str, context: Any, language: str | None) -> MatchResult:
        stopwords = stopwords_for(language) if language else self.stopwords
        text = self.preprocess(transcript, stopwords)
        context_type = _context_type(context if context is not None else self.current_context)

        best = self._exact_match(text, context_type)

        if best is None or best.confidence < self.options.fuzzy_threshold:
            best = self._pick(best, self._fuzzy_match(text, context_type))

        if best is None or best.confidence < LOW_CONFIDENCE:
            best = self._pick(best, self._partial_match(text, context_type, stopwords))

        if self.options.semantic_enabled and (best is None or best.confidence < MEDIUM_CONFIDENCE):
            best = self._pick(best, self._semantic_match(text, context_type, stopwords))

        if best is None:
            return self._empty_result(transcript, text)

        command, match_type, confidence, pattern, params = best.unpack()
        if params is None:
            params = self._extract_entity_parameters(text, command)

        return MatchResult(
            intent=command.intent,
            confidence=confidence,
            match_type=match_type,
            category=command.category,
            params=params,
            original_text=transcript,
            preprocessed_text=text,
            pattern=pattern,
            command_id=command.id,
        )

    @staticmethod
    def _pick(current: "_Candidate | None", challenger: "_Candidate | None") -> "_Candidate | None":
        """Keep the better of two candidates.

        An exact match is kept even when a later strategy scores higher. A
        loosely matched example can then never outrank a template that matched
        the transcript structurally, at the cost of sometimes keeping a
        lower-confidence result.
        """
        if challenger is None:
            return current
        if current is None:
            return challenger
        if current.match_type is MatchType.EXACT:
            return current
        return challenger if challenger.confidence > current.confidence else current

    def _candidates(self, context_type: str | None):
        for command in self.compiled_patterns.values():
            if self.is_context_relevant(command, context_type):
                yield command

    def _context_boost(self, command: CompiledCommand, context_type: str | None) -> float:
        if context_type and self.is_context_relevant(command, context_type):
            return CONTEXT_BOOST
        return 1.0

    def _exact_match(self, text: str, context_type: str | None) -> "_Candidate | None":
        best: _Candidate | None = None

        for command in self._candidates(context_type):
            for template, regex in zip(command.templates, command.regexes):
                found = regex.search(text)
                if not found:
                    continue

                span_ratio = len(found.group(0)) / len(text)
                confidence = EXACT_CONFIDENCE * min(span_ratio * EXACT_SPAN_BOOST, 1.0)
                confidence *= command.confidence
                confidence = min(confidence * self._context_boost(command, context_type), 1.0)

                if best is None or confidence > best.confidence:
                    params = self._extract_slot_parameters(found, command)
                    best = _Candidate(command, MatchType.EXACT, confidence, template.source, params)

        return best

    def _fuzzy_match(self, text: str, context_type: str | None) -> "_Candidate | None":
        best: _Candidate | None = None
        text_words = self.tokenize(text)

        for command in self._candidates(context_type):
            for template in command.templates:
                template_words = self.tokenize(template.plain_text())
                similarity = best_alignment_similarity(text_words, template_words)
                if similarity < self.options.fuzzy_threshold:
                    continue

                confidence = similarity * FUZZY_PENALTY * command.confidence
                confidence = min(confidence * self._context_boost(command, context_type), FUZZY_CAP)

                if best is None or confidence > best.confidence:
                    best = _Candidate(command, MatchType.FUZZY, confidence, template.source)

        return best

    def _partial_match(
        self, text: str, context_type: str | None, stopwords: frozenset[str]
    ) -> "_Candidate | None":
        best: _Candidate | None = None
        text_words = self.tokenize(text)
        if not text_words:
            return None

        for command in self._candidates(context_type):
            keywords = self._example_keywords(command, stopwords)
            matched = [word for word in text_words if word in keywords]
            if not matched:
                continue

            confidence = len(matched) / len(text_words) * PARTIAL_SCALE
            if any(
                important in word
                for word in matched
                for important in self.options.important_keywords
            ):
                confidence *= PARTIAL_KEYWORD_BOOST
            confidence = min(confidence * command.confidence, PARTIAL_CAP)

            if confidence >= LOW_CONFIDENCE and (best is None or confidence > best.confidence):
                best = _Candidate(command, MatchType.PARTIAL, confidence)

        return best

    def _semantic_match(
        self, text: str, context_type: str | None, stopwords: frozenset[str]
    ) -> "_Candidate | None":
        best: _Candidate | None = None
        text_keywords = self._semantic_keywords(text, stopwords)
        if not text_keywords:
            return None

        for command in self._candidates(context_type):
            command_keywords = self._command_semantic_keywords(command, stopwords)
            if not command_keywords:
                continue

            matches = sum(
                1
                for keyword in text_keywords
                if any(
                    jaro_winkler(keyword, candidate) > self.options.semantic_cutoff
                    for candidate in command_keywords
                )
            )
            similarity = matches / max(len(text_keywords), len(command_keywords))
            if similarity < LOW_CONFIDENCE:
                continue

            confidence = min(similarity * SEMANTIC_SCALE * command.confidence, SEMANTIC_CAP)
            if best is None or confidence > best.confidence:
                best = _Candidate(command, MatchType.SEMANTIC, confidence)

        return best

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def _extract_slot_parameters(
        self, found: re.Match[str], command: CompiledCommand
    ) -> dict[str, Any]:
        params: dict[str, Any] = {}
        for name, value in found.groupdict().items():
            if value:
                params[name] = self.process_parameter_value(value, command.param_types.get(name))
        return params

    def _extract_entity_parameters(self, text: str, command: CompiledCommand) -> dict[str, Any]:
        """Map extracted entities onto the command's declared parameters by type."""
        entities = self.extractor.extract(text)
        used: set[EntityMatch] = set()
        params: dict[str, Any] = {}

        for name, param_type in command.param_types.items():
            for entity_type in ENTITY_TYPES_FOR_PARAM.get(param_type, ()):
                available = [e for e in entities.get(entity_type, ()) if e not in used]
                if available:
                    used.add(available[0])
                    params[name] = available[0].normalized
                    break

        return params

    def process_parameter_value(self, value: str, param_type: ParamType | None) -> Any:
        """Normalize a captured slot value according to its declared type."""
        if param_type is ParamType.NUMBER:
            return normalize_number(value, self.language)
        if param_type is ParamType.DATE:
            return normalize_date(value)
        if param_type is ParamType.TIME:
            return normalize_time(value)
        if param_type is ParamType.BOOLEAN:
            return value.lower().strip() in BOOLEAN_TRUE_WORDS
        return value.strip()

    def extract_entities(self, text: str) -> dict[str, tuple[EntityMatch, ...]]:
        """Extract entities from already preprocessed text (cached)."""
        return self.extractor.extract(text)

    # ------------------------------------------------------------------
    # Text helpers
    # ------------------------------------------------------------------

    def preprocess(self, text: str, stopwords: frozenset[str] | None = None) -> str:
        """Lowercase, strip sentence punctuation and collapse whitespace."""
        processed = PUNCTUATION_PATTERN.sub(" ", text.lower().strip())
        processed = WHITESPACE_PATTERN.sub(" ", processed).strip()

        if self.options.remove_stopwords:
            stopwords = stopwords if stopwords is not None else self.stopwords
            processed = " ".join(word for word in processed.split(" ") if word not in stopwords)

        return processed

    @staticmethod
    def tokenize(text: str) -> list[str]:
        return WORD_PATTERN.findall(text.lower())

    def _example_keywords(
        self, command: CompiledCommand, stopwords: frozenset[str]
    ) -> frozenset[str]:
        key = (command.id, stopwords)
        keywords = self._keyword_cache.get(key)
        if keywords is None:
            keywords = frozenset(
                word
                for example in command.examples
                for word in self.tokenize(example)
                if word not in stopwords and len(word) > 2
            )
            self._keyword_cache[key] = keywords
        return keywords

    def _semantic_keywords(self, text: str, stopwords: frozenset[str]) -> list[str]:
        return [
            word
            for word in self.tokenize(text)
            if word not in stopwords and len(word) > 2 and not word.isdigit()
        ]

    def _command_semantic_keywords(
        self, command: CompiledCommand, stopwords: frozenset[str]
    ) -> list[str]:
        keywords = [command.intent.replace("_", " ").lower()]
        for example in command.examples:
            for word in self._semantic_keywords(example, stopwords):
                if word not in keywords:
                    keywords.append(word)
        return keywords

    def is_context_relevant(self, command: CompiledCommand, context: Any) -> bool:
        """Whether a command should be considered while ``context`` is active."""
        context_type = _context_type(context)
        if not context_type or not self.options.context_enabled:
            return True

        if command.contexts and context_type not in command.contexts:
            return False

        categories = CONTEXT_CATEGORIES.get(context_type)
        if categories and command.category not in categories:
            return False

        return True

    # ------------------------------------------------------------------
    # Utilities
    # ------------------------------------------------------------------

    def find_similar(self, transcript: str, max_results: int = 5) -> list[SimilarCommand]:
        """Rank example phrases by similarity to a transcript ("did you mean")."""
        if not isinstance(transcript, str) or not transcript.strip():
            return []

        query = transcript.lower().strip()
        results: list[SimilarCommand] = []

        for command in self.compiled_patterns.values():
            for example in command.examples:
                similarity = jaro_winkler(query, example.lower())
                if similarity > MINIMUM_CONFIDENCE:
                    results.append(
                        SimilarCommand(
                            intent=command.intent,
                            category=command.category,
                            example=example,
                            similarity=similarity,
                            command_id=command.id,
                        )
                    )

        results.sort(key=lambda item: item.similarity, reverse=True)
        return results[:max_results]

    def set_context(self, context: Any) -> None:
        """Store the context used to filter and boost candidates in later calls."""
        self.current_context = context

    def get_history(self, limit: int | None = None) -> list[dict[str, Any]]:
        """Return recorded matches, most recent first."""
        return self._history.latest(limit)

    def clear_history(self) -> None:
        self._history.clear()

    def clear_cache(self) -> None:
        self.extractor.clear_cache()

    def get_statistics(self) -> dict[str, Any]:
        total = self.stats["total_matches"]
        success_rate = (total - self.stats["failed_matches"]) / total if total else 0.0
        return {**self.stats, "success_rate": success_rate}

    def _reset_stats(self) -> None:
        self.stats = {
            "total_matches": 0,
            "exact_matches": 0,
            "fuzzy_matches": 0,
            "semantic_matches": 0,
            "partial_matches": 0,
            "failed_matches": 0,
            "average_confidence": 0.0,
        }
        self._confidence_samples = 0

    def _empty_result(self, transcript: str, preprocessed: str = "") -> MatchResult:
        return MatchResult(
            intent=None,
            confidence=0.0,
            match_type=None,
            original_text=transcript,
            preprocessed_text=preprocessed,
        )

    def _record(self, result: MatchResult, add_to_history: bool = True) -> None:
        self.stats["total_matches"] += 1

        if result.matched:
            self.stats[f"{result.match_type.value}_matches"] += 1
            self._confidence_samples += 1
            self.stats["average_confidence"] += (
                result.confidence - self.stats["average_confidence"]
            ) / self._confidence_samples
        else:
            self.stats["failed_matches"] += 1

        if add_to_history:
            self._history.append({**result.to_dict(), "timestamp": time.time()})

        if is_metrics_enabled():
            get_metrics_collector().record_match(
                result.intent,
                result.match_type.value if result.match_type else None,
                result.confidence,
            )

        log_debug(
            logger,
            "Transcript matched" if result.matched else "No command matched",
            intent=result.intent,
            match_type=result.match_type.value if result.match_type else None,
            confidence=round(result.confidence, 3),
            transcript=result.original_text,
        )


@dataclass(frozen=True)
class _Candidate:
    """Best candidate of one strategy; ``params`` is None until entity mapping runs."""

    command: CompiledCommand
    match_type: MatchType
    confidence: float
    pattern: str | None = None
    params: dict[str, Any] | None = None

    def unpack(self):
        return self.command, self.match_type, self.confidence, self.pattern, self.params
