"""Command patterns and the structural template language.

A template is a sequence of whitespace separated segments:

- ``word``            literal word
- ``{slot}``          named capture slot
- ``(a|b c)``         one of several phrases
- ``[a|b]``           optional phrase (one of several)

Example: ``neue bestellung [für|fürs] tisch {table}``.

Templates are parsed into an explicit segment tuple (``CompiledTemplate``);
``render_regex`` turns that into a Python regular expression separately, so
the parsed form does not depend on the regex engine.
"""

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

from ..context.types import ContextType
from ..errors import PatternConfigError
from .entities import word_alternation
from .locales import DATE_WORDS, MONTH_WORDS, WEEKDAY_WORDS, number_words_for

logger = logging.getLogger(__name__)

SLOT_NAME_PATTERN = re.compile(r"^[A-Za-z_]\w*$")

TEMPLATE_TOKEN_PATTERN = re.compile(
    r"\{(?P<slot>[^{}]*)\}"
    r"|\((?P<choice>[^()]*)\)"
    r"|\[(?P<optional>[^\[\]]*)\]"
    r"|(?P<word>[^\s(){}\[\]]+)"
    r"|(?P<space>\s+)"
    r"|(?P<stray>.)"
)


class ParamType(str, Enum):
    """Semantic type of a capture slot."""

    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    TIME = "time"
    BOOLEAN = "boolean"
    ENTITY = "entity"
    WILDCARD = "wildcard"


def infer_param_type(name: str) -> ParamType:
    """Guess a slot's type from its name when the pattern does not declare one."""
    lowered = name.lower()
    if any(key in lowered for key in ("number", "quantity", "amount", "count")):
        return ParamType.NUMBER
    if "date" in lowered:
        return ParamType.DATE
    if "time" in lowered:
        return ParamType.TIME
    if "table" in lowered or "id" in lowered:
        return ParamType.ENTITY
    return ParamType.STRING


@dataclass
class CommandPattern:
    """One recognizable phrasing family of an intent.

    Validated on construction; malformed definitions raise ``PatternConfigError``.
    """

    intent: str
    patterns: list[str]
    category: str = "general"
    examples: list[str] = field(default_factory=list)
    param_types: dict[str, ParamType] = field(default_factory=dict)
    confidence: float = 1.0
    contexts: list[str] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.intent, str) or not self.intent.strip():
            raise PatternConfigError("Command pattern requires a non-empty 'intent'")

        if isinstance(self.patterns, str) or not self.patterns:
            raise PatternConfigError(f"{self.intent}: 'patterns' must be a non-empty list")
        for template in self.patterns:
            if not isinstance(template, str) or not template.strip():
                raise PatternConfigError(f"{self.intent}: every pattern must be a non-empty string")

        if isinstance(self.examples, str) or any(not isinstance(e, str) for e in self.examples):
            raise PatternConfigError(f"{self.intent}: 'examples' must be a list of strings")

        if isinstance(self.confidence, bool) or not isinstance(self.confidence, (int, float)):
            raise PatternConfigError(f"{self.intent}: 'confidence' must be a number")
        if not 0.0 <= self.confidence <= 1.0:
            raise PatternConfigError(f"{self.intent}: 'confidence' must be within [0, 1]")

        param_types: dict[str, ParamType] = {}
        for name, type_name in dict(self.param_types).items():
            try:
                param_types[name] = ParamType(type_name)
            except ValueError:
                raise PatternConfigError(
                    f"{self.intent}: unknown parameter type '{type_name}' for '{name}'"
                ) from None
        self.param_types = param_types

        if self.contexts is not None:
            if isinstance(self.contexts, str):
                raise PatternConfigError(f"{self.intent}: 'contexts' must be a list")
            known = {context.value for context in ContextType}
            unknown = [name for name in self.contexts if name not in known]
            if unknown:
                raise PatternConfigError(f"{self.intent}: unknown contexts {unknown}")
            self.contexts = list(self.contexts)


@dataclass(frozen=True)
class Literal:
    word: str
    optional: bool = False


@dataclass(frozen=True)
class Choice:
    options: tuple[str, ...]
    optional: bool = False


@dataclass(frozen=True)
class Slot:
    name: str
    optional: bool = False


Segment = Literal | Choice | Slot


@dataclass(frozen=True)
class CompiledTemplate:
    """Parsed form of one template: an ordered literal/choice/slot sequence."""

    source: str
    segments: tuple[Segment, ...]

    @property
    def slots(self) -> tuple[str, ...]:
        return tuple(seg.name for seg in self.segments if isinstance(seg, Slot))

    def plain_text(self) -> str:
        """Template with structural syntax stripped: literal and choice words, no slots."""
        words: list[str] = []
        for segment in self.segments:
            if isinstance(segment, Literal):
                words.append(segment.word)
            elif isinstance(segment, Choice):
                words.extend(segment.options)
        return " ".join(words)


def _split_options(body: str, template: str) -> tuple[str, ...]:
    options = tuple(" ".join(option.lower().split()) for option in body.split("|"))
    if not options or any(not option for option in options):
        raise PatternConfigError(f"Empty alternative in template '{template}'")
    for option in options:
        if re.search(r"[(){}\[\]]", option):
            raise PatternConfigError(f"Nested groups are not supported: '{template}'")
    return options


def parse_template(template: str) -> CompiledTemplate:
    """Parse a template string into its segment sequence.

    Raises:
        PatternConfigError: On unbalanced or empty groups, invalid or duplicate
            slot names, or templates without any required segment.
    """
    segments: list[Segment] = []
    seen_slots: set[str] = set()

    for token in TEMPLATE_TOKEN_PATTERN.finditer(template):
        kind = token.lastgroup
        value = token.group(kind)

        if kind == "space":
            continue
        if kind == "stray":
            raise PatternConfigError(f"Unbalanced '{value}' in template '{template}'")

        if kind == "slot":
            name = value.strip()
            if not SLOT_NAME_PATTERN.match(name):
                raise PatternConfigError(f"Invalid slot name '{name}' in template '{template}'")
            if name in seen_slots:
                raise PatternConfigError(f"Duplicate slot '{name}' in template '{template}'")
            seen_slots.add(name)
            segments.append(Slot(name))
        elif kind == "choice":
            segments.append(Choice(_split_options(value, template)))
        elif kind == "optional":
            options = _split_options(value, template)
            if len(options) == 1 and " " not in options[0]:
                segments.append(Literal(options[0].lower(), optional=True))
            else:
                segments.append(Choice(options, optional=True))
        else:
            segments.append(Literal(value.lower()))

    if not any(not segment.optional for segment in segments):
        raise PatternConfigError(f"Template '{template}' has no required segment")

    return CompiledTemplate(source=template, segments=tuple(segments))


def build_slot_expressions(language: str | None = None) -> dict[ParamType, str]:
    """Regex bodies used for capture slots, keyed by slot type."""
    numbers = rf"\d+|{word_alternation(number_words_for(language))}"
    return {
        ParamType.NUMBER: numbers,
        ParamType.TIME: r"\d{1,2}(?::\d{2})?(?:\s?(?:uhr|am|pm|h))?",
        ParamType.DATE: (
            rf"{word_alternation(DATE_WORDS)}|{word_alternation(WEEKDAY_WORDS)}"
            rf"|{word_alternation(MONTH_WORDS)}|\d{{1,2}}\.\d{{1,2}}\.(?:\d{{2,4}})?"
        ),
        ParamType.BOOLEAN: r"\w+",
        ParamType.ENTITY: r"[\w\-]+",
    }


def _phrase_regex(phrase: str) -> str:
    return r"\s+".join(re.escape(word.lower()) for word in phrase.split())


def render_regex(
    template: CompiledTemplate,
    param_types: Mapping[str, ParamType],
    slot_expressions: Mapping[ParamType, str],
) -> re.Pattern[str]:
    """Render a parsed template as a case-insensitive Python regular expression."""
    pieces: list[str] = []
    started = False
    last_index = len(template.segments) - 1

    for index, segment in enumerate(template.segments):
        if isinstance(segment, Literal):
            body = re.escape(segment.word)
        elif isinstance(segment, Choice):
            body = "(?:" + "|".join(_phrase_regex(option) for option in segment.options) + ")"
        else:
            slot_type = param_types.get(segment.name, ParamType.STRING)
            expression = slot_expressions.get(slot_type)
            if expression is None:
                # Free text: greedy at the end of the template, lazy elsewhere
                expression = ".+" if index == last_index else ".+?"
            body = f"(?P<{segment.name}>{expression})"

        if segment.optional:
            pieces.append(rf"(?:\s+{body})?" if started else rf"(?:{body}\s+)?")
        else:
            pieces.append(rf"\s+{body}" if started else body)
            started = True

    return re.compile(r"(?<!\w)" + "".join(pieces) + r"(?!\w)", re.IGNORECASE)


@dataclass(frozen=True)
class CompiledCommand:
    """Registry entry: a command pattern with its templates parsed and rendered."""

    id: str
    category: str
    pattern: CommandPattern
    templates: tuple[CompiledTemplate, ...]
    regexes: tuple[re.Pattern[str], ...]
    param_types: dict[str, ParamType]
    is_dialect: bool = False

    @property
    def intent(self) -> str:
        return self.pattern.intent

    @property
    def confidence(self) -> float:
        return self.pattern.confidence

    @property
    def examples(self) -> list[str]:
        return self.pattern.examples

    @property
    def contexts(self) -> list[str] | None:
        return self.pattern.contexts


def compile_command(
    command_id: str,
    category: str,
    pattern: CommandPattern,
    slot_expressions: Mapping[ParamType, str],
    is_dialect: bool = False,
) -> CompiledCommand:
    """Parse and render every template of a command pattern."""
    try:
        templates = tuple(parse_template(source) for source in pattern.patterns)
    except PatternConfigError as e:
        raise PatternConfigError(f"{pattern.intent}: {e}") from e

    param_types = dict(pattern.param_types)
    for template in templates:
        for slot in template.slots:
            param_types.setdefault(slot, infer_param_type(slot))

    regexes = tuple(render_regex(t, param_types, slot_expressions) for t in templates)

    return CompiledCommand(
        id=command_id,
        category=category,
        pattern=pattern,
        templates=templates,
        regexes=regexes,
        param_types=param_types,
        is_dialect=is_dialect,
    )


def compile_registry(
    patterns: Mapping[str, Sequence[CommandPattern]],
    dialect_patterns: Mapping[str, Sequence[CommandPattern]] | None = None,
    language: str | None = None,
) -> dict[str, CompiledCommand]:
    """Compile a category -> patterns registry, merging an optional dialect registry.

    Ids are ``<category>_<index>`` and ``dialect_<category>_<index>``.
    """
    slot_expressions = build_slot_expressions(language)
    compiled: dict[str, CompiledCommand] = {}

    def _add(source: Mapping[str, Sequence[CommandPattern]], prefix: str, dialect: bool) -> None:
        for category, commands in source.items():
            for index, command in enumerate(commands):
                command_id = f"{prefix}{category}_{index}"
                compiled[command_id] = compile_command(
                    command_id, category, command, slot_expressions, is_dialect=dialect
                )

    _add(patterns, "", False)
    if dialect_patterns:
        _add(dialect_patterns, "dialect_", True)

    logger.debug("Compiled %d command patterns", len(compiled))
    return compiled

