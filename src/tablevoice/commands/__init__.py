"""Command matching for voice transcripts.

This module implements:
- Structural command templates and registry compilation
- Exact, fuzzy, partial and semantic matching
- Locale-aware entity extraction and normalization
"""

from .entities import EntityExtractor, EntityMatch
from .matcher import (
    CommandMatcher,
    MatcherOptions,
    MatchResult,
    MatchType,
    SimilarCommand,
)
from .patterns import CommandPattern, CompiledCommand, ParamType, compile_registry

__all__ = [
    "CommandMatcher",
    "MatcherOptions",
    "MatchResult",
    "MatchType",
    "SimilarCommand",
    "CommandPattern",
    "CompiledCommand",
    "ParamType",
    "compile_registry",
    "EntityExtractor",
    "EntityMatch",
]
