#!/usr/bin/env python3
"""CLI tool for trying transcripts against the command registry.

This script matches transcripts the way the voice pipeline would and prints
the results as JSON.

Usage:
    python scripts/match_transcript.py match "neue bestellung für tisch 5"
    python scripts/match_transcript.py match --context order_creation "zwei cola hinzufügen"
    python scripts/match_transcript.py similar "bstellig tisch"
    python scripts/match_transcript.py check [--config PATH]

Environment Variables:
    TABLEVOICE_ENABLE_METRICS: Also feed the process-wide metrics collector
"""

import argparse
import json
import logging
import sys

from tablevoice.commands import CommandMatcher, MatcherOptions
from tablevoice.commands.locales import DEFAULT_LANGUAGE
from tablevoice.errors import PatternConfigError
from tablevoice.logging_utils import clear_session_id, log_info, set_session_id
from tablevoice.pattern_config import load_pattern_config

logger = logging.getLogger(__name__)


def build_matcher(args) -> CommandMatcher:
    """Load the registry and construct a matcher from CLI options."""
    config = load_pattern_config(args.config)
    options = MatcherOptions(
        language=args.language,
        semantic_enabled=not getattr(args, "no_semantic", False),
    )
    return CommandMatcher.from_config(config, options=options)


def cmd_match(args):
    """Match one or more transcripts."""
    matcher = build_matcher(args)

    results = []
    for transcript in args.transcripts:
        result = matcher.match(transcript, context=args.context)
        entry = result.to_dict()
        if args.suggest and not result.matched:
            entry["suggestions"] = [
                {"intent": s.intent, "example": s.example, "similarity": round(s.similarity, 3)}
                for s in matcher.find_similar(transcript, max_results=args.suggest)
            ]
        results.append(entry)

    print(json.dumps(results, ensure_ascii=False, indent=2))

    if args.stats:
        print(json.dumps(matcher.get_statistics(), indent=2))


def cmd_similar(args):
    """Show "did you mean" candidates for a transcript."""
    matcher = build_matcher(args)
    similar = matcher.find_similar(args.transcript, max_results=args.limit)

    if not similar:
        print("No similar commands found.")
        return

    for item in similar:
        print(f"{item.similarity:.3f} | {item.intent:<18} | {item.example}")


def cmd_check(args):
    """Validate the registry file."""
    try:
        matcher = build_matcher(args)
    except PatternConfigError as e:
        print(f"❌ Invalid command registry: {e}")
        sys.exit(1)

    dialect = sum(1 for command in matcher.compiled_patterns.values() if command.is_dialect)
    print(f"✅ {len(matcher.compiled_patterns)} commands compiled ({dialect} dialect)")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Match voice transcripts against the command registry",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", help="Registry YAML file (default: config/commands.yaml)")
    parser.add_argument(
        "--language", default=DEFAULT_LANGUAGE, help=f"Locale (default: {DEFAULT_LANGUAGE})"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Match command
    match_parser = subparsers.add_parser("match", help="Match transcripts")
    match_parser.add_argument("transcripts", nargs="+", help="Transcript text")
    match_parser.add_argument("--context", help="Active context type (e.g. order_creation)")
    match_parser.add_argument(
        "--suggest",
        type=int,
        default=0,
        metavar="N",
        help="Add up to N suggestions for unmatched transcripts",
    )
    match_parser.add_argument(
        "--no-semantic", action="store_true", help="Disable the semantic strategy"
    )
    match_parser.add_argument("--stats", action="store_true", help="Print matcher statistics")

    # Similar command
    similar_parser = subparsers.add_parser("similar", help="Rank similar example phrases")
    similar_parser.add_argument("transcript", help="Transcript text")
    similar_parser.add_argument("--limit", type=int, default=5, help="Maximum results")

    # Check command
    subparsers.add_parser("check", help="Validate the command registry")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    # One session id per invocation; every log line of this run carries it
    set_session_id()
    log_info(logger, "CLI invoked", command=args.command)

    # Execute command
    commands = {
        "match": cmd_match,
        "similar": cmd_similar,
        "check": cmd_check,
    }

    try:
        commands[args.command](args)
    finally:
        clear_session_id()


if __name__ == "__main__":
    main()
