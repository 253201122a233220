"""
Command-line interface for the SEQVERIFY sequence verification engine.

Provides argument parsing and orchestration for checking a CSV event
log against an expected-trace definition file, plus optional
cardinality and attribution post-conditions.
"""

from __future__ import annotations

import argparse
import io
import sys
from pathlib import Path
from typing import Dict, List, Optional

import seqverify
from seqverify.core.event import AttributeValue
from seqverify.core.expectations import Expectations
from seqverify.core.selection import EventFilter
from seqverify.core.verifier import SequenceVerifier
from seqverify.parser.definition import load_definition
from seqverify.utils.event_reader import EventReader
from seqverify.utils.logger import LogLevel, VerifierLogger
from seqverify.utils.report import ResultReporter


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the SEQVERIFY CLI."""
    parser = argparse.ArgumentParser(
        prog="seqverify",
        description=(
            "SEQVERIFY: Sequence Verification Engine - "
            "check that a telemetry event log contains an expected "
            "ordered sequence of state transitions"
        ),
    )

    required = parser.add_argument_group("required arguments")
    required.add_argument(
        "-t",
        "--trace",
        type=Path,
        required=True,
        help="Path to trace definition file (.trace)",
    )
    required.add_argument(
        "-e",
        "--events",
        type=Path,
        required=True,
        help="Path to event log (.csv)",
    )

    selection = parser.add_argument_group("event selection")
    selection.add_argument(
        "-k",
        "--kind",
        default=None,
        help="Event kind to verify (default: the definition's kind directive)",
    )
    selection.add_argument(
        "-a",
        "--attr",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Only keep events with this attribution value (repeatable)",
    )
    selection.add_argument("--start-ms", type=int, default=None, help="Window start (inclusive)")
    selection.add_argument("--end-ms", type=int, default=None, help="Window end (inclusive)")
    selection.add_argument(
        "--sort",
        action="store_true",
        help="Sort events by timestamp before verifying",
    )

    checks = parser.add_argument_group("checks")
    checks.add_argument(
        "--strict",
        action="store_true",
        help="Report events that belong to neither the current nor the previous step",
    )
    checks.add_argument(
        "--wait",
        type=int,
        default=None,
        metavar="MS",
        help="Nominal wait between transitions; gaps must last wait/2..wait*5 ms",
    )
    checks.add_argument("--min-count", type=int, default=None, help="Minimum number of events")
    checks.add_argument("--max-count", type=int, default=None, help="Maximum number of events")
    checks.add_argument(
        "--expect",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Every selected event must carry this attribution value (repeatable)",
    )

    parser.add_argument(
        "--report",
        choices=["text", "json"],
        default=None,
        help="Print a full report in the given format (json: other output goes to stderr)",
    )
    parser.add_argument(
        "--timeline",
        action="store_true",
        help="Print ASCII timeline of the verified events",
    )
    parser.add_argument(
        "-o",
        "--output",
        choices=["silent", "normal", "verbose"],
        default="normal",
        help="Output level (default: normal)",
    )
    parser.add_argument(
        "-d",
        "--debug",
        type=int,
        choices=[0, 1, 2, 3],
        default=0,
        help="Debug level 0-3 (default: 0)",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print statistics after verification",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"seqverify {seqverify.__version__}",
    )

    return parser


def _resolve_log_level(output: str, debug: int) -> LogLevel:
    """Determine the effective log level from output and debug settings."""
    if debug >= 3:
        return LogLevel.DEBUG
    if output == "verbose" or debug >= 1:
        return LogLevel.VERBOSE
    if output == "silent":
        return LogLevel.SILENT
    return LogLevel.NORMAL


def _parse_pairs(pairs: List[str], option: str) -> Dict[str, AttributeValue]:
    """Parse repeated ``KEY=VALUE`` options into an attribute mapping."""
    result: Dict[str, AttributeValue] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"{option} expects KEY=VALUE, got '{pair}'")
        result[key.strip()] = EventReader.parse_attribute_value(value)
    return result


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``seqverify`` CLI command."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        _run(args)
    except SystemExit:
        raise
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)


def _run(args: argparse.Namespace) -> None:
    """Execute the verification pipeline."""
    if not args.trace.exists():
        print(f"Error: Definition file not found: {args.trace}", file=sys.stderr)
        sys.exit(2)

    if not args.events.exists():
        print(f"Error: Event log not found: {args.events}", file=sys.stderr)
        sys.exit(2)

    log_level = _resolve_log_level(args.output, args.debug)
    # JSON owns stdout; everything human-readable goes to stderr then
    console = sys.stderr if args.report == "json" else sys.stdout
    stream = console if args.output != "silent" else io.StringIO()
    logger = VerifierLogger(level=log_level, stream=stream)

    definition = load_definition(args.trace, kind=args.kind, wait_ms=args.wait)

    event_filter = EventFilter(
        kind=definition.kind,
        attributes=_parse_pairs(args.attr, "--attr"),
        start_ms=args.start_ms,
        end_ms=args.end_ms,
    )
    events = EventReader(args.events).collect(event_filter, sort=args.sort)
    logger.info(f"Selected {len(events)} events from {args.events}")

    verifier = SequenceVerifier(strict=args.strict, logger=logger)
    result = verifier.verify(events, definition.trace, definition.timing)

    expectations = Expectations(
        min_count=args.min_count,
        max_count=args.max_count,
        attributes=_parse_pairs(args.expect, "--expect"),
    )
    extra = expectations.evaluate(events)
    for violation in extra:
        logger.violation(violation)
    if extra and result.success:
        logger.verdict_failed(extra[0].reason)

    reporter = ResultReporter(result, definition.trace, events=events, extra=extra)

    if args.timeline:
        print(file=console)
        print(reporter.to_timeline(), file=console)

    if args.report == "text":
        print()
        print(reporter.to_text())
    elif args.report == "json":
        print(reporter.to_json())

    # Statistics (skip if verbose already printed them)
    if args.stats and log_level.value < LogLevel.VERBOSE.value:
        print(file=console)
        print("=== Statistics ===", file=console)
        for key, value in result.statistics.items():
            label = key.replace("_", " ").title()
            print(f"  {label}: {value}", file=console)

    sys.exit(0 if reporter.passed else 1)
