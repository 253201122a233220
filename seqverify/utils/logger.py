"""
Structured logging for the sequence verifier.

Provides configurable log levels (silent, normal, verbose, debug)
with consistent formatting for step matches, violations, verdicts,
and verification statistics.
"""

from __future__ import annotations

import sys
from enum import Enum
from typing import Any, Dict, TextIO

from seqverify.core.event import Event


class LogLevel(Enum):
    """
    Logging levels for the verifier.

    SILENT:  No output at all.
    NORMAL:  Final verdict only.
    VERBOSE: Matched steps, violations and statistics.
    DEBUG:   Detailed per-event scanning output.
    """

    SILENT = 0
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3


class VerifierLogger:
    """
    Structured logger for the sequence verifier.

    Output is filtered by the configured log level.

    Attributes:
        level: The minimum log level to display.
        stream: The output stream (defaults to stdout).
    """

    def __init__(
        self,
        level: LogLevel = LogLevel.NORMAL,
        stream: TextIO = sys.stdout,
    ) -> None:
        """
        Initialize logger with level and output stream.

        Args:
            level: Minimum log level to display.
            stream: Output stream (default: sys.stdout).
        """
        self.level: LogLevel = level
        self.stream: TextIO = stream

    def enabled(self, level: LogLevel) -> bool:
        """True if messages at *level* are written."""
        return self.level.value >= level.value

    def debug(self, message: str, **kwargs: Any) -> None:
        """
        Log a debug message (only shown at DEBUG level).

        Args:
            message: The message to log.
            **kwargs: Additional key-value pairs to include.
        """
        if self.enabled(LogLevel.DEBUG):
            self._write(f"[DEBUG] {message}")
            for k, v in kwargs.items():
                self._write(f"  {k}: {v}")

    def info(self, message: str, **kwargs: Any) -> None:
        """
        Log an info message (shown at VERBOSE and DEBUG levels).

        Args:
            message: The message to log.
            **kwargs: Additional key-value pairs to include.
        """
        if self.enabled(LogLevel.VERBOSE):
            self._write(f"[INFO] {message}")
            for k, v in kwargs.items():
                self._write(f"  {k}: {v}")

    def step_matched(self, step: int, index: int, event: Event) -> None:
        """Log a step match at VERBOSE level."""
        if self.enabled(LogLevel.VERBOSE):
            self._write(f"[STEP {step}] matched index {index}: {event}")

    def violation(self, violation: object) -> None:
        """Log a violation at VERBOSE level."""
        if self.enabled(LogLevel.VERBOSE):
            self._write(f"[VIOLATION] {violation}")

    def verdict_passed(self) -> None:
        """Log a PASSED verdict (shown at NORMAL level and above)."""
        if self.enabled(LogLevel.NORMAL):
            self._write("PASSED: Expected transitions occurred in order")

    def verdict_failed(self, reason: str = "") -> None:
        """Log a FAILED verdict (shown at NORMAL level and above)."""
        if self.enabled(LogLevel.NORMAL):
            suffix = f" ({reason})" if reason else ""
            self._write(f"FAILED: Expected transitions were not observed{suffix}")

    def statistics(self, stats: Dict[str, Any]) -> None:
        """
        Log verification statistics (shown at VERBOSE level and above).

        Args:
            stats: Dictionary of statistic names to values.
        """
        if self.enabled(LogLevel.VERBOSE):
            self._write("=== Statistics ===")
            for key, value in stats.items():
                label = key.replace("_", " ").title()
                self._write(f"  {label}: {value}")

    def _write(self, message: str) -> None:
        """Write a line to the output stream."""
        self.stream.write(message + "\n")
