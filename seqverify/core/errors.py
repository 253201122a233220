"""
Exceptions raised by the verification engine.

Malformed calls and unordered input are fatal to a verification call
and are raised. Missing steps and timing problems are not exceptions;
they are reported as violations inside the result.
"""

from __future__ import annotations


class VerificationError(Exception):
    """Base class for errors that abort a verification call."""


class InvalidArgument(VerificationError, ValueError):
    """Raised for malformed calls: empty traces, bad bounds, size mismatches."""


class UnorderedInput(VerificationError, ValueError):
    """
    Raised when the event stream is not in ascending timestamp order.

    Attributes:
        index: Position of the first event that goes back in time.
        previous_ms: Timestamp of the event just before it.
        timestamp_ms: Timestamp of the offending event.
    """

    def __init__(self, index: int, previous_ms: int, timestamp_ms: int) -> None:
        super().__init__(
            f"Event at index {index} has timestamp {timestamp_ms} ms, "
            f"earlier than the preceding {previous_ms} ms"
        )
        self.index = index
        self.previous_ms = previous_ms
        self.timestamp_ms = timestamp_ms
