"""
Violation records reported by the verifier and post-condition checks.

Violations are returned inside results rather than raised, so a caller
can see which steps did succeed alongside what went wrong. Only
``StepNotFound`` is fatal: it ends step matching for the call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

from seqverify.core.event import AttributeValue


@dataclass(frozen=True)
class Violation:
    """Base class for all violations."""

    reason = "violation"
    fatal = False


@dataclass(frozen=True)
class StepNotFound(Violation):
    """
    A required transition never occurred in the remaining stream.

    Attributes:
        step: Index of the step that could not be matched.
        acceptable_values: The codes that would have satisfied it.
        cursor: Stream position where the scan for this step started.
    """

    step: int
    acceptable_values: FrozenSet[int] = frozenset()
    cursor: int = 0

    reason = "step_not_found"
    fatal = True

    def __str__(self) -> str:
        values = ", ".join(str(v) for v in sorted(self.acceptable_values))
        return (
            f"Step {self.step} not found: no event with value in "
            f"{{{values}}} at or after index {self.cursor}"
        )


@dataclass(frozen=True)
class TimingViolation(Violation):
    """
    The delay between two consecutive matched events is out of bounds.

    Attributes:
        step: Index of the later of the two steps.
        delta_ms: Observed delay in milliseconds.
        bounds: ``(min_delta_ms, max_delta_ms)`` of the constraint.
    """

    step: int
    delta_ms: int
    bounds: Tuple[int, int]

    reason = "timing_violation"

    def __str__(self) -> str:
        low, high = self.bounds
        side = "short" if self.delta_ms < low else "long"
        return (
            f"Step {self.step} came {self.delta_ms} ms after step "
            f"{self.step - 1}: too {side} (expected {low}..{high} ms)"
        )


@dataclass(frozen=True)
class UnexpectedEvent(Violation):
    """
    Strict mode: an event matched neither the current nor the previous step.

    Attributes:
        index: Stream position of the event.
        value: Its state code.
        step: The step being matched when it was seen (``len(trace)``
            once every step has matched).
    """

    index: int
    value: int
    step: int

    reason = "unexpected_event"

    def __str__(self) -> str:
        return (
            f"Unexpected value {self.value} at index {self.index} "
            f"while matching step {self.step}"
        )


@dataclass(frozen=True)
class CountViolation(Violation):
    """The number of events falls outside the expected bounds."""

    count: int
    minimum: Optional[int] = None
    maximum: Optional[int] = None

    reason = "count_violation"

    def __str__(self) -> str:
        low = "-inf" if self.minimum is None else str(self.minimum)
        high = "inf" if self.maximum is None else str(self.maximum)
        return f"Found {self.count} events, expected {low}..{high}"


@dataclass(frozen=True)
class AttributeMismatch(Violation):
    """An event does not carry an expected attribution value."""

    index: int
    attribute: str
    expected: AttributeValue
    actual: Optional[AttributeValue]

    reason = "attribute_mismatch"

    def __str__(self) -> str:
        return (
            f"Event {self.index}: expected {self.attribute}={self.expected!r}, "
            f"got {self.actual!r}"
        )


@dataclass(frozen=True)
class ValueOutOfRange(Violation):
    """A numeric attribute (or the state value) is outside its bounds."""

    index: int
    attribute: str
    actual: Optional[AttributeValue]
    minimum: Optional[int] = None
    maximum: Optional[int] = None

    reason = "value_out_of_range"

    def __str__(self) -> str:
        low = "-inf" if self.minimum is None else str(self.minimum)
        high = "inf" if self.maximum is None else str(self.maximum)
        return (
            f"Event {self.index}: {self.attribute}={self.actual!r} "
            f"outside {low}..{high}"
        )
