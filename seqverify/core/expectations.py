"""
Caller-level post-conditions on collected events.

The verifier only confirms order and timing of the steps it is given.
Checks on how many events arrived, on the attribution every event must
carry, and on numeric payload ranges live here and are evaluated
separately against the (filtered) event list.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from seqverify.core.errors import InvalidArgument
from seqverify.core.event import AttributeValue, Event
from seqverify.core.violation import (
    AttributeMismatch,
    CountViolation,
    ValueOutOfRange,
    Violation,
)

# Pseudo-attribute naming the event's own state code.
VALUE = "value"


def _check_bounds(minimum: Optional[int], maximum: Optional[int]) -> None:
    if minimum is not None and maximum is not None and maximum < minimum:
        raise InvalidArgument(f"maximum ({maximum}) must be >= minimum ({minimum})")


def check_count(
    events: Sequence[Event],
    minimum: Optional[int] = None,
    maximum: Optional[int] = None,
) -> Optional[CountViolation]:
    """
    Check that the number of events lies in ``[minimum, maximum]``.

    Args:
        events: The collected events.
        minimum: Smallest acceptable count (unbounded if None).
        maximum: Largest acceptable count (unbounded if None).

    Returns:
        A CountViolation, or None when the count is acceptable.
    """
    _check_bounds(minimum, maximum)
    count = len(events)
    if (minimum is not None and count < minimum) or (
        maximum is not None and count > maximum
    ):
        return CountViolation(count=count, minimum=minimum, maximum=maximum)
    return None


def check_attributes(
    events: Sequence[Event],
    expected: Mapping[str, AttributeValue],
) -> List[AttributeMismatch]:
    """Return one mismatch per event and attribute that differs from *expected*."""
    mismatches: List[AttributeMismatch] = []
    for index, event in enumerate(events):
        for name, value in expected.items():
            actual = event.attribute(name)
            if actual != value:
                mismatches.append(
                    AttributeMismatch(
                        index=index, attribute=name, expected=value, actual=actual,
                    )
                )
    return mismatches


def check_value_range(
    events: Sequence[Event],
    attribute: str,
    minimum: Optional[int] = None,
    maximum: Optional[int] = None,
) -> List[ValueOutOfRange]:
    """
    Check a numeric attribute of every event against closed bounds.

    ``attribute="value"`` checks the state code itself. Missing or
    non-numeric attributes are reported as out of range.
    """
    _check_bounds(minimum, maximum)
    problems: List[ValueOutOfRange] = []
    for index, event in enumerate(events):
        actual = event.value if attribute == VALUE else event.attribute(attribute)
        in_range = isinstance(actual, int) and not (
            (minimum is not None and actual < minimum)
            or (maximum is not None and actual > maximum)
        )
        if not in_range:
            problems.append(
                ValueOutOfRange(
                    index=index,
                    attribute=attribute,
                    actual=actual,
                    minimum=minimum,
                    maximum=maximum,
                )
            )
    return problems


@dataclass(frozen=True)
class Expectations:
    """
    Bundle of post-conditions evaluated together.

    Attributes:
        min_count: Smallest acceptable number of events.
        max_count: Largest acceptable number of events.
        attributes: Attribution every event must carry.
        ranges: Attribute name to ``(minimum, maximum)`` bounds.
    """

    min_count: Optional[int] = None
    max_count: Optional[int] = None
    attributes: Mapping[str, AttributeValue] = field(default_factory=dict, hash=False)
    ranges: Mapping[str, Tuple[Optional[int], Optional[int]]] = field(
        default_factory=dict, hash=False,
    )

    def __post_init__(self) -> None:
        _check_bounds(self.min_count, self.max_count)
        for low, high in self.ranges.values():
            _check_bounds(low, high)

    @classmethod
    def exactly(cls, count: int, **kwargs) -> Expectations:
        """Expect exactly *count* events."""
        return cls(min_count=count, max_count=count, **kwargs)

    def evaluate(self, events: Sequence[Event]) -> List[Violation]:
        """Return all post-condition violations for *events*."""
        violations: List[Violation] = []
        if self.min_count is not None or self.max_count is not None:
            count = check_count(events, self.min_count, self.max_count)
            if count is not None:
                violations.append(count)
        if self.attributes:
            violations.extend(check_attributes(events, self.attributes))
        ranges: Dict[str, Tuple[Optional[int], Optional[int]]] = dict(self.ranges)
        for name, (low, high) in sorted(ranges.items()):
            violations.extend(check_value_range(events, name, low, high))
        return violations

    def is_empty(self) -> bool:
        return (
            self.min_count is None
            and self.max_count is None
            and not self.attributes
            and not self.ranges
        )
