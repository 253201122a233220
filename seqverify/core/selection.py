"""
Event selection filters.

A filter narrows a collected stream down to the events a trace is about:
one event kind, optionally with given attribution values, inside an
optional closed time window.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional

from seqverify.core.errors import InvalidArgument
from seqverify.core.event import AttributeValue, Event


@dataclass(frozen=True)
class EventFilter:
    """
    Predicate over events.

    Attributes:
        kind: Keep only events of this kind (any kind if None).
        attributes: Required ``key=value`` attribution pairs.
        start_ms: Earliest timestamp kept (inclusive).
        end_ms: Latest timestamp kept (inclusive).
    """

    kind: Optional[str] = None
    attributes: Mapping[str, AttributeValue] = field(default_factory=dict, hash=False)
    start_ms: Optional[int] = None
    end_ms: Optional[int] = None

    def __post_init__(self) -> None:
        if (
            self.start_ms is not None
            and self.end_ms is not None
            and self.end_ms < self.start_ms
        ):
            raise InvalidArgument(
                f"end_ms ({self.end_ms}) must be >= start_ms ({self.start_ms})"
            )

    def matches(self, event: Event) -> bool:
        """True if *event* passes every configured criterion."""
        if self.kind is not None and event.kind != self.kind:
            return False
        if self.start_ms is not None and event.timestamp_ms < self.start_ms:
            return False
        if self.end_ms is not None and event.timestamp_ms > self.end_ms:
            return False
        return event.has_attributes(self.attributes)

    def apply(self, events: Iterable[Event]) -> List[Event]:
        """Return the matching events, preserving input order."""
        return [e for e in events if self.matches(e)]

    def is_empty(self) -> bool:
        """True if the filter accepts every event."""
        return (
            self.kind is None
            and not self.attributes
            and self.start_ms is None
            and self.end_ms is None
        )
