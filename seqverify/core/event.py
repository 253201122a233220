"""
Event representation for telemetry streams.

Each event is one observed occurrence emitted by the monitored system
(a statsd atom, for example): a millisecond timestamp, a kind tag
naming the record type, an integer state code, and an opaque mapping
of attribution values such as the owning uid or a wakelock tag.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Union

AttributeValue = Union[int, str]


@dataclass(frozen=True)
class Event:
    """
    Immutable record of a single telemetry occurrence.

    Attributes:
        timestamp_ms: Time the event was recorded, in milliseconds.
        kind: Record type tag (e.g. ``wakelock_state_changed``).
        value: Integer state code carried by the event.
        attributes: Read-only attribution mapping (uid, tag, name...).
    """

    timestamp_ms: int
    kind: str
    value: int
    attributes: Mapping[str, AttributeValue] = field(
        default_factory=dict, hash=False,
    )

    def __post_init__(self) -> None:
        """Freeze the attribute mapping."""
        if not isinstance(self.attributes, MappingProxyType):
            object.__setattr__(
                self, "attributes", MappingProxyType(dict(self.attributes)),
            )

    def attribute(
        self, name: str, default: Optional[AttributeValue] = None,
    ) -> Optional[AttributeValue]:
        """Return an attribution value, or *default* when it is absent."""
        return self.attributes.get(name, default)

    def has_attributes(self, expected: Mapping[str, AttributeValue]) -> bool:
        """True when every ``key=value`` pair of *expected* is present."""
        return all(
            name in self.attributes and self.attributes[name] == value
            for name, value in expected.items()
        )

    def __str__(self) -> str:
        attrs = ", ".join(f"{k}={v}" for k, v in sorted(self.attributes.items()))
        suffix = f" [{attrs}]" if attrs else ""
        return f"{self.kind}={self.value} @ {self.timestamp_ms}ms{suffix}"
