"""
CSV event log reader.

Reads collected telemetry in CSV format into Event objects and serves
them to verification callers through ``collect``, which applies an
EventFilter (kind, attribution, time window) to the loaded stream.

Events are returned in file order unless sorting is requested; the
verifier rejects streams whose timestamps go backwards, so a log that
was written out of order surfaces as an error instead of being masked.
"""

from __future__ import annotations

import csv
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional

from seqverify.core.event import AttributeValue, Event
from seqverify.core.selection import EventFilter


@dataclass
class EventLogMetadata:
    """
    Metadata extracted from an event log.

    Attributes:
        kinds: Set of all event kinds present.
        event_count: Total number of events.
        default_kind: Kind applied to rows without one.
    """

    kinds: FrozenSet[str]
    event_count: int
    default_kind: Optional[str] = None


_REQUIRED_HEADERS = {"timestamp_ms", "value"}

# Canonical decimal integers: no '+', no separators, no leading zeros
_INT_ATTRIBUTE = re.compile(r"0|-?[1-9][0-9]*")


class EventReader:
    """
    Parses CSV event logs into Event objects.

    Expected CSV format::

        # Optional: kind applied to rows with an empty kind column
        # kind: wakelock_state_changed

        # Required headers: timestamp_ms, value
        timestamp_ms,kind,value,attributes
        0,,1,uid=10042|tag=StatsdPartialWakelock

    Attributes:
        filepath: Path to the CSV event log.
    """

    def __init__(self, filepath: Path) -> None:
        """
        Initialize reader with file path.

        Args:
            filepath: Path to the CSV event log.
        """
        self.filepath: Path = Path(filepath)

    def collect(
        self,
        event_filter: Optional[EventFilter] = None,
        sort: bool = False,
    ) -> List[Event]:
        """
        Return the events selected by *event_filter*.

        Args:
            event_filter: Selection criteria (all events if None).
            sort: Stable-sort events by timestamp before filtering.

        Returns:
            List of Event objects.
        """
        events = self.read_events()
        if sort:
            events.sort(key=lambda e: e.timestamp_ms)
        if event_filter is None:
            return events
        return event_filter.apply(events)

    def read_events(self) -> List[Event]:
        """
        Read all events from the file.

        Returns:
            List of Event objects in file order.

        Raises:
            FileNotFoundError: If the log file does not exist.
            ValueError: If headers are missing or a row is malformed.
        """
        if not self.filepath.exists():
            raise FileNotFoundError(f"Event log not found: {self.filepath}")

        directives = self._parse_directives()
        lines = self._read_data_lines()

        if not lines:
            return []

        reader = csv.DictReader(lines)
        headers = set(reader.fieldnames or [])

        missing = _REQUIRED_HEADERS - headers
        if missing:
            raise ValueError(f"Missing required headers: {sorted(missing)}")

        default_kind = directives.get("kind") or ""
        events: List[Event] = []
        for row_number, row in enumerate(reader, start=1):
            try:
                events.append(self._parse_event_row(row, default_kind))
            except ValueError as exc:
                raise ValueError(f"Row {row_number}: {exc}") from exc

        return events

    def read_metadata(self) -> EventLogMetadata:
        """
        Read metadata: kinds present, event count, and default kind.

        Returns:
            EventLogMetadata for the file.
        """
        directives = self._parse_directives()
        events = self.read_events()
        return EventLogMetadata(
            kinds=frozenset(e.kind for e in events),
            event_count=len(events),
            default_kind=directives.get("kind"),
        )

    def validate(self) -> List[str]:
        """
        Validate the log file and return a list of error strings.

        Validates:
        - Required headers are present
        - Timestamps and values are integers
        - Attribute fields are well formed

        Returns:
            List of error messages (empty if valid).
        """
        errors: List[str] = []

        if not self.filepath.exists():
            errors.append(f"File not found: {self.filepath}")
            return errors

        lines = self._read_data_lines()
        if not lines:
            errors.append("No data rows found in file")
            return errors

        reader = csv.DictReader(lines)
        headers = set(reader.fieldnames or [])
        missing = _REQUIRED_HEADERS - headers
        if missing:
            errors.append(f"Missing required headers: {sorted(missing)}")
            return errors

        for row_number, row in enumerate(reader, start=1):
            try:
                self._parse_event_row(row, "")
            except ValueError as exc:
                errors.append(f"Row {row_number}: {exc}")

        return errors

    # ------------------------------------------------------------------ #
    # Static helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def parse_int(s: str, field_name: str) -> int:
        """
        Parse an integer field.

        Raises:
            ValueError: If *s* is not an integer.
        """
        s = (s or "").strip()
        try:
            return int(s)
        except ValueError:
            raise ValueError(f"{field_name} must be an integer, got '{s}'") from None

    @staticmethod
    def parse_attribute_value(s: str) -> AttributeValue:
        """
        Return *s* as an int when it is a canonical decimal integer, else
        the stripped string. ``"007"``, ``"+5"`` and ``"1_000"`` stay strings.
        """
        s = s.strip()
        if _INT_ATTRIBUTE.fullmatch(s):
            return int(s)
        return s

    @staticmethod
    def parse_attributes(s: str) -> Dict[str, AttributeValue]:
        """
        Parse pipe-separated ``key=value`` pairs.

        Args:
            s: The attributes string (e.g. ``uid=10042|tag=wl``).

        Returns:
            A dict of attribute values (empty if input is empty).

        Raises:
            ValueError: If a pair has no ``=`` or an empty key.
        """
        attrs: Dict[str, AttributeValue] = {}
        for part in (s or "").split("|"):
            part = part.strip()
            if not part:
                continue
            key, sep, value = part.partition("=")
            if not sep or not key.strip():
                raise ValueError(f"Malformed attribute '{part}'")
            attrs[key.strip()] = EventReader.parse_attribute_value(value)
        return attrs

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _parse_directives(self) -> dict:
        """Extract directives from comment lines in the file."""
        directives: dict = {}
        if not self.filepath.exists():
            return directives

        with open(self.filepath) as f:
            for line in f:
                line = line.strip()
                if not line.startswith("#"):
                    continue
                content = line.lstrip("#").strip()
                if content.startswith("kind:"):
                    directives["kind"] = content.split(":", 1)[1].strip()

        return directives

    def _read_data_lines(self) -> List[str]:
        """Read non-comment, non-empty lines from the file."""
        if not self.filepath.exists():
            return []

        lines: List[str] = []
        with open(self.filepath) as f:
            for line in f:
                stripped = line.strip()
                if stripped and not stripped.startswith("#"):
                    lines.append(stripped)
        return lines

    def _parse_event_row(self, row: dict, default_kind: str) -> Event:
        """Parse a single CSV row into an Event."""
        timestamp_ms = self.parse_int(row["timestamp_ms"], "timestamp_ms")
        value = self.parse_int(row["value"], "value")
        kind = (row.get("kind") or "").strip() or default_kind
        attributes = self.parse_attributes(row.get("attributes") or "")
        return Event(
            timestamp_ms=timestamp_ms,
            kind=kind,
            value=value,
            attributes=attributes,
        )
