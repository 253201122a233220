"""
Shared pytest fixtures for the SEQVERIFY test suite.

Provides reusable fixtures for building event streams, state codes,
and temporary file paths used across unit and integration tests.
"""

from pathlib import Path
from typing import List

import pytest

from seqverify.core.event import Event

ON = 1
OFF = 0


def make_events(*pairs: tuple, kind: str = "test_state_changed", **attributes) -> List[Event]:
    """Build events from ``(timestamp_ms, value)`` pairs."""
    return [Event(t, kind, v, attributes) for t, v in pairs]


@pytest.fixture
def on_off_events() -> List[Event]:
    """A single on/off pair one second apart."""
    return make_events((0, ON), (1000, OFF))


@pytest.fixture
def sync_events() -> List[Event]:
    """Two on/off cycles, 500 ms apart."""
    return make_events((0, ON), (500, OFF), (1000, ON), (1500, OFF))


@pytest.fixture
def tmp_events_file(tmp_path: Path) -> Path:
    """Path for a temporary event log CSV file."""
    return tmp_path / "events.csv"


@pytest.fixture
def tmp_definition_file(tmp_path: Path) -> Path:
    """Path for a temporary trace definition file."""
    return tmp_path / "expected.trace"


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def events_dir(fixtures_dir: Path) -> Path:
    """Path to the event log fixtures directory."""
    return fixtures_dir / "events"


@pytest.fixture
def definitions_dir(fixtures_dir: Path) -> Path:
    """Path to the trace definition fixtures directory."""
    return fixtures_dir / "definitions"
