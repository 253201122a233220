"""
End-to-end integration tests for the SEQVERIFY sequence verifier.

Tests the complete library pipeline from event log and definition file
through selection, verification, post-conditions and reporting, plus
the scenario properties telemetry suites rely on: on/off pairs,
recurring states, timing windows, fail-fast on missing steps, and
rejection of unordered input.
"""

from __future__ import annotations

import random
from pathlib import Path
from typing import List

import pytest

from seqverify.core.errors import InvalidArgument, UnorderedInput
from seqverify.core.event import Event
from seqverify.core.expectations import Expectations
from seqverify.core.selection import EventFilter
from seqverify.core.trace import ExpectedTrace, TimingConstraint, on_off, timing_from_wait
from seqverify.core.verifier import SequenceVerifier, verify
from seqverify.core.violation import StepNotFound, TimingViolation
from seqverify.parser.definition import define_trace, load_definition
from seqverify.utils.event_reader import EventReader
from seqverify.utils.report import ResultReporter

# ---------------------------------------------------------------------------
# Shared paths
# ---------------------------------------------------------------------------

FIXTURES = Path(__file__).parent.parent / "fixtures"
EVENTS = FIXTURES / "events"
DEFINITIONS = FIXTURES / "definitions"

ON = 1
OFF = 0
UID = 10042


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _atoms(kind: str, *pairs: tuple, **attributes) -> List[Event]:
    """Build events of one kind attributed to the test uid."""
    attrs = {"uid": UID, **attributes}
    return [Event(t, kind, v, attrs) for t, v in pairs]


def _run_file_pipeline(definition_name: str, events_name: str, **kwargs):
    """Load a definition and an event log and verify one against the other."""
    definition = load_definition(DEFINITIONS / definition_name)
    events = EventReader(EVENTS / events_name).collect(EventFilter(kind=definition.kind))
    result = SequenceVerifier(**kwargs).verify(events, definition.trace, definition.timing)
    return definition, events, result


# ---------------------------------------------------------------------------
# Tests: Scenario properties
# ---------------------------------------------------------------------------


class TestScenarios:
    """Scenarios mirroring per-atom telemetry checks."""

    def test_wifi_lock(self) -> None:
        """On/off pair without timing matches both events in order."""
        events = _atoms("wifi_lock_state_changed", (0, ON), (1000, OFF))
        result = verify(events, ExpectedTrace.of(ON, OFF))
        assert result.success
        assert result.matched_events == tuple(events)

    def test_sync_state(self) -> None:
        """Recurring states are matched forward only."""
        events = _atoms("sync_state_changed", (0, ON), (500, OFF), (1000, ON), (1500, OFF))
        result = verify(events, ExpectedTrace.of(ON, OFF, ON, OFF))
        assert result.success
        assert result.match_indices == (0, 1, 2, 3)

    def test_gps_scan_window(self) -> None:
        """GPS scan on then off within the expected window."""
        definition = on_off(ON, OFF, 500, 60000, kind="gps_scan_state_changed")
        events = _atoms("gps_scan_state_changed", (0, ON), (2000, OFF))
        assert SequenceVerifier().verify_definition(events, definition).success

    def test_ble_scan_too_short(self) -> None:
        definition = on_off(ON, OFF, 500, 60000, kind="ble_scan_state_changed")
        events = _atoms("ble_scan_state_changed", (0, ON), (100, OFF))
        result = SequenceVerifier().verify_definition(events, definition)
        assert not result.success
        assert result.timing_violations == [
            TimingViolation(step=1, delta_ms=100, bounds=(500, 60000)),
        ]
        assert len(result.matched_events) == 2

    def test_wakelock_sets_with_tag(self) -> None:
        """Acquire/release accept either the plain or the change code."""
        definition = define_trace("wakelock_state_changed", [{1, 2}, {0, 3}])
        events = _atoms(
            "wakelock_state_changed", (0, 2), (300, 3), tag="StatsdPartialWakelock",
        )
        result = SequenceVerifier().verify_definition(events, definition)
        assert result.success
        extra = Expectations(attributes={"tag": "StatsdPartialWakelock"}).evaluate(events)
        assert extra == []

    def test_wifi_scan_count(self) -> None:
        """Two scans performed; between two and four atoms are logged."""
        events = _atoms("wifi_scan_state_changed", (0, ON), (2000, OFF), (3000, ON))
        result = verify(events, ExpectedTrace.of(ON, OFF))
        assert result.success
        assert Expectations(min_count=2, max_count=4).evaluate(events) == []

    def test_davey_duration(self) -> None:
        events = _atoms("davey_occurred", (0, 0), jank_duration_millis=1200)
        expectations = Expectations.exactly(1, ranges={"jank_duration_millis": (750, 2000)})
        assert expectations.evaluate(events) == []

    def test_optimized_ble_scan_logs_nothing(self) -> None:
        expectations = Expectations(max_count=0)
        assert expectations.evaluate([]) == []
        assert len(expectations.evaluate(_atoms("ble_scan_state_changed", (0, ON)))) == 1

    def test_scheduled_job_with_wait(self) -> None:
        """Scheduled, started, finished; each gap within wait/2..wait*5."""
        trace = ExpectedTrace.of(2, 1, 0, kind="scheduled_job_state_changed")
        events = _atoms("scheduled_job_state_changed", (0, 2), (1000, 1), (3000, 0))
        result = verify(events, trace, timing_from_wait(1000, len(trace)))
        assert result.success


# ---------------------------------------------------------------------------
# Tests: Properties
# ---------------------------------------------------------------------------


class TestProperties:
    """General properties of the verifier."""

    def test_fail_fast_on_missing_step(self) -> None:
        events = [Event(0, "k", ON)]
        result = verify(events, ExpectedTrace.of(ON, OFF))
        assert not result.success
        assert result.matched_events == (events[0],)
        assert result.violations == (
            StepNotFound(step=1, acceptable_values=frozenset({OFF}), cursor=1),
        )

    @pytest.mark.parametrize("trace", [ExpectedTrace.of(ON), ExpectedTrace.of(7, 8, 9)])
    def test_unordered_rejected_regardless_of_trace(self, trace: ExpectedTrace) -> None:
        with pytest.raises(UnorderedInput):
            verify([Event(100, "k", ON), Event(50, "k", OFF)], trace)

    def test_timing_length_mismatch(self) -> None:
        with pytest.raises(InvalidArgument):
            verify([Event(0, "k", ON)], ExpectedTrace.of(ON, OFF), [])

    def test_idempotent(self) -> None:
        events = _atoms("k", (0, ON), (10, 5), (20, OFF))
        trace = ExpectedTrace.of(ON, OFF)
        timing = [TimingConstraint(0, 5)]
        assert verify(events, trace, timing) == verify(events, trace, timing)

    @pytest.mark.parametrize("seed", range(5))
    def test_in_order_values_amid_noise(self, seed: int) -> None:
        """Steps present in order amid disjoint noise always match, indices increase."""
        rng = random.Random(seed)
        steps = [rng.randint(0, 4) for _ in range(rng.randint(1, 6))]
        stream: List[int] = []
        for value in steps:
            stream.extend(rng.randint(100, 110) for _ in range(rng.randint(0, 3)))
            stream.append(value)
        events = [Event(i * 10, "k", v) for i, v in enumerate(stream)]

        result = verify(events, ExpectedTrace.of(*steps))
        assert result.success
        assert len(result.matched_events) == len(steps)
        assert list(result.match_indices) == sorted(set(result.match_indices))


# ---------------------------------------------------------------------------
# Tests: File pipeline
# ---------------------------------------------------------------------------


class TestFilePipeline:
    """Definitions and logs loaded from disk."""

    def test_wakelock(self) -> None:
        definition, events, result = _run_file_pipeline("wakelock.trace", "wakelock.csv")
        assert result.success
        assert [e.timestamp_ms for e in result.matched_events] == [1000, 2500]

    def test_sync_with_wait(self) -> None:
        _, _, result = _run_file_pipeline("sync.trace", "sync.csv")
        assert result.success

    def test_strict_wifi_scan(self) -> None:
        """The second scan cycle trails the last step in strict mode."""
        _, _, result = _run_file_pipeline("wifi_scan.trace", "wifi_scan.csv", strict=True)
        assert not result.success
        assert result.reason == "unexpected_event"
        assert [v.index for v in result.violations] == [2]

    def test_missing_off_report(self) -> None:
        definition, events, result = _run_file_pipeline("camera.trace", "missing_off.csv")
        report = ResultReporter(result, definition.trace, events=events)
        assert report.verdict() == "FAILED (step_not_found)"
        assert "(step 1 never occurred)" in report.to_timeline()

    def test_unordered_log(self) -> None:
        with pytest.raises(UnorderedInput):
            _run_file_pipeline("camera.trace", "unordered.csv")
