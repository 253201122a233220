"""
Tests for the SEQVERIFY command-line interface.

Tests cover argument parsing, output modes, report formats, selection
and check flags, exit codes, and error handling.
"""

from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import pytest

FIXTURES = Path(__file__).parent.parent / "fixtures"
EVENTS = FIXTURES / "events"
DEFINITIONS = FIXTURES / "definitions"

WAKELOCK_TRACE = str(DEFINITIONS / "wakelock.trace")
SYNC_TRACE = str(DEFINITIONS / "sync.trace")
WIFI_SCAN_TRACE = str(DEFINITIONS / "wifi_scan.trace")
CAMERA_TRACE = str(DEFINITIONS / "camera.trace")
EMPTY_TRACE = str(DEFINITIONS / "empty.trace")

WAKELOCK_EVENTS = str(EVENTS / "wakelock.csv")
SYNC_EVENTS = str(EVENTS / "sync.csv")
WIFI_SCAN_EVENTS = str(EVENTS / "wifi_scan.csv")
UNORDERED_EVENTS = str(EVENTS / "unordered.csv")
MISSING_OFF_EVENTS = str(EVENTS / "missing_off.csv")


def _run_cli(*args: str, timeout: int = 30) -> subprocess.CompletedProcess[str]:
    """Run the SEQVERIFY CLI as a subprocess."""
    cmd = [sys.executable, "-m", "seqverify", *args]
    return subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        timeout=timeout,
    )


# ---------------------------------------------------------------------------
# Tests: Required Arguments
# ---------------------------------------------------------------------------


class TestRequiredArguments:
    """Test that required arguments are enforced."""

    def test_missing_trace(self) -> None:
        """Missing -t flag exits with code 2."""
        assert _run_cli("-e", SYNC_EVENTS).returncode == 2

    def test_missing_events(self) -> None:
        """Missing -e flag exits with code 2."""
        assert _run_cli("-t", SYNC_TRACE).returncode == 2

    def test_no_arguments(self) -> None:
        assert _run_cli().returncode == 2

    def test_version(self) -> None:
        result = _run_cli("--version")
        assert result.returncode == 0
        assert "seqverify 0.1.0" in result.stdout


# ---------------------------------------------------------------------------
# Tests: Verdicts and Exit Codes
# ---------------------------------------------------------------------------


class TestVerdicts:
    """Test verdict output and exit codes."""

    @pytest.mark.parametrize(
        "trace,events",
        [
            (WAKELOCK_TRACE, WAKELOCK_EVENTS),
            (SYNC_TRACE, SYNC_EVENTS),
            (WIFI_SCAN_TRACE, WIFI_SCAN_EVENTS),
        ],
    )
    def test_passing_scenarios(self, trace: str, events: str) -> None:
        result = _run_cli("-t", trace, "-e", events)
        assert result.returncode == 0, result.stderr
        assert "PASSED" in result.stdout

    def test_missing_step_fails(self) -> None:
        result = _run_cli("-t", CAMERA_TRACE, "-e", MISSING_OFF_EVENTS)
        assert result.returncode == 1
        assert "FAILED" in result.stdout
        assert "step_not_found" in result.stdout

    def test_unordered_input_is_error(self) -> None:
        result = _run_cli("-t", CAMERA_TRACE, "-e", UNORDERED_EVENTS)
        assert result.returncode == 2
        assert "Error:" in result.stderr

    def test_sort_makes_input_ordered(self) -> None:
        """Sorted, the log reads off-then-on, so the off step is missing."""
        result = _run_cli("-t", CAMERA_TRACE, "-e", UNORDERED_EVENTS, "--sort")
        assert result.returncode == 1

    def test_missing_definition_file(self, tmp_path: Path) -> None:
        result = _run_cli("-t", str(tmp_path / "nope.trace"), "-e", SYNC_EVENTS)
        assert result.returncode == 2
        assert "not found" in result.stderr

    def test_missing_event_log(self, tmp_path: Path) -> None:
        result = _run_cli("-t", SYNC_TRACE, "-e", str(tmp_path / "nope.csv"))
        assert result.returncode == 2

    def test_empty_definition(self) -> None:
        result = _run_cli("-t", EMPTY_TRACE, "-e", SYNC_EVENTS)
        assert result.returncode == 2
        assert "empty" in result.stderr


# ---------------------------------------------------------------------------
# Tests: Selection
# ---------------------------------------------------------------------------


class TestSelection:
    """Test kind, attribution and window selection."""

    def test_kind_override(self) -> None:
        result = _run_cli("-t", CAMERA_TRACE, "-e", SYNC_EVENTS, "-k", "sync_state_changed")
        assert result.returncode == 0

    def test_attribution_filter_drops_everything(self) -> None:
        result = _run_cli("-t", SYNC_TRACE, "-e", SYNC_EVENTS, "-a", "uid=99")
        assert result.returncode == 1

    def test_attribution_filter_keeps_owner(self) -> None:
        result = _run_cli("-t", SYNC_TRACE, "-e", SYNC_EVENTS, "-a", "uid=10042")
        assert result.returncode == 0

    def test_time_window(self) -> None:
        """Only the second on/off cycle is inside the window."""
        result = _run_cli(
            "-t", SYNC_TRACE, "-e", SYNC_EVENTS, "--start-ms", "1000",
        )
        assert result.returncode == 1

    def test_malformed_attr(self) -> None:
        result = _run_cli("-t", SYNC_TRACE, "-e", SYNC_EVENTS, "-a", "uid")
        assert result.returncode == 2
        assert "KEY=VALUE" in result.stderr


# ---------------------------------------------------------------------------
# Tests: Checks
# ---------------------------------------------------------------------------


class TestChecks:
    """Test wait, strict, count and attribution checks."""

    def test_wait_override_passes(self) -> None:
        """A 100 ms wait allows 50..500 ms between transitions."""
        assert _run_cli("-t", SYNC_TRACE, "-e", SYNC_EVENTS, "--wait", "100").returncode == 0

    def test_wait_override_fails(self) -> None:
        """A 2000 ms wait requires at least 1000 ms between transitions."""
        result = _run_cli("-t", SYNC_TRACE, "-e", SYNC_EVENTS, "--wait", "2000")
        assert result.returncode == 1
        assert "timing_violation" in result.stdout

    def test_strict_passes_on_clean_stream(self) -> None:
        assert _run_cli("-t", WAKELOCK_TRACE, "-e", WAKELOCK_EVENTS, "--strict").returncode == 0

    def test_count_within_bounds(self) -> None:
        result = _run_cli(
            "-t", WIFI_SCAN_TRACE, "-e", WIFI_SCAN_EVENTS,
            "--min-count", "2", "--max-count", "4",
        )
        assert result.returncode == 0

    def test_count_exceeded(self) -> None:
        result = _run_cli(
            "-t", WIFI_SCAN_TRACE, "-e", WIFI_SCAN_EVENTS, "--max-count", "3",
        )
        assert result.returncode == 1
        assert "count_violation" in result.stdout

    def test_expect_attribution(self) -> None:
        result = _run_cli(
            "-t", WAKELOCK_TRACE, "-e", WAKELOCK_EVENTS,
            "--expect", "tag=StatsdPartialWakelock",
        )
        assert result.returncode == 0

    def test_expect_attribution_mismatch(self) -> None:
        result = _run_cli("-t", SYNC_TRACE, "-e", SYNC_EVENTS, "--expect", "uid=1")
        assert result.returncode == 1
        assert "attribute_mismatch" in result.stdout


# ---------------------------------------------------------------------------
# Tests: Output
# ---------------------------------------------------------------------------


class TestOutput:
    """Test output levels and report formats."""

    def test_silent(self) -> None:
        result = _run_cli("-t", SYNC_TRACE, "-e", SYNC_EVENTS, "-o", "silent")
        assert result.returncode == 0
        assert result.stdout == ""

    def test_verbose_shows_steps(self) -> None:
        result = _run_cli("-t", SYNC_TRACE, "-e", SYNC_EVENTS, "-o", "verbose")
        assert "[STEP 0]" in result.stdout
        assert "=== Statistics ===" in result.stdout

    def test_debug_level(self) -> None:
        result = _run_cli("-t", WAKELOCK_TRACE, "-e", WAKELOCK_EVENTS, "-d", "3")
        assert "[INFO]" in result.stdout

    def test_json_report(self) -> None:
        result = _run_cli(
            "-t", WAKELOCK_TRACE, "-e", WAKELOCK_EVENTS, "-o", "silent", "--report", "json",
        )
        data = json.loads(result.stdout)
        assert data["passed"] is True
        assert data["kind"] == "wakelock_state_changed"
        assert [s["index"] for s in data["steps"]] == [0, 1]

    def test_json_report_keeps_stdout_parseable(self) -> None:
        """At normal output the verdict, timeline and stats go to stderr."""
        result = _run_cli(
            "-t", CAMERA_TRACE, "-e", MISSING_OFF_EVENTS,
            "--report", "json", "--timeline", "--stats",
        )
        assert result.returncode == 1
        data = json.loads(result.stdout)
        assert data["verdict"] == "FAILED (step_not_found)"
        assert "FAILED: Expected transitions were not observed" in result.stderr
        assert "=== Timeline ===" in result.stderr
        assert "=== Statistics ===" in result.stderr

    def test_text_report(self) -> None:
        result = _run_cli("-t", CAMERA_TRACE, "-e", MISSING_OFF_EVENTS, "--report", "text")
        assert "Verdict: FAILED (step_not_found)" in result.stdout
        assert "not matched" in result.stdout

    def test_timeline(self) -> None:
        result = _run_cli("-t", SYNC_TRACE, "-e", SYNC_EVENTS, "--timeline")
        assert "=== Timeline ===" in result.stdout
        assert "<- step 3" in result.stdout

    def test_stats(self) -> None:
        result = _run_cli("-t", SYNC_TRACE, "-e", SYNC_EVENTS, "--stats")
        assert "Steps Matched: 4" in result.stdout
