"""
Rendering of verification results.

Turns a VerificationResult into human-readable diagnostics: a plain
text step report, a JSON document for tooling, and an ASCII timeline of
the verified stream showing which events satisfied which steps.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

from seqverify.core.event import Event
from seqverify.core.trace import ExpectedTrace
from seqverify.core.verifier import VerificationResult
from seqverify.core.violation import UnexpectedEvent, Violation


class ResultReporter:
    """
    Reporter for verification results.

    Attributes:
        result: The verification result to render.
        trace: The trace that was verified.
        events: The stream the trace was verified against (needed for
            the timeline only).
        extra: Additional violations (e.g. post-conditions) to list.
    """

    def __init__(
        self,
        result: VerificationResult,
        trace: ExpectedTrace,
        events: Optional[Sequence[Event]] = None,
        extra: Optional[Sequence[Violation]] = None,
    ) -> None:
        self.result = result
        self.trace = trace
        self.events = list(events) if events is not None else None
        self.extra: List[Violation] = list(extra or [])

    @property
    def passed(self) -> bool:
        """True if the trace verified and no extra violation was reported."""
        return self.result.success and not self.extra

    def all_violations(self) -> List[Violation]:
        return list(self.result.violations) + self.extra

    def verdict(self) -> str:
        """One-line verdict with the leading reason tag on failure."""
        if self.passed:
            return "PASSED"
        reason = self.result.reason if not self.result.success else self.extra[0].reason
        return f"FAILED ({reason})"

    def to_text(self) -> str:
        """
        Generate a step-by-step text report.

        Returns:
            Multi-line string ready for terminal output.
        """
        lines: List[str] = [f"Verdict: {self.verdict()}"]
        kind = f" [{self.trace.kind}]" if self.trace.kind else ""
        lines.append(f"Trace{kind}: {self.trace}")
        lines.append("Steps:")

        matched = self.result.matched_events
        indices = self.result.match_indices
        for step_index, step in enumerate(self.trace):
            if step_index < len(matched):
                event = matched[step_index]
                entry = f"  [{step_index}] {step}  matched index {indices[step_index]}: {event}"
                if step_index > 0:
                    delta = event.timestamp_ms - matched[step_index - 1].timestamp_ms
                    entry += f" (+{delta} ms)"
            else:
                entry = f"  [{step_index}] {step}  not matched"
            lines.append(entry)

        violations = self.all_violations()
        if violations:
            lines.append("Violations:")
            for v in violations:
                lines.append(f"  - {v}")
        else:
            lines.append("No violations.")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Return the report as a JSON-serialisable dict."""
        matched = self.result.matched_events
        steps: List[Dict[str, Any]] = []
        for step_index, step in enumerate(self.trace):
            entry: Dict[str, Any] = {
                "step": step_index,
                "acceptable_values": sorted(step.acceptable_values),
                "matched": step_index < len(matched),
            }
            if step_index < len(matched):
                entry["index"] = self.result.match_indices[step_index]
                entry["event"] = _event_dict(matched[step_index])
            steps.append(entry)

        return {
            "passed": self.passed,
            "verdict": self.verdict(),
            "kind": self.trace.kind,
            "steps": steps,
            "violations": [_violation_dict(v) for v in self.all_violations()],
            "statistics": dict(self.result.statistics),
        }

    def to_json(self) -> str:
        """
        Generate JSON representation of the report.

        Returns:
            A JSON string.
        """
        return json.dumps(self.to_dict(), indent=2)

    def to_timeline(self, max_width: int = 100) -> str:
        """
        Generate an ASCII timeline of the verified stream.

        Each event is one row: timestamp, value, and a marker for the
        step it satisfied or for an unexpected event in strict mode.

        Args:
            max_width: Maximum line width.

        Returns:
            Multi-line string, or ``(no events)``.
        """
        if not self.events:
            return "(no events)"

        step_at = {index: step for step, index in enumerate(self.result.match_indices)}
        unexpected = {
            v.index for v in self.result.violations if isinstance(v, UnexpectedEvent)
        }
        ts_width = max(len(str(e.timestamp_ms)) for e in self.events)
        val_width = max(len(str(e.value)) for e in self.events)

        lines: List[str] = ["=== Timeline ==="]
        previous: Optional[Event] = None
        for index, event in enumerate(self.events):
            row = (
                f"{str(event.timestamp_ms).rjust(ts_width)} ms  "
                f"{event.kind or '-'}={str(event.value).ljust(val_width)}"
            )
            if index in step_at:
                marker = f"  <- step {step_at[index]}"
                if previous is not None:
                    marker += f" (+{event.timestamp_ms - previous.timestamp_ms} ms)"
                previous = event
                row += marker
            elif index in unexpected:
                row += "  !! unexpected"
            if len(row) > max_width:
                row = row[: max_width - 3] + "..."
            lines.append(row)

        if self.result.failed_step is not None:
            lines.append(f"(step {self.result.failed_step} never occurred)")
        return "\n".join(lines)


def _event_dict(event: Event) -> Dict[str, Any]:
    return {
        "timestamp_ms": event.timestamp_ms,
        "kind": event.kind,
        "value": event.value,
        "attributes": dict(event.attributes),
    }


def _violation_dict(violation: Violation) -> Dict[str, Any]:
    data: Dict[str, Any] = {"reason": violation.reason, "fatal": violation.fatal}
    for name, value in vars(violation).items():
        if isinstance(value, frozenset):
            value = sorted(value)
        elif isinstance(value, tuple):
            value = list(value)
        data[name] = value
    data["message"] = str(violation)
    return data
