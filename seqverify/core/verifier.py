"""
Ordered multi-state matching with timing windows.

The verifier walks an event stream once, left to right, matching each
expected step against the first not-yet-consumed event whose state code
the step accepts. A step that cannot be matched ends the scan; timing
windows between consecutive matches are checked as the scan proceeds
and reported without stopping it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from seqverify.core.errors import UnorderedInput
from seqverify.core.event import Event
from seqverify.core.selection import EventFilter
from seqverify.core.trace import (
    ExpectedStep,
    ExpectedTrace,
    Timing,
    TimingConstraint,
    TraceDefinition,
    check_timing_length,
)
from seqverify.core.violation import (
    StepNotFound,
    TimingViolation,
    UnexpectedEvent,
    Violation,
)
from seqverify.utils.logger import LogLevel, VerifierLogger


@dataclass(frozen=True)
class VerificationResult:
    """
    Outcome of one verification call.

    Attributes:
        success: True iff every step matched and there are no violations.
        matched_events: One event per matched step, in step order.
        violations: Everything that went wrong, in detection order.
        match_indices: Stream position of each matched event.
        statistics: Counters describing the scan.
    """

    success: bool
    matched_events: Tuple[Event, ...]
    violations: Tuple[Violation, ...]
    match_indices: Tuple[int, ...] = ()
    statistics: Dict[str, Any] = field(default_factory=dict, hash=False)

    @property
    def failed_step(self) -> Optional[int]:
        """Index of the step that could not be matched, if any."""
        for v in self.violations:
            if isinstance(v, StepNotFound):
                return v.step
        return None

    @property
    def timing_violations(self) -> List[TimingViolation]:
        return [v for v in self.violations if isinstance(v, TimingViolation)]

    @property
    def reason(self) -> str:
        """Reason tag of the most severe violation (``"ok"`` on success)."""
        if not self.violations:
            return "ok"
        for v in self.violations:
            if v.fatal:
                return v.reason
        return self.violations[0].reason


class SequenceVerifier:
    """
    Checks that an event stream contains an expected ordered trace.

    The verifier keeps no per-call state, so one instance can be shared
    between callers as long as each passes its own arguments.

    Attributes:
        strict: Also report events that belong to neither the step being
            matched nor the step matched just before it.
        logger: Logger for progress output.
    """

    def __init__(
        self,
        strict: bool = False,
        logger: Optional[VerifierLogger] = None,
    ) -> None:
        """
        Initialize the verifier.

        Args:
            strict: Enable strict transition checking.
            logger: Optional logger for debug output.
        """
        self.strict: bool = strict
        self.logger: VerifierLogger = logger or VerifierLogger(LogLevel.SILENT)

    def verify(
        self,
        events: Iterable[Event],
        trace: Union[ExpectedTrace, Sequence[ExpectedStep]],
        timing: Optional[Timing] = None,
    ) -> VerificationResult:
        """
        Match *trace* against *events*.

        Args:
            events: Events in production order (ascending timestamps).
            trace: Expected steps, in order.
            timing: Optional per-gap constraints, ``len(trace) - 1``
                entries; ``None`` entries leave a gap unconstrained.

        Returns:
            VerificationResult with matches and violations.

        Raises:
            InvalidArgument: Empty trace or timing of the wrong length.
            UnorderedInput: Timestamps go backwards somewhere in *events*.
        """
        if not isinstance(trace, ExpectedTrace):
            trace = ExpectedTrace(tuple(trace))
        gaps: Optional[Tuple[Optional[TimingConstraint], ...]] = None
        if timing is not None:
            gaps = tuple(timing)
            check_timing_length(trace, gaps)

        event_list = list(events)
        check_ascending(event_list)

        self.logger.info(
            f"Verifying {len(trace)} steps against {len(event_list)} events"
        )
        self.logger.info(f"Expected trace: {trace}")

        matched: List[Event] = []
        indices: List[int] = []
        violations: List[Violation] = []
        cursor = 0

        for step_index, step in enumerate(trace):
            previous = trace[step_index - 1] if step_index > 0 else None
            found = self._scan(event_list, cursor, step, previous, step_index, violations)

            if found is None:
                missing = StepNotFound(
                    step=step_index,
                    acceptable_values=step.acceptable_values,
                    cursor=cursor,
                )
                self.logger.violation(missing)
                violations.append(missing)
                break

            event = event_list[found]
            self.logger.step_matched(step_index, found, event)

            if gaps is not None and step_index > 0:
                constraint = gaps[step_index - 1]
                if constraint is not None:
                    delta = event.timestamp_ms - matched[-1].timestamp_ms
                    if not constraint.contains(delta):
                        late = TimingViolation(
                            step=step_index, delta_ms=delta, bounds=constraint.bounds,
                        )
                        self.logger.violation(late)
                        violations.append(late)

            matched.append(event)
            indices.append(found)
            cursor = found + 1
        else:
            if self.strict:
                last = trace[len(trace) - 1]
                for index in range(cursor, len(event_list)):
                    value = event_list[index].value
                    if not last.accepts(value):
                        extra = UnexpectedEvent(index=index, value=value, step=len(trace))
                        self.logger.violation(extra)
                        violations.append(extra)

        success = len(matched) == len(trace) and not violations
        stats = {
            "events_scanned": len(event_list),
            "steps_expected": len(trace),
            "steps_matched": len(matched),
            "violations": len(violations),
        }

        result = VerificationResult(
            success=success,
            matched_events=tuple(matched),
            violations=tuple(violations),
            match_indices=tuple(indices),
            statistics=stats,
        )

        if success:
            self.logger.verdict_passed()
        else:
            self.logger.verdict_failed(result.reason)
        self.logger.statistics(stats)

        return result

    def verify_definition(
        self,
        events: Iterable[Event],
        definition: TraceDefinition,
        event_filter: Optional[EventFilter] = None,
    ) -> VerificationResult:
        """
        Verify a parsed or constructed definition.

        Events are first narrowed to the definition's kind (when it names
        one) and then through *event_filter*.
        """
        selected: Iterable[Event] = events
        if definition.kind is not None:
            selected = EventFilter(kind=definition.kind).apply(selected)
        if event_filter is not None:
            selected = event_filter.apply(selected)
        return self.verify(selected, definition.trace, definition.timing)

    def _scan(
        self,
        events: List[Event],
        cursor: int,
        step: ExpectedStep,
        previous: Optional[ExpectedStep],
        step_index: int,
        violations: List[Violation],
    ) -> Optional[int]:
        """Return the index of the first event at or after *cursor* accepted by *step*."""
        for index in range(cursor, len(events)):
            value = events[index].value
            if step.accepts(value):
                return index
            self.logger.debug(
                f"Skipping index {index} (value {value}) for step {step_index}"
            )
            if self.strict and not (previous is not None and previous.accepts(value)):
                extra = UnexpectedEvent(index=index, value=value, step=step_index)
                self.logger.violation(extra)
                violations.append(extra)
        return None


def check_ascending(events: Sequence[Event]) -> None:
    """
    Raise UnorderedInput if timestamps ever decrease.

    Equal timestamps are allowed: two transitions can be recorded in the
    same millisecond.
    """
    for index in range(1, len(events)):
        previous_ms = events[index - 1].timestamp_ms
        if events[index].timestamp_ms < previous_ms:
            raise UnorderedInput(index, previous_ms, events[index].timestamp_ms)


def verify(
    events: Iterable[Event],
    trace: Union[ExpectedTrace, Sequence[ExpectedStep]],
    timing: Optional[Timing] = None,
) -> VerificationResult:
    """Verify with a default, non-strict verifier."""
    return SequenceVerifier().verify(events, trace, timing)
