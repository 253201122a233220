"""
Expected state-transition traces.

An expected trace is an ordered list of steps; each step names the set
of state codes that are acceptable for that stage of the transition
sequence. Timing constraints bound the delay between the events matched
for two consecutive steps.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from seqverify.core.errors import InvalidArgument

StepValues = Union[int, Iterable[int]]


@dataclass(frozen=True)
class ExpectedStep:
    """
    One required stage of a state machine.

    Attributes:
        acceptable_values: State codes that satisfy this step.
    """

    acceptable_values: FrozenSet[int]

    def __post_init__(self) -> None:
        if not isinstance(self.acceptable_values, frozenset):
            object.__setattr__(
                self, "acceptable_values", frozenset(self.acceptable_values),
            )
        if not self.acceptable_values:
            raise InvalidArgument("ExpectedStep requires at least one acceptable value")

    @classmethod
    def of(cls, values: StepValues) -> ExpectedStep:
        """Build a step from a single code or an iterable of codes."""
        if isinstance(values, int):
            return cls(frozenset({values}))
        return cls(frozenset(values))

    def accepts(self, value: int) -> bool:
        """True if *value* satisfies this step."""
        return value in self.acceptable_values

    def __str__(self) -> str:
        return "{" + ", ".join(str(v) for v in sorted(self.acceptable_values)) + "}"


@dataclass(frozen=True)
class TimingConstraint:
    """
    Closed window on the delay between two consecutive matched events.

    Attributes:
        min_delta_ms: Smallest acceptable delta (inclusive, >= 0).
        max_delta_ms: Largest acceptable delta (inclusive, >= min).
    """

    min_delta_ms: int
    max_delta_ms: int

    def __post_init__(self) -> None:
        if self.min_delta_ms < 0:
            raise InvalidArgument(
                f"min_delta_ms must be >= 0, got {self.min_delta_ms}"
            )
        if self.max_delta_ms < self.min_delta_ms:
            raise InvalidArgument(
                f"max_delta_ms ({self.max_delta_ms}) must be >= "
                f"min_delta_ms ({self.min_delta_ms})"
            )

    def contains(self, delta_ms: int) -> bool:
        """True when *delta_ms* lies inside the window."""
        return self.min_delta_ms <= delta_ms <= self.max_delta_ms

    @property
    def bounds(self) -> Tuple[int, int]:
        return (self.min_delta_ms, self.max_delta_ms)

    def __str__(self) -> str:
        return f"[{self.min_delta_ms}, {self.max_delta_ms}]"


@dataclass(frozen=True)
class ExpectedTrace:
    """
    Ordered, non-empty list of expected steps.

    Attributes:
        steps: The steps, in the order they must be observed.
        kind: Optional event kind this trace describes.
    """

    steps: Tuple[ExpectedStep, ...]
    kind: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.steps, tuple):
            object.__setattr__(self, "steps", tuple(self.steps))
        if not self.steps:
            raise InvalidArgument("ExpectedTrace requires at least one step")

    @classmethod
    def of(cls, *value_sets: StepValues, kind: Optional[str] = None) -> ExpectedTrace:
        """
        Build a trace from state codes or iterables of codes.

        ``ExpectedTrace.of(1, 0)`` and ``ExpectedTrace.of({1, 2}, {0, 3})``
        are both accepted.
        """
        return cls(tuple(ExpectedStep.of(v) for v in value_sets), kind=kind)

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[ExpectedStep]:
        return iter(self.steps)

    def __getitem__(self, index: int) -> ExpectedStep:
        return self.steps[index]

    def __str__(self) -> str:
        return " -> ".join(str(step) for step in self.steps)


Timing = Sequence[Optional[TimingConstraint]]


@dataclass(frozen=True)
class TraceDefinition:
    """
    An expected trace together with its per-gap timing constraints.

    Attributes:
        trace: The expected steps.
        timing: One entry per gap (``len(trace) - 1``); ``None`` entries
            leave that gap unconstrained. ``None`` for no timing at all.
    """

    trace: ExpectedTrace
    timing: Optional[Tuple[Optional[TimingConstraint], ...]] = None

    def __post_init__(self) -> None:
        if self.timing is not None:
            timing = tuple(self.timing)
            object.__setattr__(self, "timing", timing)
            check_timing_length(self.trace, timing)

    @property
    def kind(self) -> Optional[str]:
        return self.trace.kind

    def __str__(self) -> str:
        if not self.timing:
            return str(self.trace)
        parts: List[str] = [str(self.trace[0])]
        for step, constraint in zip(self.trace.steps[1:], self.timing):
            arrow = f" -{constraint}-> " if constraint is not None else " -> "
            parts.append(arrow + str(step))
        return "".join(parts)


def check_timing_length(trace: ExpectedTrace, timing: Timing) -> None:
    """Raise InvalidArgument unless *timing* has one entry per gap."""
    if len(timing) != len(trace) - 1:
        raise InvalidArgument(
            f"timing has {len(timing)} constraints, expected "
            f"{len(trace) - 1} for a {len(trace)}-step trace"
        )


def timing_from_wait(wait_ms: int, steps: int) -> Tuple[Optional[TimingConstraint], ...]:
    """
    Derive per-gap constraints from a nominal wait between transitions.

    Each gap must last between half and five times *wait_ms*. A wait of
    zero leaves every gap unconstrained, for sources whose timestamps
    are bucketed or fuzzed.

    Args:
        wait_ms: Nominal delay between two transitions.
        steps: Number of steps in the trace.

    Returns:
        A tuple of ``steps - 1`` constraints (or ``None`` entries).
    """
    if wait_ms < 0:
        raise InvalidArgument(f"wait_ms must be >= 0, got {wait_ms}")
    if steps < 1:
        raise InvalidArgument(f"steps must be >= 1, got {steps}")
    if wait_ms == 0:
        return (None,) * (steps - 1)
    constraint = TimingConstraint(wait_ms // 2, wait_ms * 5)
    return (constraint,) * (steps - 1)


def on_off(
    on: StepValues,
    off: StepValues,
    min_delta_ms: Optional[int] = None,
    max_delta_ms: Optional[int] = None,
    kind: Optional[str] = None,
) -> TraceDefinition:
    """
    Build the two-step on/off definition used for scans and locks.

    When a maximum is given the gap between the two matched events is
    constrained to ``[min_delta_ms, max_delta_ms]``, with a missing
    minimum defaulting to 0. A minimum without a maximum is rejected.
    """
    trace = ExpectedTrace.of(on, off, kind=kind)
    if max_delta_ms is None:
        if min_delta_ms is not None:
            raise InvalidArgument(
                f"min_delta_ms ({min_delta_ms}) given without max_delta_ms"
            )
        return TraceDefinition(trace)
    low = min_delta_ms if min_delta_ms is not None else 0
    return TraceDefinition(trace, (TimingConstraint(low, max_delta_ms),))
