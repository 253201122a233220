"""
Trace definition utilities.

Provides convenience functions for building expected traces from data
or text, and a reader for definition files. A definition file holds
optional directives in comment lines followed by the body::

    # Wakelock acquire/release
    # kind: wakelock_state_changed
    # states: ACQUIRE=1|CHANGE_ACQUIRE=2|RELEASE=0|CHANGE_RELEASE=3
    # wait: 1000
    {ACQUIRE, CHANGE_ACQUIRE} -> {RELEASE, CHANGE_RELEASE}

``wait`` derives a timing window for every gap that does not carry an
explicit ``-[min, max]->`` window.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from seqverify.core.trace import (
    ExpectedTrace,
    StepValues,
    Timing,
    TraceDefinition,
    timing_from_wait,
)
from seqverify.parser.grammar import ParseError, TraceParser, parse_states


_parser = TraceParser()


def parse_definition(
    text: str,
    states: Optional[Mapping[str, int]] = None,
    kind: Optional[str] = None,
) -> TraceDefinition:
    """
    Parse a definition body into a TraceDefinition.

    Args:
        text: The definition body (no directives).
        states: State names usable in place of integer codes.
        kind: Event kind the trace applies to.

    Raises:
        ParseError: If the body is syntactically invalid.
    """
    return _parser.parse(text, states=states, kind=kind)


def define_trace(
    kind: Optional[str],
    value_sets: Sequence[StepValues],
    timing: Optional[Timing] = None,
) -> TraceDefinition:
    """
    Build a definition from ordered acceptable-value sets.

    Args:
        kind: Event kind the trace applies to.
        value_sets: One state code or iterable of codes per step.
        timing: Optional per-gap constraints.

    Returns:
        TraceDefinition wrapping the new trace.
    """
    trace = ExpectedTrace.of(*value_sets, kind=kind)
    return TraceDefinition(trace, tuple(timing) if timing is not None else None)


def apply_wait(definition: TraceDefinition, wait_ms: int) -> TraceDefinition:
    """Fill unconstrained gaps of *definition* with the window derived from *wait_ms*."""
    derived = timing_from_wait(wait_ms, len(definition.trace))
    if definition.timing is None:
        timing = derived
    else:
        timing = tuple(
            explicit if explicit is not None else fallback
            for explicit, fallback in zip(definition.timing, derived)
        )
    if not any(c is not None for c in timing):
        return TraceDefinition(definition.trace)
    return TraceDefinition(definition.trace, timing)


@dataclass
class DefinitionDirectives:
    """
    Directives extracted from a definition file.

    Attributes:
        kind: Event kind the trace applies to.
        states: Declared state names.
        wait_ms: Nominal wait used to derive timing windows.
    """

    kind: Optional[str] = None
    states: Dict[str, int] = field(default_factory=dict)
    wait_ms: Optional[int] = None


class DefinitionReader:
    """
    Reads trace definition files.

    Attributes:
        filepath: Path to the definition file.
    """

    def __init__(self, filepath: Path) -> None:
        self.filepath: Path = Path(filepath)

    def read(
        self,
        kind: Optional[str] = None,
        wait_ms: Optional[int] = None,
    ) -> TraceDefinition:
        """
        Read and parse the definition.

        Args:
            kind: Override the ``kind`` directive.
            wait_ms: Override the ``wait`` directive.

        Raises:
            FileNotFoundError: If the file does not exist.
            ParseError: If the body is empty or invalid.
        """
        if not self.filepath.exists():
            raise FileNotFoundError(f"Definition file not found: {self.filepath}")

        directives = self.read_directives()
        body = "\n".join(self._body_lines())
        if not body:
            raise ParseError(f"Definition file is empty: {self.filepath}")

        definition = parse_definition(
            body,
            states=directives.states,
            kind=kind if kind is not None else directives.kind,
        )
        wait = wait_ms if wait_ms is not None else directives.wait_ms
        if wait is not None:
            definition = apply_wait(definition, wait)
        return definition

    def read_directives(self) -> DefinitionDirectives:
        """Extract ``kind``, ``states`` and ``wait`` from comment lines."""
        directives = DefinitionDirectives()
        if not self.filepath.exists():
            return directives

        for line in self._lines():
            if not line.startswith("#"):
                continue
            content = line.lstrip("#").strip()
            if content.startswith("kind:"):
                directives.kind = content.split(":", 1)[1].strip() or None
            elif content.startswith("states:"):
                directives.states.update(parse_states(content.split(":", 1)[1]))
            elif content.startswith("wait:"):
                val = content.split(":", 1)[1].strip()
                try:
                    directives.wait_ms = int(val)
                except ValueError as exc:
                    raise ParseError(f"Invalid wait directive '{val}'") from exc
        return directives

    def _lines(self) -> Iterable[str]:
        with open(self.filepath) as f:
            for line in f:
                stripped = line.strip()
                if stripped:
                    yield stripped

    def _body_lines(self) -> List[str]:
        return [line for line in self._lines() if not line.startswith("#")]


def load_definition(
    filepath: Path,
    kind: Optional[str] = None,
    wait_ms: Optional[int] = None,
) -> TraceDefinition:
    """Read a definition file (see DefinitionReader.read)."""
    return DefinitionReader(filepath).read(kind=kind, wait_ms=wait_ms)
