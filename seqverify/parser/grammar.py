"""
Parser for trace definitions.

Grammar::

    definition : steps
    steps      : step
               | steps ARROW step
               | steps DASH LBRACKET INT COMMA INT RBRACKET ARROW step
    step       : value
               | LBRACE values RBRACE
    values     : value
               | values COMMA value
    value      : INT | NAME
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Tuple

import sly

from seqverify.core.errors import InvalidArgument
from seqverify.core.trace import ExpectedStep, ExpectedTrace, TimingConstraint, TraceDefinition
from seqverify.parser.lexer import TraceLexer


class ParseError(Exception):
    """Exception raised for parsing errors."""

    pass


class _SLYParser(sly.Parser):
    """
    SLY-based parser for trace definitions.

    Produces a list of ``(constraint, values)`` pairs, one per step; the
    constraint of the first pair is always None.
    """

    tokens = TraceLexer.tokens
    start = "definition"

    # Replaced per parse by TraceParser.
    states = {}

    @_("steps")
    def definition(self, p):
        return p.steps

    @_("step")
    def steps(self, p):
        return [(None, p.step)]

    @_("steps ARROW step")
    def steps(self, p):
        return p.steps + [(None, p.step)]

    @_("steps DASH LBRACKET INT COMMA INT RBRACKET ARROW step")
    def steps(self, p):
        try:
            constraint = TimingConstraint(p.INT0, p.INT1)
        except InvalidArgument as exc:
            raise ParseError(f"Invalid timing window on line {p.lineno}: {exc}") from exc
        return p.steps + [(constraint, p.step)]

    @_("value")
    def step(self, p):
        return frozenset({p.value})

    @_("LBRACE values RBRACE")
    def step(self, p):
        return frozenset(p.values)

    @_("value")
    def values(self, p):
        return [p.value]

    @_("values COMMA value")
    def values(self, p):
        return p.values + [p.value]

    @_("INT")
    def value(self, p):
        return p.INT

    @_("NAME")
    def value(self, p):
        if p.NAME not in self.states:
            raise ParseError(f"Unknown state name '{p.NAME}' on line {p.lineno}")
        return self.states[p.NAME]

    def error(self, token):
        if token:
            raise ParseError(
                f"Syntax error at '{token.value}' " f"(type: {token.type}, index: {token.index})"
            )
        raise ParseError("Syntax error: unexpected end of definition")


class TraceParser:
    """
    Parser for trace definitions.

    Wraps the SLY-based parser with a clean public interface and turns
    the parsed steps into a TraceDefinition.
    """

    def __init__(self) -> None:
        self._lexer = TraceLexer()
        self._parser = _SLYParser()

    def parse(
        self,
        text: str,
        states: Optional[Mapping[str, int]] = None,
        kind: Optional[str] = None,
    ) -> TraceDefinition:
        """
        Parse a definition body.

        Args:
            text: The definition text.
            states: State names usable in place of integer codes.
            kind: Event kind recorded on the resulting trace.

        Returns:
            The parsed TraceDefinition. ``timing`` is None when no arrow
            carries a window.

        Raises:
            ParseError: If the text is syntactically invalid or uses an
                undeclared state name.
            LexerError: If the text contains an invalid character.
        """
        text = text.strip()
        if not text:
            raise ParseError("Syntax error: empty definition")

        self._parser.states = dict(states or {})
        parsed: Optional[List[Tuple[Optional[TimingConstraint], frozenset]]] = (
            self._parser.parse(self._lexer.tokenize(text))
        )
        if parsed is None:
            raise ParseError("Syntax error: could not parse definition")

        trace = ExpectedTrace(tuple(ExpectedStep(values) for _, values in parsed), kind=kind)
        timing = tuple(constraint for constraint, _ in parsed[1:])
        if not any(c is not None for c in timing):
            return TraceDefinition(trace)
        return TraceDefinition(trace, timing)


def parse_states(text: str) -> Dict[str, int]:
    """
    Parse a ``NAME=code|NAME=code`` state declaration.

    Raises:
        ParseError: On malformed entries or non-integer codes.
    """
    states: Dict[str, int] = {}
    for part in text.split("|"):
        part = part.strip()
        if not part:
            continue
        name, sep, code = part.partition("=")
        name, code = name.strip(), code.strip()
        if not sep or not name or not code:
            raise ParseError(f"Malformed state declaration '{part}'")
        try:
            states[name] = int(code)
        except ValueError as exc:
            raise ParseError(f"State '{name}' has non-integer code '{code}'") from exc
    return states
