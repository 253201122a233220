"""
Lexical analyzer for trace definitions.

Tokenizes definition bodies such as
``{ACQUIRE, CHANGE_ACQUIRE} -[500, 60000]-> {RELEASE}`` into a stream
of tokens (state codes, state names, braces, arrows) that can be
consumed by the parser.
"""

from __future__ import annotations

import sly


class LexerError(Exception):
    """Exception raised for lexical analysis errors."""
    pass


class TraceLexer(sly.Lexer):
    """
    Lexical analyzer for trace definitions.

    Token Types:
        INT              - Non-negative state codes and millisecond bounds
        NAME             - Declared state names
        LBRACE, RBRACE   - Step delimiters
        LBRACKET, RBRACKET - Timing window delimiters
        COMMA            - Separator
        ARROW            - ``->`` between steps
        DASH             - ``-`` opening a timed arrow ``-[a, b]->``
    """

    tokens = {
        INT, NAME,
        LBRACE, RBRACE,
        LBRACKET, RBRACKET,
        COMMA,
        ARROW, DASH,
    }

    # Ignored characters
    ignore = " \t\r"

    # Ignore newlines
    @_(r"\n+")
    def ignore_newline(self, t):
        self.lineno += len(t.value)

    # Ignore comments (# to end of line)
    ignore_comment = r"\#[^\n]*"

    # -> must come before -
    ARROW = r"->|→"
    DASH = r"-"

    LBRACE = r"\{"
    RBRACE = r"\}"
    LBRACKET = r"\["
    RBRACKET = r"\]"
    COMMA = r","

    @_(r"\d+")
    def INT(self, t):
        t.value = int(t.value)
        return t

    NAME = r"[a-zA-Z_][a-zA-Z0-9_\.]*"

    def error(self, t):
        """Handle invalid characters."""
        raise LexerError(
            f"Invalid character '{t.value[0]}' at index {self.index}"
        )
