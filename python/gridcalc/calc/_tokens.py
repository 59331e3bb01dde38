"""Formula tokenizer: regex-based lexing of arithmetic formulas."""

from __future__ import annotations

import re
from dataclasses import dataclass

from gridcalc._exceptions import FormulaFormatError

# ---------------------------------------------------------------------------
# Token kinds
# ---------------------------------------------------------------------------

LPAREN = "lparen"
RPAREN = "rparen"
OPERATOR = "operator"
VARIABLE = "variable"
NUMBER = "number"

OPERATORS = frozenset("+-*/")

# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

_VARIABLE = r"[a-zA-Z_][a-zA-Z_0-9]*"
_NUMBER = r"(?:\d+\.\d*|\d*\.\d+|\d+)(?:[eE][+-]?\d+)?"

_TOKEN_RE = re.compile(
    rf"""
    (?P<{LPAREN}>\()
    | (?P<{RPAREN}>\))
    | (?P<{OPERATOR}>[+\-*/])
    | (?P<{VARIABLE}>{_VARIABLE})
    | (?P<{NUMBER}>{_NUMBER})
    | (?P<space>\s+)
    """,
    re.VERBOSE,
)

_VARIABLE_RE = re.compile(_VARIABLE)


@dataclass(frozen=True)
class Token:
    """A single lexeme of a formula."""

    kind: str
    text: str

    def is_operand(self) -> bool:
        return self.kind in (NUMBER, VARIABLE)


def is_variable(text: str) -> bool:
    """True when *text* is a letter or underscore followed by letters, digits or underscores."""
    return _VARIABLE_RE.fullmatch(text) is not None


def tokenize(formula: str) -> list[Token]:
    """Split *formula* into tokens, dropping whitespace.

    Raises FormulaFormatError naming the first run of characters that no token
    pattern matches.
    """
    tokens: list[Token] = []
    pos = 0
    length = len(formula)

    while pos < length:
        m = _TOKEN_RE.match(formula, pos)
        if m is None:
            # Extend the bad run up to the next position where lexing resumes
            end = pos + 1
            while end < length and _TOKEN_RE.match(formula, end) is None:
                end += 1
            raise FormulaFormatError(f"{formula[pos:end]!r} is not a valid token")
        kind = m.lastgroup
        if kind != "space":
            tokens.append(Token(kind, m.group()))
        pos = m.end()

    return tokens
