"""Formula: a validated infix arithmetic expression over numbers and variables.

A formula is checked once, at construction, and is immutable afterwards.
Evaluation uses the classic two-stack (operands, operators) algorithm and
never raises for a constructed formula: failures come back as a
:class:`FormulaError` value.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass

from gridcalc._exceptions import FormulaFormatError
from gridcalc._utils import format_number
from gridcalc.calc._tokens import (
    LPAREN,
    NUMBER,
    OPERATOR,
    RPAREN,
    VARIABLE,
    Token,
    is_variable,
    tokenize,
)

DIVISION_BY_ZERO = "Division by 0"


# ---------------------------------------------------------------------------
# FormulaError: in-band evaluation failure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FormulaError:
    """Result of a formula that could not be evaluated.

    Stored as a cell's value and propagated to every formula that reads it.
    """

    reason: str

    def __str__(self) -> str:
        return self.reason


def _identity(name: str) -> str:
    return name


def _accept_all(name: str) -> bool:
    return True


# ---------------------------------------------------------------------------
# Arithmetic helpers
# ---------------------------------------------------------------------------


def _binary_op(left: float, op: str, right: float) -> float:
    """Apply *op* with *left* as the earlier operand and *right* as the later one.

    Raises ZeroDivisionError for ``x / 0``; the caller turns it into a
    FormulaError.
    """
    if op == '+':
        return left + right
    if op == '-':
        return left - right
    if op == '*':
        return left * right
    return left / right


def _reduce(values: list[float], operators: list[str]) -> None:
    """Pop one operator and two operands, push the result.

    The operand pushed first is the left-hand side: after ``push(a); push(b)``
    a ``-`` computes ``a - b``, not ``b - a``.
    """
    right = values.pop()
    left = values.pop()
    values.append(_binary_op(left, operators.pop(), right))


def _top_is(operators: list[str], *ops: str) -> bool:
    return bool(operators) and operators[-1] in ops


# ---------------------------------------------------------------------------
# Formula
# ---------------------------------------------------------------------------


class Formula:
    """An immutable arithmetic formula such as ``"(A1 + 2.5) * b7"``.

    Usage::

        f = Formula("x1 + y1 * 2", normalize=str.upper)
        f.variables            # ('X1', 'Y1')
        str(f)                 # 'X1+Y1*2'
        f.evaluate({"X1": 1.0, "Y1": 3.0}.__getitem__)   # 7.0

    Parameters
    ----------
    normalize : callable, optional
        Applied to every variable (and to the string form of every number)
        before storage and comparison.  Defaults to the identity.
    is_valid : callable, optional
        Extra check applied to each normalized variable.  Defaults to
        accepting everything.

    Raises FormulaFormatError when the text is empty, has unbalanced
    parentheses, a token in an impossible position, an unknown character, or
    a variable rejected after normalization.
    """

    __slots__ = ("_tokens", "_numbers", "_variables", "_text")

    def __init__(
        self,
        formula: str,
        normalize: Callable[[str], str] | None = None,
        is_valid: Callable[[str], bool] | None = None,
    ) -> None:
        normalize = normalize or _identity
        is_valid = is_valid or _accept_all

        tokens = tokenize(formula)
        _check_syntax(tokens)

        canonical: list[Token] = []
        numbers: dict[int, float] = {}
        variables: dict[str, None] = {}

        for i, token in enumerate(tokens):
            if token.kind == VARIABLE:
                name = normalize(token.text)
                if not is_variable(name):
                    raise FormulaFormatError(
                        f"After normalizing {token.text}, it is not a valid variable"
                    )
                if not is_valid(name):
                    raise FormulaFormatError(f"{token.text} is not a valid variable")
                variables.setdefault(name)
                canonical.append(Token(VARIABLE, name))
            elif token.kind == NUMBER:
                value = float(token.text)
                if not math.isfinite(value):
                    raise FormulaFormatError(f"{token.text} is out of range")
                numbers[i] = value
                canonical.append(Token(NUMBER, normalize(format_number(value))))
            else:
                canonical.append(token)

        self._tokens: tuple[Token, ...] = tuple(canonical)
        self._numbers = numbers
        self._variables: tuple[str, ...] = tuple(variables)
        self._text = "".join(t.text for t in self._tokens)

    @property
    def variables(self) -> tuple[str, ...]:
        """Distinct normalized variable names, in order of first appearance."""
        return self._variables

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self, lookup: Callable[[str], float]) -> float | FormulaError:
        """Compute the formula's value.

        *lookup* maps a normalized variable name to its value and raises
        LookupError (e.g. KeyError) when the variable is undefined.  An
        undefined variable or a division by zero ends evaluation and is
        returned as a FormulaError.
        """
        values: list[float] = []
        operators: list[str] = []

        try:
            for i, token in enumerate(self._tokens):
                kind = token.kind
                if kind == NUMBER or kind == VARIABLE:
                    if kind == NUMBER:
                        value = self._numbers[i]
                    else:
                        try:
                            value = lookup(token.text)
                        except LookupError:
                            return FormulaError(f"The variable {token.text} is undefined.")
                    values.append(value)
                    if _top_is(operators, '*', '/'):
                        _reduce(values, operators)
                elif kind == OPERATOR:
                    if token.text in ('+', '-') and _top_is(operators, '+', '-'):
                        _reduce(values, operators)
                    operators.append(token.text)
                elif kind == LPAREN:
                    operators.append('(')
                elif kind == RPAREN:
                    if _top_is(operators, '+', '-'):
                        _reduce(values, operators)
                    operators.pop()  # the matching '('
                    if _top_is(operators, '*', '/'):
                        _reduce(values, operators)

            while operators:
                _reduce(values, operators)
        except ZeroDivisionError:
            return FormulaError(DIVISION_BY_ZERO)

        return values.pop()

    # ------------------------------------------------------------------
    # Comparison / display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"Formula({self._text!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Formula):
            return NotImplemented
        return self._tokens == other._tokens

    def __hash__(self) -> int:
        return hash(self._tokens)


# ---------------------------------------------------------------------------
# Syntax checks (first failure wins)
# ---------------------------------------------------------------------------


def _check_syntax(tokens: list[Token]) -> None:
    if not tokens:
        raise FormulaFormatError("The formula is empty")

    first, last = tokens[0], tokens[-1]
    if not (first.is_operand() or first.kind == LPAREN):
        raise FormulaFormatError(
            f"The formula must start with a number, variable or '(', not {first.text!r}"
        )
    if not (last.is_operand() or last.kind == RPAREN):
        raise FormulaFormatError(
            f"The formula must end with a number, variable or ')', not {last.text!r}"
        )

    depth = 0
    for token in tokens:
        if token.kind == LPAREN:
            depth += 1
        elif token.kind == RPAREN:
            depth -= 1
            if depth < 0:
                raise FormulaFormatError("There are too many closing parentheses")
    if depth != 0:
        raise FormulaFormatError("The parentheses are not balanced")

    for prev, token in zip(tokens, tokens[1:]):
        if prev.kind in (LPAREN, OPERATOR):
            if not (token.is_operand() or token.kind == LPAREN):
                raise FormulaFormatError(
                    f"{token.text!r} cannot follow {prev.text!r}; "
                    "expected a number, variable or '('"
                )
        elif token.kind not in (OPERATOR, RPAREN):
            raise FormulaFormatError(
                f"{token.text!r} cannot follow {prev.text!r}; "
                "expected an operator or ')'"
            )
