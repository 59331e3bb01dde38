"""Cell-name and number helpers shared by the store and the formula engine."""

from __future__ import annotations

import math
import re

_CELL_NAME_RE = re.compile(r"[A-Za-z]+[0-9]+")

# Signed decimal or scientific literal, as typed into a cell.
_NUMBER_RE = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?\s*")


def is_cell_name(name: str) -> bool:
    """True when *name* is one or more letters followed by one or more digits."""
    return _CELL_NAME_RE.fullmatch(name) is not None


def parse_number(text: str) -> float | None:
    """Return the finite float spelled by *text*, or None if it is not a number.

    Only plain decimal and scientific literals count; ``"nan"``, ``"inf"`` and
    ``"1_000"`` are text.
    """
    if _NUMBER_RE.fullmatch(text) is None:
        return None
    value = float(text)
    if not math.isfinite(value):
        return None
    return value


def format_number(value: float) -> str:
    """Shortest string that parses back to *value*.

    Integral values drop the trailing ``.0`` (``2.0`` -> ``"2"``).
    """
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)
