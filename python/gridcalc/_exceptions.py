"""Exceptions raised by gridcalc.

Hierarchy::

    SpreadsheetError
    ├── FormulaFormatError      malformed formula or content
    ├── InvalidNameError        cell/variable name rejected
    ├── CircularDependencyError edit would create a cycle
    └── PersistenceError        snapshot could not be read or written

Evaluation failures (undefined variable, division by zero) are never raised;
they are stored in the cell as a :class:`gridcalc.calc.FormulaError` value.
"""

from __future__ import annotations


class SpreadsheetError(Exception):
    """Base class for every error raised by gridcalc."""


class FormulaFormatError(SpreadsheetError, ValueError):
    """A formula (or the text after ``=`` in a cell) is not well formed."""


class InvalidNameError(SpreadsheetError, ValueError):
    """A cell name does not match ``letters digits`` or fails the validator."""

    def __init__(self, name: object) -> None:
        super().__init__(f"{name!r} is not a valid cell name")
        self.name = name


class CircularDependencyError(SpreadsheetError, ValueError):
    """Setting a cell's contents would make it depend on itself."""

    def __init__(self, cell: str) -> None:
        super().__init__(f"Circular reference detected involving: {cell}")
        self.cell = cell


class PersistenceError(SpreadsheetError):
    """A snapshot could not be saved or loaded."""
