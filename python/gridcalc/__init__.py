"""gridcalc — a formula-driven, incrementally recalculated spreadsheet engine.

Usage::

    from gridcalc import Spreadsheet, load_spreadsheet

    sheet = Spreadsheet(normalize=str.upper)
    sheet["A1"] = "5"
    sheet["B1"] = "=A1 + 1"
    sheet["C1"] = "=B1 * 2"
    sheet.set_contents_of_cell("A1", "10")   # ['A1', 'B1', 'C1']
    print(sheet["C1"])                        # 22.0
    sheet.save("sheet.xml")

    sheet = load_spreadsheet("sheet.xml", normalize=str.upper)
"""

from __future__ import annotations

import os
from collections.abc import Callable

from gridcalc import _xml
from gridcalc._exceptions import (
    CircularDependencyError,
    FormulaFormatError,
    InvalidNameError,
    PersistenceError,
    SpreadsheetError,
)
from gridcalc._spreadsheet import DEFAULT_VERSION, Spreadsheet
from gridcalc.calc import DependencyGraph, Formula, FormulaError

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "CircularDependencyError",
    "DependencyGraph",
    "Formula",
    "FormulaError",
    "FormulaFormatError",
    "InvalidNameError",
    "PersistenceError",
    "Spreadsheet",
    "SpreadsheetError",
    "get_saved_version",
    "load_spreadsheet",
]


def load_spreadsheet(
    filename: str | os.PathLike[str],
    is_valid: Callable[[str], bool] | None = None,
    normalize: Callable[[str], str] | None = None,
    version: str = DEFAULT_VERSION,
) -> Spreadsheet:
    """Open a snapshot written by :meth:`Spreadsheet.save`.

    Parameters
    ----------
    version : str
        Must equal the version stored in the file.

    Raises PersistenceError if the file cannot be opened or parsed, holds an
    invalid cell name, an invalid formula or a circular dependency, or was
    saved under a different version.
    """
    return Spreadsheet._from_file(filename, is_valid, normalize, version)  # noqa: SLF001


def get_saved_version(filename: str | os.PathLike[str]) -> str:
    """Version tag stored in the snapshot *filename*."""
    return _xml.read_version(filename)
