"""Cell record held by a Spreadsheet."""

from __future__ import annotations

from gridcalc._utils import format_number
from gridcalc.calc._formula import Formula, FormulaError

CellContents = float | str | Formula
CellValue = float | str | FormulaError


class Cell:
    """Contents of one named cell plus its last computed value."""

    __slots__ = ("contents", "value")

    def __init__(self, contents: CellContents) -> None:
        self.contents: CellContents = contents
        # Formula cells get their value from the store's recalculation pass
        self.value: CellValue = "" if isinstance(contents, Formula) else contents

    def to_text(self) -> str:
        """Contents as typed into a cell: bare number, bare text, or ``=formula``."""
        contents = self.contents
        if isinstance(contents, Formula):
            return f"={contents}"
        if isinstance(contents, float):
            return format_number(contents)
        return contents

    def __repr__(self) -> str:
        return f"<Cell contents={self.contents!r} value={self.value!r}>"
