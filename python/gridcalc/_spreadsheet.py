"""Spreadsheet: named cells, formula dependencies, incremental recalculation.

Every formula cell's value reflects the current values of the cells it
references.  An edit either commits completely (contents, dependency edges,
every downstream value) or raises and leaves the spreadsheet untouched.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Hashable, Iterable, Iterator

from gridcalc import _xml
from gridcalc._cell import Cell, CellContents, CellValue
from gridcalc._exceptions import (
    CircularDependencyError,
    FormulaFormatError,
    InvalidNameError,
    PersistenceError,
)
from gridcalc._utils import is_cell_name, parse_number
from gridcalc.calc._formula import Formula, FormulaError
from gridcalc.calc._graph import DependencyGraph

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "default"


def _identity(name: str) -> str:
    return name


def _accept_all(name: str) -> bool:
    return True


def _cells_to_recalculate(
    start: str,
    dependents_of: Callable[[str], Iterable[Hashable]],
) -> list[str]:
    """*start* and everything that transitively depends on it, in evaluation order.

    Depth-first walk over the dependents direction; the reversed post-order
    puts every cell after all of the cells it reads from.  Reaching *start*
    again means the walk went round a cycle.

    Raises CircularDependencyError when a cycle passes through *start*.
    """
    visited: set[str] = {start}
    post_order: list[str] = []
    stack = [(start, iter(sorted(dependents_of(start))))]

    while stack:
        cell, children = stack[-1]
        for child in children:
            if child == start:
                raise CircularDependencyError(start)
            if child not in visited:
                visited.add(child)
                stack.append((child, iter(sorted(dependents_of(child)))))
                break
        else:
            stack.pop()
            post_order.append(cell)

    post_order.reverse()
    return post_order


class Spreadsheet:
    """An unbounded grid of named cells (``A1``, ``bb12``, ...).

    Usage::

        sheet = Spreadsheet(normalize=str.upper)
        sheet.set_contents_of_cell("a1", "5")
        sheet.set_contents_of_cell("b1", "=a1 + 1")    # ['B1']
        sheet["B1"]                                   # 6.0
        sheet.set_contents_of_cell("a1", "10")        # ['A1', 'B1']
        sheet.save("budget.xml")

    Parameters
    ----------
    is_valid : callable, optional
        Extra predicate every normalized cell name (and formula variable)
        must satisfy.  Defaults to accepting every ``letters digits`` name.
    normalize : callable, optional
        Applied to every cell name and formula variable before use.
        Defaults to the identity.
    version : str
        Version tag written by :meth:`save` and checked by
        :func:`gridcalc.load_spreadsheet`.
    """

    def __init__(
        self,
        is_valid: Callable[[str], bool] | None = None,
        normalize: Callable[[str], str] | None = None,
        version: str = DEFAULT_VERSION,
    ) -> None:
        if is_valid is not None and not callable(is_valid):
            raise TypeError("is_valid must be callable")
        if normalize is not None and not callable(normalize):
            raise TypeError("normalize must be callable")
        if not isinstance(version, str):
            raise TypeError("version must be a string")

        self._is_valid = is_valid or _accept_all
        self._normalize = normalize or _identity
        self._version = version
        # name -> Cell, in the order cells became non-empty
        self._cells: dict[str, Cell] = {}
        # (v, name): the formula in cell `name` reads variable `v`
        self._graph = DependencyGraph()
        self._changed = False

    @classmethod
    def _from_file(
        cls,
        filename: str | os.PathLike[str],
        is_valid: Callable[[str], bool] | None = None,
        normalize: Callable[[str], str] | None = None,
        version: str = DEFAULT_VERSION,
    ) -> Spreadsheet:
        """Rebuild a spreadsheet by replaying a snapshot's records in file order."""
        sheet = cls(is_valid, normalize, version)
        saved_version, records = _xml.read_snapshot(filename)
        if saved_version != version:
            raise PersistenceError(
                f"Version of the saved spreadsheet: {saved_version}, does not match: {version}"
            )

        for name, contents in records:
            try:
                sheet.set_contents_of_cell(name, contents)
            except InvalidNameError as e:
                raise PersistenceError(f"{name} is an invalid cell name") from e
            except FormulaFormatError as e:
                raise PersistenceError(f"{contents} is an invalid formula: {e}") from e
            except CircularDependencyError as e:
                raise PersistenceError(
                    f"There is a circular dependency in the spreadsheet at {name}"
                ) from e

        sheet._changed = False
        logger.debug(
            "Loaded %d cells from %s (version %r)", len(records), os.fspath(filename), version,
        )
        return sheet

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def changed(self) -> bool:
        """True when the spreadsheet was modified since it was created, loaded or saved."""
        return self._changed

    @property
    def version(self) -> str:
        return self._version

    # ------------------------------------------------------------------
    # Name handling
    # ------------------------------------------------------------------

    def _is_valid_name(self, name: str) -> bool:
        return is_cell_name(name) and bool(self._is_valid(name))

    def _checked_name(self, name: str) -> str:
        """Normalize *name*; raise InvalidNameError if the result is not a valid cell name."""
        if not isinstance(name, str):
            raise InvalidNameError(name)
        normalized = self._normalize(name)
        if not isinstance(normalized, str) or not self._is_valid_name(normalized):
            raise InvalidNameError(name)
        return normalized

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def get_names_of_all_nonempty_cells(self) -> list[str]:
        """Names of every non-empty cell, in the order they became non-empty."""
        return list(self._cells)

    def get_cell_contents(self, name: str) -> CellContents:
        """Contents of *name*: a float, a str, or a Formula (``""`` if empty)."""
        cell = self._cells.get(self._checked_name(name))
        return "" if cell is None else cell.contents

    def get_cell_value(self, name: str) -> CellValue:
        """Value of *name*: a float, a str, or a FormulaError (``""`` if empty)."""
        cell = self._cells.get(self._checked_name(name))
        return "" if cell is None else cell.value

    def get_direct_dependents(self, name: str) -> frozenset[str]:
        """Cells whose formulas reference *name* directly."""
        return self._graph.get_dependents(self._checked_name(name))

    def has_dependents(self, name: str) -> bool:
        return self._graph.has_dependents(self._checked_name(name))

    def has_dependees(self, name: str) -> bool:
        return self._graph.has_dependees(self._checked_name(name))

    def __getitem__(self, name: str) -> CellValue:
        """``sheet['A1']`` -> value of A1."""
        return self.get_cell_value(name)

    def __setitem__(self, name: str, content: str) -> None:
        """``sheet['A1'] = '=B1*2'``, shorthand for :meth:`set_contents_of_cell`."""
        self.set_contents_of_cell(name, content)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        return self._normalize(name) in self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._cells))

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def _parse_contents(self, content: str) -> CellContents:
        """Classify raw cell text as a number, a formula (``=...``) or text."""
        number = parse_number(content)
        if number is not None:
            return number
        if content.startswith("="):
            return Formula(content[1:], self._normalize, self._is_valid)
        return content

    def _lookup(self, name: str) -> float:
        """Numeric value of a referenced cell; KeyError when it has none."""
        # Formula variables are already normalized
        cell = self._cells.get(name)
        value = "" if cell is None else cell.value
        if isinstance(value, float):
            return value
        if isinstance(value, FormulaError):
            raise KeyError(f"{name} holds an error: {value}")
        raise KeyError(f"{name} does not hold a number")

    def _recompute(self, name: str) -> None:
        cell = self._cells.get(name)
        if cell is not None and isinstance(cell.contents, Formula):
            cell.value = cell.contents.evaluate(self._lookup)

    def set_contents_of_cell(self, name: str, content: str) -> list[str]:
        """Set the contents of *name* and recalculate everything downstream of it.

        *content* is interpreted as a number if it parses as one, as a
        formula if it starts with ``=``, and as text otherwise.  Only the
        empty string empties the cell; whitespace-only text such as ``"  "``
        is stored as text and the cell stays non-empty.

        Returns *name* followed by every cell that directly or indirectly
        depends on it, ordered so that each cell comes after the cells it
        reads from.

        Raises InvalidNameError, FormulaFormatError or
        CircularDependencyError; in each case nothing is modified.
        """
        if not isinstance(content, str):
            raise TypeError(f"content must be a string, not {type(content).__name__}")
        name = self._checked_name(name)
        contents = self._parse_contents(content)

        new_dependees: tuple[str, ...] = ()
        if isinstance(contents, Formula):
            new_dependees = contents.variables
            self._check_cycle(name, frozenset(new_dependees))

        # Commit: edges, contents, then values downstream
        self._graph.replace_dependees(name, new_dependees)
        if isinstance(contents, str) and not contents:
            self._cells.pop(name, None)
        else:
            # Reassigning an existing key keeps its place in the non-empty order
            self._cells[name] = Cell(contents)
        self._changed = True

        order = _cells_to_recalculate(name, self._graph.get_dependents)
        for cell_name in order:
            self._recompute(cell_name)

        logger.debug(
            "Set %s to %s; recalculated %d cells", name, type(contents).__name__, len(order),
        )
        return order

    def _check_cycle(self, name: str, new_dependees: frozenset[str]) -> None:
        """Raise CircularDependencyError if *name* reading *new_dependees* would form a cycle.

        Walks the graph as it would look after the edit, without changing it:
        the edges into *name* are the new ones, every other edge is unchanged.
        """

        def prospective_dependents(cell: str) -> frozenset[Hashable]:
            dependents = self._graph.get_dependents(cell) - {name}
            if cell in new_dependees:
                dependents |= {name}
            return dependents

        try:
            _cells_to_recalculate(name, prospective_dependents)
        except CircularDependencyError:
            logger.debug("Rejected edit of %s: circular dependency", name)
            raise

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, filename: str | os.PathLike[str]) -> None:
        """Write every non-empty cell to *filename* as an XML snapshot."""
        records = [(name, cell.to_text()) for name, cell in self._cells.items()]
        _xml.write_snapshot(filename, self._version, records)
        self._changed = False
        logger.debug(
            "Saved %d cells to %s (version %r)", len(records), os.fspath(filename), self._version,
        )

    def __repr__(self) -> str:
        return f"<Spreadsheet version={self._version!r} cells={len(self._cells)}>"
