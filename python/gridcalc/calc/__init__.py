"""gridcalc.calc - Formula language and dependency graph for gridcalc spreadsheets."""

from gridcalc.calc._formula import DIVISION_BY_ZERO, Formula, FormulaError
from gridcalc.calc._graph import DependencyGraph
from gridcalc.calc._tokens import Token, is_variable, tokenize

__all__ = [
    "DIVISION_BY_ZERO",
    "DependencyGraph",
    "Formula",
    "FormulaError",
    "Token",
    "is_variable",
    "tokenize",
]
