"""sheetcalc.engine - pure recalculation functions over cell snapshots."""

from .arithmetic import evaluate
from .cycles import find_cycle, introduces_cycle, transitive_dependents
from .evaluator import resolve
from .propagation import commit_edit
from .references import extract_references, is_formula, unique_references

__all__ = [
    "commit_edit",
    "evaluate",
    "extract_references",
    "find_cycle",
    "introduces_cycle",
    "is_formula",
    "resolve",
    "transitive_dependents",
    "unique_references",
]
