"""
Propagation engine.

``commit_edit`` applies one edit to a snapshot and returns the next
snapshot: cycle check, evaluation of the edited cell, rewiring of its
dependency edges and a refresh of every cell downstream of it. The input
snapshot is never modified.
"""

from typing import Dict, List, Sequence, Set

from ..config.logging_config import get_logger
from ..models.cell_model import CIRCULAR_VALUE, EMPTY_CELL, Cell, CellStore
from . import arithmetic
from .cycles import introduces_cycle, transitive_dependents
from .evaluator import Evaluate, resolve
from .references import unique_references

logger = get_logger(__name__)


def commit_edit(edited_cell: str, new_formula: str, store: CellStore,
                evaluate: Evaluate = arithmetic.evaluate) -> CellStore:
    """Apply ``new_formula`` to ``edited_cell`` and recompute what it feeds.

    Returns a new CellStore. If the formula would close a reference loop the
    edited cell is tagged ``#CIRCULAR`` and nothing else changes.
    """
    working: Dict[str, Cell] = dict(store.cells)

    if not _apply(edited_cell, new_formula, working, evaluate):
        logger.info("Edit rejected", cell=edited_cell, outcome="circular")
        return CellStore(cells=working)

    refreshed = _refresh_dependents(edited_cell, working, evaluate)
    logger.info(
        "Edit committed",
        cell=edited_cell,
        outcome=working[edited_cell].value.kind,
        refreshed=len(refreshed)
    )
    return CellStore(cells=working)


def _apply(cell_id: str, formula: str, cells: Dict[str, Cell],
           evaluate: Evaluate) -> bool:
    """Recompute one cell in place on the working dict.

    Returns False (and stores ``#CIRCULAR``) if the formula closes a loop.
    """
    references = unique_references(formula)
    current = cells.get(cell_id, EMPTY_CELL)

    for parent in references:
        if introduces_cycle(cell_id, parent, cells):
            logger.debug("Circular reference", cell=cell_id, via=parent)
            cells[cell_id] = current.model_copy(
                update={"formula": formula, "value": CIRCULAR_VALUE})
            return False

    value = resolve(formula, cells, evaluate)
    cells[cell_id] = current.model_copy(update={"formula": formula, "value": value})
    _rewire(cell_id, references, cells)
    return True


def _rewire(cell_id: str, references: Sequence[str], cells: Dict[str, Cell]) -> None:
    """Make ``cell_id`` a dependent of exactly the cells in ``references``.

    Only the cells recorded on the previous accepted formula are visited,
    since a rejected formula never changes edges.
    """
    wanted = set(references)

    for old in cells[cell_id].references:
        if old not in wanted and old in cells:
            cells[old] = cells[old].without_dependent(cell_id)

    for parent in references:
        # Placeholder for cells referenced before they are ever edited
        cells[parent] = cells.get(parent, EMPTY_CELL).with_dependent(cell_id)

    cells[cell_id] = cells[cell_id].model_copy(update={"references": tuple(references)})


def _refresh_dependents(cell_id: str, cells: Dict[str, Cell],
                        evaluate: Evaluate) -> List[str]:
    """Recompute every cell downstream of ``cell_id`` exactly once.

    A cell is scheduled only when none of the cells it reads are still
    waiting, so each sees final upstream values. Runs off an explicit
    work-list; deep chains do not recurse.
    """
    pending = transitive_dependents(cell_id, cells)
    reads = {dep: unique_references(cells[dep].formula) for dep in pending}
    waiting: Set[str] = set(pending)
    order: List[str] = []

    while pending:
        index = 0
        for i, candidate in enumerate(pending):
            if not any(ref in waiting and ref != candidate for ref in reads[candidate]):
                index = i
                break
        dep = pending.pop(index)
        waiting.discard(dep)
        _apply(dep, cells[dep].formula, cells, evaluate)
        order.append(dep)

    return order
