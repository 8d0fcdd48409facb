"""Cycle detection over the ``dependents`` edges of a cell store."""

from collections import deque
from typing import Deque, List, Set, Union

from ..models.cell_model import CellMap, CellStore, as_cell_map


def introduces_cycle(edited_cell: str, candidate_parent: str,
                     store: Union[CellStore, CellMap]) -> bool:
    """Would ``edited_cell`` reading ``candidate_parent`` close a loop?

    True when ``candidate_parent`` already depends, directly or through
    other cells, on ``edited_cell`` (found by walking ``dependents`` from the
    edited cell), or when the two are the same cell.
    """
    cells = as_cell_map(store)
    stack: List[str] = [edited_cell]
    visited: Set[str] = set()

    while stack:
        current = stack.pop()
        if current == candidate_parent:
            return True
        if current in visited:
            continue
        visited.add(current)

        cell = cells.get(current)
        if cell is not None:
            # Reversed so the first dependent is explored first
            stack.extend(reversed(cell.dependents))

    return False


def transitive_dependents(cell_id: str, store: Union[CellStore, CellMap]) -> List[str]:
    """Every cell that reads ``cell_id`` directly or indirectly, BFS order."""
    cells = as_cell_map(store)
    order: List[str] = []
    visited: Set[str] = {cell_id}
    queue: Deque[str] = deque([cell_id])

    while queue:
        current = queue.popleft()
        cell = cells.get(current)
        if cell is None:
            continue
        for dep in cell.dependents:
            if dep not in visited:
                visited.add(dep)
                order.append(dep)
                queue.append(dep)

    return order


def find_cycle(store: Union[CellStore, CellMap]) -> List[str]:
    """Return one cycle in the dependents graph as a list of ids, or []."""
    cells = as_cell_map(store)
    # 0 = unvisited, 1 = on the current path, 2 = done
    state = {cell_id: 0 for cell_id in cells}

    for root in cells:
        if state[root]:
            continue
        path: List[str] = [root]
        iterators = [iter(cells[root].dependents)]
        state[root] = 1
        while iterators:
            child = next(iterators[-1], None)
            if child is None:
                state[path.pop()] = 2
                iterators.pop()
                continue
            child_state = state.get(child, 0)
            if child_state == 1:
                return path[path.index(child):] + [child]
            if child_state == 0 and child in cells:
                state[child] = 1
                path.append(child)
                iterators.append(iter(cells[child].dependents))
            elif child not in cells:
                state[child] = 2

    return []
