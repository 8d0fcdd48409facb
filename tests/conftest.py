"""Shared fixtures for sheetcalc tests."""

from __future__ import annotations

from typing import Iterable, Tuple

import pytest

from sheetcalc.engine.propagation import commit_edit
from sheetcalc.models.cell_model import CellStore


def apply_edits(edits: Iterable[Tuple[str, str]], store: CellStore | None = None) -> CellStore:
    """Commit (cell, text) pairs in order and return the final snapshot."""
    store = store if store is not None else CellStore()
    for cell_id, text in edits:
        store = commit_edit(cell_id, text, store)
    return store


@pytest.fixture
def empty_store() -> CellStore:
    return CellStore()
