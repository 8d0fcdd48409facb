"""
Spreadsheet session model.
Owns the current grid state through its history and applies edits,
undo and redo one at a time.
"""

import threading
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, PrivateAttr

from ..config.logging_config import LoggerMixin
from ..engine import arithmetic
from ..engine.cycles import find_cycle
from ..engine.evaluator import Evaluate
from ..engine.propagation import commit_edit
from .cell_model import CellStore, CellView, normalize_cell_id
from .history_model import CommandHistory, HistoryEntry


class Spreadsheet(LoggerMixin, BaseModel):
    """
    Host-side owner of "the current grid".

    Every edit goes through the propagation engine and lands in the history;
    the current state is whatever the history cursor points at.
    """

    history: CommandHistory = Field(default_factory=CommandHistory)

    # Metadata
    created_at: datetime = Field(default_factory=datetime.utcnow)
    last_modified: datetime = Field(default_factory=datetime.utcnow)
    version: int = Field(default=1)

    _lock: Any = PrivateAttr(default_factory=threading.RLock)
    _evaluate: Optional[Evaluate] = PrivateAttr(default=None)

    def __init__(self, evaluate: Optional[Evaluate] = None, **data: Any):
        super().__init__(**data)
        if evaluate is not None:
            self._evaluate = evaluate

    @classmethod
    def with_history_limit(cls, max_history_size: Optional[int],
                           evaluate: Optional[Evaluate] = None) -> 'Spreadsheet':
        return cls(
            evaluate=evaluate,
            history=CommandHistory(max_history_size=max_history_size),
        )

    @property
    def evaluator(self) -> Evaluate:
        return self._evaluate or arithmetic.evaluate

    @property
    def store(self) -> CellStore:
        return self.history.current

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def edit_cell(self, cell_id: str, raw_text: str) -> CellStore:
        """Commit the text typed into a cell and return the new grid state."""
        address = normalize_cell_id(cell_id)

        with self._lock:
            snapshot = commit_edit(address, raw_text, self.store, self.evaluator)

            cycle = find_cycle(snapshot)
            if cycle:
                # Unreachable while every commit goes through commit_edit
                self.logger.error("Dependency cycle in committed state", cycle=cycle)

            self.history.add_entry(
                HistoryEntry.create_edit_entry(snapshot, address, raw_text))
            self._touch()

            self.logger.info(
                "Cell edited",
                cell=address,
                value=snapshot.get(address).value.display,
                history_size=len(self.history)
            )
            return snapshot

    def undo(self) -> Optional[CellStore]:
        """Return the previous grid state, or None if there is none."""
        with self._lock:
            snapshot = self.history.undo()
            if snapshot is not None:
                self._touch()
            return snapshot

    def redo(self) -> Optional[CellStore]:
        """Return the next grid state, or None if there is none."""
        with self._lock:
            snapshot = self.history.redo()
            if snapshot is not None:
                self._touch()
            return snapshot

    def get_cell_view(self, cell_id: str) -> CellView:
        """Get the rendered view of one cell (empty for untouched cells)."""
        return self.store.view(normalize_cell_id(cell_id))

    def get_views(self) -> Dict[str, CellView]:
        """Get rendered views of every materialised cell."""
        store = self.store
        return {cell_id: store.view(cell_id) for cell_id in store.ids()}

    def _touch(self) -> None:
        self.last_modified = datetime.utcnow()
        self.version += 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert the current state to a dictionary for JSON serialization."""
        return {
            "cells": {
                cell_id: view.model_dump()
                for cell_id, view in self.get_views().items()
            },
            "can_undo": self.can_undo,
            "can_redo": self.can_redo,
            "version": self.version,
            "last_modified": self.last_modified.isoformat(),
        }
