from typing import Any, Dict, List, Optional
from datetime import datetime
import uuid

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..config.logging_config import LoggerMixin
from .cell_model import CellStore


class HistoryEntry(BaseModel):
    """
    One committed state of the grid.
    Entries are never modified once they are in the history.
    """

    model_config = ConfigDict(frozen=True)

    # Identity
    entry_id: str = Field(default_factory=lambda: str(uuid.uuid4()))

    # Content
    snapshot: CellStore = Field(default_factory=CellStore)

    # Metadata
    cell_id: Optional[str] = None
    description: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "entry_id": self.entry_id,
            "cell_id": self.cell_id,
            "description": self.description,
            "timestamp": self.timestamp.isoformat(),
            "cell_count": len(self.snapshot),
        }

    @classmethod
    def create_edit_entry(cls, snapshot: CellStore, cell_id: str,
                          raw_text: str) -> 'HistoryEntry':
        """Create a history entry for a committed cell edit."""
        return cls(
            snapshot=snapshot,
            cell_id=cell_id,
            description=f"Edit {cell_id} = {raw_text!r}"
        )


class CommandHistory(LoggerMixin, BaseModel):
    """
    Linear undo/redo history of grid snapshots with a cursor.

    ``entries[cursor]`` is the current state. Committing while the cursor is
    not at the end discards the redo tail first.
    """

    # Configuration
    max_history_size: Optional[int] = Field(
        default=None, ge=2, description="Maximum number of history entries")

    # History storage
    entries: List[HistoryEntry] = Field(default_factory=list)
    cursor: int = 0

    @model_validator(mode="after")
    def ensure_initial_entry(self) -> 'CommandHistory':
        """Start from the empty grid and keep the cursor in range."""
        if not self.entries:
            self.entries.append(HistoryEntry(description="Empty grid"))
        if not 0 <= self.cursor < len(self.entries):
            raise ValueError(
                f"cursor {self.cursor} out of range for {len(self.entries)} entries")
        return self

    @property
    def current(self) -> CellStore:
        return self.entries[self.cursor].snapshot

    @property
    def current_entry(self) -> HistoryEntry:
        return self.entries[self.cursor]

    @property
    def can_undo(self) -> bool:
        return self.cursor > 0

    @property
    def can_redo(self) -> bool:
        return self.cursor < len(self.entries) - 1

    def __len__(self) -> int:
        return len(self.entries)

    def commit(self, snapshot: CellStore, description: str = None,
               cell_id: str = None) -> HistoryEntry:
        """Append a new state after the cursor, dropping any redo tail."""
        entry = HistoryEntry(snapshot=snapshot, description=description, cell_id=cell_id)
        return self.add_entry(entry)

    def add_entry(self, entry: HistoryEntry) -> HistoryEntry:
        """Add a prepared history entry at the cursor."""
        discarded = len(self.entries) - self.cursor - 1
        del self.entries[self.cursor + 1:]
        self.entries.append(entry)
        self.cursor = len(self.entries) - 1

        if discarded:
            self.logger.debug("Discarded redo entries", count=discarded)

        self._cleanup_history()
        return entry

    def undo(self) -> Optional[CellStore]:
        """Step back one entry. Returns None when there is nothing to undo."""
        if not self.can_undo:
            self.logger.info("Nothing to undo")
            return None
        self.cursor -= 1
        self.logger.info("Undo", cursor=self.cursor, entry_id=self.current_entry.entry_id)
        return self.current

    def redo(self) -> Optional[CellStore]:
        """Step forward one entry. Returns None when there is nothing to redo."""
        if not self.can_redo:
            self.logger.info("Nothing to redo")
            return None
        self.cursor += 1
        self.logger.info("Redo", cursor=self.cursor, entry_id=self.current_entry.entry_id)
        return self.current

    def _cleanup_history(self) -> None:
        """Drop the oldest entries beyond ``max_history_size``."""
        if self.max_history_size is None:
            return
        overflow = len(self.entries) - self.max_history_size
        if overflow > 0:
            del self.entries[:overflow]
            self.cursor -= overflow

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "cursor": self.cursor,
            "size": len(self.entries),
            "can_undo": self.can_undo,
            "can_redo": self.can_redo,
            "entries": [entry.to_dict() for entry in self.entries],
        }
