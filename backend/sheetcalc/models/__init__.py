from .cell_model import (
    Cell,
    CellStore,
    CellView,
    ErrorKind,
    ErrorValue,
    LiteralValue,
    NumberValue,
    Value,
    normalize_cell_id,
)
from .history_model import CommandHistory, HistoryEntry

# The spreadsheet session depends on the engine, which depends on these
# models; import it as sheetcalc.models.spreadsheet_model.

__all__ = [
    # Cell models
    "Cell",
    "CellStore",
    "CellView",
    "ErrorKind",
    "ErrorValue",
    "LiteralValue",
    "NumberValue",
    "Value",
    "normalize_cell_id",

    # History models
    "CommandHistory",
    "HistoryEntry",
]
