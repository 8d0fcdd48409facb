import math
import re
from enum import Enum
from typing import Annotated, Dict, List, Literal, Mapping, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import InvalidCellIdError

CELL_ID_PATTERN = re.compile(r'^[A-Z]+[0-9]+$')


class ErrorKind(str, Enum):
    ERROR = "#ERROR"
    CIRCULAR = "#CIRCULAR"


class NumberValue(BaseModel):
    """Numeric result of a formula."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["number"] = "number"
    number: Union[int, float]

    @property
    def display(self) -> str:
        return format_number(self.number)


class LiteralValue(BaseModel):
    """Raw text entered without a leading '=' (never coerced)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["literal"] = "literal"
    text: str = ""

    @property
    def display(self) -> str:
        return self.text


class ErrorValue(BaseModel):
    """Display-only error tag stored in place of a value."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["error"] = "error"
    error: ErrorKind

    @property
    def display(self) -> str:
        return self.error.value


Value = Annotated[
    Union[NumberValue, LiteralValue, ErrorValue],
    Field(discriminator="kind"),
]

EMPTY_VALUE = LiteralValue()
ERROR_VALUE = ErrorValue(error=ErrorKind.ERROR)
CIRCULAR_VALUE = ErrorValue(error=ErrorKind.CIRCULAR)


def format_number(number: Union[int, float]) -> str:
    """Render a number the way a grid shows it: 6 not 6.0, 0.5 as 0.5."""
    if isinstance(number, float) and math.isfinite(number) and number.is_integer():
        return str(int(number))
    return repr(number)


def normalize_cell_id(cell_id: str) -> str:
    """Upper-case and validate an A1-style cell id."""
    if not isinstance(cell_id, str):
        raise InvalidCellIdError(str(cell_id))
    normalized = cell_id.strip().upper()
    if not CELL_ID_PATTERN.match(normalized):
        raise InvalidCellIdError(cell_id)
    return normalized


class Cell(BaseModel):
    """
    A single grid slot: the raw text the user typed, its computed value and
    the cells whose formulas read it (reverse edges, insertion ordered).
    """

    model_config = ConfigDict(frozen=True)

    formula: str = Field(default="", description="Raw user input")
    value: Value = Field(default=EMPTY_VALUE,
                         description="Computed value of the cell")
    dependents: Tuple[str, ...] = Field(
        default=(), description="Cells whose formulas reference this cell")
    references: Tuple[str, ...] = Field(
        default=(), description="Cells this cell is registered as a dependent of")

    @property
    def is_error(self) -> bool:
        return isinstance(self.value, ErrorValue)

    def with_dependent(self, cell_id: str) -> 'Cell':
        """Return a copy with ``cell_id`` recorded as a dependent (idempotent)."""
        if cell_id in self.dependents:
            return self
        return self.model_copy(update={"dependents": self.dependents + (cell_id,)})

    def without_dependent(self, cell_id: str) -> 'Cell':
        """Return a copy with ``cell_id`` no longer listed as a dependent."""
        if cell_id not in self.dependents:
            return self
        return self.model_copy(update={
            "dependents": tuple(d for d in self.dependents if d != cell_id)
        })


EMPTY_CELL = Cell()


class CellView(BaseModel):
    """What the presentation layer renders for one cell."""

    cell_id: str
    formula: str = ""
    display_value: str = ""
    is_error: bool = False

    @classmethod
    def from_cell(cls, cell_id: str, cell: Cell) -> 'CellView':
        return cls(
            cell_id=cell_id,
            formula=cell.formula,
            display_value=cell.value.display,
            is_error=cell.is_error,
        )


class CellStore(BaseModel):
    """
    Immutable snapshot of every materialised cell in the grid.

    Absent ids read as the empty cell. The engine builds a new store per edit.
    """

    model_config = ConfigDict(frozen=True)

    cells: Dict[str, Cell] = Field(default_factory=dict)

    def get(self, cell_id: str) -> Cell:
        return self.cells.get(cell_id, EMPTY_CELL)

    def __contains__(self, cell_id: object) -> bool:
        return cell_id in self.cells

    def __len__(self) -> int:
        return len(self.cells)

    def ids(self) -> List[str]:
        return list(self.cells)

    def view(self, cell_id: str) -> CellView:
        return CellView.from_cell(cell_id, self.get(cell_id))


CellMap = Mapping[str, Cell]


def as_cell_map(store: Union[CellStore, CellMap]) -> CellMap:
    """Accept either a snapshot or a plain working mapping of cells."""
    if isinstance(store, CellStore):
        return store.cells
    return store
