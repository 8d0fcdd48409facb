"""Exception hierarchy for sheetcalc.

Evaluation errors never leave the engine: the evaluator adapter turns them
into ``#ERROR`` cell values. Only invalid cell ids surface to callers.
"""


class SheetCalcError(Exception):
    """Base class for all sheetcalc errors."""


class EvaluationError(SheetCalcError):
    """The arithmetic evaluator rejected an expression."""

    def __init__(self, message: str, expression: str = ""):
        self.expression = expression
        super().__init__(message)


class ParseError(EvaluationError):
    """The expression is malformed or uses an unsupported construct."""


class MathError(EvaluationError):
    """The expression is well-formed but has no finite numeric result."""


class InvalidCellIdError(SheetCalcError, ValueError):
    """A cell id is not of the form letters followed by digits."""

    def __init__(self, cell_id: str):
        self.cell_id = cell_id
        super().__init__(f"Invalid cell address: {cell_id!r}")
