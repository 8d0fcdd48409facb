"""
Formula evaluator adapter.

Turns a cell's raw text into a Value: literals pass through untouched,
formulas get their references replaced by the referenced cells' current
values and the resulting arithmetic is handed to an evaluator callable.
Nothing raised by the evaluator escapes this module.
"""

import math
from typing import Callable, Dict, List, Union

from ..config.logging_config import get_logger
from ..exceptions import EvaluationError
from ..models.cell_model import (
    CellMap,
    CellStore,
    ERROR_VALUE,
    ErrorValue,
    LiteralValue,
    NumberValue,
    Value,
    as_cell_map,
    format_number,
)
from . import arithmetic
from .references import CELL_REF_RE, extract_references, is_formula

logger = get_logger(__name__)

Evaluate = Callable[[str], Union[int, float]]


def substitution_text(value: Value) -> str:
    """Text that stands in for a referenced cell inside an expression.

    Empty and missing cells read as 0; negative numbers are parenthesised so
    that ``2^A1`` with A1=-3 stays ``2**(-3)``.
    """
    if isinstance(value, NumberValue):
        text = format_number(value.number)
        return f"({text})" if value.number < 0 else text
    if isinstance(value, LiteralValue) and value.text:
        return value.text
    return "0"


def _substitute(body: str, replacements: Dict[str, str]) -> str:
    """Replace each reference in ``body`` and upper-case the text around it.

    Only the matched spans are looked up, so case folding that produces new
    letters (sharp s becomes SS) never invents a reference; such text reaches
    the evaluator as an unknown name.
    """
    parts: List[str] = []
    last = 0
    for match in CELL_REF_RE.finditer(body):
        parts.append(body[last:match.start()].upper())
        parts.append(replacements[match.group(0).upper()])
        last = match.end()
    parts.append(body[last:].upper())
    return "".join(parts)


def resolve(formula: str, store: Union[CellStore, CellMap],
            evaluate: Evaluate = arithmetic.evaluate) -> Value:
    """Compute the value of ``formula`` against ``store``.

    Always returns a Value; evaluation failures and poisoned inputs become
    ``#ERROR``.
    """
    if not is_formula(formula):
        return LiteralValue(text=formula)

    cells = as_cell_map(store)
    replacements = {}
    for ref in extract_references(formula):
        cell = cells.get(ref)
        if cell is not None and isinstance(cell.value, ErrorValue):
            logger.debug("Poisoned reference", reference=ref, error=cell.value.error.value)
            return ERROR_VALUE
        replacements[ref] = substitution_text(cell.value) if cell is not None else "0"

    expression = _substitute(formula[1:], replacements)

    try:
        result = evaluate(expression)
    except EvaluationError as e:
        logger.debug("Expression rejected", expression=expression, error=str(e))
        return ERROR_VALUE
    except Exception as e:
        logger.warning(
            "Evaluator failed",
            expression=expression,
            error=str(e),
            error_type=type(e).__name__
        )
        return ERROR_VALUE

    if isinstance(result, bool) or not isinstance(result, (int, float)):
        logger.debug("Non-numeric result", expression=expression, result=repr(result))
        return ERROR_VALUE
    if isinstance(result, float) and not math.isfinite(result):
        return ERROR_VALUE
    if isinstance(result, int) and result.bit_length() > arithmetic.MAX_INT_BITS:
        logger.debug("Result out of range", expression=expression)
        return ERROR_VALUE
    return NumberValue(number=result)
