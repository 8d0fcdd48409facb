"""
Default arithmetic evaluator used by the formula adapter.

Accepts an expression made of numbers, operators, parentheses and a small
whitelist of functions and constants, and returns its numeric result. It
walks the tree produced by ``ast.parse`` and never calls ``eval``.
"""

import ast
import math
import operator
from typing import Callable, Dict, Union

from ..exceptions import MathError, ParseError

Number = Union[int, float]

# Exponents beyond this would build integers with thousands of digits
MAX_EXPONENT = 1024

# Integer results are kept within float range (about 1.8e308)
MAX_INT_BITS = 1024

_BINARY_OPS: Dict[type, Callable[[Number, Number], Number]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPS: Dict[type, Callable[[Number], Number]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

CONSTANTS: Dict[str, float] = {
    "PI": math.pi,
    "E": math.e,
}

FUNCTIONS: Dict[str, Callable[..., Number]] = {
    "ABS": abs,
    "SQRT": math.sqrt,
    "ROUND": round,
    "FLOOR": math.floor,
    "CEIL": math.ceil,
    "MIN": min,
    "MAX": max,
    "EXP": math.exp,
    "LN": math.log,
    "LOG": math.log10,
    "POW": math.pow,
}


def evaluate(expression: str) -> Number:
    """Evaluate a pure arithmetic expression.

    ``^`` means exponentiation. Raises ParseError for malformed input and
    MathError when the result is undefined or not finite.
    """
    source = expression.replace("^", "**").strip()
    if not source:
        raise ParseError("Empty expression", expression)

    try:
        tree = ast.parse(source, mode="eval")
    except SyntaxError as exc:
        raise ParseError(f"Invalid expression: {exc.msg}", expression) from exc
    except ValueError as exc:
        raise ParseError(str(exc), expression) from exc
    except (RecursionError, MemoryError) as exc:
        raise ParseError("Expression nested too deeply", expression) from exc

    try:
        result = _eval_node(tree.body, expression)
    except ZeroDivisionError as exc:
        raise MathError("Division by zero", expression) from exc
    except OverflowError as exc:
        raise MathError("Numeric overflow", expression) from exc
    except (ValueError, TypeError) as exc:
        raise MathError(str(exc), expression) from exc
    except RecursionError as exc:
        raise ParseError("Expression nested too deeply", expression) from exc

    if isinstance(result, complex):
        raise MathError("Result is not a real number", expression)
    if isinstance(result, float) and not math.isfinite(result):
        raise MathError("Result is not a finite number", expression)
    return result


def _eval_node(node: ast.AST, expression: str) -> Number:
    if isinstance(node, ast.Constant):
        # bool is an int subclass but not a number here
        if isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
            return _bounded(node.value, expression)
        raise ParseError(f"Unsupported literal: {node.value!r}", expression)

    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        left = _eval_node(node.left, expression)
        right = _eval_node(node.right, expression)
        if isinstance(node.op, ast.Pow):
            _check_power(left, right, expression)
        return _bounded(_BINARY_OPS[type(node.op)](left, right), expression)

    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_eval_node(node.operand, expression))

    if isinstance(node, ast.Name):
        if node.id in CONSTANTS:
            return CONSTANTS[node.id]
        raise ParseError(f"Unknown name: {node.id}", expression)

    if isinstance(node, ast.Call) and isinstance(node.func, ast.Name):
        func = FUNCTIONS.get(node.func.id)
        if func is None or node.keywords:
            raise ParseError(f"Unknown function: {node.func.id}", expression)
        args = [_eval_node(arg, expression) for arg in node.args]
        return _bounded(func(*args), expression)

    raise ParseError(f"Unsupported syntax: {type(node).__name__}", expression)


def _check_power(base: Number, exponent: Number, expression: str) -> None:
    """Refuse powers whose integer result would leave float range."""
    if abs(exponent) > MAX_EXPONENT:
        raise MathError("Exponent too large", expression)
    if (isinstance(base, int) and isinstance(exponent, int)
            and abs(base) > 1 and exponent > 0
            and exponent * math.log2(abs(base)) > MAX_INT_BITS):
        raise MathError("Numeric overflow", expression)


def _bounded(result: Number, expression: str) -> Number:
    if isinstance(result, int) and result.bit_length() > MAX_INT_BITS:
        raise MathError("Numeric overflow", expression)
    return result
