"""Arithmetic-only calculator evaluated over a restricted AST."""
from __future__ import annotations

import ast
import operator
import re
from typing import Callable, Dict, Optional, Type

from thinking_frameworks.tools.base import ToolBase

_DISALLOWED_RE = re.compile(r"[^0-9+\-*/().%\s]")
MAX_EXPONENT = 1000

_BINARY_OPS: Dict[Type[ast.operator], Callable[[float, float], float]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}
_UNARY_OPS: Dict[Type[ast.unaryop], Callable[[float], float]] = {
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}


def calculate(expression: str) -> str:
    """Evaluate ``expression`` and return the result (or an error) as text."""
    if _DISALLOWED_RE.search(expression):
        return "Error: expression contains disallowed characters. Only numbers and +-*/().% are allowed."
    try:
        tree = ast.parse(expression.strip(), mode="eval")
        return _format_number(_eval(tree.body))
    except (SyntaxError, ValueError, ArithmeticError, RecursionError, MemoryError) as exc:
        return f"Calculation error: {exc}"


def _eval(node: ast.AST) -> float:
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        if isinstance(node.op, ast.Pow) and abs(_eval(node.right)) > MAX_EXPONENT:
            raise ValueError("exponent too large")
        return _BINARY_OPS[type(node.op)](_eval(node.left), _eval(node.right))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_eval(node.operand))
    raise ValueError(f"unsupported expression element: {node.__class__.__name__}")


def _format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class CalculatorTool(ToolBase):
    name = "calculate"
    description = 'Evaluate a math expression. Input: a math expression like "4 * 7 / 3". Only numbers and basic operators allowed.'

    async def execute(self, tool_input: str, credential: Optional[str] = None) -> str:
        return calculate(tool_input)
