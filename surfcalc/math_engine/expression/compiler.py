"""Compile expression ASTs into total, side-effect-free numeric functions.

Every AST node becomes a closure over ``(x, y, t)``. Each closure checks its
own result, so a non-finite intermediate value (overflow, division by zero,
a domain error such as ``sqrt(-1)``) makes the whole evaluation undefined.
The undefined sentinel is ``float('nan')``.
"""

from __future__ import annotations

import math
from typing import Callable, Dict, Optional

from surfcalc.exceptions import ExpressionSyntaxError
from surfcalc.logger import session_logger as logger
from surfcalc.math_engine.expression.parser import (
    BinaryOp,
    Call,
    Constant,
    Node,
    Number,
    UnaryOp,
    Variable,
    parse_expression,
)

NAN = float("nan")

Evaluator = Callable[[float, float, float], float]


class UndefinedValue(ArithmeticError):
    """Internal signal that an intermediate value left the finite reals."""


def _finite(value: float) -> float:
    if not math.isfinite(value):
        raise UndefinedValue(value)
    return value


def _round_half_up(value: float) -> float:
    return float(math.floor(value + 0.5))


def _sign(value: float) -> float:
    if value > 0:
        return 1.0
    if value < 0:
        return -1.0
    return 0.0


FUNCTIONS: Dict[str, Callable[..., float]] = {
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "atan2": math.atan2,
    "sqrt": math.sqrt,
    "abs": math.fabs,
    "pow": math.pow,
    "exp": math.exp,
    "log": math.log,
    "ln": math.log,
    "min": min,
    "max": max,
    "floor": lambda v: float(math.floor(v)),
    "ceil": lambda v: float(math.ceil(v)),
    "round": _round_half_up,
    "trunc": lambda v: float(math.trunc(v)),
    "sinh": math.sinh,
    "cosh": math.cosh,
    "tanh": math.tanh,
    "hypot": math.hypot,
    "sign": _sign,
}

_BINARY: Dict[str, Callable[[float, float], float]] = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": lambda a, b: a / b,
    "^": math.pow,
}


# Left-associative operators sharing a precedence level
_CHAIN_GROUPS = {
    "+": frozenset({"+", "-"}),
    "-": frozenset({"+", "-"}),
    "*": frozenset({"*", "/"}),
    "/": frozenset({"*", "/"}),
}


def _compile_chain(node: BinaryOp) -> Evaluator:
    """Compile a left-deep run such as ``a + b - c + d`` into one loop.

    Evaluation loops over the terms, so stack depth does not grow with
    the length of the run.
    """
    group = _CHAIN_GROUPS[node.op]
    steps = []
    current: Node = node
    while isinstance(current, BinaryOp) and current.op in group:
        steps.append((current.op, current.right))
        current = current.left
    steps.reverse()

    first = _compile_node(current)
    rest = [(_BINARY[op], _compile_node(operand)) for op, operand in steps]

    def chain(x: float, y: float, t: float) -> float:
        value = first(x, y, t)
        for op, operand in rest:
            value = _finite(op(value, operand(x, y, t)))
        return value
    return chain


def _compile_node(node: Node) -> Evaluator:
    if isinstance(node, Number):
        value = node.value

        def number(x: float, y: float, t: float) -> float:
            return _finite(value)
        return number

    if isinstance(node, Constant):
        constant = node.value
        return lambda x, y, t: constant

    if isinstance(node, Variable):
        if node.name == "x":
            return lambda x, y, t: x
        if node.name == "y":
            return lambda x, y, t: y
        return lambda x, y, t: t

    if isinstance(node, UnaryOp):
        operand = _compile_node(node.operand)
        if node.op == "-":
            return lambda x, y, t: -operand(x, y, t)
        return operand

    if isinstance(node, BinaryOp):
        if node.op in _CHAIN_GROUPS:
            return _compile_chain(node)
        left = _compile_node(node.left)
        right = _compile_node(node.right)
        op = _BINARY[node.op]

        def binary(x: float, y: float, t: float) -> float:
            return _finite(op(left(x, y, t), right(x, y, t)))
        return binary

    if isinstance(node, Call):
        func = FUNCTIONS[node.name]
        args = [_compile_node(arg) for arg in node.args]

        def call(x: float, y: float, t: float) -> float:
            return _finite(float(func(*[arg(x, y, t) for arg in args])))
        return call

    raise ExpressionSyntaxError(f"Unsupported node {type(node).__name__}")


def _undefined(x: float, y: float, t: float) -> float:
    return NAN


class CompiledExpression:
    """A total numeric function of (x, y) or (x, y, t).

    Calling it never raises: any failure, including a wrong number of
    arguments or non-numeric input, yields NaN.
    """

    __slots__ = ("source", "arity", "error", "_evaluate")

    def __init__(
        self,
        source: str,
        arity: int,
        evaluate: Evaluator,
        error: Optional[str] = None,
    ):
        self.source = source
        self.arity = arity
        self.error = error
        self._evaluate = evaluate

    @property
    def is_valid(self) -> bool:
        return self.error is None

    def __call__(self, *args: float) -> float:
        if len(args) != self.arity:
            return NAN
        try:
            x = float(args[0])
            y = float(args[1])
            t = float(args[2]) if self.arity == 3 else 0.0
            if not (math.isfinite(x) and math.isfinite(y) and math.isfinite(t)):
                return NAN
            value = float(self._evaluate(x, y, t))
        except Exception:
            return NAN
        return value if math.isfinite(value) else NAN

    def at_time(self, t: float = 0.0) -> "BoundExpression":
        """Fix the time parameter, giving a function of (x, y)."""
        return BoundExpression(self, t)

    def __repr__(self) -> str:
        state = "valid" if self.is_valid else f"invalid: {self.error}"
        return f"CompiledExpression({self.source!r}, arity={self.arity}, {state})"


class BoundExpression:
    """A compiled f(x, y, t) with t held fixed."""

    __slots__ = ("expression", "t")

    def __init__(self, expression: CompiledExpression, t: float):
        self.expression = expression
        self.t = t

    def __call__(self, x: float, y: float) -> float:
        if self.expression.arity == 2:
            return self.expression(x, y)
        return self.expression(x, y, self.t)

    def __repr__(self) -> str:
        return f"BoundExpression({self.expression.source!r}, t={self.t})"


def compile_expression(expr: str, arity: int = 3) -> CompiledExpression:
    """Compile expression text into a total numeric function.

    Never raises. A malformed expression, an unknown identifier or an
    unsupported arity yields a function that returns NaN for every input;
    the reason is kept on ``.error``.

    Sums and products of any length compile flat. Other nesting (brackets,
    ``^`` chains, repeated unary minus, nested calls) is limited by the
    interpreter recursion limit; an expression nested past it compiles to
    the undefined function like any other invalid input.

    Args:
        expr: Expression source, e.g. ``"sin(x)*cos(y) + t^2"``
        arity: 2 for f(x, y), 3 for f(x, y, t)
    """
    source = expr if isinstance(expr, str) else ""
    try:
        if not isinstance(expr, str):
            raise ExpressionSyntaxError(
                f"Expression must be a string, got {type(expr).__name__}"
            )
        tree = parse_expression(expr, arity)
        evaluate = _compile_node(tree)
    except Exception as e:
        message = e.message if isinstance(e, ExpressionSyntaxError) else str(e) or type(e).__name__
        logger.debug("Expression compiled to undefined", expression=source[:200], error=message)
        return CompiledExpression(source, arity, _undefined, error=message)

    return CompiledExpression(source, arity, evaluate)
