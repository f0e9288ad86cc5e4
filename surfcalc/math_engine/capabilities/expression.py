"""Expression Capability.

Tools for checking expression text and evaluating a compiled expression at
explicit sample points. Checking uses the raising parser so that a caller
learns why an expression is rejected; evaluation uses the total compiled
function, so undefined samples come back as null.
"""

from __future__ import annotations

from typing import Any, Dict, List

from surfcalc.exceptions import ExpressionSyntaxError, InvalidInputError
from surfcalc.logger import session_logger as logger
from surfcalc.logger.decorators import log_execution_time
from surfcalc.math_engine.arguments import EXPRESSION_SCHEMA, int_arg, require_expression
from surfcalc.math_engine.base import MathCapability, MathResult, ToolDefinition, json_number
from surfcalc.math_engine.expression import compile_expression, parse_expression, referenced_names

MAX_POINTS = 10000


class ExpressionCapability(MathCapability):
    """Expression validation and point evaluation."""

    @property
    def name(self) -> str:
        return "expression"

    @property
    def description(self) -> str:
        return "Validate surface expressions and evaluate them at points"

    def __init__(self):
        """Initialize the expression capability."""
        logger.info("ExpressionCapability initialized")

    def get_tools(self) -> List[ToolDefinition]:
        """Return list of tool definitions."""
        return [
            ToolDefinition(
                name="expression_check",
                description=(
                    "Parse an expression of x, y (and t when arity is 3) and report whether it "
                    "is valid, the error message and character position if not, and the "
                    "variables, constants and functions it uses."
                ),
                input_schema={
                    "type": "object",
                    "properties": {
                        "expression": EXPRESSION_SCHEMA,
                        "arity": {"type": "integer", "enum": [2, 3], "default": 3},
                    },
                    "required": ["expression"],
                },
                handler_name="handle_check",
            ),
            ToolDefinition(
                name="expression_evaluate",
                description=(
                    "Evaluate an expression at a list of points [x, y] or [x, y, t]. "
                    "Undefined values (division by zero, domain errors, invalid expression) "
                    "are returned as null."
                ),
                input_schema={
                    "type": "object",
                    "properties": {
                        "expression": EXPRESSION_SCHEMA,
                        "points": {
                            "type": "array",
                            "items": {"type": "array", "items": {"type": "number"}, "minItems": 2, "maxItems": 3},
                            "description": "Sample points; t defaults to 0 when omitted",
                        },
                    },
                    "required": ["expression", "points"],
                },
                handler_name="handle_evaluate",
            ),
        ]

    @log_execution_time
    def handle(self, tool_name: str, arguments: Dict[str, Any]) -> MathResult:
        """Route tool invocation to appropriate handler."""
        if tool_name == "expression_check":
            return self.handle_check(arguments)
        elif tool_name == "expression_evaluate":
            return self.handle_evaluate(arguments)
        else:
            raise InvalidInputError(f"Unknown tool: {tool_name}")

    def handle_check(self, arguments: Dict[str, Any]) -> MathResult:
        """Handle expression_check tool."""
        expression = require_expression(arguments)
        arity = int_arg(arguments, "arity", 3, minimum=2, maximum=3)

        try:
            tree = parse_expression(expression, arity)
        except ExpressionSyntaxError as e:
            return MathResult(
                result={
                    "valid": False,
                    "error": e.message,
                    "position": e.position,
                    "arity": arity,
                },
                shape=[],
                dtype="object",
            )

        return MathResult(
            result={"valid": True, "arity": arity, **referenced_names(tree)},
            shape=[],
            dtype="object",
        )

    def handle_evaluate(self, arguments: Dict[str, Any]) -> MathResult:
        """Handle expression_evaluate tool."""
        expression = require_expression(arguments)
        points = arguments.get("points")
        if not isinstance(points, list):
            raise InvalidInputError("Argument 'points' must be a list of [x, y] or [x, y, t]")
        if len(points) > MAX_POINTS:
            raise InvalidInputError(
                f"Too many points: {len(points)}",
                details={"max_points": MAX_POINTS},
            )

        f = compile_expression(expression, 3)
        values: List[Any] = []
        for index, point in enumerate(points):
            if not isinstance(point, (list, tuple)) or len(point) not in (2, 3):
                raise InvalidInputError(f"Point {index} must be [x, y] or [x, y, t], got {point!r}")
            if any(isinstance(v, bool) or not isinstance(v, (int, float)) for v in point):
                raise InvalidInputError(f"Point {index} must contain only numbers, got {point!r}")
            x, y = point[0], point[1]
            t = point[2] if len(point) == 3 else 0.0
            values.append(json_number(f(x, y, t)))

        return MathResult(
            result={"valid": f.is_valid, "error": f.error, "values": values},
            shape=[len(values)],
            dtype="object",
        )

    def list_operations(self) -> Dict[str, List[str]]:
        return {"expression": ["expression_check", "expression_evaluate"]}
