"""Limit Estimation Capability.

Approximates lim f(x, y) as (x, y) -> (x0, y0) by sampling five fixed
approach paths at a small offset epsilon and checking whether they agree.
Agreement along finitely many paths does not prove that the limit exists;
the result is a heuristic.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Tuple

from surfcalc.config import get_settings
from surfcalc.exceptions import InvalidInputError
from surfcalc.logger import session_logger as logger
from surfcalc.logger.decorators import log_execution_time
from surfcalc.math_engine.arguments import (
    EXPRESSION_SCHEMA,
    TIME_SCHEMA,
    number_arg,
    surface_arg,
)
from surfcalc.math_engine.base import MathCapability, MathResult, ToolDefinition, json_number
from surfcalc.math_engine.expression import NAN
from surfcalc.math_engine.sampling import as_total

AGREEMENT_TOLERANCE = 0.01


class LimitStatus(str, Enum):
    EXISTS = "exists"
    PATH_DEPENDENT = "path-dependent"
    DOES_NOT_EXIST = "does not exist"


def approach_offsets(epsilon: float) -> List[Tuple[str, float, float]]:
    """(name, dx, dy) for each approach path, in evaluation order."""
    return [
        ("x-axis", epsilon, 0.0),
        ("y-axis", 0.0, epsilon),
        ("diagonal", epsilon, epsilon),
        ("anti-diagonal", epsilon, -epsilon),
        ("parabola", epsilon, epsilon * epsilon),
    ]


@dataclass(frozen=True)
class PathSample:
    name: str
    x: float
    y: float
    value: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.name,
            "x": json_number(self.x),
            "y": json_number(self.y),
            "value": json_number(self.value),
        }


@dataclass(frozen=True)
class LimitResult:
    x0: float
    y0: float
    epsilon: float
    status: LimitStatus
    value: float = NAN
    paths: List[PathSample] = field(default_factory=list)

    @property
    def exists(self) -> bool:
        return self.status is LimitStatus.EXISTS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "point": {"x": json_number(self.x0), "y": json_number(self.y0)},
            "epsilon": json_number(self.epsilon),
            "status": self.status.value,
            "exists": self.exists,
            "value": json_number(self.value),
            "paths": [p.to_dict() for p in self.paths],
        }


def estimate_limit(
    f: Callable[[float, float], float],
    x0: float,
    y0: float,
    epsilon: float = 1e-3,
) -> LimitResult:
    """Sample f along the approach paths and compare the finite values.

    If every finite path value lies within 0.01 of the first finite one,
    the limit is reported as that first value; otherwise it is
    path-dependent. With no finite value at all the limit does not exist.
    """
    f = as_total(f)
    paths = [
        PathSample(name, x0 + dx, y0 + dy, f(x0 + dx, y0 + dy))
        for name, dx, dy in approach_offsets(epsilon)
    ]

    finite = [p.value for p in paths if math.isfinite(p.value)]
    if not finite:
        status, value = LimitStatus.DOES_NOT_EXIST, NAN
    elif all(abs(v - finite[0]) < AGREEMENT_TOLERANCE for v in finite):
        status, value = LimitStatus.EXISTS, finite[0]
    else:
        status, value = LimitStatus.PATH_DEPENDENT, NAN

    logger.debug("Limit estimated", status=status.value, finite_paths=len(finite))
    return LimitResult(x0, y0, epsilon, status, value, paths)


class LimitsCapability(MathCapability):
    """Multi-path numeric limit estimation."""

    @property
    def name(self) -> str:
        return "limits"

    @property
    def description(self) -> str:
        return "Estimate a two-variable limit by comparing five approach paths"

    def __init__(self):
        """Initialize the limits capability."""
        logger.info("LimitsCapability initialized")

    def get_tools(self) -> List[ToolDefinition]:
        """Return list of tool definitions."""
        return [
            ToolDefinition(
                name="limit_estimate",
                description=(
                    "Estimate the limit of f(x, y, t) as (x, y) -> (x0, y0) by sampling along the "
                    "x-axis, y-axis, both diagonals and a parabola at offset epsilon. Status is "
                    "'exists' when all finite path values agree within 0.01, 'path-dependent' "
                    "when they disagree, 'does not exist' when none is finite. Heuristic only."
                ),
                input_schema={
                    "type": "object",
                    "properties": {
                        "expression": EXPRESSION_SCHEMA,
                        "x0": {"type": "number", "description": "x coordinate of the approach point"},
                        "y0": {"type": "number", "description": "y coordinate of the approach point"},
                        "epsilon": {"type": "number", "default": 1e-3, "description": "Approach offset"},
                        "t": TIME_SCHEMA,
                    },
                    "required": ["expression"],
                },
                handler_name="handle_limit",
            ),
        ]

    @log_execution_time
    def handle(self, tool_name: str, arguments: Dict[str, Any]) -> MathResult:
        """Route tool invocation to appropriate handler."""
        if tool_name == "limit_estimate":
            return self.handle_limit(arguments)
        else:
            raise InvalidInputError(f"Unknown tool: {tool_name}")

    def handle_limit(self, arguments: Dict[str, Any]) -> MathResult:
        """Handle limit_estimate tool."""
        settings = get_settings()
        f = surface_arg(arguments)
        x0 = number_arg(arguments, "x0", 0.0)
        y0 = number_arg(arguments, "y0", 0.0)
        epsilon = number_arg(arguments, "epsilon", settings.limit_epsilon)
        if epsilon <= 0:
            raise InvalidInputError(f"Argument 'epsilon' must be positive, got {epsilon}")

        result = estimate_limit(f, x0, y0, epsilon)
        return MathResult(result=result.to_dict(), shape=[], dtype="object")

    def list_operations(self) -> Dict[str, List[str]]:
        return {"limits": ["limit_estimate"]}
