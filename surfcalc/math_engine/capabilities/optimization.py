"""Constrained Optimization Capability.

A coarse grid search for candidates of "optimise f(x, y) subject to
g(x, y) = 0" by the Lagrange condition grad f = lambda grad g. This is a
sampling heuristic with fixed tolerances, not a solver: the returned points
are approximate and their accuracy is bounded by the de-duplication radius
rather than the grid step.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

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
from surfcalc.math_engine.base import (
    CriticalKind,
    CriticalPoint,
    MathCapability,
    MathResult,
    ToolDefinition,
    json_number,
)
from surfcalc.math_engine.capabilities.derivatives import central_gradient
from surfcalc.math_engine.sampling import as_total

CONSTRAINT_TOLERANCE = 0.1
MIN_CONSTRAINT_GRADIENT = 0.01
MULTIPLIER_TOLERANCE = 0.5
DEDUP_RADIUS = 0.5
GRADIENT_STEP = 1e-3
MAX_POINTS = 6


@dataclass(frozen=True)
class LagrangePoint(CriticalPoint):
    """A constrained candidate with its averaged multiplier."""

    multiplier: float

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["lambda"] = json_number(self.multiplier)
        return data


@dataclass(frozen=True)
class OptimizationResult:
    """Labelled constrained critical-point candidates, highest z first."""

    points: List[LagrangePoint] = field(default_factory=list)
    candidates: int = 0
    converged: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "points": [p.to_dict() for p in self.points],
            "count": len(self.points),
            "candidates": self.candidates,
            "converged": self.converged,
        }


def _accept(f, g, x: float, y: float):
    """(z, lambda) if (x, y) passes the Lagrange filters, else None."""
    g_value = g(x, y)
    if not (abs(g_value) < CONSTRAINT_TOLERANCE):
        return None

    gx, gy = central_gradient(g, x, y, GRADIENT_STEP)
    if not (abs(gx) > MIN_CONSTRAINT_GRADIENT and abs(gy) > MIN_CONSTRAINT_GRADIENT):
        return None

    fx, fy = central_gradient(f, x, y, GRADIENT_STEP)
    lambda_x = fx / gx
    lambda_y = fy / gy
    if not (math.isfinite(lambda_x) and math.isfinite(lambda_y)):
        return None
    if not (abs(lambda_x - lambda_y) < MULTIPLIER_TOLERANCE):
        return None

    z = f(x, y)
    if not math.isfinite(z):
        return None
    return z, (lambda_x + lambda_y) / 2


def optimize_constrained(
    f: Callable[[float, float], float],
    g: Callable[[float, float], float],
    search_range: float = 5.0,
    search_step: float = 0.3,
) -> OptimizationResult:
    """Grid-search Lagrange candidates over [-search_range, search_range]^2.

    A grid point is a candidate when |g| < 0.1, both |gx| and |gy| exceed
    0.01 (points where either component of grad g is near zero are skipped),
    and the per-axis multipliers fx/gx and fy/gy agree within 0.5; their
    average is kept as the point's multiplier.
    Candidates closer than 0.5 to an earlier one are dropped (first seen
    wins). Survivors are sorted by z descending; the first is labelled
    Maximum and, when there are at least two, the last Minimum. At most six
    points are returned.

    A non-positive or non-finite step gives an empty, non-converged result.
    """
    f = as_total(f)
    g = as_total(g)
    r = abs(search_range)

    if not (math.isfinite(r) and math.isfinite(search_step) and search_step > 0):
        return OptimizationResult()

    count = int(math.floor(2 * r / search_step + 1e-9))
    accepted: List[tuple] = []
    candidates = 0

    for i in range(count + 1):
        x = -r + i * search_step
        for j in range(count + 1):
            y = -r + j * search_step
            hit = _accept(f, g, x, y)
            if hit is None:
                continue
            candidates += 1
            if any(math.hypot(x - px, y - py) < DEDUP_RADIUS for px, py, _, _ in accepted):
                continue
            accepted.append((x, y, hit[0], hit[1]))

    accepted.sort(key=lambda p: p[2], reverse=True)

    points: List[LagrangePoint] = []
    last = len(accepted) - 1
    for index, (x, y, z, multiplier) in enumerate(accepted):
        if index == 0:
            kind = CriticalKind.MAXIMUM
        elif index == last:
            kind = CriticalKind.MINIMUM
        else:
            kind = CriticalKind.CRITICAL
        points.append(LagrangePoint(x, y, z, kind, multiplier))

    logger.debug(
        "Lagrange search finished",
        grid_points=(count + 1) ** 2,
        candidates=candidates,
        distinct=len(points),
    )
    return OptimizationResult(points[:MAX_POINTS], candidates, converged=bool(points))


class OptimizationCapability(MathCapability):
    """Constrained optimisation by Lagrange multiplier grid search."""

    @property
    def name(self) -> str:
        return "optimization"

    @property
    def description(self) -> str:
        return "Grid-search candidates for optimising f(x, y) subject to g(x, y) = 0"

    def __init__(self):
        """Initialize the optimization capability."""
        logger.info("OptimizationCapability initialized")

    def get_tools(self) -> List[ToolDefinition]:
        """Return list of tool definitions."""
        return [
            ToolDefinition(
                name="lagrange_optimize",
                description=(
                    "Find approximate constrained extrema of z = f(x, y, t) on the curve "
                    "g(x, y, t) = 0 by scanning a grid for points where grad f is parallel to "
                    "grad g. Returns up to 6 points sorted by z, labelled Maximum, Critical Point "
                    "or Minimum. Heuristic: accuracy is about 0.5 in x and y."
                ),
                input_schema={
                    "type": "object",
                    "properties": {
                        "expression": EXPRESSION_SCHEMA,
                        "constraint": {"type": "string", "description": "Constraint g(x, y, t); the curve is g = 0"},
                        "range": {"type": "number", "default": 5.0, "description": "Search half-width"},
                        "step": {"type": "number", "default": 0.3, "description": "Grid spacing"},
                        "t": TIME_SCHEMA,
                    },
                    "required": ["expression", "constraint"],
                },
                handler_name="handle_lagrange",
            ),
        ]

    @log_execution_time
    def handle(self, tool_name: str, arguments: Dict[str, Any]) -> MathResult:
        """Route tool invocation to appropriate handler."""
        if tool_name == "lagrange_optimize":
            return self.handle_lagrange(arguments)
        else:
            raise InvalidInputError(f"Unknown tool: {tool_name}")

    def handle_lagrange(self, arguments: Dict[str, Any]) -> MathResult:
        """Handle lagrange_optimize tool."""
        settings = get_settings()
        f = surface_arg(arguments)
        g = surface_arg(arguments, "constraint")
        search_range = number_arg(arguments, "range", settings.lagrange_search_range)
        step = number_arg(arguments, "step", settings.lagrange_search_step)
        if step <= 0:
            raise InvalidInputError(f"Argument 'step' must be positive, got {step}")
        if 2 * abs(search_range) / step > 4000:
            raise InvalidInputError(
                "Search grid too large",
                details={"range": search_range, "step": step, "max_points_per_axis": 4000},
            )

        result = optimize_constrained(f, g, search_range, step)
        return MathResult(result=result.to_dict(), shape=[len(result.points)], dtype="object")

    def list_operations(self) -> Dict[str, List[str]]:
        return {"optimization": ["lagrange_optimize"]}
