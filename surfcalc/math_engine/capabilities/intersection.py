"""Surface Intersection Capability.

Marching-squares extraction of the curve where two surfaces z = f1(x, y)
and z = f2(x, y) meet: sign changes of g = f1 - f2 along grid cell edges
are located by linear interpolation and lifted onto f1.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

import numpy as np

from surfcalc.config import get_settings
from surfcalc.exceptions import InvalidInputError
from surfcalc.logger import session_logger as logger
from surfcalc.logger.decorators import log_execution_time
from surfcalc.math_engine.arguments import (
    BOUNDS_PROPERTIES,
    EXPRESSION_SCHEMA,
    TIME_SCHEMA,
    bounds_arg,
    number_arg,
    surface_arg,
)
from surfcalc.math_engine.base import MathCapability, MathResult, ToolDefinition
from surfcalc.math_engine.sampling import Bounds, as_total, grid_nodes, sample_grid

ZERO_TOLERANCE = 1e-8
FRACTION_SLACK = 1e-6
MIN_SEGMENTS = 2
MAX_SEGMENTS = 200


@dataclass(frozen=True)
class IntersectionPoint:
    x: float
    y: float
    z: float

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y, "z": self.z}


def _sign(value: float) -> int:
    if abs(value) <= ZERO_TOLERANCE:
        return 0
    return 1 if value > 0 else -1


def clamp_segments(n: float) -> int:
    """Grid segments per axis, floored and clamped to [2, 200]."""
    if not math.isfinite(n):
        return MIN_SEGMENTS if n < 0 else MAX_SEGMENTS
    return max(MIN_SEGMENTS, min(MAX_SEGMENTS, int(math.floor(n))))


def extract_intersection(
    f1: Callable[[float, float], float],
    f2: Callable[[float, float], float],
    bounds: Bounds,
    n: float = 80,
) -> List[IntersectionPoint]:
    """Approximate {(x, y): f1(x, y) = f2(x, y)} on an (N + 1)^2 node grid.

    Cells are visited row by row (y outer, x inner) and each cell's edges in
    the order bottom, right, top, left, so the output is deterministic.
    Values within 1e-8 of zero count as zero; an edge with both ends zero
    or with an undefined end is skipped, as is a crossing whose z = f1(x, y)
    is undefined. Shared edges are visited from both neighbouring cells, so
    a crossing can appear twice.
    """
    f1 = as_total(f1)
    f2 = as_total(f2)
    bounds = bounds.normalized()
    segments = clamp_segments(n)
    points: List[IntersectionPoint] = []

    if not bounds.is_finite():
        return points

    xs = grid_nodes(bounds.x_min, bounds.x_max, segments)
    ys = grid_nodes(bounds.y_min, bounds.y_max, segments)
    g = sample_grid(f1, xs, ys) - sample_grid(f2, xs, ys)

    def crossing(xa, ya, ga, xb, yb, gb):
        if not (np.isfinite(ga) and np.isfinite(gb)):
            return
        sa, sb = _sign(ga), _sign(gb)
        if sa == sb:
            # Includes the edge lying entirely on the curve (both zero)
            return
        denominator = gb - ga
        if abs(denominator) <= ZERO_TOLERANCE:
            return
        fraction = -ga / denominator
        if fraction < -FRACTION_SLACK or fraction > 1 + FRACTION_SLACK:
            return
        x = float(xa + fraction * (xb - xa))
        y = float(ya + fraction * (yb - ya))
        z = f1(x, y)
        if math.isfinite(z):
            points.append(IntersectionPoint(x, y, z))

    for j in range(segments):
        y0, y1 = ys[j], ys[j + 1]
        for i in range(segments):
            x0, x1 = xs[i], xs[i + 1]
            g00 = g[j, i]
            g10 = g[j, i + 1]
            g11 = g[j + 1, i + 1]
            g01 = g[j + 1, i]

            crossing(x0, y0, g00, x1, y0, g10)  # bottom
            crossing(x1, y0, g10, x1, y1, g11)  # right
            crossing(x1, y1, g11, x0, y1, g01)  # top
            crossing(x0, y1, g01, x0, y0, g00)  # left

    logger.debug("Intersection extracted", segments=segments, points=len(points))
    return points


class IntersectionCapability(MathCapability):
    """Intersection curves of two surfaces."""

    @property
    def name(self) -> str:
        return "intersection"

    @property
    def description(self) -> str:
        return "Marching-squares extraction of the curve where two surfaces are equal"

    def __init__(self):
        """Initialize the intersection capability."""
        logger.info("IntersectionCapability initialized")

    def get_tools(self) -> List[ToolDefinition]:
        """Return list of tool definitions."""
        return [
            ToolDefinition(
                name="surface_intersection",
                description=(
                    "Points approximating the curve where z = f1(x, y, t) meets z = f2(x, y, t), "
                    "found by sign changes of f1 - f2 along the edges of an N x N grid "
                    "(N clamped to [2, 200]) and linear interpolation. z is taken from f1."
                ),
                input_schema={
                    "type": "object",
                    "properties": {
                        "expression": EXPRESSION_SCHEMA,
                        "other": {"type": "string", "description": "Second surface f2(x, y, t)"},
                        **BOUNDS_PROPERTIES,
                        "resolution": {"type": "number", "default": 80, "description": "Grid segments per axis"},
                        "t": TIME_SCHEMA,
                    },
                    "required": ["expression", "other"],
                },
                handler_name="handle_intersection",
            ),
        ]

    @log_execution_time
    def handle(self, tool_name: str, arguments: Dict[str, Any]) -> MathResult:
        """Route tool invocation to appropriate handler."""
        if tool_name == "surface_intersection":
            return self.handle_intersection(arguments)
        else:
            raise InvalidInputError(f"Unknown tool: {tool_name}")

    def handle_intersection(self, arguments: Dict[str, Any]) -> MathResult:
        """Handle surface_intersection tool."""
        settings = get_settings()
        f1 = surface_arg(arguments)
        f2 = surface_arg(arguments, "other")
        bounds = bounds_arg(arguments, settings.analysis_range)
        resolution = number_arg(arguments, "resolution", settings.intersection_resolution)

        points = extract_intersection(f1, f2, bounds, resolution)
        return MathResult(
            result={
                "segments": clamp_segments(resolution),
                "count": len(points),
                "points": [p.to_dict() for p in points],
            },
            shape=[len(points)],
            dtype="object",
        )

    def list_operations(self) -> Dict[str, List[str]]:
        return {"intersection": ["surface_intersection"]}
