"""Domain and Range Capability.

Full-grid sampling of a surface to estimate where it is defined, the range
of its finite values and a handful of sampled local extrema, plus the
heatmap sampling used by 2D region views.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

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
    int_arg,
    number_arg,
    optional_surface_arg,
    surface_arg,
)
from surfcalc.math_engine.base import (
    CriticalKind,
    CriticalPoint,
    MathCapability,
    MathResult,
    ToolDefinition,
    json_number,
    json_numbers,
)
from surfcalc.math_engine.expression import NAN
from surfcalc.math_engine.sampling import Bounds, as_total, grid_nodes, sample_grid

EXTREMA_SEGMENTS = 20
MAX_EXTREMA = 5
CONSTRAINT_TOLERANCE = 0.1


@dataclass(frozen=True)
class DomainRangeResult:
    """Value range, validity ratio and sampled local extrema over [-r, r]^2."""

    bounds: Bounds
    resolution: int
    z_min: float
    z_max: float
    valid_points: int
    total_points: int
    critical_points: List[CriticalPoint] = field(default_factory=list)

    @property
    def valid_ratio(self) -> float:
        return self.valid_points / self.total_points if self.total_points else 0.0

    @property
    def defined_everywhere(self) -> bool:
        return self.valid_points == self.total_points

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.bounds.to_dict(),
            "resolution": self.resolution,
            "z_min": json_number(self.z_min),
            "z_max": json_number(self.z_max),
            "valid_points": self.valid_points,
            "total_points": self.total_points,
            "valid_ratio": self.valid_ratio,
            "defined_everywhere": self.defined_everywhere,
            "critical_points": [p.to_dict() for p in self.critical_points],
        }


def _local_extrema(values: np.ndarray, nodes: np.ndarray) -> List[CriticalPoint]:
    """Interior coarse-grid nodes that dominate their four axis neighbours."""
    found: List[CriticalPoint] = []
    # Interior indices 1..segments-2, matching a 20 x 20 search window
    for i in range(1, EXTREMA_SEGMENTS - 1):
        for j in range(1, EXTREMA_SEGMENTS - 1):
            z = values[j, i]
            if not math.isfinite(z):
                continue
            neighbours = (values[j, i + 1], values[j, i - 1], values[j + 1, i], values[j - 1, i])
            if not all(math.isfinite(n) for n in neighbours):
                continue
            is_max = all(z >= n for n in neighbours)
            is_min = all(z <= n for n in neighbours)
            if is_max or is_min:
                kind = CriticalKind.MAXIMUM if is_max else CriticalKind.MINIMUM
                found.append(CriticalPoint(float(nodes[i]), float(nodes[j]), float(z), kind))

    found.sort(key=lambda p: abs(p.z), reverse=True)
    return found[:MAX_EXTREMA]


def scan_domain_range(
    f: Callable[[float, float], float],
    half_range: float,
    resolution: int = 50,
) -> DomainRangeResult:
    """Scan a (resolution + 1)^2 node grid over [-half_range, half_range]^2.

    z_min and z_max are NaN when no sample is finite. A zero half range is
    widened to a unit square centred on the origin. Local extrema come from a
    separate 20-segment coarse grid; a node qualifies only when all four
    axis neighbours are defined. A flat neighbourhood is labelled Maximum.
    """
    f = as_total(f)
    r = abs(half_range) or 0.5
    n = max(1, int(resolution))
    bounds = Bounds.square(r)

    if not math.isfinite(r):
        return DomainRangeResult(bounds, n, NAN, NAN, 0, (n + 1) ** 2)

    nodes = grid_nodes(-r, r, n)
    values = sample_grid(f, nodes, nodes)
    finite = np.isfinite(values)
    valid = int(finite.sum())
    if valid:
        z_min = float(values[finite].min())
        z_max = float(values[finite].max())
    else:
        z_min = z_max = NAN

    coarse = grid_nodes(-r, r, EXTREMA_SEGMENTS)
    extrema = _local_extrema(sample_grid(f, coarse, coarse), coarse)

    logger.debug("Domain scanned", samples=values.size, valid=valid, extrema=len(extrema))
    return DomainRangeResult(bounds, n, z_min, z_max, valid, int(values.size), extrema)


@dataclass(frozen=True)
class HeatmapResult:
    """Raw and normalised samples on a resolution x resolution grid."""

    bounds: Bounds
    xs: np.ndarray
    ys: np.ndarray
    values: np.ndarray
    normalized: np.ndarray
    z_min: float
    z_max: float
    constraint_points: List[tuple] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bounds": self.bounds.to_dict(),
            "resolution": len(self.xs),
            "xs": self.xs.tolist(),
            "ys": self.ys.tolist(),
            "values": json_numbers(self.values.tolist()),
            "normalized": json_numbers(self.normalized.tolist()),
            "z_min": json_number(self.z_min),
            "z_max": json_number(self.z_max),
            "constraint_points": [{"x": x, "y": y} for x, y in self.constraint_points],
        }


def sample_heatmap(
    f: Callable[[float, float], float],
    bounds: Bounds,
    resolution: int = 100,
    constraint: Optional[Callable[[float, float], float]] = None,
) -> HeatmapResult:
    """Sample f at x = x_min + (i / resolution) * width, likewise for y.

    Values are normalised to [0, 1] by the finite min and max; a normalised
    value is NaN where the sample is undefined or the field is flat. When a
    constraint g is given, grid points with |g| < 0.1 are reported as an
    approximation of the curve g = 0. Rows of `values` are indexed by y.
    """
    f = as_total(f)
    bounds = bounds.normalized()
    n = max(1, int(resolution))
    xs = bounds.x_min + (np.arange(n) / n) * bounds.width
    ys = bounds.y_min + (np.arange(n) / n) * bounds.height

    values = sample_grid(f, xs, ys)
    finite = np.isfinite(values)
    if finite.any():
        z_min = float(values[finite].min())
        z_max = float(values[finite].max())
    else:
        z_min = z_max = NAN

    normalized = np.full(values.shape, NAN)
    if finite.any() and z_max > z_min:
        normalized[finite] = (values[finite] - z_min) / (z_max - z_min)

    points: List[tuple] = []
    if constraint is not None:
        g = as_total(constraint)
        for y in ys:
            for x in xs:
                if abs(g(float(x), float(y))) < CONSTRAINT_TOLERANCE:
                    points.append((float(x), float(y)))

    return HeatmapResult(bounds, xs, ys, values, normalized, z_min, z_max, points)


class DomainCapability(MathCapability):
    """Domain/range scanning and heatmap sampling."""

    @property
    def name(self) -> str:
        return "domain"

    @property
    def description(self) -> str:
        return "Estimate domain, value range and local extrema; sample heatmaps"

    def __init__(self):
        """Initialize the domain capability."""
        logger.info("DomainCapability initialized")

    def get_tools(self) -> List[ToolDefinition]:
        """Return list of tool definitions."""
        return [
            ToolDefinition(
                name="domain_range",
                description=(
                    "Sample z = f(x, y, t) on a (resolution + 1)^2 grid over [-range, range]^2. "
                    "Returns the min and max of the defined values, the fraction of defined "
                    "samples and up to 5 sampled local extrema sorted by |z|."
                ),
                input_schema={
                    "type": "object",
                    "properties": {
                        "expression": EXPRESSION_SCHEMA,
                        "range": {"type": "number", "description": "Half-width of the square domain"},
                        "resolution": {"type": "integer", "minimum": 1, "maximum": 1000, "description": "Segments per axis"},
                        "t": TIME_SCHEMA,
                    },
                    "required": ["expression"],
                },
                handler_name="handle_domain_range",
            ),
            ToolDefinition(
                name="heatmap",
                description=(
                    "Sample z = f(x, y, t) on a resolution x resolution grid over a rectangle and "
                    "return raw values, values normalised to [0, 1] (null where undefined) and, "
                    "for an optional constraint g, the grid points where |g| < 0.1."
                ),
                input_schema={
                    "type": "object",
                    "properties": {
                        "expression": EXPRESSION_SCHEMA,
                        "constraint": {"type": "string", "description": "Optional constraint g(x, y, t)"},
                        **BOUNDS_PROPERTIES,
                        "resolution": {"type": "integer", "minimum": 1, "maximum": 400, "description": "Samples per axis"},
                        "t": TIME_SCHEMA,
                    },
                    "required": ["expression"],
                },
                handler_name="handle_heatmap",
            ),
        ]

    @log_execution_time
    def handle(self, tool_name: str, arguments: Dict[str, Any]) -> MathResult:
        """Route tool invocation to appropriate handler."""
        if tool_name == "domain_range":
            return self.handle_domain_range(arguments)
        elif tool_name == "heatmap":
            return self.handle_heatmap(arguments)
        else:
            raise InvalidInputError(f"Unknown tool: {tool_name}")

    def handle_domain_range(self, arguments: Dict[str, Any]) -> MathResult:
        """Handle domain_range tool."""
        settings = get_settings()
        f = surface_arg(arguments)
        half_range = number_arg(arguments, "range", settings.analysis_range)
        resolution = int_arg(arguments, "resolution", settings.domain_resolution, minimum=1, maximum=1000)

        result = scan_domain_range(f, half_range, resolution)
        return MathResult(result=result.to_dict(), shape=[], dtype="object")

    def handle_heatmap(self, arguments: Dict[str, Any]) -> MathResult:
        """Handle heatmap tool."""
        settings = get_settings()
        f = surface_arg(arguments)
        g = optional_surface_arg(arguments, "constraint")
        bounds = bounds_arg(arguments, settings.analysis_range)
        resolution = int_arg(arguments, "resolution", settings.domain_resolution, minimum=1, maximum=400)

        result = sample_heatmap(f, bounds, resolution, g)
        return MathResult(
            result=result.to_dict(),
            shape=[len(result.ys), len(result.xs)],
            dtype="float64",
        )

    def list_operations(self) -> Dict[str, List[str]]:
        return {"domain": ["domain_range", "heatmap"]}
