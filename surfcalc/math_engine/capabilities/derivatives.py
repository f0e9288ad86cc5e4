"""Partial Derivatives Capability.

Central-difference estimates of first, second and mixed partial derivatives
of a black-box surface, the gradient vector, and a sampled gradient field.
There is no adaptive step selection: accuracy is controlled by the caller's
choice of h. An undefined sample propagates as NaN into every output that
depends on it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from surfcalc.config import get_settings
from surfcalc.exceptions import InvalidInputError
from surfcalc.logger import session_logger as logger
from surfcalc.logger.decorators import log_execution_time
from surfcalc.math_engine.arguments import (
    EXPRESSION_SCHEMA,
    TIME_SCHEMA,
    int_arg,
    number_arg,
    surface_arg,
)
from surfcalc.math_engine.base import (
    CriticalKind,
    MathCapability,
    MathResult,
    ToolDefinition,
    json_number,
)
from surfcalc.math_engine.expression import NAN
from surfcalc.math_engine.sampling import as_total

DEFAULT_STEP = 1e-3
MIN_FIELD_LENGTH = 1e-9


def _valid_step(h: float) -> bool:
    return math.isfinite(h) and h > 0


def central_gradient(
    f: Callable[[float, float], float],
    x: float,
    y: float,
    h: float = DEFAULT_STEP,
) -> Tuple[float, float]:
    """(fx, fy) by central difference; (NaN, NaN) for a non-positive step."""
    if not _valid_step(h):
        return NAN, NAN
    fx = (f(x + h, y) - f(x - h, y)) / (2 * h)
    fy = (f(x, y + h) - f(x, y - h)) / (2 * h)
    return fx, fy


@dataclass(frozen=True)
class DerivativeResult:
    """Partial derivatives of f at (x, y)."""

    x: float
    y: float
    h: float
    value: float
    fx: float
    fy: float
    fxx: float
    fyy: float
    fxy: float
    gradient_magnitude: float
    gradient_direction: Tuple[float, float]

    @property
    def hessian_determinant(self) -> float:
        return self.fxx * self.fyy - self.fxy * self.fxy

    def directional_derivative(self, ux: float, uy: float) -> float:
        """Rate of change along (ux, uy); the direction is normalised first."""
        norm = math.hypot(ux, uy)
        if not math.isfinite(norm) or norm == 0:
            return NAN
        return (self.fx * ux + self.fy * uy) / norm

    def classify(self, gradient_tolerance: float = 1e-3) -> Optional[CriticalKind]:
        """Second-derivative test at a (near-)stationary point.

        Returns None when the gradient is not small, a value is undefined,
        or the test is inconclusive (D == 0).
        """
        if not (self.gradient_magnitude <= gradient_tolerance):
            return None
        det = self.hessian_determinant
        if not math.isfinite(det) or det == 0:
            return None
        if det < 0:
            return CriticalKind.SADDLE
        return CriticalKind.MINIMUM if self.fxx > 0 else CriticalKind.MAXIMUM

    def to_dict(self) -> Dict[str, Any]:
        kind = self.classify()
        return {
            "point": {"x": self.x, "y": self.y},
            "h": self.h,
            "value": json_number(self.value),
            "fx": json_number(self.fx),
            "fy": json_number(self.fy),
            "fxx": json_number(self.fxx),
            "fyy": json_number(self.fyy),
            "fxy": json_number(self.fxy),
            "gradient_magnitude": json_number(self.gradient_magnitude),
            "gradient_direction": {
                "x": json_number(self.gradient_direction[0]),
                "y": json_number(self.gradient_direction[1]),
            },
            "hessian_determinant": json_number(self.hessian_determinant),
            "classification": kind.value if kind else None,
        }


def derivatives(
    f: Callable[[float, float], float],
    x: float,
    y: float,
    h: float = DEFAULT_STEP,
) -> DerivativeResult:
    """Estimate fx, fy, fxx, fyy, fxy and the gradient of f at (x, y).

    Args:
        f: Black-box surface f(x, y)
        x, y: Evaluation point
        h: Finite-difference step; a non-positive or non-finite step gives
            an all-NaN result

    Returns:
        DerivativeResult; never raises
    """
    f = as_total(f)
    value = f(x, y)

    if not _valid_step(h):
        return DerivativeResult(x, y, h, value, NAN, NAN, NAN, NAN, NAN, NAN, (NAN, NAN))

    f_xp = f(x + h, y)
    f_xm = f(x - h, y)
    f_yp = f(x, y + h)
    f_ym = f(x, y - h)

    fx = (f_xp - f_xm) / (2 * h)
    fy = (f_yp - f_ym) / (2 * h)
    fxx = (f_xp - 2 * value + f_xm) / (h * h)
    fyy = (f_yp - 2 * value + f_ym) / (h * h)
    fxy = (
        f(x + h, y + h) - f(x + h, y - h) - f(x - h, y + h) + f(x - h, y - h)
    ) / (4 * h * h)

    magnitude = math.sqrt(fx * fx + fy * fy)
    if math.isnan(magnitude):
        direction = (NAN, NAN)
    elif magnitude > 0:
        direction = (fx / magnitude, fy / magnitude)
    else:
        direction = (0.0, 0.0)

    return DerivativeResult(x, y, h, value, fx, fy, fxx, fyy, fxy, magnitude, direction)


@dataclass(frozen=True)
class GradientVector:
    x: float
    y: float
    direction: Tuple[float, float]
    magnitude: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "direction": {"x": self.direction[0], "y": self.direction[1]},
            "magnitude": self.magnitude,
        }


@dataclass(frozen=True)
class GradientFieldResult:
    half_range: float
    samples_per_axis: int
    vectors: List[GradientVector] = field(default_factory=list)

    @property
    def max_magnitude(self) -> float:
        return max((v.magnitude for v in self.vectors), default=NAN)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "range": self.half_range,
            "samples_per_axis": self.samples_per_axis,
            "count": len(self.vectors),
            "max_magnitude": json_number(self.max_magnitude),
            "vectors": [v.to_dict() for v in self.vectors],
        }


def gradient_field(
    f: Callable[[float, float], float],
    half_range: float,
    vectors: int,
    step: float = DEFAULT_STEP,
) -> GradientFieldResult:
    """Sample the gradient on an n x n grid over [-half_range, half_range]^2.

    n = max(2, vectors). Vectors with an undefined or vanishing
    (<= 1e-9) length are dropped.
    """
    f = as_total(f)
    r = abs(half_range)
    n = max(2, int(vectors))
    kept: List[GradientVector] = []

    if not (math.isfinite(r) and _valid_step(step)):
        return GradientFieldResult(r, n, kept)

    for i in range(n):
        xi = -r + (2 * r * i) / (n - 1)
        for j in range(n):
            yj = -r + (2 * r * j) / (n - 1)
            fx, fy = central_gradient(f, xi, yj, step)
            length = math.hypot(fx, fy)
            if math.isfinite(length) and length > MIN_FIELD_LENGTH:
                kept.append(GradientVector(xi, yj, (fx / length, fy / length), length))

    logger.debug("Gradient field sampled", samples=n * n, kept=len(kept))
    return GradientFieldResult(r, n, kept)


class DerivativesCapability(MathCapability):
    """Finite-difference derivatives and gradient fields."""

    @property
    def name(self) -> str:
        return "derivatives"

    @property
    def description(self) -> str:
        return "Central-difference partial derivatives, gradient and gradient field of f(x, y, t)"

    def __init__(self):
        """Initialize the derivatives capability."""
        logger.info("DerivativesCapability initialized")

    def get_tools(self) -> List[ToolDefinition]:
        """Return list of tool definitions."""
        return [
            ToolDefinition(
                name="partial_derivatives",
                description=(
                    "Estimate fx, fy, fxx, fyy, fxy, the gradient magnitude and direction of "
                    "z = f(x, y, t) at a point by central differences with step h. Also reports "
                    "the Hessian determinant and a second-derivative-test classification when "
                    "the gradient vanishes."
                ),
                input_schema={
                    "type": "object",
                    "properties": {
                        "expression": EXPRESSION_SCHEMA,
                        "x": {"type": "number", "description": "x coordinate of the point"},
                        "y": {"type": "number", "description": "y coordinate of the point"},
                        "h": {"type": "number", "default": DEFAULT_STEP, "description": "Finite-difference step"},
                        "t": TIME_SCHEMA,
                    },
                    "required": ["expression", "x", "y"],
                },
                handler_name="handle_partials",
            ),
            ToolDefinition(
                name="gradient_field",
                description=(
                    "Sample the gradient of z = f(x, y, t) on an n x n grid over "
                    "[-range, range]^2 and return position, unit direction and magnitude "
                    "of each non-vanishing vector."
                ),
                input_schema={
                    "type": "object",
                    "properties": {
                        "expression": EXPRESSION_SCHEMA,
                        "range": {"type": "number", "description": "Half-width of the square domain"},
                        "vectors": {"type": "integer", "minimum": 2, "maximum": 200, "description": "Samples per axis"},
                        "step": {"type": "number", "default": DEFAULT_STEP, "description": "Finite-difference step"},
                        "t": TIME_SCHEMA,
                    },
                    "required": ["expression"],
                },
                handler_name="handle_gradient_field",
            ),
        ]

    @log_execution_time
    def handle(self, tool_name: str, arguments: Dict[str, Any]) -> MathResult:
        """Route tool invocation to appropriate handler."""
        if tool_name == "partial_derivatives":
            return self.handle_partials(arguments)
        elif tool_name == "gradient_field":
            return self.handle_gradient_field(arguments)
        else:
            raise InvalidInputError(f"Unknown tool: {tool_name}")

    def handle_partials(self, arguments: Dict[str, Any]) -> MathResult:
        """Handle partial_derivatives tool."""
        settings = get_settings()
        f = surface_arg(arguments)
        if "x" not in arguments or "y" not in arguments:
            raise InvalidInputError("Both 'x' and 'y' are required")
        x = number_arg(arguments, "x", 0.0)
        y = number_arg(arguments, "y", 0.0)
        h = number_arg(arguments, "h", settings.derivative_step)
        if h <= 0:
            raise InvalidInputError(f"Step 'h' must be positive, got {h}")

        result = derivatives(f, x, y, h)
        return MathResult(result=result.to_dict(), shape=[], dtype="object")

    def handle_gradient_field(self, arguments: Dict[str, Any]) -> MathResult:
        """Handle gradient_field tool."""
        settings = get_settings()
        f = surface_arg(arguments)
        half_range = number_arg(arguments, "range", settings.analysis_range)
        vectors = int_arg(arguments, "vectors", settings.gradient_vectors, minimum=2, maximum=200)
        step = number_arg(arguments, "step", settings.derivative_step)
        if step <= 0:
            raise InvalidInputError(f"Step 'step' must be positive, got {step}")

        result = gradient_field(f, half_range, vectors, step)
        return MathResult(result=result.to_dict(), shape=[len(result.vectors)], dtype="object")

    def list_operations(self) -> Dict[str, List[str]]:
        return {"derivatives": ["partial_derivatives", "gradient_field"]}
