"""Sampling grids and black-box evaluation helpers shared by the analysis modules.

Grids are axis aligned and uniformly spaced. A rectangle with a zero-width
or reversed axis is corrected (widened by one unit, swapped) before any
sample is taken, so every grid step is strictly positive.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict

import numpy as np

from surfcalc.math_engine.expression import NAN, BoundExpression, CompiledExpression

SurfaceFunction = Callable[[float, float], float]


@dataclass(frozen=True)
class Bounds:
    """Rectangular domain [x_min, x_max] x [y_min, y_max]."""

    x_min: float
    x_max: float
    y_min: float
    y_max: float

    @classmethod
    def square(cls, half_width: float) -> "Bounds":
        """The square [-half_width, half_width]^2."""
        r = abs(float(half_width))
        return cls(-r, r, -r, r)

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.x_min, self.x_max, self.y_min, self.y_max))

    def normalized(self) -> "Bounds":
        """Widen a degenerate axis by 1 unit, then swap a reversed one."""
        x0, x1, y0, y1 = self.x_min, self.x_max, self.y_min, self.y_max
        if x0 == x1:
            x1 = x0 + 1
        if y0 == y1:
            y1 = y0 + 1
        if x0 > x1:
            x0, x1 = x1, x0
        if y0 > y1:
            y0, y1 = y1, y0
        return Bounds(x0, x1, y0, y1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x_min": self.x_min,
            "x_max": self.x_max,
            "y_min": self.y_min,
            "y_max": self.y_max,
        }


def grid_nodes(lo: float, hi: float, segments: int) -> np.ndarray:
    """segments + 1 uniformly spaced nodes from lo to hi."""
    step = (hi - lo) / segments
    return lo + np.arange(segments + 1) * step


def cell_centers(lo: float, hi: float, segments: int) -> np.ndarray:
    """Midpoints of `segments` equal cells spanning [lo, hi]."""
    step = (hi - lo) / segments
    return lo + (np.arange(segments) + 0.5) * step


def as_total(f: Callable[..., float]) -> SurfaceFunction:
    """Wrap a black-box f(x, y) so it never raises and returns NaN when undefined.

    Compiled expressions are already total; a compiled f(x, y, t) is bound
    at t = 0.
    """
    if isinstance(f, BoundExpression):
        return f
    if isinstance(f, CompiledExpression):
        return f.at_time(0.0)

    def total(x: float, y: float) -> float:
        try:
            value = float(f(x, y))
        except Exception:
            return NAN
        return value if math.isfinite(value) else NAN

    return total


def sample_grid(f: SurfaceFunction, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """Evaluate f on the tensor grid; result[j, i] = f(xs[i], ys[j])."""
    values = np.empty((len(ys), len(xs)), dtype=np.float64)
    for j, y in enumerate(ys):
        for i, x in enumerate(xs):
            values[j, i] = f(float(x), float(y))
    return values
