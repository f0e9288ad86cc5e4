"""Math Engine - numeric calculus on black-box surfaces z = f(x, y, t).

Expressions are compiled to total functions (undefined samples are NaN)
and analysed purely by sampling: finite differences, Riemann sums, grid
searches, path sampling and marching squares.
"""

from surfcalc.math_engine.base import CriticalKind, CriticalPoint, MathCapability, MathResult, ToolDefinition
from surfcalc.math_engine.engine import MathEngine, get_engine

__all__ = [
    "CriticalKind",
    "CriticalPoint",
    "MathCapability",
    "MathResult",
    "ToolDefinition",
    "MathEngine",
    "get_engine",
]
