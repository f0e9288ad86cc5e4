"""Tool argument parsing shared by the capability handlers.

The analysis functions never raise; these helpers are the one place where
a malformed tool request turns into an InvalidInputError.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Optional

from surfcalc.exceptions import InvalidInputError
from surfcalc.math_engine.expression import BoundExpression, compile_expression
from surfcalc.math_engine.sampling import Bounds


def require_expression(arguments: Dict[str, Any], key: str = "expression") -> str:
    value = arguments.get(key)
    if value is None:
        raise InvalidInputError(f"Missing required argument: {key}")
    if not isinstance(value, str):
        raise InvalidInputError(
            f"Argument '{key}' must be a string expression, got {type(value).__name__}"
        )
    return value


def optional_expression(arguments: Dict[str, Any], key: str) -> Optional[str]:
    """An optional expression; missing or blank means 'not supplied'."""
    value = arguments.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInputError(
            f"Argument '{key}' must be a string expression, got {type(value).__name__}"
        )
    return value if value.strip() else None


def number_arg(arguments: Dict[str, Any], key: str, default: float) -> float:
    value = arguments.get(key, default)
    if value is None:
        value = default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(
            f"Argument '{key}' must be a number, got {type(value).__name__}"
        )
    value = float(value)
    if not math.isfinite(value):
        raise InvalidInputError(f"Argument '{key}' must be finite, got {value}")
    return value


def int_arg(
    arguments: Dict[str, Any],
    key: str,
    default: int,
    minimum: Optional[int] = None,
    maximum: Optional[int] = None,
) -> int:
    value = number_arg(arguments, key, default)
    if value != int(value):
        raise InvalidInputError(f"Argument '{key}' must be an integer, got {value}")
    result = int(value)
    if minimum is not None and result < minimum:
        raise InvalidInputError(f"Argument '{key}' must be >= {minimum}, got {result}")
    if maximum is not None and result > maximum:
        raise InvalidInputError(f"Argument '{key}' must be <= {maximum}, got {result}")
    return result


def bounds_arg(arguments: Dict[str, Any], default_range: float) -> Bounds:
    """Read x_min/x_max/y_min/y_max, defaulting to [-range, range]^2."""
    half = abs(number_arg(arguments, "range", default_range))
    return Bounds(
        number_arg(arguments, "x_min", -half),
        number_arg(arguments, "x_max", half),
        number_arg(arguments, "y_min", -half),
        number_arg(arguments, "y_max", half),
    )


def surface_arg(arguments: Dict[str, Any], key: str = "expression") -> BoundExpression:
    """Compile f(x, y, t) from the arguments and bind it at the requested t."""
    expression = require_expression(arguments, key)
    t = number_arg(arguments, "t", 0.0)
    return compile_expression(expression, 3).at_time(t)


def optional_surface_arg(arguments: Dict[str, Any], key: str) -> Optional[BoundExpression]:
    expression = optional_expression(arguments, key)
    if expression is None:
        return None
    t = number_arg(arguments, "t", 0.0)
    return compile_expression(expression, 3).at_time(t)


# Schema fragments reused by the tool definitions
EXPRESSION_SCHEMA = {
    "type": "string",
    "description": "Surface z = f(x, y, t), e.g. 'sin(x)*cos(y) + 0.3*sin(2*t)'. "
                   "Operators + - * / ^, functions sin cos tan asin acos atan atan2 sqrt abs pow "
                   "exp log ln min max floor ceil round trunc sinh cosh tanh hypot sign, "
                   "constants pi tau e.",
}

TIME_SCHEMA = {
    "type": "number",
    "default": 0.0,
    "description": "Fixed value of the time parameter t.",
}

BOUNDS_PROPERTIES = {
    "x_min": {"type": "number", "description": "Lower x bound (default -range)."},
    "x_max": {"type": "number", "description": "Upper x bound (default range)."},
    "y_min": {"type": "number", "description": "Lower y bound (default -range)."},
    "y_max": {"type": "number", "description": "Upper y bound (default range)."},
    "range": {"type": "number", "description": "Half-width of the default square domain."},
}
