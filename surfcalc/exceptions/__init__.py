"""Custom exceptions for the surfcalc application.

All exceptions include detailed error messages designed to be returned to
tool clients, enabling them to correct the request and retry.
"""

from surfcalc.exceptions.base import (
    SurfcalcError,
    ValidationError,
    RegistryError,
    ConfigurationError,
    MathError,
    InvalidInputError,
    ComputationError,
    ExpressionSyntaxError,
)

__all__ = [
    "SurfcalcError",
    "ValidationError",
    "RegistryError",
    "ConfigurationError",
    "MathError",
    "InvalidInputError",
    "ComputationError",
    "ExpressionSyntaxError",
]
