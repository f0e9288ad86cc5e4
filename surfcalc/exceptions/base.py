"""Exception classes for the surfcalc application.

Every exception carries a machine-readable code, a human-readable message
and an optional details mapping so the error mapper can turn it into a
structured tool response.
"""

from typing import Any, Dict, Optional


class SurfcalcError(Exception):
    """Base for all surfcalc errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.code}: {self.message} - {self.details}"
        return f"{self.code}: {self.message}"


class ValidationError(SurfcalcError):
    """Raised when a request does not match what a tool expects."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="VALIDATION_ERROR", message=message, details=details)


class RegistryError(SurfcalcError):
    """Raised for unknown or conflicting tools and capabilities."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="REGISTRY_ERROR", message=message, details=details)


class ConfigurationError(SurfcalcError):
    """Raised when environment configuration cannot be parsed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="CONFIGURATION_ERROR", message=message, details=details)


class MathError(SurfcalcError):
    """Base for all math engine errors."""
    pass


class InvalidInputError(MathError):
    """Raised when tool parameters are invalid (missing, wrong type, non-finite)."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="INVALID_INPUT", message=message, details=details)


class ComputationError(MathError):
    """Raised when a computation fails outside the documented fallbacks."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code="COMPUTATION_ERROR", message=message, details=details)


class ExpressionSyntaxError(MathError):
    """Raised by the expression parser for malformed text or unknown names."""
    def __init__(self, message: str, position: int = 0, details: Optional[Dict[str, Any]] = None):
        merged = {"position": position}
        if details:
            merged.update(details)
        super().__init__(code="EXPRESSION_SYNTAX", message=message, details=merged)
        self.position = position
