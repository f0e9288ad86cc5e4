"""Error response mapping for the MCP interface.

Converts structured SurfcalcError exceptions into standardized error responses
with machine-readable error codes and recovery strategies.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional

from pydantic import ValidationError as PydanticValidationError

from surfcalc.exceptions import ExpressionSyntaxError, SurfcalcError


@dataclass
class ErrorResponse:
    """Structured error response for API consumers."""

    error_code: str
    message: str
    details: Optional[Dict[str, Any]] = None
    recovery_strategy: Optional[str] = None


# Recovery strategy templates for common error types
RECOVERY_STRATEGIES: Dict[str, str] = {
    "REGISTRY_ERROR": "Check that the tool or capability name is valid and exists in the system.",
    "VALIDATION_ERROR": "Review the error message and adjust the request parameters accordingly.",
    "CONFIGURATION_ERROR": "Fix the SURFCALC_* environment variable named in the message and restart.",
    "INVALID_INPUT": "Check the input parameters. Bounds, steps and resolutions must be finite numbers.",
    "EXPRESSION_SYNTAX": "Check the expression syntax. Use x, y, t, + - * / ^ and the supported function names.",
    "COMPUTATION_ERROR": "The computation failed. Try a smaller resolution or a different region.",
    "MATH_ERROR": "A general math error occurred. Check input values for domain errors (e.g., sqrt of negative number).",
}


def get_recovery_strategy(error_code: str) -> str:
    """Get recovery strategy for an error code.

    Args:
        error_code: The error code

    Returns:
        Recovery strategy string
    """
    return RECOVERY_STRATEGIES.get(
        error_code, "Review the error message, adjust the request, and try again."
    )


def _recovery_for(error: SurfcalcError) -> str:
    if isinstance(error, ExpressionSyntaxError):
        return f"Fix the expression near character {error.position}. " + get_recovery_strategy(error.code)
    return get_recovery_strategy(error.code)


def map_exception_to_response(error: Exception) -> ErrorResponse:
    """Convert an exception to a structured ErrorResponse.

    Args:
        error: The exception to convert

    Returns:
        ErrorResponse with structured error information
    """
    if isinstance(error, SurfcalcError):
        return ErrorResponse(
            error_code=error.code,
            message=error.message,
            details=error.details if error.details else None,
            recovery_strategy=_recovery_for(error),
        )

    if isinstance(error, PydanticValidationError):
        # Context and input may hold objects json.dumps cannot encode
        errors = error.errors(include_url=False, include_context=False, include_input=False)
        return ErrorResponse(
            error_code="PYDANTIC_VALIDATION_ERROR",
            message=f"Validation failed: {len(errors)} error(s)",
            details={"errors": errors},
            recovery_strategy="Check the error details and provide valid input according to the schema.",
        )

    if isinstance(error, ArithmeticError):
        return ErrorResponse(
            error_code="COMPUTATION_ERROR",
            message=str(error) or type(error).__name__,
            details={"exception_type": type(error).__name__},
            recovery_strategy=get_recovery_strategy("COMPUTATION_ERROR"),
        )

    # Generic exceptions - wrap with minimal structure
    return ErrorResponse(
        error_code="INTERNAL_ERROR",
        message=str(error),
        details={"exception_type": type(error).__name__},
        recovery_strategy="An unexpected error occurred. Please report this issue if it persists.",
    )


def map_error_for_mcp(error: Exception) -> Dict[str, Any]:
    """Map exception to MCP tool response format.

    Args:
        error: The exception to convert

    Returns:
        Dictionary suitable for MCP tool response
    """
    response = map_exception_to_response(error)

    return {
        "status": "error",
        "error_code": response.error_code,
        "message": response.message,
        "details": response.details,
        "recovery_strategy": response.recovery_strategy,
    }
