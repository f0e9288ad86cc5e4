"""Error handling utilities for surfcalc."""

from surfcalc.errors.mapper import (
    map_exception_to_response,
    map_error_for_mcp,
    get_recovery_strategy,
)

__all__ = [
    "map_exception_to_response",
    "map_error_for_mcp",
    "get_recovery_strategy",
]
