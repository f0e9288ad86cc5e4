import functools
import time
from typing import Any, Callable, Dict, TypeVar, cast

from surfcalc.logger import session_logger

F = TypeVar("F", bound=Callable[..., Any])

_MAX_VALUE_CHARS = 200


def _summarize(arguments: Any) -> Dict[str, str]:
    """Short string form of each tool argument; expressions can be long."""
    if not isinstance(arguments, dict):
        return {"arguments": type(arguments).__name__}
    summary = {}
    for key, value in arguments.items():
        text = str(value)
        if len(text) > _MAX_VALUE_CHARS:
            text = text[:_MAX_VALUE_CHARS] + "...(truncated)"
        summary[key] = text
    return summary


def log_execution_time(func: F) -> F:
    """Decorator for ``MathCapability.handle(self, tool_name, arguments)``.

    Logs the tool name and a truncated view of its arguments at debug level,
    the duration at info level on success, and the error before re-raising.
    """
    @functools.wraps(func)
    def wrapper(self: Any, tool_name: str, arguments: Any, *args: Any, **kwargs: Any) -> Any:
        capability = getattr(self, "name", type(self).__name__)

        session_logger.debug(
            f"Starting {tool_name}",
            capability=capability,
            arguments=_summarize(arguments),
        )

        start_time = time.perf_counter()
        try:
            result = func(self, tool_name, arguments, *args, **kwargs)
        except Exception as e:
            session_logger.error(
                f"Failed {tool_name}",
                capability=capability,
                duration_seconds=round(time.perf_counter() - start_time, 4),
                error=str(e),
                error_type=type(e).__name__,
                success=False,
            )
            raise

        session_logger.info(
            f"Completed {tool_name}",
            capability=capability,
            duration_seconds=round(time.perf_counter() - start_time, 4),
            shape=getattr(result, "shape", None),
            success=True,
        )
        return result

    return cast(F, wrapper)
