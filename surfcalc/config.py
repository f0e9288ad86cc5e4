"""Application configuration

Settings are read once from ``SURFCALC_*`` environment variables and cached.
Engine defaults are used by the tool layer whenever a call omits a parameter;
the pure analysis functions never read configuration themselves.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, Mapping, Optional

from surfcalc.exceptions import ConfigurationError

_ENV_PREFIX = "SURFCALC"


@dataclass(frozen=True)
class Settings:
    """Server and engine settings."""

    mcp_host: str = "0.0.0.0"
    mcp_port: int = 8020

    derivative_step: float = 1e-3
    integration_resolution: int = 50
    analysis_range: float = 4.0
    domain_resolution: int = 50
    intersection_resolution: int = 80
    lagrange_search_range: float = 5.0
    lagrange_search_step: float = 0.3
    limit_epsilon: float = 1e-3
    gradient_vectors: int = 18


_PARSERS: Dict[type, Callable[[str], Any]] = {
    str: str,
    int: int,
    float: float,
}

_settings: Optional[Settings] = None


def env_name(field_name: str) -> str:
    """Environment variable that overrides a settings field."""
    return f"{_ENV_PREFIX}_{field_name.upper()}"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from an environment mapping (defaults to os.environ).

    Raises:
        ConfigurationError: If a variable is present but cannot be parsed
    """
    environ = os.environ if environ is None else environ
    values: Dict[str, Any] = {}
    defaults = Settings()

    for field in fields(Settings):
        name = env_name(field.name)
        raw = environ.get(name)
        if raw is None or raw.strip() == "":
            continue
        field_type = type(getattr(defaults, field.name))
        try:
            values[field.name] = _PARSERS[field_type](raw.strip())
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid value for {name}: {raw!r}",
                details={"expected": field_type.__name__, "error": str(e)},
            ) from e

    return Settings(**values)


def get_settings(reload: bool = False) -> Settings:
    """Get the cached settings, loading them from the environment if needed."""
    global _settings
    if _settings is None or reload:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Forget cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None


__all__ = [
    "Settings",
    "env_name",
    "load_settings",
    "get_settings",
    "reset_settings",
]
