"""Pytest configuration and fixtures

Provides shared fixtures for all tests: isolated settings, a fresh tool
registry and a few reference surfaces.
"""

import os

import pytest

from surfcalc.config import reset_settings
from surfcalc.math_engine.expression import compile_expression
from surfcalc.mcp_server import tool_registry


@pytest.fixture(scope="function", autouse=True)
def isolated_settings(monkeypatch):
    """
    Automatically isolate configuration for each test

    Removes any SURFCALC_* engine overrides from the environment and drops
    cached settings before and after the test.
    """
    for key in list(os.environ):
        if key.startswith("SURFCALC_") and not key.startswith("SURFCALC_LOG_"):
            monkeypatch.delenv(key, raising=False)

    reset_settings()
    yield
    reset_settings()


@pytest.fixture(scope="function")
def registry():
    """
    Provide a freshly initialized tool registry

    Returns:
        ToolRegistry with every capability registered
    """
    tool_registry.reset_registry()
    yield tool_registry.initialize_registry()
    tool_registry.reset_registry()


@pytest.fixture
def paraboloid():
    """z = x^2 + y^2 as a compiled (x, y) function."""
    return compile_expression("x^2 + y^2", 2)


@pytest.fixture
def saddle_ratio():
    """z = xy / (x^2 + y^2), whose limit at the origin depends on the path."""
    return compile_expression("x*y/(x^2 + y^2)", 2)
