"""Tests for environment-driven settings."""

import pytest

from surfcalc.config import Settings, env_name, get_settings, load_settings
from surfcalc.exceptions import ConfigurationError
from surfcalc.math_engine.capabilities.derivatives import DerivativesCapability


class TestLoadSettings:
    """Tests for load_settings()."""

    def test_defaults(self):
        settings = load_settings({})
        assert settings == Settings()
        assert settings.mcp_port == 8020
        assert settings.derivative_step == 1e-3
        assert settings.integration_resolution == 50
        assert settings.lagrange_search_step == 0.3

    def test_overrides(self):
        settings = load_settings({
            "SURFCALC_MCP_PORT": "9000",
            "SURFCALC_ANALYSIS_RANGE": "2.5",
            "SURFCALC_MCP_HOST": "127.0.0.1",
        })
        assert settings.mcp_port == 9000
        assert settings.analysis_range == 2.5
        assert settings.mcp_host == "127.0.0.1"

    def test_blank_values_ignored(self):
        assert load_settings({"SURFCALC_MCP_PORT": "  "}).mcp_port == 8020

    def test_invalid_value(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings({"SURFCALC_INTEGRATION_RESOLUTION": "fifty"})
        assert exc_info.value.code == "CONFIGURATION_ERROR"
        assert "SURFCALC_INTEGRATION_RESOLUTION" in exc_info.value.message
        assert exc_info.value.details["expected"] == "int"

    def test_env_name(self):
        assert env_name("limit_epsilon") == "SURFCALC_LIMIT_EPSILON"


class TestGetSettings:
    """Tests for the cached settings used by the tool handlers."""

    def test_cached_until_reload(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("SURFCALC_GRADIENT_VECTORS", "7")
        assert get_settings() is first
        assert get_settings(reload=True).gradient_vectors == 7

    def test_handler_uses_configured_default(self, monkeypatch):
        monkeypatch.setenv("SURFCALC_GRADIENT_VECTORS", "3")
        get_settings(reload=True)
        result = DerivativesCapability().handle("gradient_field", {"expression": "x + y", "range": 1})
        assert result.result["samples_per_axis"] == 3
