"""Tests for the MCP server command line."""

from surfcalc import main_mcp


def test_defaults_from_settings():
    args = main_mcp.build_parser("0.0.0.0", 8020).parse_args([])
    assert args.host == "0.0.0.0"
    assert args.port == 8020


def test_overrides():
    args = main_mcp.build_parser("0.0.0.0", 8020).parse_args(["--host", "127.0.0.1", "--port", "9001"])
    assert args.host == "127.0.0.1"
    assert args.port == 9001


def test_invalid_configuration_exits_non_zero(monkeypatch):
    monkeypatch.setenv("SURFCALC_MCP_PORT", "not-a-port")
    assert main_mcp.main([]) == 1
