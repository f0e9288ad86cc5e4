"""Test the MCP call_tool / list_tools handlers in-process."""

import json

import pytest

from surfcalc.mcp_server.mcp_server import handle_call_tool, handle_list_tools


def parse_json(content) -> dict:
    """Parse JSON from the first MCP text content."""
    assert len(content) == 1
    return json.loads(content[0].text)


class TestListTools:
    """Tests for list_tools."""

    @pytest.mark.asyncio
    async def test_ping_and_registry_tools(self, registry):
        tools = await handle_list_tools()
        names = [tool.name for tool in tools]
        assert names[0] == "ping"
        assert set(names[1:]) == set(registry.get_tool_names())


class TestCallTool:
    """Tests for call_tool."""

    @pytest.mark.asyncio
    async def test_ping(self, registry):
        data = parse_json(await handle_call_tool("ping", {}))
        assert data["status"] == "ok"
        assert data["service"] == "surfcalc"
        assert data["tools"] == len(registry.get_tool_names()) == 11

    @pytest.mark.asyncio
    async def test_double_integral(self, registry):
        data = parse_json(await handle_call_tool("double_integral", {
            "expression": "1",
            "x_min": 0,
            "x_max": 2,
            "y_min": 0,
            "y_max": 2,
        }))
        assert data["volume"] == pytest.approx(4.0)
        assert data["center_of_mass"] == pytest.approx({"x": 1.0, "y": 1.0, "z": 1.0})

    @pytest.mark.asyncio
    async def test_undefined_values_are_null(self, registry):
        data = parse_json(await handle_call_tool("expression_evaluate", {
            "expression": "1/x",
            "points": [[0, 1], [2, 1]],
        }))
        assert data["values"] == [None, 0.5]

    @pytest.mark.asyncio
    async def test_expression_check_reports_position(self, registry):
        data = parse_json(await handle_call_tool("expression_check", {"expression": "sin(x) + foo(y)"}))
        assert data["valid"] is False
        assert data["position"] == 9

    @pytest.mark.asyncio
    async def test_expression_check_valid(self, registry):
        data = parse_json(await handle_call_tool("expression_check", {"expression": "x^2 + t", "arity": 3}))
        assert data["valid"] is True
        assert data["variables"] == ["t", "x"]

    @pytest.mark.asyncio
    async def test_heatmap_array_result(self, registry):
        data = parse_json(await handle_call_tool("heatmap", {
            "expression": "x",
            "x_min": 0,
            "x_max": 1,
            "y_min": 0,
            "y_max": 1,
            "resolution": 2,
        }))
        assert data["shape"] == [2, 2]
        assert data["dtype"] == "float64"
        assert data["result"]["values"] == [[0.0, 0.5], [0.0, 0.5]]

    @pytest.mark.asyncio
    async def test_invalid_input_mapped(self, registry):
        data = parse_json(await handle_call_tool("partial_derivatives", {"expression": "x"}))
        assert data["status"] == "error"
        assert data["error_code"] == "INVALID_INPUT"
        assert data["recovery_strategy"]

    @pytest.mark.asyncio
    async def test_unknown_tool(self, registry):
        data = parse_json(await handle_call_tool("math_compute", {}))
        assert data["status"] == "error"
        assert data["error_code"] == "REGISTRY_ERROR"

    @pytest.mark.asyncio
    async def test_missing_arguments_treated_as_empty(self, registry):
        data = parse_json(await handle_call_tool("limit_estimate", None))
        assert data["error_code"] == "INVALID_INPUT"
