"""MCP server exposing the surface analysis tools."""
