"""Tool Registry for MCP Server.

Central registry that collects tools from all math engine capabilities
and provides them to the MCP server.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from mcp.types import Tool

from surfcalc.exceptions import ComputationError, RegistryError, SurfcalcError, ValidationError
from surfcalc.logger import session_logger as logger
from surfcalc.math_engine.base import MathCapability, MathResult, ToolDefinition


class ToolRegistry:
    """Registry for MCP tools from math engine capabilities.

    Collects tool definitions from capability modules and provides:
    - MCP Tool objects for list_tools()
    - Routing of tool calls to appropriate capability handlers
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._capabilities: Dict[str, MathCapability] = {}
        self._tool_to_capability: Dict[str, str] = {}
        self._tools: Dict[str, ToolDefinition] = {}
        logger.info("ToolRegistry initialized")

    def register_capability(self, capability: MathCapability) -> None:
        """Register a capability and its tools.

        Args:
            capability: The capability instance to register

        Raises:
            RegistryError: If capability name conflicts or tool names conflict
        """
        cap_name = capability.name

        if cap_name in self._capabilities:
            raise RegistryError(f"Capability '{cap_name}' already registered")

        tools = capability.get_tools()
        for tool_def in tools:
            if tool_def.name in self._tools:
                existing_cap = self._tool_to_capability[tool_def.name]
                raise RegistryError(
                    f"Tool '{tool_def.name}' already registered by capability '{existing_cap}'",
                    details={"tool": tool_def.name, "capability": existing_cap},
                )

        self._capabilities[cap_name] = capability
        for tool_def in tools:
            self._tools[tool_def.name] = tool_def
            self._tool_to_capability[tool_def.name] = cap_name

        logger.info(
            "Capability registered",
            capability=cap_name,
            tools=[t.name for t in tools],
        )

    def get_mcp_tools(self) -> List[Tool]:
        """Get all registered tools as MCP Tool objects."""
        return [
            Tool(
                name=tool_def.name,
                description=tool_def.description,
                inputSchema=tool_def.input_schema,
            )
            for tool_def in self._tools.values()
        ]

    def get_tool_names(self) -> List[str]:
        """Get list of all registered tool names."""
        return list(self._tools.keys())

    def has_tool(self, tool_name: str) -> bool:
        """Check if a tool is registered."""
        return tool_name in self._tools

    def handle_tool(self, tool_name: str, arguments: Dict[str, Any]) -> MathResult:
        """Route a tool call to the appropriate capability.

        Args:
            tool_name: Name of the tool to invoke
            arguments: Tool arguments from MCP

        Returns:
            MathResult from the capability handler

        Raises:
            RegistryError: If tool is not registered
            ValidationError: If arguments is not a mapping
            ComputationError: If the handler fails with an unexpected exception
        """
        if tool_name not in self._tools:
            raise RegistryError(
                f"Unknown tool: '{tool_name}'",
                details={"available": self.get_tool_names()},
            )

        cap_name = self._tool_to_capability[tool_name]
        capability = self._capabilities[cap_name]

        logger.debug(
            "Routing tool call",
            tool=tool_name,
            capability=cap_name,
        )

        if not isinstance(arguments, dict):
            raise ValidationError(
                "Tool arguments must be a JSON object",
                details={"tool": tool_name, "got": type(arguments).__name__},
            )

        try:
            return capability.handle(tool_name, arguments)
        except SurfcalcError:
            raise
        except Exception as e:
            raise ComputationError(
                f"Tool '{tool_name}' failed: {e}",
                details={"tool": tool_name, "exception_type": type(e).__name__},
            ) from e

    def list_capabilities(self) -> Dict[str, str]:
        """List all registered capabilities."""
        return {
            name: cap.description
            for name, cap in self._capabilities.items()
        }

    def get_capability(self, name: str) -> Optional[MathCapability]:
        """Get a capability by name."""
        return self._capabilities.get(name)


# Global registry instance
_registry: Optional[ToolRegistry] = None


def get_registry() -> ToolRegistry:
    """Get or create the global tool registry."""
    global _registry
    if _registry is None:
        _registry = ToolRegistry()
    return _registry


def reset_registry() -> None:
    """Drop the global registry (used by tests)."""
    global _registry
    _registry = None


def initialize_registry() -> ToolRegistry:
    """Initialize the registry with all available capabilities.

    Safe to call more than once: capabilities already registered are skipped.

    Returns:
        The initialized ToolRegistry
    """
    from surfcalc.math_engine.capabilities import ALL_CAPABILITIES

    registry = get_registry()

    for capability_class in ALL_CAPABILITIES:
        capability = capability_class()
        if registry.get_capability(capability.name) is None:
            registry.register_capability(capability)

    logger.info(
        "Registry initialized",
        capabilities=list(registry.list_capabilities().keys()),
        tools=registry.get_tool_names(),
    )

    return registry
