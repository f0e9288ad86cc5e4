"""Math Engine - Facade for all surface analysis capabilities.

This module provides a unified interface to all capabilities for direct
programmatic use. For MCP tool handling, use the tool_registry instead.
The pure analysis functions can also be imported from their capability
modules and called with any (x, y) -> float callable.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from surfcalc.exceptions import InvalidInputError
from surfcalc.logger import session_logger as logger
from surfcalc.math_engine.base import MathCapability, MathResult
from surfcalc.math_engine.capabilities import ALL_CAPABILITIES


class MathEngine:
    """Unified interface to all surface analysis capabilities."""

    def __init__(self):
        """Initialize the math engine with all capabilities."""
        self._capabilities: Dict[str, MathCapability] = {}
        self._tools: Dict[str, str] = {}

        for capability_class in ALL_CAPABILITIES:
            self._register_capability(capability_class())

        logger.info(
            "MathEngine initialized",
            capabilities=list(self._capabilities.keys()),
        )

    def _register_capability(self, capability: MathCapability) -> None:
        """Register a capability."""
        self._capabilities[capability.name] = capability
        for tool in capability.get_tools():
            self._tools[tool.name] = capability.name

    def get_capability(self, name: str) -> Optional[MathCapability]:
        """Get a capability by name."""
        return self._capabilities.get(name)

    def run(self, tool_name: str, arguments: Dict[str, Any]) -> MathResult:
        """Run a tool by name with tool-style arguments.

        Raises:
            InvalidInputError: If the tool is unknown or the arguments are invalid
        """
        cap_name = self._tools.get(tool_name)
        if cap_name is None:
            raise InvalidInputError(
                f"Unknown tool: {tool_name}",
                details={"available": sorted(self._tools)},
            )
        return self._capabilities[cap_name].handle(tool_name, arguments)

    def list_operations(self) -> Dict[str, List[str]]:
        """List all operations from all capabilities."""
        all_ops: Dict[str, List[str]] = {}

        for cap in self._capabilities.values():
            for category, ops in cap.list_operations().items():
                all_ops[category] = ops

        return all_ops

    def list_capabilities(self) -> Dict[str, str]:
        """List all registered capabilities."""
        return {
            name: cap.description
            for name, cap in self._capabilities.items()
        }


# Module-level singleton for convenience
_engine: Optional[MathEngine] = None


def get_engine() -> MathEngine:
    """Get or create the singleton MathEngine instance."""
    global _engine
    if _engine is None:
        _engine = MathEngine()
    return _engine
