"""Base classes for math engine capabilities.

All capability modules should inherit from MathCapability and implement
the required interface for tool registration and computation. Shared
result types (critical points, the JSON encoding of the undefined
sentinel) live here as well.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union


def json_number(value: float) -> Optional[float]:
    """Encode a float for JSON: the undefined sentinel (NaN, inf) becomes None."""
    value = float(value)
    return value if math.isfinite(value) else None


def json_numbers(values: Any) -> Any:
    """Recursively apply json_number to nested lists of floats."""
    if isinstance(values, (list, tuple)):
        return [json_numbers(v) for v in values]
    return json_number(values)


class CriticalKind(str, Enum):
    """Label attached to a sampled critical point."""

    MAXIMUM = "Maximum"
    MINIMUM = "Minimum"
    SADDLE = "Saddle-candidate"
    CRITICAL = "Critical Point"


@dataclass(frozen=True)
class CriticalPoint:
    """A labelled point (x, y, z) found by a sampling search."""

    x: float
    y: float
    z: float
    kind: CriticalKind

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x": json_number(self.x),
            "y": json_number(self.y),
            "z": json_number(self.z),
            "type": self.kind.value,
        }


@dataclass
class MathResult:
    """Result of a math computation."""

    result: Union[List[Any], float, int, Dict[str, Any]]
    shape: List[int]
    dtype: str

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "result": self.result,
            "shape": self.shape,
            "dtype": self.dtype,
        }


@dataclass
class ToolDefinition:
    """Definition of an MCP tool provided by a capability."""

    name: str
    description: str
    input_schema: Dict[str, Any]
    handler_name: str  # Method name on the capability class


class MathCapability(ABC):
    """Base class for all math engine capabilities.

    Each capability module (derivatives, integration, limits, etc.) should:
    1. Inherit from this class
    2. Implement get_tools() to declare its MCP tools
    3. Implement handler methods for each tool
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name for this capability (e.g., 'derivatives', 'integration')."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of this capability."""
        pass

    @abstractmethod
    def get_tools(self) -> List[ToolDefinition]:
        """Return list of tool definitions this capability provides.

        Each tool definition includes:
        - name: Tool name exposed via MCP
        - description: Tool description for LLM
        - input_schema: JSON schema for tool parameters
        - handler_name: Method name to call on this capability

        Returns:
            List of ToolDefinition objects
        """
        pass

    @abstractmethod
    def handle(self, tool_name: str, arguments: Dict[str, Any]) -> MathResult:
        """Handle a tool invocation.

        Args:
            tool_name: Name of the tool being called
            arguments: Tool arguments from MCP

        Returns:
            MathResult with computed values

        Raises:
            InvalidInputError: If tool_name is unknown or arguments are invalid
        """
        pass

    def list_operations(self) -> Dict[str, List[str]]:
        """List operations supported by this capability.

        Override this method to provide categorized operation lists.

        Returns:
            Dictionary mapping category names to lists of operation names
        """
        return {}
