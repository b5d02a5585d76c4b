"""
Base Tool Interface.

All tools inherit from BaseTool and implement the execute method.
Tools that talk to a backend inherit from SessionTool, which carries the
shared DatabaseSessions handle.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from unidb.core.errors import InvalidArgumentError


class ToolParameter(BaseModel):
    """Definition of a tool parameter."""
    name: str
    description: str
    type: str = "string"  # string, number, integer, boolean, array, object
    required: bool = True
    default: Optional[Any] = None
    enum: Optional[List[str]] = None  # For constrained choices
    items: Optional[Dict[str, Any]] = None  # Element schema for arrays


class ToolResult(BaseModel):
    """Result returned by a tool execution."""
    success: bool
    result: Any = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def ok(cls, result: Any, **metadata) -> "ToolResult":
        """Create a successful result."""
        return cls(success=True, result=result, metadata=metadata)

    @classmethod
    def fail(cls, error: str, **metadata) -> "ToolResult":
        """Create a failed result."""
        return cls(success=False, error=error, metadata=metadata)

    @property
    def text(self) -> str:
        """Result payload as protocol text. Strings pass through untouched."""
        if not self.success:
            return self.error or "Tool execution failed"
        if isinstance(self.result, str):
            return self.result
        if isinstance(self.result, BaseModel):
            return json.dumps(self.result.model_dump(exclude_none=True), indent=2, ensure_ascii=False, default=str)
        return json.dumps(self.result, ensure_ascii=False, default=str)

    def __str__(self) -> str:
        if self.success:
            return self.text
        return f"Error: {self.error}"


class BaseTool(ABC):
    """
    Abstract base class for all tools.

    Attributes:
        name: Unique identifier for the tool
        description: Human-readable description for the calling agent
        parameters: List of parameter definitions
    """

    name: str = "base_tool"
    description: str = "Base tool description"
    parameters: List[ToolParameter] = []

    def get_input_schema(self) -> Dict[str, Any]:
        """JSON schema of the tool arguments."""
        properties = {}
        required = []

        for param in self.parameters:
            prop: Dict[str, Any] = {
                "type": param.type,
                "description": param.description,
            }
            if param.enum:
                prop["enum"] = param.enum
            if param.type == "array":
                prop["items"] = param.items or {}
            if param.default is not None:
                prop["default"] = param.default
            properties[param.name] = prop
            if param.required:
                required.append(param.name)

        return {
            "type": "object",
            "properties": properties,
            "required": required,
        }

    def get_schema(self) -> Dict[str, Any]:
        """Name, description and input schema together."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.get_input_schema(),
        }

    @abstractmethod
    async def execute(self, **kwargs) -> ToolResult:
        """
        Execute the tool with the given parameters.

        Args:
            **kwargs: Tool-specific parameters

        Returns:
            ToolResult with success/failure and result data
        """
        pass

    def validate_params(self, **kwargs) -> Optional[str]:
        """
        Validate that required parameters are provided.

        Enum values are matched case-insensitively; operations are
        dispatched on their upper-case form.

        Returns:
            Error message if validation fails, None otherwise
        """
        for param in self.parameters:
            if param.required and kwargs.get(param.name) is None:
                return f"Missing required parameter: {param.name}"

            if param.enum and kwargs.get(param.name) is not None:
                value = str(kwargs[param.name]).upper()
                if value not in [e.upper() for e in param.enum]:
                    return f"Invalid value for {param.name}. Must be one of: {param.enum}"

        return None


class SessionTool(BaseTool):
    """A tool bound to the shared backend session handles."""

    def __init__(self, sessions) -> None:
        self.sessions = sessions


def as_int(value: Any, name: str, default: Optional[int] = None) -> Optional[int]:
    """Read an integer argument; JSON numbers may arrive as floats."""
    if value is None:
        return default
    if isinstance(value, bool):
        raise InvalidArgumentError(f"{name} must be a number")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("+-").isdigit():
        return int(value)
    raise InvalidArgumentError(f"{name} must be an integer")


def as_list(value: Any, name: str) -> List[Any]:
    """Read an array argument; a missing value is an empty list."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise InvalidArgumentError(f"{name} must be an array")
    return value
