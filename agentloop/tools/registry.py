"""
Tool Registry

This module implements the registry of tools an agent exposes to the model.
A registry is filled once when the agent is built and is then only read:
the executor resolves tool names against it on every call and the agent
hands its manifest to the model gateway.

Pattern: Service Registry (tool inventory with callable handlers)
Pattern: Fail-fast configuration (duplicate names raise at registration)
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Optional

from pydantic import BaseModel

from agentloop.core.exceptions import DuplicateToolError, UnknownToolError
from agentloop.models.domain import RegisteredTool, ToolDefinition

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    Registry for the tools available to one agent.

    Attributes:
        _tools: Dictionary mapping tool names to RegisteredTool instances,
            in registration order.

    Example:
        >>> registry = ToolRegistry()
        >>> registry.register(add_tool)
        >>> tool = registry.resolve("add")
        >>> manifest = registry.manifest()
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._tools: dict[str, RegisteredTool] = {}

    @classmethod
    def from_tools(cls, tools: Iterable[RegisteredTool]) -> "ToolRegistry":
        """
        Build a registry from registered tools.

        Raises:
            DuplicateToolError: If two tools share a name.
        """
        registry = cls()
        for tool in tools:
            registry.register(tool)
        return registry

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, tool: RegisteredTool) -> None:
        """
        Register a tool under its definition name.

        Args:
            tool: The RegisteredTool instance to register.

        Raises:
            DuplicateToolError: If a tool with the same name exists.
        """
        if tool.name in self._tools:
            raise DuplicateToolError(tool.name)
        self._tools[tool.name] = tool
        logger.debug(f"Registered tool: {tool.name}")

    def register_function(
        self,
        name: str,
        handler: Callable[..., Any],
        description: Optional[str] = None,
        parameters: Optional[dict[str, Any]] = None,
        args_model: Optional[type[BaseModel]] = None,
    ) -> RegisteredTool:
        """
        Register a plain function as a tool.

        When ``parameters`` is omitted and ``args_model`` is given, the
        parameter schema is generated from the pydantic model.

        Args:
            name: Tool name.
            handler: Sync or async callable executing the tool.
            description: Description shown to the model.
            parameters: Parameter schema.
            args_model: Optional pydantic model validating the arguments.

        Returns:
            The registered tool.

        Example:
            >>> registry.register_function(
            ...     "multiply",
            ...     lambda args: args["a"] * args["b"],
            ...     description="Multiply two numbers",
            ...     parameters=NUMBER_PAIR_SCHEMA,
            ... )
        """
        if parameters is None:
            if args_model is not None:
                parameters = args_model.model_json_schema()
            else:
                parameters = {"type": "object", "properties": {}}

        tool = RegisteredTool(
            definition=ToolDefinition(
                name=name, description=description, parameters=parameters
            ),
            handler=handler,
            args_model=args_model,
        )
        self.register(tool)
        return tool

    def load_definitions(
        self, filepath: str | Path, handlers: Mapping[str, Callable[..., Any]]
    ) -> int:
        """
        Load tool declarations from a JSON file and pair them with handlers.

        The file should have the format:
        {
            "tools": [
                {
                    "name": "tool_name",
                    "description": "Tool description",
                    "parameters": { ... }
                }
            ]
        }

        Declarations without a matching handler are skipped with a warning.

        Args:
            filepath: Path to the JSON file.
            handlers: Mapping of tool name to handler callable.

        Returns:
            Number of tools registered.

        Raises:
            FileNotFoundError: If the file does not exist.
            DuplicateToolError: If a declared name is already registered.
        """
        path = Path(filepath)
        with open(path) as f:
            config = json.load(f)

        registered = 0
        for tool_data in config.get("tools", []):
            name = tool_data["name"]
            handler = handlers.get(name)
            if handler is None:
                logger.warning(f"No handler for declared tool {name}; skipping")
                continue
            self.register_function(
                name,
                handler,
                description=tool_data.get("description"),
                parameters=tool_data.get(
                    "parameters", {"type": "object", "properties": {}}
                ),
            )
            registered += 1

        logger.info(f"Loaded {registered} tools from {filepath}")
        return registered

    # =========================================================================
    # Lookup
    # =========================================================================

    def resolve(self, name: str) -> RegisteredTool:
        """
        Get a registered tool by name.

        Args:
            name: The name of the tool to retrieve.

        Returns:
            The RegisteredTool instance.

        Raises:
            UnknownToolError: If the tool is not registered.
        """
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name, available=self.names()) from None

    def has(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    def names(self) -> list[str]:
        """Registered tool names in registration order."""
        return list(self._tools)

    def manifest(self) -> list[ToolDefinition]:
        """
        List all registered tool definitions.

        Returns definitions suitable for passing to the model gateway as the
        available tools.
        """
        return [tool.definition for tool in self._tools.values()]

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools
