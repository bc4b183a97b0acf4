"""
Tool Executor

This module executes the tool calls a model requests in one turn. It looks
tools up in the registry, validates their arguments, runs the handlers
concurrently, and wraps every outcome in a ToolResult.

Failures never escape: an unknown tool name, malformed arguments, an
exception raised by the handler or a timeout all become error-shaped
results that are fed back to the model. Cancellation is not intercepted.

Pattern: Command Executor (executes tool calls as commands)
Pattern: Async-first with sync handler support
Pattern: Fail-fast validation with graceful error wrapping
"""

import asyncio
import inspect
import logging
from typing import Any, Optional

from pydantic import ValidationError

from agentloop.core.config import get_settings
from agentloop.core.exceptions import ToolExecutionError, ToolValidationError
from agentloop.models.domain import RegisteredTool, ToolCall, ToolResult
from agentloop.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolExecutor:
    """
    Executor for running registered tools.

    Pattern: Command Executor
    Pattern: Dependency Injection (registry is injected)

    Attributes:
        registry: The ToolRegistry to look up tools from.
        timeout: Maximum execution time of one invocation in seconds.

    Example:
        >>> executor = ToolExecutor(registry=registry)
        >>> results = await executor.execute_batch(response.tool_calls)
    """

    def __init__(self, registry: ToolRegistry, timeout: Optional[float] = None) -> None:
        """
        Initialize the executor with a registry.

        Args:
            registry: The ToolRegistry to use for tool lookup.
            timeout: Maximum execution time in seconds (default from settings).
        """
        self.registry = registry
        self.timeout = timeout if timeout is not None else get_settings().tool_timeout_seconds

    # =========================================================================
    # Single Execution
    # =========================================================================

    async def execute(self, tool_call: ToolCall) -> ToolResult:
        """
        Execute a tool call and return the result.

        Never raises for tool-side problems; they are returned as error
        results.

        Args:
            tool_call: The ToolCall containing tool name and arguments.

        Returns:
            ToolResult with the handler output or an error payload.
        """
        try:
            tool = self.registry.resolve(tool_call.name)
            arguments = self._validate_arguments(tool, tool_call.arguments)
            payload = await asyncio.wait_for(
                self._invoke(tool, arguments), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"Tool {tool_call.name} timed out after {self.timeout}s")
            return ToolResult.failure(
                tool_call, f"Tool execution timeout after {self.timeout}s"
            )
        except ToolExecutionError as e:
            logger.warning(f"Tool {tool_call.name} rejected: {e}")
            return ToolResult.failure(tool_call, str(e))
        except Exception as e:
            logger.error(f"Tool {tool_call.name} execution failed: {e}")
            return ToolResult.failure(tool_call, str(e) or type(e).__name__)

        return ToolResult(
            tool_call_id=tool_call.id,
            name=tool_call.name,
            payload=payload,
            is_error=False,
        )

    # =========================================================================
    # Argument Validation
    # =========================================================================

    def _validate_arguments(self, tool: RegisteredTool, arguments: Any) -> Any:
        """
        Validate arguments against the tool's args model or schema.

        Args:
            tool: The resolved tool.
            arguments: Arguments provided in the tool call.

        Returns:
            The validated args model instance, or the argument dict.

        Raises:
            ToolValidationError: If validation fails.
        """
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ToolValidationError(
                f"Arguments must be an object, got {type(arguments).__name__}",
                tool_name=tool.name,
            )

        if tool.args_model is not None:
            try:
                return tool.args_model.model_validate(arguments)
            except ValidationError as e:
                first = e.errors()[0]
                field = ".".join(str(part) for part in first.get("loc", ()))
                raise ToolValidationError(
                    f"Invalid arguments: {first.get('msg', 'validation failed')}"
                    + (f" ({field})" if field else ""),
                    tool_name=tool.name,
                    field=field or None,
                ) from e

        schema = tool.parameters
        for prop in schema.get("required", []):
            if prop not in arguments:
                raise ToolValidationError(
                    f"Missing required argument: {prop}",
                    tool_name=tool.name,
                    field=prop,
                )

        properties = schema.get("properties", {})
        for prop_name, value in arguments.items():
            if prop_name not in properties:
                continue  # Allow extra properties

            prop_schema = properties[prop_name]
            expected_type = prop_schema.get("type")
            if expected_type and not self._check_type(value, expected_type):
                raise ToolValidationError(
                    f"Invalid type for '{prop_name}': expected {expected_type.lower()}, "
                    f"got {type(value).__name__}",
                    tool_name=tool.name,
                    field=prop_name,
                )

            allowed = prop_schema.get("enum")
            if allowed is not None and value not in allowed:
                raise ToolValidationError(
                    f"Invalid value for '{prop_name}': {value!r} is not one of {allowed}",
                    tool_name=tool.name,
                    field=prop_name,
                )

        return arguments

    def _check_type(self, value: Any, expected_type: str) -> bool:
        """
        Check if a value matches the expected schema type.

        Type names are compared case-insensitively ("number" and "NUMBER").
        """
        type_map = {
            "string": str,
            "integer": int,
            "number": (int, float),
            "boolean": bool,
            "array": list,
            "object": dict,
        }

        expected = expected_type.lower()
        python_type = type_map.get(expected)
        if python_type is None:
            return True  # Unknown type, allow

        # bool is a subclass of int, but not a valid number
        if expected in ("number", "integer") and isinstance(value, bool):
            return False

        return isinstance(value, python_type)

    # =========================================================================
    # Invocation
    # =========================================================================

    async def _invoke(self, tool: RegisteredTool, arguments: Any) -> Any:
        """
        Run a handler, sync or async.

        Sync handlers run in the default executor so they do not block the
        event loop. A returned awaitable is awaited.

        A TimeoutError raised by the handler itself is re-raised as
        ToolExecutionError so it is not reported as the invocation timeout.
        """
        handler = tool.handler
        try:
            if inspect.iscoroutinefunction(handler):
                result = await handler(arguments)
            else:
                loop = asyncio.get_running_loop()
                result = await loop.run_in_executor(None, handler, arguments)

            if inspect.isawaitable(result):
                result = await result
        except asyncio.TimeoutError as e:
            raise ToolExecutionError(
                str(e) or type(e).__name__, tool_name=tool.name
            ) from e
        return result

    # =========================================================================
    # Batch Execution
    # =========================================================================

    async def execute_batch(self, tool_calls: list[ToolCall]) -> list[ToolResult]:
        """
        Execute multiple tool calls concurrently.

        All tool calls run in parallel using asyncio.gather, so the batch
        takes as long as its slowest call. Results are returned in the same
        order as the input. A failure in one call does not affect the others.

        Args:
            tool_calls: List of ToolCalls to execute.

        Returns:
            List of ToolResults in same order as input.
        """
        if not tool_calls:
            return []

        results = await asyncio.gather(*[self.execute(tc) for tc in tool_calls])
        return list(results)
