"""
Domain Models - Tools, Turns, Gateway Exchange and Run Results

This module contains the domain models of the agent runtime: tool
definitions and registrations, tool calls and their results, the turns of a
conversation, the request/response exchanged with a model gateway, and the
outcome of an agent run.

Pattern: Domain models as value objects
Pattern: Pydantic for validation at boundaries
Pattern: Tagged union (discriminated on ``role``) for conversation turns
"""

import json
import uuid
from typing import Annotated, Any, Callable, Iterator, Literal, Optional, Union

from pydantic import BaseModel, Field

from agentloop.core.exceptions import StepBudgetExceeded


MAX_STEPS_REASON = "max-steps-exceeded"


def _new_call_id() -> str:
    return f"call_{uuid.uuid4().hex[:24]}"


# =============================================================================
# Tools
# =============================================================================


class ToolDefinition(BaseModel):
    """
    Tool definition schema for tool registration.

    This is the metadata describing a tool: its name, what it does, and the
    JSON-Schema-style description of its parameters. It is handed verbatim
    to the model gateway and does not include the handler callable; see
    RegisteredTool for that.

    Attributes:
        name: Unique tool identifier.
        description: Human-readable description shown to the model.
        parameters: Parameter schema ({"type": "object", "properties": ...,
            "required": [...]}).

    Example:
        >>> tool = ToolDefinition(
        ...     name="add",
        ...     description="Add two numbers together",
        ...     parameters={
        ...         "type": "object",
        ...         "properties": {
        ...             "a": {"type": "number", "description": "First number"},
        ...             "b": {"type": "number", "description": "Second number"},
        ...         },
        ...         "required": ["a", "b"],
        ...     },
        ... )
    """

    name: str = Field(..., min_length=1, description="Unique tool identifier")
    description: Optional[str] = Field(
        default=None, description="Human-readable description"
    )
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        description="Parameter schema for tool arguments",
    )

    model_config = {"frozen": True}


class RegisteredTool(BaseModel):
    """
    A tool with its definition and handler callable.

    The handler can be sync or async and receives the tool arguments. When
    ``args_model`` is set the arguments are validated by that pydantic model
    and the handler receives the model instance; otherwise it receives the
    raw argument dict.

    Attributes:
        definition: The tool's metadata (name, description, parameters).
        handler: Callable that executes the tool.
        args_model: Optional pydantic model validating the arguments.

    Example:
        >>> async def track_order(args: dict) -> dict:
        ...     return store.orders[args["order_id"]]
        ...
        >>> tool = RegisteredTool(
        ...     definition=ToolDefinition(name="track_order", ...),
        ...     handler=track_order,
        ... )
    """

    definition: ToolDefinition
    handler: Callable[..., Any] = Field(..., description="Tool execution callable")
    args_model: Optional[type[BaseModel]] = Field(
        default=None, description="Pydantic model validating the arguments"
    )

    model_config = {"arbitrary_types_allowed": True}

    @property
    def name(self) -> str:
        """Get tool name from definition."""
        return self.definition.name

    @property
    def description(self) -> Optional[str]:
        """Get tool description from definition."""
        return self.definition.description

    @property
    def parameters(self) -> dict[str, Any]:
        """Get tool parameters from definition."""
        return self.definition.parameters


class ToolCall(BaseModel):
    """
    A model's request to execute a tool with arguments.

    Several calls may arrive in one gateway turn. They are independent: the
    runtime only guarantees that all of them finish before the next gateway
    call.

    Attributes:
        id: Identifier correlating the call with its result.
        name: Name of the tool to execute.
        arguments: Arguments to pass to the tool handler.
    """

    id: str = Field(default_factory=_new_call_id, description="Tool call identifier")
    name: str = Field(..., description="Name of tool to execute")
    arguments: Any = Field(default_factory=dict, description="Arguments for tool")


class ToolResult(BaseModel):
    """
    Result of executing a tool.

    Failures are data, not exceptions: an error result carries a payload of
    the form ``{"success": False, "error": "...", "tool": "<name>"}`` so the
    model can read it and react within the conversation.

    Attributes:
        tool_call_id: ID of the ToolCall this result responds to.
        name: Echo of the tool name.
        payload: The tool's output (record or string) or the error record.
        is_error: Whether the result represents an error.
    """

    tool_call_id: str = Field(..., description="ID of originating tool call")
    name: str = Field(..., description="Name of the tool that ran")
    payload: Any = Field(default=None, description="Tool output or error record")
    is_error: bool = Field(default=False, description="Whether result is an error")

    @classmethod
    def failure(cls, tool_call: ToolCall, message: str) -> "ToolResult":
        """Build an error-shaped result for a failed tool call."""
        return cls(
            tool_call_id=tool_call.id,
            name=tool_call.name,
            payload={"success": False, "error": message, "tool": tool_call.name},
            is_error=True,
        )

    @property
    def error(self) -> Optional[str]:
        """The error message of an error result."""
        if self.is_error and isinstance(self.payload, dict):
            return self.payload.get("error")
        return None


# =============================================================================
# Conversation Turns
# =============================================================================


class UserTurn(BaseModel):
    """A user message."""

    role: Literal["user"] = "user"
    text: str


class ModelTurn(BaseModel):
    """A model response: text and any tool calls it requested."""

    role: Literal["model"] = "model"
    text: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)


class ToolResultTurn(BaseModel):
    """The results of one executed tool batch, in request order."""

    role: Literal["tool"] = "tool"
    results: list[ToolResult] = Field(default_factory=list)


Turn = Annotated[Union[UserTurn, ModelTurn, ToolResultTurn], Field(discriminator="role")]


class Conversation:
    """
    Ordered, append-only turn history of one agent session.

    ``reset()`` clears the history to start a new session. A conversation is
    owned by exactly one agent and is never mutated concurrently.
    """

    def __init__(self) -> None:
        self._turns: list[Turn] = []

    def append(self, turn: Turn) -> None:
        self._turns.append(turn)

    def reset(self) -> None:
        self._turns = []

    @property
    def turns(self) -> list[Turn]:
        """A copy of the turns, oldest first."""
        return list(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(list(self._turns))


def format_user_message(message: str, context: Any = None) -> str:
    """
    Build the user message text, appending serialized context when given.

    Records are rendered as indented JSON; anything else with ``str()``.

    Example:
        >>> format_user_message("Refund ORD-3", {"customer": "Ayesha"})
        'Refund ORD-3\\n\\n[Context]:\\n{\\n  "customer": "Ayesha"\\n}'
    """
    if context is None:
        return message
    if isinstance(context, (dict, list)):
        rendered = json.dumps(context, indent=2, default=str)
    else:
        rendered = str(context)
    return f"{message}\n\n[Context]:\n{rendered}"


# =============================================================================
# Gateway Exchange
# =============================================================================


class GatewayRequest(BaseModel):
    """
    Everything a model gateway needs for one round trip.

    Attributes:
        system_prompt: Persona/policy instructions, opaque to the runtime.
        turns: Conversation history, oldest first.
        tools: Tool manifest the model may call.
        model: Model name; the gateway default is used when None.
    """

    system_prompt: Optional[str] = None
    turns: list[Turn] = Field(default_factory=list)
    tools: list[ToolDefinition] = Field(default_factory=list)
    model: Optional[str] = None


class ModelResponse(BaseModel):
    """
    A model gateway response.

    A response may carry text, tool calls, or both. Any tool call makes the
    response non-final.
    """

    text_fragments: list[str] = Field(default_factory=list)
    tool_calls: list[ToolCall] = Field(default_factory=list)

    @property
    def text(self) -> str:
        """All text fragments concatenated."""
        return "".join(self.text_fragments)

    @property
    def has_tool_calls(self) -> bool:
        return len(self.tool_calls) > 0

    @classmethod
    def final(cls, text: str) -> "ModelResponse":
        """A response with final text and no tool calls."""
        return cls(text_fragments=[text])

    @classmethod
    def calling(cls, *tool_calls: ToolCall, text: str = "") -> "ModelResponse":
        """A response requesting one or more tool calls."""
        return cls(text_fragments=[text] if text else [], tool_calls=list(tool_calls))


# =============================================================================
# Agents
# =============================================================================


class AgentConfig(BaseModel):
    """
    Static configuration of one agent.

    Attributes:
        name: Agent name used in logs.
        system_prompt: Persona/policy forwarded to the gateway.
        model: Gateway model name; the gateway default is used when None.
        max_steps: Maximum tool-executing round trips per run. None means
            the configured default.
        verbose: Log each tool call at info level. None means the
            configured default.
    """

    name: str = "agent"
    system_prompt: Optional[str] = None
    model: Optional[str] = None
    max_steps: Optional[int] = Field(default=None, ge=0)
    verbose: Optional[bool] = None


class AgentStats(BaseModel):
    """Counters kept by an agent across runs."""

    total_calls: int = 0
    last_steps: int = 0
    runs: int = 0


class RunResult(BaseModel):
    """
    Outcome of one Agent.run() call.

    On success ``text`` holds the final answer. On step budget exhaustion
    ``success`` is False, ``reason`` is "max-steps-exceeded" and ``turns``
    keeps the partial conversation for inspection.
    """

    success: bool
    text: Optional[str] = None
    steps: int = 0
    max_steps: int = 0
    reason: Optional[str] = None
    elapsed: float = 0.0
    agent_name: Optional[str] = None
    turns: list[Turn] = Field(default_factory=list)

    def raise_for_status(self) -> "RunResult":
        """
        Raise StepBudgetExceeded for a failed run, otherwise return self.

        Example:
            >>> text = (await agent.run("...")).raise_for_status().text
        """
        if not self.success:
            raise StepBudgetExceeded(
                steps=self.steps, max_steps=self.max_steps, agent_name=self.agent_name
            )
        return self
