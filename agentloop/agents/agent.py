"""
Agent - the tool-calling loop

This module implements the agent loop: send the user's message to the model
gateway, execute whatever tools the model requests (concurrently within a
turn), feed the results back, and repeat until the model answers without
tool calls or the step budget runs out.

Step convention:
- ``steps`` counts executed tool batches. A final answer on the first
  response is ``steps=0``.
- ``max_steps=N`` permits at most N tool batches and N+1 gateway calls.
  A response that still requests tools once N batches have run ends the
  run with ``success=False`` and ``reason="max-steps-exceeded"``.

Pattern: Service Layer (orchestrates gateway and executor)
Pattern: Dependency Injection (gateway, registry, executor)
"""

import time
import uuid
from typing import Any, Iterable, Optional

from agentloop.core.config import get_settings
from agentloop.gateway.base import ModelGateway
from agentloop.models.domain import (
    MAX_STEPS_REASON,
    AgentConfig,
    AgentStats,
    Conversation,
    GatewayRequest,
    ModelTurn,
    RunResult,
    ToolResultTurn,
    UserTurn,
    format_user_message,
)
from agentloop.observability.logging import get_logger, run_id_context
from agentloop.tools.executor import ToolExecutor
from agentloop.tools.registry import ToolRegistry
from agentloop.tools.skills import Skill, compose_skills


class Agent:
    """
    A tool-calling agent with its own conversation.

    Successive ``run()`` calls continue the same conversation until
    ``reset()``. An agent runs one session at a time; compositions use
    separate agents for concurrent work.

    Attributes:
        config: Resolved agent configuration (max_steps and verbose filled
            from settings when not given).
        gateway: The model gateway.
        registry: Tools the model may call.
        executor: Runs tool batches against the registry.

    Example:
        >>> agent = Agent(
        ...     gateway=GeminiGateway(),
        ...     registry=calculator_registry(),
        ...     name="Calculator",
        ...     system_prompt="Use the tools for every arithmetic step.",
        ... )
        >>> result = await agent.run("What is (5 + 3) * 4 / 8?")
        >>> print(result.text)
    """

    def __init__(
        self,
        gateway: ModelGateway,
        registry: Optional[ToolRegistry] = None,
        config: Optional[AgentConfig] = None,
        executor: Optional[ToolExecutor] = None,
        **overrides: Any,
    ) -> None:
        """
        Initialize the agent.

        Args:
            gateway: Model gateway used for every round trip.
            registry: Tools available to the model (default: none).
            config: Agent configuration.
            executor: Tool executor (default: one built on ``registry``).
            **overrides: AgentConfig fields overriding ``config``
                (name, system_prompt, model, max_steps, verbose).
        """
        settings = get_settings()
        config = config or AgentConfig()
        unknown = set(overrides) - set(AgentConfig.model_fields)
        if unknown:
            raise TypeError(f"Unknown agent options: {', '.join(sorted(unknown))}")
        if overrides:
            config = AgentConfig.model_validate({**config.model_dump(), **overrides})
        if config.max_steps is None:
            config = config.model_copy(update={"max_steps": settings.max_steps})
        if config.verbose is None:
            config = config.model_copy(update={"verbose": settings.verbose})

        self.config = config
        self.gateway = gateway
        self.registry = registry if registry is not None else ToolRegistry()
        self.executor = executor or ToolExecutor(self.registry)

        self._conversation = Conversation()
        self._steps = 0
        self._total_calls = 0
        self._runs = 0

    @classmethod
    def from_skills(
        cls,
        gateway: ModelGateway,
        name: str,
        skills: Iterable[Skill],
        preamble: Optional[str] = None,
        rules: Optional[str] = None,
        **overrides: Any,
    ) -> "Agent":
        """
        Build one agent from several skills.

        The skills' instructions become the system prompt and their tools
        one registry.

        Raises:
            DuplicateToolError: If two skills declare the same tool.
        """
        prompt, registry = compose_skills(name, list(skills), preamble, rules)
        return cls(
            gateway=gateway,
            registry=registry,
            name=name,
            system_prompt=prompt,
            **overrides,
        )

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def max_steps(self) -> int:
        return self.config.max_steps  # type: ignore[return-value]

    @property
    def conversation(self) -> Conversation:
        return self._conversation

    # =========================================================================
    # Run
    # =========================================================================

    async def run(self, user_message: str, context: Any = None) -> RunResult:
        """
        Send a message and drive the tool loop to a final answer.

        Args:
            user_message: The user's message.
            context: Optional record (serialized as JSON) or text appended
                to the message under a "[Context]:" heading.

        Returns:
            RunResult: ``success=True`` with the final text, or
            ``success=False`` with ``reason="max-steps-exceeded"``.

        Raises:
            GatewayError: If the gateway fails. The conversation keeps the
                turns appended before the failure.
        """
        run_id = f"run-{uuid.uuid4().hex[:12]}"
        with run_id_context(run_id):
            return await self._run(user_message, context)

    async def _run(self, user_message: str, context: Any) -> RunResult:
        log = get_logger(__name__).bind(agent=self.name)
        trace = log.info if self.config.verbose else log.debug

        started = time.perf_counter()
        self._steps = 0
        self._runs += 1

        trace("agent_run_started", message=user_message)
        self._conversation.append(
            UserTurn(text=format_user_message(user_message, context))
        )
        response = await self.gateway.generate(self._build_request())

        while response.has_tool_calls:
            if self._steps >= self.max_steps:
                self._conversation.append(
                    ModelTurn(text=response.text, tool_calls=response.tool_calls)
                )
                elapsed = time.perf_counter() - started
                log.warning(
                    "agent_max_steps_exceeded",
                    steps=self._steps,
                    max_steps=self.max_steps,
                    pending_tools=[call.name for call in response.tool_calls],
                )
                return RunResult(
                    success=False,
                    steps=self._steps,
                    max_steps=self.max_steps,
                    reason=MAX_STEPS_REASON,
                    elapsed=elapsed,
                    agent_name=self.name,
                    turns=self._conversation.turns,
                )

            self._steps += 1
            self._conversation.append(
                ModelTurn(text=response.text, tool_calls=response.tool_calls)
            )

            for call in response.tool_calls:
                trace("tool_call", step=self._steps, tool=call.name, arguments=call.arguments)
            self._total_calls += len(response.tool_calls)

            results = await self.executor.execute_batch(response.tool_calls)
            for result in results:
                if result.is_error:
                    log.warning("tool_error", step=self._steps, tool=result.name, error=result.error)
                else:
                    trace("tool_result", step=self._steps, tool=result.name)

            self._conversation.append(ToolResultTurn(results=results))
            response = await self.gateway.generate(self._build_request())

        text = response.text
        self._conversation.append(ModelTurn(text=text))
        elapsed = time.perf_counter() - started
        trace("agent_run_completed", steps=self._steps, elapsed=round(elapsed, 3))

        return RunResult(
            success=True,
            text=text,
            steps=self._steps,
            max_steps=self.max_steps,
            elapsed=elapsed,
            agent_name=self.name,
            turns=self._conversation.turns,
        )

    def _build_request(self) -> GatewayRequest:
        return GatewayRequest(
            system_prompt=self.config.system_prompt,
            turns=self._conversation.turns,
            tools=self.registry.manifest(),
            model=self.config.model,
        )

    # =========================================================================
    # Session
    # =========================================================================

    def reset(self) -> None:
        """Clear the conversation and step counter. Tools and prompt are kept."""
        self._conversation.reset()
        self._steps = 0
        get_logger(__name__).debug("agent_reset", agent=self.name)

    def stats(self) -> AgentStats:
        """Tool calls across all runs, steps of the last run, and run count."""
        return AgentStats(
            total_calls=self._total_calls,
            last_steps=self._steps,
            runs=self._runs,
        )
