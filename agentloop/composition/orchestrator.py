"""
Orchestrator / Worker delegation

An orchestrator is an ordinary agent whose single tool, ``call_worker``,
delegates a subtask to a named specialist. Workers requested in the same
turn run concurrently because the executor runs a tool batch with
asyncio.gather; there is no separate dispatch mechanism.

Example:
    >>> workers = {
    ...     "code_agent": make_generator(gateway, "You are a senior software engineer."),
    ...     "security_agent": make_generator(gateway, "You are a security reviewer."),
    ... }
    >>> orchestrator = create_orchestrator(gateway, workers)
    >>> result = await orchestrator.run("Design a login API and review it.")
"""

import logging
from typing import Any, Awaitable, Callable, Mapping, NamedTuple, Optional, Union

from pydantic import BaseModel, Field

from agentloop.agents.agent import Agent
from agentloop.gateway.base import ModelGateway
from agentloop.models.domain import RegisteredTool, RunResult, ToolDefinition
from agentloop.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

WORKER_TOOL_NAME = "call_worker"
DEFAULT_ORCHESTRATOR_MAX_STEPS = 5

WorkerFn = Callable[[str], Awaitable[Union[str, RunResult]]]


class LedgerEntry(NamedTuple):
    """One completed delegation."""

    worker: str
    task: str
    result: str


class WorkerTask(BaseModel):
    """Arguments of the call_worker tool."""

    worker: str = Field(..., description="Which specialized agent to use")
    task: str = Field(..., description="Detailed description of the subtask")


def agent_worker(factory: Callable[[], Agent]) -> WorkerFn:
    """
    Worker backed by a tool-calling agent.

    A fresh agent is built per task so that concurrent delegations to the
    same worker never share a conversation.
    """

    async def run(task: str) -> RunResult:
        return await factory().run(task)

    return run


def build_worker_tool(
    workers: Mapping[str, WorkerFn],
    descriptions: Optional[Mapping[str, str]] = None,
    ledger: Optional[list[LedgerEntry]] = None,
) -> RegisteredTool:
    """
    Build the ``call_worker`` tool dispatching to named workers.

    The declared schema restricts ``worker`` to the known names. A name
    outside that set still reaches the handler, which answers with
    ``{"worker": name, "error": "Unknown worker: name"}`` so the model can
    correct itself.

    Args:
        workers: Worker name -> async ``task -> text`` (or RunResult).
        descriptions: Optional worker name -> one-line specialty.
        ledger: Optional list receiving a LedgerEntry per completed task.

    Returns:
        The tool, ready to register.
    """
    names = list(workers)
    descriptions = descriptions or {}
    specialties = "; ".join(
        f"{name}: {descriptions[name]}" for name in names if name in descriptions
    )

    parameters = {
        "type": "object",
        "properties": {
            "worker": {
                "type": "string",
                "enum": names,
                "description": "Which specialized agent to use for this subtask"
                + (f" ({specialties})" if specialties else ""),
            },
            "task": {
                "type": "string",
                "description": "Detailed description of the specific task for this worker",
            },
        },
        "required": ["worker", "task"],
    }

    async def call_worker(args: WorkerTask) -> dict[str, Any]:
        worker = workers.get(args.worker)
        if worker is None:
            logger.warning(f"Orchestrator requested unknown worker {args.worker}")
            return {"worker": args.worker, "error": f"Unknown worker: {args.worker}"}

        output = await worker(args.task)
        if isinstance(output, RunResult):
            if not output.success:
                return {"worker": args.worker, "error": output.reason}
            output = output.text or ""

        if ledger is not None:
            ledger.append(LedgerEntry(args.worker, args.task, output))
        return {"worker": args.worker, "result": output}

    return RegisteredTool(
        definition=ToolDefinition(
            name=WORKER_TOOL_NAME,
            description=(
                "Delegate a specific subtask to a specialized worker agent. "
                "Call multiple workers simultaneously for parallel execution."
            ),
            parameters=parameters,
        ),
        handler=call_worker,
        args_model=WorkerTask,
    )


def default_orchestrator_prompt(
    workers: Mapping[str, Any], descriptions: Optional[Mapping[str, str]] = None
) -> str:
    """System prompt listing the specialists and the delegation strategy."""
    descriptions = descriptions or {}
    roster = "\n".join(
        f"- {name}: {descriptions[name]}" if name in descriptions else f"- {name}"
        for name in workers
    )
    return (
        "You are an expert orchestrator that breaks down complex tasks and "
        "delegates them to specialists.\n\n"
        f"Available specialists:\n{roster}\n\n"
        "Break the request into distinct subtasks, match each to the right "
        "specialist, call independent workers in parallel, and combine their "
        "results into one well-organized final answer. Always delegate; do "
        "not answer directly yourself."
    )


def create_orchestrator(
    gateway: ModelGateway,
    workers: Mapping[str, WorkerFn],
    descriptions: Optional[Mapping[str, str]] = None,
    system_prompt: Optional[str] = None,
    ledger: Optional[list[LedgerEntry]] = None,
    name: str = "orchestrator",
    max_steps: int = DEFAULT_ORCHESTRATOR_MAX_STEPS,
    **overrides: Any,
) -> Agent:
    """
    Build an orchestrator agent whose only tool is ``call_worker``.

    Args:
        gateway: Gateway for the orchestrator's own round trips.
        workers: Worker name -> async ``task -> text``.
        descriptions: Optional worker specialties for the prompt and schema.
        system_prompt: Overrides the generated orchestrator prompt.
        ledger: Optional list receiving every completed delegation.
        name: Agent name.
        max_steps: Delegation rounds before the run fails.
        **overrides: Further AgentConfig fields (model, verbose).
    """
    registry = ToolRegistry.from_tools([build_worker_tool(workers, descriptions, ledger)])
    return Agent(
        gateway=gateway,
        registry=registry,
        name=name,
        system_prompt=system_prompt or default_orchestrator_prompt(workers, descriptions),
        max_steps=max_steps,
        **overrides,
    )
