"""
Sequential Pipeline

Stages run strictly in order. Each stage sees the pipeline input and the
output of every earlier stage, and produces text. The first failing stage
aborts the pipeline with a PipelineStageError naming it.

Example (research -> write -> edit):
    >>> pipeline = Pipeline([
    ...     generator_stage("research", researcher, lambda s: f"Research topic in depth: {s.input}"),
    ...     generator_stage("draft", writer, lambda s: f"Research Notes:\\n{s['research']}"),
    ...     generator_stage("final", editor, lambda s: f"Review and improve:\\n\\n{s.last}"),
    ... ])
    >>> result = await pipeline.run("How AI agents are changing software development")
    >>> print(result.final)

Pattern: Chain of stages (ordered, fail-fast)
"""

import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, Optional, Union

from agentloop.agents.agent import Agent
from agentloop.core.exceptions import CompositionError, PipelineStageError
from agentloop.gateway.base import Generator
from agentloop.models.domain import RunResult
from agentloop.observability.logging import get_logger


# =============================================================================
# Stage Model
# =============================================================================


@dataclass
class PipelineState:
    """
    What a stage can see: the pipeline input and earlier outputs.

    Attributes:
        input: The text the pipeline was started with.
        outputs: Stage name -> output text, in execution order.
    """

    input: str
    outputs: dict[str, str] = field(default_factory=dict)

    @property
    def last(self) -> str:
        """Output of the previous stage, or the input for the first stage."""
        if not self.outputs:
            return self.input
        return list(self.outputs.values())[-1]

    def __getitem__(self, stage: str) -> str:
        return self.outputs[stage]


StageFn = Callable[[PipelineState], Awaitable[Union[str, RunResult]]]
PromptBuilder = Callable[[PipelineState], str]


@dataclass
class PipelineStage:
    """
    A named pipeline step.

    Attributes:
        name: Unique stage name; the key of its output.
        run: Async callable receiving the PipelineState and returning text
            or a RunResult.
    """

    name: str
    run: StageFn


@dataclass
class PipelineResult:
    """
    Outcome of a pipeline run.

    Attributes:
        input: The pipeline input.
        outputs: Stage name -> output text, in execution order.
        final: Output of the last stage.
        elapsed: Wall-clock seconds for the whole pipeline.
    """

    input: str
    outputs: dict[str, str]
    final: str
    elapsed: float


def _last_output(state: PipelineState) -> str:
    return state.last


def generator_stage(
    name: str,
    generator: Generator,
    build_prompt: Optional[PromptBuilder] = None,
) -> PipelineStage:
    """
    Stage backed by a single-shot generator (see make_generator).

    Args:
        name: Stage name.
        generator: Async ``prompt -> text`` callable.
        build_prompt: Builds the prompt from the state (default: previous
            output).
    """
    build = build_prompt or _last_output

    async def run(state: PipelineState) -> str:
        return await generator(build(state))

    return PipelineStage(name=name, run=run)


def agent_stage(
    name: str,
    agent: Agent,
    build_prompt: Optional[PromptBuilder] = None,
    reset: bool = True,
) -> PipelineStage:
    """
    Stage backed by a tool-calling agent.

    A failed run (step budget exhausted) fails the stage.

    Args:
        name: Stage name.
        agent: The agent running the stage.
        build_prompt: Builds the user message from the state (default:
            previous output).
        reset: Start every pipeline run with a fresh conversation.
    """
    build = build_prompt or _last_output

    async def run(state: PipelineState) -> RunResult:
        if reset:
            agent.reset()
        return await agent.run(build(state))

    return PipelineStage(name=name, run=run)


# =============================================================================
# Pipeline
# =============================================================================


class Pipeline:
    """
    Ordered chain of stages.

    Attributes:
        stages: The stages in execution order.
    """

    def __init__(self, stages: Iterable[PipelineStage]) -> None:
        """
        Raises:
            CompositionError: If the pipeline is empty or stage names repeat.
        """
        self.stages = list(stages)
        if not self.stages:
            raise CompositionError("A pipeline needs at least one stage")

        names = [stage.name for stage in self.stages]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise CompositionError(f"Duplicate pipeline stage names: {', '.join(duplicates)}")

    async def run(self, input: str) -> PipelineResult:
        """
        Run every stage in order.

        Raises:
            PipelineStageError: On the first failing stage, chained to the
                underlying exception.
        """
        log = get_logger(__name__)
        started = time.perf_counter()
        state = PipelineState(input=input)

        for index, stage in enumerate(self.stages, start=1):
            log.info("pipeline_stage_started", stage=stage.name, position=index, total=len(self.stages))
            try:
                output = await stage.run(state)
                if isinstance(output, RunResult):
                    output = output.raise_for_status().text or ""
            except Exception as e:
                log.error("pipeline_stage_failed", stage=stage.name, error=str(e))
                raise PipelineStageError(stage.name, str(e) or type(e).__name__) from e

            state.outputs[stage.name] = output
            log.info("pipeline_stage_completed", stage=stage.name, chars=len(output))

        elapsed = time.perf_counter() - started
        return PipelineResult(
            input=input,
            outputs=dict(state.outputs),
            final=state.last,
            elapsed=elapsed,
        )
