"""
Parallel Fan-out / Fan-in

Named branches run concurrently on the same input and the join waits for all
of them, so the wall-clock time is that of the slowest branch. An optional
synthesizer consumes the branch outputs and produces one combined answer.

By default the first failing branch cancels the others and the fan-out
raises FanOutError. With ``tolerate_failures=True`` failed branches are
collected in ``errors`` and the synthesizer sees only the successful outputs.

Pattern: Scatter-gather with asyncio.gather
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Mapping, Optional, Union

from agentloop.core.exceptions import CompositionError, FanOutError
from agentloop.gateway.base import Generator
from agentloop.models.domain import RunResult
from agentloop.observability.logging import get_logger

BranchFn = Callable[[str], Awaitable[Union[str, RunResult]]]
Synthesizer = Callable[[str, dict[str, str]], Awaitable[str]]


@dataclass
class FanOutResult:
    """
    Outcome of a fan-out.

    Attributes:
        input: The input every branch received.
        outputs: Branch name -> output, in branch declaration order.
        errors: Branch name -> error message (only with tolerate_failures).
        synthesis: Synthesizer output, when a synthesizer is configured.
        elapsed: Wall-clock seconds including synthesis.
    """

    input: str
    outputs: dict[str, str]
    errors: dict[str, str] = field(default_factory=dict)
    synthesis: Optional[str] = None
    elapsed: float = 0.0


def format_sections(outputs: Mapping[str, str]) -> str:
    """
    Render branch outputs as markdown sections.

    Example:
        >>> format_sections({"security": "No issues.", "quality": "Good."})
        '## security\\n\\nNo issues.\\n\\n## quality\\n\\nGood.'
    """
    return "\n\n".join(f"## {name}\n\n{text}" for name, text in outputs.items())


def make_synthesizer(
    generator: Generator,
    instruction: str = "Combine the following analyses into one report.",
) -> Synthesizer:
    """
    Synthesizer that prompts a generator with the input and all outputs.
    """

    async def synthesize(input: str, outputs: dict[str, str]) -> str:
        prompt = f"{instruction}\n\nInput:\n{input}\n\n{format_sections(outputs)}"
        return await generator(prompt)

    return synthesize


class FanOut:
    """
    Reusable fan-out over named branches.

    Attributes:
        branches: Branch name -> async ``input -> text`` (or RunResult).
        synthesizer: Optional async ``(input, outputs) -> text``.
        tolerate_failures: Collect branch failures instead of aborting.

    Example:
        >>> review = FanOut(
        ...     {"quality": quality_reviewer, "security": security_reviewer},
        ...     synthesizer=make_synthesizer(lead_reviewer),
        ... )
        >>> result = await review.run(source_code)
    """

    def __init__(
        self,
        branches: Mapping[str, BranchFn],
        synthesizer: Optional[Synthesizer] = None,
        tolerate_failures: bool = False,
    ) -> None:
        if not branches:
            raise CompositionError("A fan-out needs at least one branch")
        self.branches = dict(branches)
        self.synthesizer = synthesizer
        self.tolerate_failures = tolerate_failures

    async def run(self, input: str) -> FanOutResult:
        """
        Run all branches concurrently, then the synthesizer.

        Raises:
            FanOutError: If a branch fails and failures are not tolerated,
                or if every branch failed.
            CompositionError: If the synthesizer fails.
        """
        log = get_logger(__name__)
        started = time.perf_counter()
        log.info("fan_out_started", branches=list(self.branches))

        tasks = {
            name: asyncio.ensure_future(self._run_branch(name, branch, input))
            for name, branch in self.branches.items()
        }

        outputs: dict[str, str] = {}
        errors: dict[str, str] = {}

        if self.tolerate_failures:
            settled = await asyncio.gather(*tasks.values(), return_exceptions=True)
            for name, outcome in zip(tasks, settled):
                if isinstance(outcome, FanOutError):
                    errors[name] = str(outcome.__cause__ or outcome)
                elif isinstance(outcome, BaseException):
                    raise outcome
                else:
                    outputs[name] = outcome
            if not outputs:
                raise FanOutError(next(iter(errors)), "all branches failed")
        else:
            try:
                values = await asyncio.gather(*tasks.values())
            except BaseException:
                for task in tasks.values():
                    task.cancel()
                await asyncio.gather(*tasks.values(), return_exceptions=True)
                raise
            outputs = dict(zip(tasks, values))

        for name, message in errors.items():
            log.warning("fan_out_branch_failed", branch=name, error=message)

        synthesis = None
        if self.synthesizer is not None:
            try:
                synthesis = await self.synthesizer(input, outputs)
            except Exception as e:
                raise CompositionError(f"Synthesizer failed: {e}") from e

        elapsed = time.perf_counter() - started
        log.info("fan_out_completed", succeeded=len(outputs), failed=len(errors), elapsed=round(elapsed, 3))
        return FanOutResult(
            input=input,
            outputs=outputs,
            errors=errors,
            synthesis=synthesis,
            elapsed=elapsed,
        )

    async def _run_branch(self, name: str, branch: BranchFn, input: str) -> str:
        try:
            output = await branch(input)
            if isinstance(output, RunResult):
                output = output.raise_for_status().text or ""
        except Exception as e:
            raise FanOutError(name, str(e) or type(e).__name__) from e
        return output


async def fan_out(
    input: str,
    branches: Mapping[str, BranchFn],
    synthesizer: Optional[Synthesizer] = None,
    tolerate_failures: bool = False,
) -> FanOutResult:
    """
    Run branches concurrently on one input (see FanOut).

    Example:
        >>> result = await fan_out(
        ...     "def login(user, pw): ...",
        ...     {"quality": quality, "security": security, "improvements": improvements},
        ... )
        >>> result.outputs["security"]
    """
    return await FanOut(branches, synthesizer, tolerate_failures).run(input)
