"""
Debate / Judge

Two debaters argue opposite sides of a topic for a fixed number of rounds,
then a judge reads the transcript and gives a verdict. Within a round both
sides run concurrently; from round 2 on each side receives the opponent's
previous argument verbatim.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Literal, Optional

from agentloop.gateway.base import ModelGateway, generate_text
from agentloop.observability.logging import get_logger

# (topic, context, opponent_argument) -> argument
Debater = Callable[[str, Optional[str], Optional[str]], Awaitable[str]]
# (topic, context, transcript) -> verdict
Judge = Callable[[str, Optional[str], str], Awaitable[str]]

Side = Literal["for", "against"]

_DEBATER_PROMPTS = {
    "for": (
        "You are a skilled debater arguing STRONGLY IN FAVOR of the given topic. "
        "Be persuasive, use data and examples, and stay under 200 words."
    ),
    "against": (
        "You are a skilled debater arguing STRONGLY AGAINST the given topic. "
        "Be persuasive, use data and examples, and stay under 200 words."
    ),
}

_JUDGE_PROMPT = """You are an impartial judge evaluating a debate. Be objective and analytical.
Score each side 1-10 on: Evidence, Logic, Persuasiveness.
Give a final verdict with clear reasoning.
Format:
## Scores
## Key Takeaways from Each Side
## Final Verdict
## Recommendation"""


@dataclass
class DebateRound:
    pro: str
    con: str


@dataclass
class DebateResult:
    """
    Outcome of a debate.

    Attributes:
        topic: The debated proposition.
        rounds: Arguments per round, in order.
        transcript: The text the judge received.
        verdict: The judge's answer.
    """

    topic: str
    rounds: list[DebateRound]
    transcript: str
    verdict: str


def _with_context(text: str, context: Optional[str]) -> str:
    return f"{text}\nContext: {context}" if context else text


def make_debater(
    gateway: ModelGateway,
    side: Side,
    system_prompt: Optional[str] = None,
    model: Optional[str] = None,
) -> Debater:
    """
    Debater for one side backed by single-shot generation.

    The opening prompt asks for the strongest case for the side; rebuttal
    prompts quote the opponent's argument.
    """
    if side not in _DEBATER_PROMPTS:
        raise ValueError(f"side must be 'for' or 'against', got {side!r}")
    persona = system_prompt or _DEBATER_PROMPTS[side]

    async def argue(topic: str, context: Optional[str], opponent: Optional[str]) -> str:
        if opponent is None:
            prompt = _with_context(
                f'Make the strongest possible case {side.upper()}: "{topic}"', context
            )
        else:
            prompt = (
                _with_context(f'Topic: "{topic}"', context)
                + f'\n\nYour opponent said:\n"{opponent}"\n\n'
                "Counter their argument AND strengthen your position."
            )
        return await generate_text(gateway, persona, prompt, model=model)

    return argue


def make_judge(
    gateway: ModelGateway,
    system_prompt: Optional[str] = None,
    model: Optional[str] = None,
) -> Judge:
    """Judge backed by single-shot generation."""
    persona = system_prompt or _JUDGE_PROMPT

    async def judge(topic: str, context: Optional[str], transcript: str) -> str:
        prompt = (
            _with_context(f'Topic: "{topic}"', context)
            + f"\n\nDebate Transcript:\n{transcript}"
        )
        return await generate_text(gateway, persona, prompt, model=model)

    return judge


def format_transcript(rounds: list[DebateRound]) -> str:
    """Render rounds as ``=== Round i ===`` blocks separated by blank lines."""
    return "\n\n".join(
        f"=== Round {i} ===\nFOR: {r.pro}\n\nAGAINST: {r.con}"
        for i, r in enumerate(rounds, start=1)
    )


async def run_debate(
    topic: str,
    pro: Debater,
    con: Debater,
    judge: Judge,
    rounds: int = 2,
    context: Optional[str] = None,
) -> DebateResult:
    """
    Run a debate for a fixed number of rounds and judge it.

    All rounds always complete; there is no early stop.

    Args:
        topic: The proposition.
        pro: Debater arguing for.
        con: Debater arguing against.
        judge: Judge reading the transcript.
        rounds: Number of rounds (at least 1).
        context: Optional background passed to every participant.

    Raises:
        ValueError: If rounds < 1.
    """
    if rounds < 1:
        raise ValueError("A debate needs at least one round")

    log = get_logger(__name__)
    history: list[DebateRound] = []
    last_pro: Optional[str] = None
    last_con: Optional[str] = None

    for number in range(1, rounds + 1):
        pro_arg, con_arg = await asyncio.gather(
            pro(topic, context, last_con),
            con(topic, context, last_pro),
        )
        last_pro, last_con = pro_arg, con_arg
        history.append(DebateRound(pro=pro_arg, con=con_arg))
        log.info("debate_round_completed", round=number, total=rounds)

    transcript = format_transcript(history)
    verdict = await judge(topic, context, transcript)
    log.info("debate_judged", topic=topic, rounds=rounds)

    return DebateResult(topic=topic, rounds=history, transcript=transcript, verdict=verdict)
