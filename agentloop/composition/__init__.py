"""
Composition Package - multi-agent patterns

Sequential pipelines, parallel fan-out/fan-in, orchestrator/worker
delegation and debate with a judge, built from agents and single-shot
generators.
"""

from agentloop.composition.debate import (
    DebateResult,
    DebateRound,
    format_transcript,
    make_debater,
    make_judge,
    run_debate,
)
from agentloop.composition.fan_out import (
    FanOut,
    FanOutResult,
    fan_out,
    format_sections,
    make_synthesizer,
)
from agentloop.composition.orchestrator import (
    LedgerEntry,
    WorkerTask,
    agent_worker,
    build_worker_tool,
    create_orchestrator,
)
from agentloop.composition.pipeline import (
    Pipeline,
    PipelineResult,
    PipelineStage,
    PipelineState,
    agent_stage,
    generator_stage,
)

__all__ = [
    "Pipeline",
    "PipelineResult",
    "PipelineStage",
    "PipelineState",
    "agent_stage",
    "generator_stage",
    "FanOut",
    "FanOutResult",
    "fan_out",
    "format_sections",
    "make_synthesizer",
    "LedgerEntry",
    "WorkerTask",
    "agent_worker",
    "build_worker_tool",
    "create_orchestrator",
    "DebateResult",
    "DebateRound",
    "format_transcript",
    "make_debater",
    "make_judge",
    "run_debate",
]
