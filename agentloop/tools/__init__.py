"""
Tools Package - Tool Registry, Skills and Execution

This package provides the registry of tools an agent exposes, skill bundles
that merge into one agent, and the executor that runs tool calls.
"""

from agentloop.tools.executor import ToolExecutor
from agentloop.tools.registry import ToolRegistry
from agentloop.tools.skills import Skill, build_skill_prompt, compose_skills

__all__ = [
    "ToolRegistry",
    "ToolExecutor",
    "Skill",
    "build_skill_prompt",
    "compose_skills",
]
