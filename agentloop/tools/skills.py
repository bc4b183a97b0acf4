"""
Skills - bundles of instructions and tools

A skill is a named capability: a block of instructions for the model plus the
tools that back it. Several skills merge into one agent: their instructions
are concatenated into the system prompt and their tools into one registry.
A skill never brings its own loop.
"""

from typing import Optional, Sequence

from pydantic import BaseModel, Field

from agentloop.models.domain import RegisteredTool
from agentloop.tools.registry import ToolRegistry


class Skill(BaseModel):
    """
    A named set of instructions and tools.

    Attributes:
        name: Skill name, used as a heading in the system prompt.
        instructions: How the model should use this skill.
        tools: Tools backing the skill.

    Example:
        >>> refunds = Skill(
        ...     name="Refund Processing",
        ...     instructions="Only refund delivered orders.",
        ...     tools=refund_tools(store),
        ... )
    """

    name: str
    instructions: str = ""
    tools: list[RegisteredTool] = Field(default_factory=list)

    model_config = {"arbitrary_types_allowed": True}


def build_skill_prompt(
    agent_name: str,
    skills: Sequence[Skill],
    preamble: Optional[str] = None,
    rules: Optional[str] = None,
) -> str:
    """
    Merge skill instructions into one system prompt.

    Args:
        agent_name: Name the model should answer as.
        skills: Skills to describe, in order.
        preamble: Opening line; defaults to "You are <agent_name>.".
        rules: General rules appended after the capabilities.

    Returns:
        The system prompt.
    """
    sections = [preamble or f"You are {agent_name}."]
    if skills:
        sections.append("Your capabilities:")
        for skill in skills:
            sections.append(f"## {skill.name}\n{skill.instructions.strip()}")
    if rules:
        sections.append(f"General rules:\n{rules.strip()}")
    return "\n\n".join(sections)


def compose_skills(
    agent_name: str,
    skills: Sequence[Skill],
    preamble: Optional[str] = None,
    rules: Optional[str] = None,
) -> tuple[str, ToolRegistry]:
    """
    Combine skills into a system prompt and a tool registry.

    Returns:
        (system_prompt, registry)

    Raises:
        DuplicateToolError: If two skills declare the same tool name.
    """
    registry = ToolRegistry()
    for skill in skills:
        for tool in skill.tools:
            registry.register(tool)
    return build_skill_prompt(agent_name, skills, preamble, rules), registry
