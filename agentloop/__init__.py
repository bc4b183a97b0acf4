"""
agentloop - a tool-calling agent runtime

Register tools, hand them to an Agent with a model gateway, and the agent
drives the request/execute/respond loop until the model answers. Pipelines,
fan-outs, orchestrators and debates compose agents into larger workflows.
"""

from agentloop.agents import Agent
from agentloop.gateway import FakeGateway, GeminiGateway, ModelGateway, generate_text, make_generator
from agentloop.models import (
    AgentConfig,
    ModelResponse,
    RegisteredTool,
    RunResult,
    ToolCall,
    ToolDefinition,
    ToolResult,
)
from agentloop.tools import Skill, ToolExecutor, ToolRegistry

__version__ = "1.0.0"

__all__ = [
    "Agent",
    "AgentConfig",
    "FakeGateway",
    "GeminiGateway",
    "ModelGateway",
    "ModelResponse",
    "RegisteredTool",
    "RunResult",
    "Skill",
    "ToolCall",
    "ToolDefinition",
    "ToolExecutor",
    "ToolRegistry",
    "ToolResult",
    "generate_text",
    "make_generator",
]
