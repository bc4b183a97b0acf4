"""
Agents Package - the tool-calling agent loop
"""

from agentloop.agents.agent import Agent

__all__ = ["Agent"]
