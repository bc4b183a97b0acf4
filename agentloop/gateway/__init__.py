"""
Gateway Package - Model Gateway Port and Adapters

This package provides the abstract model gateway, the Gemini REST adapter
and a scripted fake for tests and local development.
"""

from agentloop.gateway.base import ModelGateway, generate_text, make_generator
from agentloop.gateway.fake import FakeGateway
from agentloop.gateway.gemini import GeminiFormatter, GeminiGateway

__all__ = [
    "ModelGateway",
    "generate_text",
    "make_generator",
    "FakeGateway",
    "GeminiFormatter",
    "GeminiGateway",
]
