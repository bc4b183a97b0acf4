#!/usr/bin/env python3
"""
Calculator Agent Demo

Runs a calculator agent against the Gemini API. The model must use the
arithmetic tools for every step, so a question like "(5 + 3) * 4 / 8" takes
several tool round trips.

Usage:
    GEMINI_API_KEY=... python scripts/calculator_demo.py
    GEMINI_API_KEY=... python scripts/calculator_demo.py "What is 12% of 250?"
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from agentloop import Agent, GeminiGateway, ToolRegistry  # noqa: E402
from agentloop.observability import configure_logging  # noqa: E402

NUMBER_PAIR = {
    "type": "OBJECT",
    "properties": {
        "a": {"type": "NUMBER", "description": "First number"},
        "b": {"type": "NUMBER", "description": "Second number"},
    },
    "required": ["a", "b"],
}

SYSTEM_PROMPT = (
    "You are a precise calculator assistant. Use the tools for every "
    "arithmetic operation, one step at a time, then state the final result."
)


def divide(args: dict) -> dict:
    if args["b"] == 0:
        raise ValueError("Cannot divide by zero")
    return {"result": args["a"] / args["b"]}


def build_registry() -> ToolRegistry:
    registry = ToolRegistry()
    registry.register_function(
        "add", lambda a: {"result": a["a"] + a["b"]}, "Add two numbers", NUMBER_PAIR
    )
    registry.register_function(
        "subtract", lambda a: {"result": a["a"] - a["b"]}, "Subtract b from a", NUMBER_PAIR
    )
    registry.register_function(
        "multiply", lambda a: {"result": a["a"] * a["b"]}, "Multiply two numbers", NUMBER_PAIR
    )
    registry.register_function("divide", divide, "Divide a by b", NUMBER_PAIR)
    return registry


async def main(question: str) -> int:
    configure_logging(level="INFO")

    async with GeminiGateway() as gateway:
        agent = Agent(
            gateway=gateway,
            registry=build_registry(),
            name="Calculator",
            system_prompt=SYSTEM_PROMPT,
        )
        result = await agent.run(question)

    if not result.success:
        print(f"Gave up after {result.steps} steps ({result.reason})")
        return 1

    print(result.text)
    print(f"\n{result.steps} steps, {result.elapsed:.1f}s")
    return 0


if __name__ == "__main__":
    question = " ".join(sys.argv[1:]) or "What is (5 + 3) * 4 / 8?"
    sys.exit(asyncio.run(main(question)))
