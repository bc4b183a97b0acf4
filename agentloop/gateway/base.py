"""
Model Gateway Interface

This module defines the abstract base class for model gateways: the one
true external boundary of the runtime. A gateway receives the system
prompt, the conversation history and the tool manifest, and answers with
text fragments, tool calls, or both.

Design Pattern:
- Ports and Adapters (Hexagonal Architecture)
- ModelGateway is the "port"; GeminiGateway and FakeGateway are "adapters"

Gateway failures (network, authentication, quota) are raised as
GatewayError subclasses and are fatal to the enclosing agent run.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

from agentloop.models.domain import GatewayRequest, ModelResponse, UserTurn


class ModelGateway(ABC):
    """
    Abstract base class for model gateway adapters.

    Pattern: ABC for interface contracts
    Pattern: @abstractmethod for enforcement

    Example:
        >>> class EchoGateway(ModelGateway):
        ...     name = "echo"
        ...
        ...     async def generate(self, request: GatewayRequest) -> ModelResponse:
        ...         return ModelResponse.final(request.turns[-1].text)
    """

    name: str = "gateway"

    @abstractmethod
    async def generate(self, request: GatewayRequest) -> ModelResponse:
        """
        Run one model round trip.

        Args:
            request: System prompt, conversation turns, tool manifest and
                optional model name.

        Returns:
            ModelResponse: Text fragments and any requested tool calls.
                A response with at least one tool call is not final.

        Raises:
            GatewayError: If the vendor API fails
            AuthenticationError: If credentials are rejected
            RateLimitError: If quota is exhausted
        """
        ...

    async def aclose(self) -> None:
        """Release resources held by the gateway (no-op by default)."""
        return None

    async def __aenter__(self) -> "ModelGateway":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


# =============================================================================
# Single-shot Generation
# =============================================================================


async def generate_text(
    gateway: ModelGateway,
    system_prompt: Optional[str],
    prompt: str,
    model: Optional[str] = None,
) -> str:
    """
    One tool-less gateway call returning the text answer.

    This is the building block of pipelines, fan-outs, workers and debates:
    a stateless "expert" defined only by its system prompt.

    Args:
        gateway: The model gateway.
        system_prompt: Persona of the generator.
        prompt: The user prompt.
        model: Optional model name.

    Returns:
        The concatenated text of the response.
    """
    request = GatewayRequest(
        system_prompt=system_prompt,
        turns=[UserTurn(text=prompt)],
        model=model,
    )
    response = await gateway.generate(request)
    return response.text


Generator = Callable[[str], Awaitable[str]]


def make_generator(
    gateway: ModelGateway,
    system_prompt: Optional[str],
    model: Optional[str] = None,
) -> Generator:
    """
    Bind a gateway and system prompt into an async ``prompt -> text`` callable.

    Example:
        >>> editor = make_generator(gateway, "You are a senior editor.")
        >>> final = await editor(f"Review and improve:\\n\\n{draft}")
    """

    async def generate(prompt: str) -> str:
        return await generate_text(gateway, system_prompt, prompt, model=model)

    return generate
