"""
Fake Model Gateway - Test Double Implementation

This module provides a FakeGateway that implements the ModelGateway
interface without making network calls. Responses come from a script (a
list consumed in order) or from a responder callable that inspects each
request.

This is NOT mocking - it is a proper implementation of the interface. The
FakeGateway can be used for:
- Local development without API keys
- Integration testing of agents and compositions without network calls
- Deterministic replays of a model conversation
"""

import asyncio
import inspect
from typing import Awaitable, Callable, Iterable, Optional, Union

from agentloop.core.exceptions import GatewayError
from agentloop.gateway.base import ModelGateway
from agentloop.models.domain import GatewayRequest, ModelResponse

ScriptItem = Union[ModelResponse, str, Exception]
Responder = Callable[
    [GatewayRequest], Union[ScriptItem, Awaitable[ScriptItem]]
]


class FakeGateway(ModelGateway):
    """
    Fake model gateway for testing and local development.

    Pattern: FakeRepository (duck-typed test double with real behavior)

    Script items may be ModelResponse instances, plain strings (final text
    answers) or exceptions, which are raised when reached.

    Attributes:
        name: Gateway identifier
        latency: Seconds to sleep before answering
        error_on_generate: Optional exception to raise on every call
        calls: Snapshots of every request received, in order

    Example:
        >>> gateway = FakeGateway([
        ...     ModelResponse.calling(ToolCall(name="add", arguments={"a": 5, "b": 3})),
        ...     "The answer is 8.",
        ... ])
        >>> agent = Agent(gateway=gateway, registry=registry)
        >>> result = await agent.run("What is 5 + 3?")
        >>> assert len(gateway.calls) == 2
    """

    def __init__(
        self,
        responses: Optional[Iterable[ScriptItem]] = None,
        responder: Optional[Responder] = None,
        latency: float = 0.0,
        error_on_generate: Optional[Exception] = None,
        name: str = "fake",
    ) -> None:
        """
        Initialize the fake gateway.

        Args:
            responses: Scripted responses, consumed one per call
            responder: Callable producing a response from each request; used
                once the script is exhausted (or when there is none)
            latency: Seconds to sleep before each answer
            error_on_generate: Exception to raise on every call
            name: Gateway identifier (default: "fake")
        """
        self.name = name
        self._script: list[ScriptItem] = list(responses or [])
        self.responder = responder
        self.latency = latency
        self.error_on_generate = error_on_generate

        # Track calls for test assertions
        self.calls: list[GatewayRequest] = []

    @property
    def remaining(self) -> int:
        """Number of scripted responses not consumed yet."""
        return len(self._script)

    def push(self, *items: ScriptItem) -> None:
        """Append responses to the script."""
        self._script.extend(items)

    async def generate(self, request: GatewayRequest) -> ModelResponse:
        """
        Answer with the next scripted response or the responder's output.

        Raises:
            GatewayError: If neither a scripted response nor a responder is
                available
            Exception: If error_on_generate was set, or a scripted item is
                an exception
        """
        self.calls.append(request.model_copy(deep=True))

        if self.latency:
            await asyncio.sleep(self.latency)

        if self.error_on_generate is not None:
            raise self.error_on_generate

        if self._script:
            item = self._script.pop(0)
        elif self.responder is not None:
            item = self.responder(request)
            if inspect.isawaitable(item):
                item = await item
        else:
            raise GatewayError(
                f"Fake gateway script exhausted after {len(self.calls) - 1} responses",
                gateway=self.name,
            )

        return self._coerce(item)

    @staticmethod
    def _coerce(item: ScriptItem) -> ModelResponse:
        if isinstance(item, Exception):
            raise item
        if isinstance(item, str):
            return ModelResponse.final(item)
        return item
