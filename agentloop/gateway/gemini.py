"""
Gemini Gateway - Google Generative Language API Adapter

This module implements the ModelGateway port for Google's Gemini models over
the REST ``generateContent`` endpoint, including the translation of tool
manifests, tool calls and tool results to and from the Gemini wire format.

Reference:
- Google Generative AI API Docs: https://ai.google.dev/api

Design Patterns:
- Ports and Adapters: GeminiGateway implements ModelGateway
- Adapter: GeminiFormatter translates conversation turns to Gemini contents
- Retry with Exponential Backoff: Handles transient errors
"""

import asyncio
import json
import logging
import uuid
from typing import Any, Optional

import httpx

from agentloop.core.config import get_settings
from agentloop.core.exceptions import (
    AuthenticationError,
    GatewayError,
    RateLimitError,
)
from agentloop.gateway.base import ModelGateway
from agentloop.models.domain import (
    GatewayRequest,
    ModelResponse,
    ModelTurn,
    ToolCall,
    ToolDefinition,
    ToolResultTurn,
    Turn,
    UserTurn,
)

logger = logging.getLogger(__name__)

# Schema keys the Gemini function declaration schema does not accept
_UNSUPPORTED_SCHEMA_KEYS = frozenset(
    {"title", "$schema", "additionalProperties", "default", "examples"}
)


# =============================================================================
# Gemini Formatter
# =============================================================================


class GeminiFormatter:
    """
    Translate between runtime models and the Gemini wire format.

    This class provides methods to:
    - Transform tool definitions to Gemini function declarations
    - Transform conversation turns to Gemini contents
    - Parse Gemini candidates into a ModelResponse

    Pattern: Adapter pattern for format transformation

    Example:
        >>> formatter = GeminiFormatter()
        >>> payload = formatter.build_payload(request)
        >>> response = formatter.parse_response(response_data)
    """

    # =========================================================================
    # Tools
    # =========================================================================

    def transform_tool_definition(self, tool: ToolDefinition) -> dict[str, Any]:
        """
        Transform a tool definition to a Gemini function declaration.

        Returns:
            {"name": str, "description": Optional[str], "parameters": dict}.
            Parameters are omitted for tools without properties.
        """
        declaration: dict[str, Any] = {"name": tool.name}
        if tool.description:
            declaration["description"] = tool.description

        if tool.parameters.get("properties"):
            declaration["parameters"] = self._clean_schema(tool.parameters)

        return declaration

    def transform_tools(self, tools: list[ToolDefinition]) -> list[dict[str, Any]]:
        """
        Transform a tool manifest to the Gemini tools field.

        Returns:
            [{"functionDeclarations": [...]}]
        """
        return [
            {"functionDeclarations": [self.transform_tool_definition(t) for t in tools]}
        ]

    def _clean_schema(self, schema: Any) -> Any:
        """Recursively drop schema keys Gemini rejects."""
        if isinstance(schema, dict):
            return {
                key: self._clean_schema(value)
                for key, value in schema.items()
                if key not in _UNSUPPORTED_SCHEMA_KEYS
            }
        if isinstance(schema, list):
            return [self._clean_schema(item) for item in schema]
        return schema

    # =========================================================================
    # Turns
    # =========================================================================

    def transform_turns(self, turns: list[Turn]) -> list[dict[str, Any]]:
        """
        Transform conversation turns to Gemini contents.

        User turns become ``user`` text parts, model turns become ``model``
        parts with text and ``functionCall`` entries, and tool result turns
        become a ``user`` message of ``functionResponse`` parts.
        """
        contents: list[dict[str, Any]] = []

        for turn in turns:
            if isinstance(turn, UserTurn):
                contents.append({"role": "user", "parts": [{"text": turn.text}]})
            elif isinstance(turn, ModelTurn):
                parts: list[dict[str, Any]] = []
                if turn.text:
                    parts.append({"text": turn.text})
                for call in turn.tool_calls:
                    args = self._json_safe(call.arguments or {})
                    parts.append({"functionCall": {"name": call.name, "args": args}})
                if parts:
                    contents.append({"role": "model", "parts": parts})
            elif isinstance(turn, ToolResultTurn):
                contents.append(
                    {
                        "role": "user",
                        "parts": [
                            {
                                "functionResponse": {
                                    "name": result.name,
                                    "response": self._wrap_payload(result.payload),
                                }
                            }
                            for result in turn.results
                        ],
                    }
                )

        return contents

    def _wrap_payload(self, payload: Any) -> dict[str, Any]:
        """functionResponse.response must be an object."""
        safe = self._json_safe(payload)
        if isinstance(safe, dict):
            return safe
        return {"result": safe}

    def _json_safe(self, value: Any) -> Any:
        return json.loads(json.dumps(value, default=str))

    def build_payload(self, request: GatewayRequest) -> dict[str, Any]:
        """
        Build the generateContent request body.

        Args:
            request: The gateway request.

        Returns:
            Dict payload for the API call.
        """
        payload: dict[str, Any] = {"contents": self.transform_turns(request.turns)}

        if request.system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": request.system_prompt}]}

        if request.tools:
            payload["tools"] = self.transform_tools(request.tools)

        return payload

    # =========================================================================
    # Responses
    # =========================================================================

    def parse_response(self, response_data: dict[str, Any]) -> ModelResponse:
        """
        Parse a generateContent response body.

        Only the first candidate is read.

        Raises:
            GatewayError: If the response has no candidates.
        """
        candidates = response_data.get("candidates") or []
        if not candidates:
            feedback = response_data.get("promptFeedback", {})
            reason = feedback.get("blockReason", "no candidates returned")
            raise GatewayError(f"Gemini returned no candidates: {reason}", gateway="gemini")

        parts = candidates[0].get("content", {}).get("parts", [])
        fragments: list[str] = []
        tool_calls: list[ToolCall] = []

        for part in parts:
            if "functionCall" in part:
                func_call = part["functionCall"]
                tool_calls.append(
                    ToolCall(
                        id=func_call.get("id") or f"call_{uuid.uuid4().hex[:24]}",
                        name=func_call.get("name", ""),
                        arguments=func_call.get("args") or {},
                    )
                )
            elif "text" in part:
                fragments.append(part["text"])

        return ModelResponse(text_fragments=fragments, tool_calls=tool_calls)


# =============================================================================
# Gemini Gateway
# =============================================================================


class GeminiGateway(ModelGateway):
    """
    Google Gemini gateway adapter.

    Pattern: Ports and Adapters (Hexagonal Architecture)
    Pattern: Retry with Exponential Backoff

    Args:
        api_key: Google AI API key. Falls back to settings (GEMINI_API_KEY).
        model: Default model when a request names none.
        max_retries: Maximum attempts for transient errors.
        retry_delay: Initial delay between retries (exponential backoff).
        api_base: Base URL for the Gemini API.
        timeout: HTTP timeout in seconds.
        client: Optional httpx.AsyncClient to use instead of an owned one.

    Example:
        >>> async with GeminiGateway() as gateway:
        ...     agent = Agent(gateway=gateway, registry=registry)
        ...     result = await agent.run("What is (5 + 3) * 4?")
    """

    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        settings = get_settings()

        self._api_key = api_key or settings.gemini_api_key.get_secret_value()
        if not self._api_key:
            logger.warning("No Gemini API key provided. Set GEMINI_API_KEY env var.")

        self._model = model or settings.default_model
        self._max_retries = max_retries if max_retries is not None else settings.gateway_max_retries
        self._retry_delay = (
            retry_delay if retry_delay is not None else settings.gateway_retry_delay_seconds
        )
        self._api_base = (api_base or settings.gemini_api_base).rstrip("/")
        self._formatter = GeminiFormatter()

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout if timeout is not None else settings.gateway_timeout_seconds
        )

    async def aclose(self) -> None:
        """Close the HTTP client if this gateway created it."""
        if self._owns_client:
            await self._client.aclose()

    # =========================================================================
    # generate() method
    # =========================================================================

    async def generate(self, request: GatewayRequest) -> ModelResponse:
        """
        Run one generateContent round trip.

        Raises:
            GatewayError: On API errors after retry exhaustion.
            RateLimitError: On rate limit errors.
            AuthenticationError: On auth errors.
        """
        model = request.model or self._model
        url = f"{self._api_base}/models/{model}:generateContent"
        payload = self._formatter.build_payload(request)

        response_data = await self._execute_with_retry(url, payload)
        return self._formatter.parse_response(response_data)

    # =========================================================================
    # Retry Logic with Exponential Backoff
    # =========================================================================

    async def _execute_with_retry(
        self,
        url: str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Execute the HTTP request with retry logic and exponential backoff.

        Raises:
            RateLimitError: Immediately on rate limit errors (no retry).
            AuthenticationError: Immediately on auth errors (no retry).
            GatewayError: On other errors after retry exhaustion.
        """
        last_error: Optional[Exception] = None

        for attempt in range(self._max_retries):
            try:
                response = await self._client.post(
                    url,
                    json=payload,
                    headers={
                        "Content-Type": "application/json",
                        "x-goog-api-key": self._api_key,
                    },
                )

                if response.status_code == 200:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise GatewayError(
                            f"Invalid JSON in response body: {e}",
                            gateway=self.name,
                            status_code=200,
                        ) from e

                self._handle_error_response(response)

            except (AuthenticationError, RateLimitError):
                raise
            except GatewayError as e:
                last_error = e
            except httpx.HTTPError as e:
                last_error = GatewayError(str(e) or type(e).__name__, gateway=self.name)

            logger.warning(
                f"Gemini attempt {attempt + 1}/{self._max_retries} failed: {last_error}"
            )
            if attempt < self._max_retries - 1:
                await asyncio.sleep(self._retry_delay * (2**attempt))

        raise GatewayError(
            f"Request failed after {self._max_retries} attempts: {last_error}",
            gateway=self.name,
            status_code=getattr(last_error, "status_code", None),
        )

    def _handle_error_response(self, response: httpx.Response) -> None:
        """
        Map an HTTP error response to a gateway exception.

        Raises:
            AuthenticationError: For 401/403 errors.
            RateLimitError: For 429 errors.
            GatewayError: For other errors.
        """
        status_code = response.status_code
        error_text = response.text

        if status_code in (401, 403):
            raise AuthenticationError(
                f"Authentication failed: {error_text}",
                gateway=self.name,
                status_code=status_code,
            )

        if status_code == 429:
            retry_after = response.headers.get("retry-after")
            raise RateLimitError(
                f"Rate limit exceeded: {error_text}",
                gateway=self.name,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )

        raise GatewayError(
            f"Gemini API error ({status_code}): {error_text}",
            gateway=self.name,
            status_code=status_code,
        )
