"""
Unit tests for agentloop/gateway/gemini.py - Gemini REST adapter.

HTTP is served by httpx.MockTransport; no network calls are made.
"""

import json

import httpx
import pytest

from agentloop.models.domain import (
    GatewayRequest,
    ModelTurn,
    ToolCall,
    ToolDefinition,
    ToolResult,
    ToolResultTurn,
    UserTurn,
)


def _text_response(text: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def _gateway(handler, **kwargs):
    from agentloop.gateway.gemini import GeminiGateway

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiGateway(api_key="test-key", client=client, retry_delay=0.0, **kwargs)


# =============================================================================
# Formatter
# =============================================================================


class TestGeminiFormatter:
    def test_tool_manifest_becomes_function_declarations(self, calculator_registry):
        from agentloop.gateway.gemini import GeminiFormatter

        tools = GeminiFormatter().transform_tools(calculator_registry.manifest())

        declarations = tools[0]["functionDeclarations"]
        assert [d["name"] for d in declarations] == ["add", "subtract", "multiply", "divide"]
        assert declarations[0]["parameters"]["required"] == ["a", "b"]

    def test_tool_without_properties_omits_parameters(self):
        from agentloop.gateway.gemini import GeminiFormatter

        declaration = GeminiFormatter().transform_tool_definition(ToolDefinition(name="now"))

        assert declaration == {"name": "now"}

    def test_schema_titles_are_stripped(self):
        from agentloop.gateway.gemini import GeminiFormatter

        definition = ToolDefinition(
            name="convert",
            parameters={
                "title": "Convert",
                "type": "object",
                "properties": {"value": {"title": "Value", "type": "number"}},
            },
        )

        declaration = GeminiFormatter().transform_tool_definition(definition)

        assert declaration["parameters"] == {
            "type": "object",
            "properties": {"value": {"type": "number"}},
        }

    def test_turns_map_to_contents(self):
        from agentloop.gateway.gemini import GeminiFormatter

        call = ToolCall(id="call_1", name="add", arguments={"a": 5, "b": 3})
        turns = [
            UserTurn(text="What is 5 + 3?"),
            ModelTurn(text="", tool_calls=[call]),
            ToolResultTurn(
                results=[ToolResult(tool_call_id="call_1", name="add", payload=8)]
            ),
        ]

        contents = GeminiFormatter().transform_turns(turns)

        assert contents == [
            {"role": "user", "parts": [{"text": "What is 5 + 3?"}]},
            {"role": "model", "parts": [{"functionCall": {"name": "add", "args": {"a": 5, "b": 3}}}]},
            {
                "role": "user",
                "parts": [{"functionResponse": {"name": "add", "response": {"result": 8}}}],
            },
        ]

    def test_record_payload_is_sent_as_is(self):
        from agentloop.gateway.gemini import GeminiFormatter

        turn = ToolResultTurn(
            results=[
                ToolResult(
                    tool_call_id="c",
                    name="divide",
                    payload={"success": False, "error": "Cannot divide by zero", "tool": "divide"},
                    is_error=True,
                )
            ]
        )

        contents = GeminiFormatter().transform_turns([turn])

        response = contents[0]["parts"][0]["functionResponse"]["response"]
        assert response["error"] == "Cannot divide by zero"

    def test_parse_text_and_function_calls(self):
        from agentloop.gateway.gemini import GeminiFormatter

        response = GeminiFormatter().parse_response(
            {
                "candidates": [
                    {
                        "content": {
                            "parts": [
                                {"text": "Let me calculate."},
                                {"functionCall": {"name": "add", "args": {"a": 1, "b": 2}}},
                                {"functionCall": {"name": "multiply", "args": {"a": 3, "b": 4}}},
                            ]
                        }
                    }
                ]
            }
        )

        assert response.text == "Let me calculate."
        assert [c.name for c in response.tool_calls] == ["add", "multiply"]
        assert response.tool_calls[1].arguments == {"a": 3, "b": 4}

    def test_no_candidates_raises(self):
        from agentloop.core.exceptions import GatewayError
        from agentloop.gateway.gemini import GeminiFormatter

        with pytest.raises(GatewayError) as exc_info:
            GeminiFormatter().parse_response({"promptFeedback": {"blockReason": "SAFETY"}})

        assert "SAFETY" in str(exc_info.value)


# =============================================================================
# Gateway
# =============================================================================


class TestGeminiGateway:
    @pytest.mark.asyncio
    async def test_posts_generate_content(self, calculator_registry):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["headers"] = request.headers
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=_text_response("8"))

        gateway = _gateway(handler, model="gemini-1.5-flash")
        response = await gateway.generate(
            GatewayRequest(
                system_prompt="You are a calculator.",
                turns=[UserTurn(text="5 + 3")],
                tools=calculator_registry.manifest(),
            )
        )

        assert response.text == "8"
        assert captured["url"].endswith("/models/gemini-1.5-flash:generateContent")
        assert captured["headers"]["x-goog-api-key"] == "test-key"
        body = captured["body"]
        assert body["systemInstruction"] == {"parts": [{"text": "You are a calculator."}]}
        assert body["contents"] == [{"role": "user", "parts": [{"text": "5 + 3"}]}]
        assert len(body["tools"][0]["functionDeclarations"]) == 4

    @pytest.mark.asyncio
    async def test_request_model_overrides_default(self):
        urls = []

        def handler(request: httpx.Request) -> httpx.Response:
            urls.append(str(request.url))
            return httpx.Response(200, json=_text_response("ok"))

        gateway = _gateway(handler, model="gemini-1.5-flash")
        await gateway.generate(GatewayRequest(turns=[UserTurn(text="hi")], model="gemini-2.0-flash"))

        assert urls[0].endswith("/models/gemini-2.0-flash:generateContent")

    @pytest.mark.asyncio
    async def test_no_tools_omits_tools_field(self):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json=_text_response("ok"))

        await _gateway(handler).generate(GatewayRequest(turns=[UserTurn(text="hi")]))

        assert "tools" not in bodies[0]
        assert "systemInstruction" not in bodies[0]

    @pytest.mark.asyncio
    async def test_auth_error_not_retried(self):
        from agentloop.core.exceptions import AuthenticationError

        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            return httpx.Response(403, text="API key not valid")

        with pytest.raises(AuthenticationError) as exc_info:
            await _gateway(handler, max_retries=3).generate(
                GatewayRequest(turns=[UserTurn(text="hi")])
            )

        assert len(attempts) == 1
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_rate_limit_not_retried(self):
        from agentloop.core.exceptions import RateLimitError

        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            return httpx.Response(429, text="quota", headers={"retry-after": "12"})

        with pytest.raises(RateLimitError) as exc_info:
            await _gateway(handler, max_retries=3).generate(
                GatewayRequest(turns=[UserTurn(text="hi")])
            )

        assert len(attempts) == 1
        assert exc_info.value.retry_after == 12

    @pytest.mark.asyncio
    async def test_server_error_retried_then_succeeds(self):
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            if len(attempts) < 3:
                return httpx.Response(503, text="unavailable")
            return httpx.Response(200, json=_text_response("finally"))

        response = await _gateway(handler, max_retries=3).generate(
            GatewayRequest(turns=[UserTurn(text="hi")])
        )

        assert response.text == "finally"
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_retries_exhausted_raises_gateway_error(self):
        from agentloop.core.exceptions import GatewayError

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="internal")

        with pytest.raises(GatewayError) as exc_info:
            await _gateway(handler, max_retries=2).generate(
                GatewayRequest(turns=[UserTurn(text="hi")])
            )

        assert "after 2 attempts" in str(exc_info.value)
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_non_json_body_becomes_gateway_error(self):
        from agentloop.core.exceptions import GatewayError

        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            return httpx.Response(200, text="<html>proxy</html>")

        with pytest.raises(GatewayError) as exc_info:
            await _gateway(handler, max_retries=2).generate(
                GatewayRequest(turns=[UserTurn(text="hi")])
            )

        assert "Invalid JSON" in str(exc_info.value)
        assert exc_info.value.status_code == 200
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_transport_error_becomes_gateway_error(self):
        from agentloop.core.exceptions import GatewayError

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused")

        with pytest.raises(GatewayError):
            await _gateway(handler, max_retries=1).generate(
                GatewayRequest(turns=[UserTurn(text="hi")])
            )

    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json=_text_response("ok")))
        )
        from agentloop.gateway.gemini import GeminiGateway

        async with GeminiGateway(api_key="k", client=client):
            pass

        assert client.is_closed is False
        await client.aclose()
