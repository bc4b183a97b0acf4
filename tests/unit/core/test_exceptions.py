"""
Unit tests for agentloop/core/exceptions.py - exception hierarchy.
"""

import pytest


class TestBaseException:
    def test_message_and_default_code(self):
        from agentloop.core.exceptions import AgentLoopException, ErrorCode

        exc = AgentLoopException("boom")

        assert str(exc) == "boom"
        assert exc.message == "boom"
        assert exc.error_code == ErrorCode.AGENT_ERROR

    def test_extra_attributes_are_set(self):
        from agentloop.core.exceptions import AgentLoopException

        exc = AgentLoopException("boom", detail="x")

        assert exc.detail == "x"


class TestGatewayErrors:
    def test_gateway_error_carries_gateway_and_status(self):
        from agentloop.core.exceptions import GatewayError

        exc = GatewayError("bad gateway", gateway="gemini", status_code=502)

        assert exc.gateway == "gemini"
        assert exc.status_code == 502

    def test_auth_and_rate_limit_are_gateway_errors(self):
        from agentloop.core.exceptions import (
            AuthenticationError,
            ErrorCode,
            GatewayError,
            RateLimitError,
        )

        auth = AuthenticationError("denied", gateway="gemini", status_code=403)
        limited = RateLimitError("slow down", gateway="gemini", retry_after=30)

        assert isinstance(auth, GatewayError)
        assert auth.error_code == ErrorCode.AUTHENTICATION_ERROR
        assert isinstance(limited, GatewayError)
        assert limited.status_code == 429
        assert limited.retry_after == 30


class TestToolErrors:
    def test_unknown_tool_lists_available_names(self):
        from agentloop.core.exceptions import ToolExecutionError, UnknownToolError

        exc = UnknownToolError("sqrt", available=["add", "multiply"])

        assert isinstance(exc, ToolExecutionError)
        assert str(exc) == "Unknown tool: sqrt. Available: add, multiply"
        assert exc.tool_name == "sqrt"

    def test_unknown_tool_without_available(self):
        from agentloop.core.exceptions import UnknownToolError

        assert str(UnknownToolError("sqrt")) == "Unknown tool: sqrt"

    def test_validation_error_records_field(self):
        from agentloop.core.exceptions import ErrorCode, ToolValidationError

        exc = ToolValidationError("Missing required argument: a", tool_name="add", field="a")

        assert exc.field == "a"
        assert exc.error_code == ErrorCode.TOOL_VALIDATION_ERROR

    def test_duplicate_tool_is_not_a_tool_execution_error(self):
        from agentloop.core.exceptions import DuplicateToolError, ToolExecutionError

        exc = DuplicateToolError("add")

        assert not isinstance(exc, ToolExecutionError)
        assert exc.tool_name == "add"


class TestRunAndCompositionErrors:
    def test_step_budget_message(self):
        from agentloop.core.exceptions import StepBudgetExceeded

        exc = StepBudgetExceeded(steps=3, max_steps=3, agent_name="calc")

        assert "calc" in str(exc)
        assert "max steps (3)" in str(exc)

    def test_pipeline_stage_error_names_stage(self):
        from agentloop.core.exceptions import CompositionError, PipelineStageError

        exc = PipelineStageError("draft", "timeout")

        assert isinstance(exc, CompositionError)
        assert exc.stage == "draft"
        assert str(exc) == "Pipeline stage 'draft' failed: timeout"

    def test_fan_out_error_names_branch(self):
        from agentloop.core.exceptions import FanOutError

        exc = FanOutError("security", "boom")

        assert exc.branch == "security"

    @pytest.mark.parametrize(
        "name",
        ["GatewayError", "ToolExecutionError", "StepBudgetExceeded", "CompositionError"],
    )
    def test_all_inherit_base(self, name):
        from agentloop.core import exceptions

        assert issubclass(getattr(exceptions, name), exceptions.AgentLoopException)
