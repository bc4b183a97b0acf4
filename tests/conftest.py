"""
Pytest configuration for the agentloop test suite.

This configuration sets up:
- Test markers for categorization
- Settings cache isolation between tests
- Shared tool fixtures (calculator, order refunds) with injected stores
- A scripted FakeGateway fixture

Domain tools here only exist to exercise the runtime.
"""

from typing import Any

import pytest


# =============================================================================
# Test Markers
# =============================================================================


def pytest_configure(config):
    """
    Register custom markers for test categorization.

    - unit: Tests for individual components
    - integration: Agent scenarios spanning registry, executor and gateway
    - slow: Tests that take a long time to run
    """
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for agent scenarios")
    config.addinivalue_line("markers", "slow: Tests that take a long time to run")


# =============================================================================
# Settings and Logging Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Drop the cached Settings so env patches take effect per test."""
    from agentloop.core.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def log_stream():
    """
    Route structured logs to an in-memory stream for the test.

    Returns:
        io.StringIO receiving one JSON object per line.
    """
    import io

    from agentloop.observability.logging import configure_logging, reset_logging

    stream = io.StringIO()
    configure_logging(level="DEBUG", stream=stream, force=True)
    yield stream
    reset_logging()


# =============================================================================
# Calculator Tools
# =============================================================================


NUMBER_PAIR = {
    "type": "OBJECT",
    "properties": {
        "a": {"type": "NUMBER", "description": "First number"},
        "b": {"type": "NUMBER", "description": "Second number"},
    },
    "required": ["a", "b"],
}


def _divide(args: dict[str, Any]) -> dict[str, Any]:
    if args["b"] == 0:
        raise ValueError("Cannot divide by zero")
    return {"result": args["a"] / args["b"]}


@pytest.fixture
def calculator_registry():
    """
    Registry with add, subtract, multiply and divide.

    Handlers mix sync and async to exercise both invocation paths.
    """
    from agentloop.tools.registry import ToolRegistry

    async def add(args: dict[str, Any]) -> dict[str, Any]:
        return {"result": args["a"] + args["b"]}

    registry = ToolRegistry()
    registry.register_function("add", add, "Add two numbers together", NUMBER_PAIR)
    registry.register_function(
        "subtract",
        lambda args: {"result": args["a"] - args["b"]},
        "Subtract b from a",
        NUMBER_PAIR,
    )
    registry.register_function(
        "multiply",
        lambda args: {"result": args["a"] * args["b"]},
        "Multiply two numbers",
        NUMBER_PAIR,
    )
    registry.register_function("divide", _divide, "Divide a by b", NUMBER_PAIR)
    return registry


# =============================================================================
# Order / Refund Tools
# =============================================================================


class OrderStore:
    """In-memory order store injected into the refund tools."""

    def __init__(self) -> None:
        self.orders: dict[str, dict[str, Any]] = {
            "ORD-001": {"status": "shipped", "item": "Wireless Headphones", "amount": 89.99},
            "ORD-002": {"status": "processing", "item": "Mechanical Keyboard", "amount": 129.0},
            "ORD-003": {"status": "delivered", "item": "USB-C Hub", "amount": 45.5},
        }
        self.refunds: list[dict[str, Any]] = []


def refund_skill(store: OrderStore):
    """Order tracking and refund skill bound to ``store``."""
    from agentloop.models.domain import RegisteredTool, ToolDefinition
    from agentloop.tools.skills import Skill

    order_id_schema = {
        "type": "object",
        "properties": {"order_id": {"type": "string", "description": "Order ID like ORD-001"}},
        "required": ["order_id"],
    }
    refund_schema = {
        "type": "object",
        "properties": {
            "order_id": {"type": "string", "description": "Order ID like ORD-001"},
            "reason": {"type": "string", "description": "Why the customer wants a refund"},
        },
        "required": ["order_id", "reason"],
    }

    def track_order(args: dict[str, Any]) -> dict[str, Any]:
        order = store.orders.get(args["order_id"])
        if order is None:
            return {"success": False, "error": f"Order {args['order_id']} not found"}
        return {"order_id": args["order_id"], **order}

    def process_refund(args: dict[str, Any]) -> dict[str, Any]:
        order = store.orders.get(args["order_id"])
        if order is None:
            return {"success": False, "error": f"Order {args['order_id']} not found"}
        if order["status"] != "delivered":
            return {
                "success": False,
                "error": (
                    f'Cannot refund order with status "{order["status"]}". '
                    "Order must be delivered first."
                ),
            }
        order["status"] = "refunded"
        store.refunds.append(
            {"order_id": args["order_id"], "amount": order["amount"], "reason": args["reason"]}
        )
        return {"success": True, "order_id": args["order_id"], "refunded": order["amount"]}

    return Skill(
        name="Order Support",
        instructions="Track orders and refund delivered orders only.",
        tools=[
            RegisteredTool(
                definition=ToolDefinition(
                    name="track_order",
                    description="Get the status of an order",
                    parameters=order_id_schema,
                ),
                handler=track_order,
            ),
            RegisteredTool(
                definition=ToolDefinition(
                    name="process_refund",
                    description="Refund a delivered order",
                    parameters=refund_schema,
                ),
                handler=process_refund,
            ),
        ],
    )


@pytest.fixture
def order_store() -> OrderStore:
    return OrderStore()


@pytest.fixture
def order_skill(order_store: OrderStore):
    return refund_skill(order_store)


# =============================================================================
# Gateway
# =============================================================================


@pytest.fixture
def fake_gateway():
    """An empty FakeGateway; tests push the responses they need."""
    from agentloop.gateway.fake import FakeGateway

    return FakeGateway()
