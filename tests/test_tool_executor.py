import asyncio
import json
import logging
import threading
import time
from typing import Annotated, Optional
from unittest.mock import AsyncMock

import pytest
from pydantic import Field

from autoleads_agent.llm_core import (
    ExecutionContext,
    FailureCategory,
    FieldType,
    ParameterSpec,
    ToolCallRequest,
    ToolDefinition,
    ToolExecutionError,
    ToolExecutor,
    ToolRegistry,
)
from autoleads_agent.llm_core.tools.execution import EMPTY_SUCCESS_MESSAGE, GENERIC_FAILURE_MESSAGE

CTX = ExecutionContext(tenant_id=1, lead_id=7, customer_phone="62800")


def _call(call_id: str, tool_name: str, arguments=None, raw: Optional[str] = None) -> ToolCallRequest:
    if raw is None:
        raw = json.dumps(arguments or {})
    return ToolCallRequest(id=call_id, tool_name=tool_name, raw_arguments=raw)


@pytest.fixture
def registry() -> ToolRegistry:
    registry = ToolRegistry()

    @registry.tool
    async def search_cars(
        maxPrice: Annotated[Optional[float], Field(description="Budget ceiling")] = None,
    ) -> list:
        """Search cars."""
        return [{"code": "A01", "price": 120}]

    @registry.tool
    async def explode() -> str:
        """Always fails."""
        raise RuntimeError("database password is hunter2")

    @registry.tool
    async def refuse() -> str:
        """Fails deliberately."""
        raise ToolExecutionError("Car A09 is already sold.")

    @registry.tool
    async def slow() -> str:
        """Takes too long."""
        await asyncio.sleep(5)
        return "late"

    @registry.tool
    def sync_tool(name: Annotated[str, Field(description="Name")]) -> str:
        """Runs in a worker thread."""
        return f"hello {name} from {threading.current_thread().name}"

    @registry.tool
    async def quiet() -> None:
        """Returns nothing."""

    @registry.tool
    async def whoami(context: ExecutionContext) -> str:
        """Report the lead id."""
        return f"lead={context.lead_id}"

    return registry


@pytest.mark.asyncio
async def test_every_request_gets_exactly_one_result_in_order(registry):
    executor = ToolExecutor(registry, tool_timeout=1.0)
    requests = [
        _call("a", "search_cars"),
        _call("b", "explode"),
        _call("c", "unknown_tool"),
        _call("d", "quiet"),
    ]
    results = await executor.execute(requests, CTX)

    assert [r.correlation_id for r in results] == ["a", "b", "c", "d"]
    assert [r.tool_name for r in results] == ["search_cars", "explode", "unknown_tool", "quiet"]
    assert len({r.correlation_id for r in results}) == 4


@pytest.mark.asyncio
async def test_empty_batch_returns_empty_list(registry):
    assert await ToolExecutor(registry).execute([], CTX) == []


@pytest.mark.asyncio
async def test_handler_fault_does_not_affect_siblings(registry):
    executor = ToolExecutor(registry, tool_timeout=1.0)
    results = await executor.execute([_call("a", "explode"), _call("b", "search_cars")], CTX)

    assert not results[0].ok
    assert results[0].error_category == FailureCategory.EXECUTION_FAILED
    assert results[1].ok
    assert json.loads(results[1].content) == [{"code": "A01", "price": 120}]


@pytest.mark.asyncio
async def test_unexpected_fault_message_is_generic_and_logged(registry, caplog):
    executor = ToolExecutor(registry, tool_timeout=1.0)
    with caplog.at_level(logging.ERROR, logger="autoleads_agent"):
        [result] = await executor.execute([_call("a", "explode")], CTX)

    assert result.content == GENERIC_FAILURE_MESSAGE
    assert "hunter2" not in result.as_text()
    assert any(record.exc_info for record in caplog.records)


@pytest.mark.asyncio
async def test_deliberate_failure_message_reaches_the_model(registry):
    [result] = await ToolExecutor(registry).execute([_call("a", "refuse")], CTX)
    assert result.error_category == FailureCategory.EXECUTION_FAILED
    assert json.loads(result.as_text()) == {"error": "Car A09 is already sold.", "category": "execution_failed"}


@pytest.mark.asyncio
async def test_invalid_arguments_never_reach_the_handler():
    handler = AsyncMock(return_value="should not run")
    registry = ToolRegistry()
    registry.register(
        ToolDefinition(
            name="search_cars",
            description="Search.",
            func=handler,
            parameters=(ParameterSpec(name="maxPrice", type=FieldType.NUMBER),),
        )
    )
    [result] = await ToolExecutor(registry).execute([_call("a", "search_cars", {"maxPrice": "cheap"})], CTX)

    handler.assert_not_called()
    assert result.error_category == FailureCategory.INVALID_ARGUMENTS
    assert "maxPrice must be numeric" in result.content


@pytest.mark.asyncio
async def test_all_violations_are_listed(registry):
    [result] = await ToolExecutor(registry).execute(
        [_call("a", "sync_tool", {"name": 3, "extra": True})], CTX
    )
    assert "name must be a string" in result.content
    assert "extra is not a recognised parameter" in result.content


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["{not json", "[1, 2]", '"text"', "42"])
async def test_malformed_arguments(registry, raw):
    [result] = await ToolExecutor(registry).execute([_call("a", "search_cars", raw=raw)], CTX)
    assert result.error_category == FailureCategory.INVALID_ARGUMENTS


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["", "null", "  "])
async def test_empty_arguments_mean_no_arguments(registry, raw):
    [result] = await ToolExecutor(registry).execute([_call("a", "search_cars", raw=raw)], CTX)
    assert result.ok


@pytest.mark.asyncio
async def test_unknown_tool(registry):
    [result] = await ToolExecutor(registry).execute([_call("a", "teleport")], CTX)
    assert result.error_category == FailureCategory.UNKNOWN_TOOL
    assert result.content == "Unknown tool: teleport"


@pytest.mark.asyncio
async def test_timeout_becomes_failure(registry):
    executor = ToolExecutor(registry, tool_timeout=0.05)
    [result] = await executor.execute([_call("a", "slow")], CTX)
    assert result.error_category == FailureCategory.TIMEOUT
    assert "timed out" in result.content


@pytest.mark.asyncio
async def test_sync_handler_runs_off_the_event_loop(registry):
    [result] = await ToolExecutor(registry).execute([_call("a", "sync_tool", {"name": "Budi"})], CTX)
    assert result.ok
    assert result.content.startswith("hello Budi from ")
    assert threading.main_thread().name not in result.content


@pytest.mark.asyncio
async def test_none_payload_and_context_injection(registry):
    results = await ToolExecutor(registry).execute([_call("a", "quiet"), _call("b", "whoami")], CTX)
    assert results[0].content == EMPTY_SUCCESS_MESSAGE
    assert results[1].content == "lead=7"


@pytest.mark.asyncio
async def test_calls_in_a_batch_run_concurrently():
    registry = ToolRegistry()
    started = asyncio.Event()

    @registry.tool
    async def first() -> str:
        """Waits for the second call to start."""
        await asyncio.wait_for(started.wait(), timeout=1.0)
        return "first"

    @registry.tool
    async def second() -> str:
        """Signals the first call."""
        started.set()
        return "second"

    results = await ToolExecutor(registry, tool_timeout=2.0).execute([_call("a", "first"), _call("b", "second")], CTX)
    assert [r.content for r in results] == ["first", "second"]


@pytest.mark.asyncio
async def test_slow_sync_handlers_overlap():
    registry = ToolRegistry()

    @registry.tool
    def nap() -> str:
        """Sleeps briefly."""
        time.sleep(0.2)
        return "done"

    requests = [_call(str(i), "nap") for i in range(3)]
    start = time.perf_counter()
    results = await ToolExecutor(registry).execute(requests, CTX)
    elapsed = time.perf_counter() - start

    assert all(r.ok for r in results)
    assert elapsed < 0.55


@pytest.mark.asyncio
@pytest.mark.parametrize("digits", ["1" + "0" * 400, "9" * 5000])
async def test_oversized_integer_literals_are_invalid_arguments(registry, digits):
    raw = '{"maxPrice": ' + digits + "}"
    [result] = await ToolExecutor(registry).execute([_call("a", "search_cars", raw=raw)], CTX)
    assert result.error_category == FailureCategory.INVALID_ARGUMENTS


@pytest.mark.asyncio
async def test_timeout_raised_by_the_handler_is_not_the_deadline():
    registry = ToolRegistry()

    @registry.tool
    async def dealer_api() -> str:
        """Calls an upstream that gives up on its own."""
        raise TimeoutError("upstream read timed out")

    [result] = await ToolExecutor(registry, tool_timeout=5.0).execute([_call("a", "dealer_api")], CTX)

    assert result.error_category == FailureCategory.EXECUTION_FAILED
    assert result.content == GENERIC_FAILURE_MESSAGE
