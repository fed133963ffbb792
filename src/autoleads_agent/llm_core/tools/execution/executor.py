"""Concurrent, failure-isolating execution of a batch of tool calls."""

from __future__ import annotations

import asyncio
import inspect
import json
from typing import Any, Dict, List, Optional, Sequence

from ..models import ExecutionContext, FailureCategory, ToolCallRequest, ToolCallResult, ToolDefinition
from ..registry import ToolRegistry
from ..schema import CONTEXT_PARAMETER
from ...exceptions import ToolExecutionError, ToolValidationError
from ...logger import get_logger

logger = get_logger(__name__)

GENERIC_FAILURE_MESSAGE = "An internal error occurred while executing the tool."
EMPTY_SUCCESS_MESSAGE = "Tool executed successfully."
_LOG_PREVIEW = 200


class HandlerTimeoutError(Exception):
    """A handler raised a timeout of its own before the execution deadline."""


def _preview(text: str) -> str:
    return text if len(text) <= _LOG_PREVIEW else text[:_LOG_PREVIEW] + "..."


class ToolExecutor:
    """Dispatches validated tool calls to their handlers.

    Every request yields exactly one :class:`ToolCallResult`, in request order.
    A failing, slow or misbehaving handler only ever affects its own result.
    """

    def __init__(self, registry: ToolRegistry, *, tool_timeout: float = 30.0) -> None:
        """Initialize the executor.

        Args:
            registry: Tool registry used to resolve and validate tool calls.
            tool_timeout: Timeout in seconds for a single handler invocation.
        """
        self._registry = registry
        self._tool_timeout = tool_timeout

    async def execute(
        self, requests: Sequence[ToolCallRequest], execution_context: ExecutionContext
    ) -> List[ToolCallResult]:
        """Execute a batch of tool calls concurrently.

        Args:
            requests: The tool calls proposed by the model in one reply.
            execution_context: Identifiers handed to handlers that accept a ``context``.

        Returns:
            One result per request, in request order, each carrying the request id.
        """
        if not requests:
            return []

        logger.info(f"Executing {len(requests)} tool call(s): {[r.tool_name for r in requests]}")
        tasks = [self._handle_tool_call(request, execution_context) for request in requests]
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        results: List[ToolCallResult] = []
        for request, outcome in zip(requests, outcomes):
            if isinstance(outcome, ToolCallResult):
                results.append(outcome)
                continue
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            logger.error(
                f"Unexpected error while handling tool call '{request.tool_name}' ({request.id}).",
                exc_info=outcome,
            )
            results.append(ToolCallResult.failure(request, FailureCategory.EXECUTION_FAILED, GENERIC_FAILURE_MESSAGE))
        return results

    async def _handle_tool_call(self, request: ToolCallRequest, execution_context: ExecutionContext) -> ToolCallResult:
        """Handle a single tool call request.

        Validates the tool existence, decodes and validates the arguments, and
        executes the tool.
        """
        logger.debug(f"Handling tool call: {request.tool_name} (ID: {request.id}) args={_preview(request.raw_arguments)}")

        if request.tool_name not in self._registry:
            msg = f"Unknown tool: {request.tool_name}"
            logger.warning(msg)
            return ToolCallResult.failure(request, FailureCategory.UNKNOWN_TOOL, msg)

        tool = self._registry.get(request.tool_name)

        try:
            arguments = self._decode_arguments(request.raw_arguments)
        except ToolValidationError as exc:
            msg = str(exc)
            logger.warning(f"Argument decoding failed for '{request.tool_name}': {msg}")
            return ToolCallResult.failure(request, FailureCategory.INVALID_ARGUMENTS, msg)

        report = self._registry.validate(request.tool_name, arguments)
        if not report.accepted:
            msg = f"Invalid arguments: {report.summary()}"
            logger.warning(f"Validation error for '{request.tool_name}': {msg}")
            return ToolCallResult.failure(request, FailureCategory.INVALID_ARGUMENTS, msg)

        try:
            logger.info(f"Executing tool '{request.tool_name}'...")
            payload = await self._invoke(tool, arguments, execution_context)
        except asyncio.TimeoutError:
            msg = f"Tool execution timed out after {self._tool_timeout}s."
            logger.warning(f"Tool '{request.tool_name}' timed out after {self._tool_timeout}s.")
            return ToolCallResult.failure(request, FailureCategory.TIMEOUT, msg)
        except ToolExecutionError as exc:
            msg = str(exc)
            logger.warning(f"Tool '{request.tool_name}' reported a failure: {msg}")
            return ToolCallResult.failure(request, FailureCategory.EXECUTION_FAILED, msg)
        except Exception:
            logger.error(f"Unhandled error in tool '{request.tool_name}' ({request.id}).", exc_info=True)
            return ToolCallResult.failure(request, FailureCategory.EXECUTION_FAILED, GENERIC_FAILURE_MESSAGE)

        text = self._normalize_payload(payload)
        logger.info(f"Tool '{request.tool_name}' executed successfully.")
        logger.debug(f"Tool '{request.tool_name}' result: {_preview(text)}")
        return ToolCallResult.success(request, text)

    async def _invoke(self, tool: ToolDefinition, arguments: Dict[str, Any], execution_context: ExecutionContext) -> Any:
        """Execute the handler, handling async/sync and timeouts.

        Raises:
            asyncio.TimeoutError: If the handler exceeds the configured timeout.
        """
        kwargs = dict(arguments)
        if tool.accepts_context:
            kwargs[CONTEXT_PARAMETER] = execution_context

        async def run_handler() -> Any:
            try:
                if inspect.iscoroutinefunction(tool.func):
                    return await tool.func(**kwargs)
                result = await asyncio.to_thread(tool.func, **kwargs)
                if inspect.isawaitable(result):
                    result = await result
                return result
            except (asyncio.TimeoutError, TimeoutError) as exc:
                # Only wait_for below may report the deadline
                raise HandlerTimeoutError(f"Tool '{tool.name}' raised its own timeout: {exc!r}") from exc

        return await asyncio.wait_for(run_handler(), timeout=self._tool_timeout)

    @staticmethod
    def _decode_arguments(raw_arguments: Optional[str]) -> Any:
        """Decode the raw argument text into a mapping.

        Empty text and ``null`` both mean "no arguments".

        Raises:
            ToolValidationError: If the text is not JSON or not a JSON object.
        """
        if raw_arguments is None or raw_arguments.strip() == "":
            return {}

        try:
            parsed = json.loads(raw_arguments)
        except ValueError as exc:
            # JSONDecodeError, or an integer literal past the conversion limit
            reason = getattr(exc, "msg", str(exc))
            raise ToolValidationError(f"Failed to decode tool arguments: {reason}") from exc

        if parsed is None:
            return {}

        if not isinstance(parsed, dict):
            raise ToolValidationError("Tool arguments must decode to a JSON object.")

        return parsed

    @staticmethod
    def _normalize_payload(payload: Any) -> str:
        if payload is None:
            return EMPTY_SUCCESS_MESSAGE
        if isinstance(payload, str):
            return payload
        if isinstance(payload, (dict, list, tuple)):
            return json.dumps(payload, ensure_ascii=False, default=str)
        return str(payload)
