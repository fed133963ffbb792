"""Core abstractions for model gateway implementations."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Coroutine, Optional, Tuple

from pydantic import BaseModel, ConfigDict, model_validator

from ..exceptions import GatewayError, GatewayTimeoutError
from ..logger import get_logger
from ..tools.models import ToolCallRequest

if TYPE_CHECKING:
    from ..context import ConversationContext

logger = get_logger(__name__)


class FinishReason(str, Enum):
    """Why the model stopped producing output."""

    ANSWERED = "answered"
    WANTS_TOOLS = "wants_tools"
    TRUNCATED = "truncated"
    FILTERED = "filtered"


class UsageStats(BaseModel):
    """Token accounting reported by the endpoint."""

    model_config = ConfigDict(frozen=True)

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class GatewayReply(BaseModel):
    """Normalized model reply returned by gateway implementations.

    Attributes:
        finish_reason: Why generation stopped.
        text: Assistant text, if any.
        tool_calls: Tool calls proposed by the model, in the order it listed them.
        usage: Token usage, when the endpoint reports it.
    """

    model_config = ConfigDict(frozen=True)

    finish_reason: FinishReason
    text: Optional[str] = None
    tool_calls: Tuple[ToolCallRequest, ...] = ()
    usage: Optional[UsageStats] = None

    @model_validator(mode="after")
    def _check_guarantees(self) -> "GatewayReply":
        if self.finish_reason == FinishReason.WANTS_TOOLS and not self.tool_calls:
            raise ValueError("A 'wants_tools' reply must carry at least one tool call.")
        if self.finish_reason == FinishReason.ANSWERED:
            if not self.text:
                raise ValueError("An 'answered' reply must carry non-empty text.")
            if self.tool_calls:
                raise ValueError("An 'answered' reply must not carry tool calls.")
        ids = [tool_call.id for tool_call in self.tool_calls]
        if len(ids) != len(set(ids)):
            raise ValueError("Tool call ids must be unique within a reply.")
        return self


class ModelGateway(ABC):
    """Abstract base class for model gateways.

    A gateway is stateless between calls: every call receives the full context and
    returns one :class:`GatewayReply`. Retries with exponential backoff and the
    per-attempt timeout live here so implementations only translate one request.
    """

    def __init__(self, max_attempts: int = 3, base_retry_delay: float = 1.0, request_timeout: float = 60.0):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        self.max_attempts = max_attempts
        self.base_retry_delay = base_retry_delay
        self.request_timeout = request_timeout

    async def _execute_with_retry(
        self,
        func: Callable[..., Coroutine[Any, Any, GatewayReply]],
        *args: Any,
        **kwargs: Any,
    ) -> GatewayReply:
        """
        Executes a function with retry logic.

        Only :class:`GatewayError` is retried, and only when it is marked retryable.

        Args:
            func: The asynchronous function to execute.
            *args: Positional arguments for the function.
            **kwargs: Keyword arguments for the function.

        Returns:
            The result of the function call.

        Raises:
            GatewayError: The last encountered error once the attempts are exhausted,
                or the first non-retryable one.
        """
        delay = self.base_retry_delay
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await func(*args, **kwargs)
            except GatewayError as e:
                if not e.retryable or attempt == self.max_attempts:
                    raise

                logger.warning(
                    f"Gateway error (attempt {attempt}/{self.max_attempts}): {e}. Waiting {delay}s..."
                )
                await asyncio.sleep(delay)
                delay *= 2  # Exponential backoff

        msg = f"Failed to get response after {self.max_attempts} attempts."
        logger.error(msg)
        raise GatewayError(msg, retryable=False)

    async def complete(self, context: "ConversationContext") -> GatewayReply:
        """
        Ask the model for the next step of the conversation.

        Args:
            context: The full conversation, including the active tool set.

        Returns:
            The decoded reply.

        Raises:
            GatewayError: If the endpoint keeps failing or fails non-retryably.
        """
        return await self._execute_with_retry(self._complete_once, context)

    async def _complete_once(self, context: "ConversationContext") -> GatewayReply:
        try:
            return await asyncio.wait_for(self._complete_impl(context), timeout=self.request_timeout)
        except asyncio.TimeoutError as exc:
            raise GatewayTimeoutError(f"Model request timed out after {self.request_timeout}s.") from exc

    @abstractmethod
    async def _complete_impl(self, context: "ConversationContext") -> GatewayReply:
        pass
