from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional, cast

import openai
from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion

from autoleads_agent.llm_core.base import GatewayReply, ModelGateway
from autoleads_agent.llm_core.context import ConversationContext
from autoleads_agent.llm_core.exceptions import (
    GatewayMalformedResponseError,
    GatewayStatusError,
    GatewayTimeoutError,
    GatewayTransportError,
)
from autoleads_agent.llm_core.logger import get_logger
from .adapter import OpenAIWireAdapter

if TYPE_CHECKING:
    from autoleads_agent.llm_core.config import AgentSettings

logger = get_logger(__name__)


class OpenAIGateway(ModelGateway):
    """
    Model gateway for any OpenAI-compatible chat-completions endpoint.
    Translates one conversation context into one request and decodes the reply.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model_name: str,
        temp: float = 0.7,
        max_tokens: int = 1024,
        top_p: Optional[float] = None,
        max_attempts: int = 3,
        base_retry_delay: float = 1.0,
        request_timeout: float = 60.0,
    ):
        """
        Initializes the OpenAI gateway.

        Args:
            client: The initialized AsyncOpenAI client. Its own retries should be disabled.
            model_name: The identifier of the model to use (e.g., 'glm-4.5v', 'gpt-4o-mini').
            temp: The temperature for text generation, controlling randomness.
            max_tokens: The maximum number of tokens to generate in the response.
            top_p: Optional nucleus sampling parameter.
            max_attempts: Total attempts per call, including the first one.
            base_retry_delay: Delay in seconds before the first retry; doubles after each attempt.
            request_timeout: Timeout in seconds for a single attempt.
        """
        super().__init__(max_attempts=max_attempts, base_retry_delay=base_retry_delay, request_timeout=request_timeout)
        self.client: AsyncOpenAI = client
        self.model: str = model_name
        self.temperature = temp
        self.max_tokens = max_tokens
        self.top_p = top_p

    @classmethod
    def from_settings(cls, settings: "AgentSettings") -> "OpenAIGateway":
        """Build a gateway and its client from agent settings."""
        api_key = settings.api_key.get_secret_value() if settings.api_key else None
        client = AsyncOpenAI(api_key=api_key, base_url=settings.api_base_url, max_retries=0)
        return cls(
            client=client,
            model_name=settings.model,
            temp=settings.temperature,
            max_tokens=settings.max_tokens,
            top_p=settings.top_p,
            max_attempts=settings.max_attempts,
            base_retry_delay=settings.base_retry_delay,
            request_timeout=settings.request_timeout,
        )

    async def _complete_impl(self, context: ConversationContext) -> GatewayReply:
        messages = OpenAIWireAdapter.to_messages(context.render())
        tools = OpenAIWireAdapter.to_tools(context.render_catalog())

        request: Dict[str, Any] = {
            "model": self.model,
            "messages": cast(Iterable[Any], messages),
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if self.top_p is not None:
            request["top_p"] = self.top_p
        if tools:
            request["tools"] = tools
            request["tool_choice"] = "auto"

        logger.debug(f"Sending request to model '{self.model}' with {len(messages)} message(s).")
        try:
            response: ChatCompletion = await self.client.chat.completions.create(**request)
        except openai.APITimeoutError as exc:
            raise GatewayTimeoutError(f"Model request timed out: {exc}") from exc
        except openai.APIConnectionError as exc:
            raise GatewayTransportError(f"Could not reach model endpoint: {exc}") from exc
        except openai.APIStatusError as exc:
            raise GatewayStatusError(
                f"Model endpoint returned status {exc.status_code}: {exc.message}", status_code=exc.status_code
            ) from exc
        except openai.APIResponseValidationError as exc:
            raise GatewayMalformedResponseError(f"Model endpoint returned an unreadable response: {exc}") from exc

        if not isinstance(response, ChatCompletion):
            raise GatewayMalformedResponseError(
                f"Model endpoint returned {type(response).__name__} instead of a chat completion."
            )

        try:
            reply = OpenAIWireAdapter.decode(response)
        except (AttributeError, TypeError, ValueError) as exc:
            raise GatewayMalformedResponseError(f"Could not decode model response: {exc}") from exc
        if reply.usage:
            logger.debug(
                f"Model replied with '{reply.finish_reason.value}' "
                f"(tokens: prompt={reply.usage.prompt_tokens}, completion={reply.usage.completion_tokens})."
            )
        return reply
