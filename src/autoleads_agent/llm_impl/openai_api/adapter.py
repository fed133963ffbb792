import uuid
from typing import Any, Dict, List, Optional, Sequence

from openai.types.chat import ChatCompletion, ChatCompletionToolParam

from autoleads_agent.llm_core.base import FinishReason, GatewayReply, UsageStats
from autoleads_agent.llm_core.exceptions import GatewayEmptyResponseError
from autoleads_agent.llm_core.logger import get_logger
from autoleads_agent.llm_core.tools.models import ToolCallRequest

logger = get_logger(__name__)


class OpenAIWireAdapter:
    """Translates between the neutral wire format and the chat-completions API."""

    @staticmethod
    def to_messages(rendered: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Convert neutral wire turns into chat-completions message dictionaries.

        Args:
            rendered: Output of ``ConversationContext.render()``.

        Returns:
            List of OpenAI message dictionaries.
        """
        messages: List[Dict[str, Any]] = []
        for turn in rendered:
            role = turn["role"]
            if role in ("system", "user"):
                messages.append({"role": role, "content": turn["content"]})
            elif role == "assistant":
                message: Dict[str, Any] = {"role": "assistant", "content": turn.get("content")}
                if turn.get("tool_calls"):
                    message["tool_calls"] = [
                        {
                            "id": call["id"],
                            "type": "function",
                            "function": {"name": call["tool_name"], "arguments": call["arguments_text"] or "{}"},
                        }
                        for call in turn["tool_calls"]
                    ]
                messages.append(message)
            elif role == "tool":
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": turn["correlation_id"],
                        "name": turn["tool_name"],
                        "content": turn["result_text"],
                    }
                )
            else:
                raise ValueError(f"Unknown wire turn role: {role!r}")
        return messages

    @staticmethod
    def to_tools(catalog: Sequence[Dict[str, Any]]) -> Optional[List[ChatCompletionToolParam]]:
        """
        Generates a list of tool definitions suitable for the OpenAI API.

        Returns:
            A list of tool dictionaries, or None if the catalog is empty.
        """
        if not catalog:
            return None

        tools_list: List[ChatCompletionToolParam] = []
        for entry in catalog:
            tools_list.append(
                {
                    "type": "function",
                    "function": {
                        "name": entry["name"],
                        "description": entry["description"],
                        "parameters": entry["parameter_schema"],
                    },
                }
            )
        return tools_list

    @classmethod
    def decode(cls, response: ChatCompletion) -> GatewayReply:
        """Decode a chat completion into a :class:`GatewayReply`.

        Raises:
            GatewayEmptyResponseError: If the response has no choices, or claims to be
                an answer without any text.
        """
        if not response.choices:
            raise GatewayEmptyResponseError("Model response contained no choices.")

        choice = response.choices[0]
        message = choice.message
        text = message.content or None
        tool_calls = cls._decode_tool_calls(message.tool_calls or [])
        usage = cls._decode_usage(response)

        if choice.finish_reason == "content_filter":
            return GatewayReply(finish_reason=FinishReason.FILTERED, text=text, usage=usage)

        if tool_calls:
            return GatewayReply(finish_reason=FinishReason.WANTS_TOOLS, text=text, tool_calls=tool_calls, usage=usage)

        if choice.finish_reason == "length":
            return GatewayReply(finish_reason=FinishReason.TRUNCATED, text=text, usage=usage)

        if not text:
            raise GatewayEmptyResponseError(
                f"Model response had no text and no tool calls (finish_reason={choice.finish_reason!r})."
            )
        return GatewayReply(finish_reason=FinishReason.ANSWERED, text=text, usage=usage)

    @staticmethod
    def _decode_tool_calls(raw_calls: Sequence[Any]) -> tuple:
        requests = []
        seen = set()
        for tool_call in raw_calls:
            # Only function tool calls carry a name and arguments
            if getattr(tool_call, "type", "function") != "function":
                continue

            call_id = tool_call.id
            if not call_id or call_id in seen:
                minted = f"call_{uuid.uuid4().hex}"
                if call_id:
                    logger.warning(f"Duplicate tool call id '{call_id}' in one reply; re-minted as '{minted}'.")
                call_id = minted
            seen.add(call_id)

            requests.append(
                ToolCallRequest(
                    id=call_id,
                    tool_name=tool_call.function.name,
                    raw_arguments=tool_call.function.arguments or "",
                )
            )
        return tuple(requests)

    @staticmethod
    def _decode_usage(response: ChatCompletion) -> Optional[UsageStats]:
        if response.usage is None:
            return None
        return UsageStats(
            prompt_tokens=response.usage.prompt_tokens or 0,
            completion_tokens=response.usage.completion_tokens or 0,
            total_tokens=response.usage.total_tokens or 0,
        )
