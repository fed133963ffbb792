"""Append-only conversation log that forms the model's input window."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..exceptions import ContextLinkageError
from ..logger import get_logger
from ..messages import AssistantTurn, BaseTurn, SystemTurn, ToolResultTurn, TurnRole, UserTurn
from ..tools.models import FailureCategory, ToolCallRequest, ToolCallResult, ToolDefinition

logger = get_logger(__name__)


class ConversationContext:
    """
    Ordered turns of one conversation plus the tools the model may call.

    Turns are only ever appended. Tool-result turns are checked against the most
    recent assistant turn so the rendered history is always correctly linked:
    every result answers a call of that turn, and every call is answered at most once.
    """

    def __init__(self, tools: Sequence[ToolDefinition] = (), history: Iterable[BaseTurn] = ()) -> None:
        """Initialize the context.

        Args:
            tools: Definitions the model may call during this conversation.
            history: Turns to replay into the context, in order. Linkage is checked.
        """
        self._tools: Tuple[ToolDefinition, ...] = tuple(tools)
        self._turns: List[BaseTurn] = []
        self._open_calls: Dict[str, ToolCallRequest] = {}
        self._answered: set = set()
        self.extend(history)

    @property
    def tools(self) -> Tuple[ToolDefinition, ...]:
        return self._tools

    @property
    def turns(self) -> Tuple[BaseTurn, ...]:
        return tuple(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def append(self, turn: BaseTurn) -> None:
        """Append a single turn.

        Raises:
            ContextLinkageError: If a tool-result turn does not answer an open call of the
                most recent assistant turn, answers one twice, or an assistant turn repeats
                a call id.
        """
        if isinstance(turn, ToolResultTurn):
            self._link_result(turn)
        elif isinstance(turn, AssistantTurn):
            ids = [call.id for call in turn.tool_calls]
            if len(ids) != len(set(ids)):
                raise ContextLinkageError(f"Assistant turn repeats a tool call id: {ids}")
            self._open_calls = {call.id: call for call in turn.tool_calls}
            self._answered = set()
        elif isinstance(turn, (SystemTurn, UserTurn)):
            if self.pending_call_ids:
                logger.warning(f"Closing assistant turn with unanswered tool calls: {list(self.pending_call_ids)}")
            self._open_calls = {}
            self._answered = set()
        else:
            raise TypeError(f"Unsupported turn type: {type(turn).__name__}")

        self._turns.append(turn)

    def extend(self, turns: Iterable[BaseTurn]) -> None:
        for turn in turns:
            self.append(turn)

    def _link_result(self, turn: ToolResultTurn) -> None:
        call_id = turn.correlation_id
        request = self._open_calls.get(call_id)
        if request is None:
            raise ContextLinkageError(
                f"Tool result '{call_id}' does not answer a call of the most recent assistant turn."
            )
        if call_id in self._answered:
            raise ContextLinkageError(f"Tool call '{call_id}' has already been answered.")
        if request.tool_name != turn.result.tool_name:
            raise ContextLinkageError(
                f"Tool result '{call_id}' names '{turn.result.tool_name}' but the call was '{request.tool_name}'."
            )
        self._answered.add(call_id)

    @property
    def pending_call_ids(self) -> Tuple[str, ...]:
        """Ids of the latest assistant turn's tool calls that have no result yet."""
        return tuple(call_id for call_id in self._open_calls if call_id not in self._answered)

    @property
    def last_assistant_text(self) -> str:
        """The most recent non-empty assistant text, or an empty string."""
        for turn in reversed(self._turns):
            if isinstance(turn, AssistantTurn) and turn.content:
                return turn.content
        return ""

    def render(self) -> List[Dict[str, Any]]:
        """Render every turn into the provider-neutral wire format, in append order."""
        return [self._render_turn(turn) for turn in self._turns]

    def render_catalog(self) -> List[Dict[str, Any]]:
        """Render the active tools as the provider-neutral catalog."""
        return [
            {"name": tool.name, "description": tool.description, "parameter_schema": tool.parameter_schema}
            for tool in self._tools
        ]

    @staticmethod
    def _render_turn(turn: BaseTurn) -> Dict[str, Any]:
        if isinstance(turn, (SystemTurn, UserTurn)):
            return {"role": turn.role.value, "content": turn.content}
        if isinstance(turn, AssistantTurn):
            rendered: Dict[str, Any] = {"role": TurnRole.ASSISTANT.value, "content": turn.content}
            if turn.tool_calls:
                rendered["tool_calls"] = [
                    {"id": call.id, "tool_name": call.tool_name, "arguments_text": call.raw_arguments}
                    for call in turn.tool_calls
                ]
            return rendered
        if isinstance(turn, ToolResultTurn):
            return {
                "role": TurnRole.TOOL.value,
                "correlation_id": turn.result.correlation_id,
                "tool_name": turn.result.tool_name,
                "result_text": turn.result.as_text(),
            }
        raise TypeError(f"Unsupported turn type: {type(turn).__name__}")

    @classmethod
    def from_wire(
        cls, payload: Iterable[Mapping[str, Any]], tools: Sequence[ToolDefinition] = ()
    ) -> "ConversationContext":
        """Rebuild a context from turns previously produced by :meth:`render`.

        Raises:
            ValueError: If an entry has an unknown role or is missing a field.
            ContextLinkageError: If the rendered turns are not correctly linked.
        """
        return cls(tools=tools, history=[cls._parse_turn(entry) for entry in payload])

    @staticmethod
    def _parse_turn(entry: Mapping[str, Any]) -> BaseTurn:
        role = entry.get("role")
        try:
            if role == TurnRole.SYSTEM.value:
                return SystemTurn(content=entry["content"])
            if role == TurnRole.USER.value:
                return UserTurn(content=entry["content"])
            if role == TurnRole.ASSISTANT.value:
                calls = tuple(
                    ToolCallRequest(id=call["id"], tool_name=call["tool_name"], raw_arguments=call["arguments_text"])
                    for call in entry.get("tool_calls") or ()
                )
                return AssistantTurn(content=entry.get("content"), tool_calls=calls)
            if role == TurnRole.TOOL.value:
                result = _result_from_text(entry["correlation_id"], entry["tool_name"], entry["result_text"])
                return ToolResultTurn(result=result)
        except KeyError as exc:
            raise ValueError(f"Wire turn with role '{role}' is missing field {exc}") from exc
        raise ValueError(f"Unknown wire turn role: {role!r}")

    @staticmethod
    def seed(history: Sequence[BaseTurn], limit: int) -> List[BaseTurn]:
        """Select the most recent ``limit`` turns of carried-over history.

        System turns are dropped. The window never starts with a tool-result turn, and
        a trailing assistant turn whose calls were not all answered is dropped together
        with its partial results.
        """
        if limit <= 0:
            return []

        turns = [turn for turn in history if not isinstance(turn, SystemTurn)]
        window = turns[-limit:]
        while window and isinstance(window[0], ToolResultTurn):
            window.pop(0)

        candidate = ConversationContext(history=window)
        if candidate.pending_call_ids:
            last_assistant = max(i for i, turn in enumerate(window) if isinstance(turn, AssistantTurn))
            window = window[:last_assistant]
        return window


def _result_from_text(correlation_id: str, tool_name: str, text: str) -> ToolCallResult:
    """Recover a result from its rendered text. Failures render as ``{"error", "category"}``."""
    request = ToolCallRequest(id=correlation_id, tool_name=tool_name, raw_arguments="")
    failure = _parse_failure(text)
    if failure is not None:
        message, category = failure
        return ToolCallResult.failure(request, category, message)
    return ToolCallResult.success(request, text)


def _parse_failure(text: str) -> Optional[Tuple[str, FailureCategory]]:
    try:
        data = json.loads(text)
    except ValueError:
        return None
    if not isinstance(data, dict) or set(data) != {"error", "category"} or not isinstance(data["error"], str):
        return None
    try:
        return data["error"], FailureCategory(data["category"])
    except ValueError:
        return None
