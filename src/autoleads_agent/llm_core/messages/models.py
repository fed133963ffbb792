"""Provider-agnostic, immutable conversation turns."""

from abc import ABC
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict

from ..tools.models import ToolCallRequest, ToolCallResult


class TurnRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class BaseTurn(ABC, BaseModel):
    """Base model for turns exchanged with the model.

    Attributes:
        role: Role associated with the turn.
    """

    model_config = ConfigDict(frozen=True)

    role: TurnRole


class SystemTurn(BaseTurn):
    """Turn authored by the system to steer behavior."""

    role: TurnRole = TurnRole.SYSTEM
    content: str


class UserTurn(BaseTurn):
    """Turn authored by the customer."""

    role: TurnRole = TurnRole.USER
    content: str


class AssistantTurn(BaseTurn):
    """Turn authored by the model, optionally proposing tool calls."""

    role: TurnRole = TurnRole.ASSISTANT
    content: Optional[str] = None
    tool_calls: Tuple[ToolCallRequest, ...] = ()


class ToolResultTurn(BaseTurn):
    """Turn carrying the outcome of one tool call back to the model."""

    role: TurnRole = TurnRole.TOOL
    result: ToolCallResult

    @property
    def correlation_id(self) -> str:
        return self.result.correlation_id
