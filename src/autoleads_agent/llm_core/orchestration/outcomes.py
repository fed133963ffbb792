"""Terminal outcomes of one orchestration run."""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from ..context import ConversationContext


class LoopState(str, Enum):
    """Where a run stands. The loop moves between the first two; every outcome reports one of the rest."""

    AWAITING_MODEL = "awaiting_model"
    EXECUTING = "executing"
    ANSWERED = "answered"
    TRUNCATED = "truncated"
    FILTERED = "filtered"
    LIMIT_REACHED = "limit_reached"
    FAILED = "failed"


@dataclass(frozen=True)
class FinalAnswer:
    """The model produced a text answer. ``truncated`` marks an answer cut off by the token limit."""

    text: str
    context: ConversationContext
    gateway_calls: int
    truncated: bool = False

    @property
    def state(self) -> LoopState:
        return LoopState.TRUNCATED if self.truncated else LoopState.ANSWERED


@dataclass(frozen=True)
class IterationLimitReached:
    """The round cap was hit while the model still wanted tools."""

    last_known_text: str
    context: ConversationContext
    gateway_calls: int

    @property
    def state(self) -> LoopState:
        return LoopState.LIMIT_REACHED


@dataclass(frozen=True)
class Failed:
    """The run could not produce an answer. ``reason`` is for operators, not customers."""

    reason: str
    context: ConversationContext
    gateway_calls: int

    @property
    def state(self) -> LoopState:
        if self.reason == "filtered":
            return LoopState.FILTERED
        if self.reason == "truncated":
            return LoopState.TRUNCATED
        return LoopState.FAILED


OrchestrationOutcome = Union[FinalAnswer, IterationLimitReached, Failed]
