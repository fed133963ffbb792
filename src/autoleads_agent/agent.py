"""Customer-facing entry point: one call per incoming customer message."""

from dataclasses import dataclass, field
from typing import List, Sequence

from .llm_core.base import ModelGateway
from .llm_core.config import AgentSettings
from .llm_core.context import ConversationContext
from .llm_core.logger import get_logger
from .llm_core.messages import BaseTurn, SystemTurn, UserTurn
from .llm_core.orchestration import (
    Failed,
    FinalAnswer,
    IterationLimitReached,
    OrchestrationLoop,
    OrchestrationOutcome,
)
from .llm_core.tools import ExecutionContext, ToolExecutor, ToolRegistry

logger = get_logger(__name__)


@dataclass(frozen=True)
class AgentReply:
    """What the agent says back, plus the conversation to carry into the next message.

    Attributes:
        text: The message to send to the customer.
        outcome: The raw orchestration outcome, for logging and analytics.
        history: The conversation without system turns.
    """

    text: str
    outcome: OrchestrationOutcome
    history: List[BaseTurn] = field(default_factory=list)


class CustomerChatAgent:
    """Answers customer messages using a model gateway and the registered tools."""

    def __init__(self, gateway: ModelGateway, registry: ToolRegistry, settings: AgentSettings) -> None:
        self.gateway = gateway
        self.registry = registry
        self.settings = settings

    async def respond(
        self, message: str, execution_context: ExecutionContext, history: Sequence[BaseTurn] = ()
    ) -> AgentReply:
        """
        Answer one customer message.

        Args:
            message: The customer's new message.
            execution_context: Tenant, lead and phone number of this conversation.
            history: Turns returned by the previous call, if any.

        Returns:
            The reply text, the loop outcome, and the updated history.
        """
        context = ConversationContext(tools=self.registry.definitions)
        if self.settings.system_prompt:
            context.append(SystemTurn(content=self.settings.system_prompt))
        context.extend(ConversationContext.seed(history, self.settings.max_history_turns))
        context.append(UserTurn(content=message))

        loop = OrchestrationLoop(
            gateway=self.gateway,
            executor=ToolExecutor(self.registry, tool_timeout=self.settings.tool_timeout),
            max_iterations=self.settings.max_iterations,
        )
        outcome = await loop.run(context, execution_context)

        text = self._user_visible_text(outcome)
        carried = [turn for turn in outcome.context.turns if not isinstance(turn, SystemTurn)]
        return AgentReply(text=text, outcome=outcome, history=carried)

    def _user_visible_text(self, outcome: OrchestrationOutcome) -> str:
        if isinstance(outcome, FinalAnswer):
            return outcome.text
        if isinstance(outcome, IterationLimitReached):
            logger.warning(f"Iteration limit reached after {outcome.gateway_calls} gateway call(s).")
            return outcome.last_known_text or self.settings.limit_message
        if isinstance(outcome, Failed):
            logger.error(f"Conversation turn failed: {outcome.reason}")
            return self.settings.fallback_message
        raise TypeError(f"Unexpected orchestration outcome: {type(outcome).__name__}")
