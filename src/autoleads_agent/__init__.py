"""Tool-calling orchestration engine for a car dealership's customer chat agent."""

from .llm_core import (
    AgentSettings,
    ConversationContext,
    ExecutionContext,
    OrchestrationLoop,
    ToolExecutor,
    ToolRegistry,
    get_logger,
    setup_logging,
)
from .llm_impl import OpenAIGateway
from .agent import AgentReply, CustomerChatAgent

__all__ = [
    "AgentSettings",
    "ConversationContext",
    "ExecutionContext",
    "OrchestrationLoop",
    "ToolExecutor",
    "ToolRegistry",
    "get_logger",
    "setup_logging",
    "OpenAIGateway",
    "AgentReply",
    "CustomerChatAgent",
]
