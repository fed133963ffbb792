"""Public exports for the core orchestration abstractions and utilities."""

from .base import ModelGateway, GatewayReply, FinishReason, UsageStats
from .config import AgentSettings
from .context import ConversationContext
from .exceptions import (
    LLMToolError,
    ToolRegistrationError,
    ToolNotFoundError,
    ToolExecutionError,
    ToolValidationError,
    ContextLinkageError,
    GatewayError,
    GatewayTransportError,
    GatewayTimeoutError,
    GatewayStatusError,
    GatewayEmptyResponseError,
    GatewayMalformedResponseError,
)
from .logger import get_logger, setup_logging
from .messages import TurnRole, BaseTurn, SystemTurn, UserTurn, AssistantTurn, ToolResultTurn
from .orchestration import (
    OrchestrationLoop,
    OrchestrationOutcome,
    FinalAnswer,
    IterationLimitReached,
    Failed,
    LoopState,
)
from .tools import (
    ExecutionContext,
    FailureCategory,
    FieldType,
    ParameterSpec,
    ToolCallRequest,
    ToolCallResult,
    ToolDefinition,
    ToolStatus,
    ToolRegistry,
    ArgumentViolation,
    SchemaValidator,
    ValidationReport,
    ViolationKind,
    ToolExecutor,
)

__all__ = [
    "ModelGateway",
    "GatewayReply",
    "FinishReason",
    "UsageStats",
    "AgentSettings",
    "ConversationContext",
    "LLMToolError",
    "ToolRegistrationError",
    "ToolNotFoundError",
    "ToolExecutionError",
    "ToolValidationError",
    "ContextLinkageError",
    "GatewayError",
    "GatewayTransportError",
    "GatewayTimeoutError",
    "GatewayStatusError",
    "GatewayEmptyResponseError",
    "GatewayMalformedResponseError",
    "get_logger",
    "setup_logging",
    "TurnRole",
    "BaseTurn",
    "SystemTurn",
    "UserTurn",
    "AssistantTurn",
    "ToolResultTurn",
    "OrchestrationLoop",
    "OrchestrationOutcome",
    "FinalAnswer",
    "IterationLimitReached",
    "Failed",
    "LoopState",
    "ExecutionContext",
    "FailureCategory",
    "FieldType",
    "ParameterSpec",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolDefinition",
    "ToolStatus",
    "ToolRegistry",
    "ArgumentViolation",
    "SchemaValidator",
    "ValidationReport",
    "ViolationKind",
    "ToolExecutor",
]
