"""Export the exception hierarchy used by tools, context and gateways."""

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

__all__ = [
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
]
