"""
Custom exception classes for the agent core.

Two families live here. The tool family covers registration, validation and
deliberate handler failures; none of them ever escapes the tool executor during
a conversation. The gateway family classifies failures of the remote model
endpoint so the retry policy can tell them apart.
"""

from typing import Optional


class LLMToolError(Exception):
    """Base exception for all tool-related errors."""

    pass


class ToolRegistrationError(LLMToolError):
    """Raised when there is an error registering a tool."""

    pass


class ToolNotFoundError(LLMToolError):
    """Raised when a requested tool is not found in the registry."""

    pass


class ToolExecutionError(LLMToolError):
    """Raised by a tool handler to report a failure the model is allowed to read.

    The message is forwarded verbatim in the tool result, so it must not
    contain internal details.
    """

    pass


class ToolValidationError(LLMToolError):
    """Raised when tool parameters, definitions or encoded arguments are invalid."""

    pass


class ContextLinkageError(Exception):
    """Raised when a tool-result turn does not answer a call of the preceding assistant turn.

    This is a programming error in the caller, not a runtime condition.
    """

    pass


class GatewayError(Exception):
    """Base exception for failures of the remote model endpoint."""

    retryable: bool = True

    def __init__(self, message: str, *, retryable: Optional[bool] = None) -> None:
        super().__init__(message)
        if retryable is not None:
            self.retryable = retryable


class GatewayTransportError(GatewayError):
    """Raised when the endpoint could not be reached or the connection broke."""

    pass


class GatewayTimeoutError(GatewayTransportError):
    """Raised when a single request exceeded its timeout."""

    pass


class GatewayStatusError(GatewayError):
    """Raised when the endpoint answered with a non-success status code."""

    RETRYABLE_STATUS_CODES = frozenset({408, 409, 429})

    def __init__(self, message: str, *, status_code: int) -> None:
        self.status_code = status_code
        retryable = status_code in self.RETRYABLE_STATUS_CODES or status_code >= 500
        super().__init__(message, retryable=retryable)


class GatewayEmptyResponseError(GatewayError):
    """Raised when the endpoint answered successfully but without usable content."""

    pass


class GatewayMalformedResponseError(GatewayError):
    """Raised when a successful response cannot be read as a chat completion."""

    pass
