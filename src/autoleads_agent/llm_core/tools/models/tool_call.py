"""Data models exchanged between the gateway, the executor and the context."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ToolStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class FailureCategory(str, Enum):
    """Why a tool call produced no success payload."""

    UNKNOWN_TOOL = "unknown_tool"
    INVALID_ARGUMENTS = "invalid_arguments"
    EXECUTION_FAILED = "execution_failed"
    TIMEOUT = "timeout"


class ToolCallRequest(BaseModel):
    """A tool invocation proposed by the model.

    ``raw_arguments`` is kept exactly as the provider sent it; it is untrusted and
    only decoded by the executor.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    tool_name: str
    raw_arguments: str = ""


class ToolCallResult(BaseModel):
    """Represents the outcome of executing a tool call. Always data, never raised."""

    model_config = ConfigDict(frozen=True)

    correlation_id: str
    tool_name: str
    status: ToolStatus
    content: str
    error_category: Optional[FailureCategory] = None

    @classmethod
    def success(cls, request: ToolCallRequest, payload: str) -> ToolCallResult:
        return cls(
            correlation_id=request.id,
            tool_name=request.tool_name,
            status=ToolStatus.SUCCESS,
            content=payload,
        )

    @classmethod
    def failure(cls, request: ToolCallRequest, category: FailureCategory, message: str) -> ToolCallResult:
        return cls(
            correlation_id=request.id,
            tool_name=request.tool_name,
            status=ToolStatus.FAILURE,
            content=message,
            error_category=category,
        )

    @property
    def ok(self) -> bool:
        return self.status == ToolStatus.SUCCESS

    def as_text(self) -> str:
        """Serialize the outcome into the text the model will read."""
        if self.ok:
            return self.content
        category = self.error_category.value if self.error_category else FailureCategory.EXECUTION_FAILED.value
        return json.dumps({"error": self.content, "category": category}, ensure_ascii=False)


class ExecutionContext(BaseModel):
    """Identifiers a handler needs to act on behalf of the current conversation."""

    model_config = ConfigDict(frozen=True)

    tenant_id: Union[int, str]
    lead_id: Optional[Union[int, str]] = None
    customer_phone: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
