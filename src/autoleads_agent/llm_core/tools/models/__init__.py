"""Tool-related data models."""

from .models import FieldType, ParameterSpec, ToolDefinition
from .tool_call import ToolCallRequest, ToolCallResult, ToolStatus, FailureCategory, ExecutionContext

__all__ = [
    "FieldType",
    "ParameterSpec",
    "ToolDefinition",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolStatus",
    "FailureCategory",
    "ExecutionContext",
]
