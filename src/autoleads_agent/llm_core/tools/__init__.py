"""Tool definitions, registration, validation and execution."""

from .models import (
    ExecutionContext,
    FailureCategory,
    FieldType,
    ParameterSpec,
    ToolCallRequest,
    ToolCallResult,
    ToolDefinition,
    ToolStatus,
)
from .registry import ToolRegistry
from .schema import ArgumentViolation, SchemaValidator, ValidationReport, ViolationKind
from .execution import ToolExecutor

__all__ = [
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
