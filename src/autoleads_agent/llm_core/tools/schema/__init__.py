"""Tool schema generation and validation."""

from .schema_validator import ArgumentViolation, SchemaValidator, ValidationReport, ViolationKind
from .tool_param_factory import CONTEXT_PARAMETER, ToolParameterFactory

__all__ = [
    "SchemaValidator",
    "ArgumentViolation",
    "ValidationReport",
    "ViolationKind",
    "ToolParameterFactory",
    "CONTEXT_PARAMETER",
]
