"""Validation of model-supplied tool arguments against declared parameter specs."""

import math
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from ..models import FieldType, ParameterSpec, ToolDefinition
from ...exceptions import ToolValidationError
from ...logger import get_logger

logger = get_logger(__name__)

ParameterInput = Union[Sequence[ParameterSpec], Mapping[str, Mapping[str, Any]], None]


class ViolationKind(str, Enum):
    UNKNOWN_TOOL = "unknown_tool"
    MISSING_REQUIRED = "missing_required"
    TYPE_MISMATCH = "type_mismatch"
    NOT_IN_ENUMERATION = "not_in_enumeration"
    UNEXPECTED_FIELD = "unexpected_field"
    MALFORMED_ARGUMENTS = "malformed_arguments"


class ArgumentViolation(BaseModel):
    """One specific reason a set of arguments was rejected."""

    model_config = ConfigDict(frozen=True)

    kind: ViolationKind
    message: str
    field: Optional[str] = None


class ValidationReport(BaseModel):
    """Outcome of validating one tool call. Accepted when no violations were found."""

    model_config = ConfigDict(frozen=True)

    tool_name: str
    violations: List[ArgumentViolation] = []

    @property
    def accepted(self) -> bool:
        return not self.violations

    def summary(self) -> str:
        return "; ".join(v.message for v in self.violations)


class SchemaValidator:
    """
    Helper class for checking tool arguments against a tool's parameter specs.

    Arguments originate from a probabilistic model and are treated as untrusted input.
    Nothing here raises for bad arguments or mutates them; every problem is reported
    as an :class:`ArgumentViolation`.
    """

    _TYPE_MESSAGES = {
        FieldType.STRING: "must be a string",
        FieldType.NUMBER: "must be numeric",
        FieldType.BOOLEAN: "must be a boolean",
        FieldType.LIST: "must be a list",
    }

    @classmethod
    def validate(cls, tool: ToolDefinition, arguments: Any) -> ValidationReport:
        """
        Validates decoded arguments for a single tool call.

        Args:
            tool: The definition the call targets.
            arguments: Decoded arguments. Anything but a mapping is malformed.

        Returns:
            A report listing every violation found, in schema order.
        """
        if not isinstance(arguments, Mapping):
            violation = ArgumentViolation(
                kind=ViolationKind.MALFORMED_ARGUMENTS,
                message="Arguments must be a JSON object.",
            )
            return ValidationReport(tool_name=tool.name, violations=[violation])

        violations: List[ArgumentViolation] = []
        specs = tool.parameter_map

        for spec in tool.parameters:
            if spec.name not in arguments:
                if spec.required:
                    violations.append(
                        ArgumentViolation(
                            kind=ViolationKind.MISSING_REQUIRED,
                            field=spec.name,
                            message=f"{spec.name} is required",
                        )
                    )
                continue
            violation = cls._check_value(spec, spec.name, arguments[spec.name])
            if violation:
                violations.append(violation)

        for name in arguments:
            if name not in specs:
                violations.append(
                    ArgumentViolation(
                        kind=ViolationKind.UNEXPECTED_FIELD,
                        field=str(name),
                        message=f"{name} is not a recognised parameter",
                    )
                )

        if violations:
            logger.debug("Validation of '%s' found %d violation(s).", tool.name, len(violations))
        return ValidationReport(tool_name=tool.name, violations=violations)

    @classmethod
    def _check_value(cls, spec: ParameterSpec, label: str, value: Any) -> Optional[ArgumentViolation]:
        if spec.type == FieldType.ENUMERATION:
            return cls._check_enumeration(spec, label, value)

        if not cls._matches(spec.type, value):
            return ArgumentViolation(
                kind=ViolationKind.TYPE_MISMATCH,
                field=spec.name,
                message=f"{label} {cls._TYPE_MESSAGES[spec.type]}",
            )

        if spec.type == FieldType.LIST and spec.item_type is not None:
            for index, item in enumerate(value):
                if not cls._matches(spec.item_type, item):
                    return ArgumentViolation(
                        kind=ViolationKind.TYPE_MISMATCH,
                        field=spec.name,
                        message=f"{label}[{index}] {cls._TYPE_MESSAGES[spec.item_type]}",
                    )

        if spec.allowed_values:
            return cls._check_enumeration(spec, label, value)
        return None

    @staticmethod
    def _check_enumeration(spec: ParameterSpec, label: str, value: Any) -> Optional[ArgumentViolation]:
        allowed = spec.allowed_values or ()
        # bool == 1 in Python, so membership is checked on (type, value) pairs
        if any(type(value) is type(candidate) and value == candidate for candidate in allowed):
            return None
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if any(
                isinstance(c, (int, float)) and not isinstance(c, bool) and c == value for c in allowed
            ):
                return None
        return ArgumentViolation(
            kind=ViolationKind.NOT_IN_ENUMERATION,
            field=spec.name,
            message=f"{label} must be one of: {', '.join(str(v) for v in allowed)}",
        )

    @staticmethod
    def _matches(field_type: FieldType, value: Any) -> bool:
        if field_type == FieldType.STRING:
            return isinstance(value, str)
        if field_type == FieldType.NUMBER:
            return isinstance(value, (int, float)) and not isinstance(value, bool) and _is_finite(value)
        if field_type == FieldType.BOOLEAN:
            return isinstance(value, bool)
        if field_type == FieldType.LIST:
            return isinstance(value, list)
        return False

    @staticmethod
    def normalize_parameters(parameters: ParameterInput, tool_name: str) -> tuple:
        """
        Converts user supplied parameter declarations into ParameterSpecs.

        Accepts either a sequence of :class:`ParameterSpec` or a mapping of
        ``name -> {type, required, allowed_values, description, ...}``.

        Raises:
            ToolValidationError: If a declaration is not a valid spec.
        """
        if parameters is None:
            return ()

        try:
            if isinstance(parameters, Mapping):
                specs = [
                    spec if isinstance(spec, ParameterSpec) else ParameterSpec(name=name, **dict(spec))
                    for name, spec in parameters.items()
                ]
            else:
                specs = [
                    spec if isinstance(spec, ParameterSpec) else ParameterSpec.model_validate(spec)
                    for spec in parameters
                ]
        except (ValidationError, TypeError) as exc:
            msg = f"Invalid parameter declaration for tool '{tool_name}': {exc}"
            logger.error(msg)
            raise ToolValidationError(msg) from exc

        return tuple(specs)

    @staticmethod
    def describe(specs: Sequence[ParameterSpec]) -> Dict[str, Dict[str, Any]]:
        """Renders specs as ``name -> JSON-schema property`` for logging and inspection."""
        return {spec.name: spec.json_schema() for spec in specs}


def _is_finite(value: float) -> bool:
    try:
        return math.isfinite(value)
    except OverflowError:
        # Integers beyond float range
        return False
