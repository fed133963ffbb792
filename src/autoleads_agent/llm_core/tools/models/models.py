"""Tool definition and parameter schema models."""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FieldType(str, Enum):
    """Scalar and container types a tool parameter may declare."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUMERATION = "enumeration"
    LIST = "list"


_JSON_TYPES = {
    FieldType.STRING: "string",
    FieldType.NUMBER: "number",
    FieldType.BOOLEAN: "boolean",
    FieldType.LIST: "array",
}


def _json_type_of_values(values: Tuple[Any, ...]) -> Optional[str]:
    if all(isinstance(v, str) for v in values):
        return "string"
    if all(isinstance(v, bool) for v in values):
        return "boolean"
    if all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
        return "number"
    return None


class ParameterSpec(BaseModel):
    """
    Describes a single named field accepted by a tool.

    Attributes:
        name: Field name as the model must send it.
        type: Declared field type.
        description: Natural-language hint for the model.
        required: Whether the field must be present in every accepted call.
        allowed_values: Closed set of accepted values. Mandatory for enumerations,
            optional for strings and numbers.
        item_type: Type of each element when ``type`` is ``list``.
        default: Value the handler falls back to. Documentation only, never injected.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    type: FieldType
    description: str = ""
    required: bool = False
    allowed_values: Optional[Tuple[Any, ...]] = None
    item_type: Optional[FieldType] = None
    default: Any = None

    @model_validator(mode="after")
    def _check_consistency(self) -> "ParameterSpec":
        if self.type == FieldType.ENUMERATION and not self.allowed_values:
            raise ValueError(f"Enumeration parameter '{self.name}' must declare allowed_values.")
        if self.item_type is not None and self.type != FieldType.LIST:
            raise ValueError(f"Parameter '{self.name}' declares item_type but is not a list.")
        if self.item_type in (FieldType.LIST, FieldType.ENUMERATION):
            raise ValueError(f"Parameter '{self.name}' has unsupported item_type '{self.item_type.value}'.")
        return self

    def json_schema(self) -> Dict[str, Any]:
        """Render this field as a JSON-schema property."""
        schema: Dict[str, Any] = {}
        if self.type == FieldType.ENUMERATION:
            json_type = _json_type_of_values(self.allowed_values or ())
            if json_type:
                schema["type"] = json_type
        else:
            schema["type"] = _JSON_TYPES[self.type]

        if self.description:
            schema["description"] = self.description
        if self.allowed_values:
            schema["enum"] = list(self.allowed_values)
        if self.type == FieldType.LIST and self.item_type is not None:
            schema["items"] = {"type": _JSON_TYPES[self.item_type]}
        if self.default is not None:
            schema["default"] = self.default
        return schema


class ToolDefinition(BaseModel):
    """
    Represents the definition of a tool that can be registered with the agent.

    Attributes:
        name: The unique name of the tool.
        description: A description of what the tool does, consumed only by the model.
        func: The callable implementing the tool's logic. Called with the decoded
            arguments as keyword arguments.
        parameters: Ordered parameter specs. Parameter names are unique.
        accepts_context: Whether ``func`` takes a ``context`` keyword receiving the
            :class:`ExecutionContext` of the current conversation.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(pattern=r"^[A-Za-z0-9_-]{1,64}$")
    description: str
    func: Callable[..., Any]
    parameters: Tuple[ParameterSpec, ...] = ()
    accepts_context: bool = False

    @model_validator(mode="after")
    def _check_unique_parameters(self) -> "ToolDefinition":
        seen = set()
        for spec in self.parameters:
            if spec.name in seen:
                raise ValueError(f"Tool '{self.name}' declares parameter '{spec.name}' more than once.")
            seen.add(spec.name)
        return self

    @property
    def parameter_map(self) -> Dict[str, ParameterSpec]:
        return {spec.name: spec for spec in self.parameters}

    @property
    def required_parameters(self) -> List[str]:
        return [spec.name for spec in self.parameters if spec.required]

    @property
    def parameter_schema(self) -> Dict[str, Any]:
        """The JSON-schema object describing this tool's arguments."""
        return {
            "type": "object",
            "properties": {spec.name: spec.json_schema() for spec in self.parameters},
            "required": self.required_parameters,
            "additionalProperties": False,
        }
