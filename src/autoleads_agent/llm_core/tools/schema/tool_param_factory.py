import inspect
import types
from enum import Enum
from typing import Any, Annotated, Literal, Optional, Tuple, Union, get_args, get_origin

from pydantic.fields import FieldInfo

from ..models import FieldType, ParameterSpec
from ...exceptions import ToolValidationError
from ...logger import get_logger

logger = get_logger(__name__)

CONTEXT_PARAMETER = "context"
_SKIPPED_PARAMETERS = {"self", "cls", CONTEXT_PARAMETER}
_SCALAR_TYPES = {
    str: FieldType.STRING,
    bool: FieldType.BOOLEAN,
    int: FieldType.NUMBER,
    float: FieldType.NUMBER,
}


class ToolParameterFactory:
    """Capsules the extraction and validation of single function parameters into ParameterSpecs."""

    @classmethod
    def build_specs(cls, signature: inspect.Signature, tool_name: str) -> Tuple[ParameterSpec, ...]:
        """Builds the ordered ParameterSpecs for every model-visible parameter of a signature.

        ``self``/``cls`` and the injected ``context`` parameter are skipped.
        """
        specs = []
        for param_name, param in signature.parameters.items():
            if param_name in _SKIPPED_PARAMETERS:
                continue
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                msg = f"Tool '{tool_name}' uses *args/**kwargs, which cannot be described to the model."
                logger.error(msg)
                raise ToolValidationError(msg)
            specs.append(cls.build_spec(param_name=param_name, param=param, tool_name=tool_name))
        return tuple(specs)

    @classmethod
    def build_spec(cls, param_name: str, param: inspect.Parameter, tool_name: str) -> ParameterSpec:
        """Creates the ParameterSpec for a single function parameter.

        Args:
            param_name: The name of the parameter.
            param: The inspect.Parameter object.
            tool_name: The name of the tool for error reporting.

        Returns:
            The ParameterSpec describing the parameter to the model and the validator.
        """
        annotation = param.annotation
        description = cls._extract_description(annotation=annotation, param_name=param_name, tool_name=tool_name)

        base_type = get_args(annotation)[0]
        base_type, optional = cls._unwrap_optional(base_type)
        has_default = param.default is not inspect.Parameter.empty

        field_type, allowed_values, item_type = cls._map_type(base_type, param_name, tool_name)

        return ParameterSpec(
            name=param_name,
            type=field_type,
            description=description,
            required=not (optional or has_default),
            allowed_values=allowed_values,
            item_type=item_type,
            default=cls._plain_default(param.default) if has_default else None,
        )

    @staticmethod
    def _unwrap_optional(annotation: Any) -> Tuple[Any, bool]:
        origin = get_origin(annotation)
        if origin is Union or origin is types.UnionType:
            members = [arg for arg in get_args(annotation) if arg is not type(None)]
            if len(members) == 1 and len(members) < len(get_args(annotation)):
                return members[0], True
        return annotation, False

    @classmethod
    def _map_type(
        cls, annotation: Any, param_name: str, tool_name: str
    ) -> Tuple[FieldType, Optional[Tuple[Any, ...]], Optional[FieldType]]:
        if annotation in _SCALAR_TYPES:
            return _SCALAR_TYPES[annotation], None, None

        if get_origin(annotation) is Literal:
            return FieldType.ENUMERATION, tuple(get_args(annotation)), None

        if inspect.isclass(annotation) and issubclass(annotation, Enum):
            return FieldType.ENUMERATION, tuple(member.value for member in annotation), None

        if annotation is list or get_origin(annotation) is list:
            item_args = get_args(annotation)
            item_type = None
            if item_args:
                if item_args[0] not in _SCALAR_TYPES:
                    raise cls._unsupported(item_args[0], param_name, tool_name)
                item_type = _SCALAR_TYPES[item_args[0]]
            return FieldType.LIST, None, item_type

        raise cls._unsupported(annotation, param_name, tool_name)

    @staticmethod
    def _unsupported(annotation: Any, param_name: str, tool_name: str) -> ToolValidationError:
        msg = f"Parameter '{param_name}' in tool '{tool_name}' has unsupported type {annotation!r}."
        logger.error(msg)
        return ToolValidationError(msg)

    @staticmethod
    def _plain_default(value: Any) -> Any:
        if isinstance(value, Enum):
            return value.value
        return value

    @staticmethod
    def _extract_description(annotation: Any, param_name: str, tool_name: str) -> str:
        """Read the model-facing description from an `Annotated[..., Field(description=...)]` annotation.

        Raises:
            ToolValidationError: If no description is attached.
        """
        if get_origin(annotation) is Annotated:
            for metadata in get_args(annotation):
                if isinstance(metadata, FieldInfo) and metadata.description:
                    return metadata.description

        msg = (
            f"Parameter '{param_name}' in tool '{tool_name}' is missing a description.\n"
            f"Usage: {param_name}: Annotated[Type, Field(description='...')] = ..."
        )
        logger.error(msg)
        raise ToolValidationError(msg)
