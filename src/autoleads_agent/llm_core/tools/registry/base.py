"""Tool registry and helper utilities."""

import inspect
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from ..models import ParameterSpec, ToolDefinition
from ..schema import CONTEXT_PARAMETER, SchemaValidator, ToolParameterFactory, ValidationReport
from ..schema.schema_validator import ArgumentViolation, ViolationKind
from ...exceptions import ToolNotFoundError, ToolRegistrationError, ToolValidationError
from ...logger import get_logger

logger = get_logger(__name__)

ParameterDeclaration = Union[Sequence[ParameterSpec], Mapping[str, Mapping[str, Any]]]


class ToolRegistry:
    """
    The set of tools the agent may call, keyed by name.

    Holds the definitions described to the model together with their handlers,
    and is the single authority on whether decoded arguments are acceptable
    for a tool.
    """

    def __init__(self) -> None:
        self.tools: Dict[str, ToolDefinition] = {}

    def register(
        self,
        target: Union[str, ToolDefinition, Callable],
        description: Optional[str] = None,
        func: Optional[Callable] = None,
        parameters: Optional[ParameterDeclaration] = None,
    ) -> ToolDefinition:
        """
        Add a tool to the registry.

        ``target`` may be a ready :class:`ToolDefinition`, an annotated handler whose
        signature and docstring describe the tool, or a tool name. With a name,
        ``func`` is mandatory; ``parameters`` may declare the arguments explicitly,
        in which case ``description`` is mandatory too.

        Args:
            target: A definition, a handler, or a tool name.
            description: What the tool does, as shown to the model.
            func: Handler for a tool registered by name.
            parameters: ParameterSpecs, or a mapping of parameter name to spec fields.

        Returns:
            The registered definition.

        Raises:
            ToolRegistrationError: If the name is taken or required pieces are missing.
            ToolValidationError: If the tool cannot be described to the model.
        """
        tool = self._definition_for(target, description, func, parameters)

        if tool.name in self.tools:
            msg = f"Tool '{tool.name}' is already registered."
            logger.error(msg)
            raise ToolRegistrationError(msg)

        self.tools[tool.name] = tool
        logger.info(f"Successfully registered tool: '{tool.name}'")
        return tool

    def unregister(self, tool_name: str) -> None:
        """Remove a tool.

        Raises:
            ToolNotFoundError: If no tool with that name is registered.
        """
        self.get(tool_name)
        del self.tools[tool_name]
        logger.info(f"Successfully unregistered tool: '{tool_name}'")

    def tool(self, func: Callable) -> Callable:
        """Decorator form of :meth:`register` for annotated handlers. Returns ``func`` unchanged."""
        self.register(func)
        return func

    def get(self, tool_name: str) -> ToolDefinition:
        """Look up a registered definition.

        Raises:
            ToolNotFoundError: If no tool with that name is registered.
        """
        try:
            return self.tools[tool_name]
        except KeyError:
            raise ToolNotFoundError(f"Tool '{tool_name}' not found in the registry.") from None

    def validate(self, tool_name: str, arguments: Any) -> ValidationReport:
        """Check decoded arguments against the named tool's parameter specs.

        An unknown tool is reported as a violation rather than raised, so callers
        can treat every outcome uniformly.
        """
        tool = self.tools.get(tool_name)
        if tool is None:
            violation = ArgumentViolation(kind=ViolationKind.UNKNOWN_TOOL, message=f"Unknown tool: {tool_name}")
            return ValidationReport(tool_name=tool_name, violations=[violation])
        return SchemaValidator.validate(tool, arguments)

    @property
    def definitions(self) -> List[ToolDefinition]:
        """All registered definitions, in registration order."""
        return list(self.tools.values())

    @property
    def implementations(self) -> Dict[str, Callable]:
        """Handlers keyed by tool name."""
        return {tool_name: definition.func for tool_name, definition in self.tools.items()}

    def catalog(self) -> List[Dict[str, Any]]:
        """The provider-neutral description of every registered tool."""
        return [
            {"name": tool.name, "description": tool.description, "parameter_schema": tool.parameter_schema}
            for tool in self.tools.values()
        ]

    def __contains__(self, tool_name: object) -> bool:
        return tool_name in self.tools

    def __len__(self) -> int:
        return len(self.tools)

    def _definition_for(
        self,
        target: Union[str, ToolDefinition, Callable],
        description: Optional[str],
        func: Optional[Callable],
        parameters: Optional[ParameterDeclaration],
    ) -> ToolDefinition:
        if isinstance(target, ToolDefinition):
            return target
        if callable(target):
            return self._derive_definition(target, target.__name__, description)

        if func is None:
            raise ToolRegistrationError(f"Tool '{target}' was registered by name without a handler.")
        if parameters is None:
            return self._derive_definition(func, target, description)
        if description is None:
            raise ToolRegistrationError(f"Tool '{target}' declares its parameters but has no description.")

        return self._build_definition(
            name=target,
            description=description,
            func=func,
            parameters=SchemaValidator.normalize_parameters(parameters, target),
            accepts_context=self._accepts_context(func),
        )

    def _derive_definition(self, func: Callable, tool_name: str, description: Optional[str]) -> ToolDefinition:
        """Describe a handler from its signature, ``Annotated`` field descriptions and docstring.

        Raises:
            ToolValidationError: If the docstring, a parameter description or a supported type is missing.
        """
        if description is None:
            description = self._describe(func, tool_name)

        signature = inspect.signature(func, eval_str=True)
        return self._build_definition(
            name=tool_name,
            description=description,
            func=func,
            parameters=ToolParameterFactory.build_specs(signature, tool_name),
            accepts_context=CONTEXT_PARAMETER in signature.parameters,
        )

    @staticmethod
    def _build_definition(**fields: Any) -> ToolDefinition:
        try:
            return ToolDefinition(**fields)
        except ValidationError as exc:
            msg = f"Invalid definition for tool '{fields.get('name')}': {exc}"
            logger.error(msg)
            raise ToolValidationError(msg) from exc

    @staticmethod
    def _accepts_context(func: Callable) -> bool:
        try:
            return CONTEXT_PARAMETER in inspect.signature(func).parameters
        except (TypeError, ValueError):
            return False

    @staticmethod
    def _describe(func: Callable, tool_name: str) -> str:
        doc = inspect.getdoc(func)
        if not doc:
            msg = f"Tool '{tool_name}' has no docstring; the model needs to know what it does."
            logger.error(msg)
            raise ToolValidationError(msg)
        return doc
