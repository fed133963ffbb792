from enum import Enum
from typing import Annotated, List, Literal, Optional

import pytest
from pydantic import Field

from autoleads_agent.llm_core import (
    ExecutionContext,
    FieldType,
    ParameterSpec,
    ToolDefinition,
    ToolNotFoundError,
    ToolRegistrationError,
    ToolRegistry,
    ToolValidationError,
    ViolationKind,
)


class Transmission(str, Enum):
    MANUAL = "Manual"
    MATIC = "Matic"


async def find_cars(
    brand: Annotated[str, Field(description="Car brand")],
    max_price: Annotated[Optional[int], Field(description="Budget ceiling")] = None,
    transmission: Annotated[Optional[Transmission], Field(description="Gearbox")] = None,
    fuel: Annotated[Literal["Bensin", "Diesel"], Field(description="Fuel")] = "Bensin",
    colors: Annotated[List[str], Field(description="Acceptable colors")] = [],
    certified: Annotated[bool, Field(description="Only certified cars")] = False,
) -> str:
    """Find cars in stock."""
    return "ok"


def test_register_callable_derives_specs():
    registry = ToolRegistry()
    definition = registry.register(find_cars)

    assert definition.name == "find_cars"
    assert definition.description == "Find cars in stock."
    assert definition.accepts_context is False
    specs = definition.parameter_map
    assert specs["brand"].type == FieldType.STRING and specs["brand"].required
    assert specs["max_price"].type == FieldType.NUMBER and not specs["max_price"].required
    assert specs["transmission"].type == FieldType.ENUMERATION
    assert specs["transmission"].allowed_values == ("Manual", "Matic")
    assert specs["fuel"].allowed_values == ("Bensin", "Diesel")
    assert specs["fuel"].default == "Bensin"
    assert specs["colors"].type == FieldType.LIST and specs["colors"].item_type == FieldType.STRING
    assert specs["certified"].type == FieldType.BOOLEAN
    assert definition.required_parameters == ["brand"]


def test_context_parameter_is_hidden_and_flagged():
    registry = ToolRegistry()

    @registry.tool
    def whoami(context: ExecutionContext) -> str:
        """Say which tenant is asking."""
        return str(context.tenant_id)

    definition = registry.get("whoami")
    assert definition.accepts_context is True
    assert definition.parameters == ()
    assert definition.parameter_schema["properties"] == {}


def test_missing_docstring_is_rejected():
    registry = ToolRegistry()

    def undocumented(x: Annotated[int, Field(description="x")]) -> int:
        return x

    with pytest.raises(ToolValidationError):
        registry.register(undocumented)


def test_missing_parameter_description_is_rejected():
    registry = ToolRegistry()

    def vague(x: int) -> int:
        """Do something."""
        return x

    with pytest.raises(ToolValidationError):
        registry.register(vague)


def test_unsupported_parameter_type_is_rejected():
    registry = ToolRegistry()

    def nested(x: Annotated[dict, Field(description="x")]) -> None:
        """Nested data."""

    with pytest.raises(ToolValidationError):
        registry.register(nested)


def test_register_by_name_with_parameter_mapping():
    registry = ToolRegistry()
    registry.register(
        "get_financing_info",
        description="Compute an installment.",
        func=lambda carPrice, tenure: "ok",
        parameters={
            "carPrice": {"type": "number", "required": True},
            "tenure": {"type": "number", "required": True},
        },
    )
    definition = registry.get("get_financing_info")
    assert [spec.name for spec in definition.parameters] == ["carPrice", "tenure"]


def test_register_by_name_requires_description_with_parameters():
    registry = ToolRegistry()
    with pytest.raises(ToolRegistrationError):
        registry.register("x", func=lambda: None, parameters=[])


def test_register_by_name_requires_func():
    registry = ToolRegistry()
    with pytest.raises(ToolRegistrationError):
        registry.register("x", description="d")


def test_invalid_tool_name_is_rejected():
    registry = ToolRegistry()
    with pytest.raises(ToolValidationError):
        registry.register("bad name!", description="d", func=lambda: None, parameters=[])


def test_duplicate_registration_fails():
    registry = ToolRegistry()
    registry.register(find_cars)
    with pytest.raises(ToolRegistrationError):
        registry.register(find_cars)


def test_unregister_and_get_unknown():
    registry = ToolRegistry()
    registry.register(find_cars)
    registry.unregister("find_cars")
    assert "find_cars" not in registry
    with pytest.raises(ToolNotFoundError):
        registry.unregister("find_cars")
    with pytest.raises(ToolNotFoundError):
        registry.get("find_cars")


def test_validate_unknown_tool_is_a_violation():
    registry = ToolRegistry()
    report = registry.validate("teleport", {})
    assert not report.accepted
    assert report.violations[0].kind == ViolationKind.UNKNOWN_TOOL
    assert report.violations[0].message == "Unknown tool: teleport"


def test_validate_delegates_to_specs():
    registry = ToolRegistry()
    registry.register(find_cars)
    assert registry.validate("find_cars", {"brand": "Toyota"}).accepted
    report = registry.validate("find_cars", {"brand": "Toyota", "transmission": "CVT"})
    assert report.summary() == "transmission must be one of: Manual, Matic"


def test_catalog_and_implementations():
    registry = ToolRegistry()
    definition = ToolDefinition(
        name="ping",
        description="Ping.",
        func=lambda: "pong",
        parameters=(ParameterSpec(name="host", type=FieldType.STRING, required=True),),
    )
    registry.register(definition)

    assert len(registry) == 1
    assert registry.implementations["ping"] is definition.func
    assert registry.catalog() == [
        {
            "name": "ping",
            "description": "Ping.",
            "parameter_schema": {
                "type": "object",
                "properties": {"host": {"type": "string"}},
                "required": ["host"],
                "additionalProperties": False,
            },
        }
    ]
