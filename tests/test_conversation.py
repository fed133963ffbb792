import pytest

from autoleads_agent.llm_core import (
    AssistantTurn,
    ContextLinkageError,
    ConversationContext,
    FailureCategory,
    FieldType,
    ParameterSpec,
    SystemTurn,
    ToolCallRequest,
    ToolCallResult,
    ToolDefinition,
    ToolResultTurn,
    UserTurn,
)


def _request(call_id: str, name: str = "search_inventory") -> ToolCallRequest:
    return ToolCallRequest(id=call_id, tool_name=name, raw_arguments='{"brand": "Toyota"}')


def _ok(call_id: str, name: str = "search_inventory") -> ToolResultTurn:
    return ToolResultTurn(result=ToolCallResult.success(_request(call_id, name), "Found 1 car(s)"))


def _tool_exchange() -> list:
    return [
        SystemTurn(content="be nice"),
        UserTurn(content="ada avanza?"),
        AssistantTurn(content=None, tool_calls=(_request("c1"), _request("c2", "get_car_details"))),
        _ok("c2", "get_car_details"),
        _ok("c1"),
        AssistantTurn(content="Ada, kode A01."),
    ]


def test_render_preserves_append_order_and_ids():
    context = ConversationContext(history=_tool_exchange())
    rendered = context.render()

    assert [turn["role"] for turn in rendered] == ["system", "user", "assistant", "tool", "tool", "assistant"]
    assert rendered[2]["tool_calls"] == [
        {"id": "c1", "tool_name": "search_inventory", "arguments_text": '{"brand": "Toyota"}'},
        {"id": "c2", "tool_name": "get_car_details", "arguments_text": '{"brand": "Toyota"}'},
    ]
    assert [turn["correlation_id"] for turn in rendered[3:5]] == ["c2", "c1"]
    assert rendered[3]["result_text"] == "Found 1 car(s)"
    assert "tool_calls" not in rendered[5]


def test_render_is_deterministic_and_round_trips():
    context = ConversationContext(history=_tool_exchange())
    first = context.render()
    assert context.render() == first
    assert ConversationContext.from_wire(first).render() == first


def test_failure_results_round_trip_through_wire():
    request = _request("c1")
    failure = ToolCallResult.failure(request, FailureCategory.TIMEOUT, "Tool execution timed out after 1.0s.")
    context = ConversationContext(
        history=[UserTurn(content="hi"), AssistantTurn(tool_calls=(request,)), ToolResultTurn(result=failure)]
    )
    rebuilt = ConversationContext.from_wire(context.render())
    result = rebuilt.turns[-1].result
    assert not result.ok
    assert result.error_category == FailureCategory.TIMEOUT
    assert rebuilt.render() == context.render()


def test_result_must_answer_latest_assistant_turn():
    context = ConversationContext(history=[UserTurn(content="hi")])
    with pytest.raises(ContextLinkageError):
        context.append(_ok("c1"))


def test_result_cannot_answer_twice():
    context = ConversationContext(history=[AssistantTurn(tool_calls=(_request("c1"),)), _ok("c1")])
    with pytest.raises(ContextLinkageError):
        context.append(_ok("c1"))


def test_result_cannot_answer_an_older_assistant_turn():
    context = ConversationContext(
        history=[
            AssistantTurn(tool_calls=(_request("c1"),)),
            _ok("c1"),
            AssistantTurn(tool_calls=(_request("c2"),)),
        ]
    )
    with pytest.raises(ContextLinkageError):
        context.append(_ok("c1"))


def test_user_turn_closes_the_tool_window():
    context = ConversationContext(history=[AssistantTurn(tool_calls=(_request("c1"),)), UserTurn(content="?")])
    with pytest.raises(ContextLinkageError):
        context.append(_ok("c1"))


def test_result_tool_name_must_match_call():
    context = ConversationContext(history=[AssistantTurn(tool_calls=(_request("c1"),))])
    with pytest.raises(ContextLinkageError):
        context.append(_ok("c1", "get_car_details"))


def test_duplicate_ids_in_assistant_turn_rejected():
    context = ConversationContext()
    with pytest.raises(ContextLinkageError):
        context.append(AssistantTurn(tool_calls=(_request("c1"), _request("c1"))))


def test_pending_call_ids_and_last_text():
    context = ConversationContext(
        history=[
            AssistantTurn(content="Sebentar ya"),
            AssistantTurn(content="", tool_calls=(_request("c1"), _request("c2"))),
            _ok("c1"),
        ]
    )
    assert context.pending_call_ids == ("c2",)
    assert context.last_assistant_text == "Sebentar ya"


def test_seed_never_starts_with_orphaned_result():
    history = _tool_exchange()[1:]
    window = ConversationContext.seed(history, limit=3)
    assert [type(turn) for turn in window] == [AssistantTurn]


def test_seed_drops_system_turns_and_incomplete_trailing_calls():
    history = [
        SystemTurn(content="old prompt"),
        UserTurn(content="hi"),
        AssistantTurn(content="Halo!"),
        UserTurn(content="foto A01"),
        AssistantTurn(tool_calls=(_request("c1"), _request("c2"))),
        _ok("c1"),
    ]
    window = ConversationContext.seed(history, limit=10)
    assert [turn.role.value for turn in window] == ["user", "assistant", "user"]


def test_seed_with_zero_limit_is_empty():
    assert ConversationContext.seed(_tool_exchange(), limit=0) == []


def test_render_catalog_uses_active_tools():
    tool = ToolDefinition(
        name="get_car_details",
        description="Details.",
        func=lambda display_code: display_code,
        parameters=(ParameterSpec(name="display_code", type=FieldType.STRING, required=True),),
    )
    context = ConversationContext(tools=[tool])
    assert context.render_catalog() == [
        {"name": "get_car_details", "description": "Details.", "parameter_schema": tool.parameter_schema}
    ]


def test_from_wire_rejects_unknown_role():
    with pytest.raises(ValueError):
        ConversationContext.from_wire([{"role": "narrator", "content": "once upon a time"}])
