"""Bounded model/tool state machine for one conversation turn."""

from __future__ import annotations

from typing import List, Sequence

from ..base import FinishReason, GatewayReply, ModelGateway
from ..context import ConversationContext
from ..exceptions import ContextLinkageError, GatewayError
from ..logger import get_logger
from ..messages import AssistantTurn, ToolResultTurn
from ..tools.execution import ToolExecutor
from ..tools.models import ExecutionContext, ToolCallRequest, ToolCallResult
from .outcomes import Failed, FinalAnswer, IterationLimitReached, LoopState, OrchestrationOutcome

logger = get_logger(__name__)


class OrchestrationLoop:
    """Drives the gateway and the tool executor until the model answers.

    Each run alternates between asking the model and executing the tools it asks
    for. The number of gateway rounds is capped; tool failures are fed back to the
    model and never end the run, gateway failures do.
    """

    def __init__(self, *, gateway: ModelGateway, executor: ToolExecutor, max_iterations: int = 5) -> None:
        """Initialize the loop.

        Args:
            gateway: The model gateway to consult each round.
            executor: Executes the tool calls the model proposes.
            max_iterations: Maximum number of gateway rounds per run.
        """
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1.")
        self._gateway = gateway
        self._executor = executor
        self._max_iterations = max_iterations

    async def run(self, context: ConversationContext, execution_context: ExecutionContext) -> OrchestrationOutcome:
        """Run the loop on a context whose last turn is the customer's new message.

        Args:
            context: The conversation so far. It is appended to in place.
            execution_context: Identifiers handed to tool handlers.

        Returns:
            The terminal outcome, carrying the final context and the number of gateway rounds.

        Raises:
            ContextLinkageError: If the executor returned results that do not match the batch.
        """
        gateway_calls = 0
        last_text = ""
        state = LoopState.AWAITING_MODEL

        while True:
            if gateway_calls >= self._max_iterations:
                logger.warning(f"Max iterations ({self._max_iterations}) reached. Stopping execution.")
                return self._finish(
                    state, IterationLimitReached(last_known_text=last_text, context=context, gateway_calls=gateway_calls)
                )

            gateway_calls += 1
            logger.info(f"Round {gateway_calls}/{self._max_iterations}: awaiting model reply.")
            try:
                reply = await self._gateway.complete(context)
            except GatewayError as exc:
                logger.error(f"Gateway failed after retries: {exc} ({type(exc).__name__})")
                return self._finish(
                    state, Failed(reason=f"gateway_error: {exc}", context=context, gateway_calls=gateway_calls)
                )

            if reply.text:
                last_text = reply.text

            if reply.finish_reason == FinishReason.ANSWERED:
                context.append(AssistantTurn(content=reply.text))
                return self._finish(state, FinalAnswer(text=reply.text or "", context=context, gateway_calls=gateway_calls))

            if reply.finish_reason == FinishReason.TRUNCATED:
                if reply.text:
                    logger.warning("Model reply was truncated by the token limit; returning partial text.")
                    context.append(AssistantTurn(content=reply.text))
                    return self._finish(
                        state, FinalAnswer(text=reply.text, context=context, gateway_calls=gateway_calls, truncated=True)
                    )
                return self._finish(state, Failed(reason="truncated", context=context, gateway_calls=gateway_calls))

            if reply.finish_reason == FinishReason.FILTERED:
                logger.warning("Model reply was withheld by the content filter.")
                return self._finish(state, Failed(reason="filtered", context=context, gateway_calls=gateway_calls))

            state = self._advance(state, LoopState.EXECUTING)
            await self._execute_round(reply, context, execution_context)
            state = self._advance(state, LoopState.AWAITING_MODEL)

    @staticmethod
    def _advance(current: LoopState, target: LoopState) -> LoopState:
        logger.debug(f"Loop state: {current.value} -> {target.value}")
        return target

    @classmethod
    def _finish(cls, current: LoopState, outcome: OrchestrationOutcome) -> OrchestrationOutcome:
        cls._advance(current, outcome.state)
        return outcome

    async def _execute_round(
        self, reply: GatewayReply, context: ConversationContext, execution_context: ExecutionContext
    ) -> None:
        requests = list(reply.tool_calls)
        context.append(AssistantTurn(content=reply.text, tool_calls=reply.tool_calls))

        results = await self._executor.execute(requests, execution_context)
        ordered = self._match_results(requests, results)

        for result in ordered:
            context.append(ToolResultTurn(result=result))

        failures = sum(1 for result in ordered if not result.ok)
        if failures:
            logger.info(f"{failures}/{len(ordered)} tool call(s) failed; results returned to the model.")

    @staticmethod
    def _match_results(requests: Sequence[ToolCallRequest], results: Sequence[ToolCallResult]) -> List[ToolCallResult]:
        """Order results by request and check they are a complete, correlation-correct permutation."""
        by_id = {}
        for result in results:
            if result.correlation_id in by_id:
                raise ContextLinkageError(f"Duplicate result for tool call '{result.correlation_id}'.")
            by_id[result.correlation_id] = result

        expected = [request.id for request in requests]
        if len(results) != len(requests) or set(by_id) != set(expected):
            raise ContextLinkageError(
                f"Tool results {sorted(by_id)} do not match the requested calls {sorted(expected)}."
            )
        return [by_id[call_id] for call_id in expected]
