from .loop import OrchestrationLoop
from .outcomes import Failed, FinalAnswer, IterationLimitReached, LoopState, OrchestrationOutcome

__all__ = [
    "OrchestrationLoop",
    "OrchestrationOutcome",
    "FinalAnswer",
    "IterationLimitReached",
    "Failed",
    "LoopState",
]
