from .executor import ToolExecutor, GENERIC_FAILURE_MESSAGE, EMPTY_SUCCESS_MESSAGE

__all__ = ["ToolExecutor", "GENERIC_FAILURE_MESSAGE", "EMPTY_SUCCESS_MESSAGE"]
