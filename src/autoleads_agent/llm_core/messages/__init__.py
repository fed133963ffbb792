from .models import TurnRole, BaseTurn, SystemTurn, UserTurn, AssistantTurn, ToolResultTurn

__all__ = ["TurnRole", "BaseTurn", "SystemTurn", "UserTurn", "AssistantTurn", "ToolResultTurn"]
