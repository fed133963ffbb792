from .base import ModelGateway, GatewayReply, FinishReason, UsageStats

__all__ = ["ModelGateway", "GatewayReply", "FinishReason", "UsageStats"]
