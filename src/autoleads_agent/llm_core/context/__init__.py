from .conversation import ConversationContext

__all__ = ["ConversationContext"]
