"""Expose the OpenAI-compatible gateway and its wire adapter."""

from .core import OpenAIGateway
from .adapter import OpenAIWireAdapter

__all__ = ["OpenAIGateway", "OpenAIWireAdapter"]
