"""Collect concrete model gateway implementations."""

from .openai_api import OpenAIGateway, OpenAIWireAdapter

__all__ = [
    "OpenAIGateway",
    "OpenAIWireAdapter",
]
