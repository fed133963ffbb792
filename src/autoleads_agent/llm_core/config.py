"""Runtime configuration for the agent."""

from typing import Any, Optional

from dotenv import find_dotenv
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .logger import get_logger

logger = get_logger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a friendly sales assistant for a used-car showroom, chatting with customers on WhatsApp. "
    "Answer in the customer's language, keep replies short, and use the available tools to look up "
    "inventory, prices, financing, photos and the showroom location instead of guessing. "
    "Never promise to send photos or book a test drive without calling the matching tool."
)
DEFAULT_FALLBACK_MESSAGE = "Maaf, terjadi kendala teknis. Silakan coba lagi dalam beberapa saat."
DEFAULT_LIMIT_MESSAGE = "Maaf, permintaan Anda memakan waktu terlalu lama. Silakan coba lagi."


class AgentSettings(BaseSettings):
    """
    Settings for the model endpoint, the orchestration loop and the customer-facing agent.

    Attributes:
        api_base_url: Base URL of the OpenAI-compatible endpoint.
        api_key: API key for the endpoint.
        model: Model identifier.
        temperature: Sampling temperature.
        max_tokens: Maximum tokens per model reply.
        top_p: Optional nucleus sampling parameter.
        max_iterations: Maximum gateway rounds per customer message.
        max_attempts: Total attempts per gateway call, including the first.
        base_retry_delay: Delay in seconds before the first retry; doubles afterwards.
        request_timeout: Timeout in seconds for one gateway attempt.
        tool_timeout: Timeout in seconds for one tool invocation.
        max_history_turns: Number of carried-over turns kept in the model's window.
        system_prompt: Instruction prepended to every conversation.
        fallback_message: Customer-facing text when a run fails.
        limit_message: Customer-facing text when the round cap is hit without any text.

    Every field can be set through an ``AUTOLEADS_<FIELD>`` environment variable
    or a ``.env`` file in the working directory. Empty variables are ignored.
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTOLEADS_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    api_base_url: str = "https://api.z.ai/api/coding/paas/v4"
    api_key: Optional[SecretStr] = None
    model: str = "glm-4.5v"

    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1024, ge=10)
    top_p: Optional[float] = Field(default=None, gt=0.0, le=1.0)

    max_iterations: int = Field(default=5, ge=1)
    max_attempts: int = Field(default=3, ge=1)
    base_retry_delay: float = Field(default=1.0, ge=0.0)
    request_timeout: float = Field(default=60.0, gt=0.0)
    tool_timeout: float = Field(default=30.0, gt=0.0)

    max_history_turns: int = Field(default=8, ge=0)
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    fallback_message: str = DEFAULT_FALLBACK_MESSAGE
    limit_message: str = DEFAULT_LIMIT_MESSAGE

    @classmethod
    def from_env(cls, prefix: str = "AUTOLEADS_", **overrides: Any) -> "AgentSettings":
        """Build settings from ``<prefix><FIELD>`` environment variables.

        The nearest ``.env`` file, searched upwards from the working directory, is
        read as well. Explicit keyword overrides take precedence over both.

        Raises:
            pydantic.ValidationError: If a variable holds a value of the wrong type.
        """
        env_file = find_dotenv(usecwd=True) or None
        logger.debug(f"Loading settings with prefix '{prefix}' (dotenv: {env_file or 'none'}).")
        return cls(_env_prefix=prefix, _env_file=env_file, **overrides)
