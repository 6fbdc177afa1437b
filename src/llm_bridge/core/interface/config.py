"""Model configuration — model name, credentials and transport settings."""

from typing import Any

from pydantic import BaseModel, Field

DEFAULT_TIMEOUT = 60.0
DEFAULT_MAX_RETRIES = 2
DEFAULT_ANTHROPIC_MAX_TOKENS = 4096


class ModelConfig(BaseModel):
    """Configuration for a specific model/provider combination.

    The ``model`` field uses LiteLLM's naming convention:
    ``provider/model_name`` (e.g. ``openai/gpt-4o``, ``anthropic/claude-sonnet-4-5``).
    Credentials left unset are resolved by the underlying SDK from its usual
    environment variables.
    """

    model: str
    api_key: str | None = None
    api_base: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    max_tokens: int | None = None
    extra: dict[str, Any] = Field(default_factory=lambda: dict[str, Any]())

    @property
    def provider(self) -> str:
        """Extract the provider prefix from the model string."""
        if "/" in self.model:
            return self.model.split("/", 1)[0]
        return "openai"

    @property
    def model_name(self) -> str:
        """The model string without its provider prefix."""
        return self.model.split("/", 1)[1] if "/" in self.model else self.model

    @property
    def wire_format(self) -> str:
        """``anthropic`` for the native Messages API, otherwise ``openai``."""
        return "anthropic" if self.provider == "anthropic" else "openai"
