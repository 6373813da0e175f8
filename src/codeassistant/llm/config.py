"""LLM provider configuration."""

from pydantic import BaseModel, Field

from codeassistant.config import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_TOKENS,
    LITELLM_PROVIDER_NAMES,
    PROVIDERS_REQUIRING_API_KEY,
)
from codeassistant.errors import ConfigError


class LLMConfig(BaseModel):
    """Catch-all provider settings. Some fields only matter for certain providers."""

    provider: str = Field(default="", description="e.g. openai, ollama, anthropic, azureopenai")
    model: str = Field(default="", description="e.g. gpt-4, llama3")
    api_key: str | None = None
    endpoint: str | None = Field(default=None, description="Custom base URL, e.g. a remote Ollama")
    max_tokens: int | None = Field(default=None, gt=0)
    max_retries: int | None = Field(default=None, ge=0)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)

    def with_defaults(self) -> "LLMConfig":
        """Return a copy with unset fields filled in."""
        updates = {}
        if self.max_tokens is None:
            updates["max_tokens"] = DEFAULT_MAX_TOKENS
        if self.max_retries is None:
            updates["max_retries"] = DEFAULT_MAX_RETRIES
        return self.model_copy(update=updates)

    def validate_required(self) -> None:
        """Check that all required fields are present for the provider."""
        if not self.provider:
            raise ConfigError("provider is required")

        if self.provider in PROVIDERS_REQUIRING_API_KEY and not self.api_key:
            raise ConfigError(
                f"provider {self.provider!r} requires an API token, but none was provided"
            )

        if not self.model:
            raise ConfigError("model is required")

    @property
    def litellm_model(self) -> str:
        """Model identifier in litellm's ``<provider>/<model>`` form."""
        provider = LITELLM_PROVIDER_NAMES.get(self.provider, self.provider)
        return f"{provider}/{self.model}"
