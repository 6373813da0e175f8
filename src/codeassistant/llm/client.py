"""Synchronous text generation through litellm."""

from typing import Any

import litellm

from codeassistant.errors import LLMError, LLMResponseError
from codeassistant.llm.config import LLMConfig
from codeassistant.logging import get_logger

_logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a careful senior software engineer. You edit source files exactly "
    "as instructed and reply with file contents only, never with commentary."
)


def generate(config: LLMConfig, prompt: str) -> str:
    """Send a fully composed prompt to the configured provider and return the text.

    Retries are left to litellm (``num_retries``).

    Raises:
        ConfigError: If a required config field is missing
        LLMError: If the provider call fails or returns no text
    """
    config.validate_required()

    request: dict[str, Any] = {
        "model": config.litellm_model,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
    }
    optional = {
        "max_tokens": config.max_tokens,
        "num_retries": config.max_retries,
        "temperature": config.temperature,
        "api_key": config.api_key,
        "api_base": config.endpoint,
    }
    request.update({k: v for k, v in optional.items() if v is not None})

    _logger.debug("LLM request", model=config.litellm_model, prompt_chars=len(prompt))
    try:
        response = litellm.completion(**request)
    except Exception as e:
        raise LLMError(f"{config.provider} request failed: {e}") from e

    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError) as e:
        raise LLMResponseError(f"unexpected response shape from {config.provider}") from e

    if not content:
        raise LLMResponseError(f"{config.provider} returned an empty response")

    _logger.debug("LLM response", model=config.litellm_model, response_chars=len(content))
    return content
