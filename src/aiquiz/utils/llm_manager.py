"""LLM instance creation for AI explanations."""

import logging
import os
from typing import Optional

from langchain_openai import ChatOpenAI

from aiquiz.config import (
    API_KEY_PLACEHOLDER,
    DEFAULT_LLM_PROVIDER,
    EXPLANATION_MAX_TOKENS,
    LLM_MODEL,
    LLM_PROVIDERS,
    TEMPERATURE,
)
from aiquiz.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _validate_provider(provider: str) -> None:
    if provider not in LLM_PROVIDERS:
        raise ConfigurationError(f"Unsupported provider: {provider}")


def get_api_key(provider: str = DEFAULT_LLM_PROVIDER) -> Optional[str]:
    """Return the provider's API key from the environment.

    Unset keys and the example placeholder both count as missing.
    """
    _validate_provider(provider)
    api_key = os.getenv(LLM_PROVIDERS[provider]["env_key"], "").strip()
    if not api_key or api_key == API_KEY_PLACEHOLDER:
        return None
    return api_key


def is_llm_configured(provider: str = DEFAULT_LLM_PROVIDER) -> bool:
    return get_api_key(provider) is not None


def get_llm(
    provider: str = DEFAULT_LLM_PROVIDER,
    model: Optional[str] = None,
) -> ChatOpenAI:
    """Create a chat model for the provider.

    Args:
        provider: Key of LLM_PROVIDERS.
        model: Overrides LLM_MODEL and the provider's default model.

    Returns:
        A ChatOpenAI instance pointed at the provider's endpoint.

    Raises:
        ConfigurationError: If the provider is unknown or has no API key.
    """
    api_key = get_api_key(provider)
    provider_config = LLM_PROVIDERS[provider]
    if api_key is None:
        raise ConfigurationError(
            f"{provider_config['display_name']} API key not configured. "
            f"Please add {provider_config['env_key']} to the .env file."
        )

    kwargs = {
        "model": model or LLM_MODEL or provider_config["default_model"],
        "api_key": api_key,
        "temperature": TEMPERATURE,
        "max_tokens": EXPLANATION_MAX_TOKENS,
    }
    if provider_config["base_url"]:
        kwargs["base_url"] = provider_config["base_url"]

    logger.info("Using %s model %s", provider_config["display_name"], kwargs["model"])
    return ChatOpenAI(**kwargs)
