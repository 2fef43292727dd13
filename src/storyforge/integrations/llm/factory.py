"""
storyforge.integrations.llm.factory - Completion Engine Factory
=================================================================

Maps config.llm.provider to a concrete BaseLLMProvider.

Usage:
    >>> provider = create_llm_provider(LLMConfig(provider="mock"))
    >>> type(provider)  # MockLLMProvider
"""

from __future__ import annotations

import structlog

from storyforge.core.config import LLMConfig
from storyforge.core.exceptions import ConfigurationError
from storyforge.integrations.llm.base import BaseLLMProvider

logger = structlog.get_logger()

SUPPORTED_PROVIDERS = ("mock", "openai")


def create_llm_provider(config: LLMConfig) -> BaseLLMProvider:
    """Create a completion engine based on configuration.

        - "mock"   → MockLLMProvider (no API key needed)
        - "openai" → OpenAIProvider (api_key required)

    Raises:
        ConfigurationError: If the provider name is not recognized, or the
            OpenAI provider is selected without an API key.
    """
    provider_name = config.provider.lower()

    if provider_name == "mock":
        from storyforge.integrations.llm.mock import MockLLMProvider
        return MockLLMProvider(config)

    if provider_name == "openai":
        if not config.api_key:
            raise ConfigurationError(
                message="The openai provider requires llm.api_key",
                error_code="MISSING_API_KEY",
                details={"provider": provider_name},
            )
        from storyforge.integrations.llm.openai import OpenAIProvider
        logger.info("llm_provider_created", provider=provider_name, model=config.model)
        return OpenAIProvider(config)

    raise ConfigurationError(
        message=(
            f"Unknown LLM provider: '{provider_name}'. "
            f"Available providers: {', '.join(SUPPORTED_PROVIDERS)}."
        ),
        error_code="UNKNOWN_LLM_PROVIDER",
        details={"provider": provider_name, "supported_providers": list(SUPPORTED_PROVIDERS)},
    )
