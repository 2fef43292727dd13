"""
storyforge.integrations - External Service Integrations
=========================================================

Adapters for services StoryForge consumes but does not own. Today that is
the completion engine (storyforge.integrations.llm).
"""

from storyforge.integrations.llm import (
    BaseLLMProvider,
    LLMResponse,
    MockLLMProvider,
    OpenAIProvider,
    create_llm_provider,
)

__all__ = [
    "BaseLLMProvider",
    "LLMResponse",
    "MockLLMProvider",
    "OpenAIProvider",
    "create_llm_provider",
]
