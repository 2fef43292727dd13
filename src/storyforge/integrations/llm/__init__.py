"""
storyforge.integrations.llm - Completion Engines
==================================================

Components:
    - BaseLLMProvider (ABC): the interface the proposal pipeline calls
    - LLMResponse / LLMUsage: standardized provider output
    - MockLLMProvider: queued responses, for tests and local use
    - OpenAIProvider: OpenAI-compatible chat completions over httpx
    - create_llm_provider: factory keyed by config.llm.provider

Usage:
    from storyforge.integrations.llm import create_llm_provider, MockLLMProvider
"""

from storyforge.integrations.llm.base import BaseLLMProvider, LLMResponse, LLMUsage
from storyforge.integrations.llm.factory import create_llm_provider
from storyforge.integrations.llm.mock import MockLLMProvider
from storyforge.integrations.llm.openai import OpenAIProvider

__all__ = [
    "BaseLLMProvider",
    "LLMResponse",
    "LLMUsage",
    "MockLLMProvider",
    "OpenAIProvider",
    "create_llm_provider",
]
