"""
storyforge.integrations.llm.base - Completion Engine Interface
================================================================

This module defines the contract every completion engine (LLM provider)
implements. The proposal pipeline only ever sees this interface.

Architecture Context:

    ┌──────────────────┐    generate(prompt)    ┌──────────────────┐
    │ ProposalPipeline │ ─────────────────────→ │ BaseLLMProvider  │
    │   (invoke phase) │ ←──── LLMResponse ──── │   (abstract)     │
    └──────────────────┘                        └────────┬─────────┘
                                                         │
                                              ┌──────────┴─────────┐
                                         ┌────▼───┐          ┌─────▼────┐
                                         │  Mock  │          │  OpenAI  │
                                         └────────┘          └──────────┘

Failure Contract:
    Providers raise CompletionError with a classified reason when they can
    tell what went wrong (auth, rate limit, network, timeout, malformed
    response). The pipeline wraps anything else as reason "unknown".
    Providers never retry.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from storyforge.core.config import LLMConfig


# =============================================================================
# LLM Response Model
# =============================================================================
class LLMUsage(BaseModel):
    """Token usage reported for a single completion call."""

    prompt_tokens: int = Field(default=0, ge=0, description="Tokens in the input prompt")
    completion_tokens: int = Field(default=0, ge=0, description="Tokens in the output")
    total_tokens: int = Field(default=0, ge=0, description="Total tokens consumed")


class LLMResponse(BaseModel):
    """Standardized response from any completion engine.

    Attributes:
        content: The generated text. For StoryForge this should be a JSON
            object describing one artifact.
        model: The model identifier that produced this response.
        usage: Token counts as reported by the engine.
        finish_reason: Why generation stopped ("stop", "length", ...).
        metadata: Provider-specific extras (request id, latency, etc.)
        created_at: When this response was received (UTC).
    """

    content: str = Field(description="The generated text content")
    model: str = Field(description="Model identifier that produced this response")
    usage: LLMUsage = Field(
        default_factory=LLMUsage,
        description="Token usage reported by the engine",
    )
    finish_reason: str = Field(
        default="stop",
        description="Why generation stopped: 'stop', 'length', ...",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Provider-specific metadata",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Response creation timestamp (UTC)",
    )


# =============================================================================
# Abstract Base LLM Provider
# =============================================================================
class BaseLLMProvider(ABC):
    """Abstract base class for all completion engines.

    Subclasses implement generate(). Configuration (model, temperature,
    max_tokens, timeout) is held here and read through properties.

    Attributes:
        _config: The LLM configuration section.
    """

    def __init__(self, config: LLMConfig) -> None:
        self._config = config

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def provider_name(self) -> str:
        """Provider identifier ("openai", "mock")."""
        return self._config.provider

    @property
    def model(self) -> str:
        return self._config.model

    @property
    def temperature(self) -> float:
        return self._config.temperature

    @property
    def max_tokens(self) -> int:
        return self._config.max_tokens

    @property
    def config(self) -> LLMConfig:
        return self._config

    # =========================================================================
    # Abstract Methods
    # =========================================================================

    @abstractmethod
    async def generate(self, prompt: str) -> LLMResponse:
        """Complete a fully assembled prompt.

        Called exactly once per proposal. The call may take long; its only
        timeout is the one the provider enforces.

        Args:
            prompt: The assembled prompt text.

        Returns:
            LLMResponse whose content is the engine's raw output.

        Raises:
            CompletionError: If the engine call fails.
        """
        ...

    async def aclose(self) -> None:
        """Release any held connections. No-op by default."""
        return None

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"provider={self.provider_name!r}, "
            f"model={self.model!r})"
        )
