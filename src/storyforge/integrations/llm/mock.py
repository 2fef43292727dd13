"""
storyforge.integrations.llm.mock - Mock Completion Engine for Testing
=======================================================================

This module provides a completion engine that returns configured responses
without making any network calls. It is the default provider, so a fresh
StoryForge instance works with no API key.

How It Works:
    The mock keeps a FIFO response queue. When generate() is called:
    1. If a failure is configured, raise CompletionError with its reason.
    2. If there are queued responses, return the next one.
    3. Otherwise, return the default response.

    The default response is an empty JSON object, which the pipeline
    rejects as unparseable. Tests therefore always queue what they expect.

Usage:
    >>> provider = MockLLMProvider()
    >>> provider.queue_response('{"story_root_id": "sr-1", "genre": "Noir", ...}')
    >>> response = await provider.generate("...")
    >>> provider.call_count
    1
"""

from __future__ import annotations

import json
from collections import deque
from typing import Any, Optional

import structlog

from storyforge.core.config import LLMConfig
from storyforge.core.exceptions import CompletionError, CompletionFailureReason
from storyforge.integrations.llm.base import BaseLLMProvider, LLMResponse, LLMUsage


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


class MockLLMProvider(BaseLLMProvider):
    """Mock completion engine for testing and development.

    Features:
        - Response queue: responses are returned in FIFO order.
        - Call history: every prompt passed to generate() is recorded.
        - Failure simulation: raise CompletionError with a chosen reason.

    Example:
        >>> provider = MockLLMProvider()
        >>> provider.set_should_fail(True, reason=CompletionFailureReason.TIMEOUT)
        >>> await provider.generate("...")
        Traceback (most recent call last):
        CompletionError: Mock completion failure
    """

    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        default_response: str = "{}",
    ) -> None:
        if config is None:
            config = LLMConfig(provider="mock", model="mock-model")
        super().__init__(config)

        self._response_queue: deque[LLMResponse] = deque()
        self._call_history: list[dict[str, Any]] = []
        self._default_response = default_response

        self._should_fail: bool = False
        self._failure_message: str = "Mock completion failure"
        self._failure_reason = CompletionFailureReason.UNKNOWN

        self._logger = logger.bind(component="mock_llm_provider")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def call_history(self) -> list[dict[str, Any]]:
        """All recorded generate() calls, each a dict with a "prompt" key."""
        return self._call_history

    @property
    def call_count(self) -> int:
        return len(self._call_history)

    @property
    def last_prompt(self) -> Optional[str]:
        """The prompt of the most recent call, or None if never called."""
        if not self._call_history:
            return None
        return self._call_history[-1]["prompt"]

    @property
    def queue_size(self) -> int:
        return len(self._response_queue)

    # =========================================================================
    # Queue Management
    # =========================================================================

    def queue_response(
        self,
        content: str,
        *,
        model: Optional[str] = None,
        finish_reason: str = "stop",
    ) -> None:
        """Add a raw text response to the queue."""
        self._response_queue.append(
            LLMResponse(
                content=content,
                model=model or self.model,
                usage=self._estimate_usage(content),
                finish_reason=finish_reason,
            )
        )

    def queue_json_response(self, payload: dict[str, Any]) -> None:
        """Add a response whose content is the JSON encoding of payload."""
        self.queue_response(json.dumps(payload))

    def clear_queue(self) -> None:
        self._response_queue.clear()

    def clear_history(self) -> None:
        self._call_history.clear()

    # =========================================================================
    # Error Simulation
    # =========================================================================

    def set_should_fail(
        self,
        should_fail: bool,
        message: str = "Mock completion failure",
        reason: CompletionFailureReason = CompletionFailureReason.UNKNOWN,
    ) -> None:
        """Make generate() raise CompletionError (or stop doing so)."""
        self._should_fail = should_fail
        self._failure_message = message
        self._failure_reason = reason

    # =========================================================================
    # Completion
    # =========================================================================

    async def generate(self, prompt: str) -> LLMResponse:
        """Return the next queued response, recording the call.

        Raises:
            CompletionError: If a failure is configured.
        """
        self._call_history.append({"prompt": prompt})

        self._logger.debug(
            "mock_generate_called",
            prompt_length=len(prompt),
            queue_size=len(self._response_queue),
        )

        if self._should_fail:
            raise CompletionError(self._failure_message, reason=self._failure_reason)

        if self._response_queue:
            return self._response_queue.popleft()

        return LLMResponse(
            content=self._default_response,
            model=self.model,
            usage=self._estimate_usage(self._default_response),
            metadata={"source": "default"},
        )

    @staticmethod
    def _estimate_usage(text: str) -> LLMUsage:
        # ~4 characters per token
        estimated_tokens = max(1, len(text) // 4)
        return LLMUsage(
            prompt_tokens=estimated_tokens,
            completion_tokens=estimated_tokens,
            total_tokens=estimated_tokens * 2,
        )
