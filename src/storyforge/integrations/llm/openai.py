"""
storyforge.integrations.llm.openai - OpenAI-Compatible Completion Engine
==========================================================================

Chat-completions over plain HTTP with httpx. Works against the OpenAI API
or any server that speaks the same protocol (set llm.api_base_url).

Failure Classification:
    HTTP 401 / 403            → CompletionFailureReason.AUTH
    HTTP 429                  → CompletionFailureReason.RATE_LIMIT
    other non-2xx             → CompletionFailureReason.NETWORK
    httpx.TimeoutException    → CompletionFailureReason.TIMEOUT
    other httpx transport err → CompletionFailureReason.NETWORK
    no choices[0].message.content in the body
                              → CompletionFailureReason.MALFORMED_RESPONSE

    There is no retry. One call, one outcome.

Usage:
    >>> provider = OpenAIProvider(LLMConfig(provider="openai", api_key="sk-..."))
    >>> response = await provider.generate(prompt)
    >>> await provider.aclose()
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
import structlog

from storyforge.core.config import LLMConfig
from storyforge.core.exceptions import CompletionError, CompletionFailureReason
from storyforge.integrations.llm.base import BaseLLMProvider, LLMResponse, LLMUsage


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()


def _classify_status(status_code: int) -> CompletionFailureReason:
    if status_code in (401, 403):
        return CompletionFailureReason.AUTH
    if status_code == 429:
        return CompletionFailureReason.RATE_LIMIT
    return CompletionFailureReason.NETWORK


class OpenAIProvider(BaseLLMProvider):
    """Completion engine backed by an OpenAI-compatible chat-completions API.

    Args:
        config: LLM configuration. api_key is sent as a bearer token.
        client: Optional pre-built httpx.AsyncClient (tests pass one wired
            to an httpx.MockTransport). When omitted, a client is created
            with llm.timeout_seconds as its timeout and owned by the
            provider.
    """

    def __init__(
        self,
        config: LLMConfig,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(config)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=config.timeout_seconds)
        self._url = config.api_base_url.rstrip("/") + "/chat/completions"
        self._logger = logger.bind(component="openai_provider", model=config.model)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._config.api_key:
            headers["Authorization"] = f"Bearer {self._config.api_key}"
        return headers

    def _payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    async def generate(self, prompt: str) -> LLMResponse:
        """Send one chat-completions request.

        Raises:
            CompletionError: Classified as described in the module docstring.
        """
        self._logger.info("completion_request", url=self._url, prompt_length=len(prompt))

        try:
            response = await self._client.post(
                self._url,
                json=self._payload(prompt),
                headers=self._headers(),
            )
        except httpx.TimeoutException as exc:
            self._logger.error("completion_timeout", error=str(exc))
            raise CompletionError(
                f"Completion request timed out: {exc}",
                reason=CompletionFailureReason.TIMEOUT,
            ) from exc
        except httpx.HTTPError as exc:
            self._logger.error("completion_transport_error", error=str(exc))
            raise CompletionError(
                f"Completion request failed: {exc}",
                reason=CompletionFailureReason.NETWORK,
            ) from exc

        if response.status_code < 200 or response.status_code >= 300:
            reason = _classify_status(response.status_code)
            self._logger.error(
                "completion_http_error",
                status_code=response.status_code,
                reason=reason.value,
            )
            raise CompletionError(
                f"Completion engine returned HTTP {response.status_code}",
                reason=reason,
                status_code=response.status_code,
            )

        return self._parse_body(response)

    def _parse_body(self, response: httpx.Response) -> LLMResponse:
        try:
            body = response.json()
            choice = body["choices"][0]
            content = choice["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            self._logger.error("completion_malformed_response", error=str(exc))
            raise CompletionError(
                "Completion engine response has no message content",
                reason=CompletionFailureReason.MALFORMED_RESPONSE,
                status_code=response.status_code,
            ) from exc

        if not isinstance(content, str):
            raise CompletionError(
                "Completion engine response has no message content",
                reason=CompletionFailureReason.MALFORMED_RESPONSE,
                status_code=response.status_code,
            )

        usage = body.get("usage") or {}
        self._logger.info("completion_received", response_length=len(content))
        return LLMResponse(
            content=content,
            model=body.get("model") or self.model,
            usage=LLMUsage(
                prompt_tokens=usage.get("prompt_tokens") or 0,
                completion_tokens=usage.get("completion_tokens") or 0,
                total_tokens=usage.get("total_tokens") or 0,
            ),
            finish_reason=choice.get("finish_reason") or "stop",
            metadata={"id": body.get("id")},
        )

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()
