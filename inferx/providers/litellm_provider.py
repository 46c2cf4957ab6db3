"""LiteLLM streaming transport.

Opens a streaming chat completion through LiteLLM's unified API and
yields each chunk as an OpenAI-compatible dict, ready for
OpenAICompatNormalizer. Handles API keys, custom API bases, and retry
with exponential backoff when opening the stream.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator
from typing import Any

import litellm

# Suppress LiteLLM's "Give Feedback / Get Help" and "Provider List" banners
litellm.suppress_debug_info = True

from inferx.schemas.config import EndpointConfig, ModelProvider

logger = logging.getLogger(__name__)

# Max retries for transient failures
_MAX_RETRIES = 3
_BASE_BACKOFF = 1.0  # seconds


def _short_error_reason(error: Exception) -> str:
    """Extract a short, user-friendly reason from a LiteLLM error.

    Maps error types and status codes to concise descriptions instead
    of dumping full JSON error payloads.
    """
    error_str = str(error).lower()
    if "rate" in error_str or "429" in error_str:
        return "rate limit"
    if "overloaded" in error_str or "529" in error_str:
        return "overloaded"
    if "timeout" in error_str or isinstance(error, TimeoutError):
        return "timeout"
    if "503" in error_str or "unavailable" in error_str:
        return "service unavailable"
    if "500" in error_str or "internal" in error_str:
        return "server error"
    if "connection" in error_str:
        return "connection error"
    # Fallback: first 80 chars of the error
    return str(error)[:80]


class LiteLLMStreamSource:
    """Streams raw chat-completion chunks from any LiteLLM-routable model."""

    def __init__(
        self,
        model: str,
        *,
        api_key_env: str = "",
        api_base: str = "",
        timeout: int = 120,
    ) -> None:
        self._model = model
        self._api_key_env = api_key_env
        self._api_base = api_base
        self._timeout = timeout
        # Resolve API key from environment
        self._api_key = os.environ.get(api_key_env, "") if api_key_env else ""

    @classmethod
    def from_endpoint(
        cls, endpoint: EndpointConfig, model: str = "", timeout: int = 120
    ) -> LiteLLMStreamSource:
        """Build a source for a configured endpoint.

        Ollama endpoints are passed to LiteLLM as the API base; hosted
        providers use LiteLLM's own routing.
        """
        api_base = endpoint.endpoint if endpoint.provider == ModelProvider.OLLAMA else ""
        return cls(
            model or endpoint.model,
            api_key_env=endpoint.api_key_env,
            api_base=api_base,
            timeout=timeout,
        )

    @property
    def model(self) -> str:
        return self._model

    async def stream(
        self, messages: list[dict[str, str]], system: str = ""
    ) -> AsyncIterator[dict[str, Any]]:
        """Yield OpenAI-compatible chunk dicts for one completion.

        Args:
            messages: Conversation messages in OpenAI format.
            system: Optional system prompt prepended to the messages.

        Raises:
            TimeoutError: If opening the stream times out after all retries.
            RuntimeError: If opening the stream fails after all retries.
        """
        full_messages = list(messages)
        if system:
            full_messages.insert(0, {"role": "system", "content": system})

        response = await self._call_streaming_with_retry(self._build_kwargs(full_messages))
        async for chunk in response:
            yield chunk_to_dict(chunk)

    def _build_kwargs(self, messages: list[dict[str, str]]) -> dict:
        """Build the kwargs dict for litellm.acompletion."""
        kwargs: dict = {
            "model": self._model,
            "messages": messages,
            "timeout": float(self._timeout),
            "stream": True,
            "stream_options": {"include_usage": True},
        }
        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self._api_base:
            kwargs["api_base"] = self._api_base
        return kwargs

    async def _call_streaming_with_retry(self, kwargs: dict):
        """Call litellm.acompletion with stream=True and retry on failure.

        Retries on transient errors (rate limits, server errors, timeouts).
        Non-retryable errors (auth, invalid request) are raised immediately.
        """
        last_error: Exception | None = None

        for attempt in range(_MAX_RETRIES):
            try:
                return await litellm.acompletion(**kwargs)
            except TimeoutError:
                last_error = TimeoutError(
                    f"Streaming call timed out after {kwargs.get('timeout')}s "
                    f"(attempt {attempt + 1}/{_MAX_RETRIES})"
                )
            except litellm.AuthenticationError:
                raise RuntimeError(
                    f"Authentication failed for {self._model}. "
                    f"Check that {self._api_key_env or 'the API key'} is set correctly."
                ) from None
            except litellm.BadRequestError as e:
                raise RuntimeError(f"Bad request to {self._model}: {e}") from e
            except (
                litellm.RateLimitError,
                litellm.ServiceUnavailableError,
                litellm.InternalServerError,
                litellm.APIConnectionError,
            ) as e:
                last_error = e

            if attempt < _MAX_RETRIES - 1:
                backoff = _BASE_BACKOFF * (2**attempt)
                logger.warning(
                    "Streaming retry %d/%d for %s (%s, backoff: %.1fs)",
                    attempt + 1, _MAX_RETRIES, self._model,
                    _short_error_reason(last_error), backoff,
                )
                await asyncio.sleep(backoff)

        if isinstance(last_error, TimeoutError):
            raise last_error
        raise RuntimeError(
            f"Streaming call to {self._model} failed after "
            f"{_MAX_RETRIES} retries: {last_error}"
        ) from last_error


def chunk_to_dict(chunk: Any) -> dict[str, Any]:
    """Flatten a LiteLLM stream chunk into the OpenAI chunk dict shape."""
    if isinstance(chunk, dict):
        return chunk

    choices = []
    for choice in getattr(chunk, "choices", None) or []:
        delta = getattr(choice, "delta", None)
        choices.append({
            "delta": {
                "content": getattr(delta, "content", None) if delta else None,
                "role": getattr(delta, "role", None) if delta else None,
            },
            "finish_reason": getattr(choice, "finish_reason", None),
        })

    result: dict[str, Any] = {
        "choices": choices,
        "model": getattr(chunk, "model", "") or "",
    }
    usage = getattr(chunk, "usage", None)
    if usage:
        result["usage"] = {
            "prompt_tokens": getattr(usage, "prompt_tokens", None),
            "completion_tokens": getattr(usage, "completion_tokens", None),
        }
    return result
