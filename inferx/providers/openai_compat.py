"""OpenAI-compatible chat-completions stream adapter.

Used for OpenAI itself, for Gemini's OpenAI-compatible endpoint, and for
chunks produced by litellm (which re-shapes every backend to this form).
"""

from __future__ import annotations

from typing import Any

from inferx.providers.base import ResponseNormalizer, optional_int, text_and_stats
from inferx.schemas.config import ModelProvider
from inferx.schemas.events import ChatCompletionEvent, ChatStatics, Finished


class OpenAICompatNormalizer(ResponseNormalizer):
    """Normalizer for ``{choices: [{delta, finish_reason}], usage?}`` chunks."""

    provider = ModelProvider.OPENAI

    def _normalize(self, chunk: dict[str, Any]) -> list[ChatCompletionEvent]:
        choices = chunk.get("choices") or []

        parts: list[str] = []
        finish_reason: str | None = None
        for choice in choices:
            if not isinstance(choice, dict):
                continue
            delta = choice.get("delta") or {}
            content = delta.get("content")
            if content:
                parts.append(content)
            if choice.get("finish_reason") is not None:
                finish_reason = choice["finish_reason"]

        events = text_and_stats("".join(parts), _parse_usage(chunk.get("usage")))
        if finish_reason is not None:
            events.append(Finished(reason=finish_reason))
        return events


def _parse_usage(usage: Any) -> ChatStatics | None:
    if not isinstance(usage, dict):
        return None
    return ChatStatics(
        prompt_eval_count=optional_int(usage.get("prompt_tokens")),
        eval_count=optional_int(usage.get("completion_tokens")),
    )
