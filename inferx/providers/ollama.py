"""Ollama /api/chat stream adapter.

Each NDJSON line looks like::

    {"model": "...", "message": {"role": "assistant", "content": "..."},
     "done": false}

and the final line carries ``done: true`` plus nanosecond timing counters.
"""

from __future__ import annotations

from typing import Any

from inferx.providers.base import (
    ResponseNormalizer,
    nanos_to_seconds,
    optional_int,
    text_and_stats,
)
from inferx.schemas.config import ModelProvider
from inferx.schemas.events import ChatCompletionEvent, ChatStatics, Finished

_STAT_KEYS = (
    "total_duration",
    "load_duration",
    "prompt_eval_count",
    "prompt_eval_duration",
    "eval_count",
    "eval_duration",
)


class OllamaNormalizer(ResponseNormalizer):
    """Normalizer for Ollama-style chat chunks."""

    provider = ModelProvider.OLLAMA

    def _normalize(self, chunk: dict[str, Any]) -> list[ChatCompletionEvent]:
        message = chunk.get("message") or {}
        text = (message.get("content") or "") if isinstance(message, dict) else ""

        events = text_and_stats(text, _parse_stats(chunk))
        if chunk.get("done") is True:
            events.append(Finished(reason=chunk.get("done_reason")))
        return events


def _parse_stats(chunk: dict[str, Any]) -> ChatStatics | None:
    if not any(chunk.get(key) is not None for key in _STAT_KEYS):
        return None
    return ChatStatics(
        total_duration=nanos_to_seconds(chunk.get("total_duration")),
        load_duration=nanos_to_seconds(chunk.get("load_duration")),
        prompt_eval_count=optional_int(chunk.get("prompt_eval_count")),
        prompt_eval_duration=nanos_to_seconds(chunk.get("prompt_eval_duration")),
        eval_count=optional_int(chunk.get("eval_count")),
        eval_duration=nanos_to_seconds(chunk.get("eval_duration")),
    )
