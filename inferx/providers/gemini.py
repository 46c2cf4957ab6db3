"""Gemini streamGenerateContent adapter.

Gemini chunks nest text and media under candidates[].content.parts[]
and may repeat text parts that were already delivered earlier in the
same message, so this adapter keeps a per-message set of seen texts.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any

from inferx.providers.base import ResponseNormalizer, optional_int
from inferx.schemas.config import ModelProvider
from inferx.schemas.events import (
    ChatCompletionEvent,
    ChatStatics,
    FileMedia,
    Finished,
    InlineMedia,
    StatsUpdate,
    TextDelta,
)

logger = logging.getLogger(__name__)


class GeminiNormalizer(ResponseNormalizer):
    """Normalizer for ``{candidates: [...], usageMetadata?}`` chunks."""

    provider = ModelProvider.GEMINI

    def __init__(self) -> None:
        self._seen_texts: set[str] = set()

    def reset(self) -> None:
        self._seen_texts.clear()

    def _normalize(self, chunk: dict[str, Any]) -> list[ChatCompletionEvent]:
        events: list[ChatCompletionEvent] = []
        finish_reason: str | None = None
        finished = False

        for candidate in chunk.get("candidates") or []:
            if not isinstance(candidate, dict):
                continue
            content = candidate.get("content") or {}
            for part in content.get("parts") or []:
                event = self._convert_part(part)
                if event is not None:
                    events.append(event)
            if candidate.get("finishReason") is not None:
                finished = True
                finish_reason = candidate["finishReason"]

        stats = _parse_usage(chunk.get("usageMetadata"))
        if stats is not None and not stats.is_empty:
            events.append(StatsUpdate(stats=stats))
        if finished:
            events.append(Finished(reason=finish_reason))
        return events

    def _convert_part(self, part: Any) -> ChatCompletionEvent | None:
        if not isinstance(part, dict):
            return None

        if "text" in part:
            text = part.get("text") or ""
            # Repeated parts across chunks: keep the first occurrence only
            if not text or text in self._seen_texts:
                return None
            self._seen_texts.add(text)
            return TextDelta(text=text)

        inline = part.get("inlineData")
        if isinstance(inline, dict):
            try:
                data = base64.b64decode(inline.get("data") or "", validate=True)
            except (binascii.Error, ValueError):
                logger.debug("Dropping inline media with undecodable payload")
                return None
            return InlineMedia(mime_type=inline.get("mimeType", ""), data=data)

        file_data = part.get("fileData")
        if isinstance(file_data, dict) and file_data.get("fileUri"):
            return FileMedia(
                mime_type=file_data.get("mimeType", ""),
                uri=file_data["fileUri"],
            )

        return None


def _parse_usage(usage: Any) -> ChatStatics | None:
    if not isinstance(usage, dict):
        return None
    return ChatStatics(
        prompt_eval_count=optional_int(usage.get("promptTokenCount")),
        eval_count=optional_int(usage.get("candidatesTokenCount")),
    )
