"""Local HuggingFace/MLX generation adapter.

Local inference yields throttled batches of generated text. The batch
that carries completion info is the last one of the message::

    {"text": "...", "info": {"prompt_token_count": 12, "prompt_time": 0.1,
                              "generation_token_count": 80, "generate_time": 2.3}}
"""

from __future__ import annotations

from typing import Any

from inferx.providers.base import (
    ResponseNormalizer,
    optional_float,
    optional_int,
    text_and_stats,
)
from inferx.schemas.config import ModelProvider
from inferx.schemas.events import ChatCompletionEvent, ChatStatics, Finished


class MlxNormalizer(ResponseNormalizer):
    """Normalizer for local MLX generation batches."""

    provider = ModelProvider.HUGGINGFACE

    def _normalize(self, chunk: dict[str, Any]) -> list[ChatCompletionEvent]:
        info = chunk.get("info")
        stats = None
        if isinstance(info, dict):
            stats = ChatStatics(
                prompt_eval_count=optional_int(info.get("prompt_token_count")),
                prompt_eval_duration=optional_float(info.get("prompt_time")),
                eval_count=optional_int(info.get("generation_token_count")),
                eval_duration=optional_float(info.get("generate_time")),
            )

        events = text_and_stats(chunk.get("text") or "", stats)
        if isinstance(info, dict):
            events.append(Finished(reason=info.get("stop_reason")))
        return events
