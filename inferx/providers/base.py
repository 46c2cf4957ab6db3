"""Abstract base class for provider response normalizers.

Defines the ResponseNormalizer interface that every backend adapter must
implement. The stream consumer interacts exclusively through this
interface; it never inspects provider wire shapes directly.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from inferx.schemas.config import ModelProvider
from inferx.schemas.events import ChatCompletionEvent, ChatStatics, StatsUpdate, TextDelta

logger = logging.getLogger(__name__)


class ResponseNormalizer(ABC):
    """Converts decoded provider chunks into ChatCompletionEvents.

    One instance serves one message at a time. Adapters that keep
    per-message state (e.g. duplicate-text tracking) clear it in reset().
    """

    provider: ModelProvider

    # ── Core interface ────────────────────────────────────────

    def normalize(self, chunk: Any) -> list[ChatCompletionEvent]:
        """Convert one decoded chunk into zero or more events.

        Never raises: non-dict or structurally broken chunks yield no
        events and are logged at debug level.

        Args:
            chunk: A decoded JSON object from the provider stream.

        Returns:
            Events in emission order.
        """
        if not isinstance(chunk, dict) or not chunk:
            return []
        try:
            return self._normalize(chunk)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.debug("Dropping malformed %s chunk: %s", self.provider, e)
            return []

    @abstractmethod
    def _normalize(self, chunk: dict[str, Any]) -> list[ChatCompletionEvent]:
        """Provider-specific conversion of a non-empty dict chunk."""

    def reset(self) -> None:
        """Clear per-message state before a new message begins."""


# ── Shared helpers ────────────────────────────────────────────────


def text_and_stats(text: str, stats: ChatStatics | None) -> list[ChatCompletionEvent]:
    """Build the delta/stats event pair for a chunk.

    Stats follow the text delta of the same chunk so consumers see the
    text first; empty text and empty stats are omitted.
    """
    events: list[ChatCompletionEvent] = []
    if text:
        events.append(TextDelta(text=text))
    if stats is not None and not stats.is_empty:
        events.append(StatsUpdate(stats=stats))
    return events


def nanos_to_seconds(value: Any) -> float | None:
    """Convert an optional nanosecond counter to seconds."""
    if value is None:
        return None
    return float(value) / 1_000_000_000


def optional_int(value: Any) -> int | None:
    if value is None:
        return None
    return int(value)


def optional_float(value: Any) -> float | None:
    if value is None:
        return None
    return float(value)
