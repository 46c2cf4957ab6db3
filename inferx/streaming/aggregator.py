"""Flush-gated accumulation of cumulative stream text.

Providers deliver the whole message so far on every update. Redrawing
(and re-segmenting) on every token is wasteful, so new text only
becomes visible once per ``flush_interval``. Visible text is further
split into a stable ``completed_content`` span, committed once per
``flush_interval_complete``, and a ``streaming_content`` tail that is
still being re-rendered.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

_PARAGRAPH_BREAK = "\n\n"


class StreamAggregator:
    """Turns cumulative text into completed and streaming spans.

    After every call, ``completed_content + streaming_content`` is a
    prefix of the latest cumulative text: nothing is dropped and nothing
    is appended twice. finalize() is the only step that adds text of its
    own (a paragraph break before the tail).

    Args:
        flush_interval: Minimum seconds between visible updates.
        flush_interval_complete: Minimum seconds between commits of the
                                 streaming tail into completed content.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        flush_interval: float = 0.5,
        flush_interval_complete: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if flush_interval <= 0:
            raise ValueError(f"flush_interval must be positive, got {flush_interval}")
        if flush_interval_complete < flush_interval:
            raise ValueError(
                "flush_interval_complete must be >= flush_interval "
                f"({flush_interval_complete} < {flush_interval})"
            )
        self.flush_interval = flush_interval
        self.flush_interval_complete = flush_interval_complete
        self._clock = clock

        self.completed_content: str = ""
        self.streaming_content: str = ""
        self.last_processed_length: int = 0
        self._last_flush: float | None = None
        self._last_commit: float | None = None
        self._finalized = False

    @property
    def visible_content(self) -> str:
        return self.completed_content + self.streaming_content

    def _elapsed(self, since: float | None, now: float) -> float:
        return float("inf") if since is None else now - since

    def process(self, new_full_text: str) -> bool:
        """Feed the cumulative text received so far.

        Returns:
            True when the visible content changed.
        """
        if len(new_full_text) <= self.last_processed_length:
            if not new_full_text and self.visible_content:
                logger.debug("Empty cumulative text, resetting aggregator")
                self.reset()
                return True
            return False

        now = self._clock()
        changed = False

        if self._elapsed(self._last_flush, now) >= self.flush_interval:
            self.streaming_content += new_full_text[self.last_processed_length:]
            self.last_processed_length = len(new_full_text)
            self._last_flush = now
            changed = True

        if self._last_commit is None:
            # The commit timer starts with the first visible text.
            self._last_commit = now
        elif now - self._last_commit >= self.flush_interval_complete:
            if self.streaming_content:
                self.completed_content += self.streaming_content
                self.streaming_content = ""
            self._last_commit = now

        return changed

    def finalize(self, final_text: str | None = None) -> str:
        """Commit everything at end of stream.

        Args:
            final_text: The final cumulative text. Any part of it that
                        was held back by flush gating is appended first.

        Returns:
            The final completed content.
        """
        if self._finalized:
            return self.completed_content

        if final_text is not None and len(final_text) > self.last_processed_length:
            self.streaming_content += final_text[self.last_processed_length:]
            self.last_processed_length = len(final_text)

        if self.streaming_content:
            if (
                self.completed_content
                and not self.completed_content.endswith(_PARAGRAPH_BREAK)
                and not self.streaming_content.startswith(_PARAGRAPH_BREAK)
            ):
                self.completed_content += _PARAGRAPH_BREAK
            self.completed_content += self.streaming_content
            self.streaming_content = ""

        self.last_processed_length = 0
        self._last_flush = None
        self._last_commit = None
        self._finalized = True
        return self.completed_content

    def reset(self) -> None:
        """Forget all content and timers."""
        self._finalized = False
        self.completed_content = ""
        self.streaming_content = ""
        self.last_processed_length = 0
        self._last_flush = None
        self._last_commit = None
