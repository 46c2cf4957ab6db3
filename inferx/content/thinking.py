"""Splitting a reasoning trace from the final answer.

Reasoning models wrap their chain of thought in a tag pair such as
``<think>...</think>``. Some templates put the start tag in the prompt,
so only the end tag reaches the stream; the extractor then behaves as
if the start tag had been sent at position 0.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from enum import StrEnum

from inferx.schemas.config import DEFAULT_THINKING_TAGS, ThinkingTagPair
from inferx.schemas.content import ThinkingSegment

logger = logging.getLogger(__name__)


class ThinkingState(StrEnum):
    AWAITING_START = "awaiting_start"
    IN_THINKING = "in_thinking"
    COMPLETE = "complete"


class ThinkingSegmentExtractor:
    """Recomputes the thought/answer split from the full message buffer.

    One extractor belongs to one message. extract() is called with the
    cumulative text after every flush; nothing is carried between calls
    except the resulting state, so a late-arriving tag is always honored.
    """

    def __init__(self, tag_pairs: Sequence[ThinkingTagPair] | None = None) -> None:
        self._tag_pairs = list(tag_pairs) if tag_pairs else list(DEFAULT_THINKING_TAGS)
        self._state = ThinkingState.AWAITING_START
        self._active: ThinkingTagPair | None = None

    @property
    def state(self) -> ThinkingState:
        return self._state

    @property
    def active_pair(self) -> ThinkingTagPair | None:
        """Tag pair matched by the last extract() call."""
        return self._active

    def reset(self) -> None:
        self._state = ThinkingState.AWAITING_START
        self._active = None

    def detect(self, content: str) -> ThinkingTagPair | None:
        """First configured pair whose start or end tag occurs in ``content``."""
        for pair in self._tag_pairs:
            if pair.start in content or pair.end in content:
                return pair
        return None

    def normalize(self, content: str) -> str:
        """Prefix the start tag when only the end tag is present."""
        pair = self.detect(content)
        if pair is None:
            return content
        if pair.end in content and pair.start not in content:
            return pair.start + content
        return content

    def extract(self, content: str, stream_finished: bool = False) -> ThinkingSegment:
        """Split ``content`` into thinking and answer text.

        Args:
            content: Full message text received so far.
            stream_finished: True once the stream has terminated; an open
                             thinking block is then treated as complete.
        """
        pair = self.detect(content)
        self._active = pair
        if pair is None:
            self._state = ThinkingState.COMPLETE if stream_finished else ThinkingState.AWAITING_START
            return ThinkingSegment(
                think_text="",
                real_text=content.strip(),
                is_complete=stream_finished,
                has_thinking=False,
            )

        text = self.normalize(content)
        end_index = text.rfind(pair.end)

        if end_index == -1:
            self._state = ThinkingState.COMPLETE if stream_finished else ThinkingState.IN_THINKING
            return ThinkingSegment(
                think_text=_remove_tags(text, pair).strip(),
                real_text="",
                is_complete=stream_finished,
                has_thinking=True,
            )

        self._state = ThinkingState.COMPLETE
        tail = text[end_index + len(pair.end):]
        block_re = re.compile(re.escape(pair.start) + r".*?" + re.escape(pair.end), re.DOTALL)
        return ThinkingSegment(
            think_text=_remove_tags(text[:end_index], pair).strip(),
            real_text=block_re.sub("", tail).strip(),
            is_complete=True,
            has_thinking=True,
        )


def _remove_tags(text: str, pair: ThinkingTagPair) -> str:
    return text.replace(pair.start, "").replace(pair.end, "")


def extract_tagged(text: str, start_tag: str = "<title>", end_tag: str = "</title>") -> str | None:
    """Trimmed contents of the first ``start_tag ... end_tag`` span, or None."""
    start = text.find(start_tag)
    if start == -1:
        return None
    start += len(start_tag)
    end = text.find(end_tag, start)
    if end == -1:
        return None
    value = text[start:end].strip()
    return value or None


def strip_thinking(
    text: str, tag_pairs: Sequence[ThinkingTagPair] | None = None
) -> str:
    """Text after the last thinking end tag (the whole text when none)."""
    for pair in tag_pairs or DEFAULT_THINKING_TAGS:
        index = text.rfind(pair.end)
        if index != -1:
            return text[index + len(pair.end):].strip()
    return text.strip()
