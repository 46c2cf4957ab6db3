"""Tests for inferx.content.thinking — thought/answer split."""

from __future__ import annotations

import pytest

from inferx.content.thinking import (
    ThinkingSegmentExtractor,
    ThinkingState,
    extract_tagged,
    strip_thinking,
)
from inferx.schemas.config import DEFAULT_THINKING_TAGS, ThinkingTagPair


@pytest.fixture
def extractor() -> ThinkingSegmentExtractor:
    return ThinkingSegmentExtractor(DEFAULT_THINKING_TAGS)


class TestExtract:
    @pytest.mark.parametrize("pair", DEFAULT_THINKING_TAGS)
    def test_round_trip(self, extractor, pair):
        segment = extractor.extract(f"{pair.start}weigh the options{pair.end}The answer is 4.")
        assert segment.has_thinking
        assert segment.is_complete
        assert segment.think_text == "weigh the options"
        assert segment.real_text == "The answer is 4."
        assert extractor.state == ThinkingState.COMPLETE

    def test_no_tags(self, extractor):
        segment = extractor.extract("Just an answer.")
        assert not segment.has_thinking
        assert segment.real_text == "Just an answer."
        assert segment.think_text == ""
        assert not segment.is_complete
        assert extractor.state == ThinkingState.AWAITING_START

    def test_no_tags_finished(self, extractor):
        segment = extractor.extract("Just an answer.", stream_finished=True)
        assert segment.is_complete
        assert extractor.state == ThinkingState.COMPLETE

    def test_still_thinking(self, extractor):
        segment = extractor.extract("<think>step one, step")
        assert segment.has_thinking
        assert not segment.is_complete
        assert segment.think_text == "step one, step"
        assert segment.real_text == ""
        assert extractor.state == ThinkingState.IN_THINKING

    def test_stream_finished_while_thinking(self, extractor):
        segment = extractor.extract("<think>cut off", stream_finished=True)
        assert segment.is_complete
        assert segment.think_text == "cut off"
        assert segment.real_text == ""

    def test_end_tag_only_synthesizes_start(self, extractor):
        segment = extractor.extract("reasoning in the prompt template</think>Answer")
        assert segment.has_thinking
        assert segment.think_text == "reasoning in the prompt template"
        assert segment.real_text == "Answer"

    def test_normalize(self, extractor):
        assert extractor.normalize("x</think>y") == "<think>x</think>y"
        assert extractor.normalize("<think>x</think>y") == "<think>x</think>y"
        assert extractor.normalize("plain") == "plain"

    def test_multiple_blocks(self, extractor):
        segment = extractor.extract("<think>a</think>mid<think>b</think>final")
        assert segment.think_text == "amidb"
        assert segment.real_text == "final"

    def test_complete_blocks_removed_from_answer(self):
        extractor = ThinkingSegmentExtractor([ThinkingTagPair(start="<t>", end="</t>")])
        segment = extractor.extract("<t>a</t>answer")
        assert segment.real_text == "answer"

    def test_first_configured_pair_wins(self):
        pairs = [
            ThinkingTagPair(start="<thinking>", end="</thinking>"),
            ThinkingTagPair(start="<think>", end="</think>"),
        ]
        extractor = ThinkingSegmentExtractor(pairs)
        segment = extractor.extract("<think>x</think>y <thinking>z</thinking>w")
        assert extractor.active_pair == pairs[0]
        assert segment.real_text == "w"

    def test_recomputed_from_full_buffer(self, extractor):
        assert extractor.extract("<think>par").real_text == ""
        assert extractor.state == ThinkingState.IN_THINKING
        segment = extractor.extract("<think>partial</think> ans")
        assert segment.real_text == "ans"
        assert extractor.state == ThinkingState.COMPLETE

    def test_reset(self, extractor):
        extractor.extract("<think>x</think>y")
        extractor.reset()
        assert extractor.state == ThinkingState.AWAITING_START
        assert extractor.active_pair is None

    def test_default_pairs_when_none(self):
        assert ThinkingSegmentExtractor().extract("<think>a</think>b").real_text == "b"


class TestExtractTagged:
    def test_title(self):
        assert extract_tagged("<title> Trip plan </title>rest") == "Trip plan"

    def test_missing(self):
        assert extract_tagged("no title here") is None

    def test_unclosed(self):
        assert extract_tagged("<title>half") is None

    def test_empty(self):
        assert extract_tagged("<title>  </title>") is None

    def test_custom_tags(self):
        assert extract_tagged("[[x]]", "[[", "]]") == "x"


class TestStripThinking:
    def test_after_last_end_tag(self):
        assert strip_thinking("<think>hmm</think>\n<title>T</title>") == "<title>T</title>"

    def test_no_tags(self):
        assert strip_thinking("  plain  ") == "plain"
