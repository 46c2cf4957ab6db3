"""Tests for inferx.schemas — events, content entries and config models."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

from inferx.schemas import (
    DEFAULT_THINKING_TAGS,
    ChartDataPoint,
    ChartType,
    ChatCompletionEvent,
    ChatStatics,
    EndpointConfig,
    EntryKind,
    Finished,
    HtmlInline,
    LatexBlock,
    LatexInline,
    ModelProvider,
    NativeChart,
    ParsedChart,
    PlaceholderEntry,
    ProcessedContent,
    RenderSnapshot,
    StreamConfig,
    TextDelta,
    ThinkingTagPair,
    parse_thinking_tags,
)


class TestChatStatics:
    def test_tokens_per_second(self):
        stats = ChatStatics(eval_count=100, eval_duration=4.0)
        assert stats.tokens_per_second == 25.0

    def test_prompt_tokens_per_second(self):
        stats = ChatStatics(prompt_eval_count=30, prompt_eval_duration=0.5)
        assert stats.prompt_tokens_per_second == 60.0

    def test_rate_none_when_duration_missing(self):
        assert ChatStatics(eval_count=10).tokens_per_second is None

    def test_rate_none_when_duration_zero(self):
        assert ChatStatics(eval_count=10, eval_duration=0.0).tokens_per_second is None

    def test_is_empty(self):
        assert ChatStatics().is_empty
        assert not ChatStatics(eval_count=1).is_empty

    def test_negative_count_rejected(self):
        with pytest.raises(ValidationError):
            ChatStatics(eval_count=-1)


class TestChatCompletionEvent:
    def test_discriminated_by_kind(self):
        adapter = TypeAdapter(ChatCompletionEvent)
        event = adapter.validate_python({"kind": "text_delta", "text": "hi"})
        assert isinstance(event, TextDelta)
        assert event.text == "hi"

    def test_finished_reason_optional(self):
        adapter = TypeAdapter(ChatCompletionEvent)
        event = adapter.validate_python({"kind": "finished"})
        assert isinstance(event, Finished)
        assert event.reason is None

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            TypeAdapter(ChatCompletionEvent).validate_python({"kind": "bogus"})

    def test_events_are_frozen(self):
        event = TextDelta(text="a")
        with pytest.raises(ValidationError):
            event.text = "b"


class TestPlaceholderEntry:
    def test_block_flags(self):
        chart = ParsedChart(type=ChartType.BAR, data=[ChartDataPoint(label="a", value=1)])
        assert LatexBlock(text="x").is_block
        assert not LatexInline(text="x").is_block
        assert not HtmlInline(text="<b>x</b>").is_block
        assert NativeChart(chart=chart).is_block

    def test_round_trip_through_union(self):
        adapter = TypeAdapter(PlaceholderEntry)
        entry = adapter.validate_python({"kind": "latex_inline", "text": "x^2"})
        assert entry == LatexInline(text="x^2")

    def test_chart_requires_data(self):
        with pytest.raises(ValidationError):
            ParsedChart(type=ChartType.PIE, data=[])

    def test_count_by_kind(self):
        processed = ProcessedContent(
            content="",
            content_cache={"a": LatexInline(text="x"), "b": LatexInline(text="y")},
        )
        counts = processed.count_by_kind()
        assert counts[EntryKind.LATEX_INLINE] == 2
        assert counts[EntryKind.HTML_BLOCK] == 0


class TestThinkingTags:
    def test_defaults(self):
        assert DEFAULT_THINKING_TAGS[0] == ThinkingTagPair(start="<think>", end="</think>")
        assert len(DEFAULT_THINKING_TAGS) == 3

    def test_empty_tag_rejected(self):
        with pytest.raises(ValidationError):
            ThinkingTagPair(start="", end="</think>")

    def test_whitespace_rejected(self):
        with pytest.raises(ValidationError):
            ThinkingTagPair(start="<a b>", end="</a>")

    def test_identical_tags_rejected(self):
        with pytest.raises(ValidationError):
            ThinkingTagPair(start="|", end="|")

    def test_parse_legacy_string(self):
        pairs = parse_thinking_tags("<|thinking|> <|end_thinking|>, <thinking> </thinking>")
        assert pairs == [
            ThinkingTagPair(start="<|thinking|>", end="<|end_thinking|>"),
            ThinkingTagPair(start="<thinking>", end="</thinking>"),
        ]

    def test_parse_skips_empty_entries(self):
        assert parse_thinking_tags("<a> </a>, ,") == [ThinkingTagPair(start="<a>", end="</a>")]

    def test_parse_malformed_entry(self):
        with pytest.raises(ValueError, match="tag pair"):
            parse_thinking_tags("<think>")


class TestStreamConfig:
    def test_defaults(self):
        config = StreamConfig()
        assert config.flush_interval == 0.5
        assert config.flush_interval_complete == 10.0
        assert config.thinking_tags == DEFAULT_THINKING_TAGS

    def test_commit_faster_than_flush_rejected(self):
        with pytest.raises(ValidationError):
            StreamConfig(flush_interval=2.0, flush_interval_complete=1.0)

    def test_zero_flush_rejected(self):
        with pytest.raises(ValidationError):
            StreamConfig(flush_interval=0)

    def test_empty_tags_rejected(self):
        with pytest.raises(ValidationError):
            StreamConfig(thinking_tags=[])


class TestEndpointConfig:
    def test_base_url_defaults_to_provider(self):
        ep = EndpointConfig(name="local", provider=ModelProvider.OLLAMA)
        assert ep.base_url == "http://localhost:11434"

    def test_gemini_openai_shape(self):
        ep = EndpointConfig(
            name="g",
            provider="gemini",
            endpoint="https://generativelanguage.googleapis.com/v1beta/OpenAI/",
        )
        assert ep.uses_openai_shape

    def test_plain_gemini_shape(self):
        ep = EndpointConfig(name="g", provider="gemini")
        assert not ep.uses_openai_shape


class TestRenderSnapshot:
    def test_visible_content(self):
        snapshot = RenderSnapshot(completed_content="Hello ", streaming_content="world")
        assert snapshot.visible_content == "Hello world"
        assert snapshot.finished is False
        assert snapshot.media == []
