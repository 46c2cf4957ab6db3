"""Tests for the provider response normalizers."""

from __future__ import annotations

import base64

import pytest

from inferx.providers import (
    GeminiNormalizer,
    MlxNormalizer,
    OllamaNormalizer,
    OpenAICompatNormalizer,
)
from inferx.schemas.events import (
    FileMedia,
    Finished,
    InlineMedia,
    StatsUpdate,
    TextDelta,
)

ALL_NORMALIZERS = [OllamaNormalizer, OpenAICompatNormalizer, GeminiNormalizer, MlxNormalizer]


def _gemini_chunk(*parts, finish_reason=None, usage=None):
    candidate = {"content": {"role": "model", "parts": list(parts)}}
    if finish_reason is not None:
        candidate["finishReason"] = finish_reason
    chunk = {"candidates": [candidate]}
    if usage is not None:
        chunk["usageMetadata"] = usage
    return chunk


class TestDegenerateChunks:
    @pytest.mark.parametrize("normalizer_cls", ALL_NORMALIZERS)
    @pytest.mark.parametrize("chunk", [None, {}, [], "text", 42, {"unrelated": True}])
    def test_yields_nothing(self, normalizer_cls, chunk):
        assert normalizer_cls().normalize(chunk) == []

    @pytest.mark.parametrize("normalizer_cls", ALL_NORMALIZERS)
    def test_structurally_broken_chunk_does_not_raise(self, normalizer_cls):
        chunk = {
            "message": "not-a-dict",
            "choices": "nope",
            "candidates": [{"content": {"parts": 7}}],
            "info": {"prompt_token_count": "many"},
        }
        assert isinstance(normalizer_cls().normalize(chunk), list)


class TestOllamaNormalizer:
    def test_text_delta(self):
        events = OllamaNormalizer().normalize(
            {"message": {"role": "assistant", "content": "Hel"}, "done": False}
        )
        assert events == [TextDelta(text="Hel")]

    def test_final_chunk_has_stats_then_finished(self):
        events = OllamaNormalizer().normalize({
            "message": {"role": "assistant", "content": ""},
            "done": True,
            "done_reason": "stop",
            "total_duration": 2_000_000_000,
            "prompt_eval_count": 12,
            "eval_count": 40,
            "eval_duration": 1_000_000_000,
        })
        assert [type(e) for e in events] == [StatsUpdate, Finished]
        stats = events[0].stats
        assert stats.total_duration == 2.0
        assert stats.eval_count == 40
        assert stats.tokens_per_second == 40.0
        assert events[1].reason == "stop"

    def test_stats_follow_text_of_same_chunk(self):
        events = OllamaNormalizer().normalize(
            {"message": {"content": "end"}, "done": True, "eval_count": 3}
        )
        assert [type(e) for e in events] == [TextDelta, StatsUpdate, Finished]

    def test_done_must_be_true(self):
        events = OllamaNormalizer().normalize({"message": {"content": "x"}, "done": "yes"})
        assert events == [TextDelta(text="x")]


class TestOpenAICompatNormalizer:
    def test_joins_choices(self):
        events = OpenAICompatNormalizer().normalize({
            "choices": [
                {"delta": {"content": "Hello"}, "finish_reason": None},
                {"delta": {"content": " world"}, "finish_reason": None},
            ],
        })
        assert events == [TextDelta(text="Hello world")]

    def test_role_only_delta_yields_nothing(self):
        events = OpenAICompatNormalizer().normalize(
            {"choices": [{"delta": {"role": "assistant"}, "finish_reason": None}]}
        )
        assert events == []

    def test_finish_reason(self):
        events = OpenAICompatNormalizer().normalize(
            {"choices": [{"delta": {}, "finish_reason": "length"}]}
        )
        assert events == [Finished(reason="length")]

    def test_usage_only_chunk(self):
        events = OpenAICompatNormalizer().normalize(
            {"choices": [], "usage": {"prompt_tokens": 7, "completion_tokens": 21}}
        )
        assert len(events) == 1
        assert isinstance(events[0], StatsUpdate)
        assert events[0].stats.prompt_eval_count == 7
        assert events[0].stats.eval_count == 21


class TestGeminiNormalizer:
    def test_text_parts(self):
        events = GeminiNormalizer().normalize(_gemini_chunk({"text": "Hi"}, {"text": " there"}))
        assert events == [TextDelta(text="Hi"), TextDelta(text=" there")]

    def test_duplicate_text_dropped(self):
        normalizer = GeminiNormalizer()
        first = normalizer.normalize(_gemini_chunk({"text": "A"}))
        second = normalizer.normalize(_gemini_chunk({"text": "A"}, {"text": "B"}))
        assert first == [TextDelta(text="A")]
        assert second == [TextDelta(text="B")]

    def test_reset_clears_seen_texts(self):
        normalizer = GeminiNormalizer()
        normalizer.normalize(_gemini_chunk({"text": "A"}))
        normalizer.reset()
        assert normalizer.normalize(_gemini_chunk({"text": "A"})) == [TextDelta(text="A")]

    def test_inline_media_decoded(self):
        payload = base64.b64encode(b"\x89PNG").decode()
        events = GeminiNormalizer().normalize(
            _gemini_chunk({"inlineData": {"mimeType": "image/png", "data": payload}})
        )
        assert events == [InlineMedia(mime_type="image/png", data=b"\x89PNG")]

    def test_undecodable_inline_media_dropped(self):
        events = GeminiNormalizer().normalize(
            _gemini_chunk(
                {"inlineData": {"mimeType": "image/png", "data": "!!not base64!!"}},
                {"text": "caption"},
            )
        )
        assert events == [TextDelta(text="caption")]

    def test_file_media(self):
        events = GeminiNormalizer().normalize(
            _gemini_chunk({"fileData": {"mimeType": "video/mp4", "fileUri": "https://f/1"}})
        )
        assert events == [FileMedia(mime_type="video/mp4", uri="https://f/1")]

    def test_usage_and_finish(self):
        events = GeminiNormalizer().normalize(
            _gemini_chunk(
                {"text": "done"},
                finish_reason="STOP",
                usage={"promptTokenCount": 5, "candidatesTokenCount": 9},
            )
        )
        assert [type(e) for e in events] == [TextDelta, StatsUpdate, Finished]
        assert events[1].stats.eval_count == 9
        assert events[2].reason == "STOP"


class TestMlxNormalizer:
    def test_batch_text(self):
        assert MlxNormalizer().normalize({"text": "tok"}) == [TextDelta(text="tok")]

    def test_info_means_finished(self):
        events = MlxNormalizer().normalize({
            "text": "",
            "info": {
                "prompt_token_count": 12,
                "prompt_time": 0.2,
                "generation_token_count": 50,
                "generate_time": 2.5,
            },
        })
        assert [type(e) for e in events] == [StatsUpdate, Finished]
        stats = events[0].stats
        assert stats.prompt_eval_count == 12
        assert stats.tokens_per_second == 20.0
