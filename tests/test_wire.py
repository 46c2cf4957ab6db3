"""Tests for inferx.providers.wire — JSON object framing of byte streams."""

from __future__ import annotations

import logging

import pytest

from inferx.providers.wire import JsonObjectSplitter, StreamDecodeError, iter_json_objects


async def _agen(items):
    for item in items:
        yield item


async def _collect(chunks):
    return [obj async for obj in iter_json_objects(_agen(chunks))]


class TestJsonObjectSplitter:
    def test_ndjson(self):
        splitter = JsonObjectSplitter()
        assert splitter.feed(b'{"a": 1}\n{"b": 2}\n') == [b'{"a": 1}', b'{"b": 2}']

    def test_object_split_across_feeds(self):
        splitter = JsonObjectSplitter()
        assert splitter.feed(b'{"text": "hel') == []
        assert splitter.pending
        assert splitter.feed(b'lo"}') == [b'{"text": "hello"}']
        assert not splitter.pending

    def test_braces_inside_strings(self):
        splitter = JsonObjectSplitter()
        data = b'{"code": "if (x) { y(); }", "q": "say \\"}\\""}'
        assert splitter.feed(data) == [data]

    def test_sse_framing_discarded(self):
        splitter = JsonObjectSplitter()
        data = b'data: {"id": 1}\n\ndata: {"id": 2}\n\ndata: [DONE]\n\n'
        assert splitter.feed(data) == [b'{"id": 1}', b'{"id": 2}']

    def test_json_array_stream(self):
        splitter = JsonObjectSplitter()
        objects = splitter.feed(b'[{"a": {"b": 1}}\n,\r\n{"c": 2}]')
        assert objects == [b'{"a": {"b": 1}}', b'{"c": 2}']

    def test_accepts_str(self):
        assert JsonObjectSplitter().feed('{"k": "v"}') == [b'{"k": "v"}']

    def test_escape_split_across_feeds(self):
        splitter = JsonObjectSplitter()
        assert splitter.feed(b'{"s": "a\\') == []
        assert splitter.feed(b'"}"}') == [b'{"s": "a\\"}"}']


class TestIterJsonObjects:
    @pytest.mark.asyncio
    async def test_decodes_objects(self):
        objects = await _collect([b'{"message": {"content": "Hi"}', b', "done": false}\n'])
        assert objects == [{"message": {"content": "Hi"}, "done": False}]

    @pytest.mark.asyncio
    async def test_multibyte_split(self):
        encoded = '{"t": "é"}'.encode()
        objects = await _collect([encoded[:8], encoded[8:]])
        assert objects == [{"t": "é"}]

    @pytest.mark.asyncio
    async def test_malformed_object(self):
        with pytest.raises(StreamDecodeError):
            await _collect([b"{not json}"])

    @pytest.mark.asyncio
    async def test_truncated_tail_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="inferx.providers.wire"):
            objects = await _collect([b'{"a": 1}{"b": '])
        assert objects == [{"a": 1}]
        assert "truncated" in caplog.text
