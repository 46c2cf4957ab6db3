"""Incremental JSON object splitting for raw provider byte streams.

Providers deliver NDJSON (Ollama), SSE ``data:`` lines (OpenAI) or a
streamed JSON array (Gemini). Rather than parse each framing separately,
the splitter tracks brace depth outside string literals and emits every
complete top-level object; framing bytes between objects (newlines,
``data:`` prefixes, ``[DONE]`` sentinels, array commas) are discarded.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

logger = logging.getLogger(__name__)

_OPEN_BRACE = ord("{")
_CLOSE_BRACE = ord("}")
_QUOTE = ord('"')
_BACKSLASH = ord("\\")


class StreamDecodeError(ValueError):
    """A complete object was framed but is not valid JSON."""


class JsonObjectSplitter:
    """Byte-level splitter that yields complete top-level JSON objects.

    Scan state survives between feed() calls, so each byte is examined
    once no matter how the transport fragments the stream.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._pos = 0
        self._start = 0
        self._depth = 0
        self._in_string = False
        self._escaped = False

    @property
    def pending(self) -> bool:
        """True when a partial object is buffered."""
        return self._depth > 0

    def feed(self, data: bytes | str) -> list[bytes]:
        """Append data and return every object completed by it."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        buf = self._buffer
        buf.extend(data)

        objects: list[bytes] = []
        i = self._pos
        while i < len(buf):
            byte = buf[i]
            if self._depth == 0:
                if byte == _OPEN_BRACE:
                    self._start = i
                    self._depth = 1
            elif self._escaped:
                self._escaped = False
            elif self._in_string:
                if byte == _BACKSLASH:
                    self._escaped = True
                elif byte == _QUOTE:
                    self._in_string = False
            elif byte == _QUOTE:
                self._in_string = True
            elif byte == _OPEN_BRACE:
                self._depth += 1
            elif byte == _CLOSE_BRACE:
                self._depth -= 1
                if self._depth == 0:
                    objects.append(bytes(buf[self._start:i + 1]))
            i += 1

        # Drop consumed bytes; keep only the partial object, if any
        keep_from = self._start if self._depth > 0 else i
        del buf[:keep_from]
        self._pos = i - keep_from
        self._start = 0
        return objects


async def iter_json_objects(
    byte_chunks: AsyncIterable[bytes | str],
) -> AsyncIterator[dict[str, Any]]:
    """Decode a provider byte stream into JSON objects.

    Raises:
        StreamDecodeError: If a framed object is not valid JSON.
    """
    splitter = JsonObjectSplitter()
    async for chunk in byte_chunks:
        for raw in splitter.feed(chunk):
            try:
                obj = json.loads(raw)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise StreamDecodeError(f"Malformed JSON object in stream: {e}") from e
            yield obj

    if splitter.pending:
        logger.warning("Stream closed with a truncated JSON object; discarding it")
