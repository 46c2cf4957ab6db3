"""Per-message stream consumer.

Drives one assistant message from wire chunks to render snapshots:

    chunks -> normalizer -> aggregator (flush-gated) -> thinking split
           -> segmenter -> placeholder cache -> on_update(snapshot)

The consumer is the only place a ``Finished`` event is synthesized:
when the transport closes without an explicit terminal event the
message is finished here. Cancellation stops consumption but never
discards text that already arrived.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterable, Awaitable, Callable
from typing import Any

from inferx.content.cache import PlaceholderCache
from inferx.content.segmenter import ContentSegmenter
from inferx.content.thinking import ThinkingSegmentExtractor, extract_tagged
from inferx.providers.base import ResponseNormalizer
from inferx.schemas.config import StreamConfig
from inferx.schemas.events import (
    ChatCompletionEvent,
    ChatStatics,
    Failure,
    FileMedia,
    Finished,
    InlineMedia,
    StatsUpdate,
    TextDelta,
)
from inferx.schemas.streaming import MessageRole, RenderSnapshot, TranscriptMessage
from inferx.streaming.aggregator import StreamAggregator

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[RenderSnapshot], Awaitable[None] | None]


class StreamConsumer:
    """Consumes one message's stream and publishes render snapshots.

    Args:
        normalizer: Adapter for the endpoint's wire shape.
        config: Flush intervals and thinking tags.
        segmenter: Shared, stateless content segmenter.
        on_update: Called with every new snapshot. May be sync or async;
                   exceptions are logged and do not stop the stream.
        clock: Time source passed to the aggregator.
    """

    def __init__(
        self,
        normalizer: ResponseNormalizer,
        config: StreamConfig | None = None,
        segmenter: ContentSegmenter | None = None,
        on_update: UpdateCallback | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or StreamConfig()
        self._normalizer = normalizer
        self._segmenter = segmenter or ContentSegmenter()
        self._on_update = on_update

        self.aggregator = StreamAggregator(
            flush_interval=self._config.flush_interval,
            flush_interval_complete=self._config.flush_interval_complete,
            clock=clock,
        )
        self.cache = PlaceholderCache()
        self.extractor = ThinkingSegmentExtractor(self._config.thinking_tags)

        self.raw_text: str = ""
        self.stats: ChatStatics | None = None
        self.media: list[InlineMedia | FileMedia] = []
        self.messages: list[TranscriptMessage] = []
        self.finished: bool = False
        self.finish_reason: str | None = None
        self.error: str | None = None
        self.model_available: bool = True
        self.last_snapshot: RenderSnapshot | None = None

    @property
    def is_terminal(self) -> bool:
        return self.finished or self.error is not None

    # ── Driving the stream ───────────────────────────────────────

    async def consume(self, chunks: AsyncIterable[dict[str, Any]]) -> RenderSnapshot:
        """Consume decoded chunks until a terminal event or transport close.

        Transport errors raised by ``chunks`` become a Failure. A
        CancelledError is re-raised after the partial message has been
        finalized.

        Returns:
            The final snapshot.
        """
        self._normalizer.reset()
        try:
            async for chunk in chunks:
                for event in self._normalizer.normalize(chunk):
                    await self.handle(event)
                    if self.is_terminal:
                        break
                if self.is_terminal:
                    break
            if not self.is_terminal:
                logger.debug("Transport closed without a terminal event")
                await self.handle(Finished(reason=None))
        except asyncio.CancelledError:
            logger.info("Stream cancelled after %d characters", len(self.raw_text))
            raise
        except Exception as e:
            logger.warning("Stream transport failed: %s", e)
            await self.handle(Failure(error=str(e) or type(e).__name__))
        finally:
            if not self.is_terminal:
                # Cancelled: keep what arrived, without a terminal event.
                self._finish_aggregation()
                if self.raw_text:
                    self._record_answer()
                await self._publish(final=True)
        return self.last_snapshot

    async def handle(self, event: ChatCompletionEvent) -> None:
        """Apply one normalized event."""
        if self.is_terminal:
            logger.debug("Ignoring %s after terminal event", event.kind)
            return

        if isinstance(event, TextDelta):
            self.raw_text += event.text
            if self.aggregator.process(self.raw_text):
                await self._publish()
        elif isinstance(event, (InlineMedia, FileMedia)):
            self.media.append(event)
            await self._publish()
        elif isinstance(event, StatsUpdate):
            self.stats = event.stats
        elif isinstance(event, Finished):
            self.finished = True
            self.finish_reason = event.reason
            self._finish_aggregation()
            self._record_answer()
            await self._publish(final=True)
        elif isinstance(event, Failure):
            self.error = event.error
            self.model_available = False
            self._finish_aggregation()
            if self.raw_text:
                self._record_answer()
            self.messages.append(
                TranscriptMessage(role=MessageRole.SYSTEM, content=event.error, is_error=True)
            )
            await self._publish(final=True)

    # ── Internals ────────────────────────────────────────────────

    def _finish_aggregation(self) -> None:
        self.aggregator.finalize(self.raw_text)

    def _record_answer(self) -> None:
        # The aggregator spans are display-only; the transcript keeps the raw text.
        self.messages.append(
            TranscriptMessage(
                role=MessageRole.ASSISTANT, content=self.extractor.normalize(self.raw_text)
            )
        )

    def snapshot(self, final: bool = False) -> RenderSnapshot:
        """Build a snapshot from the current visible text.

        The final snapshot is built from the raw text rather than the
        aggregator spans, whose commit points fall at arbitrary offsets.
        """
        if final:
            visible = self.raw_text
            completed, streaming = visible, ""
        else:
            visible = self.aggregator.visible_content
            completed = self.aggregator.completed_content
            streaming = self.aggregator.streaming_content
        thinking = self.extractor.extract(visible, stream_finished=final)
        answer = thinking.real_text if thinking.has_thinking else visible
        processed = self._segmenter.preprocess(answer)
        self.cache.replace(processed)
        return RenderSnapshot(
            completed_content=completed,
            streaming_content=streaming,
            processed=processed,
            thinking=thinking,
            stats=self.stats,
            media=list(self.media),
            finished=final,
            title=extract_tagged(answer) if final else None,
        )

    async def _publish(self, final: bool = False) -> None:
        snapshot = self.snapshot(final=final)
        self.last_snapshot = snapshot
        if self._on_update is None:
            return
        try:
            result = self._on_update(snapshot)
            if asyncio.iscoroutine(result):
                await result
        except Exception:
            logger.exception("Render update callback failed")
