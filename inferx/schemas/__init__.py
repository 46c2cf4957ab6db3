"""InferX schema definitions.

All Pydantic v2 models shared by the normalizers, aggregator, segmenter,
and thinking extractor.
"""

from inferx.schemas.config import (
    DEFAULT_THINKING_TAGS,
    EndpointConfig,
    ModelProvider,
    StreamConfig,
    ThinkingTagPair,
    parse_thinking_tags,
)
from inferx.schemas.content import (
    ChartDataPoint,
    ChartType,
    EntryKind,
    HtmlBlock,
    HtmlInline,
    LatexBlock,
    LatexInline,
    NativeChart,
    ParsedChart,
    PlaceholderEntry,
    ProcessedContent,
    ThinkingSegment,
)
from inferx.schemas.events import (
    ChatCompletionEvent,
    ChatStatics,
    EventKind,
    Failure,
    FileMedia,
    Finished,
    InlineMedia,
    StatsUpdate,
    TextDelta,
)
from inferx.schemas.streaming import MessageRole, RenderSnapshot, TranscriptMessage

__all__ = [
    "ChartDataPoint",
    "ChartType",
    "ChatCompletionEvent",
    "ChatStatics",
    "DEFAULT_THINKING_TAGS",
    "EndpointConfig",
    "EntryKind",
    "EventKind",
    "Failure",
    "FileMedia",
    "Finished",
    "HtmlBlock",
    "HtmlInline",
    "InlineMedia",
    "LatexBlock",
    "LatexInline",
    "MessageRole",
    "ModelProvider",
    "NativeChart",
    "ParsedChart",
    "PlaceholderEntry",
    "ProcessedContent",
    "RenderSnapshot",
    "StatsUpdate",
    "StreamConfig",
    "TextDelta",
    "ThinkingSegment",
    "ThinkingTagPair",
    "TranscriptMessage",
    "parse_thinking_tags",
]
