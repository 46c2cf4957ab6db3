"""InferX content layer.

Segmentation of markdown into placeholder-substituted text, the
placeholder cache, and the thinking/answer split.
"""

from inferx.content.cache import (
    PlaceholderCache,
    expand_placeholders,
    find_placeholders,
    has_placeholder,
    is_placeholder,
    match_block_placeholder,
    new_placeholder,
)
from inferx.content.charts import parse_mermaid
from inferx.content.emoji import load_emoji_table
from inferx.content.segmenter import ContentSegmenter
from inferx.content.thinking import (
    ThinkingSegmentExtractor,
    ThinkingState,
    extract_tagged,
    strip_thinking,
)

__all__ = [
    "ContentSegmenter",
    "PlaceholderCache",
    "ThinkingSegmentExtractor",
    "ThinkingState",
    "expand_placeholders",
    "extract_tagged",
    "find_placeholders",
    "has_placeholder",
    "is_placeholder",
    "load_emoji_table",
    "match_block_placeholder",
    "new_placeholder",
    "parse_mermaid",
    "strip_thinking",
]
