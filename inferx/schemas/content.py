"""Schemas for segmented message content.

PlaceholderEntry variants are what the segmenter stores behind each
placeholder token; ParsedChart is the structured form of a diagram
block; ThinkingSegment is the thought/answer split of a message.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class EntryKind(StrEnum):
    """Discriminator for PlaceholderEntry variants."""

    LATEX_BLOCK = "latex_block"
    LATEX_INLINE = "latex_inline"
    HTML_BLOCK = "html_block"
    HTML_INLINE = "html_inline"
    NATIVE_CHART = "native_chart"


class ChartType(StrEnum):
    BAR = "bar"
    LINE = "line"
    PIE = "pie"


class ChartDataPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    value: float
    group: str | None = None


class ParsedChart(BaseModel):
    """A diagram block reduced to chartable data.

    Construction fails when ``data`` is empty; parsers return None
    instead of building an empty chart.
    """

    model_config = ConfigDict(frozen=True)

    type: ChartType
    title: str | None = None
    data: list[ChartDataPoint] = Field(min_length=1)


class LatexBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[EntryKind.LATEX_BLOCK] = EntryKind.LATEX_BLOCK
    text: str

    @property
    def is_block(self) -> bool:
        return True


class LatexInline(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[EntryKind.LATEX_INLINE] = EntryKind.LATEX_INLINE
    text: str

    @property
    def is_block(self) -> bool:
        return False


class HtmlBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[EntryKind.HTML_BLOCK] = EntryKind.HTML_BLOCK
    text: str

    @property
    def is_block(self) -> bool:
        return True


class HtmlInline(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[EntryKind.HTML_INLINE] = EntryKind.HTML_INLINE
    text: str

    @property
    def is_block(self) -> bool:
        return False


class NativeChart(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[EntryKind.NATIVE_CHART] = EntryKind.NATIVE_CHART
    chart: ParsedChart

    @property
    def is_block(self) -> bool:
        return True


PlaceholderEntry = Annotated[
    LatexBlock | LatexInline | HtmlBlock | HtmlInline | NativeChart,
    Field(discriminator="kind"),
]


class ProcessedContent(BaseModel):
    """Placeholder-substituted text plus the cache that resolves it."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(default="", description="Text with structured regions replaced by tokens")
    content_cache: dict[str, PlaceholderEntry] = Field(
        default_factory=dict, description="Placeholder token to cached content"
    )

    def count_by_kind(self) -> dict[EntryKind, int]:
        """Number of cache entries per entry kind (every kind present)."""
        counts = {kind: 0 for kind in EntryKind}
        for entry in self.content_cache.values():
            counts[entry.kind] += 1
        return counts


class ThinkingSegment(BaseModel):
    """Thought/answer split of a message."""

    model_config = ConfigDict(frozen=True)

    think_text: str = Field(default="", description="Reasoning trace with tags removed")
    real_text: str = Field(default="", description="Answer text outside the thinking block")
    is_complete: bool = Field(
        default=False,
        description="True once the end tag was seen or the stream terminated",
    )
    has_thinking: bool = Field(default=False, description="True when a tag pair was found")
