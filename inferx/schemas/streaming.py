"""Streaming schemas for real-time render delivery.

Defines the RenderSnapshot handed to the display layer each time the
aggregator flushes new visible content.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from inferx.schemas.content import ProcessedContent, ThinkingSegment
from inferx.schemas.events import ChatStatics, FileMedia, InlineMedia


class RenderSnapshot(BaseModel):
    """Everything a renderer needs to draw one in-flight message."""

    completed_content: str = Field(default="", description="Committed, stable span")
    streaming_content: str = Field(default="", description="Visible but uncommitted span")
    processed: ProcessedContent = Field(
        default_factory=ProcessedContent,
        description="Segmented answer text and its placeholder cache",
    )
    thinking: ThinkingSegment = Field(
        default_factory=ThinkingSegment, description="Thought/answer split"
    )
    stats: ChatStatics | None = Field(default=None, description="Latest provider statistics")
    media: list[InlineMedia | FileMedia] = Field(
        default_factory=list, description="Media parts received so far"
    )
    finished: bool = Field(default=False, description="True on the final snapshot")
    title: str | None = Field(default=None, description="Title extracted from <title> tags")

    @property
    def visible_content(self) -> str:
        return self.completed_content + self.streaming_content


class MessageRole(StrEnum):
    ASSISTANT = "assistant"
    SYSTEM = "system"


class TranscriptMessage(BaseModel):
    """A message recorded by the consumer once a stream terminates."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str
    is_error: bool = Field(default=False, description="True for failure notices")
