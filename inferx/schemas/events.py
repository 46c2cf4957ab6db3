"""Normalized streaming event schemas.

Every provider adapter converts its wire chunks into the
ChatCompletionEvent union defined here, so the rest of the pipeline
never sees a provider-specific shape.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class EventKind(StrEnum):
    """Discriminator for ChatCompletionEvent variants."""

    TEXT_DELTA = "text_delta"
    INLINE_MEDIA = "inline_media"
    FILE_MEDIA = "file_media"
    STATS_UPDATE = "stats_update"
    FINISHED = "finished"
    FAILURE = "failure"


class ChatStatics(BaseModel):
    """Generation statistics reported by a provider.

    Every field is optional because providers report different subsets.
    Durations are in seconds.
    """

    model_config = ConfigDict(frozen=True)

    total_duration: float | None = Field(default=None, ge=0.0)
    load_duration: float | None = Field(default=None, ge=0.0)
    prompt_eval_count: int | None = Field(default=None, ge=0)
    prompt_eval_duration: float | None = Field(default=None, ge=0.0)
    eval_count: int | None = Field(default=None, ge=0)
    eval_duration: float | None = Field(default=None, ge=0.0)

    @property
    def tokens_per_second(self) -> float | None:
        """Generation rate, or None when it cannot be derived."""
        if self.eval_count is None or not self.eval_duration:
            return None
        return self.eval_count / self.eval_duration

    @property
    def prompt_tokens_per_second(self) -> float | None:
        """Prompt processing rate, or None when it cannot be derived."""
        if self.prompt_eval_count is None or not self.prompt_eval_duration:
            return None
        return self.prompt_eval_count / self.prompt_eval_duration

    @property
    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump().values())


class TextDelta(BaseModel):
    """A new span of answer text."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[EventKind.TEXT_DELTA] = EventKind.TEXT_DELTA
    text: str


class InlineMedia(BaseModel):
    """Binary media returned inline in the response."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[EventKind.INLINE_MEDIA] = EventKind.INLINE_MEDIA
    mime_type: str
    data: bytes


class FileMedia(BaseModel):
    """Media returned by reference to a provider-hosted file."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[EventKind.FILE_MEDIA] = EventKind.FILE_MEDIA
    mime_type: str
    uri: str


class StatsUpdate(BaseModel):
    """Usage or timing statistics for the current message."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[EventKind.STATS_UPDATE] = EventKind.STATS_UPDATE
    stats: ChatStatics


class Finished(BaseModel):
    """Terminal signal: the message is complete."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[EventKind.FINISHED] = EventKind.FINISHED
    reason: str | None = Field(default=None, description="Provider finish/done reason")


class Failure(BaseModel):
    """Terminal signal: the stream failed."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[EventKind.FAILURE] = EventKind.FAILURE
    error: str = Field(description="Human-readable error message")


ChatCompletionEvent = Annotated[
    TextDelta | InlineMedia | FileMedia | StatsUpdate | Finished | Failure,
    Field(discriminator="kind"),
]
