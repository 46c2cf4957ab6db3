"""Configuration schemas for the streaming pipeline.

Loaded from defaults.toml / endpoints.toml by inferx.providers.registry
and overridden by CLI flags.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ModelProvider(StrEnum):
    """Backend family an endpoint belongs to."""

    OLLAMA = "ollama"
    OPENAI = "openai"
    HUGGINGFACE = "huggingface"
    GEMINI = "gemini"

    @property
    def default_endpoint(self) -> str:
        return _DEFAULT_ENDPOINTS[self]


_DEFAULT_ENDPOINTS: dict[ModelProvider, str] = {
    ModelProvider.OLLAMA: "http://localhost:11434",
    ModelProvider.OPENAI: "",
    ModelProvider.HUGGINGFACE: "https://huggingface.co",
    ModelProvider.GEMINI: "https://generativelanguage.googleapis.com/v1beta",
}


class ThinkingTagPair(BaseModel):
    """A start/end tag pair delimiting a model's reasoning trace."""

    model_config = ConfigDict(frozen=True)

    start: str = Field(min_length=1, description="Opening tag, e.g. '<think>'")
    end: str = Field(min_length=1, description="Closing tag, e.g. '</think>'")

    @field_validator("start", "end")
    @classmethod
    def _no_whitespace(cls, value: str) -> str:
        if value != value.strip() or any(ch.isspace() for ch in value):
            raise ValueError(f"Thinking tag must not contain whitespace: {value!r}")
        return value

    @model_validator(mode="after")
    def _distinct(self) -> ThinkingTagPair:
        if self.start == self.end:
            raise ValueError(f"Thinking start and end tags must differ: {self.start!r}")
        return self


DEFAULT_THINKING_TAGS: list[ThinkingTagPair] = [
    ThinkingTagPair(start="<think>", end="</think>"),
    ThinkingTagPair(start="<|thinking|>", end="<|end_thinking|>"),
    ThinkingTagPair(start="<thinking>", end="</thinking>"),
]


def parse_thinking_tags(raw: str) -> list[ThinkingTagPair]:
    """Parse the legacy free-text tag setting into structured pairs.

    The format is a comma-separated list of ``start end`` pairs, e.g.
    ``"<|thinking|> <|end_thinking|>, <thinking> </thinking>"``.

    Raises:
        ValueError: If an entry does not hold exactly two tags.
    """
    pairs: list[ThinkingTagPair] = []
    for entry in raw.split(","):
        parts = entry.split()
        if not parts:
            continue
        if len(parts) != 2:
            raise ValueError(f"Expected 'start end' tag pair, got {entry.strip()!r}")
        pairs.append(ThinkingTagPair(start=parts[0], end=parts[1]))
    return pairs


class StreamConfig(BaseModel):
    """Timing and extraction settings for one streaming pipeline."""

    flush_interval: float = Field(
        default=0.5, gt=0.0, description="Seconds between visible-content flushes"
    )
    flush_interval_complete: float = Field(
        default=10.0, gt=0.0, description="Seconds between streaming-to-completed commits"
    )
    thinking_tags: list[ThinkingTagPair] = Field(
        default_factory=lambda: list(DEFAULT_THINKING_TAGS),
        description="Tag pairs recognized as a thinking prelude (first match wins)",
    )
    emoji_table_path: str = Field(
        default="", description="Path to the emoji shortcode JSON table (empty = bundled)"
    )

    @model_validator(mode="after")
    def _commit_not_faster_than_flush(self) -> StreamConfig:
        if self.flush_interval_complete < self.flush_interval:
            raise ValueError(
                "flush_interval_complete must be >= flush_interval "
                f"({self.flush_interval_complete} < {self.flush_interval})"
            )
        if not self.thinking_tags:
            raise ValueError("At least one thinking tag pair is required")
        return self


class EndpointConfig(BaseModel):
    """A configured model endpoint (one entry of endpoints.toml)."""

    name: str = Field(description="Registry key for this endpoint")
    provider: ModelProvider = Field(description="Backend family")
    endpoint: str = Field(default="", description="Base URL (empty = provider default)")
    api_key_env: str = Field(default="", description="Environment variable holding the API key")
    model: str = Field(default="", description="Default model identifier for this endpoint")

    @property
    def base_url(self) -> str:
        return self.endpoint or self.provider.default_endpoint

    @property
    def uses_openai_shape(self) -> bool:
        """Whether chunks from this endpoint arrive in the OpenAI chat shape."""
        if self.provider == ModelProvider.OPENAI:
            return True
        return self.provider == ModelProvider.GEMINI and "openai" in self.base_url.lower()
