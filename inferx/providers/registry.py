"""Normalizer selection and TOML configuration loader.

Loads stream settings from defaults.toml and endpoint definitions from
endpoints.toml. Picks the response normalizer matching an endpoint's
wire shape.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

from pydantic import ValidationError

from inferx.providers.base import ResponseNormalizer
from inferx.providers.gemini import GeminiNormalizer
from inferx.providers.mlx import MlxNormalizer
from inferx.providers.ollama import OllamaNormalizer
from inferx.providers.openai_compat import OpenAICompatNormalizer
from inferx.schemas.config import (
    EndpointConfig,
    ModelProvider,
    StreamConfig,
    ThinkingTagPair,
    parse_thinking_tags,
)

# Default config directory relative to the inferx package
_CONFIG_DIR = Path(__file__).parent.parent / "config"

_NORMALIZERS: dict[ModelProvider, type[ResponseNormalizer]] = {
    ModelProvider.OLLAMA: OllamaNormalizer,
    ModelProvider.OPENAI: OpenAICompatNormalizer,
    ModelProvider.GEMINI: GeminiNormalizer,
    ModelProvider.HUGGINGFACE: MlxNormalizer,
}


def select_normalizer(
    provider: ModelProvider | str, endpoint: str = ""
) -> ResponseNormalizer:
    """Create a fresh normalizer for the given provider and endpoint.

    Gemini endpoints whose URL contains ``openai`` speak the OpenAI chat
    shape, so they get the OpenAI-compatible adapter.

    Raises:
        ValueError: If the provider is unknown.
    """
    provider = ModelProvider(provider)
    if provider == ModelProvider.GEMINI and "openai" in endpoint.lower():
        return OpenAICompatNormalizer()
    return _NORMALIZERS[provider]()


def normalizer_for(endpoint: EndpointConfig) -> ResponseNormalizer:
    """Create the normalizer matching a configured endpoint."""
    return select_normalizer(endpoint.provider, endpoint.base_url)


def load_stream_config(config_path: Path | None = None) -> StreamConfig:
    """Load stream settings from a TOML file.

    The ``thinking_tags`` key accepts either a list of ``{start, end}``
    tables or the legacy ``"start end, start end"`` string.

    Args:
        config_path: Path to defaults.toml. Defaults to inferx/config/defaults.toml.

    Returns:
        StreamConfig with values from the TOML file.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the [stream] section is invalid.
    """
    path = config_path or _CONFIG_DIR / "defaults.toml"
    if not path.exists():
        raise FileNotFoundError(f"Stream config not found: {path}")

    with open(path, "rb") as f:
        raw = tomllib.load(f)

    section = raw.get("stream", {})
    if not isinstance(section, dict):
        raise ValueError(f"[stream] must be a table in {path}")

    values = dict(section)
    raw_tags = values.pop("thinking_tags", None)
    if isinstance(raw_tags, str):
        values["thinking_tags"] = parse_thinking_tags(raw_tags)
    elif isinstance(raw_tags, list):
        values["thinking_tags"] = [ThinkingTagPair(**pair) for pair in raw_tags]

    try:
        return StreamConfig(**values)
    except ValidationError as e:
        raise ValueError(f"Invalid [stream] section in {path}: {e}") from e


def load_endpoints(config_path: Path | None = None) -> dict[str, EndpointConfig]:
    """Load endpoint definitions from a TOML file.

    Args:
        config_path: Path to endpoints.toml. Defaults to inferx/config/endpoints.toml.

    Returns:
        Dictionary mapping endpoint keys to EndpointConfig instances.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the TOML structure is invalid.
    """
    path = config_path or _CONFIG_DIR / "endpoints.toml"
    if not path.exists():
        raise FileNotFoundError(f"Endpoint registry not found: {path}")

    with open(path, "rb") as f:
        raw = tomllib.load(f)

    section = raw.get("endpoints")
    if not section or not isinstance(section, dict):
        raise ValueError(f"No [endpoints] section found in {path}")

    registry: dict[str, EndpointConfig] = {}
    for key, entry in section.items():
        if not isinstance(entry, dict):
            continue
        registry[key] = EndpointConfig(name=key, **entry)

    return registry
