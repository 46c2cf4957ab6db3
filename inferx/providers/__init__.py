"""InferX provider layer.

Normalizers turn each backend's streamed JSON chunks into the shared
ChatCompletionEvent model; the registry picks the right one per endpoint.
"""

from inferx.providers.base import ResponseNormalizer
from inferx.providers.gemini import GeminiNormalizer
from inferx.providers.mlx import MlxNormalizer
from inferx.providers.ollama import OllamaNormalizer
from inferx.providers.openai_compat import OpenAICompatNormalizer
from inferx.providers.registry import (
    load_endpoints,
    load_stream_config,
    normalizer_for,
    select_normalizer,
)

__all__ = [
    "GeminiNormalizer",
    "MlxNormalizer",
    "OllamaNormalizer",
    "OpenAICompatNormalizer",
    "ResponseNormalizer",
    "load_endpoints",
    "load_stream_config",
    "normalizer_for",
    "select_normalizer",
]
