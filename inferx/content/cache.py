"""Placeholder tokens and the per-message placeholder cache.

Tokens have the form ``PLACEHOLDER_START_<UUID>_PLACEHOLDER_END`` so a
renderer can test membership with a prefix/suffix check before doing a
cache lookup.
"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Callable, Mapping

from inferx.schemas.content import EntryKind, PlaceholderEntry, ProcessedContent

logger = logging.getLogger(__name__)

PLACEHOLDER_START = "PLACEHOLDER_START_"
PLACEHOLDER_END = "_PLACEHOLDER_END"

PLACEHOLDER_RE = re.compile(
    re.escape(PLACEHOLDER_START) + r"[A-F0-9\-]+" + re.escape(PLACEHOLDER_END)
)


def new_placeholder() -> str:
    """Return a fresh, globally unique placeholder token."""
    return f"{PLACEHOLDER_START}{str(uuid.uuid4()).upper()}{PLACEHOLDER_END}"


def is_placeholder(text: str) -> bool:
    """True when ``text`` (ignoring surrounding whitespace) is one token."""
    return PLACEHOLDER_RE.fullmatch(text.strip()) is not None


def has_placeholder(text: str) -> bool:
    """Cheap check for any token-like span in ``text``."""
    return PLACEHOLDER_START in text and PLACEHOLDER_END in text


def find_placeholders(text: str) -> list[str]:
    """All tokens in ``text`` in document order."""
    if not has_placeholder(text):
        return []
    return PLACEHOLDER_RE.findall(text)


def match_block_placeholder(
    text: str, cache: Mapping[str, PlaceholderEntry]
) -> PlaceholderEntry | None:
    """Resolve a paragraph consisting of exactly one block-level token."""
    token = text.strip()
    if not is_placeholder(token):
        return None
    entry = cache.get(token)
    if entry is None or not entry.is_block:
        return None
    return entry


def expand_placeholders(
    text: str,
    cache: Mapping[str, PlaceholderEntry],
    render: Callable[[PlaceholderEntry], str] | None = None,
) -> str:
    """Replace every resolvable token with its rendered entry.

    Tokens missing from the cache stay in the text verbatim, so a render
    that lags behind a cache swap shows a visibly broken token instead
    of failing.

    Args:
        text: Placeholder-substituted text.
        cache: Token to entry mapping.
        render: Entry renderer; defaults to source_text().
    """
    if not has_placeholder(text):
        return text
    render = render or source_text

    def _replace(match: re.Match[str]) -> str:
        token = match.group(0)
        entry = cache.get(token)
        if entry is None:
            logger.debug("Placeholder %s missing from cache", token)
            return token
        return render(entry)

    return PLACEHOLDER_RE.sub(_replace, text)


def source_text(entry: PlaceholderEntry) -> str:
    """Markdown/HTML source that reproduces an entry."""
    kind = entry.kind
    if kind == EntryKind.LATEX_BLOCK:
        return f"$${entry.text}$$"
    if kind == EntryKind.LATEX_INLINE:
        return f"${entry.text}$"
    if kind == EntryKind.NATIVE_CHART:
        chart = entry.chart
        lines = [f"{point.label}: {point.value:g}" for point in chart.data]
        if chart.title:
            lines.insert(0, chart.title)
        return "\n".join(lines)
    return entry.text


class PlaceholderCache:
    """Holds the most recent segmentation result of one message.

    The whole result is replaced on every pass; readers always see either
    the previous or the new mapping, never a partially updated one.
    """

    def __init__(self) -> None:
        self._processed = ProcessedContent()

    @property
    def processed(self) -> ProcessedContent:
        return self._processed

    @property
    def content(self) -> str:
        return self._processed.content

    @property
    def content_cache(self) -> Mapping[str, PlaceholderEntry]:
        return self._processed.content_cache

    def replace(self, processed: ProcessedContent) -> None:
        """Swap in a new segmentation result."""
        self._processed = processed

    def clear(self) -> None:
        self._processed = ProcessedContent()

    def lookup(self, token: str) -> PlaceholderEntry | None:
        """Entry for ``token``, or None when unknown or malformed."""
        if not isinstance(token, str) or not is_placeholder(token):
            return None
        return self._processed.content_cache.get(token.strip())

    def expand(
        self, text: str | None = None, render: Callable[[PlaceholderEntry], str] | None = None
    ) -> str:
        """Expand the cached content (or ``text``) against this cache."""
        source = self._processed.content if text is None else text
        return expand_placeholders(source, self._processed.content_cache, render)

    def __contains__(self, token: object) -> bool:
        return isinstance(token, str) and token in self._processed.content_cache

    def __len__(self) -> int:
        return len(self._processed.content_cache)
