"""Markdown pre-processing into placeholder-substituted text.

ContentSegmenter pulls structured regions (diagrams, HTML, LaTeX) out of
a markdown message and replaces each with an opaque placeholder token.
The renderer draws the remaining markdown and resolves tokens through
the returned content cache.

Stages run in a fixed order, each computing its edits against an
immutable snapshot of the text:

1. emoji shortcodes
2. mermaid diagrams
3. code protection (fenced blocks and inline spans)
4. full HTML documents
5. whitelisted HTML tags
6. LaTeX
7. restoration of protected code
"""

from __future__ import annotations

import functools
import logging
import re
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from inferx.content.cache import new_placeholder
from inferx.content.charts import parse_mermaid
from inferx.content.edits import TextEdit, apply_edits, line_indentation
from inferx.schemas.content import (
    HtmlBlock,
    HtmlInline,
    LatexBlock,
    LatexInline,
    NativeChart,
    PlaceholderEntry,
    ProcessedContent,
)

logger = logging.getLogger(__name__)

BLOCK_HTML_TAGS = frozenset({"div", "table", "iframe", "video", "canvas", "details"})
INLINE_HTML_TAGS = frozenset({
    "span", "b", "strong", "i", "em", "u", "font", "mark", "sub", "sup",
    "p", "h2", "h3", "h4", "ul", "abbr", "cite", "dfn", "kbd", "a",
})

_EMOJI_PATTERN = r":([a-zA-Z0-9_+\-]+?)(?=:)"

_MERMAID_PATTERN = r"""
    ^[ \t]*```mermaid[ \t]*\n
    (?P<body>[\s\S]*?)
    ^[ \t]*```[ \t]*$
"""

# An unterminated fence at the end of the text is protected as well, so a
# code block that is still streaming is never mistaken for math or HTML.
_CODE_PATTERN = r"""
    ^[ \t]*(?P<fence>`{3,}|~{3,})[^\n]*\n(?:[\s\S]*?\n)?[ \t]*(?P=fence)[ \t]*$
  | ^[ \t]*(?:`{3,}|~{3,})[^\n]*(?:\n[\s\S]*)?\Z
  | ``[^`\n]*?``
  | `(?!\$)[^`\n]+?(?<!\$)`
"""

_HTML_DOCUMENT_PATTERN = r"""
    (?:[ \t]*<!DOCTYPE\s+html\s*>\s*)?
    <html[^>]*>[\s\S]+?</html>
"""

_HTML_TAG_PATTERN = r"""
    <!--[\s\S]*?-->
  | <(?P<tag>[a-zA-Z][a-zA-Z0-9]*)(?:\s[^>]*)?>(?P<inner>[\s\S]*?)</(?P=tag)\s*>
"""

_LATEX_PATTERN = r"""
    ^[ \t]*(?P<block>\$\$(?P<dollars>.+?)\$\$|\\\[(?P<brackets>.+?)\\\])
  | (?<!\$)\$(?P<inline>[^$\n]+)\$(?!\$)
  | \\\((?P<parens>.+?)\\\)
"""

_CODE_TOKEN_FORMAT = "__CODE_PLACEHOLDER_{nonce}_{index}__"
_CODE_TOKEN_RE = re.compile(r"__CODE_PLACEHOLDER_[0-9A-F]{12}_\d+__")


@functools.lru_cache(maxsize=None)
def _compile(pattern: str, flags: int) -> re.Pattern[str]:
    return re.compile(pattern, flags)


def _isolate(text: str, start: int, token: str) -> str:
    """Block replacement padded with blank lines at the original indent."""
    return f"\n\n{line_indentation(text, start)}{token}\n\n"


@dataclass
class _Pass:
    """Mutable state of one preprocess() call."""

    cache: dict[str, PlaceholderEntry] = field(default_factory=dict)
    code: dict[str, str] = field(default_factory=dict)
    nonce: str = field(default_factory=lambda: uuid.uuid4().hex[:12].upper())

    def restore_code(self, text: str) -> str:
        if not self.code:
            return text
        # Tokens minted by another pass are not in self.code and stay as they are.
        return _CODE_TOKEN_RE.sub(
            lambda m: self.code.get(m.group(0), m.group(0)), text
        )


Stage = Callable[[str, _Pass, dict], list[TextEdit]]


class ContentSegmenter:
    """Splits markdown into placeholder-substituted text and a content cache.

    The segmenter holds no per-message state; preprocess() can be called
    from any task and always rebuilds the cache from scratch.

    Args:
        emoji_table: Shortcode (without colons) to glyph mapping. When
                     None, shortcodes are left untouched.
    """

    def __init__(self, emoji_table: Mapping[str, str] | None = None) -> None:
        self._emoji_table: Mapping[str, str] = emoji_table or {}

    @property
    def emoji_table(self) -> Mapping[str, str]:
        return self._emoji_table

    def preprocess(self, markdown: str) -> ProcessedContent:
        """Segment ``markdown``.

        Returns:
            ProcessedContent whose text contains only tokens that resolve
            in its content_cache.
        """
        if not markdown:
            return ProcessedContent()

        state = _Pass()
        text = markdown
        stages: list[tuple[str, Stage]] = [
            ("emoji", self._emoji_edits),
            ("mermaid", self._mermaid_edits),
            ("code", self._code_edits),
            ("html-document", self._html_document_edits),
            ("html", self._html_tag_edits),
            ("latex", self._latex_edits),
        ]
        for name, stage in stages:
            text = self._run_stage(name, stage, text, state)

        text = state.restore_code(text)
        cache = {
            token: self._restore_entry(entry, state) for token, entry in state.cache.items()
        }
        return ProcessedContent(content=text, content_cache=cache)

    # -- stage driver --------------------------------------------------------

    @staticmethod
    def _run_stage(name: str, stage: Stage, text: str, state: _Pass) -> str:
        pending_entries: dict[str, PlaceholderEntry] = {}
        pending_code: dict[str, str] = {}
        try:
            edits = stage(text, state, {"entries": pending_entries, "code": pending_code})
            result = apply_edits(text, edits)
        except (re.error, ValueError, RecursionError) as e:
            logger.warning("Skipping %s segmentation stage: %s", name, e)
            return text
        state.cache.update(pending_entries)
        state.code.update(pending_code)
        return result

    # -- stages --------------------------------------------------------------

    def _emoji_edits(self, text: str, state: _Pass, pending: dict) -> list[TextEdit]:
        if not self._emoji_table or ":" not in text:
            return []
        edits: list[TextEdit] = []
        consumed = 0
        for match in _compile(_EMOJI_PATTERN, 0).finditer(text):
            if match.start() < consumed:
                continue
            glyph = self._emoji_table.get(match.group(1))
            if glyph is None:
                continue
            # The lookahead leaves the closing colon unconsumed; include it.
            end = match.end() + 1
            edits.append(TextEdit(match.start(), end, glyph))
            consumed = end
        return edits

    @staticmethod
    def _mermaid_edits(text: str, state: _Pass, pending: dict) -> list[TextEdit]:
        if "```mermaid" not in text:
            return []
        edits: list[TextEdit] = []
        pattern = _compile(_MERMAID_PATTERN, re.MULTILINE | re.VERBOSE)
        for match in pattern.finditer(text):
            token = new_placeholder()
            chart = parse_mermaid(match.group("body"))
            if chart is not None:
                pending["entries"][token] = NativeChart(chart=chart)
            else:
                logger.debug("Mermaid block not chartable, keeping raw source")
                pending["entries"][token] = HtmlBlock(text=match.group(0).strip())
            edits.append(TextEdit(match.start(), match.end(), _isolate(text, match.start(), token)))
        return edits

    @staticmethod
    def _code_edits(text: str, state: _Pass, pending: dict) -> list[TextEdit]:
        if "`" not in text and "~~~" not in text:
            return []
        edits: list[TextEdit] = []
        pattern = _compile(_CODE_PATTERN, re.MULTILINE | re.VERBOSE)
        next_index = len(state.code)
        for match in pattern.finditer(text):
            token = _CODE_TOKEN_FORMAT.format(nonce=state.nonce, index=next_index)
            next_index += 1
            pending["code"][token] = match.group(0)
            edits.append(TextEdit(match.start(), match.end(), token))
        return edits

    @staticmethod
    def _html_document_edits(text: str, state: _Pass, pending: dict) -> list[TextEdit]:
        if "<html" not in text.lower():
            return []
        edits: list[TextEdit] = []
        pattern = _compile(_HTML_DOCUMENT_PATTERN, re.IGNORECASE | re.VERBOSE)
        for match in pattern.finditer(text):
            token = new_placeholder()
            pending["entries"][token] = HtmlBlock(text=match.group(0).strip())
            edits.append(TextEdit(match.start(), match.end(), _isolate(text, match.start(), token)))
        return edits

    def _html_tag_edits(self, text: str, state: _Pass, pending: dict) -> list[TextEdit]:
        if "<" not in text:
            return []
        return self._scan_html(text, 0, len(text), pending)

    def _scan_html(
        self, snapshot: str, start: int, end: int, pending: dict
    ) -> list[TextEdit]:
        edits: list[TextEdit] = []
        pattern = _compile(_HTML_TAG_PATTERN, re.IGNORECASE | re.VERBOSE)
        for match in pattern.finditer(snapshot, start, end):
            tag = match.group("tag")
            if tag is None:
                continue  # comment
            name = tag.lower()
            if name in BLOCK_HTML_TAGS:
                token = new_placeholder()
                pending["entries"][token] = HtmlBlock(text=match.group(0))
                edits.append(
                    TextEdit(match.start(), match.end(), _isolate(snapshot, match.start(), token))
                )
            elif name in INLINE_HTML_TAGS:
                token = new_placeholder()
                pending["entries"][token] = HtmlInline(text=match.group(0))
                edits.append(TextEdit(match.start(), match.end(), token))
            else:
                # Unknown wrapper stays literal; whitelisted tags inside it
                # are still extracted.
                edits.extend(
                    self._scan_html(snapshot, match.start("inner"), match.end("inner"), pending)
                )
        return edits

    @staticmethod
    def _latex_edits(text: str, state: _Pass, pending: dict) -> list[TextEdit]:
        if "$" not in text and "\\" not in text:
            return []
        edits: list[TextEdit] = []
        pattern = _compile(_LATEX_PATTERN, re.MULTILINE | re.DOTALL | re.VERBOSE)
        for match in pattern.finditer(text):
            token = new_placeholder()
            if match.group("block") is not None:
                body = match.group("dollars")
                if body is None:
                    body = match.group("brackets")
                pending["entries"][token] = LatexBlock(text=body.strip())
                edits.append(
                    TextEdit(match.start(), match.end(), _isolate(text, match.start(), token))
                )
                continue
            body = match.group("inline")
            if body is None:
                body = match.group("parens")
            pending["entries"][token] = LatexInline(text=body.strip())
            edits.append(TextEdit(match.start(), match.end(), token))
        return edits

    # -- restoration ---------------------------------------------------------

    @staticmethod
    def _restore_entry(entry: PlaceholderEntry, state: _Pass) -> PlaceholderEntry:
        if isinstance(entry, NativeChart) or not state.code:
            return entry
        restored = state.restore_code(entry.text)
        if restored == entry.text:
            return entry
        return entry.model_copy(update={"text": restored})
