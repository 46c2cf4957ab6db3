"""Rich rendering of render snapshots.

StreamDisplay wraps a Rich Live region that is redrawn every time the
stream consumer publishes a snapshot; the helper builders are also used
by the one-shot ``segment`` and ``replay`` commands.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from inferx.content.cache import expand_placeholders
from inferx.schemas.content import (
    EntryKind,
    NativeChart,
    ParsedChart,
    PlaceholderEntry,
    ProcessedContent,
)
from inferx.schemas.events import ChatStatics
from inferx.schemas.streaming import RenderSnapshot

_BAR_WIDTH = 30
_PREVIEW_CHARS = 60


def render_chart(chart: ParsedChart) -> str:
    """Plain-text bar rendering of a chart, inside a code fence."""
    peak = max(abs(point.value) for point in chart.data) or 1.0
    label_width = max(len(point.label) for point in chart.data)
    lines = []
    if chart.title:
        lines.append(chart.title)
    for point in chart.data:
        bar = "█" * max(1, round(abs(point.value) / peak * _BAR_WIDTH))
        lines.append(f"{point.label.ljust(label_width)}  {bar} {point.value:g}")
    body = "\n".join(lines)
    return f"```\n{body}\n```"


def render_entry(entry: PlaceholderEntry) -> str:
    """Terminal-friendly markdown for one cache entry."""
    if isinstance(entry, NativeChart):
        return render_chart(entry.chart)
    if entry.kind == EntryKind.LATEX_BLOCK:
        return f"```latex\n{entry.text}\n```"
    if entry.kind == EntryKind.LATEX_INLINE:
        return f"`{entry.text}`"
    if entry.kind == EntryKind.HTML_BLOCK:
        return f"```html\n{entry.text}\n```"
    return entry.text


def render_markdown(processed: ProcessedContent) -> Markdown:
    return Markdown(expand_placeholders(processed.content, processed.content_cache, render_entry))


def format_stats(stats: ChatStatics | None) -> Text:
    """One-line summary of generation statistics."""
    if stats is None or stats.is_empty:
        return Text("no stats", style="dim")
    parts = []
    if stats.prompt_eval_count is not None:
        parts.append(f"[dim]Prompt:[/dim] {stats.prompt_eval_count:,} tok")
    if stats.eval_count is not None:
        parts.append(f"[dim]Output:[/dim] {stats.eval_count:,} tok")
    if stats.tokens_per_second is not None:
        parts.append(f"[dim]Speed:[/dim] {stats.tokens_per_second:.1f} tok/s")
    if stats.total_duration is not None:
        parts.append(f"[dim]Total:[/dim] {stats.total_duration:.2f}s")
    return Text.from_markup("  ".join(parts))


def build_cache_table(processed: ProcessedContent) -> Table:
    """Table of placeholder tokens and what they stand for."""
    table = Table(title="Placeholder Cache", show_lines=False)
    table.add_column("Token", style="cyan", no_wrap=True)
    table.add_column("Kind", style="magenta")
    table.add_column("Content")

    for token, entry in processed.content_cache.items():
        if isinstance(entry, NativeChart):
            preview = f"{entry.chart.type} chart, {len(entry.chart.data)} points"
        else:
            preview = entry.text.replace("\n", " ")
        if len(preview) > _PREVIEW_CHARS:
            preview = preview[: _PREVIEW_CHARS - 3] + "..."
        # Token suffix is enough to tell entries apart
        short = token.removeprefix("PLACEHOLDER_START_").removesuffix("_PLACEHOLDER_END")[:8]
        table.add_row(short, str(entry.kind), preview)
    return table


def render_snapshot(snapshot: RenderSnapshot, show_thinking: bool = True) -> RenderableType:
    """Thinking panel, answer panel and stats line for one snapshot."""
    parts: list[RenderableType] = []
    thinking = snapshot.thinking

    if show_thinking and thinking.has_thinking and thinking.think_text:
        status = "done" if thinking.is_complete else "thinking..."
        parts.append(
            Panel(
                Text(thinking.think_text, style="dim italic"),
                title=f"[dim]Thinking[/dim] [dim]({status})[/dim]",
                border_style="dim",
            )
        )

    if snapshot.processed.content:
        answer: RenderableType = render_markdown(snapshot.processed)
    else:
        answer = Text("Waiting for output...", style="dim", justify="center")
    title = "[bold]Answer[/bold]"
    if snapshot.title:
        title += f" [dim]{snapshot.title}[/dim]"
    parts.append(
        Panel(answer, title=title, border_style="green" if snapshot.finished else "blue")
    )

    if snapshot.media:
        media = Text()
        for item in snapshot.media:
            source = getattr(item, "uri", None) or f"{len(item.data):,} bytes"
            media.append(f"  {item.mime_type}: {source}\n", style="dim")
        parts.append(media)

    if snapshot.finished:
        parts.append(format_stats(snapshot.stats))

    return Group(*parts)


class StreamDisplay:
    """Rich Live region showing the in-flight message."""

    def __init__(self, console: Console, show_thinking: bool = True) -> None:
        self._console = console
        self._show_thinking = show_thinking
        self._live: Live | None = None
        self._start_time = time.monotonic()
        self.last_snapshot: RenderSnapshot | None = None

    def __enter__(self) -> StreamDisplay:
        self._start_time = time.monotonic()
        self._live = Live(
            Text("Waiting for output...", style="dim"),
            console=self._console,
            refresh_per_second=8,
        )
        self._live.__enter__()
        return self

    def __exit__(self, *args: object) -> None:
        if self._live:
            self._live.__exit__(*args)
            self._live = None

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self._start_time

    def create_update_callback(self) -> Callable[[RenderSnapshot], None]:
        """Callback suitable for StreamConsumer(on_update=...)."""

        def _on_update(snapshot: RenderSnapshot) -> None:
            self.last_snapshot = snapshot
            if self._live:
                self._live.update(render_snapshot(snapshot, self._show_thinking))

        return _on_update
