"""InferX CLI — Typer + Rich terminal interface.

Commands: segment, replay, chat, config.
All output is Rich-powered with panels and tables.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from inferx import __version__
from inferx.content.emoji import load_emoji_table
from inferx.content.segmenter import ContentSegmenter
from inferx.display import (
    StreamDisplay,
    build_cache_table,
    format_stats,
    render_markdown,
    render_snapshot,
)
from inferx.keys import PROVIDER_KEYS, get_configured_keys, load_keys_env
from inferx.providers.registry import load_endpoints, load_stream_config, select_normalizer
from inferx.providers.wire import iter_json_objects
from inferx.schemas.config import ModelProvider, StreamConfig
from inferx.schemas.streaming import RenderSnapshot
from inferx.streaming.consumer import StreamConsumer

logger = logging.getLogger(__name__)

console = Console()

_READ_CHUNK = 4096

app = typer.Typer(
    name="inferx",
    help="Streaming chat-response pipeline for local and hosted LLMs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ───────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"inferx {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log pipeline internals to stderr.",
    ),
) -> None:
    """InferX — streaming aggregation and markdown segmentation for LLM chats."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
            force=True,
        )


# ── Helpers ──────────────────────────────────────────────────────


def _load_config(config_path: Path | None = None) -> StreamConfig:
    """Load the stream config, exit on error."""
    try:
        return load_stream_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1) from None


def _build_segmenter(config: StreamConfig, emoji: bool = True) -> ContentSegmenter:
    """Segmenter with the configured emoji table (none when loading fails)."""
    if not emoji:
        return ContentSegmenter()
    try:
        table = load_emoji_table(config.emoji_table_path or None)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[yellow]Emoji shortcodes disabled:[/yellow] {e}")
        return ContentSegmenter()
    return ContentSegmenter(table)


async def _read_file_chunks(path: Path) -> AsyncIterator[bytes]:
    with open(path, "rb") as f:
        while chunk := f.read(_READ_CHUNK):
            yield chunk


def _print_outcome(consumer: StreamConsumer, snapshot: RenderSnapshot | None) -> None:
    if consumer.error is not None:
        console.print(
            Panel(consumer.error, title="[bold red]Stream failed[/bold red]", border_style="red")
        )
        raise typer.Exit(1)
    if snapshot is not None and consumer.finish_reason:
        console.print(f"[dim]Finish reason:[/dim] {consumer.finish_reason}")


# ── segment ─────────────────────────────────────────────────────


@app.command()
def segment(
    file: Path = typer.Argument(..., help="Markdown file to segment."),
    emoji: bool = typer.Option(True, "--emoji/--no-emoji", help="Replace :shortcodes:."),
    json_output: bool = typer.Option(False, "--json", help="Print the result as JSON."),
    render: bool = typer.Option(False, "--render", help="Render the expanded markdown."),
    config_path: Path | None = typer.Option(None, "--config", help="Stream config TOML."),
) -> None:
    """Segment a markdown file and show the placeholder cache."""
    if not file.is_file():
        console.print(f"[red]File not found:[/red] {file}")
        raise typer.Exit(1)

    config = _load_config(config_path)
    segmenter = _build_segmenter(config, emoji=emoji)
    processed = segmenter.preprocess(file.read_text(encoding="utf-8"))

    if json_output:
        console.print_json(processed.model_dump_json())
        return

    if render:
        console.print(Panel(render_markdown(processed), title="[bold]Rendered[/bold]"))
    else:
        console.print(Panel(processed.content, title="[bold]Content[/bold]", border_style="blue"))

    if processed.content_cache:
        console.print(build_cache_table(processed))
    else:
        console.print("[dim]No structured content found.[/dim]")


# ── replay ──────────────────────────────────────────────────────


@app.command()
def replay(
    file: Path = typer.Argument(..., help="Captured wire stream (JSON objects or JSONL)."),
    provider: ModelProvider = typer.Option(
        ..., "--provider", "-p", help="Provider that produced the capture."
    ),
    endpoint: str = typer.Option("", "--endpoint", "-e", help="Endpoint URL of the capture."),
    thinking: bool = typer.Option(True, "--thinking/--no-thinking", help="Show thinking text."),
    config_path: Path | None = typer.Option(None, "--config", help="Stream config TOML."),
) -> None:
    """Replay a captured provider stream through the full pipeline."""
    if not file.is_file():
        console.print(f"[red]File not found:[/red] {file}")
        raise typer.Exit(1)

    config = _load_config(config_path)
    consumer = StreamConsumer(
        select_normalizer(provider, endpoint),
        config=config,
        segmenter=_build_segmenter(config),
    )
    snapshot = asyncio.run(consumer.consume(iter_json_objects(_read_file_chunks(file))))

    if snapshot is not None:
        console.print(render_snapshot(snapshot, show_thinking=thinking))
    _print_outcome(consumer, snapshot)


# ── chat ────────────────────────────────────────────────────────


@app.command()
def chat(
    model: str = typer.Argument(..., help="Endpoint name from endpoints.toml or a LiteLLM model ID."),
    prompt: str = typer.Argument(..., help="User prompt."),
    system: str = typer.Option("", "--system", "-s", help="System prompt."),
    timeout: int = typer.Option(120, "--timeout", help="Request timeout in seconds."),
    thinking: bool = typer.Option(True, "--thinking/--no-thinking", help="Show thinking text."),
    config_path: Path | None = typer.Option(None, "--config", help="Stream config TOML."),
) -> None:
    """Stream a live completion through LiteLLM."""
    from inferx.providers.litellm_provider import LiteLLMStreamSource
    from inferx.providers.openai_compat import OpenAICompatNormalizer

    load_keys_env()
    config = _load_config(config_path)

    try:
        endpoints = load_endpoints()
    except (FileNotFoundError, ValueError) as e:
        logger.debug("Endpoint registry unavailable: %s", e)
        endpoints = {}

    if model in endpoints and endpoints[model].provider == ModelProvider.HUGGINGFACE:
        console.print(
            f"[red]Endpoint '{model}' runs local MLX inference, which LiteLLM cannot stream.[/red]\n"
            "Capture its output and use [bold]inferx replay --provider huggingface[/bold]."
        )
        raise typer.Exit(1)

    if model in endpoints:
        source = LiteLLMStreamSource.from_endpoint(endpoints[model], timeout=timeout)
    else:
        source = LiteLLMStreamSource(model, timeout=timeout)

    # LiteLLM re-shapes every backend's chunks into the OpenAI format.
    with StreamDisplay(console, show_thinking=thinking) as display:
        consumer = StreamConsumer(
            OpenAICompatNormalizer(),
            config=config,
            segmenter=_build_segmenter(config),
            on_update=display.create_update_callback(),
        )
        stream = source.stream([{"role": "user", "content": prompt}], system=system)
        try:
            snapshot = asyncio.run(consumer.consume(stream))
        except KeyboardInterrupt:
            console.print("[yellow]Cancelled.[/yellow]")
            raise typer.Exit(130) from None

    _print_outcome(consumer, snapshot)
    console.print(f"[dim]{source.model} in {display.elapsed:.1f}s[/dim]  ", end="")
    console.print(format_stats(consumer.stats))


# ── config ──────────────────────────────────────────────────────


@app.command("config")
def show_config(
    config_path: Path | None = typer.Option(None, "--config", help="Stream config TOML."),
) -> None:
    """Show the effective stream configuration and endpoints."""
    load_keys_env()
    config = _load_config(config_path)

    table = Table(title="Stream Configuration", show_header=False)
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_row("Flush interval", f"{config.flush_interval}s")
    table.add_row("Commit interval", f"{config.flush_interval_complete}s")
    table.add_row(
        "Thinking tags",
        ", ".join(f"{pair.start} {pair.end}" for pair in config.thinking_tags),
    )
    table.add_row("Emoji table", config.emoji_table_path or "[dim](bundled)[/dim]")
    console.print(table)

    try:
        endpoints = load_endpoints()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[yellow]No endpoints:[/yellow] {e}")
        endpoints = {}

    if endpoints:
        ep_table = Table(title="Endpoints")
        ep_table.add_column("Name", style="cyan")
        ep_table.add_column("Provider")
        ep_table.add_column("Base URL")
        ep_table.add_column("Model")
        ep_table.add_column("Wire shape")
        for name, ep in endpoints.items():
            ep_table.add_row(
                name,
                str(ep.provider),
                ep.base_url or "[dim]-[/dim]",
                ep.model or "[dim]-[/dim]",
                "openai" if ep.uses_openai_shape else str(ep.provider),
            )
        console.print(ep_table)

    keys = get_configured_keys()
    key_table = Table(title="API Keys")
    key_table.add_column("Provider")
    key_table.add_column("Variable", style="dim")
    key_table.add_column("Status")
    for env_var, display_name in PROVIDER_KEYS:
        status = "[green]set[/green]" if keys[env_var] else "[dim]not set[/dim]"
        key_table.add_row(display_name, env_var, status)
    console.print(key_table)
