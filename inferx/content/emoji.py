"""Emoji shortcode table loading.

The table maps shortcodes (without colons) to glyphs, e.g.
``{"rocket": "🚀"}``. It is loaded once at startup and injected into
the segmenter.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

_BUNDLED_TABLE = Path(__file__).parent.parent / "config" / "emoji.json"


def load_emoji_table(path: Path | str | None = None) -> dict[str, str]:
    """Load a shortcode-to-glyph table from JSON.

    Args:
        path: JSON file to read. Defaults to the bundled inferx/config/emoji.json.

    Returns:
        Mapping of shortcode to glyph.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not a JSON object of strings.
    """
    table_path = Path(path) if path else _BUNDLED_TABLE
    if not table_path.is_file():
        raise FileNotFoundError(f"Emoji table not found: {table_path}")

    try:
        raw = json.loads(table_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Emoji table {table_path} is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise ValueError(f"Emoji table {table_path} must be a JSON object")

    table = {
        key: value
        for key, value in raw.items()
        if isinstance(key, str) and isinstance(value, str) and key and value
    }
    skipped = len(raw) - len(table)
    if skipped:
        logger.warning("Skipped %d invalid entries in %s", skipped, table_path)
    logger.debug("Loaded %d emoji shortcodes from %s", len(table), table_path)
    return table
