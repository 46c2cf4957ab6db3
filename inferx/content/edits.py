"""Edit lists over an immutable text snapshot.

Segmentation stages compute their replacements against one snapshot
and apply them together, so no match offset is ever invalidated by an
earlier replacement.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class TextEdit:
    """Replace ``text[start:end]`` with ``replacement``."""

    start: int
    end: int
    replacement: str

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid edit range [{self.start}, {self.end})")


def apply_edits(text: str, edits: list[TextEdit]) -> str:
    """Apply non-overlapping edits in a single pass.

    Raises:
        ValueError: If two edits overlap or an edit exceeds the text.
    """
    if not edits:
        return text

    ordered = sorted(edits)
    pieces: list[str] = []
    cursor = 0
    for edit in ordered:
        if edit.start < cursor:
            raise ValueError(f"Overlapping edit at {edit.start} (previous ended at {cursor})")
        if edit.end > len(text):
            raise ValueError(f"Edit end {edit.end} exceeds text length {len(text)}")
        pieces.append(text[cursor:edit.start])
        pieces.append(edit.replacement)
        cursor = edit.end
    pieces.append(text[cursor:])
    return "".join(pieces)


def line_indentation(text: str, index: int) -> str:
    """Leading whitespace of the line containing ``index``."""
    line_start = text.rfind("\n", 0, index) + 1
    end = line_start
    while end < len(text) and text[end] in " \t":
        end += 1
    return text[line_start:end]
