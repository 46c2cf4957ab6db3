"""Mermaid diagram parsing into chartable data.

Only two mermaid shapes are understood:

* ``pie`` charts with ``title ...`` and ``"Label" : value`` lines;
* ``graph`` diagrams whose nodes are written ``[Label: value]``; a
  ``%% type: line`` comment selects a line chart, otherwise bar.

Anything else (or a diagram without data) returns None and the caller
falls back to rendering the raw diagram source.
"""

from __future__ import annotations

import re

from inferx.schemas.content import ChartDataPoint, ChartType, ParsedChart

_TITLE_RE = re.compile(r"^title\s+(.*)$")
_NODE_RE = re.compile(r"\[(.*?):\s*([\d.]+)\]")


def parse_mermaid(source: str) -> ParsedChart | None:
    """Parse a mermaid diagram body into a ParsedChart, or None."""
    code = source.strip()
    if code.startswith("pie"):
        return _parse_pie(code)
    if code.startswith("graph"):
        return _parse_graph(code)
    return None


def _parse_pie(code: str) -> ParsedChart | None:
    title: str | None = None
    points: list[ChartDataPoint] = []

    lines = code.splitlines()
    # The title may share the header line: "pie title Pets"
    header = lines[0].strip()[len("pie"):].strip()
    if header.startswith("title "):
        title = header[len("title "):].strip() or None

    for line in lines[1:]:
        stripped = line.strip()
        title_match = _TITLE_RE.match(stripped)
        if title_match:
            title = title_match.group(1).strip() or None
            continue

        parts = [part.strip() for part in stripped.split(":")]
        if len(parts) != 2:
            continue
        try:
            value = float(parts[1])
        except ValueError:
            continue
        points.append(ChartDataPoint(label=parts[0].replace('"', ""), value=value))

    if not points:
        return None
    return ParsedChart(type=ChartType.PIE, title=title, data=points)


def _parse_graph(code: str) -> ParsedChart | None:
    points: list[ChartDataPoint] = []
    for match in _NODE_RE.finditer(code):
        try:
            value = float(match.group(2))
        except ValueError:
            continue
        points.append(ChartDataPoint(label=match.group(1), value=value))

    if not points:
        return None
    chart_type = ChartType.LINE if "%% type: line" in code else ChartType.BAR
    return ParsedChart(type=chart_type, title=None, data=points)
