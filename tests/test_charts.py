"""Tests for inferx.content.charts — mermaid parsing."""

from inferx.content.charts import parse_mermaid
from inferx.schemas.content import ChartType


class TestPie:
    def test_title_on_own_line(self):
        chart = parse_mermaid('pie\n    title Pets\n    "Dogs" : 386\n    "Cats" : 85.5\n')
        assert chart.type == ChartType.PIE
        assert chart.title == "Pets"
        assert [(p.label, p.value) for p in chart.data] == [("Dogs", 386.0), ("Cats", 85.5)]

    def test_title_on_header_line(self):
        chart = parse_mermaid('pie title Languages\n "Python" : 60\n')
        assert chart.title == "Languages"
        assert chart.data[0].label == "Python"

    def test_skips_unparseable_lines(self):
        chart = parse_mermaid('pie\n "A" : x\n "B" : 2\n showData\n')
        assert [p.label for p in chart.data] == ["B"]

    def test_no_data(self):
        assert parse_mermaid("pie\n title Empty\n") is None


class TestGraph:
    def test_bar_by_default(self):
        chart = parse_mermaid("graph TD\n  A[Q1: 10] --> B[Q2: 20.5]\n")
        assert chart.type == ChartType.BAR
        assert [(p.label, p.value) for p in chart.data] == [("Q1", 10.0), ("Q2", 20.5)]

    def test_line_marker(self):
        chart = parse_mermaid("graph LR\n  %% type: line\n  A[Jan: 1] --> B[Feb: 3]\n")
        assert chart.type == ChartType.LINE

    def test_nodes_without_values(self):
        assert parse_mermaid("graph TD\n  A[Start] --> B[End]\n") is None


class TestUnsupported:
    def test_other_diagram(self):
        assert parse_mermaid("sequenceDiagram\n  A->>B: hi\n") is None

    def test_empty(self):
        assert parse_mermaid("") is None
