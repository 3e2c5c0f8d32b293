"""Tests for diagram.py rendering."""

import pytest

from lspgraph.diagram import (
    render_call_tree,
    render_graph,
    render_outline,
    sanitize_name,
    wrap_document,
)
from lspgraph.models import CallNode, HierarchyNode, TypeGraph


def _graph(root, edges, focus=None):
    graph = TypeGraph(root=root, focus=focus)
    graph.add_node(root, HierarchyNode(root))
    for parent, child in edges:
        graph.add_node(parent, HierarchyNode(parent))
        graph.add_node(child, HierarchyNode(child))
        graph.add_edge(parent, child)
    return graph


class TestSanitizeName:
    """Tests for sanitize_name."""

    @pytest.mark.parametrize("raw,expected", [
        ("Plain_Name1", "Plain_Name1"),
        ("ns::Widget", "ns--Widget"),
        ("vector<int>", "vector-int-"),
        ("a b.c", "a-b-c"),
    ])
    def test_non_word_characters_replaced(self, raw, expected):
        assert sanitize_name(raw) == expected


class TestRenderGraph:
    """Tests for class diagram bodies."""

    def test_declarations_then_edges(self):
        graph = _graph("D", [("B", "D"), ("A", "B"), ("C", "D"), ("A", "C")])
        assert render_graph(graph).splitlines() == [
            "class D",
            "class B",
            "class A",
            "class C",
            "B <|-- D",
            "A <|-- B",
            "C <|-- D",
            "A <|-- C",
        ]

    def test_focus_name_kept_exact(self):
        graph = _graph("ns::Derived", [("ns::Base", "ns::Derived")])
        assert render_graph(graph).splitlines() == [
            "class ns::Derived",
            "class ns--Base",
            "ns--Base <|-- ns::Derived",
        ]

    def test_focus_other_than_root(self):
        graph = _graph("Base<T>", [("Base<T>", "Impl<T>")], focus="Impl<T>")
        assert render_graph(graph).splitlines()[-1] == "Base-T- <|-- Impl<T>"

    def test_single_node(self):
        assert render_graph(_graph("Solo", [])) == "class Solo"


class TestRenderCallTree:
    """Tests for sequence diagram bodies."""

    def test_participants_and_messages_in_walk_order(self):
        tree = CallNode("main.run", [
            CallNode("main.load", [CallNode("io.read")]),
            CallNode("main.save", [CallNode("io.write")]),
        ])
        assert render_call_tree(tree).splitlines() == [
            "participant main.run",
            "participant main.load",
            "participant io.read",
            "participant main.save",
            "participant io.write",
            "main.run->>main.load: call",
            "main.load->>io.read: call",
            "main.run->>main.save: call",
            "main.save->>io.write: call",
        ]

    def test_repeated_call_emitted_once(self):
        tree = CallNode("X", [CallNode("Y"), CallNode("Y")])
        lines = render_call_tree(tree).splitlines()
        assert lines.count("X->>Y: call") == 1
        assert lines.count("participant Y") == 1

    def test_same_pair_in_different_branches(self):
        tree = CallNode("A", [CallNode("B", [CallNode("C")]), CallNode("D", [CallNode("B", [CallNode("C")])])])
        lines = render_call_tree(tree).splitlines()
        assert lines.count("B->>C: call") == 1
        assert "D->>B: call" in lines

    def test_leaf_only(self):
        assert render_call_tree(CallNode("main.idle")) == "participant main.idle"


class TestRenderOutline:
    """Tests for the indented outline."""

    def test_outline_from_root(self):
        graph = _graph("Mid", [("Top", "Mid"), ("Mid", "Low"), ("Mid", "Other")])
        assert render_outline(graph) == "- Mid\n  - Top\n  - Low\n  - Other"

    def test_shared_node_printed_once(self):
        graph = _graph("A", [("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")])
        outline = render_outline(graph).splitlines()
        assert outline.count("    - D") == 1
        assert outline[:3] == ["- A", "  - B", "    - D"]


class TestWrapDocument:
    """Tests for wrap_document."""

    def test_class_header(self):
        assert wrap_document("class", "class A") == "classDiagram\nclass A"

    def test_sequence_fenced(self):
        assert wrap_document("sequence", "participant a", fenced=True) == (
            "```mermaid\nsequenceDiagram\nparticipant a\n```"
        )

    def test_empty_body(self):
        assert wrap_document("class", "") == "classDiagram"

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="flowchart"):
            wrap_document("flowchart", "")
