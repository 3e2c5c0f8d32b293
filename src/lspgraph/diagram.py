"""Render type graphs and call trees as Mermaid diagram text.

All functions are pure: data in, text out. Output order follows traversal
order (never sorted), so rendering the same structure twice gives identical
text.
"""

from __future__ import annotations

import re
from typing import Dict, List, Set, Tuple

from lspgraph.config import (
    CALL_MESSAGE_LABEL,
    CLASS_DIAGRAM_HEADER,
    SEQUENCE_DIAGRAM_HEADER,
)
from lspgraph.models import CallNode, TypeGraph

_NON_WORD = re.compile(r"[^\w]")

DIAGRAM_HEADERS = {
    "class": CLASS_DIAGRAM_HEADER,
    "sequence": SEQUENCE_DIAGRAM_HEADER,
}


def sanitize_name(name: str) -> str:
    """Replace every non-word character with ``-``."""
    return _NON_WORD.sub("-", name)


def render_graph(graph: TypeGraph) -> str:
    """Class diagram body: declarations, then inheritance arrows.

    The focus node keeps its exact name so the display layer can highlight
    it by exact match; every other name is sanitized.
    """

    def label(name: str) -> str:
        return name if name == graph.focus else sanitize_name(name)

    lines = [f"class {label(name)}" for name in graph.nodes]
    lines.extend(f"{label(e.parent)} <|-- {label(e.child)}" for e in graph.edges)
    return "\n".join(lines)


def _collect_calls(tree: CallNode) -> Tuple[List[str], List[Tuple[str, str]]]:
    participants: Dict[str, None] = {}
    edges: List[Tuple[str, str]] = []
    seen_edges: Set[str] = set()

    def visit(node: CallNode) -> None:
        participants.setdefault(node.name, None)
        for child in node.children:
            key = f"{node.name}->{child.name}"
            if key not in seen_edges:
                seen_edges.add(key)
                edges.append((node.name, child.name))
            visit(child)

    visit(tree)
    return list(participants), edges


def render_call_tree(tree: CallNode) -> str:
    """Sequence diagram body: participants, then one message per distinct call."""
    participants, edges = _collect_calls(tree)
    lines = [f"participant {name}" for name in participants]
    lines.extend(f"{caller}->>{callee}: {CALL_MESSAGE_LABEL}" for caller, callee in edges)
    return "\n".join(lines)


def render_outline(graph: TypeGraph, indent: str = "  ") -> str:
    """Indented text outline of a type graph, starting at its root.

    Each node lists its supertypes, then its subtypes; a name is printed once.
    """
    lines: List[str] = []
    seen: Set[str] = set()

    def visit(name: str, level: int) -> None:
        if name in seen:
            return
        seen.add(name)
        lines.append(f"{indent * level}- {name}")
        for related in graph.supertypes_of(name) + graph.subtypes_of(name):
            visit(related, level + 1)

    visit(graph.root, 0)
    return "\n".join(lines)


def wrap_document(kind: str, body: str, fenced: bool = False) -> str:
    """Prefix a diagram body with its Mermaid header.

    Args:
        kind: ``"class"`` or ``"sequence"``
        body: Output of :func:`render_graph` or :func:`render_call_tree`
        fenced: Wrap in a ```` ```mermaid ```` block for Markdown

    Raises:
        ValueError: for an unknown diagram kind.
    """
    try:
        header = DIAGRAM_HEADERS[kind]
    except KeyError:
        raise ValueError(f"Unknown diagram kind {kind!r}") from None
    document = f"{header}\n{body}" if body else header
    if fenced:
        return f"```mermaid\n{document}\n```"
    return document
