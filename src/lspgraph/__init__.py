"""lspgraph: type hierarchy graphs and call trees from a language server.

Typical use:
    async with LanguageServer(["clangd"], root=workspace) as server:
        client = HierarchyClient(server)
        graph = await TypeGraphBuilder(client).build_at(path, Position(10, 6))
        print(wrap_document("class", render_graph(graph)))
"""

from lspgraph.call_graph import CallGraphTracer, extract_call_candidates
from lspgraph.diagram import render_call_tree, render_graph, render_outline, wrap_document
from lspgraph.hierarchy_client import (
    CapabilityUnsupported,
    HierarchyClient,
    UnsupportedCapability,
)
from lspgraph.lsp_session import LanguageServer, LspGraphError, ServiceUnavailable
from lspgraph.models import CallNode, HierarchyMode, HierarchyNode, Position, TypeGraph
from lspgraph.type_graph import TypeGraphBuilder, find_root

__version__ = "0.1.0"

__all__ = [
    "CallGraphTracer",
    "CallNode",
    "CapabilityUnsupported",
    "HierarchyClient",
    "HierarchyMode",
    "HierarchyNode",
    "LanguageServer",
    "LspGraphError",
    "Position",
    "ServiceUnavailable",
    "TypeGraph",
    "TypeGraphBuilder",
    "UnsupportedCapability",
    "extract_call_candidates",
    "find_root",
    "render_call_tree",
    "render_graph",
    "render_outline",
    "wrap_document",
]
