"""Type hierarchy graph construction.

Expands a root hierarchy node into its ancestors and/or descendants by
driving ``typeHierarchy/supertypes`` and ``typeHierarchy/subtypes`` queries.

Key design decisions:
- One visited set per ``build`` call, keyed by a swappable identity function
  (default: the node name), so diamonds collapse into one node and cycles stop
- Edges are recorded before the visited short-circuit, so a shared ancestor
  still gets every inbound edge
- Queries are issued strictly one at a time (depth-first, in response order)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Set

from lspgraph.config import CAPABILITY_TYPE_HIERARCHY
from lspgraph.documents import path_to_uri
from lspgraph.hierarchy_client import HierarchyClient
from lspgraph.models import (
    HierarchyMode,
    HierarchyNode,
    NodeIdentity,
    Position,
    TypeGraph,
    name_identity,
)

logger = logging.getLogger(__name__)


def find_root(node: HierarchyNode) -> HierarchyNode:
    """Follow the first parent link until a node has no parents.

    Only ``parents[0]`` is followed; roots reachable through other parents of
    a multiply-inheriting type are not explored.
    """
    current = node
    while current.parents:
        current = current.parents[0]
    return current


class TypeGraphBuilder:
    """Build :class:`TypeGraph` instances from a :class:`HierarchyClient`."""

    def __init__(self, client: HierarchyClient, identity: NodeIdentity = name_identity):
        self.client = client
        self.identity = identity

    async def build(
        self,
        root: HierarchyNode,
        mode: HierarchyMode = HierarchyMode.BOTH,
        focus: Optional[str] = None,
    ) -> TypeGraph:
        """Expand ``root`` depth-first in the directions ``mode`` allows."""
        if mode is HierarchyMode.ANCESTORS:
            root = root.without_children()
        elif mode is HierarchyMode.DESCENDANTS:
            root = root.without_parents()

        key = self.identity(root)
        graph = TypeGraph(root=key, focus=focus)
        graph.add_node(key, root)
        visited: Set[str] = set()
        await self._expand(root, mode, graph, visited)
        logger.debug(
            f"Type graph for {key} ({mode.value}): "
            f"{len(graph.nodes)} node(s), {len(graph.edges)} edge(s)"
        )
        return graph

    async def _expand(
        self,
        node: HierarchyNode,
        mode: HierarchyMode,
        graph: TypeGraph,
        visited: Set[str],
    ) -> None:
        key = self.identity(node)
        if key in visited:
            return
        visited.add(key)

        if mode.follows_supertypes:
            for supertype in await self.client.supertypes(node):
                super_key = self.identity(supertype)
                graph.add_node(super_key, supertype)
                graph.add_edge(super_key, key)
                await self._expand(supertype, mode, graph, visited)

        if mode.follows_subtypes:
            for subtype in await self.client.subtypes(node):
                sub_key = self.identity(subtype)
                graph.add_node(sub_key, subtype)
                graph.add_edge(key, sub_key)
                await self._expand(subtype, mode, graph, visited)

    async def climb_to_root(self, node: HierarchyNode) -> HierarchyNode:
        """Like :func:`find_root`, asking the server where parents are unresolved.

        Resolved ``parents`` are followed as given. A node whose parents were
        never resolved (the standard lookup returns none) is expanded with a
        supertypes query. The walk stops at the first repeated identity.
        """
        current = node
        seen = {self.identity(current)}
        while True:
            parents = current.parents
            if parents is None:
                parents = await self.client.supertypes(current)
            if not parents:
                return current
            key = self.identity(parents[0])
            if key in seen:
                logger.debug(f"Supertype cycle at {key}, stopping root search")
                return current
            seen.add(key)
            current = parents[0]

    async def build_at(
        self,
        file: str | Path,
        position: Position,
        mode: HierarchyMode = HierarchyMode.BOTH,
        from_root: bool = False,
    ) -> Optional[TypeGraph]:
        """Build the graph for the type at a cursor position.

        Returns None (after logging) when the server has no hierarchy there.

        Raises:
            CapabilityUnsupported: if the server lacks type hierarchy support.
        """
        self.client.require(CAPABILITY_TYPE_HIERARCHY)
        uri = path_to_uri(file)
        await self.client.ensure_open(uri)

        item = await self.client.type_hierarchy(uri, position)
        if item is None:
            logger.info(f"No type hierarchy available at {file}:{position.line + 1}:{position.character + 1}")
            return None

        start = await self.climb_to_root(item) if from_root else item
        return await self.build(start, mode, focus=self.identity(item))
