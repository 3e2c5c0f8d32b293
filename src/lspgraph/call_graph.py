"""Heuristic call tree tracing.

Scans a function body's text for call-like expressions, resolves each
candidate through ``textDocument/implementation`` and recurses into the
resolved function up to a fixed depth.

The extraction is a regex, not a parse. It misses calls written in syntax
the pattern does not cover and reports things that only look like calls
(macros, casts, keywords followed by a parenthesis). Unresolvable candidates
simply drop out when the server finds no implementation for them.

Termination: one visited-name set is threaded through the whole traversal,
so a qualified name is expanded at most once; the second sighting, like a
depth cut-off, becomes a childless leaf.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Set

from lspgraph.config import (
    CAPABILITY_DOCUMENT_SYMBOL,
    CAPABILITY_IMPLEMENTATION,
)
from lspgraph.documents import offset_to_position, path_to_uri, uri_stem
from lspgraph.hierarchy_client import HierarchyClient
from lspgraph.lsp_session import LspGraphError
from lspgraph.models import (
    CallNode,
    CallTarget,
    DocumentSymbol,
    Location,
    Position,
    Range,
    walk_symbols,
)

logger = logging.getLogger(__name__)

# receiver.method(  or  identifier(  not preceded by a dot
CALL_PATTERN = re.compile(
    r"\b[A-Za-z_]\w*\s*\.\s*(?P<method>[A-Za-z_]\w*)\s*\("
    r"|(?<![.\w])(?P<bare>[A-Za-z_]\w*)\s*\("
)


class UnresolvedCallSite(LspGraphError):
    """A call candidate that the server could not resolve to a function."""
    pass


@dataclass(frozen=True)
class CallCandidate:
    """Callee name and its character offset within the scanned text."""
    name: str
    offset: int


def extract_call_candidates(
    text: str,
    skip: Optional[Callable[[int], bool]] = None,
) -> List[CallCandidate]:
    """Find call-like expressions, first occurrence of each callee name only.

    ``skip`` drops matches by offset before the name is counted as seen.
    """
    seen: Set[str] = set()
    candidates = []
    for match in CALL_PATTERN.finditer(text):
        group = "method" if match.group("method") else "bare"
        name = match.group(group)
        if name in seen or (skip is not None and skip(match.start(group))):
            continue
        seen.add(name)
        candidates.append(CallCandidate(name=name, offset=match.start(group)))
    return candidates


def find_enclosing_callable(
    symbols: Iterable[DocumentSymbol],
    target: Range | Position,
) -> Optional[tuple[DocumentSymbol, tuple]]:
    """Smallest function/method symbol containing ``target``, with its ancestors."""
    best = None
    for symbol, ancestors in walk_symbols(list(symbols)):
        if not symbol.is_callable or not symbol.range.contains(target):
            continue
        if best is None or symbol.range.span <= best[0].range.span:
            best = (symbol, ancestors)
    return best


def qualified_name(symbol: DocumentSymbol, ancestors: tuple, uri: str) -> str:
    """Qualify a callable with its nearest class/struct/namespace.

    Falls back to the server's ``containerName`` for flat outlines and to the
    file's base name when there is no container at all.
    """
    for ancestor in reversed(ancestors):
        if ancestor.is_container:
            return f"{ancestor.name}.{symbol.name}"
    if symbol.container_name:
        return f"{symbol.container_name}.{symbol.name}"
    return f"{uri_stem(uri)}.{symbol.name}"


class CallGraphTracer:
    """Build depth-bounded :class:`CallNode` trees."""

    def __init__(self, client: HierarchyClient, max_depth: Optional[int] = None):
        self.client = client
        self.max_depth = client.config.max_call_depth if max_depth is None else max_depth

    async def trace(
        self,
        target: CallTarget,
        depth: int = 0,
        visited: Optional[Set[str]] = None,
    ) -> CallNode:
        """Trace the calls made from ``target``'s body."""
        if visited is None:
            visited = set()
        if depth >= self.max_depth or target.name in visited:
            return CallNode(target.name)
        visited.add(target.name)

        node = CallNode(target.name)
        body = await self.client.read_text(target.uri, target.range)

        def position_of(offset: int) -> Position:
            return offset_to_position(body, offset, target.range.start)

        def on_declared_name(offset: int) -> bool:
            return target.selection_range.contains(position_of(offset))

        for candidate in extract_call_candidates(body, skip=on_declared_name):
            position = position_of(candidate.offset)
            try:
                callee = await self._resolve(target.uri, position, candidate)
            except UnresolvedCallSite as e:
                logger.debug(f"Skipping call site in {target.name}: {e}")
                continue
            node.children.append(await self.trace(callee, depth + 1, visited))
        return node

    async def _resolve(
        self,
        uri: str,
        position: Position,
        candidate: CallCandidate,
    ) -> CallTarget:
        """Resolve one call site; the first location inside a function wins.

        Raises:
            UnresolvedCallSite: when no location maps to a function symbol.
        """
        locations = await self.client.implementations(uri, position)
        if not locations:
            raise UnresolvedCallSite(f"no implementation for {candidate.name!r}")
        for location in locations:
            target = await self.target_for(location)
            if target is not None:
                return target
        raise UnresolvedCallSite(f"no enclosing function for {candidate.name!r}")

    async def target_for(self, location: Location) -> Optional[CallTarget]:
        """Map a resolved location to the function symbol enclosing it."""
        try:
            document = await self.client.open_document(location.uri)
        except (OSError, ValueError) as e:
            logger.debug(f"Cannot open {location.uri}: {e}")
            return None
        found = find_enclosing_callable(document.symbols, location.range)
        if found is None:
            return None
        symbol, ancestors = found
        return CallTarget(
            name=qualified_name(symbol, ancestors, location.uri),
            uri=location.uri,
            range=symbol.range,
            selection_range=symbol.selection_range,
        )

    async def trace_at(self, file: str | Path, position: Position) -> Optional[CallNode]:
        """Trace from the function containing a cursor position.

        Returns None (after logging) when the cursor is not inside a function.

        Raises:
            CapabilityUnsupported: if implementation or outline queries are unsupported.
        """
        self.client.require(CAPABILITY_IMPLEMENTATION, CAPABILITY_DOCUMENT_SYMBOL)
        uri = path_to_uri(file)
        root = await self.target_for(Location(uri, Range(position, position)))
        if root is None:
            logger.info(f"No function found at {file}:{position.line + 1}:{position.character + 1}")
            return None
        return await self.trace(root)
