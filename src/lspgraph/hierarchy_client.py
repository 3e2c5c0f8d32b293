"""Request/response wrapper around the language server's hierarchy queries.

Shapes requests for the four relationship operations (type hierarchy lookup,
supertypes, subtypes, implementation) plus the document outline and text the
call tracer needs. No retries: a failed or empty response means "no
relationship" for hierarchy queries and "unresolvable call" for
implementation queries.

Operations that need a server capability check it up front with
:meth:`HierarchyClient.require`; a missing capability is fatal for the whole
operation rather than a reason to send requests that cannot succeed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

import aiofiles

from lspgraph.config import (
    CAPABILITY_DOCUMENT_SYMBOL,
    CAPABILITY_IMPLEMENTATION,
    CAPABILITY_TYPE_HIERARCHY,
    DOCUMENT_SYMBOL_METHOD,
    IMPLEMENTATION_METHOD,
    TYPE_HIERARCHY_DIRECTION_BOTH,
    TYPE_HIERARCHY_METHOD_CLANGD,
    TYPE_HIERARCHY_SUBTYPES_METHOD,
    TYPE_HIERARCHY_SUPERTYPES_METHOD,
    LspGraphConfig,
    get_config,
)
from lspgraph.documents import language_id_for, slice_text, uri_to_path
from lspgraph.lsp_session import LspGraphError, LspRequestError, ServiceUnavailable
from lspgraph.models import DocumentSymbol, HierarchyNode, Location, Position, Range

logger = logging.getLogger(__name__)


class CapabilityUnsupported(LspGraphError):
    """The language server does not advertise a capability an operation needs."""

    def __init__(self, capability: str, server: str = "language server"):
        super().__init__(f"The {server} does not support {capability}")
        self.capability = capability


UnsupportedCapability = CapabilityUnsupported


class ServerConnection(Protocol):
    """What the client needs from a transport (see ``LanguageServer``)."""

    capabilities: Dict[str, Any]

    @property
    def is_running(self) -> bool: ...

    async def request(self, method: str, params: Any) -> Any: ...

    async def notify(self, method: str, params: Any) -> None: ...


@dataclass
class OpenDocument:
    """A document the server has been told about, with its outline."""
    uri: str
    text: str
    symbols: List[DocumentSymbol] = field(default_factory=list)


def _as_list(result: Any) -> List[Any]:
    if result is None:
        return []
    if isinstance(result, list):
        return result
    return [result]


class HierarchyClient:
    """Thin async client for hierarchy, implementation and outline queries."""

    def __init__(
        self,
        server: Optional[ServerConnection],
        config: Optional[LspGraphConfig] = None,
    ):
        self.server = server
        self.config = config or get_config()
        self._texts: Dict[str, str] = {}

    # ---------- capability gate ----------

    def _connection(self) -> ServerConnection:
        if self.server is None or not self.server.is_running:
            raise ServiceUnavailable("The language server is not available or not initialized")
        return self.server

    def supports(self, capability: str) -> bool:
        return bool(self._connection().capabilities.get(capability))

    def require(self, *capabilities: str) -> None:
        """Check capabilities before an operation issues its first query.

        Raises:
            ServiceUnavailable: when there is no running server.
            CapabilityUnsupported: naming the first missing capability.
        """
        for capability in capabilities:
            if not self.supports(capability):
                raise CapabilityUnsupported(capability)

    async def _query(self, method: str, params: Any) -> Any:
        """Send one request, absorbing JSON-RPC errors as "no data"."""
        try:
            return await self._connection().request(method, params)
        except LspRequestError as e:
            logger.warning(f"{method} returned an error, treating as empty: {e}")
            return None

    # ---------- type hierarchy ----------

    async def type_hierarchy(self, uri: str, position: Position) -> Optional[HierarchyNode]:
        """Look up the type at a document position; None when there is none."""
        self.require(CAPABILITY_TYPE_HIERARCHY)
        method = self.config.type_hierarchy_method
        params: Dict[str, Any] = {
            "textDocument": {"uri": uri},
            "position": position.to_lsp(),
        }
        if method == TYPE_HIERARCHY_METHOD_CLANGD:
            params["resolve"] = self.config.type_hierarchy_resolve
            params["direction"] = TYPE_HIERARCHY_DIRECTION_BOTH

        items = [i for i in _as_list(await self._query(method, params)) if isinstance(i, dict)]
        if not items:
            return None
        return HierarchyNode.from_lsp(items[0])

    async def supertypes(self, node: HierarchyNode) -> List[HierarchyNode]:
        return await self._related(TYPE_HIERARCHY_SUPERTYPES_METHOD, node)

    async def subtypes(self, node: HierarchyNode) -> List[HierarchyNode]:
        return await self._related(TYPE_HIERARCHY_SUBTYPES_METHOD, node)

    async def _related(self, method: str, node: HierarchyNode) -> List[HierarchyNode]:
        result = await self._query(method, {"item": node.to_lsp()})
        related = [HierarchyNode.from_lsp(i) for i in _as_list(result) if isinstance(i, dict)]
        logger.debug(f"{method} {node.name}: {len(related)} result(s)")
        return related

    # ---------- implementation ----------

    async def implementations(self, uri: str, position: Position) -> List[Location]:
        """Resolve a call site to zero or more definition locations."""
        self.require(CAPABILITY_IMPLEMENTATION)
        result = await self._query(
            IMPLEMENTATION_METHOD,
            {"textDocument": {"uri": uri}, "position": position.to_lsp()},
        )
        locations = []
        for entry in _as_list(result):
            location = Location.from_lsp(entry)
            if location is not None:
                locations.append(location)
        return locations

    # ---------- documents ----------

    async def document_symbols(self, uri: str) -> List[DocumentSymbol]:
        self.require(CAPABILITY_DOCUMENT_SYMBOL)
        result = await self._query(DOCUMENT_SYMBOL_METHOD, {"textDocument": {"uri": uri}})
        return [DocumentSymbol.from_lsp(s) for s in _as_list(result) if isinstance(s, dict)]

    async def read_text(self, uri: str, rng: Optional[Range] = None) -> str:
        """Text of a document, optionally only the part inside ``rng``.

        Opened documents are served from the text sent with ``didOpen``;
        anything else is read from disk.
        """
        text = self._texts.get(uri)
        if text is None:
            async with aiofiles.open(uri_to_path(uri), "r", encoding="utf-8", errors="replace") as f:
                text = await f.read()
        return slice_text(text, rng)

    async def open_document(self, uri: str) -> OpenDocument:
        """Announce a document to the server (once) and load its outline."""
        text = await self.ensure_open(uri)
        symbols = await self.document_symbols(uri)
        return OpenDocument(uri=uri, text=text, symbols=symbols)

    async def ensure_open(self, uri: str) -> str:
        """Send ``textDocument/didOpen`` the first time a URI is used."""
        if uri in self._texts:
            return self._texts[uri]
        text = await self.read_text(uri)
        await self._connection().notify(
            "textDocument/didOpen",
            {
                "textDocument": {
                    "uri": uri,
                    "languageId": language_id_for(uri_to_path(uri)),
                    "version": 1,
                    "text": text,
                }
            },
        )
        self._texts[uri] = text
        return text
