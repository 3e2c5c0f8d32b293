"""Core data models shared by the hierarchy client, builders and renderers.

Positions and ranges follow the Language Server Protocol: zero-based lines
and characters. Everything here is plain data; nothing talks to the server.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from typing import Any, Callable, Dict, Iterator, List, Optional

from lspgraph.config.defaults import UNKNOWN_NAME


class SymbolKind(IntEnum):
    """LSP ``SymbolKind`` values."""
    FILE = 1
    MODULE = 2
    NAMESPACE = 3
    PACKAGE = 4
    CLASS = 5
    METHOD = 6
    PROPERTY = 7
    FIELD = 8
    CONSTRUCTOR = 9
    ENUM = 10
    INTERFACE = 11
    FUNCTION = 12
    VARIABLE = 13
    CONSTANT = 14
    STRING = 15
    NUMBER = 16
    BOOLEAN = 17
    ARRAY = 18
    OBJECT = 19
    KEY = 20
    NULL = 21
    ENUM_MEMBER = 22
    STRUCT = 23
    EVENT = 24
    OPERATOR = 25
    TYPE_PARAMETER = 26


# Symbols a call trace can recurse into
CALLABLE_KINDS = frozenset({SymbolKind.FUNCTION, SymbolKind.METHOD, SymbolKind.CONSTRUCTOR})

# Symbols that qualify a callable's name
CONTAINER_KINDS = frozenset({
    SymbolKind.CLASS,
    SymbolKind.STRUCT,
    SymbolKind.NAMESPACE,
    SymbolKind.INTERFACE,
})


class HierarchyMode(Enum):
    """Which directions a type graph expansion follows."""
    ANCESTORS = "ancestors"
    DESCENDANTS = "descendants"
    BOTH = "both"

    @property
    def follows_supertypes(self) -> bool:
        return self in (HierarchyMode.ANCESTORS, HierarchyMode.BOTH)

    @property
    def follows_subtypes(self) -> bool:
        return self in (HierarchyMode.DESCENDANTS, HierarchyMode.BOTH)


@dataclass(frozen=True, order=True)
class Position:
    line: int
    character: int

    @classmethod
    def from_lsp(cls, data: Dict[str, Any]) -> "Position":
        return cls(line=int(data.get("line", 0)), character=int(data.get("character", 0)))

    def to_lsp(self) -> Dict[str, int]:
        return {"line": self.line, "character": self.character}


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position

    @classmethod
    def from_lsp(cls, data: Optional[Dict[str, Any]]) -> "Range":
        data = data or {}
        return cls(
            start=Position.from_lsp(data.get("start") or {}),
            end=Position.from_lsp(data.get("end") or {}),
        )

    def to_lsp(self) -> Dict[str, Any]:
        return {"start": self.start.to_lsp(), "end": self.end.to_lsp()}

    def contains(self, other: "Range | Position") -> bool:
        """Inclusive containment of a position or a whole range."""
        if isinstance(other, Position):
            return self.start <= other <= self.end
        return self.start <= other.start and other.end <= self.end

    @property
    def span(self) -> tuple[int, int]:
        """Sort key for "smallest enclosing" comparisons."""
        return (
            self.end.line - self.start.line,
            self.end.character - self.start.character,
        )


@dataclass(frozen=True)
class Location:
    """Uniform ``{uri, range}`` result of a resolution query."""
    uri: str
    range: Range

    @classmethod
    def from_lsp(cls, data: Dict[str, Any]) -> Optional["Location"]:
        """Normalize a ``Location`` or ``LocationLink`` payload.

        Returns None when the payload carries no target URI.
        """
        if not isinstance(data, dict):
            return None
        if "targetUri" in data:
            target = data.get("targetSelectionRange") or data.get("targetRange")
            return cls(uri=data["targetUri"], range=Range.from_lsp(target))
        if "uri" in data:
            return cls(uri=data["uri"], range=Range.from_lsp(data.get("range")))
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"uri": self.uri, "range": self.range.to_lsp()}


@dataclass(frozen=True)
class HierarchyNode:
    """One type, class or interface known to the language server.

    ``parents`` / ``children`` are only populated when the server resolved
    them up front (clangd's ``resolve`` levels); ``None`` means "not provided".
    ``raw`` keeps the original payload so it can be echoed back in
    ``typeHierarchy/supertypes`` and ``typeHierarchy/subtypes`` requests.
    """

    name: str
    kind: int = SymbolKind.CLASS
    uri: str = ""
    range: Range = field(default_factory=lambda: Range(Position(0, 0), Position(0, 0)))
    selection_range: Range = field(default_factory=lambda: Range(Position(0, 0), Position(0, 0)))
    detail: Optional[str] = None
    parents: Optional[List["HierarchyNode"]] = None
    children: Optional[List["HierarchyNode"]] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_lsp(cls, data: Dict[str, Any]) -> "HierarchyNode":
        parents = data.get("parents")
        children = data.get("children")
        return cls(
            name=data.get("name") or UNKNOWN_NAME,
            kind=int(data.get("kind", SymbolKind.CLASS)),
            uri=data.get("uri", ""),
            range=Range.from_lsp(data.get("range")),
            selection_range=Range.from_lsp(data.get("selectionRange") or data.get("range")),
            detail=data.get("detail"),
            parents=[cls.from_lsp(p) for p in parents] if parents is not None else None,
            children=[cls.from_lsp(c) for c in children] if children is not None else None,
            raw=dict(data),
        )

    def to_lsp(self) -> Dict[str, Any]:
        """Payload to send back to the server for follow-up queries."""
        if self.raw:
            return self.raw
        item: Dict[str, Any] = {
            "name": self.name,
            "kind": int(self.kind),
            "uri": self.uri,
            "range": self.range.to_lsp(),
            "selectionRange": self.selection_range.to_lsp(),
        }
        if self.detail:
            item["detail"] = self.detail
        return item

    def without_children(self) -> "HierarchyNode":
        """Ancestors-only view of this node."""
        return replace(self, children=None)

    def without_parents(self) -> "HierarchyNode":
        """Descendants-only view of this node."""
        return replace(self, parents=None)


# Identity used for visited sets and graph keys
NodeIdentity = Callable[[HierarchyNode], str]


def name_identity(node: HierarchyNode) -> str:
    """Default node identity: the bare name.

    Same-named types in different scopes collapse into one node.
    """
    return node.name or UNKNOWN_NAME


@dataclass(frozen=True)
class TypeEdge:
    """Inheritance edge, ``parent <|-- child``."""
    parent: str
    child: str


@dataclass
class TypeGraph:
    """Materialized type hierarchy: node arena keyed by identity plus edges."""

    root: str
    focus: Optional[str] = None
    nodes: Dict[str, HierarchyNode] = field(default_factory=dict)
    edges: List[TypeEdge] = field(default_factory=list)

    def __post_init__(self):
        if self.focus is None:
            self.focus = self.root

    def add_node(self, key: str, node: HierarchyNode) -> None:
        """Register a node; the first instance seen for a key is kept."""
        self.nodes.setdefault(key, node)

    def add_edge(self, parent: str, child: str) -> bool:
        """Record ``parent <|-- child`` once.

        The exact reverse of a recorded edge is dropped too, since it can
        only close a cycle. Returns True if the edge was added.
        """
        edge = TypeEdge(parent, child)
        if edge in self.edges or TypeEdge(child, parent) in self.edges:
            return False
        self.edges.append(edge)
        return True

    @property
    def labels(self) -> List[str]:
        """Node labels in first-seen order."""
        return list(self.nodes)

    def supertypes_of(self, key: str) -> List[str]:
        return [e.parent for e in self.edges if e.child == key]

    def subtypes_of(self, key: str) -> List[str]:
        return [e.child for e in self.edges if e.parent == key]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root": self.root,
            "focus": self.focus,
            "nodes": [
                {
                    "name": key,
                    "detail": node.detail,
                    "kind": int(node.kind),
                    "uri": node.uri,
                }
                for key, node in self.nodes.items()
            ],
            "edges": [{"parent": e.parent, "child": e.child} for e in self.edges],
        }


@dataclass
class DocumentSymbol:
    """Entry of a document's symbol outline."""
    name: str
    kind: int
    range: Range
    selection_range: Range
    children: List["DocumentSymbol"] = field(default_factory=list)
    container_name: Optional[str] = None

    @classmethod
    def from_lsp(cls, data: Dict[str, Any]) -> "DocumentSymbol":
        """Build from a ``DocumentSymbol`` or flat ``SymbolInformation``."""
        if "location" in data:
            rng = Range.from_lsp((data.get("location") or {}).get("range"))
            return cls(
                name=data.get("name") or UNKNOWN_NAME,
                kind=int(data.get("kind", 0)),
                range=rng,
                selection_range=rng,
                container_name=data.get("containerName") or None,
            )
        return cls(
            name=data.get("name") or UNKNOWN_NAME,
            kind=int(data.get("kind", 0)),
            range=Range.from_lsp(data.get("range")),
            selection_range=Range.from_lsp(data.get("selectionRange") or data.get("range")),
            children=[cls.from_lsp(c) for c in data.get("children") or []],
        )

    @property
    def is_callable(self) -> bool:
        return self.kind in CALLABLE_KINDS

    @property
    def is_container(self) -> bool:
        return self.kind in CONTAINER_KINDS


def walk_symbols(
    symbols: List[DocumentSymbol],
    ancestors: tuple = (),
) -> Iterator[tuple[DocumentSymbol, tuple]]:
    """Yield ``(symbol, ancestors)`` pairs depth-first."""
    for symbol in symbols:
        yield symbol, ancestors
        yield from walk_symbols(symbol.children, ancestors + (symbol,))


@dataclass(frozen=True)
class CallTarget:
    """A resolved function body the tracer can descend into."""
    name: str
    uri: str
    range: Range
    selection_range: Range


@dataclass
class CallNode:
    """A resolved function/method and its distinct resolved callees."""
    name: str
    children: List["CallNode"] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def depth(self) -> int:
        """Number of nested levels below this node."""
        if not self.children:
            return 0
        return 1 + max(child.depth() for child in self.children)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "children": [c.to_dict() for c in self.children]}
