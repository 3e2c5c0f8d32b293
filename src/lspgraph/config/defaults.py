"""Default configuration values for lspgraph.

This module centralizes the hard-coded values (depth bounds, request
methods, protocol constants, timeouts) into a single location. All modules
should import these constants instead of hard-coding values.

Usage:
    from lspgraph.config import (
        CALL_TRACE_MAX_DEPTH,
        TYPE_HIERARCHY_METHOD_STANDARD,
    )
"""

from __future__ import annotations

# =============================================================================
# Language Server Defaults
# =============================================================================

DEFAULT_SERVER_COMMAND = "clangd"

# Only the shutdown handshake is bounded; requests have no timeout
SERVER_SHUTDOWN_TIMEOUT_SECONDS = 5.0

JSONRPC_VERSION = "2.0"


# =============================================================================
# Type Hierarchy Defaults
# =============================================================================

# LSP 3.17 request, returns TypeHierarchyItem[]
TYPE_HIERARCHY_METHOD_STANDARD = "textDocument/prepareTypeHierarchy"
# clangd extension, returns one item with pre-resolved parents/children
TYPE_HIERARCHY_METHOD_CLANGD = "textDocument/typeHierarchy"
TYPE_HIERARCHY_METHODS = (TYPE_HIERARCHY_METHOD_STANDARD, TYPE_HIERARCHY_METHOD_CLANGD)
TYPE_HIERARCHY_DEFAULT_METHOD = TYPE_HIERARCHY_METHOD_STANDARD

TYPE_HIERARCHY_SUPERTYPES_METHOD = "typeHierarchy/supertypes"
TYPE_HIERARCHY_SUBTYPES_METHOD = "typeHierarchy/subtypes"

# clangd extension parameters
TYPE_HIERARCHY_RESOLVE_LEVELS = 5
# TypeHierarchyDirection: 0 children, 1 parents, 2 both
TYPE_HIERARCHY_DIRECTION_BOTH = 2


# =============================================================================
# Call Trace Defaults
# =============================================================================

CALL_TRACE_MAX_DEPTH = 5

IMPLEMENTATION_METHOD = "textDocument/implementation"
DOCUMENT_SYMBOL_METHOD = "textDocument/documentSymbol"


# =============================================================================
# Capabilities
# =============================================================================

CAPABILITY_TYPE_HIERARCHY = "typeHierarchyProvider"
CAPABILITY_IMPLEMENTATION = "implementationProvider"
CAPABILITY_DOCUMENT_SYMBOL = "documentSymbolProvider"


# =============================================================================
# Diagram Defaults
# =============================================================================

CLASS_DIAGRAM_HEADER = "classDiagram"
SEQUENCE_DIAGRAM_HEADER = "sequenceDiagram"
CALL_MESSAGE_LABEL = "call"
UNKNOWN_NAME = "<unknown>"


# =============================================================================
# Document Language Ids (didOpen)
# =============================================================================

LANGUAGE_IDS = {
    ".c": "c",
    ".h": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".cxx": "cpp",
    ".hh": "cpp",
    ".hpp": "cpp",
    ".hxx": "cpp",
    ".m": "objective-c",
    ".mm": "objective-cpp",
    ".cu": "cuda-cpp",
    ".java": "java",
    ".cs": "csharp",
    ".ts": "typescript",
    ".tsx": "typescriptreact",
    ".js": "javascript",
    ".py": "python",
    ".go": "go",
    ".rs": "rust",
}
DEFAULT_LANGUAGE_ID = "plaintext"
