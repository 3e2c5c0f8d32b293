"""Runtime configuration for lspgraph.

Values come from ``LSPGRAPH_*`` environment variables, falling back to the
constants in :mod:`lspgraph.config.defaults`.
"""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from lspgraph.config.defaults import (
    CALL_TRACE_MAX_DEPTH,
    DEFAULT_SERVER_COMMAND,
    SERVER_SHUTDOWN_TIMEOUT_SECONDS,
    TYPE_HIERARCHY_DEFAULT_METHOD,
    TYPE_HIERARCHY_METHODS,
    TYPE_HIERARCHY_RESOLVE_LEVELS,
)


@dataclass
class LspGraphConfig:
    """Configuration for a graph extraction session."""

    # Language server command line, e.g. ["clangd", "--background-index"]
    server_command: List[str] = field(default_factory=lambda: [DEFAULT_SERVER_COMMAND])
    workspace: Optional[Path] = None

    type_hierarchy_method: str = TYPE_HIERARCHY_DEFAULT_METHOD
    type_hierarchy_resolve: int = TYPE_HIERARCHY_RESOLVE_LEVELS

    max_call_depth: int = CALL_TRACE_MAX_DEPTH
    shutdown_timeout: float = SERVER_SHUTDOWN_TIMEOUT_SECONDS

    def __post_init__(self):
        if not self.server_command:
            raise ValueError("Language server command is empty")
        if self.type_hierarchy_method not in TYPE_HIERARCHY_METHODS:
            raise ValueError(
                f"Unknown type hierarchy method {self.type_hierarchy_method!r}; "
                f"expected one of {', '.join(TYPE_HIERARCHY_METHODS)}"
            )
        if self.max_call_depth < 0:
            raise ValueError("max_call_depth must be >= 0")

    @classmethod
    def from_env(cls) -> "LspGraphConfig":
        """Create config from environment variables."""
        workspace = os.environ.get("LSPGRAPH_WORKSPACE")
        return cls(
            server_command=shlex.split(
                os.environ.get("LSPGRAPH_SERVER_COMMAND", DEFAULT_SERVER_COMMAND)
            ),
            workspace=Path(workspace).expanduser() if workspace else None,
            type_hierarchy_method=os.environ.get(
                "LSPGRAPH_TYPE_HIERARCHY_METHOD", TYPE_HIERARCHY_DEFAULT_METHOD
            ),
            type_hierarchy_resolve=int(os.environ.get(
                "LSPGRAPH_TYPE_HIERARCHY_RESOLVE", str(TYPE_HIERARCHY_RESOLVE_LEVELS))),
            max_call_depth=int(os.environ.get(
                "LSPGRAPH_MAX_CALL_DEPTH", str(CALL_TRACE_MAX_DEPTH))),
            shutdown_timeout=float(os.environ.get(
                "LSPGRAPH_SHUTDOWN_TIMEOUT", str(SERVER_SHUTDOWN_TIMEOUT_SECONDS))),
        )


# Global config instance
_config: Optional[LspGraphConfig] = None


def get_config() -> LspGraphConfig:
    """Get global config, reading the environment on first use."""
    global _config
    if _config is None:
        _config = LspGraphConfig.from_env()
    return _config


def set_config(config: Optional[LspGraphConfig]) -> None:
    """Set global config (``None`` forces a re-read from the environment)."""
    global _config
    _config = config
