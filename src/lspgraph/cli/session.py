"""Language server session shared by the CLI commands."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from lspgraph.config import LspGraphConfig
from lspgraph.hierarchy_client import HierarchyClient
from lspgraph.lsp_session import LanguageServer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def connect(config: LspGraphConfig) -> AsyncIterator[HierarchyClient]:
    """Start the configured server and yield a client bound to it."""
    server = LanguageServer(
        config.server_command,
        root=config.workspace,
        shutdown_timeout=config.shutdown_timeout,
    )
    logger.debug(f"Connecting to {' '.join(config.server_command)} in {server.root}")
    async with server:
        yield HierarchyClient(server, config)
