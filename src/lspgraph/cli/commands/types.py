#!/usr/bin/env python
"""Types command - Render the type hierarchy at a cursor position."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from lspgraph.cli.formatting.output import ConsoleOutput
from lspgraph.cli.session import connect
from lspgraph.config import LspGraphConfig
from lspgraph.diagram import render_graph, render_outline, wrap_document
from lspgraph.hierarchy_client import CapabilityUnsupported
from lspgraph.lsp_session import LspGraphError
from lspgraph.models import HierarchyMode, Position
from lspgraph.type_graph import TypeGraphBuilder

logger = logging.getLogger(__name__)


async def run(
    file: Path,
    line: int,
    column: int,
    config: LspGraphConfig,
    mode: str = HierarchyMode.BOTH.value,
    from_root: bool = False,
    outline: bool = False,
    fenced: bool = False,
    json_output: bool = False,
    output: Optional[Path] = None,
) -> int:
    """Run the types command. ``line``/``column`` are 1-based."""
    console = ConsoleOutput()
    position = Position(line - 1, column - 1)

    try:
        async with connect(config) as client:
            graph = await TypeGraphBuilder(client).build_at(
                file, position, HierarchyMode(mode), from_root=from_root
            )
    except CapabilityUnsupported as e:
        console.print_warning(f"{e}; cannot build a type hierarchy.")
        return 1
    except LspGraphError as e:
        logger.debug(f"Command failed: {e}", exc_info=True)
        console.print_error(str(e))
        return 1

    if graph is None:
        console.print_info("No type hierarchy available")
        return 0

    if json_output:
        text = json.dumps(graph.to_dict(), indent=2)
    elif outline:
        text = render_outline(graph)
    else:
        text = wrap_document("class", render_graph(graph), fenced=fenced)
    console.emit(text, output)
    return 0
