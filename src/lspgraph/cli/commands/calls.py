#!/usr/bin/env python
"""Calls command - Render the call tree of the function at a cursor position."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from lspgraph.call_graph import CallGraphTracer
from lspgraph.cli.formatting.output import ConsoleOutput
from lspgraph.cli.session import connect
from lspgraph.config import LspGraphConfig
from lspgraph.diagram import render_call_tree, wrap_document
from lspgraph.hierarchy_client import CapabilityUnsupported
from lspgraph.lsp_session import LspGraphError
from lspgraph.models import Position

logger = logging.getLogger(__name__)


async def run(
    file: Path,
    line: int,
    column: int,
    config: LspGraphConfig,
    max_depth: Optional[int] = None,
    fenced: bool = False,
    json_output: bool = False,
    output: Optional[Path] = None,
) -> int:
    """Run the calls command. ``line``/``column`` are 1-based."""
    console = ConsoleOutput()
    position = Position(line - 1, column - 1)

    try:
        async with connect(config) as client:
            tree = await CallGraphTracer(client, max_depth=max_depth).trace_at(file, position)
    except CapabilityUnsupported as e:
        console.print_warning(f"{e}; cannot trace calls.")
        return 1
    except LspGraphError as e:
        logger.debug(f"Command failed: {e}", exc_info=True)
        console.print_error(str(e))
        return 1

    if tree is None:
        console.print_info("No function found at the given position")
        return 0

    if json_output:
        text = json.dumps(tree.to_dict(), indent=2)
    else:
        text = wrap_document("sequence", render_call_tree(tree), fenced=fenced)
    console.emit(text, output)
    return 0
