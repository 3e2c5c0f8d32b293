"""
Output formatting with Rich console.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.theme import Theme


# Custom theme for lspgraph CLI
custom_theme = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "red",
    "success": "green",
})


class ConsoleOutput:
    """Console output with Rich formatting.

    Status messages go to stderr so diagram text on stdout stays pipeable.
    """

    def __init__(self):
        self.console = Console(theme=custom_theme, stderr=True)

    def print_error(self, text: str):
        """Print error text."""
        self.console.print(f"[error]Error:[/error] {escape(text)}")

    def print_success(self, text: str):
        """Print success text."""
        self.console.print(f"[success]Success:[/success] {escape(text)}")

    def print_warning(self, text: str):
        """Print warning text."""
        self.console.print(f"[warning]Warning:[/warning] {escape(text)}")

    def print_info(self, text: str):
        """Print info text."""
        self.console.print(f"[info]Info:[/info] {escape(text)}")

    def emit(self, text: str, output: Optional[Path] = None):
        """Write plain result text to ``output`` or stdout, unstyled."""
        if output is not None:
            output.write_text(text + "\n", encoding="utf-8")
            self.print_success(f"Wrote {output}")
        else:
            sys.stdout.write(text + "\n")
            sys.stdout.flush()
