#!/usr/bin/env python
from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import shlex
import sys
from pathlib import Path

from dotenv import load_dotenv

from lspgraph import __version__
from lspgraph.config import TYPE_HIERARCHY_METHODS, LspGraphConfig, get_config
from lspgraph.models import HierarchyMode


def _repo_root() -> Path:
    return Path.cwd().resolve()


def _add_position_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("file", type=Path, help="Source file")
    parser.add_argument("line", type=int, help="Line number (1-based)")
    parser.add_argument("column", type=int, help="Column number (1-based)")
    parser.add_argument("--server", help="Language server command line (default: clangd)")
    parser.add_argument("--workspace", type=Path, help="Workspace root passed to the server")
    parser.add_argument("--fenced", action="store_true", help="Wrap the diagram in a ```mermaid block")
    parser.add_argument("--json", action="store_true", help="JSON output")
    parser.add_argument("--output", "-o", type=Path, help="Write the result to a file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lspgraph",
        description="lspgraph - Type hierarchy and call diagrams from a language server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    types_p = subparsers.add_parser("types", help="Class diagram of the type at a position")
    _add_position_args(types_p)
    types_p.add_argument(
        "--mode",
        choices=[m.value for m in HierarchyMode],
        default=HierarchyMode.BOTH.value,
        help="Directions to expand (default: both)",
    )
    types_p.add_argument("--from-root", action="store_true", help="Start from the first-parent root")
    types_p.add_argument("--outline", action="store_true", help="Indented text outline instead of a diagram")
    types_p.add_argument(
        "--hierarchy-method",
        choices=TYPE_HIERARCHY_METHODS,
        help="Request used for the initial type lookup",
    )

    calls_p = subparsers.add_parser("calls", help="Sequence diagram of calls from the function at a position")
    _add_position_args(calls_p)
    calls_p.add_argument("--max-depth", type=int, help="Maximum call depth (default: 5)")

    subparsers.add_parser("version", help="Show version")

    help_p = subparsers.add_parser("help", help="Show help for a command")
    help_p.add_argument("subcommand", nargs="?", help="The command to get help for")
    return parser


def _config_from_args(args: argparse.Namespace) -> LspGraphConfig:
    """Command-line flags override environment configuration."""
    overrides = {}
    if args.server:
        overrides["server_command"] = shlex.split(args.server)
    if args.workspace:
        overrides["workspace"] = args.workspace
    if getattr(args, "hierarchy_method", None):
        overrides["type_hierarchy_method"] = args.hierarchy_method
    if getattr(args, "max_depth", None) is not None:
        overrides["max_call_depth"] = args.max_depth
    return dataclasses.replace(get_config(), **overrides)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    load_dotenv(_repo_root() / ".env")

    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("lspgraph").setLevel(
        logging.DEBUG if getattr(args, "verbose", False) else logging.INFO
    )

    if args.command == "help":
        if args.subcommand:
            parser.parse_args([args.subcommand, "--help"])
        else:
            parser.print_help()
        return 0

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "version":
        print(f"lspgraph v{__version__}")
        return 0

    from lspgraph.cli.commands import calls, types
    from lspgraph.cli.formatting.output import ConsoleOutput

    console = ConsoleOutput()
    if not args.file.is_file():
        console.print_error(f"No such file: {args.file}")
        return 1
    if args.line < 1 or args.column < 1:
        console.print_error("Line and column are 1-based")
        return 1

    try:
        config = _config_from_args(args)
    except ValueError as e:
        console.print_error(str(e))
        return 1

    if args.command == "types":
        return asyncio.run(types.run(
            file=args.file,
            line=args.line,
            column=args.column,
            config=config,
            mode=args.mode,
            from_root=args.from_root,
            outline=args.outline,
            fenced=args.fenced,
            json_output=args.json,
            output=args.output,
        ))
    elif args.command == "calls":
        return asyncio.run(calls.run(
            file=args.file,
            line=args.line,
            column=args.column,
            config=config,
            max_depth=args.max_depth,
            fenced=args.fenced,
            json_output=args.json,
            output=args.output,
        ))

    return 0


if __name__ == "__main__":
    sys.exit(main())
