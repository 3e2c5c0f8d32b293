"""Shared fixtures for lspgraph tests."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from lspgraph.config import LspGraphConfig
from lspgraph.hierarchy_client import HierarchyClient

from fakes import FakeServer, SourceProject, type_item


@pytest.fixture
def config() -> LspGraphConfig:
    return LspGraphConfig()


@pytest.fixture
def hierarchy_server():
    """Factory: fake server answering supertypes/subtypes from name maps."""

    def make(
        supertypes: Dict[str, List[str]],
        subtypes: Optional[Dict[str, List[str]]] = None,
        lookup: Optional[Any] = None,
    ) -> FakeServer:
        subtypes = subtypes or {}

        def related(table):
            def handler(params):
                name = params["item"]["name"]
                return [type_item(n) for n in table.get(name, [])]
            return handler

        handlers = {
            "typeHierarchy/supertypes": related(supertypes),
            "typeHierarchy/subtypes": related(subtypes),
            "textDocument/prepareTypeHierarchy": lambda params: lookup,
            "textDocument/typeHierarchy": lambda params: lookup,
        }
        return FakeServer(handlers)

    return make


@pytest.fixture
def client_for(config):
    """Factory: HierarchyClient over a fake server."""

    def make(server: FakeServer) -> HierarchyClient:
        return HierarchyClient(server, config)

    return make


@pytest.fixture
def source_project(tmp_path):
    """Factory for :class:`SourceProject` instances under ``tmp_path``."""

    def make(functions: Dict[str, List[str]], filename: str = "main.c", preamble=()) -> SourceProject:
        return SourceProject(tmp_path, functions, filename, preamble)

    return make
