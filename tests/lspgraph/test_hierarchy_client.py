"""Tests for hierarchy_client.py module."""

import pytest

from lspgraph.config import LspGraphConfig, TYPE_HIERARCHY_METHOD_CLANGD
from lspgraph.hierarchy_client import CapabilityUnsupported, HierarchyClient
from lspgraph.lsp_session import LspRequestError, ServiceUnavailable
from lspgraph.models import HierarchyNode, Location, Position, Range

from fakes import FakeServer, type_item


def _rng(line, start, end):
    return {"start": {"line": line, "character": start}, "end": {"line": line, "character": end}}


class TestCapabilityGate:
    """Tests for server availability and capability checks."""

    def test_no_server(self, config):
        client = HierarchyClient(None, config)
        with pytest.raises(ServiceUnavailable):
            client.supports("typeHierarchyProvider")

    def test_server_not_running(self, config):
        server = FakeServer()
        server.is_running = False
        with pytest.raises(ServiceUnavailable):
            HierarchyClient(server, config).require("typeHierarchyProvider")

    def test_missing_capability_named(self, client_for):
        client = client_for(FakeServer(capabilities={"typeHierarchyProvider": True}))
        with pytest.raises(CapabilityUnsupported) as exc_info:
            client.require("typeHierarchyProvider", "implementationProvider")
        assert exc_info.value.capability == "implementationProvider"
        assert "implementationProvider" in str(exc_info.value)

    def test_options_object_counts_as_supported(self, client_for):
        client = client_for(FakeServer(capabilities={"typeHierarchyProvider": {"workDoneProgress": False}}))
        assert client.supports("typeHierarchyProvider")

    @pytest.mark.asyncio
    async def test_type_hierarchy_checks_before_sending(self, client_for):
        server = FakeServer(capabilities={})
        with pytest.raises(CapabilityUnsupported):
            await client_for(server).type_hierarchy("file:///a.h", Position(0, 0))
        assert server.requests == []


class TestTypeHierarchy:
    """Tests for the type hierarchy lookup and relationship queries."""

    @pytest.mark.asyncio
    async def test_standard_request(self, client_for):
        server = FakeServer({"textDocument/prepareTypeHierarchy": lambda p: [type_item("Shape"), type_item("Other")]})
        node = await client_for(server).type_hierarchy("file:///a.h", Position(3, 7))

        assert node.name == "Shape"
        method, params = server.requests[0]
        assert method == "textDocument/prepareTypeHierarchy"
        assert params == {"textDocument": {"uri": "file:///a.h"}, "position": {"line": 3, "character": 7}}

    @pytest.mark.asyncio
    async def test_clangd_request_carries_resolve_and_direction(self):
        config = LspGraphConfig(type_hierarchy_method=TYPE_HIERARCHY_METHOD_CLANGD, type_hierarchy_resolve=3)
        item = dict(type_item("Derived"), parents=[type_item("Base")])
        server = FakeServer({"textDocument/typeHierarchy": lambda p: item})

        node = await HierarchyClient(server, config).type_hierarchy("file:///a.h", Position(0, 0))

        assert [p.name for p in node.parents] == ["Base"]
        _, params = server.requests[0]
        assert params["resolve"] == 3
        assert params["direction"] == 2

    @pytest.mark.asyncio
    async def test_no_type_at_position(self, client_for):
        server = FakeServer({"textDocument/prepareTypeHierarchy": lambda p: None})
        assert await client_for(server).type_hierarchy("file:///a.h", Position(0, 0)) is None

    @pytest.mark.asyncio
    async def test_supertypes_echo_item(self, client_for):
        server = FakeServer({"typeHierarchy/supertypes": lambda p: [type_item("Base")]})
        item = dict(type_item("Derived"), data={"symbolID": "42"})

        result = await client_for(server).supertypes(HierarchyNode.from_lsp(item))

        assert [n.name for n in result] == ["Base"]
        assert server.requests == [("typeHierarchy/supertypes", {"item": item})]

    @pytest.mark.asyncio
    async def test_subtypes_null_is_empty(self, client_for):
        server = FakeServer({"typeHierarchy/subtypes": lambda p: None})
        assert await client_for(server).subtypes(HierarchyNode("Leaf")) == []

    @pytest.mark.asyncio
    async def test_error_response_is_no_relationship(self, client_for):
        def fail(params):
            raise LspRequestError("typeHierarchy/supertypes", -32603, "boom")

        server = FakeServer({"typeHierarchy/supertypes": fail})
        assert await client_for(server).supertypes(HierarchyNode("A")) == []


class TestImplementations:
    """Tests for implementation result normalization."""

    @pytest.mark.asyncio
    async def test_single_location(self, client_for):
        server = FakeServer({"textDocument/implementation": lambda p: {"uri": "file:///b.c", "range": _rng(4, 5, 8)}})
        result = await client_for(server).implementations("file:///a.c", Position(1, 2))
        assert result == [Location("file:///b.c", Range(Position(4, 5), Position(4, 8)))]

    @pytest.mark.asyncio
    async def test_location_links(self, client_for):
        links = [
            {"targetUri": "file:///b.c", "targetRange": _rng(4, 0, 30), "targetSelectionRange": _rng(4, 5, 8)},
            {"originSelectionRange": _rng(0, 0, 1)},
        ]
        server = FakeServer({"textDocument/implementation": lambda p: links})
        result = await client_for(server).implementations("file:///a.c", Position(1, 2))
        assert result == [Location("file:///b.c", Range(Position(4, 5), Position(4, 8)))]

    @pytest.mark.asyncio
    async def test_null(self, client_for):
        server = FakeServer({"textDocument/implementation": lambda p: None})
        assert await client_for(server).implementations("file:///a.c", Position(0, 0)) == []


class TestDocuments:
    """Tests for document reading, outlines and didOpen bookkeeping."""

    @pytest.mark.asyncio
    async def test_read_text_range(self, tmp_path, client_for):
        path = tmp_path / "a.c"
        path.write_text("line0\nline1 body\n", encoding="utf-8")
        client = client_for(FakeServer())
        text = await client.read_text(path.as_uri(), Range(Position(1, 6), Position(1, 10)))
        assert text == "body"

    @pytest.mark.asyncio
    async def test_did_open_sent_once(self, tmp_path, client_for):
        path = tmp_path / "widget.cpp"
        path.write_text("struct W {};\n", encoding="utf-8")
        server = FakeServer({"textDocument/documentSymbol": lambda p: []})
        client = client_for(server)

        await client.open_document(path.as_uri())
        document = await client.open_document(path.as_uri())

        assert document.text == "struct W {};\n"
        assert len(server.notifications) == 1
        method, params = server.notifications[0]
        assert method == "textDocument/didOpen"
        assert params["textDocument"]["languageId"] == "cpp"
        assert params["textDocument"]["version"] == 1

    @pytest.mark.asyncio
    async def test_opened_text_is_not_reread(self, tmp_path, client_for):
        path = tmp_path / "a.c"
        path.write_text("void f() {}\n", encoding="utf-8")
        client = client_for(FakeServer({"textDocument/documentSymbol": lambda p: []}))

        await client.ensure_open(path.as_uri())
        path.write_text("changed on disk\n", encoding="utf-8")

        assert await client.ensure_open(path.as_uri()) == "void f() {}\n"
        assert await client.read_text(path.as_uri(), Range(Position(0, 5), Position(0, 6))) == "f"

    @pytest.mark.asyncio
    async def test_document_symbols_flat(self, client_for):
        flat = [{
            "name": "run",
            "kind": 12,
            "containerName": "app",
            "location": {"uri": "file:///a.c", "range": _rng(2, 0, 10)},
        }]
        server = FakeServer({"textDocument/documentSymbol": lambda p: flat})
        symbols = await client_for(server).document_symbols("file:///a.c")
        assert symbols[0].name == "run"
        assert symbols[0].container_name == "app"
