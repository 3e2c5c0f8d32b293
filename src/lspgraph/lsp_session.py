"""Language server process and JSON-RPC transport.

Launches a language server over stdio, frames messages with
``Content-Length`` headers and matches responses to requests. One background
reader task dispatches everything the server sends:

- responses resolve the pending request future,
- server-to-client requests (``workspace/configuration``,
  ``window/workDoneProgress/create``, ...) are answered with ``null``,
- notifications are logged and dropped.

Requests have no timeout; a hung server stalls the caller until it cancels.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from lspgraph.config.defaults import (
    JSONRPC_VERSION,
    SERVER_SHUTDOWN_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)


class LspGraphError(Exception):
    """Base class for lspgraph errors."""
    pass


class ServiceUnavailable(LspGraphError):
    """The language server is missing, not initialized, or has exited."""
    pass


class LspRequestError(LspGraphError):
    """The server answered a request with a JSON-RPC error."""

    def __init__(self, method: str, code: int, message: str, data: Any = None):
        super().__init__(f"{method} failed ({code}): {message}")
        self.method = method
        self.code = code
        self.data = data


# ---------- framing ----------

def encode_message(message: Dict[str, Any]) -> bytes:
    """Serialize one JSON-RPC message with its ``Content-Length`` header."""
    body = json.dumps(message, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    header = f"Content-Length: {len(body)}\r\n\r\n".encode("ascii")
    return header + body


async def read_message(reader: asyncio.StreamReader) -> Optional[Dict[str, Any]]:
    """Read one framed message; None on a clean end of stream.

    Raises:
        LspGraphError: on malformed headers or a truncated body.
    """
    content_length: Optional[int] = None
    while True:
        line = await reader.readline()
        if not line:
            if content_length is None:
                return None
            raise LspGraphError("Language server closed stream inside a header block")
        if line in (b"\r\n", b"\n"):
            if content_length is None:
                raise LspGraphError("Missing Content-Length from language server")
            break
        key, _, value = line.decode("ascii").partition(":")
        if key.strip().lower() == "content-length":
            content_length = int(value.strip())

    try:
        body = await reader.readexactly(content_length)
    except asyncio.IncompleteReadError as e:
        raise LspGraphError("Language server closed stream mid-message") from e
    return json.loads(body.decode("utf-8"))


# ---------- client capabilities ----------

def client_capabilities() -> Dict[str, Any]:
    """Capabilities announced in ``initialize``."""
    return {
        "textDocument": {
            "synchronization": {"dynamicRegistration": False},
            "typeHierarchy": {"dynamicRegistration": False},
            "implementation": {"dynamicRegistration": False, "linkSupport": True},
            "documentSymbol": {
                "dynamicRegistration": False,
                "hierarchicalDocumentSymbolSupport": True,
            },
        },
        "workspace": {"configuration": False},
        "window": {"workDoneProgress": False},
    }


class LanguageServer:
    """A language server subprocess speaking LSP over stdio.

    Usage:
        async with LanguageServer(["clangd"], root=Path(".")) as server:
            result = await server.request("textDocument/documentSymbol", params)
    """

    def __init__(
        self,
        command: List[str],
        root: Optional[Path] = None,
        shutdown_timeout: float = SERVER_SHUTDOWN_TIMEOUT_SECONDS,
    ):
        if not command:
            raise ValueError("Language server command is empty")
        self.command = list(command)
        self.root = (root or Path.cwd()).resolve()
        self.shutdown_timeout = shutdown_timeout
        self.capabilities: Dict[str, Any] = {}
        self.server_info: Dict[str, Any] = {}

        self._process: Optional[asyncio.subprocess.Process] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._pending: Dict[int, asyncio.Future] = {}
        self._ids = itertools.count(1)
        self._initialized = False

    @property
    def is_running(self) -> bool:
        """True once ``initialize`` completed and the process and its reader are alive."""
        return (
            self._initialized
            and self._process is not None
            and self._process.returncode is None
            and self._reading
        )

    @property
    def _reading(self) -> bool:
        return self._reader_task is not None and not self._reader_task.done()

    async def __aenter__(self) -> "LanguageServer":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    # ---------- lifecycle ----------

    async def start(self) -> None:
        """Spawn the server and run the ``initialize`` handshake.

        Raises:
            ServiceUnavailable: if the executable cannot be started or dies early.
            LspRequestError: if ``initialize`` is rejected. The process is
                stopped before either error propagates.
        """
        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
                cwd=str(self.root),
            )
        except (FileNotFoundError, PermissionError) as e:
            raise ServiceUnavailable(
                f"Cannot start language server {self.command[0]!r}: {e}"
            ) from e

        logger.debug(f"Started language server {self.command} (pid {self._process.pid})")
        self._reader_task = asyncio.create_task(self._read_loop())

        try:
            result = await self._send_request(
                "initialize",
                {
                    "processId": os.getpid(),
                    "rootUri": self.root.as_uri(),
                    "workspaceFolders": [{"uri": self.root.as_uri(), "name": self.root.name}],
                    "capabilities": client_capabilities(),
                },
            )
            result = result or {}
            self.capabilities = result.get("capabilities") or {}
            self.server_info = result.get("serverInfo") or {}
            await self.notify("initialized", {})
        except BaseException:
            await self.stop()
            raise
        self._initialized = True
        name = self.server_info.get("name", self.command[0])
        version = self.server_info.get("version", "")
        logger.info(f"Language server ready: {name} {version}".rstrip())

    async def stop(self) -> None:
        """Run ``shutdown``/``exit`` and reap the process."""
        process = self._process
        if process is None:
            return
        try:
            if self.is_running:
                await asyncio.wait_for(
                    self._send_request("shutdown", None), timeout=self.shutdown_timeout
                )
                await self.notify("exit", None)
                await asyncio.wait_for(process.wait(), timeout=self.shutdown_timeout)
        except (asyncio.TimeoutError, LspGraphError, ConnectionError) as e:
            logger.warning(f"Language server did not shut down cleanly: {e}")
        finally:
            self._initialized = False
            if process.returncode is None:
                process.kill()
                await process.wait()
            if self._reader_task is not None:
                self._reader_task.cancel()
                try:
                    await self._reader_task
                except asyncio.CancelledError:
                    pass
            self._fail_pending(ServiceUnavailable("Language server stopped"))
            self._process = None
            self._reader_task = None

    # ---------- messaging ----------

    async def request(self, method: str, params: Any) -> Any:
        """Send a request and wait for its result.

        Raises:
            ServiceUnavailable: if the server is not running.
            LspRequestError: if the server returns an error.
        """
        if not self.is_running:
            raise ServiceUnavailable(f"Language server is not running (request {method})")
        return await self._send_request(method, params)

    async def notify(self, method: str, params: Any) -> None:
        await self._write({"jsonrpc": JSONRPC_VERSION, "method": method, "params": params})

    async def _send_request(self, method: str, params: Any) -> Any:
        if not self._reading:
            raise ServiceUnavailable(f"Language server output closed (request {method})")
        request_id = next(self._ids)
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        logger.debug(f"--> {method} #{request_id}")
        try:
            await self._write({
                "jsonrpc": JSONRPC_VERSION,
                "id": request_id,
                "method": method,
                "params": params,
            })
            message = await future
        finally:
            self._pending.pop(request_id, None)

        error = message.get("error")
        if error:
            raise LspRequestError(
                method,
                int(error.get("code", 0)),
                error.get("message", ""),
                error.get("data"),
            )
        return message.get("result")

    async def _write(self, message: Dict[str, Any]) -> None:
        if self._process is None or self._process.stdin is None:
            raise ServiceUnavailable("Language server is not started")
        try:
            self._process.stdin.write(encode_message(message))
            await self._process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            raise ServiceUnavailable(f"Language server pipe closed: {e}") from e

    async def _read_loop(self) -> None:
        assert self._process is not None and self._process.stdout is not None
        reader = self._process.stdout
        try:
            while True:
                message = await read_message(reader)
                if message is None:
                    break
                await self._dispatch(message)
        except asyncio.CancelledError:
            raise
        except (LspGraphError, ValueError) as e:
            logger.error(f"Language server stream error: {e}")
        finally:
            self._fail_pending(ServiceUnavailable("Language server exited"))

    async def _dispatch(self, message: Dict[str, Any]) -> None:
        if "method" in message:
            if "id" in message:
                # Server-to-client request; we support none of them
                logger.debug(f"<-- server request {message['method']} (answered null)")
                await self._write({
                    "jsonrpc": JSONRPC_VERSION,
                    "id": message["id"],
                    "result": None,
                })
            else:
                logger.debug(f"<-- notification {message['method']}")
            return

        future = self._pending.get(message.get("id"))
        if future is None:
            logger.debug(f"Dropping response for unknown request id {message.get('id')}")
            return
        if not future.done():
            future.set_result(message)

    def _fail_pending(self, error: Exception) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)
        self._pending.clear()
