"""MCP server: expose impact analysis via the Model Context Protocol.

JSON-RPC 2.0 over stdio with Content-Length framing. Logging goes to stderr
only; stdout carries protocol messages.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from impactlens import __version__
from impactlens.analyzer import analyze_pr
from impactlens.config import AnalyzerConfig, find_project_root, load_config
from impactlens.exceptions import ImpactLensError
from impactlens.graph.builder import DependencyIndexBuilder
from impactlens.graph.walker import ImpactWalker
from impactlens.parser.models import as_repo_path
from impactlens.report.renderer import render_markdown

logger = logging.getLogger("impactlens.mcp")

METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602


class UnknownToolError(ValueError):
    pass


class MCPServer:
    """Model Context Protocol server for ImpactLens."""

    PROTOCOL_VERSION = "2024-11-05"
    SERVER_NAME = "impactlens"
    SERVER_VERSION = __version__

    def __init__(self, root: Path | None = None, config: AnalyzerConfig | None = None) -> None:
        self.root = (root or find_project_root() or Path.cwd()).resolve()
        self.config = config or load_config(self.root)
        self._tools = self._define_tools()
        self._tool_handlers = {
            "analyze_pr": self._tool_analyze_pr,
            "dependents_of": self._tool_dependents_of,
        }

    def _define_tools(self) -> list[dict]:
        return [
            {
                "name": "analyze_pr",
                "description": (
                    "Analyze the files changed on a branch against a base branch. "
                    "Returns risk level, findings, affected files and related tests "
                    "as markdown."
                ),
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "branch": {
                            "type": "string",
                            "description": "Branch (or any git revision) to analyze",
                        },
                        "base": {
                            "type": "string",
                            "description": "Base branch to compare against (default: main)",
                        },
                    },
                    "required": ["branch"],
                },
            },
            {
                "name": "dependents_of",
                "description": (
                    "List the files that import a file, directly and transitively."
                ),
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "path": {
                            "type": "string",
                            "description": "Repository-relative path of the file",
                        },
                        "max_depth": {
                            "type": "integer",
                            "description": "Max indirect depth (default: 2)",
                            "default": 2,
                        },
                    },
                    "required": ["path"],
                },
            },
        ]

    # -- tools ---------------------------------------------------------------

    def _tool_analyze_pr(self, args: dict) -> str:
        report = analyze_pr(
            self.root,
            branch=args["branch"],
            base=args.get("base"),
            config=self.config,
        )
        return render_markdown(report)

    def _tool_dependents_of(self, args: dict) -> str:
        path = as_repo_path(args["path"], self.root)
        max_depth = int(args.get("max_depth", self.config.impact.max_depth))
        index = DependencyIndexBuilder(self.config.indexer).build(self.root)
        impact = ImpactWalker(index, max_depth=max_depth).walk([path])

        direct = impact.direct_dependents.get(path, [])
        if not direct:
            return f"No files import '{path}'"

        lines = [f"Dependents of '{path}':"]
        lines.extend(f"  {dep} (direct)" for dep in direct)
        lines.extend(
            f"  {dep} (depth {impact.indirect_depths.get(dep, 0)})"
            for dep in impact.indirect_dependents.get(path, [])
        )
        return "\n".join(lines)

    # -- transport -----------------------------------------------------------

    async def run_stdio(self) -> None:
        """Serve requests from stdin until EOF or a malformed frame."""
        loop = asyncio.get_event_loop()
        reader = asyncio.StreamReader()
        await loop.connect_read_pipe(
            lambda: asyncio.StreamReaderProtocol(reader), sys.stdin.buffer
        )
        transport, stream_protocol = await loop.connect_write_pipe(
            asyncio.streams.FlowControlMixin, sys.stdout.buffer
        )
        writer = asyncio.StreamWriter(transport, stream_protocol, None, loop)

        logger.info("ImpactLens MCP server started for %s", self.root)
        try:
            while True:
                request = await self._read_message(reader)
                if request is None:
                    break
                reply = self._handle_message(request)
                if reply is not None:
                    await self._write_message(writer, reply)
        except (json.JSONDecodeError, asyncio.IncompleteReadError, ValueError) as e:
            logger.error("Bad frame on stdin: %s", e)
        logger.info("ImpactLens MCP server stopped")

    @staticmethod
    async def _read_headers(reader: asyncio.StreamReader) -> dict[str, str] | None:
        headers: dict[str, str] = {}
        while True:
            raw = await reader.readline()
            if not raw:
                return None
            text = raw.decode("utf-8").strip()
            if not text:
                return headers
            key, _, value = text.partition(":")
            headers[key.strip().lower()] = value.strip()

    async def _read_message(self, reader: asyncio.StreamReader) -> dict | None:
        """One framed message, or None at end of input."""
        headers = await self._read_headers(reader)
        if not headers:
            return None
        length = int(headers.get("content-length", "0"))
        if length <= 0:
            return None
        return json.loads(await reader.readexactly(length))

    async def _write_message(self, writer: asyncio.StreamWriter, message: dict) -> None:
        payload = json.dumps(message).encode("utf-8")
        writer.write(b"Content-Length: %d\r\n\r\n" % len(payload) + payload)
        await writer.drain()

    # -- JSON-RPC ------------------------------------------------------------

    def _handle_message(self, message: dict) -> dict | None:
        """Answer a request. Notifications get no reply."""
        method = message.get("method", "")
        params = message.get("params") or {}
        if "id" not in message or message["id"] is None:
            self._on_notification(method, params)
            return None

        request_id = message["id"]
        try:
            result = self._dispatch(method, params)
        except UnknownToolError as e:
            return self._error(request_id, INVALID_PARAMS, str(e))
        except ValueError as e:
            return self._error(request_id, METHOD_NOT_FOUND, str(e))
        return {"jsonrpc": "2.0", "id": request_id, "result": result}

    @staticmethod
    def _error(request_id: Any, code: int, message: str) -> dict:
        return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}

    def _on_notification(self, method: str, params: dict) -> None:
        if method == "notifications/cancelled":
            logger.info("Client cancelled request %s", params.get("requestId"))
        else:
            logger.debug("Notification: %s", method)

    def _dispatch(self, method: str, params: dict) -> Any:
        handlers = {
            "initialize": self._rpc_initialize,
            "tools/list": self._rpc_tools_list,
            "tools/call": self._rpc_tools_call,
            "ping": lambda _params: {},
        }
        handler = handlers.get(method)
        if handler is None:
            raise ValueError(f"Unknown method: {method}")
        return handler(params)

    def _rpc_initialize(self, params: dict) -> dict:
        client = (params.get("clientInfo") or {}).get("name", "unknown client")
        logger.info("Initialize from %s", client)
        return {
            "protocolVersion": self.PROTOCOL_VERSION,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": self.SERVER_NAME, "version": self.SERVER_VERSION},
        }

    def _rpc_tools_list(self, params: dict) -> dict:
        return {"tools": self._tools}

    def _rpc_tools_call(self, params: dict) -> dict:
        """Call a tool; analysis failures come back as isError content."""
        name = params.get("name", "")
        handler = self._tool_handlers.get(name)
        if handler is None:
            raise UnknownToolError(f"Unknown tool: {name}")

        try:
            text, failed = handler(params.get("arguments") or {}), False
        except (ImpactLensError, KeyError, ValueError, TypeError) as e:
            logger.warning("Tool %s failed: %s", name, e)
            text, failed = f"Error: {e}", True
        return {"content": [{"type": "text", "text": text}], "isError": failed}

    @staticmethod
    def generate_client_config(project_path: str | None = None) -> dict:
        """MCP client config entry for this server."""
        return {
            "mcpServers": {
                "impactlens": {
                    "command": "impactlens",
                    "args": ["serve"],
                    "cwd": project_path or ".",
                }
            }
        }
