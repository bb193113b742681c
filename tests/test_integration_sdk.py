"""Integration tests — MCP SDK ClientSession and low-level Server over the bridge.

The client talks to TransportStreams, the server runs inside a
StreamResponder, and the InProcessBridge sits between them. Everything
runs in one event loop: no subprocess, no sockets.
"""

from __future__ import annotations

import asyncio
from typing import Any

import mcp.types as types
from mcp import ClientSession
from mcp.server.lowlevel import Server

from mcp_bridge.adapters.streams import ReadStream, StreamResponder, TransportStreams, WriteStream
from mcp_bridge.bridge import InProcessBridge

# Timeout for a whole client session (seconds)
SESSION_TIMEOUT = 10


def _build_server() -> Server:
    """Low-level MCP server exposing a single echo tool."""
    server: Server = Server("bridge-echo")

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [
            types.Tool(
                name="echo",
                description="Echo the given text",
                inputSchema={
                    "type": "object",
                    "properties": {"text": {"type": "string"}},
                    "required": ["text"],
                },
            )
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[types.TextContent]:
        return [types.TextContent(type="text", text=f"{name}: {arguments['text']}")]

    return server


def _build_responder(server: Server) -> StreamResponder:
    async def run(read_stream: ReadStream, write_stream: WriteStream) -> None:
        await server.run(read_stream, write_stream, server.create_initialization_options())

    return StreamResponder(run, name="sdk-server")


class TestSdkOverBridge:
    async def test_initialize_and_list_tools(self) -> None:
        responder = _build_responder(_build_server())
        bridge = InProcessBridge(responder)

        try:
            async with asyncio.timeout(SESSION_TIMEOUT):
                async with TransportStreams(bridge) as (read_stream, write_stream):
                    async with ClientSession(read_stream, write_stream) as session:
                        init = await session.initialize()
                        tools = await session.list_tools()
        finally:
            await responder.aclose()

        assert init.serverInfo.name == "bridge-echo"
        assert [tool.name for tool in tools.tools] == ["echo"]
        assert bridge.closed is True

    async def test_call_tool(self) -> None:
        responder = _build_responder(_build_server())
        bridge = InProcessBridge(responder)

        try:
            async with asyncio.timeout(SESSION_TIMEOUT):
                async with TransportStreams(bridge) as (read_stream, write_stream):
                    async with ClientSession(read_stream, write_stream) as session:
                        await session.initialize()
                        result = await session.call_tool("echo", {"text": "hello"})
        finally:
            await responder.aclose()

        assert result.isError is False
        assert len(result.content) == 1
        content = result.content[0]
        assert isinstance(content, types.TextContent)
        assert content.text == "echo: hello"

    async def test_sequential_requests_keep_order(self) -> None:
        responder = _build_responder(_build_server())
        bridge = InProcessBridge(responder)
        texts = ["one", "two", "three"]

        try:
            async with asyncio.timeout(SESSION_TIMEOUT):
                async with TransportStreams(bridge) as (read_stream, write_stream):
                    async with ClientSession(read_stream, write_stream) as session:
                        await session.initialize()
                        results = [
                            await session.call_tool("echo", {"text": text}) for text in texts
                        ]
        finally:
            await responder.aclose()

        assert [r.content[0].text for r in results] == [f"echo: {t}" for t in texts]
