"""anyio stream adapters for mcp-bridge.

The MCP SDK's ClientSession and server loops speak over a pair of anyio
memory object streams. These adapters put such a stream pair on either
end of a callback-style Transport, so SDK endpoints can run over an
InProcessBridge.

TransportStreams wraps the requester's transport: it yields the
``(read_stream, write_stream)`` pair a ClientSession expects.
StreamResponder is a Responder: its connect() hands a stream pair to a
server loop such as ``Server.run``.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import math
from collections.abc import Awaitable, Callable
from types import TracebackType
from typing import Any

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from mcp.shared.message import SessionMessage
from mcp.types import JSONRPCMessage

from mcp_bridge.adapters.base import Transport

logger = logging.getLogger(__name__)

ReadStream = MemoryObjectReceiveStream[SessionMessage | Exception]
WriteStream = MemoryObjectSendStream[SessionMessage]
StreamRunner = Callable[[ReadStream, WriteStream], Awaitable[None]]


class _StreamPump:
    """Moves messages between a callback transport and a pair of anyio streams.

    Messages the transport delivers are pushed into ``read_stream`` as
    SessionMessages. Messages written to ``write_stream`` are sent through
    the transport by a writer task.

    Args:
        transport: The transport to pump.
        name: Prefix for task names and log lines.
    """

    def __init__(self, transport: Transport, name: str) -> None:
        self._transport = transport
        self._name = name
        self._inbound_send, self.read_stream = anyio.create_memory_object_stream[
            SessionMessage | Exception
        ](max_buffer_size=math.inf)
        self.write_stream, self._outbound_recv = anyio.create_memory_object_stream[
            SessionMessage
        ](max_buffer_size=math.inf)
        self._closed = False
        self._last_error: Exception | None = None
        self._writer_task: asyncio.Task[None] | None = None

    def attach(self) -> None:
        """Register this pump's handlers on the transport."""
        self._transport.onmessage = self._push_message
        self._transport.onerror = self._push_error
        self._transport.onclose = self._end_input

    def start_writer(self) -> None:
        """Start forwarding ``write_stream`` to the transport."""
        self._writer_task = asyncio.create_task(self._writer_loop(), name=f"{self._name}-writer")

    def _push_message(self, message: Any) -> None:
        if not isinstance(message, JSONRPCMessage):
            message = JSONRPCMessage.model_validate(message)
        self._push(SessionMessage(message=message))

    def _push(self, item: SessionMessage | Exception) -> None:
        try:
            self._inbound_send.send_nowait(item)
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            logger.debug("%s: read stream closed, dropping %r", self._name, item)

    def _push_error(self, error: Exception) -> None:
        self._last_error = error
        self._push(error)

    def _end_input(self) -> None:
        self._inbound_send.close()

    async def _writer_loop(self) -> None:
        """Bridge: pull from the anyio write stream, send through the transport."""
        async for session_message in self._outbound_recv:
            try:
                await self._transport.send(session_message.message)
            except Exception as exc:
                logger.warning("%s: send failed: %s", self._name, exc)
                # Already on the read stream if the transport reported it to onerror
                if exc is not self._last_error:
                    self._push(exc)

    async def aclose(self) -> None:
        """Stop the writer task and close all streams. Safe to call multiple times."""
        if self._closed:
            return
        self._closed = True
        if self._writer_task and not self._writer_task.done():
            self._writer_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._writer_task
        self._inbound_send.close()
        self.read_stream.close()
        self.write_stream.close()
        self._outbound_recv.close()


class TransportStreams:
    """Expose a callback transport as an MCP SDK stream pair.

    Entering the context registers handlers on the transport, starts it,
    and yields ``(read_stream, write_stream)``. Exiting closes the
    transport and the streams. When the transport reports close, the
    read stream ends.

    Args:
        transport: The requester-side transport, typically an InProcessBridge.

    Example:
        async with TransportStreams(InProcessBridge(responder)) as (read, write):
            async with ClientSession(read, write) as session:
                await session.initialize()
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._pump: _StreamPump | None = None

    async def __aenter__(self) -> tuple[ReadStream, WriteStream]:
        """Start the transport and the writer task."""
        pump = _StreamPump(self._transport, name="transport-streams")
        pump.attach()
        try:
            await self._transport.start()
        except BaseException:
            await pump.aclose()
            raise
        pump.start_writer()
        self._pump = pump
        return pump.read_stream, pump.write_stream

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Close the transport, then the streams."""
        try:
            await self._transport.close()
        finally:
            if self._pump is not None:
                await self._pump.aclose()
                self._pump = None


class StreamResponder:
    """Responder that serves a transport with a stream-based server loop.

    Each connect() creates a fresh stream pair and runs
    ``run(read_stream, write_stream)`` in a background task. The bridge
    never stops this responder; call aclose() when done with it.

    Args:
        run: Coroutine function serving one stream pair, for example
            ``lambda read, write: server.run(read, write, options)``.
        name: Prefix for task names and log lines.
    """

    def __init__(self, run: StreamRunner, name: str = "stream-responder") -> None:
        self._run = run
        self._name = name
        self._pumps: list[_StreamPump] = []
        self._tasks: list[asyncio.Task[None]] = []

    async def connect(self, transport: Transport) -> None:
        """Attach to a transport and start the server loop on it."""
        pump = _StreamPump(transport, name=self._name)
        pump.attach()
        pump.start_writer()
        self._pumps.append(pump)
        self._tasks.append(asyncio.create_task(self._serve(pump), name=f"{self._name}-serve"))

    async def _serve(self, pump: _StreamPump) -> None:
        try:
            await self._run(pump.read_stream, pump.write_stream)
        except Exception:
            logger.exception("%s: server loop failed", self._name)

    async def aclose(self) -> None:
        """Stop all server loops and close their streams. Safe to call multiple times."""
        for task in self._tasks:
            if not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._tasks.clear()
        for pump in self._pumps:
            await pump.aclose()
        self._pumps.clear()
