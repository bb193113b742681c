"""Reference responder for demos and tests.

EchoResponder answers every JSON-RPC request with a response whose
result echoes the request params. It replies with the same envelope
type it received: a plain dict for dict requests, an SDK
JSONRPCMessage for JSONRPCMessage requests.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

from mcp.types import JSONRPCMessage, JSONRPCResponse

from mcp_bridge.adapters.base import Transport
from mcp_bridge.correlation import extract_jsonrpc_id, extract_params, is_request

logger = logging.getLogger(__name__)


class EchoResponder:
    """Responder that echoes request params back as the result.

    Notifications and responses are recorded but not answered.

    Example:
        >>> responder = EchoResponder()
        >>> bridge = InProcessBridge(responder)
    """

    def __init__(self) -> None:
        self.transport: Transport | None = None
        self.received: list[Any] = []
        self._reply_tasks: set[asyncio.Task[None]] = set()

    async def connect(self, transport: Transport) -> None:
        """Attach to a transport and start answering requests."""
        self.transport = transport
        transport.onmessage = self._handle_message

    def _handle_message(self, message: Any) -> None:
        self.received.append(message)
        if not is_request(message):
            return
        reply = _echo_reply(message)
        task = asyncio.get_running_loop().create_task(self._send(reply))
        self._reply_tasks.add(task)
        task.add_done_callback(self._reply_tasks.discard)

    async def _send(self, reply: Any) -> None:
        assert self.transport is not None
        try:
            await self.transport.send(reply)
        except Exception:
            logger.warning("EchoResponder failed to send reply", exc_info=True)

    async def aclose(self) -> None:
        """Cancel replies that have not been sent yet. Safe to call multiple times."""
        for task in list(self._reply_tasks):
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._reply_tasks.clear()
        self.transport = None


def _echo_reply(request: Any) -> Any:
    """Build the echo response for a request, matching its envelope type."""
    msg_id = extract_jsonrpc_id(request)
    result = {"echoed": extract_params(request)}
    if isinstance(request, JSONRPCMessage):
        return JSONRPCMessage(JSONRPCResponse(jsonrpc="2.0", id=msg_id, result=result))
    return {"jsonrpc": "2.0", "id": msg_id, "result": result}
