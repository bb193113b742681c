"""Tests for mcp_bridge.responders — EchoResponder."""

from __future__ import annotations

import asyncio
from typing import Any

from mcp.types import JSONRPCMessage, JSONRPCRequest, JSONRPCResponse

from mcp_bridge.responders import EchoResponder


class FakeTransport:
    """Transport stub that records what the responder sends."""

    def __init__(self, fail: bool = False) -> None:
        self.onmessage: Any = None
        self.onerror: Any = None
        self.onclose: Any = None
        self.sent: list[Any] = []
        self._fail = fail

    async def start(self) -> None:
        pass

    async def send(self, message: Any) -> None:
        if self._fail:
            raise RuntimeError("transport down")
        self.sent.append(message)

    async def close(self) -> None:
        pass


async def _settle(turns: int = 5) -> None:
    for _ in range(turns):
        await asyncio.sleep(0)


class TestEchoResponder:
    async def test_connect_registers_handler(self) -> None:
        responder = EchoResponder()
        transport = FakeTransport()
        await responder.connect(transport)
        assert transport.onmessage is not None
        assert responder.transport is transport

    async def test_echoes_dict_request(self) -> None:
        responder = EchoResponder()
        transport = FakeTransport()
        await responder.connect(transport)

        transport.onmessage({"jsonrpc": "2.0", "id": "1", "method": "echo", "params": {"foo": "bar"}})
        await _settle()

        assert transport.sent == [{"jsonrpc": "2.0", "id": "1", "result": {"echoed": {"foo": "bar"}}}]

    async def test_echoes_sdk_request(self) -> None:
        responder = EchoResponder()
        transport = FakeTransport()
        await responder.connect(transport)
        request = JSONRPCMessage(
            JSONRPCRequest(jsonrpc="2.0", id=3, method="echo", params={"text": "hi"})
        )

        transport.onmessage(request)
        await _settle()

        assert len(transport.sent) == 1
        reply = transport.sent[0]
        assert isinstance(reply, JSONRPCMessage)
        assert isinstance(reply.root, JSONRPCResponse)
        assert reply.root.id == 3
        assert reply.root.result == {"echoed": {"text": "hi"}}

    async def test_request_without_params(self) -> None:
        responder = EchoResponder()
        transport = FakeTransport()
        await responder.connect(transport)

        transport.onmessage({"jsonrpc": "2.0", "id": 1, "method": "ping"})
        await _settle()

        assert transport.sent[0]["result"] == {"echoed": None}

    async def test_notifications_and_responses_not_answered(self) -> None:
        responder = EchoResponder()
        transport = FakeTransport()
        await responder.connect(transport)

        transport.onmessage({"jsonrpc": "2.0", "method": "notifications/initialized"})
        transport.onmessage({"jsonrpc": "2.0", "id": 1, "result": {}})
        await _settle()

        assert transport.sent == []
        assert len(responder.received) == 2

    async def test_send_failure_is_logged(self, caplog: Any) -> None:
        responder = EchoResponder()
        transport = FakeTransport(fail=True)
        await responder.connect(transport)

        with caplog.at_level("WARNING", logger="mcp_bridge.responders"):
            transport.onmessage({"jsonrpc": "2.0", "id": 1, "method": "echo"})
            await _settle()

        assert "failed to send reply" in caplog.text

    async def test_aclose_cancels_pending_replies(self) -> None:
        responder = EchoResponder()
        transport = FakeTransport()
        await responder.connect(transport)

        transport.onmessage({"jsonrpc": "2.0", "id": 1, "method": "echo"})
        await responder.aclose()
        await _settle()

        assert transport.sent == []
        assert responder.transport is None

    async def test_aclose_twice(self) -> None:
        responder = EchoResponder()
        await responder.aclose()
        await responder.aclose()
        assert responder.transport is None
