"""Transport adapters: the transport protocol and anyio stream bridges."""

from mcp_bridge.adapters.base import Responder, Transport
from mcp_bridge.adapters.streams import StreamResponder, TransportStreams

__all__ = ["Responder", "StreamResponder", "Transport", "TransportStreams"]
