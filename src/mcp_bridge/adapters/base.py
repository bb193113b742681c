"""Transport capability protocol for mcp-bridge.

Every transport handed to an MCP endpoint, whether it is the bridge
itself or the peer proxy the bridge gives to the responder, implements
this protocol. Endpoints interact only with this interface: they never
learn whether the channel underneath is a socket, a pipe, or a bridge.
"""

from collections.abc import Callable
from typing import Any, Protocol

MessageHandler = Callable[[Any], None]
ErrorHandler = Callable[[Exception], None]
CloseHandler = Callable[[], None]


class Transport(Protocol):
    """Interface for bidirectional message transports.

    Inbound traffic is pushed to the endpoint through the three handler
    slots. Outbound traffic goes through send(). Messages are opaque
    envelopes: a transport relays them and never inspects them.

    Assigning a handler must be synchronous and free of side effects
    visible to the endpoint. Reading a slot returns the last assignment,
    or None.
    """

    onmessage: MessageHandler | None
    onerror: ErrorHandler | None
    onclose: CloseHandler | None

    async def start(self) -> None:
        """Start the transport.

        Raises:
            Exception: If the transport is already started.
        """
        ...

    async def send(self, message: Any) -> None:
        """Send a message to the other end of the transport.

        Args:
            message: The envelope to deliver, passed through unchanged.

        Raises:
            Exception: If the transport is not started or the other end
                is unavailable.
        """
        ...

    async def close(self) -> None:
        """Tear the transport down and notify the close handler.

        Safe to call multiple times.
        """
        ...


class Responder(Protocol):
    """An endpoint that serves requests over a transport it is given."""

    async def connect(self, transport: Transport) -> None:
        """Attach to a transport and register handlers on it.

        Args:
            transport: The transport this responder should serve.
        """
        ...
