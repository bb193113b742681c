"""In-process bridge between an MCP requester and responder.

The bridge is the requester's transport. On start() it builds a peer
proxy, a second transport that it hands to the responder's connect().
Whatever the requester sends reaches the handler the responder put on
the proxy, and whatever the responder sends through the proxy reaches
the requester's handler. No sockets, pipes, or threads are involved.

Deliveries are deferred through a scheduler so that neither side ever
receives a message inside the other side's send() call.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from types import TracebackType
from typing import Any

from mcp_bridge.adapters.base import (
    CloseHandler,
    ErrorHandler,
    MessageHandler,
    Responder,
)
from mcp_bridge.errors import (
    AlreadyStartedError,
    BridgeClosedError,
    InvalidArgumentError,
    NotStartedError,
    PeerUnavailableError,
    StartError,
)
from mcp_bridge.models import BridgeDiagnostic, DiagnosticKind, Direction
from mcp_bridge.scheduling import Scheduler, call_soon

logger = logging.getLogger(__name__)

DiagnosticHandler = Callable[[BridgeDiagnostic], None]


class InProcessBridge:
    """Transport that connects a requester to a responder in the same process.

    Args:
        responder: The endpoint to serve requests. Its connect() is called
            once per start(). The bridge never closes it.
        scheduler: Task queue used for deferred deliveries. Defaults to the
            running asyncio loop.
        on_diagnostic: Called with a BridgeDiagnostic for every advisory
            condition (dropped message, missing handler, ...).

    Raises:
        InvalidArgumentError: If ``responder`` is None.

    Example:
        async with InProcessBridge(responder) as bridge:
            bridge.onmessage = received.append
            await bridge.send(request)
    """

    def __init__(
        self,
        responder: Responder,
        *,
        scheduler: Scheduler | None = None,
        on_diagnostic: DiagnosticHandler | None = None,
    ) -> None:
        if responder is None:
            raise InvalidArgumentError("InProcessBridge requires a responder")
        self._responder = responder
        self._scheduler = scheduler if scheduler is not None else call_soon
        self._on_diagnostic = on_diagnostic

        self._started = False
        self._starting = False
        self._closed = False
        self._peer_connected = False
        self._peer: _PeerProxy | None = None

        self._on_message: MessageHandler | None = None
        self._on_error: ErrorHandler | None = None
        self._on_close: CloseHandler | None = None
        self._inward_handler: MessageHandler | None = None

    # -- handler slots -------------------------------------------------------

    @property
    def onmessage(self) -> MessageHandler | None:
        """Requester handler for messages sent by the responder."""
        return self._on_message

    @onmessage.setter
    def onmessage(self, handler: MessageHandler | None) -> None:
        self._on_message = handler

    @property
    def onerror(self) -> ErrorHandler | None:
        """Requester handler for start and delivery failures."""
        return self._on_error

    @onerror.setter
    def onerror(self, handler: ErrorHandler | None) -> None:
        self._on_error = handler

    @property
    def onclose(self) -> CloseHandler | None:
        """Requester handler invoked once after close()."""
        return self._on_close

    @onclose.setter
    def onclose(self, handler: CloseHandler | None) -> None:
        self._on_close = handler

    def set_on_message(self, handler: MessageHandler | None) -> None:
        """Register the requester's message handler. Replaces any previous one."""
        self._on_message = handler

    def set_on_error(self, handler: ErrorHandler | None) -> None:
        """Register the requester's error handler. Replaces any previous one."""
        self._on_error = handler

    def set_on_close(self, handler: CloseHandler | None) -> None:
        """Register the requester's close handler. Replaces any previous one."""
        self._on_close = handler

    # -- state ---------------------------------------------------------------

    @property
    def responder(self) -> Responder:
        """The responder this bridge connects to."""
        return self._responder

    @property
    def started(self) -> bool:
        """True between a successful start() and close()."""
        return self._started

    @property
    def closed(self) -> bool:
        """True once close() has torn down a started bridge."""
        return self._closed

    @property
    def peer_connected(self) -> bool:
        """True while the responder has a message handler registered."""
        return self._peer_connected

    # -- lifecycle -----------------------------------------------------------

    async def start(self) -> None:
        """Connect the responder to this bridge.

        Raises:
            BridgeClosedError: If the bridge has been closed.
            AlreadyStartedError: If the bridge is started or starting.
            StartError: If the responder's connect() raised. The error is
                also passed to the requester's error handler.
        """
        if self._closed:
            raise BridgeClosedError("InProcessBridge is closed; create a new bridge")
        if self._started or self._starting:
            raise AlreadyStartedError("InProcessBridge already started")

        self._starting = True
        peer = _PeerProxy(self)
        self._peer = peer
        try:
            await self._responder.connect(peer)
            if self._inward_handler is None:
                # Allow responders that register on the next loop turn
                await asyncio.sleep(0)
                if self._inward_handler is None:
                    self._diagnose(
                        DiagnosticKind.RESPONDER_HANDLER_MISSING,
                        "Responder did not register a message handler during connect; "
                        "requests will fail until it does",
                    )
        except Exception as exc:
            self._detach_peer()
            error = StartError(f"Responder failed to connect: {exc}")
            self._report_error(self._on_error, error)
            raise error from exc
        except BaseException:
            self._detach_peer()
            raise
        finally:
            self._starting = False

        self._started = True
        logger.debug("InProcessBridge started")

    async def send(self, message: Any) -> None:
        """Deliver a message to the responder.

        Completes once the responder's handler has run.

        Args:
            message: The envelope to deliver, passed through unchanged.

        Raises:
            NotStartedError: If the bridge is not started.
            PeerUnavailableError: If the responder has no handler registered.
            Exception: Whatever the responder's handler raised.
        """
        if not self._started:
            raise NotStartedError("InProcessBridge is not started")
        handler = self._inward_handler
        if handler is None or not self._peer_connected:
            raise PeerUnavailableError("Responder handler not available or responder disconnected")

        peer = self._peer
        delivered: asyncio.Future[None] = asyncio.get_running_loop().create_future()

        def deliver() -> None:
            try:
                handler(message)
            except Exception as exc:
                if not delivered.done():
                    delivered.set_exception(exc)
                if peer is not None:
                    self._report_error(peer.onerror, exc, Direction.REQUESTER_TO_RESPONDER)
                self._report_error(self._on_error, exc, Direction.REQUESTER_TO_RESPONDER)
            else:
                if not delivered.done():
                    delivered.set_result(None)

        self._scheduler(deliver)
        await delivered

    async def close(self) -> None:
        """Disconnect and notify the requester's close handler.

        Handlers are cleared before the close handler runs, so nothing it
        does can send through this bridge. Closing is terminal. The
        responder itself is left running; its owner decides when to stop it.
        """
        if not self._started:
            return
        self._started = False
        self._closed = True
        self._peer_connected = False

        on_close = self._on_close
        self._inward_handler = None
        self._on_message = None
        self._on_error = None
        self._on_close = None
        self._peer = None
        logger.debug("InProcessBridge closed")

        if on_close is not None:
            self._scheduler(lambda: self._notify_closed(on_close))

    async def __aenter__(self) -> InProcessBridge:
        """Start the bridge."""
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Close the bridge."""
        await self.close()

    # -- internals -----------------------------------------------------------

    def _deliver_to_requester(self, message: Any) -> None:
        """Schedule delivery of a responder message to the requester."""
        handler = self._on_message
        if handler is None:
            self._diagnose(
                DiagnosticKind.MESSAGE_DROPPED,
                "Requester has no message handler; dropping message from responder",
                direction=Direction.RESPONDER_TO_REQUESTER,
            )
            return

        def deliver() -> None:
            try:
                handler(message)
            except Exception as exc:
                if self._on_error is not None:
                    self._report_error(self._on_error, exc, Direction.RESPONDER_TO_REQUESTER)
                else:
                    self._diagnose(
                        DiagnosticKind.UNHANDLED_DELIVERY_ERROR,
                        f"Requester message handler raised: {exc}",
                        direction=Direction.RESPONDER_TO_REQUESTER,
                        error=exc,
                    )

        self._scheduler(deliver)

    def _register_inward(self, peer: _PeerProxy, handler: MessageHandler | None) -> None:
        if peer is not self._peer:
            return
        self._inward_handler = handler
        self._peer_connected = handler is not None

    def _disconnect_peer(self, peer: _PeerProxy) -> None:
        if peer is self._peer:
            self._peer_connected = False

    def _detach_peer(self) -> None:
        self._peer = None
        self._inward_handler = None
        self._peer_connected = False

    def _report_error(
        self,
        on_error: ErrorHandler | None,
        error: Exception,
        direction: Direction | None = None,
    ) -> None:
        """Pass ``error`` to an error handler; a raising handler becomes a diagnostic."""
        if on_error is None:
            return
        try:
            on_error(error)
        except Exception as exc:
            self._diagnose(
                DiagnosticKind.ERROR_HANDLER_FAILED,
                f"Error handler raised while handling {error!r}: {exc}",
                direction=direction,
                error=exc,
            )

    def _notify_closed(self, on_close: CloseHandler) -> None:
        try:
            on_close()
        except Exception as exc:
            self._diagnose(
                DiagnosticKind.CLOSE_HANDLER_FAILED,
                f"Close handler raised: {exc}",
                error=exc,
            )

    def _diagnose(
        self,
        kind: DiagnosticKind,
        message: str,
        direction: Direction | None = None,
        error: Exception | None = None,
    ) -> None:
        diagnostic = BridgeDiagnostic(kind=kind, message=message, direction=direction, error=error)
        logger.warning("[%s] %s", kind.value, message, exc_info=error)
        if self._on_diagnostic is None:
            return
        try:
            self._on_diagnostic(diagnostic)
        except Exception:
            logger.debug("Diagnostic callback error (suppressed)", exc_info=True)


class _PeerProxy:
    """The responder's view of an InProcessBridge.

    Built fresh for each start(). Registering a message handler here is
    what connects the responder; sending here delivers to the requester.
    """

    def __init__(self, bridge: InProcessBridge) -> None:
        self._bridge = bridge
        self._on_message: MessageHandler | None = None
        self.onerror: ErrorHandler | None = None
        self.onclose: CloseHandler | None = None

    @property
    def onmessage(self) -> MessageHandler | None:
        """Responder handler for messages sent by the requester."""
        return self._on_message

    @onmessage.setter
    def onmessage(self, handler: MessageHandler | None) -> None:
        self._on_message = handler
        self._bridge._register_inward(self, handler)

    async def start(self) -> None:
        """No-op: the bridge's own start() decides when traffic flows."""

    async def send(self, message: Any) -> None:
        """Deliver a message to the requester without waiting for it."""
        self._bridge._deliver_to_requester(message)

    async def close(self) -> None:
        """Mark the responder disconnected. Does not close the bridge."""
        self._bridge._disconnect_peer(self)
