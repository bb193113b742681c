"""Exception types raised by the in-process bridge.

Construction and start-time misuse raise immediately. Failures of a
handler during delivery are not wrapped: the handler's own exception
reaches the error handlers and the awaiting sender unchanged.
"""


class BridgeError(RuntimeError):
    """Base class for all bridge errors."""


class InvalidArgumentError(BridgeError, ValueError):
    """The bridge was constructed without a responder."""


class AlreadyStartedError(BridgeError):
    """start() was called while the bridge is started or starting."""


class BridgeClosedError(BridgeError):
    """start() was called on a bridge that has been closed.

    Closing is terminal; build a new bridge to reconnect.
    """


class StartError(BridgeError):
    """The responder failed to connect to the bridge.

    The responder's exception is available as ``__cause__``.
    """


class NotStartedError(BridgeError):
    """send() was called before start() completed, or after close()."""


class PeerUnavailableError(BridgeError):
    """send() was called while the responder has no message handler registered."""
