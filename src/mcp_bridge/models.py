"""Core data models for mcp-bridge.

Defines the traffic direction enum and the structured diagnostics the
bridge emits for advisory, non-fatal conditions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum


class Direction(StrEnum):
    """Direction of a bridged message.

    Attributes:
        REQUESTER_TO_RESPONDER: From the endpoint holding the bridge to the responder.
        RESPONDER_TO_REQUESTER: From the responder back to the requester.
    """

    REQUESTER_TO_RESPONDER = "requester_to_responder"
    RESPONDER_TO_REQUESTER = "responder_to_requester"


class DiagnosticKind(StrEnum):
    """Advisory conditions reported by the bridge.

    Attributes:
        RESPONDER_HANDLER_MISSING: The responder registered no message handler
            during connect. Requests will fail until it does.
        MESSAGE_DROPPED: The responder sent a message but the requester has
            no message handler registered.
        UNHANDLED_DELIVERY_ERROR: The requester's message handler raised and
            no error handler was registered to receive the exception.
        CLOSE_HANDLER_FAILED: The requester's close handler raised.
        ERROR_HANDLER_FAILED: An error handler raised while being notified.
    """

    RESPONDER_HANDLER_MISSING = "responder_handler_missing"
    MESSAGE_DROPPED = "message_dropped"
    UNHANDLED_DELIVERY_ERROR = "unhandled_delivery_error"
    CLOSE_HANDLER_FAILED = "close_handler_failed"
    ERROR_HANDLER_FAILED = "error_handler_failed"


@dataclass
class BridgeDiagnostic:
    """A single advisory event emitted by the bridge.

    Args:
        kind: What happened.
        message: Human-readable description.
        direction: Traffic direction involved, if any.
        error: The exception involved, if any.
        timestamp: When the bridge observed the condition.
    """

    kind: DiagnosticKind
    message: str
    direction: Direction | None = None
    error: Exception | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
