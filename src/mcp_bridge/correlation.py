"""JSON-RPC field extraction and message classification utilities.

The bridge treats envelopes as opaque. Responders and tooling built on
top of it use these helpers, which accept either an MCP SDK
JSONRPCMessage or a plain mapping with the JSON-RPC wire fields.
"""

from collections.abc import Mapping
from typing import Any

from mcp.types import JSONRPCMessage


def _fields(message: Any) -> Mapping[str, Any]:
    if isinstance(message, JSONRPCMessage):
        return message.model_dump(by_alias=True, exclude_none=True)
    if isinstance(message, Mapping):
        return message
    return {}


def extract_jsonrpc_id(message: Any) -> str | int | None:
    """Extract the JSON-RPC id field from a message.

    Args:
        message: A JSONRPCMessage or a mapping of JSON-RPC fields.

    Returns:
        The id value (str or int) for requests, responses, and errors.
        None for notifications and for anything that is not an envelope.
    """
    return _fields(message).get("id")


def extract_method(message: Any) -> str | None:
    """Extract the JSON-RPC method field from a message.

    Args:
        message: A JSONRPCMessage or a mapping of JSON-RPC fields.

    Returns:
        The method string for requests and notifications.
        None for responses and errors.
    """
    return _fields(message).get("method")


def extract_params(message: Any) -> Any:
    """Extract the JSON-RPC params field from a message, or None."""
    return _fields(message).get("params")


def is_request(message: Any) -> bool:
    """Check if the message is a JSON-RPC request (has id and method).

    Args:
        message: A JSONRPCMessage or a mapping of JSON-RPC fields.

    Returns:
        True if the message is a request.
    """
    fields = _fields(message)
    return "id" in fields and "method" in fields


def is_response(message: Any) -> bool:
    """Check if the message is a JSON-RPC response or error (has id, no method).

    Args:
        message: A JSONRPCMessage or a mapping of JSON-RPC fields.

    Returns:
        True if the message is a response or error.
    """
    fields = _fields(message)
    return "id" in fields and "method" not in fields and ("result" in fields or "error" in fields)


def is_notification(message: Any) -> bool:
    """Check if the message is a JSON-RPC notification (has method, no id).

    Args:
        message: A JSONRPCMessage or a mapping of JSON-RPC fields.

    Returns:
        True if the message is a notification.
    """
    fields = _fields(message)
    return "method" in fields and "id" not in fields
