"""Wire protocol primitives."""

from metal_lsp.protocol.jsonrpc import (
    ClientResponse,
    ErrorCode,
    Notification,
    Request,
    error_response,
    notification_message,
    parse_message,
    success_response,
)
from metal_lsp.protocol.transport import MessageTransport, TransportError

__all__ = [
    "ClientResponse",
    "ErrorCode",
    "MessageTransport",
    "Notification",
    "Request",
    "TransportError",
    "error_response",
    "notification_message",
    "parse_message",
    "success_response",
]
