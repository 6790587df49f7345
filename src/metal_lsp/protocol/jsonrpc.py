"""JSON-RPC 2.0 envelope parsing and construction."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

JSONRPC_VERSION = "2.0"

RequestId = int | str


class ErrorCode(IntEnum):
    """Standard JSON-RPC and LSP error codes."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    SERVER_NOT_INITIALIZED = -32002
    REQUEST_CANCELLED = -32800


@dataclass(slots=True, frozen=True)
class Request:
    """Incoming message expecting a response."""

    request_id: RequestId
    method: str
    params: dict[str, object]


@dataclass(slots=True, frozen=True)
class Notification:
    """Incoming message without an id."""

    method: str
    params: dict[str, object]


@dataclass(slots=True, frozen=True)
class ClientResponse:
    """Response sent by the client to a server-initiated request."""

    request_id: RequestId | None


IncomingMessage = Request | Notification | ClientResponse


def parse_message(payload: object) -> IncomingMessage | None:
    """Classify a decoded payload; return None when it is not a valid envelope."""
    if not isinstance(payload, dict):
        return None
    method = payload.get("method")
    has_id = "id" in payload
    request_id = payload.get("id")
    if has_id and not _is_valid_id(request_id):
        return None
    if method is None:
        if has_id and ("result" in payload or "error" in payload):
            return ClientResponse(request_id=request_id)
        return None
    if not isinstance(method, str) or not method:
        return None
    params = _normalize_params(payload.get("params"))
    if params is None:
        return None
    if has_id and request_id is not None:
        return Request(request_id=request_id, method=method, params=params)
    return Notification(method=method, params=params)


def success_response(request_id: RequestId | None, result: object) -> dict[str, object]:
    """Build a success response envelope."""
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def error_response(
    request_id: RequestId | None,
    code: int,
    message: str,
    data: object | None = None,
) -> dict[str, object]:
    """Build an error response envelope."""
    error: dict[str, object] = {"code": int(code), "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


def notification_message(method: str, params: object) -> dict[str, object]:
    """Build an outbound notification envelope."""
    return {"jsonrpc": JSONRPC_VERSION, "method": method, "params": params}


def _is_valid_id(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return False
    return isinstance(value, int | str)


def _normalize_params(value: object) -> dict[str, object] | None:
    # Absent and null params both mean "no params".
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, list):
        return {"arguments": value}
    return None
