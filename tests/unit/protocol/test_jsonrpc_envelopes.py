from __future__ import annotations

from metal_lsp.protocol import (
    ClientResponse,
    ErrorCode,
    Notification,
    Request,
    error_response,
    notification_message,
    parse_message,
    success_response,
)


def test_parse_request_with_object_params() -> None:
    message = parse_message(
        {"jsonrpc": "2.0", "id": 4, "method": "textDocument/hover", "params": {"a": 1}}
    )

    assert message == Request(request_id=4, method="textDocument/hover", params={"a": 1})


def test_parse_request_accepts_string_ids_and_null_params() -> None:
    message = parse_message({"jsonrpc": "2.0", "id": "abc", "method": "shutdown", "params": None})

    assert message == Request(request_id="abc", method="shutdown", params={})


def test_parse_notification_without_id() -> None:
    message = parse_message({"jsonrpc": "2.0", "method": "initialized"})

    assert message == Notification(method="initialized", params={})


def test_parse_wraps_positional_params() -> None:
    message = parse_message({"jsonrpc": "2.0", "method": "custom", "params": [1, 2]})

    assert isinstance(message, Notification)
    assert message.params == {"arguments": [1, 2]}


def test_parse_client_response() -> None:
    message = parse_message({"jsonrpc": "2.0", "id": 9, "result": None})

    assert message == ClientResponse(request_id=9)


def test_parse_rejects_invalid_envelopes() -> None:
    assert parse_message([1, 2, 3]) is None
    assert parse_message({"jsonrpc": "2.0", "id": 1}) is None
    assert parse_message({"jsonrpc": "2.0", "id": True, "method": "x"}) is None
    assert parse_message({"jsonrpc": "2.0", "method": ""}) is None
    assert parse_message({"jsonrpc": "2.0", "method": "x", "params": "bad"}) is None


def test_response_builders() -> None:
    assert success_response(1, None) == {"jsonrpc": "2.0", "id": 1, "result": None}
    assert error_response(2, ErrorCode.METHOD_NOT_FOUND, "Method not found: x") == {
        "jsonrpc": "2.0",
        "id": 2,
        "error": {"code": -32601, "message": "Method not found: x"},
    }
    assert error_response(3, ErrorCode.INTERNAL_ERROR, "boom", data={"k": 1})["error"] == {
        "code": -32603,
        "message": "boom",
        "data": {"k": 1},
    }
    assert notification_message("textDocument/publishDiagnostics", {"uri": "u"}) == {
        "jsonrpc": "2.0",
        "method": "textDocument/publishDiagnostics",
        "params": {"uri": "u"},
    }


def test_error_codes_match_json_rpc_values() -> None:
    assert ErrorCode.PARSE_ERROR == -32700
    assert ErrorCode.INVALID_REQUEST == -32600
    assert ErrorCode.INVALID_PARAMS == -32602
    assert ErrorCode.SERVER_NOT_INITIALIZED == -32002
