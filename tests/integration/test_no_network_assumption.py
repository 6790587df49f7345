from __future__ import annotations

import io
import socket
from pathlib import Path

from metal_lsp.config import load_effective_config
from metal_lsp.server import LanguageServer
from metal_lsp.toolchain import CompilerDiagnostic


class _SilentCompiler:
    def compile(self, source: str, uri: str) -> list[CompilerDiagnostic]:
        return []


def test_no_network_calls_during_editing_session(tmp_path: Path, monkeypatch) -> None:
    (tmp_path / "Decl.metal").write_text("float foo(float x) {\n    return x;\n}\n", encoding="utf-8")

    def _blocked_create_connection(*args, **kwargs):  # type: ignore[no-untyped-def]
        raise AssertionError(
            f"Network call attempted: create_connection args={args} kwargs={kwargs}"
        )

    base_socket = socket.socket

    class _BlockedSocket(base_socket):
        def connect(self, address):  # type: ignore[no-untyped-def]
            raise AssertionError(f"Network call attempted: connect address={address}")

    monkeypatch.setattr(socket, "create_connection", _blocked_create_connection)
    monkeypatch.setattr(socket, "socket", _BlockedSocket)

    server = LanguageServer(
        load_effective_config(None), compiler=_SilentCompiler(), log_stream=io.StringIO()
    )
    uri = (tmp_path / "Use.metal").resolve().as_uri()
    position = {"textDocument": {"uri": uri}, "position": {"line": 0, "character": 22}}

    assert "result" in server.handle_payload(
        {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {"rootUri": tmp_path.as_uri()}}
    )
    server.handle_payload(
        {
            "jsonrpc": "2.0",
            "method": "textDocument/didOpen",
            "params": {
                "textDocument": {
                    "uri": uri,
                    "version": 1,
                    "text": "float bar() { return foo(1.0); }",
                }
            },
        }
    )
    for request_id, method in enumerate(
        ["textDocument/definition", "textDocument/references", "textDocument/hover"], start=2
    ):
        response = server.handle_payload(
            {"jsonrpc": "2.0", "id": request_id, "method": method, "params": position}
        )
        assert "result" in response
