"""STDIO language server entrypoint."""

from __future__ import annotations

import argparse
import json
import shlex
import sys
from pathlib import Path
from typing import BinaryIO, TextIO

from metal_lsp.analysis import BuiltinDocumentation, SemanticLexer, StructuralIndexer, SymbolFinder
from metal_lsp.cache import AnalysisCache, DiagnosticsCache
from metal_lsp.cache.diagnostics import DiagnosticsByUri
from metal_lsp.config import (
    CONFIG_FILE_NAME,
    CliOverrides,
    ServerConfig,
    apply_cli_overrides,
    default_config,
    load_effective_config,
)
from metal_lsp.documents import ContentChange, DocumentStore
from metal_lsp.logging import AuditEvent, JsonlAuditLogger, sanitize_params, utc_timestamp
from metal_lsp.methods import (
    LanguageContext,
    MethodDispatchError,
    MethodRegistry,
    register_language_methods,
)
from metal_lsp.methods import params as p
from metal_lsp.protocol import (
    ClientResponse,
    ErrorCode,
    MessageTransport,
    Notification,
    Request,
    TransportError,
    error_response,
    notification_message,
    parse_message,
    success_response,
)
from metal_lsp.toolchain import (
    ClangFormatter,
    CodeFormatter,
    CompilerDiagnostic,
    DiagnosticsProvider,
    MetalCompiler,
    format_document,
)
from metal_lsp.workspace import WorkspaceResolver, resolve_workspace_root

SERVER_NAME = "metal-lsp"
SERVER_VERSION = "0.1.0"
DIAGNOSTIC_SOURCE = "metal"

# LSP TextDocumentSyncKind.Incremental
TEXT_DOCUMENT_SYNC_INCREMENTAL = 2

_SEVERITY_CODES = {"error": 1, "warning": 2, "information": 3, "hint": 4}


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for server startup configuration."""
    parser = argparse.ArgumentParser(
        prog=SERVER_NAME,
        description="Metal Shading Language Server Protocol implementation",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging to stderr")
    parser.add_argument(
        "--log-messages", action="store_true", help="Log communication to stderr"
    )
    parser.add_argument("--data-dir", required=False, default=None)
    parser.add_argument(
        "--compiler",
        required=False,
        default=None,
        help="Compiler command line, for example 'xcrun -sdk macosx metal'",
    )
    parser.add_argument("--clang-format", required=False, default=None)
    parser.add_argument("--stdio", action="store_true", help="Accepted for editor compatibility")
    parser.add_argument("--version", action="version", version=f"%(prog)s {SERVER_VERSION}")
    return parser


class LanguageServer:
    """Single-threaded read, dispatch and respond loop over framed JSON-RPC."""

    def __init__(
        self,
        config: ServerConfig,
        *,
        overrides: CliOverrides | None = None,
        compiler: DiagnosticsProvider | None = None,
        formatter: CodeFormatter | None = None,
        log_stream: TextIO | None = None,
    ) -> None:
        self._config = config
        self._overrides = overrides or CliOverrides()
        self._log_stream = log_stream if log_stream is not None else sys.stderr
        self._compiler_injected = compiler is not None
        self._formatter_injected = formatter is not None
        self._compiler: DiagnosticsProvider = compiler or MetalCompiler(
            config.compiler.command, config.compiler.include_dirs
        )
        self._formatter: CodeFormatter = formatter or ClangFormatter(
            config.formatter.command, config.formatter.column_limit
        )
        self._audit_logger: JsonlAuditLogger | None = None
        if config.logging.data_dir is not None:
            self._audit_logger = JsonlAuditLogger(path=config.logging.data_dir / "audit.jsonl")

        self._documents = DocumentStore()
        self._finder = SymbolFinder()
        self._analysis = AnalysisCache(indexer=StructuralIndexer(), lexer=SemanticLexer())
        self._diagnostics = DiagnosticsCache()
        self._resolver = WorkspaceResolver(
            self._documents, config.workspace, finder=self._finder, log=self.log
        )
        self._resolver.set_root(config.workspace_root)
        self._documentation = BuiltinDocumentation()

        self._initialized = False
        self._shutdown_requested = False
        self._exit_code: int | None = None
        self._outbox: list[dict[str, object]] = []
        self._published: dict[str, set[str]] = {}

        self._methods = MethodRegistry()
        self._methods.request("initialize", self._initialize)
        self._methods.request("shutdown", self._shutdown)
        self._methods.notification("initialized", self._on_initialized)
        self._methods.notification(
            "textDocument/didOpen", self._did_open, {"textDocumentSync": {"openClose": True}}
        )
        self._methods.notification(
            "textDocument/didChange",
            self._did_change,
            {"textDocumentSync": {"change": TEXT_DOCUMENT_SYNC_INCREMENTAL}},
        )
        self._methods.notification(
            "textDocument/didSave",
            self._did_save,
            {"textDocumentSync": {"save": {"includeText": False}}},
        )
        self._methods.notification(
            "textDocument/didClose", self._did_close, {"textDocumentSync": {"openClose": True}}
        )
        register_language_methods(
            self._methods,
            LanguageContext(
                documents=self._documents,
                analysis=self._analysis,
                resolver=self._resolver,
                finder=self._finder,
                documentation=self._documentation,
                format_source=self._format_source,
                log=self.log,
            ),
        )

    @property
    def config(self) -> ServerConfig:
        return self._config

    @property
    def documents(self) -> DocumentStore:
        return self._documents

    @property
    def analysis_cache(self) -> AnalysisCache:
        return self._analysis

    @property
    def diagnostics_cache(self) -> DiagnosticsCache:
        return self._diagnostics

    @property
    def resolver(self) -> WorkspaceResolver:
        return self._resolver

    @property
    def exit_code(self) -> int | None:
        """Return the process exit code once `exit` has been received."""
        return self._exit_code

    def serve(self, in_stream: BinaryIO, out_stream: BinaryIO) -> int:
        """Process framed messages until `exit` or end of input; return the exit code."""
        trace_stream = self._log_stream if self._config.logging.log_messages else None
        transport = MessageTransport(in_stream, out_stream, trace_stream=trace_stream)
        self.log("Metal LSP server starting")
        while self._exit_code is None:
            try:
                body = transport.read_message()
            except TransportError as error:
                self.log(f"Transport error: {error}")
                continue
            if body is None:
                self.log("No more messages, exiting")
                break
            response = self.handle_message(body)
            if response is not None:
                transport.write_json(response)
            for notification in self.drain_notifications():
                transport.write_json(notification)
        self.log("Metal LSP server stopped")
        return 0 if self._exit_code is None else self._exit_code

    def handle_message(self, body: bytes) -> dict[str, object] | None:
        """Decode one framed body and handle it."""
        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as error:
            self.log(f"Failed to decode message: {error}")
            return None
        return self.handle_payload(payload)

    def handle_payload(self, payload: object) -> dict[str, object] | None:
        """Dispatch a decoded payload; return the response for requests only."""
        message = parse_message(payload)
        if message is None:
            self.log(f"Failed to decode message: {payload!r:.200}")
            return None
        if isinstance(message, ClientResponse):
            return None
        if isinstance(message, Notification):
            self._handle_notification(message)
            return None
        return self._handle_request(message)

    def drain_notifications(self) -> list[dict[str, object]]:
        """Return and clear outbound notifications queued by handlers."""
        drained = self._outbox
        self._outbox = []
        return drained

    def validate_document(self, uri: str) -> None:
        """Publish compiler diagnostics for `uri`, replaying cached results when valid."""
        source = self._resolver.source_for(uri)
        if source is None:
            self.log(f"Cannot validate document: not open and not readable: {uri}")
            return
        cache_key = self._diagnostics.cache_key(uri, source)
        grouped = self._diagnostics.get(uri, cache_key)
        if grouped is None:
            self.log(f"Validating document: {uri}")
            grouped = _group_diagnostics(uri, self._compiler.compile(source, uri))
            self._diagnostics.store(uri, cache_key, grouped)
        else:
            self.log(f"Replaying cached diagnostics: {uri}")
        for target_uri, diagnostics in grouped.items():
            self._publish_diagnostics(target_uri, diagnostics)
        # Headers that were reported last time but are clean now.
        for stale_uri in sorted(self._published.get(uri, set()) - grouped.keys()):
            self._publish_diagnostics(stale_uri, ())
        self._published[uri] = set(grouped)

    def log(self, message: str) -> None:
        """Write a diagnostic trace line to stderr when verbose."""
        if not self._config.logging.verbose:
            return
        self._log_stream.write(f"[{SERVER_NAME}] {message}\n")
        self._log_stream.flush()

    def _handle_request(self, request: Request) -> dict[str, object]:
        self.log(f"Request: {request.method}")
        if self._shutdown_requested:
            response = error_response(
                request.request_id, ErrorCode.INVALID_REQUEST, "Server is shutting down."
            )
        elif not self._initialized and request.method != "initialize":
            response = error_response(
                request.request_id, ErrorCode.SERVER_NOT_INITIALIZED, "Server not initialized"
            )
        elif self._initialized and request.method == "initialize":
            response = error_response(
                request.request_id, ErrorCode.INVALID_REQUEST, "Server already initialized."
            )
        else:
            response = self._dispatch_request(request)
        self.log_request(request.request_id, request.method, request.params, response)
        return response

    def _dispatch_request(self, request: Request) -> dict[str, object]:
        try:
            result = self._methods.dispatch_request(request.method, request.params)
        except MethodDispatchError as error:
            return error_response(request.request_id, error.code, error.message)
        except Exception as error:
            self.log(f"Request {request.method} failed: {error!r}")
            return error_response(
                request.request_id,
                ErrorCode.INTERNAL_ERROR,
                str(error) or type(error).__name__,
            )
        return success_response(request.request_id, result)

    def _handle_notification(self, notification: Notification) -> None:
        method = notification.method
        if method == "exit":
            self.log("Exiting...")
            self._exit_code = 0 if self._shutdown_requested else 1
            self.log_request(None, method, notification.params, None)
            return
        if method.startswith("$/"):
            return
        if not self._initialized:
            self.log(f"Dropping notification before initialize: {method}")
            return
        self.log(f"Notification: {method}")
        error_code: int | None = None
        try:
            self._methods.dispatch_notification(method, notification.params)
        except MethodDispatchError as error:
            error_code = error.code
            if error.code == ErrorCode.METHOD_NOT_FOUND:
                self.log(f"Unknown notification: {method}")
            else:
                self.log(f"Notification {method} rejected: {error}")
        except Exception as error:
            error_code = ErrorCode.INTERNAL_ERROR
            self.log(f"Notification {method} failed: {error!r}")
        self.log_request(
            None,
            method,
            notification.params,
            None if error_code is None else error_response(None, error_code, ""),
        )

    def log_request(
        self,
        request_id: object,
        method: str,
        params: dict[str, object],
        response: dict[str, object] | None,
    ) -> None:
        """Append one sanitized audit event when an audit log is configured."""
        if self._audit_logger is None:
            return
        error_code: int | None = None
        if response is not None:
            error_payload = response.get("error")
            if isinstance(error_payload, dict):
                code_value = error_payload.get("code")
                if isinstance(code_value, int):
                    error_code = code_value
        event = AuditEvent(
            timestamp=utc_timestamp(),
            request_id=None if request_id is None else str(request_id),
            method=method,
            ok=error_code is None,
            error_code=error_code,
            metadata=sanitize_params(params),
        )
        self._audit_logger.append(event)

    def _initialize(self, params: dict[str, object]) -> object:
        self.log("Initializing server...")
        root = resolve_workspace_root(params)
        self._config = self._load_config(root)
        self._apply_config()
        self._initialized = True
        return {
            "capabilities": self.capabilities(),
            "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
        }

    def capabilities(self) -> dict[str, object]:
        """Return the capabilities advertised by the registered methods."""
        return self._methods.capabilities()

    def _load_config(self, root: Path | None) -> ServerConfig:
        try:
            config = load_effective_config(root, self._overrides)
        except (ValueError, OSError) as error:
            self.log(f"Ignoring {CONFIG_FILE_NAME}: {error}")
            config = apply_cli_overrides(default_config(root), self._overrides)
        self.log(f"Effective configuration: {json.dumps(config.to_public_dict(), sort_keys=True)}")
        return config

    def _apply_config(self) -> None:
        config = self._config
        self._resolver.set_root(config.workspace_root)
        self._resolver.configure(config.workspace)
        if not self._compiler_injected:
            self._compiler = MetalCompiler(config.compiler.command, config.compiler.include_dirs)
        if not self._formatter_injected:
            self._formatter = ClangFormatter(config.formatter.command, config.formatter.column_limit)

    def _shutdown(self, params: dict[str, object]) -> object:
        self.log("Shutting down...")
        self._shutdown_requested = True
        return None

    def _on_initialized(self, params: dict[str, object]) -> None:
        self.log("Server initialized")

    def _did_open(self, params: dict[str, object]) -> None:
        uri = p.text_document_uri(params)
        text = params["textDocument"].get("text")
        if not isinstance(text, str):
            raise p.invalid_params("textDocument.text must be a string.")
        self.log(f"Document opened: {uri}")
        self._documents.open(uri, text, p.text_document_version(params))
        self.validate_document(uri)

    def _did_change(self, params: dict[str, object]) -> None:
        uri = p.text_document_uri(params)
        raw_changes = params.get("contentChanges")
        if not isinstance(raw_changes, list):
            raise p.invalid_params("contentChanges must be an array.")
        try:
            changes = [ContentChange.from_lsp(item) for item in raw_changes]
        except ValueError as error:
            raise p.invalid_params(str(error)) from error
        document = self._documents.update(uri, changes, p.text_document_version(params))
        if document is None:
            self.log(f"Ignoring change for unopened document: {uri}")
            return
        self._analysis.evict(uri)
        self.log(f"Document changed: {uri} (version {document.version})")

    def _did_save(self, params: dict[str, object]) -> None:
        uri = p.text_document_uri(params)
        self.log(f"Document saved: {uri}")
        self.validate_document(uri)

    def _did_close(self, params: dict[str, object]) -> None:
        uri = p.text_document_uri(params)
        self.log(f"Document closed: {uri}")
        self._documents.close(uri)
        self._analysis.evict(uri)
        self._diagnostics.evict(uri)
        self._published.pop(uri, None)

    def _format_source(self, source: str, tab_size: int, insert_spaces: bool) -> str:
        return format_document(source, tab_size, insert_spaces, self._formatter)

    def _publish_diagnostics(
        self, uri: str, diagnostics: tuple[CompilerDiagnostic, ...]
    ) -> None:
        document = self._documents.get(uri)
        items: list[dict[str, object]] = []
        for diagnostic in diagnostics:
            if document is not None:
                start = document.line_index.to_position(diagnostic.line, diagnostic.column).to_lsp()
            else:
                start = {"line": diagnostic.line, "character": diagnostic.column}
            items.append(
                {
                    "range": {"start": start, "end": dict(start)},
                    "severity": _SEVERITY_CODES.get(diagnostic.severity, 1),
                    "source": DIAGNOSTIC_SOURCE,
                    "message": diagnostic.message,
                }
            )
        self._outbox.append(
            notification_message(
                "textDocument/publishDiagnostics", {"uri": uri, "diagnostics": items}
            )
        )
        self.log(f"Published {len(items)} diagnostics for {uri}")


def create_server(
    args: argparse.Namespace,
    compiler: DiagnosticsProvider | None = None,
    formatter: CodeFormatter | None = None,
    log_stream: TextIO | None = None,
) -> LanguageServer:
    """Create a configured server from parsed command-line arguments."""
    compiler_command: tuple[str, ...] | None = None
    if args.compiler is not None:
        compiler_command = tuple(shlex.split(args.compiler))
    overrides = CliOverrides(
        data_dir=Path(args.data_dir).resolve() if args.data_dir is not None else None,
        compiler_command=compiler_command,
        formatter_command=args.clang_format,
        verbose=args.verbose,
        log_messages=args.log_messages,
    )
    config = load_effective_config(None, overrides)
    return LanguageServer(
        config,
        overrides=overrides,
        compiler=compiler,
        formatter=formatter,
        log_stream=log_stream,
    )


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the Metal language server process."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    try:
        server = create_server(args)
    except ValueError as error:
        parser.error(str(error))
    return server.serve(in_stream=sys.stdin.buffer, out_stream=sys.stdout.buffer)


def _group_diagnostics(
    root_uri: str, diagnostics: list[CompilerDiagnostic]
) -> DiagnosticsByUri:
    # The root document always gets an entry so stale markers are cleared.
    grouped: dict[str, list[CompilerDiagnostic]] = {root_uri: []}
    for diagnostic in diagnostics:
        grouped.setdefault(diagnostic.file_uri, []).append(diagnostic)
    return {uri: tuple(items) for uri, items in grouped.items()}


if __name__ == "__main__":
    raise SystemExit(main())
