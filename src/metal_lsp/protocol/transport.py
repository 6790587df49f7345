"""Content-Length framed message transport over binary streams."""

from __future__ import annotations

import json
from typing import BinaryIO, TextIO

_LINE_TERMINATOR = b"\r\n"
_READ_CHUNK_BYTES = 64 * 1024


class TransportError(Exception):
    """Raised when a frame cannot be read from or written to the stream."""


class MessageTransport:
    """Reads and writes JSON-RPC bodies framed with `Content-Length` headers."""

    def __init__(
        self,
        in_stream: BinaryIO,
        out_stream: BinaryIO,
        trace_stream: TextIO | None = None,
    ) -> None:
        self._in_stream = in_stream
        self._out_stream = out_stream
        self._trace_stream = trace_stream
        self._read_chunk = getattr(in_stream, "read1", in_stream.read)
        self._buffer = bytearray()

    def read_message(self) -> bytes | None:
        """Block until one full body is available; return None on clean EOF."""
        headers = self._read_headers()
        if headers is None:
            return None
        raw_length = headers.get("content-length")
        if raw_length is None:
            raise TransportError("Missing Content-Length header.")
        try:
            length = int(raw_length)
        except ValueError as error:
            raise TransportError(f"Invalid Content-Length header: {raw_length!r}") from error
        if length < 0:
            raise TransportError(f"Invalid Content-Length header: {raw_length!r}")
        body = self._read_exact(length)
        self._trace("<-", body)
        return body

    def write_message(self, body: bytes) -> None:
        """Write one framed body and flush the output stream."""
        self._trace("->", body)
        header = f"Content-Length: {len(body)}\r\n\r\n".encode("ascii")
        self._out_stream.write(header + body)
        self._out_stream.flush()

    def write_json(self, payload: dict[str, object]) -> None:
        """Encode a JSON payload as UTF-8 and write it as one frame."""
        body = json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
        self.write_message(body)

    def _read_headers(self) -> dict[str, str] | None:
        headers: dict[str, str] = {}
        while True:
            line = self._read_line()
            if line is None:
                return None
            if not line:
                return headers
            key, separator, value = line.partition(":")
            if not separator:
                continue
            headers[key.strip().lower()] = value.strip()

    def _read_line(self) -> str | None:
        while True:
            end = self._buffer.find(_LINE_TERMINATOR)
            if end >= 0:
                raw = bytes(self._buffer[:end])
                del self._buffer[: end + len(_LINE_TERMINATOR)]
                return raw.decode("ascii", errors="replace")
            if not self._fill():
                return None

    def _read_exact(self, length: int) -> bytes:
        while len(self._buffer) < length:
            if not self._fill():
                raise TransportError("Unexpected end of stream while reading message body.")
        body = bytes(self._buffer[:length])
        del self._buffer[:length]
        return body

    def _fill(self) -> bool:
        chunk = self._read_chunk(_READ_CHUNK_BYTES)
        if not chunk:
            return False
        self._buffer.extend(chunk)
        return True

    def _trace(self, direction: str, body: bytes) -> None:
        if self._trace_stream is None:
            return
        text = body.decode("utf-8", errors="replace")
        self._trace_stream.write(f"[metal-lsp] {direction} {text}\n")
        self._trace_stream.flush()
