"""Authoritative in-memory store of open documents."""

from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import dataclass, field

from metal_lsp.documents.positions import LineIndex, Range


@dataclass(slots=True, frozen=True)
class ContentChange:
    """One `TextDocumentContentChangeEvent`; no range means full replacement."""

    text: str
    range: Range | None = None

    @classmethod
    def from_lsp(cls, payload: object) -> ContentChange:
        """Parse a JSON content change, raising ValueError on a malformed payload."""
        if not isinstance(payload, dict):
            raise ValueError("content change must be an object")
        text = payload.get("text")
        if not isinstance(text, str):
            raise ValueError("content change requires string text")
        raw_range = payload.get("range")
        if raw_range is None:
            return cls(text=text)
        return cls(text=text, range=Range.from_lsp(raw_range))


@dataclass(slots=True)
class Document:
    """Open document snapshot with its derived line index."""

    uri: str
    text: str
    version: int
    line_index: LineIndex = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.line_index = LineIndex(self.text)

    def apply_change(self, change: ContentChange) -> None:
        """Apply one change against the current text and rebuild the line index."""
        if change.range is None:
            self.text = change.text
        else:
            start = self.line_index.offset_at(change.range.start)
            end = self.line_index.offset_at(change.range.end)
            if end < start:
                start, end = end, start
            self.text = self.text[:start] + change.text + self.text[end:]
        self.line_index = LineIndex(self.text)


class DocumentStore:
    """Serialized owner of every open document keyed by URI."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._documents: dict[str, Document] = {}

    def open(self, uri: str, text: str, version: int) -> Document:
        """Store a freshly opened document, replacing any previous snapshot."""
        with self._lock:
            document = Document(uri=uri, text=text, version=version)
            self._documents[uri] = document
            return document

    def update(self, uri: str, changes: Sequence[ContentChange], version: int) -> Document | None:
        """Apply changes in order; unknown URIs are ignored."""
        with self._lock:
            document = self._documents.get(uri)
            if document is None:
                return None
            for change in changes:
                document.apply_change(change)
            document.version = version
            return document

    def close(self, uri: str) -> bool:
        """Forget a document; return whether it was open."""
        with self._lock:
            return self._documents.pop(uri, None) is not None

    def get(self, uri: str) -> Document | None:
        with self._lock:
            return self._documents.get(uri)

    def uris(self) -> list[str]:
        """Return open URIs in open order."""
        with self._lock:
            return list(self._documents.keys())

    def __contains__(self, uri: object) -> bool:
        with self._lock:
            return uri in self._documents

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)
