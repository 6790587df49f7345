"""Open document state and position mapping."""

from metal_lsp.documents.positions import LineIndex, Position, Range, utf16_length
from metal_lsp.documents.store import ContentChange, Document, DocumentStore

__all__ = [
    "ContentChange",
    "Document",
    "DocumentStore",
    "LineIndex",
    "Position",
    "Range",
    "utf16_length",
]
