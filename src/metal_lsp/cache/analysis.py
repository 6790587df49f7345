"""Per-document memo of indexing and tokenizing results."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from metal_lsp.analysis.indexer import StructuralIndexer
from metal_lsp.analysis.lexer import SemanticLexer, SemanticToken
from metal_lsp.analysis.models import DocumentIndex
from metal_lsp.documents.store import Document


@dataclass(slots=True, frozen=True)
class AnalysisResult:
    """Index and token stream of one document snapshot."""

    index: DocumentIndex
    tokens: tuple[SemanticToken, ...]


@dataclass(slots=True, frozen=True)
class AnalysisCacheEntry:
    """Cached analysis valid while version and content hash both match."""

    version: int | None
    content_hash: str
    result: AnalysisResult


def content_hash(text: str) -> str:
    """Return the SHA-256 hex digest of UTF-8 encoded text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class AnalysisCache:
    """Memoizes analysis passes keyed by URI, version and content hash."""

    def __init__(
        self,
        indexer: StructuralIndexer | None = None,
        lexer: SemanticLexer | None = None,
    ) -> None:
        self._indexer = indexer or StructuralIndexer()
        self._lexer = lexer or SemanticLexer()
        self._entries: dict[str, AnalysisCacheEntry] = {}
        self.hits = 0
        self.misses = 0

    def get(self, uri: str, document: Document) -> AnalysisResult:
        """Return analysis for an open document snapshot."""
        return self.analyze(uri, document.text, document.version)

    def analyze(self, uri: str, text: str, version: int | None = None) -> AnalysisResult:
        """Return cached analysis of `text`, recomputing on any version or hash mismatch."""
        digest = content_hash(text)
        entry = self._entries.get(uri)
        if entry is not None and entry.version == version and entry.content_hash == digest:
            self.hits += 1
            return entry.result
        self.misses += 1
        result = AnalysisResult(
            index=self._indexer.index(text),
            tokens=tuple(self._lexer.tokenize(text)),
        )
        self._entries[uri] = AnalysisCacheEntry(version=version, content_hash=digest, result=result)
        return result

    def evict(self, uri: str) -> None:
        self._entries.pop(uri, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, uri: object) -> bool:
        return uri in self._entries

    def __len__(self) -> int:
        return len(self._entries)
