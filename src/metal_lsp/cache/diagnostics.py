"""Per-document memo of compiler diagnostics keyed by content and include fingerprints."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path

from metal_lsp.cache.analysis import content_hash
from metal_lsp.toolchain.compiler import CompilerDiagnostic
from metal_lsp.workspace.includes import iter_quoted_includes, resolve_include
from metal_lsp.workspace.uris import uri_to_path

DiagnosticsByUri = dict[str, tuple[CompilerDiagnostic, ...]]


@dataclass(slots=True, frozen=True)
class DiagnosticsCacheEntry:
    """Grouped diagnostics valid while the cache key is unchanged."""

    cache_key: str
    diagnostics_by_uri: DiagnosticsByUri


def include_fingerprint(uri: str, source: str) -> str:
    """Describe every file reached through quoted includes as `path|mtime_ns|size`.

    Nested headers are followed depth-first in source order, each file once.
    A file that cannot be read is recorded as `path|missing`.
    """
    document_path = uri_to_path(uri)
    if document_path is None:
        return "\n".join(f"{directive.path}|missing" for directive in iter_quoted_includes(source))
    parts: list[str] = []
    _fingerprint_includes(document_path, source, parts, set())
    return "\n".join(parts)


def _fingerprint_includes(
    including_path: Path, source: str, parts: list[str], visited: set[Path]
) -> None:
    for directive in iter_quoted_includes(source):
        target = resolve_include(including_path, directive.path)
        if target in visited:
            continue
        visited.add(target)
        try:
            stat = target.stat()
            nested_source = target.read_text(encoding="utf-8", errors="replace")
        except OSError:
            parts.append(f"{target}|missing")
            continue
        parts.append(f"{target}|{stat.st_mtime_ns}|{stat.st_size}")
        _fingerprint_includes(target, nested_source, parts, visited)


def diagnostics_cache_key(uri: str, source: str) -> str:
    """Combine the source hash with the hash of its include fingerprint."""
    fingerprint = hashlib.sha256(include_fingerprint(uri, source).encode("utf-8")).hexdigest()
    return f"{content_hash(source)}:{fingerprint}"


class DiagnosticsCache:
    """Stores the last compiler result per root document URI."""

    def __init__(self) -> None:
        self._entries: dict[str, DiagnosticsCacheEntry] = {}
        self.hits = 0
        self.misses = 0

    def cache_key(self, uri: str, source: str) -> str:
        return diagnostics_cache_key(uri, source)

    def get(self, uri: str, cache_key: str) -> DiagnosticsByUri | None:
        """Return cached diagnostics when the stored key matches."""
        entry = self._entries.get(uri)
        if entry is None or entry.cache_key != cache_key:
            self.misses += 1
            return None
        self.hits += 1
        return dict(entry.diagnostics_by_uri)

    def store(self, uri: str, cache_key: str, diagnostics_by_uri: DiagnosticsByUri) -> None:
        self._entries[uri] = DiagnosticsCacheEntry(
            cache_key=cache_key,
            diagnostics_by_uri=dict(diagnostics_by_uri),
        )

    def evict(self, uri: str) -> None:
        self._entries.pop(uri, None)

    def __contains__(self, uri: object) -> bool:
        return uri in self._entries

    def __len__(self) -> int:
        return len(self._entries)
