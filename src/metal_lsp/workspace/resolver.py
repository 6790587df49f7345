"""Cross-file symbol resolution over open documents and workspace files."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from metal_lsp.analysis.finder import SymbolFinder
from metal_lsp.analysis.models import declaration_sort_key
from metal_lsp.config import WorkspaceConfig
from metal_lsp.documents.store import DocumentStore
from metal_lsp.workspace.discovery import discover_files
from metal_lsp.workspace.includes import parse_include_line, resolve_include
from metal_lsp.workspace.models import SymbolLocation, WorkspaceFileCacheEntry
from metal_lsp.workspace.uris import normalize_uri, path_to_uri, uri_to_path


def resolve_workspace_root(params: dict[str, object]) -> Path | None:
    """Pick the root from workspace folders, then rootUri, then rootPath."""
    folders = params.get("workspaceFolders")
    if isinstance(folders, list):
        for folder in folders:
            if isinstance(folder, dict) and isinstance(folder.get("uri"), str):
                path = uri_to_path(folder["uri"])
                if path is not None:
                    return path
    root_uri = params.get("rootUri")
    if isinstance(root_uri, str):
        path = uri_to_path(root_uri)
        if path is not None:
            return path
    root_path = params.get("rootPath")
    if isinstance(root_path, str) and root_path:
        return Path(root_path)
    return None


class WorkspaceResolver:
    """Merges open documents with enumerated workspace files for navigation queries."""

    def __init__(
        self,
        documents: DocumentStore,
        config: WorkspaceConfig | None = None,
        finder: SymbolFinder | None = None,
        log: Callable[[str], None] | None = None,
    ) -> None:
        self._documents = documents
        self._config = config or WorkspaceConfig()
        self._finder = finder or SymbolFinder()
        self._log = log or (lambda message: None)
        self._root: Path | None = None
        self._file_uris: tuple[str, ...] | None = None
        self._file_cache: dict[str, WorkspaceFileCacheEntry] = {}
        self.disk_reads = 0

    @property
    def root(self) -> Path | None:
        return self._root

    def set_root(self, root: Path | None) -> None:
        """Bind a new root; the enumerated file list is recomputed lazily."""
        resolved = None if root is None else root.resolve()
        if resolved != self._root:
            self._root = resolved
            self._file_uris = None

    def configure(self, config: WorkspaceConfig) -> None:
        """Replace enumeration settings and drop the cached file list."""
        self._config = config
        self._file_uris = None

    def refresh(self) -> None:
        """Force the next query to re-enumerate the workspace."""
        self._file_uris = None

    def workspace_uris(self) -> tuple[str, ...]:
        """Return enumerated file URIs in deterministic order."""
        if self._root is None:
            return ()
        if self._file_uris is None:
            records = discover_files(self._root, self._config)
            self._file_uris = tuple(path_to_uri(record.full_path) for record in records)
            self._log(f"Enumerated {len(self._file_uris)} workspace files under {self._root}")
        return self._file_uris

    def candidate_uris(self) -> list[str]:
        """Return open URIs followed by enumerated URIs not already open."""
        candidates = self._documents.uris()
        seen = {normalize_uri(uri) for uri in candidates}
        for uri in self.workspace_uris():
            if uri in seen:
                continue
            seen.add(uri)
            candidates.append(uri)
        return candidates

    def source_for(self, uri: str) -> str | None:
        """Return live text for open documents, else a validated disk snapshot."""
        document = self._documents.get(uri)
        if document is not None:
            return document.text
        path = uri_to_path(uri)
        if path is None:
            return None
        try:
            stat = path.stat()
        except OSError:
            self._file_cache.pop(uri, None)
            return None
        cached = self._file_cache.get(uri)
        if cached is not None and cached.mtime_ns == stat.st_mtime_ns and cached.size == stat.st_size:
            return cached.source
        try:
            source = path.read_text(encoding="utf-8", errors="replace")
        except OSError as error:
            self._log(f"Failed to read {path}: {error}")
            return None
        self.disk_reads += 1
        self._file_cache[uri] = WorkspaceFileCacheEntry(
            mtime_ns=stat.st_mtime_ns,
            size=stat.st_size,
            source=source,
        )
        return source

    def find_definition(
        self,
        name: str,
        primary_uri: str,
        kinds: frozenset[str] | None = None,
    ) -> SymbolLocation | None:
        """Return the best-ranked declaration, preferring the primary document."""
        primary_key = normalize_uri(primary_uri)
        ordered = [primary_uri]
        ordered.extend(uri for uri in self.candidate_uris() if normalize_uri(uri) != primary_key)
        for uri in ordered:
            source = self.source_for(uri)
            if source is None:
                continue
            declarations = [
                declaration
                for declaration in self._finder.find_declarations(name, source)
                if kinds is None or declaration.kind in kinds
            ]
            if not declarations:
                continue
            best = min(declarations, key=declaration_sort_key)
            return SymbolLocation(
                uri=uri,
                line=best.line,
                column=best.column,
                length=len(name),
                kind=best.kind,
            )
        return None

    def find_references(self, name: str, include_declaration: bool) -> list[SymbolLocation]:
        """Return every occurrence across candidates, de-duplicated by position."""
        locations: list[SymbolLocation] = []
        seen: set[tuple[str, int, int]] = set()
        for uri in self.candidate_uris():
            source = self.source_for(uri)
            if source is None:
                continue
            positions: list[tuple[int, int]] = []
            if include_declaration:
                positions.extend(
                    (declaration.line, declaration.column)
                    for declaration in self._finder.find_declarations(name, source)
                )
            positions.extend(
                (occurrence.line, occurrence.column)
                for occurrence in self._finder.find_references(name, source)
            )
            for line, column in positions:
                key = (uri, line, column)
                if key in seen:
                    continue
                seen.add(key)
                locations.append(SymbolLocation(uri=uri, line=line, column=column, length=len(name)))
        return locations

    def resolve_include_at(self, uri: str, line_text: str, column: int) -> str | None:
        """Return the target URI of a quoted include whose path span contains `column`."""
        directive = parse_include_line(line_text)
        if directive is None:
            return None
        if not directive.start_column <= column <= directive.end_column:
            return None
        return self.include_target(uri, directive.path)

    def include_target(self, uri: str, include_path: str) -> str | None:
        """Resolve an include against the including file, requiring the target to exist."""
        document_path = uri_to_path(uri)
        if document_path is None:
            return None
        target = resolve_include(document_path, include_path)
        if not target.is_file():
            return None
        return path_to_uri(target)
