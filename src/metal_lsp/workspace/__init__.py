"""Workspace enumeration and cross-file resolution."""

from metal_lsp.workspace.discovery import discover_files, should_exclude
from metal_lsp.workspace.includes import IncludeDirective, iter_quoted_includes, resolve_include
from metal_lsp.workspace.models import FileRecord, SymbolLocation, WorkspaceFileCacheEntry
from metal_lsp.workspace.resolver import WorkspaceResolver, resolve_workspace_root
from metal_lsp.workspace.uris import normalize_uri, path_to_uri, uri_to_path

__all__ = [
    "FileRecord",
    "IncludeDirective",
    "SymbolLocation",
    "WorkspaceFileCacheEntry",
    "WorkspaceResolver",
    "discover_files",
    "iter_quoted_includes",
    "normalize_uri",
    "path_to_uri",
    "resolve_include",
    "resolve_workspace_root",
    "should_exclude",
    "uri_to_path",
]
