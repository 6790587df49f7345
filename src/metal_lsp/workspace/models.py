"""Workspace data models."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True, frozen=True)
class FileRecord:
    """Discovered workspace file metadata."""

    path: str
    full_path: Path
    size: int
    mtime_ns: int


@dataclass(slots=True, frozen=True)
class WorkspaceFileCacheEntry:
    """Disk snapshot valid while the file's mtime and size are unchanged."""

    mtime_ns: int
    size: int
    source: str


@dataclass(slots=True, frozen=True)
class SymbolLocation:
    """Resolved symbol span in one workspace file, in code-point columns."""

    uri: str
    line: int
    column: int
    length: int
    kind: str | None = None
