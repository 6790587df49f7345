"""Deterministic workspace file discovery."""

from __future__ import annotations

import fnmatch
import os
from pathlib import Path

from metal_lsp.config import WorkspaceConfig
from metal_lsp.workspace.models import FileRecord


def discover_files(workspace_root: Path, config: WorkspaceConfig) -> list[FileRecord]:
    """Discover allow-listed source files sorted by relative path."""
    root = workspace_root.resolve()
    include_extensions = {extension.lower() for extension in config.include_extensions}
    excluded_dir_names = _excluded_dir_names(config.exclude_globs)

    records: list[FileRecord] = []
    stack: list[Path] = [root]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as entries:
                ordered_entries = sorted(entries, key=lambda item: item.name)
        except OSError:
            continue
        for entry in reversed(ordered_entries):
            full_path = Path(entry.path)
            relative = full_path.relative_to(root).as_posix()
            if entry.is_dir(follow_symlinks=False):
                if entry.name in excluded_dir_names and should_exclude(
                    f"{relative}/", config.exclude_globs
                ):
                    continue
                stack.append(full_path)
                continue
            if not entry.is_file(follow_symlinks=False):
                continue
            if should_exclude(relative, config.exclude_globs):
                continue
            if Path(relative).suffix.lower() not in include_extensions:
                continue
            try:
                stat = entry.stat(follow_symlinks=False)
            except OSError:
                continue
            records.append(
                FileRecord(
                    path=relative,
                    full_path=full_path,
                    size=stat.st_size,
                    mtime_ns=stat.st_mtime_ns,
                )
            )
    records.sort(key=lambda item: item.path)
    return records


def should_exclude(relative_path: str, exclude_globs: tuple[str, ...]) -> bool:
    """Return True when a path matches configured ignore globs."""
    anchored = f"/{relative_path}"
    return any(
        fnmatch.fnmatch(relative_path, pattern) or fnmatch.fnmatch(anchored, pattern)
        for pattern in exclude_globs
    )


def _excluded_dir_names(exclude_globs: tuple[str, ...]) -> set[str]:
    """Extract directory-name prunes from **/name/** glob patterns."""
    output: set[str] = set()
    for pattern in exclude_globs:
        if not pattern.startswith("**/") or not pattern.endswith("/**"):
            continue
        name = pattern[3:-3].strip("/")
        if not name or any(char in name for char in "*?[]{}"):
            continue
        output.add(name)
    return output
