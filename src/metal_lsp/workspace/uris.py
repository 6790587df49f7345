"""Conversions between `file://` URIs and filesystem paths."""

from __future__ import annotations

import re
from pathlib import Path
from urllib.parse import unquote, urlparse

_WINDOWS_DRIVE_PATH_RE = re.compile(r"^/[A-Za-z]:")


def uri_to_path(uri: str) -> Path | None:
    """Return the local path of a `file` URI, or None for other schemes."""
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        return None
    path = unquote(parsed.path)
    if _WINDOWS_DRIVE_PATH_RE.match(path):
        path = path[1:]
    if parsed.netloc and parsed.netloc != "localhost":
        path = f"//{parsed.netloc}{path}"
    return Path(path)


def path_to_uri(path: Path) -> str:
    """Return the `file` URI of an absolute or relative path."""
    return path.resolve().as_uri()


def normalize_uri(uri: str) -> str:
    """Return a canonical form used to compare URIs naming the same file."""
    path = uri_to_path(uri)
    if path is None:
        return uri
    return path_to_uri(path)
