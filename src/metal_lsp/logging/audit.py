"""Structured JSONL audit log utilities."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

_TEXT_KEYS = frozenset({"text", "newText"})


@dataclass(slots=True, frozen=True)
class AuditEvent:
    """Sanitized representation of a single dispatched message."""

    timestamp: str
    request_id: str | None
    method: str
    ok: bool
    error_code: int | None
    metadata: dict[str, object]


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def sanitize_params(params: dict[str, object]) -> dict[str, object]:
    """Reduce message params to a shape summary that never contains source text."""
    sanitized: dict[str, object] = {}
    for key in sorted(params.keys()):
        value = params[key]
        if key == "textDocument" and isinstance(value, dict):
            uri = value.get("uri")
            if isinstance(uri, str):
                sanitized["uri"] = uri
            version = value.get("version")
            if isinstance(version, int) and not isinstance(version, bool):
                sanitized["version"] = version
            text = value.get("text")
            if isinstance(text, str):
                sanitized["text_length"] = len(text)
            continue
        if key == "position" and isinstance(value, dict):
            sanitized["line"] = value.get("line")
            sanitized["character"] = value.get("character")
            continue
        if key == "contentChanges" and isinstance(value, list):
            sanitized["change_count"] = len(value)
            sanitized["change_text_length"] = sum(
                len(item["text"])
                for item in value
                if isinstance(item, dict) and isinstance(item.get("text"), str)
            )
            continue
        if key in _TEXT_KEYS and isinstance(value, str):
            sanitized[f"{key}_length"] = len(value)
            continue
        if isinstance(value, (int, float, bool)) or value is None:
            sanitized[key] = value
            continue
        if isinstance(value, str):
            sanitized[f"{key}_present"] = True
            sanitized[f"{key}_length"] = len(value)
            continue
        if isinstance(value, list):
            sanitized[f"{key}_type"] = "list"
            sanitized[f"{key}_length"] = len(value)
            continue
        if isinstance(value, dict):
            sanitized[f"{key}_type"] = "dict"
            sanitized[f"{key}_keys"] = sorted(str(k) for k in value.keys())
            continue
        sanitized[f"{key}_type"] = type(value).__name__
    return sanitized


class JsonlAuditLogger:
    """Append-only JSONL audit logger."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        """Return on-disk JSONL path."""
        return self._path

    def append(self, event: AuditEvent) -> None:
        """Append a sanitized event as one JSON object per line."""
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(asdict(event), sort_keys=True))
            handle.write("\n")
