"""Quoted `#include` directive scanning."""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

_QUOTED_INCLUDE_RE = re.compile(r'^\s*#\s*include\s*"([^"]+)"')


@dataclass(slots=True, frozen=True)
class IncludeDirective:
    """One quoted include; columns delimit the path between the quotes."""

    line: int
    start_column: int
    end_column: int
    path: str


def iter_quoted_includes(source: str) -> Iterator[IncludeDirective]:
    """Yield quoted includes in source order."""
    for line_number, line in enumerate(source.split("\n")):
        directive = parse_include_line(line, line_number)
        if directive is not None:
            yield directive


def parse_include_line(line: str, line_number: int = 0) -> IncludeDirective | None:
    """Parse one line as a quoted include directive."""
    match = _QUOTED_INCLUDE_RE.match(line)
    if match is None:
        return None
    return IncludeDirective(
        line=line_number,
        start_column=match.start(1),
        end_column=match.end(1),
        path=match.group(1),
    )


def resolve_include(document_path: Path, include_path: str) -> Path:
    """Join an include path against the including file's directory."""
    return (document_path.parent / include_path).resolve()
