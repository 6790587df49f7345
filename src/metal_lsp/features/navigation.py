"""Locations, highlights, include links and declared-type lookup."""

from __future__ import annotations

import re

from metal_lsp.analysis.builtins import KEYWORDS
from metal_lsp.analysis.finder import SymbolFinder
from metal_lsp.analysis.masking import mask_source
from metal_lsp.documents.positions import LineIndex
from metal_lsp.workspace.includes import iter_quoted_includes
from metal_lsp.workspace.models import SymbolLocation
from metal_lsp.workspace.resolver import WorkspaceResolver

# LSP DocumentHighlightKind values.
HIGHLIGHT_READ = 2
HIGHLIGHT_WRITE = 3

_NON_TYPE_WORDS = frozenset(KEYWORDS)


def location_payload(location: SymbolLocation, line_index: LineIndex) -> dict[str, object]:
    """Render a resolved location against the line index of its file."""
    span = line_index.to_range(
        location.line,
        location.column,
        location.line,
        location.column + location.length,
    )
    return {"uri": location.uri, "range": span.to_lsp()}


def empty_location(uri: str) -> dict[str, object]:
    zero = {"line": 0, "character": 0}
    return {"uri": uri, "range": {"start": dict(zero), "end": dict(zero)}}


def document_highlights(
    word: str,
    source: str,
    line_index: LineIndex,
    finder: SymbolFinder,
) -> list[dict[str, object]]:
    """Highlight every occurrence; declaration sites are marked as writes."""
    declared = {
        (declaration.line, declaration.column)
        for declaration in finder.find_declarations(word, source)
    }
    highlights: list[dict[str, object]] = []
    for occurrence in finder.find_references(word, source):
        span = line_index.to_range(
            occurrence.line,
            occurrence.column,
            occurrence.line,
            occurrence.column + len(word),
        )
        kind = HIGHLIGHT_WRITE if (occurrence.line, occurrence.column) in declared else HIGHLIGHT_READ
        highlights.append({"range": span.to_lsp(), "kind": kind})
    return highlights


def document_links(
    uri: str,
    source: str,
    line_index: LineIndex,
    resolver: WorkspaceResolver,
) -> list[dict[str, object]]:
    """Link every quoted include whose target exists."""
    links: list[dict[str, object]] = []
    for directive in iter_quoted_includes(source):
        target = resolver.include_target(uri, directive.path)
        if target is None:
            continue
        span = line_index.to_range(
            directive.line,
            directive.start_column,
            directive.line,
            directive.end_column,
        )
        links.append({"range": span.to_lsp(), "target": target})
    return links


def declared_type_of(name: str, source: str) -> str | None:
    """Return the type name written before the first declaration of `name`."""
    pattern = re.compile(
        rf"\b([A-Za-z_]\w*)\s*(?:<[^<>;{{}}]*>)?\s*[*&]*\s*\b{re.escape(name)}\b\s*(?=[=;,)\[]|$)",
        re.MULTILINE,
    )
    for match in pattern.finditer(mask_source(source, mask_char_literals=True)):
        type_name = match.group(1)
        if type_name in _NON_TYPE_WORDS:
            continue
        return type_name
    return None
