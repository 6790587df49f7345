"""Document outline and folding ranges."""

from __future__ import annotations

from metal_lsp.analysis.masking import block_comment_spans, mask_source, scan_brace_blocks
from metal_lsp.analysis.models import FUNCTION_KINDS, DocumentIndex, SourceRange, SymbolNode
from metal_lsp.documents.positions import LineIndex
from metal_lsp.workspace.includes import iter_quoted_includes

# LSP SymbolKind values.
SYMBOL_KIND_FIELD = 8
SYMBOL_KIND_FUNCTION = 12
SYMBOL_KIND_VARIABLE = 13
SYMBOL_KIND_STRUCT = 23


def document_symbols(index: DocumentIndex, line_index: LineIndex) -> list[dict[str, object]]:
    """Render the indexed symbol tree as hierarchical DocumentSymbols."""
    return [_document_symbol(symbol, line_index, parent=None) for symbol in index.symbols]


def folding_ranges(source: str, line_index: LineIndex) -> list[dict[str, object]]:
    """Return folds for multi-line brace blocks, block comments and include runs."""
    ranges: list[dict[str, object]] = []
    for block in scan_brace_blocks(mask_source(source)):
        if block.end_line - 1 > block.start_line:
            ranges.append({"startLine": block.start_line, "endLine": block.end_line - 1})

    for start, end in block_comment_spans(source):
        start_line = line_index.position_at(start).line
        end_line = line_index.position_at(max(start, end - 1)).line
        if end_line > start_line:
            ranges.append({"startLine": start_line, "endLine": end_line, "kind": "comment"})

    include_lines = [directive.line for directive in iter_quoted_includes(source)]
    ranges.extend(_include_runs(include_lines))
    ranges.sort(key=lambda item: (int(item["startLine"]), int(item["endLine"])))
    return ranges


def _include_runs(lines: list[int]) -> list[dict[str, object]]:
    runs: list[dict[str, object]] = []
    start = previous = None
    for line in lines:
        if previous is not None and line == previous + 1:
            previous = line
            continue
        if start is not None and previous is not None and previous > start:
            runs.append({"startLine": start, "endLine": previous, "kind": "imports"})
        start = previous = line
    if start is not None and previous is not None and previous > start:
        runs.append({"startLine": start, "endLine": previous, "kind": "imports"})
    return runs


def _document_symbol(
    symbol: SymbolNode,
    line_index: LineIndex,
    parent: SymbolNode | None,
) -> dict[str, object]:
    payload: dict[str, object] = {
        "name": symbol.name,
        "kind": _symbol_kind(symbol, parent),
        "range": _to_lsp_range(symbol.range, line_index),
        "selectionRange": _to_lsp_range(symbol.selection_range, line_index),
    }
    if symbol.detail is not None:
        payload["detail"] = symbol.detail
    if symbol.children:
        payload["children"] = [
            _document_symbol(child, line_index, parent=symbol) for child in symbol.children
        ]
    return payload


def _symbol_kind(symbol: SymbolNode, parent: SymbolNode | None) -> int:
    if symbol.kind in FUNCTION_KINDS:
        return SYMBOL_KIND_FUNCTION
    if symbol.kind == "struct":
        return SYMBOL_KIND_STRUCT
    if parent is not None and parent.kind == "struct":
        return SYMBOL_KIND_FIELD
    return SYMBOL_KIND_VARIABLE


def _to_lsp_range(source_range: SourceRange, line_index: LineIndex) -> dict[str, dict[str, int]]:
    return line_index.to_range(
        source_range.start.line,
        source_range.start.column,
        source_range.end.line,
        source_range.end.column,
    ).to_lsp()
