"""Completion items from builtin tables and the document index."""

from __future__ import annotations

from metal_lsp.analysis.builtins import (
    KEYWORDS,
    BuiltinDocumentation,
    CompletionInfo,
    hardcoded_completions,
)
from metal_lsp.analysis.models import FUNCTION_KINDS, DocumentIndex

# LSP CompletionItemKind values.
KIND_TEXT = 1
KIND_FUNCTION = 3
KIND_FIELD = 5
KIND_CLASS = 7
KIND_PROPERTY = 10
KIND_KEYWORD = 14
KIND_SNIPPET = 15
KIND_STRUCT = 22

_INSERT_FORMAT_PLAIN = 1
_INSERT_FORMAT_SNIPPET = 2
_KEYWORD_SET = frozenset(KEYWORDS)


def completion_kind(info: CompletionInfo) -> int:
    """Classify a static completion the way editors expect to render it."""
    if info.label.startswith("[["):
        return KIND_PROPERTY
    if info.insert_text is not None and "$" in info.insert_text:
        return KIND_SNIPPET
    if info.detail is not None and "(" in info.detail:
        return KIND_FUNCTION
    if info.label in _KEYWORD_SET:
        return KIND_KEYWORD
    return KIND_CLASS


def completion_item(info: CompletionInfo) -> dict[str, object]:
    """Render one static completion as an LSP CompletionItem."""
    item: dict[str, object] = {"label": info.label, "kind": completion_kind(info)}
    if info.detail is not None:
        item["detail"] = info.detail
    if info.documentation:
        item["documentation"] = {"kind": "markdown", "value": info.documentation}
    if info.insert_text is not None:
        item["insertText"] = info.insert_text
        item["insertTextFormat"] = (
            _INSERT_FORMAT_SNIPPET if "$" in info.insert_text else _INSERT_FORMAT_PLAIN
        )
    return item


def local_completion_items(index: DocumentIndex) -> list[dict[str, object]]:
    """Return completions for functions, structs and struct fields of one document."""
    items: list[dict[str, object]] = []
    for symbol in index.symbols:
        if symbol.kind in FUNCTION_KINDS:
            items.append({"label": symbol.name, "kind": KIND_FUNCTION, "detail": symbol.detail})
        elif symbol.kind == "struct":
            items.append({"label": symbol.name, "kind": KIND_STRUCT, "detail": "struct"})
            for child in symbol.children:
                items.append(
                    {"label": child.name, "kind": KIND_FIELD, "detail": f"{symbol.name}.{child.name}"}
                )
    return items


def completion_items(
    index: DocumentIndex | None,
    documentation: BuiltinDocumentation,
) -> list[dict[str, object]]:
    """Merge local symbols ahead of builtins, keeping the first item per label."""
    candidates: list[dict[str, object]] = []
    if index is not None:
        candidates.extend(local_completion_items(index))
    candidates.extend(completion_item(info) for info in hardcoded_completions())
    candidates.extend(completion_item(info) for info in documentation.completions())

    items: list[dict[str, object]] = []
    seen: set[str] = set()
    for item in candidates:
        label = str(item["label"])
        if label in seen:
            continue
        seen.add(label)
        items.append(item)
    return items
