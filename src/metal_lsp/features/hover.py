"""Hover Markdown for local declarations and builtin symbols."""

from __future__ import annotations

from metal_lsp.analysis.builtins import BuiltinDocumentation, find_hardcoded
from metal_lsp.analysis.models import DocumentIndex


def hover_markdown(
    word: str,
    index: DocumentIndex | None,
    documentation: BuiltinDocumentation,
) -> str | None:
    """Return hover Markdown: local signature or struct, then builtin documentation."""
    if index is not None:
        signature = index.function_signatures.get(word)
        if signature is not None:
            return f"```metal\n{signature.label}\n```"
        symbol = index.find_symbol(word)
        if symbol is not None and symbol.kind == "struct":
            text = f"```metal\nstruct {symbol.name}\n```"
            if symbol.children:
                fields = ", ".join(f"`{child.name}`" for child in symbol.children)
                text += f"\n---\n\nFields: {fields}"
            return text

    entry = documentation.lookup(word)
    if entry is not None:
        return entry.markdown

    info = find_hardcoded(word)
    if info is None:
        return None
    text = f"```metal\n{info.label}\n```"
    if info.detail:
        text += f"\n\n{info.detail}"
    if info.documentation:
        text += f"\n---\n\n{info.documentation}"
    return text
