"""Semantic token legend and relative integer encoding."""

from __future__ import annotations

from collections.abc import Iterable

from metal_lsp.analysis.lexer import SemanticToken
from metal_lsp.documents.positions import LineIndex, Range

TOKEN_TYPES = (
    "namespace",
    "type",
    "class",
    "enum",
    "interface",
    "struct",
    "typeParameter",
    "parameter",
    "variable",
    "property",
    "enumMember",
    "event",
    "function",
    "method",
    "macro",
    "keyword",
    "modifier",
    "comment",
    "string",
    "number",
    "regexp",
    "operator",
)
TOKEN_MODIFIERS: tuple[str, ...] = ()
_TYPE_INDEX = {name: index for index, name in enumerate(TOKEN_TYPES)}


def legend() -> dict[str, list[str]]:
    return {"tokenTypes": list(TOKEN_TYPES), "tokenModifiers": list(TOKEN_MODIFIERS)}


def encode_tokens(tokens: Iterable[SemanticToken], line_index: LineIndex) -> list[int]:
    """Encode tokens as `deltaLine, deltaStart, length, type, modifiers` quintuples."""
    data: list[int] = []
    previous_line = 0
    previous_start = 0
    for token in sorted(tokens, key=lambda item: (item.line, item.column)):
        type_index = _TYPE_INDEX.get(token.type)
        if type_index is None:
            continue
        start = line_index.to_position(token.line, token.column)
        end = line_index.to_position(token.line, token.column + token.length)
        length = end.character - start.character
        if length <= 0:
            continue
        delta_line = start.line - previous_line
        delta_start = start.character - previous_start if delta_line == 0 else start.character
        data.extend((delta_line, delta_start, length, type_index, 0))
        previous_line = start.line
        previous_start = start.character
    return data


def tokens_in_range(
    tokens: Iterable[SemanticToken],
    line_index: LineIndex,
    requested: Range,
) -> list[SemanticToken]:
    """Keep tokens that overlap the requested range."""
    start_offset = line_index.offset_at(requested.start)
    end_offset = line_index.offset_at(requested.end)
    selected: list[SemanticToken] = []
    for token in tokens:
        token_start = line_index.line_start(token.line) + token.column
        token_end = token_start + token.length
        if token_end > start_offset and token_start < end_offset:
            selected.append(token)
    return selected
