from __future__ import annotations

from metal_lsp.analysis import SemanticToken
from metal_lsp.documents.positions import LineIndex, Position, Range
from metal_lsp.features import TOKEN_TYPES, encode_tokens, legend
from metal_lsp.features.semantic_tokens import tokens_in_range

SOURCE = "float a; // \U0001f600x\nint b;"


def test_legend_lists_every_token_type() -> None:
    assert legend() == {"tokenTypes": list(TOKEN_TYPES), "tokenModifiers": []}
    assert len(TOKEN_TYPES) == 22
    assert TOKEN_TYPES.index("type") == 1
    assert TOKEN_TYPES.index("operator") == 21


def test_encoding_is_relative_and_utf16_aware() -> None:
    tokens = [
        SemanticToken("comment", 0, 9, 5),
        SemanticToken("type", 0, 0, 5),
        SemanticToken("variable", 1, 4, 1),
        SemanticToken("label", 1, 0, 3),
    ]

    assert encode_tokens(tokens, LineIndex(SOURCE)) == [
        0, 0, 5, 1, 0,
        0, 9, 6, 17, 0,
        1, 4, 1, 8, 0,
    ]  # fmt: skip


def test_zero_length_tokens_are_dropped() -> None:
    assert encode_tokens([SemanticToken("variable", 0, 3, 0)], LineIndex("abc")) == []


def test_range_keeps_overlapping_tokens() -> None:
    tokens = [
        SemanticToken("type", 0, 0, 5),
        SemanticToken("variable", 0, 6, 1),
        SemanticToken("type", 1, 0, 3),
        SemanticToken("variable", 1, 4, 1),
    ]
    requested = Range(Position(0, 6), Position(1, 3))

    selected = tokens_in_range(tokens, LineIndex(SOURCE), requested)

    assert selected == [tokens[1], tokens[2]]
