from __future__ import annotations

from metal_lsp.analysis import SemanticLexer, SemanticToken


def _types(source: str) -> list[tuple[str, str]]:
    lines = source.split("\n")
    return [
        (token.type, lines[token.line][token.column : token.column + token.length])
        for token in SemanticLexer().tokenize(source)
    ]


def test_classifies_keywords_types_functions_and_numbers() -> None:
    tokens = _types("kernel void k(device float4* out, uint id) { out[id] = 1.5f; }")

    assert ("keyword", "kernel") in tokens
    assert ("keyword", "device") in tokens
    assert ("type", "void") in tokens
    assert ("type", "float4") in tokens
    assert ("type", "uint") in tokens
    assert ("function", "k") in tokens
    assert ("variable", "out") in tokens
    assert ("number", "1.5f") in tokens
    assert ("operator", "=") in tokens


def test_member_access_is_method_or_property() -> None:
    tokens = _types("color = tex.sample(smp, in.uv);")

    assert ("method", "sample") in tokens
    assert ("property", "uv") in tokens
    assert ("variable", "tex") in tokens


def test_capitalized_identifiers_are_classes() -> None:
    assert ("class", "VertexOut") in _types("VertexOut out;")


def test_macros_strings_and_comments() -> None:
    tokens = _types('#include "common.h" // shared\n#define SCALE 2')

    assert tokens[:3] == [
        ("macro", "#include"),
        ("string", '"common.h"'),
        ("comment", "// shared"),
    ]
    assert ("macro", "#define") in tokens
    assert ("number", "2") in tokens


def test_block_comments_span_lines() -> None:
    source = "float a; /* start\nmiddle\nend */ float b;"
    tokens = SemanticLexer().tokenize(source)

    comments = [token for token in tokens if token.type == "comment"]
    assert comments == [
        SemanticToken("comment", 0, 9, 8),
        SemanticToken("comment", 1, 0, 6),
        SemanticToken("comment", 2, 0, 6),
    ]
    assert SemanticToken("variable", 2, 13, 1) in tokens


def test_number_forms() -> None:
    tokens = _types("x = 0x1F + 2.0h + .5 + 3u + 1e-3;")

    numbers = [text for kind, text in tokens if kind == "number"]
    assert numbers == ["0x1F", "2.0h", ".5", "3u", "1e-3"]


def test_tokens_are_in_line_column_order() -> None:
    tokens = SemanticLexer().tokenize("float a;\nfloat b;")

    assert [(token.line, token.column) for token in tokens] == sorted(
        (token.line, token.column) for token in tokens
    )
