from __future__ import annotations

from metal_lsp.analysis import SymbolDeclaration, SymbolFinder, SymbolOccurrence
from metal_lsp.analysis.models import declaration_sort_key


def test_kernel_outranks_variable_with_same_name() -> None:
    source = "kernel void foo(){}\nfloat foo;"
    declarations = SymbolFinder().find_declarations("foo", source)

    assert declarations == [
        SymbolDeclaration(name="foo", kind="kernel", line=0, column=12),
        SymbolDeclaration(name="foo", kind="variable", line=1, column=6),
    ]
    best = min(declarations, key=declaration_sort_key)
    assert best.kind == "kernel"


def test_calls_are_not_function_declarations() -> None:
    source = "\n".join(
        [
            "float foo(float x) { return x; }",
            "float y = foo(1.0);",
            "    return foo(2.0);",
            "foo(3.0);",
            "float z = bar(foo(4.0));",
        ]
    )

    declarations = SymbolFinder().find_declarations("foo", source)

    assert [(item.kind, item.line) for item in declarations] == [("function", 0)]


def test_struct_and_stage_declarations() -> None:
    source = "\n".join(
        [
            "struct Light { float3 dir; };",
            "vertex Light shade_vertex(uint vid [[vertex_id]]);",
            "fragment float4 shade(Light in [[stage_in]]) { return 0; }",
        ]
    )
    finder = SymbolFinder()

    assert finder.find_declarations("Light", source) == [
        SymbolDeclaration(name="Light", kind="struct", line=0, column=7)
    ]
    assert [item.kind for item in finder.find_declarations("shade_vertex", source)] == ["vertex"]
    assert [item.kind for item in finder.find_declarations("shade", source)] == ["fragment"]


def test_variable_heuristic_requires_balanced_parens() -> None:
    source = "float total = 0.0;\nsum(total = 1.0);\nthreadgroup float cache;"
    finder = SymbolFinder()

    assert [(item.line, item.column) for item in finder.find_declarations("total", source)] == [
        (0, 6)
    ]
    assert [item.kind for item in finder.find_declarations("cache", source)] == ["variable"]


def test_comments_strings_and_char_literals_are_ignored() -> None:
    source = "\n".join(
        [
            "// float foo(int a);",
            'constant char* s = "foo(";',
            "char c = 'f'; /* foo( */",
            "float foo(int a);",
        ]
    )
    finder = SymbolFinder()

    assert [item.line for item in finder.find_declarations("foo", source)] == [3]
    assert finder.find_references("foo", source) == [SymbolOccurrence(line=3, column=6)]


def test_references_are_whole_word_matches() -> None:
    source = "float foo;\nfoo = foobar + foo_2 + foo;\n"

    assert SymbolFinder().find_references("foo", source) == [
        SymbolOccurrence(line=0, column=6),
        SymbolOccurrence(line=1, column=0),
        SymbolOccurrence(line=1, column=23),
    ]


def test_empty_name_yields_nothing() -> None:
    finder = SymbolFinder()

    assert finder.find_declarations("", "float a;") == []
    assert finder.find_references("", "float a;") == []


def test_name_on_its_own_line_uses_previous_line_as_return_type() -> None:
    source = "\n".join(
        [
            "vertex RasterizerData",
            "vertexShader(uint vid [[vertex_id]])",
            "{ return out; }",
            "kernel void",
            "add_arrays(device float* a [[buffer(0)]])",
            "{ }",
            "static float",
            "",
            "luma(float3 c) { return c.x; }",
        ]
    )
    finder = SymbolFinder()

    assert finder.find_declarations("vertexShader", source) == [
        SymbolDeclaration(name="vertexShader", kind="vertex", line=1, column=0)
    ]
    assert finder.find_declarations("add_arrays", source) == [
        SymbolDeclaration(name="add_arrays", kind="kernel", line=4, column=0)
    ]
    assert finder.find_declarations("luma", source) == [
        SymbolDeclaration(name="luma", kind="function", line=8, column=0)
    ]


def test_call_at_line_start_after_statement_or_directive_is_not_a_declaration() -> None:
    source = "float y = 1.0;\nfoo(y);\n#endif\nfoo(2.0);\nreturn\nfoo(3.0);"

    assert SymbolFinder().find_declarations("foo", source) == []
