from __future__ import annotations

from pathlib import Path

from metal_lsp.analysis import StructuralIndexer, parse_parameters
from metal_lsp.analysis.indexer import infer_function_kind, normalize_whitespace

FIXTURES = Path(__file__).resolve().parents[2] / "fixtures" / "shaders"


def _fixture_text(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


def test_struct_with_attributed_field() -> None:
    index = StructuralIndexer().index("struct VertexIn { float3 position [[attribute(0)]]; };")

    assert len(index.symbols) == 1
    struct = index.symbols[0]
    assert struct.name == "VertexIn"
    assert struct.kind == "struct"
    assert [child.name for child in struct.children] == ["position"]
    field = struct.children[0]
    assert (field.range.start.line, field.range.start.column) == (0, 25)
    assert field.range.end.column == 33


def test_struct_fields_skip_methods_directives_and_arrays() -> None:
    source = "\n".join(
        [
            "struct Params {",
            "    float4x4 transform;",
            "    device float* weights;",
            "    float samples[16];",
            "#if USE_EXTRA",
            "    float extra;",
            "#endif",
            "    float area() const;",
            "    // float commented;",
            "    uint count",
            "};",
        ]
    )

    struct = StructuralIndexer().index(source).symbols[0]

    assert [child.name for child in struct.children] == [
        "transform",
        "weights",
        "samples",
        "extra",
    ]
    assert struct.children[2].range.start.line == 3


def test_struct_forward_declaration_is_not_indexed() -> None:
    index = StructuralIndexer().index("struct Light;\nstruct Light\n{ float x; };")

    assert [symbol.name for symbol in index.symbols] == []


def test_function_signature_and_parameters() -> None:
    source = "float4 foo(float3 a, float b){ return float4(a,b); }"
    index = StructuralIndexer().index(source)

    assert [symbol.name for symbol in index.symbols] == ["foo"]
    symbol = index.symbols[0]
    assert symbol.kind == "function"
    assert symbol.detail == "float4 foo(float3 a, float b)"
    assert (symbol.selection_range.start.column, symbol.selection_range.end.column) == (7, 10)
    signature = index.function_signatures["foo"]
    assert signature.label == "float4 foo(float3 a, float b)"
    assert signature.parameters == ("float3 a", "float b")


def test_shader_stage_kinds_and_multiline_signatures() -> None:
    index = StructuralIndexer().index(_fixture_text("basic.metal"))

    by_name = {symbol.name: symbol for symbol in index.symbols}
    assert list(by_name) == ["VertexIn", "VertexOut", "vertex_main", "fragment_main"]
    assert by_name["vertex_main"].kind == "vertex"
    assert by_name["fragment_main"].kind == "fragment"
    assert by_name["vertex_main"].detail == (
        "vertex VertexOut vertex_main(VertexIn in [[stage_in]], "
        "constant float4x4 &mvp [[buffer(1)]])"
    )
    assert index.function_signatures["fragment_main"].parameters == (
        "VertexOut in [[stage_in]]",
        "texture2d<float> albedo [[texture(0)]]",
        "sampler smp [[sampler(0)]]",
    )
    assert [child.name for child in by_name["VertexOut"].children] == ["position", "uv", "color"]
    assert by_name["vertex_main"].range.start.line == 20
    assert by_name["vertex_main"].range.end.line == 27


def test_kernel_prototype_and_definition() -> None:
    index = StructuralIndexer().index(_fixture_text("compute.metal"))

    assert [(symbol.name, symbol.kind) for symbol in index.symbols] == [
        ("scale_value", "function"),
        ("scale_buffer", "kernel"),
        ("scale_value", "function"),
    ]
    assert index.symbols[0].range.start.line == index.symbols[0].range.end.line == 4
    assert index.function_signatures["scale_buffer"].parameters == (
        "device float* data [[buffer(0)]]",
        "constant float& factor [[buffer(1)]]",
        "uint id [[thread_position_in_grid]]",
    )


def test_nested_declarations_are_not_top_level_symbols() -> None:
    source = "\n".join(
        [
            "void outer() {",
            "    struct Inner { float x; };",
            "    float helper(float y) { return y; }",
            "}",
        ]
    )

    index = StructuralIndexer().index(source)

    assert [symbol.name for symbol in index.symbols] == ["outer"]


def test_calls_and_control_flow_are_rejected() -> None:
    source = "\n".join(
        [
            "constant float k = compute(1.0);",
            "float values[2] = { a(1), b(2) };",
            "if (x) { }",
            "float ok(int v);",
            "MACRO(1)",
        ]
    )

    index = StructuralIndexer().index(source)

    assert [symbol.name for symbol in index.symbols] == ["ok"]


def test_comments_and_strings_do_not_produce_symbols() -> None:
    source = '// float fake(int a) {}\n/* struct Hidden { int x; }; */\nconstant char* s = "void g() {}";'

    assert StructuralIndexer().index(source).symbols == ()


def test_qualified_names_are_unqualified() -> None:
    index = StructuralIndexer().index("float Shading::lambert(float3 n, float3 l) { return 0.0; }")

    assert index.symbols[0].name == "lambert"
    assert "lambert" in index.function_signatures


def test_parse_parameters_respects_nesting() -> None:
    label = "void f(array<float, 4> a, float2 b = float2(0, 1), int c[2], texture2d<half, access::read> t)"

    assert parse_parameters(label) == (
        "array<float, 4> a",
        "float2 b = float2(0, 1)",
        "int c[2]",
        "texture2d<half, access::read> t",
    )
    assert parse_parameters("void g()") == ()
    assert parse_parameters("no parens") == ()


def test_helpers_normalize_and_classify() -> None:
    assert normalize_whitespace("  kernel\n  void   k( int a )  ") == "kernel void k( int a )"
    assert infer_function_kind("kernel void k()") == "kernel"
    assert infer_function_kind("vertexHelper v()") == "function"


def test_pass_counter_tracks_runs() -> None:
    indexer = StructuralIndexer()
    indexer.index("float a();")
    indexer.index("float b();")

    assert indexer.passes == 2
