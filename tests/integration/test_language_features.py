from __future__ import annotations

import io
import shutil
from pathlib import Path

from metal_lsp.config import load_effective_config
from metal_lsp.server import LanguageServer
from metal_lsp.toolchain import CompilerDiagnostic

FIXTURES = Path(__file__).resolve().parents[1] / "fixtures" / "shaders"


class _SilentCompiler:
    def compile(self, source: str, uri: str) -> list[CompilerDiagnostic]:
        return []


class _UnavailableFormatter:
    def format(self, source: str, tab_size: int, insert_spaces: bool) -> str | None:
        return None


class _Client:
    def __init__(self, root: Path) -> None:
        self.root = root
        self.server = LanguageServer(
            load_effective_config(None),
            compiler=_SilentCompiler(),
            formatter=_UnavailableFormatter(),
            log_stream=io.StringIO(),
        )
        self._next_id = 0
        self.request("initialize", {"processId": None, "rootUri": root.as_uri()})
        self.notify("initialized", {})

    def uri(self, name: str) -> str:
        return (self.root / name).resolve().as_uri()

    def request(self, method: str, params: dict[str, object]) -> object:
        self._next_id += 1
        response = self.server.handle_payload(
            {"jsonrpc": "2.0", "id": self._next_id, "method": method, "params": params}
        )
        assert response is not None
        assert "error" not in response, response
        return response["result"]

    def notify(self, method: str, params: dict[str, object]) -> None:
        self.server.handle_payload({"jsonrpc": "2.0", "method": method, "params": params})

    def open(self, name: str, text: str | None = None) -> str:
        uri = self.uri(name)
        if text is None:
            text = (self.root / name).read_text(encoding="utf-8")
        self.notify(
            "textDocument/didOpen",
            {"textDocument": {"uri": uri, "languageId": "metal", "version": 1, "text": text}},
        )
        return uri

    def at(self, uri: str, line: int, character: int) -> dict[str, object]:
        return {"textDocument": {"uri": uri}, "position": {"line": line, "character": character}}


def _fixture_workspace(tmp_path: Path) -> _Client:
    for name in ("basic.metal", "compute.metal", "common.h"):
        shutil.copy(FIXTURES / name, tmp_path / name)
    return _Client(tmp_path)


def _span(line: int, start: int, end: int) -> dict[str, object]:
    return {"start": {"line": line, "character": start}, "end": {"line": line, "character": end}}


def test_document_symbols_for_vertex_input(tmp_path: Path) -> None:
    client = _fixture_workspace(tmp_path)
    uri = client.open("basic.metal")

    symbols = client.request("textDocument/documentSymbol", {"textDocument": {"uri": uri}})

    assert [symbol["name"] for symbol in symbols] == [
        "VertexIn",
        "VertexOut",
        "vertex_main",
        "fragment_main",
    ]
    assert [child["name"] for child in symbols[0]["children"]] == ["position", "uv", "color"]


def test_signature_help_reports_active_parameter(tmp_path: Path) -> None:
    client = _Client(tmp_path)
    lines = [
        "float4 foo(float3 a, float b){ return float4(a,b); }",
        "float4 bar() { return foo(float3(0.0), 1.0); }",
    ]
    uri = client.open("Sig.metal", "\n".join(lines))

    result = client.request(
        "textDocument/signatureHelp", client.at(uri, 1, lines[1].index("1.0") + 1)
    )

    assert result["activeParameter"] == 1
    assert "foo(" in result["signatures"][0]["label"]


def test_signature_help_uses_workspace_declarations(tmp_path: Path) -> None:
    (tmp_path / "lib.h").write_text("float mix3(float a, float b, float t);\n", encoding="utf-8")
    client = _Client(tmp_path)
    source = "float f() { return mix3(0.0, "
    uri = client.open("Main.metal", source)

    result = client.request("textDocument/signatureHelp", client.at(uri, 0, len(source)))

    assert result["signatures"][0]["label"] == "float mix3(float a, float b, float t)"
    assert result["activeParameter"] == 1


def test_cross_file_definition(tmp_path: Path) -> None:
    (tmp_path / "Decl.metal").write_text("float foo(float x) {\n    return x;\n}\n", encoding="utf-8")
    client = _Client(tmp_path)
    uri = client.open("Use.metal", "float bar() { return foo(1.0); }")

    location = client.request("textDocument/definition", client.at(uri, 0, 22))

    assert location == {"uri": client.uri("Decl.metal"), "range": _span(0, 6, 9)}


def test_definition_prefers_first_function_declaration(tmp_path: Path) -> None:
    client = _fixture_workspace(tmp_path)
    uri = client.open("compute.metal")

    location = client.request("textDocument/definition", client.at(uri, 9, 16))

    assert location == {"uri": uri, "range": _span(4, 6, 17)}


def test_definition_on_include_opens_header(tmp_path: Path) -> None:
    client = _fixture_workspace(tmp_path)
    uri = client.open("basic.metal")

    location = client.request("textDocument/definition", client.at(uri, 1, 12))

    assert location == {"uri": client.uri("common.h"), "range": _span(0, 0, 0)}


def test_type_definition_follows_declared_type(tmp_path: Path) -> None:
    client = _fixture_workspace(tmp_path)
    uri = client.open("basic.metal")

    location = client.request("textDocument/typeDefinition", client.at(uri, 22, 15))

    assert location == {"uri": uri, "range": _span(14, 7, 16)}


def test_references_across_open_and_workspace_files(tmp_path: Path) -> None:
    client = _fixture_workspace(tmp_path)
    client.open("basic.metal")
    uri = client.open("compute.metal")
    params = client.at(uri, 4, 8)
    params["context"] = {"includeDeclaration": False}

    locations = client.request("textDocument/references", params)

    assert locations == [
        {"uri": uri, "range": _span(4, 6, 17)},
        {"uri": uri, "range": _span(9, 15, 26)},
        {"uri": uri, "range": _span(12, 6, 17)},
    ]


def test_hover_on_struct_and_builtin(tmp_path: Path) -> None:
    client = _fixture_workspace(tmp_path)
    basic = client.open("basic.metal")
    compute = client.open("compute.metal")

    struct_hover = client.request("textDocument/hover", client.at(basic, 20, 31))
    builtin_hover = client.request("textDocument/hover", client.at(compute, 16, 12))
    blank_hover = client.request("textDocument/hover", client.at(compute, 2, 0))

    assert struct_hover == {
        "contents": {
            "kind": "markdown",
            "value": "```metal\nstruct VertexIn\n```\n---\n\nFields: `position`, `uv`, `color`",
        },
        "range": _span(20, 29, 37),
    }
    assert "T clamp(T x, T minval, T maxval)" in builtin_hover["contents"]["value"]
    assert blank_hover is None


def test_completion_merges_local_symbols(tmp_path: Path) -> None:
    client = _fixture_workspace(tmp_path)
    uri = client.open("basic.metal")

    result = client.request("textDocument/completion", client.at(uri, 23, 4))

    labels = [item["label"] for item in result["items"]]
    assert result["isIncomplete"] is False
    assert labels[0] == "VertexIn"
    assert "vertex_main" in labels
    assert "kernel_function" in labels


def test_semantic_tokens_full_and_range(tmp_path: Path) -> None:
    client = _fixture_workspace(tmp_path)
    uri = client.open("basic.metal")

    full = client.request("textDocument/semanticTokens/full", {"textDocument": {"uri": uri}})
    ranged = client.request(
        "textDocument/semanticTokens/range",
        {
            "textDocument": {"uri": uri},
            "range": {"start": {"line": 0, "character": 0}, "end": {"line": 1, "character": 0}},
        },
    )

    assert len(full["data"]) % 5 == 0
    assert full["data"][:5] == [0, 0, 8, 14, 0]
    assert len(ranged["data"]) == 20
    assert len(full["data"]) > len(ranged["data"])


def test_links_colors_and_folding(tmp_path: Path) -> None:
    client = _fixture_workspace(tmp_path)
    uri = client.open("basic.metal")
    document = {"textDocument": {"uri": uri}}

    links = client.request("textDocument/documentLink", document)
    colors = client.request("textDocument/documentColor", document)
    presentations = client.request(
        "textDocument/colorPresentation",
        {**document, "color": colors[0]["color"], "range": colors[0]["range"]},
    )
    folds = client.request("textDocument/foldingRange", document)

    assert links == [{"range": _span(1, 10, 18), "target": client.uri("common.h")}]
    assert colors[0]["range"] == {
        "start": {"line": 32, "character": 18},
        "end": {"line": 32, "character": 45},
    }
    assert presentations[0]["label"] == "float4(1.0, 0.5, 0.25, 1.0)"
    assert {"startLine": 5, "endLine": 7, "kind": "comment"} in folds


def test_formatting_falls_back_to_brace_indentation(tmp_path: Path) -> None:
    client = _Client(tmp_path)
    uri = client.open("Fmt.metal", "void f() {\nreturn;\n}")
    params = {"textDocument": {"uri": uri}, "options": {"tabSize": 4, "insertSpaces": True}}

    edits = client.request("textDocument/formatting", params)

    assert edits == [
        {
            "range": {"start": {"line": 0, "character": 0}, "end": {"line": 2, "character": 1}},
            "newText": "void f() {\n    return;\n}",
        }
    ]
    client.open("Fmt.metal", "void f() {\n    return;\n}")
    assert client.request("textDocument/formatting", params) == []


def test_incremental_change_refreshes_analysis(tmp_path: Path) -> None:
    client = _Client(tmp_path)
    uri = client.open("Edit.metal", "float foo(int a) { return a; }")
    document = {"textDocument": {"uri": uri}}
    assert [s["name"] for s in client.request("textDocument/documentSymbol", document)] == ["foo"]

    client.notify(
        "textDocument/didChange",
        {
            "textDocument": {"uri": uri, "version": 2},
            "contentChanges": [{"range": _span(0, 6, 9), "text": "bar"}],
        },
    )

    assert client.server.documents.get(uri).text == "float bar(int a) { return a; }"
    assert [s["name"] for s in client.request("textDocument/documentSymbol", document)] == ["bar"]


def test_close_evicts_document_and_caches(tmp_path: Path) -> None:
    client = _Client(tmp_path)
    uri = client.open("Close.metal", "float a;")
    client.request("textDocument/documentSymbol", {"textDocument": {"uri": uri}})

    client.notify("textDocument/didClose", {"textDocument": {"uri": uri}})

    assert uri not in client.server.documents
    assert uri not in client.server.analysis_cache
    assert uri not in client.server.diagnostics_cache
    assert client.request("textDocument/documentSymbol", {"textDocument": {"uri": uri}}) == []
    assert client.request("textDocument/hover", client.at(uri, 0, 1)) is None
