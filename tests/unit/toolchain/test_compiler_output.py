from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from metal_lsp.toolchain import CompilerDiagnostic, MetalCompiler, parse_compiler_output


def test_parses_severities_and_converts_to_zero_based(tmp_path: Path) -> None:
    root = tmp_path / "main.metal"
    root_uri = root.as_uri()
    temp_source = tmp_path / "scratch" / "shader.metal"
    output = "\n".join(
        [
            f"{temp_source}:3:5: error: use of undeclared identifier 'x'",
            f"{temp_source}:1:1: warning: unused variable 'y'",
            "common.h:2:10: note: previous definition is here",
            f"{tmp_path}/other.h:7:1: fatal error: 'missing.h' file not found",
            f"{temp_source}:4:2: remark: loop unrolled",
            "1 error generated.",
        ]
    )

    diagnostics = parse_compiler_output(output, root_uri=root_uri, temp_source=temp_source)

    assert diagnostics == [
        CompilerDiagnostic(root_uri, 2, 4, "error", "use of undeclared identifier 'x'"),
        CompilerDiagnostic(root_uri, 0, 0, "warning", "unused variable 'y'"),
        CompilerDiagnostic(
            (tmp_path / "common.h").resolve().as_uri(), 1, 9, "information", "previous definition is here"
        ),
        CompilerDiagnostic(
            (tmp_path / "other.h").resolve().as_uri(), 6, 0, "error", "'missing.h' file not found"
        ),
        CompilerDiagnostic(root_uri, 3, 1, "hint", "loop unrolled"),
    ]


def test_document_path_is_attributed_to_root_uri(tmp_path: Path) -> None:
    root = tmp_path / "main.metal"

    diagnostics = parse_compiler_output(
        f"{root}:1:1: error: boom", root_uri=root.as_uri()
    )

    assert [item.file_uri for item in diagnostics] == [root.as_uri()]


def test_workspace_file_sharing_the_scratch_name_keeps_its_own_uri(tmp_path: Path) -> None:
    root = tmp_path / "main.metal"
    temp_source = tmp_path / "scratch" / "shader.metal"
    library = tmp_path / "lib" / "shader.metal"

    diagnostics = parse_compiler_output(
        f"{temp_source}:1:1: error: first\n{library}:2:1: error: second",
        root_uri=root.as_uri(),
        temp_source=temp_source,
    )

    assert [item.file_uri for item in diagnostics] == [
        root.as_uri(),
        library.resolve().as_uri(),
    ]


def test_include_paths_cover_document_parents_then_configured(tmp_path: Path) -> None:
    extra = tmp_path / "inc"
    compiler = MetalCompiler(("metal",), (extra,))
    uri = (tmp_path / "src" / "main.metal").as_uri()

    assert compiler.include_paths(uri) == [tmp_path / "src", tmp_path, extra]
    assert compiler.include_paths("untitled:x") == [extra]


def test_empty_command_is_rejected() -> None:
    with pytest.raises(ValueError):
        MetalCompiler(())


def test_compile_invokes_toolchain_with_include_flags(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    captured: dict[str, object] = {}

    def fake_run(arguments: list[str], **kwargs: object) -> subprocess.CompletedProcess[str]:
        captured["arguments"] = arguments
        source_path = Path(arguments[arguments.index("-c") + 1])
        captured["source"] = source_path.read_text(encoding="utf-8")
        stderr = f"{source_path}:2:3: error: expected ';'\n"
        return subprocess.CompletedProcess(arguments, 1, stdout="", stderr=stderr)

    monkeypatch.setattr(subprocess, "run", fake_run)
    uri = (tmp_path / "main.metal").as_uri()

    diagnostics = MetalCompiler(("xcrun", "metal")).compile("float a\nfloat b;\n", uri)

    arguments = captured["arguments"]
    assert isinstance(arguments, list)
    assert arguments[:3] == ["xcrun", "metal", "-c"]
    assert arguments[arguments.index("-I") + 1] == str(tmp_path)
    assert captured["source"] == "float a\nfloat b;\n"
    assert diagnostics == [CompilerDiagnostic(uri, 1, 2, "error", "expected ';'")]


def test_missing_toolchain_yields_synthetic_diagnostic(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def fake_run(arguments: list[str], **kwargs: object) -> subprocess.CompletedProcess[str]:
        raise FileNotFoundError(2, "No such file or directory", arguments[0])

    monkeypatch.setattr(subprocess, "run", fake_run)
    uri = (tmp_path / "main.metal").as_uri()

    diagnostics = MetalCompiler(("xcrun", "metal")).compile("float a;", uri)

    assert len(diagnostics) == 1
    assert diagnostics[0].file_uri == uri
    assert (diagnostics[0].line, diagnostics[0].column) == (0, 0)
    assert diagnostics[0].message.startswith("Failed to run Metal compiler")
