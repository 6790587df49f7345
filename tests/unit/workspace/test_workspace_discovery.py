from __future__ import annotations

from pathlib import Path

from metal_lsp.config import WorkspaceConfig
from metal_lsp.workspace import discover_files, should_exclude


def _touch(root: Path, relative: str) -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("// shader\n", encoding="utf-8")


def _layout(root: Path) -> None:
    for relative in (
        "a.metal",
        "b.h",
        "notes.txt",
        "Shaders/Lighting.METAL",
        "sub/c.metal",
        "build/skip.metal",
        ".git/objects/x.metal",
        "node_modules/pkg/y.h",
    ):
        _touch(root, relative)


def test_default_discovery_is_sorted_and_filtered(tmp_path: Path) -> None:
    _layout(tmp_path)

    records = discover_files(tmp_path, WorkspaceConfig())

    assert [record.path for record in records] == [
        "Shaders/Lighting.METAL",
        "a.metal",
        "b.h",
        "sub/c.metal",
    ]
    first = records[1]
    assert first.full_path == (tmp_path / "a.metal").resolve()
    assert first.size == len("// shader\n")
    assert first.mtime_ns > 0


def test_custom_extensions_and_globs(tmp_path: Path) -> None:
    _layout(tmp_path)
    config = WorkspaceConfig(include_extensions=(".metal",), exclude_globs=("**/.git/**", "sub/*"))

    records = discover_files(tmp_path, config)

    assert [record.path for record in records] == [
        "Shaders/Lighting.METAL",
        "a.metal",
        "build/skip.metal",
    ]


def test_should_exclude_matches_anchored_directories() -> None:
    globs = ("**/build/**",)

    assert should_exclude("build/out.metal", globs)
    assert should_exclude("nested/build/out.metal", globs)
    assert not should_exclude("builder/out.metal", globs)


def test_missing_root_discovers_nothing(tmp_path: Path) -> None:
    assert discover_files(tmp_path / "absent", WorkspaceConfig()) == []
