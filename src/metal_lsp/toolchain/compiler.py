"""External Metal compiler invocation and diagnostic parsing."""

from __future__ import annotations

import re
import subprocess
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from metal_lsp.workspace.uris import path_to_uri, uri_to_path

_DIAGNOSTIC_LINE_RE = re.compile(
    r"^(?P<path>.*?):(?P<line>\d+):(?P<column>\d+):\s*"
    r"(?P<severity>fatal error|error|warning|note|remark):\s*(?P<message>.*)$"
)
_SEVERITY_MAP = {
    "fatal error": "error",
    "error": "error",
    "warning": "warning",
    "note": "information",
    "remark": "hint",
}
_TEMP_SOURCE_NAME = "shader.metal"
_TEMP_OUTPUT_NAME = "shader.air"


@dataclass(slots=True, frozen=True)
class CompilerDiagnostic:
    """One compiler message with zero-based coordinates."""

    file_uri: str
    line: int
    column: int
    severity: str
    message: str


class DiagnosticsProvider(Protocol):
    """Anything able to compile a document into diagnostics."""

    def compile(self, source: str, uri: str) -> list[CompilerDiagnostic]: ...


class MetalCompiler:
    """Runs the Metal toolchain over a temporary copy of the document."""

    def __init__(
        self,
        command: Sequence[str] = ("xcrun", "metal"),
        include_dirs: Sequence[Path] = (),
    ) -> None:
        if not command:
            raise ValueError("command must not be empty.")
        self._command = tuple(command)
        self._include_dirs = tuple(include_dirs)

    def compile(self, source: str, uri: str) -> list[CompilerDiagnostic]:
        """Compile `source` and attribute stderr diagnostics to their files."""
        with tempfile.TemporaryDirectory(prefix="metal-lsp-") as raw_dir:
            temp_dir = Path(raw_dir)
            temp_source = temp_dir / _TEMP_SOURCE_NAME
            try:
                temp_source.write_text(source, encoding="utf-8")
            except OSError as error:
                return [_synthetic(uri, f"Failed to write temporary file: {error}")]

            arguments = [
                *self._command,
                "-c",
                str(temp_source),
                "-o",
                str(temp_dir / _TEMP_OUTPUT_NAME),
            ]
            for include_dir in self.include_paths(uri):
                arguments.extend(["-I", str(include_dir)])

            try:
                completed = subprocess.run(
                    arguments,
                    capture_output=True,
                    text=True,
                    encoding="utf-8",
                    errors="replace",
                    check=False,
                )
            except OSError as error:
                return [_synthetic(uri, f"Failed to run Metal compiler: {error}")]

            return parse_compiler_output(
                completed.stderr,
                root_uri=uri,
                temp_source=temp_source,
            )

    def include_paths(self, uri: str) -> list[Path]:
        """Return the document directory, its parent, then configured include dirs."""
        paths: list[Path] = []
        document_path = uri_to_path(uri)
        if document_path is not None:
            paths.append(document_path.parent)
            paths.append(document_path.parent.parent)
        paths.extend(self._include_dirs)
        return paths


def parse_compiler_output(
    output: str,
    *,
    root_uri: str,
    temp_source: Path | None = None,
) -> list[CompilerDiagnostic]:
    """Parse `path:line:col: severity: message` lines into diagnostics."""
    document_path = uri_to_path(root_uri)
    diagnostics: list[CompilerDiagnostic] = []
    for line in output.splitlines():
        match = _DIAGNOSTIC_LINE_RE.match(line)
        if match is None:
            continue
        diagnostics.append(
            CompilerDiagnostic(
                file_uri=_attribute_path(match.group("path"), root_uri, document_path, temp_source),
                line=max(0, int(match.group("line")) - 1),
                column=max(0, int(match.group("column")) - 1),
                severity=_SEVERITY_MAP[match.group("severity")],
                message=match.group("message").strip(),
            )
        )
    return diagnostics


def _attribute_path(
    raw_path: str,
    root_uri: str,
    document_path: Path | None,
    temp_source: Path | None,
) -> str:
    path = Path(raw_path.strip())
    if temp_source is not None and (path == temp_source or path.resolve() == temp_source.resolve()):
        return root_uri
    if not path.is_absolute():
        if document_path is None:
            return root_uri
        path = document_path.parent / path
    if document_path is not None and path.resolve() == document_path.resolve():
        return root_uri
    return path_to_uri(path)


def _synthetic(uri: str, message: str) -> CompilerDiagnostic:
    return CompilerDiagnostic(file_uri=uri, line=0, column=0, severity="error", message=message)
