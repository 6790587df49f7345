"""External toolchain collaborators."""

from metal_lsp.toolchain.compiler import (
    CompilerDiagnostic,
    DiagnosticsProvider,
    MetalCompiler,
    parse_compiler_output,
)
from metal_lsp.toolchain.formatter import ClangFormatter, CodeFormatter, basic_format, format_document

__all__ = [
    "ClangFormatter",
    "CodeFormatter",
    "CompilerDiagnostic",
    "DiagnosticsProvider",
    "MetalCompiler",
    "basic_format",
    "format_document",
    "parse_compiler_output",
]
