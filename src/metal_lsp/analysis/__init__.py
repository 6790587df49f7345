"""Source analysis engines for Metal documents."""

from metal_lsp.analysis.builtins import BuiltinDocumentation, CompletionInfo, DocumentationEntry
from metal_lsp.analysis.finder import SymbolFinder
from metal_lsp.analysis.indexer import StructuralIndexer, parse_parameters
from metal_lsp.analysis.lexer import SemanticLexer, SemanticToken
from metal_lsp.analysis.masking import mask_source, scan_brace_blocks
from metal_lsp.analysis.models import (
    DocumentIndex,
    FunctionSignature,
    SourcePosition,
    SourceRange,
    SymbolDeclaration,
    SymbolNode,
    SymbolOccurrence,
)

__all__ = [
    "BuiltinDocumentation",
    "CompletionInfo",
    "DocumentIndex",
    "DocumentationEntry",
    "FunctionSignature",
    "SemanticLexer",
    "SemanticToken",
    "SourcePosition",
    "SourceRange",
    "StructuralIndexer",
    "SymbolDeclaration",
    "SymbolFinder",
    "SymbolNode",
    "SymbolOccurrence",
    "mask_source",
    "parse_parameters",
    "scan_brace_blocks",
]
