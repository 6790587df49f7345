"""Language features built on the analysis engines."""

from metal_lsp.features.colors import color_presentations, document_colors
from metal_lsp.features.completion import completion_items
from metal_lsp.features.hover import hover_markdown
from metal_lsp.features.semantic_tokens import TOKEN_TYPES, encode_tokens, legend
from metal_lsp.features.signature_help import signature_help
from metal_lsp.features.symbols import document_symbols, folding_ranges
from metal_lsp.features.text import find_call_context, word_at

__all__ = [
    "TOKEN_TYPES",
    "color_presentations",
    "completion_items",
    "document_colors",
    "document_symbols",
    "encode_tokens",
    "find_call_context",
    "folding_ranges",
    "hover_markdown",
    "legend",
    "signature_help",
    "word_at",
]
