"""Signature help for the innermost call surrounding the cursor."""

from __future__ import annotations

from collections.abc import Callable

from metal_lsp.analysis.builtins import BuiltinDocumentation
from metal_lsp.analysis.indexer import parse_parameters
from metal_lsp.analysis.masking import mask_source
from metal_lsp.analysis.models import FunctionSignature
from metal_lsp.features.text import find_call_context

SignatureLookup = Callable[[str], FunctionSignature | None]


def builtin_signature(name: str, documentation: BuiltinDocumentation) -> FunctionSignature | None:
    """Build a signature from builtin function documentation."""
    entry = documentation.lookup(name)
    if entry is None or entry.kind != "function":
        return None
    return FunctionSignature(
        name=entry.symbol,
        label=entry.signature,
        parameters=parse_parameters(entry.signature),
    )


def signature_help(
    source: str,
    offset: int,
    lookups: list[SignatureLookup],
) -> dict[str, object] | None:
    """Return a SignatureHelp payload, consulting `lookups` in order."""
    context = find_call_context(mask_source(source, mask_char_literals=True), offset)
    if context is None:
        return None
    for lookup in lookups:
        signature = lookup(context.name)
        if signature is None:
            continue
        return {
            "signatures": [
                {
                    "label": signature.label,
                    "parameters": [{"label": parameter} for parameter in signature.parameters],
                }
            ],
            "activeSignature": 0,
            "activeParameter": context.active_parameter,
        }
    return None
