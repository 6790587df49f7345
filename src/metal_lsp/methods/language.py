"""Language feature request handlers."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from metal_lsp.analysis.builtins import BuiltinDocumentation
from metal_lsp.analysis.finder import SymbolFinder
from metal_lsp.analysis.models import FunctionSignature
from metal_lsp.cache.analysis import AnalysisCache, AnalysisResult
from metal_lsp.documents.positions import LineIndex
from metal_lsp.documents.store import Document, DocumentStore
from metal_lsp.features.colors import color_presentations, document_colors
from metal_lsp.features.completion import completion_items
from metal_lsp.features.hover import hover_markdown
from metal_lsp.features.navigation import (
    declared_type_of,
    document_highlights,
    document_links,
    empty_location,
    location_payload,
)
from metal_lsp.features.semantic_tokens import encode_tokens, legend, tokens_in_range
from metal_lsp.features.signature_help import builtin_signature, signature_help
from metal_lsp.features.symbols import document_symbols, folding_ranges
from metal_lsp.features.text import WordSpan, word_at
from metal_lsp.methods import params as p
from metal_lsp.methods.registry import MethodHandler, MethodRegistry
from metal_lsp.workspace.models import SymbolLocation
from metal_lsp.workspace.resolver import WorkspaceResolver
from metal_lsp.workspace.uris import normalize_uri

FormatSource = Callable[[str, int, bool], str]

COMPLETION_TRIGGERS = (".", "[", "(", " ")
SIGNATURE_TRIGGERS = ("(", ",")


@dataclass(slots=True, frozen=True)
class LanguageContext:
    """Collaborators shared by every language feature handler."""

    documents: DocumentStore
    analysis: AnalysisCache
    resolver: WorkspaceResolver
    finder: SymbolFinder
    documentation: BuiltinDocumentation
    format_source: FormatSource
    log: Callable[[str], None]

    def analysis_for(self, document: Document) -> AnalysisResult:
        return self.analysis.get(document.uri, document)

    def word_at_position(self, document: Document, params: dict[str, object]) -> WordSpan | None:
        position = p.position(params)
        column = document.line_index.column_at(position)
        return word_at(document.line_index.line_text(position.line), column)


def register_language_methods(registry: MethodRegistry, context: LanguageContext) -> None:
    """Register every textDocument and workspace feature request."""
    registry.request(
        "textDocument/completion",
        _completion_handler(context),
        {"completionProvider": {"triggerCharacters": list(COMPLETION_TRIGGERS)}},
    )
    registry.request("textDocument/hover", _hover_handler(context), {"hoverProvider": True})
    registry.request(
        "textDocument/signatureHelp",
        _signature_help_handler(context),
        {"signatureHelpProvider": {"triggerCharacters": list(SIGNATURE_TRIGGERS)}},
    )
    registry.request(
        "textDocument/definition", _definition_handler(context), {"definitionProvider": True}
    )
    registry.request(
        "textDocument/typeDefinition",
        _type_definition_handler(context),
        {"typeDefinitionProvider": True},
    )
    registry.request(
        "textDocument/references", _references_handler(context), {"referencesProvider": True}
    )
    registry.request(
        "textDocument/documentHighlight",
        _highlight_handler(context),
        {"documentHighlightProvider": True},
    )
    registry.request(
        "textDocument/documentSymbol",
        _document_symbol_handler(context),
        {"documentSymbolProvider": True},
    )
    registry.request(
        "textDocument/documentLink",
        _document_link_handler(context),
        {"documentLinkProvider": {"resolveProvider": False}},
    )
    registry.request(
        "textDocument/foldingRange",
        _folding_range_handler(context),
        {"foldingRangeProvider": True},
    )
    registry.request(
        "textDocument/formatting",
        _formatting_handler(context),
        {"documentFormattingProvider": True},
    )
    registry.request(
        "textDocument/semanticTokens/full",
        _semantic_tokens_handler(context),
        {"semanticTokensProvider": {"legend": legend()}},
    )
    # Deltas are answered with the full token set.
    registry.request(
        "textDocument/semanticTokens/full/delta",
        _semantic_tokens_handler(context),
        {"semanticTokensProvider": {"full": {"delta": True}}},
    )
    registry.request(
        "textDocument/semanticTokens/range",
        _semantic_tokens_range_handler(context),
        {"semanticTokensProvider": {"range": True}},
    )
    registry.request(
        "textDocument/documentColor", _document_color_handler(context), {"colorProvider": True}
    )
    registry.request("textDocument/colorPresentation", _color_presentation_handler(context))
    registry.request("workspace/semanticTokens/refresh", lambda _: None)


def _open_document(context: LanguageContext, params: dict[str, object]) -> Document | None:
    uri = p.text_document_uri(params)
    document = context.documents.get(uri)
    if document is None:
        context.log(f"Document not found: {uri}")
    return document


def _completion_handler(context: LanguageContext) -> MethodHandler:
    def handler(params: dict[str, object]) -> object:
        document = _open_document(context, params)
        index = None if document is None else context.analysis_for(document).index
        return {
            "isIncomplete": False,
            "items": completion_items(index, context.documentation),
        }

    return handler


def _hover_handler(context: LanguageContext) -> MethodHandler:
    def handler(params: dict[str, object]) -> object:
        document = _open_document(context, params)
        if document is None:
            return None
        span = context.word_at_position(document, params)
        if span is None:
            return None
        markdown = hover_markdown(
            span.word, context.analysis_for(document).index, context.documentation
        )
        if markdown is None:
            return None
        line = p.position(params).line
        return {
            "contents": {"kind": "markdown", "value": markdown},
            "range": document.line_index.to_range(line, span.start, line, span.end).to_lsp(),
        }

    return handler


def _signature_help_handler(context: LanguageContext) -> MethodHandler:
    def handler(params: dict[str, object]) -> object:
        document = _open_document(context, params)
        if document is None:
            return None
        offset = document.line_index.offset_at(p.position(params))
        local = context.analysis_for(document).index.function_signatures

        def workspace_signature(name: str) -> FunctionSignature | None:
            current = normalize_uri(document.uri)
            for uri in context.resolver.candidate_uris():
                if normalize_uri(uri) == current:
                    continue
                source = context.resolver.source_for(uri)
                if source is None:
                    continue
                open_document = context.documents.get(uri)
                version = None if open_document is None else open_document.version
                index = context.analysis.analyze(uri, source, version).index
                signature = index.function_signatures.get(name)
                if signature is not None:
                    return signature
            return None

        return signature_help(
            document.text,
            offset,
            [
                local.get,
                workspace_signature,
                lambda name: builtin_signature(name, context.documentation),
            ],
        )

    return handler


def _definition_handler(context: LanguageContext) -> MethodHandler:
    def handler(params: dict[str, object]) -> object:
        document = _open_document(context, params)
        if document is None:
            return None
        position = p.position(params)
        column = document.line_index.column_at(position)
        target = context.resolver.resolve_include_at(
            document.uri, document.line_index.line_text(position.line), column
        )
        if target is not None:
            return empty_location(target)
        span = context.word_at_position(document, params)
        if span is None:
            return None
        return _resolved_location(context, context.resolver.find_definition(span.word, document.uri))

    return handler


def _type_definition_handler(context: LanguageContext) -> MethodHandler:
    def handler(params: dict[str, object]) -> object:
        document = _open_document(context, params)
        if document is None:
            return None
        span = context.word_at_position(document, params)
        if span is None:
            return None
        struct_kinds = frozenset({"struct"})
        location = context.resolver.find_definition(span.word, document.uri, struct_kinds)
        if location is None:
            type_name = declared_type_of(span.word, document.text)
            if type_name is None:
                return None
            location = context.resolver.find_definition(type_name, document.uri, struct_kinds)
        return _resolved_location(context, location)

    return handler


def _references_handler(context: LanguageContext) -> MethodHandler:
    def handler(params: dict[str, object]) -> object:
        document = _open_document(context, params)
        if document is None:
            return []
        span = context.word_at_position(document, params)
        if span is None:
            return []
        include_declaration = p.optional_object(params, "context").get("includeDeclaration", False)
        locations = context.resolver.find_references(span.word, bool(include_declaration))
        payloads: list[object] = []
        line_indexes: dict[str, LineIndex] = {}
        for location in locations:
            payload = _resolved_location(context, location, line_indexes)
            if payload is not None:
                payloads.append(payload)
        return payloads

    return handler


def _highlight_handler(context: LanguageContext) -> MethodHandler:
    def handler(params: dict[str, object]) -> object:
        document = _open_document(context, params)
        if document is None:
            return []
        span = context.word_at_position(document, params)
        if span is None:
            return []
        return document_highlights(span.word, document.text, document.line_index, context.finder)

    return handler


def _document_symbol_handler(context: LanguageContext) -> MethodHandler:
    def handler(params: dict[str, object]) -> object:
        document = _open_document(context, params)
        if document is None:
            return []
        return document_symbols(context.analysis_for(document).index, document.line_index)

    return handler


def _document_link_handler(context: LanguageContext) -> MethodHandler:
    def handler(params: dict[str, object]) -> object:
        document = _open_document(context, params)
        if document is None:
            return []
        return document_links(document.uri, document.text, document.line_index, context.resolver)

    return handler


def _folding_range_handler(context: LanguageContext) -> MethodHandler:
    def handler(params: dict[str, object]) -> object:
        document = _open_document(context, params)
        if document is None:
            return []
        return folding_ranges(document.text, document.line_index)

    return handler


def _formatting_handler(context: LanguageContext) -> MethodHandler:
    def handler(params: dict[str, object]) -> object:
        document = _open_document(context, params)
        if document is None:
            return []
        options = p.optional_object(params, "options")
        tab_size = p.positive_int(options.get("tabSize"), "options.tabSize", 2)
        insert_spaces = options.get("insertSpaces", True)
        if not isinstance(insert_spaces, bool):
            raise p.invalid_params("options.insertSpaces must be a boolean.")
        formatted = context.format_source(document.text, tab_size, insert_spaces)
        if formatted == document.text:
            return []
        return [
            {
                "range": {
                    "start": {"line": 0, "character": 0},
                    "end": document.line_index.end_position().to_lsp(),
                },
                "newText": formatted,
            }
        ]

    return handler


def _semantic_tokens_handler(context: LanguageContext) -> MethodHandler:
    def handler(params: dict[str, object]) -> object:
        document = _open_document(context, params)
        if document is None:
            return {"data": []}
        tokens = context.analysis_for(document).tokens
        return {"data": encode_tokens(tokens, document.line_index)}

    return handler


def _semantic_tokens_range_handler(context: LanguageContext) -> MethodHandler:
    def handler(params: dict[str, object]) -> object:
        document = _open_document(context, params)
        if document is None:
            return {"data": []}
        requested = p.range_param(params)
        tokens = tokens_in_range(
            context.analysis_for(document).tokens, document.line_index, requested
        )
        return {"data": encode_tokens(tokens, document.line_index)}

    return handler


def _document_color_handler(context: LanguageContext) -> MethodHandler:
    def handler(params: dict[str, object]) -> object:
        document = _open_document(context, params)
        if document is None:
            return []
        return document_colors(document.text, document.line_index)

    return handler


def _color_presentation_handler(context: LanguageContext) -> MethodHandler:
    def handler(params: dict[str, object]) -> object:
        document = _open_document(context, params)
        if document is None:
            return []
        requested = p.range_param(params)
        color = p.optional_object(params, "color")
        start = document.line_index.offset_at(requested.start)
        end = document.line_index.offset_at(requested.end)
        try:
            return color_presentations(color, requested.to_lsp(), document.text[start:end])
        except ValueError as error:
            raise p.invalid_params(str(error)) from error

    return handler


def _resolved_location(
    context: LanguageContext,
    location: SymbolLocation | None,
    line_indexes: dict[str, LineIndex] | None = None,
) -> dict[str, object] | None:
    if location is None:
        return None
    line_indexes = {} if line_indexes is None else line_indexes
    line_index = line_indexes.get(location.uri)
    if line_index is None:
        document = context.documents.get(location.uri)
        if document is not None:
            line_index = document.line_index
        else:
            source = context.resolver.source_for(location.uri)
            if source is None:
                return None
            line_index = LineIndex(source)
        line_indexes[location.uri] = line_index
    return location_payload(location, line_index)
