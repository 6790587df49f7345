"""Brace-depth structural indexer for top-level Metal declarations."""

from __future__ import annotations

import re
from dataclasses import dataclass

from metal_lsp.analysis.masking import mask_source
from metal_lsp.analysis.models import (
    DocumentIndex,
    FunctionSignature,
    SourcePosition,
    SourceRange,
    SymbolNode,
)

_CONTROL_KEYWORDS = frozenset({"if", "for", "while", "switch"})
_CALL_CONTEXT_CHARS = frozenset({"=", ",", "(", "[", "{", "."})
_EXPRESSION_KEYWORDS = frozenset({"return", "case", "sizeof"})
_FUNCTION_PREFIXES = (("kernel ", "kernel"), ("vertex ", "vertex"), ("fragment ", "fragment"))
_WHITESPACE = frozenset({" ", "\t", "\n", "\r"})
_WHITESPACE_RUN_RE = re.compile(r"[ \t\r\n]+")
_ATTRIBUTE_BLOCK_RE = re.compile(r"\[\[.*?\]\]")


@dataclass(slots=True, frozen=True)
class _Identifier:
    name: str
    start: int
    end: int


@dataclass(slots=True, frozen=True)
class _ParsedSymbol:
    symbol: SymbolNode
    end_index: int
    signature: FunctionSignature | None = None


class _LineMap:
    __slots__ = ("_line_starts", "_length")

    def __init__(self, text: str) -> None:
        self._length = len(text)
        self._line_starts = [0]
        for index, char in enumerate(text):
            if char == "\n":
                self._line_starts.append(index + 1)

    def position(self, index: int) -> SourcePosition:
        clamped = max(0, min(index, self._length))
        low = 0
        high = len(self._line_starts) - 1
        while low <= high:
            middle = (low + high) // 2
            value = self._line_starts[middle]
            if value == clamped:
                return SourcePosition(line=middle, column=0)
            if value < clamped:
                low = middle + 1
            else:
                high = middle - 1
        line = max(0, min(high, len(self._line_starts) - 1))
        return SourcePosition(line=line, column=clamped - self._line_starts[line])

    def span(self, start: int, end: int) -> SourceRange:
        return SourceRange(start=self.position(start), end=self.position(end))


class StructuralIndexer:
    """Recovers top-level functions and structs without a grammar."""

    def __init__(self) -> None:
        self.passes = 0

    def index(self, source: str) -> DocumentIndex:
        """Run one indexing pass over `source`."""
        self.passes += 1
        masked = mask_source(source)
        line_map = _LineMap(masked)
        symbols: list[SymbolNode] = []
        signatures: dict[str, FunctionSignature] = {}

        index = 0
        depth = 0
        length = len(masked)
        while index < length:
            char = masked[index]
            if char == "{":
                depth += 1
                index += 1
                continue
            if char == "}":
                depth = max(0, depth - 1)
                index += 1
                continue
            if depth != 0:
                index += 1
                continue

            if _is_identifier_start(char):
                end = index + 1
                while end < length and _is_identifier_continue(masked[end]):
                    end += 1
                if masked[index:end] == "struct":
                    parsed = _parse_struct(index, masked, source, line_map)
                    if parsed is not None:
                        symbols.append(parsed.symbol)
                        index = parsed.end_index
                        continue
                index = end
                continue

            if char == "(":
                parsed = _parse_function(index, masked, source, line_map)
                if parsed is not None and parsed.signature is not None:
                    symbols.append(parsed.symbol)
                    signatures[parsed.signature.name] = parsed.signature
                    index = parsed.end_index
                    continue

            index += 1

        return DocumentIndex(symbols=tuple(symbols), function_signatures=signatures)


def parse_parameters(label: str) -> tuple[str, ...]:
    """Split the parameter list of a signature label on top-level commas."""
    open_index = label.find("(")
    close_index = label.rfind(")")
    if open_index < 0 or close_index <= open_index:
        return ()

    parameters: list[str] = []
    current: list[str] = []
    paren_depth = angle_depth = bracket_depth = 0
    for char in label[open_index + 1 : close_index]:
        if char == "," and paren_depth == 0 and angle_depth == 0 and bracket_depth == 0:
            _append_parameter(parameters, current)
            current = []
            continue
        if char == "(":
            paren_depth += 1
        elif char == ")":
            paren_depth = max(0, paren_depth - 1)
        elif char == "<":
            angle_depth += 1
        elif char == ">":
            angle_depth = max(0, angle_depth - 1)
        elif char == "[":
            bracket_depth += 1
        elif char == "]":
            bracket_depth = max(0, bracket_depth - 1)
        current.append(char)
    _append_parameter(parameters, current)
    return tuple(parameters)


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim the ends."""
    return _WHITESPACE_RUN_RE.sub(" ", text).strip()


def infer_function_kind(label: str) -> str:
    """Return kernel, vertex or fragment from a signature prefix, else function."""
    trimmed = label.strip()
    for prefix, kind in _FUNCTION_PREFIXES:
        if trimmed.startswith(prefix):
            return kind
    return "function"


def _append_parameter(parameters: list[str], chars: list[str]) -> None:
    parameter = "".join(chars).strip()
    if parameter:
        parameters.append(parameter)


def _parse_struct(
    keyword_index: int,
    masked: str,
    source: str,
    line_map: _LineMap,
) -> _ParsedSymbol | None:
    index = _skip_whitespace(masked, keyword_index + len("struct"))
    if index >= len(masked) or not _is_identifier_start(masked[index]):
        return None
    name_start = index
    name_end = index + 1
    while name_end < len(masked) and _is_identifier_continue(masked[name_end]):
        name_end += 1

    search = name_end
    while search < len(masked) and masked[search] != "{":
        if masked[search] in ";\n":
            return None
        search += 1
    if search >= len(masked):
        return None

    open_brace = search
    close_brace = _find_matching(masked, open_brace, "{", "}")
    if close_brace is None:
        return None

    end_index = _skip_whitespace(masked, close_brace + 1)
    if end_index < len(masked) and masked[end_index] == ";":
        end_index += 1

    children = _parse_struct_fields(masked, source, open_brace + 1, close_brace, line_map)
    symbol = SymbolNode(
        name=masked[name_start:name_end],
        kind="struct",
        range=line_map.span(keyword_index, end_index),
        selection_range=line_map.span(name_start, name_end),
        detail="struct",
        children=tuple(children),
    )
    return _ParsedSymbol(symbol=symbol, end_index=end_index)


def _parse_struct_fields(
    masked: str,
    source: str,
    body_start: int,
    body_end: int,
    line_map: _LineMap,
) -> list[SymbolNode]:
    if body_start >= body_end:
        return []
    first = line_map.position(body_start)
    masked_lines = masked[body_start:body_end].split("\n")
    source_lines = source[body_start:body_end].split("\n")

    fields: list[SymbolNode] = []
    for offset, masked_line in enumerate(masked_lines):
        if offset >= len(source_lines):
            continue
        trimmed = masked_line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue
        # Attribute arguments such as [[attribute(0)]] are not method parens.
        without_attributes = _ATTRIBUTE_BLOCK_RE.sub("", trimmed)
        if "(" in without_attributes or ";" not in without_attributes:
            continue
        statement = without_attributes.split(";", 1)[0]
        bracket = statement.find("[")
        if bracket >= 0:
            statement = statement[:bracket]
        tokens = statement.split()
        if not tokens:
            continue
        name = tokens[-1].strip("*&")
        if not name or not _is_valid_identifier(name):
            continue

        column = _find_word(source_lines[offset], name)
        if column < 0:
            continue
        line = first.line + offset
        if offset == 0:
            column += first.column
        position_range = SourceRange(
            start=SourcePosition(line=line, column=column),
            end=SourcePosition(line=line, column=column + len(name)),
        )
        fields.append(
            SymbolNode(
                name=name,
                kind="variable",
                range=position_range,
                selection_range=position_range,
            )
        )
    return fields


def _parse_function(
    open_paren: int,
    masked: str,
    source: str,
    line_map: _LineMap,
) -> _ParsedSymbol | None:
    identifier = _identifier_before(masked, open_paren)
    if identifier is None or identifier.name in _CONTROL_KEYWORDS:
        return None
    preceding = _previous_non_whitespace(masked, identifier.start)
    if preceding is not None and preceding in _CALL_CONTEXT_CHARS:
        return None
    previous_word = _identifier_before(masked, identifier.start)
    if previous_word is not None and previous_word.name in _EXPRESSION_KEYWORDS:
        return None

    close_paren = _find_matching(masked, open_paren, "(", ")")
    if close_paren is None:
        return None

    search = _skip_whitespace(masked, close_paren + 1)
    search = _skip_attribute_blocks(masked, search)
    search = _skip_whitespace(masked, search)

    if search < len(masked) and masked[search] == "{":
        close_brace = _find_matching(masked, search, "{", "}")
        if close_brace is None:
            return None
        range_end = close_brace + 1
    else:
        terminator = _find_statement_terminator(masked, search)
        if terminator is None or masked[terminator] != ";":
            return None
        range_end = terminator + 1

    line_start = _line_start(masked, identifier.start)
    label = normalize_whitespace(source[line_start : close_paren + 1])
    name = _unqualified(identifier.name)
    symbol = SymbolNode(
        name=name,
        kind=infer_function_kind(label),
        range=line_map.span(line_start, range_end),
        selection_range=line_map.span(identifier.start, identifier.end),
        detail=label,
    )
    signature = FunctionSignature(name=name, label=label, parameters=parse_parameters(label))
    return _ParsedSymbol(symbol=symbol, end_index=range_end, signature=signature)


def _unqualified(name: str) -> str:
    if "::" in name:
        parts = [part for part in name.split(":") if part]
        if parts:
            return parts[-1]
    return name


def _skip_whitespace(text: str, index: int) -> int:
    while index < len(text) and text[index] in _WHITESPACE:
        index += 1
    return index


def _skip_attribute_blocks(text: str, index: int) -> int:
    while text.startswith("[[", index):
        close = text.find("]]", index + 2)
        index = len(text) if close < 0 else close + 2
        index = _skip_whitespace(text, index)
    return index


def _find_statement_terminator(text: str, index: int) -> int | None:
    while index < len(text):
        if text[index] in ";{\n":
            return index
        index += 1
    return None


def _find_matching(text: str, open_index: int, open_char: str, close_char: str) -> int | None:
    depth = 0
    for index in range(open_index, len(text)):
        char = text[index]
        if char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
            if depth == 0:
                return index
    return None


def _line_start(text: str, index: int) -> int:
    return text.rfind("\n", 0, index) + 1


def _identifier_before(text: str, index: int) -> _Identifier | None:
    cursor = index - 1
    while cursor >= 0 and text[cursor] in _WHITESPACE:
        cursor -= 1
    if cursor < 0 or not _is_identifier_continue(text[cursor]):
        return None
    end = cursor + 1
    start = cursor
    while start > 0 and _is_identifier_continue(text[start - 1]):
        start -= 1
    return _Identifier(name=text[start:end], start=start, end=end)


def _previous_non_whitespace(text: str, index: int) -> str | None:
    cursor = index - 1
    while cursor >= 0:
        if text[cursor] not in _WHITESPACE:
            return text[cursor]
        cursor -= 1
    return None


def _find_word(line: str, word: str) -> int:
    match = re.search(rf"(?<![A-Za-z0-9_]){re.escape(word)}(?![A-Za-z0-9_])", line)
    if match is not None:
        return match.start()
    return line.find(word)


def _is_identifier_start(char: str) -> bool:
    return char.isalpha() or char == "_"


def _is_identifier_continue(char: str) -> bool:
    return char.isalnum() or char in "_:"


def _is_valid_identifier(name: str) -> bool:
    return _is_identifier_start(name[0]) and all(_is_identifier_continue(char) for char in name)
