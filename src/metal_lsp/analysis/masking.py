"""Lexical masking and brace scanning for Metal source text."""

from __future__ import annotations

from dataclasses import dataclass

_CODE = "code"
_LINE_COMMENT = "line_comment"
_BLOCK_COMMENT = "block_comment"
_STRING = "string"
_CHAR = "char"


@dataclass(slots=True, frozen=True)
class BraceBlock:
    """Matched brace block with zero-based coordinates and nesting depth."""

    start_line: int
    start_col: int
    end_line: int
    end_col: int
    depth: int


def mask_source(text: str, *, mask_char_literals: bool = False) -> str:
    """Blank comments and literal contents while preserving length and newline offsets.

    Comment markers and bodies become spaces. String (and, when requested,
    character) literals keep their bounding quotes so scanners can still tell a
    literal occupies the span; everything between them is blanked. An
    unterminated literal ends at the newline.
    """
    return _mask(text, mask_char_literals, None)


def block_comment_spans(text: str) -> list[tuple[int, int]]:
    """Return `(start, end)` offsets of every block comment, markers included."""
    spans: list[tuple[int, int]] = []
    _mask(text, True, spans)
    return spans


def _mask(text: str, mask_char_literals: bool, spans: list[tuple[int, int]] | None) -> str:
    chars = list(text)
    comment_start = 0
    length = len(text)
    index = 0
    state = _CODE

    while index < length:
        char = text[index]
        if state == _CODE:
            if text.startswith("//", index):
                chars[index] = chars[index + 1] = " "
                state = _LINE_COMMENT
                index += 2
                continue
            if text.startswith("/*", index):
                chars[index] = chars[index + 1] = " "
                comment_start = index
                state = _BLOCK_COMMENT
                index += 2
                continue
            if char == '"':
                state = _STRING
            elif char == "'" and mask_char_literals:
                state = _CHAR
            index += 1
            continue

        if state == _LINE_COMMENT:
            if char == "\n":
                state = _CODE
            else:
                chars[index] = " "
            index += 1
            continue

        if state == _BLOCK_COMMENT:
            if text.startswith("*/", index):
                chars[index] = chars[index + 1] = " "
                if spans is not None:
                    spans.append((comment_start, index + 2))
                state = _CODE
                index += 2
                continue
            if char != "\n":
                chars[index] = " "
            index += 1
            continue

        # String or char literal.
        closing = '"' if state == _STRING else "'"
        if char == "\n":
            state = _CODE
            index += 1
            continue
        if char == "\\":
            chars[index] = " "
            if index + 1 < length and text[index + 1] != "\n":
                chars[index + 1] = " "
                index += 2
            else:
                index += 1
            continue
        if char == closing:
            state = _CODE
        else:
            chars[index] = " "
        index += 1

    if state == _BLOCK_COMMENT and spans is not None:
        spans.append((comment_start, length))
    return "".join(chars)


def scan_brace_blocks(masked_text: str) -> tuple[BraceBlock, ...]:
    """Return matched `{}` blocks with zero-based coordinates, ordered by start.

    Unmatched closing braces are skipped and unclosed openings never form a block.
    """
    stack: list[tuple[int, int, int]] = []
    blocks: list[BraceBlock] = []
    line = 0
    col = 0

    for char in masked_text:
        if char == "{":
            stack.append((line, col, len(stack) + 1))
        elif char == "}" and stack:
            start_line, start_col, depth = stack.pop()
            blocks.append(
                BraceBlock(
                    start_line=start_line,
                    start_col=start_col,
                    end_line=line,
                    end_col=col,
                    depth=depth,
                )
            )

        if char == "\n":
            line += 1
            col = 0
        else:
            col += 1

    return tuple(
        sorted(
            blocks,
            key=lambda item: (item.start_line, item.start_col, item.end_line, item.end_col),
        )
    )
