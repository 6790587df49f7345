"""Line-oriented token classifier backing semantic highlighting."""

from __future__ import annotations

import re
from dataclasses import dataclass

from metal_lsp.analysis.builtins import BUILTIN_TYPES, KEYWORDS

_WHITESPACE_RE = re.compile(r"\s+")
_STRING_RE = re.compile(r'"(?:[^"\\]|\\.)*"?')
_CHAR_RE = re.compile(r"'(?:[^'\\]|\\.)*'?")
_MACRO_RE = re.compile(r"#\s*\w+")
_NUMBER_RE = re.compile(
    r"(?:0[xX][0-9A-Fa-f]+|\d+\.\d*(?:[eE][+-]?\d+)?|\d*\.\d+(?:[eE][+-]?\d+)?|\d+(?:[eE][+-]?\d+)?)"
    r"[fFhHuUlL]?(?!\w)"
)
_IDENTIFIER_RE = re.compile(r"[A-Za-z_]\w*")
_KEYWORD_SET = frozenset(KEYWORDS)


@dataclass(slots=True, frozen=True)
class SemanticToken:
    """Classified span on one line, in code-point columns."""

    type: str
    line: int
    column: int
    length: int


class SemanticLexer:
    """Classifies comments, literals, macros, keywords, types and identifiers."""

    def tokenize(self, source: str) -> list[SemanticToken]:
        """Return tokens in (line, column) order."""
        tokens: list[SemanticToken] = []
        in_block_comment = False
        for line_number, line in enumerate(source.split("\n")):
            if line.endswith("\r"):
                line = line[:-1]
            in_block_comment = _tokenize_line(line, line_number, in_block_comment, tokens)
        return tokens


def _tokenize_line(
    line: str,
    line_number: int,
    in_block_comment: bool,
    tokens: list[SemanticToken],
) -> bool:
    index = 0
    length = len(line)
    after_dot = False

    if in_block_comment:
        close = line.find("*/")
        if close < 0:
            if line:
                tokens.append(SemanticToken("comment", line_number, 0, length))
            return True
        index = close + 2
        tokens.append(SemanticToken("comment", line_number, 0, index))

    while index < length:
        whitespace = _WHITESPACE_RE.match(line, index)
        if whitespace is not None:
            index = whitespace.end()
            continue

        if line.startswith("//", index):
            tokens.append(SemanticToken("comment", line_number, index, length - index))
            return False

        if line.startswith("/*", index):
            close = line.find("*/", index + 2)
            if close < 0:
                tokens.append(SemanticToken("comment", line_number, index, length - index))
                return True
            tokens.append(SemanticToken("comment", line_number, index, close + 2 - index))
            index = close + 2
            after_dot = False
            continue

        literal = _STRING_RE.match(line, index) or _CHAR_RE.match(line, index)
        if literal is not None:
            tokens.append(SemanticToken("string", line_number, index, literal.end() - index))
            index = literal.end()
            after_dot = False
            continue

        if line[index] == "#":
            macro = _MACRO_RE.match(line, index)
            if macro is not None:
                tokens.append(SemanticToken("macro", line_number, index, macro.end() - index))
                index = macro.end()
                after_dot = False
                continue

        number = _NUMBER_RE.match(line, index)
        if number is not None and number.end() > index:
            tokens.append(SemanticToken("number", line_number, index, number.end() - index))
            index = number.end()
            after_dot = False
            continue

        identifier = _IDENTIFIER_RE.match(line, index)
        if identifier is not None:
            name = identifier.group(0)
            token_type = _classify_identifier(name, line[identifier.end() :], after_dot)
            tokens.append(SemanticToken(token_type, line_number, index, len(name)))
            index = identifier.end()
            after_dot = False
            continue

        after_dot = line[index] == "."
        tokens.append(SemanticToken("operator", line_number, index, 1))
        index += 1

    return False


def _classify_identifier(name: str, rest: str, after_dot: bool) -> str:
    if name in _KEYWORD_SET:
        return "keyword"
    if name in BUILTIN_TYPES:
        return "type"
    is_call = rest.lstrip().startswith("(")
    if after_dot:
        return "method" if is_call else "property"
    if is_call:
        return "function"
    if name[0].isupper():
        return "class"
    return "variable"
