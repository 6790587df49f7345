"""Cursor-oriented text helpers shared by the language features."""

from __future__ import annotations

from dataclasses import dataclass

_CONTROL_KEYWORDS = frozenset({"if", "for", "while", "switch", "return", "sizeof"})


@dataclass(slots=True, frozen=True)
class WordSpan:
    """Identifier under the cursor with code-point columns."""

    word: str
    start: int
    end: int


@dataclass(slots=True, frozen=True)
class CallContext:
    """Innermost unclosed call before the cursor."""

    name: str
    active_parameter: int
    open_paren: int


def word_at(line_text: str, column: int) -> WordSpan | None:
    """Return the identifier touching `column`, if any."""
    if column < 0 or column > len(line_text):
        return None
    start = column
    end = column
    while start > 0 and _is_word_char(line_text[start - 1]):
        start -= 1
    while end < len(line_text) and _is_word_char(line_text[end]):
        end += 1
    if start >= end:
        return None
    return WordSpan(word=line_text[start:end], start=start, end=end)


def find_call_context(masked: str, offset: int) -> CallContext | None:
    """Scan backward from `offset` for the innermost named, unclosed call.

    Commas count toward the active parameter only at the call's own nesting
    level. A bare grouping paren or an open subscript is stepped over and the
    scan continues outward. Statement boundaries end the search.
    """
    depth = 0
    commas = 0
    index = min(offset, len(masked)) - 1
    while index >= 0:
        char = masked[index]
        if char in ")]":
            depth += 1
        elif char in "([":
            if depth > 0:
                depth -= 1
            elif char == "(":
                name = _identifier_before(masked, index)
                if name is not None:
                    if name in _CONTROL_KEYWORDS:
                        return None
                    return CallContext(name=_unqualified(name), active_parameter=commas, open_paren=index)
                commas = 0
            else:
                commas = 0
        elif char == "," and depth == 0:
            commas += 1
        elif char in ";{}":
            return None
        index -= 1
    return None


def _identifier_before(text: str, index: int) -> str | None:
    cursor = index - 1
    while cursor >= 0 and text[cursor] in " \t":
        cursor -= 1
    end = cursor + 1
    while cursor >= 0 and (_is_word_char(text[cursor]) or text[cursor] == ":"):
        cursor -= 1
    name = text[cursor + 1 : end].lstrip(":")
    if not name or name[0].isdigit():
        return None
    return name


def _unqualified(name: str) -> str:
    return name.rsplit("::", 1)[-1]


def _is_word_char(char: str) -> bool:
    return char.isalnum() or char == "_"
