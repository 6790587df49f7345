"""Line/character positions and their mapping to string offsets."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class Position:
    """Zero-based protocol position; `character` counts UTF-16 code units."""

    line: int
    character: int

    def to_lsp(self) -> dict[str, int]:
        """Return the JSON form of this position."""
        return {"line": self.line, "character": self.character}

    @classmethod
    def from_lsp(cls, payload: object) -> Position:
        """Parse a JSON position, raising ValueError on a malformed payload."""
        if not isinstance(payload, dict):
            raise ValueError("position must be an object")
        line = payload.get("line")
        character = payload.get("character")
        if not _is_non_negative_int(line) or not _is_non_negative_int(character):
            raise ValueError("position requires non-negative integer line and character")
        return cls(line=line, character=character)


@dataclass(slots=True, frozen=True)
class Range:
    """Half-open protocol range."""

    start: Position
    end: Position

    def to_lsp(self) -> dict[str, dict[str, int]]:
        """Return the JSON form of this range."""
        return {"start": self.start.to_lsp(), "end": self.end.to_lsp()}

    @classmethod
    def from_lsp(cls, payload: object) -> Range:
        """Parse a JSON range, raising ValueError on a malformed payload."""
        if not isinstance(payload, dict):
            raise ValueError("range must be an object")
        return cls(
            start=Position.from_lsp(payload.get("start")),
            end=Position.from_lsp(payload.get("end")),
        )


class LineIndex:
    """Maps protocol positions to code-point offsets of one text snapshot."""

    __slots__ = ("_text", "_line_starts")

    def __init__(self, text: str) -> None:
        self._text = text
        starts = [0]
        for offset, char in enumerate(text):
            if char == "\n":
                starts.append(offset + 1)
        self._line_starts = starts

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def line_start(self, line: int) -> int:
        """Return the offset of the first character of `line` (clamped)."""
        if line < 0:
            return 0
        if line >= len(self._line_starts):
            return len(self._text)
        return self._line_starts[line]

    def line_end(self, line: int) -> int:
        """Return the offset of the line terminator, excluding a trailing CR."""
        if line < 0:
            return self.line_end(0)
        if line >= len(self._line_starts):
            return len(self._text)
        if line + 1 < len(self._line_starts):
            end = self._line_starts[line + 1] - 1
        else:
            end = len(self._text)
        start = self._line_starts[line]
        if end > start and self._text[end - 1] == "\r":
            end -= 1
        return end

    def line_text(self, line: int) -> str:
        """Return the content of one line without its terminator."""
        if line < 0 or line >= len(self._line_starts):
            return ""
        return self._text[self._line_starts[line] : self.line_end(line)]

    def offset_at(self, position: Position) -> int:
        """Convert a protocol position to an offset, clamping out-of-range values."""
        if position.line >= len(self._line_starts):
            return len(self._text)
        if position.line < 0:
            return 0
        start = self._line_starts[position.line]
        end = self.line_end(position.line)
        return start + _code_points_for_utf16(self._text, start, end, position.character)

    def position_at(self, offset: int) -> Position:
        """Convert an offset to a protocol position, clamping to the text bounds."""
        offset = max(0, min(offset, len(self._text)))
        line = bisect_right(self._line_starts, offset) - 1
        start = self._line_starts[line]
        return Position(line=line, character=_utf16_length(self._text, start, offset))

    def column_at(self, position: Position) -> int:
        """Return the code-point column of a protocol position."""
        return self.offset_at(position) - self.line_start(position.line)

    def to_position(self, line: int, column: int) -> Position:
        """Convert a zero-based line and code-point column to a protocol position."""
        if line < 0:
            return Position(line=0, character=0)
        if line >= len(self._line_starts):
            return self.position_at(len(self._text))
        start = self._line_starts[line]
        end = self.line_end(line)
        offset = min(start + max(column, 0), end)
        return Position(line=line, character=_utf16_length(self._text, start, offset))

    def to_range(self, line: int, column: int, end_line: int, end_column: int) -> Range:
        """Convert code-point coordinates to a protocol range."""
        return Range(start=self.to_position(line, column), end=self.to_position(end_line, end_column))

    def end_position(self) -> Position:
        return self.position_at(len(self._text))


def utf16_length(text: str) -> int:
    """Return the number of UTF-16 code units needed to encode `text`."""
    return _utf16_length(text, 0, len(text))


def _utf16_length(text: str, start: int, end: int) -> int:
    length = 0
    for index in range(start, end):
        length += 2 if ord(text[index]) > 0xFFFF else 1
    return length


def _code_points_for_utf16(text: str, start: int, end: int, units: int) -> int:
    consumed = 0
    index = start
    while index < end and consumed < units:
        width = 2 if ord(text[index]) > 0xFFFF else 1
        if consumed + width > units:
            break
        consumed += width
        index += 1
    return index - start


def _is_non_negative_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0
