"""clang-format invocation with a brace-depth indentation fallback."""

from __future__ import annotations

import subprocess
from typing import Protocol


class CodeFormatter(Protocol):
    """Anything able to reformat a whole document."""

    def format(self, source: str, tab_size: int, insert_spaces: bool) -> str | None: ...


class ClangFormatter:
    """Pipes the document through clang-format."""

    def __init__(self, command: str = "clang-format", column_limit: int = 100) -> None:
        self._command = command
        self._column_limit = column_limit

    def style(self, tab_size: int, insert_spaces: bool) -> str:
        use_tab = "Never" if insert_spaces else "ForIndentation"
        return f"{{IndentWidth: {tab_size}, UseTab: {use_tab}, ColumnLimit: {self._column_limit}}}"

    def format(self, source: str, tab_size: int, insert_spaces: bool) -> str | None:
        """Return formatted text, or None when clang-format is unavailable or fails."""
        try:
            completed = subprocess.run(
                [self._command, f"-style={self.style(tab_size, insert_spaces)}"],
                input=source,
                capture_output=True,
                text=True,
                encoding="utf-8",
                check=False,
            )
        except (OSError, UnicodeError):
            return None
        if completed.returncode != 0 or not completed.stdout:
            return None
        return completed.stdout


def basic_format(source: str, tab_size: int = 2, insert_spaces: bool = True) -> str:
    """Re-indent lines by brace depth; blank lines stay empty."""
    indent_unit = " " * tab_size if insert_spaces else "\t"
    formatted: list[str] = []
    level = 0
    for line in source.split("\n"):
        trimmed = line.strip()
        if not trimmed:
            formatted.append("")
            continue
        if trimmed.startswith("}"):
            level = max(0, level - 1)
        formatted.append(indent_unit * level + trimmed)
        if "{" in trimmed and "}" not in trimmed:
            level += 1
    return "\n".join(formatted)


def format_document(
    source: str,
    tab_size: int,
    insert_spaces: bool,
    formatter: CodeFormatter | None,
) -> str:
    """Format with the external formatter, falling back to `basic_format`."""
    if formatter is not None:
        formatted = formatter.format(source, tab_size, insert_spaces)
        if formatted is not None:
            return formatted
    return basic_format(source, tab_size, insert_spaces)
