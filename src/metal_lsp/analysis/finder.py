"""Regex declaration and reference finder used for navigation."""

from __future__ import annotations

import re

from metal_lsp.analysis.masking import mask_source
from metal_lsp.analysis.models import SymbolDeclaration, SymbolOccurrence

_EXPRESSION_WORDS = frozenset({"return", "case", "sizeof", "else", "do", "throw"})
_DECLARATOR_SUFFIXES = ("*", "&", ">", ":")
_TRAILING_WORD_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)$")


class SymbolFinder:
    """Line-oriented regex search over a comment, string and char-literal masked view."""

    def find_declarations(self, name: str, source: str) -> list[SymbolDeclaration]:
        """Return candidate declarations of `name`, at most one per kind per line."""
        if not name:
            return []
        escaped = re.escape(name)
        function_re = re.compile(rf"\b{escaped}\s*\(")
        struct_re = re.compile(rf"\bstruct\s+({escaped})\b")
        variable_re = re.compile(rf"\b{escaped}\s*[=;]")

        declarations: list[SymbolDeclaration] = []
        previous = ""
        for line_number, line in enumerate(_masked_lines(source)):
            for match in function_re.finditer(line):
                header = line[: match.start()]
                kind_text = line
                if not header.strip():
                    # Return type and stage keyword on the line above the name.
                    header = "" if previous.lstrip().startswith("#") else previous
                    kind_text = f"{header} {line}"
                if _looks_like_declarator(header):
                    declarations.append(
                        SymbolDeclaration(
                            name=name,
                            kind=_function_kind(kind_text),
                            line=line_number,
                            column=match.start(),
                        )
                    )
                    break

            struct_match = struct_re.search(line)
            if struct_match is not None:
                declarations.append(
                    SymbolDeclaration(
                        name=name,
                        kind="struct",
                        line=line_number,
                        column=struct_match.start(1),
                    )
                )

            variable_match = variable_re.search(line)
            if variable_match is not None:
                before = line[: variable_match.start()]
                if before.count("(") == before.count(")"):
                    declarations.append(
                        SymbolDeclaration(
                            name=name,
                            kind="variable",
                            line=line_number,
                            column=variable_match.start(),
                        )
                    )
            if line.strip():
                previous = line

        return declarations

    def find_references(self, name: str, source: str) -> list[SymbolOccurrence]:
        """Return every whole-word occurrence of `name`."""
        if not name:
            return []
        word_re = re.compile(rf"\b{re.escape(name)}\b")
        return [
            SymbolOccurrence(line=line_number, column=match.start())
            for line_number, line in enumerate(_masked_lines(source))
            for match in word_re.finditer(line)
        ]


def _masked_lines(source: str) -> list[str]:
    return mask_source(source, mask_char_literals=True).split("\n")


def _function_kind(line: str) -> str:
    if "kernel" in line:
        return "kernel"
    if "vertex" in line:
        return "vertex"
    if "fragment" in line:
        return "fragment"
    return "function"


def _looks_like_declarator(before: str) -> bool:
    # A declaration name follows its return type; a call follows an operator or nothing.
    stripped = before.rstrip()
    if not stripped:
        return False
    if stripped.endswith(_DECLARATOR_SUFFIXES):
        return True
    word = _TRAILING_WORD_RE.search(stripped)
    return word is not None and word.group(1) not in _EXPRESSION_WORDS
