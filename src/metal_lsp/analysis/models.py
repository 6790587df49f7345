"""Data types shared by the analysis engines."""

from __future__ import annotations

from dataclasses import dataclass, field

SYMBOL_KINDS = ("function", "kernel", "vertex", "fragment", "struct", "variable", "unknown")
FUNCTION_KINDS = frozenset({"function", "kernel", "vertex", "fragment"})


@dataclass(slots=True, frozen=True)
class SourcePosition:
    """Zero-based line and code-point column."""

    line: int
    column: int


@dataclass(slots=True, frozen=True)
class SourceRange:
    """Half-open span between two source positions."""

    start: SourcePosition
    end: SourcePosition


@dataclass(slots=True, frozen=True)
class SymbolNode:
    """Declaration recovered by the structural indexer."""

    name: str
    kind: str
    range: SourceRange
    selection_range: SourceRange
    detail: str | None = None
    children: tuple[SymbolNode, ...] = ()


@dataclass(slots=True, frozen=True)
class FunctionSignature:
    """Call signature derived from a function declaration."""

    name: str
    label: str
    parameters: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class DocumentIndex:
    """Output of one structural indexing pass over a document snapshot."""

    symbols: tuple[SymbolNode, ...] = ()
    function_signatures: dict[str, FunctionSignature] = field(default_factory=dict)

    def find_symbol(self, name: str) -> SymbolNode | None:
        """Return the first top-level symbol with `name`."""
        for symbol in self.symbols:
            if symbol.name == name:
                return symbol
        return None


@dataclass(slots=True, frozen=True)
class SymbolDeclaration:
    """Declaration site reported by the regex finder."""

    name: str
    kind: str
    line: int
    column: int


@dataclass(slots=True, frozen=True)
class SymbolOccurrence:
    """Whole-word occurrence reported by the regex finder."""

    line: int
    column: int


def declaration_rank(kind: str) -> int:
    """Return the definition preference rank of a kind; lower wins."""
    if kind in FUNCTION_KINDS:
        return 0
    if kind == "struct":
        return 1
    if kind == "variable":
        return 2
    return 3


def declaration_sort_key(declaration: SymbolDeclaration) -> tuple[int, int, int]:
    """Return deterministic sort key for definition candidates."""
    return (declaration_rank(declaration.kind), declaration.line, declaration.column)
