from __future__ import annotations

from metal_lsp.analysis import BuiltinDocumentation, StructuralIndexer
from metal_lsp.features import hover_markdown

SOURCE = "struct Light {\n    float3 dir;\n    float power;\n};\nfloat shade(Light l) { return 1.0; }\n"


def test_local_function_signature() -> None:
    index = StructuralIndexer().index(SOURCE)

    assert hover_markdown("shade", index, BuiltinDocumentation()) == (
        "```metal\nfloat shade(Light l)\n```"
    )


def test_local_struct_lists_fields() -> None:
    index = StructuralIndexer().index(SOURCE)

    assert hover_markdown("Light", index, BuiltinDocumentation()) == (
        "```metal\nstruct Light\n```\n---\n\nFields: `dir`, `power`"
    )


def test_builtin_documentation() -> None:
    documentation = BuiltinDocumentation()
    entry = documentation.lookup("normalize")
    assert entry is not None

    assert hover_markdown("normalize", None, documentation) == entry.markdown


def test_hardcoded_completion_fallback() -> None:
    assert hover_markdown("linear", None, BuiltinDocumentation()) == (
        "```metal\nlinear\n```\n\nSampler filter mode"
        "\n---\n\nLinear filtering - interpolates between texels"
    )


def test_unknown_word_has_no_hover() -> None:
    assert hover_markdown("mystery", None, BuiltinDocumentation()) is None
