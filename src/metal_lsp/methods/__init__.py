"""Method routing and request handlers."""

from metal_lsp.methods.language import LanguageContext, register_language_methods
from metal_lsp.methods.registry import MethodDispatchError, MethodHandler, MethodRegistry

__all__ = [
    "LanguageContext",
    "MethodDispatchError",
    "MethodHandler",
    "MethodRegistry",
    "register_language_methods",
]
