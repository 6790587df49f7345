"""Analysis and diagnostics caches."""

from metal_lsp.cache.analysis import AnalysisCache, AnalysisCacheEntry, AnalysisResult, content_hash
from metal_lsp.cache.diagnostics import (
    DiagnosticsCache,
    DiagnosticsCacheEntry,
    diagnostics_cache_key,
    include_fingerprint,
)

__all__ = [
    "AnalysisCache",
    "AnalysisCacheEntry",
    "AnalysisResult",
    "DiagnosticsCache",
    "DiagnosticsCacheEntry",
    "content_hash",
    "diagnostics_cache_key",
    "include_fingerprint",
]
