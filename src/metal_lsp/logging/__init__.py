"""Structured logging utilities."""

from metal_lsp.logging.audit import AuditEvent, JsonlAuditLogger, sanitize_params, utc_timestamp

__all__ = ["AuditEvent", "JsonlAuditLogger", "sanitize_params", "utc_timestamp"]
