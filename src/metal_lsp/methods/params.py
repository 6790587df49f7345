"""Validation of common request parameter shapes."""

from __future__ import annotations

from metal_lsp.documents.positions import Position, Range
from metal_lsp.methods.registry import MethodDispatchError
from metal_lsp.protocol.jsonrpc import ErrorCode


def invalid_params(message: str) -> MethodDispatchError:
    return MethodDispatchError(code=ErrorCode.INVALID_PARAMS, message=message)


def text_document_uri(params: dict[str, object]) -> str:
    """Return `params.textDocument.uri`."""
    text_document = params.get("textDocument")
    if not isinstance(text_document, dict):
        raise invalid_params("textDocument must be an object.")
    uri = text_document.get("uri")
    if not isinstance(uri, str) or not uri:
        raise invalid_params("textDocument.uri must be a non-empty string.")
    return uri


def text_document_version(params: dict[str, object], default: int = 0) -> int:
    text_document = params.get("textDocument")
    if not isinstance(text_document, dict):
        raise invalid_params("textDocument must be an object.")
    version = text_document.get("version", default)
    if version is None:
        return default
    if not isinstance(version, int) or isinstance(version, bool):
        raise invalid_params("textDocument.version must be an integer.")
    return version


def position(params: dict[str, object]) -> Position:
    """Return `params.position`."""
    try:
        return Position.from_lsp(params.get("position"))
    except ValueError as error:
        raise invalid_params(str(error)) from error


def range_param(params: dict[str, object], key: str = "range") -> Range:
    try:
        return Range.from_lsp(params.get(key))
    except ValueError as error:
        raise invalid_params(str(error)) from error


def optional_object(params: dict[str, object], key: str) -> dict[str, object]:
    value = params.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise invalid_params(f"{key} must be an object.")
    return value


def positive_int(value: object, name: str, default: int) -> int:
    if value is None:
        return default
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise invalid_params(f"{name} must be a positive integer.")
    return value
