"""LSP method table: requests, notifications and the capabilities they advertise."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from metal_lsp.protocol.jsonrpc import ErrorCode

MethodHandler = Callable[[dict[str, object]], object]
Capability = Mapping[str, object]


@dataclass(slots=True, frozen=True)
class MethodDispatchError(Exception):
    """Dispatch failure carrying its JSON-RPC error code."""

    code: int
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True, frozen=True)
class MethodEntry:
    """One client-to-server method.

    `capability` is the ServerCapabilities fragment that tells the client the
    method is supported; fragments of several methods merge key by key.
    """

    name: str
    handler: MethodHandler
    notification: bool
    capability: Capability | None = None


@dataclass(slots=True)
class MethodRegistry:
    """Routes requests and notifications separately and derives capabilities."""

    _entries: dict[str, MethodEntry] = field(default_factory=dict)

    def request(
        self, name: str, handler: MethodHandler, capability: Capability | None = None
    ) -> None:
        self._add(MethodEntry(name, handler, notification=False, capability=capability))

    def notification(
        self, name: str, handler: MethodHandler, capability: Capability | None = None
    ) -> None:
        self._add(MethodEntry(name, handler, notification=True, capability=capability))

    def _add(self, entry: MethodEntry) -> None:
        if entry.name in self._entries:
            raise ValueError(f"Method already registered: {entry.name}")
        self._entries[entry.name] = entry

    def dispatch_request(self, name: str, params: dict[str, object]) -> object:
        """Run a request handler; notifications are not callable as requests."""
        entry = self._entries.get(name)
        if entry is None or entry.notification:
            raise MethodDispatchError(
                code=ErrorCode.METHOD_NOT_FOUND, message=f"Method not found: {name}"
            )
        return entry.handler(params)

    def dispatch_notification(self, name: str, params: dict[str, object]) -> None:
        entry = self._entries.get(name)
        if entry is None or not entry.notification:
            raise MethodDispatchError(
                code=ErrorCode.METHOD_NOT_FOUND, message=f"Method not found: {name}"
            )
        entry.handler(params)

    def capabilities(self) -> dict[str, object]:
        """Merge the capability fragments of every entry in registration order."""
        merged: dict[str, object] = {}
        for entry in self._entries.values():
            if entry.capability is not None:
                _merge(merged, entry.capability)
        return merged


def _merge(target: dict[str, object], fragment: Capability) -> None:
    for key, value in fragment.items():
        if isinstance(value, Mapping):
            current = target.get(key)
            nested = current if isinstance(current, dict) else {}
            _merge(nested, value)
            target[key] = nested
        else:
            target[key] = value
