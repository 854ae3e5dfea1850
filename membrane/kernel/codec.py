"""WireCodec: host values to wire values and back.

``encode`` never registers anything: the caller supplies the path the value
will be reachable at.  ``encode_argument`` is the registering variant used
when the host pushes a value *into* the machine (procedure arguments): it
mints ``_argobj<N>`` / ``_argfun<N>`` keys for non-primitives.

``decode`` is the strict inverse dispatched on the wire tag.  References are
resolved through the owning ``PathStore``; object literals are parsed and
rehydrated.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from membrane.kernel.exceptions import UnknownWireTypeError
from membrane.kernel.interface import InterfaceEnumerator, enumerate_interface
from membrane.kernel.rehydrate import ObjectLiteralRehydrator
from membrane.kernel.store import Path, unwrap_bound
from membrane.kernel.wire import (
    FunctionWire,
    ObjectLiteralWire,
    ObjectWire,
    PrimitiveWire,
    WireValue,
    loads_json,
    parse_wire,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from membrane.kernel.store import PathStore

__all__ = ["ARGFUN_PREFIX", "ARGOBJ_PREFIX", "WireCodec", "is_primitive"]

log = logging.getLogger(__name__)

ARGOBJ_PREFIX = "_argobj"
ARGFUN_PREFIX = "_argfun"

_PRIMITIVE_TYPES = (str, int, float, bool)


def is_primitive(value: Any) -> bool:
    """True for ``None`` and JSON scalars (``str``, ``int``, ``float``, ``bool``)."""
    return value is None or isinstance(value, _PRIMITIVE_TYPES)


class WireCodec:
    """Converts between host values and ``WireValue`` models for one store.

    Parameters
    ----------
    store:
        The session's ``PathStore``; references are resolved against it.
    enumerator:
        Interface enumeration strategy used to fill ``keys``.
    """

    __slots__ = ("_enumerator", "_rehydrator", "_store")

    def __init__(
        self,
        store: PathStore,
        *,
        enumerator: InterfaceEnumerator = enumerate_interface,
    ) -> None:
        self._store = store
        self._enumerator = enumerator
        self._rehydrator = ObjectLiteralRehydrator(store)

    @property
    def store(self) -> PathStore:
        return self._store

    @property
    def enumerator(self) -> InterfaceEnumerator:
        return self._enumerator

    # -- host -> wire ------------------------------------------------------

    def keys_of(self, value: Any) -> list[str]:
        """Interface listing for *value* (bound functions report their target)."""
        return self._enumerator(unwrap_bound(value))

    def encode(self, raw: Any, path: Sequence[str | int] | Path) -> WireValue:
        """Encode *raw* as reachable at *path*.

        ``None`` and scalars become primitives, callables become function
        references and everything else an object reference.
        """
        if is_primitive(raw):
            return PrimitiveWire(value=raw)
        if callable(raw):
            return FunctionWire(path=list(path), keys=self.keys_of(raw))
        return ObjectWire(path=list(path), keys=self.keys_of(raw))

    def encode_argument(self, raw: Any) -> WireValue:
        """Register a host argument headed into the machine and encode it.

        Objects are minted under ``_argobj<N>``, callables under
        ``_argfun<N>``; primitives travel inline.
        """
        if is_primitive(raw):
            return PrimitiveWire(value=raw)
        prefix = ARGFUN_PREFIX if callable(raw) else ARGOBJ_PREFIX
        key = self._store.mint(prefix, raw)
        return self.encode(raw, [key])

    # -- wire -> host ------------------------------------------------------

    def decode(self, wire: Any) -> Any:
        """Decode a ``WireValue`` (or its JSON-decoded dict) to a host value.

        Raises
        ------
        UnknownWireTypeError
            For any unrecognised ``type`` tag.
        MalformedWireError
            For a known tag with invalid fields.
        PathError
            If a reference does not resolve.
        WireDecodeError
            If an object literal's text is not JSON.
        """
        wire = parse_wire(wire)
        match wire:
            case PrimitiveWire():
                return wire.value
            case ObjectWire() | FunctionWire():
                return self._store.resolve_raw(wire.path).value
            case ObjectLiteralWire():
                literal = loads_json(wire.value, "object-literal")
                return self._rehydrator.rehydrate(literal)
        raise UnknownWireTypeError(getattr(wire, "type", None))  # pragma: no cover
