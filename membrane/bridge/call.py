"""CallBridge: machine-to-host calls.

The machine asks for a call by path with wire-encoded arguments; the bridge
resolves the callable, decodes the arguments, invokes it on the host and
encodes the result.

Argument unwrapping: a callable the machine fetched earlier arrives as a
``BoundFunction``.  It is handed to the callee as the original, unbound
callable, so a callee that invokes it with its own receiver gets that
receiver rather than the one captured when it was fetched.

Result registration: a non-primitive result is minted under
``_retobj<N>`` so the machine can keep addressing it.  A primitive result
is encoded under the called path; for primitives the path is inert.

Exceptions raised by the host callable propagate unchanged.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from membrane.kernel.codec import is_primitive
from membrane.kernel.exceptions import NotCallableError
from membrane.kernel.store import unwrap_bound, validate_path

if TYPE_CHECKING:
    from collections.abc import Sequence

    from membrane.kernel.codec import WireCodec
    from membrane.kernel.wire import WireValue

__all__ = ["RETOBJ_PREFIX", "CallBridge"]

log = logging.getLogger(__name__)

RETOBJ_PREFIX = "_retobj"


class CallBridge:
    """Forwards machine calls to host callables through one codec."""

    __slots__ = ("_codec",)

    def __init__(self, codec: WireCodec) -> None:
        self._codec = codec

    def call(self, path: Any, args_wire: Sequence[Any]) -> WireValue:
        """Invoke the callable at *path* with decoded *args_wire*.

        Args:
            path: Path of the callable in the store
            args_wire: Wire values (models or JSON-decoded dicts)

        Returns:
            The encoded result.

        Raises:
            PathError: *path* does not resolve
            NotCallableError: the resolved value is not callable
            WireError: an argument is not a valid wire value
        """
        segments = validate_path(path)
        store = self._codec.store
        fn = store.resolve_raw(segments).value
        if not callable(fn):
            raise NotCallableError(segments, fn)

        raw_args = [unwrap_bound(self._codec.decode(arg)) for arg in args_wire]
        log.debug("Calling %s with %d argument(s)", list(segments), len(raw_args))
        result = fn(*raw_args)

        if is_primitive(result):
            return self._codec.encode(result, segments)
        key = store.mint(RETOBJ_PREFIX, result)
        return self._codec.encode(result, [key])
