"""Interface surface: the functions registered into the machine.

All four take and return strings (JSON text) so they fit any host/engine
calling convention:

==================  ============================================  ===========
machine name        behaviour                                     returns
==================  ============================================  ===========
``getFromHeaven``   encode the value at ``path``                  wire JSON
``sendToHeaven``    decode ``value`` and write it at ``path``     nothing
``prayToHeaven``    call the callable at ``path`` with ``args``   wire JSON
``log``             forward to the ``membrane.machine`` logger    nothing
==================  ============================================  ===========

Any failure raises out of the native function, which the machine surfaces
as an error thrown from the statement that crossed the membrane.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from membrane.kernel.store import validate_path
from membrane.kernel.wire import dumps_wire, loads_json, parse_wire_list

if TYPE_CHECKING:
    from membrane.bridge.call import CallBridge
    from membrane.kernel.codec import WireCodec
    from membrane.machine.protocol import Machine, NativeFunction

__all__ = [
    "GET_FROM_HEAVEN",
    "LOG",
    "PRAY_TO_HEAVEN",
    "SEND_TO_HEAVEN",
    "HeavenlyInterface",
]

log = logging.getLogger(__name__)
machine_log = logging.getLogger("membrane.machine")

GET_FROM_HEAVEN = "getFromHeaven"
SEND_TO_HEAVEN = "sendToHeaven"
PRAY_TO_HEAVEN = "prayToHeaven"
LOG = "log"


class HeavenlyInterface:
    """String-in / string-out functions the machine calls into.

    Parameters
    ----------
    codec:
        Session codec (and, through it, the store).
    bridge:
        Call bridge used by ``prayToHeaven``.
    log_level:
        Level for messages the machine sends through ``log``.
    guard:
        Called with the operation name before serving a request; raises
        to refuse it (the session uses this to reject a closed session).
    """

    __slots__ = ("_bridge", "_codec", "_guard", "_log_level")

    def __init__(
        self,
        codec: WireCodec,
        bridge: CallBridge,
        *,
        log_level: int = logging.INFO,
        guard: Callable[[str], None] | None = None,
    ) -> None:
        self._codec = codec
        self._bridge = bridge
        self._log_level = log_level
        self._guard = guard

    def _check(self, operation: str) -> None:
        if self._guard is not None:
            self._guard(operation)

    def get_from_heaven(self, path_json: str) -> str:
        self._check(GET_FROM_HEAVEN)
        path = validate_path(loads_json(path_json, "path"))
        log.debug("get %s", list(path))
        value = self._codec.store.resolve_raw(path).value
        return dumps_wire(self._codec.encode(value, path))

    def send_to_heaven(self, path_json: str, value_json: str) -> None:
        self._check(SEND_TO_HEAVEN)
        path = validate_path(loads_json(path_json, "path"))
        value = self._codec.decode(loads_json(value_json, "value"))
        log.debug("set %s", list(path))
        self._codec.store.write_raw(path, value)

    def pray_to_heaven(self, path_json: str, args_json: str) -> str:
        self._check(PRAY_TO_HEAVEN)
        path = loads_json(path_json, "path")
        args = parse_wire_list(loads_json(args_json, "arguments"))
        return dumps_wire(self._bridge.call(path, args))

    def log(self, *args: Any) -> None:
        machine_log.log(self._log_level, "Inside machine: %s", " ".join(str(arg) for arg in args))

    def natives(self) -> dict[str, NativeFunction]:
        """Machine-visible name to host function."""
        return {
            GET_FROM_HEAVEN: self.get_from_heaven,
            SEND_TO_HEAVEN: self.send_to_heaven,
            PRAY_TO_HEAVEN: self.pray_to_heaven,
            LOG: self.log,
        }

    def install(self, machine: Machine) -> None:
        """Register every surface function into *machine*'s global scope."""
        for name, fn in self.natives().items():
            machine.register_native_function(name, fn)
