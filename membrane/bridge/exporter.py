"""ProcedureExporter: host-to-machine calls.

Exports machine-defined procedures as host callables.  Calling one:

1. writes the receiver (``this``) at the configured root key;
2. registers each non-primitive argument (``_argobj<N>`` / ``_argfun<N>``);
3. appends one ``var _arg<N> = ...;`` statement per argument;
4. appends ``var _retobj = <procedure>(_arg...);``;
5. runs the machine to completion.

Known limitations:

* The procedure's return value never reaches the host; the call returns
  ``None``.
* No re-entrancy.  The runner's ``turn()`` refuses to start a turn while
  another is in progress (see ``MembraneSession``).
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterable
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any, Protocol

from membrane.bridge.codegen import check_identifier, render_binding, render_invocation

if TYPE_CHECKING:
    from membrane.kernel.codec import WireCodec
    from membrane.machine.protocol import Machine

__all__ = [
    "ARG_PREFIX",
    "DirectRunner",
    "ExportedProcedure",
    "ProcedureExporter",
    "TurnRunner",
]

log = logging.getLogger(__name__)

ARG_PREFIX = "_arg"


class TurnRunner(Protocol):
    """Drives machine turns on behalf of the exporter."""

    def turn(self, label: str) -> AbstractContextManager[None]: ...

    def append_source(self, text: str) -> None: ...

    def run(self) -> None: ...


class DirectRunner:
    """Runner that talks to a machine directly, with no turn bookkeeping.

    Drives a ``ProcedureExporter`` without a ``MembraneSession``.  Nothing
    refuses a nested turn, so a host callback may call back into the
    machine; the machine itself must cope with that.
    """

    __slots__ = ("_machine",)

    def __init__(self, machine: Machine) -> None:
        self._machine = machine

    def turn(self, label: str) -> AbstractContextManager[None]:
        return contextlib.nullcontext()

    def append_source(self, text: str) -> None:
        self._machine.append_source(text)

    def run(self) -> None:
        self._machine.run()


class ExportedProcedure:
    """Host-side stub for one machine procedure.

    ``proc(this, *args)`` writes *this* as the receiver and passes *args*
    through; ``proc.call`` is the same call spelled like
    ``Function.prototype.call``.  Both return ``None``.
    """

    __slots__ = ("_exporter", "name")

    def __init__(self, exporter: ProcedureExporter, name: str) -> None:
        self._exporter = exporter
        self.name = name

    def __call__(self, this: Any, *args: Any) -> None:
        self._exporter.invoke(self.name, this, args)

    call = __call__

    def __repr__(self) -> str:
        return f"ExportedProcedure({self.name!r})"


class ProcedureExporter:
    """Builds host callables for machine procedures.

    Parameters
    ----------
    codec:
        Session codec; its store receives ``this`` and minted arguments.
    runner:
        Where generated source goes and how turns are guarded.
    this_key:
        Root key the receiver is written to on every call.
    """

    __slots__ = ("_codec", "_runner", "_this_key")

    def __init__(
        self,
        codec: WireCodec,
        runner: TurnRunner,
        *,
        this_key: str = "g_this",
    ) -> None:
        self._codec = codec
        self._runner = runner
        self._this_key = this_key

    @property
    def this_key(self) -> str:
        return self._this_key

    def export(self, name: str) -> ExportedProcedure:
        """Return the host stub for machine procedure *name*."""
        return ExportedProcedure(self, check_identifier(name, "procedure"))

    def export_all(self, names: Iterable[str]) -> dict[str, ExportedProcedure]:
        return {name: self.export(name) for name in names}

    def render_call(self, name: str, this: Any, args: Iterable[Any]) -> str:
        """Register ``this`` and *args* in the store and return the call source."""
        store = self._codec.store
        store.write_raw([self._this_key], this)

        lines: list[str] = []
        locals_: list[str] = []
        for arg in args:
            wire = self._codec.encode_argument(arg)
            local = store.counter.next_key(ARG_PREFIX)
            lines.append(render_binding(local, wire))
            locals_.append(local)
        lines.append(render_invocation(name, locals_))
        return "\n".join(lines) + "\n"

    def invoke(self, name: str, this: Any, args: Iterable[Any]) -> None:
        """Run one machine turn that calls *name*; the result is discarded."""
        with self._runner.turn(name):
            source = self.render_call(name, this, args)
            log.debug("Invoking machine procedure %s", name)
            self._runner.append_source(source)
            self._runner.run()
