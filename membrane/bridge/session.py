"""MembraneSession: one store, one machine, one lifecycle.

A session owns every stateful piece of the membrane for a single machine:
the ``PathStore`` (and its key counter), the codec, the call bridge, the
interface surface and the procedure exporter.  Nothing is shared between
sessions.

State machine::

    NEW ──compile──▶ IDLE
    NEW ──compile fails──▶ CLOSED
    IDLE ──turn start──▶ RUNNING ──turn end / turn fails──▶ IDLE
    NEW | IDLE ──close──▶ CLOSED

* A turn is one ``append_source`` + ``run`` on the machine (compile, or a
  call to an exported procedure).
* Starting a turn while RUNNING raises ``ReentrancyError``: the host may not
  call back into the machine from inside a machine-to-host call.
* A CLOSED session refuses turns and surface requests with
  ``SessionClosedError``.  Closing does not release minted paths; entries
  live as long as the session object.

Failures inside a turn propagate to the caller.  After a call the session
returns to IDLE; after a failed compile it is CLOSED and nothing is
exported.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator, Mapping, Sequence
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from membrane.bridge.call import CallBridge
from membrane.bridge.codegen import check_identifier, render_link_block
from membrane.bridge.exporter import ExportedProcedure, ProcedureExporter
from membrane.bridge.surface import HeavenlyInterface
from membrane.config import MembraneSettings
from membrane.kernel.codec import WireCodec, is_primitive
from membrane.kernel.exceptions import (
    ReentrancyError,
    SessionClosedError,
    SessionStateError,
)
from membrane.kernel.interface import InterfaceEnumerator, enumerate_interface
from membrane.kernel.store import PathStore
from membrane.kernel.wire import PrimitiveWire, WireValue
from membrane.machine.prelude import MACHINE_PRELUDE

if TYPE_CHECKING:
    from types import TracebackType

    from membrane.machine.protocol import Machine

__all__ = ["BOOTSTRAP_GLOBAL", "MembraneSession", "SessionState"]

log = logging.getLogger(__name__)

#: Machine global bound to the bootstrap namespace object at compile time.
BOOTSTRAP_GLOBAL = "proxy"


class SessionState(StrEnum):
    """Membrane session lifecycle states."""

    NEW = "new"
    IDLE = "idle"
    RUNNING = "running"
    CLOSED = "closed"


class MembraneSession:
    """Connects one machine to one host store.

    Usage::

        session = MembraneSession(machine)
        procs = session.compile(["scene"], [scene], program, ["draw"])
        procs["draw"](None, frame)

    Parameters
    ----------
    machine:
        The sandboxed interpreter (see ``membrane.machine.Machine``).
    settings:
        Session settings; ``MembraneSettings()`` when omitted.
    root:
        Optional initial contents of the store root.
    enumerator:
        Interface enumeration strategy for the codec.
    """

    def __init__(
        self,
        machine: Machine,
        *,
        settings: MembraneSettings | None = None,
        root: Mapping[str, Any] | None = None,
        enumerator: InterfaceEnumerator = enumerate_interface,
    ) -> None:
        self._machine = machine
        self._settings = settings if settings is not None else MembraneSettings()
        self._state = SessionState.NEW
        self._sources: list[str] = []

        self._store = PathStore(root)
        self._codec = WireCodec(self._store, enumerator=enumerator)
        self._bridge = CallBridge(self._codec)
        self._interface = HeavenlyInterface(
            self._codec,
            self._bridge,
            log_level=logging.getLevelNamesMapping()[self._settings.machine_log_level],
            guard=self._check_open,
        )
        self._exporter = ProcedureExporter(
            self._codec, self, this_key=self._settings.this_key
        )
        self._procedures: dict[str, ExportedProcedure] = {}

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def settings(self) -> MembraneSettings:
        return self._settings

    @property
    def machine(self) -> Machine:
        return self._machine

    @property
    def store(self) -> PathStore:
        return self._store

    @property
    def codec(self) -> WireCodec:
        return self._codec

    @property
    def bridge(self) -> CallBridge:
        return self._bridge

    @property
    def interface(self) -> HeavenlyInterface:
        return self._interface

    @property
    def exporter(self) -> ProcedureExporter:
        return self._exporter

    @property
    def procedures(self) -> Mapping[str, ExportedProcedure]:
        """Procedures exported by ``compile``."""
        return dict(self._procedures)

    @property
    def sources(self) -> tuple[str, ...]:
        """Every source text appended so far (only when ``record_sources``)."""
        return tuple(self._sources)

    # ------------------------------------------------------------------
    # Turn runner (used by the exporter)
    # ------------------------------------------------------------------

    def _check_open(self, operation: str) -> None:
        if self._state is SessionState.CLOSED:
            raise SessionClosedError(operation)

    @contextlib.contextmanager
    def turn(self, label: str) -> Iterator[None]:
        """Guard one machine turn: NEW/IDLE -> RUNNING -> IDLE."""
        self._check_open(f"run {label}")
        if self._state is SessionState.RUNNING:
            raise ReentrancyError(label)
        self._state = SessionState.RUNNING
        log.debug("Machine turn %s started", label)
        try:
            yield
        finally:
            if self._state is SessionState.RUNNING:
                self._state = SessionState.IDLE
            log.debug("Machine turn %s finished", label)

    def append_source(self, text: str) -> None:
        if self._settings.record_sources:
            self._sources.append(text)
        self._machine.append_source(text)

    def run(self) -> None:
        self._machine.run()

    # ------------------------------------------------------------------
    # Compile-time linking
    # ------------------------------------------------------------------

    def _link(self, name: str, value: Any) -> WireValue:
        if is_primitive(value):
            return PrimitiveWire(value=value)
        key = self._store.link(name, value)
        return self._codec.encode(value, [key])

    def render_program(
        self,
        linked_names: Sequence[str],
        linked_values: Sequence[Any],
        program_source: str,
    ) -> str:
        """Link every ``(name, value)`` pair and return prelude + link block + program."""
        if len(linked_names) != len(linked_values):
            raise ValueError(
                f"Got {len(linked_names)} linked names but {len(linked_values)} values"
            )
        bindings = [
            (check_identifier(name, "linked"), self._link(name, value))
            for name, value in zip(linked_names, linked_values, strict=True)
        ]
        prelude = MACHINE_PRELUDE if self._settings.include_prelude else ""
        return prelude + render_link_block(bindings) + program_source

    def compile(
        self,
        linked_names: Sequence[str],
        linked_values: Sequence[Any],
        program_source: str,
        exported_proc_names: Sequence[str],
    ) -> dict[str, ExportedProcedure]:
        """Link host values, run the program once and export procedures.

        Returns
        -------
        dict[str, ExportedProcedure]
            One host stub per entry of *exported_proc_names*.

        Raises
        ------
        SessionClosedError
            If the session is closed.
        SessionStateError
            If the session has already been compiled.
        Exception
            Whatever the machine raises while running the program; the
            session is closed before it propagates.
        IdentifierError
            If a linked or exported name is not a machine identifier.
        ValueError
            If names and values differ in length.
        """
        self._check_open("compile")
        if self._state is not SessionState.NEW:
            raise SessionStateError(f"Session already compiled (state={self._state.value})")

        names = list(linked_names)
        values = list(linked_values)
        procs = [check_identifier(name, "procedure") for name in exported_proc_names]
        source = self.render_program(names, values, program_source)

        self._interface.install(self._machine)
        self._machine.define_global(BOOTSTRAP_GLOBAL, self._machine.to_sandbox_value({}))

        try:
            with self.turn("compile"):
                self.append_source(source)
                self.run()
        except Exception:
            self._state = SessionState.CLOSED
            log.warning("Compile failed; session closed")
            raise

        self._procedures = self._exporter.export_all(procs)
        log.debug("Compiled program; exported %s", procs)
        return dict(self._procedures)

    # ------------------------------------------------------------------
    # Host -> machine
    # ------------------------------------------------------------------

    def export(self, name: str) -> ExportedProcedure:
        """Export another machine procedure after compile."""
        self._check_open(f"export {name}")
        if self._state is SessionState.NEW:
            raise SessionStateError("Session has not been compiled")
        return self._exporter.export(name)

    def call_in_machine(self, name: str, args: Sequence[Any] = (), *, this: Any = None) -> None:
        """Call machine procedure *name* with *args* in one turn; returns nothing."""
        self.export(name)(this, *args)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the session.  Idempotent; not allowed during a turn."""
        if self._state is SessionState.RUNNING:
            raise SessionStateError("Cannot close a session during a machine turn")
        self._state = SessionState.CLOSED

    def __enter__(self) -> MembraneSession:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool:
        if self._state is not SessionState.RUNNING:
            self.close()
        return False

    def __repr__(self) -> str:
        return (
            f"MembraneSession(state={self._state.value!r}, "
            f"store={self._store!r}, procedures={sorted(self._procedures)})"
        )
