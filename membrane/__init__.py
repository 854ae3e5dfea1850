"""Heaven membrane: cross-realm object access between a host and a sandbox.

Code inside a sandboxed interpreter (the *machine*) reads, writes and calls
host objects (*heaven*) through string paths into a host-owned store; the
host calls procedures defined inside the machine.  Neither side ever holds
the other's live objects.

Typical use::

    from membrane import MembraneSession

    session = MembraneSession(machine)
    procs = session.compile(["lib"], [lib], program_source, ["frame"])
    procs["frame"](state)
"""

from __future__ import annotations

from membrane.bridge import (
    CallBridge,
    ExportedProcedure,
    HeavenlyInterface,
    MembraneSession,
    ProcedureExporter,
    SessionState,
)
from membrane.config import MembraneSettings
from membrane.kernel import (
    BoundFunction,
    FunctionWire,
    IdentifierError,
    MalformedWireError,
    MembraneError,
    NotCallableError,
    ObjectLiteralRehydrator,
    ObjectLiteralWire,
    ObjectWire,
    PathError,
    PathStore,
    PrimitiveWire,
    ReentrancyError,
    SessionClosedError,
    SessionStateError,
    UnknownWireTypeError,
    WireCodec,
    WireDecodeError,
    WireError,
    enumerate_interface,
)
from membrane.machine import MACHINE_PRELUDE, Machine

__all__ = [
    "MACHINE_PRELUDE",
    "BoundFunction",
    "CallBridge",
    "ExportedProcedure",
    "FunctionWire",
    "HeavenlyInterface",
    "IdentifierError",
    "Machine",
    "MalformedWireError",
    "MembraneError",
    "MembraneSession",
    "MembraneSettings",
    "NotCallableError",
    "ObjectLiteralRehydrator",
    "ObjectLiteralWire",
    "ObjectWire",
    "PathError",
    "PathStore",
    "PrimitiveWire",
    "ProcedureExporter",
    "ReentrancyError",
    "SessionClosedError",
    "SessionState",
    "SessionStateError",
    "UnknownWireTypeError",
    "WireCodec",
    "WireDecodeError",
    "WireError",
    "enumerate_interface",
]

__version__ = "0.1.0"
