"""Membrane bridge: calls in both directions and the machine-facing surface.

Public API:
    - CallBridge          - machine-to-host calls (``prayToHeaven``)
    - ProcedureExporter   - host-to-machine calls
    - ExportedProcedure   - host stub for one machine procedure
    - DirectRunner        - turn runner without session bookkeeping
    - HeavenlyInterface   - ``getFromHeaven`` / ``sendToHeaven`` / ``prayToHeaven`` / ``log``
    - MembraneSession     - one store + one machine, ``compile()`` entrypoint
    - SessionState        - session lifecycle states
"""

from __future__ import annotations

from membrane.bridge.call import RETOBJ_PREFIX, CallBridge
from membrane.bridge.codegen import (
    check_identifier,
    render_binding,
    render_invocation,
    render_link_block,
)
from membrane.bridge.exporter import (
    ARG_PREFIX,
    DirectRunner,
    ExportedProcedure,
    ProcedureExporter,
    TurnRunner,
)
from membrane.bridge.session import BOOTSTRAP_GLOBAL, MembraneSession, SessionState
from membrane.bridge.surface import (
    GET_FROM_HEAVEN,
    LOG,
    PRAY_TO_HEAVEN,
    SEND_TO_HEAVEN,
    HeavenlyInterface,
)

__all__ = [
    "ARG_PREFIX",
    "BOOTSTRAP_GLOBAL",
    "GET_FROM_HEAVEN",
    "LOG",
    "PRAY_TO_HEAVEN",
    "RETOBJ_PREFIX",
    "SEND_TO_HEAVEN",
    "CallBridge",
    "DirectRunner",
    "ExportedProcedure",
    "HeavenlyInterface",
    "MembraneSession",
    "ProcedureExporter",
    "SessionState",
    "TurnRunner",
    "check_identifier",
    "render_binding",
    "render_invocation",
    "render_link_block",
]
