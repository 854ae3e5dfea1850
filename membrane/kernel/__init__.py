"""Membrane kernel: path store, wire format and codec.

Public API:
    - PathStore              - host-owned root graph, path resolution and writes
    - Resolution             - ``(value, receiver)`` result of a path walk
    - BoundFunction          - transparent receiver binding for fetched callables
    - SyntheticKeyCounter    - session-scoped key minting
    - validate_path          - path shape check
    - unwrap_bound           - original callable behind a BoundFunction
    - enumerate_interface    - default interface enumeration strategy
    - restricted_enumerator  - allowlist-filtered enumeration strategy
    - WireCodec              - host value <-> WireValue
    - ObjectLiteralRehydrator - sentinel substitution in decoded literals
    - PrimitiveWire / ObjectWire / FunctionWire / ObjectLiteralWire - wire models
    - parse_wire / parse_wire_list / dumps_wire / loads_json - wire text helpers
    - MembraneError and subclasses - error taxonomy
"""

from __future__ import annotations

from membrane.kernel.codec import ARGFUN_PREFIX, ARGOBJ_PREFIX, WireCodec, is_primitive
from membrane.kernel.exceptions import (
    IdentifierError,
    MalformedWireError,
    MembraneError,
    NotCallableError,
    PathError,
    ReentrancyError,
    SessionClosedError,
    SessionStateError,
    UnknownWireTypeError,
    WireDecodeError,
    WireError,
)
from membrane.kernel.interface import (
    InterfaceEnumerator,
    enumerate_interface,
    restricted_enumerator,
)
from membrane.kernel.rehydrate import ObjectLiteralRehydrator, is_sentinel, make_sentinel
from membrane.kernel.store import (
    GLOBAL_PREFIX,
    BoundFunction,
    Path,
    PathStore,
    Resolution,
    SyntheticKeyCounter,
    unwrap_bound,
    validate_path,
)
from membrane.kernel.wire import (
    FunctionWire,
    ObjectLiteralWire,
    ObjectWire,
    PrimitiveWire,
    WireType,
    WireValue,
    dumps_wire,
    loads_json,
    parse_wire,
    parse_wire_list,
)

__all__ = [
    "ARGFUN_PREFIX",
    "ARGOBJ_PREFIX",
    "GLOBAL_PREFIX",
    "BoundFunction",
    "FunctionWire",
    "IdentifierError",
    "InterfaceEnumerator",
    "MalformedWireError",
    "MembraneError",
    "NotCallableError",
    "ObjectLiteralRehydrator",
    "ObjectLiteralWire",
    "ObjectWire",
    "Path",
    "PathError",
    "PathStore",
    "PrimitiveWire",
    "ReentrancyError",
    "Resolution",
    "SessionClosedError",
    "SessionStateError",
    "SyntheticKeyCounter",
    "UnknownWireTypeError",
    "WireCodec",
    "WireDecodeError",
    "WireError",
    "WireType",
    "WireValue",
    "dumps_wire",
    "enumerate_interface",
    "is_primitive",
    "is_sentinel",
    "loads_json",
    "make_sentinel",
    "parse_wire",
    "parse_wire_list",
    "restricted_enumerator",
    "unwrap_bound",
    "validate_path",
]
