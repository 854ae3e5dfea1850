"""Membrane error taxonomy.

Every error raised by the membrane derives from ``MembraneError`` so a host
can catch the whole family at one boundary.  Errors are local to a single
request/response turn; nothing here is retried.

Hierarchy
---------
::

    MembraneError
    ├── PathError                 path does not resolve / cannot be written
    ├── NotCallableError          call() target is not callable
    ├── WireError
    │   ├── UnknownWireTypeError  unrecognised ``type`` tag
    │   ├── MalformedWireError    known tag, invalid fields
    │   └── WireDecodeError       text is not JSON
    ├── IdentifierError           not a valid machine identifier
    └── SessionStateError
        ├── ReentrancyError       machine turn requested while one is running
        └── SessionClosedError    session already closed

Exceptions raised by host functions invoked through the bridge are *not*
part of this taxonomy; they propagate unchanged.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

__all__ = [
    "IdentifierError",
    "MalformedWireError",
    "MembraneError",
    "NotCallableError",
    "PathError",
    "ReentrancyError",
    "SessionClosedError",
    "SessionStateError",
    "UnknownWireTypeError",
    "WireDecodeError",
    "WireError",
]


class MembraneError(Exception):
    """Base exception for every membrane failure."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PathError(MembraneError, LookupError):
    """Raised when a path segment does not resolve or cannot be assigned."""

    def __init__(
        self,
        message: str,
        path: Sequence[Any] | None = None,
        segment: Any = None,
    ) -> None:
        """Initialize path error.

        Args:
            message: Error description
            path: Full path being resolved, when known
            segment: Offending segment, when known
        """
        super().__init__(message)
        self.path = list(path) if path is not None else None
        self.segment = segment


class NotCallableError(MembraneError, TypeError):
    """Raised when ``call()`` targets a value that is not callable."""

    def __init__(self, path: Sequence[Any], value: Any) -> None:
        super().__init__(
            f"Value at {list(path)!r} is not callable "
            f"(got {type(value).__name__})"
        )
        self.path = list(path)
        self.value_type = type(value).__name__


class WireError(MembraneError):
    """Base exception for wire-format failures."""


class UnknownWireTypeError(WireError):
    """Raised when a wire value carries an unrecognised ``type`` tag."""

    def __init__(self, wire_type: Any) -> None:
        super().__init__(f"Unknown wire type: {wire_type!r}")
        self.wire_type = wire_type


class MalformedWireError(WireError):
    """Raised when a wire value has a known tag but invalid fields."""

    def __init__(self, wire_type: str, detail: str) -> None:
        super().__init__(f"Malformed {wire_type!r} wire value: {detail}")
        self.wire_type = wire_type
        self.detail = detail


class WireDecodeError(WireError):
    """Raised when text crossing the surface is not valid JSON."""

    def __init__(self, what: str, text: str, reason: str) -> None:
        preview = text if len(text) <= 80 else text[:77] + "..."
        super().__init__(f"Invalid JSON for {what}: {reason} (got {preview!r})")
        self.what = what
        self.reason = reason


class IdentifierError(MembraneError, ValueError):
    """Raised when a linked or exported name is not a machine identifier."""

    def __init__(self, name: Any, role: str) -> None:
        super().__init__(f"Invalid {role} name: {name!r}")
        self.name = name
        self.role = role


class SessionStateError(MembraneError):
    """Raised when an operation is not allowed in the current session state."""


class ReentrancyError(SessionStateError):
    """Raised when a machine turn is requested while another is running."""

    def __init__(self, procedure: str | None = None) -> None:
        what = f"procedure {procedure!r}" if procedure else "a machine turn"
        super().__init__(
            f"Cannot start {what}: the machine is already running a turn"
        )
        self.procedure = procedure


class SessionClosedError(SessionStateError):
    """Raised when a closed session is asked to do anything."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"Session is closed; cannot {operation}")
        self.operation = operation
