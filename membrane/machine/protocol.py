"""Machine protocol: what the membrane needs from a sandboxed interpreter.

The interpreter itself is an external collaborator.  Any engine that can
satisfy this protocol can sit on the far side of the membrane: an embedded
JavaScript engine, a WASM-hosted one, or a test double.

Required capabilities
---------------------
* ``register_native_function`` - expose a host function by name in the
  machine's global scope.  The membrane only ever passes and returns
  strings (or nothing) through these functions.
* ``define_global`` / ``to_sandbox_value`` - create the bootstrap namespace
  object at startup.
* ``append_source`` - extend the program with more statements in the same
  persistent scope.
* ``run`` - execute pending statements to completion, synchronously.

The machine is expected to enforce its own time and memory limits; an
unterminated program blocks the membrane.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

__all__ = ["Machine", "NativeFunction"]

#: Host function callable from the machine.
NativeFunction = Callable[..., Any]


@runtime_checkable
class Machine(Protocol):
    """Protocol for a sandboxed interpreter hosting machine-side code."""

    def register_native_function(self, name: str, fn: NativeFunction) -> None:
        """Expose *fn* as global *name* inside the machine."""
        ...

    def define_global(self, name: str, value: Any) -> None:
        """Bind *value* (already converted by ``to_sandbox_value``) as global *name*."""
        ...

    def to_sandbox_value(self, value: Any) -> Any:
        """Convert a host value into the machine's own representation."""
        ...

    def append_source(self, text: str) -> None:
        """Append *text* to the program, in the same persistent scope."""
        ...

    def run(self) -> None:
        """Execute all pending statements to completion."""
        ...
