"""Machine side of the membrane: the interpreter protocol and the prelude."""

from __future__ import annotations

from membrane.machine.prelude import (
    LINK_FUNCTION,
    LINK_OBJECT,
    MACHINE_PRELUDE,
    PRELUDE_FUNCTIONS,
)
from membrane.machine.protocol import Machine, NativeFunction

__all__ = [
    "LINK_FUNCTION",
    "LINK_OBJECT",
    "MACHINE_PRELUDE",
    "PRELUDE_FUNCTIONS",
    "Machine",
    "NativeFunction",
]
