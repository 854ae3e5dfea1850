"""Machine source rendering.

The host drives the machine by appending statements: each statement binds
one machine-side variable to either a JSON literal or a linked reference,
and a final statement invokes a machine function with those variables.
This module only renders text; it never touches the store or the machine.

Every name that ends up in generated source is checked against
``IDENTIFIER_RE`` first, so host-supplied names cannot inject statements.
Values are embedded as JSON, which is valid machine expression syntax.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Sequence

from membrane.kernel.exceptions import IdentifierError
from membrane.kernel.wire import FunctionWire, ObjectWire, WireValue
from membrane.machine.prelude import LINK_FUNCTION, LINK_OBJECT

__all__ = [
    "DISCARD_NAME",
    "IDENTIFIER_RE",
    "check_identifier",
    "render_binding",
    "render_invocation",
    "render_link_block",
]

IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

#: Variable the invocation result is assigned to (and then ignored).
DISCARD_NAME = "_retobj"


def check_identifier(name: object, role: str) -> str:
    """Return *name* if it is a plain machine identifier, else raise ``IdentifierError``."""
    if not isinstance(name, str) or not IDENTIFIER_RE.fullmatch(name):
        raise IdentifierError(name, role)
    return name


def _json(value: object) -> str:
    # ASCII-only output keeps U+2028/U+2029 out of string literals.
    return json.dumps(value, ensure_ascii=True)


def render_binding(local: str, wire: WireValue) -> str:
    """Render ``var <local> = <linked reference or literal>;``."""
    check_identifier(local, "local variable")
    match wire:
        case ObjectWire():
            expr = f"{LINK_OBJECT}({_json(wire.path)}, {_json(wire.keys)})"
        case FunctionWire():
            expr = f"{LINK_FUNCTION}({_json(wire.path)}, {_json(wire.keys)})"
        case _:
            expr = _json(wire.value)
    return f"var {local} = {expr};"


def render_invocation(procedure: str, locals_: Sequence[str]) -> str:
    """Render ``var _retobj = <procedure>(<locals>);``."""
    check_identifier(procedure, "procedure")
    for local in locals_:
        check_identifier(local, "local variable")
    return f"var {DISCARD_NAME} = {procedure}({', '.join(locals_)});"


def render_link_block(bindings: Iterable[tuple[str, WireValue]]) -> str:
    """Render one binding per line, newline-terminated."""
    return "".join(f"{render_binding(name, wire)}\n" for name, wire in bindings)
