"""Interface enumeration: which member names the machine may probe.

The machine-side proxy can only intercept names it was told about up
front, so every object/function crossing the membrane carries a ``keys``
listing.  ``enumerate_interface`` is the default strategy; a codec can be
given any other ``InterfaceEnumerator`` (for example one that filters to an
allowlist) without changing the codec itself.

Security caveat: the default listing is permissive.  It
confines *which objects* are reachable (only through minted paths), not
*which members* of a reachable object are visible.
"""

from __future__ import annotations

import array
from collections.abc import Callable, Mapping, Sequence
from typing import Any

__all__ = ["InterfaceEnumerator", "enumerate_interface", "restricted_enumerator"]

#: Strategy signature: value -> ordered member names.
InterfaceEnumerator = Callable[[Any], list[str]]

_TYPED_ARRAYS = (array.array, memoryview, bytes, bytearray)


def _own_keys(value: Any) -> list[str]:
    if isinstance(value, Mapping):
        return [str(key) for key in value]
    if isinstance(value, (Sequence, *_TYPED_ARRAYS)) and not isinstance(value, str):
        return [str(i) for i in range(len(value))] + ["length"]
    keys: list[str] = []
    instance_dict = getattr(value, "__dict__", None)
    if isinstance(instance_dict, Mapping):
        keys.extend(str(key) for key in instance_dict)
    for cls in type(value).__mro__:
        slots = cls.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for slot in slots:
            if isinstance(slot, str) and hasattr(value, slot):
                keys.append(slot)
    return keys


def _inherited_keys(value: Any) -> list[str]:
    # Built-in classes play the part of Object.prototype: the walk stops there.
    keys: list[str] = []
    for cls in type(value).__mro__:
        if cls.__module__ == "builtins":
            continue
        keys.extend(name for name in cls.__dict__ if not name.startswith("_"))
    return keys


def enumerate_interface(value: Any) -> list[str]:
    """Return own keys followed by inherited public names, de-duplicated.

    * mappings: their keys
    * sequences and typed arrays: indices plus ``"length"``
    * other objects: instance attributes and slots
    * then public names from every non-builtin class in the MRO
    """
    keys = _own_keys(value) + _inherited_keys(value)
    return list(dict.fromkeys(keys))


def restricted_enumerator(allowed: set[str] | frozenset[str]) -> InterfaceEnumerator:
    """Return an enumerator that only reports names in *allowed*."""

    def _enumerate(value: Any) -> list[str]:
        return [key for key in enumerate_interface(value) if key in allowed]

    return _enumerate
