"""ObjectLiteralRehydrator: put live host values back into decoded literals.

A literal built inside the machine can mix plain data with several linked
host objects.  JSON cannot carry live values, so each linked object is
serialised as a sentinel::

    {"__isHeavenlyObject": true, "__path": ["_retobj3"]}

``rehydrate`` rebuilds the decoded JSON depth-first and swaps every
sentinel for the value currently at its path.  Callables are unwrapped,
the same as a function passed directly.  Lists are rebuilt element by
element, dicts key by key (order preserved).  JSON has no cycles, so the
walk always terminates.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from membrane.kernel.exceptions import PathError
from membrane.kernel.store import unwrap_bound

if TYPE_CHECKING:
    from membrane.kernel.store import PathStore

__all__ = ["PATH_KEY", "SENTINEL_KEY", "ObjectLiteralRehydrator", "is_sentinel", "make_sentinel"]

SENTINEL_KEY = "__isHeavenlyObject"
PATH_KEY = "__path"


def is_sentinel(node: Any) -> bool:
    """True if *node* is a heavenly-object placeholder."""
    return isinstance(node, dict) and node.get(SENTINEL_KEY) is True


def make_sentinel(path: list[str | int]) -> dict[str, Any]:
    """Build the placeholder for the host value at *path*."""
    return {SENTINEL_KEY: True, PATH_KEY: list(path)}


class ObjectLiteralRehydrator:
    """Replaces sentinels in decoded JSON with live values from a store."""

    __slots__ = ("_store",)

    def __init__(self, store: PathStore) -> None:
        self._store = store

    def rehydrate(self, node: Any) -> Any:
        if is_sentinel(node):
            if PATH_KEY not in node:
                raise PathError(f"Heavenly-object placeholder without {PATH_KEY!r}: {node!r}")
            return unwrap_bound(self._store.resolve_raw(node[PATH_KEY]).value)
        if isinstance(node, dict):
            return {key: self.rehydrate(value) for key, value in node.items()}
        if isinstance(node, list):
            return [self.rehydrate(item) for item in node]
        return node
