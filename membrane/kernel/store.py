"""PathStore: the host-owned, path-addressed data store.

All machine access to host objects goes through string/integer paths
resolved against one root ``dict``.  The machine never receives a live
reference; it receives a path plus an interface listing (see
``membrane.kernel.codec``).

Resolution rules
----------------
* Mappings are indexed by key.  A missing decimal-string key is retried as
  ``int`` because machine property names always arrive as strings.
* Sequences answer ``"length"`` and integer / decimal-string indices.
* Everything else is an attribute lookup.  Mappings and sequences fall
  back to attributes too, for names their interface listing advertises
  (members of subclasses, namedtuple fields).
* A missing *final* segment resolves to ``None``; a missing intermediate
  segment raises ``PathError``.

Callables come back wrapped in ``BoundFunction`` so the receiver they were
found on travels with them, while ``__wrapped__`` keeps the original
callable reachable for the call bridge to unwrap.

Lifetime: entries are never removed.  Minted keys stay resolvable until the
session ends; there is no reclamation.
"""

from __future__ import annotations

import array
import functools
import inspect
import logging
import threading
from collections.abc import Mapping, MutableMapping, MutableSequence, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from membrane.kernel.exceptions import PathError

__all__ = [
    "GLOBAL_PREFIX",
    "BoundFunction",
    "Path",
    "PathStore",
    "Resolution",
    "SyntheticKeyCounter",
    "unwrap_bound",
    "validate_path",
]

log = logging.getLogger(__name__)

#: A validated path: non-empty tuple of str / int segments.
Path = tuple[str | int, ...]

GLOBAL_PREFIX = "_global_"

_MISSING = object()
_TYPED_ARRAYS = (array.array, memoryview)


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


def validate_path(path: Any) -> Path:
    """Return *path* as a tuple, or raise ``PathError`` if it is not a path.

    A path is a non-empty list or tuple whose segments are ``str`` or
    ``int`` (``bool`` is rejected even though it subclasses ``int``).
    """
    if not isinstance(path, (list, tuple)) or not path:
        raise PathError(f"Path must be a non-empty array, got {path!r}")
    for segment in path:
        if isinstance(segment, bool) or not isinstance(segment, (str, int)):
            raise PathError(
                f"Path segments must be strings or integers, got {segment!r}",
                path,
                segment,
            )
    return tuple(path)


def _as_index(segment: str | int) -> int | None:
    if isinstance(segment, int):
        return segment if segment >= 0 else None
    if segment.isdecimal():
        return int(segment)
    return None


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (Sequence, *_TYPED_ARRAYS))


def _member(container: Any, segment: str | int) -> Any:
    # Only names the interface listing advertises: instance attributes and
    # members of non-builtin classes. Plain dict and list methods stay hidden.
    if not isinstance(segment, str):
        return _MISSING
    instance_dict = getattr(container, "__dict__", None)
    if isinstance(instance_dict, Mapping) and segment in instance_dict:
        return getattr(container, segment, _MISSING)
    for cls in type(container).__mro__:
        if cls.__module__ != "builtins" and segment in cls.__dict__:
            return getattr(container, segment, _MISSING)
    return _MISSING


def _lookup(container: Any, segment: str | int) -> Any:
    if isinstance(container, Mapping):
        if segment in container:
            return container[segment]
        index = _as_index(segment)
        if index is not None and index in container:
            return container[index]
        return _member(container, segment)
    if _is_sequence(container):
        if segment == "length":
            return len(container)
        index = _as_index(segment)
        if index is not None:
            return container[index] if index < len(container) else _MISSING
        return _member(container, segment)
    if isinstance(segment, str):
        return getattr(container, segment, _MISSING)
    return _MISSING


# ---------------------------------------------------------------------------
# Bound functions
# ---------------------------------------------------------------------------


class BoundFunction:
    """A callable fetched through the store, bound to its receiver.

    Python bound methods are split into their plain function and
    ``__self__`` so that ``__wrapped__`` is the *unbound* function: handing
    it back through an argument position lets the callee supply its own
    receiver.  Other callables (functions kept in a dict, builtins,
    classes) keep their own calling convention; the receiver is recorded
    but not passed.

    Attribute access falls through to the wrapped callable so a fetched
    function still exposes its own properties.
    """

    def __init__(self, function: Any, receiver: Any, *, pass_receiver: bool) -> None:
        functools.update_wrapper(self, function, updated=())
        self.receiver = receiver
        self.pass_receiver = pass_receiver

    @classmethod
    def bind(cls, value: Any, receiver: Any) -> BoundFunction:
        """Wrap *value* as found on *receiver*; never wraps twice."""
        if isinstance(value, BoundFunction):
            return value
        if inspect.ismethod(value):
            return cls(value.__func__, value.__self__, pass_receiver=True)
        return cls(value, receiver, pass_receiver=False)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        if self.pass_receiver:
            return self.__wrapped__(self.receiver, *args, **kwargs)
        return self.__wrapped__(*args, **kwargs)

    def __getattr__(self, name: str) -> Any:
        if name == "__wrapped__":
            raise AttributeError(name)
        return getattr(self.__wrapped__, name)

    def __repr__(self) -> str:
        return (
            f"BoundFunction({self.__wrapped__!r}, "
            f"receiver={type(self.receiver).__name__}, "
            f"pass_receiver={self.pass_receiver})"
        )


def unwrap_bound(value: Any) -> Any:
    """Return the original callable behind a ``BoundFunction``, else *value*."""
    if isinstance(value, BoundFunction):
        return value.__wrapped__
    return value


# ---------------------------------------------------------------------------
# Synthetic keys
# ---------------------------------------------------------------------------


class SyntheticKeyCounter:
    """Session-scoped, monotonically increasing key source.

    One counter serves every prefix (``_retobj``, ``_argobj``, ``_argfun``,
    ``_arg``), so no two minted keys collide even across prefixes.
    Minting is lock-guarded; the counter never goes backwards.
    """

    __slots__ = ("_lock", "_next")

    def __init__(self, start: int = 0) -> None:
        self._lock = threading.Lock()
        self._next = start

    @property
    def value(self) -> int:
        """Number the next minted key will carry."""
        return self._next

    def next_key(self, prefix: str) -> str:
        """Return ``f"{prefix}{n}"`` and advance the counter."""
        with self._lock:
            n = self._next
            self._next += 1
        return f"{prefix}{n}"


# ---------------------------------------------------------------------------
# PathStore
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Resolution:
    """Result of ``PathStore.resolve_raw``.

    Attributes:
        value: Resolved value (callables wrapped in ``BoundFunction``)
        receiver: Immediate parent of the final segment
    """

    value: Any
    receiver: Any


class PathStore:
    """Owns the root object graph of one membrane session.

    Parameters
    ----------
    root:
        Optional initial root mapping.  The store keeps its own ``dict``;
        the argument is copied shallowly.
    counter:
        Synthetic key source.  A fresh counter is created when omitted.
    """

    __slots__ = ("_counter", "_data")

    def __init__(
        self,
        root: Mapping[str, Any] | None = None,
        *,
        counter: SyntheticKeyCounter | None = None,
    ) -> None:
        self._data: dict[str | int, Any] = dict(root or {})
        self._counter = counter if counter is not None else SyntheticKeyCounter()

    @property
    def root(self) -> Mapping[str | int, Any]:
        """Read-only view of the root mapping."""
        return MappingProxyType(self._data)

    @property
    def counter(self) -> SyntheticKeyCounter:
        return self._counter

    # -- reads -------------------------------------------------------------

    def resolve_raw(self, path: Any) -> Resolution:
        """Walk *path* and return the value with its receiver.

        Raises
        ------
        PathError
            If *path* is not a valid path, an intermediate segment is
            missing, or the walk descends through ``None``.
        """
        segments = validate_path(path)
        receiver: Any = None
        current: Any = self._data
        last = len(segments) - 1
        for depth, segment in enumerate(segments):
            if current is None:
                raise PathError(
                    f"Cannot read {segment!r} of undefined at {list(segments[:depth])!r}",
                    segments,
                    segment,
                )
            value = _lookup(current, segment)
            if value is _MISSING:
                if depth != last:
                    raise PathError(
                        f"Path segment {segment!r} does not resolve in {list(segments)!r}",
                        segments,
                        segment,
                    )
                value = None
            receiver, current = current, value
        if callable(current):
            current = BoundFunction.bind(current, receiver)
        return Resolution(current, receiver)

    def _parent_of(self, segments: Path) -> Any:
        current: Any = self._data
        for segment in segments[:-1]:
            value = _lookup(current, segment) if current is not None else _MISSING
            if value is _MISSING or value is None:
                raise PathError(
                    f"Parent of {list(segments)!r} does not exist "
                    f"(missing segment {segment!r})",
                    segments,
                    segment,
                )
            current = value
        return current

    # -- writes ------------------------------------------------------------

    def write_raw(self, path: Any, value: Any) -> None:
        """Assign *value* at *path*; the parent of the final segment must exist.

        Raises
        ------
        PathError
            If the parent is missing or cannot be assigned to.
        """
        segments = validate_path(path)
        parent = self._parent_of(segments)
        key = segments[-1]

        if isinstance(parent, MutableMapping):
            index = _as_index(key)
            if key not in parent and index is not None and index in parent:
                key = index
            parent[key] = value
            return
        index = _as_index(key)
        if isinstance(parent, MutableSequence) and index is not None:
            if index > len(parent):
                raise PathError(
                    f"Cannot assign index {key!r} on a sequence of length {len(parent)}",
                    segments,
                    key,
                )
            if index == len(parent):
                parent.append(value)
            else:
                parent[index] = value
            return
        if (isinstance(parent, Mapping) or _is_sequence(parent)) and (
            index is not None or not hasattr(parent, "__dict__")
        ):
            raise PathError(
                f"Cannot assign {key!r} on {type(parent).__name__}",
                segments,
                key,
            )
        if not isinstance(key, str):
            raise PathError(f"Cannot assign non-string attribute {key!r}", segments, key)
        try:
            setattr(parent, key, value)
        except (AttributeError, TypeError) as exc:
            raise PathError(
                f"Cannot assign {key!r} on {type(parent).__name__}: {exc}",
                segments,
                key,
            ) from exc

    def mint(self, prefix: str, value: Any) -> str:
        """Register *value* under a fresh root key ``prefix<N>`` and return the key."""
        key = self._counter.next_key(prefix)
        self.write_raw([key], value)
        log.debug("Minted %s for %s", key, type(value).__name__)
        return key

    def link(self, name: str, value: Any) -> str:
        """Register *value* under ``_global_<name>`` and return the key."""
        key = f"{GLOBAL_PREFIX}{name}"
        self.write_raw([key], value)
        return key

    # -- dunder helpers ----------------------------------------------------

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"PathStore(keys={len(self._data)}, next={self._counter.value})"
