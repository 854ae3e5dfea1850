"""Tests for membrane.kernel.store: PathStore, BoundFunction, key minting.

Covers:
    validate_path      - shape checks, bool segments rejected
    resolve_raw        - mappings, sequences, attributes, missing segments
    container members  - subclass methods and namedtuple fields
    write_raw          - mappings, lists (assign / append), attributes, refusals
    mint / link        - synthetic and global keys, shared counter
    BoundFunction      - receiver binding, unwrapping, attribute fall-through
    Property-based     - minted paths keep resolving to the same value
"""

from __future__ import annotations

import array
import threading
from collections import namedtuple

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from membrane.kernel.exceptions import PathError
from membrane.kernel.store import (
    BoundFunction,
    PathStore,
    SyntheticKeyCounter,
    unwrap_bound,
    validate_path,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class Greeter:
    def __init__(self, name: str) -> None:
        self.name = name

    def greet(self) -> str:
        return f"hello from {self.name}"


class Frozen:
    __slots__ = ("x",)

    def __init__(self) -> None:
        self.x = 1


class Mesh(list):
    def vertex_count(self) -> int:
        return len(self)


class Registry(dict):
    def lookup(self, name: str) -> object:
        return self.get(name)


Point = namedtuple("Point", ["x", "y"])


# ---------------------------------------------------------------------------
# validate_path
# ---------------------------------------------------------------------------


class TestValidatePath:
    def test_list_becomes_tuple(self) -> None:
        """A list of str/int segments is returned as a tuple."""
        assert validate_path(["a", 0, "b"]) == ("a", 0, "b")

    @pytest.mark.parametrize("bad", [[], (), "a.b", None, {"a": 1}, 3])
    def test_rejects_non_paths(self, bad: object) -> None:
        """Empty or non-array paths raise PathError."""
        with pytest.raises(PathError):
            validate_path(bad)

    @pytest.mark.parametrize("segment", [True, 1.5, None, ["x"]])
    def test_rejects_bad_segments(self, segment: object) -> None:
        """Segments must be str or int; bool is not accepted."""
        with pytest.raises(PathError) as info:
            validate_path(["a", segment])
        assert info.value.segment == segment


# ---------------------------------------------------------------------------
# resolve_raw
# ---------------------------------------------------------------------------


class TestResolve:
    def test_mapping_lookup(self) -> None:
        """Nested dict keys resolve to their value and parent."""
        inner = {"b": 42}
        store = PathStore({"a": inner})
        res = store.resolve_raw(["a", "b"])
        assert res.value == 42
        assert res.receiver is inner

    def test_decimal_string_falls_back_to_int_key(self) -> None:
        """Machine property names arrive as strings; int keys still match."""
        store = PathStore({"table": {7: "seven"}})
        assert store.resolve_raw(["table", "7"]).value == "seven"

    def test_sequence_index_and_length(self) -> None:
        """Lists answer integer/decimal indices and 'length'."""
        store = PathStore({"xs": [10, 20, 30]})
        assert store.resolve_raw(["xs", 1]).value == 20
        assert store.resolve_raw(["xs", "2"]).value == 30
        assert store.resolve_raw(["xs", "length"]).value == 3

    def test_typed_array_length(self) -> None:
        """array.array behaves like a sequence."""
        store = PathStore({"buf": array.array("i", [1, 2])})
        assert store.resolve_raw(["buf", "length"]).value == 2
        assert store.resolve_raw(["buf", 1]).value == 2

    def test_attribute_lookup(self) -> None:
        """Plain objects are read through attributes."""
        store = PathStore({"g": Greeter("ada")})
        assert store.resolve_raw(["g", "name"]).value == "ada"

    def test_missing_final_segment_is_none(self) -> None:
        """A missing last segment behaves like an undefined property."""
        store = PathStore({"a": {}})
        res = store.resolve_raw(["a", "nope"])
        assert res.value is None

    def test_missing_root_key_is_none(self) -> None:
        """Single-segment misses resolve to None as well."""
        assert PathStore().resolve_raw(["ghost"]).value is None

    def test_out_of_range_index_is_none(self) -> None:
        """Indexing past the end is a miss, not an error."""
        store = PathStore({"xs": [1]})
        assert store.resolve_raw(["xs", 5]).value is None

    def test_missing_intermediate_raises(self) -> None:
        """A missing intermediate segment raises PathError with context."""
        store = PathStore({"a": {}})
        with pytest.raises(PathError) as info:
            store.resolve_raw(["a", "b", "c"])
        assert info.value.path == ["a", "b", "c"]
        assert info.value.segment == "b"

    def test_descending_through_none_raises(self) -> None:
        """Reading a property of None raises PathError."""
        store = PathStore({"a": None})
        with pytest.raises(PathError):
            store.resolve_raw(["a", "b"])

    def test_callable_comes_back_bound(self) -> None:
        """Callables are wrapped with the receiver they were found on."""
        g = Greeter("ada")
        store = PathStore({"g": g})
        fn = store.resolve_raw(["g", "greet"]).value
        assert isinstance(fn, BoundFunction)
        assert fn.receiver is g
        assert fn() == "hello from ada"

    def test_root_view_is_read_only(self) -> None:
        """The root property cannot be mutated directly."""
        store = PathStore({"a": 1})
        with pytest.raises(TypeError):
            store.root["b"] = 2  # type: ignore[index]

    def test_root_argument_is_copied(self) -> None:
        """The initial mapping is copied shallowly."""
        initial = {"a": 1}
        store = PathStore(initial)
        store.write_raw(["b"], 2)
        assert "b" not in initial
        assert "b" in store


# -{75}
# Members of container subclasses
# -{75}


class TestContainerMembers:
    def test_list_subclass_method(self) -> None:
        """Methods of a list subclass resolve next to its indices."""
        mesh = Mesh([1, 2])
        store = PathStore({"mesh": mesh})
        resolved = store.resolve_raw(["mesh", "vertex_count"])
        assert callable(resolved.value)
        assert resolved.receiver is mesh
        assert resolved.value() == 2
        assert store.resolve_raw(["mesh", "1"]).value == 2

    def test_dict_subclass_method(self) -> None:
        registry = Registry(a=1)
        store = PathStore({"reg": registry})
        assert store.resolve_raw(["reg", "lookup"]).value("a") == 1

    def test_keys_win_over_members(self) -> None:
        """An entry named like a method shadows the method."""
        store = PathStore({"reg": Registry(lookup="entry")})
        assert store.resolve_raw(["reg", "lookup"]).value == "entry"

    def test_namedtuple_field(self) -> None:
        store = PathStore({"p": Point(3, 4)})
        assert store.resolve_raw(["p", "x"]).value == 3
        assert store.resolve_raw(["p", "y"]).value == 4
        assert store.resolve_raw(["p", "length"]).value == 2

    def test_builtin_container_methods_stay_hidden(self) -> None:
        """Plain dict and list methods are not reachable by name."""
        store = PathStore({"d": {"a": 1}, "xs": [1]})
        assert store.resolve_raw(["d", "items"]).value is None
        assert store.resolve_raw(["xs", "append"]).value is None

    def test_write_attribute_on_list_subclass(self) -> None:
        mesh = Mesh()
        store = PathStore({"mesh": mesh})
        store.write_raw(["mesh", "name"], "cube")
        assert mesh.name == "cube"
        assert store.resolve_raw(["mesh", "name"]).value == "cube"

    def test_write_named_key_on_plain_list_raises(self) -> None:
        store = PathStore({"xs": []})
        with pytest.raises(PathError):
            store.write_raw(["xs", "name"], "x")

    def test_write_namedtuple_field_raises(self) -> None:
        store = PathStore({"p": Point(1, 2)})
        with pytest.raises(PathError):
            store.write_raw(["p", "x"], 5)


# ---------------------------------------------------------------------------
# write_raw
# ---------------------------------------------------------------------------


class TestWrite:
    def test_write_into_mapping(self) -> None:
        """Writes into a nested dict are visible to later reads."""
        store = PathStore({"cfg": {}})
        store.write_raw(["cfg", "depth"], 3)
        assert store.resolve_raw(["cfg", "depth"]).value == 3

    def test_write_reuses_int_key(self) -> None:
        """A decimal-string key overwrites an existing int key."""
        table = {1: "one"}
        store = PathStore({"t": table})
        store.write_raw(["t", "1"], "uno")
        assert table == {1: "uno"}

    def test_write_list_index_and_append(self) -> None:
        """Lists accept assignment in range and append at the end."""
        xs = [0, 1]
        store = PathStore({"xs": xs})
        store.write_raw(["xs", "0"], "zero")
        store.write_raw(["xs", 2], "two")
        assert xs == ["zero", 1, "two"]

    def test_write_list_past_end_raises(self) -> None:
        """Leaving a hole in a list is refused."""
        store = PathStore({"xs": []})
        with pytest.raises(PathError):
            store.write_raw(["xs", 3], "x")

    def test_write_attribute(self) -> None:
        """Objects are written through setattr."""
        g = Greeter("ada")
        store = PathStore({"g": g})
        store.write_raw(["g", "name"], "grace")
        assert g.name == "grace"

    def test_write_into_tuple_raises(self) -> None:
        """Immutable sequences cannot be assigned into."""
        store = PathStore({"t": (1, 2)})
        with pytest.raises(PathError):
            store.write_raw(["t", 0], 5)

    def test_write_unknown_slot_raises(self) -> None:
        """setattr failures surface as PathError."""
        store = PathStore({"f": Frozen()})
        with pytest.raises(PathError):
            store.write_raw(["f", "y"], 2)

    def test_write_missing_parent_raises(self) -> None:
        """The parent of the final segment must exist."""
        store = PathStore()
        with pytest.raises(PathError):
            store.write_raw(["a", "b"], 1)

    def test_write_through_none_parent_raises(self) -> None:
        """A None parent is treated as missing."""
        store = PathStore({"a": None})
        with pytest.raises(PathError):
            store.write_raw(["a", "b"], 1)


# ---------------------------------------------------------------------------
# mint / link
# ---------------------------------------------------------------------------


class TestMint:
    def test_mint_uses_prefix_and_counter(self) -> None:
        """Minted keys are prefix + counter value, starting at zero."""
        store = PathStore()
        assert store.mint("_retobj", object()) == "_retobj0"
        assert store.mint("_retobj", object()) == "_retobj1"

    def test_prefixes_share_one_counter(self) -> None:
        """Different prefixes never reuse a number."""
        store = PathStore()
        keys = [store.mint(p, []) for p in ("_retobj", "_argobj", "_argfun", "_retobj")]
        assert keys == ["_retobj0", "_argobj1", "_argfun2", "_retobj3"]

    def test_link_uses_global_prefix(self) -> None:
        """Linked values live under _global_<name>."""
        store = PathStore()
        lib = {"x": 1}
        assert store.link("lib", lib) == "_global_lib"
        assert store.resolve_raw(["_global_lib", "x"]).value == 1

    def test_link_does_not_advance_counter(self) -> None:
        """Linking is name-based, not counter-based."""
        store = PathStore()
        store.link("lib", {})
        assert store.counter.value == 0

    def test_counter_is_thread_safe(self) -> None:
        """Concurrent minting never hands out the same key twice."""
        counter = SyntheticKeyCounter()
        seen: list[str] = []
        lock = threading.Lock()

        def worker() -> None:
            for _ in range(200):
                key = counter.next_key("_k")
                with lock:
                    seen.append(key)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(set(seen)) == 800
        assert counter.value == 800

    def test_repr_reports_size(self) -> None:
        store = PathStore({"a": 1})
        assert repr(store) == "PathStore(keys=1, next=0)"


_values = st.one_of(
    st.integers(),
    st.text(),
    st.lists(st.integers(), max_size=5),
    st.dictionaries(st.text(max_size=5), st.integers(), max_size=5),
)


class TestPathStability:
    @given(values=st.lists(_values, min_size=1, max_size=20))
    @settings(max_examples=60)
    def test_minted_paths_keep_resolving(self, values: list[object]) -> None:
        """Every minted path resolves to the identical value afterwards."""
        store = PathStore()
        keys = [store.mint("_retobj", value) for value in values]
        assert len(set(keys)) == len(keys)
        for key, value in zip(keys, values, strict=True):
            assert store.resolve_raw([key]).value is value


# ---------------------------------------------------------------------------
# BoundFunction
# ---------------------------------------------------------------------------


class TestBoundFunction:
    def test_method_is_split_into_function_and_self(self) -> None:
        """The wrapped callable of a bound method is the plain function."""
        g = Greeter("ada")
        bound = BoundFunction.bind(g.greet, None)
        assert bound.__wrapped__ is Greeter.greet
        assert bound.receiver is g
        assert bound.pass_receiver is True

    def test_plain_function_keeps_convention(self) -> None:
        """Functions kept in a dict are called without the receiver."""
        holder = {"add": lambda a, b: a + b}
        bound = BoundFunction.bind(holder["add"], holder)
        assert bound.receiver is holder
        assert bound(2, 3) == 5

    def test_never_double_wraps(self) -> None:
        bound = BoundFunction.bind(len, None)
        assert BoundFunction.bind(bound, {}) is bound

    def test_metadata_copied(self) -> None:
        """Name and doc come from the wrapped callable."""
        bound = BoundFunction.bind(Greeter("a").greet, None)
        assert bound.__name__ == "greet"

    def test_attribute_fall_through(self) -> None:
        """Function properties stay reachable through the wrapper."""

        def tagged() -> None:
            """Tagged."""

        tagged.tag = "t"  # type: ignore[attr-defined]
        bound = BoundFunction.bind(tagged, None)
        assert bound.tag == "t"

    def test_unwrap_bound(self) -> None:
        """unwrap_bound returns the original callable, else the value itself."""
        bound = BoundFunction.bind(Greeter("a").greet, None)
        assert unwrap_bound(bound) is Greeter.greet
        sentinel = object()
        assert unwrap_bound(sentinel) is sentinel
