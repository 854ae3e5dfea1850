"""Shared fixtures for the membrane test suite."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import pytest

from membrane.bridge.session import MembraneSession
from membrane.config import MembraneSettings
from membrane.kernel.codec import WireCodec
from membrane.kernel.store import PathStore


class RecordingMachine:
    """Machine double: records what the membrane does and plays the machine side.

    ``get`` / ``set`` / ``pray`` call the registered natives with JSON text
    exactly as machine code would.  Hooks in ``on_run`` execute during
    ``run()`` to simulate machine code calling back into the host.
    """

    def __init__(self) -> None:
        self.natives: dict[str, Callable[..., Any]] = {}
        self.globals: dict[str, Any] = {}
        self.sources: list[str] = []
        self.pending: list[str] = []
        self.runs = 0
        self.on_run: list[Callable[[RecordingMachine], None]] = []

    # -- Machine protocol --------------------------------------------------

    def register_native_function(self, name: str, fn: Callable[..., Any]) -> None:
        self.natives[name] = fn

    def define_global(self, name: str, value: Any) -> None:
        self.globals[name] = value

    def to_sandbox_value(self, value: Any) -> Any:
        return {"sandboxed": value}

    def append_source(self, text: str) -> None:
        self.sources.append(text)
        self.pending.append(text)

    def run(self) -> None:
        self.runs += 1
        self.pending.clear()
        for hook in list(self.on_run):
            hook(self)

    # -- machine-side helpers ----------------------------------------------

    def get(self, path: list[Any]) -> dict[str, Any]:
        return json.loads(self.natives["getFromHeaven"](json.dumps(path)))

    def set(self, path: list[Any], wire: dict[str, Any]) -> None:
        self.natives["sendToHeaven"](json.dumps(path), json.dumps(wire))

    def pray(self, path: list[Any], args: list[dict[str, Any]] | None = None) -> dict[str, Any]:
        return json.loads(self.natives["prayToHeaven"](json.dumps(path), json.dumps(args or [])))

    @property
    def last_source(self) -> str:
        return self.sources[-1]


@pytest.fixture()
def machine() -> RecordingMachine:
    return RecordingMachine()


@pytest.fixture()
def membrane_settings() -> MembraneSettings:
    return MembraneSettings(record_sources=True)


@pytest.fixture()
def session(machine: RecordingMachine, membrane_settings: MembraneSettings) -> MembraneSession:
    return MembraneSession(machine, settings=membrane_settings)


@pytest.fixture()
def store() -> PathStore:
    return PathStore()


@pytest.fixture()
def codec(store: PathStore) -> WireCodec:
    return WireCodec(store)
