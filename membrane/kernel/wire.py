"""Wire models: the only shapes ever serialised across the membrane.

The machine boundary passes strings only, so every value crossing it is a
JSON-encoded ``WireValue``.  This JSON shape is the one bit-exact contract
between any two implementations of the membrane::

    {"type": "primitive",      "value": <json scalar>}
    {"type": "object",         "path": [...], "keys": [...]}
    {"type": "function",       "path": [...], "keys": [...]}
    {"type": "object-literal", "value": "<json text>"}

Parsing dispatches on ``type`` explicitly: an unknown tag is always a hard
``UnknownWireTypeError`` and a known tag with bad fields is a
``MalformedWireError``.  Nothing is ever downgraded to a primitive.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from membrane.kernel.exceptions import (
    MalformedWireError,
    UnknownWireTypeError,
    WireDecodeError,
)
from membrane.kernel.store import validate_path

__all__ = [
    "FunctionWire",
    "ObjectLiteralWire",
    "ObjectWire",
    "PrimitiveWire",
    "WireType",
    "WireValue",
    "dumps_wire",
    "loads_json",
    "parse_wire",
    "parse_wire_list",
]


class WireType(StrEnum):
    """Wire ``type`` tags."""

    PRIMITIVE = "primitive"
    OBJECT = "object"
    FUNCTION = "function"
    OBJECT_LITERAL = "object-literal"


# ═══════════════════════════════════════════════════════════
# Models
# ═══════════════════════════════════════════════════════════


class PrimitiveWire(BaseModel):
    """A JSON scalar carried by value.  An absent ``value`` means undefined."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: Literal["primitive"] = "primitive"
    value: str | int | float | bool | None = None


class _ReferenceWire(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    path: list[str | int]
    keys: list[str] = Field(default_factory=list)

    @field_validator("path", mode="before")
    @classmethod
    def _check_path(cls, value: Any) -> list[str | int]:
        return list(validate_path(value))


class ObjectWire(_ReferenceWire):
    """A live host object reachable at ``path``."""

    type: Literal["object"] = "object"


class FunctionWire(_ReferenceWire):
    """A live host callable reachable at ``path``."""

    type: Literal["function"] = "function"


class ObjectLiteralWire(BaseModel):
    """A JSON-encoded literal that may embed heavenly-object sentinels."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: Literal["object-literal"] = "object-literal"
    value: str


WireValue = PrimitiveWire | ObjectWire | FunctionWire | ObjectLiteralWire

_MODELS: dict[str, type[BaseModel]] = {
    WireType.PRIMITIVE: PrimitiveWire,
    WireType.OBJECT: ObjectWire,
    WireType.FUNCTION: FunctionWire,
    WireType.OBJECT_LITERAL: ObjectLiteralWire,
}


# ═══════════════════════════════════════════════════════════
# Parsing / serialisation
# ═══════════════════════════════════════════════════════════


def parse_wire(data: Any) -> WireValue:
    """Validate decoded JSON *data* into a ``WireValue``.

    Raises
    ------
    UnknownWireTypeError
        If *data* has no recognised ``type`` tag.
    MalformedWireError
        If the tag is known but the remaining fields are invalid.
    PathError
        If a reference wire carries an invalid path.
    """
    if isinstance(data, (PrimitiveWire, ObjectWire, FunctionWire, ObjectLiteralWire)):
        return data
    tag = data.get("type") if isinstance(data, Mapping) else None
    model = _MODELS.get(tag) if isinstance(tag, str) else None
    if model is None:
        raise UnknownWireTypeError(tag)
    try:
        return model.model_validate(data)  # type: ignore[return-value]
    except ValidationError as exc:
        detail = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        )
        raise MalformedWireError(tag, detail) from exc


def parse_wire_list(data: Any) -> list[WireValue]:
    """Validate a JSON array of wire values (call arguments)."""
    if not isinstance(data, list):
        raise MalformedWireError("arguments", f"expected an array, got {type(data).__name__}")
    return [parse_wire(item) for item in data]


def loads_json(text: Any, what: str) -> Any:
    """``json.loads`` that reports failures as ``WireDecodeError``."""
    if not isinstance(text, (str, bytes, bytearray)):
        raise WireDecodeError(what, repr(text), f"expected text, got {type(text).__name__}")
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raw = text if isinstance(text, str) else text.decode("utf-8", "replace")
        raise WireDecodeError(what, raw, exc.msg) from exc


def dumps_wire(wire: WireValue) -> str:
    """Serialise *wire* to JSON text (non-finite floats become ``null``)."""
    return wire.model_dump_json()
