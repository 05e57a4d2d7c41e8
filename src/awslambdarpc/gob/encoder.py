"""Gob stream encoder."""

from collections.abc import Mapping
from typing import Any

from .types import (
    BOOL_ID,
    BYTES_ID,
    COMPLEX_ID,
    FIRST_USER_ID,
    FLOAT_ID,
    INT_ID,
    STRING_ID,
    UINT_ID,
    WIRE_TYPE,
    ArrayType,
    BasicType,
    GoType,
    MapType,
    SliceType,
    StructType,
    components,
    describe,
)
from .wire import (
    GobError,
    encode_bool,
    encode_bytes,
    encode_float,
    encode_int,
    encode_string,
    encode_uint,
    frame,
)


class Encoder:
    """Encodes values onto one gob stream.

    Type ids are numbered per stream, and each type definition is sent once,
    just before the first value that needs it. Use one encoder per connection.
    """

    def __init__(self) -> None:
        self._ids: dict[GoType, int] = {}
        self._sent: set[int] = set()
        self._next_id = FIRST_USER_ID

    def type_id(self, t: GoType) -> int:
        """Return the stream id of a type, numbering it on first use."""
        if t.id is not None:
            return t.id
        if t not in self._ids:
            self._ids[t] = self._next_id
            self._next_id += 1
        return self._ids[t]

    def encode(self, t: GoType, value: Any) -> bytes:
        """Encode one value as the next item on the stream.

        Args:
            t: Go type declaration of the value
            value: Mapping for structs, list for slices and arrays, dict for
                maps, or a plain Python value for basic types

        Returns:
            Framed type definitions (if any) followed by the framed value

        Raises:
            GobError: If the value does not fit the declaration
        """
        out = bytearray()
        self._send_type(t, out)
        body = bytearray(encode_int(self.type_id(t)))
        if isinstance(t, StructType):
            self._encode_struct(t, value, body)
        else:
            # Non-struct values travel as the single field of an implicit struct.
            body += encode_uint(0)
            self._encode_value(t, value, body)
        out += frame(bytes(body))
        return bytes(out)

    def _send_type(self, t: GoType, out: bytearray) -> None:
        if t.id is not None:
            return
        type_id = self.type_id(t)
        if type_id in self._sent:
            return
        wire = describe(t, self.type_id)
        body = bytearray(encode_int(-type_id))
        self._encode_struct(WIRE_TYPE, wire.to_value(), body)
        out += frame(bytes(body))
        self._sent.add(type_id)
        for inner in components(t):
            self._send_type(inner, out)

    def _encode_struct(self, t: StructType, value: Any, out: bytearray) -> None:
        if not isinstance(value, Mapping):
            raise GobError(f"cannot encode {type(value).__name__} as struct {t.name}")
        last = -1
        for index, f in enumerate(t.fields):
            field_value = value.get(f.name)
            if _is_zero(f.type, field_value):
                continue
            out += encode_uint(index - last)
            last = index
            self._encode_value(f.type, field_value, out)
        out += b"\x00"

    def _encode_value(self, t: GoType, value: Any, out: bytearray) -> None:
        if isinstance(t, BasicType):
            out += _encode_basic(t, value)
        elif isinstance(t, StructType):
            self._encode_struct(t, value, out)
        elif isinstance(t, (SliceType, ArrayType)):
            if isinstance(value, (str, bytes, Mapping)) or not hasattr(value, "__len__"):
                raise GobError(f"cannot encode {type(value).__name__} as {t.name}")
            if isinstance(t, ArrayType) and len(value) != t.length:
                raise GobError(f"array {t.name} needs {t.length} elements, got {len(value)}")
            out += encode_uint(len(value))
            for elem in value:
                if elem is None:
                    raise GobError(f"nil element in {t.name}")
                self._encode_value(t.elem, elem, out)
        elif isinstance(t, MapType):
            if not isinstance(value, Mapping):
                raise GobError(f"cannot encode {type(value).__name__} as {t.name}")
            out += encode_uint(len(value))
            for key, elem in value.items():
                self._encode_value(t.key, key, out)
                self._encode_value(t.elem, elem, out)
        else:
            raise GobError(f"unsupported type {t.name}")


def _encode_basic(t: BasicType, value: Any) -> bytes:
    if t.id == BOOL_ID and isinstance(value, bool):
        return encode_bool(value)
    if t.id in (INT_ID, UINT_ID) and isinstance(value, int) and not isinstance(value, bool):
        return encode_int(value) if t.id == INT_ID else encode_uint(value)
    if t.id == FLOAT_ID and isinstance(value, (int, float)) and not isinstance(value, bool):
        return encode_float(float(value))
    if t.id == COMPLEX_ID and isinstance(value, (int, float, complex)):
        c = complex(value)
        return encode_float(c.real) + encode_float(c.imag)
    if t.id == BYTES_ID and isinstance(value, (bytes, bytearray, memoryview)):
        return encode_bytes(bytes(value))
    if t.id == STRING_ID and isinstance(value, str):
        return encode_string(value)
    raise GobError(f"cannot encode {type(value).__name__} as {t.name}")


def _is_zero(t: GoType, value: Any) -> bool:
    # Zero-valued struct fields are left out of the stream. Nested structs and
    # maps are sent unless nil (None), even when empty.
    if value is None:
        return True
    if isinstance(t, BasicType) and t.id not in (BYTES_ID, STRING_ID):
        return bool(value == t.zero)
    if isinstance(t, (BasicType, SliceType)):
        return hasattr(value, "__len__") and len(value) == 0
    return False
