"""Gob stream decoder."""

from typing import Any

from .types import (
    BASIC_TYPES,
    BOOL_ID,
    BOOTSTRAP_WIRE_TYPES,
    BYTES_ID,
    COMPLEX_ID,
    FLOAT_ID,
    INT_ID,
    INTERFACE_ID,
    STRING_ID,
    UINT_ID,
    WIRE_TYPE,
    WIRE_TYPE_ID,
    ArrayType,
    BasicType,
    GoType,
    MapType,
    SliceType,
    StructType,
    WireType,
    zero_value,
)
from .wire import MAX_MESSAGE_SIZE, GobError, Incomplete, Reader, peek_uint


class Decoder:
    """Decodes values from one gob stream fed incrementally.

    Bytes are appended with :meth:`feed`; :meth:`decode` consumes type
    definitions as they arrive and returns the next value once its message is
    complete, raising :class:`Incomplete` until then.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._types: dict[int, WireType] = dict(BOOTSTRAP_WIRE_TYPES)

    def feed(self, data: bytes) -> None:
        self._buffer += data

    @property
    def buffered(self) -> int:
        """Number of received bytes not yet consumed."""
        return len(self._buffer)

    def decode(self, expected: GoType | None = None) -> Any:
        """Decode the next value on the stream.

        Args:
            expected: Declaration to decode into. Struct fields are matched by
                name; unknown fields are skipped and missing ones zero-filled.
                With None the value is decoded as sent.

        Returns:
            The decoded value (dicts for structs)

        Raises:
            Incomplete: If no complete value message is buffered yet
            GobError: If the stream is corrupt or does not match ``expected``
        """
        while True:
            message = self._next_message()
            if message is None:
                raise Incomplete()
            reader = Reader(message)
            type_id = reader.read_int()
            try:
                if type_id < 0:
                    self._define(-type_id, reader)
                    continue
                if expected is not None:
                    self._check_compatible(type_id, expected, set())
                return self._decode_top(type_id, reader, expected)
            except (TypeError, KeyError, RecursionError) as e:
                # Values that are well framed but do not fit their declared types.
                raise GobError(f"corrupted data: {e!r}") from e

    def _next_message(self) -> bytes | None:
        prefix = peek_uint(self._buffer)
        if prefix is None:
            return None
        length, size = prefix
        if length >= MAX_MESSAGE_SIZE:
            raise GobError(f"message too big: {length} bytes")
        if length == 0:
            raise GobError("empty message")
        if len(self._buffer) < size + length:
            return None
        message = bytes(self._buffer[size : size + length])
        del self._buffer[: size + length]
        return message

    def _define(self, type_id: int, reader: Reader) -> None:
        if type_id in self._types or type_id in BASIC_TYPES:
            raise GobError(f"duplicate type received: {type_id}")
        value = self._decode_struct(self._types[WIRE_TYPE_ID], reader, WIRE_TYPE)
        if reader.remaining:
            raise GobError("extra data in buffer after type definition")
        self._types[type_id] = WireType.from_value(type_id, value)

    def _lookup(self, type_id: int) -> WireType:
        wire = self._types.get(type_id)
        if wire is None:
            raise GobError(f"unknown type id {type_id}")
        return wire

    def _decode_top(self, type_id: int, reader: Reader, expected: GoType | None) -> Any:
        wire = self._types.get(type_id)
        if wire is not None and wire.kind == "struct":
            return self._decode_struct(wire, reader, expected)
        if reader.read_uint() != 0:
            raise GobError("corrupted data: non-zero delta for singleton")
        return self._decode_value(type_id, reader, expected)

    def _decode_struct(self, wire: WireType, reader: Reader, expected: GoType | None) -> Any:
        local = expected if isinstance(expected, StructType) else None
        result: dict[str, Any] = {}
        if local is not None:
            result = {f.name: zero_value(f.type) for f in local.fields}
        index = -1
        while True:
            delta = reader.read_uint()
            if delta == 0:
                return result
            index += delta
            if index >= len(wire.fields):
                raise GobError(f"field number {index} out of range for {wire.name}")
            name, field_id = wire.fields[index]
            if local is None:
                result[name] = self._decode_value(field_id, reader, None)
                continue
            local_field = local.field(name)
            value = self._decode_value(field_id, reader, local_field.type if local_field else None)
            if local_field is not None:
                result[name] = value

    def _decode_value(self, type_id: int, reader: Reader, expected: GoType | None) -> Any:
        if type_id == BOOL_ID:
            return reader.read_bool()
        if type_id == INT_ID:
            return reader.read_int()
        if type_id == UINT_ID:
            return reader.read_uint()
        if type_id == FLOAT_ID:
            return reader.read_float()
        if type_id == BYTES_ID:
            return reader.read_bytes()
        if type_id == STRING_ID:
            return reader.read_string()
        if type_id == COMPLEX_ID:
            return reader.read_complex()
        if type_id == INTERFACE_ID:
            raise GobError("interface values are not supported")

        wire = self._lookup(type_id)
        if wire.kind == "struct":
            return self._decode_struct(wire, reader, expected)
        if wire.kind in ("slice", "array"):
            count = reader.read_uint()
            if count > reader.remaining:
                raise GobError(f"{wire.name}: length {count} exceeds input size")
            if wire.kind == "array" and count != wire.length:
                raise GobError(f"{wire.name}: length mismatch {count} != {wire.length}")
            elem = expected.elem if isinstance(expected, (SliceType, ArrayType)) else None
            return [self._decode_value(wire.elem, reader, elem) for _ in range(count)]
        if wire.kind == "map":
            count = reader.read_uint()
            if count > reader.remaining:
                raise GobError(f"{wire.name}: length {count} exceeds input size")
            key = expected.key if isinstance(expected, MapType) else None
            elem = expected.elem if isinstance(expected, MapType) else None
            result = {}
            for _ in range(count):
                k = _hashable(self._decode_value(wire.key, reader, key))
                result[k] = self._decode_value(wire.elem, reader, elem)
            return result
        # GobEncoder, BinaryMarshaler and TextMarshaler values are opaque bytes.
        return reader.read_bytes()

    def _check_compatible(self, type_id: int, expected: GoType, seen: set[tuple[int, int]]) -> None:
        key = (type_id, id(expected))
        if key in seen:
            return
        seen.add(key)

        if isinstance(expected, BasicType):
            if type_id != expected.id:
                raise _mismatch(type_id, expected)
            return
        if type_id in BASIC_TYPES or type_id == INTERFACE_ID:
            raise _mismatch(type_id, expected)

        wire = self._lookup(type_id)
        if isinstance(expected, StructType):
            if wire.kind != "struct":
                raise _mismatch(type_id, expected)
            matched = False
            for name, field_id in wire.fields:
                local = expected.field(name)
                if local is not None:
                    self._check_compatible(field_id, local.type, seen)
                    matched = True
            if not matched and wire.fields and expected.fields:
                raise GobError(
                    f"type mismatch: no fields matched compiling decoder for {expected.name}"
                )
        elif isinstance(expected, SliceType):
            if wire.kind != "slice":
                raise _mismatch(type_id, expected)
            self._check_compatible(wire.elem, expected.elem, seen)
        elif isinstance(expected, ArrayType):
            if wire.kind != "array" or wire.length != expected.length:
                raise _mismatch(type_id, expected)
            self._check_compatible(wire.elem, expected.elem, seen)
        elif isinstance(expected, MapType):
            if wire.kind != "map":
                raise _mismatch(type_id, expected)
            self._check_compatible(wire.key, expected.key, seen)
            self._check_compatible(wire.elem, expected.elem, seen)


def _mismatch(type_id: int, expected: GoType) -> GobError:
    return GobError(f"type mismatch: wire type id {type_id} is not compatible with {expected.name}")


def _hashable(key: Any) -> Any:
    # Go allows struct and array map keys; they decode to dicts and lists.
    if isinstance(key, dict):
        return tuple(sorted((name, _hashable(v)) for name, v in key.items()))
    if isinstance(key, list):
        return tuple(_hashable(v) for v in key)
    return key
