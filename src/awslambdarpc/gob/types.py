"""Go type declarations and the gob wire definitions derived from them.

Declarations (``BasicType``, ``StructType``, ``SliceType``, ``ArrayType``,
``MapType``) describe the Go types this package encodes and expects to decode.
``WireType`` is what travels on the stream: the same shape, but with nested
types referenced by their per-stream type id.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .wire import GobError

# Type ids predefined by encoding/gob and shared by every stream.
BOOL_ID = 1
INT_ID = 2
UINT_ID = 3
FLOAT_ID = 4
BYTES_ID = 5
STRING_ID = 6
COMPLEX_ID = 7
INTERFACE_ID = 8
WIRE_TYPE_ID = 16
ARRAY_TYPE_ID = 17
COMMON_TYPE_ID = 18
SLICE_TYPE_ID = 19
STRUCT_TYPE_ID = 20
FIELD_TYPE_ID = 21
FIELD_TYPE_SLICE_ID = 22
MAP_TYPE_ID = 23
# Never sent on the wire; only used to decode wireType locally.
GOB_ENCODER_TYPE_ID = 24

FIRST_USER_ID = 65


class GoType:
    """Base class for Go type declarations."""

    name: str
    id: int | None


@dataclass(eq=False)
class BasicType(GoType):
    name: str
    id: int
    zero: Any


@dataclass(frozen=True)
class Field:
    name: str
    type: GoType


@dataclass(eq=False)
class StructType(GoType):
    name: str
    fields: list[Field]
    id: int | None = None

    def field(self, name: str) -> Field | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None


@dataclass(eq=False)
class SliceType(GoType):
    elem: GoType
    name: str = ""
    id: int | None = None

    def __post_init__(self) -> None:
        if not self.name:
            self.name = f"[]{self.elem.name}"


@dataclass(eq=False)
class ArrayType(GoType):
    elem: GoType
    length: int
    name: str = ""
    id: int | None = None

    def __post_init__(self) -> None:
        if not self.name:
            self.name = f"[{self.length}]{self.elem.name}"


@dataclass(eq=False)
class MapType(GoType):
    key: GoType
    elem: GoType
    name: str = ""
    id: int | None = None

    def __post_init__(self) -> None:
        if not self.name:
            self.name = f"map[{self.key.name}]{self.elem.name}"


BOOL = BasicType("bool", BOOL_ID, False)
INT = BasicType("int", INT_ID, 0)
UINT = BasicType("uint", UINT_ID, 0)
FLOAT = BasicType("float", FLOAT_ID, 0.0)
BYTES = BasicType("[]byte", BYTES_ID, b"")
STRING = BasicType("string", STRING_ID, "")
COMPLEX = BasicType("complex", COMPLEX_ID, 0j)

BASIC_TYPES = {t.id: t for t in (BOOL, INT, UINT, FLOAT, BYTES, STRING, COMPLEX)}

# The types encoding/gob uses to describe types.
COMMON_TYPE = StructType(
    "CommonType", [Field("Name", STRING), Field("Id", INT)], id=COMMON_TYPE_ID
)
ARRAY_TYPE = StructType(
    "arrayType",
    [Field("CommonType", COMMON_TYPE), Field("Elem", INT), Field("Len", INT)],
    id=ARRAY_TYPE_ID,
)
SLICE_TYPE = StructType(
    "sliceType", [Field("CommonType", COMMON_TYPE), Field("Elem", INT)], id=SLICE_TYPE_ID
)
FIELD_TYPE = StructType("fieldType", [Field("Name", STRING), Field("Id", INT)], id=FIELD_TYPE_ID)
FIELD_TYPE_SLICE = SliceType(FIELD_TYPE, id=FIELD_TYPE_SLICE_ID)
STRUCT_TYPE = StructType(
    "structType",
    [Field("CommonType", COMMON_TYPE), Field("Field", FIELD_TYPE_SLICE)],
    id=STRUCT_TYPE_ID,
)
MAP_TYPE = StructType(
    "mapType",
    [Field("CommonType", COMMON_TYPE), Field("Key", INT), Field("Elem", INT)],
    id=MAP_TYPE_ID,
)
GOB_ENCODER_TYPE = StructType(
    "gobEncoderType", [Field("CommonType", COMMON_TYPE)], id=GOB_ENCODER_TYPE_ID
)
WIRE_TYPE = StructType(
    "wireType",
    [
        Field("ArrayT", ARRAY_TYPE),
        Field("SliceT", SLICE_TYPE),
        Field("StructT", STRUCT_TYPE),
        Field("MapT", MAP_TYPE),
        Field("GobEncoderT", GOB_ENCODER_TYPE),
        Field("BinaryMarshalerT", GOB_ENCODER_TYPE),
        Field("TextMarshalerT", GOB_ENCODER_TYPE),
    ],
    id=WIRE_TYPE_ID,
)

BOOTSTRAP_TYPES = (
    WIRE_TYPE,
    ARRAY_TYPE,
    COMMON_TYPE,
    SLICE_TYPE,
    STRUCT_TYPE,
    FIELD_TYPE,
    FIELD_TYPE_SLICE,
    MAP_TYPE,
    GOB_ENCODER_TYPE,
)


@dataclass
class WireType:
    """A type definition as carried by a gob stream."""

    kind: str  # "struct", "slice", "array", "map" or "opaque"
    name: str
    id: int
    fields: list[tuple[str, int]] = field(default_factory=list)
    elem: int = 0
    key: int = 0
    length: int = 0

    def to_value(self) -> dict[str, Any]:
        """Return the wireType struct value describing this definition."""
        common = {"Name": self.name, "Id": self.id}
        if self.kind == "struct":
            fields = [{"Name": name, "Id": type_id} for name, type_id in self.fields]
            return {"StructT": {"CommonType": common, "Field": fields}}
        if self.kind == "slice":
            return {"SliceT": {"CommonType": common, "Elem": self.elem}}
        if self.kind == "array":
            return {"ArrayT": {"CommonType": common, "Elem": self.elem, "Len": self.length}}
        if self.kind == "map":
            return {"MapT": {"CommonType": common, "Key": self.key, "Elem": self.elem}}
        raise GobError(f"cannot send definition of {self.kind} type {self.name}")

    @classmethod
    def from_value(cls, type_id: int, value: dict[str, Any]) -> "WireType":
        """Build a definition from a decoded wireType struct value.

        Raises:
            GobError: If the value does not describe exactly one type
        """
        present = [name for name, v in value.items() if v is not None]
        if len(present) != 1:
            raise GobError(f"invalid type definition for id {type_id}")
        kind = present[0]
        body = value[kind]
        name = (body.get("CommonType") or {}).get("Name", "")
        if kind == "StructT":
            fields = [(f["Name"], f["Id"]) for f in body["Field"]]
            return cls("struct", name, type_id, fields=fields)
        if kind == "SliceT":
            return cls("slice", name, type_id, elem=body["Elem"])
        if kind == "ArrayT":
            return cls("array", name, type_id, elem=body["Elem"], length=body["Len"])
        if kind == "MapT":
            return cls("map", name, type_id, key=body["Key"], elem=body["Elem"])
        return cls("opaque", name, type_id)


def describe(t: GoType, type_id: Callable[[GoType], int]) -> WireType:
    """Describe a composite declaration, numbering nested types with ``type_id``.

    The outer type is numbered before its components, as encoding/gob does.
    """
    own_id = type_id(t)
    if isinstance(t, StructType):
        fields = [(f.name, type_id(f.type)) for f in t.fields]
        return WireType("struct", t.name, own_id, fields=fields)
    if isinstance(t, SliceType):
        return WireType("slice", t.name, own_id, elem=type_id(t.elem))
    if isinstance(t, ArrayType):
        return WireType("array", t.name, own_id, elem=type_id(t.elem), length=t.length)
    if isinstance(t, MapType):
        return WireType("map", t.name, own_id, key=type_id(t.key), elem=type_id(t.elem))
    raise GobError(f"{t.name} is not a composite type")


def components(t: GoType) -> list[GoType]:
    """Return the types a composite declaration refers to, in field order."""
    if isinstance(t, StructType):
        return [f.type for f in t.fields]
    if isinstance(t, (SliceType, ArrayType)):
        return [t.elem]
    if isinstance(t, MapType):
        return [t.key, t.elem]
    return []


def zero_value(t: GoType) -> Any:
    """Return the value a field takes when absent from the stream.

    Absent nested structs decode as None, mirroring a nil pointer.
    """
    if isinstance(t, BasicType):
        return t.zero
    if isinstance(t, SliceType):
        return []
    if isinstance(t, MapType):
        return {}
    if isinstance(t, ArrayType):
        return [zero_value(t.elem) for _ in range(t.length)]
    return None


def _fixed_id(t: GoType) -> int:
    assert t.id is not None
    return t.id


BOOTSTRAP_WIRE_TYPES = {t.id: describe(t, _fixed_id) for t in BOOTSTRAP_TYPES}
