"""Go encoding/gob streams, as spoken by Go's net/rpc default codec."""

from .decoder import Decoder
from .encoder import Encoder
from .types import (
    BOOL,
    BYTES,
    COMPLEX,
    FLOAT,
    INT,
    STRING,
    UINT,
    ArrayType,
    BasicType,
    Field,
    GoType,
    MapType,
    SliceType,
    StructType,
)
from .wire import GobError, Incomplete

__all__ = [
    "Encoder",
    "Decoder",
    "GobError",
    "Incomplete",
    "GoType",
    "BasicType",
    "StructType",
    "SliceType",
    "ArrayType",
    "MapType",
    "Field",
    "BOOL",
    "INT",
    "UINT",
    "FLOAT",
    "BYTES",
    "STRING",
    "COMPLEX",
]
