"""Interface-level types, ABI-level FFI types and literal constants.

Every class here is a frozen dataclass: a component interface is built once
and then shared by reference for the whole generation run.
"""
from __future__ import annotations
from enum import Enum
from typing import Optional, Union
from dataclasses import dataclass


class PrimitiveKind(Enum):
    INT8 = "i8"
    UINT8 = "u8"
    INT16 = "i16"
    UINT16 = "u16"
    INT32 = "i32"
    UINT32 = "u32"
    INT64 = "i64"
    UINT64 = "u64"
    FLOAT32 = "f32"
    FLOAT64 = "f64"
    BOOLEAN = "bool"
    STRING = "string"
    BYTES = "bytes"
    TIMESTAMP = "timestamp"
    DURATION = "duration"

    def __str__(self) -> str:
        return self.value

    @property
    def is_integer(self) -> bool:
        return self in INTEGER_BOUNDS


# Inclusive (min, max) value range of each fixed-width integer kind
INTEGER_BOUNDS: dict[PrimitiveKind, tuple[int, int]] = {
    PrimitiveKind.INT8: (-(2 ** 7), 2 ** 7 - 1),
    PrimitiveKind.UINT8: (0, 2 ** 8 - 1),
    PrimitiveKind.INT16: (-(2 ** 15), 2 ** 15 - 1),
    PrimitiveKind.UINT16: (0, 2 ** 16 - 1),
    PrimitiveKind.INT32: (-(2 ** 31), 2 ** 31 - 1),
    PrimitiveKind.UINT32: (0, 2 ** 32 - 1),
    PrimitiveKind.INT64: (-(2 ** 63), 2 ** 63 - 1),
    PrimitiveKind.UINT64: (0, 2 ** 64 - 1),
}


@dataclass(frozen=True)
class PrimitiveType:
    kind: PrimitiveKind

    def __str__(self) -> str:
        return str(self.kind)


@dataclass(frozen=True)
class EnumType:
    name: str

    def __str__(self) -> str:
        return f"enum<{self.name}>"


@dataclass(frozen=True)
class RecordType:
    name: str

    def __str__(self) -> str:
        return f"record<{self.name}>"


@dataclass(frozen=True)
class ObjectType:
    """A native object passed by handle.

    When `supports_foreign_implementation` is set, PHP code may supply its own
    implementation which the native side calls back into.
    """
    name: str
    supports_foreign_implementation: bool = False

    def __str__(self) -> str:
        return f"object<{self.name}>"


@dataclass(frozen=True)
class CallbackInterfaceType:
    name: str

    def __str__(self) -> str:
        return f"callback<{self.name}>"


@dataclass(frozen=True)
class OptionalType:
    inner: "Type"

    def __str__(self) -> str:
        return f"optional<{self.inner}>"


@dataclass(frozen=True)
class SequenceType:
    inner: "Type"

    def __str__(self) -> str:
        return f"sequence<{self.inner}>"


@dataclass(frozen=True)
class MapType:
    key: "Type"
    value: "Type"

    def __str__(self) -> str:
        return f"map<{self.key}, {self.value}>"


class ExternalKind(Enum):
    INTERFACE = "interface"
    DATA = "data"


@dataclass(frozen=True)
class ExternalType:
    """A type declared by another component (namespace) and imported here."""
    name: str
    namespace: str
    kind: ExternalKind = ExternalKind.DATA

    def __str__(self) -> str:
        return f"external<{self.name}@{self.namespace}>"


@dataclass(frozen=True)
class CustomType:
    """A named wrapper around a builtin type, optionally remapped by config."""
    name: str
    builtin: "Type"

    def __str__(self) -> str:
        return f"custom<{self.name}: {self.builtin}>"


Type = Union[
    PrimitiveType,
    EnumType,
    RecordType,
    ObjectType,
    CallbackInterfaceType,
    OptionalType,
    SequenceType,
    MapType,
    ExternalType,
    CustomType,
]


def primitive(kind: PrimitiveKind | str) -> PrimitiveType:
    """Shorthand used by the loader and tests: primitive("u32")."""
    return PrimitiveType(kind if isinstance(kind, PrimitiveKind) else PrimitiveKind(kind))


#
# --- FFI types
#

class FfiScalar(Enum):
    INT8 = "int8"
    UINT8 = "uint8"
    INT16 = "int16"
    UINT16 = "uint16"
    INT32 = "int32"
    UINT32 = "uint32"
    INT64 = "int64"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    HANDLE = "handle"  # u64 opaque handle (callback interfaces)


@dataclass(frozen=True)
class FfiPrimitive:
    scalar: FfiScalar

    def __str__(self) -> str:
        return self.scalar.value


@dataclass(frozen=True)
class FfiRustArcPtr:
    """Opaque non-null pointer to a native object."""
    object_name: str

    def __str__(self) -> str:
        return f"RustArcPtr({self.object_name})"


@dataclass(frozen=True)
class FfiRustBuffer:
    """Owned buffer (capacity, len, data); `external` names the owning namespace."""
    external: Optional[str] = None

    def __str__(self) -> str:
        return "RustBuffer" if self.external is None else f"RustBuffer({self.external})"


@dataclass(frozen=True)
class FfiForeignBytes:
    def __str__(self) -> str:
        return "ForeignBytes"


@dataclass(frozen=True)
class FfiRustCallStatus:
    def __str__(self) -> str:
        return "RustCallStatus"


@dataclass(frozen=True)
class FfiCallback:
    name: str

    def __str__(self) -> str:
        return f"Callback({self.name})"


@dataclass(frozen=True)
class FfiStruct:
    name: str

    def __str__(self) -> str:
        return f"Struct({self.name})"


@dataclass(frozen=True)
class FfiReference:
    inner: "FfiType"

    def __str__(self) -> str:
        return f"Reference({self.inner})"


@dataclass(frozen=True)
class FfiVoidPointer:
    def __str__(self) -> str:
        return "VoidPointer"


FfiType = Union[
    FfiPrimitive,
    FfiRustArcPtr,
    FfiRustBuffer,
    FfiForeignBytes,
    FfiRustCallStatus,
    FfiCallback,
    FfiStruct,
    FfiReference,
    FfiVoidPointer,
]

INT8 = FfiPrimitive(FfiScalar.INT8)
UINT8 = FfiPrimitive(FfiScalar.UINT8)
INT16 = FfiPrimitive(FfiScalar.INT16)
UINT16 = FfiPrimitive(FfiScalar.UINT16)
INT32 = FfiPrimitive(FfiScalar.INT32)
UINT32 = FfiPrimitive(FfiScalar.UINT32)
INT64 = FfiPrimitive(FfiScalar.INT64)
UINT64 = FfiPrimitive(FfiScalar.UINT64)
FLOAT32 = FfiPrimitive(FfiScalar.FLOAT32)
FLOAT64 = FfiPrimitive(FfiScalar.FLOAT64)
HANDLE = FfiPrimitive(FfiScalar.HANDLE)
RUST_BUFFER = FfiRustBuffer()
RUST_CALL_STATUS = FfiRustCallStatus()
FOREIGN_BYTES = FfiForeignBytes()
VOID_POINTER = FfiVoidPointer()


#
# --- Literals
#

class Radix(Enum):
    DECIMAL = 10
    HEX = 16
    OCTAL = 8


@dataclass(frozen=True)
class BooleanLiteral:
    value: bool

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class StringLiteral:
    value: str

    def __str__(self) -> str:
        return repr(self.value)


@dataclass(frozen=True)
class UIntLiteral:
    value: int
    radix: Radix = Radix.DECIMAL

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class IntLiteral:
    value: int
    radix: Radix = Radix.DECIMAL

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class FloatLiteral:
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class EnumLiteral:
    variant: str

    def __str__(self) -> str:
        return f".{self.variant}"


@dataclass(frozen=True)
class EmptySequenceLiteral:
    def __str__(self) -> str:
        return "[]"


@dataclass(frozen=True)
class EmptyMapLiteral:
    def __str__(self) -> str:
        return "{}"


@dataclass(frozen=True)
class NoneLiteral:
    def __str__(self) -> str:
        return "null"


@dataclass(frozen=True)
class SomeLiteral:
    inner: "Literal"

    def __str__(self) -> str:
        return f"Some({self.inner})"


Literal = Union[
    BooleanLiteral,
    StringLiteral,
    UIntLiteral,
    IntLiteral,
    FloatLiteral,
    EnumLiteral,
    EmptySequenceLiteral,
    EmptyMapLiteral,
    NoneLiteral,
    SomeLiteral,
]
