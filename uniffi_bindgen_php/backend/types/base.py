"""CodeType base class and the RustBuffer reader/writer used by reference codecs.

A CodeType answers every question the generator asks about one interface
type: its PHP spelling, the name of its converter class, how a default
value is written as a PHP literal, and (through the reference codec) what
bytes the generated converter puts on the wire.
"""
from __future__ import annotations

import struct
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from uniffi_bindgen_php.interface.types import Type, Literal
from uniffi_bindgen_php.internals.errors import raise_error

if TYPE_CHECKING:
    from uniffi_bindgen_php.backend.oracle import PHPCodeOracle


class BufWriter:
    """Big-endian serializer matching the UniFFI RustBuffer protocol."""

    def __init__(self) -> None:
        self.data = bytearray()

    def pack(self, fmt: str, value: Any, type_name: str) -> None:
        try:
            self.data += struct.pack(">" + fmt, value)
        except (struct.error, OverflowError):
            raise_error("BG3001", value=value, type=type_name)

    def write_i8(self, value: int) -> None:
        self.pack("b", value, "i8")

    def write_i32(self, value: int) -> None:
        self.pack("i", value, "i32")

    def write_u32(self, value: int) -> None:
        self.pack("I", value, "u32")

    def write_i64(self, value: int) -> None:
        self.pack("q", value, "i64")

    def write_u64(self, value: int) -> None:
        self.pack("Q", value, "u64")

    def write_bytes(self, value: bytes) -> None:
        self.data += value

    def getvalue(self) -> bytes:
        return bytes(self.data)


class BufReader:
    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)
        self.pos = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    def take(self, n: int, type_name: str) -> bytes:
        if n > self.remaining:
            raise_error("BG3003", type=type_name, needed=n, left=self.remaining)
        chunk = self.data[self.pos:self.pos + n]
        self.pos += n
        return chunk

    def unpack(self, fmt: str, type_name: str) -> Any:
        size = struct.calcsize(">" + fmt)
        return struct.unpack(">" + fmt, self.take(size, type_name))[0]

    def read_i8(self) -> int:
        return self.unpack("b", "i8")

    def read_i32(self) -> int:
        return self.unpack("i", "i32")

    def read_u32(self) -> int:
        return self.unpack("I", "u32")

    def read_i64(self) -> int:
        return self.unpack("q", "i64")

    def read_u64(self) -> int:
        return self.unpack("Q", "u64")

    def read_count(self, type_name: str) -> int:
        """i32 length/count prefix; negative values are malformed."""
        n = self.read_i32()
        if n < 0:
            raise_error("BG3002", what="length", value=n, type=type_name)
        return n


class CodeType(ABC):
    """Generator-facing view of one interface type.

    Subclasses implement the naming and literal rules plus `write_value` /
    `read_value`. Types that cross the boundary as scalars or handles also
    override `lower_value` / `lift_value`; everything else is lowered into a
    RustBuffer holding its serialized form.
    """

    def __init__(self, oracle: "PHPCodeOracle", type_: Type) -> None:
        self.oracle = oracle
        self.type = type_

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.type})"

    # --- names

    @abstractmethod
    def type_label(self) -> str:
        """PHP type used in signatures and property declarations."""

    @abstractmethod
    def canonical_name(self) -> str:
        """Identifier-safe name, unique per distinct type shape."""

    def ffi_converter_name(self) -> str:
        return f"FfiConverter{self.canonical_name()}"

    def ffi_error_converter_name(self) -> str:
        return self.ffi_converter_name()

    def lower(self) -> str:
        return f"{self.ffi_converter_name()}::lower"

    def write(self) -> str:
        return f"{self.ffi_converter_name()}::write"

    def lift(self) -> str:
        return f"{self.ffi_converter_name()}::lift"

    def read(self) -> str:
        return f"{self.ffi_converter_name()}::read"

    def children(self) -> list["CodeType"]:
        return []

    def literal(self, lit: Literal) -> str:
        raise_error("BG2002", literal=lit, type=self.type_label())

    # --- reference codec

    @abstractmethod
    def write_value(self, value: Any, buf: BufWriter) -> None:
        ...

    @abstractmethod
    def read_value(self, buf: BufReader) -> Any:
        ...

    def lower_value(self, value: Any) -> Any:
        buf = BufWriter()
        self.write_value(value, buf)
        return buf.getvalue()

    def lift_value(self, ffi_value: Any) -> Any:
        buf = BufReader(ffi_value)
        value = self.read_value(buf)
        if buf.remaining:
            raise_error("BG3004", left=buf.remaining, type=self.type_label())
        return value

    def expect(self, value: Any, kinds: type | tuple[type, ...], expected: str) -> None:
        if not isinstance(value, kinds) or isinstance(value, bool) and bool not in _as_tuple(kinds):
            raise_error("BG3005", expected=expected, type=self.type_label(), value=value)


def _as_tuple(kinds: type | tuple[type, ...]) -> tuple[type, ...]:
    return kinds if isinstance(kinds, tuple) else (kinds,)
