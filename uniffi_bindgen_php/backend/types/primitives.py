"""Code types for the builtin scalar, string and time types."""
from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Any

from uniffi_bindgen_php.backend.types.base import CodeType, BufReader, BufWriter
from uniffi_bindgen_php.interface.types import (
    PrimitiveKind, INTEGER_BOUNDS, Literal, BooleanLiteral, StringLiteral, UIntLiteral,
    IntLiteral, FloatLiteral, Radix,
)
from uniffi_bindgen_php.internals.errors import raise_error

# PHP's int is a signed 64-bit integer
PHP_INT_MIN, PHP_INT_MAX = INTEGER_BOUNDS[PrimitiveKind.INT64]

_CANONICAL: dict[PrimitiveKind, str] = {
    PrimitiveKind.INT8: "Int8",
    PrimitiveKind.UINT8: "UInt8",
    PrimitiveKind.INT16: "Int16",
    PrimitiveKind.UINT16: "UInt16",
    PrimitiveKind.INT32: "Int32",
    PrimitiveKind.UINT32: "UInt32",
    PrimitiveKind.INT64: "Int64",
    PrimitiveKind.UINT64: "UInt64",
    PrimitiveKind.FLOAT32: "Float",
    PrimitiveKind.FLOAT64: "Double",
    PrimitiveKind.BOOLEAN: "Bool",
    PrimitiveKind.STRING: "String",
    PrimitiveKind.BYTES: "Bytes",
    PrimitiveKind.TIMESTAMP: "Timestamp",
    PrimitiveKind.DURATION: "Duration",
}

# struct format characters for fixed-width kinds
_STRUCT_FMT: dict[PrimitiveKind, str] = {
    PrimitiveKind.INT8: "b",
    PrimitiveKind.UINT8: "B",
    PrimitiveKind.INT16: "h",
    PrimitiveKind.UINT16: "H",
    PrimitiveKind.INT32: "i",
    PrimitiveKind.UINT32: "I",
    PrimitiveKind.INT64: "q",
    PrimitiveKind.UINT64: "Q",
    PrimitiveKind.FLOAT32: "f",
    PrimitiveKind.FLOAT64: "d",
}

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

NANOS_PER_SECOND = 1_000_000_000


class PrimitiveCodeType(CodeType):
    @property
    def kind(self) -> PrimitiveKind:
        return self.type.kind

    def canonical_name(self) -> str:
        return _CANONICAL[self.kind]


class IntegerCodeType(PrimitiveCodeType):
    def type_label(self) -> str:
        return "int"

    def literal(self, lit: Literal) -> str:
        match lit:
            case UIntLiteral(value, radix) | IntLiteral(value, radix):
                lo, hi = INTEGER_BOUNDS[self.kind]
                if not (lo <= value <= hi and PHP_INT_MIN <= value <= PHP_INT_MAX):
                    raise_error("BG2001", value=value, type=self.kind)
                return _render_int(value, radix)
        return super().literal(lit)

    def _check(self, value: Any) -> int:
        self.expect(value, int, "int")
        lo, hi = INTEGER_BOUNDS[self.kind]
        if not lo <= value <= hi:
            raise_error("BG3001", value=value, type=self.kind)
        return value

    def lower_value(self, value: Any) -> int:
        return self._check(value)

    def lift_value(self, ffi_value: Any) -> int:
        return self._check(ffi_value)

    def write_value(self, value: Any, buf: BufWriter) -> None:
        buf.pack(_STRUCT_FMT[self.kind], self._check(value), str(self.kind))

    def read_value(self, buf: BufReader) -> int:
        return buf.unpack(_STRUCT_FMT[self.kind], str(self.kind))


def _render_int(value: int, radix: Radix) -> str:
    sign = "-" if value < 0 else ""
    match radix:
        case Radix.HEX:
            return f"{sign}0x{abs(value):x}"
        case Radix.OCTAL:
            return f"{sign}0o{abs(value):o}"
    return str(value)


class FloatCodeType(PrimitiveCodeType):
    def type_label(self) -> str:
        return "float"

    def literal(self, lit: Literal) -> str:
        match lit:
            case FloatLiteral(text):
                try:
                    value = float(text)
                except ValueError:
                    raise_error("BG2003", value=text, type=self.kind)
                if not math.isfinite(value):
                    raise_error("BG2003", value=text, type=self.kind)
                # PHP reads "1" as int; keep float literals unambiguous
                return text if any(c in text for c in ".eE") else f"{text}.0"
        return super().literal(lit)

    def _check(self, value: Any) -> float:
        self.expect(value, (int, float), "float")
        return float(value)

    def lower_value(self, value: Any) -> float:
        return self._check(value)

    def lift_value(self, ffi_value: Any) -> float:
        return self._check(ffi_value)

    def write_value(self, value: Any, buf: BufWriter) -> None:
        buf.pack(_STRUCT_FMT[self.kind], self._check(value), str(self.kind))

    def read_value(self, buf: BufReader) -> float:
        return buf.unpack(_STRUCT_FMT[self.kind], str(self.kind))


class BooleanCodeType(PrimitiveCodeType):
    def type_label(self) -> str:
        return "bool"

    def literal(self, lit: Literal) -> str:
        match lit:
            case BooleanLiteral(value):
                return "true" if value else "false"
        return super().literal(lit)

    def lower_value(self, value: Any) -> int:
        self.expect(value, bool, "bool")
        return 1 if value else 0

    def lift_value(self, ffi_value: Any) -> bool:
        if ffi_value not in (0, 1) or isinstance(ffi_value, bool):
            raise_error("BG3002", what="boolean byte", value=ffi_value, type="bool")
        return ffi_value == 1

    def write_value(self, value: Any, buf: BufWriter) -> None:
        buf.write_i8(self.lower_value(value))

    def read_value(self, buf: BufReader) -> bool:
        return self.lift_value(buf.read_i8())


def php_string_literal(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


class StringCodeType(PrimitiveCodeType):
    """Strings lower to a RustBuffer of raw UTF-8; inside other values they are length-prefixed."""

    def type_label(self) -> str:
        return "string"

    def literal(self, lit: Literal) -> str:
        match lit:
            case StringLiteral(value):
                return php_string_literal(value)
        return super().literal(lit)

    def lower_value(self, value: Any) -> bytes:
        self.expect(value, str, "str")
        return value.encode("utf-8")

    def lift_value(self, ffi_value: Any) -> str:
        try:
            return bytes(ffi_value).decode("utf-8")
        except UnicodeDecodeError as e:
            raise_error("BG3002", what="UTF-8 byte", value=hex(ffi_value[e.start]), type="string")

    def write_value(self, value: Any, buf: BufWriter) -> None:
        encoded = self.lower_value(value)
        buf.write_i32(len(encoded))
        buf.write_bytes(encoded)

    def read_value(self, buf: BufReader) -> str:
        n = buf.read_count("string")
        return self.lift_value(buf.take(n, "string"))


class BytesCodeType(PrimitiveCodeType):
    def type_label(self) -> str:
        return "string"

    def write_value(self, value: Any, buf: BufWriter) -> None:
        self.expect(value, (bytes, bytearray), "bytes")
        buf.write_i32(len(value))
        buf.write_bytes(bytes(value))

    def read_value(self, buf: BufReader) -> bytes:
        n = buf.read_count("bytes")
        return buf.take(n, "bytes")


class TimestampCodeType(PrimitiveCodeType):
    """Signed seconds since the Unix epoch plus a nanosecond remainder in the same direction."""

    def type_label(self) -> str:
        return "\\DateTimeImmutable"

    def write_value(self, value: Any, buf: BufWriter) -> None:
        self.expect(value, datetime, "datetime")
        if value.tzinfo is None:
            raise_error("BG3005", expected="timezone-aware datetime", type=self.type_label(), value=value)
        if value >= EPOCH:
            sign, delta = 1, value - EPOCH
        else:
            sign, delta = -1, EPOCH - value
        seconds = delta.days * 86400 + delta.seconds
        buf.write_i64(sign * seconds)
        buf.write_u32(delta.microseconds * 1000)

    def read_value(self, buf: BufReader) -> datetime:
        seconds = buf.read_i64()
        nanos = buf.read_u32()
        if nanos >= NANOS_PER_SECOND:
            raise_error("BG3002", what="nanoseconds", value=nanos, type="timestamp")
        try:
            delta = timedelta(seconds=abs(seconds), microseconds=nanos // 1000)
            return EPOCH + delta if seconds >= 0 else EPOCH - delta
        except OverflowError:
            raise_error("BG3002", what="seconds", value=seconds, type="timestamp")


class DurationCodeType(PrimitiveCodeType):
    def type_label(self) -> str:
        return "\\DateInterval"

    def write_value(self, value: Any, buf: BufWriter) -> None:
        self.expect(value, timedelta, "timedelta")
        if value < timedelta(0):
            raise_error("BG3001", value=value, type="duration")
        buf.write_u64(value.days * 86400 + value.seconds)
        buf.write_u32(value.microseconds * 1000)

    def read_value(self, buf: BufReader) -> timedelta:
        seconds = buf.read_u64()
        nanos = buf.read_u32()
        if nanos >= NANOS_PER_SECOND:
            raise_error("BG3002", what="nanoseconds", value=nanos, type="duration")
        try:
            return timedelta(seconds=seconds, microseconds=nanos // 1000)
        except OverflowError:
            raise_error("BG3002", what="seconds", value=seconds, type="duration")
