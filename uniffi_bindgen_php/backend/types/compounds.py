"""Code types for optional, sequence and map."""
from __future__ import annotations

from typing import Any

from uniffi_bindgen_php.backend.types.base import CodeType, BufReader, BufWriter
from uniffi_bindgen_php.interface.types import (
    Literal, NoneLiteral, SomeLiteral, EmptySequenceLiteral, EmptyMapLiteral,
)
from uniffi_bindgen_php.internals.errors import raise_error


class OptionalCodeType(CodeType):
    def __init__(self, oracle, type_) -> None:
        super().__init__(oracle, type_)
        self.inner = oracle.find(type_.inner)

    def type_label(self) -> str:
        inner = self.inner.type_label()
        # "?" does not stack and "mixed" already admits null
        if inner.startswith("?") or inner == "mixed":
            return inner
        return f"?{inner}"

    def canonical_name(self) -> str:
        return f"Option{self.inner.canonical_name()}"

    def children(self) -> list[CodeType]:
        return [self.inner]

    def literal(self, lit: Literal) -> str:
        match lit:
            case NoneLiteral():
                return "null"
            case SomeLiteral(inner):
                return self.inner.literal(inner)
        return self.inner.literal(lit)

    def write_value(self, value: Any, buf: BufWriter) -> None:
        if value is None:
            buf.write_i8(0)
        else:
            buf.write_i8(1)
            self.inner.write_value(value, buf)

    def read_value(self, buf: BufReader) -> Any:
        match buf.read_i8():
            case 0:
                return None
            case 1:
                return self.inner.read_value(buf)
            case tag:
                raise_error("BG3002", what="optional tag", value=tag, type=self.type_label())


class SequenceCodeType(CodeType):
    def __init__(self, oracle, type_) -> None:
        super().__init__(oracle, type_)
        self.inner = oracle.find(type_.inner)

    def type_label(self) -> str:
        return "array"

    def canonical_name(self) -> str:
        return f"Sequence{self.inner.canonical_name()}"

    def children(self) -> list[CodeType]:
        return [self.inner]

    def literal(self, lit: Literal) -> str:
        match lit:
            case EmptySequenceLiteral():
                return "[]"
        return super().literal(lit)

    def write_value(self, value: Any, buf: BufWriter) -> None:
        self.expect(value, (list, tuple), "list")
        buf.write_i32(len(value))
        for item in value:
            self.inner.write_value(item, buf)

    def read_value(self, buf: BufReader) -> list:
        count = buf.read_count(self.canonical_name())
        return [self.inner.read_value(buf) for _ in range(count)]


class MapCodeType(CodeType):
    def __init__(self, oracle, type_) -> None:
        super().__init__(oracle, type_)
        self.key = oracle.find(type_.key)
        self.value = oracle.find(type_.value)

    def type_label(self) -> str:
        return "array"

    def canonical_name(self) -> str:
        # no canonical name starts with "_", so the key/value boundary stays recoverable
        return f"Map{self.key.canonical_name()}__{self.value.canonical_name()}"

    def children(self) -> list[CodeType]:
        return [self.key, self.value]

    def literal(self, lit: Literal) -> str:
        match lit:
            case EmptyMapLiteral():
                return "[]"
        return super().literal(lit)

    def write_value(self, value: Any, buf: BufWriter) -> None:
        self.expect(value, dict, "dict")
        buf.write_i32(len(value))
        for k, v in value.items():
            self.key.write_value(k, buf)
            self.value.write_value(v, buf)

    def read_value(self, buf: BufReader) -> dict:
        count = buf.read_count(self.canonical_name())
        result = {}
        for _ in range(count):
            k = self.key.read_value(buf)
            result[k] = self.value.read_value(buf)
        return result
