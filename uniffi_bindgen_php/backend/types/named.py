"""Code types for user-declared types: enums, records, objects, callbacks, externals, customs."""
from __future__ import annotations

from typing import Any

from uniffi_bindgen_php.backend import naming
from uniffi_bindgen_php.backend.types.base import CodeType, BufReader, BufWriter
from uniffi_bindgen_php.interface.types import Literal, EnumLiteral, ExternalKind
from uniffi_bindgen_php.internals.errors import raise_error


class NamedCodeType(CodeType):
    @property
    def name(self) -> str:
        return self.type.name

    def type_label(self) -> str:
        return self.oracle.class_name(self.name)

    def canonical_name(self) -> str:
        return f"Type{naming.pascal(self.name)}"


class EnumCodeType(NamedCodeType):
    """Host values are the variant name, or ``(name, {field: value})`` for variants with fields."""

    @property
    def enum(self):
        return self.oracle.ci.get_enum(self.name)

    def children(self) -> list[CodeType]:
        return [self.oracle.find(f.type) for v in self.enum.variants for f in v.fields]

    def literal(self, lit: Literal) -> str:
        match lit:
            case EnumLiteral(variant):
                enum = self.enum
                index = enum.variant_index(variant)
                # errors are always a class tree, even when flat
                if enum.is_flat and not self.oracle.ci.is_name_used_as_error(self.name):
                    return f"{self.type_label()}::{self.oracle.enum_variant_name(variant)}"
                if not enum.variants[index].fields:
                    # PHP 8.1 allows `new` in constant initializers
                    return f"new {self.type_label()}{naming.pascal(variant)}()"
        return super().literal(lit)

    def write_value(self, value: Any, buf: BufWriter) -> None:
        match value:
            case str(variant_name):
                fields = {}
            case (str(variant_name), dict(fields)):
                pass
            case _:
                raise_error("BG3005", expected="variant name or (name, fields)",
                            type=self.type_label(), value=value)
        enum = self.enum
        index = enum.variant_index(variant_name)
        buf.write_i32(index + 1)
        _write_fields(self.oracle, enum.variants[index].fields, fields, buf, self.type_label())

    def read_value(self, buf: BufReader) -> Any:
        enum = self.enum
        index = buf.read_i32()
        if not 1 <= index <= len(enum.variants):
            raise_error("BG3002", what="variant index", value=index, type=self.type_label())
        variant = enum.variants[index - 1]
        if not variant.fields:
            return variant.name
        return variant.name, _read_fields(self.oracle, variant.fields, buf)


class RecordCodeType(NamedCodeType):
    """Host values are dicts keyed by field name."""

    def children(self) -> list[CodeType]:
        return [self.oracle.find(f.type) for f in self.oracle.ci.get_record(self.name).fields]

    def write_value(self, value: Any, buf: BufWriter) -> None:
        self.expect(value, dict, "dict")
        record = self.oracle.ci.get_record(self.name)
        _write_fields(self.oracle, record.fields, value, buf, self.type_label())

    def read_value(self, buf: BufReader) -> dict:
        record = self.oracle.ci.get_record(self.name)
        return _read_fields(self.oracle, record.fields, buf)


def _write_fields(oracle, fields, values: dict, buf: BufWriter, owner: str) -> None:
    for f in fields:
        if f.name not in values:
            raise_error("BG3005", expected=f"field '{f.name}'", type=owner, value=values)
        oracle.find(f.type).write_value(values[f.name], buf)


def _read_fields(oracle, fields, buf: BufReader) -> dict:
    return {f.name: oracle.find(f.type).read_value(buf) for f in fields}


class HandleCodeType(NamedCodeType):
    """Types passed across the boundary as an opaque u64 handle."""

    def _check(self, value: Any) -> int:
        self.expect(value, int, "handle")
        if not 0 <= value < 2 ** 64:
            raise_error("BG3001", value=value, type=self.type_label())
        return value

    def lower_value(self, value: Any) -> int:
        return self._check(value)

    def lift_value(self, ffi_value: Any) -> int:
        return self._check(ffi_value)

    def write_value(self, value: Any, buf: BufWriter) -> None:
        buf.write_u64(self._check(value))

    def read_value(self, buf: BufReader) -> int:
        return buf.read_u64()


class ObjectCodeType(HandleCodeType):
    def ffi_error_converter_name(self) -> str:
        return f"{self.ffi_converter_name()}__as_error"


class CallbackInterfaceCodeType(HandleCodeType):
    pass


class ExternalCodeType(HandleCodeType):
    """A type owned by another component, imported from that component's PHP namespace.

    Only interfaces can be modelled here; data types are encoded by
    converters generated for their own crate.
    """

    def type_label(self) -> str:
        alias = self.oracle.external_namespace(self.type.namespace)
        return f"\\{alias}\\{self.oracle.class_name(self.name)}"

    def canonical_name(self) -> str:
        # namespaced so a local `X` and `X` from each other component stay distinct
        return f"External{naming.pascal(self.type.namespace)}_{naming.pascal(self.name)}"

    def imported_converter_name(self) -> str:
        """The converter's name inside the owning component's namespace."""
        return f"FfiConverter{super().canonical_name()}"

    def _local_only(self):
        raise_error("BG1007", name=self.name, namespace=self.type.namespace)

    def write_value(self, value: Any, buf: BufWriter) -> None:
        if self.type.kind is not ExternalKind.INTERFACE:
            self._local_only()
        super().write_value(value, buf)

    def read_value(self, buf: BufReader) -> Any:
        if self.type.kind is not ExternalKind.INTERFACE:
            self._local_only()
        return super().read_value(buf)

    def lower_value(self, value: Any) -> Any:
        if self.type.kind is not ExternalKind.INTERFACE:
            self._local_only()
        return super().lower_value(value)

    def lift_value(self, ffi_value: Any) -> Any:
        if self.type.kind is not ExternalKind.INTERFACE:
            self._local_only()
        return super().lift_value(ffi_value)


class CustomCodeType(NamedCodeType):
    """A builtin with its own name; the wire format is the builtin's."""

    def __init__(self, oracle, type_) -> None:
        super().__init__(oracle, type_)
        self.builtin = oracle.find(type_.builtin)

    @property
    def config(self):
        return self.oracle.custom_type_config(self.name)

    def type_label(self) -> str:
        config = self.config
        if config is not None and config.type_name:
            return config.type_name
        return self.builtin.type_label()

    def children(self) -> list[CodeType]:
        return [self.builtin]

    def literal(self, lit: Literal) -> str:
        rendered = self.builtin.literal(lit)
        config = self.config
        if config is not None and config.into_custom:
            return config.into_custom.replace("{}", rendered)
        return rendered

    def lower_value(self, value: Any) -> Any:
        return self.builtin.lower_value(value)

    def lift_value(self, ffi_value: Any) -> Any:
        return self.builtin.lift_value(ffi_value)

    def write_value(self, value: Any, buf: BufWriter) -> None:
        self.builtin.write_value(value, buf)

    def read_value(self, buf: BufReader) -> Any:
        return self.builtin.read_value(buf)
