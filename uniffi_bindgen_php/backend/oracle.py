"""The PHP code oracle: maps every interface type to its CodeType.

All naming and ABI questions the templates ask go through here, so the
oracle is the single point that knows PHP's spelling of everything. It
holds no state besides the immutable generation context and a cache of
CodeTypes, which are pure functions of their type.
"""
from __future__ import annotations

from typing import Optional

from uniffi_bindgen_php.backend import ffi, naming
from uniffi_bindgen_php.backend.context import GenerationContext
from uniffi_bindgen_php.backend.types.base import CodeType
from uniffi_bindgen_php.backend.types.compounds import OptionalCodeType, SequenceCodeType, MapCodeType
from uniffi_bindgen_php.backend.types.named import (
    EnumCodeType, RecordCodeType, ObjectCodeType, CallbackInterfaceCodeType,
    ExternalCodeType, CustomCodeType,
)
from uniffi_bindgen_php.backend.types.primitives import (
    IntegerCodeType, FloatCodeType, BooleanCodeType, StringCodeType, BytesCodeType,
    TimestampCodeType, DurationCodeType,
)
from uniffi_bindgen_php.config import CustomTypeConfig
from uniffi_bindgen_php.interface.component import ComponentInterface, Object
from uniffi_bindgen_php.interface.types import (
    Type, Literal, FfiType, PrimitiveType, PrimitiveKind, EnumType, RecordType, ObjectType,
    CallbackInterfaceType, OptionalType, SequenceType, MapType, ExternalType, CustomType,
)
from uniffi_bindgen_php.internals.errors import raise_error

_PRIMITIVE_CODE_TYPES: dict[PrimitiveKind, type[CodeType]] = {
    PrimitiveKind.FLOAT32: FloatCodeType,
    PrimitiveKind.FLOAT64: FloatCodeType,
    PrimitiveKind.BOOLEAN: BooleanCodeType,
    PrimitiveKind.STRING: StringCodeType,
    PrimitiveKind.BYTES: BytesCodeType,
    PrimitiveKind.TIMESTAMP: TimestampCodeType,
    PrimitiveKind.DURATION: DurationCodeType,
}


class PHPCodeOracle:
    def __init__(self, ctx: GenerationContext) -> None:
        self.ctx = ctx
        self._cache: dict[Type, CodeType] = {}

    @property
    def ci(self) -> ComponentInterface:
        return self.ctx.ci

    def find(self, t: Type) -> CodeType:
        """Return the CodeType for `t`.

        Raises:
            CoverageError: BG1001 for anything that is not an interface type.
        """
        try:
            cached = self._cache.get(t)
        except TypeError:
            raise_error("BG1001", type=repr(t))
        if cached is None:
            cached = self._create(t)
            self._cache[t] = cached
        return cached

    def _create(self, t: Type) -> CodeType:
        match t:
            case PrimitiveType(kind) if kind.is_integer:
                return IntegerCodeType(self, t)
            case PrimitiveType(kind):
                return _PRIMITIVE_CODE_TYPES[kind](self, t)
            case EnumType():
                return EnumCodeType(self, t)
            case RecordType():
                return RecordCodeType(self, t)
            case ObjectType():
                return ObjectCodeType(self, t)
            case CallbackInterfaceType():
                return CallbackInterfaceCodeType(self, t)
            case OptionalType():
                return OptionalCodeType(self, t)
            case SequenceType():
                return SequenceCodeType(self, t)
            case MapType():
                return MapCodeType(self, t)
            case ExternalType():
                return ExternalCodeType(self, t)
            case CustomType():
                return CustomCodeType(self, t)
        raise_error("BG1001", type=repr(t))

    # --- type queries

    def type_label(self, t: Type) -> str:
        return self.find(t).type_label()

    def canonical_name(self, t: Type) -> str:
        return self.find(t).canonical_name()

    def ffi_converter_name(self, t: Type) -> str:
        return self.find(t).ffi_converter_name()

    def literal(self, lit: Literal, t: Type) -> str:
        return self.find(t).literal(lit)

    def custom_type_config(self, name: str) -> Optional[CustomTypeConfig]:
        return self.ctx.custom_type_config(name)

    def external_namespace(self, namespace: str) -> str:
        """PHP namespace holding the bindings of another component."""
        return self.ctx.external_package(namespace) or naming.pascal(namespace)

    # --- identifiers

    def class_name(self, name: str) -> str:
        return naming.class_name(name)

    def fn_name(self, name: str) -> str:
        return naming.fn_name(name)

    def var_name(self, name: str) -> str:
        return naming.var_name(name)

    def arg_name(self, name: str) -> str:
        return naming.arg_name(name)

    def enum_variant_name(self, name: str) -> str:
        return naming.enum_variant_name(name)

    def object_names(self, obj: Object) -> tuple[str, str]:
        """(interface name, implementation class name) for an object.

        Objects PHP code may implement keep the plain name for the interface
        users implement; otherwise the plain name goes to the concrete class.
        """
        class_name = self.class_name(obj.name)
        if obj.supports_foreign_implementation:
            return class_name, f"{class_name}Impl"
        return f"{class_name}Interface", class_name

    # --- FFI

    def ffi_type_label(self, ffi_type: FfiType) -> str:
        return ffi.ffi_type_label(ffi_type)

    def header_type_label(self, ffi_type: FfiType) -> str:
        return ffi.header_type_label(ffi_type)

    def ffi_default_value(self, return_type: Optional[FfiType]) -> str:
        return ffi.ffi_default_value(return_type)

    def ffi_callback_name(self, name: str) -> str:
        return ffi.ffi_callback_name(name)

    def ffi_struct_name(self, name: str) -> str:
        return ffi.ffi_struct_name(name)

    def if_guard_name(self, name: str) -> str:
        return ffi.if_guard_name(name)
