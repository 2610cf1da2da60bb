"""The component interface: declarations plus the FFI surface derived from them.

A `ComponentInterface` is the immutable, already-parsed description of one
native component. Besides declared records, enums, objects, callback
interfaces and functions it derives the scaffolding FFI functions, callback
function types and structs that the native side exports, following the
UniFFI naming scheme.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional

from uniffi_bindgen_php.interface.types import (
    Type, Literal, FfiType,
    PrimitiveType, PrimitiveKind, EnumType, RecordType, ObjectType,
    CallbackInterfaceType, OptionalType, SequenceType, MapType,
    ExternalType, ExternalKind, CustomType,
    FfiPrimitive, FfiScalar, FfiRustArcPtr, FfiRustBuffer, FfiCallback,
    FfiStruct, FfiReference, UIntLiteral, IntLiteral,
    RUST_BUFFER, RUST_CALL_STATUS, FOREIGN_BYTES, UINT64, HANDLE, INT8, VOID_POINTER,
)
from uniffi_bindgen_php.internals.errors import raise_error


@dataclass(frozen=True)
class Field:
    name: str
    type: Type
    default: Optional[Literal] = None
    docstring: Optional[str] = None


Argument = Field


@dataclass(frozen=True)
class Record:
    name: str
    fields: tuple[Field, ...] = ()
    docstring: Optional[str] = None

    def as_type(self) -> RecordType:
        return RecordType(self.name)


@dataclass(frozen=True)
class Variant:
    name: str
    fields: tuple[Field, ...] = ()
    discr: Optional[Literal] = None
    docstring: Optional[str] = None


@dataclass(frozen=True)
class Enum:
    name: str
    variants: tuple[Variant, ...] = ()
    docstring: Optional[str] = None

    def as_type(self) -> EnumType:
        return EnumType(self.name)

    @property
    def is_flat(self) -> bool:
        """True when no variant carries fields (rendered as a native PHP enum)."""
        return all(not v.fields for v in self.variants)

    def variant_discr(self, index: int) -> Literal:
        """Discriminant of the variant at `index`.

        Explicit discriminants are used as declared; implicit ones continue
        from the previous variant, starting at 0.
        """
        if not 0 <= index < len(self.variants):
            raise_error("BG2004", enum=self.name, index=index)
        value = -1
        for variant in self.variants[: index + 1]:
            match variant.discr:
                case UIntLiteral(v) | IntLiteral(v):
                    value = v
                case None:
                    value += 1
                case other:
                    raise_error("BG2002", literal=other, type=f"discriminant of {self.name}")
        explicit = self.variants[index].discr
        if explicit is not None:
            return explicit
        return UIntLiteral(value) if value >= 0 else IntLiteral(value)

    def variant_index(self, name: str) -> int:
        for i, variant in enumerate(self.variants):
            if variant.name == name:
                return i
        raise_error("BG2005", enum=self.name, variant=name)


@dataclass(frozen=True)
class Method:
    name: str
    arguments: tuple[Argument, ...] = ()
    return_type: Optional[Type] = None
    throws: Optional[Type] = None
    docstring: Optional[str] = None


@dataclass(frozen=True)
class Constructor:
    name: str = "new"
    arguments: tuple[Argument, ...] = ()
    throws: Optional[Type] = None
    docstring: Optional[str] = None

    @property
    def is_primary(self) -> bool:
        return self.name == "new"


@dataclass(frozen=True)
class Object:
    name: str
    constructors: tuple[Constructor, ...] = ()
    methods: tuple[Method, ...] = ()
    supports_foreign_implementation: bool = False
    docstring: Optional[str] = None

    def as_type(self) -> ObjectType:
        return ObjectType(self.name, self.supports_foreign_implementation)

    def has_callback_interface(self) -> bool:
        return self.supports_foreign_implementation


@dataclass(frozen=True)
class CallbackInterface:
    name: str
    methods: tuple[Method, ...] = ()
    docstring: Optional[str] = None

    def as_type(self) -> CallbackInterfaceType:
        return CallbackInterfaceType(self.name)


@dataclass(frozen=True)
class Function:
    name: str
    arguments: tuple[Argument, ...] = ()
    return_type: Optional[Type] = None
    throws: Optional[Type] = None
    docstring: Optional[str] = None


#
# --- FFI declarations
#

@dataclass(frozen=True)
class FfiArgument:
    name: str
    type: FfiType


@dataclass(frozen=True)
class FfiFunction:
    name: str
    arguments: tuple[FfiArgument, ...] = ()
    return_type: Optional[FfiType] = None
    has_rust_call_status_arg: bool = True


@dataclass(frozen=True)
class FfiCallbackFunction:
    name: str
    arguments: tuple[FfiArgument, ...] = ()
    return_type: Optional[FfiType] = None
    has_rust_call_status_arg: bool = False


@dataclass(frozen=True)
class FfiField:
    name: str
    type: FfiType


@dataclass(frozen=True)
class FfiStructDef:
    name: str
    fields: tuple[FfiField, ...] = ()


FfiDefinition = FfiCallbackFunction | FfiStructDef


def ffi_type_of(t: Type) -> FfiType:
    """Lower an interface type to the FFI type that crosses the boundary."""
    match t:
        case PrimitiveType(kind):
            return _PRIMITIVE_FFI.get(kind, RUST_BUFFER)
        case ObjectType(name):
            return FfiRustArcPtr(name)
        case CallbackInterfaceType():
            return HANDLE
        case ExternalType(name, namespace, ExternalKind.INTERFACE):
            return FfiRustArcPtr(name)
        case ExternalType(namespace=namespace):
            return FfiRustBuffer(namespace)
        case CustomType(builtin=builtin):
            return ffi_type_of(builtin)
        case EnumType() | RecordType() | OptionalType() | SequenceType() | MapType():
            return RUST_BUFFER
    raise_error("BG1001", type=repr(t))


_PRIMITIVE_FFI: dict[PrimitiveKind, FfiType] = {
    PrimitiveKind.INT8: FfiPrimitive(FfiScalar.INT8),
    PrimitiveKind.UINT8: FfiPrimitive(FfiScalar.UINT8),
    PrimitiveKind.INT16: FfiPrimitive(FfiScalar.INT16),
    PrimitiveKind.UINT16: FfiPrimitive(FfiScalar.UINT16),
    PrimitiveKind.INT32: FfiPrimitive(FfiScalar.INT32),
    PrimitiveKind.UINT32: FfiPrimitive(FfiScalar.UINT32),
    PrimitiveKind.INT64: FfiPrimitive(FfiScalar.INT64),
    PrimitiveKind.UINT64: FfiPrimitive(FfiScalar.UINT64),
    PrimitiveKind.FLOAT32: FfiPrimitive(FfiScalar.FLOAT32),
    PrimitiveKind.FLOAT64: FfiPrimitive(FfiScalar.FLOAT64),
    PrimitiveKind.BOOLEAN: INT8,
}


def child_types(t: Type) -> tuple[Type, ...]:
    match t:
        case OptionalType(inner) | SequenceType(inner):
            return (inner,)
        case MapType(key, value):
            return (key, value)
        case CustomType(builtin=builtin):
            return (builtin,)
    return ()


@dataclass
class ComponentInterface:
    namespace: str
    records: list[Record] = field(default_factory=list)
    enums: list[Enum] = field(default_factory=list)
    objects: list[Object] = field(default_factory=list)
    callback_interfaces: list[CallbackInterface] = field(default_factory=list)
    functions: list[Function] = field(default_factory=list)
    custom_types: list[CustomType] = field(default_factory=list)
    docstring: Optional[str] = None

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for decl in [*self.records, *self.enums, *self.objects,
                     *self.callback_interfaces, *self.custom_types]:
            if decl.name in seen:
                raise_error("BG4003", name=decl.name, namespace=self.namespace)
            seen.add(decl.name)

    # --- lookups

    def get_record(self, name: str) -> Record:
        return self._lookup(self.records, name)

    def get_enum(self, name: str) -> Enum:
        return self._lookup(self.enums, name)

    def get_object(self, name: str) -> Object:
        return self._lookup(self.objects, name)

    def get_callback_interface(self, name: str) -> CallbackInterface:
        return self._lookup(self.callback_interfaces, name)

    def get_custom_type(self, name: str) -> CustomType:
        return self._lookup(self.custom_types, name)

    def _lookup(self, items, name: str):
        for item in items:
            if item.name == name:
                return item
        raise_error("BG1006", name=name, namespace=self.namespace)

    # --- type walking

    def _declared_signatures(self) -> Iterator[Optional[Type]]:
        for rec in self.records:
            for f in rec.fields:
                yield f.type
        for enum in self.enums:
            yield enum.as_type()
            for variant in enum.variants:
                for f in variant.fields:
                    yield f.type
        for obj in self.objects:
            yield obj.as_type()
            for ctor in obj.constructors:
                yield from (a.type for a in ctor.arguments)
                yield ctor.throws
            for meth in obj.methods:
                yield from self._callable_types(meth)
        for cbi in self.callback_interfaces:
            yield cbi.as_type()
            for meth in cbi.methods:
                yield from self._callable_types(meth)
        for func in self.functions:
            yield from self._callable_types(func)
        for custom in self.custom_types:
            yield custom

    @staticmethod
    def _callable_types(c: Method | Function) -> Iterator[Optional[Type]]:
        yield from (a.type for a in c.arguments)
        yield c.return_type
        yield c.throws

    def iter_types(self) -> Iterator[Type]:
        """Every type referenced by the interface, inner types before their containers.

        Records are yielded where declared, so a record always appears even if
        no function references it.
        """
        seen: set[Type] = set()

        def visit(t: Type) -> Iterator[Type]:
            if t in seen:
                return
            for child in child_types(t):
                yield from visit(child)
            seen.add(t)
            yield t

        for rec in self.records:
            for f in rec.fields:
                yield from visit(f.type)
            yield from visit(rec.as_type())
        for t in self._declared_signatures():
            if t is not None:
                yield from visit(t)

    def error_types(self) -> list[Type]:
        errors: list[Type] = []
        for t in self._throws_types():
            if t not in errors:
                errors.append(t)
        return errors

    def _throws_types(self) -> Iterator[Type]:
        for obj in self.objects:
            for ctor in obj.constructors:
                if ctor.throws is not None:
                    yield ctor.throws
            for meth in obj.methods:
                if meth.throws is not None:
                    yield meth.throws
        for func in self.functions:
            if func.throws is not None:
                yield func.throws

    def is_name_used_as_error(self, name: str) -> bool:
        return any(getattr(t, "name", None) == name for t in self.error_types())

    # --- FFI surface

    def _ffi_prefix(self) -> str:
        return f"uniffi_{self.namespace}_fn"

    def ffi_rustbuffer_alloc(self) -> FfiFunction:
        return FfiFunction(f"ffi_{self.namespace}_rustbuffer_alloc",
                           (FfiArgument("size", UINT64),), RUST_BUFFER)

    def ffi_rustbuffer_from_bytes(self) -> FfiFunction:
        return FfiFunction(f"ffi_{self.namespace}_rustbuffer_from_bytes",
                           (FfiArgument("bytes", FOREIGN_BYTES),), RUST_BUFFER)

    def ffi_rustbuffer_free(self) -> FfiFunction:
        return FfiFunction(f"ffi_{self.namespace}_rustbuffer_free",
                           (FfiArgument("buf", RUST_BUFFER),), None)

    def ffi_rustbuffer_reserve(self) -> FfiFunction:
        return FfiFunction(f"ffi_{self.namespace}_rustbuffer_reserve",
                           (FfiArgument("buf", RUST_BUFFER), FfiArgument("additional", UINT64)),
                           RUST_BUFFER)

    def ffi_function_for(self, func: Function) -> FfiFunction:
        return FfiFunction(
            f"{self._ffi_prefix()}_func_{func.name.lower()}",
            self._ffi_arguments(func.arguments),
            None if func.return_type is None else ffi_type_of(func.return_type),
        )

    def ffi_constructor_for(self, obj: Object, ctor: Constructor) -> FfiFunction:
        return FfiFunction(
            f"{self._ffi_prefix()}_constructor_{obj.name.lower()}_{ctor.name.lower()}",
            self._ffi_arguments(ctor.arguments),
            FfiRustArcPtr(obj.name),
        )

    def ffi_method_for(self, obj: Object, meth: Method) -> FfiFunction:
        return FfiFunction(
            f"{self._ffi_prefix()}_method_{obj.name.lower()}_{meth.name.lower()}",
            (FfiArgument("ptr", FfiRustArcPtr(obj.name)), *self._ffi_arguments(meth.arguments)),
            None if meth.return_type is None else ffi_type_of(meth.return_type),
        )

    def ffi_object_free(self, obj: Object) -> FfiFunction:
        return FfiFunction(f"{self._ffi_prefix()}_free_{obj.name.lower()}",
                           (FfiArgument("ptr", FfiRustArcPtr(obj.name)),), None)

    def ffi_object_clone(self, obj: Object) -> FfiFunction:
        return FfiFunction(f"{self._ffi_prefix()}_clone_{obj.name.lower()}",
                           (FfiArgument("ptr", FfiRustArcPtr(obj.name)),), FfiRustArcPtr(obj.name))

    def ffi_init_callback_vtable(self, name: str) -> FfiFunction:
        return FfiFunction(
            f"{self._ffi_prefix()}_init_callback_vtable_{name.lower()}",
            (FfiArgument("vtable", FfiReference(FfiStruct(vtable_struct_name(name)))),),
            None,
            has_rust_call_status_arg=False,
        )

    @staticmethod
    def _ffi_arguments(arguments: tuple[Argument, ...]) -> tuple[FfiArgument, ...]:
        return tuple(FfiArgument(a.name, ffi_type_of(a.type)) for a in arguments)

    def _foreign_implementable(self) -> Iterator[tuple[str, tuple[Method, ...]]]:
        for obj in self.objects:
            if obj.has_callback_interface():
                yield obj.name, obj.methods
        for cbi in self.callback_interfaces:
            yield cbi.name, cbi.methods

    def iter_ffi_function_definitions(self) -> Iterator[FfiFunction]:
        yield self.ffi_rustbuffer_alloc()
        yield self.ffi_rustbuffer_from_bytes()
        yield self.ffi_rustbuffer_free()
        yield self.ffi_rustbuffer_reserve()
        for obj in self.objects:
            yield self.ffi_object_clone(obj)
            yield self.ffi_object_free(obj)
            for ctor in obj.constructors:
                yield self.ffi_constructor_for(obj, ctor)
            for meth in obj.methods:
                yield self.ffi_method_for(obj, meth)
        for name, _methods in self._foreign_implementable():
            yield self.ffi_init_callback_vtable(name)
        for func in self.functions:
            yield self.ffi_function_for(func)

    def ffi_definitions(self) -> Iterator[FfiDefinition]:
        """Callback function types and structs, each before anything that uses it."""
        yield FfiCallbackFunction("CallbackInterfaceFree", (FfiArgument("handle", UINT64),))
        for name, methods in self._foreign_implementable():
            callbacks = [self._vtable_method(name, i, meth) for i, meth in enumerate(methods)]
            yield from callbacks
            fields = [FfiField(meth.name, FfiCallback(cb.name)) for meth, cb in zip(methods, callbacks)]
            fields.append(FfiField("uniffi_free", FfiCallback("CallbackInterfaceFree")))
            yield FfiStructDef(vtable_struct_name(name), tuple(fields))

    @staticmethod
    def _vtable_method(name: str, index: int, meth: Method) -> FfiCallbackFunction:
        out_return = VOID_POINTER if meth.return_type is None \
            else FfiReference(ffi_type_of(meth.return_type))
        return FfiCallbackFunction(
            f"CallbackInterface{name}Method{index}",
            (
                FfiArgument("uniffi_handle", UINT64),
                *ComponentInterface._ffi_arguments(meth.arguments),
                FfiArgument("uniffi_out_return", out_return),
                FfiArgument("uniffi_out_call_status", FfiReference(RUST_CALL_STATUS)),
            ),
        )


def vtable_struct_name(name: str) -> str:
    return f"VTableCallbackInterface{name}"
