"""PHP source rendering.

`TypeRenderer` produces the type-helper fragment: one converter class per
distinct type, plus the PHP declaration of every record, enum, object and
callback interface. `PhpWrapper` assembles the complete module around it:
the `FFI::cdef()` declaration block, the runtime support code and the
top-level functions.

Both consult a `HelperRegistry` before emitting a helper, and the type walk
is children-first, so every helper appears exactly once and after the
helpers it refers to.
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from importlib import resources
from typing import Iterator, Optional

from uniffi_bindgen_php.backend import ffi, filters, naming
from uniffi_bindgen_php.backend.context import GenerationContext, HelperRegistry
from uniffi_bindgen_php.backend.oracle import PHPCodeOracle
from uniffi_bindgen_php.backend.types.base import CodeType
from uniffi_bindgen_php.backend.types.compounds import OptionalCodeType, SequenceCodeType, MapCodeType
from uniffi_bindgen_php.backend.types.named import (
    NamedCodeType, EnumCodeType, RecordCodeType, ObjectCodeType, CallbackInterfaceCodeType,
    ExternalCodeType, CustomCodeType,
)
from uniffi_bindgen_php.backend.types.primitives import (
    IntegerCodeType, FloatCodeType, BooleanCodeType, StringCodeType, BytesCodeType,
    TimestampCodeType, DurationCodeType,
)
from uniffi_bindgen_php.interface.component import (
    Enum, Record, Object, CallbackInterface, Constructor, Method, Function, Field,
    FfiFunction, FfiCallbackFunction, FfiStructDef, FfiDefinition,
    ffi_type_of, vtable_struct_name,
)
from uniffi_bindgen_php.interface.types import Type, PrimitiveKind
from uniffi_bindgen_php.internals.errors import entity_scope

# Buffer method suffix per fixed-width kind (UniffiWriter::writeI32, UniffiReader::readI32, ...)
_BUF_SUFFIX: dict[PrimitiveKind, str] = {
    PrimitiveKind.INT8: "I8",
    PrimitiveKind.UINT8: "U8",
    PrimitiveKind.INT16: "I16",
    PrimitiveKind.UINT16: "U16",
    PrimitiveKind.INT32: "I32",
    PrimitiveKind.UINT32: "U32",
    PrimitiveKind.INT64: "I64",
    PrimitiveKind.UINT64: "U64",
    PrimitiveKind.FLOAT32: "F32",
    PrimitiveKind.FLOAT64: "F64",
}

# Struct member names the C parser in ext/ffi would reject
C_KEYWORDS = frozenset({
    "auto", "break", "case", "char", "const", "continue", "default", "do", "double",
    "else", "enum", "extern", "float", "for", "goto", "if", "inline", "int", "long",
    "register", "restrict", "return", "short", "signed", "sizeof", "static", "struct",
    "switch", "typedef", "union", "unsigned", "void", "volatile", "while",
})

CDATA = ffi.CDATA

# Fixed prelude of the cdef block; layouts match LayoutModel's RustBuffer, ForeignBytes, RustCallStatus
_CDEF_PRELUDE = [
    "typedef struct RustBuffer { uint64_t capacity; uint64_t len; uint8_t *data; } RustBuffer;",
    "typedef struct ForeignBytes { int32_t len; const uint8_t *data; } ForeignBytes;",
    "typedef struct RustCallStatus { int8_t code; RustBuffer errorBuf; } RustCallStatus;",
]


def c_member_name(name: str) -> str:
    return f"{name}_" if name in C_KEYWORDS else name


def runtime_source() -> str:
    return resources.files("uniffi_bindgen_php").joinpath("templates/Runtime.php").read_text(encoding="utf-8")


@dataclass
class PhpCodeBuilder:
    """Line buffer with indentation tracking."""
    lines: list[str] = field(default_factory=list)
    indent_level: int = 0
    indent_str: str = "    "

    def emit(self, line: str = "") -> None:
        self.lines.append(self.indent_str * self.indent_level + line if line else "")

    def emit_lines(self, lines: list[str]) -> None:
        for line in lines:
            self.emit(line)

    def emit_raw(self, text: str) -> None:
        """Append pre-formatted text, prefixed with the current indentation."""
        for line in text.splitlines():
            self.emit(line)

    @contextmanager
    def indented(self) -> Iterator[None]:
        self.indent_level += 1
        try:
            yield
        finally:
            self.indent_level -= 1

    @contextmanager
    def block(self, header: str) -> Iterator[None]:
        """`header`, a brace on its own line, the body, and the closing brace."""
        self.emit(header)
        self.emit("{")
        with self.indented():
            yield
        self.emit("}")

    def doc(self, text: Optional[str]) -> None:
        if text:
            self.emit_raw(filters.docstring(text))

    def to_string(self) -> str:
        return "\n".join(self.lines) + "\n"


class TypeRenderer:
    def __init__(self, oracle: PHPCodeOracle, registry: Optional[HelperRegistry] = None) -> None:
        self.oracle = oracle
        self.ci = oracle.ci
        self.registry = registry if registry is not None else HelperRegistry()
        self.out = PhpCodeBuilder()
        # `use` statements required by external and custom types
        self.imports: list[str] = []
        # vtable classes UniffiLib must register once the library is loaded
        self.vtables: list[str] = []
        self._pending: set[str] = set()

    def render(self) -> str:
        for t in self.ci.iter_types():
            self.add_type(t)
        return self.out.to_string()

    def add_type(self, t: Type) -> None:
        self.emit(self.oracle.find(t))

    def emit(self, code_type: CodeType) -> None:
        name = code_type.ffi_converter_name()
        # a recursive record reaches itself again through an optional or sequence
        if name in self._pending:
            return
        self._pending.add(name)
        try:
            for child in code_type.children():
                self.emit(child)
        finally:
            self._pending.discard(name)
        if not self.registry.add(name):
            return
        entity = code_type.name if isinstance(code_type, NamedCodeType) else code_type.canonical_name()
        with entity_scope(entity):
            self._helper(code_type)

    def _helper(self, code_type: CodeType) -> None:
        match code_type:
            case IntegerCodeType() | FloatCodeType():
                self._scalar_converter(code_type)
            case BooleanCodeType():
                self._boolean_converter(code_type)
            case StringCodeType():
                self._string_converter(code_type)
            case BytesCodeType():
                self._bytes_converter(code_type)
            case TimestampCodeType():
                self._timestamp_converter(code_type)
            case DurationCodeType():
                self._duration_converter(code_type)
            case OptionalCodeType():
                self._optional_converter(code_type)
            case SequenceCodeType():
                self._sequence_converter(code_type)
            case MapCodeType():
                self._map_converter(code_type)
            case RecordCodeType():
                self._record(code_type, self.ci.get_record(code_type.name))
            case EnumCodeType():
                self._enum(code_type, self.ci.get_enum(code_type.name))
            case ObjectCodeType():
                self._object(code_type, self.ci.get_object(code_type.name))
            case CallbackInterfaceCodeType():
                self._callback_interface(code_type, self.ci.get_callback_interface(code_type.name))
            case ExternalCodeType():
                alias = self.oracle.external_namespace(code_type.type.namespace)
                self._import(f"{alias}\\{code_type.imported_converter_name()} as {code_type.ffi_converter_name()}")
            case CustomCodeType():
                self._custom_converter(code_type)

    def _import(self, name: str) -> None:
        if name not in self.imports:
            self.imports.append(name)

    # --- converter skeletons

    def _converter(self, code_type: CodeType, lift: list[str], lower: list[str],
                   read: list[str], write: list[str], ffi_label: str) -> None:
        label = code_type.type_label()
        out = self.out
        out.emit()
        with out.block(f"final class {code_type.ffi_converter_name()}"):
            with out.block(f"public static function lift({ffi_label} $value): {label}"):
                out.emit_lines(lift)
            out.emit()
            with out.block(f"public static function lower({label} $value): {ffi_label}"):
                out.emit_lines(lower)
            out.emit()
            with out.block(f"public static function read(UniffiReader $buf): {label}"):
                out.emit_lines(read)
            out.emit()
            with out.block(f"public static function write({label} $value, UniffiWriter $buf): void"):
                out.emit_lines(write)

    def _buffer_converter(self, code_type: CodeType, read: list[str], write: list[str]) -> None:
        """Converter for a type that crosses the boundary serialized in a RustBuffer."""
        self._converter(
            code_type,
            lift=[
                "$reader = new UniffiReader(RustBuffer::consume($value));",
                "$result = self::read($reader);",
                "$reader->assertEmpty();",
                "return $result;",
            ],
            lower=[
                "$writer = new UniffiWriter();",
                "self::write($value, $writer);",
                "return RustBuffer::fromBytes($writer->bytes());",
            ],
            read=read,
            write=write,
            ffi_label=CDATA,
        )

    # --- builtins

    def _scalar_converter(self, code_type: CodeType) -> None:
        suffix = _BUF_SUFFIX[code_type.kind]
        self._converter(
            code_type,
            lift=["return $value;"],
            lower=["return $value;"],
            read=[f"return $buf->read{suffix}();"],
            write=[f"$buf->write{suffix}($value);"],
            ffi_label=code_type.type_label(),
        )

    def _boolean_converter(self, code_type: CodeType) -> None:
        self._converter(
            code_type,
            lift=["return $value !== 0;"],
            lower=["return $value ? 1 : 0;"],
            read=["return self::lift($buf->readI8());"],
            write=["$buf->writeI8(self::lower($value));"],
            ffi_label="int",
        )

    def _string_converter(self, code_type: CodeType) -> None:
        # bare UTF-8 bytes at the top level, length-prefixed inside other values
        self._converter(
            code_type,
            lift=["return RustBuffer::consume($value);"],
            lower=["return RustBuffer::fromBytes($value);"],
            read=["return $buf->readBytes($buf->readI32());"],
            write=["$buf->writeI32(strlen($value));", "$buf->writeBytes($value);"],
            ffi_label=CDATA,
        )

    def _bytes_converter(self, code_type: CodeType) -> None:
        self._buffer_converter(
            code_type,
            read=["return $buf->readBytes($buf->readI32());"],
            write=["$buf->writeI32(strlen($value));", "$buf->writeBytes($value);"],
        )

    def _timestamp_converter(self, code_type: CodeType) -> None:
        self._buffer_converter(
            code_type,
            read=[
                "$seconds = $buf->readI64();",
                "$micros = intdiv($buf->readU32(), 1000);",
                "$value = new \\DateTimeImmutable('@' . $seconds);",
                "return $value->modify(($seconds >= 0 ? '+' : '-') . $micros . ' microseconds');",
            ],
            write=[
                "$seconds = $value->getTimestamp();",
                "$micros = (int) $value->format('u');",
                "// nanos count away from the epoch, in the direction of the seconds",
                "if ($seconds < 0 && $micros > 0) {",
                "    $seconds += 1;",
                "    $micros = 1000000 - $micros;",
                "}",
                "$buf->writeI64($seconds);",
                "$buf->writeU32($micros * 1000);",
            ],
        )

    def _duration_converter(self, code_type: CodeType) -> None:
        self._buffer_converter(
            code_type,
            read=[
                "$seconds = $buf->readU64();",
                "$micros = intdiv($buf->readU32(), 1000);",
                "$value = new \\DateInterval('PT' . $seconds . 'S');",
                "$value->f = $micros / 1000000;",
                "return $value;",
            ],
            write=[
                "if ($value->invert === 1 || $value->y !== 0 || $value->m !== 0) {",
                "    throw new UniffiInternalError('durations must be non-negative and of fixed length');",
                "}",
                "$buf->writeU64($value->d * 86400 + $value->h * 3600 + $value->i * 60 + $value->s);",
                "$buf->writeU32((int) round($value->f * 1000000) * 1000);",
            ],
        )

    # --- compounds

    def _optional_converter(self, code_type: OptionalCodeType) -> None:
        inner = code_type.inner.ffi_converter_name()
        self._buffer_converter(
            code_type,
            read=[
                "return match ($buf->readI8()) {",
                "    0 => null,",
                f"    1 => {inner}::read($buf),",
                "    default => throw new UniffiInternalError('unexpected optional tag'),",
                "};",
            ],
            write=[
                "if ($value === null) {",
                "    $buf->writeI8(0);",
                "    return;",
                "}",
                "$buf->writeI8(1);",
                f"{inner}::write($value, $buf);",
            ],
        )

    def _sequence_converter(self, code_type: SequenceCodeType) -> None:
        inner = code_type.inner.ffi_converter_name()
        self._buffer_converter(
            code_type,
            read=[
                "$count = $buf->readI32();",
                "$items = [];",
                "for ($i = 0; $i < $count; $i++) {",
                f"    $items[] = {inner}::read($buf);",
                "}",
                "return $items;",
            ],
            write=[
                "$buf->writeI32(count($value));",
                "foreach ($value as $item) {",
                f"    {inner}::write($item, $buf);",
                "}",
            ],
        )

    def _map_converter(self, code_type: MapCodeType) -> None:
        key = code_type.key.ffi_converter_name()
        value = code_type.value.ffi_converter_name()
        self._buffer_converter(
            code_type,
            read=[
                "$count = $buf->readI32();",
                "$items = [];",
                "for ($i = 0; $i < $count; $i++) {",
                f"    $k = {key}::read($buf);",
                f"    $items[$k] = {value}::read($buf);",
                "}",
                "return $items;",
            ],
            write=[
                "$buf->writeI32(count($value));",
                "foreach ($value as $k => $v) {",
                f"    {key}::write($k, $buf);",
                f"    {value}::write($v, $buf);",
                "}",
            ],
        )

    # --- records and enums

    def _constructor(self, fields: tuple[Field, ...], parent_call: Optional[str] = None) -> None:
        """Constructor promoting every field to a public property."""
        out = self.out
        if not fields and parent_call is None:
            return
        out.emit("public function __construct(")
        with out.indented():
            for f in fields:
                with entity_scope(f.name):
                    param = f"public {self.oracle.type_label(f.type)} ${self.oracle.var_name(f.name)}"
                    if f.default is not None:
                        param += f" = {self.oracle.literal(f.default, f.type)}"
                out.emit(f"{param},")
        out.emit(") {")
        if parent_call is not None:
            out.emit(f"    {parent_call}")
        out.emit("}")

    def _read_fields(self, fields: tuple[Field, ...]) -> str:
        return ", ".join(f"{self.oracle.find(f.type).read()}($buf)" for f in fields)

    def _write_fields(self, fields: tuple[Field, ...]) -> list[str]:
        return [f"{self.oracle.find(f.type).write()}($value->{self.oracle.var_name(f.name)}, $buf);"
                for f in fields]

    def _record(self, code_type: RecordCodeType, record: Record) -> None:
        cls = code_type.type_label()
        out = self.out
        out.emit()
        out.doc(record.docstring)
        with out.block(f"final class {cls}"):
            self._constructor(record.fields)
        self._buffer_converter(
            code_type,
            read=[f"return new {cls}({self._read_fields(record.fields)});"],
            write=self._write_fields(record.fields),
        )

    def variant_class_name(self, enum: Enum, variant: str) -> str:
        return f"{self.oracle.class_name(enum.name)}{naming.pascal(variant)}"

    def _enum(self, code_type: EnumCodeType, enum: Enum) -> None:
        is_error = self.ci.is_name_used_as_error(enum.name)
        if enum.is_flat and not is_error:
            self._flat_enum(code_type, enum)
        else:
            self._class_enum(code_type, enum, is_error)

    def _flat_enum(self, code_type: EnumCodeType, enum: Enum) -> None:
        cls = code_type.type_label()
        cases = [f"{cls}::{self.oracle.enum_variant_name(v.name)}" for v in enum.variants]
        out = self.out
        out.emit()
        out.doc(enum.docstring)
        with out.block(f"enum {cls}: int"):
            for i, variant in enumerate(enum.variants):
                out.doc(variant.docstring)
                out.emit(f"case {self.oracle.enum_variant_name(variant.name)} = "
                         f"{filters.variant_discr_literal(enum, i)};")
        self._buffer_converter(
            code_type,
            read=[
                "return match ($buf->readI32()) {",
                *(f"    {i + 1} => {case}," for i, case in enumerate(cases)),
                "    default => throw new UniffiInternalError('unexpected enum variant'),",
                "};",
            ],
            write=[
                "$buf->writeI32(match ($value) {",
                *(f"    {case} => {i + 1}," for i, case in enumerate(cases)),
                "});",
            ],
        )

    def _class_enum(self, code_type: EnumCodeType, enum: Enum, is_error: bool) -> None:
        """Enums with fields, and every error enum: a base class with one subclass per variant."""
        cls = code_type.type_label()
        out = self.out
        out.emit()
        out.doc(enum.docstring)
        with out.block(f"abstract class {cls} extends \\Exception" if is_error else f"abstract class {cls}"):
            pass
        read = ["return match ($buf->readI32()) {"]
        write = []
        for i, variant in enumerate(enum.variants):
            variant_cls = self.variant_class_name(enum, variant.name)
            out.emit()
            out.doc(variant.docstring)
            with out.block(f"final class {variant_cls} extends {cls}"):
                parent = f"parent::__construct('{variant.name}');" if is_error else None
                with entity_scope(variant.name):
                    self._constructor(variant.fields, parent)
            read.append(f"    {i + 1} => new {variant_cls}({self._read_fields(variant.fields)}),")
            write.append(f"if ($value instanceof {variant_cls}) {{")
            write.append(f"    $buf->writeI32({i + 1});")
            write.extend(f"    {line}" for line in self._write_fields(variant.fields))
            write.append("    return;")
            write.append("}")
        read.append("    default => throw new UniffiInternalError('unexpected enum variant'),")
        read.append("};")
        write.append("throw new UniffiInternalError('unknown variant ' . $value::class);")
        self._buffer_converter(code_type, read=read, write=write)

    # --- calls

    def rust_call(self, ffi_func: FfiFunction, args: list[str], throws: Optional[Type]) -> str:
        """`uniffiRustCall(...)` expression invoking `ffi_func` with lowered `args`."""
        call_args = ", ".join([*args, "$uniffiStatus"])
        expr = f"uniffiRustCall(fn ({CDATA} $uniffiStatus) => UniffiLib::get()->{ffi_func.name}({call_args})"
        if throws is not None:
            expr += f", [{self.oracle.find(throws).ffi_error_converter_name()}::class, 'lift']"
        return expr + ")"

    def call_statement(self, ffi_func: FfiFunction, args: list[str],
                       return_type: Optional[Type], throws: Optional[Type]) -> str:
        call = self.rust_call(ffi_func, args, throws)
        if return_type is None:
            return f"{call};"
        return f"return {self.oracle.find(return_type).lift()}({call});"

    def signature(self, prefix: str, name: str, arguments: tuple[Field, ...],
                  return_type: Optional[Type]) -> str:
        with entity_scope(name):
            params = filters.param_list(self.oracle, arguments)
        return (f"{prefix} {self.oracle.fn_name(name)}({params}): "
                f"{filters.return_type_name(self.oracle, return_type)}")

    # --- objects

    def _object(self, code_type: ObjectCodeType, obj: Object) -> None:
        interface, impl = self.oracle.object_names(obj)
        out = self.out
        out.emit()
        out.doc(obj.docstring)
        with out.block(f"interface {interface}"):
            for meth in obj.methods:
                out.doc(meth.docstring)
                out.emit(f"{self.signature('public function', meth.name, meth.arguments, meth.return_type)};")
        out.emit()
        with out.block(f"final class {impl} implements {interface}"):
            out.emit(f"private {CDATA} $handle;")
            for ctor in obj.constructors:
                out.emit()
                self._object_constructor(obj, ctor)
            out.emit()
            with out.block(f"public static function uniffiFromHandle({CDATA} $handle): self"):
                out.emit("$obj = (new \\ReflectionClass(self::class))->newInstanceWithoutConstructor();")
                out.emit("$obj->handle = $handle;")
                out.emit("return $obj;")
            out.emit()
            with out.block(f"public function uniffiCloneHandle(): {CDATA}"):
                out.emit(f"return {self.rust_call(self.ci.ffi_object_clone(obj), ['$this->handle'], None)};")
            out.emit()
            with out.block("public function __destruct()"):
                out.emit(self.call_statement(self.ci.ffi_object_free(obj), ["$this->handle"], None, None))
            for meth in obj.methods:
                out.emit()
                out.doc(meth.docstring)
                with out.block(self.signature("public function", meth.name, meth.arguments, meth.return_type)):
                    args = ["$this->uniffiCloneHandle()", *filters.lowered_args(self.oracle, meth.arguments)]
                    out.emit(self.call_statement(self.ci.ffi_method_for(obj, meth), args,
                                                 meth.return_type, meth.throws))
        self._object_converter(code_type, obj, interface, impl)

    def _object_constructor(self, obj: Object, ctor: Constructor) -> None:
        out = self.out
        out.doc(ctor.docstring)
        with entity_scope(ctor.name):
            params = filters.param_list(self.oracle, ctor.arguments)
        call = self.rust_call(self.ci.ffi_constructor_for(obj, ctor),
                              filters.lowered_args(self.oracle, ctor.arguments), ctor.throws)
        if ctor.is_primary:
            with out.block(f"public function __construct({params})"):
                out.emit(f"$this->handle = {call};")
        else:
            with out.block(f"public static function {self.oracle.fn_name(ctor.name)}({params}): self"):
                out.emit(f"return self::uniffiFromHandle({call});")

    def _object_converter(self, code_type: ObjectCodeType, obj: Object, interface: str, impl: str) -> None:
        name = code_type.ffi_converter_name()
        out = self.out
        out.emit()
        with out.block(f"final class {name}"):
            if obj.supports_foreign_implementation:
                self._handle_map_accessor()
            with out.block(f"public static function lift({CDATA} $value): {interface}"):
                out.emit(f"return {impl}::uniffiFromHandle($value);")
            out.emit()
            with out.block(f"public static function lower({interface} $value): {CDATA}"):
                with out.block(f"if ($value instanceof {impl})"):
                    out.emit("return $value->uniffiCloneHandle();")
                if obj.supports_foreign_implementation:
                    out.emit("return UniffiLib::get()->cast('void*', self::handleMap()->insert($value));")
                else:
                    out.emit(f"throw new UniffiInternalError('expected an instance of {impl}');")
            out.emit()
            with out.block(f"public static function read(UniffiReader $buf): {interface}"):
                out.emit("return self::lift(UniffiLib::get()->cast('void*', $buf->readU64()));")
            out.emit()
            with out.block(f"public static function write({interface} $value, UniffiWriter $buf): void"):
                out.emit("$buf->writeU64(\\FFI::cast('uintptr_t', self::lower($value))->cdata);")
        if self.ci.is_name_used_as_error(obj.name):
            out.emit()
            with out.block(f"final class {code_type.ffi_error_converter_name()}"):
                with out.block(f"public static function lift({CDATA} $value): \\Throwable"):
                    out.emit("$reader = new UniffiReader(RustBuffer::consume($value));")
                    out.emit(f"return new UniffiObjectError({name}::read($reader));")
        if obj.supports_foreign_implementation:
            self._vtable(obj.name, obj.methods, f"{name}::handleMap()")

    def _handle_map_accessor(self) -> None:
        out = self.out
        out.emit("private static ?UniffiHandleMap $handleMap = null;")
        out.emit()
        with out.block("public static function handleMap(): UniffiHandleMap"):
            out.emit("return self::$handleMap ??= new UniffiHandleMap();")
        out.emit()

    # --- callback interfaces

    def _callback_interface(self, code_type: CallbackInterfaceCodeType, cbi: CallbackInterface) -> None:
        cls = code_type.type_label()
        name = code_type.ffi_converter_name()
        out = self.out
        out.emit()
        out.doc(cbi.docstring)
        with out.block(f"interface {cls}"):
            for meth in cbi.methods:
                out.doc(meth.docstring)
                out.emit(f"{self.signature('public function', meth.name, meth.arguments, meth.return_type)};")
        out.emit()
        with out.block(f"final class {name}"):
            self._handle_map_accessor()
            with out.block(f"public static function lift(int $value): {cls}"):
                out.emit("return self::handleMap()->get($value);")
            out.emit()
            with out.block(f"public static function lower({cls} $value): int"):
                out.emit("return self::handleMap()->insert($value);")
            out.emit()
            with out.block(f"public static function read(UniffiReader $buf): {cls}"):
                out.emit("return self::lift($buf->readU64());")
            out.emit()
            with out.block(f"public static function write({cls} $value, UniffiWriter $buf): void"):
                out.emit("$buf->writeU64(self::lower($value));")
        self._vtable(cbi.name, cbi.methods, f"{name}::handleMap()")

    def _vtable(self, name: str, methods: tuple[Method, ...], handle_map: str) -> None:
        """Class that fills the native vtable with PHP closures and hands it to the library."""
        cls = f"UniffiVTable{naming.pascal(name)}"
        struct = self.oracle.ffi_struct_name(vtable_struct_name(name))
        init = self.ci.ffi_init_callback_vtable(name)
        out = self.out
        out.emit()
        with out.block(f"final class {cls}"):
            # the native side keeps a pointer to the vtable, so it must outlive every call
            out.emit(f"private static ?{CDATA} $vtable = null;")
            out.emit()
            with out.block("public static function register(\\FFI $lib): void"):
                out.emit(f"$vtable = $lib->new('{struct}', false);")
                for meth in methods:
                    self._vtable_method(meth, handle_map)
                out.emit("$vtable->uniffi_free = static function (int $uniffiHandle): void {")
                out.emit(f"    {handle_map}->remove($uniffiHandle);")
                out.emit("};")
                out.emit("self::$vtable = $vtable;")
                out.emit(f"$lib->{init.name}(\\FFI::addr($vtable));")
        self.vtables.append(cls)

    def _vtable_method(self, meth: Method, handle_map: str) -> None:
        out = self.out
        args = [f"${self.oracle.arg_name(a.name)}" for a in meth.arguments]
        params = ", ".join(["int $uniffiHandle", *args, "$uniffiOutReturn", f"{CDATA} $uniffiOutCallStatus"])
        lifted = ", ".join(f"{self.oracle.find(a.type).lift()}({arg})" for a, arg in zip(meth.arguments, args))
        call = f"{handle_map}->get($uniffiHandle)->{self.oracle.fn_name(meth.name)}({lifted})"
        out.emit(f"$vtable->{c_member_name(meth.name)} = static function ({params}): void {{")
        with out.indented():
            out.emit("try {")
            if meth.return_type is None:
                out.emit(f"    {call};")
            else:
                out.emit(f"    $uniffiOutReturn[0] = {self.oracle.find(meth.return_type).lower()}({call});")
            if meth.throws is not None:
                throws = self.oracle.find(meth.throws)
                out.emit(f"}} catch ({throws.type_label()} $e) {{")
                out.emit("    $uniffiOutCallStatus[0]->code = UNIFFI_CALL_ERROR;")
                out.emit(f"    $uniffiOutCallStatus[0]->errorBuf = {throws.lower()}($e);")
            out.emit("} catch (\\Throwable $e) {")
            out.emit("    $uniffiOutCallStatus[0]->code = UNIFFI_CALL_UNEXPECTED_ERROR;")
            out.emit("    $uniffiOutCallStatus[0]->errorBuf = RustBuffer::fromBytes($e->getMessage());")
            if meth.return_type is not None:
                default = self.oracle.ffi_default_value(ffi_type_of(meth.return_type))
                out.emit(f"    $uniffiOutReturn[0] = {default};")
            out.emit("}")
        out.emit("};")

    # --- customs

    def _custom_converter(self, code_type: CustomCodeType) -> None:
        builtin = code_type.builtin.ffi_converter_name()
        config = code_type.config
        into = "{}"
        from_ = "{}"
        if config is not None:
            into = config.into_custom or into
            from_ = config.from_custom or from_
            for imp in config.imports:
                self._import(imp)
        self._converter(
            code_type,
            lift=[f"return {into.replace('{}', f'{builtin}::lift($value)')};"],
            lower=[f"return {builtin}::lower({from_.replace('{}', '$value')});"],
            read=[f"return {into.replace('{}', f'{builtin}::read($buf)')};"],
            write=[f"{builtin}::write({from_.replace('{}', '$value')}, $buf);"],
            ffi_label=lowered_php_type(self.oracle, code_type.type),
        )


def lowered_php_type(oracle: PHPCodeOracle, t: Type) -> str:
    """PHP parameter type of the lowered value of `t`."""
    label = oracle.ffi_type_label(ffi_type_of(t))
    if label.startswith("int"):
        return "int"
    return "float" if label == "float" else CDATA


class PhpWrapper:
    """Renders one component's complete PHP module."""

    def __init__(self, ctx: GenerationContext, oracle: Optional[PHPCodeOracle] = None) -> None:
        self.ctx = ctx
        self.ci = ctx.ci
        self.oracle = oracle or PHPCodeOracle(ctx)
        self.registry = HelperRegistry()
        self.types = TypeRenderer(self.oracle, self.registry)

    def render(self) -> str:
        # type helpers first: they collect the imports the header needs
        type_helpers = self.types.render()
        out = PhpCodeBuilder()
        out.emit("<?php")
        out.emit()
        out.emit("// This file was autogenerated by uniffi-bindgen-php. Do not edit.")
        out.emit()
        out.emit("declare(strict_types=1);")
        out.emit()
        out.emit(f"namespace {self.ctx.module_name};")
        if self.types.imports:
            out.emit()
            for name in self.types.imports:
                out.emit(f"use {name};")
        out.emit()
        out.emit_raw(runtime_source())
        out.emit()
        self._uniffi_lib(out)
        out.emit_raw(type_helpers)
        for func in self.ci.functions:
            self._function(out, func)
        return out.to_string()

    # --- the native library

    def cdef(self) -> list[str]:
        """Declarations handed to `FFI::cdef()`, each FFI definition once."""
        lines = list(_CDEF_PRELUDE)
        seen: set[str] = set()
        for definition in self.ci.ffi_definitions():
            guard = self.oracle.if_guard_name(definition.name)
            if guard in seen:
                continue
            seen.add(guard)
            lines.append(self._cdef_definition(definition))
        for func in self.ci.iter_ffi_function_definitions():
            lines.append(self._cdef_function(func))
        return lines

    def _c_params(self, arguments, has_status: bool) -> str:
        params = [self.oracle.header_type_label(a.type) for a in arguments]
        if has_status:
            params.append("RustCallStatus*")
        return ", ".join(params) or "void"

    def _cdef_definition(self, definition: FfiDefinition) -> str:
        match definition:
            case FfiCallbackFunction(name, arguments, return_type, has_status):
                return (f"typedef {ffi.header_return_label(return_type)} "
                        f"(*{self.oracle.ffi_callback_name(name)})({self._c_params(arguments, has_status)});")
            case FfiStructDef(name, fields):
                struct = self.oracle.ffi_struct_name(name)
                members = " ".join(f"{filters.ffi_param(self.oracle, c_member_name(f.name), f.type)};"
                                   for f in fields)
                return f"typedef struct {struct} {{ {members} }} {struct};"

    def _cdef_function(self, func: FfiFunction) -> str:
        return (f"{ffi.header_return_label(func.return_type)} {func.name}"
                f"({self._c_params(func.arguments, func.has_rust_call_status_arg)});")

    def _uniffi_lib(self, out: PhpCodeBuilder) -> None:
        cdylib = self.ctx.cdylib_name
        with out.block("final class UniffiLib"):
            out.emit("private const CDEF = <<<'CDEF'")
            out.emit_lines(self.cdef())
            out.emit("CDEF;")
            out.emit()
            out.emit("private static ?\\FFI $lib = null;")
            out.emit()
            with out.block("public static function get(): \\FFI"):
                with out.block("if (self::$lib === null)"):
                    out.emit("self::$lib = \\FFI::cdef(self::CDEF, self::libraryName());")
                    for vtable in self.types.vtables:
                        out.emit(f"{vtable}::register(self::$lib);")
                out.emit("return self::$lib;")
            out.emit()
            with out.block("private static function libraryName(): string"):
                out.emit("return match (PHP_OS_FAMILY) {")
                out.emit(f"    'Windows' => '{cdylib}.dll',")
                out.emit(f"    'Darwin' => 'lib{cdylib}.dylib',")
                out.emit(f"    default => 'lib{cdylib}.so',")
                out.emit("};")
            out.emit()
            from_bytes = self.ci.ffi_rustbuffer_from_bytes().name
            with out.block(f"public static function rustbufferFromBytes({CDATA} $bytes, {CDATA} $status): {CDATA}"):
                out.emit(f"return self::get()->{from_bytes}($bytes, $status);")
            out.emit()
            free = self.ci.ffi_rustbuffer_free().name
            with out.block(f"public static function rustbufferFree({CDATA} $buf, {CDATA} $status): void"):
                out.emit(f"self::get()->{free}($buf, $status);")

    # --- top-level functions

    def _function(self, out: PhpCodeBuilder, func: Function) -> None:
        out.emit()
        out.doc(func.docstring)
        with out.block(self.types.signature("function", func.name, func.arguments, func.return_type)):
            out.emit(self.types.call_statement(
                self.ci.ffi_function_for(func),
                filters.lowered_args(self.oracle, func.arguments),
                func.return_type,
                func.throws,
            ))
