"""Binary layout of FFI types, computed with LLVM's data layout rules.

Every FfiType is mapped to an llvmlite IR type; LLVM then answers size and
alignment under a target data layout. The same layout is re-derived from the
C spelling produced by `header_type_label`, which is what PHP's FFI parser
actually sees, so a wrong header spelling is caught before any code is
written.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from llvmlite import ir
from llvmlite import binding as llvm

from uniffi_bindgen_php.backend.ffi import (
    CDATA, ffi_type_label, header_type_label, ffi_callback_name, ffi_struct_name,
)
from uniffi_bindgen_php.interface.component import FfiDefinition, FfiStructDef, FfiCallbackFunction
from uniffi_bindgen_php.interface.typeexpr import TypeExprError, parse_c_type
from uniffi_bindgen_php.interface.types import (
    FfiType, FfiScalar, FfiPrimitive, FfiRustArcPtr, FfiRustBuffer, FfiForeignBytes,
    FfiRustCallStatus, FfiCallback, FfiStruct, FfiReference, FfiVoidPointer,
)
from uniffi_bindgen_php.internals.errors import raise_error

# Data layout strings as emitted by clang for each target
DATA_LAYOUTS: dict[str, str] = {
    "x86_64": "e-m:e-p270:32:32-p271:32:32-p272:64:64-i64:64-i128:128-f80:128-n8:16:32:64-S128",
    "aarch64": "e-m:e-i8:8:32-i16:16:32-i64:64-i128:128-n32:64-S128",
    "i686": "e-m:e-p:32:32-p270:32:32-p271:32:32-p272:64:64-i128:128-f64:32:64-f80:32-n8:16:32-S128",
}

DEFAULT_TARGET = "x86_64"

_INT_BITS: dict[FfiScalar, int] = {
    FfiScalar.INT8: 8, FfiScalar.UINT8: 8,
    FfiScalar.INT16: 16, FfiScalar.UINT16: 16,
    FfiScalar.INT32: 32, FfiScalar.UINT32: 32,
    FfiScalar.INT64: 64, FfiScalar.UINT64: 64,
    FfiScalar.HANDLE: 64,
}

_C_SCALARS: dict[str, ir.Type] = {
    "int8_t": ir.IntType(8), "uint8_t": ir.IntType(8),
    "int16_t": ir.IntType(16), "uint16_t": ir.IntType(16),
    "int32_t": ir.IntType(32), "uint32_t": ir.IntType(32),
    "int64_t": ir.IntType(64), "uint64_t": ir.IntType(64),
    "float": ir.FloatType(), "double": ir.DoubleType(),
}

_INT_RANGE = re.compile(r"^int<(-?\d+), (-?\d+|max)>$")

_llvm_init = False


def _ensure_llvm() -> None:
    global _llvm_init
    if _llvm_init:
        return
    llvm.initialize_native_target()
    _llvm_init = True


@dataclass(frozen=True)
class AbiLayout:
    size: int
    alignment: int
    field_offsets: tuple[int, ...] = ()

    def __str__(self) -> str:
        return f"size={self.size} align={self.alignment} offsets={list(self.field_offsets)}"


class LayoutModel:
    """Layouts of the FFI types of one component under one target.

    `definitions` supplies the callback function types and structs the
    component declares; `Uniffi{Name}` spellings resolve against them.
    """

    def __init__(self, definitions: Iterable[FfiDefinition] = (), target: str = DEFAULT_TARGET) -> None:
        if target not in DATA_LAYOUTS:
            raise ValueError(f"unknown target '{target}' (known: {', '.join(DATA_LAYOUTS)})")
        _ensure_llvm()
        self.target = target
        self.target_data = llvm.create_target_data(DATA_LAYOUTS[target])

        self.i8 = ir.IntType(8)
        self.i32 = ir.IntType(32)
        self.i64 = ir.IntType(64)
        self.ptr = ir.PointerType(self.i8)

        # {u64 capacity, u64 len, u8* data}
        self.rust_buffer = ir.LiteralStructType([self.i64, self.i64, self.ptr])
        # {i32 len, u8* data}
        self.foreign_bytes = ir.LiteralStructType([self.i32, self.ptr])
        # {i8 code, RustBuffer error_buf}
        self.rust_call_status = ir.LiteralStructType([self.i8, self.rust_buffer])

        self._structs: dict[str, FfiStructDef] = {}
        self._callbacks: dict[str, FfiCallbackFunction] = {}
        for definition in definitions:
            match definition:
                case FfiStructDef(name):
                    self._structs[name] = definition
                case FfiCallbackFunction(name):
                    self._callbacks[name] = definition

        self._cache: dict[FfiType, ir.Type] = {}
        self._layout_cache: dict[FfiType, AbiLayout] = {}
        self._checked: set[FfiType] = set()

    # --- FfiType -> IR

    def ir_type(self, ffi_type: FfiType) -> ir.Type:
        cached = self._cache.get(ffi_type)
        if cached is not None:
            return cached
        result = self._ir_type(ffi_type)
        self._cache[ffi_type] = result
        return result

    def _ir_type(self, ffi_type: FfiType) -> ir.Type:
        match ffi_type:
            case FfiPrimitive(FfiScalar.FLOAT32):
                return ir.FloatType()
            case FfiPrimitive(FfiScalar.FLOAT64):
                return ir.DoubleType()
            case FfiPrimitive(scalar):
                return ir.IntType(_INT_BITS[scalar])
            case FfiRustArcPtr() | FfiVoidPointer() | FfiReference() | FfiCallback():
                return self.ptr
            case FfiRustBuffer():
                return self.rust_buffer
            case FfiForeignBytes():
                return self.foreign_bytes
            case FfiRustCallStatus():
                return self.rust_call_status
            case FfiStruct(name):
                definition = self._structs.get(name)
                if definition is None:
                    raise_error("BG1004", type=str(ffi_type), reason=f"struct '{name}' is not declared")
                return ir.LiteralStructType([self.ir_type(f.type) for f in definition.fields])
        raise_error("BG1005", type=repr(ffi_type))

    # --- header spelling -> IR

    def parse_header_type(self, spelling: str) -> ir.Type:
        """Re-derive the IR type of a C spelling such as ``RustBuffer`` or ``RustCallStatus*``."""
        try:
            name, stars = parse_c_type(spelling)
        except TypeExprError as e:
            raise_error("BG1004", type=spelling, reason=e.message)
        if stars:
            return self.ptr
        if name in _C_SCALARS:
            return _C_SCALARS[name]
        match name:
            case "RustBuffer":
                return self.rust_buffer
            case "ForeignBytes":
                return self.foreign_bytes
            case "RustCallStatus":
                return self.rust_call_status
        for cb_name in self._callbacks:
            if ffi_callback_name(cb_name) == name:
                return self.ptr
        for struct_name, definition in self._structs.items():
            if ffi_struct_name(struct_name) == name:
                return ir.LiteralStructType(
                    [self.parse_header_type(header_type_label(f.type)) for f in definition.fields])
        raise_error("BG1004", type=spelling, reason=f"'{name}' is not a declared C type")

    # --- layout queries

    def _layout_of(self, t: ir.Type) -> AbiLayout:
        size = t.get_abi_size(self.target_data)
        alignment = t.get_abi_alignment(self.target_data)
        offsets: list[int] = []
        if isinstance(t, ir.LiteralStructType):
            offset = 0
            for element in t.elements:
                align = element.get_abi_alignment(self.target_data)
                offset = (offset + align - 1) // align * align
                offsets.append(offset)
                offset += element.get_abi_size(self.target_data)
        return AbiLayout(size, alignment, tuple(offsets))

    def layout(self, ffi_type: FfiType) -> AbiLayout:
        cached = self._layout_cache.get(ffi_type)
        if cached is None:
            cached = self._layout_of(self.ir_type(ffi_type))
            self._layout_cache[ffi_type] = cached
        return cached

    def abi_size(self, ffi_type: FfiType) -> int:
        return self.layout(ffi_type).size

    def abi_alignment(self, ffi_type: FfiType) -> int:
        return self.layout(ffi_type).alignment

    def header_layout(self, spelling: str) -> AbiLayout:
        return self._layout_of(self.parse_header_type(spelling))

    # --- symmetry

    def check_abi_symmetry(self, ffi_type: FfiType) -> None:
        """Verify both spellings of `ffi_type` describe the layout it actually has.

        The header spelling must produce the identical IR layout; the PHP
        surface spelling must accept values of that layout.

        Raises:
            CoverageError: BG1004 on any disagreement.
        """
        if ffi_type in self._checked:
            return
        expected = self.layout(ffi_type)
        header = header_type_label(ffi_type)
        actual = self.header_layout(header)
        if actual != expected:
            raise_error("BG1004", type=str(ffi_type),
                        reason=f"'{header}' has {actual}, expected {expected}")
        surface = ffi_type_label(ffi_type)
        if not self._surface_accepts(surface, header, self.ir_type(ffi_type)):
            raise_error("BG1004", type=str(ffi_type),
                        reason=f"PHP type '{surface}' does not describe '{header}'")
        self._checked.add(ffi_type)

    def _surface_accepts(self, surface: str, header: str, t: ir.Type) -> bool:
        if surface == CDATA:
            return isinstance(t, ir.PointerType)
        if surface == "float":
            return isinstance(t, (ir.FloatType, ir.DoubleType))
        if surface == "int":
            return isinstance(t, ir.IntType) and t.width == 64
        m = _INT_RANGE.match(surface)
        if m is not None:
            return isinstance(t, ir.IntType) and _range_fits(int(m.group(1)), m.group(2), t.width)
        # Named C types keep the same name on the PHP side
        return surface == header


def _range_fits(lo: int, hi: str, width: int) -> bool:
    if hi == "max":
        return lo == 0 and width == 64
    signed = (-(2 ** (width - 1)), 2 ** (width - 1) - 1)
    unsigned = (0, 2 ** width - 1)
    return (lo, int(hi)) in (signed, unsigned)


def layout_of(ffi_type: FfiType, definitions: Optional[Iterable[FfiDefinition]] = None) -> AbiLayout:
    return LayoutModel(definitions or ()).layout(ffi_type)
