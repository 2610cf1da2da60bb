"""FFI ABI mapping: PHP surface labels, C header labels and error-path defaults.

Two spellings exist for every FfiType:
  * `ffi_type_label`   - the PHP-side type used in wrapper docblocks
  * `header_type_label` - the C declaration handed to `FFI::cdef()`

Both must describe identical binary layout; `layout.check_abi_symmetry`
verifies this.
"""
from __future__ import annotations

from typing import Optional

from uniffi_bindgen_php.backend import naming
from uniffi_bindgen_php.interface.types import (
    FfiType, FfiScalar, FfiPrimitive, FfiRustArcPtr, FfiRustBuffer, FfiForeignBytes,
    FfiRustCallStatus, FfiCallback, FfiStruct, FfiReference, FfiVoidPointer,
)
from uniffi_bindgen_php.internals.errors import raise_error

# PHP ints are signed 64-bit; phpstan integer ranges describe each width exactly
_SCALAR_PHP: dict[FfiScalar, str] = {
    FfiScalar.INT8: "int<-128, 127>",
    FfiScalar.UINT8: "int<0, 255>",
    FfiScalar.INT16: "int<-32768, 32767>",
    FfiScalar.UINT16: "int<0, 65535>",
    FfiScalar.INT32: "int<-2147483648, 2147483647>",
    FfiScalar.UINT32: "int<0, 4294967295>",
    FfiScalar.INT64: "int",
    FfiScalar.UINT64: "int<0, max>",
    FfiScalar.HANDLE: "int<0, max>",
    FfiScalar.FLOAT32: "float",
    FfiScalar.FLOAT64: "float",
}

_SCALAR_C: dict[FfiScalar, str] = {
    FfiScalar.INT8: "int8_t",
    FfiScalar.UINT8: "uint8_t",
    FfiScalar.INT16: "int16_t",
    FfiScalar.UINT16: "uint16_t",
    FfiScalar.INT32: "int32_t",
    FfiScalar.UINT32: "uint32_t",
    FfiScalar.INT64: "int64_t",
    FfiScalar.UINT64: "uint64_t",
    FfiScalar.HANDLE: "uint64_t",
    FfiScalar.FLOAT32: "float",
    FfiScalar.FLOAT64: "double",
}

CDATA = "\\FFI\\CData"


def ffi_type_label(ffi_type: FfiType) -> str:
    """PHP spelling of an FFI type as seen by wrapper code."""
    match ffi_type:
        case FfiPrimitive(scalar):
            return _SCALAR_PHP[scalar]
        case FfiRustArcPtr() | FfiVoidPointer() | FfiReference():
            return CDATA
        case FfiRustBuffer():
            return "RustBuffer"
        case FfiForeignBytes():
            return "ForeignBytes"
        case FfiRustCallStatus():
            return "RustCallStatus"
        case FfiCallback(name):
            return ffi_callback_name(name)
        case FfiStruct(name):
            return ffi_struct_name(name)
    raise_error("BG1005", type=repr(ffi_type))


def header_type_label(ffi_type: FfiType) -> str:
    """C spelling of an FFI type for the `FFI::cdef()` declaration block.

    Raw pointers are spelled without nullability qualifiers; the PHP FFI C
    parser rejects `_Nonnull`.
    """
    match ffi_type:
        case FfiPrimitive(scalar):
            return _SCALAR_C[scalar]
        case FfiRustArcPtr() | FfiVoidPointer():
            return "void*"
        case FfiRustBuffer():
            return "RustBuffer"
        case FfiForeignBytes():
            return "ForeignBytes"
        case FfiRustCallStatus():
            return "RustCallStatus"
        case FfiCallback(name):
            return ffi_callback_name(name)
        case FfiStruct(name):
            return ffi_struct_name(name)
        case FfiReference(inner):
            return f"{header_type_label(inner)}*"
    raise_error("BG1005", type=repr(ffi_type))


def header_return_label(ffi_type: Optional[FfiType]) -> str:
    return "void" if ffi_type is None else header_type_label(ffi_type)


def ffi_default_value(return_type: Optional[FfiType]) -> str:
    """PHP expression returned on the error path of a callback.

    Raises:
        CoverageError: BG1003 for FFI types that can never be returned.
    """
    match return_type:
        case None:
            return "0"
        case FfiPrimitive(FfiScalar.FLOAT32 | FfiScalar.FLOAT64):
            return "0.0"
        case FfiPrimitive():
            return "0"
        case FfiRustArcPtr():
            return "null"
        case FfiRustBuffer():
            return "RustBuffer::empty()"
    raise_error("BG1003", type=str(return_type))


def ffi_callback_name(name: str) -> str:
    return f"Uniffi{naming.pascal(name)}"


def ffi_struct_name(name: str) -> str:
    return f"Uniffi{naming.pascal(name)}"


def if_guard_name(name: str) -> str:
    """Deduplication key for an FFI definition (the C header's include guard)."""
    return f"UNIFFI_FFIDEF_{naming.macro(name)}"
