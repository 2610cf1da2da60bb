import pytest

from uniffi_bindgen_php.backend import ffi
from uniffi_bindgen_php.interface.types import (
    FfiPrimitive, FfiScalar, FfiRustArcPtr, FfiRustBuffer, FfiCallback, FfiStruct, FfiReference,
    INT8, UINT8, UINT32, INT64, UINT64, HANDLE, FLOAT32, FLOAT64,
    RUST_BUFFER, RUST_CALL_STATUS, FOREIGN_BYTES, VOID_POINTER,
)
from uniffi_bindgen_php.internals.errors import CoverageError


@pytest.mark.parametrize("ffi_type, surface, header", [
    (INT8, "int<-128, 127>", "int8_t"),
    (UINT8, "int<0, 255>", "uint8_t"),
    (UINT32, "int<0, 4294967295>", "uint32_t"),
    (INT64, "int", "int64_t"),
    (UINT64, "int<0, max>", "uint64_t"),
    (HANDLE, "int<0, max>", "uint64_t"),
    (FLOAT32, "float", "float"),
    (FLOAT64, "float", "double"),
    (FfiRustArcPtr("Canvas"), "\\FFI\\CData", "void*"),
    (VOID_POINTER, "\\FFI\\CData", "void*"),
    (RUST_BUFFER, "RustBuffer", "RustBuffer"),
    (FfiRustBuffer("other"), "RustBuffer", "RustBuffer"),
    (FOREIGN_BYTES, "ForeignBytes", "ForeignBytes"),
    (RUST_CALL_STATUS, "RustCallStatus", "RustCallStatus"),
    (FfiReference(RUST_CALL_STATUS), "\\FFI\\CData", "RustCallStatus*"),
    (FfiReference(FfiReference(UINT64)), "\\FFI\\CData", "uint64_t**"),
    (FfiCallback("CallbackInterfaceFree"), "UniffiCallbackInterfaceFree", "UniffiCallbackInterfaceFree"),
    (FfiStruct("VTableCallbackInterfaceListener"), "UniffiVTableCallbackInterfaceListener",
     "UniffiVTableCallbackInterfaceListener"),
])
def test_labels(ffi_type, surface, header):
    assert ffi.ffi_type_label(ffi_type) == surface
    assert ffi.header_type_label(ffi_type) == header


def test_unknown_ffi_type_is_rejected():
    with pytest.raises(CoverageError) as exc:
        ffi.ffi_type_label("RustBuffer")
    assert exc.value.code == "BG1005"
    with pytest.raises(CoverageError):
        ffi.header_type_label(object())


def test_header_return_label():
    assert ffi.header_return_label(None) == "void"
    assert ffi.header_return_label(RUST_BUFFER) == "RustBuffer"


@pytest.mark.parametrize("return_type, default", [
    (None, "0"),
    (INT8, "0"),
    (UINT64, "0"),
    (FfiPrimitive(FfiScalar.INT16), "0"),
    (FLOAT32, "0.0"),
    (FLOAT64, "0.0"),
    (FfiRustArcPtr("Canvas"), "null"),
    (RUST_BUFFER, "RustBuffer::empty()"),
])
def test_default_values(return_type, default):
    assert ffi.ffi_default_value(return_type) == default


@pytest.mark.parametrize("return_type", [
    FOREIGN_BYTES, RUST_CALL_STATUS, FfiReference(UINT64), FfiCallback("X"), FfiStruct("X"), VOID_POINTER,
])
def test_illegal_return_types_have_no_default(return_type):
    with pytest.raises(CoverageError) as exc:
        ffi.ffi_default_value(return_type)
    assert exc.value.code == "BG1003"


def test_helper_names():
    assert ffi.ffi_callback_name("CallbackInterfaceListenerMethod0") == "UniffiCallbackInterfaceListenerMethod0"
    assert ffi.ffi_struct_name("VTableCallbackInterfaceListener") == "UniffiVTableCallbackInterfaceListener"
    assert ffi.if_guard_name("CallbackInterfaceFree") == "UNIFFI_FFIDEF_CALLBACK_INTERFACE_FREE"
