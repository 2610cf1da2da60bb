import pytest

from uniffi_bindgen_php.backend.generator import check_component_abi, iter_ffi_types
from uniffi_bindgen_php.backend.layout import AbiLayout, LayoutModel, layout_of
from uniffi_bindgen_php.interface.component import FfiCallbackFunction, FfiStructDef, FfiField
from uniffi_bindgen_php.interface.types import (
    FfiCallback, FfiStruct, FfiReference, FfiRustArcPtr,
    INT8, UINT16, INT32, UINT64, FLOAT32, FLOAT64, RUST_BUFFER, RUST_CALL_STATUS, FOREIGN_BYTES,
)
from uniffi_bindgen_php.internals.errors import CoverageError


@pytest.fixture(scope="module")
def model():
    return LayoutModel()


def test_rust_buffer_layout(model):
    assert model.layout(RUST_BUFFER) == AbiLayout(24, 8, (0, 8, 16))


def test_rust_call_status_layout(model):
    assert model.layout(RUST_CALL_STATUS) == AbiLayout(32, 8, (0, 8))


def test_foreign_bytes_layout(model):
    assert model.layout(FOREIGN_BYTES) == AbiLayout(16, 8, (0, 8))


@pytest.mark.parametrize("ffi_type, size", [
    (INT8, 1), (UINT16, 2), (INT32, 4), (UINT64, 8), (FLOAT32, 4), (FLOAT64, 8),
    (FfiRustArcPtr("Canvas"), 8), (FfiReference(RUST_CALL_STATUS), 8),
])
def test_scalar_sizes(model, ffi_type, size):
    assert model.abi_size(ffi_type) == size
    assert model.abi_alignment(ffi_type) == size


def test_aarch64_buffer_matches_x86_64():
    assert LayoutModel(target="aarch64").layout(RUST_BUFFER).size == 24


def test_unknown_target():
    with pytest.raises(ValueError):
        LayoutModel(target="sparc")


def test_header_spellings_round_trip(model):
    assert model.header_layout("RustBuffer") == model.layout(RUST_BUFFER)
    assert model.header_layout("RustCallStatus*") == model.layout(FfiReference(RUST_CALL_STATUS))
    assert model.header_layout("double") == model.layout(FLOAT64)


def test_undeclared_c_type_is_a_mismatch(model):
    with pytest.raises(CoverageError) as exc:
        model.header_layout("Bogus")
    assert exc.value.code == "BG1004"


def test_undeclared_struct_is_a_mismatch(model):
    with pytest.raises(CoverageError) as exc:
        model.check_abi_symmetry(FfiStruct("Missing"))
    assert exc.value.code == "BG1004"


def test_declared_struct_layout():
    definitions = [
        FfiCallbackFunction("Tick", ()),
        FfiStructDef("Clock", (FfiField("tick", FfiCallback("Tick")), FfiField("flags", INT8))),
    ]
    model = LayoutModel(definitions)
    assert model.layout(FfiStruct("Clock")) == AbiLayout(16, 8, (0, 8))
    model.check_abi_symmetry(FfiStruct("Clock"))
    model.check_abi_symmetry(FfiCallback("Tick"))


def test_vtable_struct_is_a_table_of_pointers(geometry):
    model = LayoutModel(geometry.ffi_definitions())
    # on_point, count, uniffi_free
    assert model.abi_size(FfiStruct("VTableCallbackInterfaceListener")) == 24


def test_every_boundary_type_is_symmetric(geometry):
    model = check_component_abi(geometry)
    seen = list(iter_ffi_types(geometry))
    assert RUST_CALL_STATUS in seen
    assert FfiStruct("VTableCallbackInterfaceListener") in seen
    for ffi_type in seen:
        model.check_abi_symmetry(ffi_type)


def test_layout_of_helper():
    assert layout_of(RUST_BUFFER).size == 24
