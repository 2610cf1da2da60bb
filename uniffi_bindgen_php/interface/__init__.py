"""Interface model: types, FFI types, literals and the component interface."""
from uniffi_bindgen_php.interface.component import ComponentInterface
from uniffi_bindgen_php.interface.loader import load_interface, interface_from_dict
from uniffi_bindgen_php.interface.typeexpr import parse_type, parse_literal

__all__ = ["ComponentInterface", "load_interface", "interface_from_dict", "parse_type", "parse_literal"]
