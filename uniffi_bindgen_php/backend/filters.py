"""Small rendering helpers shared by the wrapper and type renderers."""
from __future__ import annotations

import textwrap
from typing import Optional

from uniffi_bindgen_php.backend.oracle import PHPCodeOracle
from uniffi_bindgen_php.interface.component import Enum, Field
from uniffi_bindgen_php.interface.types import Type, FfiType
from uniffi_bindgen_php.internals.errors import entity_scope


def return_type_name(oracle: PHPCodeOracle, t: Optional[Type]) -> str:
    return "void" if t is None else oracle.type_label(t)


def variant_discr_literal(e: Enum, index: int) -> str:
    with entity_scope(e.variants[index].name):
        return str(e.variant_discr(index).value)


def docstring(text: Optional[str], spaces: int = 0) -> str:
    """Format a docstring as a PHP doc comment indented by `spaces`."""
    if not text:
        return ""
    body = textwrap.indent(textwrap.dedent(text).strip("\n"), " * ", lambda line: True)
    body = "\n".join(line.rstrip() for line in body.splitlines())
    return textwrap.indent(f"/**\n{body}\n */", " " * spaces)


def param_list(oracle: PHPCodeOracle, arguments: tuple[Field, ...]) -> str:
    params = []
    for arg in arguments:
        with entity_scope(arg.name):
            param = f"{oracle.type_label(arg.type)} ${oracle.arg_name(arg.name)}"
            if arg.default is not None:
                param += f" = {oracle.literal(arg.default, arg.type)}"
        params.append(param)
    return ", ".join(params)


def lowered_args(oracle: PHPCodeOracle, arguments: tuple[Field, ...]) -> list[str]:
    return [f"{oracle.find(a.type).lower()}(${oracle.arg_name(a.name)})" for a in arguments]


def ffi_param(oracle: PHPCodeOracle, name: str, ffi_type: FfiType) -> str:
    return f"{oracle.header_type_label(ffi_type)} {name}"
