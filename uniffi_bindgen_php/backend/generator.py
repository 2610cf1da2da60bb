"""Binding generation driver: config resolution, ABI checks, output writing."""
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

from uniffi_bindgen_php.backend.context import GenerationContext
from uniffi_bindgen_php.backend.layout import DEFAULT_TARGET, LayoutModel
from uniffi_bindgen_php.backend.oracle import PHPCodeOracle
from uniffi_bindgen_php.backend.render import PhpWrapper
from uniffi_bindgen_php.config import Config, parse_config
from uniffi_bindgen_php.interface.component import (
    ComponentInterface, FfiCallbackFunction, FfiStructDef,
)
from uniffi_bindgen_php.interface.types import FfiType, FfiReference


def iter_ffi_types(ci: ComponentInterface) -> Iterator[FfiType]:
    """Every distinct FfiType crossing the boundary, including the targets of references."""
    seen: set[FfiType] = set()

    def visit(t: Optional[FfiType]) -> Iterator[FfiType]:
        if t is None or t in seen:
            return
        seen.add(t)
        if isinstance(t, FfiReference):
            yield from visit(t.inner)
        yield t

    for func in ci.iter_ffi_function_definitions():
        for arg in func.arguments:
            yield from visit(arg.type)
        yield from visit(func.return_type)
    for definition in ci.ffi_definitions():
        match definition:
            case FfiCallbackFunction(arguments=arguments, return_type=return_type):
                for arg in arguments:
                    yield from visit(arg.type)
                yield from visit(return_type)
            case FfiStructDef(fields=fields):
                for f in fields:
                    yield from visit(f.type)


def check_component_abi(ci: ComponentInterface, target: str = DEFAULT_TARGET) -> LayoutModel:
    """Verify the PHP and C spellings of every FfiType agree on layout.

    Raises:
        CoverageError: BG1004 on the first mismatch.
    """
    model = LayoutModel(ci.ffi_definitions(), target)
    for ffi_type in iter_ffi_types(ci):
        model.check_abi_symmetry(ffi_type)
    return model


def generate_bindings(config: Config, ci: ComponentInterface, target: str = DEFAULT_TARGET) -> str:
    """Render the PHP module for one component; nothing is written."""
    ctx = GenerationContext.for_component(config, ci)
    check_component_abi(ci, target)
    return PhpWrapper(ctx, PHPCodeOracle(ctx)).render()


def write_atomic(path: Path, text: str) -> None:
    """Write `text` to `path` via a temp file in the same directory and a rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
        os.replace(tmp, path)
    except BaseException:
        os.unlink(tmp)
        raise


class BindingGeneratorPHP:
    """Generates `<module_name>.php` for each component."""

    def __init__(self, target: str = DEFAULT_TARGET) -> None:
        self.target = target

    def new_config(self, root_toml: dict[str, Any]) -> Config:
        """Build a Config from a parsed uniffi.toml document."""
        return parse_config(root_toml.get("bindings", {}).get("php", {}))

    def update_component_configs(
        self, components: Iterable[tuple[ComponentInterface, Config]]
    ) -> list[tuple[ComponentInterface, Config]]:
        return [(ci, config.update_component_config(ci)) for ci, config in components]

    def write_bindings(
        self, out_dir: Path, components: Iterable[tuple[ComponentInterface, Config]]
    ) -> list[Path]:
        """Render every component first, then write them; a failure leaves no output behind."""
        rendered = []
        for ci, config in components:
            ctx = GenerationContext.for_component(config, ci)
            rendered.append((Path(out_dir) / f"{ctx.module_name}.php", generate_bindings(config, ci, self.target)))
        for path, text in rendered:
            write_atomic(path, text)
        return [path for path, _ in rendered]
