"""Per-run generation state.

`GenerationContext` is fixed for a whole run and shared by every lookup.
`HelperRegistry` is the only mutable state: one per output file, it records
which helper definitions have already been emitted.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional

from uniffi_bindgen_php.config import Config, CustomTypeConfig
from uniffi_bindgen_php.interface.component import ComponentInterface


@dataclass(frozen=True)
class GenerationContext:
    config: Config
    ci: ComponentInterface

    @classmethod
    def for_component(cls, config: Config, ci: ComponentInterface) -> "GenerationContext":
        return cls(config.update_component_config(ci), ci)

    @property
    def namespace(self) -> str:
        return self.ci.namespace

    @property
    def module_name(self) -> str:
        return self.config.module_name or self.ci.namespace

    @property
    def cdylib_name(self) -> str:
        return self.config.cdylib_name or f"uniffi_{self.ci.namespace}"

    def custom_type_config(self, name: str) -> Optional[CustomTypeConfig]:
        return self.config.custom_types.get(name)

    def external_package(self, namespace: str) -> Optional[str]:
        return self.config.external_packages.get(namespace)


@dataclass
class HelperRegistry:
    """Names of helper definitions already emitted into one output file."""
    _names: list[str] = field(default_factory=list)
    _seen: set[str] = field(default_factory=set)

    def add(self, name: str) -> bool:
        """Record `name`; True only the first time it is seen."""
        if name in self._seen:
            return False
        self._seen.add(name)
        self._names.append(name)
        return True

    def __contains__(self, name: str) -> bool:
        return name in self._seen

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)
