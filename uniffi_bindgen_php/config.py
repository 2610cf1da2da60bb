r"""`[bindings.php]` configuration loading and validation.

Example (uniffi.toml)::

    [bindings.php]
    module_name = "Geometry"
    cdylib_name = "geometry"

    [bindings.php.custom_types.Guid]
    type_name = '\Ramsey\Uuid\UuidInterface'
    imports = ['Ramsey\Uuid\Uuid']
    into_custom = "Uuid::fromString({})"
    from_custom = "{}->toString()"

    [bindings.php.external_packages]
    other = 'Acme\Other'
"""
from __future__ import annotations

import dataclasses
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from uniffi_bindgen_php.interface.component import ComponentInterface
from uniffi_bindgen_php.internals.errors import raise_error

# Plain PHP identifier
IDENT_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
# Namespace-qualified PHP name, e.g. Acme\Other
NAMESPACE_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\\[A-Za-z_][A-Za-z0-9_]*)*$")

TABLE = "[bindings.php]"

_TOP_KEYS = {"module_name", "cdylib_name", "custom_types", "external_packages"}
_CUSTOM_KEYS = {"imports", "type_name", "into_custom", "from_custom"}


@dataclass(frozen=True)
class CustomTypeConfig:
    imports: tuple[str, ...] = ()
    type_name: Optional[str] = None
    into_custom: Optional[str] = None
    from_custom: Optional[str] = None


@dataclass(frozen=True)
class Config:
    module_name: Optional[str] = None
    cdylib_name: Optional[str] = None
    custom_types: dict[str, CustomTypeConfig] = field(default_factory=dict)
    # namespace of another component -> PHP namespace its bindings live in
    external_packages: dict[str, str] = field(default_factory=dict)

    def update_component_config(self, ci: ComponentInterface) -> "Config":
        """Fill defaults from the component and check overrides against it.

        Raises:
            CoverageError: BG1002 when a custom type override names no declared custom type.
        """
        declared = {c.name for c in ci.custom_types}
        for name in self.custom_types:
            if name not in declared:
                raise_error("BG1002", name=name, namespace=ci.namespace)
        return dataclasses.replace(
            self,
            module_name=self.module_name or ci.namespace,
            cdylib_name=self.cdylib_name or f"uniffi_{ci.namespace}",
        )


def load_config(path: Path) -> Config:
    """Load `[bindings.php]` from a TOML file; a missing table yields the defaults."""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise_error("BG0001", path=path, reason=e)
    return parse_config(data.get("bindings", {}).get("php", {}))


def load_config_from_string(text: str) -> Config:
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise_error("BG0001", path="<string>", reason=e)
    return parse_config(data.get("bindings", {}).get("php", {}))


def parse_config(table: dict[str, Any]) -> Config:
    _check_keys(table, _TOP_KEYS, TABLE)
    module_name = _optional_str(table, "module_name", TABLE)
    if module_name is not None and not IDENT_PATTERN.match(module_name):
        raise_error("BG0005", key="module_name", value=module_name)
    cdylib_name = _optional_str(table, "cdylib_name", TABLE)

    custom_types = {}
    for name, entry in _table(table, "custom_types", TABLE).items():
        custom_types[name] = _parse_custom_type(name, entry)

    external_packages = {}
    ext_table = f"{TABLE[:-1]}.external_packages]"
    for namespace, package in _table(table, "external_packages", TABLE).items():
        if not isinstance(package, str):
            raise_error("BG0003", key=namespace, table=ext_table, expected="a string", got=_toml_type(package))
        if not NAMESPACE_PATTERN.match(package):
            raise_error("BG0005", key=namespace, value=package)
        external_packages[namespace] = package

    return Config(
        module_name=module_name,
        cdylib_name=cdylib_name,
        custom_types=custom_types,
        external_packages=external_packages,
    )


def _parse_custom_type(name: str, entry: Any) -> CustomTypeConfig:
    table = f"{TABLE[:-1]}.custom_types.{name}]"
    if not isinstance(entry, dict):
        raise_error("BG0003", key=name, table=f"{TABLE[:-1]}.custom_types]", expected="a table",
                    got=_toml_type(entry))
    _check_keys(entry, _CUSTOM_KEYS, table)
    imports = entry.get("imports", [])
    if not isinstance(imports, list) or not all(isinstance(i, str) for i in imports):
        raise_error("BG0003", key="imports", table=table, expected="a list of strings", got=_toml_type(imports))
    config = CustomTypeConfig(
        imports=tuple(imports),
        type_name=_optional_str(entry, "type_name", table),
        into_custom=_optional_str(entry, "into_custom", table),
        from_custom=_optional_str(entry, "from_custom", table),
    )
    for key in ("into_custom", "from_custom"):
        template = getattr(config, key)
        if template is not None and "{}" not in template:
            raise_error("BG0004", name=name, key=key)
    return config


def _check_keys(table: dict[str, Any], allowed: set[str], where: str) -> None:
    for key in table:
        if key not in allowed:
            raise_error("BG0002", key=key, table=where)


def _optional_str(table: dict[str, Any], key: str, where: str) -> Optional[str]:
    value = table.get(key)
    if value is not None and not isinstance(value, str):
        raise_error("BG0003", key=key, table=where, expected="a string", got=_toml_type(value))
    return value


def _table(table: dict[str, Any], key: str, where: str) -> dict[str, Any]:
    value = table.get(key, {})
    if not isinstance(value, dict):
        raise_error("BG0003", key=key, table=where, expected="a table", got=_toml_type(value))
    return value


def _toml_type(value: Any) -> str:
    match value:
        case bool():
            return "a boolean"
        case int():
            return "an integer"
        case float():
            return "a float"
        case str():
            return "a string"
        case list():
            return "an array"
        case dict():
            return "a table"
    return type(value).__name__
