"""Load a `ComponentInterface` from a JSON interface description.

The document mirrors the metadata a UniFFI component exports::

    {
      "namespace": "geometry",
      "records": [{"name": "Point", "fields": [{"name": "x", "type": "f64"}]}],
      "enums": [{"name": "Color", "variants": [{"name": "red"}, {"name": "green"}]}],
      "objects": [{"name": "Canvas", "foreign_implementable": false,
                   "constructors": [{"name": "new", "arguments": []}],
                   "methods": [{"name": "draw", "arguments": [{"name": "p", "type": "Point"}]}]}],
      "callback_interfaces": [{"name": "Listener", "methods": [...]}],
      "functions": [{"name": "distance", "arguments": [...], "return_type": "f64",
                     "throws": "GeometryError"}],
      "custom_types": [{"name": "Guid", "builtin": "string"}]
    }

Types are type expressions (see grammar.lark); bare declared names resolve
to the declaration of that name.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from uniffi_bindgen_php.interface.component import (
    ComponentInterface, Record, Enum, Variant, Object, Constructor, Method,
    CallbackInterface, Function, Field,
)
from uniffi_bindgen_php.interface.typeexpr import parse_type, parse_literal
from uniffi_bindgen_php.interface.types import (
    Type, Literal, RecordType, EnumType, ObjectType, CallbackInterfaceType, CustomType,
    OptionalType, SequenceType, MapType,
)
from uniffi_bindgen_php.internals.errors import raise_error


def load_interface(path: Path) -> ComponentInterface:
    """Read and validate an interface description file."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise_error("BG4002", path=path, reason=exc)
    if not isinstance(payload, dict):
        raise_error("BG4002", path=path, reason="root must be an object")
    return interface_from_dict(payload, source=str(path))


def interface_from_dict(payload: dict[str, Any], source: str = "<memory>") -> ComponentInterface:
    return _Loader(payload, source).load()


def _literal(value: Any) -> Optional[Literal]:
    """Literal expressions may be given as text ("0x2A", "Color.red") or as JSON scalars."""
    if value is None:
        return None
    return parse_literal(value if isinstance(value, str) else json.dumps(value))


class _Loader:
    def __init__(self, payload: dict[str, Any], source: str) -> None:
        self.payload = payload
        self.source = source
        self.declared: dict[str, Type] = {}

    def load(self) -> ComponentInterface:
        namespace = self.payload.get("namespace")
        if not isinstance(namespace, str) or not namespace:
            raise_error("BG4002", path=self.source, reason="missing 'namespace'")

        for item in self._items("records"):
            self.declared[item["name"]] = RecordType(item["name"])
        for item in self._enum_items():
            self.declared[item["name"]] = EnumType(item["name"])
        for item in self._items("objects"):
            self.declared[item["name"]] = ObjectType(item["name"], bool(item.get("foreign_implementable", False)))
        for item in self._items("callback_interfaces"):
            self.declared[item["name"]] = CallbackInterfaceType(item["name"])
        # Custom builtins may only name primitives or earlier declarations
        custom_types = []
        for item in self._items("custom_types"):
            custom = CustomType(item["name"], self._type(item.get("builtin")))
            self.declared[item["name"]] = custom
            custom_types.append(custom)

        return ComponentInterface(
            namespace=namespace,
            records=[self._record(item) for item in self._items("records")],
            enums=[self._enum(item) for item in self._enum_items()],
            objects=[self._object(item) for item in self._items("objects")],
            callback_interfaces=[
                CallbackInterface(item["name"], tuple(self._method(m) for m in self._nested(item, "methods")),
                                  item.get("docstring"))
                for item in self._items("callback_interfaces")
            ],
            functions=[self._function(item) for item in self._items("functions")],
            custom_types=custom_types,
            docstring=self.payload.get("docstring"),
        )

    def _items(self, key: str) -> list[dict[str, Any]]:
        return self._named_list(self.payload.get(key, []), f"'{key}'")

    def _nested(self, item: dict[str, Any], key: str, default_name: Optional[str] = None) -> list[dict[str, Any]]:
        """The list under `key` of an already validated declaration."""
        return self._named_list(item.get(key, []), f"'{item['name']}.{key}'", default_name)

    def _named_list(self, items: Any, label: str, default_name: Optional[str] = None) -> list[dict[str, Any]]:
        if not isinstance(items, list) or not all(
                isinstance(i, dict) and isinstance(i.get("name", default_name), str) for i in items):
            raise_error("BG4002", path=self.source, reason=f"{label} must be a list of named objects")
        return items

    def _enum_items(self) -> list[dict[str, Any]]:
        # `errors` holds enums declared as error types; they share the enum shape
        return [*self._items("enums"), *self._items("errors")]

    def _type(self, text: Any) -> Type:
        if not isinstance(text, str):
            raise_error("BG4002", path=self.source, reason=f"type must be a string, got {text!r}")
        return self._normalize(parse_type(text, self.declared.get))

    def _optional_type(self, text: Any) -> Optional[Type]:
        return None if text is None else self._type(text)

    def _normalize(self, t: Type) -> Type:
        """Make explicit `object<X>` references agree with X's declaration."""
        match t:
            case ObjectType(name) if isinstance(self.declared.get(name), ObjectType):
                return self.declared[name]
            case OptionalType(inner):
                return OptionalType(self._normalize(inner))
            case SequenceType(inner):
                return SequenceType(self._normalize(inner))
            case MapType(key, value):
                return MapType(self._normalize(key), self._normalize(value))
        return t

    def _field(self, item: dict[str, Any]) -> Field:
        default = item.get("default")
        return Field(
            name=item["name"],
            type=self._type(item.get("type")),
            default=_literal(default),
            docstring=item.get("docstring"),
        )

    def _fields(self, items: list[dict[str, Any]]) -> tuple[Field, ...]:
        return tuple(self._field(f) for f in items)

    def _record(self, item: dict[str, Any]) -> Record:
        return Record(item["name"], self._fields(self._nested(item, "fields")), item.get("docstring"))

    def _enum(self, item: dict[str, Any]) -> Enum:
        variants = []
        for v in self._nested(item, "variants"):
            discr = v.get("discr")
            variants.append(Variant(
                name=v["name"],
                fields=self._fields(self._nested(v, "fields")),
                discr=_literal(discr),
                docstring=v.get("docstring"),
            ))
        return Enum(item["name"], tuple(variants), item.get("docstring"))

    def _method(self, item: dict[str, Any]) -> Method:
        return Method(
            name=item["name"],
            arguments=self._fields(self._nested(item, "arguments")),
            return_type=self._optional_type(item.get("return_type")),
            throws=self._optional_type(item.get("throws")),
            docstring=item.get("docstring"),
        )

    def _object(self, item: dict[str, Any]) -> Object:
        constructors = tuple(
            Constructor(
                name=c.get("name", "new"),
                arguments=self._fields(self._named_list(
                    c.get("arguments", []), f"'{item['name']}.{c.get('name', 'new')}.arguments'")),
                throws=self._optional_type(c.get("throws")),
                docstring=c.get("docstring"),
            )
            for c in self._nested(item, "constructors", "new")
        )
        return Object(
            name=item["name"],
            constructors=constructors,
            methods=tuple(self._method(m) for m in self._nested(item, "methods")),
            supports_foreign_implementation=bool(item.get("foreign_implementable", False)),
            docstring=item.get("docstring"),
        )

    def _function(self, item: dict[str, Any]) -> Function:
        method = self._method(item)
        return Function(method.name, method.arguments, method.return_type, method.throws, method.docstring)
