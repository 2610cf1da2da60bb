"""Lark parser for type expressions, literal expressions and C type spellings."""
from __future__ import annotations

import json
from functools import cache
from pathlib import Path
from typing import Callable, Optional

from lark import Lark, Transformer, Token, UnexpectedInput
from lark.exceptions import VisitError

from uniffi_bindgen_php.interface.types import (
    Type, Literal, PrimitiveKind, PrimitiveType, EnumType, RecordType, ObjectType,
    CallbackInterfaceType, OptionalType, SequenceType, MapType, ExternalType,
    ExternalKind, CustomType, Radix, BooleanLiteral, StringLiteral, UIntLiteral,
    IntLiteral, FloatLiteral, EnumLiteral, EmptySequenceLiteral, EmptyMapLiteral,
    NoneLiteral, SomeLiteral,
)
from uniffi_bindgen_php.internals.errors import InputError, raise_error
from uniffi_bindgen_php.internals.report import Span

Resolver = Callable[[str], Optional[Type]]

GRAMMAR_PATH = Path(__file__).parent.parent / "grammar.lark"


class TypeExprError(InputError):
    """A type/literal expression failed to parse; `span` points into the expression."""

    def __init__(self, code: str, message: str, span: Span | None = None) -> None:
        super().__init__(code, message)
        self.span = span


@cache
def _parser() -> Lark:
    return Lark.open(
        str(GRAMMAR_PATH),
        parser="lalr",
        start=["type_expr", "literal", "c_type"],
        propagate_positions=True,
        maybe_placeholders=False,
    )


_NAMED = {
    "record": RecordType,
    "enum": EnumType,
    "object": ObjectType,
    "callback": CallbackInterfaceType,
}


class _TypeBuilder(Transformer):
    """Builds `Type` values; bare names stay tokens until their position is known."""

    def __init__(self, resolve: Resolver | None = None) -> None:
        super().__init__()
        self._resolve = resolve

    def _as_type(self, node) -> Type:
        return _as_type(node, self._resolve)

    def simple(self, children):
        return children[0]

    def optional_sugar(self, children):
        return OptionalType(self._as_type(children[0]))

    def custom_arg(self, children):
        name, builtin = children
        return ("custom", str(name), self._as_type(builtin))

    def external_arg(self, children):
        name, namespace = children
        return ("external", str(name), str(namespace))

    def generic(self, children):
        head, *args = children
        match str(head), args:
            case "optional", [inner]:
                return OptionalType(self._as_type(inner))
            case "sequence", [inner]:
                return SequenceType(self._as_type(inner))
            case "map", [key, value]:
                return MapType(self._as_type(key), self._as_type(value))
            case ("record" | "enum" | "object" | "callback") as kind, [Token() as name]:
                return _NAMED[kind](str(name))
            case "trait", [Token() as name]:
                return ObjectType(str(name), supports_foreign_implementation=True)
            case "custom", [("custom", name, builtin)]:
                return CustomType(name, builtin)
            case "external", [("external", name, namespace)]:
                return ExternalType(name, namespace, ExternalKind.DATA)
            case "external_interface", [("external", name, namespace)]:
                return ExternalType(name, namespace, ExternalKind.INTERFACE)
        raise_error("BG4001", text=f"{head}<...>", reason=f"bad arguments for '{head}'")

    # --- literals

    def int_lit(self, children):
        value = int(children[0])
        return IntLiteral(value) if value < 0 else UIntLiteral(value)

    def hex_lit(self, children):
        return UIntLiteral(int(children[0], 16), Radix.HEX)

    def oct_lit(self, children):
        return UIntLiteral(int(children[0][2:], 8), Radix.OCTAL)

    def float_lit(self, children):
        return FloatLiteral(str(children[0]))

    def string_lit(self, children):
        return StringLiteral(json.loads(children[0]))

    def true_lit(self, _):
        return BooleanLiteral(True)

    def false_lit(self, _):
        return BooleanLiteral(False)

    def null_lit(self, _):
        return NoneLiteral()

    def empty_seq(self, _):
        return EmptySequenceLiteral()

    def empty_map(self, _):
        return EmptyMapLiteral()

    def some_lit(self, children):
        return SomeLiteral(children[0])

    def enum_lit(self, children):
        return EnumLiteral(str(children[1]))

    # --- C spellings

    def c_type(self, children):
        name, *stars = children
        return str(name), len(stars)


def _as_type(node, resolve: Resolver | None = None) -> Type:
    if isinstance(node, Token):
        try:
            return PrimitiveType(PrimitiveKind(str(node)))
        except ValueError:
            resolved = resolve(str(node)) if resolve is not None else None
            if resolved is not None:
                return resolved
            raise TypeExprError("BG4001", f"unknown type '{node}'",
                                Span(node.line, node.column, node.end_line, node.end_column)) from None
    return node


def _parse(text: str, start: str, resolve: Resolver | None = None):
    try:
        tree = _parser().parse(text, start=start)
        return _TypeBuilder(resolve).transform(tree)
    except UnexpectedInput as e:
        line, col = getattr(e, "line", -1), getattr(e, "column", -1)
        span = Span(line, col, line, col) if line > 0 else None
        raise TypeExprError("BG4001", f"invalid {start.replace('_', ' ')} '{text}'", span) from e
    except VisitError as e:
        raise e.orig_exc from None


def parse_type(text: str, resolve: Resolver | None = None) -> Type:
    """Parse a type expression such as ``map<string, sequence<record<Point>>>``.

    Bare names that are not primitives (``sequence<Point>``) are looked up
    through `resolve`; without a resolver they are an error.
    """
    return _as_type(_parse(text, "type_expr", resolve), resolve)


def parse_literal(text: str) -> Literal:
    """Parse a default-value expression such as ``0x2A`` or ``Color.red``."""
    return _parse(text, "literal")


def parse_c_type(text: str) -> tuple[str, int]:
    """Split a C spelling into its base name and pointer depth: ``RustBuffer*`` -> ("RustBuffer", 1)."""
    return _parse(text, "c_type")
