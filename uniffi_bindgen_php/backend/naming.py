"""Identifier case conversion and PHP reserved-word escaping.

PHP keywords and reserved class names are case-insensitive (`If`, `IF` and
`if` are all illegal as a class name), so the general set is checked
case-insensitively. Variable names are case-sensitive; only `$this` and
`$GLOBALS` are illegal as parameter names.

Escaping appends an underscore. Case conversion keeps trailing underscores,
and a converted name that already ends in `_` is escaped as well, so `if_`
becomes `If__` and never meets the escaped `if`.
"""
from __future__ import annotations

import inflection

# PHP reserved keywords (https://www.php.net/manual/en/reserved.keywords.php)
_RESERVED_KEYWORDS = frozenset({
    "__halt_compiler", "abstract", "and", "array", "as", "break", "callable",
    "case", "catch", "class", "clone", "const", "continue", "declare",
    "default", "die", "do", "echo", "else", "elseif", "empty", "enddeclare",
    "endfor", "endforeach", "endif", "endswitch", "endwhile", "enum", "eval",
    "exit", "extends", "final", "finally", "fn", "for", "foreach", "function",
    "global", "goto", "if", "implements", "include", "include_once",
    "instanceof", "insteadof", "interface", "isset", "list", "match",
    "namespace", "new", "or", "print", "private", "protected", "public",
    "readonly", "require", "require_once", "return", "static", "switch",
    "throw", "trait", "try", "unset", "use", "var", "while", "xor", "yield",
})

# Reserved class names (https://www.php.net/manual/en/reserved.other-reserved-words.php)
_RESERVED_CLASS_NAMES = frozenset({
    "bool", "false", "float", "int", "iterable", "mixed", "never", "null",
    "numeric", "object", "parent", "resource", "self", "string", "true", "void",
})

KEYWORDS: frozenset[str] = _RESERVED_KEYWORDS | _RESERVED_CLASS_NAMES

ARG_KEYWORDS: frozenset[str] = frozenset({"this", "GLOBALS"})

ESCAPE_SUFFIX = "_"


def is_keyword(name: str) -> bool:
    return name.lower() in KEYWORDS


def is_arg_keyword(name: str) -> bool:
    return name in ARG_KEYWORDS


def _quote(name: str, reserved) -> str:
    # Names already ending in the suffix are escaped too, keeping the mapping injective
    if reserved(name) or name.endswith(ESCAPE_SUFFIX):
        return f"{name}{ESCAPE_SUFFIX}"
    return name


def quote_general_keyword(name: str) -> str:
    """Escape `name` if it is illegal as a class, function, constant or member name."""
    return _quote(name, is_keyword)


def quote_arg_keyword(name: str) -> str:
    """Escape `name` if it is illegal as a parameter name."""
    return _quote(name, is_arg_keyword)


def quote_any_keyword(name: str) -> str:
    """Escape `name` if it is illegal in either role; used for promoted properties."""
    return _quote(name, lambda n: is_keyword(n) or is_arg_keyword(n))


def unquote(name: str) -> str:
    """Recover the identifier an escaped name was produced from."""
    if name.endswith(ESCAPE_SUFFIX):
        stem = name[:-1]
        if is_keyword(stem) or is_arg_keyword(stem) or stem.endswith(ESCAPE_SUFFIX):
            return stem
    return name


def _snake(name: str) -> str:
    """Split on humps, dashes and runs of underscores: "VTable__fooBar" -> "v_table_foo_bar"."""
    return "_".join(w for w in inflection.underscore(name).split("_") if w)


def _trailing(name: str) -> str:
    return name[len(name.rstrip("_")):]


def pascal(name: str) -> str:
    snake = _snake(name)
    return inflection.camelize(snake) + _trailing(name) if snake else name


def camel(name: str) -> str:
    snake = _snake(name)
    return inflection.camelize(snake, False) + _trailing(name) if snake else name


def macro(name: str) -> str:
    return _snake(name).upper()


def class_name(name: str) -> str:
    return quote_general_keyword(pascal(name))


def fn_name(name: str) -> str:
    return quote_any_keyword(camel(name))


def var_name(name: str) -> str:
    return quote_any_keyword(camel(name))


def arg_name(name: str) -> str:
    return quote_arg_keyword(camel(name))


def enum_variant_name(name: str) -> str:
    return quote_general_keyword(camel(name))
