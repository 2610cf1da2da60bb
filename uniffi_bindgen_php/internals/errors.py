# internals/errors.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from contextlib import contextmanager
from typing import Dict, Iterator, NoReturn, Optional

class Severity(str, Enum):
    ERROR = "error"

class Category(str, Enum):
    CONFIG     = "config"
    COVERAGE   = "coverage"
    RENDER     = "render"
    CONVERSION = "conversion"
    INPUT      = "input"

@dataclass(frozen=True)
class ErrorMessage:
    code: str
    severity: Severity
    text: str
    category: Category = Category.COVERAGE
    doc: str = ""

REGISTRY: Dict[str, ErrorMessage] = {}

#
# --- Exceptions
#

class GenerationError(Exception):
    """Base class for every failure that aborts binding generation.

    `entity` is the dotted path of the declaration being generated
    (``Point.weight``), filled in by `entity_scope` as the error unwinds.
    """

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
        self.entity: Optional[str] = None

class ConfigError(GenerationError):
    """Malformed or contradictory configuration; generation does not start."""

class CoverageError(GenerationError):
    """A Type/FfiType with no mapping rule, or config naming an unknown type."""

class RenderError(GenerationError):
    """A resolved value cannot be expressed in PHP syntax."""

class ConversionError(GenerationError):
    """Malformed value or buffer handed to a reference codec."""

class InputError(GenerationError):
    """Malformed interface description."""

_EXCEPTIONS: Dict[Category, type[GenerationError]] = {
    Category.CONFIG: ConfigError,
    Category.COVERAGE: CoverageError,
    Category.RENDER: RenderError,
    Category.CONVERSION: ConversionError,
    Category.INPUT: InputError,
}

def raise_error(code: str, **kwargs) -> NoReturn:
    """Raise the exception class registered for the category of `code`.

    Args:
        code: Error code (e.g., "BG1001")
        **kwargs: Format parameters for the error message

    Raises:
        GenerationError: Always, as the subclass matching the code's category
    """
    msg = _get(code)
    text = _fmt(code, **kwargs)
    raise _EXCEPTIONS[msg.category](code, text)

@contextmanager
def entity_scope(name: str) -> Iterator[None]:
    """Prefix `name` to the entity of any GenerationError raised inside the block."""
    try:
        yield
    except GenerationError as e:
        e.entity = name if e.entity is None else f"{name}.{e.entity}"
        raise

#
# --- Helpers
#

def _add(msg: ErrorMessage) -> None:
    if msg.code in REGISTRY:
        raise ValueError(f"duplicate error code {REGISTRY[msg.code]} in {msg}")
    REGISTRY[msg.code] = msg

def _get(code: str) -> ErrorMessage:
    try:
        return REGISTRY[code]
    except KeyError:
        raise KeyError(f"unknown error code: {code}")

def _fmt(code: str, **kwargs) -> str:
    msg = _get(code)
    try:
        return msg.text.format(**kwargs)
    except KeyError as key_error:
        missing = key_error.args[0]
        raise KeyError(f"missing text key '{missing}' for {code} "
                       f"(needed by: {msg.text!r})") from None

#
# --- Registry population
#

# Configuration errors - BG0xxx range
_add(ErrorMessage("BG0001", Severity.ERROR,
    "cannot read config file '{path}': {reason}",
    Category.CONFIG, "The TOML file is missing or is not valid TOML."))

_add(ErrorMessage("BG0002", Severity.ERROR,
    "unknown key '{key}' in {table}",
    Category.CONFIG, "Only documented keys are accepted so typos are not silently ignored."))

_add(ErrorMessage("BG0003", Severity.ERROR,
    "'{key}' in {table} must be {expected}, got {got}",
    Category.CONFIG, "A configuration value has the wrong TOML type."))

_add(ErrorMessage("BG0004", Severity.ERROR,
    "custom type '{name}': '{key}' must contain the '{{}}' placeholder",
    Category.CONFIG, "Conversion expressions are templates; '{}' is replaced by the value being converted."))

_add(ErrorMessage("BG0005", Severity.ERROR,
    "'{key}' must be a valid PHP identifier, got '{value}'",
    Category.CONFIG, "Module and package names end up in generated PHP source."))

# Schema/coverage errors - BG1xxx range
_add(ErrorMessage("BG1001", Severity.ERROR,
    "no code type for '{type}'",
    Category.COVERAGE, "The interface description and this backend have drifted out of sync."))

_add(ErrorMessage("BG1002", Severity.ERROR,
    "custom type override '{name}' does not name a custom type of '{namespace}'",
    Category.COVERAGE, "custom_types entries must refer to a declared custom type."))

_add(ErrorMessage("BG1003", Severity.ERROR,
    "FFI type '{type}' is not a legal return type",
    Category.COVERAGE, "Only scalars, handles, object pointers and RustBuffer can be returned across the boundary."))

_add(ErrorMessage("BG1004", Severity.ERROR,
    "layout mismatch for FFI type '{type}': {reason}",
    Category.COVERAGE, "The wrapper and header spellings must describe identical binary layout."))

_add(ErrorMessage("BG1005", Severity.ERROR,
    "no FFI type mapping for '{type}'",
    Category.COVERAGE, "FfiType tag without a mapping rule."))

_add(ErrorMessage("BG1006", Severity.ERROR,
    "'{name}' is referenced but not declared in '{namespace}'",
    Category.COVERAGE, "Enum/record/object/callback references must resolve to a declaration."))

_add(ErrorMessage("BG1007", Severity.ERROR,
    "external type '{name}' from '{namespace}' has no local definition",
    Category.COVERAGE, "Data types of other crates are encoded by their own generated converters."))

# Rendering errors - BG2xxx range
_add(ErrorMessage("BG2001", Severity.ERROR,
    "literal {value} does not fit in {type}",
    Category.RENDER, "Integer literals are range-checked against the declared width and PHP's int."))

_add(ErrorMessage("BG2002", Severity.ERROR,
    "cannot render {literal} as a literal of type {type}",
    Category.RENDER, "The literal kind does not match the type it is declared for."))

_add(ErrorMessage("BG2003", Severity.ERROR,
    "'{value}' is not a valid float literal for {type}",
    Category.RENDER, "Float literals must parse as floating point numbers."))

_add(ErrorMessage("BG2004", Severity.ERROR,
    "enum '{enum}' has no variant at index {index}",
    Category.RENDER, "Discriminant lookup outside the enum's variant list."))

_add(ErrorMessage("BG2005", Severity.ERROR,
    "enum '{enum}' has no variant '{variant}'",
    Category.RENDER, "Enum literal names an undeclared variant."))

# Reference codec errors - BG3xxx range
_add(ErrorMessage("BG3001", Severity.ERROR,
    "value {value!r} is out of range for {type}",
    Category.CONVERSION, "Scalar does not fit the fixed-width wire representation."))

_add(ErrorMessage("BG3002", Severity.ERROR,
    "unexpected {what} {value} while reading {type}",
    Category.CONVERSION, "Buffer carries a tag or discriminant outside the valid range."))

_add(ErrorMessage("BG3003", Severity.ERROR,
    "buffer exhausted reading {type}: needed {needed} bytes, {left} left",
    Category.CONVERSION, "Buffer is shorter than the encoded value."))

_add(ErrorMessage("BG3004", Severity.ERROR,
    "{left} junk bytes remaining after lifting {type}",
    Category.CONVERSION, "Lifting a whole buffer must consume it completely."))

_add(ErrorMessage("BG3005", Severity.ERROR,
    "expected {expected} for {type}, got {value!r}",
    Category.CONVERSION, "Host value has the wrong Python type."))

# Interface description errors - BG4xxx range
_add(ErrorMessage("BG4001", Severity.ERROR,
    "invalid type expression '{text}': {reason}",
    Category.INPUT, "Type expressions follow the grammar in grammar.lark."))

_add(ErrorMessage("BG4002", Severity.ERROR,
    "invalid interface description '{path}': {reason}",
    Category.INPUT, "The JSON document does not match the expected shape."))

_add(ErrorMessage("BG4003", Severity.ERROR,
    "duplicate declaration '{name}' in '{namespace}'",
    Category.INPUT, "Type names must be unique within a component."))
