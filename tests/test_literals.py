import pytest

from uniffi_bindgen_php.backend import filters
from uniffi_bindgen_php.config import Config, CustomTypeConfig
from uniffi_bindgen_php.interface import interface_from_dict
from uniffi_bindgen_php.interface.typeexpr import parse_literal
from uniffi_bindgen_php.interface.types import (
    EnumType, RecordType, OptionalType, SequenceType, MapType, CustomType, primitive,
    BooleanLiteral, StringLiteral, UIntLiteral, IntLiteral, FloatLiteral, EnumLiteral,
    EmptySequenceLiteral, EmptyMapLiteral, NoneLiteral, SomeLiteral, Radix,
)
from uniffi_bindgen_php.internals.errors import RenderError


@pytest.mark.parametrize("t, lit, rendered", [
    (primitive("u32"), UIntLiteral(42), "42"),
    (primitive("u32"), UIntLiteral(42, Radix.HEX), "0x2a"),
    (primitive("u16"), UIntLiteral(15, Radix.OCTAL), "0o17"),
    (primitive("i8"), IntLiteral(-5), "-5"),
    (primitive("i64"), IntLiteral(-(2 ** 63)), str(-(2 ** 63))),
    (primitive("f64"), FloatLiteral("1"), "1.0"),
    (primitive("f32"), FloatLiteral("2.5"), "2.5"),
    (primitive("f64"), FloatLiteral("1e3"), "1e3"),
    (primitive("bool"), BooleanLiteral(False), "false"),
    (primitive("string"), StringLiteral("it's \\ here"), "'it\\'s \\\\ here'"),
    (OptionalType(primitive("u32")), NoneLiteral(), "null"),
    (OptionalType(primitive("u32")), SomeLiteral(UIntLiteral(3)), "3"),
    (OptionalType(primitive("string")), StringLiteral("x"), "'x'"),
    (SequenceType(primitive("u8")), EmptySequenceLiteral(), "[]"),
    (MapType(primitive("string"), primitive("u8")), EmptyMapLiteral(), "[]"),
    (EnumType("Color"), EnumLiteral("green"), "Color::green"),
    (EnumType("if"), EnumLiteral("else"), "If_::else_"),
    (EnumType("Shape"), EnumLiteral("empty"), "new ShapeEmpty()"),
])
def test_literal_rendering(oracle, t, lit, rendered):
    assert oracle.literal(lit, t) == rendered


@pytest.mark.parametrize("t, lit", [
    (primitive("u8"), UIntLiteral(256)),
    (primitive("i8"), IntLiteral(-129)),
    (primitive("u32"), IntLiteral(-1)),
    # fits u64 but not PHP's signed int
    (primitive("u64"), UIntLiteral(2 ** 63)),
])
def test_integer_literals_are_range_checked(oracle, t, lit):
    with pytest.raises(RenderError) as exc:
        oracle.literal(lit, t)
    assert exc.value.code == "BG2001"


@pytest.mark.parametrize("t, lit", [
    (primitive("string"), BooleanLiteral(True)),
    (primitive("u8"), StringLiteral("1")),
    (RecordType("Point"), EmptyMapLiteral()),
    (SequenceType(primitive("u8")), EmptyMapLiteral()),
    (EnumType("Shape"), EnumLiteral("circle")),
])
def test_mismatched_literals(oracle, t, lit):
    with pytest.raises(RenderError) as exc:
        oracle.literal(lit, t)
    assert exc.value.code == "BG2002"


def test_unknown_enum_variant(oracle):
    with pytest.raises(RenderError) as exc:
        oracle.literal(EnumLiteral("purple"), EnumType("Color"))
    assert exc.value.code == "BG2005"


@pytest.mark.parametrize("text", ["inf", "nan", "1e999"])
def test_non_finite_floats(oracle, text):
    with pytest.raises(RenderError) as exc:
        oracle.literal(FloatLiteral(text), primitive("f64"))
    assert exc.value.code == "BG2003"


def test_custom_literals_use_into_custom(geometry, make_oracle):
    guid = CustomType("Guid", primitive("string"))
    config = Config(custom_types={"Guid": CustomTypeConfig(into_custom="Uuid::fromString({})")})
    assert make_oracle(geometry, config).literal(StringLiteral("0b9f"), guid) == "Uuid::fromString('0b9f')"
    assert make_oracle(geometry).literal(StringLiteral("0b9f"), guid) == "'0b9f'"


def test_parsed_literals(oracle):
    assert parse_literal("0x2A") == UIntLiteral(42, Radix.HEX)
    assert parse_literal("-3") == IntLiteral(-3)
    assert parse_literal("Color.red") == EnumLiteral("red")
    assert parse_literal("some(1.5)") == SomeLiteral(FloatLiteral("1.5"))
    assert oracle.literal(parse_literal("0x2A"), primitive("u8")) == "0x2a"


def test_discriminants(geometry):
    color = geometry.get_enum("Color")
    assert [filters.variant_discr_literal(color, i) for i in range(3)] == ["0", "1", "10"]
    with pytest.raises(RenderError) as exc:
        filters.variant_discr_literal(color, 3)
    assert exc.value.code == "BG2004"


def test_non_integer_discriminants_are_rejected(geometry_payload):
    geometry_payload["enums"].append({"name": "Mode", "variants": [{"name": "a", "discr": "\"oops\""}, {"name": "b"}]})
    mode = interface_from_dict(geometry_payload).get_enum("Mode")
    with pytest.raises(RenderError) as exc:
        filters.variant_discr_literal(mode, 0)
    assert exc.value.code == "BG2002"
    assert exc.value.entity == "a"
    # implicit discriminants after it cannot be computed either
    with pytest.raises(RenderError):
        filters.variant_discr_literal(mode, 1)


def test_flat_error_enum_literals_build_the_variant_class(geometry_payload, make_oracle):
    geometry_payload["errors"].append({"name": "LookupError", "variants": [{"name": "missing"}, {"name": "stale"}]})
    geometry_payload["functions"].append({"name": "find", "throws": "LookupError"})
    oracle = make_oracle(interface_from_dict(geometry_payload))
    assert oracle.literal(EnumLiteral("stale"), EnumType("LookupError")) == "new LookupErrorStale()"
