from datetime import datetime, timedelta, timezone

import pytest

from uniffi_bindgen_php.backend.types.primitives import EPOCH
from uniffi_bindgen_php.interface.types import (
    RecordType, EnumType, ObjectType, CallbackInterfaceType, OptionalType, SequenceType, MapType,
    ExternalType, ExternalKind, CustomType, PrimitiveKind, primitive,
)
from uniffi_bindgen_php.internals.errors import ConversionError, CoverageError


def test_record_round_trip(oracle):
    point = oracle.find(RecordType("Point"))
    value = {"x": 1.5, "y": -2.25}
    lowered = point.lower_value(value)
    assert lowered == b"\x3f\xf8\x00\x00\x00\x00\x00\x00\xc0\x02\x00\x00\x00\x00\x00\x00"
    assert point.lift_value(lowered) == value
    assert point.type_label() == "Point"
    primitive_names = {oracle.canonical_name(primitive(kind)) for kind in PrimitiveKind}
    assert point.canonical_name() not in primitive_names


def test_nested_record_round_trip(oracle):
    line = oracle.find(RecordType("Line"))
    value = {"start": {"x": 0.0, "y": 0.0}, "end": {"x": 3.0, "y": 4.0}, "label": "diagonal"}
    assert line.lift_value(line.lower_value(value)) == value
    value["label"] = None
    assert line.lift_value(line.lower_value(value)) == value


def test_sequence_of_strings_wire_format(oracle):
    seq = oracle.find(SequenceType(primitive("string")))
    assert seq.lower_value(["hé"]) == b"\x00\x00\x00\x01\x00\x00\x00\x03h\xc3\xa9"


def test_top_level_string_is_not_length_prefixed(oracle):
    string = oracle.find(primitive("string"))
    assert string.lower_value("hé") == b"h\xc3\xa9"
    assert string.lift_value(b"h\xc3\xa9") == "hé"


def test_compound_round_trips(oracle):
    cases = [
        (OptionalType(primitive("u32")), None),
        (OptionalType(primitive("u32")), 7),
        (SequenceType(RecordType("Point")), [{"x": 1.0, "y": 2.0}, {"x": -1.0, "y": 0.5}]),
        (MapType(primitive("string"), primitive("i64")), {"a": -1, "b": 2 ** 40}),
        (primitive("bytes"), b"\x00\xff"),
        (EnumType("Color"), "blue"),
        (EnumType("Shape"), ("circle", {"radius": 2.0})),
        (EnumType("Shape"), "empty"),
        (CustomType("Guid", primitive("string")), "0b9f"),
    ]
    for t, value in cases:
        code_type = oracle.find(t)
        assert code_type.lift_value(code_type.lower_value(value)) == value


def test_enum_variant_index_is_one_based(oracle):
    color = oracle.find(EnumType("Color"))
    assert color.lower_value("red") == b"\x00\x00\x00\x01"
    with pytest.raises(ConversionError) as exc:
        color.lift_value(b"\x00\x00\x00\x00")
    assert exc.value.code == "BG3002"


def test_scalars_cross_unchanged(oracle):
    assert oracle.find(primitive("u8")).lower_value(255) == 255
    assert oracle.find(primitive("f64")).lift_value(0.25) == 0.25
    assert oracle.find(primitive("bool")).lower_value(True) == 1
    assert oracle.find(ObjectType("Canvas")).lower_value(0xDEAD) == 0xDEAD
    assert oracle.find(CallbackInterfaceType("Listener")).lift_value(3) == 3


@pytest.mark.parametrize("t, value", [
    (primitive("u8"), 256),
    (primitive("i8"), -129),
    (primitive("u64"), -1),
    (primitive("i32"), 2 ** 31),
    (ObjectType("Canvas"), 2 ** 64),
])
def test_out_of_range_values(oracle, t, value):
    with pytest.raises(ConversionError) as exc:
        oracle.find(t).lower_value(value)
    assert exc.value.code == "BG3001"


@pytest.mark.parametrize("t, value", [
    (primitive("u32"), "7"),
    (primitive("u32"), True),
    (primitive("bool"), 1),
    (primitive("string"), b"bytes"),
    (RecordType("Point"), [1.0, 2.0]),
    (RecordType("Point"), {"x": 1.0}),
    (EnumType("Shape"), 3),
])
def test_wrong_host_values(oracle, t, value):
    with pytest.raises(ConversionError) as exc:
        oracle.find(t).lower_value(value)
    assert exc.value.code == "BG3005"


def test_junk_after_value(oracle):
    point = oracle.find(RecordType("Point"))
    with pytest.raises(ConversionError) as exc:
        point.lift_value(point.lower_value({"x": 1.0, "y": 2.0}) + b"\x00")
    assert exc.value.code == "BG3004"


def test_truncated_buffer(oracle):
    point = oracle.find(RecordType("Point"))
    with pytest.raises(ConversionError) as exc:
        point.lift_value(point.lower_value({"x": 1.0, "y": 2.0})[:-1])
    assert exc.value.code == "BG3003"


def test_malformed_tags(oracle):
    with pytest.raises(ConversionError) as exc:
        oracle.find(OptionalType(primitive("u8"))).lift_value(b"\x02\x01")
    assert exc.value.code == "BG3002"
    with pytest.raises(ConversionError) as exc:
        oracle.find(primitive("bool")).lift_value(2)
    assert exc.value.code == "BG3002"
    with pytest.raises(ConversionError) as exc:
        oracle.find(SequenceType(primitive("u8"))).lift_value(b"\xff\xff\xff\xff")
    assert exc.value.code == "BG3002"


def test_timestamps(oracle):
    ts = oracle.find(primitive("timestamp"))
    later = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
    earlier = EPOCH - timedelta(seconds=10, microseconds=250000)
    for value in (later, earlier, EPOCH):
        assert ts.lift_value(ts.lower_value(value)) == value
    # seconds and nanos both count away from the epoch
    assert ts.lower_value(earlier) == (-10).to_bytes(8, "big", signed=True) + (250000000).to_bytes(4, "big")
    with pytest.raises(ConversionError):
        ts.lower_value(datetime(2024, 1, 1))


def test_durations(oracle):
    duration = oracle.find(primitive("duration"))
    value = timedelta(days=1, seconds=3, microseconds=5)
    assert duration.lift_value(duration.lower_value(value)) == value
    with pytest.raises(ConversionError) as exc:
        duration.lower_value(timedelta(seconds=-1))
    assert exc.value.code == "BG3001"


def test_external_data_types_have_no_local_codec(oracle):
    url = oracle.find(ExternalType("Url", "other", ExternalKind.DATA))
    with pytest.raises(CoverageError) as exc:
        url.lower_value("https://example.com")
    assert exc.value.code == "BG1007"
    handle = oracle.find(ExternalType("Client", "other", ExternalKind.INTERFACE))
    assert handle.lift_value(handle.lower_value(9)) == 9


@pytest.mark.parametrize("kind, seconds", [
    ("duration", (2 ** 63).to_bytes(8, "big")),
    ("timestamp", (10 ** 12).to_bytes(8, "big", signed=True)),
    ("timestamp", (-(2 ** 62)).to_bytes(8, "big", signed=True)),
])
def test_out_of_range_times_are_conversion_errors(oracle, kind, seconds):
    code_type = oracle.find(primitive(kind))
    with pytest.raises(ConversionError) as exc:
        code_type.lift_value(seconds + b"\x00\x00\x00\x00")
    assert exc.value.code == "BG3002"
