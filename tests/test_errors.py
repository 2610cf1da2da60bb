import pytest

from uniffi_bindgen_php.internals.errors import (
    REGISTRY, Category, Severity, GenerationError, RenderError, InputError, entity_scope, raise_error,
)
from uniffi_bindgen_php.internals.report import Reporter


def test_every_catalog_entry_is_an_error():
    assert [s for s in Severity] == [Severity.ERROR]
    assert all(msg.severity is Severity.ERROR for msg in REGISTRY.values())
    assert {msg.category for msg in REGISTRY.values()} == set(Category)


def test_raise_error_picks_the_category_class():
    with pytest.raises(RenderError) as exc:
        raise_error("BG2001", value=300, type="u8")
    assert exc.value.message == "literal 300 does not fit in u8"
    assert exc.value.entity is None


def test_entity_scopes_nest_outermost_first():
    with pytest.raises(GenerationError) as exc:
        with entity_scope("Canvas"):
            with entity_scope("draw"):
                with entity_scope("line"):
                    raise_error("BG2001", value=1, type="u8")
    assert exc.value.entity == "Canvas.draw.line"


def test_entity_scope_leaves_other_exceptions_alone():
    with pytest.raises(KeyError):
        with entity_scope("Point"):
            raise KeyError("x")


def test_reporter_prints_the_entity_beside_the_location():
    reporter = Reporter(filename="geometry.json")
    try:
        with entity_scope("Point"):
            with entity_scope("weight"):
                raise_error("BG2001", value=300, type="u8")
    except GenerationError as e:
        reporter.error(e.code, e.message, entity=e.entity)
    assert reporter.has_errors
    assert reporter.format(use_color=False) == (
        "geometry.json (Point.weight): error [BG2001]: literal 300 does not fit in u8.")


def test_input_errors_have_no_entity_by_default():
    with pytest.raises(InputError) as exc:
        raise_error("BG4002", path="x.json", reason="missing 'namespace'")
    assert exc.value.entity is None
