import pytest

from uniffi_bindgen_php.backend import naming


def test_reserved_enum_name_is_escaped():
    assert naming.class_name("if") == "If_"
    assert naming.class_name("if") != "if"


@pytest.mark.parametrize("name", ["if", "IF", "If", "class", "Function", "string", "self"])
def test_keywords_are_case_insensitive(name):
    assert naming.is_keyword(name)
    assert naming.class_name(name).endswith("_")


@pytest.mark.parametrize("raw, expected", [
    ("point", "Point"),
    ("geometry_error", "GeometryError"),
    ("VTableCallbackInterfaceFoo", "VTableCallbackInterfaceFoo"),
    ("http__client", "HttpClient"),
])
def test_class_name_is_pascal_case(raw, expected):
    assert naming.class_name(raw) == expected


def test_function_and_variable_names():
    assert naming.fn_name("with_points") == "withPoints"
    assert naming.fn_name("new") == "new_"
    assert naming.var_name("class") == "class_"
    assert naming.var_name("start_point") == "startPoint"
    assert naming.enum_variant_name("else") == "else_"
    assert naming.enum_variant_name("red") == "red"


def test_argument_names_use_their_own_reserved_set():
    assert naming.arg_name("this") == "this_"
    # keywords are legal variable names in PHP
    assert naming.arg_name("class") == "class"
    assert naming.arg_name("first_value") == "firstValue"


@pytest.mark.parametrize("other", ["iff", "if_else", "elif", "ifStatement"])
def test_escaped_names_differ_from_plain_names(other):
    escaped = naming.class_name("if")
    assert naming.class_name(other) != escaped
    assert not naming.class_name(other).endswith("_")


def test_unquote_recovers_the_identifier():
    assert naming.unquote("If_") == "If"
    assert naming.unquote("this_") == "this"
    assert naming.unquote("value_") == "value_"


def test_macro_case():
    assert naming.macro("CallbackInterfaceFree") == "CALLBACK_INTERFACE_FREE"
    assert naming.macro("rust_buffer") == "RUST_BUFFER"


@pytest.mark.parametrize("name", ["this", "GLOBALS"])
def test_property_and_method_names_escape_parameter_reserved_words(name):
    # promoted constructor properties are parameters too
    assert naming.var_name(name) == f"{name}_"
    assert naming.fn_name(name) == f"{name}_"
    assert naming.var_name("class") == "class_"


def test_trailing_underscores_survive_conversion():
    assert naming.class_name("if_") == "If__"
    assert naming.class_name("if_") != naming.class_name("if")
    assert naming.var_name("value_") == "value__"
    assert naming.var_name("value_") != naming.var_name("value")
    assert naming.arg_name("this_") != naming.arg_name("this")
    assert naming.unquote(naming.class_name("if_")) == "If_"
