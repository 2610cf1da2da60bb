import pytest

from uniffi_bindgen_php.backend.generator import BindingGeneratorPHP
from uniffi_bindgen_php.config import Config, CustomTypeConfig, load_config, load_config_from_string
from uniffi_bindgen_php.internals.errors import ConfigError, CoverageError

FULL = r"""
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


def test_full_config():
    config = load_config_from_string(FULL)
    assert config.module_name == "Geometry"
    assert config.cdylib_name == "geometry"
    assert config.custom_types["Guid"] == CustomTypeConfig(
        imports=("Ramsey\\Uuid\\Uuid",),
        type_name="\\Ramsey\\Uuid\\UuidInterface",
        into_custom="Uuid::fromString({})",
        from_custom="{}->toString()",
    )
    assert config.external_packages == {"other": "Acme\\Other"}


def test_missing_table_gives_defaults():
    assert load_config_from_string("[package]\nname = 'x'\n") == Config()


@pytest.mark.parametrize("text, code", [
    ("[bindings.php]\nmodule_nam = 'x'\n", "BG0002"),
    ("[bindings.php.custom_types.Guid]\nconvert = '{}'\n", "BG0002"),
    ("[bindings.php]\ncdylib_name = 3\n", "BG0003"),
    ("[bindings.php]\ncustom_types = 'Guid'\n", "BG0003"),
    ("[bindings.php.custom_types.Guid]\nimports = 'Uuid'\n", "BG0003"),
    ("[bindings.php.custom_types.Guid]\ninto_custom = 'Uuid::fromString()'\n", "BG0004"),
    ("[bindings.php]\nmodule_name = '1geometry'\n", "BG0005"),
    ("[bindings.php.external_packages]\nother = 'Acme-Other'\n", "BG0005"),
    ("[bindings.php\n", "BG0001"),
])
def test_invalid_config(text, code):
    with pytest.raises(ConfigError) as exc:
        load_config_from_string(text)
    assert exc.value.code == code


def test_load_config_from_file(tmp_path):
    path = tmp_path / "uniffi.toml"
    path.write_text(FULL, encoding="utf-8")
    assert load_config(path).module_name == "Geometry"
    with pytest.raises(ConfigError) as exc:
        load_config(tmp_path / "missing.toml")
    assert exc.value.code == "BG0001"


def test_component_defaults(geometry):
    config = Config().update_component_config(geometry)
    assert config.module_name == "geometry"
    assert config.cdylib_name == "uniffi_geometry"
    explicit = Config(module_name="Geo", cdylib_name="geo").update_component_config(geometry)
    assert (explicit.module_name, explicit.cdylib_name) == ("Geo", "geo")


def test_override_for_undeclared_custom_type(geometry):
    config = Config(custom_types={"Uuid": CustomTypeConfig()})
    with pytest.raises(CoverageError) as exc:
        config.update_component_config(geometry)
    assert exc.value.code == "BG1002"


def test_generator_reads_root_toml(geometry):
    generator = BindingGeneratorPHP()
    config = generator.new_config({"bindings": {"php": {"cdylib_name": "geo"}}})
    [(ci, updated)] = generator.update_component_configs([(geometry, config)])
    assert ci is geometry
    assert updated.cdylib_name == "geo"
    assert updated.module_name == "geometry"
