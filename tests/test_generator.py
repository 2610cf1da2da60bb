import json

import pytest

from uniffi_bindgen_php import cli
from uniffi_bindgen_php.backend.generator import BindingGeneratorPHP, write_atomic
from uniffi_bindgen_php.config import Config
from uniffi_bindgen_php.interface import interface_from_dict
from uniffi_bindgen_php.internals.errors import RenderError


def test_write_bindings(tmp_path, geometry):
    generator = BindingGeneratorPHP()
    components = generator.update_component_configs([(geometry, Config())])
    [path] = generator.write_bindings(tmp_path, components)
    assert path == tmp_path / "geometry.php"
    assert path.read_text(encoding="utf-8").startswith("<?php\n")
    assert sorted(p.name for p in tmp_path.iterdir()) == ["geometry.php"]


def test_module_name_picks_the_file_name(tmp_path, geometry):
    generator = BindingGeneratorPHP()
    components = generator.update_component_configs([(geometry, Config(module_name="Geo"))])
    [path] = generator.write_bindings(tmp_path / "out", components)
    assert path.name == "Geo.php"
    assert "namespace Geo;" in path.read_text(encoding="utf-8")


def test_failed_render_writes_nothing(tmp_path, geometry, geometry_payload):
    geometry_payload["namespace"] = "broken"
    geometry_payload["records"][0]["fields"].append({"name": "weight", "type": "u8", "default": 300})
    broken = interface_from_dict(geometry_payload)
    generator = BindingGeneratorPHP()
    components = generator.update_component_configs([(geometry, Config()), (broken, Config())])
    with pytest.raises(RenderError):
        generator.write_bindings(tmp_path, components)
    assert list(tmp_path.iterdir()) == []


def test_write_atomic_replaces(tmp_path):
    path = tmp_path / "geometry.php"
    path.write_text("old", encoding="utf-8")
    write_atomic(path, "new")
    assert path.read_text(encoding="utf-8") == "new"
    assert [p.name for p in tmp_path.iterdir()] == ["geometry.php"]


@pytest.fixture
def interface_file(tmp_path, geometry_payload):
    path = tmp_path / "geometry.json"
    path.write_text(json.dumps(geometry_payload), encoding="utf-8")
    return path


def test_cli_writes_bindings(tmp_path, interface_file):
    out_dir = tmp_path / "php"
    assert cli.main([str(interface_file), "-o", str(out_dir)]) == 0
    assert (out_dir / "geometry.php").exists()


def test_cli_reads_config(tmp_path, interface_file):
    config = tmp_path / "uniffi.toml"
    config.write_text('[bindings.php]\nmodule_name = "Geometry"\n', encoding="utf-8")
    out_dir = tmp_path / "php"
    assert cli.main([str(interface_file), "-c", str(config), "-o", str(out_dir)]) == 0
    assert (out_dir / "Geometry.php").exists()


def test_cli_check_writes_nothing(tmp_path, interface_file):
    out_dir = tmp_path / "php"
    assert cli.main([str(interface_file), "--check", "-o", str(out_dir)]) == 0
    assert not out_dir.exists()


def test_cli_reports_bad_type_expression(tmp_path, geometry_payload, capsys):
    geometry_payload["functions"][0]["return_type"] = "sequence<Pointt>"
    path = tmp_path / "geometry.json"
    path.write_text(json.dumps(geometry_payload), encoding="utf-8")
    assert cli.main([str(path), "-o", str(tmp_path / "php")]) == 2
    err = capsys.readouterr().err
    assert "BG4001" in err
    assert "Pointt" in err
    assert not (tmp_path / "php").exists()


def test_cli_reports_config_errors(tmp_path, interface_file, capsys):
    config = tmp_path / "uniffi.toml"
    config.write_text("[bindings.php]\nmodule = 'x'\n", encoding="utf-8")
    assert cli.main([str(interface_file), "-c", str(config)]) == 2
    assert "BG0002" in capsys.readouterr().err


def test_cli_version(capsys):
    assert cli.main(["--version"]) == 0
    assert capsys.readouterr().out.startswith("uniffi-bindgen-php ")


def test_cli_requires_an_interface(capsys):
    assert cli.main([]) == 2
    assert "interface description required" in capsys.readouterr().err


def test_cli_reports_nameless_nested_items(tmp_path, geometry_payload, capsys):
    geometry_payload["records"][0]["fields"].append({"type": "u8"})
    path = tmp_path / "geometry.json"
    path.write_text(json.dumps(geometry_payload), encoding="utf-8")
    assert cli.main([str(path), "-o", str(tmp_path / "php")]) == 2
    err = capsys.readouterr().err
    assert "BG4002" in err
    assert "'Point.fields'" in err


def test_cli_names_the_entity_of_a_render_error(tmp_path, geometry_payload, capsys):
    geometry_payload["records"][0]["fields"].append({"name": "weight", "type": "u8", "default": 300})
    path = tmp_path / "geometry.json"
    path.write_text(json.dumps(geometry_payload), encoding="utf-8")
    assert cli.main([str(path), "-o", str(tmp_path / "php")]) == 2
    err = capsys.readouterr().err
    assert "(Point.weight)" in err
    assert "BG2001" in err
