import copy

import pytest

from uniffi_bindgen_php.backend.context import GenerationContext
from uniffi_bindgen_php.backend.oracle import PHPCodeOracle
from uniffi_bindgen_php.config import Config
from uniffi_bindgen_php.interface import interface_from_dict

GEOMETRY = {
    "namespace": "geometry",
    "records": [
        {"name": "Point", "fields": [{"name": "x", "type": "f64"}, {"name": "y", "type": "f64"}]},
        {"name": "Line", "docstring": "A segment between two points.", "fields": [
            {"name": "start", "type": "Point"},
            {"name": "end", "type": "Point"},
            {"name": "label", "type": "optional<string>", "default": "null"},
        ]},
    ],
    "enums": [
        {"name": "Color", "variants": [{"name": "red"}, {"name": "green"}, {"name": "blue", "discr": 10}]},
        {"name": "Shape", "variants": [
            {"name": "circle", "fields": [{"name": "radius", "type": "f64"}]},
            {"name": "empty"},
        ]},
        {"name": "if", "variants": [{"name": "then"}, {"name": "else"}]},
    ],
    "errors": [
        {"name": "GeometryError", "variants": [
            {"name": "degenerate", "fields": [{"name": "reason", "type": "string"}]},
            {"name": "overflow"},
        ]},
    ],
    "objects": [
        {
            "name": "Canvas",
            "constructors": [
                {"name": "new", "arguments": [{"name": "width", "type": "u32"}]},
                {"name": "with_points", "arguments": [{"name": "points", "type": "sequence<Point>"}]},
            ],
            "methods": [
                {"name": "draw", "arguments": [{"name": "line", "type": "Line"}], "throws": "GeometryError"},
                {"name": "points", "return_type": "sequence<Point>"},
            ],
        },
        {
            "name": "Renderer",
            "foreign_implementable": True,
            "methods": [
                {"name": "render", "arguments": [{"name": "shape", "type": "Shape"}], "return_type": "bool"},
            ],
        },
    ],
    "callback_interfaces": [
        {"name": "Listener", "methods": [
            {"name": "on_point", "arguments": [{"name": "point", "type": "Point"}, {"name": "this", "type": "u8"}],
             "throws": "GeometryError"},
            {"name": "count", "return_type": "u64"},
        ]},
    ],
    "functions": [
        {"name": "centroid", "arguments": [{"name": "points", "type": "sequence<Point>"}],
         "return_type": "Point", "throws": "GeometryError", "docstring": "Mean of all points."},
        {"name": "bounding_box", "arguments": [
            {"name": "points", "type": "sequence<Point>"},
            {"name": "padding", "type": "f64", "default": 0.0},
        ], "return_type": "map<string, f64>"},
        {"name": "tag", "arguments": [{"name": "id", "type": "Guid"}], "return_type": "timestamp?"},
    ],
    "custom_types": [{"name": "Guid", "builtin": "string"}],
}


@pytest.fixture
def geometry_payload():
    return copy.deepcopy(GEOMETRY)


@pytest.fixture
def geometry(geometry_payload):
    return interface_from_dict(geometry_payload)


@pytest.fixture
def make_oracle():
    def make(ci, config=None):
        return PHPCodeOracle(GenerationContext.for_component(config or Config(), ci))
    return make


@pytest.fixture
def oracle(geometry, make_oracle):
    return make_oracle(geometry)
