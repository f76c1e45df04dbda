"""Tests for the schema reflection engine and its mutations."""

from __future__ import annotations

import queue
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Optional

import fakearithmetic
import fakegeometry
import jsonschema
import pytest
from pydantic import BaseModel, ConfigDict

from refract.core.errors import UnsupportedType
from refract.core.reflection import (
    NULL_SCHEMA,
    PRIMITIVE_TYPES,
    ReflectOptions,
    default_reflect_options,
    expand_references,
    normalize_additional_properties,
    remove_definitions,
    require_default_on,
    type_to_schema,
)
from refract.core.walk import collect_definitions, collect_refs, walk_depth_first


@dataclass
class Options:
    verbose: bool = False
    depth: int = 1


@dataclass
class Drawing:
    shape: fakegeometry.Circle
    label: str


class Strict(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str


def test_builtin_gets_type_description():
    assert type_to_schema(int) == {"type": "integer", "description": "int"}


def test_pointer_is_nilable():
    schema = type_to_schema(Optional[int])
    assert schema == {
        "oneOf": [
            {"type": "integer", "description": "Optional[int]"},
            NULL_SCHEMA,
        ]
    }


def test_sequence_is_nilable():
    schema = type_to_schema(list[int])
    array, null = schema["oneOf"]
    assert array["type"] == "array"
    assert array["items"] == {"type": "integer"}
    assert null == {"type": "null"}


def test_fixed_tuple_is_not_nilable():
    schema = type_to_schema(tuple[int, str])
    assert "oneOf" not in schema
    assert schema["type"] == "array"


def test_any_is_one_of_primitives():
    schema = type_to_schema(Any)
    assert [s["type"] for s in schema["oneOf"]] == list(PRIMITIVE_TYPES)
    assert schema["description"] == "typing.Any"


def test_dataclass_properties():
    schema = type_to_schema(fakegeometry.Circle)
    assert schema["type"] == "object"
    assert set(schema["properties"]) == {"radius", "center_x", "center_y"}
    assert "radius" in schema["required"]
    assert schema["description"] == "fakegeometry.Circle"


def test_all_defaulted_properties_become_required():
    schema = type_to_schema(Options)
    assert schema["required"] == ["verbose", "depth"]


def test_newtype_reflects_underlying_type():
    schema = type_to_schema(fakearithmetic.AddReply)
    assert schema == {"type": "integer", "description": "fakearithmetic.AddReply"}


def test_nested_definitions_are_inlined_and_removed():
    schema = type_to_schema(Drawing)
    assert "$defs" not in schema
    assert collect_refs(schema) == set()
    assert set(schema["properties"]["shape"]["properties"]) == {"radius", "center_x", "center_y"}


def test_recursive_reference_is_kept():
    schema = type_to_schema(fakearithmetic.TreeNode)
    assert set(schema["properties"]) == {"value", "children"}
    refs = collect_refs(schema)
    assert refs
    definitions = collect_definitions(schema)
    assert refs <= set(definitions)


def test_additional_properties_normalized():
    schema = type_to_schema(Strict)
    assert schema["additionalProperties"] == {}


def test_mapping_value_schema_kept():
    schema = type_to_schema(dict[str, int])
    assert schema["additionalProperties"] == {"type": "integer"}


@pytest.mark.parametrize("tp", [Callable[[int], int], queue.Queue])
def test_unrepresentable_types_raise(tp):
    with pytest.raises(UnsupportedType):
        type_to_schema(tp)


def test_ignored_type_is_permissive():
    options = default_reflect_options(ignored_types=(fakegeometry.Circle,))
    assert type_to_schema(fakegeometry.Circle, options) == {"description": "fakegeometry.Circle"}
    nested = type_to_schema(Drawing, options)
    assert "properties" not in nested["properties"]["shape"]


def test_type_override():
    options = default_reflect_options(type_overrides={fakegeometry.Circle: {"type": "string", "format": "circle"}})
    schema = type_to_schema(fakegeometry.Circle, options)
    assert schema == {"type": "string", "format": "circle", "description": "fakegeometry.Circle"}


def test_type_mapper():
    options = default_reflect_options(type_mapper=lambda tp: {"type": "string"} if tp is Decimal else None)
    assert type_to_schema(Decimal, options) == {"type": "string", "description": "decimal.Decimal"}


def test_no_mutations():
    assert type_to_schema(int, ReflectOptions()) == {"type": "integer"}


def test_overrides_are_copied():
    override = {"type": "string"}
    options = default_reflect_options(type_overrides={fakegeometry.Circle: override})
    type_to_schema(fakegeometry.Circle, options)
    assert override == {"type": "string"}


# ----------------------------------------------------------------------
# Tree mutations on hand-written schemas
# ----------------------------------------------------------------------


def _apply(schema, factory):
    walk_depth_first(schema, factory(schema))
    return schema


def test_require_default_on_respects_explicit_required():
    schema = {"properties": {"a": {}, "b": {}}, "required": ["a"]}
    assert _apply(schema, require_default_on)["required"] == ["a"]


def test_expand_and_remove_definitions():
    schema = {
        "$defs": {"Point": {"type": "object", "properties": {"x": {"type": "number"}}}},
        "type": "array",
        "items": {"$ref": "#/$defs/Point"},
    }
    _apply(schema, expand_references)
    _apply(schema, remove_definitions)
    assert schema == {
        "type": "array",
        "items": {"type": "object", "properties": {"x": {"type": "number"}}},
    }


def test_unknown_reference_left_alone():
    schema = {"$ref": "https://example.com/schema.json"}
    _apply(schema, expand_references)
    assert schema == {"$ref": "https://example.com/schema.json"}


def test_normalize_nested_additional_properties():
    schema = {"properties": {"inner": {"type": "object", "additionalProperties": True}}}
    _apply(schema, normalize_additional_properties)
    assert schema["properties"]["inner"]["additionalProperties"] == {}


def test_nilable_recursive_type_references_resolve():
    schema = type_to_schema(Optional[fakearithmetic.TreeNode])
    assert "$defs" in schema
    assert "$defs" not in schema["oneOf"][0]
    jsonschema.validate({"value": 1, "children": [{"value": 2, "children": []}]}, schema)
    jsonschema.validate(None, schema)


def test_sequence_of_recursive_type_references_resolve():
    schema = type_to_schema(list[fakearithmetic.TreeNode])
    jsonschema.validate([{"value": 1, "children": [{"value": 2, "children": []}]}], schema)
    jsonschema.validate(None, schema)
