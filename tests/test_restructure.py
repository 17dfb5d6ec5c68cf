from __future__ import annotations

from typing import Any

from oasproto.config.model import RewriteOptions
from oasproto.schema import ROOT
from oasproto.transforms import new_state, restructure
from oasproto.transforms.restructure import (
    materialize_single_map,
    merge_exclusive_members,
    move_titled_additional_properties,
)


def _single_map(target: str, **extra: Any) -> dict[str, Any]:
    return {
        "type": "object",
        "minProperties": 1,
        "maxProperties": 1,
        "additionalProperties": {"$ref": f"#/components/schemas/{target}"},
        **extra,
    }


def _document(**schemas: Any) -> dict[str, Any]:
    return {"components": {"schemas": schemas}}


def test_single_map_generates_component_once() -> None:
    document = _document(
        SortOrder={"type": "string", "enum": ["asc", "desc"]},
        Search={
            "type": "object",
            "properties": {"sort": _single_map("SortOrder"), "then_by": _single_map("SortOrder")},
        },
    )
    state = new_state(document)

    restructure(document, state)

    schemas = document["components"]["schemas"]
    assert schemas["SortOrderSingleMap"] == {
        "type": "object",
        "properties": {
            "field": {"type": "string"},
            "sort_order": {"$ref": "#/components/schemas/SortOrder"},
        },
        "required": ["field", "sort_order"],
    }
    properties = schemas["Search"]["properties"]
    assert properties["sort"] == {"$ref": "#/components/schemas/SortOrderSingleMap"}
    assert properties["then_by"] == {"$ref": "#/components/schemas/SortOrderSingleMap"}
    assert state.generated_components == ["SortOrderSingleMap"]


def test_single_map_uses_property_names_as_key_schema() -> None:
    key_schema = {"$ref": "#/components/schemas/FieldName"}
    document = _document(
        FieldName={"type": "string", "pattern": "^[a-z]+$"},
        Weight={"type": "number"},
    )
    schema = _single_map("Weight", propertyNames=key_schema, description="boost")
    state = new_state(document)

    assert materialize_single_map(schema, "Scoring", state, ROOT) is True

    assert schema == {"description": "boost", "$ref": "#/components/schemas/WeightSingleMap"}
    generated = document["components"]["schemas"]["WeightSingleMap"]
    assert generated["properties"]["field"] == key_schema
    assert generated["properties"]["field"] is not key_schema


def test_single_map_value_key_avoids_field_name() -> None:
    document = _document(Field={"type": "string"})
    schema = _single_map("Field")

    materialize_single_map(schema, None, new_state(document), ROOT)

    generated = document["components"]["schemas"]["FieldSingleMap"]
    assert list(generated["properties"]) == ["field", "field_value"]
    assert generated["required"] == ["field", "field_value"]


def test_single_map_in_exempt_context_references_target() -> None:
    document = _document(
        QueryContainer={"type": "object", "properties": {"term": _single_map("TermQuery")}},
        TermQuery={"type": "object", "properties": {"value": {"type": "string"}}},
    )

    restructure(document, new_state(document))

    schemas = document["components"]["schemas"]
    assert schemas["QueryContainer"]["properties"]["term"] == {"$ref": "#/components/schemas/TermQuery"}
    assert schemas["TermQuery"]["properties"] == {"value": {"type": "string"}, "field": {"type": "string"}}
    assert "TermQuerySingleMap" not in schemas


def test_single_map_in_exempt_context_wraps_primitive_target() -> None:
    document = _document(Score={"type": "number", "title": "score"})
    schema = _single_map("Score")

    materialize_single_map(schema, "QueryContainer", new_state(document), ROOT)

    assert schema == {
        "type": "object",
        "properties": {"score": {"$ref": "#/components/schemas/Score"}},
    }
    assert document["components"]["schemas"]["Score"] == {"type": "number", "title": "score"}


def test_single_map_exempt_contexts_are_configurable() -> None:
    document = _document(
        TermQuery={"type": "object", "properties": {"value": {"type": "string"}}},
    )
    options = RewriteOptions(inline_single_map_contexts=["Aggregations"], inject_field_on_inline=False)
    inline = _single_map("TermQuery")
    boxed = _single_map("TermQuery")
    state = new_state(document, options)

    materialize_single_map(inline, "Aggregations", state, ROOT)
    materialize_single_map(boxed, "QueryContainer", state, ROOT)

    assert inline == {"$ref": "#/components/schemas/TermQuery"}
    assert boxed == {"$ref": "#/components/schemas/TermQuerySingleMap"}
    assert "field" not in document["components"]["schemas"]["TermQuery"]["properties"]


def test_single_map_name_collision_is_reported() -> None:
    existing = {"type": "string"}
    document = _document(SortOrder={"type": "string"}, SortOrderSingleMap=existing)
    schema = _single_map("SortOrder")
    state = new_state(document)

    assert materialize_single_map(schema, None, state, ROOT.child("x")) is False

    assert schema == _single_map("SortOrder")
    assert document["components"]["schemas"]["SortOrderSingleMap"] is existing
    assert [(item.code, item.level, item.location) for item in state.diagnostics] == [
        ("naming_conflict", "error", "#/x")
    ]


def test_single_map_with_unresolved_target_is_skipped() -> None:
    document = _document()
    schema = _single_map("Missing")
    state = new_state(document)

    assert materialize_single_map(schema, None, state, ROOT) is False
    assert schema == _single_map("Missing")
    assert state.diagnostics[0].code == "unresolved_reference"


def test_titled_additional_properties_become_property() -> None:
    schema = {
        "type": "object",
        "additionalProperties": {"title": "doc", "type": "string"},
        "propertyNames": {"pattern": "^[a-z]+$"},
        "maxProperties": 3,
    }

    assert move_titled_additional_properties(schema) is True
    assert schema == {"type": "object", "properties": {"doc": {"type": "string"}}}


def test_titled_additional_properties_with_only_title_become_object() -> None:
    schema = {"additionalProperties": {"title": "payload"}}

    move_titled_additional_properties(schema)

    assert schema == {"properties": {"payload": {"type": "object"}}}


def test_titled_additional_properties_skip_existing_key_and_single_maps() -> None:
    taken = {"type": "object", "properties": {"doc": {"type": "integer"}}, "additionalProperties": {"title": "doc"}}
    single = {
        "type": "object",
        "minProperties": 1,
        "maxProperties": 1,
        "additionalProperties": {"title": "doc", "type": "string"},
    }

    assert move_titled_additional_properties(taken) is False
    assert move_titled_additional_properties(single) is False
    assert taken["properties"] == {"doc": {"type": "integer"}}
    assert "properties" not in single


def test_one_of_single_property_objects_become_exclusive_group() -> None:
    schema = {
        "oneOf": [
            {"type": "object", "properties": {"term": {"type": "string"}}},
            {"properties": {"match": {"type": "string"}}, "required": ["match"]},
        ],
        "unevaluatedProperties": False,
    }

    assert merge_exclusive_members(schema) is True
    assert schema == {
        "properties": {"term": {"type": "string"}, "match": {"type": "string"}},
        "minProperties": 1,
        "maxProperties": 1,
    }


def test_one_of_with_reference_or_wide_member_is_kept() -> None:
    with_ref = {
        "oneOf": [
            {"$ref": "#/components/schemas/Term"},
            {"type": "object", "properties": {"match": {"type": "string"}}},
        ]
    }
    wide = {
        "oneOf": [
            {"type": "object", "properties": {"a": {}, "b": {}}},
            {"type": "object", "properties": {"c": {}}},
        ]
    }

    assert merge_exclusive_members(with_ref) is False
    assert merge_exclusive_members(wide) is False
    assert len(with_ref["oneOf"]) == 2
    assert len(wide["oneOf"]) == 2
