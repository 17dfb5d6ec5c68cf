from __future__ import annotations

import copy
from typing import Any

from oasproto.schema.context import Location
from oasproto.schema.names import generated_name, snake_case, type_name
from oasproto.schema.refs import UnresolvedReferenceError, is_reference, resolve_schema, schema_ref
from oasproto.schema.walker import walk_document
from oasproto.transforms.inject import inject_field_property
from oasproto.transforms.state import RewriteState

MAP_KEYS = ("type", "additionalProperties", "minProperties", "maxProperties", "propertyNames")


def restructure(document: dict[str, Any], state: RewriteState) -> dict[str, Any]:
    """Phase B: turn maps and anonymous unions into shapes protobuf can express."""

    def visit(schema: dict[str, Any], name: str | None, location: Location) -> None:
        materialize_single_map(schema, name, state, location)
        move_titled_additional_properties(schema)
        merge_exclusive_members(schema)

    def visit_property(schema: dict[str, Any], key: str, name: str | None, location: Location) -> None:
        del key
        visit(schema, name, location)

    walk_document(document, on_schema=visit, on_property=visit_property)
    return document


def is_single_map(schema: dict[str, Any]) -> bool:
    return (
        schema.get("type") == "object"
        and _is_one(schema.get("minProperties"))
        and _is_one(schema.get("maxProperties"))
    )


def materialize_single_map(
    schema: dict[str, Any],
    context: str | None,
    state: RewriteState,
    location: Location,
) -> bool:
    """Replace ``{minProperties: 1, maxProperties: 1, additionalProperties: $ref T}``.

    The node becomes a reference to a generated ``<T><suffix>`` component
    holding the key and the value as two required properties. Inside an
    exempted context the node references T directly instead.
    """
    additional = schema.get("additionalProperties")
    if not is_single_map(schema) or not is_reference(additional):
        return False
    try:
        target = resolve_schema(additional, state.document)
    except UnresolvedReferenceError as exc:
        state.report(location.error("unresolved_reference", str(exc)))
        return False

    options = state.options
    if context is not None and context in options.inline_single_map_contexts:
        replacement = additional
        if options.inject_field_on_inline:
            replacement = inject_field_property(additional, state, location.child("additionalProperties"))
        _drop_map_keys(schema)
        if replacement is additional:
            schema["$ref"] = additional["$ref"]
        else:
            schema.update(replacement)
        return True

    name = state.single_maps.get(id(target))
    if name is None:
        source_name = type_name(additional)
        name = generated_name(source_name, options.single_map_suffix)
        schemas = state.schemas()
        if name in schemas:
            state.report(
                location.error(
                    "naming_conflict",
                    f"Component {name!r} already exists; single map left inline.",
                    level="error",
                )
            )
            return False
        schemas[name] = single_map_component(
            source_name,
            additional["$ref"],
            schema.get("propertyNames"),
            field=options.field_property,
        )
        state.single_maps[id(target)] = name
        state.single_map_sources.append(target)

    _drop_map_keys(schema)
    schema["$ref"] = schema_ref(name)
    return True


def single_map_component(
    source_name: str,
    value_ref: str,
    property_names: Any = None,
    *,
    field: str = "field",
) -> dict[str, Any]:
    value_key = snake_case(source_name)
    if value_key == field:
        value_key = f"{value_key}_value"
    if isinstance(property_names, dict):
        key_schema = copy.deepcopy(property_names)
    else:
        key_schema = {"type": "string"}
    return {
        "type": "object",
        "properties": {
            field: key_schema,
            value_key: {"$ref": value_ref},
        },
        "required": [field, value_key],
    }


def move_titled_additional_properties(schema: dict[str, Any]) -> bool:
    additional = schema.get("additionalProperties")
    if not isinstance(additional, dict) or is_reference(additional):
        return False
    title = additional.get("title")
    if not isinstance(title, str) or not title:
        return False
    if schema.get("type", "object") != "object" or is_single_map(schema):
        return False
    properties = schema.setdefault("properties", {})
    if not isinstance(properties, dict) or title in properties:
        return False

    moved = {key: value for key, value in additional.items() if key != "title"}
    properties[title] = moved or {"type": "object"}
    for key in MAP_KEYS[1:]:
        schema.pop(key, None)
    return True


def merge_exclusive_members(schema: dict[str, Any]) -> bool:
    """Fold a ``oneOf`` of single-property objects into one mutually exclusive object."""
    members = schema.get("oneOf")
    if not isinstance(members, list) or not members:
        return False
    existing = schema.get("properties", {})
    if not isinstance(existing, dict):
        return False

    merged = dict(existing)
    for member in members:
        if not isinstance(member, dict) or is_reference(member):
            return False
        if member.get("type", "object") != "object":
            return False
        properties = member.get("properties")
        if not isinstance(properties, dict) or len(properties) != 1:
            return False
        ((key, value),) = properties.items()
        if key in merged:
            return False
        merged[key] = value

    del schema["oneOf"]
    schema["properties"] = merged
    schema["minProperties"] = 1
    schema["maxProperties"] = 1
    schema.pop("unevaluatedProperties", None)
    return True


def _drop_map_keys(schema: dict[str, Any]) -> None:
    for key in MAP_KEYS:
        schema.pop(key, None)


def _is_one(value: Any) -> bool:
    return value == 1 and not isinstance(value, bool)
