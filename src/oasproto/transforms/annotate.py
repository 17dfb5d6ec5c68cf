from __future__ import annotations

from typing import Any

from oasproto.schema.context import Location
from oasproto.schema.refs import is_reference
from oasproto.schema.walker import walk_document
from oasproto.transforms.state import RewriteState


def annotate(document: dict[str, Any], state: RewriteState) -> dict[str, Any]:
    """Phase C: mark mutually exclusive property groups for ``oneof`` generation."""
    options = state.options

    def tag(schema: dict[str, Any]) -> None:
        tag_mutual_exclusion(
            schema,
            options.oneof_schema_flag,
            options.oneof_property_flag,
            annotation_flag=options.oneof_annotation_flag,
        )

    def visit(schema: dict[str, Any], name: str | None, location: Location) -> None:
        del name, location
        tag(schema)

    def visit_property(schema: dict[str, Any], key: str, name: str | None, location: Location) -> None:
        del key, name, location
        tag(schema)

    walk_document(document, on_schema=visit, on_property=visit_property)
    return document


def tag_mutual_exclusion(
    schema: dict[str, Any],
    schema_flag: str = "x-oneof-schema",
    property_flag: str = "x-oneof-property",
    *,
    annotation_flag: str | None = "x-oneof-annotation",
) -> bool:
    """Flag a ``maxProperties: 1`` object and each of its properties.

    With ``annotation_flag`` set, every property also gets a readable note
    listing the whole group, e.g. ``"term, range are mutual exclusive"``.
    """
    tagged = False
    properties = schema.get("properties")
    if _is_exclusive(schema) and isinstance(properties, dict):
        schema[schema_flag] = True
        note = exclusion_note(properties)
        for prop in properties.values():
            if isinstance(prop, dict):
                prop[property_flag] = True
                if annotation_flag:
                    prop[annotation_flag] = note
        tagged = True

    parts = schema.get("allOf")
    if isinstance(parts, list) and any(
        isinstance(part, dict) and not is_reference(part) and _is_exclusive(part) for part in parts
    ):
        schema[schema_flag] = True
        tagged = True
    return tagged


def exclusion_note(properties: dict[str, Any]) -> str:
    return f"{', '.join(properties)} are mutual exclusive"


def _is_exclusive(schema: dict[str, Any]) -> bool:
    value = schema.get("maxProperties")
    return value == 1 and not isinstance(value, bool)
