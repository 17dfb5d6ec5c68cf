from __future__ import annotations

import json
from typing import Any

from oasproto.schema.context import Location
from oasproto.schema.refs import UnresolvedReferenceError, is_reference, resolve_schema
from oasproto.schema.walker import COMPOSITE_KEYS, walk_document
from oasproto.transforms.state import RewriteState

PRIMITIVE_TYPES = ("boolean", "integer", "number", "string")
SHAPE_KEYS = ("type", "$ref", "additionalProperties")
STRUCTURE_KEYS = ("properties", "allOf", "anyOf", "oneOf", "$ref", "items", "additionalProperties", "title")
ANNOTATION_KEYS = {
    "default",
    "deprecated",
    "description",
    "example",
    "examples",
    "externalDocs",
    "nullable",
    "readOnly",
    "writeOnly",
}


def simplify(document: dict[str, Any], state: RewriteState) -> dict[str, Any]:
    """Phase A: local clean-ups applied to every inline schema of the document."""

    def visit_schema(schema: dict[str, Any], name: str | None, location: Location) -> None:
        del name
        simplify_schema(schema, state, location)

    def visit_property(schema: dict[str, Any], key: str, name: str | None, location: Location) -> None:
        del key, name
        simplify_schema(schema, state, location)

    walk_document(document, on_schema=visit_schema, on_property=visit_property)
    return document


def simplify_schema(schema: dict[str, Any], state: RewriteState, location: Location) -> None:
    fold_const_members(schema)
    drop_subsumed_members(schema)
    collapse_single_member(schema)
    normalize_additional_properties(schema)
    dedupe_enum(schema)
    substitute_null_type(schema, state.options.null_type_name)
    collapse_redundant_union(schema, state, location)


def fold_const_members(schema: dict[str, Any]) -> bool:
    """Replace a ``oneOf`` of ``const`` members with a single ``enum``.

    Members without a ``const`` contribute their primitive type name as a
    literal, which downstream generators rely on. Reference, object and array
    members are skipped.
    """
    members = schema.get("oneOf")
    if not isinstance(members, list):
        return False
    literals: list[Any] = []
    has_const = False
    for member in members:
        if not isinstance(member, dict) or is_reference(member):
            continue
        if "const" in member:
            has_const = True
            literals.append(member["const"])
        elif member.get("type") in PRIMITIVE_TYPES:
            literals.append(member["type"])
    if not has_const:
        return False

    del schema["oneOf"]
    schema["type"] = _shared_json_type(literals)
    schema["enum"] = literals
    return True


def drop_subsumed_members(schema: dict[str, Any]) -> bool:
    """Drop ``oneOf`` members already covered by an array member of the same item shape."""
    members = schema.get("oneOf")
    if not isinstance(members, list):
        return False
    item_shapes = {
        _shape(member["items"])
        for member in members
        if _is_array_schema(member) and isinstance(member["items"], dict)
    }
    item_shapes.discard(None)
    if not item_shapes:
        return False

    kept = [
        member
        for member in members
        if _is_array_schema(member) or not isinstance(member, dict) or _shape(member) not in item_shapes
    ]
    if len(kept) == len(members):
        return False
    members[:] = kept
    return True


def collapse_single_member(schema: dict[str, Any]) -> bool:
    changed = False
    while True:
        for key in COMPOSITE_KEYS:
            members = schema.get(key)
            if isinstance(members, list) and len(members) == 1 and isinstance(members[0], dict):
                member = schema.pop(key)[0]
                schema.update(member)
                changed = True
                break
        else:
            return changed


def normalize_additional_properties(schema: dict[str, Any]) -> bool:
    additional = schema.get("additionalProperties", False)
    if additional is True or accepts_anything(additional):
        schema["type"] = "object"
        del schema["additionalProperties"]
        return True
    return False


def accepts_anything(schema: Any) -> bool:
    """True for schemas that constrain nothing structurally.

    An object schema qualifies when it has none of ``STRUCTURE_KEYS``; annotations
    such as ``nullable``, ``deprecated`` or ``x-*`` extensions do not count. An
    untyped schema qualifies only when it carries nothing but annotations. A
    ``title`` counts as structure since it names a property to create.
    """
    if not isinstance(schema, dict):
        return False
    if "type" not in schema:
        return all(key in ANNOTATION_KEYS or key.startswith("x-") for key in schema)
    if schema["type"] != "object":
        return False
    return not any(key in schema for key in STRUCTURE_KEYS)


def dedupe_enum(schema: dict[str, Any]) -> bool:
    values = schema.get("enum")
    if not isinstance(values, list):
        return False
    folded: dict[tuple[str, str], Any] = {}
    for value in values:
        folded[fold_key(value)] = value
    if len(folded) == len(values):
        return False
    schema["enum"] = list(folded.values())
    return True


def fold_key(value: Any) -> tuple[str, str]:
    if isinstance(value, str):
        return ("str", value.casefold())
    return (type(value).__name__, json.dumps(value, sort_keys=True, default=str))


def substitute_null_type(schema: dict[str, Any], sentinel: str) -> bool:
    kind = schema.get("type")
    if kind == "null":
        schema["type"] = sentinel
        return True
    if isinstance(kind, list) and "null" in kind:
        schema["type"] = [sentinel if item == "null" else item for item in kind]
        return True
    return False


def collapse_redundant_union(schema: dict[str, Any], state: RewriteState, location: Location) -> bool:
    """Drop a titled alternative that merely restates a property of the other member.

    The match is textual: the property's ``$ref`` or ``type`` must appear in the
    serialized alternative. False positives and misses are accepted.
    """
    for key in ("oneOf", "anyOf"):
        members = schema.get(key)
        if not isinstance(members, list) or len(members) != 2:
            continue
        for simple_index in (0, 1):
            simple = members[simple_index]
            complex_member = members[1 - simple_index]
            if not _is_titled_alternative(simple):
                continue
            if _restates_property(simple, complex_member, state, location.child(key).child(1 - simple_index)):
                remaining = schema.pop(key)[1 - simple_index]
                if isinstance(remaining, dict):
                    schema.update(remaining)
                return True
    return False


def _restates_property(
    simple: dict[str, Any],
    complex_member: Any,
    state: RewriteState,
    location: Location,
) -> bool:
    try:
        resolved = resolve_schema(complex_member, state.document)
    except UnresolvedReferenceError as exc:
        state.report(location.error("unresolved_reference", str(exc)))
        return False
    if not isinstance(resolved, dict):
        return False

    title = simple["title"]
    content = json.dumps(simple, separators=(",", ":"), default=str)
    parts = resolved.get("allOf")
    if isinstance(parts, list):
        for part in parts:
            part = resolve_schema(part, state.document, default=None)
            if isinstance(part, dict) and _property_overlaps(part.get("properties"), title, content):
                return True
        return False
    if resolved.get("type") == "object":
        return _property_overlaps(resolved.get("properties"), title, content)
    return False


def _property_overlaps(properties: Any, title: str, content: str) -> bool:
    if not isinstance(properties, dict):
        return False
    prop = properties.get(title)
    if not isinstance(prop, dict):
        return False
    ref = prop.get("$ref")
    if isinstance(ref, str) and ref and ref in content:
        return True
    kind = prop.get("type")
    return isinstance(kind, str) and bool(kind) and kind in content


def _is_titled_alternative(member: Any) -> bool:
    if not isinstance(member, dict):
        return False
    title = member.get("title")
    if not isinstance(title, str) or not title:
        return False
    return is_reference(member) or member.get("type") in PRIMITIVE_TYPES


def _is_array_schema(member: Any) -> bool:
    return isinstance(member, dict) and member.get("type") == "array" and "items" in member


def _shape(schema: dict[str, Any]) -> str | None:
    shape = {key: schema[key] for key in SHAPE_KEYS if key in schema}
    if not shape:
        return None
    return json.dumps(shape, sort_keys=True, default=str)


def _shared_json_type(literals: list[Any]) -> str:
    kinds = {_json_type(value) for value in literals}
    if len(kinds) == 1:
        (kind,) = kinds
        if kind is not None:
            return kind
    return "string"


def _json_type(value: Any) -> str | None:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    return None
