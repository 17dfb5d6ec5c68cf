from __future__ import annotations

from typing import Any

from oasproto.schema.context import ROOT, Location
from oasproto.schema.refs import UnresolvedReferenceError, is_reference, resolve_schema
from oasproto.transforms.simplify import PRIMITIVE_TYPES
from oasproto.transforms.state import RewriteState


def inject_field_property(node: Any, state: RewriteState, location: Location = ROOT) -> Any:
    """Expose a former map key as an explicit string property on the target of ``node``.

    ``node`` may be a reference; the schema it resolves to is patched in place
    and ``node`` is returned. A primitive target cannot carry the property, so a
    new wrapper object holding ``node`` is returned instead. Every resolved
    schema is patched at most once per run.
    """
    try:
        resolved = _resolve_chain(node, state.document)
    except UnresolvedReferenceError as exc:
        state.report(location.error("unresolved_reference", str(exc)))
        return node
    if not isinstance(resolved, dict) or resolved in state.injected:
        return node

    field = state.options.field_property
    parts = resolved.get("allOf")
    if isinstance(parts, list):
        state.injected.add(resolved)
        parts.append(field_wrapper(field))
        return node

    properties = resolved.get("properties")
    if isinstance(properties, dict):
        state.injected.add(resolved)
        if field in properties:
            state.report(
                location.error(
                    "field_conflict",
                    f"Property {field!r} already exists; leaving the schema unchanged.",
                )
            )
        else:
            properties[field] = {"type": "string"}
        return node

    for key in ("oneOf", "anyOf"):
        members = resolved.get(key)
        if isinstance(members, list):
            state.injected.add(resolved)
            members_location = location.child(key)
            for index, member in enumerate(list(members)):
                members[index] = inject_field_property(member, state, members_location.child(index))
            return node

    if resolved.get("type") in PRIMITIVE_TYPES:
        title = resolved.get("title")
        key = title if isinstance(title, str) and title else state.options.primitive_value_key
        return {"type": "object", "properties": {key: node}}
    return node


def field_wrapper(field: str) -> dict[str, Any]:
    return {"type": "object", "properties": {field: {"type": "string"}}}


def _resolve_chain(node: Any, document: dict[str, Any]) -> Any:
    seen: set[int] = set()
    current = node
    while is_reference(current):
        if id(current) in seen:
            raise UnresolvedReferenceError(current["$ref"], "reference cycle")
        seen.add(id(current))
        current = resolve_schema(current, document)
    return current
