from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from oasproto.schema.context import Location
from oasproto.schema.refs import is_reference
from oasproto.schema.walker import COMPOSITE_KEYS, walk_document
from oasproto.transforms.simplify import accepts_anything, fold_key


@dataclass(frozen=True)
class Violation:
    code: str
    message: str
    location: str

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message, "location": self.location}


def find_violations(document: dict[str, Any]) -> list[Violation]:
    """Report every inline schema that breaks a shape the rewrite guarantees."""
    violations: list[Violation] = []

    def visit(schema: dict[str, Any], name: str | None, location: Location) -> None:
        del name
        violations.extend(check_schema(schema, location))

    def visit_property(schema: dict[str, Any], key: str, name: str | None, location: Location) -> None:
        del key, name
        violations.extend(check_schema(schema, location))

    walk_document(document, on_schema=visit, on_property=visit_property)
    return violations


def check_schema(schema: dict[str, Any], location: Location) -> list[Violation]:
    found: list[Violation] = []

    def add(code: str, message: str, at: Location = location) -> None:
        found.append(Violation(code=code, message=message, location=at.location))

    additional = schema.get("additionalProperties")
    if additional is True:
        add("additional_properties_true", "additionalProperties is true.")
    elif accepts_anything(additional):
        add("additional_properties_empty", "additionalProperties accepts any value.")

    for key in COMPOSITE_KEYS:
        members = schema.get(key)
        if isinstance(members, list) and len(members) == 1:
            add("single_member_composite", f"{key} has a single member.", location.child(key))

    members = schema.get("oneOf")
    if isinstance(members, list):
        for index, member in enumerate(members):
            if isinstance(member, dict) and not is_reference(member) and "const" in member:
                add("oneof_const", "oneOf member carries a const.", location.child("oneOf").child(index))

    kind = schema.get("type")
    if kind == "null" or (isinstance(kind, list) and "null" in kind):
        add("null_type", "Schema uses the null type.")

    values = schema.get("enum")
    if isinstance(values, list):
        seen: set[tuple[str, str]] = set()
        for value in values:
            key = fold_key(value)
            if key in seen:
                add("enum_case_duplicate", f"enum repeats {value!r} ignoring case.", location.child("enum"))
            seen.add(key)
    return found
