from __future__ import annotations

from typing import Any, Callable

from oasproto.schema.context import ROOT, Location
from oasproto.schema.refs import is_reference

SchemaHook = Callable[[dict[str, Any], "str | None", Location], None]
PropertyHook = Callable[[dict[str, Any], str, "str | None", Location], None]

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")
COMPOSITE_KEYS = ("allOf", "anyOf", "oneOf")


class SchemaWalker:
    """Post-order walk over every inline schema of an OpenAPI document.

    ``on_schema`` receives top-level schemas (component schemas, parameter,
    request body and response schemas) and composite members together with the
    enclosing named schema. ``on_property`` receives ``properties`` values,
    ``items``, ``additionalProperties`` and ``not`` schemas with their key and the
    enclosing named schema. Children are always visited before their parent;
    references are neither hooked nor followed.
    """

    def __init__(
        self,
        *,
        on_schema: SchemaHook | None = None,
        on_property: PropertyHook | None = None,
    ):
        self.on_schema = on_schema
        self.on_property = on_property

    def walk_document(self, document: dict[str, Any]) -> None:
        paths = document.get("paths")
        if isinstance(paths, dict):
            paths_location = ROOT.child("paths")
            for path_key, path_item in list(paths.items()):
                if isinstance(path_item, dict):
                    self._walk_path(path_item, paths_location.child(path_key))

        components = document.get("components")
        if not isinstance(components, dict):
            return
        location = ROOT.child("components")
        for name, parameter in _entries(components, "parameters"):
            self._walk_parameter(parameter, name, location.child("parameters").child(name))
        for name, request in _entries(components, "requestBodies"):
            self._walk_content(request, name, location.child("requestBodies").child(name))
        for name, response in _entries(components, "responses"):
            self._walk_content(response, name, location.child("responses").child(name))
        for name, schema in _entries(components, "schemas"):
            self.walk_schema(schema, name=name, location=location.child("schemas").child(name))

    def walk_schema(
        self,
        schema: Any,
        *,
        name: str | None = None,
        location: Location = ROOT,
    ) -> None:
        if not isinstance(schema, dict) or is_reference(schema):
            return
        self._walk_children(schema, name, location)
        if self.on_schema is not None:
            self.on_schema(schema, name, location)

    def _walk_property(self, schema: Any, key: str, name: str | None, location: Location) -> None:
        if not isinstance(schema, dict) or is_reference(schema):
            return
        self._walk_children(schema, name, location)
        if self.on_property is not None:
            self.on_property(schema, key, name, location)

    def _walk_children(self, schema: dict[str, Any], name: str | None, location: Location) -> None:
        self._walk_property(schema.get("items"), "items", name, location.child("items"))
        self._walk_property(
            schema.get("additionalProperties"),
            "additionalProperties",
            name,
            location.child("additionalProperties"),
        )
        properties = schema.get("properties")
        if isinstance(properties, dict):
            properties_location = location.child("properties")
            for key, child in list(properties.items()):
                self._walk_property(child, key, name, properties_location.child(key))
        for composite in COMPOSITE_KEYS:
            members = schema.get(composite)
            if isinstance(members, list):
                for index, member in list(enumerate(members)):
                    self.walk_schema(member, name=name, location=location.child(composite).child(index))
        self._walk_property(schema.get("not"), "not", name, location.child("not"))

    def _walk_path(self, path_item: dict[str, Any], location: Location) -> None:
        for index, parameter in _indexed(path_item, "parameters"):
            self._walk_parameter(parameter, None, location.child("parameters").child(index))
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if isinstance(operation, dict):
                self._walk_operation(operation, location.child(method))

    def _walk_operation(self, operation: dict[str, Any], location: Location) -> None:
        operation_id = operation.get("operationId")
        name = operation_id if isinstance(operation_id, str) else None
        for index, parameter in _indexed(operation, "parameters"):
            self._walk_parameter(parameter, name, location.child("parameters").child(index))
        self._walk_content(operation.get("requestBody"), name, location.child("requestBody"))
        for status, response in _entries(operation, "responses"):
            self._walk_content(response, name, location.child("responses").child(status))

    def _walk_parameter(self, parameter: Any, name: str | None, location: Location) -> None:
        if not isinstance(parameter, dict) or is_reference(parameter):
            return
        self.walk_schema(parameter.get("schema"), name=name, location=location.child("schema"))
        self._walk_content(parameter, name, location)

    def _walk_content(self, container: Any, name: str | None, location: Location) -> None:
        if not isinstance(container, dict) or is_reference(container):
            return
        content_location = location.child("content")
        for media_type, media in _entries(container, "content"):
            if isinstance(media, dict):
                self.walk_schema(
                    media.get("schema"),
                    name=name,
                    location=content_location.child(media_type).child("schema"),
                )


def walk_document(
    document: dict[str, Any],
    *,
    on_schema: SchemaHook | None = None,
    on_property: PropertyHook | None = None,
) -> None:
    SchemaWalker(on_schema=on_schema, on_property=on_property).walk_document(document)


def walk_schema(
    schema: Any,
    *,
    on_schema: SchemaHook | None = None,
    on_property: PropertyHook | None = None,
    name: str | None = None,
    location: Location = ROOT,
) -> None:
    SchemaWalker(on_schema=on_schema, on_property=on_property).walk_schema(
        schema, name=name, location=location
    )


def _entries(container: dict[str, Any], key: str) -> list[tuple[str, Any]]:
    value = container.get(key)
    if not isinstance(value, dict):
        return []
    return [(str(name), item) for name, item in list(value.items())]


def _indexed(container: dict[str, Any], key: str) -> list[tuple[int, Any]]:
    value = container.get(key)
    if not isinstance(value, list):
        return []
    return list(enumerate(value))
