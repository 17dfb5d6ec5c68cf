from .context import ROOT, Diagnostic, Location
from .refs import (
    RewriteError,
    UnresolvedReferenceError,
    is_reference,
    resolve_pointer,
    resolve_schema,
    schema_ref,
)
from .walker import SchemaWalker, walk_document, walk_schema

__all__ = [
    "ROOT",
    "Diagnostic",
    "Location",
    "RewriteError",
    "SchemaWalker",
    "UnresolvedReferenceError",
    "is_reference",
    "resolve_pointer",
    "resolve_schema",
    "schema_ref",
    "walk_document",
    "walk_schema",
]
