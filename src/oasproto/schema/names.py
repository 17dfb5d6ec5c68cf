from __future__ import annotations

import re
from typing import Any

from oasproto.schema.refs import is_reference, ref_name

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_NON_WORD = re.compile(r"[^0-9A-Za-z_]+")
_UNDERSCORE_RUN = re.compile(r"_{2,}")


def compress_underscores(text: str) -> str:
    return _UNDERSCORE_RUN.sub("_", text)


def snake_case(name: str) -> str:
    """Convert ``MyComplexType`` or ``_common___SortOrder`` into ``my_complex_type`` / ``common_sort_order``."""
    text = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    text = _WORD_BOUNDARY.sub(r"\1_\2", text)
    text = _NON_WORD.sub("_", text)
    return compress_underscores(text).strip("_").lower()


def type_name(schema: Any) -> str | None:
    if is_reference(schema):
        return ref_name(schema["$ref"])
    if isinstance(schema, dict):
        title = schema.get("title")
        if isinstance(title, str) and title:
            return title
    return None


def generated_name(source_name: str, suffix: str) -> str:
    return f"{source_name}{suffix}"
