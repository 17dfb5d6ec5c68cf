from __future__ import annotations

from typing import Any

_MISSING = object()

LOCAL_PREFIX = "#/"
SCHEMAS_PREFIX = "#/components/schemas/"


class RewriteError(RuntimeError):
    pass


class UnresolvedReferenceError(RewriteError):
    def __init__(self, ref: str, reason: str):
        super().__init__(f"Cannot resolve {ref!r}: {reason}")
        self.ref = ref
        self.reason = reason


def is_reference(node: Any) -> bool:
    return isinstance(node, dict) and isinstance(node.get("$ref"), str)


def resolve_schema(node: Any, document: dict[str, Any], *, default: Any = _MISSING) -> Any:
    """Return the node a reference points at, or ``node`` itself when it is not a reference.

    Only one level of indirection is followed; a target that is itself a
    reference is returned as-is and can be resolved by calling again.
    """
    if not is_reference(node):
        return node
    try:
        return resolve_pointer(document, node["$ref"])
    except UnresolvedReferenceError:
        if default is _MISSING:
            raise
        return default


def resolve_pointer(document: dict[str, Any], ref: str) -> Any:
    if ref == "#":
        return document
    if not ref.startswith(LOCAL_PREFIX):
        raise UnresolvedReferenceError(ref, "only document-local references are supported")
    current: Any = document
    for raw_token in ref[len(LOCAL_PREFIX) :].split("/"):
        token = _decode_token(raw_token)
        if isinstance(current, dict):
            if token not in current:
                raise UnresolvedReferenceError(ref, f"key {token!r} not found")
            current = current[token]
        elif isinstance(current, list):
            try:
                current = current[int(token)]
            except (ValueError, IndexError) as exc:
                raise UnresolvedReferenceError(ref, f"invalid list index {token!r}") from exc
        else:
            raise UnresolvedReferenceError(ref, f"cannot descend into {type(current).__name__}")
    return current


def schema_ref(name: str) -> str:
    return SCHEMAS_PREFIX + _encode_token(name)


def ref_name(ref: str) -> str:
    return _decode_token(ref.rsplit("/", 1)[-1])


def _decode_token(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def _encode_token(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")
