from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Diagnostic:
    code: str
    message: str
    location: str = "#"
    level: str = "warning"

    def to_dict(self) -> dict[str, str]:
        return {
            "code": self.code,
            "message": self.message,
            "location": self.location,
            "level": self.level,
        }


@dataclass(frozen=True)
class Location:
    """Position inside a document, rendered as a JSON pointer for diagnostics."""

    keys: tuple[str, ...] = ("#",)

    def child(self, key: str | int) -> "Location":
        return Location((*self.keys, str(key)))

    def parent(self) -> "Location":
        if len(self.keys) <= 1:
            return self
        return Location(self.keys[:-1])

    @property
    def key(self) -> str:
        return self.keys[-1]

    @property
    def location(self) -> str:
        root, *rest = self.keys
        return "/".join([root, *(_escape_segment(key) for key in rest)])

    def error(self, code: str, message: str, *, level: str = "warning") -> Diagnostic:
        return Diagnostic(code=code, message=message, location=self.location, level=level)

    def __str__(self) -> str:
        return self.location


ROOT = Location()


def _escape_segment(segment: str) -> str:
    return segment.replace("~", "~0").replace("/", "~1")
