from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from oasproto.config.model import RewriteOptions
from oasproto.schema.context import Diagnostic


class VisitedSet:
    """Set of schema nodes keyed by identity rather than value."""

    def __init__(self) -> None:
        self._nodes: dict[int, Any] = {}

    def add(self, node: Any) -> None:
        self._nodes[id(node)] = node

    def __contains__(self, node: Any) -> bool:
        return id(node) in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)


@dataclass
class RewriteState:
    document: dict[str, Any]
    options: RewriteOptions = field(default_factory=RewriteOptions)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    injected: VisitedSet = field(default_factory=VisitedSet)
    # id(resolved source schema) -> generated component name
    single_maps: dict[int, str] = field(default_factory=dict)
    # keeps the keyed source nodes alive for the run so ids stay unique
    single_map_sources: list[Any] = field(default_factory=list)

    def report(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    @property
    def generated_components(self) -> list[str]:
        return list(self.single_maps.values())

    def schemas(self) -> dict[str, Any]:
        components = self.document.setdefault("components", {})
        return components.setdefault("schemas", {})
