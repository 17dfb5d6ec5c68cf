from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class OasprotoEvent:
    ts: float = field(default_factory=time.perf_counter)
    level: str = "INFO"
    command: str = ""
    type: str = ""

    def to_dict(self) -> dict[str, Any]:
        return _serialize(asdict(self))


@dataclass(frozen=True)
class CommandStarted(OasprotoEvent):
    type: str = "CommandStarted"
    project_dir: Path | None = None
    config_path: Path | None = None
    document_path: Path | None = None
    options: dict[str, Any] | None = None


@dataclass(frozen=True)
class CommandCompleted(OasprotoEvent):
    type: str = "CommandCompleted"
    ok: bool = True
    exit_code: int = 0


@dataclass(frozen=True)
class StageStarted(OasprotoEvent):
    type: str = "StageStarted"
    stage_id: str = ""
    label: str = ""


@dataclass(frozen=True)
class StageCompleted(OasprotoEvent):
    type: str = "StageCompleted"
    stage_id: str = ""
    duration_ms: float = 0.0
    status: str = "success"


@dataclass(frozen=True)
class StageFailed(OasprotoEvent):
    type: str = "StageFailed"
    stage_id: str = ""
    duration_ms: float = 0.0
    error_code: str = ""
    message: str = ""
    hint: str | None = None


@dataclass(frozen=True)
class DocumentLoaded(OasprotoEvent):
    type: str = "DocumentLoaded"
    path: Path | None = None
    schemas: int = 0
    paths: int = 0


@dataclass(frozen=True)
class ComponentsGenerated(OasprotoEvent):
    type: str = "ComponentsGenerated"
    names: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DocumentWritten(OasprotoEvent):
    type: str = "DocumentWritten"
    path: Path | None = None
    format: str = "yaml"
    bytes: int = 0


@dataclass(frozen=True)
class InvariantsChecked(OasprotoEvent):
    type: str = "InvariantsChecked"
    violations: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class Warning(OasprotoEvent):
    type: str = "Warning"
    level: str = "WARNING"
    code: str = ""
    message: str = ""
    location: str | None = None
    hint: str | None = None


@dataclass(frozen=True)
class Debug(OasprotoEvent):
    type: str = "Debug"
    level: str = "DEBUG"
    message: str = ""
    data: dict[str, Any] | None = None


def _serialize(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {key: _serialize(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_serialize(item) for item in value]
    return value
