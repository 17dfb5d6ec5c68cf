from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from ruamel.yaml import YAML

from .model import Config


class ConfigError(RuntimeError):
    pass


class DocumentLoadError(RuntimeError):
    pass


DEFAULT_CONFIG = Path("oasproto.yaml")

_yaml = YAML(typ="safe")

_dump_yaml = YAML(typ="safe", pure=True)
_dump_yaml.default_flow_style = False
_dump_yaml.sort_base_mapping_type_on_output = False
_dump_yaml.width = 4096


def load_config(project_dir: Path, config_path: Path | None = None) -> Config:
    explicit = config_path is not None
    config_path = config_path or DEFAULT_CONFIG
    if not config_path.is_absolute():
        config_path = project_dir / config_path
    if not config_path.exists():
        if explicit:
            raise ConfigError(f"Missing config: {config_path}")
        return Config()
    try:
        data = _yaml.load(config_path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ConfigError(f"Failed to parse YAML: {config_path}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Config must be a YAML mapping at the top level.")
    try:
        return Config.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def load_document(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise DocumentLoadError(f"Document not found: {path}")
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise DocumentLoadError(f"Invalid JSON document: {path}: {exc}") from exc
    else:
        try:
            data = _yaml.load(text)
        except Exception as exc:  # noqa: BLE001
            raise DocumentLoadError(f"Failed to parse YAML: {path}") from exc
    if not isinstance(data, dict):
        raise DocumentLoadError(f"{path} must contain a mapping at the top level.")
    return data


def dump_document(document: dict[str, Any], fmt: str = "yaml") -> str:
    if fmt == "json":
        return json.dumps(document, indent=2, ensure_ascii=False) + "\n"
    if fmt != "yaml":
        raise ValueError(f"Unsupported output format: {fmt}")
    stream = io.StringIO()
    _dump_yaml.dump(document, stream)
    return stream.getvalue()


def write_document(path: Path, document: dict[str, Any], fmt: str = "yaml") -> int:
    payload = dump_document(document, fmt).encode("utf-8")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(payload)
    return len(payload)


def guess_format(path: Path, default: str = "yaml") -> str:
    suffix = path.suffix.lower()
    if suffix == ".json":
        return "json"
    if suffix in {".yaml", ".yml"}:
        return "yaml"
    return default
