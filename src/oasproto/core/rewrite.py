from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Iterable

from oasproto.config.load import (
    DEFAULT_CONFIG,
    ConfigError,
    DocumentLoadError,
    guess_format,
    load_config,
    load_document,
    write_document,
)
from oasproto.config.model import Config
from oasproto.core import events as ev
from oasproto.core.stages import STAGE_LABELS
from oasproto.schema.context import Diagnostic
from oasproto.transforms.pipeline import PHASES, new_state

LABELS = STAGE_LABELS["rewrite"]


def rewrite_events(
    *,
    project_dir: Path,
    document_path: Path | None = None,
    config_path: Path | None = None,
    output_path: Path | None = None,
    output_format: str | None = None,
    dry_run: bool = False,
    debug: bool = False,
) -> Iterable[ev.OasprotoEvent]:
    project_dir = project_dir.resolve()
    shown_config = config_path or DEFAULT_CONFIG
    if not shown_config.is_absolute():
        shown_config = project_dir / shown_config

    options = {
        "output": str(output_path) if output_path else None,
        "format": output_format,
        "dry_run": dry_run,
        "debug": debug,
    }
    yield ev.CommandStarted(
        command="rewrite",
        project_dir=project_dir,
        config_path=shown_config,
        document_path=document_path,
        options=options,
    )

    yield ev.StageStarted(command="rewrite", stage_id="load_config", label=LABELS["load_config"])
    started = time.perf_counter()
    try:
        config = load_config(project_dir, config_path)
    except (ConfigError, ValueError) as exc:
        yield ev.StageFailed(
            command="rewrite",
            stage_id="load_config",
            duration_ms=_elapsed_ms(started),
            error_code="config_error",
            message=str(exc),
        )
        yield ev.CommandCompleted(command="rewrite", ok=False, exit_code=2)
        return
    yield ev.StageCompleted(
        command="rewrite",
        stage_id="load_config",
        duration_ms=_elapsed_ms(started),
        status="success",
    )

    yield ev.StageStarted(command="rewrite", stage_id="load_document", label=LABELS["load_document"])
    started = time.perf_counter()
    source = _resolve_document_path(project_dir, config, document_path)
    if source is None:
        yield ev.StageFailed(
            command="rewrite",
            stage_id="load_document",
            duration_ms=_elapsed_ms(started),
            error_code="document_error",
            message="No document given.",
            hint="Pass a DOCUMENT argument or set `document` in oasproto.yaml.",
        )
        yield ev.CommandCompleted(command="rewrite", ok=False, exit_code=2)
        return
    try:
        document = load_document(source)
    except DocumentLoadError as exc:
        yield ev.StageFailed(
            command="rewrite",
            stage_id="load_document",
            duration_ms=_elapsed_ms(started),
            error_code="document_error",
            message=str(exc),
        )
        yield ev.CommandCompleted(command="rewrite", ok=False, exit_code=2)
        return
    yield document_loaded_event("rewrite", source, document)
    yield ev.StageCompleted(
        command="rewrite",
        stage_id="load_document",
        duration_ms=_elapsed_ms(started),
        status="success",
    )

    state = new_state(document, config)
    reported = 0
    for stage_id, _label, phase in PHASES:
        yield ev.StageStarted(command="rewrite", stage_id=stage_id, label=LABELS[stage_id])
        started = time.perf_counter()
        try:
            phase(document, state)
        except Exception as exc:  # noqa: BLE001
            if debug:
                raise
            yield ev.StageFailed(
                command="rewrite",
                stage_id=stage_id,
                duration_ms=_elapsed_ms(started),
                error_code="rewrite_error",
                message=str(exc),
                hint="Run with --debug for details.",
            )
            yield ev.CommandCompleted(command="rewrite", ok=False, exit_code=2)
            return
        for diagnostic in state.diagnostics[reported:]:
            yield diagnostic_warning("rewrite", diagnostic)
        reported = len(state.diagnostics)
        if stage_id == "restructure" and state.generated_components:
            yield ev.ComponentsGenerated(command="rewrite", names=state.generated_components)
        yield ev.StageCompleted(
            command="rewrite",
            stage_id=stage_id,
            duration_ms=_elapsed_ms(started),
            status="success",
        )

    yield ev.StageStarted(command="rewrite", stage_id="write_document", label=LABELS["write_document"])
    started = time.perf_counter()
    target = _resolve_output_path(project_dir, config, source, output_path)
    fmt = output_format or guess_format(target, default=config.output.format)
    if dry_run:
        yield ev.Debug(
            command="rewrite",
            message="Dry run; document not written.",
            data={"path": str(target), "format": fmt},
        )
        yield ev.StageCompleted(
            command="rewrite",
            stage_id="write_document",
            duration_ms=_elapsed_ms(started),
            status="skipped",
        )
        yield ev.CommandCompleted(command="rewrite", ok=True, exit_code=0)
        return
    try:
        written = write_document(target, document, fmt)
    except (OSError, ValueError) as exc:
        yield ev.StageFailed(
            command="rewrite",
            stage_id="write_document",
            duration_ms=_elapsed_ms(started),
            error_code="write_error",
            message=str(exc),
        )
        yield ev.CommandCompleted(command="rewrite", ok=False, exit_code=2)
        return
    yield ev.DocumentWritten(command="rewrite", path=target, format=fmt, bytes=written)
    yield ev.StageCompleted(
        command="rewrite",
        stage_id="write_document",
        duration_ms=_elapsed_ms(started),
        status="success",
    )
    yield ev.CommandCompleted(command="rewrite", ok=True, exit_code=0)


def diagnostic_warning(command: str, diagnostic: Diagnostic) -> ev.Warning:
    return ev.Warning(
        command=command,
        level=diagnostic.level.upper(),
        code=diagnostic.code,
        message=diagnostic.message,
        location=diagnostic.location,
    )


def default_output_path(source: Path) -> Path:
    return source.with_name(f"{source.stem}.rewritten{source.suffix}")


def _resolve_document_path(project_dir: Path, config: Config, document_path: Path | None) -> Path | None:
    if document_path is not None:
        return document_path
    if config.document is None:
        return None
    path = Path(config.document)
    if not path.is_absolute():
        path = project_dir / path
    return path


def _resolve_output_path(
    project_dir: Path,
    config: Config,
    source: Path,
    output_path: Path | None,
) -> Path:
    if output_path is not None:
        return output_path
    if config.output.path:
        path = Path(config.output.path)
        if not path.is_absolute():
            path = project_dir / path
        return path
    return default_output_path(source)


def document_loaded_event(command: str, path: Path, document: dict[str, Any]) -> ev.DocumentLoaded:
    components = document.get("components")
    schemas = components.get("schemas") if isinstance(components, dict) else None
    paths = document.get("paths")
    return ev.DocumentLoaded(
        command=command,
        path=path,
        schemas=len(schemas) if isinstance(schemas, dict) else 0,
        paths=len(paths) if isinstance(paths, dict) else 0,
    )


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
