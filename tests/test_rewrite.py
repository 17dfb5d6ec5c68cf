from __future__ import annotations

import json
from pathlib import Path

import pytest

from oasproto.config.load import load_document
from oasproto.core.events import (
    CommandCompleted,
    ComponentsGenerated,
    DocumentLoaded,
    DocumentWritten,
    StageCompleted,
    StageFailed,
    StageStarted,
    Warning,
)
from oasproto.core.rewrite import rewrite_events


@pytest.mark.integration
def test_rewrite_writes_output_document(sample_project: Path, tmp_path: Path) -> None:
    output = tmp_path / "out" / "openapi.json"
    events = list(
        rewrite_events(
            project_dir=sample_project,
            document_path=sample_project / "openapi.yaml",
            output_path=output,
        )
    )

    completed = events[-1]
    assert isinstance(completed, CommandCompleted)
    assert completed.ok is True
    assert completed.exit_code == 0

    started = [event.stage_id for event in events if isinstance(event, StageStarted)]
    assert started == [
        "load_config",
        "load_document",
        "simplify",
        "restructure",
        "annotate",
        "write_document",
    ]

    loaded = next(event for event in events if isinstance(event, DocumentLoaded))
    assert loaded.schemas == 5
    assert loaded.paths == 1

    generated = next(event for event in events if isinstance(event, ComponentsGenerated))
    assert generated.names == ["SortOrderSingleMap"]

    written = next(event for event in events if isinstance(event, DocumentWritten))
    assert written.path == output
    assert written.format == "json"
    assert written.bytes == output.stat().st_size

    document = json.loads(output.read_text(encoding="utf-8"))
    assert "SortOrderSingleMap" in document["components"]["schemas"]


@pytest.mark.integration
def test_rewrite_uses_configured_document_and_default_output(sample_project: Path) -> None:
    events = list(rewrite_events(project_dir=sample_project))

    assert events[-1].ok is True
    output = sample_project / "openapi.rewritten.yaml"
    document = load_document(output)
    assert document["components"]["schemas"]["SearchRequest"]["properties"]["cursor"] == {"type": "NullValue"}


@pytest.mark.integration
def test_rewrite_dry_run_skips_write(sample_project: Path) -> None:
    events = list(rewrite_events(project_dir=sample_project, dry_run=True))

    write_stage = next(
        event
        for event in events
        if isinstance(event, StageCompleted) and event.stage_id == "write_document"
    )
    assert write_stage.status == "skipped"
    assert events[-1].exit_code == 0
    assert not (sample_project / "openapi.rewritten.yaml").exists()


@pytest.mark.integration
def test_rewrite_reports_diagnostics_as_warnings(sample_project: Path) -> None:
    source = sample_project / "broken.yaml"
    source.write_text(
        """
components:
  schemas:
    Broken:
      type: object
      minProperties: 1
      maxProperties: 1
      additionalProperties:
        $ref: '#/components/schemas/Gone'
""".strip()
        + "\n",
        encoding="utf-8",
    )

    events = list(rewrite_events(project_dir=sample_project, document_path=source, dry_run=True))

    warnings = [event for event in events if isinstance(event, Warning)]
    assert [(item.code, item.location) for item in warnings] == [
        ("unresolved_reference", "#/components/schemas/Broken")
    ]
    assert events[-1].ok is True


@pytest.mark.integration
def test_rewrite_fails_on_missing_document(sample_project: Path) -> None:
    events = list(rewrite_events(project_dir=sample_project, document_path=sample_project / "missing.yaml"))

    failed = next(event for event in events if isinstance(event, StageFailed))
    assert failed.stage_id == "load_document"
    assert failed.error_code == "document_error"
    assert events[-1].exit_code == 2


@pytest.mark.integration
def test_rewrite_fails_on_invalid_config(sample_project: Path) -> None:
    (sample_project / "oasproto.yaml").write_text("version: v2\n", encoding="utf-8")

    events = list(rewrite_events(project_dir=sample_project))

    failed = next(event for event in events if isinstance(event, StageFailed))
    assert failed.stage_id == "load_config"
    assert failed.error_code == "config_error"
    completed = events[-1]
    assert isinstance(completed, CommandCompleted)
    assert completed.ok is False
    assert completed.exit_code == 2


@pytest.mark.integration
def test_rewrite_without_document_fails(tmp_path: Path) -> None:
    events = list(rewrite_events(project_dir=tmp_path))

    failed = next(event for event in events if isinstance(event, StageFailed))
    assert failed.stage_id == "load_document"
    assert failed.hint is not None


def _failing_phase(document: object, state: object) -> None:
    raise RuntimeError("phase exploded")


@pytest.mark.integration
def test_rewrite_reports_phase_errors(sample_project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("oasproto.core.rewrite.PHASES", [("simplify", "Simplify", _failing_phase)])

    events = list(rewrite_events(project_dir=sample_project, dry_run=True))

    failed = next(event for event in events if isinstance(event, StageFailed))
    assert failed.stage_id == "simplify"
    assert failed.error_code == "rewrite_error"
    assert failed.message == "phase exploded"
    assert "--debug" in failed.hint
    assert events[-1].exit_code == 2


@pytest.mark.integration
def test_rewrite_debug_reraises_phase_errors(sample_project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("oasproto.core.rewrite.PHASES", [("simplify", "Simplify", _failing_phase)])

    with pytest.raises(RuntimeError, match="phase exploded"):
        list(rewrite_events(project_dir=sample_project, dry_run=True, debug=True))
