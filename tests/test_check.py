from __future__ import annotations

from pathlib import Path

import pytest

from oasproto.core.check import check_events
from oasproto.core.events import CommandCompleted, InvariantsChecked, StageFailed
from oasproto.core.rewrite import rewrite_events


@pytest.mark.integration
def test_check_flags_unrewritten_document(sample_project: Path) -> None:
    events = list(check_events(document_path=sample_project / "openapi.yaml"))

    checked = next(event for event in events if isinstance(event, InvariantsChecked))
    codes = {item["code"] for item in checked.violations}
    assert codes == {
        "additional_properties_true",
        "single_member_composite",
        "oneof_const",
        "null_type",
        "enum_case_duplicate",
    }
    locations = {item["location"] for item in checked.violations}
    assert "#/components/schemas/SearchRequest/properties/cursor" in locations

    completed = events[-1]
    assert isinstance(completed, CommandCompleted)
    assert completed.ok is False
    assert completed.exit_code == 1


@pytest.mark.integration
def test_check_passes_after_rewrite(sample_project: Path) -> None:
    output = sample_project / "rewritten.yaml"
    list(rewrite_events(project_dir=sample_project, output_path=output))

    events = list(check_events(document_path=output))

    checked = next(event for event in events if isinstance(event, InvariantsChecked))
    assert checked.violations == []
    assert events[-1].ok is True
    assert events[-1].exit_code == 0


@pytest.mark.integration
def test_check_missing_document(tmp_path: Path) -> None:
    events = list(check_events(document_path=tmp_path / "missing.yaml"))

    failed = next(event for event in events if isinstance(event, StageFailed))
    assert failed.error_code == "document_error"
    assert events[-1].exit_code == 2
