from __future__ import annotations

import time
from pathlib import Path
from typing import Iterable

from oasproto.config.load import DocumentLoadError, load_document
from oasproto.core import events as ev
from oasproto.core.rewrite import document_loaded_event
from oasproto.core.stages import STAGE_LABELS
from oasproto.transforms.invariants import find_violations

LABELS = STAGE_LABELS["check"]


def check_events(*, document_path: Path) -> Iterable[ev.OasprotoEvent]:
    yield ev.CommandStarted(command="check", document_path=document_path)

    yield ev.StageStarted(command="check", stage_id="load_document", label=LABELS["load_document"])
    started = time.perf_counter()
    try:
        document = load_document(document_path)
    except DocumentLoadError as exc:
        yield ev.StageFailed(
            command="check",
            stage_id="load_document",
            duration_ms=_elapsed_ms(started),
            error_code="document_error",
            message=str(exc),
        )
        yield ev.CommandCompleted(command="check", ok=False, exit_code=2)
        return
    yield document_loaded_event("check", document_path, document)
    yield ev.StageCompleted(
        command="check",
        stage_id="load_document",
        duration_ms=_elapsed_ms(started),
        status="success",
    )

    yield ev.StageStarted(command="check", stage_id="check_invariants", label=LABELS["check_invariants"])
    started = time.perf_counter()
    violations = find_violations(document)
    yield ev.InvariantsChecked(command="check", violations=[item.to_dict() for item in violations])
    if violations:
        yield ev.StageFailed(
            command="check",
            stage_id="check_invariants",
            duration_ms=_elapsed_ms(started),
            error_code="invariant_violation",
            message=f"{len(violations)} schema(s) break the rewrite invariants.",
            hint="Run `oasproto rewrite` on the document first.",
        )
        yield ev.CommandCompleted(command="check", ok=False, exit_code=1)
        return
    yield ev.StageCompleted(
        command="check",
        stage_id="check_invariants",
        duration_ms=_elapsed_ms(started),
        status="success",
    )
    yield ev.CommandCompleted(command="check", ok=True, exit_code=0)


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
