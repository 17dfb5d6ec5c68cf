from __future__ import annotations

from typing import Any, Callable

from oasproto.config.model import Config, RewriteOptions
from oasproto.schema.context import Diagnostic
from oasproto.transforms.annotate import annotate
from oasproto.transforms.restructure import restructure
from oasproto.transforms.simplify import simplify
from oasproto.transforms.state import RewriteState

Phase = Callable[[dict[str, Any], RewriteState], dict[str, Any]]

# Order matters: each phase relies on the shapes left behind by the previous one.
PHASES: list[tuple[str, str, Phase]] = [
    ("simplify", "Simplify schemas", simplify),
    ("restructure", "Restructure maps and unions", restructure),
    ("annotate", "Annotate exclusive groups", annotate),
]


def rewrite_options(config: Config | RewriteOptions | None) -> RewriteOptions:
    if config is None:
        return RewriteOptions()
    if isinstance(config, Config):
        return config.rewrite
    return config


def new_state(
    document: dict[str, Any],
    config: Config | RewriteOptions | None = None,
) -> RewriteState:
    return RewriteState(document=document, options=rewrite_options(config))


def rewrite(
    document: dict[str, Any],
    config: Config | RewriteOptions | None = None,
    *,
    diagnostics: list[Diagnostic] | None = None,
) -> dict[str, Any]:
    """Run every phase over ``document`` in place and return it.

    Problems with individual schemas never abort the run; they are appended to
    ``diagnostics`` when a list is supplied.
    """
    if not isinstance(document, dict):
        raise ValueError("Document must be a mapping.")
    state = new_state(document, config)
    for _, _, phase in PHASES:
        phase(document, state)
    if diagnostics is not None:
        diagnostics.extend(state.diagnostics)
    return document
