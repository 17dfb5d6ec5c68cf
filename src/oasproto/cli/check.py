from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from oasproto.cli.renderers import (
    CheckJsonRenderer,
    CheckPlainRenderer,
    CheckRichRenderer,
    run_events,
)
from oasproto.core.check import check_events

console = Console()


def check(
    document: Path = typer.Argument(
        ...,
        help="Rewritten OpenAPI document to check.",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Emit machine-readable JSON report.",
    ),
) -> None:
    events = check_events(document_path=document)
    if json_output:
        renderer = CheckJsonRenderer(console)
    else:
        renderer = CheckRichRenderer(console) if console.is_terminal else CheckPlainRenderer(console)
    exit_code = run_events(events, renderer)
    raise typer.Exit(code=exit_code)
