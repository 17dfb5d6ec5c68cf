from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from oasproto.cli.renderers import (
    RewriteJsonRenderer,
    RewritePlainRenderer,
    RewriteRichRenderer,
    run_events,
)
from oasproto.core.rewrite import rewrite_events

console = Console()


def rewrite(
    document: Path | None = typer.Argument(
        None,
        help="OpenAPI document to rewrite (defaults to `document` in oasproto.yaml).",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to oasproto.yaml.",
    ),
    project: Path = typer.Option(
        Path("."),
        "--project",
        "-p",
        help="Base directory for relative paths.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Where to write the rewritten document.",
    ),
    output_format: str | None = typer.Option(
        None,
        "--format",
        help="Output format: yaml or json (defaults to the output file suffix).",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Rewrite in memory without writing the result.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Raise rewrite errors with their stack trace instead of reporting them.",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Emit machine-readable JSON report.",
    ),
) -> None:
    if output_format is not None and output_format not in {"yaml", "json"}:
        raise typer.BadParameter("must be yaml or json", param_hint="--format")
    events = rewrite_events(
        project_dir=project,
        document_path=document,
        config_path=config,
        output_path=output,
        output_format=output_format,
        dry_run=dry_run,
        debug=debug,
    )
    if json_output:
        renderer = RewriteJsonRenderer(console)
    else:
        renderer = RewriteRichRenderer(console) if console.is_terminal else RewritePlainRenderer(console)
    try:
        exit_code = run_events(events, renderer)
    except Exception as exc:  # noqa: BLE001
        renderer.close()
        if debug:
            raise
        console.print(f"[red]Unexpected error:[/red] {exc}")
        raise typer.Exit(code=3)
    raise typer.Exit(code=exit_code)
