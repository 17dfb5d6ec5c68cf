from __future__ import annotations

import rich_click  # noqa: F401
import typer

from oasproto import __version__
from oasproto.cli.check import check
from oasproto.cli.rewrite import rewrite

app = typer.Typer(
    name="oasproto",
    help="Rewrite OpenAPI schemas into shapes a protobuf generator can map.",
    no_args_is_help=True,
)


@app.command("version")
def version() -> None:
    """Show the oasproto version."""
    typer.echo(f"oasproto v{__version__}")


app.command("rewrite")(rewrite)
app.command("check")(check)
