"""CLI entry point; registers all subcommands."""

from typing import Optional

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="depshear",
    help="depshear - JavaScript/TypeScript dependency usage analyser",
    add_completion=False,
    rich_markup_mode="rich",
)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        help="Show version and exit",
        is_eager=True,
    ),
):
    """
    Measure how much of each npm dependency a repository actually uses.

    [bold cyan]Examples:[/bold cyan]

      depshear analyse lodash

      depshear analyse --top 10 --format json

      depshear analyse lodash --suggest-only -C path/to/repo
    """
    if version:
        console.print(f"[bold cyan]depshear[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(0)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)


# Import subcommands to register them
from .analyze import analyse as _analyse  # noqa: F401, E402
