"""
Main CLI entry point.
"""

import typer

from databuilder import __version__
from databuilder.cli import layers, run


def version_callback(value: bool):
    """Callback to display version and exit."""
    if value:
        typer.echo(f"databuilder version {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="databuilder",
    help="Databuilder - incremental, dependency-driven data building",
    add_completion=False,
)

app.command("run")(run.run)
app.command("layers")(layers.layers)


@app.callback(invoke_without_command=True)
def entrypoint(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """
    Databuilder - incremental, dependency-driven data building.

    Run 'databuilder <command> --help' for help on a specific command.
    """
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
