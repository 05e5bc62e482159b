"""Tabkeeper CLI - command-line interface for options and simulation."""

import typer

from tabkeeper import __version__
from tabkeeper.cli_commands.config import config_app
from tabkeeper.cli_commands.simulate import simulate_command
from tabkeeper.config import get_settings
from tabkeeper.logging import setup_logging

app = typer.Typer(
    name="tabkeeper",
    help="Tabkeeper - freeze idle tabs and close the ones you forgot.",
    no_args_is_help=True,
)

app.add_typer(config_app, name="config")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"tabkeeper {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Tabkeeper - idle tab freezing and reclamation."""
    settings = get_settings()
    setup_logging(
        settings.log_level,
        log_file=settings.log_file,
        instance_id=settings.instance_id,
    )


app.command(name="simulate")(simulate_command)


if __name__ == "__main__":
    app()
