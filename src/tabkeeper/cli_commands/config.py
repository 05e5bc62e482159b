"""Options management CLI commands."""

import json

import typer
from pydantic import ValidationError

from tabkeeper.config import OPTION_KEYS, ConfigurationMissing, Options, OptionsStore, get_settings
from tabkeeper.logging import config_logger, log_config_change

config_app = typer.Typer(
    name="config",
    help="Options management - view and change freeze/close behaviour.",
    no_args_is_help=True,
)


def _store() -> OptionsStore:
    return OptionsStore(get_settings().options_path)


@config_app.command()
def show(
    output_json: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output in JSON format",
    ),
) -> None:
    """Show the options in force and the process settings."""
    settings = get_settings()
    store = _store()

    try:
        options = store.load()
        source = str(store.path) if store.path.exists() else "defaults"
    except ConfigurationMissing as e:
        options = Options()
        source = f"defaults ({e})"

    data = {
        "options": options.to_persisted(),
        "options_source": source,
        "tick_interval": settings.tick_interval,
        "warn_lead_seconds": settings.warn_lead_seconds,
        "dismiss_grace_seconds": settings.dismiss_grace_seconds,
        "overlay_display_seconds": settings.overlay_display_seconds,
        "log_level": settings.log_level,
    }

    if output_json:
        typer.echo(json.dumps(data, indent=2))
        return

    typer.echo("")
    typer.echo("Tabkeeper Options")
    typer.echo("-----------------")
    typer.echo(f"Enabled: {options.extension_enabled}")
    typer.echo(f"Page freezer: {options.page_freezer_enabled}")
    typer.echo(f"Freeze after: {options.freeze_after_seconds}s idle")
    typer.echo(f"Close after: {options.frozen_close_seconds}s frozen")
    typer.echo(f"Source: {source}")
    typer.echo("")
    typer.echo(f"Sweep every {settings.tick_interval}s, warn {settings.warn_lead_seconds}s "
               f"before closing, dismiss grace {settings.dismiss_grace_seconds}s")
    typer.echo("Process settings use environment variables with the TABKEEPER_ prefix")


@config_app.command(name="set")
def set_option(
    key: str = typer.Argument(..., help="Option key, e.g. freezeAfterSeconds"),
    value: str = typer.Argument(..., help="New value"),
) -> None:
    """Change one option and save it to the options file."""
    if key not in OPTION_KEYS:
        typer.echo(f"Unknown key: {key}")
        typer.echo(f"Valid keys: {', '.join(sorted(OPTION_KEYS))}")
        raise typer.Exit(1)

    store = _store()
    current = store.load_or_default()
    old_value = current.to_persisted()[key]

    data = current.to_persisted()
    data[key] = value
    try:
        updated = Options.model_validate(data)
    except ValidationError as e:
        typer.echo(f"Invalid value for {key}: {e.errors()[0]['msg']}")
        raise typer.Exit(1)

    store.save(updated)
    new_value = updated.to_persisted()[key]
    log_config_change(config_logger(), key, str(old_value), str(new_value))
    typer.echo(f"{key} = {new_value}")
    typer.echo(f"Saved to {store.path}")


@config_app.command()
def reset() -> None:
    """Revert every option to its default."""
    store = _store()
    store.reset()
    typer.echo(f"Options reset to defaults ({store.path} removed)")
