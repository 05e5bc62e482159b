"""Simulate command: run the full service against an in-memory host."""

import asyncio
import json
import tempfile
from pathlib import Path
from typing import Any

import typer

from tabkeeper.clock import ManualClock
from tabkeeper.config import Options, OptionsStore, get_settings
from tabkeeper.engine import SweepReport, TabLifecycleService
from tabkeeper.host import InMemoryTabHost


async def run_simulation(
    tab_count: int,
    seconds: float,
    options: Options,
    options_dir: Path,
) -> tuple[list[dict[str, Any]], dict[str, Any]]:
    """Fast-forward a window of background tabs through `seconds` of sweeps.

    One foreground tab stays active; `tab_count` background tabs are left
    idle and go through freeze, warning and close.

    Returns:
        The timeline of sweep actions and the final service status.
    """
    settings = get_settings()
    clock = ManualClock(start=0.0)
    store = OptionsStore(options_dir / "options.yaml")
    store.save(options)

    host = InMemoryTabHost()
    service = TabLifecycleService(host, settings=settings, options_store=store, clock=clock)

    host.open_tab("https://example.com/", title="Home")
    for i in range(tab_count):
        host.open_tab(f"https://example.com/page/{i + 1}", title=f"Page {i + 1}")

    timeline: list[dict[str, Any]] = []

    def record(report: SweepReport) -> None:
        for action, tab_ids in (
            ("frozen", report.frozen),
            ("warned", report.warned),
            ("closed", report.closed),
        ):
            for tab_id in tab_ids:
                timeline.append({"t": report.timestamp, "action": action, "tab_id": tab_id})

    service.scheduler.on_sweep(record)

    while clock.now() <= seconds:
        await service.scheduler.tick()
        await service.scheduler.drain()
        clock.advance(settings.tick_interval)

    return timeline, service.get_status()


def simulate_command(
    tabs: int = typer.Option(3, "--tabs", "-n", min=1, help="Background tabs to open"),
    seconds: float = typer.Option(320.0, "--seconds", "-s", min=1, help="Simulated seconds"),
    freeze_after: int = typer.Option(None, "--freeze-after", min=1, help="Override freezeAfterSeconds"),
    close_after: int = typer.Option(None, "--close-after", min=1, help="Override frozenCloseSeconds"),
    output_json: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output in JSON format",
    ),
) -> None:
    """Simulate idle tabs being frozen, warned about and closed.

    Runs the real sweep against a simulated browser window with a clock
    that jumps forward one tick at a time, so minutes pass instantly.
    """
    options = OptionsStore(get_settings().options_path).load_or_default()
    overrides: dict[str, Any] = {}
    if freeze_after is not None:
        overrides["freeze_after_seconds"] = freeze_after
    if close_after is not None:
        overrides["frozen_close_seconds"] = close_after
    options = Options.model_validate({**options.model_dump(), **overrides})

    with tempfile.TemporaryDirectory() as tmpdir:
        timeline, status = asyncio.run(run_simulation(tabs, seconds, options, Path(tmpdir)))

    if output_json:
        typer.echo(json.dumps({"timeline": timeline, "status": status}, indent=2))
        return

    typer.echo("")
    typer.echo(
        f"Simulating {tabs} idle tab(s) for {seconds:.0f}s "
        f"(freeze after {options.freeze_after_seconds}s, "
        f"close after {options.frozen_close_seconds}s frozen)"
    )
    typer.echo("")
    if not timeline:
        typer.echo("No tab was frozen or closed.")
    for entry in timeline:
        typer.echo(f"  t={entry['t']:>6.0f}s  tab {entry['tab_id']:<3} {entry['action']}")
    typer.echo("")
    typer.echo(f"Tabs still tracked: {status['tracked_tabs']} {status['tabs_by_state']}")
