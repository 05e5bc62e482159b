"""Shared fixtures: a manual clock, an in-memory host and a wired service."""

import asyncio

import pytest

from tabkeeper.clock import ManualClock
from tabkeeper.config import OptionsStore, Settings
from tabkeeper.engine import SweepReport, TabLifecycleService
from tabkeeper.host import InMemoryTabHost

START = 1_000.0


@pytest.fixture
def clock():
    """Clock starting at t=1000 that only moves when advanced."""
    return ManualClock(start=START)


@pytest.fixture
def host():
    return InMemoryTabHost()


@pytest.fixture
def options_store(tmp_path):
    return OptionsStore(tmp_path / "options.yaml")


@pytest.fixture
def settings(tmp_path):
    return Settings(_env_file=None, options_file=tmp_path / "options.yaml")


@pytest.fixture
def service(host, settings, options_store, clock):
    return TabLifecycleService(host, settings=settings, options_store=options_store, clock=clock)


@pytest.fixture
def run_sweep(service):
    """Run one tick and wait for the host actions it issued."""

    def _run() -> SweepReport:
        async def _tick() -> SweepReport:
            report = await service.scheduler.tick()
            await service.scheduler.drain()
            return report

        return asyncio.run(_tick())

    return _run
