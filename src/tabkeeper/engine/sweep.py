"""Periodic sweep that freezes idle tabs and closes long-frozen ones."""

import asyncio
import logging
from collections.abc import Coroutine
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from tabkeeper.clock import Clock, SystemClock
from tabkeeper.config import Options, OptionsStore, Settings
from tabkeeper.host.base import TabHost, TabSnapshot, TransientHostError
from tabkeeper.ledger import ActivityLedger, TabRecord
from tabkeeper.logging import (
    host_logger,
    log_host_action_failed,
    log_state_change,
    log_tab_closed,
    log_tab_frozen,
    sweep_logger,
)
from tabkeeper.notify import NotificationController
from tabkeeper.policy import (
    Thresholds,
    is_close_candidate,
    is_close_eligible,
    is_freeze_eligible,
    is_warn_eligible,
)

logger = logging.getLogger(__name__)


class SweepState(Enum):
    """State of the sweep loop."""

    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


@dataclass
class SweepReport:
    """What one tick decided.

    Ids are the tabs for which an action was requested; the actions
    themselves may still be in flight when the report is returned.
    """

    timestamp: float
    frozen: list[int] = field(default_factory=list)
    warned: list[int] = field(default_factory=list)
    closed: list[int] = field(default_factory=list)
    pruned: list[int] = field(default_factory=list)
    skipped: str | None = None  # paused, disabled, host_unavailable

    @property
    def acted(self) -> bool:
        return bool(self.frozen or self.warned or self.closed)


class SweepScheduler:
    """Fixed-cadence sweep over every open tab.

    Each tick re-reads the user options, lists the host's tabs and runs two
    passes against the current ledger:

    1. Freeze pass (when the page freezer is on): discard eligible tabs.
    2. Close pass: warn frozen tabs nearing the close threshold, close the
       ones past it.

    The two passes touch disjoint tabs, since freezing only targets
    non-discarded tabs and closing only discarded ones. Ticks never overlap.
    The decision pass is synchronous; the host actions it requests run as
    background tasks, and their completions are idempotent ledger updates.

    Example:
        scheduler = SweepScheduler(host, ledger, notifier, OptionsStore(path))
        report = await scheduler.tick()
        await scheduler.drain()
    """

    def __init__(
        self,
        host: TabHost,
        ledger: ActivityLedger,
        notifier: NotificationController,
        options_store: OptionsStore,
        settings: Settings | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._host = host
        self._ledger = ledger
        self._notifier = notifier
        self._options_store = options_store
        self.settings = settings or Settings()
        self._clock = clock or SystemClock()

        self._state = SweepState.STOPPED
        self._tick_lock = asyncio.Lock()
        self._tick_count = 0
        self._last_report: SweepReport | None = None

        # Outstanding host actions, keyed by (action, tab_id)
        self._in_flight: set[tuple[str, int]] = set()
        self._tasks: set[asyncio.Task] = set()

        self._sweep_callbacks: list[Callable[[SweepReport], None]] = []
        self._state_change_callbacks: list[Callable[[SweepState], None]] = []

    @property
    def state(self) -> SweepState:
        return self._state

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def last_report(self) -> SweepReport | None:
        return self._last_report

    @property
    def in_flight(self) -> set[tuple[str, int]]:
        return set(self._in_flight)

    def on_sweep(self, callback: Callable[[SweepReport], None]) -> None:
        """Register callback called with each tick's SweepReport."""
        self._sweep_callbacks.append(callback)

    def on_state_change(self, callback: Callable[[SweepState], None]) -> None:
        """Register callback for state changes."""
        self._state_change_callbacks.append(callback)

    def _set_state(self, new_state: SweepState, trigger: str | None = None) -> None:
        if self._state != new_state:
            old_state = self._state
            self._state = new_state
            log_state_change(sweep_logger(), old_state.value, new_state.value, trigger)
            for callback in self._state_change_callbacks:
                try:
                    callback(new_state)
                except Exception:
                    logger.exception("State change callback failed")

    def _notify_sweep(self, report: SweepReport) -> None:
        for callback in self._sweep_callbacks:
            try:
                callback(report)
            except Exception:
                logger.exception("Sweep callback failed")

    async def start(self) -> None:
        """Run the sweep loop until stop() is called."""
        self._set_state(SweepState.RUNNING, trigger="start")
        await self._run_loop()

    async def _run_loop(self) -> None:
        while self._state != SweepState.STOPPED:
            try:
                await self.tick()
            except asyncio.CancelledError:
                break
            except Exception:
                # One bad tick must not stop the sweep
                logger.exception("Sweep tick failed")

            await self._clock.sleep(self.settings.tick_interval)

    async def tick(self) -> SweepReport:
        """Run one sweep."""
        async with self._tick_lock:
            report = await self._sweep()
            self._tick_count += 1
            self._last_report = report
        self._notify_sweep(report)
        return report

    async def _sweep(self) -> SweepReport:
        started_at = self._clock.now()

        if self._state == SweepState.PAUSED:
            return SweepReport(timestamp=started_at, skipped="paused")

        options = self._options_store.load_or_default()
        if not options.extension_enabled:
            return SweepReport(timestamp=started_at, skipped="disabled")

        try:
            tabs = await self._host.query_tabs()
        except TransientHostError as e:
            log_host_action_failed(host_logger(), "query_tabs", -1, e.reason)
            return SweepReport(timestamp=started_at, skipped="host_unavailable")

        now = self._clock.now()
        thresholds = Thresholds(
            freeze_after=float(options.freeze_after_seconds),
            close_after=float(options.frozen_close_seconds),
            warn_lead=self.settings.warn_lead_seconds,
        )
        report = SweepReport(timestamp=now)
        self._decide(tabs, now, thresholds, options, report)

        report.pruned = self._ledger.prune((tab.id for tab in tabs), observed_before=started_at)
        for tab_id in report.pruned:
            self._notifier.forget(tab_id)

        if report.acted:
            logger.debug(
                "Sweep acted: frozen=%s, warned=%s, closed=%s",
                report.frozen, report.warned, report.closed,
            )
        return report

    def _decide(
        self,
        tabs: list[TabSnapshot],
        now: float,
        thresholds: Thresholds,
        options: Options,
        report: SweepReport,
    ) -> None:
        """Synchronous decision pass over one host listing."""
        records = self._ledger.snapshot()
        prefixes = self.settings.restricted_url_prefixes
        self_id = self.settings.self_id
        foreground = next((tab for tab in tabs if tab.active), None)

        if options.page_freezer_enabled:
            for tab in tabs:
                if ("discard", tab.id) in self._in_flight:
                    continue
                record = records.get(tab.id)
                if is_freeze_eligible(
                    tab, record, now, thresholds.freeze_after, prefixes, self_id
                ):
                    report.frozen.append(tab.id)
                    self._spawn("discard", tab.id, self._discard(tab.id, thresholds.freeze_after))

        to_warn: list[tuple[TabSnapshot, TabRecord]] = []
        for tab in tabs:
            if not is_close_candidate(tab, prefixes, self_id):
                continue
            record = records.get(tab.id)

            if is_warn_eligible(record, now, thresholds.close_after, thresholds.warn_lead):
                self._ledger.mark_notified(tab.id)
                to_warn.append((tab, record))

            if is_close_eligible(record, now, thresholds.close_after):
                if ("remove", tab.id) in self._in_flight:
                    continue
                report.closed.append(tab.id)
                self._spawn("remove", tab.id, self._remove(tab.id, record.frozen_seconds(now)))

        # Every due tab gets its own overlay, most urgent first
        to_warn.sort(key=lambda item: item[1].frozen_at)
        for tab, record in to_warn:
            seconds_left = max(0.0, thresholds.close_after - record.frozen_seconds(now))
            report.warned.append(tab.id)
            self._spawn("warn", tab.id, self._notifier.warn(tab, foreground, seconds_left))

    def _spawn(self, action: str, tab_id: int, coro: Coroutine[Any, Any, Any]) -> None:
        key = (action, tab_id)
        self._in_flight.add(key)
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._finish(t, key))

    def _finish(self, task: asyncio.Task, key: tuple[str, int]) -> None:
        self._tasks.discard(task)
        self._in_flight.discard(key)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "Host action crashed: action=%s, tab_id=%d",
                key[0], key[1],
                exc_info=task.exception(),
            )

    async def _discard(self, tab_id: int, freeze_after: float) -> None:
        # Activity that landed after the decision pass wins
        record = self._ledger.get(tab_id)
        now = self._clock.now()
        if (
            record is None
            or record.is_frozen
            or record.in_grace(now)
            or record.idle_seconds(now) < freeze_after
        ):
            logger.debug("Discard of tab_id=%d dropped: tab no longer idle", tab_id)
            return

        try:
            await self._host.discard(tab_id)
        except TransientHostError as e:
            log_host_action_failed(host_logger(), "discard", tab_id, e.reason)
            return
        self._ledger.mark_frozen(tab_id)
        log_tab_frozen(sweep_logger(), tab_id, record.idle_seconds(now))

    async def _remove(self, tab_id: int, frozen_seconds: float) -> None:
        try:
            await self._host.remove(tab_id)
        except TransientHostError as e:
            log_host_action_failed(host_logger(), "remove", tab_id, e.reason)
            return
        self._ledger.remove(tab_id)
        self._notifier.forget(tab_id)
        log_tab_closed(sweep_logger(), tab_id, frozen_seconds)

    async def drain(self) -> None:
        """Wait for every outstanding host action to complete."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def pause(self) -> None:
        """Pause sweeping; ticks keep firing but do nothing."""
        self._set_state(SweepState.PAUSED, trigger="pause")

    def resume(self) -> None:
        if self._state == SweepState.PAUSED:
            self._set_state(SweepState.RUNNING, trigger="resume")

    def stop(self) -> None:
        """Stop the loop after the current tick."""
        self._set_state(SweepState.STOPPED, trigger="stop")
