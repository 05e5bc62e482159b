"""Service wiring the ledger, ingest, notifications and sweep to a host."""

import logging
from collections import Counter
from typing import Any

from tabkeeper.clock import Clock, SystemClock
from tabkeeper.config import OptionsStore, Settings, get_settings
from tabkeeper.engine.sweep import SweepScheduler, SweepState
from tabkeeper.events import EventIngest, EventKind, TabEvent
from tabkeeper.host.base import TabHost
from tabkeeper.ledger import ActivityLedger
from tabkeeper.messages import BookmarkSource, MessageRouter
from tabkeeper.notify import NotificationController
from tabkeeper.policy import derive_state

logger = logging.getLogger(__name__)


class TabLifecycleService:
    """High-level entry point for running Tabkeeper against a host.

    Subscribes to the host's tab events on construction, so tabs opened
    before start() are already tracked. start() runs the sweep loop until
    stop() is called.

    Example:
        service = TabLifecycleService(host)
        task = asyncio.create_task(service.start())
        ...
        await service.stop()
    """

    def __init__(
        self,
        host: TabHost,
        settings: Settings | None = None,
        options_store: OptionsStore | None = None,
        clock: Clock | None = None,
        bookmark_source: BookmarkSource | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.clock = clock or SystemClock()
        self.options_store = options_store or OptionsStore(self.settings.options_path)
        self.host = host

        self.ledger = ActivityLedger(self.clock)
        self.ingest = EventIngest(
            self.ledger,
            self.clock,
            dismiss_grace_seconds=self.settings.dismiss_grace_seconds,
            reactivate_grace_seconds=self.settings.reactivate_grace_seconds,
        )
        self.notifier = NotificationController(
            host,
            self.ingest,
            self.clock,
            display_seconds=self.settings.overlay_display_seconds,
            restricted_prefixes=self.settings.restricted_url_prefixes,
            self_id=self.settings.self_id,
        )
        self.scheduler = SweepScheduler(
            host,
            self.ledger,
            self.notifier,
            self.options_store,
            settings=self.settings,
            clock=self.clock,
        )
        self.router = MessageRouter(self.ingest, self.notifier, bookmark_source)

        host.subscribe(self._handle_host_event)

    def _handle_host_event(self, event: TabEvent) -> None:
        """Feed a host event into the ledger."""
        self.ingest.handle(event)
        if event.kind is EventKind.REMOVED:
            self.notifier.forget(event.tab_id)

    async def handle_message(
        self,
        message: Any,
        sender_tab_id: int | None = None,
    ) -> dict[str, Any] | None:
        """Route a page message; see MessageRouter."""
        return await self.router.handle(message, sender_tab_id)

    async def start(self) -> None:
        """Run the sweep loop (blocks until stopped)."""
        if self.is_running:
            return

        logger.info(
            "Starting tab lifecycle service, tick_interval=%.1fs, options=%s",
            self.settings.tick_interval,
            self.options_store.path,
        )
        await self.scheduler.start()

    async def stop(self) -> None:
        """Stop the sweep loop and wait for outstanding host actions."""
        self.scheduler.stop()
        await self.scheduler.drain()
        logger.info(
            "Tab lifecycle service stopped, ticks=%d, tracked_tabs=%d",
            self.scheduler.tick_count,
            len(self.ledger),
        )

    def pause(self) -> None:
        self.scheduler.pause()

    def resume(self) -> None:
        self.scheduler.resume()

    @property
    def is_running(self) -> bool:
        return self.scheduler.state != SweepState.STOPPED

    def get_status(self) -> dict[str, Any]:
        """Summarize ledger and scheduler state.

        Returns:
            Dictionary with scheduler state, per-state tab counts, outstanding
            overlays and the options in force.
        """
        now = self.clock.now()
        records = self.ledger.snapshot()
        states = Counter(derive_state(record, now).value for record in records.values())
        report = self.scheduler.last_report

        return {
            "state": self.scheduler.state.value,
            "ticks": self.scheduler.tick_count,
            "tracked_tabs": len(records),
            "tabs_by_state": dict(states),
            "in_flight_actions": len(self.scheduler.in_flight),
            "outstanding_warnings": [
                overlay.target_tab_id for overlay in self.notifier.outstanding()
            ],
            "last_sweep": (
                {
                    "timestamp": report.timestamp,
                    "frozen": report.frozen,
                    "warned": report.warned,
                    "closed": report.closed,
                    "skipped": report.skipped,
                }
                if report
                else None
            ),
            "options": self.options_store.load_or_default().to_persisted(),
        }
