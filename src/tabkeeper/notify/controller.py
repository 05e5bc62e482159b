"""Closing-soon warnings and the user's responses to them."""

import logging
import threading
import uuid
from collections.abc import Sequence

from tabkeeper.clock import Clock, SystemClock
from tabkeeper.config.settings import DEFAULT_RESTRICTED_PREFIXES
from tabkeeper.events import EventIngest, TabEvent
from tabkeeper.host.base import OverlayRequest, TabHost, TabSnapshot, TransientHostError
from tabkeeper.logging import host_logger, log_host_action_failed, log_warning_issued
from tabkeeper.policy import is_restricted_url

logger = logging.getLogger(__name__)


class NotificationController:
    """Shows closing-soon overlays and turns responses into ledger events.

    The overlay is requested inside the current foreground tab and carries
    the frozen tab's id and title plus two responses:

    - go_to_tab: focus the frozen tab, which counts as fresh activity
    - dismiss: leave the tab frozen but grant a grace window

    With no response the overlay disappears after `display_seconds` and the
    tab closes on schedule.

    Example:
        controller = NotificationController(host, ingest)
        await controller.warn(frozen_tab, foreground_tab, seconds_left=5.0)
        await controller.respond(frozen_tab.id, "dismiss")
    """

    def __init__(
        self,
        host: TabHost,
        ingest: EventIngest,
        clock: Clock | None = None,
        display_seconds: float = 5.0,
        restricted_prefixes: Sequence[str] = DEFAULT_RESTRICTED_PREFIXES,
        self_id: str | None = None,
    ) -> None:
        self._host = host
        self._ingest = ingest
        self._clock = clock or SystemClock()
        self.display_seconds = display_seconds
        self._restricted_prefixes = list(restricted_prefixes)
        self._self_id = self_id

        # target tab id -> overlay currently on screen
        self._outstanding: dict[int, OverlayRequest] = {}
        self._lock = threading.Lock()

    async def warn(
        self,
        target: TabSnapshot,
        foreground: TabSnapshot | None,
        seconds_left: float,
    ) -> OverlayRequest | None:
        """Request an overlay for `target` in the foreground tab.

        Returns:
            The overlay shown, or None when there was nowhere to show it or
            the host refused.
        """
        if foreground is None or is_restricted_url(
            foreground.url, self._restricted_prefixes, self._self_id
        ):
            # Host pages cannot render our overlay
            log_warning_issued(logger, target.id, None, seconds_left)
            logger.debug("Overlay skipped: no usable foreground tab for tab_id=%d", target.id)
            return None

        overlay = OverlayRequest(
            overlay_id=uuid.uuid4().hex,
            target_tab_id=target.id,
            target_title=target.title,
            display_seconds=self.display_seconds,
            issued_at=self._clock.now(),
        )

        try:
            await self._host.show_overlay(foreground.id, overlay)
        except TransientHostError as e:
            log_host_action_failed(host_logger(), "show_overlay", foreground.id, e.reason)
            return None

        with self._lock:
            self._outstanding[target.id] = overlay
        log_warning_issued(logger, target.id, foreground.id, seconds_left)
        logger.debug("Overlay %s in tab %d: %s", overlay.overlay_id, foreground.id, overlay.message)
        return overlay

    async def respond(self, tab_id: int, action: str) -> bool:
        """Apply a user response from an overlay.

        Args:
            tab_id: The frozen tab the overlay was about.
            action: "go_to_tab" or "dismiss".

        Returns:
            True if the response took effect.
        """
        if action == "go_to_tab":
            return await self.go_to_tab(tab_id)
        if action == "dismiss":
            self.dismiss(tab_id)
            return True
        raise ValueError(f"unknown overlay action: {action}")

    async def go_to_tab(self, tab_id: int) -> bool:
        """Bring a warned tab to the foreground.

        A short grace window covers the time the activation request is in
        flight; the activation itself then counts as fresh activity and
        clears the freeze.
        """
        self._ingest.handle(TabEvent.reactivate_request(tab_id))
        self._clear(tab_id)

        try:
            await self._host.activate(tab_id)
        except TransientHostError as e:
            log_host_action_failed(host_logger(), "activate", tab_id, e.reason)
            return False

        self._ingest.handle(TabEvent.activated(tab_id))
        return True

    def dismiss(self, tab_id: int) -> None:
        """Keep the tab frozen but hold off closing it for the dismiss grace."""
        self._ingest.handle(TabEvent.dismiss_request(tab_id))
        self._clear(tab_id)

    def outstanding(self) -> list[OverlayRequest]:
        """Overlays still on screen; expired ones are dropped."""
        now = self._clock.now()
        with self._lock:
            expired = [tab_id for tab_id, o in self._outstanding.items() if o.expires_at <= now]
            for tab_id in expired:
                del self._outstanding[tab_id]
            return list(self._outstanding.values())

    def forget(self, tab_id: int) -> None:
        """Drop any overlay about a tab that no longer exists."""
        self._clear(tab_id)

    def _clear(self, tab_id: int) -> None:
        with self._lock:
            self._outstanding.pop(tab_id, None)
