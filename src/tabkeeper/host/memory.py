"""In-memory host that behaves like a small browser window.

Used by the test suite and the `simulate` command. Actions take effect
immediately and emit the same events a real browser would.
"""

import itertools
from dataclasses import dataclass

from tabkeeper.events import TabEvent
from tabkeeper.host.base import EventCallback, OverlayRequest, TabSnapshot, TransientHostError


@dataclass
class _HostTab:
    id: int
    url: str | None
    title: str
    pinned: bool = False
    discarded: bool = False
    audible: bool = False
    status: str = "complete"


class InMemoryTabHost:
    """Deterministic TabHost implementation.

    Example:
        host = InMemoryTabHost()
        host.subscribe(ingest.handle)
        tab_id = await host.create("https://example.com")
        await host.activate(tab_id)
    """

    def __init__(self) -> None:
        self._tabs: dict[int, _HostTab] = {}
        self._active_id: int | None = None
        self._ids = itertools.count(1)
        self._subscribers: list[EventCallback] = []
        self.overlays: list[tuple[int, OverlayRequest]] = []
        self.failing_actions: set[str] = set()

    # --- event delivery ---

    def subscribe(self, callback: EventCallback) -> None:
        self._subscribers.append(callback)

    def _emit(self, event: TabEvent) -> None:
        for callback in self._subscribers:
            callback(event)

    def _get(self, action: str, tab_id: int) -> _HostTab:
        if action in self.failing_actions:
            raise TransientHostError(action, tab_id, "rejected by host")
        tab = self._tabs.get(tab_id)
        if tab is None:
            raise TransientHostError(action, tab_id, "no tab with that id")
        return tab

    # --- TabHost actions ---

    async def query_tabs(self) -> list[TabSnapshot]:
        return [self._snapshot(tab) for tab in self._tabs.values()]

    async def discard(self, tab_id: int) -> None:
        tab = self._get("discard", tab_id)
        if tab_id == self._active_id:
            raise TransientHostError("discard", tab_id, "cannot discard the active tab")
        if not tab.discarded:
            tab.discarded = True
            self._emit(TabEvent.updated(tab_id, discarded=True))

    async def remove(self, tab_id: int) -> None:
        self._get("remove", tab_id)
        del self._tabs[tab_id]
        if self._active_id == tab_id:
            self._active_id = None
        self._emit(TabEvent.removed(tab_id))

    async def create(self, url: str) -> int:
        return self.open_tab(url)

    async def activate(self, tab_id: int) -> None:
        tab = self._get("activate", tab_id)
        self._active_id = tab_id
        if tab.discarded:
            # Focusing a discarded tab reloads it
            tab.discarded = False
            self._emit(TabEvent.updated(tab_id, discarded=False))
        self._emit(TabEvent.activated(tab_id))

    async def show_overlay(self, tab_id: int, overlay: OverlayRequest) -> None:
        self._get("show_overlay", tab_id)
        self.overlays.append((tab_id, overlay))

    # --- simulation helpers ---

    def open_tab(
        self,
        url: str | None,
        title: str = "",
        pinned: bool = False,
        audible: bool = False,
        status: str = "complete",
    ) -> int:
        """Open a tab synchronously and emit its creation event."""
        tab_id = next(self._ids)
        self._tabs[tab_id] = _HostTab(
            id=tab_id,
            url=url,
            title=title or (url or ""),
            pinned=pinned,
            audible=audible,
            status=status,
        )
        self._emit(TabEvent.created(tab_id))
        if self._active_id is None:
            self._active_id = tab_id
        return tab_id

    def set_audible(self, tab_id: int, audible: bool) -> None:
        self._tabs[tab_id].audible = audible

    def finish_loading(self, tab_id: int) -> None:
        """Complete a navigation and emit the load-complete update."""
        self._tabs[tab_id].status = "complete"
        self._emit(TabEvent.updated(tab_id, status="complete"))

    def discard_externally(self, tab_id: int) -> None:
        """Discard a tab the way the host does under memory pressure."""
        tab = self._tabs[tab_id]
        if not tab.discarded:
            tab.discarded = True
            self._emit(TabEvent.updated(tab_id, discarded=True))

    def close_externally(self, tab_id: int, notify: bool = True) -> None:
        """Close a tab as the user would. With notify=False the event is lost."""
        self._tabs.pop(tab_id, None)
        if self._active_id == tab_id:
            self._active_id = None
        if notify:
            self._emit(TabEvent.removed(tab_id))

    def is_open(self, tab_id: int) -> bool:
        return tab_id in self._tabs

    def is_discarded(self, tab_id: int) -> bool:
        return self._tabs[tab_id].discarded

    @property
    def active_tab_id(self) -> int | None:
        return self._active_id

    def _snapshot(self, tab: _HostTab) -> TabSnapshot:
        return TabSnapshot(
            id=tab.id,
            url=tab.url,
            title=tab.title,
            active=tab.id == self._active_id,
            pinned=tab.pinned,
            discarded=tab.discarded,
            audible=tab.audible,
            status=tab.status,
        )

    def snapshot(self, tab_id: int) -> TabSnapshot:
        return self._snapshot(self._tabs[tab_id])

    def __repr__(self) -> str:
        return f"InMemoryTabHost(tabs={len(self._tabs)}, active={self._active_id})"
