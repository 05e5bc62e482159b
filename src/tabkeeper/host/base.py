"""Host port: the tab-management capabilities Tabkeeper depends on.

Anything that can list, discard, close and focus tabs and report tab events
can host Tabkeeper. The core never talks to a concrete browser API.
"""

from dataclasses import dataclass, field
from typing import Callable, Protocol

from tabkeeper.events import TabEvent


class TransientHostError(Exception):
    """Raised when the host rejects an action or the tab is already gone.

    Never retried synchronously; the host's removal event or the next sweep
    reconciles the ledger.
    """

    def __init__(self, action: str, tab_id: int, reason: str) -> None:
        super().__init__(f"{action} failed for tab {tab_id}: {reason}")
        self.action = action
        self.tab_id = tab_id
        self.reason = reason


@dataclass(frozen=True)
class TabSnapshot:
    """Host view of one open tab at query time."""

    id: int
    url: str | None = None
    title: str = ""
    active: bool = False
    pinned: bool = False
    discarded: bool = False
    audible: bool = False
    status: str = "complete"


OVERLAY_ACTIONS = ("go_to_tab", "dismiss")


@dataclass(frozen=True)
class OverlayRequest:
    """A closing-soon overlay to render in the foreground tab.

    Rendering belongs to the host; this only says what to show and which
    responses the user may send back.
    """

    overlay_id: str
    target_tab_id: int
    target_title: str
    display_seconds: float
    issued_at: float
    actions: tuple[str, ...] = field(default=OVERLAY_ACTIONS)

    @property
    def expires_at(self) -> float:
        return self.issued_at + self.display_seconds

    @property
    def message(self) -> str:
        return f"{self.target_title or 'A tab'} is frozen and will close soon."


EventCallback = Callable[[TabEvent], None]


class TabHost(Protocol):
    """Protocol for the host environment that owns the tabs.

    All actions are asynchronous requests. Failing actions raise
    TransientHostError. Events are delivered to subscribers as TabEvents.
    """

    async def query_tabs(self) -> list[TabSnapshot]:
        """List all open tabs."""
        ...

    async def discard(self, tab_id: int) -> None:
        """Freeze a tab, keeping it listed as open."""
        ...

    async def remove(self, tab_id: int) -> None:
        """Close a tab."""
        ...

    async def create(self, url: str) -> int:
        """Open a new tab and return its id."""
        ...

    async def activate(self, tab_id: int) -> None:
        """Bring a tab to the foreground."""
        ...

    async def show_overlay(self, tab_id: int, overlay: OverlayRequest) -> None:
        """Render a closing-soon overlay inside `tab_id`."""
        ...

    def subscribe(self, callback: EventCallback) -> None:
        """Register for activated/updated/created/removed events."""
        ...
