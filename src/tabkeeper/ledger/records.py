"""Per-tab lifecycle record and the state derived from it."""

from dataclasses import dataclass
from enum import Enum


class TabState(Enum):
    """Lifecycle state of a tab, derived from its record.

    CLOSED has no record: a closed tab is simply absent from the ledger.
    """

    ACTIVE = "active"
    FROZEN = "frozen"
    WARNED = "warned"
    GRACE = "grace"


@dataclass
class TabRecord:
    """Activity and freeze bookkeeping for one open tab.

    Attributes:
        tab_id: Host tab identifier.
        last_active_at: Last interaction, activation or load-complete time.
        frozen_at: When the tab was discarded, None while not frozen.
        notified: A closing-soon warning went out for this freeze episode.
        ignore_auto_freeze_until: End of a grace window; the tab is exempt
            from freeze and close evaluation until then.
    """

    tab_id: int
    last_active_at: float = 0.0
    frozen_at: float | None = None
    notified: bool = False
    ignore_auto_freeze_until: float | None = None

    @property
    def is_frozen(self) -> bool:
        return self.frozen_at is not None

    def in_grace(self, now: float) -> bool:
        """Check whether the grace window is still open at `now`."""
        return self.ignore_auto_freeze_until is not None and now < self.ignore_auto_freeze_until

    def idle_seconds(self, now: float) -> float:
        return now - self.last_active_at

    def frozen_seconds(self, now: float) -> float:
        """Seconds spent frozen, 0.0 when the tab is not frozen."""
        if self.frozen_at is None:
            return 0.0
        return now - self.frozen_at

    def state(self, now: float) -> TabState:
        """Derive the lifecycle state at `now`."""
        if self.frozen_at is None:
            return TabState.ACTIVE
        if self.in_grace(now):
            return TabState.GRACE
        if self.notified:
            return TabState.WARNED
        return TabState.FROZEN
