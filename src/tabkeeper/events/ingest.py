"""Event ingest: the one place where tab events become ledger mutations."""

import logging

from tabkeeper.clock import Clock, SystemClock
from tabkeeper.events.types import EventKind, TabEvent
from tabkeeper.ledger import ActivityLedger

logger = logging.getLogger(__name__)

LOADED_STATUS = "complete"


class EventIngest:
    """Applies TabEvents to the activity ledger.

    The mapping is deliberately flat so each event kind's effect can be
    read off handle() directly:

    - interaction, activated, created, load complete -> record_activity
    - discarded flag set -> mark_frozen, cleared -> mark_unfrozen
    - removed -> remove
    - reactivate request -> short grace while the host brings the tab forward
    - dismiss request -> dismiss grace, tab stays frozen

    Example:
        ingest = EventIngest(ledger)
        ingest.handle(TabEvent.created(3))
        ingest.handle(TabEvent.updated(3, discarded=True))
    """

    def __init__(
        self,
        ledger: ActivityLedger,
        clock: Clock | None = None,
        dismiss_grace_seconds: float = 30.0,
        reactivate_grace_seconds: float = 5.0,
    ) -> None:
        self.ledger = ledger
        self._clock = clock or SystemClock()
        self.dismiss_grace_seconds = dismiss_grace_seconds
        self.reactivate_grace_seconds = reactivate_grace_seconds

    def handle(self, event: TabEvent) -> None:
        """Apply one event to the ledger."""
        kind = event.kind
        tab_id = event.tab_id

        if kind in (EventKind.INTERACTION, EventKind.ACTIVATED, EventKind.CREATED):
            self.ledger.record_activity(tab_id)

        elif kind is EventKind.UPDATED:
            # Discarded change first, so a load-complete in the same update wins
            if event.discarded is True:
                self.ledger.mark_frozen(tab_id)
            elif event.discarded is False:
                self.ledger.mark_unfrozen(tab_id)
            if event.status == LOADED_STATUS:
                self.ledger.record_activity(tab_id)

        elif kind is EventKind.REMOVED:
            self.ledger.remove(tab_id)

        elif kind is EventKind.REACTIVATE_REQUEST:
            self.ledger.grant_grace(tab_id, self._clock.now() + self.reactivate_grace_seconds)

        elif kind is EventKind.DISMISS_REQUEST:
            self.ledger.grant_grace(tab_id, self._clock.now() + self.dismiss_grace_seconds)

        logger.debug("Event applied: kind=%s, tab_id=%d", kind.value, tab_id)

    def __call__(self, event: TabEvent) -> None:
        self.handle(event)
