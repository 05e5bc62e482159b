"""The activity ledger: the single owner of per-tab lifecycle records."""

import dataclasses
import logging
import threading
from collections.abc import Iterable

from tabkeeper.clock import Clock, SystemClock
from tabkeeper.ledger.records import TabRecord

logger = logging.getLogger(__name__)


class ActivityLedger:
    """Thread-safe map of tab id to TabRecord.

    Every read-modify-write happens under one lock, so host adapters may
    deliver events from their own threads while the sweep runs on the event
    loop. Callers only ever see copies of records; all mutation goes through
    the methods below.

    All operations are idempotent and none of them fail. Mutating a tab that
    has no record first creates a zero-valued one; reading or removing an
    unknown tab is a no-op.

    Example:
        ledger = ActivityLedger()
        ledger.record_activity(7)
        ledger.mark_frozen(7)
        assert ledger.get(7).is_frozen
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._records: dict[int, TabRecord] = {}
        self._lock = threading.Lock()

    def _ensure(self, tab_id: int) -> TabRecord:
        # Caller holds the lock
        record = self._records.get(tab_id)
        if record is None:
            record = TabRecord(tab_id=tab_id)
            self._records[tab_id] = record
        return record

    def record_activity(self, tab_id: int) -> None:
        """Mark the tab as just used.

        Clears the freeze episode and any grace window: interaction resets
        every exemption.
        """
        with self._lock:
            record = self._ensure(tab_id)
            record.last_active_at = self._clock.now()
            record.frozen_at = None
            record.notified = False
            record.ignore_auto_freeze_until = None

    def mark_frozen(self, tab_id: int) -> None:
        """Start a freeze episode.

        The host may report a discard twice (our own discard completing and
        its discarded-flag update), so an already-frozen record keeps its
        original frozen_at.
        """
        with self._lock:
            record = self._ensure(tab_id)
            if record.frozen_at is None:
                record.frozen_at = self._clock.now()
                record.notified = False

    def mark_unfrozen(self, tab_id: int) -> None:
        """End the freeze episode without counting it as user activity."""
        with self._lock:
            record = self._ensure(tab_id)
            record.frozen_at = None
            record.notified = False

    def mark_notified(self, tab_id: int) -> None:
        with self._lock:
            self._ensure(tab_id).notified = True

    def grant_grace(self, tab_id: int, until: float) -> None:
        """Exempt the tab from freeze and close evaluation until `until`.

        The idle and frozen clocks are left alone, so evaluation resumes
        from where the thresholds stand once the window lapses.
        """
        with self._lock:
            self._ensure(tab_id).ignore_auto_freeze_until = until

    def remove(self, tab_id: int) -> bool:
        """Delete the record. Returns True if one existed."""
        with self._lock:
            return self._records.pop(tab_id, None) is not None

    def get(self, tab_id: int) -> TabRecord | None:
        """Return a copy of the record, or None if the tab is unknown."""
        with self._lock:
            record = self._records.get(tab_id)
            return dataclasses.replace(record) if record is not None else None

    def snapshot(self) -> dict[int, TabRecord]:
        """Return copies of all records."""
        with self._lock:
            return {tab_id: dataclasses.replace(r) for tab_id, r in self._records.items()}

    def tab_ids(self) -> list[int]:
        with self._lock:
            return list(self._records)

    def prune(self, open_tab_ids: Iterable[int], observed_before: float) -> list[int]:
        """Drop records of tabs the host no longer lists.

        Only records untouched since `observed_before` (the moment the host
        listing was requested) are dropped, so a tab created while the
        listing was in flight keeps its record.

        Args:
            open_tab_ids: Tab ids the host reported as open.
            observed_before: When the host listing was requested.

        Returns:
            The pruned tab ids.
        """
        open_ids = set(open_tab_ids)
        with self._lock:
            stale = [
                tab_id
                for tab_id, record in self._records.items()
                if tab_id not in open_ids and record.last_active_at < observed_before
            ]
            for tab_id in stale:
                del self._records[tab_id]

        if stale:
            logger.debug("Pruned records of closed tabs: tab_ids=%s", stale)
        return stale

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, tab_id: object) -> bool:
        with self._lock:
            return tab_id in self._records
