"""Tests for the activity ledger and TabRecord state derivation."""

import threading

from tabkeeper.clock import ManualClock
from tabkeeper.ledger import ActivityLedger, TabRecord, TabState


class TestActivityLedger:
    """Ledger operations are idempotent and never fail."""

    def test_record_activity_creates_record(self):
        """First activity creates a record stamped with the current time."""
        clock = ManualClock(start=50.0)
        ledger = ActivityLedger(clock)

        ledger.record_activity(1)

        record = ledger.get(1)
        assert record == TabRecord(tab_id=1, last_active_at=50.0)
        assert 1 in ledger
        assert len(ledger) == 1

    def test_record_activity_clears_freeze_and_grace(self):
        """Interaction resets the freeze episode and every exemption."""
        clock = ManualClock(start=0.0)
        ledger = ActivityLedger(clock)
        ledger.mark_frozen(1)
        ledger.mark_notified(1)
        ledger.grant_grace(1, until=100.0)

        clock.advance(10)
        ledger.record_activity(1)

        record = ledger.get(1)
        assert record.frozen_at is None
        assert record.notified is False
        assert record.ignore_auto_freeze_until is None
        assert record.last_active_at == 10.0

    def test_mutating_absent_record_creates_zero_valued_record(self):
        """mark_frozen on an unknown tab creates it with last_active_at=0."""
        clock = ManualClock(start=30.0)
        ledger = ActivityLedger(clock)

        ledger.mark_frozen(9)

        record = ledger.get(9)
        assert record.last_active_at == 0.0
        assert record.frozen_at == 30.0

    def test_mark_frozen_keeps_original_frozen_at(self):
        """A second discard report does not restart the frozen clock."""
        clock = ManualClock(start=0.0)
        ledger = ActivityLedger(clock)
        ledger.record_activity(1)

        ledger.mark_frozen(1)
        ledger.mark_notified(1)
        clock.advance(20)
        ledger.mark_frozen(1)

        record = ledger.get(1)
        assert record.frozen_at == 0.0
        assert record.notified is True

    def test_mark_frozen_leaves_last_active_untouched(self):
        clock = ManualClock(start=5.0)
        ledger = ActivityLedger(clock)
        ledger.record_activity(1)

        clock.advance(60)
        ledger.mark_frozen(1)

        assert ledger.get(1).last_active_at == 5.0

    def test_mark_unfrozen_resets_notified(self):
        ledger = ActivityLedger(ManualClock())
        ledger.mark_frozen(1)
        ledger.mark_notified(1)

        ledger.mark_unfrozen(1)

        record = ledger.get(1)
        assert record.frozen_at is None
        assert record.notified is False

    def test_unknown_tab_lookups_are_noops(self):
        """Reading or removing an unknown tab is not an error."""
        ledger = ActivityLedger(ManualClock())

        assert ledger.get(404) is None
        assert ledger.remove(404) is False
        assert len(ledger) == 0

    def test_remove_deletes_record(self):
        ledger = ActivityLedger(ManualClock())
        ledger.record_activity(1)

        assert ledger.remove(1) is True
        assert ledger.get(1) is None
        assert ledger.tab_ids() == []

    def test_get_returns_copy(self):
        """Callers cannot mutate ledger state through returned records."""
        ledger = ActivityLedger(ManualClock())
        ledger.record_activity(1)

        record = ledger.get(1)
        record.frozen_at = 123.0
        snapshot = ledger.snapshot()
        snapshot[1].notified = True

        stored = ledger.get(1)
        assert stored.frozen_at is None
        assert stored.notified is False

    def test_prune_drops_unlisted_untouched_records(self):
        """Records of tabs the host stopped listing are pruned."""
        clock = ManualClock(start=0.0)
        ledger = ActivityLedger(clock)
        ledger.record_activity(1)
        ledger.record_activity(2)

        clock.advance(1)
        pruned = ledger.prune([1], observed_before=clock.now())

        assert pruned == [2]
        assert ledger.tab_ids() == [1]

    def test_prune_keeps_records_touched_during_listing(self):
        """A tab created after the listing was requested is kept."""
        clock = ManualClock(start=0.0)
        ledger = ActivityLedger(clock)

        listing_requested = clock.now()
        clock.advance(0.5)
        ledger.record_activity(3)

        assert ledger.prune([], observed_before=listing_requested) == []
        assert 3 in ledger

    def test_concurrent_activity_from_threads(self):
        """Events delivered from several threads all land."""
        ledger = ActivityLedger(ManualClock())

        def worker(offset: int) -> None:
            for i in range(100):
                ledger.record_activity(offset + i)

        threads = [threading.Thread(target=worker, args=(n * 1000,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(ledger) == 400


class TestTabRecordState:
    """Derived lifecycle state."""

    def test_active_when_not_frozen(self):
        assert TabRecord(tab_id=1).state(now=10.0) is TabState.ACTIVE

    def test_frozen_then_warned(self):
        record = TabRecord(tab_id=1, frozen_at=5.0)
        assert record.state(now=10.0) is TabState.FROZEN

        record.notified = True
        assert record.state(now=10.0) is TabState.WARNED

    def test_grace_overrides_warned_until_it_lapses(self):
        record = TabRecord(tab_id=1, frozen_at=5.0, notified=True, ignore_auto_freeze_until=40.0)

        assert record.state(now=39.9) is TabState.GRACE
        assert record.state(now=40.0) is TabState.WARNED

    def test_frozen_seconds(self):
        assert TabRecord(tab_id=1).frozen_seconds(100.0) == 0.0
        assert TabRecord(tab_id=1, frozen_at=40.0).frozen_seconds(100.0) == 60.0
