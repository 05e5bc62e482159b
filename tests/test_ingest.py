"""Tests for TabEvent validation and the event-to-ledger mapping."""

import pytest

from tabkeeper.clock import ManualClock
from tabkeeper.events import EventIngest, EventKind, MalformedEvent, TabEvent
from tabkeeper.ledger import ActivityLedger


@pytest.fixture
def clock():
    return ManualClock(start=100.0)


@pytest.fixture
def ledger(clock):
    return ActivityLedger(clock)


@pytest.fixture
def ingest(ledger, clock):
    return EventIngest(ledger, clock, dismiss_grace_seconds=30.0, reactivate_grace_seconds=5.0)


class TestTabEvent:
    """Event construction rejects incoherent payloads."""

    def test_factories_set_kind(self):
        assert TabEvent.interaction(1).kind is EventKind.INTERACTION
        assert TabEvent.removed(1).kind is EventKind.REMOVED
        assert TabEvent.updated(1, status="complete").status == "complete"

    def test_negative_tab_id_is_malformed(self):
        with pytest.raises(MalformedEvent):
            TabEvent.interaction(-1)

    def test_non_integer_tab_id_is_malformed(self):
        with pytest.raises(MalformedEvent):
            TabEvent.activated("7")

    def test_status_only_allowed_on_updates(self):
        with pytest.raises(MalformedEvent):
            TabEvent(EventKind.CREATED, 1, status="complete")


class TestEventIngest:
    """Each event kind maps to one ledger mutation."""

    @pytest.mark.parametrize(
        "event",
        [
            TabEvent.interaction(1),
            TabEvent.activated(1),
            TabEvent.created(1),
            TabEvent.updated(1, status="complete"),
        ],
    )
    def test_fresh_activity_events(self, ingest, ledger, clock, event):
        """Interaction, activation, creation and load-complete record activity."""
        ledger.mark_frozen(1)
        ledger.grant_grace(1, until=500.0)
        clock.advance(10)

        ingest.handle(event)

        record = ledger.get(1)
        assert record.last_active_at == 110.0
        assert record.frozen_at is None
        assert record.ignore_auto_freeze_until is None

    def test_loading_update_is_not_activity(self, ingest, ledger, clock):
        ingest.handle(TabEvent.created(1))
        clock.advance(10)

        ingest.handle(TabEvent.updated(1, status="loading"))

        assert ledger.get(1).last_active_at == 100.0

    def test_discarded_update_freezes(self, ingest, ledger, clock):
        """A host-side discard (e.g. memory pressure) starts a freeze episode."""
        ingest.handle(TabEvent.created(1))
        clock.advance(3)

        ingest.handle(TabEvent.updated(1, discarded=True))

        record = ledger.get(1)
        assert record.frozen_at == 103.0
        assert record.last_active_at == 100.0

    def test_undiscarded_update_unfreezes(self, ingest, ledger):
        ingest.handle(TabEvent.updated(1, discarded=True))
        ledger.mark_notified(1)

        ingest.handle(TabEvent.updated(1, discarded=False))

        record = ledger.get(1)
        assert record.frozen_at is None
        assert record.notified is False

    def test_load_complete_wins_over_discard_in_same_update(self, ingest, ledger):
        ingest.handle(TabEvent.updated(1, status="complete", discarded=True))

        assert ledger.get(1).frozen_at is None

    def test_removed_deletes_record(self, ingest, ledger):
        ingest.handle(TabEvent.created(1))

        ingest.handle(TabEvent.removed(1))

        assert ledger.get(1) is None

    def test_removed_unknown_tab_is_noop(self, ingest, ledger):
        ingest.handle(TabEvent.removed(42))

        assert len(ledger) == 0

    def test_interaction_from_unknown_tab_creates_record(self, ingest, ledger):
        """Pings from tabs never seen before are create-then-update."""
        ingest(TabEvent.interaction(77))

        assert ledger.get(77).last_active_at == 100.0

    def test_dismiss_grants_grace_and_keeps_tab_frozen(self, ingest, ledger, clock):
        ingest.handle(TabEvent.updated(1, discarded=True))
        ledger.mark_notified(1)
        clock.advance(5)

        ingest.handle(TabEvent.dismiss_request(1))

        record = ledger.get(1)
        assert record.ignore_auto_freeze_until == 135.0
        assert record.frozen_at == 100.0
        assert record.notified is True

    def test_reactivate_request_grants_short_grace(self, ingest, ledger):
        ingest.handle(TabEvent.updated(1, discarded=True))

        ingest.handle(TabEvent.reactivate_request(1))

        record = ledger.get(1)
        assert record.ignore_auto_freeze_until == 105.0
        assert record.frozen_at == 100.0
