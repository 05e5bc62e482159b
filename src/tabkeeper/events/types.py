"""Tagged event type for everything that can happen to a tab."""

from dataclasses import dataclass
from enum import Enum


class MalformedEvent(Exception):
    """Raised when an event or message carries an incoherent payload.

    Events for tab ids the ledger has never seen are not malformed; they are
    applied as create-then-update.
    """

    pass


class EventKind(Enum):
    """Kinds of tab events the ingest understands."""

    INTERACTION = "interaction"  # input ping from a page
    ACTIVATED = "activated"  # brought to the foreground
    UPDATED = "updated"  # load status and/or discarded flag changed
    CREATED = "created"
    REMOVED = "removed"
    REACTIVATE_REQUEST = "reactivate_request"  # "Go to Tab" on a warning
    DISMISS_REQUEST = "dismiss_request"  # "Dismiss" on a warning


@dataclass(frozen=True)
class TabEvent:
    """One observed tab event.

    Attributes:
        kind: What happened.
        tab_id: The tab it happened to.
        status: New load status for UPDATED events ("loading", "complete").
        discarded: New discarded flag for UPDATED events, None if unchanged.
    """

    kind: EventKind
    tab_id: int
    status: str | None = None
    discarded: bool | None = None

    def __post_init__(self) -> None:
        if isinstance(self.tab_id, bool) or not isinstance(self.tab_id, int) or self.tab_id < 0:
            raise MalformedEvent(f"invalid tab id: {self.tab_id!r}")
        if self.kind is not EventKind.UPDATED and (
            self.status is not None or self.discarded is not None
        ):
            raise MalformedEvent(f"{self.kind.value} events carry no status or discarded flag")

    @classmethod
    def interaction(cls, tab_id: int) -> "TabEvent":
        return cls(EventKind.INTERACTION, tab_id)

    @classmethod
    def activated(cls, tab_id: int) -> "TabEvent":
        return cls(EventKind.ACTIVATED, tab_id)

    @classmethod
    def updated(
        cls,
        tab_id: int,
        status: str | None = None,
        discarded: bool | None = None,
    ) -> "TabEvent":
        return cls(EventKind.UPDATED, tab_id, status=status, discarded=discarded)

    @classmethod
    def created(cls, tab_id: int) -> "TabEvent":
        return cls(EventKind.CREATED, tab_id)

    @classmethod
    def removed(cls, tab_id: int) -> "TabEvent":
        return cls(EventKind.REMOVED, tab_id)

    @classmethod
    def reactivate_request(cls, tab_id: int) -> "TabEvent":
        return cls(EventKind.REACTIVATE_REQUEST, tab_id)

    @classmethod
    def dismiss_request(cls, tab_id: int) -> "TabEvent":
        return cls(EventKind.DISMISS_REQUEST, tab_id)
