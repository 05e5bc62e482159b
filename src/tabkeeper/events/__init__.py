"""Events module normalizing host signals into ledger mutations."""

from tabkeeper.events.ingest import EventIngest
from tabkeeper.events.types import EventKind, MalformedEvent, TabEvent

__all__ = ["EventIngest", "EventKind", "MalformedEvent", "TabEvent"]
