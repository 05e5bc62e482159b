"""Freeze and close eligibility rules.

Pure functions over a host TabSnapshot, a ledger TabRecord, the current time
and thresholds in seconds. Nothing here calls the host, so every rule can be
tested with plain values.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from tabkeeper.config.settings import DEFAULT_RESTRICTED_PREFIXES
from tabkeeper.host.base import TabSnapshot
from tabkeeper.ledger import TabRecord, TabState

DEFAULT_WARN_LEAD_SECONDS = 5.0
LOADED_STATUS = "complete"


@dataclass(frozen=True)
class Thresholds:
    """Thresholds for one sweep, in seconds."""

    freeze_after: float
    close_after: float
    warn_lead: float = DEFAULT_WARN_LEAD_SECONDS


def is_restricted_url(
    url: str | None,
    prefixes: Sequence[str] = DEFAULT_RESTRICTED_PREFIXES,
    self_id: str | None = None,
) -> bool:
    """Check whether a page must never be frozen or closed.

    Missing URLs, host-internal pages and our own pages are restricted.

    Args:
        url: The tab URL.
        prefixes: URL prefixes of host-internal pages.
        self_id: Our own id; any URL containing it is one of our pages.

    Returns:
        True if the page is off limits.
    """
    if not url:
        return True
    if any(url.startswith(prefix) for prefix in prefixes):
        return True
    return bool(self_id) and self_id in url


def is_freeze_eligible(
    tab: TabSnapshot,
    record: TabRecord | None,
    now: float,
    freeze_threshold: float,
    prefixes: Sequence[str] = DEFAULT_RESTRICTED_PREFIXES,
    self_id: str | None = None,
) -> bool:
    """Decide whether a tab should be discarded now.

    A tab qualifies when it sits in the background, unpinned, loaded,
    silent and not yet discarded, is not outside our reach, has been
    observed, is not in a grace window and has been idle at least
    `freeze_threshold` seconds.
    """
    if tab.active or tab.pinned or tab.discarded or tab.audible:
        return False
    if tab.status != LOADED_STATUS:
        return False
    if is_restricted_url(tab.url, prefixes, self_id):
        return False
    if record is None or record.in_grace(now):
        return False
    return record.idle_seconds(now) >= freeze_threshold


def is_close_candidate(
    tab: TabSnapshot,
    prefixes: Sequence[str] = DEFAULT_RESTRICTED_PREFIXES,
    self_id: str | None = None,
) -> bool:
    """Host-side gate for the close pass: background, discarded, reachable."""
    return tab.discarded and not tab.active and not is_restricted_url(tab.url, prefixes, self_id)


def is_warn_eligible(
    record: TabRecord | None,
    now: float,
    close_threshold: float,
    warn_lead: float = DEFAULT_WARN_LEAD_SECONDS,
) -> bool:
    """Decide whether a frozen tab is due its one closing-soon warning."""
    if record is None or record.frozen_at is None:
        return False
    if record.in_grace(now) or record.notified:
        return False
    return record.frozen_seconds(now) >= close_threshold - warn_lead


def is_close_eligible(record: TabRecord | None, now: float, close_threshold: float) -> bool:
    """Decide whether a frozen tab has been frozen long enough to close."""
    if record is None or record.frozen_at is None:
        return False
    if record.in_grace(now):
        return False
    return record.frozen_seconds(now) >= close_threshold


def derive_state(record: TabRecord | None, now: float) -> TabState | None:
    """Lifecycle state of a tab, None when it has no record (closed)."""
    if record is None:
        return None
    return record.state(now)
