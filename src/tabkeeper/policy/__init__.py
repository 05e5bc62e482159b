"""Policy module with pure freeze/warn/close decisions."""

from tabkeeper.policy.rules import (
    DEFAULT_WARN_LEAD_SECONDS,
    Thresholds,
    derive_state,
    is_close_candidate,
    is_close_eligible,
    is_freeze_eligible,
    is_restricted_url,
    is_warn_eligible,
)

__all__ = [
    "DEFAULT_WARN_LEAD_SECONDS",
    "Thresholds",
    "derive_state",
    "is_close_candidate",
    "is_close_eligible",
    "is_freeze_eligible",
    "is_restricted_url",
    "is_warn_eligible",
]
