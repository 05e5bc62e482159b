"""Host module: the tab-management port and an in-memory implementation."""

from tabkeeper.host.base import (
    OVERLAY_ACTIONS,
    OverlayRequest,
    TabHost,
    TabSnapshot,
    TransientHostError,
)
from tabkeeper.host.memory import InMemoryTabHost

__all__ = [
    "OVERLAY_ACTIONS",
    "InMemoryTabHost",
    "OverlayRequest",
    "TabHost",
    "TabSnapshot",
    "TransientHostError",
]
