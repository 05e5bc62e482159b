"""Engine module for sweep scheduling and service wiring."""

from tabkeeper.engine.service import TabLifecycleService
from tabkeeper.engine.sweep import SweepReport, SweepScheduler, SweepState

__all__ = ["SweepReport", "SweepScheduler", "SweepState", "TabLifecycleService"]
