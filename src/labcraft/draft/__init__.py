"""Debounced draft autosave."""

from labcraft.draft.autosave import DraftAutosave, DraftState
from labcraft.draft.scheduler import Scheduler, ThreadingScheduler, TimerHandle

__all__ = ["DraftAutosave", "DraftState", "Scheduler", "ThreadingScheduler", "TimerHandle"]
