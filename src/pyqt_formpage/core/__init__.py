"""
Core PyQt6 utilities.

Pure QtCore helpers with no domain-specific logic: single-shot async
results, trailing debounce and timing.
"""

from .pending_result import PendingResult
from .debounce_timer import DebounceTimer
from .performance_monitor import timer

__all__ = [
    "PendingResult",
    "DebounceTimer",
    "timer",
]
