"""Reusable trailing debounce timer."""

from typing import Any, Callable, Optional, Tuple
from PyQt6.QtCore import QTimer


class DebounceTimer:
    """
    Reusable trailing debounce timer.

    Restarts timer on each call. Handler fires only after delay_ms of inactivity,
    with the arguments of the most recent trigger() call, so the last update
    of a burst is never dropped.

    Usage:
        self._debounce = DebounceTimer(delay_ms=5, handler=self._update_buttons)

        def on_values_changed(self, values):
            self._debounce.trigger(values)  # Restarts timer
    """

    def __init__(self, delay_ms: int, handler: Callable[..., None]):
        self._delay_ms = delay_ms
        self._handler = handler
        self._timer: Optional[QTimer] = None
        self._args: Tuple[Any, ...] = ()

    @property
    def is_pending(self) -> bool:
        return self._timer is not None and self._timer.isActive()

    def trigger(self, *args: Any):
        """Trigger debounce: restarts timer, remembers latest arguments."""
        self._args = args
        if self._timer is None:
            self._timer = QTimer()
            self._timer.setSingleShot(True)
            self._timer.timeout.connect(self._fire)
        self._timer.start(self._delay_ms)

    def cancel(self):
        """Cancel pending trigger."""
        if self._timer is not None:
            self._timer.stop()
        self._args = ()

    def force(self):
        """Cancel timer and fire handler immediately with the latest arguments."""
        args = self._args
        if self._timer is not None:
            self._timer.stop()
        self._args = ()
        self._handler(*args)

    def _fire(self):
        args = self._args
        self._args = ()
        self._handler(*args)
