"""Single-shot asynchronous result delivered through Qt signals."""

import logging
from typing import Any, Callable, Optional

from PyQt6.QtCore import QObject, pyqtSignal

logger = logging.getLogger(__name__)


class PendingResult(QObject):
    """
    Result of an asynchronous operation (remote call, dialog close).

    Settles exactly once, either resolved with a value or rejected with an
    exception. Later resolve/reject calls are ignored.

    Usage:
        pending = rpc.invoke("Network", "getEthernetIface", {"uuid": uuid})
        pending.then(self._on_loaded, self._on_error)

        # Teardown: results arriving later are not acted upon
        pending.discard()

    Callbacks registered after settlement run immediately.
    """

    resolved = pyqtSignal(object)
    rejected = pyqtSignal(Exception)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._settled = False
        self._discarded = False
        self._value: Any = None
        self._error: Optional[Exception] = None

    @classmethod
    def of(cls, value: Any = None) -> "PendingResult":
        """Create an already resolved result."""
        pending = cls()
        pending.resolve(value)
        return pending

    @classmethod
    def failed(cls, error: Exception) -> "PendingResult":
        """Create an already rejected result."""
        pending = cls()
        pending.reject(error)
        return pending

    @property
    def is_settled(self) -> bool:
        return self._settled

    @property
    def is_discarded(self) -> bool:
        return self._discarded

    @property
    def value(self) -> Any:
        return self._value

    @property
    def error(self) -> Optional[Exception]:
        return self._error

    def resolve(self, value: Any = None) -> None:
        if self._settled or self._discarded:
            return
        self._settled = True
        self._value = value
        self.resolved.emit(value)

    def reject(self, error: Exception) -> None:
        if self._settled or self._discarded:
            return
        self._settled = True
        self._error = error
        self.rejected.emit(error)

    def discard(self) -> None:
        """Drop the result: pending callbacks never fire."""
        if self._discarded:
            return
        self._discarded = True
        if not self._settled:
            for signal in (self.resolved, self.rejected):
                try:
                    signal.disconnect()
                except TypeError:
                    pass  # nothing connected

    def then(
        self,
        on_success: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> "PendingResult":
        """Register callbacks; returns self."""
        if self._discarded:
            return self
        if self._settled:
            if self._error is None:
                if on_success:
                    on_success(self._value)
            elif on_error:
                on_error(self._error)
            return self
        if on_success:
            self.resolved.connect(on_success)
        if on_error:
            self.rejected.connect(on_error)
        return self
