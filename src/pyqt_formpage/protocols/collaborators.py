"""
Collaborator ABC contracts for the form page engine.

The engine never talks to a widget toolkit, a transport or a dialog layer
directly. Everything outside the interpreter is reached through one of these
contracts, so pages can run against real Qt widgets, a web bridge, or the
in-memory fakes used by the test suite.

Design Philosophy:
- Explicit inheritance over duck typing
- Fail-loud over fail-silent
- Every asynchronous boundary returns a PendingResult
"""

from __future__ import annotations

from abc import ABC, ABCMeta, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from pyqt_formpage.core.pending_result import PendingResult

if TYPE_CHECKING:
    from pyqt_formpage.forms.page_config_types import FieldConfig


# Metaclass that combines ABCMeta with Qt's metaclass
_QtMetaclass = type(QObject)


class QObjectABCMeta(_QtMetaclass, ABCMeta):
    """Metaclass for QObjects that need ABC support."""
    pass


class DialogKind(Enum):
    """Kinds of modal dialogs the engine asks for."""
    CONFIRMATION = "confirmation"  # Result: True when the user confirmed
    TASK = "task"                  # Result: truthy when the task dialog closed affirmatively


class NotificationType(Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class RouteSnapshot:
    """Current route as seen by a page.

    Attributes:
        url: Current URL
        params: Path parameters (e.g. {"uuid": "..."})
        query_params: Query parameters (e.g. {"returnUrl": "/network"})
        config: Route configuration; config["data"] carries editing, title, notificationTitle
    """
    url: str = ""
    params: Dict[str, Any] = field(default_factory=dict)
    query_params: Dict[str, Any] = field(default_factory=dict)
    config: Dict[str, Any] = field(default_factory=dict)

    @property
    def data(self) -> Dict[str, Any]:
        return self.config.get("data") or {}


class RpcClient(ABC):
    """ABC for the remote procedure call boundary."""

    @abstractmethod
    def invoke(
        self,
        service: str,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        long_running: bool = False,
    ) -> PendingResult:
        """
        Issue a remote call.

        Args:
            service: RPC service name (e.g. "Network")
            method: RPC method name (e.g. "getEthernetIface")
            params: Call parameters
            long_running: Run as a background task; the result settles when the task completes

        Returns:
            PendingResult resolved with the response, rejected with the error
        """
        pass


class FormValueBag(QObject, metaclass=QObjectABCMeta):
    """
    ABC for the form collaborator holding field name -> value pairs.

    The rendering widget writes on user input, the engine writes on load
    success. Implementations emit values_changed with the full value bag on
    every change.
    """

    values_changed = pyqtSignal(object)

    @abstractmethod
    def setup(self, fields: List["FieldConfig"]) -> None:
        """Build the form from a formatted field catalog (defaults become values)."""
        pass

    @abstractmethod
    def get_values(self) -> Dict[str, Any]:
        """Return a copy of all raw values, including disabled and undeclared keys."""
        pass

    @abstractmethod
    def set_values(self, values: Dict[str, Any], mark_pristine: bool = True) -> None:
        """Patch values into the form."""
        pass

    @abstractmethod
    def is_dirty(self) -> bool:
        pass

    @abstractmethod
    def mark_dirty(self) -> None:
        pass

    @abstractmethod
    def mark_pristine(self) -> None:
        pass


class Navigator(ABC):
    """ABC for the navigation boundary."""

    @abstractmethod
    def navigate(self, url: str) -> None:
        pass

    @abstractmethod
    def current_route(self) -> RouteSnapshot:
        pass


class DialogService(ABC):
    """ABC for the dialog boundary."""

    @abstractmethod
    def open_modal(self, kind: DialogKind, config: Dict[str, Any]) -> PendingResult:
        """Open a modal dialog; the result resolves with the dialog's close value."""
        pass


class NotificationService(ABC):
    """ABC for the notification boundary."""

    @abstractmethod
    def notify(self, level: NotificationType, message: str, title: Optional[str] = None) -> None:
        pass


class ProgressIndicator(ABC):
    """ABC for the blocking progress indicator (advisory, not a lock)."""

    @abstractmethod
    def start(self, message: str) -> None:
        pass

    @abstractmethod
    def stop(self) -> None:
        pass
