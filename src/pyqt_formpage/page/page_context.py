"""
Page-scoped mutable context.

Holds the route data every token and constraint is evaluated against, and
publishes the page load status. One instance per page, owned by the engine
and passed by reference to its components.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from pyqt_formpage.protocols.collaborators import RouteSnapshot

logger = logging.getLogger(__name__)


class PageStatus(Enum):
    INITIALIZING = "initializing"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class PageContext(QObject):
    """
    Context mapping for one page instance.

    Always contains:
        _routeParams: route path parameters
        _routeQueryParams: route query parameters
        _routeConfig: route configuration ({"data": {"editing": ...}, ...})
        _editing: True when the page edits an existing object

    ``_editing`` is fixed at construction; set() refuses to change it.

    Usage:
        context = PageContext(navigator.current_route())
        context.status_changed.connect(on_status)
        format("{{ _routeParams.uuid }}", context.as_dict())
    """

    status_changed = pyqtSignal(object)

    EDITING_KEY = "_editing"

    def __init__(self, route: Optional[RouteSnapshot] = None, parent=None):
        super().__init__(parent)
        route = route or RouteSnapshot()
        self._data: Dict[str, Any] = {
            "_routeParams": dict(route.params),
            "_routeQueryParams": dict(route.query_params),
            "_routeConfig": dict(route.config),
            self.EDITING_KEY: bool(route.data.get("editing", False)),
        }
        self._status = PageStatus.INITIALIZING

    @property
    def editing(self) -> bool:
        return self._data[self.EDITING_KEY]

    @property
    def status(self) -> PageStatus:
        return self._status

    def set(self, partial: Optional[Dict[str, Any]] = None, **kwargs: Any) -> None:
        """Shallow-merge new keys into the context."""
        updates = dict(partial or {}, **kwargs)
        if self.EDITING_KEY in updates and updates[self.EDITING_KEY] != self._data[self.EDITING_KEY]:
            raise ValueError("'_editing' is fixed at page construction")
        self._data.update(updates)
        logger.debug(f"Page context updated: {sorted(updates)}")

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        """Shallow copy used as formatting context."""
        return dict(self._data)

    def set_status(self, status: PageStatus) -> None:
        """Record and broadcast a status; every call is emitted, in order."""
        logger.debug(f"Page status: {self._status.value} -> {status.value}")
        self._status = status
        self.status_changed.emit(status)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __contains__(self, key: str) -> bool:
        return key in self._data
