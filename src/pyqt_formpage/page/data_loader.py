"""
Data loader for editing pages.

Issues the configured read request, post-processes the response and feeds
it into the form. With auto-reload the request is re-issued on an interval
with exhaust semantics: a tick arriving while a load is in flight is
dropped, so at most one load is in flight at any time.
"""

import logging
from typing import Any, Dict, Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from pyqt_formpage.core.pending_result import PendingResult
from pyqt_formpage.exceptions import RemoteCallError
from pyqt_formpage.forms.page_config_types import RequestConfig
from pyqt_formpage.page.page_context import PageContext, PageStatus
from pyqt_formpage.protocols.collaborators import FormValueBag, RpcClient
from pyqt_formpage.services.rpc_response import filter_response, invoke_rpc, transform_response
from pyqt_formpage.services.token_formatter import format, format_deep, to_boolean

logger = logging.getLogger(__name__)


class DataLoader(QObject):
    """
    Loads the page's object into the form.

    Usage:
        loader = DataLoader(config.request, context, rpc, form)
        loader.failed.connect(on_load_error)
        loader.start(config.reload_interval_ms)
        ...
        loader.stop()  # page teardown
    """

    loaded = pyqtSignal(object)
    failed = pyqtSignal(Exception)

    def __init__(
        self,
        request: Optional[RequestConfig],
        context: PageContext,
        rpc: RpcClient,
        form: FormValueBag,
        parent=None,
    ):
        super().__init__(parent)
        self._request = request
        self._context = context
        self._rpc = rpc
        self._form = form
        self._timer: Optional[QTimer] = None
        self._in_flight: Optional[PendingResult] = None
        self._call: Optional[PendingResult] = None
        self._stopped = False

    @property
    def is_loading(self) -> bool:
        return self._in_flight is not None

    @property
    def is_configured(self) -> bool:
        return self._request is not None and self._request.get is not None

    def start(self, interval_ms: int = 0) -> None:
        """Load now; when interval_ms > 0 keep reloading on that interval."""
        self._stopped = False
        self._stop_timer()
        self.load()
        if interval_ms > 0:
            self._timer = QTimer(self)
            self._timer.timeout.connect(self._on_reload_tick)
            self._timer.start(interval_ms)
            logger.debug(f"Auto-reload every {interval_ms}ms")

    def stop(self) -> None:
        """Stop reloading and ignore the result of an in-flight load."""
        self._stopped = True
        self._stop_timer()
        if self._call is not None:
            self._call.discard()
            self._call = None
        if self._in_flight is not None:
            self._in_flight.discard()
            self._in_flight = None

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer.deleteLater()
            self._timer = None

    def load(self) -> PendingResult:
        """
        Issue the read request.

        Returns a PendingResult resolved with the values pushed into the form,
        or with None when nothing was loaded (no read request, onlyIf false).
        While a load is in flight the in-flight result is returned and no
        second call is made.
        """
        if self._in_flight is not None:
            logger.debug("Load already in flight, not issuing another")
            return self._in_flight

        if not self.is_configured:
            self._context.set_status(PageStatus.READY)
            return PendingResult.of(None)

        get = self._request.get
        context = self._context.as_dict()
        if isinstance(get.only_if, str) and not to_boolean(format(get.only_if, context)):
            logger.debug(f"Skipping load, onlyIf {get.only_if!r} is false")
            self._context.set_status(PageStatus.READY)
            return PendingResult.of(None)

        params = format_deep(get.params, context)
        result = PendingResult(self)
        self._in_flight = result
        self._context.set_status(PageStatus.LOADING)
        logger.debug(f"Loading {self._request.service}.{get.method} params={params}")
        self._call = invoke_rpc(self._rpc, self._request.service, get.method, params, long_running=get.task)
        self._call.then(self._on_response, self._on_error)
        return result

    def _on_reload_tick(self) -> None:
        if self._in_flight is not None:
            logger.debug("Reload tick dropped, load in flight")
            return
        self.load()

    def _on_response(self, response: Any) -> None:
        result = self._finish()
        if result is None:
            return
        if not isinstance(response, dict):
            self._on_failure(result, RemoteCallError(
                self._request.service, self._request.get.method,
                TypeError(f"expected an object response, got {type(response).__name__}"),
            ))
            return
        values = self._process_response(response)
        self._form.set_values(values, mark_pristine=True)
        self._context.set_status(PageStatus.READY)
        self.loaded.emit(values)
        result.resolve(values)

    def _on_error(self, error: Exception) -> None:
        result = self._finish()
        if result is None:
            return
        self._on_failure(result, error)

    def _on_failure(self, result: PendingResult, error: Exception) -> None:
        logger.error(f"Loading {self._request.service}.{self._request.get.method} failed: {error}")
        self._context.set_status(PageStatus.ERROR)
        self.failed.emit(error)
        result.reject(error)

    def _finish(self) -> Optional[PendingResult]:
        result, self._in_flight, self._call = self._in_flight, None, None
        if self._stopped or result is None:
            return None
        return result

    def _process_response(self, response: Dict[str, Any]) -> Dict[str, Any]:
        get = self._request.get
        if get.transform:
            response = transform_response(response, get.transform)
        if get.filter is not None:
            response = filter_response(response, get.filter.props, get.filter.mode)
        return response
