"""
RPC client running a blocking transport on background threads.

The transport is any callable ``transport(service, method, params)``
returning the decoded response or raising. Results are delivered back on
the thread owning the PendingResult through queued Qt signals.

Usage:
    def transport(service, method, params):
        return session.post(url, json={"service": service, "method": method,
                                       "params": params}).json()["response"]

    rpc = ThreadedRpcClient(transport)
    rpc.invoke("Network", "getEthernetIface", {"uuid": uuid}).then(on_ok, on_error)
"""

import logging
from typing import Any, Callable, Dict, Optional, Set

from PyQt6.QtCore import QThread, pyqtSignal

from pyqt_formpage.core.pending_result import PendingResult
from pyqt_formpage.core.performance_monitor import timer
from pyqt_formpage.exceptions import PageEngineError, RemoteCallError
from pyqt_formpage.protocols.collaborators import RpcClient

logger = logging.getLogger(__name__)

Transport = Callable[[str, str, Dict[str, Any]], Any]

CLEANUP_WAIT_MS = 200     # Wait time per call during shutdown


class RpcCallThread(QThread):
    """
    One blocking remote call on a worker thread.

    Usage:
        call = RpcCallThread(transport, "Network", "getEthernetIface", {"uuid": uuid})
        call.succeeded.connect(on_response)
        call.failed.connect(on_error)  # Receives the transport's exception
        call.start()

        # Later:
        call.cancel()  # Signals won't emit after this
    """

    succeeded = pyqtSignal(object)
    failed = pyqtSignal(Exception)

    def __init__(
        self,
        transport: Transport,
        service: str,
        method: str,
        params: Dict[str, Any],
        long_running: bool = False,
        parent=None,
    ):
        super().__init__(parent)
        self._transport = transport
        self.service = service
        self.method = method
        self.params = params
        self.long_running = long_running
        self.cancelled = False

    def run(self):
        try:
            with timer(f"RPC {self.service}.{self.method}", log_args=True, long_running=self.long_running):
                response = self._transport(self.service, self.method, self.params)
        except Exception as e:
            if not self.cancelled:
                self.failed.emit(e)
            return
        if not self.cancelled:
            self.succeeded.emit(response)

    def cancel(self):
        self.cancelled = True


class ThreadedRpcClient(RpcClient):
    """
    RpcClient adapter over blocking transports.

    Args:
        transport: Blocking call for regular requests
        task_transport: Blocking call for long-running requests; it returns once
            the background task completed. Defaults to transport.
    """

    def __init__(self, transport: Transport, task_transport: Optional[Transport] = None):
        self._transport = transport
        self._task_transport = task_transport or transport
        self._calls: Set[RpcCallThread] = set()

    def invoke(
        self,
        service: str,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        long_running: bool = False,
    ) -> PendingResult:
        transport = self._task_transport if long_running else self._transport
        call = RpcCallThread(transport, service, method, params or {}, long_running)
        pending = PendingResult()

        def on_error(error: Exception):
            if not isinstance(error, PageEngineError):
                logger.error(f"RPC {service}.{method} failed: {error}", exc_info=error)
                error = RemoteCallError(service, method, error)
            pending.reject(error)

        def on_finished():
            # The thread object must outlive run()
            call.wait()
            self._calls.discard(call)

        call.succeeded.connect(pending.resolve)
        call.failed.connect(on_error)
        call.finished.connect(on_finished)
        self._calls.add(call)
        logger.debug(f"RPC {service}.{method} started (long_running={long_running})")
        call.start()
        return pending

    def cleanup(self) -> None:
        """Cancel and wait for running calls. Call on application shutdown."""
        for call in list(self._calls):
            call.cancel()
            call.wait(CLEANUP_WAIT_MS)
        self._calls.clear()
