"""pytest configuration and fixtures for pyqt-formpage tests."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pytest
from PyQt6.QtCore import QCoreApplication

from pyqt_formpage.core import PendingResult
from pyqt_formpage.forms import FormModel
from pyqt_formpage.page import FormPageEngine
from pyqt_formpage.protocols import (
    DialogKind,
    DialogService,
    Navigator,
    NotificationService,
    ProgressIndicator,
    RouteSnapshot,
    RpcClient,
    set_engine_config,
)


@pytest.fixture(scope="session")
def qapp():
    """Create the Qt application instance for tests."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app
    # Don't quit - may cause issues with other tests


@pytest.fixture(autouse=True)
def default_engine_config():
    set_engine_config(None)
    yield
    set_engine_config(None)


# ========== FAKE COLLABORATORS ==========

@dataclass
class RpcCall:
    service: str
    method: str
    params: Dict[str, Any]
    long_running: bool
    pending: PendingResult


class FakeRpcClient(RpcClient):
    """Records calls. Methods with a canned response settle immediately, others stay pending."""

    def __init__(self):
        self.calls: List[RpcCall] = []
        self._responses: Dict[str, Any] = {}
        self._errors: Dict[str, Exception] = {}

    def respond(self, method: str, response: Any) -> None:
        self._responses[method] = response

    def fail(self, method: str, error: Exception) -> None:
        self._errors[method] = error

    def invoke(self, service, method, params=None, long_running=False) -> PendingResult:
        pending = PendingResult()
        self.calls.append(RpcCall(service, method, params or {}, long_running, pending))
        if method in self._errors:
            pending.reject(self._errors[method])
        elif method in self._responses:
            pending.resolve(self._responses[method])
        return pending

    def methods(self) -> List[str]:
        return [c.method for c in self.calls]


class FakeNavigator(Navigator):
    def __init__(self, route: Optional[RouteSnapshot] = None):
        self.route = route or RouteSnapshot()
        self.urls: List[str] = []

    def navigate(self, url: str) -> None:
        self.urls.append(url)

    def current_route(self) -> RouteSnapshot:
        return self.route


class FakeDialogService(DialogService):
    """Answers dialogs from a per-kind queue; unanswered dialogs stay open."""

    def __init__(self):
        self.opened: List[tuple] = []
        self._answers: Dict[DialogKind, List[Any]] = {}

    def answer(self, kind: DialogKind, *results: Any) -> None:
        self._answers.setdefault(kind, []).extend(results)

    def open_modal(self, kind, config) -> PendingResult:
        pending = PendingResult()
        self.opened.append((kind, config, pending))
        answers = self._answers.get(kind)
        if answers:
            pending.resolve(answers.pop(0))
        return pending


class FakeNotifications(NotificationService):
    def __init__(self):
        self.shown: List[tuple] = []

    def notify(self, level, message, title=None) -> None:
        self.shown.append((level, message))


class FakeProgress(ProgressIndicator):
    def __init__(self):
        self.events: List[str] = []

    def start(self, message: str) -> None:
        self.events.append(f"start:{message}")

    def stop(self) -> None:
        self.events.append("stop")


@dataclass
class PageHarness:
    engine: FormPageEngine
    form: FormModel
    rpc: FakeRpcClient
    navigator: FakeNavigator
    dialogs: FakeDialogService
    notifications: FakeNotifications
    progress: FakeProgress
    extra: Dict[str, Any] = field(default_factory=dict)


@pytest.fixture
def rpc():
    return FakeRpcClient()


@pytest.fixture
def make_page(qapp, rpc):
    """Build an engine with fake collaborators; call .engine.init() in the test."""
    engines: List[FormPageEngine] = []

    def factory(config, route: Optional[RouteSnapshot] = None) -> PageHarness:
        harness = PageHarness(
            engine=None,
            form=FormModel(),
            rpc=rpc,
            navigator=FakeNavigator(route),
            dialogs=FakeDialogService(),
            notifications=FakeNotifications(),
            progress=FakeProgress(),
        )
        harness.engine = FormPageEngine(
            config,
            harness.form,
            harness.rpc,
            harness.navigator,
            harness.dialogs,
            harness.notifications,
            harness.progress,
        )
        engines.append(harness.engine)
        return harness

    yield factory
    for engine in engines:
        engine.destroy()


def editing_route(uuid: str = "abc", **query_params) -> RouteSnapshot:
    return RouteSnapshot(
        url=f"/network/interfaces/ethernet/edit/{uuid}",
        params={"uuid": uuid},
        query_params=query_params,
        config={"data": {"editing": True, "notificationTitle": "Updated {{ devicename }}."}},
    )


def creating_route(**query_params) -> RouteSnapshot:
    return RouteSnapshot(
        url="/network/interfaces/ethernet/create",
        query_params=query_params,
        config={"data": {"editing": False}},
    )
