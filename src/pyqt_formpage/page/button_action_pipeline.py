"""
Button action pipeline.

One ButtonClick state machine per click:

    IDLE -> [CONFIRM_PENDING] -> [SUBMIT_REQUEST] -> EXECUTING -> DONE | FAILED

Stages, strictly in order:
1. Snapshot the submit-eligible values.
2. Button confirmation dialog (declined: back to IDLE, no side effects).
3. Submit-role button: write request (own confirmation, progress indicator,
   pristine marking, success notification) or, without a write request,
   just mark the form pristine.
4. The declared action (click, url, request, taskDialog).

A failing stage short-circuits everything after it.
"""

from __future__ import annotations

import copy
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, Optional, Set, Type

from PyQt6.QtCore import QObject, pyqtSignal

from pyqt_formpage.core.pending_result import PendingResult
from pyqt_formpage.forms.page_config_types import (
    ButtonActionMeta,
    ButtonConfig,
    ClickAction,
    PostRequest,
    RequestAction,
    TaskDialogAction,
    UrlAction,
)
from pyqt_formpage.protocols.collaborators import (
    DialogKind,
    DialogService,
    Navigator,
    NotificationService,
    NotificationType,
    ProgressIndicator,
    RpcClient,
)
from pyqt_formpage.protocols.engine_config import get_engine_config
from pyqt_formpage.services.handler_dispatch_abc import HandlerDispatchABC
from pyqt_formpage.services.rpc_response import invoke_rpc
from pyqt_formpage.services.token_formatter import format, format_deep, get_path, is_formatable, set_path

if TYPE_CHECKING:
    from pyqt_formpage.page.form_page_engine import FormPageEngine

logger = logging.getLogger(__name__)

RETURN_URL_PARAM = "returnUrl"


class ClickState(Enum):
    IDLE = "idle"
    CONFIRM_PENDING = "confirm_pending"
    SUBMIT_REQUEST = "submit_request"
    EXECUTING = "executing"
    DONE = "done"
    FAILED = "failed"


class ButtonClick(QObject):
    """
    State of one button click.

    Attributes:
        button: The clicked button
        values: Value snapshot taken at click time (authoritative for the click)
        payload: Write payload, once computed
        response: Response of the write request or request action
        error: Failure, when state is FAILED
    """

    state_changed = pyqtSignal(object)
    finished = pyqtSignal(object)

    def __init__(self, button: ButtonConfig, values: Dict[str, Any], parent=None):
        super().__init__(parent)
        self.button = button
        self.values = values
        self.payload: Optional[Dict[str, Any]] = None
        self.response: Any = None
        self.error: Optional[Exception] = None
        self.state = ClickState.IDLE
        self._closed = False

    @property
    def is_finished(self) -> bool:
        return self._closed

    def advance(self, state: ClickState) -> None:
        logger.debug(f"Button '{self.button.text}': {self.state.value} -> {state.value}")
        self.state = state
        self.state_changed.emit(state)

    def close(self, state: ClickState, error: Optional[Exception] = None) -> None:
        """Enter a terminal state (DONE, FAILED, or IDLE after a declined confirmation)."""
        self.error = error
        self._closed = True
        self.advance(state)
        self.finished.emit(state)


class ButtonActionService(HandlerDispatchABC):
    """Executes declared button actions; one handler per ButtonAction kind."""

    def __init__(self, pipeline: "ButtonActionPipeline"):
        self._pipeline = pipeline
        super().__init__()

    def _get_handler_prefix(self) -> str:
        return '_execute_'

    def _get_union_types(self) -> Iterable[Type]:
        return ButtonActionMeta.get_registry().values()

    def _execute_ClickAction(self, action: ClickAction, click: ButtonClick) -> None:
        if callable(action.click):
            action.click(click.button, click.values)
        self._pipeline.complete(click)

    def _execute_UrlAction(self, action: UrlAction, click: ButtonClick) -> None:
        p = self._pipeline
        # A returnUrl on the current route overrides the configured URL
        return_url = p.navigator.current_route().query_params.get(RETURN_URL_PARAM)
        if isinstance(return_url, str):
            p.navigator.navigate(return_url)
        elif isinstance(action.url, str):
            p.navigator.navigate(format(action.url, p.format_context(click)))
        p.complete(click)

    def _execute_RequestAction(self, action: RequestAction, click: ButtonClick) -> None:
        p = self._pipeline
        request = action.request
        params = format_deep(request.params, p.format_context(click))
        if isinstance(request.progress_message, str):
            p.progress.start(request.progress_message)

        def on_success(response: Any):
            if isinstance(request.progress_message, str):
                p.progress.stop()
            click.response = response
            context = p.format_context(click, response)
            if isinstance(request.success_notification, str):
                p.notifications.notify(NotificationType.SUCCESS, format(request.success_notification, context))
            if isinstance(request.success_url, str):
                p.navigator.navigate(format(request.success_url, context))
            p.complete(click)

        def on_error(error: Exception):
            if isinstance(request.progress_message, str):
                p.progress.stop()
            p.fail(click, error)

        p.track(invoke_rpc(p.rpc, request.service, request.method, params, long_running=request.task)).then(
            on_success, on_error
        )

    def _execute_TaskDialogAction(self, action: TaskDialogAction, click: ButtonClick) -> None:
        p = self._pipeline
        context = p.format_context(click)
        config = copy.deepcopy(action.config)
        params = get_path(config, "request.params")
        if is_formatable(params):
            set_path(config, "request.params", format_deep(params, context))
        config.setdefault("width", get_engine_config().task_dialog_width)

        def on_closed(result: Any):
            if result and isinstance(action.success_url, str):
                p.navigator.navigate(format(action.success_url, context))
            p.complete(click)

        p.track(p.dialogs.open_modal(DialogKind.TASK, config)).then(
            on_closed, lambda error: p.fail(click, error)
        )


class ButtonActionPipeline:
    """
    Drives button clicks for one page.

    Usage:
        pipeline = ButtonActionPipeline(engine, rpc, navigator, dialogs, notifications, progress)
        click = pipeline.run(button)
        click.finished.connect(on_done)
    """

    def __init__(
        self,
        engine: "FormPageEngine",
        rpc: RpcClient,
        navigator: Navigator,
        dialogs: DialogService,
        notifications: NotificationService,
        progress: ProgressIndicator,
    ):
        self.engine = engine
        self.rpc = rpc
        self.navigator = navigator
        self.dialogs = dialogs
        self.notifications = notifications
        self.progress = progress
        self._actions = ButtonActionService(self)
        self._pending: Set[PendingResult] = set()
        self._closed = False

    # ========== ENTRY ==========

    def run(self, button: ButtonConfig) -> ButtonClick:
        click = ButtonClick(button, self.engine.get_form_values())
        logger.debug(f"Button '{button.text}' clicked ({button.template.value})")
        self._confirm(
            click,
            button.confirmation_dialog_config,
            click.values,
            lambda: self._after_confirmation(click),
        )
        return click

    def shutdown(self) -> None:
        """Ignore results of in-flight dialogs and requests (page teardown)."""
        self._closed = True
        for pending in self._pending:
            pending.discard()
        self._pending.clear()

    # ========== STAGES ==========

    def _after_confirmation(self, click: ButtonClick) -> None:
        if not click.button.is_submit:
            self._execute_action(click)
            return
        post = self._write_request()
        if post is None:
            self.engine.mark_as_pristine()
            self._execute_action(click)
            return
        click.payload = self.build_write_payload(post, click.values)
        self._confirm(
            click,
            post.confirmation_dialog_config,
            self.format_context(click),
            lambda: self._send_write_request(click, post),
        )

    def _send_write_request(self, click: ButtonClick, post: PostRequest) -> None:
        click.advance(ClickState.SUBMIT_REQUEST)
        service = self.engine.config.request.service
        self.progress.start(post.progress_message if isinstance(post.progress_message, str)
                            else get_engine_config().default_progress_message)

        def on_success(response: Any):
            self.progress.stop()
            click.response = response
            # Submitted and stored: the form is pristine again
            self.engine.mark_as_pristine()
            route_data = self.engine.context["_routeConfig"].get("data") or {}
            notification_title = route_data.get("notificationTitle")
            if notification_title:
                self.notifications.notify(
                    NotificationType.SUCCESS,
                    format(notification_title, self.format_context(click, response)),
                )
            self._execute_action(click)

        def on_error(error: Exception):
            self.progress.stop()
            self.fail(click, error)

        logger.debug(f"Submitting {service}.{post.method} payload={click.payload}")
        self.track(invoke_rpc(self.rpc, service, post.method, click.payload, long_running=post.task)).then(
            on_success, on_error
        )

    def _execute_action(self, click: ButtonClick) -> None:
        click.advance(ClickState.EXECUTING)
        action = click.button.execute
        if action is None:
            self.complete(click)
            return
        try:
            self._actions.dispatch(action, click)
        except Exception as e:
            logger.exception(f"Button action {type(action).__name__} failed")
            self.fail(click, e)

    def _confirm(
        self,
        click: ButtonClick,
        dialog_config: Optional[Dict[str, Any]],
        message_context: Dict[str, Any],
        proceed: Callable[[], None],
    ) -> None:
        """Gate proceed() behind a confirmation dialog when one is configured."""
        if not isinstance(dialog_config, dict):
            proceed()
            return
        data = copy.deepcopy(dialog_config)
        if isinstance(data.get("message"), str):
            data["message"] = format(data["message"], message_context)
        click.advance(ClickState.CONFIRM_PENDING)

        def on_closed(result: Any):
            if result is True:
                proceed()
            else:
                logger.debug(f"Button '{click.button.text}': confirmation declined")
                click.close(ClickState.IDLE)

        self.track(self.dialogs.open_modal(DialogKind.CONFIRMATION, data)).then(
            on_closed, lambda error: self.fail(click, error)
        )

    # ========== HELPERS ==========

    def _write_request(self) -> Optional[PostRequest]:
        request = self.engine.config.request
        if request is None:
            return None
        return request.post

    def build_write_payload(self, post: PostRequest, values: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge formatted write params onto the value snapshot.

        With intersect_params only keys present both in the configured params
        and in the values are kept.
        """
        if not isinstance(post.params, dict):
            return dict(values)
        context = {**self.engine.context.as_dict(), **values}
        params = format_deep(post.params, context)
        payload = {**values, **params}
        if post.intersect_params:
            keys = [k for k in post.params if k in values]
            payload = {k: payload[k] for k in keys}
        return payload

    def format_context(self, click: ButtonClick, response: Any = None) -> Dict[str, Any]:
        """Formatting context: values overlaid by the page context (plus _response)."""
        context = {**click.values, **self.engine.context.as_dict()}
        if response is not None:
            context["_response"] = response
        return context

    def track(self, pending: PendingResult) -> PendingResult:
        if self._closed:
            pending.discard()
            return pending
        self._pending.add(pending)
        pending.then(lambda _: self._pending.discard(pending), lambda _: self._pending.discard(pending))
        return pending

    def complete(self, click: ButtonClick) -> None:
        click.close(ClickState.DONE)

    def fail(self, click: ButtonClick, error: Exception) -> None:
        logger.error(f"Button '{click.button.text}' failed: {error}")
        self.notifications.notify(NotificationType.ERROR, str(error))
        click.close(ClickState.FAILED, error)
