"""
Form page engine.

Interprets a declarative page configuration: builds the form, loads and
saves data through the RPC boundary, keeps button enablement in sync with
the value bag and runs the button action pipeline.

Lifecycle:
    engine = FormPageEngine(config, form, rpc, navigator, dialogs, notifications, progress)
    engine.init()                    # format config, seed form, start loading
    engine.on_button_click(button)   # user clicks
    engine.destroy()                 # page teardown
"""

import logging
from typing import Any, Dict, Mapping, Optional, Union

from PyQt6.QtCore import QObject, pyqtSignal

from pyqt_formpage.core.debounce_timer import DebounceTimer
from pyqt_formpage.forms.config_sanitizer import sanitize
from pyqt_formpage.forms.field_utils import filter_submit_values, flatten_fields, format_field_configs
from pyqt_formpage.forms.page_config_types import ButtonConfig, PageConfig
from pyqt_formpage.page.button_action_pipeline import ButtonActionPipeline, ButtonClick
from pyqt_formpage.page.data_loader import DataLoader
from pyqt_formpage.page.page_context import PageContext, PageStatus
from pyqt_formpage.protocols.collaborators import (
    DialogService,
    FormValueBag,
    Navigator,
    NotificationService,
    ProgressIndicator,
    RpcClient,
)
from pyqt_formpage.protocols.engine_config import get_engine_config
from pyqt_formpage.services.constraint_service import ConstraintService
from pyqt_formpage.services.token_formatter import format_paths

logger = logging.getLogger(__name__)

# Request paths resolved once against the page context at init.
# request.get.params is resolved by the loader on each load and
# request.post.params at submit time; each template is rendered exactly once.
FORMATTED_CONFIG_PATHS = [
    "request.get.method",
    "request.post.method",
]


class FormPageEngine(QObject):
    """
    Configuration-driven form page.

    Signals:
        buttons_changed: button enablement was recomputed
        load_failed(Exception): the read request failed
        status_changed(PageStatus): forwarded from the page context
    """

    buttons_changed = pyqtSignal()
    load_failed = pyqtSignal(Exception)
    status_changed = pyqtSignal(object)

    def __init__(
        self,
        config: Union[Mapping[str, Any], PageConfig],
        form: FormValueBag,
        rpc: RpcClient,
        navigator: Navigator,
        dialogs: DialogService,
        notifications: NotificationService,
        progress: ProgressIndicator,
        parent=None,
    ):
        super().__init__(parent)
        # sanitize() builds new objects: runtime formatting never touches the caller's config
        self.config: PageConfig = sanitize(config)
        self.form = form
        self.context = PageContext(navigator.current_route(), parent=self)
        self.page_status: PageStatus = self.context.status
        self.loader = DataLoader(self.config.request, self.context, rpc, form, parent=self)
        self.pipeline = ButtonActionPipeline(self, rpc, navigator, dialogs, notifications, progress)
        self._debounce = DebounceTimer(
            delay_ms=get_engine_config().constraint_debounce_ms,
            handler=self._update_button_states,
        )
        self._watching_values = False
        self._initialized = False
        self._destroyed = False

    # ========== LIFECYCLE ==========

    def init(self) -> None:
        """Format the configuration, seed or load the form, wire button constraints."""
        if self._initialized:
            return
        self._initialized = True
        self.context.status_changed.connect(self._on_status_changed)
        self.loader.failed.connect(self.load_failed)

        context = self.context.as_dict()
        format_field_configs(self.config.fields, context)
        format_paths(self.config, FORMATTED_CONFIG_PATHS, context)

        if not self.context.editing:
            self._apply_query_params()
        self.form.setup(self.config.fields)

        if any(isinstance(b.enabled_constraint, dict) for b in self.config.buttons):
            self.form.values_changed.connect(self._on_values_changed)
            self._watching_values = True
            self._update_button_states(self.form.get_values())

        if self.context.editing:
            self.loader.start(self.config.reload_interval_ms)
        else:
            self.context.set_status(PageStatus.READY)
        logger.debug(f"Form page initialized (editing={self.context.editing})")

    def destroy(self) -> None:
        """Tear down: no timer, listener or in-flight result acts after this."""
        if self._destroyed:
            return
        self._destroyed = True
        self.loader.stop()
        self._debounce.cancel()
        self.pipeline.shutdown()
        if self._watching_values:
            self.form.values_changed.disconnect(self._on_values_changed)
            self._watching_values = False
        if self._initialized:
            self.context.status_changed.disconnect(self._on_status_changed)
            self.loader.failed.disconnect(self.load_failed)
        logger.debug("Form page destroyed")

    def reload(self):
        """Re-issue the read request (no-op while a load is in flight)."""
        return self.loader.load()

    # ========== BUTTONS ==========

    def on_button_click(self, button: ButtonConfig) -> ButtonClick:
        return self.pipeline.run(button)

    def button(self, text: str) -> Optional[ButtonConfig]:
        return next((b for b in self.config.buttons if b.text == text), None)

    def _update_button_states(self, values: Optional[Dict[str, Any]] = None) -> None:
        if self._destroyed:
            return
        if values is None:
            values = self.form.get_values()
        for button in self.config.buttons:
            if isinstance(button.enabled_constraint, dict):
                button.disabled = not ConstraintService.test(button.enabled_constraint, values)
        self.buttons_changed.emit()

    # ========== FORM ==========

    def get_form_values(self) -> Dict[str, Any]:
        """Values to submit: fields with submitValue=False are left out."""
        return filter_submit_values(self.config.fields, self.form.get_values())

    def set_form_values(self, values: Dict[str, Any], mark_pristine: bool = True) -> None:
        self.form.set_values(values, mark_pristine=mark_pristine)

    def is_dirty(self) -> bool:
        return self.form.is_dirty()

    def mark_as_dirty(self) -> None:
        self.form.mark_dirty()

    def mark_as_pristine(self) -> None:
        self.form.mark_pristine()

    # ========== INTERNALS ==========

    def _apply_query_params(self) -> None:
        """Creating mode: route query parameters override field defaults."""
        query_params = self.context["_routeQueryParams"]
        for field_config in flatten_fields(self.config.fields):
            if field_config.name is not None and field_config.name in query_params:
                field_config.value = query_params[field_config.name]

    def _on_values_changed(self, values: Dict[str, Any]) -> None:
        self._debounce.trigger(values)

    def _on_status_changed(self, status: PageStatus) -> None:
        self.page_status = status
        self.status_changed.emit(status)
