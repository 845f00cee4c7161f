"""
Page configuration sanitizer.

Turns a raw page definition into a fully defaulted PageConfig:

- page defaults (autoReload, buttonAlign, buttons, hints)
- conf-object identifier fields (type "confObjUuid")
- per-template button defaults (labels, submit role)
- the submit-role button relocated to the end
- symbolic icon names mapped to their canonical identifiers

sanitize() is idempotent and also accepts an already sanitized PageConfig.
"""

import copy
import logging
from typing import Any, Dict, List, Mapping, Union

from pyqt_formpage.exceptions import ConfigurationError
from pyqt_formpage.forms.field_utils import flatten_fields
from pyqt_formpage.forms.page_config_types import (
    NEW_CONF_OBJ_UUID,
    ButtonConfig,
    ButtonTemplate,
    FieldConfig,
    PageConfig,
    RequestConfig,
)
from pyqt_formpage.protocols.engine_config import get_engine_config

logger = logging.getLogger(__name__)

# Symbolic icon names -> canonical identifiers. Unknown names pass through.
ICONS: Dict[str, str] = {
    "add": "mdi:plus-circle-outline",
    "apply": "mdi:check",
    "cancel": "mdi:close",
    "copy": "mdi:content-copy",
    "delete": "mdi:delete",
    "details": "mdi:text-box-search-outline",
    "edit": "mdi:pencil",
    "ethernet": "mdi:ethernet",
    "info": "mdi:information",
    "network": "mdi:lan",
    "refresh": "mdi:refresh",
    "reset": "mdi:undo-variant",
    "save": "mdi:content-save",
    "search": "mdi:magnify",
    "settings": "mdi:cog",
    "share": "mdi:share-variant",
    "start": "mdi:play",
    "stop": "mdi:stop",
    "warning": "mdi:alert",
    "wifi": "mdi:wifi",
}

CONF_OBJ_UUID_TYPE = "confObjUuid"

_HINT_DEFAULTS = {"type": "info", "dismissible": False}


def sanitize(config: Union[Mapping[str, Any], PageConfig]) -> PageConfig:
    """Apply defaults and normalize a page configuration."""
    if isinstance(config, PageConfig):
        raw = config.to_dict()
    elif isinstance(config, Mapping):
        raw = dict(config)
    else:
        raise ConfigurationError(f"Page config must be a mapping, got {type(config).__name__}")

    engine_config = get_engine_config()
    page = PageConfig(
        fields=[FieldConfig.from_dict(f) for f in raw.get("fields") or []],
        buttons=[ButtonConfig.from_dict(b) for b in raw.get("buttons") or []],
        request=RequestConfig.from_dict(raw["request"]) if raw.get("request") is not None else None,
        auto_reload=_sanitize_auto_reload(raw.get("autoReload", False)),
        icon=raw.get("icon"),
        button_align=raw.get("buttonAlign") or engine_config.default_button_align,
        hints=[_sanitize_hint(h) for h in raw.get("hints") or []],
        title=raw.get("title"),
        subtitle=raw.get("subtitle"),
    )

    _setup_conf_obj_uuid_fields(page.fields)
    _sanitize_buttons(page.buttons, engine_config.button_texts)
    page.buttons = _relocate_submit_button(page.buttons)
    if page.icon is not None:
        page.icon = ICONS.get(page.icon, page.icon)

    logger.debug(
        f"Sanitized page config: {len(flatten_fields(page.fields))} fields, "
        f"{len(page.buttons)} buttons, auto_reload={page.auto_reload}"
    )
    return page


def _sanitize_auto_reload(value: Any) -> Union[bool, int]:
    if isinstance(value, bool) or value is None:
        return bool(value)
    if isinstance(value, (int, float)):
        return int(value) if int(value) > 0 else False
    raise ConfigurationError(f"autoReload must be false or a positive interval, got {value!r}")


def _sanitize_hint(hint: Any) -> Dict[str, Any]:
    if isinstance(hint, str):
        hint = {"text": hint}
    if not isinstance(hint, dict):
        raise ConfigurationError(f"Hint must be a mapping or string, got {type(hint).__name__}")
    result = copy.deepcopy(_HINT_DEFAULTS)
    result.update(copy.deepcopy(hint))
    return result


def _setup_conf_obj_uuid_fields(fields: List[FieldConfig]) -> None:
    """Give configuration-object identifier fields their defaults."""
    for field_config in flatten_fields(fields):
        if field_config.type != CONF_OBJ_UUID_TYPE:
            continue
        if field_config.name is None:
            field_config.name = "uuid"
        if field_config.value is None:
            field_config.value = NEW_CONF_OBJ_UUID
        field_config.extra.setdefault("hidden", True)


def _sanitize_buttons(buttons: List[ButtonConfig], button_texts: Dict[str, str]) -> None:
    for button in buttons:
        if button.template is ButtonTemplate.SUBMIT:
            button.submit = True
        if button.text is None and button.template.value in button_texts:
            button.text = button_texts[button.template.value]


def _relocate_submit_button(buttons: List[ButtonConfig]) -> List[ButtonConfig]:
    """Move the single submit-role button to the end, keeping the others' order."""
    submit_buttons = [b for b in buttons if b.is_submit]
    if len(submit_buttons) > 1:
        raise ConfigurationError(
            f"Only one submit button allowed per page, found {len(submit_buttons)}"
        )
    return [b for b in buttons if not b.is_submit] + submit_buttons
