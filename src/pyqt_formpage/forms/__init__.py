"""
Page configuration model, sanitizer and the in-memory form value bag.
"""

from .page_config_types import (
    NEW_CONF_OBJ_UUID,
    ActionRequest,
    ButtonAction,
    ButtonActionMeta,
    ButtonConfig,
    ButtonTemplate,
    ClickAction,
    FieldConfig,
    FieldModifier,
    FilterMode,
    GetRequest,
    ModifierType,
    PageConfig,
    PostRequest,
    RequestAction,
    RequestConfig,
    ResponseFilter,
    TaskDialogAction,
    UrlAction,
    create_button_action,
)
from .field_utils import filter_submit_values, find_field, flatten_fields, format_field_configs
from .config_sanitizer import ICONS, sanitize
from .form_model import FormModel

__all__ = [
    "NEW_CONF_OBJ_UUID",
    "ActionRequest",
    "ButtonAction",
    "ButtonActionMeta",
    "ButtonConfig",
    "ButtonTemplate",
    "ClickAction",
    "FieldConfig",
    "FieldModifier",
    "FilterMode",
    "GetRequest",
    "ModifierType",
    "PageConfig",
    "PostRequest",
    "RequestAction",
    "RequestConfig",
    "ResponseFilter",
    "TaskDialogAction",
    "UrlAction",
    "create_button_action",
    "filter_submit_values",
    "find_field",
    "flatten_fields",
    "format_field_configs",
    "ICONS",
    "sanitize",
    "FormModel",
]
