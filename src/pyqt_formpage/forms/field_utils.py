"""Helpers over the field tree: flattening, token formatting, submit filtering."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from pyqt_formpage.forms.page_config_types import FieldConfig
from pyqt_formpage.services.token_formatter import format_paths, to_boolean

logger = logging.getLogger(__name__)

# Field paths holding booleans that may be given as token strings
BOOLEAN_FIELD_PATHS = ["disabled", "validators.required"]
# Field paths formatted as plain values
VALUE_FIELD_PATHS = ["value"]


def flatten_fields(fields: Iterable[FieldConfig]) -> List[FieldConfig]:
    """Depth-first list of all fields, container groups included."""
    result: List[FieldConfig] = []
    for field_config in fields:
        result.append(field_config)
        if field_config.fields:
            result.extend(flatten_fields(field_config.fields))
    return result


def find_field(fields: Iterable[FieldConfig], name: str) -> Optional[FieldConfig]:
    return next((f for f in flatten_fields(fields) if f.name == name), None)


def format_field_configs(fields: Iterable[FieldConfig], context: Dict[str, Any]) -> None:
    """Resolve tokenized field properties against the page context, in place."""
    for field_config in flatten_fields(fields):
        format_paths(field_config, BOOLEAN_FIELD_PATHS, context, post=to_boolean)
        format_paths(field_config, VALUE_FIELD_PATHS, context)


def filter_submit_values(fields: Iterable[FieldConfig], values: Dict[str, Any]) -> Dict[str, Any]:
    """
    Drop values of fields declaring submitValue=False.

    Keys without a field config pass through. Disabled fields are kept:
    only submitValue decides what is submitted.
    """
    by_name = {f.name: f for f in flatten_fields(fields) if f.name is not None}
    result = {}
    for key, value in values.items():
        field_config = by_name.get(key)
        if field_config is not None and not field_config.submit_value:
            continue
        result[key] = value
    return result
