"""
Field modifier and required-rule evaluation.

Computes the runtime state of every named field from the current value bag:

- modifiers: constraint -> effect pairs (disabled/enabled, visible/hidden,
  checked/unchecked, value). With ``opposite`` (the default) a false
  constraint applies the opposite effect.
- validators.required / validators.requiredIf: whether the field must be
  filled in.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from pyqt_formpage.forms.page_config_types import FieldConfig, ModifierType
from pyqt_formpage.services.constraint_service import ConstraintService, is_empty

logger = logging.getLogger(__name__)


@dataclass
class FieldState:
    """Runtime state of a single field."""
    disabled: bool = False
    visible: bool = True
    required: bool = False
    checked: Optional[bool] = None


@dataclass
class ModifierResult:
    """States per field plus value assignments requested by 'value' modifiers."""
    states: Dict[str, FieldState]
    value_updates: Dict[str, Any]


class FieldModifierService:
    """
    Stateless service evaluating field modifiers against a value bag.

    Examples:
        result = FieldModifierService.evaluate(fields, {"method": "dhcp"})
        result.states["address"].disabled  # True
    """

    @staticmethod
    def initial_state(field_config: FieldConfig) -> FieldState:
        """State from the (already formatted) static config."""
        validators = field_config.validators or {}
        return FieldState(
            disabled=field_config.disabled is True,
            required=validators.get("required") is True,
        )

    @classmethod
    def evaluate(cls, fields: Iterable[FieldConfig], values: Dict[str, Any]) -> ModifierResult:
        states: Dict[str, FieldState] = {}
        value_updates: Dict[str, Any] = {}
        for field_config in fields:
            if field_config.name is None:
                continue
            state = cls.initial_state(field_config)
            required_if = (field_config.validators or {}).get("requiredIf")
            if isinstance(required_if, dict):
                state.required = state.required or ConstraintService.test(required_if, values)
            for modifier in field_config.modifiers:
                matched = ConstraintService.test(modifier.constraint, values)
                cls._apply(modifier.type, matched, modifier.opposite, modifier.type_config,
                           field_config.name, state, value_updates)
            states[field_config.name] = state
        return ModifierResult(states=states, value_updates=value_updates)

    @staticmethod
    def _apply(modifier_type: ModifierType, matched: bool, opposite: bool,
               type_config: Dict[str, Any], name: str, state: FieldState,
               value_updates: Dict[str, Any]) -> None:
        if not matched and not opposite:
            return
        if modifier_type is ModifierType.DISABLED:
            state.disabled = matched
        elif modifier_type is ModifierType.ENABLED:
            state.disabled = not matched
        elif modifier_type is ModifierType.VISIBLE:
            state.visible = matched
        elif modifier_type is ModifierType.HIDDEN:
            state.visible = not matched
        elif modifier_type is ModifierType.CHECKED:
            state.checked = matched
        elif modifier_type is ModifierType.UNCHECKED:
            state.checked = not matched
        elif modifier_type is ModifierType.VALUE:
            if matched and "value" in type_config:
                value_updates[name] = type_config["value"]

    @staticmethod
    def missing_required(states: Dict[str, FieldState], values: Dict[str, Any]) -> List[str]:
        """Names of enabled, visible, required fields without a value."""
        return [
            name for name, state in states.items()
            if state.required and not state.disabled and state.visible and is_empty(values.get(name))
        ]
