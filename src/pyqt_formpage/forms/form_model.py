"""
In-memory form value bag.

Reference implementation of the FormValueBag contract. Holds the values,
the dirty flag and the runtime field states (modifiers, required rules).
A rendering layer binds widgets to it: widgets call set_value() on user
input and listen to values_changed / field_states_changed.
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from PyQt6.QtCore import pyqtSignal

from pyqt_formpage.forms.field_utils import flatten_fields
from pyqt_formpage.forms.page_config_types import FieldConfig
from pyqt_formpage.protocols.collaborators import FormValueBag
from pyqt_formpage.services.field_modifier_service import FieldModifierService, FieldState

logger = logging.getLogger(__name__)


class FormModel(FormValueBag):
    """
    Value bag with dirty tracking and field modifiers.

    Examples:
        form = FormModel()
        form.setup(page_config.fields)
        form.set_value("method", "dhcp")     # user edit: dirty, modifiers re-run
        form.field_state("address").disabled  # True
    """

    field_states_changed = pyqtSignal(object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._fields: List[FieldConfig] = []
        self._values: Dict[str, Any] = {}
        self._states: Dict[str, FieldState] = {}
        self._dirty = False
        self._updating = False

    # ========== FormValueBag ==========

    def setup(self, fields: List[FieldConfig]) -> None:
        self._fields = [f for f in flatten_fields(fields) if f.name is not None]
        self._values = {f.name: copy.deepcopy(f.value) for f in self._fields}
        self._dirty = False
        logger.debug(f"Form set up with fields {[f.name for f in self._fields]}")
        self._on_changed()

    def get_values(self) -> Dict[str, Any]:
        return copy.deepcopy(self._values)

    def set_values(self, values: Dict[str, Any], mark_pristine: bool = True) -> None:
        self._values.update(copy.deepcopy(values))
        if mark_pristine:
            self._dirty = False
        self._on_changed()

    def is_dirty(self) -> bool:
        return self._dirty

    def mark_dirty(self) -> None:
        self._dirty = True

    def mark_pristine(self) -> None:
        self._dirty = False

    # ========== User input ==========

    def set_value(self, name: str, value: Any) -> None:
        """Single-field edit coming from the rendering widget."""
        self._values[name] = copy.deepcopy(value)
        self._dirty = True
        self._on_changed()

    def get_value(self, name: str, default: Any = None) -> Any:
        return copy.deepcopy(self._values.get(name, default))

    # ========== Field state ==========

    def field_state(self, name: str) -> FieldState:
        return self._states.get(name, FieldState())

    def field_states(self) -> Dict[str, FieldState]:
        return dict(self._states)

    def missing_required(self) -> List[str]:
        return FieldModifierService.missing_required(self._states, self._values)

    def is_valid(self) -> bool:
        return not self.missing_required()

    def _on_changed(self) -> None:
        # Reentrancy guard: 'value' modifiers write back into the bag
        if self._updating:
            return
        self._updating = True
        try:
            result = FieldModifierService.evaluate(self._fields, self._values)
            changed = {k: v for k, v in result.value_updates.items() if self._values.get(k) != v}
            if changed:
                self._values.update(changed)
                result = FieldModifierService.evaluate(self._fields, self._values)
            self._states = result.states
        finally:
            self._updating = False
        self.field_states_changed.emit(dict(self._states))
        self.values_changed.emit(self.get_values())
