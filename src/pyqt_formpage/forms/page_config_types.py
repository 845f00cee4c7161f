"""
Typed page configuration model.

Raw page configurations are plain dicts with camelCase keys. This module
holds the dataclasses they are converted into, and the closed discriminated
union of button actions.

Button actions (React-style discriminated union):
    Instead of switching on a loose ``execute.type`` string everywhere, each
    action kind is its own dataclass registered by ButtonActionMeta under its
    raw tag. create_button_action() selects the class, and services dispatch
    on the class name (see HandlerDispatchABC), which checks at construction
    that every registered kind has a handler.

Every dataclass has to_dict() producing the raw key layout again, so a
sanitized PageConfig can be fed back into sanitize().
"""

import copy
import logging
from abc import ABCMeta
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Type, Union

from pyqt_formpage.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Identifier marking a configuration object that does not exist yet
NEW_CONF_OBJ_UUID = "fa4b1c66-ef79-11e5-87a0-0002b3a176b4"


def _pop_known(raw: Dict[str, Any], known: List[str]) -> Dict[str, Any]:
    """Return the keys of raw that are not in known (page-specific passthrough)."""
    return {k: copy.deepcopy(v) for k, v in raw.items() if k not in known}


def _require_dict(value: Any, what: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigurationError(f"{what} must be a mapping, got {type(value).__name__}")
    return value


# ========== FIELDS ==========

class ModifierType(Enum):
    DISABLED = "disabled"
    ENABLED = "enabled"
    VISIBLE = "visible"
    HIDDEN = "hidden"
    CHECKED = "checked"
    UNCHECKED = "unchecked"
    VALUE = "value"


@dataclass
class FieldModifier:
    """Runtime constraint -> effect pair attached to a field."""
    type: ModifierType
    constraint: Dict[str, Any]
    opposite: bool = True   # Apply the opposite effect while the constraint is false
    type_config: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "FieldModifier":
        _require_dict(raw, "Field modifier")
        try:
            modifier_type = ModifierType(raw.get("type"))
        except ValueError:
            raise ConfigurationError(f"Unknown field modifier type '{raw.get('type')}'") from None
        return cls(
            type=modifier_type,
            constraint=copy.deepcopy(_require_dict(raw.get("constraint"), "Modifier constraint")),
            opposite=bool(raw.get("opposite", True)),
            type_config=copy.deepcopy(raw.get("typeConfig") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "type": self.type.value,
            "constraint": copy.deepcopy(self.constraint),
            "opposite": self.opposite,
        }
        if self.type_config:
            result["typeConfig"] = copy.deepcopy(self.type_config)
        return result


@dataclass
class FieldConfig:
    """
    One field of the form tree.

    Attributes:
        type: Page-specific widget type (e.g. "textInput", "container", "divider")
        name: Key in the value bag; None for non-data fields such as dividers
        value: Default value, may contain tokens
        disabled: Bool or token string evaluated before the form is built
        submit_value: Whether the value is part of the write payload
        validators: Rule set; only "required" and "requiredIf" are interpreted
        modifiers: Runtime constraint -> effect pairs
        fields: Children of container groups
        extra: All other page-specific keys (label, store, hint, ...)
    """
    type: Optional[str] = None
    name: Optional[str] = None
    value: Any = None
    disabled: Union[bool, str] = False
    submit_value: bool = True
    validators: Dict[str, Any] = field(default_factory=dict)
    modifiers: List[FieldModifier] = field(default_factory=list)
    fields: List["FieldConfig"] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN = ["type", "name", "value", "disabled", "submitValue", "validators", "modifiers", "fields"]

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "FieldConfig":
        _require_dict(raw, "Field config")
        return cls(
            type=raw.get("type"),
            name=raw.get("name"),
            value=copy.deepcopy(raw.get("value")),
            disabled=raw.get("disabled", False),
            submit_value=bool(raw.get("submitValue", True)),
            validators=copy.deepcopy(raw.get("validators") or {}),
            modifiers=[FieldModifier.from_dict(m) for m in raw.get("modifiers") or []],
            fields=[cls.from_dict(f) for f in raw.get("fields") or []],
            extra=_pop_known(raw, cls._KNOWN),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = copy.deepcopy(self.extra)
        if self.type is not None:
            result["type"] = self.type
        if self.name is not None:
            result["name"] = self.name
        result["value"] = copy.deepcopy(self.value)
        result["disabled"] = self.disabled
        result["submitValue"] = self.submit_value
        if self.validators:
            result["validators"] = copy.deepcopy(self.validators)
        if self.modifiers:
            result["modifiers"] = [m.to_dict() for m in self.modifiers]
        if self.fields:
            result["fields"] = [f.to_dict() for f in self.fields]
        return result


# ========== BUTTON ACTIONS ==========

class ButtonActionMeta(ABCMeta):
    """
    Metaclass for auto-registration of button action kinds.

    Every class declaring a ``type_tag`` is registered under it.
    """
    _registry: Dict[str, Type] = {}

    def __new__(mcs, name, bases, namespace):
        cls = super().__new__(mcs, name, bases, namespace)
        tag = namespace.get("type_tag")
        if tag:
            mcs._registry[tag] = cls
            logger.debug(f"Auto-registered button action type: {name} ({tag})")
        return cls

    @classmethod
    def get_registry(mcs) -> Dict[str, Type]:
        """Get all registered action types keyed by raw tag."""
        return dict(mcs._registry)


class ButtonAction(metaclass=ButtonActionMeta):
    """Base class for all button action kinds."""
    type_tag = ""

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ButtonAction":
        raise NotImplementedError

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass
class ClickAction(ButtonAction):
    """Hand the button and the value snapshot to a callback."""
    click: Optional[Callable[..., Any]] = None
    type_tag = "click"

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ClickAction":
        click = raw.get("click")
        if click is not None and not callable(click):
            raise ConfigurationError("execute.click must be callable")
        return cls(click=click)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_tag, "click": self.click}


@dataclass
class UrlAction(ButtonAction):
    """Navigate to a (token-formatted) URL."""
    url: Optional[str] = None
    type_tag = "url"

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "UrlAction":
        return cls(url=raw.get("url"))

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_tag, "url": self.url}


@dataclass
class ActionRequest:
    """Remote call issued by a request button."""
    service: str
    method: str
    params: Dict[str, Any] = field(default_factory=dict)
    task: bool = False
    progress_message: Optional[str] = None
    success_notification: Optional[str] = None
    success_url: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ActionRequest":
        _require_dict(raw, "execute.request")
        if not isinstance(raw.get("service"), str) or not isinstance(raw.get("method"), str):
            raise ConfigurationError("execute.request needs 'service' and 'method' strings")
        return cls(
            service=raw["service"],
            method=raw["method"],
            params=copy.deepcopy(raw.get("params") or {}),
            task=bool(raw.get("task", False)),
            progress_message=raw.get("progressMessage"),
            success_notification=raw.get("successNotification"),
            success_url=raw.get("successUrl"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "service": self.service,
            "method": self.method,
            "params": copy.deepcopy(self.params),
            "task": self.task,
        }
        for key, value in (
            ("progressMessage", self.progress_message),
            ("successNotification", self.success_notification),
            ("successUrl", self.success_url),
        ):
            if value is not None:
                result[key] = value
        return result


@dataclass
class RequestAction(ButtonAction):
    """Issue a remote call, then optionally notify and navigate."""
    request: Optional[ActionRequest] = None
    type_tag = "request"

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "RequestAction":
        return cls(request=ActionRequest.from_dict(raw.get("request")))

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_tag, "request": self.request.to_dict()}


@dataclass
class TaskDialogAction(ButtonAction):
    """Open a long-running task dialog; navigate on affirmative close."""
    config: Dict[str, Any] = field(default_factory=dict)
    success_url: Optional[str] = None
    type_tag = "taskDialog"

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "TaskDialogAction":
        task_dialog = _require_dict(raw.get("taskDialog"), "execute.taskDialog")
        return cls(
            config=copy.deepcopy(task_dialog.get("config") or {}),
            success_url=task_dialog.get("successUrl"),
        )

    def to_dict(self) -> Dict[str, Any]:
        task_dialog: Dict[str, Any] = {"config": copy.deepcopy(self.config)}
        if self.success_url is not None:
            task_dialog["successUrl"] = self.success_url
        return {"type": self.type_tag, "taskDialog": task_dialog}


def create_button_action(raw: Optional[Dict[str, Any]]) -> Optional[ButtonAction]:
    """Factory: select the action class from the raw ``type`` tag."""
    if raw is None:
        return None
    if isinstance(raw, ButtonAction):
        return raw
    _require_dict(raw, "Button execute")
    action_cls = ButtonActionMeta.get_registry().get(raw.get("type"))
    if action_cls is None:
        raise ConfigurationError(f"Unknown button action type '{raw.get('type')}'")
    return action_cls.from_dict(raw)


# ========== BUTTONS ==========

class ButtonTemplate(Enum):
    SUBMIT = "submit"
    CANCEL = "cancel"
    BACK = "back"
    CUSTOM = "custom"


@dataclass
class ButtonConfig:
    """
    One page button.

    ``disabled`` is mutable at runtime: the engine recomputes it from
    ``enabled_constraint`` whenever the value bag changes.
    """
    template: ButtonTemplate = ButtonTemplate.CUSTOM
    text: Optional[str] = None
    submit: bool = False
    execute: Optional[ButtonAction] = None
    confirmation_dialog_config: Optional[Dict[str, Any]] = None
    enabled_constraint: Optional[Dict[str, Any]] = None
    disabled: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN = ["template", "text", "submit", "execute", "confirmationDialogConfig",
              "enabledConstraint", "disabled"]

    @property
    def is_submit(self) -> bool:
        return self.submit or self.template is ButtonTemplate.SUBMIT

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ButtonConfig":
        _require_dict(raw, "Button config")
        try:
            template = ButtonTemplate(raw.get("template") or ButtonTemplate.CUSTOM.value)
        except ValueError:
            raise ConfigurationError(f"Unknown button template '{raw.get('template')}'") from None
        return cls(
            template=template,
            text=raw.get("text"),
            submit=bool(raw.get("submit", False)),
            execute=create_button_action(raw.get("execute")),
            confirmation_dialog_config=copy.deepcopy(raw.get("confirmationDialogConfig")),
            enabled_constraint=copy.deepcopy(raw.get("enabledConstraint")),
            disabled=bool(raw.get("disabled", False)),
            extra=_pop_known(raw, cls._KNOWN),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = copy.deepcopy(self.extra)
        result["template"] = self.template.value
        if self.text is not None:
            result["text"] = self.text
        result["submit"] = self.submit
        if self.execute is not None:
            result["execute"] = self.execute.to_dict()
        if self.confirmation_dialog_config is not None:
            result["confirmationDialogConfig"] = copy.deepcopy(self.confirmation_dialog_config)
        if self.enabled_constraint is not None:
            result["enabledConstraint"] = copy.deepcopy(self.enabled_constraint)
        result["disabled"] = self.disabled
        return result


# ========== REQUESTS ==========

class FilterMode(Enum):
    INCLUDE = "include"
    EXCLUDE = "exclude"


@dataclass
class ResponseFilter:
    props: List[str] = field(default_factory=list)
    mode: FilterMode = FilterMode.INCLUDE

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ResponseFilter":
        _require_dict(raw, "request.get.filter")
        try:
            mode = FilterMode(raw.get("mode", FilterMode.INCLUDE.value))
        except ValueError:
            raise ConfigurationError(f"Unknown response filter mode '{raw.get('mode')}'") from None
        return cls(props=list(raw.get("props") or []), mode=mode)

    def to_dict(self) -> Dict[str, Any]:
        return {"props": list(self.props), "mode": self.mode.value}


@dataclass
class GetRequest:
    """Read request descriptor."""
    method: str
    params: Dict[str, Any] = field(default_factory=dict)
    task: bool = False
    only_if: Optional[str] = None
    transform: Optional[Dict[str, Any]] = None
    filter: Optional[ResponseFilter] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "GetRequest":
        _require_dict(raw, "request.get")
        if not isinstance(raw.get("method"), str):
            raise ConfigurationError("request.get needs a 'method' string")
        return cls(
            method=raw["method"],
            params=copy.deepcopy(raw.get("params") or {}),
            task=bool(raw.get("task", False)),
            only_if=raw.get("onlyIf"),
            transform=copy.deepcopy(raw.get("transform")),
            filter=ResponseFilter.from_dict(raw["filter"]) if raw.get("filter") is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "method": self.method,
            "params": copy.deepcopy(self.params),
            "task": self.task,
        }
        if self.only_if is not None:
            result["onlyIf"] = self.only_if
        if self.transform is not None:
            result["transform"] = copy.deepcopy(self.transform)
        if self.filter is not None:
            result["filter"] = self.filter.to_dict()
        return result


@dataclass
class PostRequest:
    """Write request descriptor."""
    method: str
    params: Optional[Dict[str, Any]] = None
    task: bool = False
    intersect_params: bool = False
    progress_message: Optional[str] = None
    confirmation_dialog_config: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "PostRequest":
        _require_dict(raw, "request.post")
        if not isinstance(raw.get("method"), str):
            raise ConfigurationError("request.post needs a 'method' string")
        return cls(
            method=raw["method"],
            params=copy.deepcopy(raw.get("params")),
            task=bool(raw.get("task", False)),
            intersect_params=bool(raw.get("intersectParams", False)),
            progress_message=raw.get("progressMessage"),
            confirmation_dialog_config=copy.deepcopy(raw.get("confirmationDialogConfig")),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "method": self.method,
            "task": self.task,
            "intersectParams": self.intersect_params,
        }
        if self.params is not None:
            result["params"] = copy.deepcopy(self.params)
        if self.progress_message is not None:
            result["progressMessage"] = self.progress_message
        if self.confirmation_dialog_config is not None:
            result["confirmationDialogConfig"] = copy.deepcopy(self.confirmation_dialog_config)
        return result


@dataclass
class RequestConfig:
    """Backend read/write contract of a page."""
    service: str
    get: Optional[GetRequest] = None
    post: Optional[PostRequest] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "RequestConfig":
        _require_dict(raw, "request")
        if not isinstance(raw.get("service"), str):
            raise ConfigurationError("request needs a 'service' string")
        return cls(
            service=raw["service"],
            get=GetRequest.from_dict(raw["get"]) if raw.get("get") is not None else None,
            post=PostRequest.from_dict(raw["post"]) if raw.get("post") is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"service": self.service}
        if self.get is not None:
            result["get"] = self.get.to_dict()
        if self.post is not None:
            result["post"] = self.post.to_dict()
        return result


# ========== PAGE ==========

@dataclass
class PageConfig:
    """Normalized page definition produced by sanitize()."""
    fields: List[FieldConfig] = field(default_factory=list)
    buttons: List[ButtonConfig] = field(default_factory=list)
    request: Optional[RequestConfig] = None
    auto_reload: Union[bool, int] = False
    icon: Optional[str] = None
    button_align: str = "end"
    hints: List[Dict[str, Any]] = field(default_factory=list)
    title: Optional[str] = None
    subtitle: Optional[str] = None

    @property
    def reload_interval_ms(self) -> int:
        """Polling interval; 0 means load once."""
        if isinstance(self.auto_reload, bool) or not isinstance(self.auto_reload, (int, float)):
            return 0
        return int(self.auto_reload) if self.auto_reload > 0 else 0

    @property
    def submit_button(self) -> Optional[ButtonConfig]:
        return next((b for b in self.buttons if b.is_submit), None)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "fields": [f.to_dict() for f in self.fields],
            "buttons": [b.to_dict() for b in self.buttons],
            "autoReload": self.auto_reload,
            "buttonAlign": self.button_align,
            "hints": copy.deepcopy(self.hints),
        }
        if self.request is not None:
            result["request"] = self.request.to_dict()
        for key, value in (("icon", self.icon), ("title", self.title), ("subtitle", self.subtitle)):
            if value is not None:
                result[key] = value
        return result
