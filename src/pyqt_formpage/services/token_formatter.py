"""
Token formatter for configuration strings.

Substitutes ``{{ expression }}`` tokens embedded in page configuration data
against a context object. Expressions are Jinja2 expressions evaluated in a
sandbox, so dotted and bracket paths, inline conditionals and filters all
work:

    format("{{ _routeParams.uuid }}", ctx)
    format('{{ "enumerateDevices" if _routeConfig.data.editing else "getCandidates" }}', ctx)
    format("{{ _routeConfig.data.editing | toboolean }}", ctx)

Missing paths render as the empty string. A malformed template, or one that
fails while rendering against the given data, is logged and returned
unchanged.
"""

import copy
import dataclasses
import functools
import logging
import re
from typing import Any, Callable, Dict, Iterable, Optional

from jinja2 import ChainableUndefined, Template
from jinja2.sandbox import SandboxedEnvironment

from pyqt_formpage.exceptions import EvaluationError
from pyqt_formpage.protocols.engine_config import get_engine_config

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\{\{.*?\}\}", re.DOTALL)

_MISSING = object()


def to_boolean(value: Any) -> bool:
    """Coerce a config value to bool using the canonical truthy string set."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in get_engine_config().truthy_strings
    return False


def _create_environment() -> SandboxedEnvironment:
    env = SandboxedEnvironment(undefined=ChainableUndefined, autoescape=False)
    env.filters["toboolean"] = to_boolean
    return env


_env = _create_environment()


@functools.lru_cache(maxsize=1024)
def _compile(template: str) -> Template:
    """Parse once; compiled templates are cached by their source string."""
    return _env.from_string(template)


def is_formatable(value: Any) -> bool:
    """True if value (or any string leaf inside it) contains a token."""
    if isinstance(value, str):
        return _TOKEN_RE.search(value) is not None
    if isinstance(value, dict):
        return any(is_formatable(v) for v in value.values())
    if isinstance(value, (list, tuple)):
        return any(is_formatable(v) for v in value)
    return False


def format(template: Any, context: Optional[Dict[str, Any]] = None) -> Any:
    """Render a token string against context; non-strings are returned untouched."""
    if not isinstance(template, str) or not is_formatable(template):
        return template
    try:
        return _compile(template).render(context or {})
    except Exception as e:
        # Runtime data errors (e.g. division by zero) are logged like syntax errors
        error = EvaluationError(f"Cannot format {template!r}: {e}")
        logger.warning(str(error))
        return template


def format_deep(value: Any, context: Optional[Dict[str, Any]] = None) -> Any:
    """Recursively format every string leaf of a nested dict/list structure."""
    if isinstance(value, str):
        return format(value, context)
    if isinstance(value, dict):
        return {k: format_deep(v, context) for k, v in value.items()}
    if isinstance(value, list):
        return [format_deep(v, context) for v in value]
    if isinstance(value, tuple):
        return tuple(format_deep(v, context) for v in value)
    return value


def get_path(obj: Any, path: str, default: Any = None) -> Any:
    """Dotted path lookup through dicts, lists and dataclass attributes."""
    current = obj
    for key in path.split("."):
        if isinstance(current, dict):
            current = current.get(key, _MISSING)
        elif isinstance(current, list) and key.isdigit():
            idx = int(key)
            current = current[idx] if idx < len(current) else _MISSING
        elif dataclasses.is_dataclass(current) and hasattr(current, key):
            current = getattr(current, key)
        else:
            current = _MISSING
        if current is _MISSING:
            return default
    return current


def set_path(obj: Any, path: str, value: Any) -> bool:
    """Set a dotted path; returns False if an intermediate segment is missing."""
    *parents, leaf = path.split(".")
    target = get_path(obj, ".".join(parents), _MISSING) if parents else obj
    if target is _MISSING or target is None:
        return False
    if isinstance(target, dict):
        target[leaf] = value
        return True
    if dataclasses.is_dataclass(target) and hasattr(target, leaf):
        setattr(target, leaf, value)
        return True
    return False


def format_paths(
    obj: Any,
    paths: Iterable[str],
    context: Optional[Dict[str, Any]] = None,
    post: Optional[Callable[[Any], Any]] = None,
) -> Any:
    """
    Format the values at the given dotted paths in place.

    Only formatable values are touched; post (e.g. to_boolean) is applied to
    the formatted result. Returns obj for chaining.
    """
    for path in paths:
        value = get_path(obj, path, _MISSING)
        if value is _MISSING or not is_formatable(value):
            continue
        formatted = format_deep(copy.deepcopy(value), context)
        if post is not None:
            formatted = post(formatted)
        set_path(obj, path, formatted)
        logger.debug(f"Formatted {path}: {value!r} -> {formatted!r}")
    return obj
