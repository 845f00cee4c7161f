"""
Abstract base class for services with auto-discovery dispatch over a closed union.

Pattern:
    Instead of:
        class ActionService:
            def execute(self, action):
                if action.type == 'url':
                    ...
                elif action.type == 'request':
                    ...

    Use:
        class ActionService(HandlerDispatchABC):
            def _get_handler_prefix(self) -> str:
                return '_execute_'

            def _get_union_types(self):
                return ButtonActionMeta.get_registry().values()

            def _execute_UrlAction(self, action, ...):
                ...

The ABC discovers handlers by naming convention ({prefix}{ClassName}) and,
unlike a plain registry, refuses to construct a service that leaves a union
member without a handler. Adding a new action kind without handling it
everywhere fails at startup instead of at click time.
"""

from typing import Any, Callable, Dict, Iterable, Type
from abc import ABC, abstractmethod
import logging

logger = logging.getLogger(__name__)


class HandlerDispatchABC(ABC):
    """
    Abstract base for services with exhaustive auto-discovery dispatch.

    Subclasses must:
    1. Implement _get_handler_prefix() to return method prefix (e.g., '_execute_')
    2. Implement _get_union_types() to return every member of the union
    3. Define handler methods following naming convention: {prefix}{ClassName}
    """

    def __init__(self):
        self._handlers: Dict[str, Callable] = {}
        prefix = self._get_handler_prefix()

        for attr_name in dir(self):
            if attr_name.startswith(prefix):
                # e.g., '_execute_UrlAction' -> 'UrlAction'
                class_name = attr_name[len(prefix):]
                handler = getattr(self, attr_name)
                if callable(handler):
                    self._handlers[class_name] = handler

        missing = [t.__name__ for t in self._get_union_types() if t.__name__ not in self._handlers]
        if missing:
            raise TypeError(
                f"{self.__class__.__name__} does not handle {missing}. "
                f"Define {', '.join(prefix + name + '()' for name in missing)}."
            )

        logger.debug(
            f"{self.__class__.__name__} auto-discovered handlers: "
            f"{list(self._handlers.keys())}"
        )

    @abstractmethod
    def _get_handler_prefix(self) -> str:
        """Return the method prefix for this service's handlers."""
        pass

    @abstractmethod
    def _get_union_types(self) -> Iterable[Type]:
        """Return all members of the dispatched union."""
        pass

    def dispatch(self, item: Any, *args, **kwargs) -> Any:
        """
        Auto-dispatch to handler based on the item's class name.

        Raises:
            ValueError: If no handler found for the item's type
        """
        class_name = item.__class__.__name__
        handler = self._handlers.get(class_name)

        if handler is None:
            raise ValueError(
                f"No handler for {class_name} in {self.__class__.__name__}. "
                f"Available handlers: {list(self._handlers.keys())}."
            )

        return handler(item, *args, **kwargs)

    def get_supported_types(self) -> list[str]:
        return list(self._handlers.keys())
