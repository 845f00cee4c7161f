"""
Collaborator protocol definitions and engine configuration.

ABC-based contracts for everything outside the page interpreter.
"""

from .engine_config import EngineConfig, set_engine_config, get_engine_config
from .collaborators import (
    QObjectABCMeta,
    DialogKind,
    NotificationType,
    RouteSnapshot,
    RpcClient,
    FormValueBag,
    Navigator,
    DialogService,
    NotificationService,
    ProgressIndicator,
)

__all__ = [
    "EngineConfig",
    "set_engine_config",
    "get_engine_config",
    "QObjectABCMeta",
    "DialogKind",
    "NotificationType",
    "RouteSnapshot",
    "RpcClient",
    "FormValueBag",
    "Navigator",
    "DialogService",
    "NotificationService",
    "ProgressIndicator",
]
