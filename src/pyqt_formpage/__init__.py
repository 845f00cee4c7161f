"""
pyqt-formpage: configuration-driven form page engine for PyQt6.

A page definition (plain data, not code) describes input fields, a backend
read/write contract and action buttons. The engine seeds or loads the form,
evaluates cross-field constraints and drives each button click through
confirmation, execution and navigation/notification.

Architecture:
- Tier 1 (Core): QtCore utilities (PendingResult, DebounceTimer, timer)
- Tier 2 (Protocols): Collaborator ABCs and EngineConfig
- Tier 3 (Forms): Page config model, sanitizer, in-memory form value bag
- Tier 4 (Services): Token formatter, constraints, field modifiers, RPC client
- Tier 5 (Page): PageContext, DataLoader, ButtonActionPipeline, FormPageEngine
"""

__version__ = "0.1.0"

# Import order matters: forms before services (services depend on the config model)
from .exceptions import PageEngineError, ConfigurationError, RemoteCallError, EvaluationError
from .core import PendingResult
from .protocols import EngineConfig, set_engine_config, get_engine_config
from .forms import FormModel, PageConfig, sanitize
from .services import ConstraintService, ThreadedRpcClient
from .page import FormPageEngine, PageContext, PageStatus

__all__ = [
    "__version__",
    "PageEngineError",
    "ConfigurationError",
    "RemoteCallError",
    "EvaluationError",
    "PendingResult",
    "EngineConfig",
    "set_engine_config",
    "get_engine_config",
    "FormModel",
    "PageConfig",
    "sanitize",
    "ConstraintService",
    "ThreadedRpcClient",
    "FormPageEngine",
    "PageContext",
    "PageStatus",
]
