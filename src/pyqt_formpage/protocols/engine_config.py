"""Base configuration class for the form page engine.

Provides hooks for applications to customize engine behavior.
"""

from typing import Dict, FrozenSet, Optional
from dataclasses import dataclass, field


@dataclass
class EngineConfig:
    """Base configuration for form page engine behavior.

    Applications can subclass this to provide custom configuration.

    Attributes:
        constraint_debounce_ms: Debounce window for button enablement re-evaluation
        default_progress_message: Progress text shown while a write request is in flight
        button_texts: Default labels per button template
        default_button_align: Button alignment when a page does not specify one
        task_dialog_width: Default width of task dialogs
        truthy_strings: Strings (lowercase) that coerce to True
        performance_logger_name: Logger used for remote call timings
        rpc_timing_threshold_ms: Only log remote calls slower than this
    """

    constraint_debounce_ms: int = 5
    default_progress_message: str = "Please wait ..."
    button_texts: Dict[str, str] = field(default_factory=lambda: {
        "back": "Back",
        "cancel": "Cancel",
        "submit": "Save",
    })
    default_button_align: str = "end"
    task_dialog_width: str = "75%"
    truthy_strings: FrozenSet[str] = frozenset({"1", "true", "yes", "y", "on"})
    performance_logger_name: str = "pyqt_formpage.performance"
    rpc_timing_threshold_ms: float = 0.0


# Global config instance (set by application)
_engine_config: Optional[EngineConfig] = None


def set_engine_config(config: Optional[EngineConfig]) -> None:
    """Set the global engine configuration.

    Args:
        config: EngineConfig instance, or None to restore defaults
    """
    global _engine_config
    _engine_config = config


def get_engine_config() -> EngineConfig:
    """Get the current engine configuration.

    Returns:
        Current EngineConfig or default if not set
    """
    if _engine_config is None:
        return EngineConfig()
    return _engine_config
