"""Form page engine exceptions."""

from typing import Optional


class PageEngineError(Exception):
    """Base class for all form page engine errors."""


class ConfigurationError(PageEngineError):
    """Raised when a page configuration is malformed (fatal to page construction)."""


class RemoteCallError(PageEngineError):
    """Raised when a remote procedure call fails."""

    def __init__(self, service: str, method: str, cause: Optional[BaseException] = None):
        self.service = service
        self.method = method
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"RPC {service}.{method} failed{detail}")


class EvaluationError(PageEngineError):
    """Malformed token or constraint expression.

    Never propagated out of the engine: evaluation sites log it and fall back
    to a safe default.
    """
