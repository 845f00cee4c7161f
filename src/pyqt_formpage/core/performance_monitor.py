"""Performance monitoring utilities for the form page engine.

Provides a context manager for timing operations and logging the result.
Handlers are left to the application; nothing is configured at import time.
"""

import time
import logging
from contextlib import contextmanager
from typing import Optional

from pyqt_formpage.protocols.engine_config import get_engine_config


def get_perf_logger() -> logging.Logger:
    """Return the configured performance logger."""
    return logging.getLogger(get_engine_config().performance_logger_name)


@contextmanager
def timer(operation_name: str, threshold_ms: Optional[float] = None, log_args: bool = False, **kwargs):
    """Context manager for timing operations.

    Args:
        operation_name: Name of the operation being timed
        threshold_ms: Only log if operation takes longer than this (in milliseconds);
            defaults to EngineConfig.rpc_timing_threshold_ms
        log_args: Whether to log kwargs in the message
        **kwargs: Additional context to include in log message

    Example:
        with timer("RPC Network.getEthernetIface", log_args=True, task=False):
            result = transport(service, method, params)
    """
    if threshold_ms is None:
        threshold_ms = get_engine_config().rpc_timing_threshold_ms
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000

        if elapsed_ms >= threshold_ms:
            msg = f"{operation_name}: {elapsed_ms:.2f}ms"
            if log_args and kwargs:
                args_str = ", ".join(f"{k}={v}" for k, v in kwargs.items())
                msg += f" ({args_str})"

            get_perf_logger().debug(msg)
