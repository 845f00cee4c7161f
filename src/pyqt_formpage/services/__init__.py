"""
Service layer: token formatting, constraint evaluation, field modifiers,
response post-processing, dispatch and the threaded RPC client.
"""

from .token_formatter import format, format_deep, format_paths, is_formatable, to_boolean
from .constraint_service import ConstraintService
from .handler_dispatch_abc import HandlerDispatchABC
from .field_modifier_service import FieldModifierService, FieldState
from .rpc_response import invoke_rpc, transform_response, filter_response
from .threaded_rpc_client import ThreadedRpcClient

__all__ = [
    "format",
    "format_deep",
    "format_paths",
    "is_formatable",
    "to_boolean",
    "ConstraintService",
    "HandlerDispatchABC",
    "FieldModifierService",
    "FieldState",
    "invoke_rpc",
    "transform_response",
    "filter_response",
    "ThreadedRpcClient",
]
