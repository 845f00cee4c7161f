"""Remote call helper and post-processing of object responses returned by read requests."""

import copy
import logging
from typing import Any, Dict, Iterable, Optional

from pyqt_formpage.core.pending_result import PendingResult
from pyqt_formpage.exceptions import PageEngineError, RemoteCallError
from pyqt_formpage.forms.page_config_types import FilterMode
from pyqt_formpage.protocols.collaborators import RpcClient
from pyqt_formpage.services.token_formatter import format_deep

logger = logging.getLogger(__name__)


def invoke_rpc(
    rpc: RpcClient,
    service: str,
    method: str,
    params: Optional[Dict[str, Any]] = None,
    long_running: bool = False,
) -> PendingResult:
    """
    Call rpc.invoke; a client raising synchronously yields a rejected result.

    Callers commit state (in-flight markers, progress) before the call, so
    every failure has to arrive through the error callback.
    """
    try:
        return rpc.invoke(service, method, params, long_running=long_running)
    except Exception as e:
        logger.error(f"RPC {service}.{method} could not be issued: {e}", exc_info=e)
        if not isinstance(e, PageEngineError):
            e = RemoteCallError(service, method, e)
        return PendingResult.failed(e)


def transform_response(response: Dict[str, Any], transform: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Remap a response object.

    Each key of transform is (re)assigned to its template formatted against
    the original response:

        transform_response({"ip": "10.0.0.1"}, {"address": "{{ ip }}"})
        # -> {"ip": "10.0.0.1", "address": "10.0.0.1"}
    """
    if not transform:
        return response
    result = copy.deepcopy(response)
    for key, template in transform.items():
        result[key] = format_deep(copy.deepcopy(template), response)
    return result


def filter_response(
    response: Dict[str, Any],
    props: Iterable[str],
    mode: FilterMode = FilterMode.INCLUDE,
) -> Dict[str, Any]:
    """Keep (include) or drop (exclude) the named properties."""
    props = set(props)
    if mode is FilterMode.INCLUDE:
        return {k: v for k, v in response.items() if k in props}
    return {k: v for k, v in response.items() if k not in props}
