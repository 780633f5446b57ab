"""
Classification of chunk-level failures.

Network faults are skipped over so one unreachable chunk does not abort a
long repair; anything else recurs deterministically and stops the run.
"""

from __future__ import annotations

import requests

from neuronas_repair.core.constants import NETWORK_ERROR_MARKERS, FaultClass
from neuronas_repair.core.exceptions import (
    CircuitBreakerOpenError,
    NetworkError,
    NeuronasError,
    RemoteFunctionError,
)

# Gateway-level statuses meaning the request never completed upstream
TRANSIENT_STATUS_CODES: frozenset[int] = frozenset({408, 504})

_NETWORK_EXCEPTION_TYPES: tuple[type[BaseException], ...] = (
    requests.exceptions.Timeout,
    requests.exceptions.ConnectionError,
    requests.exceptions.ChunkedEncodingError,
    TimeoutError,
    ConnectionError,
)


def is_network_error(error: BaseException) -> bool:
    """Whether an error signals a network-level failure."""
    if isinstance(error, CircuitBreakerOpenError):
        return False
    if isinstance(error, NetworkError):
        return True
    if isinstance(error, RemoteFunctionError):
        return error.status_code in TRANSIENT_STATUS_CODES
    if isinstance(error, NeuronasError):
        return False
    if isinstance(error, _NETWORK_EXCEPTION_TYPES):
        return True
    message = str(error).lower()
    return any(marker in message for marker in NETWORK_ERROR_MARKERS)


def classify(error: BaseException) -> FaultClass:
    """Decide whether a failed chunk is skipped or stops the run.

    Examples:
        >>> classify(NetworkError("autoRepairService", reason="timed out"))
        <FaultClass.RETRYABLE_SKIP: 'RETRYABLE_SKIP'>
        >>> classify(RemoteFunctionError("autoRepairService", reason="bad issue_type"))
        <FaultClass.FATAL: 'FATAL'>
    """
    if is_network_error(error):
        return FaultClass.RETRYABLE_SKIP
    return FaultClass.FATAL
