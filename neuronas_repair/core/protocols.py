"""
Protocol definitions and abstract base classes for the repair client.

This module defines interfaces that enable:
- Swapping the HTTP transport for a scripted fake in tests
- Plugging progress observers into a repair run
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from neuronas_repair.repair.progress import ProgressSnapshot


class FunctionInvoker(ABC):
    """Abstract base class for invoking named backend functions.

    Implementations should handle:
    - Connection management
    - Mapping transport faults to NetworkError
    - Mapping error responses to RemoteFunctionError
    """

    @abstractmethod
    def invoke(self, function_name: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Invoke a backend function and return its decoded JSON body.

        Args:
            function_name: Registered name of the function.
            payload: JSON-serializable request body.

        Returns:
            The decoded response body.

        Raises:
            NetworkError: If the backend could not be reached.
            RemoteFunctionError: If the function answered with an error.
            CircuitBreakerOpenError: If circuit breaker is open.
        """
        ...


@runtime_checkable
class ProgressObserver(Protocol):
    """Receives one snapshot per chunk iteration of a repair run."""

    def __call__(self, snapshot: ProgressSnapshot) -> None:
        ...
