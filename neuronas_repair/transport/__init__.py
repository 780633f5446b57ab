"""
Transport module - invocation of named backend functions.

This module contains:
    - client: HTTP functions client with circuit breaker
"""

from neuronas_repair.transport.client import CircuitBreakerState, FunctionsClient

__all__ = [
    "FunctionsClient",
    "CircuitBreakerState",
]
