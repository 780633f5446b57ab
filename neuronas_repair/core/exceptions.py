"""
Custom exception hierarchy for the repair client.

This module provides a structured exception hierarchy that enables:
- Telling transport faults apart from remote domain failures
- Rich error context for debugging
- Consistent error messages across the codebase
"""

from __future__ import annotations

from typing import Any


class NeuronasError(Exception):
    """Base exception for all repair client errors.

    All custom exceptions inherit from this class, enabling catching
    every client-related error with a single except clause.
    """

    def __init__(
        self,
        message: str,
        *,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.message = message
        self.context = context or {}
        self.cause = cause
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the full error message including context."""
        parts = [self.message]
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"[{context_str}]")
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " ".join(parts)


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationError(NeuronasError):
    """Raised when configuration is invalid or missing."""

    def __init__(
        self,
        config_key: str,
        *,
        value: Any = None,
        reason: str | None = None,
    ) -> None:
        context: dict[str, Any] = {"key": config_key}
        if value is not None:
            context["value"] = value
        message = f"Invalid configuration for {config_key}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, context=context)
        self.config_key = config_key


# =============================================================================
# Transport Exceptions
# =============================================================================


class TransportError(NeuronasError):
    """Base exception for failures invoking a remote function."""

    def __init__(
        self,
        message: str,
        *,
        function_name: str | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        context = dict(context or {})
        if function_name:
            context.setdefault("function", function_name)
        super().__init__(message, context=context, cause=cause)
        self.function_name = function_name


class NetworkError(TransportError):
    """Raised when the backend could not be reached.

    Examples:
        - Connection refused or reset
        - Request timeout
        - DNS failure
    """

    def __init__(
        self,
        function_name: str,
        *,
        reason: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        message = f"Network Error invoking {function_name}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, function_name=function_name, cause=cause)


class RemoteFunctionError(TransportError):
    """Raised when a remote function answers with an error.

    Examples:
        - HTTP 4xx/5xx status
        - Body that is not valid JSON
        - Payload with ``success: false``
    """

    def __init__(
        self,
        function_name: str,
        *,
        reason: str,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        context: dict[str, Any] = {}
        if status_code is not None:
            context["status"] = status_code
        message = f"{function_name} failed: {reason}"
        super().__init__(message, function_name=function_name, context=context, cause=cause)
        self.reason = reason
        self.status_code = status_code


class CircuitBreakerOpenError(TransportError):
    """Raised when circuit breaker prevents operation."""

    def __init__(
        self,
        service: str = "functions",
        *,
        failures: int | None = None,
        timeout_remaining: float | None = None,
    ) -> None:
        context: dict[str, Any] = {"service": service}
        if failures is not None:
            context["failures"] = failures
        if timeout_remaining is not None:
            context["timeout_remaining_sec"] = round(timeout_remaining, 1)
        message = f"Circuit breaker open for {service}"
        super().__init__(message, context=context)


# =============================================================================
# Repair Exceptions
# =============================================================================


class RepairError(NeuronasError):
    """Base exception for chunked repair errors."""

    pass


class RepairRunInProgressError(RepairError):
    """Raised when a repair run is started while another is still running."""

    def __init__(self, *, iteration: int | None = None) -> None:
        context: dict[str, Any] = {}
        if iteration is not None:
            context["iteration"] = iteration
        super().__init__("A repair run is already in progress", context=context)


class AggregateFinalizedError(RepairError):
    """Raised when a finalized repair report is mutated."""

    def __init__(self, state: str) -> None:
        super().__init__(
            "Cannot merge into a finalized repair report",
            context={"state": state},
        )


class InvalidRepairRequestError(RepairError):
    """Raised when repair arguments cannot form a valid chunk request."""

    def __init__(self, *, issue_type: str, reason: str, cause: Exception | None = None) -> None:
        super().__init__(
            f"Invalid repair request: {reason}",
            context={"issue_type": repr(issue_type)},
            cause=cause,
        )
        self.issue_type = issue_type


class ChunkResponseError(RepairError):
    """Raised when a chunk response does not match the expected contract."""

    def __init__(
        self,
        *,
        iteration: int,
        reason: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            f"Malformed repair chunk response: {reason}",
            context={"iteration": iteration},
            cause=cause,
        )
        self.iteration = iteration


# =============================================================================
# Health Exceptions
# =============================================================================


class HealthCheckError(NeuronasError):
    """Raised when the health monitor cannot produce a report."""

    def __init__(
        self,
        *,
        reason: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(f"Health check failed: {reason}", cause=cause)
        self.reason = reason
