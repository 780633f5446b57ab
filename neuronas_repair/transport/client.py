"""
HTTP client for invoking named backend functions.

Functions are invoked with a JSON POST to
``{endpoint}/api/apps/{app_id}/functions/{name}``. Transport failures
surface as NetworkError, error answers as RemoteFunctionError,
so callers can tell an unreachable backend from a failing function.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from types import TracebackType
from typing import Any

import requests
import urllib3

from neuronas_repair.core.config import FunctionsConfig, get_config
from neuronas_repair.core.exceptions import (
    CircuitBreakerOpenError,
    NetworkError,
    RemoteFunctionError,
)
from neuronas_repair.core.logging import EventType, get_logger, log_event
from neuronas_repair.core.protocols import FunctionInvoker

logger = get_logger(__name__)


# =============================================================================
# Circuit Breaker
# =============================================================================


@dataclass
class CircuitBreakerState:
    """Consecutive network failures against the functions endpoint.

    The circuit opens once ``threshold`` failures happen in a row and stays
    open for ``timeout_seconds`` after the latest one. Any call that reaches
    the backend closes it again.
    """

    threshold: int = 5
    timeout_seconds: float = 300
    failure_count: int = 0
    last_failure_at: float | None = None

    def record_success(self) -> None:
        self.failure_count = 0
        self.last_failure_at = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_at = time.monotonic()

    def time_until_reset(self) -> float | None:
        """Seconds until the circuit closes, or None when it is closed."""
        if self.failure_count < self.threshold or self.last_failure_at is None:
            return None
        remaining = self.timeout_seconds - (time.monotonic() - self.last_failure_at)
        return remaining if remaining > 0 else None

    def is_open(self) -> bool:
        return self.time_until_reset() is not None


# =============================================================================
# Functions Client
# =============================================================================


class FunctionsClient(FunctionInvoker):
    """Invokes backend functions over a pooled, authenticated session.

    Only network-level failures count against the circuit breaker: a
    function answering with an error proves the backend is reachable.

    Example:
        >>> with FunctionsClient() as client:
        ...     body = client.invoke("systemHealthMonitor", {})
    """

    def __init__(
        self,
        endpoint: str | None = None,
        config: FunctionsConfig | None = None,
    ) -> None:
        self._config = config or get_config().functions
        self._endpoint = (endpoint or self._config.endpoint).rstrip("/")
        self._session = self._build_session()
        self._breaker = CircuitBreakerState(
            threshold=self._config.circuit_breaker_threshold,
            timeout_seconds=self._config.circuit_breaker_timeout_seconds,
        )

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def circuit_breaker(self) -> CircuitBreakerState:
        return self._breaker

    def function_url(self, function_name: str) -> str:
        return f"{self._endpoint}/api/apps/{self._config.app_id}/functions/{function_name}"

    def _build_session(self) -> requests.Session:
        config = self._config
        # POST is not in urllib3's default allowed_methods: only connect
        # failures are retried, never a request the backend received.
        retry = urllib3.util.retry.Retry(
            total=config.max_retries,
            backoff_factor=config.retry_backoff_factor,
            status_forcelist=list(config.retry_status_forcelist),
            raise_on_status=False,
        )
        adapter = requests.adapters.HTTPAdapter(
            pool_connections=config.pool_connections,
            pool_maxsize=config.pool_maxsize,
            max_retries=retry,
        )

        session = requests.Session()
        for scheme in ("http://", "https://"):
            session.mount(scheme, adapter)

        session.headers.update({"Content-Type": "application/json", "Accept": "application/json"})
        if config.api_token:
            session.headers["Authorization"] = f"Bearer {config.api_token}"
        if config.app_id:
            session.headers["X-App-Id"] = config.app_id
        return session

    def is_circuit_open(self) -> bool:
        return self._breaker.is_open()

    def invoke(self, function_name: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Invoke a backend function and return its decoded JSON body.

        Raises:
            CircuitBreakerOpenError: After too many consecutive network failures.
            NetworkError: On timeouts, connection failures and any other
                transport failure raised by requests.
            RemoteFunctionError: On HTTP errors or an undecodable body.
        """
        remaining = self._breaker.time_until_reset()
        if remaining is not None:
            raise CircuitBreakerOpenError(
                "functions",
                failures=self._breaker.failure_count,
                timeout_remaining=remaining,
            )

        try:
            response = self._session.post(
                self.function_url(function_name),
                json=payload,
                timeout=self._config.timeout_seconds,
            )
        except requests.exceptions.Timeout as e:
            self._record_network_failure(function_name)
            raise NetworkError(
                function_name,
                reason=f"timed out after {self._config.timeout_seconds}s",
                cause=e,
            ) from e
        except requests.exceptions.ConnectionError as e:
            self._record_network_failure(function_name)
            raise NetworkError(function_name, reason="connection failed", cause=e) from e
        except requests.RequestException as e:
            # e.g. ChunkedEncodingError when the connection drops mid-body
            self._record_network_failure(function_name)
            raise NetworkError(function_name, reason=f"request failed: {type(e).__name__}", cause=e) from e

        self._breaker.record_success()
        body = self._decode_body(function_name, response)

        if response.status_code >= 400:
            reason = body.get("error") if isinstance(body, dict) else None
            raise RemoteFunctionError(
                function_name,
                reason=reason or f"HTTP {response.status_code}",
                status_code=response.status_code,
            )

        if not isinstance(body, dict):
            raise RemoteFunctionError(
                function_name,
                reason=f"expected a JSON object, got {type(body).__name__}",
                status_code=response.status_code,
            )

        logger.debug(f"Invoked {function_name} ({response.status_code}, {len(response.content)} bytes)")
        return body

    def _decode_body(self, function_name: str, response: requests.Response) -> Any:
        """Decode a JSON body; error statuses may come with an empty one."""
        try:
            return response.json()
        except ValueError as e:
            if response.status_code >= 400:
                return {}
            raise RemoteFunctionError(
                function_name,
                reason="response body is not valid JSON",
                status_code=response.status_code,
                cause=e,
            ) from e

    def _record_network_failure(self, function_name: str) -> None:
        was_open = self._breaker.is_open()
        self._breaker.record_failure()
        if not was_open and self._breaker.is_open():
            log_event(
                logger,
                logging.WARNING,
                EventType.CIRCUIT_BREAKER,
                function_name,
                "circuit opened after repeated network failures",
                failures=self._breaker.failure_count,
            )

    def health_check(self, max_latency_ms: float = 5000) -> tuple[bool, dict[str, Any]]:
        """Probe the endpoint without invoking any function.

        Returns:
            ``(healthy, details)``; details holds ``latency_ms``,
            ``status_code``, ``error`` and ``circuit_breaker_open``.
        """
        details: dict[str, Any] = {
            "latency_ms": None,
            "status_code": None,
            "error": None,
            "circuit_breaker_open": self.is_circuit_open(),
        }
        if details["circuit_breaker_open"]:
            details["error"] = "circuit breaker is open"
            return False, details

        started = time.monotonic()
        try:
            response = self._session.get(self._endpoint, timeout=self._config.timeout_seconds)
        except requests.RequestException as e:
            details["error"] = f"{type(e).__name__}: {e}"
            return False, details

        latency_ms = (time.monotonic() - started) * 1000
        details["latency_ms"] = round(latency_ms, 2)
        details["status_code"] = response.status_code
        if response.status_code >= 500:
            details["error"] = f"endpoint answered {response.status_code}"
        elif latency_ms > max_latency_ms:
            details["error"] = f"latency {latency_ms:.0f}ms above {max_latency_ms:.0f}ms"
        return details["error"] is None, details

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> FunctionsClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
