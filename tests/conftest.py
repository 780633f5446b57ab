"""
Pytest configuration and shared fixtures.

This module provides reusable fixtures for testing the neuronas_repair package,
most importantly a scripted FunctionInvoker that stands in for the backend.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any

import pytest

from neuronas_repair.core import (
    FunctionInvoker,
    FunctionsConfig,
    HealthConfig,
    NeuronasConfig,
    RepairConfig,
    reset_config,
    set_config,
)

# A step is a response body, an exception to raise, or a callable building
# the body from the request payload.
Step = dict[str, Any] | BaseException | Callable[[dict[str, Any]], dict[str, Any]]


class ScriptedInvoker(FunctionInvoker):
    """FunctionInvoker replaying a fixed script of responses.

    Also usable as a context manager in place of FunctionsClient.
    """

    def __init__(self, steps: list[Step], default: Step | None = None) -> None:
        self.steps = list(steps)
        self.default = default
        self.calls: list[tuple[str, dict[str, Any]]] = []

    @property
    def payloads(self) -> list[dict[str, Any]]:
        return [payload for _, payload in self.calls]

    @property
    def cursors(self) -> list[int]:
        return [payload["skip_count"] for payload in self.payloads]

    def invoke(self, function_name: str, payload: dict[str, Any]) -> dict[str, Any]:
        self.calls.append((function_name, dict(payload)))
        if self.steps:
            step = self.steps.pop(0)
        elif self.default is not None:
            step = self.default
        else:
            raise AssertionError(f"Unexpected call #{len(self.calls)} to {function_name}")

        if isinstance(step, BaseException):
            raise step
        if callable(step):
            return step(payload)
        return step

    def __enter__(self) -> ScriptedInvoker:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        pass


def make_chunk_body(
    *,
    successful: int = 0,
    failed: int = 0,
    has_more: bool = False,
    next_skip: int = 0,
    details: list[dict[str, Any]] | None = None,
    errors: list[dict[str, Any]] | None = None,
    logs: list[str] | None = None,
    detailed_logs: list[dict[str, Any]] | None = None,
    inspected: int | None = None,
) -> dict[str, Any]:
    """Build an auto-repair response body in the backend's wire format."""
    report: dict[str, Any] = {
        "repairs_attempted": successful + failed,
        "repairs_successful": successful,
        "repairs_failed": failed,
        "details": details or [],
        "errors": errors or [],
        "has_more": has_more,
        "next_skip": next_skip,
    }
    if inspected is not None:
        report["processing_stats"] = {"benchmarks_inspected": inspected, "processed": successful + failed}
    body: dict[str, Any] = {"success": True, "repair_report": report}
    if logs is not None:
        body["logs"] = logs
    if detailed_logs is not None:
        body["detailed_logs"] = detailed_logs
    return body


def advancing_chunk(successful: int = 1, budget: int = 20, has_more: bool = True) -> Callable[[dict[str, Any]], dict[str, Any]]:
    """Step that answers relative to the request cursor."""

    def step(payload: dict[str, Any]) -> dict[str, Any]:
        return make_chunk_body(
            successful=successful,
            has_more=has_more,
            next_skip=payload["skip_count"] + budget,
        )

    return step


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def test_config() -> Generator[NeuronasConfig, None, None]:
    """Provide a test configuration installed as the global config."""
    config = NeuronasConfig(
        functions=FunctionsConfig(
            endpoint="http://localhost:8000",
            app_id="test-app",
            api_token="test-token",
            timeout_seconds=5,
        ),
        repair=RepairConfig(),
        health=HealthConfig(),
    )
    set_config(config)
    yield config
    reset_config()


@pytest.fixture
def repair_config() -> RepairConfig:
    """Repair configuration with the documented defaults."""
    return RepairConfig()


@pytest.fixture
def sleeps() -> list[float]:
    """Collects requested sleep durations instead of sleeping."""
    return []


@pytest.fixture
def fake_sleep(sleeps: list[float]) -> Callable[[float], None]:
    return sleeps.append


# =============================================================================
# Backend Fixtures
# =============================================================================


@pytest.fixture
def scripted_invoker() -> type[ScriptedInvoker]:
    """Provide the ScriptedInvoker class."""
    return ScriptedInvoker


@pytest.fixture
def chunk_body() -> Callable[..., dict[str, Any]]:
    """Provide the chunk response body factory."""
    return make_chunk_body


@pytest.fixture
def advancing() -> Callable[..., Callable[[dict[str, Any]], dict[str, Any]]]:
    """Provide the cursor-relative step factory."""
    return advancing_chunk


@pytest.fixture
def sample_log_entry() -> dict[str, Any]:
    """A structured log entry as emitted by the backend."""
    return {
        "timestamp": 1718000000000,
        "level": "SUCCESS",
        "message": "SPG CALCULATED: 0.8123 (412ms)",
        "details": {"benchmark_id": "bench-1", "spg_value": 0.8123},
        "iso_time": "2024-06-10T06:13:20.000Z",
    }


@pytest.fixture
def sample_health_body() -> dict[str, Any]:
    """A degraded health monitor response with one repairable issue."""
    return {
        "success": True,
        "health_report": {
            "timestamp": "2024-06-10T06:13:20.000Z",
            "status": "degraded",
            "issues": [
                {
                    "severity": "high",
                    "category": "batch_processing",
                    "message": "2 batch run(s) stuck for >30min",
                    "affected_ids": ["batch-1", "batch-2"],
                    "auto_repair_available": True,
                },
                {
                    "severity": "medium",
                    "category": "configuration",
                    "message": "Multiple active SPG configurations (2) - may cause conflicts",
                    "auto_repair_available": False,
                },
            ],
            "metrics": {"batch_runs": {"total": 10, "stuck": 2}},
            "recommendations": [
                {
                    "category": "auto_repair",
                    "message": "1 issue(s) can be auto-repaired",
                    "action": "Run autoRepairService function to attempt automatic fixes",
                }
            ],
        },
        "logs": ["[2024-06-10T06:13:20.000Z] Health check complete"],
    }
