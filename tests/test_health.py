"""
Tests for the system health monitor client.
"""

from __future__ import annotations

import pytest

from neuronas_repair.api import HealthIssue
from neuronas_repair.core import (
    HealthCheckError,
    HealthConfig,
    HealthStatus,
    NetworkError,
    RemoteFunctionError,
    RepairConfig,
    RepairError,
    RunState,
)
from neuronas_repair.health import HealthMonitor
from neuronas_repair.repair import ChunkDriver


@pytest.fixture
def health_config():
    return HealthConfig(refresh_interval_seconds=30.0)


class TestRunHealthCheck:
    """Tests for fetching health reports."""

    def test_returns_report(self, scripted_invoker, sample_health_body, health_config):
        invoker = scripted_invoker([sample_health_body])
        monitor = HealthMonitor(invoker, health_config)

        report = monitor.run_health_check()

        assert report.status == HealthStatus.DEGRADED
        assert monitor.last_report is report
        assert invoker.calls == [("systemHealthMonitor", {})]

    def test_network_error(self, scripted_invoker, health_config):
        invoker = scripted_invoker([NetworkError("systemHealthMonitor", reason="connection failed")])

        with pytest.raises(HealthCheckError) as exc_info:
            HealthMonitor(invoker, health_config).run_health_check()

        assert isinstance(exc_info.value.cause, NetworkError)

    def test_remote_error(self, scripted_invoker, health_config):
        invoker = scripted_invoker([RemoteFunctionError("systemHealthMonitor", reason="Unauthorized", status_code=401)])

        with pytest.raises(HealthCheckError, match="Unauthorized"):
            HealthMonitor(invoker, health_config).run_health_check()

    def test_unsuccessful_response(self, scripted_invoker, health_config):
        invoker = scripted_invoker([{"success": False, "error": "db unavailable"}])

        with pytest.raises(HealthCheckError, match="db unavailable"):
            HealthMonitor(invoker, health_config).run_health_check()

    def test_malformed_report(self, scripted_invoker, health_config):
        invoker = scripted_invoker([{"success": True, "health_report": {"status": "on_fire"}}])
        monitor = HealthMonitor(invoker, health_config)

        with pytest.raises(HealthCheckError, match="malformed"):
            monitor.run_health_check()
        assert monitor.last_report is None


class TestRepairIssue:
    """Tests for turning health issues into repair runs."""

    @pytest.mark.parametrize("category,expected", [
        ("batch_processing", "stuck_batches"),
        ("data_integrity", "missing_spg"),
        ("system_locks", "stale_locks"),
        ("stale_locks", "stale_locks"),
    ])
    def test_issue_type_for(self, scripted_invoker, health_config, category, expected):
        monitor = HealthMonitor(scripted_invoker([]), health_config)
        assert monitor.issue_type_for(HealthIssue(category=category)) == expected

    def test_repair_issue_scopes_run(self, scripted_invoker, chunk_body, sample_health_body, health_config, fake_sleep):
        invoker = scripted_invoker([sample_health_body, chunk_body(successful=2, next_skip=2)])
        monitor = HealthMonitor(invoker, health_config)
        driver = ChunkDriver(invoker, RepairConfig(), sleep=fake_sleep)

        issue = monitor.run_health_check().auto_repairable_issues()[0]
        report = monitor.repair_issue(driver, issue)

        assert report.state == RunState.COMPLETED
        function_name, payload = invoker.calls[1]
        assert function_name == "autoRepairService"
        assert payload["issue_type"] == "stuck_batches"
        assert payload["issue_ids"] == ["batch-1", "batch-2"]

    def test_non_repairable_issue(self, scripted_invoker, health_config, fake_sleep):
        invoker = scripted_invoker([])
        monitor = HealthMonitor(invoker, health_config)
        driver = ChunkDriver(invoker, RepairConfig(), sleep=fake_sleep)

        with pytest.raises(RepairError):
            monitor.repair_issue(driver, HealthIssue(category="configuration"))
        assert invoker.calls == []


class TestWatch:
    """Tests for fixed-interval health refresh."""

    def test_watch_runs_max_checks(self, scripted_invoker, sample_health_body, health_config, sleeps, fake_sleep):
        invoker = scripted_invoker([], default=sample_health_body)
        monitor = HealthMonitor(invoker, health_config, sleep=fake_sleep)
        reports = []

        checks = monitor.watch(reports.append, max_checks=3)

        assert checks == 3
        assert len(reports) == 3
        assert sleeps == [30.0, 30.0]

    def test_watch_survives_failed_check(self, scripted_invoker, sample_health_body, health_config, sleeps, fake_sleep):
        invoker = scripted_invoker([NetworkError("systemHealthMonitor"), sample_health_body])
        monitor = HealthMonitor(invoker, health_config, sleep=fake_sleep)
        reports = []

        checks = monitor.watch(reports.append, interval_seconds=5, max_checks=2)

        assert checks == 2
        assert len(reports) == 1
        assert sleeps == [5]
