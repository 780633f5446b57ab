"""
Tests for API Pydantic models.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from neuronas_repair.api import (
    ChunkReport,
    HealthCheckResponse,
    HealthIssue,
    HealthReport,
    LogEntry,
    RepairChunkRequest,
    RepairChunkResponse,
)
from neuronas_repair.core import HealthStatus, LogLevel


class TestLogEntry:
    """Tests for structured backend log entries."""

    def test_prefers_iso_time(self, sample_log_entry):
        """The backend's ISO copy of the timestamp wins over epoch millis."""
        entry = LogEntry.model_validate(sample_log_entry)
        assert entry.timestamp == "2024-06-10T06:13:20.000Z"
        assert entry.level == LogLevel.SUCCESS
        assert entry.details["spg_value"] == 0.8123

    def test_epoch_millis_timestamp(self):
        entry = LogEntry.model_validate({"timestamp": 1718000000000, "level": "INFO", "message": "x"})
        assert entry.timestamp == "2024-06-10T06:13:20+00:00"

    def test_datetime_timestamp(self):
        moment = datetime(2024, 6, 10, 6, 13, 20, tzinfo=timezone.utc)
        entry = LogEntry(timestamp=moment, message="x")
        assert entry.timestamp == moment.isoformat()

    @pytest.mark.parametrize("raw,expected", [
        ("warning", LogLevel.WARNING),
        ("PROGRESS", LogLevel.PROGRESS),
        ("verbose", LogLevel.INFO),
    ])
    def test_level_normalization(self, raw, expected):
        """Levels are case-insensitive and unknown levels become INFO."""
        entry = LogEntry.model_validate({"timestamp": "t", "level": raw, "message": "x"})
        assert entry.level == expected

    def test_message_required(self):
        with pytest.raises(ValidationError):
            LogEntry.model_validate({"timestamp": "t", "level": "INFO"})

    def test_format_line(self):
        entry = LogEntry(timestamp="2024-06-10T06:13:20Z", level=LogLevel.ERROR, message="boom")
        assert entry.format_line() == "[2024-06-10T06:13:20Z] [ERROR] boom"

    def test_now(self):
        entry = LogEntry.now(LogLevel.WARNING, "skipped", {"iteration": 3})
        assert entry.level == LogLevel.WARNING
        assert entry.details == {"iteration": 3}
        assert datetime.fromisoformat(entry.timestamp).tzinfo is not None


class TestRepairChunkRequest:
    """Tests for the chunk request payload."""

    def test_to_payload_uses_backend_names(self):
        request = RepairChunkRequest(
            issue_type="stuck_batches",
            issue_ids=["batch-1"],
            max_items_per_call=10,
            resume_cursor=30,
        )
        assert request.to_payload() == {
            "issue_type": "stuck_batches",
            "issue_ids": ["batch-1"],
            "max_repairs_per_call": 10,
            "skip_count": 30,
        }

    def test_defaults(self):
        payload = RepairChunkRequest().to_payload()
        assert payload["issue_type"] == "all"
        assert payload["issue_ids"] == []
        assert payload["max_repairs_per_call"] == 20
        assert payload["skip_count"] == 0

    def test_negative_cursor_rejected(self):
        with pytest.raises(ValidationError):
            RepairChunkRequest(resume_cursor=-1)

    def test_zero_budget_rejected(self):
        with pytest.raises(ValidationError):
            RepairChunkRequest(max_items_per_call=0)


class TestChunkReport:
    """Tests for chunk report decoding."""

    def test_wire_aliases(self, chunk_body):
        body = chunk_body(successful=4, failed=1, has_more=True, next_skip=20, inspected=57)
        report = ChunkReport.model_validate(body["repair_report"])

        assert report.attempted == 5
        assert report.successful == 4
        assert report.failed == 1
        assert report.has_more is True
        assert report.next_cursor == 20
        assert report.processing_stats.items_inspected == 57

    def test_next_cursor_required(self):
        with pytest.raises(ValidationError):
            ChunkReport.model_validate({"repairs_attempted": 0, "has_more": False})

    def test_null_lists_become_empty(self):
        report = ChunkReport.model_validate({"next_skip": 0, "details": None, "errors": None})
        assert report.details == []
        assert report.errors == []

    def test_negative_counts_rejected(self):
        with pytest.raises(ValidationError):
            ChunkReport.model_validate({"next_skip": 0, "repairs_failed": -1})

    def test_has_more_defaults_to_false(self):
        assert ChunkReport.model_validate({"next_skip": 5}).has_more is False


class TestRepairChunkResponse:
    """Tests for the chunk response envelope."""

    def test_successful_response(self, chunk_body, sample_log_entry):
        body = chunk_body(successful=1, next_skip=1, logs=["line"], detailed_logs=[sample_log_entry])
        response = RepairChunkResponse.model_validate(body)

        assert response.success
        assert response.report.successful == 1
        assert response.plain_logs == ["line"]
        assert response.structured_logs[0].message.startswith("SPG CALCULATED")

    def test_missing_logs_default_to_empty(self, chunk_body):
        response = RepairChunkResponse.model_validate(chunk_body())
        assert response.plain_logs == []
        assert response.structured_logs == []

    def test_success_requires_report(self):
        with pytest.raises(ValidationError):
            RepairChunkResponse.model_validate({"success": True})

    def test_failure_without_report(self):
        response = RepairChunkResponse.model_validate({"success": False, "error": "Unauthorized"})
        assert not response.success
        assert response.report is None
        assert response.error == "Unauthorized"


class TestHealthModels:
    """Tests for health monitor models."""

    def test_health_report(self, sample_health_body):
        response = HealthCheckResponse.model_validate(sample_health_body)
        report = response.health_report

        assert report.status == HealthStatus.DEGRADED
        assert len(report.issues) == 2
        assert report.metrics["batch_runs"]["stuck"] == 2
        assert report.recommendations[0].category == "auto_repair"

    def test_auto_repairable_issues(self, sample_health_body):
        report = HealthReport.model_validate(sample_health_body["health_report"])
        repairable = report.auto_repairable_issues()

        assert [issue.category for issue in repairable] == ["batch_processing"]
        assert repairable[0].affected_ids == ["batch-1", "batch-2"]

    def test_critical_issues(self, sample_health_body):
        report = HealthReport.model_validate(sample_health_body["health_report"])
        assert [issue.severity for issue in report.critical_issues()] == ["high"]

    def test_issue_defaults(self):
        issue = HealthIssue(category="data_integrity")
        assert issue.severity == "medium"
        assert issue.affected_ids == []
        assert not issue.auto_repair_available
        assert not issue.is_critical

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            HealthReport.model_validate({"status": "on_fire"})
