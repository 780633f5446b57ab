"""
Pydantic data models for the backend function contracts.

This module defines the wire format for:
- Auto-repair chunk requests and responses
- Structured log entries emitted by the backend functions
- System health reports

Field names on the Python side follow the repair client's vocabulary
(``attempted``, ``next_cursor``...); the wire names used by the backend
(``repairs_attempted``, ``next_skip``...) are accepted as aliases.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from neuronas_repair.core.constants import HealthStatus, LogLevel

# =============================================================================
# Log Models
# =============================================================================


class LogEntry(BaseModel):
    """Structured log line produced by a backend function.

    The backend stamps entries with epoch milliseconds and adds an
    ``iso_time`` copy; both are normalised to an ISO-8601 ``timestamp``.
    """

    model_config = ConfigDict(extra="allow")

    timestamp: str = Field(..., description="ISO-8601 timestamp")
    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    message: str = Field(..., description="Human-readable message")
    details: dict[str, Any] | None = Field(None, description="Structured context")

    @model_validator(mode="before")
    @classmethod
    def prefer_iso_time(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("iso_time"):
            data = {**data, "timestamp": data["iso_time"]}
        return data

    @field_validator("timestamp", mode="before")
    @classmethod
    def normalize_timestamp(cls, v: Any) -> Any:
        """Convert epoch milliseconds or datetimes to ISO-8601 strings."""
        if isinstance(v, datetime):
            return v.isoformat()
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return datetime.fromtimestamp(v / 1000, tz=timezone.utc).isoformat()
        return v

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        """Accept lowercase levels and fold unknown ones into INFO."""
        if isinstance(v, str):
            upper = v.upper()
            if upper in LogLevel.__members__:
                return upper
            return LogLevel.INFO
        return v

    def format_line(self) -> str:
        """Render the entry the way the backend renders its plain logs."""
        return f"[{self.timestamp}] [{self.level.value}] {self.message}"

    @classmethod
    def now(cls, level: LogLevel, message: str, details: dict[str, Any] | None = None) -> LogEntry:
        """Create an entry stamped with the current UTC time."""
        return cls(
            timestamp=datetime.now(timezone.utc).isoformat(),
            level=level,
            message=message,
            details=details,
        )


# =============================================================================
# Repair Models
# =============================================================================


class ProcessingStats(BaseModel):
    """Server-side bookkeeping attached to a chunk report."""

    model_config = ConfigDict(extra="allow")

    items_inspected: int | None = Field(
        None,
        ge=0,
        validation_alias=AliasChoices("items_inspected", "benchmarks_inspected"),
        description="Total items the server looked at to build the work list",
    )


class ChunkReport(BaseModel):
    """Results of one bounded repair call."""

    model_config = ConfigDict(extra="allow")

    attempted: int = Field(0, ge=0, validation_alias=AliasChoices("attempted", "repairs_attempted"))
    successful: int = Field(0, ge=0, validation_alias=AliasChoices("successful", "repairs_successful"))
    failed: int = Field(0, ge=0, validation_alias=AliasChoices("failed", "repairs_failed"))
    details: list[dict[str, Any]] = Field(default_factory=list)
    errors: list[dict[str, Any]] = Field(default_factory=list)
    has_more: bool = Field(False, description="Whether further chunks remain")
    next_cursor: int = Field(
        ...,
        ge=0,
        validation_alias=AliasChoices("next_cursor", "next_skip"),
        description="Resumption cursor for the next request",
    )
    processing_stats: ProcessingStats | None = None

    @field_validator("details", "errors", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class RepairChunkRequest(BaseModel):
    """Request body for one chunk of the auto-repair function."""

    issue_type: str = Field("all", min_length=1)
    issue_ids: list[str] = Field(default_factory=list)
    max_items_per_call: int = Field(20, gt=0)
    resume_cursor: int = Field(0, ge=0)

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the field names the backend expects."""
        return {
            "issue_type": self.issue_type,
            "issue_ids": list(self.issue_ids),
            "max_repairs_per_call": self.max_items_per_call,
            "skip_count": self.resume_cursor,
        }


class RepairChunkResponse(BaseModel):
    """Decoded response of one auto-repair chunk call."""

    model_config = ConfigDict(extra="allow")

    success: bool
    report: ChunkReport | None = Field(
        None, validation_alias=AliasChoices("report", "repair_report")
    )
    structured_logs: list[LogEntry] = Field(
        default_factory=list, validation_alias=AliasChoices("structured_logs", "detailed_logs")
    )
    plain_logs: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("plain_logs", "logs")
    )
    error: str | None = None

    @field_validator("structured_logs", "plain_logs", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @model_validator(mode="after")
    def validate_report_present(self) -> RepairChunkResponse:
        """A successful response must carry a repair report."""
        if self.success and self.report is None:
            raise ValueError("successful response is missing repair_report")
        return self


# =============================================================================
# Health Models
# =============================================================================


class HealthIssue(BaseModel):
    """A single problem found by the health monitor."""

    model_config = ConfigDict(extra="allow")

    severity: str = Field("medium", description="low, medium, high or critical")
    category: str = Field(..., description="Issue category, e.g. batch_processing")
    message: str = Field("", description="Human-readable description")
    affected_ids: list[str] = Field(default_factory=list)
    auto_repair_available: bool = False

    @property
    def is_critical(self) -> bool:
        return self.severity in ("high", "critical")


class HealthRecommendation(BaseModel):
    """Follow-up suggested by the health monitor."""

    model_config = ConfigDict(extra="allow")

    category: str
    message: str
    action: str | None = None


class HealthReport(BaseModel):
    """Snapshot of system health."""

    model_config = ConfigDict(extra="allow")

    timestamp: str | None = None
    status: HealthStatus
    issues: list[HealthIssue] = Field(default_factory=list)
    metrics: dict[str, Any] = Field(default_factory=dict)
    recommendations: list[HealthRecommendation] = Field(default_factory=list)

    def auto_repairable_issues(self) -> list[HealthIssue]:
        """Issues the auto-repair function can attempt to fix."""
        return [issue for issue in self.issues if issue.auto_repair_available]

    def critical_issues(self) -> list[HealthIssue]:
        return [issue for issue in self.issues if issue.is_critical]


class HealthCheckResponse(BaseModel):
    """Decoded response of the health monitor function."""

    model_config = ConfigDict(extra="allow")

    success: bool
    health_report: HealthReport | None = None
    logs: list[str] = Field(default_factory=list)
    error: str | None = None
