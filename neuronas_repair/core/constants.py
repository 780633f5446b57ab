"""
Shared enumerations and default values for the repair client.
"""

from __future__ import annotations

from enum import Enum
from typing import Final


class RunState(str, Enum):
    """Lifecycle of a single chunked repair run."""

    IDLE = "IDLE"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    CAPPED = "CAPPED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.COMPLETED, RunState.CAPPED, RunState.FAILED)


class FaultClass(str, Enum):
    """Outcome of classifying a chunk-level failure."""

    RETRYABLE_SKIP = "RETRYABLE_SKIP"
    FATAL = "FATAL"


class LogLevel(str, Enum):
    """Levels used by the remote functions in their structured logs."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    PROGRESS = "PROGRESS"
    SUCCESS = "SUCCESS"
    SYSTEM = "SYSTEM"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class IssueType(str, Enum):
    """Repair categories understood by the auto-repair function."""

    ALL = "all"
    MISSING_SPG = "missing_spg"
    STUCK_BATCHES = "stuck_batches"
    STALE_LOCKS = "stale_locks"


class HealthStatus(str, Enum):
    """Overall status reported by the health monitor function."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class RepairVerdict(str, Enum):
    """User-facing reading of a finished repair run."""

    FULL_SUCCESS = "full_success"
    PARTIAL_SUCCESS = "partial_success"
    FAILED = "failed"
    NO_WORK = "no_work"


class FunctionName:
    """Names of the backend functions this client drives."""

    AUTO_REPAIR: Final = "autoRepairService"
    HEALTH_MONITOR: Final = "systemHealthMonitor"


# Health monitor categories that map onto a different repair issue type.
# Categories not listed are sent to the repair function unchanged.
DEFAULT_CATEGORY_ISSUE_TYPES: dict[str, str] = {
    "batch_processing": IssueType.STUCK_BATCHES.value,
    "data_integrity": IssueType.MISSING_SPG.value,
    "system_locks": IssueType.STALE_LOCKS.value,
}

# Substrings identifying a network-level failure in an error message
NETWORK_ERROR_MARKERS: Final[tuple[str, ...]] = (
    "network error",
    "timed out",
    "timeout",
    "connection reset",
    "connection refused",
    "connection aborted",
)
