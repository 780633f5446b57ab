"""
Client for the backend system health monitor.

The monitor reports overall status plus a list of issues, some of which
the auto-repair function can fix. This module fetches that report, maps
repairable issues onto repair runs and offers a fixed-interval refresh.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from pydantic import ValidationError

from neuronas_repair.api.models import HealthCheckResponse, HealthIssue, HealthReport
from neuronas_repair.core.config import HealthConfig, get_config
from neuronas_repair.core.constants import HealthStatus
from neuronas_repair.core.exceptions import HealthCheckError, RepairError, TransportError
from neuronas_repair.core.logging import EventType, get_logger, log_event
from neuronas_repair.core.protocols import FunctionInvoker

if TYPE_CHECKING:
    from neuronas_repair.repair.aggregator import AggregateRepairReport
    from neuronas_repair.repair.driver import ChunkDriver

logger = get_logger(__name__)

_STATUS_LOG_LEVELS: dict[HealthStatus, int] = {
    HealthStatus.HEALTHY: logging.INFO,
    HealthStatus.DEGRADED: logging.WARNING,
    HealthStatus.UNHEALTHY: logging.ERROR,
}


class HealthMonitor:
    """Runs health checks and hands repairable issues to a chunk driver."""

    def __init__(
        self,
        invoker: FunctionInvoker,
        config: HealthConfig | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._invoker = invoker
        self._config = config or get_config().health
        self._sleep = sleep
        self.last_report: HealthReport | None = None

    def run_health_check(self) -> HealthReport:
        """Invoke the health monitor function and return its report.

        Raises:
            HealthCheckError: If the function is unreachable, fails, or
                returns a malformed report.
        """
        function_name = self._config.function_name
        try:
            body = self._invoker.invoke(function_name, {})
        except TransportError as e:
            raise HealthCheckError(reason=e.message, cause=e) from e

        try:
            response = HealthCheckResponse.model_validate(body)
        except ValidationError as e:
            raise HealthCheckError(reason="malformed health report", cause=e) from e

        if not response.success or response.health_report is None:
            raise HealthCheckError(reason=response.error or "health check returned success=false")

        report = response.health_report
        self.last_report = report
        log_event(
            logger,
            _STATUS_LOG_LEVELS[report.status],
            EventType.HEALTH_CHECK,
            function_name,
            f"system {report.status.value}",
            issues=len(report.issues),
            auto_repairable=len(report.auto_repairable_issues()),
        )
        return report

    def issue_type_for(self, issue: HealthIssue) -> str:
        """Repair issue type matching a health issue's category."""
        return self._config.category_issue_types.get(issue.category, issue.category)

    def repair_issue(self, driver: ChunkDriver, issue: HealthIssue) -> AggregateRepairReport:
        """Run a chunked repair scoped to one health issue.

        Raises:
            RepairError: If the issue is not auto-repairable.
        """
        if not issue.auto_repair_available:
            raise RepairError(
                "Issue is not auto-repairable",
                context={"category": issue.category},
            )
        return driver.run_chunked_repair(self.issue_type_for(issue), issue.affected_ids)

    def watch(
        self,
        on_report: Callable[[HealthReport], None],
        *,
        interval_seconds: float | None = None,
        max_checks: int | None = None,
    ) -> int:
        """Re-run the health check on a fixed interval.

        A failed check is logged and the next one still runs.

        Args:
            on_report: Called with every report obtained.
            interval_seconds: Delay between checks; defaults to the configured interval.
            max_checks: Stop after this many checks; None runs until interrupted.

        Returns:
            Number of checks performed.
        """
        interval = self._config.refresh_interval_seconds if interval_seconds is None else interval_seconds
        checks = 0
        while max_checks is None or checks < max_checks:
            checks += 1
            try:
                on_report(self.run_health_check())
            except HealthCheckError as e:
                logger.error(f"Health check {checks} failed: {e}")
            if max_checks is None or checks < max_checks:
                self._sleep(interval)
        return checks
