"""
Running totals for a chunked repair run.

One AggregateRepairReport is owned by one run of the chunk driver. Every
successful chunk response is merged exactly once; details, errors and
logs are kept append-only in arrival order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from neuronas_repair.api.models import LogEntry, RepairChunkResponse
from neuronas_repair.core.constants import RepairVerdict, RunState
from neuronas_repair.core.exceptions import AggregateFinalizedError, RepairError


@dataclass
class AggregateRepairReport:
    """Accumulated results of every chunk of one repair run."""

    total_attempted: int = 0
    total_successful: int = 0
    total_failed: int = 0
    all_details: list[dict[str, Any]] = field(default_factory=list)
    all_errors: list[dict[str, Any]] = field(default_factory=list)
    structured_logs: list[LogEntry] = field(default_factory=list)
    plain_logs: list[str] = field(default_factory=list)

    # Number of chunk requests issued, whatever their outcome
    iterations: int = 0
    chunks_merged: int = 0
    final_cursor: int = 0
    estimated_total_iterations: int | None = None
    state: RunState = RunState.RUNNING

    _finalized: bool = field(default=False, repr=False)

    @property
    def success_rate(self) -> float:
        """Fraction of attempted repairs that succeeded (0.0 when none attempted)."""
        if self.total_attempted == 0:
            return 0.0
        return self.total_successful / self.total_attempted

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    @property
    def cap_reached(self) -> bool:
        return self.state is RunState.CAPPED

    @property
    def verdict(self) -> RepairVerdict:
        """Reading of the run for the operator.

        No successes with failures (or a fatal stop) is a failed run; successes
        mixed with failures, or cut short before completion, are partial.
        """
        if self.total_successful == 0 and (self.total_failed > 0 or self.state is RunState.FAILED):
            return RepairVerdict.FAILED
        if self.total_successful > 0 and (self.total_failed > 0 or self.state is not RunState.COMPLETED):
            return RepairVerdict.PARTIAL_SUCCESS
        if self.total_successful > 0:
            return RepairVerdict.FULL_SUCCESS
        return RepairVerdict.NO_WORK

    def _ensure_open(self) -> None:
        if self._finalized:
            raise AggregateFinalizedError(self.state.value)

    def merge(self, response: RepairChunkResponse) -> AggregateRepairReport:
        """Fold one successful chunk response into the running totals.

        Counts are validated before anything is written so the three totals
        always move together.

        Raises:
            AggregateFinalizedError: If the run has already been finalized.
            RepairError: If the response is unsuccessful or its counts do not add up.
        """
        self._ensure_open()
        if not response.success or response.report is None:
            raise RepairError("Only successful chunk responses can be merged")

        report = response.report
        if report.attempted != report.successful + report.failed:
            raise RepairError(
                "Chunk counts do not add up",
                context={
                    "attempted": report.attempted,
                    "successful": report.successful,
                    "failed": report.failed,
                },
            )

        attempted = self.total_attempted + report.attempted
        successful = self.total_successful + report.successful
        failed = self.total_failed + report.failed
        self.total_attempted, self.total_successful, self.total_failed = attempted, successful, failed

        self.all_details.extend(report.details)
        self.all_errors.extend(report.errors)
        self.structured_logs.extend(response.structured_logs)
        self.plain_logs.extend(response.plain_logs)
        self.chunks_merged += 1
        return self

    def add_log(self, entry: LogEntry) -> None:
        """Append a client-side log entry to both log streams."""
        self._ensure_open()
        self.structured_logs.append(entry)
        self.plain_logs.append(entry.format_line())

    def record_fatal_error(self, error: BaseException | str, iteration: int) -> None:
        """Record the error that stopped the run."""
        self._ensure_open()
        entry: dict[str, Any] = {"error": str(error), "iteration": iteration}
        if isinstance(error, BaseException):
            entry["error_type"] = type(error).__name__
        self.all_errors.append(entry)

    def finalize(self, state: RunState) -> AggregateRepairReport:
        """Freeze the report in its terminal state."""
        if not state.is_terminal:
            raise RepairError("A repair report can only be finalized in a terminal state", context={"state": state.value})
        self._ensure_open()
        self.state = state
        self._finalized = True
        return self

    def to_dict(self) -> dict[str, Any]:
        """Consolidated report for display or JSON output."""
        return {
            "state": self.state.value,
            "verdict": self.verdict.value,
            "repairs_attempted": self.total_attempted,
            "repairs_successful": self.total_successful,
            "repairs_failed": self.total_failed,
            "success_rate": self.success_rate,
            "success_rate_percent": round(self.success_rate * 100, 1),
            "iterations": self.iterations,
            "chunks_merged": self.chunks_merged,
            "cap_reached": self.cap_reached,
            "final_cursor": self.final_cursor,
            "details": list(self.all_details),
            "errors": list(self.all_errors),
        }


def merge(aggregate: AggregateRepairReport, response: RepairChunkResponse) -> AggregateRepairReport:
    """Merge a chunk response into an aggregate (see AggregateRepairReport.merge)."""
    return aggregate.merge(response)
