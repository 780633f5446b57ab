"""
Chunk driver for the backend auto-repair function.

The auto-repair function only processes a bounded number of items per
call and returns a resumption cursor. The driver issues one call at a
time, carries the cursor forward, merges each chunk into a single
AggregateRepairReport and stops when:

- the server reports ``has_more: false``            -> COMPLETED
- the iteration cap is reached                      -> CAPPED
- a chunk fails with a non-network error            -> FAILED

Network faults skip one chunk's worth of items and continue.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence
from typing import Any

from pydantic import ValidationError

from neuronas_repair.api.models import ChunkReport, LogEntry, RepairChunkRequest, RepairChunkResponse
from neuronas_repair.core.config import RepairConfig, get_config
from neuronas_repair.core.constants import FaultClass, IssueType, LogLevel, RunState
from neuronas_repair.core.exceptions import (
    ChunkResponseError,
    InvalidRepairRequestError,
    RemoteFunctionError,
    RepairRunInProgressError,
)
from neuronas_repair.core.logging import EventType, get_logger, log_event
from neuronas_repair.core.protocols import FunctionInvoker
from neuronas_repair.repair.aggregator import AggregateRepairReport
from neuronas_repair.repair.faults import classify
from neuronas_repair.repair.progress import ChunkOutcome, ProgressReporter, estimate_total_iterations

logger = get_logger(__name__)


class ChunkDriver:
    """Drives a chunked auto-repair run to a terminal state.

    A driver runs at most one repair at a time; starting a second run
    while one is in progress raises RepairRunInProgressError.

    Example:
        >>> with FunctionsClient() as client:
        ...     driver = ChunkDriver(client, reporter=ProgressReporter([logging_observer]))
        ...     report = driver.run_chunked_repair("missing_spg")
        ...     print(report.state, report.total_successful)
    """

    def __init__(
        self,
        invoker: FunctionInvoker,
        config: RepairConfig | None = None,
        *,
        reporter: ProgressReporter | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._invoker = invoker
        self._config = config or get_config().repair
        self._reporter = reporter or ProgressReporter(log_tail_size=self._config.log_tail_size)
        self._sleep = sleep
        self._lock = threading.Lock()
        self._state = RunState.IDLE
        self._last_report: AggregateRepairReport | None = None

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def config(self) -> RepairConfig:
        return self._config

    @property
    def last_report(self) -> AggregateRepairReport | None:
        """Report of the run in progress or of the most recent run."""
        return self._last_report

    def run_chunked_repair(
        self,
        issue_type: str | IssueType = IssueType.ALL,
        issue_ids: Sequence[str] | None = None,
    ) -> AggregateRepairReport:
        """Run the auto-repair function chunk by chunk until a stop condition.

        Args:
            issue_type: Repair category, or ``"all"``.
            issue_ids: Records to scope the repair to; empty means unscoped.

        Returns:
            The finalized report. ``iterations`` counts every request issued.

        Raises:
            InvalidRepairRequestError: If the arguments do not form a valid
                request; nothing is sent and the state is unchanged.
            RepairRunInProgressError: If this driver is already running.
        """
        issue_type_value = issue_type.value if isinstance(issue_type, IssueType) else issue_type
        template = self._build_request(issue_type_value, issue_ids)

        if not self._lock.acquire(blocking=False):
            current = self._last_report.iterations if self._last_report else None
            raise RepairRunInProgressError(iteration=current)

        try:
            self._state = RunState.RUNNING
            aggregate = AggregateRepairReport()
            self._last_report = aggregate

            log_event(
                logger,
                logging.INFO,
                EventType.REPAIR_START,
                issue_type_value,
                "starting chunked auto-repair",
                scoped_ids=len(template.issue_ids),
                max_items_per_call=self._config.max_items_per_call,
                max_iterations=self._config.max_iterations,
            )

            final_state = self._run_loop(aggregate, template)
            aggregate.finalize(final_state)
            self._state = final_state
            self._log_outcome(aggregate, issue_type_value)
            return aggregate
        except BaseException:
            # Unexpected errors end the run; the driver must be restartable
            self._state = RunState.FAILED
            raise
        finally:
            self._lock.release()

    def _build_request(self, issue_type: str, issue_ids: Sequence[str] | None) -> RepairChunkRequest:
        """Validate the run arguments once, as the request for the first chunk."""
        try:
            return RepairChunkRequest(
                issue_type=issue_type,
                issue_ids=list(issue_ids or []),
                max_items_per_call=self._config.max_items_per_call,
                resume_cursor=0,
            )
        except ValidationError as e:
            raise InvalidRepairRequestError(
                issue_type=issue_type,
                reason="; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()),
                cause=e,
            ) from e

    def _run_loop(self, aggregate: AggregateRepairReport, template: RepairChunkRequest) -> RunState:
        issue_type = template.issue_type
        budget = template.max_items_per_call
        cap = self._config.max_iterations
        cursor = 0
        iteration = 0

        while True:
            if iteration >= cap:
                return RunState.CAPPED

            iteration += 1
            aggregate.iterations = iteration
            request = template.model_copy(update={"resume_cursor": cursor})

            try:
                response, report = self._invoke_chunk(request, iteration)
            except Exception as e:
                if classify(e) is FaultClass.RETRYABLE_SKIP:
                    skipped_from = cursor
                    cursor += budget
                    aggregate.final_cursor = cursor
                    self._record_skip(aggregate, e, iteration, skipped_from, cursor, issue_type)
                    self._emit(iteration, aggregate, cursor, ChunkOutcome.SKIPPED)
                    if iteration < cap:
                        self._sleep(self._config.network_retry_delay_seconds)
                    continue

                self._record_fatal(aggregate, e, iteration, issue_type)
                self._emit(iteration, aggregate, cursor, ChunkOutcome.FAILED)
                return RunState.FAILED

            aggregate.merge(response)

            if report.next_cursor < cursor:
                logger.warning(
                    f"Ignoring cursor regression at chunk {iteration}: {report.next_cursor} < {cursor}"
                )
            else:
                cursor = report.next_cursor
            aggregate.final_cursor = cursor

            if report.processing_stats is not None:
                estimate = estimate_total_iterations(report.processing_stats.items_inspected, budget)
                if estimate is not None:
                    aggregate.estimated_total_iterations = estimate

            log_event(
                logger,
                logging.DEBUG,
                EventType.CHUNK_COMPLETE,
                issue_type,
                f"chunk {iteration} merged",
                successful=report.successful,
                failed=report.failed,
                has_more=report.has_more,
                next_cursor=cursor,
            )
            self._emit(iteration, aggregate, cursor, ChunkOutcome.MERGED)

            if not report.has_more:
                return RunState.COMPLETED
            if iteration < cap:
                self._sleep(self._config.inter_chunk_delay_seconds)

    def _invoke_chunk(
        self, request: RepairChunkRequest, iteration: int
    ) -> tuple[RepairChunkResponse, ChunkReport]:
        """Issue one chunk request and validate its response."""
        function_name = self._config.function_name
        body: Any = self._invoker.invoke(function_name, request.to_payload())

        try:
            response = RepairChunkResponse.model_validate(body)
        except ValidationError as e:
            raise ChunkResponseError(iteration=iteration, reason=f"{e.error_count()} validation error(s)", cause=e) from e

        if not response.success:
            raise RemoteFunctionError(
                function_name,
                reason=response.error or "auto-repair returned success=false",
            )

        report = response.report
        if report is None:
            raise ChunkResponseError(iteration=iteration, reason="successful response is missing repair_report")
        if report.attempted != report.successful + report.failed:
            raise ChunkResponseError(
                iteration=iteration,
                reason=(
                    f"attempted={report.attempted} does not equal "
                    f"successful={report.successful} + failed={report.failed}"
                ),
            )
        return response, report

    def _record_skip(
        self,
        aggregate: AggregateRepairReport,
        error: Exception,
        iteration: int,
        skipped_from: int,
        cursor: int,
        issue_type: str,
    ) -> None:
        message = f"Chunk {iteration} unreachable, skipping to cursor {cursor}: {error}"
        aggregate.add_log(
            LogEntry.now(
                LogLevel.WARNING,
                message,
                details={
                    "iteration": iteration,
                    "skipped_from": skipped_from,
                    "next_cursor": cursor,
                    "error_type": type(error).__name__,
                },
            )
        )
        log_event(logger, logging.WARNING, EventType.CHUNK_SKIPPED, issue_type, message)

    def _record_fatal(
        self,
        aggregate: AggregateRepairReport,
        error: Exception,
        iteration: int,
        issue_type: str,
    ) -> None:
        aggregate.record_fatal_error(error, iteration)
        aggregate.add_log(
            LogEntry.now(
                LogLevel.ERROR,
                f"Chunk {iteration} failed, stopping run: {error}",
                details={"iteration": iteration, "error_type": type(error).__name__},
            )
        )
        log_event(
            logger,
            logging.ERROR,
            EventType.CHUNK_FAILED,
            issue_type,
            str(error),
            iteration=iteration,
        )

    def _emit(self, iteration: int, aggregate: AggregateRepairReport, cursor: int, outcome: ChunkOutcome) -> None:
        self._reporter.report(
            iteration,
            aggregate.estimated_total_iterations,
            aggregate,
            self._reporter.log_tail(aggregate),
            cursor=cursor,
            outcome=outcome,
        )

    def _log_outcome(self, aggregate: AggregateRepairReport, issue_type: str) -> None:
        summary = (
            f"{aggregate.total_successful} ok / {aggregate.total_failed} failed "
            f"in {aggregate.iterations} chunk(s)"
        )
        if aggregate.state is RunState.COMPLETED:
            log_event(logger, logging.INFO, EventType.REPAIR_COMPLETE, issue_type, summary,
                      verdict=aggregate.verdict.value)
        elif aggregate.state is RunState.CAPPED:
            log_event(logger, logging.WARNING, EventType.REPAIR_CAPPED, issue_type,
                      f"iteration cap of {self._config.max_iterations} reached: {summary}",
                      next_cursor=aggregate.final_cursor)
        else:
            log_event(logger, logging.ERROR, EventType.REPAIR_FAILED, issue_type, summary,
                      errors=len(aggregate.all_errors))
