"""
Per-chunk progress snapshots for repair observers.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from neuronas_repair.core.logging import EventType, get_logger, log_event
from neuronas_repair.core.protocols import ProgressObserver
from neuronas_repair.repair.aggregator import AggregateRepairReport

logger = get_logger(__name__)


class ChunkOutcome(str, Enum):
    """What happened to the chunk a snapshot reports on."""

    MERGED = "merged"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ProgressSnapshot:
    """State of a repair run right after one chunk iteration."""

    iteration: int
    estimated_total_iterations: int | None
    total_attempted: int
    total_successful: int
    total_failed: int
    success_rate: float
    cursor: int
    outcome: ChunkOutcome
    log_tail: tuple[str, ...] = ()

    @property
    def progress_fraction(self) -> float | None:
        """Completed share of the estimated iterations, if an estimate exists."""
        if not self.estimated_total_iterations:
            return None
        return min(1.0, self.iteration / self.estimated_total_iterations)

    def describe(self) -> str:
        if self.estimated_total_iterations:
            position = f"Chunk {self.iteration}/{self.estimated_total_iterations}"
        else:
            position = f"Chunk {self.iteration}"
        return (
            f"{position} {self.outcome.value}: {self.total_successful} ok / "
            f"{self.total_failed} failed ({self.success_rate * 100:.1f}%)"
        )


def estimate_total_iterations(items_inspected: int | None, per_call_item_budget: int) -> int | None:
    """Estimate how many chunks a run needs from the server's inspection count.

    No estimate is made before the server has inspected anything.
    """
    if not items_inspected or per_call_item_budget <= 0:
        return None
    return max(1, math.ceil(items_inspected / per_call_item_budget))


class ProgressReporter:
    """Fans progress snapshots out to observers, one per chunk iteration."""

    def __init__(
        self,
        observers: Iterable[ProgressObserver] = (),
        *,
        log_tail_size: int = 10,
    ) -> None:
        self._observers: list[ProgressObserver] = list(observers)
        self.log_tail_size = log_tail_size
        self.reports_emitted = 0

    def subscribe(self, observer: ProgressObserver) -> None:
        self._observers.append(observer)

    def log_tail(self, aggregate: AggregateRepairReport) -> list[str]:
        """The most recent log lines of a run, bounded for display."""
        return aggregate.plain_logs[-self.log_tail_size:]

    def report(
        self,
        current_iteration: int,
        estimated_total_iterations: int | None,
        aggregate: AggregateRepairReport,
        latest_log_tail: Iterable[str] | None = None,
        *,
        cursor: int | None = None,
        outcome: ChunkOutcome = ChunkOutcome.MERGED,
    ) -> ProgressSnapshot:
        """Build a snapshot and hand it to every observer."""
        if latest_log_tail is None:
            latest_log_tail = self.log_tail(aggregate)
        snapshot = ProgressSnapshot(
            iteration=current_iteration,
            estimated_total_iterations=estimated_total_iterations,
            total_attempted=aggregate.total_attempted,
            total_successful=aggregate.total_successful,
            total_failed=aggregate.total_failed,
            success_rate=aggregate.success_rate,
            cursor=aggregate.final_cursor if cursor is None else cursor,
            outcome=outcome,
            log_tail=tuple(latest_log_tail)[-self.log_tail_size:],
        )
        for observer in self._observers:
            observer(snapshot)
        self.reports_emitted += 1
        return snapshot


def logging_observer(snapshot: ProgressSnapshot) -> None:
    """Observer writing each snapshot to the process log."""
    level = logging.WARNING if snapshot.outcome is not ChunkOutcome.MERGED else logging.INFO
    log_event(
        logger,
        level,
        EventType.CHUNK_PROGRESS,
        "auto-repair",
        snapshot.describe(),
        cursor=snapshot.cursor,
    )
