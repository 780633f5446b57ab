"""
Repair module - chunked auto-repair orchestration.

This module contains:
    - driver: ChunkDriver running the chunk loop to a terminal state
    - aggregator: AggregateRepairReport running totals
    - faults: network vs fatal failure classification
    - progress: per-chunk progress snapshots
"""

from neuronas_repair.repair.aggregator import AggregateRepairReport, merge
from neuronas_repair.repair.driver import ChunkDriver
from neuronas_repair.repair.faults import TRANSIENT_STATUS_CODES, classify, is_network_error
from neuronas_repair.repair.progress import (
    ChunkOutcome,
    ProgressReporter,
    ProgressSnapshot,
    estimate_total_iterations,
    logging_observer,
)

__all__ = [
    # Driver
    "ChunkDriver",
    # Aggregation
    "AggregateRepairReport",
    "merge",
    # Faults
    "TRANSIENT_STATUS_CODES",
    "classify",
    "is_network_error",
    # Progress
    "ChunkOutcome",
    "ProgressReporter",
    "ProgressSnapshot",
    "estimate_total_iterations",
    "logging_observer",
]
