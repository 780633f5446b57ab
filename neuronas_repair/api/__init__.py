"""
API module - data models for the backend function contracts.

This module contains:
    - models: Pydantic models for repair and health payloads
"""

from neuronas_repair.api.models import (
    ChunkReport,
    HealthCheckResponse,
    HealthIssue,
    HealthRecommendation,
    HealthReport,
    LogEntry,
    ProcessingStats,
    RepairChunkRequest,
    RepairChunkResponse,
)

__all__ = [
    # Logs
    "LogEntry",
    # Repair
    "ProcessingStats",
    "ChunkReport",
    "RepairChunkRequest",
    "RepairChunkResponse",
    # Health
    "HealthIssue",
    "HealthRecommendation",
    "HealthReport",
    "HealthCheckResponse",
]
