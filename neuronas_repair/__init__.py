"""
NEURONAS repair client.

Drives the backend auto-repair function chunk by chunk, with bounded
iterations, network-fault skipping and live progress, and reads the
system health monitor that reports repairable issues.

Package Structure:
    - core: Configuration, constants, exceptions, logging, protocols
    - api: Pydantic models for the backend function contracts
    - transport: HTTP client for named backend functions
    - repair: Chunk driver, result aggregation, fault handling, progress
    - health: System health monitor client

Example usage:
    from neuronas_repair import ChunkDriver, FunctionsClient

    with FunctionsClient() as client:
        report = ChunkDriver(client).run_chunked_repair("missing_spg")
"""

__version__ = "1.0.0"

from neuronas_repair.core.config import NeuronasConfig, get_config
from neuronas_repair.core.constants import IssueType, RepairVerdict, RunState
from neuronas_repair.core.exceptions import NeuronasError
from neuronas_repair.core.logging import configure_logging, get_logger
from neuronas_repair.health.monitor import HealthMonitor
from neuronas_repair.repair.aggregator import AggregateRepairReport
from neuronas_repair.repair.driver import ChunkDriver
from neuronas_repair.transport.client import FunctionsClient

__all__ = [
    # Version
    "__version__",
    # Config
    "get_config",
    "NeuronasConfig",
    # Constants
    "IssueType",
    "RepairVerdict",
    "RunState",
    # Exceptions
    "NeuronasError",
    # Logging
    "get_logger",
    "configure_logging",
    # Components
    "AggregateRepairReport",
    "ChunkDriver",
    "FunctionsClient",
    "HealthMonitor",
]
