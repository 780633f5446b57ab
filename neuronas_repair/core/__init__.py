"""
Core module - configuration, constants, exceptions, logging and protocols.
"""

from neuronas_repair.core.config import (
    FunctionsConfig,
    HealthConfig,
    NeuronasConfig,
    RepairConfig,
    get_config,
    reset_config,
    set_config,
)
from neuronas_repair.core.constants import (
    DEFAULT_CATEGORY_ISSUE_TYPES,
    NETWORK_ERROR_MARKERS,
    FaultClass,
    FunctionName,
    HealthStatus,
    IssueType,
    LogLevel,
    RepairVerdict,
    RunState,
)
from neuronas_repair.core.exceptions import (
    AggregateFinalizedError,
    ChunkResponseError,
    CircuitBreakerOpenError,
    ConfigurationError,
    HealthCheckError,
    InvalidRepairRequestError,
    NetworkError,
    NeuronasError,
    RemoteFunctionError,
    RepairError,
    RepairRunInProgressError,
    TransportError,
)
from neuronas_repair.core.logging import (
    EventType,
    JsonFormatter,
    configure_logging,
    get_logger,
    log_event,
)
from neuronas_repair.core.protocols import FunctionInvoker, ProgressObserver

__all__ = [
    # Config
    "FunctionsConfig",
    "RepairConfig",
    "HealthConfig",
    "NeuronasConfig",
    "get_config",
    "set_config",
    "reset_config",
    # Constants
    "DEFAULT_CATEGORY_ISSUE_TYPES",
    "NETWORK_ERROR_MARKERS",
    "FaultClass",
    "FunctionName",
    "HealthStatus",
    "IssueType",
    "LogLevel",
    "RepairVerdict",
    "RunState",
    # Exceptions
    "NeuronasError",
    "ConfigurationError",
    "TransportError",
    "NetworkError",
    "RemoteFunctionError",
    "CircuitBreakerOpenError",
    "RepairError",
    "RepairRunInProgressError",
    "AggregateFinalizedError",
    "ChunkResponseError",
    "InvalidRepairRequestError",
    "HealthCheckError",
    # Logging
    "EventType",
    "JsonFormatter",
    "configure_logging",
    "get_logger",
    "log_event",
    # Protocols
    "FunctionInvoker",
    "ProgressObserver",
]
