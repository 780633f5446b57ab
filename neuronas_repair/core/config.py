"""
Configuration for the repair client.

Every setting is resolved from three sources, highest priority first:

1. Environment variables (``NEURONAS_*``, ``REPAIR_*``, ``HEALTH_*``)
2. A JSON config file with ``functions``, ``repair`` and ``health`` sections
3. Dataclass defaults

The config file is ``$CONFIG_FILE`` when set, otherwise the first of
CONFIG_FILE_PATHS that exists.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from neuronas_repair.core.constants import DEFAULT_CATEGORY_ISSUE_TYPES, FunctionName
from neuronas_repair.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILE_PATHS = [
    Path("config.json"),
    Path("./config/config.json"),
    Path.home() / ".neuronas" / "config.json",
    Path("/etc/neuronas/config.json"),
]


def _find_config_file() -> Path | None:
    """Locate the config file to load, if any."""
    env_path = os.getenv("CONFIG_FILE")
    if env_path:
        path = Path(env_path)
        if path.exists():
            return path
        logger.warning(f"CONFIG_FILE points to a missing file, ignoring it: {env_path}")

    return next((path for path in CONFIG_FILE_PATHS if path.exists()), None)


def _load_config_file() -> dict[str, Any]:
    """Parsed contents of the config file, or an empty dict without one."""
    path = _find_config_file()
    if path is None:
        return {}
    with path.open() as f:
        return json.load(f)


def _get_env_or_config(
    env_key: str,
    section: dict[str, Any],
    config_key: str,
    default: Any,
    type_cast: type | None = None,
) -> Any:
    """Resolve one setting from the environment, a config section or the default.

    Raises:
        ConfigurationError: If the environment value cannot be cast.
    """
    raw = os.getenv(env_key)
    if raw is None:
        return section.get(config_key, default)
    if type_cast is None:
        return raw
    try:
        return type_cast(raw)
    except ValueError as e:
        raise ConfigurationError(env_key, value=raw, reason=str(e)) from e


@dataclass(frozen=True)
class FunctionsConfig:
    """Configuration for the backend functions HTTP client."""

    endpoint: str = "https://app.base44.com"
    app_id: str = ""
    api_token: str | None = None
    timeout_seconds: int = 60
    max_retries: int = 2
    pool_connections: int = 4
    pool_maxsize: int = 4
    circuit_breaker_threshold: int = 5
    circuit_breaker_timeout_seconds: int = 300
    retry_backoff_factor: float = 0.3
    retry_status_forcelist: tuple[int, ...] = (502, 503, 504)

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            raise ConfigurationError("functions.timeout_seconds", value=self.timeout_seconds, reason="must be positive")
        if self.max_retries < 0:
            raise ConfigurationError("functions.max_retries", value=self.max_retries, reason="must not be negative")

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> FunctionsConfig:
        """Create configuration from config dict with environment overrides."""
        fn_config = config.get("functions", {})
        return cls(
            endpoint=_get_env_or_config("NEURONAS_ENDPOINT", fn_config, "endpoint", cls.endpoint),
            app_id=_get_env_or_config("NEURONAS_APP_ID", fn_config, "app_id", cls.app_id),
            api_token=_get_env_or_config("NEURONAS_API_TOKEN", fn_config, "api_token", cls.api_token),
            timeout_seconds=_get_env_or_config("NEURONAS_TIMEOUT", fn_config, "timeout_seconds", cls.timeout_seconds, int),
            max_retries=fn_config.get("max_retries", cls.max_retries),
            pool_connections=fn_config.get("pool_connections", cls.pool_connections),
            pool_maxsize=fn_config.get("pool_maxsize", cls.pool_maxsize),
            circuit_breaker_threshold=fn_config.get("circuit_breaker_threshold", cls.circuit_breaker_threshold),
            circuit_breaker_timeout_seconds=fn_config.get("circuit_breaker_timeout_seconds", cls.circuit_breaker_timeout_seconds),
            retry_backoff_factor=fn_config.get("retry_backoff_factor", cls.retry_backoff_factor),
            retry_status_forcelist=tuple(fn_config.get("retry_status_forcelist", cls.retry_status_forcelist)),
        )

    @classmethod
    def from_env(cls) -> FunctionsConfig:
        """Create configuration from config file and environment variables."""
        return cls.from_config(_load_config_file())


@dataclass(frozen=True)
class RepairConfig:
    """Configuration for the chunked auto-repair loop."""

    function_name: str = FunctionName.AUTO_REPAIR
    max_items_per_call: int = 20
    max_iterations: int = 20  # Safety cap on chunk requests per run
    inter_chunk_delay_seconds: float = 1.5
    network_retry_delay_seconds: float = 2.0
    log_tail_size: int = 10

    def __post_init__(self) -> None:
        if self.max_items_per_call <= 0:
            raise ConfigurationError("repair.max_items_per_call", value=self.max_items_per_call, reason="must be positive")
        if self.max_iterations <= 0:
            raise ConfigurationError("repair.max_iterations", value=self.max_iterations, reason="must be positive")
        if self.inter_chunk_delay_seconds < 0:
            raise ConfigurationError(
                "repair.inter_chunk_delay_seconds", value=self.inter_chunk_delay_seconds, reason="must not be negative"
            )
        if self.network_retry_delay_seconds < 0:
            raise ConfigurationError(
                "repair.network_retry_delay_seconds", value=self.network_retry_delay_seconds, reason="must not be negative"
            )
        if self.log_tail_size <= 0:
            raise ConfigurationError("repair.log_tail_size", value=self.log_tail_size, reason="must be positive")

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> RepairConfig:
        """Create configuration from config dict with environment overrides."""
        repair_config = config.get("repair", {})
        return cls(
            function_name=repair_config.get("function_name", cls.function_name),
            max_items_per_call=_get_env_or_config(
                "REPAIR_MAX_ITEMS_PER_CALL", repair_config, "max_items_per_call", cls.max_items_per_call, int
            ),
            max_iterations=_get_env_or_config(
                "REPAIR_MAX_ITERATIONS", repair_config, "max_iterations", cls.max_iterations, int
            ),
            inter_chunk_delay_seconds=_get_env_or_config(
                "REPAIR_CHUNK_DELAY", repair_config, "inter_chunk_delay_seconds", cls.inter_chunk_delay_seconds, float
            ),
            network_retry_delay_seconds=repair_config.get(
                "network_retry_delay_seconds", cls.network_retry_delay_seconds
            ),
            log_tail_size=repair_config.get("log_tail_size", cls.log_tail_size),
        )

    @classmethod
    def from_env(cls) -> RepairConfig:
        """Create configuration from config file and environment variables."""
        return cls.from_config(_load_config_file())


@dataclass(frozen=True)
class HealthConfig:
    """Configuration for the system health monitor client."""

    function_name: str = FunctionName.HEALTH_MONITOR
    refresh_interval_seconds: float = 30.0

    # Health categories whose repair issue type differs from the category name
    category_issue_types: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_CATEGORY_ISSUE_TYPES)
    )

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> HealthConfig:
        """Create configuration from config dict with environment overrides."""
        health_config = config.get("health", {})
        category_issue_types = dict(DEFAULT_CATEGORY_ISSUE_TYPES)
        category_issue_types.update(health_config.get("category_issue_types", {}))
        return cls(
            function_name=health_config.get("function_name", cls.function_name),
            refresh_interval_seconds=_get_env_or_config(
                "HEALTH_REFRESH_INTERVAL", health_config, "refresh_interval_seconds", cls.refresh_interval_seconds, float
            ),
            category_issue_types=category_issue_types,
        )


@dataclass
class NeuronasConfig:
    """Root configuration: functions client, repair loop and health monitor."""

    functions: FunctionsConfig = field(default_factory=FunctionsConfig)
    repair: RepairConfig = field(default_factory=RepairConfig)
    health: HealthConfig = field(default_factory=HealthConfig)

    # File the values were read from, if any
    config_file_path: str | None = None

    @classmethod
    def from_file(cls, file_path: str | Path) -> NeuronasConfig:
        """Load a specific JSON file; environment variables still take priority.

        Raises:
            FileNotFoundError: If the file does not exist.
            json.JSONDecodeError: If the file is not valid JSON.
        """
        path = Path(file_path)
        with path.open() as f:
            return cls.from_config(json.load(f), config_file_path=str(path))

    @classmethod
    def from_config(cls, config: dict[str, Any], config_file_path: str | None = None) -> NeuronasConfig:
        return cls(
            functions=FunctionsConfig.from_config(config),
            repair=RepairConfig.from_config(config),
            health=HealthConfig.from_config(config),
            config_file_path=config_file_path,
        )

    @classmethod
    def from_env(cls) -> NeuronasConfig:
        """Load the discovered config file (if any) under environment overrides."""
        path = _find_config_file()
        if path is None:
            return cls.from_config({})
        return cls.from_file(path)

    @classmethod
    def default(cls) -> NeuronasConfig:
        """Defaults only; neither files nor environment are read."""
        return cls()


_config: NeuronasConfig | None = None


def get_config() -> NeuronasConfig:
    """Process-wide configuration, loaded on first access."""
    global _config
    if _config is None:
        _config = NeuronasConfig.from_env()
    return _config


def set_config(config: NeuronasConfig) -> None:
    """Install a configuration, e.g. a test fixture."""
    global _config
    _config = config


def reset_config() -> None:
    """Drop the current configuration so the next access reloads it."""
    global _config
    _config = None
