"""
Command line entry point for health checks and chunked auto-repair.

Usage:
    neuronas-repair health [--watch SECONDS]
    neuronas-repair repair [--issue-type TYPE] [--issue-id ID ...] [--recheck]
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from datetime import datetime
from typing import Any

from neuronas_repair.core.config import NeuronasConfig, get_config
from neuronas_repair.core.constants import IssueType, RunState
from neuronas_repair.core.exceptions import HealthCheckError, NeuronasError
from neuronas_repair.core.logging import configure_logging, get_logger
from neuronas_repair.health.monitor import HealthMonitor
from neuronas_repair.repair.driver import ChunkDriver
from neuronas_repair.repair.progress import ProgressReporter, logging_observer
from neuronas_repair.transport.client import FunctionsClient

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ERROR = 2
EXIT_CAPPED = 3

_RUN_EXIT_CODES: dict[RunState, int] = {
    RunState.COMPLETED: EXIT_OK,
    RunState.FAILED: EXIT_FAILED,
    RunState.CAPPED: EXIT_CAPPED,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="neuronas-repair",
        description="NEURONAS system health checks and chunked auto-repair",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON-formatted log lines")
    parser.add_argument("--config", type=str, default=None, help="Path to a JSON config file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    health = subparsers.add_parser("health", help="Run the system health monitor")
    health.add_argument(
        "--watch",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Keep re-running the check every SECONDS",
    )
    health.add_argument("--max-checks", type=int, default=None, help="Stop watching after N checks")

    repair = subparsers.add_parser("repair", help="Run a chunked auto-repair")
    repair.add_argument(
        "--issue-type",
        default=IssueType.ALL.value,
        help=f"Repair category ({', '.join(t.value for t in IssueType)}); default: all",
    )
    repair.add_argument(
        "--issue-id",
        dest="issue_ids",
        action="append",
        default=[],
        help="Restrict the repair to this record id (repeatable)",
    )
    repair.add_argument("--max-items", type=int, default=None, help="Items per chunk call")
    repair.add_argument("--max-iterations", type=int, default=None, help="Safety cap on chunk calls")
    repair.add_argument("--delay", type=float, default=None, help="Seconds between chunk calls")
    repair.add_argument("--recheck", action="store_true", help="Run a health check after the repair")
    return parser


def _load_config(args: argparse.Namespace) -> NeuronasConfig:
    config = NeuronasConfig.from_file(args.config) if args.config else get_config()
    if args.command != "repair":
        return config

    overrides: dict[str, Any] = {}
    if args.max_items is not None:
        overrides["max_items_per_call"] = args.max_items
    if args.max_iterations is not None:
        overrides["max_iterations"] = args.max_iterations
    if args.delay is not None:
        overrides["inter_chunk_delay_seconds"] = args.delay
    if overrides:
        config = dataclasses.replace(config, repair=dataclasses.replace(config.repair, **overrides))
    return config


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _run_health(args: argparse.Namespace, config: NeuronasConfig) -> int:
    with FunctionsClient(config=config.functions) as client:
        monitor = HealthMonitor(client, config.health)
        if args.watch is None:
            report = monitor.run_health_check()
            _print_json(report.model_dump(mode="json"))
            return EXIT_OK

        monitor.watch(
            lambda report: _print_json(report.model_dump(mode="json")),
            interval_seconds=args.watch,
            max_checks=args.max_checks,
        )
        return EXIT_OK


def _run_repair(args: argparse.Namespace, config: NeuronasConfig) -> int:
    with FunctionsClient(config=config.functions) as client:
        reporter = ProgressReporter([logging_observer], log_tail_size=config.repair.log_tail_size)
        driver = ChunkDriver(client, config.repair, reporter=reporter)
        report = driver.run_chunked_repair(args.issue_type, args.issue_ids)
        output: dict[str, Any] = {"repair_report": report.to_dict()}

        if args.recheck:
            try:
                health = HealthMonitor(client, config.health).run_health_check()
                output["health_report"] = health.model_dump(mode="json")
            except HealthCheckError as e:
                logger.error(f"Post-repair health check failed: {e}")
                output["health_report"] = None

        _print_json(output)
        return _RUN_EXIT_CODES[report.state]


def _handle_error(e: Exception) -> int:
    logger.error(f"neuronas-repair failed: {e}")
    _print_json({
        "error": type(e).__name__,
        "message": str(e),
        "timestamp": datetime.now().isoformat(),
    })
    return EXIT_ERROR


def main(argv: list[str] | None = None) -> int:
    """Run the command line interface and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING if args.quiet else logging.INFO
    configure_logging(level=level, verbose=args.verbose, json_format=args.json_logs, force=True)

    try:
        config = _load_config(args)
        if args.command == "health":
            return _run_health(args, config)
        return _run_repair(args, config)
    except (NeuronasError, OSError, json.JSONDecodeError) as e:
        return _handle_error(e)


if __name__ == "__main__":
    sys.exit(main())
