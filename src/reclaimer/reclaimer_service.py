"""Entry point for the cgroup page-cache reclaim daemon."""
import argparse
import logging
import os
import signal
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from shared.contracts.reclaimer_contracts import (
    DEFAULT_COOLDOWN, DEFAULT_INTERVAL, DEFAULT_PARENT, DEFAULT_THRESHOLD, ReclaimerConfig
)
from src.reclaimer.cgroups.discoverer import Discoverer
from src.reclaimer.errors import ParentNotFound
from src.reclaimer.scanner import Scanner
from src.reclaimer.scheduler import Scheduler
from src.reclaimer.util.log_config import setup_logger

LOGGER_NAME = "src.reclaimer"

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cgroup-reclaimer",
        description="Force page cache reclaim for container cgroups whose cache grows past a threshold.",
    )
    parser.add_argument(
        "--parent", type=str, default=None,
        help=f"Path to the parent cgroup (default: {DEFAULT_PARENT}, env RECLAIMER_PARENT)",
    )
    parser.add_argument(
        "--threshold", type=str, default=None,
        help="Cache usage threshold in %% of memory limit, or bytes with an optional unit "
             f"such as 512Mi or 1GB (default: {DEFAULT_THRESHOLD}, env RECLAIMER_THRESHOLD)",
    )
    parser.add_argument(
        "--interval", type=float, default=None,
        help=f"Seconds between two checks of all cgroups (default: {DEFAULT_INTERVAL:g}, env RECLAIMER_INTERVAL)",
    )
    parser.add_argument(
        "--cooldown", type=float, default=None,
        help=f"Minimum seconds between two reclaims of the same cgroup (default: {DEFAULT_COOLDOWN:g}, env RECLAIMER_COOLDOWN)",
    )
    parser.add_argument(
        "--log-level", type=str, default=os.environ.get("RECLAIMER_LOG_LEVEL", "INFO"),
        help="DEBUG, INFO, WARNING or ERROR (default: INFO, env RECLAIMER_LOG_LEVEL)",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Also append log lines to this file")
    return parser


def build_scheduler(config: ReclaimerConfig) -> Scheduler:
    scanner = Scanner(Discoverer(config.parent), config.threshold_spec)
    return Scheduler(scanner, interval=config.interval, cooldown=config.cooldown)


def _install_signal_handlers(scheduler: Scheduler) -> None:
    # no logging or locking in here, the main thread may be holding those locks
    def _handle(signum, _frame):
        scheduler.stop()

    signal.signal(signal.SIGTERM, _handle)
    signal.signal(signal.SIGINT, _handle)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        setup_logger(LOGGER_NAME, level=args.log_level, log_file=args.log_file)
    except ValueError as e:
        print(f"cgroup-reclaimer: {e}", file=sys.stderr)
        return 1

    try:
        config = ReclaimerConfig.from_env(
            parent=args.parent,
            threshold=args.threshold,
            interval=args.interval,
            cooldown=args.cooldown,
        )
    except ValidationError as e:
        logger.error(f"Invalid configuration, exiting:\n{e}")
        return 1

    logger.info(f"Parent: {config.parent}")
    logger.info(
        f"Threshold: {config.threshold_spec.describe()}, interval: {config.interval:g}s, cooldown: {config.cooldown:g}s"
    )

    scheduler = build_scheduler(config)
    _install_signal_handlers(scheduler)
    try:
        scheduler.run()
    except ParentNotFound as e:
        logger.error(f"{e}, exiting")
        return 1
    logger.info("Stopped by signal, exiting")
    return 0


if __name__ == "__main__":
    sys.exit(main())
