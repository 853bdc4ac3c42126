"""
bizdirectory - Main Entry Point

Runs business rating reconciliation, either once or as a long-running job.

Usage:
    # One pass over every business
    python main.py reconcile

    # Only some businesses
    python main.py reconcile --business-id <id> --business-id <id>

    # Keep reconciling every RECONCILIATION_INTERVAL_MINUTES
    python main.py run
"""

import argparse
import asyncio
import signal
import sys

import structlog
from pydantic import ValidationError

from bizdirectory.config import Settings, get_settings
from bizdirectory.core.container import DependencyContainer
from bizdirectory.core.exceptions import ConfigurationError
from bizdirectory.core.logging import configure_logging

logger = structlog.get_logger(__name__)


def load_settings() -> Settings:
    """Load settings, reporting missing or invalid values as ConfigurationError."""
    try:
        return get_settings()
    except ValidationError as e:
        errors = e.errors()
        fields = sorted({".".join(str(part) for part in err["loc"]) for err in errors if err["loc"]})
        raise ConfigurationError(
            "Invalid configuration: " + "; ".join(err["msg"] for err in errors),
            config_key=fields[0] if fields else None,
        ) from e


async def reconcile_once(business_ids: list[str] | None) -> int:
    """Run a single reconciliation pass. Returns the process exit code."""
    container = DependencyContainer()
    await container.initialize()
    try:
        result = await container.reconciler.reconcile(business_ids or None)
    finally:
        await container.shutdown()

    for business_id, error in result.failed.items():
        logger.error("business_not_reconciled", business_id=business_id, error=error)
    return 0 if result.success else 1


async def run_forever() -> int:
    """Run the reconciliation scheduler until interrupted."""
    settings = load_settings()
    if not settings.reconciliation_enabled:
        logger.warning("reconciliation_disabled")
        return 0

    container = DependencyContainer(settings)
    await container.initialize()

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops do not support signal handlers
            pass

    logger.info("bizdirectory_started", environment=settings.app_env)
    try:
        await container.reconciler.start()
        await stop_event.wait()
    finally:
        await container.shutdown()
        logger.info("bizdirectory_stopped")
    return 0


def main() -> None:
    """Parse arguments and dispatch."""
    parser = argparse.ArgumentParser(
        description="Business directory rating reconciliation",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    reconcile_parser = subparsers.add_parser(
        "reconcile", help="Recompute ratings once and exit"
    )
    reconcile_parser.add_argument(
        "--business-id",
        action="append",
        dest="business_ids",
        help="Business to reconcile (repeatable). Defaults to all businesses.",
    )

    subparsers.add_parser("run", help="Reconcile ratings on a schedule")

    args = parser.parse_args()

    settings = load_settings()
    configure_logging(settings.log_level, json_logs=settings.log_json)

    if args.command == "reconcile":
        exit_code = asyncio.run(reconcile_once(args.business_ids))
    else:
        exit_code = asyncio.run(run_forever())
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
