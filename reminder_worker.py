"""
Main entry point for the GradeStack workshop reminder worker.
Runs the reminder scheduler until interrupted, or a single tick with --once.
"""

import argparse
import asyncio
import signal
import sys
from typing import Optional

from config import settings
from utils.exceptions import ConfigurationError
from utils.logging_config import setup_logging

logger = setup_logging(
    name=__name__, log_level=settings.log_level, log_file="worker.log", log_dir="logs"
)


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="GradeStack workshop reminder worker")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single reminder check and exit",
    )
    return parser.parse_args(argv)


def build_service():
    """
    Validate configuration and wire the reminder service.

    Raises:
        ConfigurationError: If required settings are missing
    """
    from db import get_db_client
    from notifications import EmailSender
    from scheduler import WorkshopReminderService

    settings.validate_all_required()
    sender = EmailSender(settings)

    return WorkshopReminderService(
        get_db_client(),
        sender,
        lookahead_minutes=settings.reminder_lookahead_minutes,
        interval_minutes=settings.reminder_interval_minutes,
    )


async def main(once: bool = False) -> int:
    """Main async function to run the worker."""
    try:
        service = build_service()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    if once:
        report = await service.run_tick()
        logger.info(
            f"Single reminder check finished: {report.sent} sent, "
            f"{report.failed} failed, {report.skipped} skipped, "
            f"{report.unmarked} sent but unmarked"
        )
        return 0

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops do not support signal handlers
            pass

    logger.info(f"Starting GradeStack reminder worker ({settings.environment})...")
    service.start()
    try:
        await stop_event.wait()
    except asyncio.CancelledError:
        logger.info("Worker cancelled")
    finally:
        logger.info("Shutting down...")
        service.shutdown()

    logger.info("Worker shutdown complete")
    return 0


def run() -> None:
    args = parse_args()
    try:
        exit_code = asyncio.run(main(once=args.once))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    run()
