"""
Main entry point for the schedule watcher.

Starts the scheduler service that polls the tracker and reports schedule changes.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from utilities.logger import setup_logging, get_logger
from utilities.config import config
from tracker.client import TrackerClient
from tracker.storage import SnapshotStore
from scheduler.scheduler_service import SchedulerService
from scheduler.models import SchedulerConfig, AlertConfig


def build_scheduler_config() -> SchedulerConfig:
    """Map environment configuration onto the scheduler models."""
    alert_config = AlertConfig(
        enabled=config.alerting_enabled,
        log_enabled=True,
        webhook_url=config.webhook_url
    )

    return SchedulerConfig(
        event_id=config.event_id,
        event_name=config.event_name,
        poll_interval_seconds=config.poll_interval_seconds,
        timezone=config.timezone,
        store_reports=config.store_reports,
        alert_config=alert_config
    )


async def main():
    """Main function to start the scheduler service."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )

    logger = get_logger(__name__)
    logger.info("Starting schedule watcher")

    test_mode = config.test_mode
    run_once = False

    if len(sys.argv) > 1:
        if sys.argv[1] == '--test':
            test_mode = True
        elif sys.argv[1] == '--once':
            run_once = True
        else:
            print(f"Unknown argument: {sys.argv[1]}")
            print("Usage: python scheduler_main.py [--test|--once]")
            sys.exit(1)

    try:
        scheduler_config = build_scheduler_config()

        store = SnapshotStore(
            connection_url=config.mongodb_url,
            database_name=config.mongodb_database,
            snapshot_collection=config.snapshot_collection,
            report_collection=config.report_collection
        )

        scheduler_service = SchedulerService(scheduler_config, store, client=TrackerClient())

        logger.info(
            "Scheduler service configured",
            event_name=scheduler_config.event_name,
            event_id=scheduler_config.event_id,
            poll_interval_seconds=scheduler_config.poll_interval_seconds,
            webhook_enabled=bool(scheduler_config.alert_config.webhook_url),
            test_mode=test_mode,
            run_once=run_once
        )

        await scheduler_service.start(test_mode=test_mode, run_once=run_once)

    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
    except Exception as e:
        logger.error("Failed to start scheduler service", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
