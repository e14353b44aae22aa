"""
Main scheduler service for schedule change detection.

This module provides:
- Interval polling with APScheduler
- Orchestration of fetch, diff, delivery and snapshot persistence
- Error handling and recovery between polls
"""

import asyncio
import signal
from datetime import datetime
from typing import Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import EVENT_JOB_EXECUTED, EVENT_JOB_ERROR

from scheduler.models import SchedulerConfig, CheckResult
from scheduler.alerting import AlertManager
from scheduler.report import build_change_report
from tracker.client import TrackerClient, TrackerFetchError
from tracker.storage import SnapshotStore

logger = structlog.get_logger(__name__)


class SchedulerService:
    """Polls the tracker and reports schedule changes."""

    def __init__(
        self,
        config: SchedulerConfig,
        store: SnapshotStore,
        client: Optional[TrackerClient] = None,
        alert_manager: Optional[AlertManager] = None
    ):
        """
        Initialize scheduler service.

        Args:
            config: Scheduler configuration
            store: Snapshot store instance
            client: Tracker client (created with defaults when omitted)
            alert_manager: Alert manager (built from config when omitted)
        """
        self.config = config
        self.store = store
        self.client = client or TrackerClient()
        self.alert_manager = alert_manager or AlertManager(config.alert_config)
        self.scheduler = AsyncIOScheduler(timezone=config.timezone)
        self.logger = logger.bind(component="scheduler_service", event_name=config.event_name)
        self._stop_event = asyncio.Event()

        self._setup_scheduler_listeners()

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            self.logger.info(f"Received signal {signum}, shutting down gracefully...")
            self.stop()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def _setup_scheduler_listeners(self) -> None:
        """Setup scheduler event listeners."""
        def job_executed_listener(event):
            self.logger.debug(
                "Job executed successfully",
                job_id=event.job_id,
                duration=event.retval.duration_seconds if isinstance(event.retval, CheckResult) else 0
            )

        def job_error_listener(event):
            self.logger.error(
                "Job execution failed",
                job_id=event.job_id,
                error=str(event.exception)
            )

        self.scheduler.add_listener(job_executed_listener, EVENT_JOB_EXECUTED)
        self.scheduler.add_listener(job_error_listener, EVENT_JOB_ERROR)

    async def start(self, test_mode: bool = False, run_once: bool = False) -> None:
        """Start the scheduler service."""
        try:
            if run_once:
                self.logger.info("Starting scheduler service in RUN ONCE MODE")
            elif test_mode:
                self.logger.info("Starting scheduler service in TEST MODE")
            else:
                self.logger.info("Starting scheduler service")

            await self.store.connect()

            if run_once:
                result = await self.check_schedule()
                self.logger.info("Run once mode completed", **result.model_dump(include={
                    "success", "runs_fetched", "field_changes", "order_changes", "delivered"
                }))
                return

            self._setup_signal_handlers()
            self._add_poll_job(test_mode)
            self.scheduler.start()

            self.logger.info(
                "Scheduler service started",
                timezone=self.config.timezone,
                interval_seconds=self._poll_interval(test_mode)
            )

            await self._stop_event.wait()

        except Exception as e:
            self.logger.error(
                "Failed to start scheduler service",
                error=str(e)
            )
            raise
        finally:
            await self.store.disconnect()

    def stop(self) -> None:
        """Stop the scheduler service."""
        try:
            self.logger.info("Stopping scheduler service")

            if self.scheduler.running:
                self.scheduler.shutdown(wait=False)
            self._stop_event.set()

            self.logger.info("Scheduler service stopped")

        except Exception as e:
            self.logger.error(
                "Error stopping scheduler service",
                error=str(e)
            )

    def _poll_interval(self, test_mode: bool) -> int:
        if test_mode:
            return self.config.test_poll_interval_seconds
        return self.config.poll_interval_seconds

    def _add_poll_job(self, test_mode: bool = False) -> None:
        """Add the schedule polling job, first run immediately."""
        interval = self._poll_interval(test_mode)
        self.scheduler.add_job(
            func=self.check_schedule,
            trigger=IntervalTrigger(seconds=interval, timezone=self.config.timezone),
            id='schedule_check',
            name=f'Schedule Check ({self.config.event_name})',
            next_run_time=datetime.now(self.scheduler.timezone),
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )
        self.logger.info("Added schedule check job", interval_seconds=interval)

    async def check_schedule(self) -> CheckResult:
        """
        Run one poll cycle.

        Fetches the current schedule, diffs it against the stored one, delivers
        a report when anything changed and stores the new schedule as the next
        baseline. A failed fetch leaves the stored schedule untouched.
        """
        start_time = datetime.utcnow()
        result = CheckResult(event=self.config.event_name, run_timestamp=start_time)

        try:
            after = await self.client.fetch_snapshot(self.config.event_id, self.config.event_name)
            result.runs_fetched = len(after.runs)

            before = await self.store.previous(self.config.event_name)
            if before is None:
                await self.store.save(after)
                result.baseline = True
                self.logger.info("Stored baseline schedule", runs=len(after.runs))
                return self._finish(result, start_time)

            report = build_change_report(before, after)
            result.field_changes = len(report.field_changes)
            result.order_changes = len(report.order_changes)

            if report.has_changes:
                result.report_id = report.report_id
                result.delivered = await self.alert_manager.process_report(report)
                if self.config.store_reports:
                    await self.store.save_report(report)
            else:
                self.logger.debug("No schedule changes")

            await self.store.save(after)

        except TrackerFetchError as e:
            self.logger.error("Schedule fetch failed, keeping previous snapshot", error=str(e))
            result.success = False
            result.errors.append(str(e))
        except Exception as e:
            self.logger.error("Schedule check failed", error=str(e))
            result.success = False
            result.errors.append(str(e))

        return self._finish(result, start_time)

    def _finish(self, result: CheckResult, start_time: datetime) -> CheckResult:
        result.duration_seconds = (datetime.utcnow() - start_time).total_seconds()
        self.logger.info(
            "Schedule check completed",
            success=result.success,
            baseline=result.baseline,
            field_changes=result.field_changes,
            order_changes=result.order_changes,
            duration_seconds=result.duration_seconds
        )
        return result
