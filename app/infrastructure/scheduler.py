"""Periodic jobs: hourly reminder cycle and handoff sweep."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from app.infrastructure.handoff_store import HandoffStore
from app.infrastructure.notifications import Notifier
from app.settings import settings

logger = logging.getLogger(__name__)


class TaskScheduler:
    """Owns the background jobs of the service."""

    def __init__(self, notifier: Notifier, handoff_store: HandoffStore) -> None:
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self.notifier = notifier
        self.handoff_store = handoff_store

    def start(self) -> None:
        """Register jobs and start the scheduler."""
        self.scheduler.add_job(
            self.send_due_reminders,
            CronTrigger(minute=settings.reminder_job_minute),
            id="onboarding_reminders",
            name="Onboarding reminders",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.add_job(
            self.sweep_handoffs,
            IntervalTrigger(seconds=settings.handoff_sweep_interval_seconds),
            id="handoff_sweep",
            name="Expired handoff sweep",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info("Scheduler started: reminders hourly, handoff sweep every "
                    f"{settings.handoff_sweep_interval_seconds}s")

    def stop(self) -> None:
        """Stop the scheduler without waiting for running jobs."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")

    async def send_due_reminders(self) -> None:
        # Imported lazily, the worker module pulls in the API layer
        from app.workers.reminder_worker import run_reminder_cycle

        try:
            await run_reminder_cycle(self.notifier)
        except Exception as e:
            logger.error(f"Reminder job failed: {e}", exc_info=True)

    async def sweep_handoffs(self) -> None:
        try:
            await self.handoff_store.sweep()
        except Exception as e:
            logger.error(f"Handoff sweep failed: {e}", exc_info=True)
