"""
Daily order sync job
====================
APScheduler BackgroundScheduler with one cron job running OrderSync.run().

Usage:
    scheduler = DailySyncScheduler(order_sync, hour=6, minute=0)
    scheduler.start()
    scheduler.status()    # {"running": True, "next_run": "...", "last_result": {...}}
    scheduler.shutdown()
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

JOB_ID = "daily_order_sync"


class DailySyncScheduler:
    """Runs one reconciliation per day at hour:minute"""

    def __init__(self, order_sync, hour: int = 6, minute: int = 0, timezone: Optional[str] = None):
        self.order_sync = order_sync
        self.hour = hour
        self.minute = minute
        self._scheduler = BackgroundScheduler(
            timezone=timezone,
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": 3600,
            },
        )
        self._scheduler.add_listener(self._job_listener, EVENT_JOB_ERROR | EVENT_JOB_EXECUTED)
        self.last_run: Optional[datetime] = None
        self.last_result: Optional[Dict[str, Any]] = None

    def _run(self) -> Dict[str, Any]:
        self.last_run = datetime.utcnow()
        logger.info("Daily order sync starting")
        self.last_result = self.order_sync.run().to_dict()
        return self.last_result

    def _job_listener(self, event):
        if event.exception:
            logger.error(f"Daily order sync failed: {event.exception}")
        else:
            logger.debug("Daily order sync finished")

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self):
        if self.running:
            logger.warning("Daily sync scheduler already running")
            return
        self._scheduler.add_job(
            self._run,
            trigger=CronTrigger(hour=self.hour, minute=self.minute),
            id=JOB_ID,
            name="Daily WooCommerce order sync",
            replace_existing=True,
        )
        self._scheduler.start()
        job = self._scheduler.get_job(JOB_ID)
        logger.info(f"Daily sync scheduled at {self.hour:02d}:{self.minute:02d} (next run {job.next_run_time})")

    def shutdown(self):
        if self.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Daily sync scheduler stopped")

    def status(self) -> Dict[str, Any]:
        job = self._scheduler.get_job(JOB_ID) if self.running else None
        return {
            "running": self.running,
            "schedule": f"{self.hour:02d}:{self.minute:02d}",
            "next_run": job.next_run_time.isoformat() if job and job.next_run_time else None,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "last_result": self.last_result,
        }
