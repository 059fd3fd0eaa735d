from __future__ import annotations

import logging

from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler

from .container import Container

logger = logging.getLogger(__name__)


def run_auto_close(container: Container) -> dict:
    result = container.admin_time_service.auto_close_overtime_shifts()
    logger.info("auto-close-overtime-shifts: closed=%s emails=%s", result["closed"], result["emails_sent"])
    return result


def run_scheduled_reports(container: Container) -> dict:
    result = container.scheduled_report_service.process_scheduled_reports()
    logger.info("process-scheduled-reports: processed=%s", result["processed"])
    return result


JOBS = {
    "auto-close-overtime-shifts": run_auto_close,
    "process-scheduled-reports": run_scheduled_reports,
}


def add_jobs(scheduler: BaseScheduler, container: Container) -> BaseScheduler:
    """Scheduled reports at the top of every hour; overtime auto-close every 15 minutes."""
    scheduler.add_job(
        run_scheduled_reports,
        "cron",
        minute=0,
        args=[container],
        id="process-scheduled-reports",
        max_instances=1,
        coalesce=True,
    )
    scheduler.add_job(
        run_auto_close,
        "interval",
        minutes=15,
        args=[container],
        id="auto-close-overtime-shifts",
        max_instances=1,
        coalesce=True,
    )
    return scheduler


def build_scheduler(container: Container) -> BlockingScheduler:
    return add_jobs(BlockingScheduler(timezone="UTC"), container)
