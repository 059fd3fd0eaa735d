"""In-process job runner: hourly scheduled reports, auto-close every 15 minutes."""

from __future__ import annotations

import logging

from timeclock.container import build_container
from timeclock.main import configure_logging, load_settings
from timeclock.scheduler import build_scheduler

logger = logging.getLogger("timeclock.scheduler")


def main() -> None:
    settings = load_settings()
    configure_logging(settings)
    container = build_container(db_config=settings.DB_CONFIG, settings=settings)

    scheduler = build_scheduler(container)
    logger.info("Scheduler started")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")


if __name__ == "__main__":
    main()
