#!/usr/bin/env python3
"""Scheduler running the daily alert pass and the monthly report."""

import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.blocking import BlockingScheduler

from config import Settings, build_engine, build_store, load_settings
from engine import AlertEngine

logger = logging.getLogger("fleetwatch.cron")


def run_job(engine: AlertEngine, kind: str, now: Optional[datetime] = None) -> None:
    """Run one trigger; failures are logged and retried at the next scheduled run."""
    try:
        result = engine.handle({"type": kind}, now)
        logger.info("%s: %s (%d raised)", kind, result["message"], result["raised"])
    except Exception:
        logger.exception("%s pass failed", kind)


def build_scheduler(engine: AlertEngine, settings: Settings, scheduler=None):
    """
    Register the daily and monthly jobs, both in ``settings.timezone``.

    The engine must use the same timezone so the day-1 job reports on the
    month that just ended locally.
    """
    scheduler = scheduler or BlockingScheduler(timezone=settings.timezone)
    scheduler.add_job(
        run_job, "cron", args=[engine, "daily"], hour=settings.daily_hour, minute=0, id="daily"
    )
    scheduler.add_job(
        run_job,
        "cron",
        args=[engine, "monthly_report"],
        day=1,
        hour=settings.monthly_hour,
        minute=0,
        id="monthly_report",
    )
    return scheduler


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings = load_settings()
    engine = build_engine(settings, build_store(settings))
    scheduler = build_scheduler(engine, settings)
    logger.info("Scheduler started (daily at %02d:00, monthly on day 1 at %02d:00 %s)",
                settings.daily_hour, settings.monthly_hour, settings.timezone)
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        pass


if __name__ == "__main__":
    main()
