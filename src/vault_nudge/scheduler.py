"""Periodic scans via APScheduler.

A single interval job calls Scanner.run every `check_interval_minutes`.
The manual trigger adds a one-shot job on the same scheduler, so both go
through the scanner's busy guard.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from vault_nudge.scanner import Scanner

log = logging.getLogger(__name__)

SCAN_JOB_ID = "scan"
MANUAL_JOB_ID = "scan_now"


def setup_scheduler(scanner: Scanner, interval_minutes: int) -> AsyncIOScheduler:
    """Register the recurring scan job. The caller starts the scheduler."""
    scheduler = AsyncIOScheduler(timezone=timezone.utc)
    current_interval = interval_minutes

    async def scan() -> None:
        nonlocal current_interval
        try:
            await scanner.run()
        except Exception:
            log.exception("Scan failed")
        wanted = scanner.settings.check_interval_minutes
        if wanted != current_interval:
            current_interval = wanted
            reschedule(scheduler, wanted)

    # max_instances=2 lets an overlapping tick reach Scanner.run, which is the
    # real guard: it returns immediately while a scan is in progress.
    scheduler.add_job(
        scan,
        IntervalTrigger(minutes=interval_minutes),
        id=SCAN_JOB_ID,
        max_instances=2,
        coalesce=True,
    )
    return scheduler


def reschedule(scheduler: AsyncIOScheduler, interval_minutes: int) -> None:
    """Replace the scan interval, e.g. after check_interval_minutes changed."""
    scheduler.reschedule_job(SCAN_JOB_ID, trigger=IntervalTrigger(minutes=interval_minutes))
    log.info("Scan interval set to %d min", interval_minutes)


def trigger_now(scheduler: AsyncIOScheduler) -> None:
    """Run one scan as soon as possible, independent of the interval."""
    job = scheduler.get_job(SCAN_JOB_ID)
    if job is None:
        log.warning("No scan job registered, ignoring manual trigger")
        return
    scheduler.add_job(
        job.func,
        DateTrigger(run_date=datetime.now(timezone.utc)),
        id=MANUAL_JOB_ID,
        replace_existing=True,
    )
