"""
APScheduler jobs for periodic background sync.

The periodic run is a one-shot "date" job that re-registers itself when it
finishes: the next run starts sync_interval_minutes after the previous one
*started*, or immediately if the run took longer than the interval. Runs
never overlap because the next one is only scheduled once the current one
has returned.

The scheduler runs in the worker process (wired in __main__.py); the API
process only triggers on-demand runs.
"""
import asyncio
import logging
import time
from datetime import datetime, timedelta
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from todosync.config import get_settings

logger = logging.getLogger(__name__)

JOB_ID = "periodic_sync"


def build_scheduler(engine, cancel: Optional[asyncio.Event] = None) -> AsyncIOScheduler:
    """
    Create and configure the APScheduler.

    Args:
        engine: SQLAlchemy engine to pass to the orchestrator.
        cancel: Event set on shutdown so an in-flight run stops between
            entities. Created here if not given.

    Returns:
        Configured AsyncIOScheduler (not yet started).
    """
    settings = get_settings()
    scheduler = AsyncIOScheduler()
    _schedule_next(
        scheduler,
        engine,
        cancel or asyncio.Event(),
        delay_seconds=settings.sync_startup_delay_seconds,
    )
    return scheduler


def _schedule_next(scheduler, engine, cancel: asyncio.Event, delay_seconds: float) -> None:
    scheduler.add_job(
        _periodic_sync,
        trigger="date",
        run_date=datetime.now() + timedelta(seconds=delay_seconds),
        id=JOB_ID,
        replace_existing=True,
        kwargs={"scheduler": scheduler, "engine": engine, "cancel": cancel},
    )


async def _periodic_sync(scheduler, engine, cancel: asyncio.Event) -> None:
    """
    Scheduled job: one full run, then book the next one.

    Errors are logged and swallowed so the schedule keeps going.
    """
    from todosync.remote.client import RemoteTodoClient
    from todosync.sync.orchestrator import SyncOrchestrator

    settings = get_settings()
    interval = settings.sync_interval_minutes * 60
    started = time.monotonic()
    logger.info("Scheduled sync starting at %s", datetime.utcnow().isoformat())

    try:
        async with RemoteTodoClient.from_settings(settings) as client:
            result = await SyncOrchestrator(client=client, engine=engine).run_all(cancel)
        logger.info(
            "Scheduled sync completed: %d synced, %d errors, %.0fms",
            result.entities_synced,
            result.error_count,
            result.duration_ms,
        )
    except Exception as exc:
        logger.error("Scheduled sync failed: %s", exc)

    if cancel.is_set():
        logger.info("Sync schedule stopped")
        return

    elapsed = time.monotonic() - started
    delay = interval - elapsed
    if delay > 0:
        logger.debug("Next sync in %.0fs", delay)
    else:
        logger.warning(
            "Sync took longer than interval (%.0fs > %ds), starting next sync immediately",
            elapsed,
            interval,
        )
        delay = 0
    _schedule_next(scheduler, engine, cancel, delay_seconds=delay)
