"""
Main entrypoint: runs the periodic sync worker, or a single sync.

FastAPI runs separately under uvicorn (list/item CRUD and sync triggers).

Usage:
    python -m todosync              # starts the scheduler, syncs every interval
    python -m todosync once         # one full sync, prints the result, exits
    uvicorn todosync.api.main:app --host 0.0.0.0 --port 8000  # starts API
"""
import asyncio
import logging
import signal
import sys

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


async def _run_once() -> int:
    from todosync.db.engine import get_engine
    from todosync.remote.client import RemoteTodoClient
    from todosync.sync.orchestrator import SyncOrchestrator

    async with RemoteTodoClient.from_settings() as client:
        result = await SyncOrchestrator(client=client, engine=get_engine()).run_all()

    print(result.model_dump_json(indent=2))
    return 0 if result.success else 1


async def _run_worker() -> None:
    from todosync.config import get_settings
    from todosync.db.engine import get_engine
    from todosync.scheduler.jobs import build_scheduler

    settings = get_settings()
    if not settings.remote_api_key:
        logger.warning("REMOTE_API_KEY not set; remote calls will be unauthenticated.")

    stop = asyncio.Event()
    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    scheduler = build_scheduler(get_engine(), cancel=cancel)
    scheduler.start()
    logger.info(
        "Sync worker started (every %d min, first run in %ds)",
        settings.sync_interval_minutes,
        settings.sync_startup_delay_seconds,
    )

    try:
        await stop.wait()
    finally:
        logger.info("Shutting down...")
        cancel.set()  # stops an in-flight run between entities
        scheduler.shutdown(wait=False)
        logger.info("Goodbye.")


if __name__ == "__main__":
    # Dispatch on first argument: `python -m todosync once` or just `python -m todosync`
    if len(sys.argv) > 1 and sys.argv[1] == "once":
        sys.exit(asyncio.run(_run_once()))
    else:
        asyncio.run(_run_worker())
