"""Sync trigger and status routes."""
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, status
from fastapi.responses import JSONResponse

from todosync.db.engine import get_engine
from todosync.remote.client import RemoteTodoClient
from todosync.sync.orchestrator import SyncOrchestrator
from todosync.sync.results import SyncResult, SyncStatus
from todosync.sync.status import StatusReporter

logger = logging.getLogger(__name__)

router = APIRouter()


async def _do_sync(
    engine,
    job_id: str,
    list_id: Optional[int] = None,
    item_id: Optional[int] = None,
) -> None:
    """Background task: full run, or the scoped check for one list/item."""
    async with RemoteTodoClient.from_settings() as client:
        orchestrator = SyncOrchestrator(client=client, engine=engine)
        if list_id is not None:
            result = await orchestrator.run_list(list_id)
        elif item_id is not None:
            result = await orchestrator.run_item(item_id)
        else:
            result = await orchestrator.run_all()
    logger.info(
        "Sync job %s finished: success=%s, %d synced, %d errors",
        job_id,
        result.success,
        result.entities_synced,
        result.error_count,
    )


def _enqueue(background_tasks: BackgroundTasks, engine, **scope) -> str:
    job_id = uuid.uuid4().hex
    background_tasks.add_task(_do_sync, engine, job_id, **scope)
    logger.info("Sync job %s enqueued %s", job_id, scope or "")
    return job_id


@router.post("/trigger", status_code=status.HTTP_202_ACCEPTED)
async def trigger_sync(background_tasks: BackgroundTasks, engine=Depends(get_engine)):
    """
    Start a full synchronization in the background.
    Returns immediately with a job handle.
    """
    job_id = _enqueue(background_tasks, engine)
    return {
        "job_id": job_id,
        "message": "Synchronization job enqueued successfully",
        "status_url": "/sync/status",
    }


@router.post("/lists/{list_id}", status_code=status.HTTP_202_ACCEPTED)
async def trigger_list_sync(
    list_id: int, background_tasks: BackgroundTasks, engine=Depends(get_engine)
):
    job_id = _enqueue(background_tasks, engine, list_id=list_id)
    return {
        "job_id": job_id,
        "todo_list_id": list_id,
        "message": f"Synchronization job enqueued for TodoList {list_id}",
    }


@router.post("/items/{item_id}", status_code=status.HTTP_202_ACCEPTED)
async def trigger_item_sync(
    item_id: int, background_tasks: BackgroundTasks, engine=Depends(get_engine)
):
    job_id = _enqueue(background_tasks, engine, item_id=item_id)
    return {
        "job_id": job_id,
        "todo_item_id": item_id,
        "message": f"Synchronization job enqueued for TodoItem {item_id}",
    }


@router.post("/immediate", response_model=SyncResult)
async def sync_immediate(engine=Depends(get_engine)):
    """Run a full synchronization inline. 500 with the result body on partial failure."""
    logger.warning("Immediate sync triggered - this may take time")
    async with RemoteTodoClient.from_settings() as client:
        result = await SyncOrchestrator(client=client, engine=engine).run_all()
    if not result.success:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=result.model_dump(mode="json"),
        )
    return result


@router.get("/status", response_model=SyncStatus)
def sync_status(engine=Depends(get_engine)):
    """Return the current health snapshot."""
    return StatusReporter(engine).status()
