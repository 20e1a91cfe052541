"""Local list and item CRUD routes."""
import uuid
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from pydantic import BaseModel
from sqlmodel import Session, select

from todosync.db.engine import get_engine, get_session
from todosync.models.todo import TodoItem, TodoList
from todosync.store import TodoStore

router = APIRouter()


class ListPayload(BaseModel):
    name: str


class ItemPayload(BaseModel):
    title: str
    description: Optional[str] = None
    is_completed: bool = False


def _require_list(session: Session, list_id: int) -> TodoList:
    todo_list = session.get(TodoList, list_id)
    if not todo_list:
        raise HTTPException(status_code=404, detail=f"TodoList {list_id} not found")
    return todo_list


# ─── Lists ────────────────────────────────────────────────────────────────────

@router.get("/", response_model=List[TodoList])
def list_todo_lists(session: Session = Depends(get_session)):
    return session.exec(select(TodoList).order_by(TodoList.id)).all()


@router.get("/{list_id}", response_model=TodoList)
def get_todo_list(list_id: int, session: Session = Depends(get_session)):
    return _require_list(session, list_id)


@router.post("/", response_model=TodoList, status_code=status.HTTP_201_CREATED)
def create_todo_list(payload: ListPayload, engine=Depends(get_engine)):
    return TodoStore(engine).create_list(payload.name)


@router.put("/{list_id}", response_model=TodoList)
def update_todo_list(list_id: int, payload: ListPayload, engine=Depends(get_engine)):
    todo_list = TodoStore(engine).update_list(list_id, payload.name)
    if todo_list is None:
        raise HTTPException(status_code=404, detail=f"TodoList {list_id} not found")
    return todo_list


@router.delete("/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_todo_list(list_id: int, engine=Depends(get_engine)):
    if not TodoStore(engine).delete_list(list_id):
        raise HTTPException(status_code=404, detail=f"TodoList {list_id} not found")


@router.post("/{list_id}/mark-all-done", status_code=status.HTTP_202_ACCEPTED)
def mark_all_done(
    list_id: int,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    engine=Depends(get_engine),
):
    """Complete every open item of a list in the background."""
    _require_list(session, list_id)
    job_id = uuid.uuid4().hex
    background_tasks.add_task(TodoStore(engine).mark_all_done, list_id)
    return {"job_id": job_id, "message": "Job enqueued successfully"}


# ─── Items ────────────────────────────────────────────────────────────────────

@router.get("/{list_id}/items", response_model=List[TodoItem])
def list_items(list_id: int, session: Session = Depends(get_session)):
    _require_list(session, list_id)
    return session.exec(
        select(TodoItem).where(TodoItem.list_id == list_id).order_by(TodoItem.id)
    ).all()


@router.get("/{list_id}/items/{item_id}", response_model=TodoItem)
def get_item(list_id: int, item_id: int, session: Session = Depends(get_session)):
    item = session.get(TodoItem, item_id)
    if not item or item.list_id != list_id:
        raise HTTPException(
            status_code=404, detail=f"TodoItem {item_id} not found in list {list_id}"
        )
    return item


@router.post(
    "/{list_id}/items", response_model=TodoItem, status_code=status.HTTP_201_CREATED
)
def create_item(
    list_id: int,
    payload: ItemPayload,
    session: Session = Depends(get_session),
    engine=Depends(get_engine),
):
    _require_list(session, list_id)
    return TodoStore(engine).create_item(
        list_id,
        payload.title,
        description=payload.description,
        is_completed=payload.is_completed,
    )


@router.put("/{list_id}/items/{item_id}", response_model=TodoItem)
def update_item(list_id: int, item_id: int, payload: ItemPayload, engine=Depends(get_engine)):
    store = TodoStore(engine)
    if store.get_item(item_id, list_id=list_id) is None:
        raise HTTPException(
            status_code=404, detail=f"TodoItem {item_id} not found in list {list_id}"
        )
    return store.update_item(
        item_id,
        title=payload.title,
        description=payload.description,
        is_completed=payload.is_completed,
    )


@router.delete("/{list_id}/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(list_id: int, item_id: int, engine=Depends(get_engine)):
    store = TodoStore(engine)
    if store.get_item(item_id, list_id=list_id) is None:
        raise HTTPException(
            status_code=404, detail=f"TodoItem {item_id} not found in list {list_id}"
        )
    store.delete_item(item_id)
