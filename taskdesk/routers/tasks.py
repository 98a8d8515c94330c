# taskdesk/routers/tasks.py
# PURPOSE: /api/tasks CRUD, status changes, trash and subtasks.
# Static paths (/stats, /trash) are declared before /{task_id}.

from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from .. import store_db
from ..api.deps import parse_category, parse_limit, parse_page, parse_priority, parse_status
from ..auth import get_current_user
from ..db import get_db
from ..models import (
    CurrentUser,
    Envelope,
    Message,
    StatusUpdate,
    SubtaskCompletedIn,
    SubtaskIn,
    Task,
    TaskCreate,
    TaskPage,
    TaskStats,
    TaskUpdate,
)

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _one(row) -> Envelope[Task]:
    return Envelope[Task](data=Task.model_validate(row))


@router.get("", response_model=TaskPage)
def list_tasks(
    response: Response,
    status: Optional[str] = Depends(parse_status),
    priority: Optional[str] = Depends(parse_priority),
    category: Optional[str] = Depends(parse_category),
    q: Optional[str] = None,
    page: int = Depends(parse_page),
    limit: int = Depends(parse_limit),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    items, total = store_db.list_tasks(
        db,
        owner_id=user.id,
        status=status,
        priority=priority,
        category=category,
        q=q,
        page=page,
        limit=limit,
    )
    response.headers["X-Total-Count"] = str(total)
    return TaskPage(
        data=[Task.model_validate(t) for t in items],
        total=total,
        results=len(items),
        page=page,
        limit=limit,
    )


@router.post("", response_model=Envelope[Task], status_code=status.HTTP_201_CREATED)
def create_task(
    item: TaskCreate,
    response: Response,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    task = store_db.create_task(db, item, owner_id=user.id)
    response.headers["Location"] = f"/api/tasks/{task.id}"
    return _one(task)


@router.get("/stats", response_model=Envelope[TaskStats])
def task_stats(db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    return Envelope[TaskStats](data=store_db.task_stats(db, owner_id=user.id))


@router.get("/trash", response_model=Envelope[List[Task]])
def list_trash(db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    rows = store_db.list_trashed_tasks(db, owner_id=user.id)
    return Envelope[List[Task]](data=[Task.model_validate(r) for r in rows])


@router.delete("/trash", response_model=Message)
def empty_trash(db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    deleted = store_db.empty_trash(db, owner_id=user.id)
    return Message(message="Trash emptied", data={"deleted": deleted})


@router.post("/trash/restore", response_model=Message)
def restore_all(db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    restored = store_db.restore_all(db, owner_id=user.id)
    return Message(message="Tasks restored", data={"restored": restored})


@router.get("/{task_id}", response_model=Envelope[Task])
def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return _one(store_db.get_task(db, task_id, owner_id=user.id))


@router.put("/{task_id}", response_model=Envelope[Task])
def update_task(
    task_id: int,
    item: TaskUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return _one(store_db.update_task(db, task_id, item, owner_id=user.id))


@router.delete("/{task_id}", response_model=Message)
def trash_task(
    task_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    store_db.trash_task(db, task_id, owner_id=user.id)
    return Message(message="Task moved to trash", data={"id": task_id})


@router.patch("/{task_id}/status", response_model=Envelope[Task])
def set_status(
    task_id: int,
    item: StatusUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return _one(store_db.set_status(db, task_id, item.status, owner_id=user.id))


@router.post("/{task_id}/restore", response_model=Envelope[Task])
def restore_task(
    task_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return _one(store_db.restore_task(db, task_id, owner_id=user.id))


@router.delete("/{task_id}/permanent", response_model=Message)
def delete_task_permanently(
    task_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    store_db.delete_task_permanently(db, task_id, owner_id=user.id)
    return Message(message="Task permanently deleted", data={"id": task_id})


@router.post("/{task_id}/subtasks", response_model=Envelope[Task], status_code=status.HTTP_201_CREATED)
def add_subtask(
    task_id: int,
    item: SubtaskIn,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return _one(store_db.add_subtask(db, task_id, item, owner_id=user.id))


@router.put("/{task_id}/subtasks/{subtask_id}", response_model=Envelope[Task])
def set_subtask_completed(
    task_id: int,
    subtask_id: int,
    item: SubtaskCompletedIn,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return _one(
        store_db.set_subtask_completed(db, task_id, subtask_id, item.completed, owner_id=user.id)
    )


@router.delete("/{task_id}/subtasks/{subtask_id}", response_model=Envelope[Task])
def delete_subtask(
    task_id: int,
    subtask_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return _one(store_db.delete_subtask(db, task_id, subtask_id, owner_id=user.id))
