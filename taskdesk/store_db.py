# PURPOSE: task service over the database.
# Every function is scoped by `owner_id`; tasks owned by someone else behave
# exactly like missing ones. Trashed tasks are only visible when a function
# says so (include_trashed / the trash-specific operations).

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Tuple

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from .clock import from_client, local_day, now_utc, today
from .db_models import NotificationDB, SubtaskDB, TaskDB
from .errors import AuthorizationError, InvalidStatusError, NotFoundError
from .models import STATUSES, SubtaskIn, TaskCreate, TaskStats, TaskUpdate
from .notifications import notify_due_today

logger = logging.getLogger(__name__)

TASK_NOT_FOUND = "Task not found"


# --- Helpers ---------------------------------------------------------------


def _apply_common_filters(
    query,
    *,
    owner_id: int,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    category: Optional[str] = None,
    q: Optional[str] = None,
    include_trashed: bool = False,
):
    """Apply shared filters to a TaskDB query."""
    query = query.filter(TaskDB.owner_id == owner_id)
    if not include_trashed:
        query = query.filter(TaskDB.is_trashed.is_(False))
    if status:
        query = query.filter(TaskDB.status == status)
    if priority:
        query = query.filter(TaskDB.priority == priority)
    if category:
        query = query.filter(TaskDB.category == category)
    if q:
        # q is literal text: LIKE wildcards in it match only themselves
        escaped = q.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        query = query.filter(TaskDB.title.ilike(f"%{escaped}%", escape="\\"))
    return query


def _apply_status(row: TaskDB, status: str) -> None:
    """Set status and keep completed_at in step with it."""
    if status not in STATUSES:
        raise InvalidStatusError(f"Invalid status: {status!r}")
    if status == "completed":
        if row.status != "completed" or row.completed_at is None:
            row.completed_at = now_utc()
    else:
        row.completed_at = None
    row.status = status


def _build_subtasks(items: Iterable[SubtaskIn]) -> List[SubtaskDB]:
    return [
        SubtaskDB(title=item.title, completed=item.completed, position=i)
        for i, item in enumerate(items)
    ]


def _save(db: Session, row: TaskDB) -> TaskDB:
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


# --- Reads -----------------------------------------------------------------


def list_tasks(
    db: Session,
    *,
    owner_id: int,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    category: Optional[str] = None,
    q: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    include_trashed: bool = False,
) -> Tuple[List[TaskDB], int]:
    """Return one page of tasks (newest first) and the total matching count."""
    filters = dict(
        owner_id=owner_id,
        status=status,
        priority=priority,
        category=category,
        q=q,
        include_trashed=include_trashed,
    )
    total = count_tasks(db, **filters)
    query = _apply_common_filters(db.query(TaskDB), **filters)
    query = query.order_by(TaskDB.created_at.desc(), TaskDB.id.desc())
    page = max(page, 1)
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total


def count_tasks(db: Session, *, owner_id: int, **filters: Any) -> int:
    """Return total count for the given filters (no pagination)."""
    query = _apply_common_filters(db.query(func.count(TaskDB.id)), owner_id=owner_id, **filters)
    return int(query.scalar() or 0)


def list_trashed_tasks(db: Session, *, owner_id: int) -> List[TaskDB]:
    """Trashed tasks, most recently trashed first."""
    return (
        db.query(TaskDB)
        .filter(TaskDB.owner_id == owner_id, TaskDB.is_trashed.is_(True))
        .order_by(TaskDB.trashed_at.desc(), TaskDB.id.desc())
        .all()
    )


def get_task(
    db: Session,
    task_id: int,
    *,
    owner_id: int,
    include_trashed: bool = False,
    only_trashed: bool = False,
) -> TaskDB:
    """Fetch a single owned task or raise NotFoundError."""
    row = db.get(TaskDB, task_id)
    if row is None:
        raise NotFoundError(TASK_NOT_FOUND)
    if row.owner_id != owner_id:
        logger.info("task access denied task_id=%s user_id=%s", task_id, owner_id)
        raise AuthorizationError(TASK_NOT_FOUND)
    if only_trashed and not row.is_trashed:
        raise NotFoundError("Task not found in trash")
    if row.is_trashed and not (include_trashed or only_trashed):
        raise NotFoundError(TASK_NOT_FOUND)
    return row


def task_stats(db: Session, *, owner_id: int) -> TaskStats:
    """Counters over the owner's non-trashed tasks; all zero when there are none."""

    def _count_if(cond):
        return func.coalesce(func.sum(case((cond, 1), else_=0)), 0)

    row = (
        db.query(
            func.count(TaskDB.id),
            _count_if(TaskDB.status == "completed"),
            _count_if(TaskDB.status == "in-progress"),
            _count_if(TaskDB.status == "todo"),
            _count_if(TaskDB.priority == "high"),
            _count_if(TaskDB.priority == "medium"),
            _count_if(TaskDB.priority == "low"),
        )
        .filter(TaskDB.owner_id == owner_id, TaskDB.is_trashed.is_(False))
        .one()
    )
    total, completed, in_progress, todo, high, medium, low = (int(v or 0) for v in row)
    return TaskStats(
        total=total,
        completed=completed,
        in_progress=in_progress,
        todo=todo,
        high_priority=high,
        medium_priority=medium,
        low_priority=low,
    )


# --- Writes ----------------------------------------------------------------


def create_task(db: Session, data: TaskCreate, *, owner_id: int) -> TaskDB:
    """Create an active task for `owner_id`; notify when it is due today."""
    now = now_utc()
    row = TaskDB(
        title=data.title,
        description=data.description,
        category=data.category,
        tags=list(data.tags),
        priority=data.priority,
        due_date=from_client(data.due_date),
        owner_id=owner_id,
        is_trashed=False,
        created_at=now,
        updated_at=now,
    )
    _apply_status(row, data.status)
    row.subtasks = _build_subtasks(data.subtasks)
    _save(db, row)
    logger.info("task created id=%s user_id=%s", row.id, owner_id)

    if local_day(row.due_date) == today():
        notify_due_today(db, owner_id=owner_id, task=row)
    return row


def update_task(db: Session, task_id: int, data: TaskUpdate, *, owner_id: int) -> TaskDB:
    """Merge the provided fields into an active task."""
    row = get_task(db, task_id, owner_id=owner_id)
    changes = data.changes()

    for field in ("title", "category", "priority"):
        if field in changes:
            setattr(row, field, changes[field])
    if "description" in changes:
        row.description = changes["description"] or ""
    if "tags" in changes:
        row.tags = list(changes["tags"] or [])
    if "due_date" in changes:
        row.due_date = from_client(data.due_date)
    if "subtasks" in changes:
        row.subtasks = _build_subtasks(data.subtasks or [])
    if "status" in changes:
        _apply_status(row, changes["status"])

    row.updated_at = now_utc()
    return _save(db, row)


def set_status(db: Session, task_id: int, status: str, *, owner_id: int) -> TaskDB:
    if status not in STATUSES:
        raise InvalidStatusError(f"Invalid status: {status!r}")
    row = get_task(db, task_id, owner_id=owner_id)
    _apply_status(row, status)
    row.updated_at = now_utc()
    return _save(db, row)


# --- Trash -----------------------------------------------------------------


def trash_task(db: Session, task_id: int, *, owner_id: int) -> None:
    """Soft delete. Trashing an already trashed task is a no-op."""
    row = get_task(db, task_id, owner_id=owner_id, include_trashed=True)
    if row.is_trashed:
        return
    row.is_trashed = True
    row.trashed_at = now_utc()
    _save(db, row)
    logger.info("task trashed id=%s user_id=%s", task_id, owner_id)


def restore_task(db: Session, task_id: int, *, owner_id: int) -> TaskDB:
    row = get_task(db, task_id, owner_id=owner_id, only_trashed=True)
    row.is_trashed = False
    row.trashed_at = None
    _save(db, row)
    logger.info("task restored id=%s user_id=%s", task_id, owner_id)
    return row


def _detach_notifications(db: Session, task_ids: List[int]) -> None:
    if not task_ids:
        return
    db.query(NotificationDB).filter(NotificationDB.task_id.in_(task_ids)).update(
        {NotificationDB.task_id: None}, synchronize_session=False
    )


def delete_task_permanently(db: Session, task_id: int, *, owner_id: int) -> None:
    """Remove a trashed task for good (subtasks go with it)."""
    row = get_task(db, task_id, owner_id=owner_id, only_trashed=True)
    _detach_notifications(db, [row.id])
    db.delete(row)
    db.commit()
    logger.info("task deleted permanently id=%s user_id=%s", task_id, owner_id)


def empty_trash(db: Session, *, owner_id: int) -> int:
    """Permanently delete every trashed task of the owner."""
    rows = list_trashed_tasks(db, owner_id=owner_id)
    _detach_notifications(db, [r.id for r in rows])
    for row in rows:
        db.delete(row)
    db.commit()
    logger.info("trash emptied user_id=%s deleted=%s", owner_id, len(rows))
    return len(rows)


def restore_all(db: Session, *, owner_id: int) -> int:
    restored = (
        db.query(TaskDB)
        .filter(TaskDB.owner_id == owner_id, TaskDB.is_trashed.is_(True))
        .update({TaskDB.is_trashed: False, TaskDB.trashed_at: None}, synchronize_session=False)
    )
    db.commit()
    return int(restored or 0)


# --- Subtasks --------------------------------------------------------------


def _get_subtask(row: TaskDB, subtask_id: int) -> SubtaskDB:
    for sub in row.subtasks:
        if sub.id == subtask_id:
            return sub
    raise NotFoundError("Subtask not found")


def add_subtask(db: Session, task_id: int, data: SubtaskIn, *, owner_id: int) -> TaskDB:
    row = get_task(db, task_id, owner_id=owner_id)
    position = max((s.position for s in row.subtasks), default=-1) + 1
    row.subtasks.append(SubtaskDB(title=data.title, completed=data.completed, position=position))
    row.updated_at = now_utc()
    return _save(db, row)


def set_subtask_completed(
    db: Session, task_id: int, subtask_id: int, completed: bool, *, owner_id: int
) -> TaskDB:
    row = get_task(db, task_id, owner_id=owner_id)
    _get_subtask(row, subtask_id).completed = completed
    row.updated_at = now_utc()
    return _save(db, row)


def delete_subtask(db: Session, task_id: int, subtask_id: int, *, owner_id: int) -> TaskDB:
    row = get_task(db, task_id, owner_id=owner_id)
    row.subtasks.remove(_get_subtask(row, subtask_id))
    row.updated_at = now_utc()
    return _save(db, row)
