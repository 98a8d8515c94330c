# PURPOSE: record and list notifications, including "due today" notices.

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from .clock import day_bounds_utc, now_utc
from .db_models import NotificationDB, TaskDB
from .models import Notification

logger = logging.getLogger(__name__)


def due_today_message(title: str) -> str:
    return f'Task "{title}" is due today!'


def notify_due_today(db: Session, *, owner_id: int, task: TaskDB) -> NotificationDB:
    """Persist one unread dueToday notice for `task`."""
    row = NotificationDB(
        user_id=owner_id,
        message=due_today_message(task.title),
        task_id=task.id,
        noti_type="dueToday",
        read=False,
        created_at=now_utc(),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("due-today notice recorded user_id=%s task_id=%s", owner_id, task.id)
    return row


def _tasks_due_today(db: Session, *, owner_id: int) -> List[TaskDB]:
    start, end = day_bounds_utc()
    return (
        db.query(TaskDB)
        .filter(
            TaskDB.owner_id == owner_id,
            TaskDB.is_trashed.is_(False),
            TaskDB.status != "completed",
            TaskDB.due_date >= start,
            TaskDB.due_date < end,
        )
        .order_by(TaskDB.due_date.asc(), TaskDB.id.asc())
        .all()
    )


def list_notifications(db: Session, *, owner_id: int) -> List[Notification]:
    """Unread persisted notices (newest first), then computed due-today notices.

    The computed entries are not stored and may repeat a persisted notice
    for the same task.
    """
    persisted = (
        db.query(NotificationDB)
        .filter(NotificationDB.user_id == owner_id, NotificationDB.read.is_(False))
        .order_by(NotificationDB.created_at.desc(), NotificationDB.id.desc())
        .all()
    )
    items = [Notification.model_validate(row) for row in persisted]

    now = now_utc()
    for task in _tasks_due_today(db, owner_id=owner_id):
        items.append(
            Notification(
                id=None,
                message=due_today_message(task.title),
                task_id=task.id,
                noti_type="dueToday",
                read=False,
                created_at=now,
            )
        )
    return items


def mark_read(db: Session, *, owner_id: int, all: bool = False, id: Optional[int] = None) -> int:
    """Flip unread notices to read; returns how many changed (0 is not an error)."""
    query = db.query(NotificationDB).filter(
        NotificationDB.user_id == owner_id, NotificationDB.read.is_(False)
    )
    if not all:
        if id is None:
            return 0
        query = query.filter(NotificationDB.id == id)
    updated = query.update({NotificationDB.read: True}, synchronize_session=False)
    db.commit()
    return int(updated or 0)
