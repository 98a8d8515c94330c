# tests/test_store_db.py
# PURPOSE: task service rules exercised directly against a session.

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pytest

from taskdesk import clock, store_db
from taskdesk.config import settings
from taskdesk.db_models import NotificationDB, UserDB
from taskdesk.errors import AuthorizationError, InvalidStatusError, NotFoundError
from taskdesk.models import SubtaskIn, TaskCreate, TaskUpdate


@pytest.fixture()
def owners(db_session):
    rows = [
        UserDB(name="Alice", email="alice@example.com", password_hash="x", role="dev"),
        UserDB(name="Bob", email="bob@example.com", password_hash="x", role="dev"),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows[0].id, rows[1].id


def _new(db, owner_id, title="Task", **fields):
    fields.setdefault("due_date", datetime.now(UTC) + timedelta(days=2))
    return store_db.create_task(db, TaskCreate(title=title, **fields), owner_id=owner_id)


def test_completed_at_follows_status(db_session, owners):
    alice, _ = owners
    row = _new(db_session, alice)
    assert row.completed_at is None

    row = store_db.set_status(db_session, row.id, "completed", owner_id=alice)
    stamped = row.completed_at
    assert stamped is not None

    row = store_db.set_status(db_session, row.id, "completed", owner_id=alice)
    assert row.completed_at == stamped

    row = store_db.update_task(db_session, row.id, TaskUpdate(status="todo"), owner_id=alice)
    assert row.completed_at is None


def test_invalid_status_is_rejected(db_session, owners):
    alice, _ = owners
    row = _new(db_session, alice)
    with pytest.raises(InvalidStatusError):
        store_db.set_status(db_session, row.id, "archived", owner_id=alice)


def test_foreign_task_raises_authorization_error(db_session, owners):
    alice, bob = owners
    row = _new(db_session, alice)
    with pytest.raises(AuthorizationError) as exc:
        store_db.get_task(db_session, row.id, owner_id=bob)
    # rendered like a missing task
    assert isinstance(exc.value, NotFoundError)
    assert exc.value.message == "Task not found"


def test_trash_flags_and_visibility(db_session, owners):
    alice, _ = owners
    row = _new(db_session, alice)
    updated_at = row.updated_at
    store_db.trash_task(db_session, row.id, owner_id=alice)

    with pytest.raises(NotFoundError):
        store_db.get_task(db_session, row.id, owner_id=alice)
    trashed = store_db.get_task(db_session, row.id, owner_id=alice, include_trashed=True)
    assert trashed.is_trashed is True
    assert trashed.updated_at == updated_at

    items, total = store_db.list_tasks(db_session, owner_id=alice)
    assert (items, total) == ([], 0)
    items, total = store_db.list_tasks(db_session, owner_id=alice, include_trashed=True)
    assert total == 1

    restored = store_db.restore_task(db_session, row.id, owner_id=alice)
    assert restored.is_trashed is False and restored.trashed_at is None


def test_restore_of_active_task_fails(db_session, owners):
    alice, _ = owners
    row = _new(db_session, alice)
    with pytest.raises(NotFoundError, match="in trash"):
        store_db.restore_task(db_session, row.id, owner_id=alice)


def test_stats_match_list_counts(db_session, owners):
    alice, bob = owners
    _new(db_session, alice, priority="high")
    _new(db_session, alice, status="in-progress")
    _new(db_session, bob, priority="low")

    stats = store_db.task_stats(db_session, owner_id=alice)
    assert stats.total == store_db.count_tasks(db_session, owner_id=alice) == 2
    assert stats.high_priority == 1
    assert stats.in_progress == 1
    assert store_db.task_stats(db_session, owner_id=bob).low_priority == 1


def test_subtask_positions_are_appended(db_session, owners):
    alice, _ = owners
    row = _new(db_session, alice, subtasks=[SubtaskIn(title="a"), SubtaskIn(title="b")])
    row = store_db.add_subtask(db_session, row.id, SubtaskIn(title="c"), owner_id=alice)
    assert [s.title for s in row.subtasks] == ["a", "b", "c"]
    assert [s.position for s in row.subtasks] == [0, 1, 2]

    with pytest.raises(NotFoundError, match="Subtask not found"):
        store_db.delete_subtask(db_session, row.id, 12345, owner_id=alice)


def test_due_today_notice_only_for_today(db_session, owners):
    alice, _ = owners
    _new(db_session, alice, title="Later")
    assert db_session.query(NotificationDB).count() == 0

    noon = datetime.combine(clock.today(), datetime.min.time(), tzinfo=clock.app_tz()) + timedelta(hours=12)
    _new(db_session, alice, title="Now", due_date=noon)
    notice = db_session.query(NotificationDB).one()
    assert notice.message == 'Task "Now" is due today!'


def test_calendar_day_uses_app_timezone(monkeypatch):
    try:
        ZoneInfo("Asia/Tokyo")
    except ZoneInfoNotFoundError:
        pytest.skip("tz database not available")
    monkeypatch.setattr(settings, "APP_TIMEZONE", "Asia/Tokyo")

    late_evening_utc = datetime(2025, 1, 1, 20, 0, tzinfo=UTC)
    assert clock.local_day(late_evening_utc) == date(2025, 1, 2)

    start, end = clock.day_bounds_utc(date(2025, 1, 2))
    assert start == datetime(2025, 1, 1, 15, 0, tzinfo=UTC)
    assert end - start == timedelta(days=1)

    # naive client input is wall time in APP_TIMEZONE
    assert clock.from_client(datetime(2025, 1, 2, 9, 0)) == datetime(2025, 1, 2, 0, 0, tzinfo=UTC)
