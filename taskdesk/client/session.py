# PURPOSE: bind a TaskdeskClient to a Store; each method performs one API
# call and records its outcome as actions (pending -> fulfilled | rejected).

from __future__ import annotations

from typing import List, Optional

from ..models import Notification, Task, TaskCreate, TaskUpdate
from .api import TaskdeskClient, TaskListResult
from .state import (
    LoggedIn,
    LoggedOut,
    NotificationsLoaded,
    NotificationsRead,
    Store,
    TaskAdded,
    TaskRemoved,
    TaskReplaced,
    TasksLoaded,
)


class TaskdeskSession:
    def __init__(self, client: TaskdeskClient, store: Optional[Store] = None) -> None:
        self.client = client
        self.store = store or Store()

    # --- auth ---

    def login(self, email: str, password: str):
        return self.store.run(
            "auth/login",
            lambda: self.client.login(email, password),
            lambda auth: LoggedIn(user=auth.user, token=auth.token),
        )

    def register(self, **fields):
        return self.store.run(
            "auth/register",
            lambda: self.client.register(**fields),
            lambda auth: LoggedIn(user=auth.user, token=auth.token),
        )

    def logout(self) -> None:
        # local state is cleared even if the server call fails
        self.store.run("auth/logout", self.client.logout, lambda _: LoggedOut())
        self.client.token = None
        if self.store.state.auth.token is not None:
            self.store.dispatch(LoggedOut())

    # --- tasks ---

    def fetch_tasks(self, **filters) -> Optional[TaskListResult]:
        return self.store.run(
            "tasks/fetch",
            lambda: self.client.list_tasks(**filters),
            lambda res: TasksLoaded(tasks=tuple(res.items), total=res.total),
        )

    def create_task(self, data: TaskCreate) -> Optional[Task]:
        return self.store.run("tasks/create", lambda: self.client.create_task(data), TaskAdded)

    def update_task(self, task_id: int, data: TaskUpdate) -> Optional[Task]:
        return self.store.run("tasks/update", lambda: self.client.update_task(task_id, data), TaskReplaced)

    def set_status(self, task_id: int, status: str) -> Optional[Task]:
        return self.store.run("tasks/status", lambda: self.client.set_status(task_id, status), TaskReplaced)

    def trash_task(self, task_id: int) -> None:
        self.store.run("tasks/trash", lambda: self.client.trash_task(task_id), lambda _: TaskRemoved(task_id))

    def add_subtask(self, task_id: int, title: str) -> Optional[Task]:
        return self.store.run("tasks/subtask", lambda: self.client.add_subtask(task_id, title), TaskReplaced)

    def set_subtask_completed(self, task_id: int, subtask_id: int, completed: bool) -> Optional[Task]:
        return self.store.run(
            "tasks/subtask",
            lambda: self.client.set_subtask_completed(task_id, subtask_id, completed),
            TaskReplaced,
        )

    # --- notifications ---

    def fetch_notifications(self) -> Optional[List[Notification]]:
        return self.store.run(
            "notifications/fetch",
            self.client.notifications,
            lambda items: NotificationsLoaded(items=tuple(items)),
        )

    def mark_read(self, *, all: bool = False, id: Optional[int] = None) -> Optional[int]:
        return self.store.run(
            "notifications/read",
            lambda: self.client.mark_read(all=all, id=id),
            lambda _: NotificationsRead(all=all, id=id),
        )
