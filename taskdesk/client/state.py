# PURPOSE: client-side state mirroring the server (auth, task list,
# notifications). State objects are immutable; every change goes through a
# reducer: reducer(state, action) -> new state.

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, List, Literal, Optional, Tuple, TypeVar

from ..models import Notification, Task, UserPublic
from .api import ClientError

logger = logging.getLogger(__name__)

LoadStatus = Literal["idle", "loading", "succeeded", "failed"]


# --- State -----------------------------------------------------------------


@dataclass(frozen=True)
class AuthState:
    user: Optional[UserPublic] = None
    token: Optional[str] = None
    status: LoadStatus = "idle"
    error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None


@dataclass(frozen=True)
class TaskListState:
    tasks: Tuple[Task, ...] = ()
    total: int = 0
    status: LoadStatus = "idle"
    error: Optional[str] = None
    selected_id: Optional[int] = None

    def get(self, task_id: int) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)


@dataclass(frozen=True)
class NotificationState:
    items: Tuple[Notification, ...] = ()
    status: LoadStatus = "idle"
    error: Optional[str] = None

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.items if not n.read)


@dataclass(frozen=True)
class AppState:
    auth: AuthState = field(default_factory=AuthState)
    tasks: TaskListState = field(default_factory=TaskListState)
    notifications: NotificationState = field(default_factory=NotificationState)


# --- Actions ---------------------------------------------------------------
# Async operations are named "<slice>/<operation>", e.g. "tasks/fetch".


@dataclass(frozen=True)
class Pending:
    operation: str


@dataclass(frozen=True)
class Rejected:
    operation: str
    message: str


@dataclass(frozen=True)
class LoggedIn:
    user: UserPublic
    token: str


@dataclass(frozen=True)
class LoggedOut:
    pass


@dataclass(frozen=True)
class ErrorCleared:
    pass


@dataclass(frozen=True)
class TasksLoaded:
    tasks: Tuple[Task, ...]
    total: int


@dataclass(frozen=True)
class TaskAdded:
    task: Task


@dataclass(frozen=True)
class TaskReplaced:
    task: Task


@dataclass(frozen=True)
class TaskRemoved:
    task_id: int


@dataclass(frozen=True)
class TaskSelected:
    task_id: Optional[int]


@dataclass(frozen=True)
class NotificationsLoaded:
    items: Tuple[Notification, ...]


@dataclass(frozen=True)
class NotificationsRead:
    all: bool = False
    id: Optional[int] = None


def _slice_of(action) -> Optional[str]:
    if isinstance(action, (Pending, Rejected)):
        return action.operation.split("/", 1)[0]
    return None


# --- Reducers --------------------------------------------------------------


def auth_reducer(state: AuthState, action) -> AuthState:
    if _slice_of(action) == "auth":
        if isinstance(action, Pending):
            return replace(state, status="loading", error=None)
        return replace(state, status="failed", error=action.message)
    if isinstance(action, LoggedIn):
        return AuthState(user=action.user, token=action.token, status="succeeded")
    if isinstance(action, LoggedOut):
        return AuthState()
    if isinstance(action, ErrorCleared):
        return replace(state, error=None)
    return state


def tasks_reducer(state: TaskListState, action) -> TaskListState:
    if _slice_of(action) == "tasks":
        if isinstance(action, Pending):
            return replace(state, status="loading", error=None)
        return replace(state, status="failed", error=action.message)
    if isinstance(action, TasksLoaded):
        return replace(state, tasks=tuple(action.tasks), total=action.total, status="succeeded", error=None)
    if isinstance(action, TaskAdded):
        # newest first, like the server's list order
        return replace(state, tasks=(action.task,) + state.tasks, total=state.total + 1, status="succeeded")
    if isinstance(action, TaskReplaced):
        tasks = tuple(action.task if t.id == action.task.id else t for t in state.tasks)
        return replace(state, tasks=tasks, status="succeeded")
    if isinstance(action, TaskRemoved):
        tasks = tuple(t for t in state.tasks if t.id != action.task_id)
        removed = len(state.tasks) - len(tasks)
        selected = None if state.selected_id == action.task_id else state.selected_id
        return replace(
            state, tasks=tasks, total=max(state.total - removed, 0), selected_id=selected, status="succeeded"
        )
    if isinstance(action, TaskSelected):
        return replace(state, selected_id=action.task_id)
    if isinstance(action, LoggedOut):
        return TaskListState()
    return state


def notifications_reducer(state: NotificationState, action) -> NotificationState:
    if _slice_of(action) == "notifications":
        if isinstance(action, Pending):
            return replace(state, status="loading", error=None)
        return replace(state, status="failed", error=action.message)
    if isinstance(action, NotificationsLoaded):
        return NotificationState(items=tuple(action.items), status="succeeded")
    if isinstance(action, NotificationsRead):
        if action.all:
            # the server only returns unread notices, so reading all clears the list
            return replace(state, items=(), status="succeeded")
        items = tuple(n for n in state.items if n.id is None or n.id != action.id)
        return replace(state, items=items, status="succeeded")
    if isinstance(action, LoggedOut):
        return NotificationState()
    return state


def app_reducer(state: AppState, action) -> AppState:
    return AppState(
        auth=auth_reducer(state.auth, action),
        tasks=tasks_reducer(state.tasks, action),
        notifications=notifications_reducer(state.notifications, action),
    )


# --- Store -----------------------------------------------------------------

R = TypeVar("R")
Listener = Callable[[AppState], None]


class Store:
    """Holds the current AppState and applies actions through app_reducer."""

    def __init__(self, state: Optional[AppState] = None) -> None:
        self._state = state or AppState()
        self._listeners: List[Listener] = []

    @property
    def state(self) -> AppState:
        return self._state

    def dispatch(self, action) -> AppState:
        self._state = app_reducer(self._state, action)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def run(self, operation: str, call: Callable[[], R], on_success: Callable[[R], object]) -> Optional[R]:
        """Dispatch Pending, run `call`, then the success action or Rejected.

        API failures end up in state (`error`) instead of propagating.
        """
        self.dispatch(Pending(operation))
        try:
            result = call()
        except ClientError as err:
            logger.info("%s rejected: %s", operation, err.message)
            self.dispatch(Rejected(operation, err.message))
            return None
        self.dispatch(on_success(result))
        return result
