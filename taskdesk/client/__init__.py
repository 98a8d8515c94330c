# Python client for the Taskdesk API

from .api import ClientError, TaskdeskClient, TaskListResult
from .session import TaskdeskSession
from .state import AppState, Store, app_reducer

__all__ = [
    "ClientError",
    "TaskdeskClient",
    "TaskListResult",
    "TaskdeskSession",
    "AppState",
    "Store",
    "app_reducer",
]
