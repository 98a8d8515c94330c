# PURPOSE: HTTP client for the Taskdesk API.
# The base URL is resolved once, at construction, from the argument or
# settings.API_BASE_URL. Envelopes are unwrapped into the API's own schemas.

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel

from ..config import settings
from ..models import (
    AuthPayload,
    Notification,
    SubtaskIn,
    Task,
    TaskCreate,
    TaskStats,
    TaskUpdate,
    UserPublic,
    UserSettings,
    UserSettingsPatch,
)

logger = logging.getLogger(__name__)


class ClientError(Exception):
    """Non-2xx answer from the API, carrying its `message` field."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


@dataclass(frozen=True)
class TaskListResult:
    items: List[Task]
    total: int
    page: int
    limit: int


def _body(model: BaseModel) -> Dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True, exclude_unset=True)


class TaskdeskClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        http: Optional[httpx.Client] = None,
        token: Optional[str] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        # an injected client (e.g. a TestClient) keeps its own base URL
        self._http = http or httpx.Client(base_url=self.base_url, timeout=timeout)
        self.token = token

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "TaskdeskClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # --- plumbing ---

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        resp = self._http.request(method, path, headers=headers, **kwargs)
        # authenticate with the bearer token only, never a leftover cookie
        self._http.cookies.delete(settings.AUTH_COOKIE_NAME)
        logger.debug("%s %s -> %s", method, path, resp.status_code)
        try:
            payload = resp.json()
        except ValueError:
            payload = {}
        if resp.is_error:
            message = payload.get("message") if isinstance(payload, dict) else None
            raise ClientError(resp.status_code, message or resp.reason_phrase)
        return payload

    def _auth(self, path: str, body: Dict[str, Any]) -> AuthPayload:
        data = self._request("POST", path, json=body)["data"]
        auth = AuthPayload.model_validate(data)
        self.token = auth.token
        return auth

    # --- auth ---

    def register(
        self, *, name: str, email: str, password: str, role: str, title: Optional[str] = None
    ) -> AuthPayload:
        body = {"name": name, "email": email, "password": password, "role": role}
        if title is not None:
            body["title"] = title
        return self._auth("/api/auth/register", body)

    def login(self, email: str, password: str) -> AuthPayload:
        return self._auth("/api/auth/login", {"email": email, "password": password})

    def check_email(self, email: str) -> bool:
        return bool(self._request("POST", "/api/auth/check-email", json={"email": email})["data"]["exists"])

    def logout(self) -> None:
        self._request("POST", "/api/auth/logout")
        self.token = None

    def me(self) -> UserPublic:
        return UserPublic.model_validate(self._request("GET", "/api/auth/me")["data"])

    # --- tasks ---

    def list_tasks(
        self,
        *,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        q: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> TaskListResult:
        params: Dict[str, Any] = {"page": page}
        for key, value in (("status", status), ("priority", priority), ("category", category), ("q", q), ("limit", limit)):
            if value is not None:
                params[key] = value
        payload = self._request("GET", "/api/tasks", params=params)
        return TaskListResult(
            items=[Task.model_validate(t) for t in payload["data"]],
            total=payload["total"],
            page=payload["page"],
            limit=payload["limit"],
        )

    def create_task(self, data: TaskCreate) -> Task:
        return Task.model_validate(self._request("POST", "/api/tasks", json=_body(data))["data"])

    def get_task(self, task_id: int) -> Task:
        return Task.model_validate(self._request("GET", f"/api/tasks/{task_id}")["data"])

    def update_task(self, task_id: int, data: TaskUpdate) -> Task:
        return Task.model_validate(self._request("PUT", f"/api/tasks/{task_id}", json=_body(data))["data"])

    def set_status(self, task_id: int, status: str) -> Task:
        payload = self._request("PATCH", f"/api/tasks/{task_id}/status", json={"status": status})
        return Task.model_validate(payload["data"])

    def trash_task(self, task_id: int) -> None:
        self._request("DELETE", f"/api/tasks/{task_id}")

    def restore_task(self, task_id: int) -> Task:
        return Task.model_validate(self._request("POST", f"/api/tasks/{task_id}/restore")["data"])

    def delete_task_permanently(self, task_id: int) -> None:
        self._request("DELETE", f"/api/tasks/{task_id}/permanent")

    def list_trash(self) -> List[Task]:
        return [Task.model_validate(t) for t in self._request("GET", "/api/tasks/trash")["data"]]

    def stats(self) -> TaskStats:
        return TaskStats.model_validate(self._request("GET", "/api/tasks/stats")["data"])

    def add_subtask(self, task_id: int, title: str) -> Task:
        body = _body(SubtaskIn(title=title))
        return Task.model_validate(self._request("POST", f"/api/tasks/{task_id}/subtasks", json=body)["data"])

    def set_subtask_completed(self, task_id: int, subtask_id: int, completed: bool) -> Task:
        payload = self._request(
            "PUT", f"/api/tasks/{task_id}/subtasks/{subtask_id}", json={"completed": completed}
        )
        return Task.model_validate(payload["data"])

    # --- users ---

    def get_settings(self) -> UserSettings:
        return UserSettings.model_validate(self._request("GET", "/api/users/settings")["data"])

    def update_settings(self, patch: UserSettingsPatch) -> UserSettings:
        payload = self._request("PUT", "/api/users/settings", json={"settings": _body(patch)})
        return UserSettings.model_validate(payload["data"])

    def notifications(self) -> List[Notification]:
        return [Notification.model_validate(n) for n in self._request("GET", "/api/users/notifications")["data"]]

    def mark_read(self, *, all: bool = False, id: Optional[int] = None) -> int:
        body: Dict[str, Any] = {"all": all}
        if id is not None:
            body["id"] = id
        return int(self._request("PUT", "/api/users/notifications/read", json=body)["data"]["updated"])
