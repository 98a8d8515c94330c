# PURPOSE: request/response schemas for the JSON API.
# Wire keys are camelCase (dueDate, isTrashed, notiType, ...); Python code uses
# snake_case names. Request bodies reject unknown keys.

from datetime import datetime
from typing import Annotated, Generic, Literal, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .clock import as_utc, now_utc

Status = Literal["todo", "in-progress", "completed"]
Priority = Literal["low", "medium", "high"]
Category = Literal["work", "personal", "shopping", "health", "other"]
NotiType = Literal["alert", "message", "dueToday"]

STATUSES: tuple[str, ...] = ("todo", "in-progress", "completed")
PRIORITIES: tuple[str, ...] = ("low", "medium", "high")
CATEGORIES: tuple[str, ...] = ("work", "personal", "shopping", "health", "other")

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]
ShortText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
Password = Annotated[str, StringConstraints(min_length=6, max_length=128)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RequestModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class ResponseModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _clean_tags(tags: list[str] | None) -> list[str]:
    """Trim, drop empties and duplicates, keep first-seen order."""
    out: list[str] = []
    for tag in tags or []:
        tag = tag.strip()
        if tag and tag not in out:
            out.append(tag)
    return out


# --- Tasks -----------------------------------------------------------------


class SubtaskIn(RequestModel):
    title: Title
    completed: bool = False


class SubtaskCompletedIn(RequestModel):
    completed: bool


class Subtask(ResponseModel):
    id: int
    title: str
    completed: bool


class TaskCreate(RequestModel):
    title: Title
    description: Description = ""
    category: Category = "other"
    tags: list[str] = Field(default_factory=list)
    due_date: datetime
    priority: Priority = "medium"
    status: Status = "todo"
    subtasks: list[SubtaskIn] = Field(default_factory=list)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        json_schema_extra={
            "examples": [
                {"title": "Pay rent", "dueDate": "2025-12-01T09:00:00Z", "priority": "high"},
                {"title": "Gym", "dueDate": "2025-12-02", "category": "health", "tags": ["routine"]},
            ]
        },
    )

    @field_validator("tags")
    @classmethod
    def _tags(cls, v: list[str]) -> list[str]:
        return _clean_tags(v)


class TaskUpdate(RequestModel):
    """Merge update: only the keys present in the body are applied."""

    title: Title | None = None
    description: Description | None = None
    category: Category | None = None
    tags: list[str] | None = None
    due_date: datetime | None = None
    priority: Priority | None = None
    status: Status | None = None
    subtasks: list[SubtaskIn] | None = None

    @field_validator("tags")
    @classmethod
    def _tags(cls, v: list[str] | None) -> list[str] | None:
        return None if v is None else _clean_tags(v)

    @model_validator(mode="after")
    def _required_not_null(self):
        for name in ("title", "category", "due_date", "priority", "status"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class StatusUpdate(RequestModel):
    # membership is checked by the service so direct callers get the same error
    status: str


class Task(ResponseModel):
    id: int
    title: str
    description: str
    category: Category
    tags: list[str]
    status: Status
    priority: Priority
    due_date: datetime
    completed_at: datetime | None
    is_trashed: bool
    trashed_at: datetime | None
    owner_id: int
    subtasks: list[Subtask]
    created_at: datetime
    updated_at: datetime

    @field_validator("due_date", "completed_at", "trashed_at", "created_at", "updated_at")
    @classmethod
    def _utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    @computed_field(alias="isCompleted")
    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @computed_field(alias="isOverdue")
    @property
    def is_overdue(self) -> bool:
        return self.status != "completed" and now_utc() > self.due_date


class TaskPage(BaseModel):
    success: bool = True
    data: list[Task]
    total: int
    results: int
    page: int
    limit: int


class TaskStats(CamelModel):
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    todo: int = 0
    high_priority: int = 0
    medium_priority: int = 0
    low_priority: int = 0


# --- Notifications ---------------------------------------------------------


class Notification(ResponseModel):
    # id is None for due-today notices computed on read (not persisted)
    id: int | None = None
    message: str
    task_id: int | None = None
    noti_type: NotiType = "alert"
    read: bool = False
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class MarkReadRequest(RequestModel):
    all: bool = False
    id: int | None = None


# --- Users / auth ----------------------------------------------------------


class RegisterRequest(RequestModel):
    name: ShortText
    email: EmailStr
    password: Password
    role: ShortText
    title: Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)] | None = None

    @field_validator("email")
    @classmethod
    def _normalize(cls, v: str) -> str:
        return v.strip().lower()


class LoginRequest(RequestModel):
    email: str
    password: str


class CheckEmailRequest(RequestModel):
    email: EmailStr


class UserPublic(ResponseModel):
    id: int
    name: str
    email: str
    role: str
    title: str | None = None
    is_admin: bool
    is_active: bool
    created_at: datetime


class CurrentUser(BaseModel):
    """Identity attached to a request by the access gate."""

    id: int
    email: str
    name: str
    is_admin: bool = False


class AuthPayload(CamelModel):
    user: UserPublic
    token: str


class EmailExists(CamelModel):
    exists: bool


class ProfileUpdate(RequestModel):
    # admins may target another user; everyone else always edits themselves
    id: int | None = None
    name: ShortText | None = None
    title: Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)] | None = None
    role: ShortText | None = None


class PasswordChange(RequestModel):
    current_password: str
    new_password: Password


class ActivateRequest(RequestModel):
    is_active: bool


class NotificationSettings(CamelModel):
    email_notifications: bool = True
    task_reminders: bool = True
    weekly_digest: bool = False


class DisplaySettings(CamelModel):
    dark_mode: bool = False
    compact_view: bool = False
    show_completed_tasks: bool = True


class TaskDefaults(CamelModel):
    default_priority: Priority = "medium"
    default_status: Status = "todo"
    default_due_date: Literal[1, 3, 7, 14, 30] = 7  # days from today


class UserSettings(CamelModel):
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)
    task_defaults: TaskDefaults = Field(default_factory=TaskDefaults)


class NotificationSettingsPatch(RequestModel):
    email_notifications: bool | None = None
    task_reminders: bool | None = None
    weekly_digest: bool | None = None


class DisplaySettingsPatch(RequestModel):
    dark_mode: bool | None = None
    compact_view: bool | None = None
    show_completed_tasks: bool | None = None


class TaskDefaultsPatch(RequestModel):
    default_priority: Priority | None = None
    default_status: Status | None = None
    default_due_date: Literal[1, 3, 7, 14, 30] | None = None


class UserSettingsPatch(RequestModel):
    notifications: NotificationSettingsPatch | None = None
    display: DisplaySettingsPatch | None = None
    task_defaults: TaskDefaultsPatch | None = None


class SettingsUpdate(RequestModel):
    settings: UserSettingsPatch


# --- Envelopes -------------------------------------------------------------

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Success wrapper: {"success": true, "data": ...}."""

    success: bool = True
    data: T


class Message(BaseModel):
    success: bool = True
    message: str
    data: dict | None = None
