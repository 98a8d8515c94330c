# taskdesk/routers/users.py
# PURPOSE: /api/users settings, profile, notifications and admin account ops.

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import accounts, notifications
from ..auth import get_current_user, require_admin
from ..db import get_db
from ..models import (
    ActivateRequest,
    CurrentUser,
    Envelope,
    MarkReadRequest,
    Message,
    Notification,
    PasswordChange,
    ProfileUpdate,
    SettingsUpdate,
    UserPublic,
    UserSettings,
)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/settings", response_model=Envelope[UserSettings])
def get_settings(db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    return Envelope[UserSettings](data=accounts.get_settings(db, user.id))


@router.put("/settings", response_model=Envelope[UserSettings])
def update_settings(
    payload: SettingsUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return Envelope[UserSettings](data=accounts.update_settings(db, user.id, payload.settings))


@router.put("/profile", response_model=Envelope[UserPublic])
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    row = accounts.update_profile(db, user, payload)
    return Envelope[UserPublic](data=UserPublic.model_validate(row))


@router.put("/change-password", response_model=Message)
def change_password(
    payload: PasswordChange,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    accounts.change_password(db, user.id, payload)
    return Message(message="Password changed successfully")


@router.get("/notifications", response_model=Envelope[List[Notification]])
def list_notifications(db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    return Envelope[List[Notification]](data=notifications.list_notifications(db, owner_id=user.id))


@router.put("/notifications/read", response_model=Message)
def mark_notifications_read(
    payload: MarkReadRequest,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    updated = notifications.mark_read(db, owner_id=user.id, all=payload.all, id=payload.id)
    return Message(message="Notifications marked as read", data={"updated": updated})


# --- Admin -----------------------------------------------------------------


@router.get("/team", response_model=Envelope[List[UserPublic]])
def team_list(db: Session = Depends(get_db), _admin: CurrentUser = Depends(require_admin)):
    return Envelope[List[UserPublic]](
        data=[UserPublic.model_validate(u) for u in accounts.list_users(db)]
    )


@router.put("/{user_id}/activate", response_model=Envelope[UserPublic])
def activate_user(
    user_id: int,
    payload: ActivateRequest,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
):
    row = accounts.set_active(db, user_id, payload.is_active)
    return Envelope[UserPublic](data=UserPublic.model_validate(row))


@router.delete("/{user_id}", response_model=Message)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
):
    accounts.delete_user(db, user_id)
    return Message(message="User deleted successfully", data={"id": user_id})
