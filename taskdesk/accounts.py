# PURPOSE: credential store and session issuer operations (register, login,
# email check) plus profile, settings and admin account management.

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .auth import create_access_token, hash_password, verify_password
from .db_models import UserDB
from .errors import (
    AccountDeactivatedError,
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from .models import (
    CurrentUser,
    PasswordChange,
    ProfileUpdate,
    RegisterRequest,
    UserSettings,
    UserSettingsPatch,
)

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def find_user_by_email(db: Session, email: str) -> Optional[UserDB]:
    return db.query(UserDB).filter(UserDB.email == normalize_email(email)).one_or_none()


def get_user(db: Session, user_id: int) -> UserDB:
    row = db.get(UserDB, user_id)
    if row is None:
        raise NotFoundError("User not found")
    return row


# --- Registration / login --------------------------------------------------


def register(db: Session, data: RegisterRequest) -> Tuple[UserDB, str]:
    """Create a user and issue a session token; duplicate email -> ConflictError."""
    email = normalize_email(data.email)
    if find_user_by_email(db, email) is not None:
        raise ConflictError("User already exists")

    user = UserDB(
        name=data.name,
        email=email,
        password_hash=hash_password(data.password),
        role=data.role,
        title=data.title,
        is_admin=False,
        is_active=True,
        settings=UserSettings().model_dump(),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as err:
        # lost a race against a concurrent registration with the same email
        db.rollback()
        raise ConflictError("User already exists") from err
    db.refresh(user)
    logger.info("user registered id=%s", user.id)
    return user, create_access_token(user.id)


def login(db: Session, email: str, password: str) -> Tuple[UserDB, str]:
    """Authenticate by email/password and issue a session token.

    Unknown email and wrong password fail identically.
    """
    user = find_user_by_email(db, email)
    if user is None or not verify_password(password or "", user.password_hash):
        logger.info("login refused: bad credentials")
        raise AuthenticationError("Invalid email or password")
    if user.is_active is False:
        logger.info("login refused: deactivated user id=%s", user.id)
        raise AccountDeactivatedError()
    return user, create_access_token(user.id)


def check_email_exists(db: Session, email: str) -> bool:
    return find_user_by_email(db, email) is not None


# --- Settings --------------------------------------------------------------


def get_settings(db: Session, user_id: int) -> UserSettings:
    """Stored settings merged over defaults."""
    user = get_user(db, user_id)
    return UserSettings.model_validate(user.settings or {})


def update_settings(db: Session, user_id: int, patch: UserSettingsPatch) -> UserSettings:
    """Merge the given sections/keys into the stored settings."""
    user = get_user(db, user_id)
    current = UserSettings.model_validate(user.settings or {}).model_dump()
    for section, values in patch.model_dump(exclude_unset=True).items():
        if values is None:
            continue
        current[section].update({k: v for k, v in values.items() if v is not None})
    merged = UserSettings.model_validate(current)
    # assign a new dict so the JSON column is flagged dirty
    user.settings = merged.model_dump()
    db.commit()
    return merged


# --- Profile / password ----------------------------------------------------


def update_profile(db: Session, actor: CurrentUser, data: ProfileUpdate) -> UserDB:
    """Update name/title/role; admins may target another user via `id`."""
    target_id = actor.id
    if data.id is not None and data.id != actor.id:
        if not actor.is_admin:
            raise PermissionDeniedError("Not authorized to update other users")
        target_id = data.id
    user = get_user(db, target_id)
    for field in ("name", "title", "role"):
        value = getattr(data, field)
        if value:
            setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user_id: int, data: PasswordChange) -> None:
    user = get_user(db, user_id)
    if not verify_password(data.current_password, user.password_hash):
        raise ValidationError("Current password is not correct")
    user.password_hash = hash_password(data.new_password)
    db.commit()
    logger.info("password changed user_id=%s", user_id)


# --- Admin -----------------------------------------------------------------


def list_users(db: Session) -> List[UserDB]:
    return db.query(UserDB).order_by(UserDB.id.asc()).all()


def set_active(db: Session, user_id: int, is_active: bool) -> UserDB:
    user = get_user(db, user_id)
    user.is_active = is_active
    db.commit()
    db.refresh(user)
    logger.info("user id=%s %s", user_id, "activated" if is_active else "disabled")
    return user


def delete_user(db: Session, user_id: int) -> None:
    """Remove the account row only; its tasks and notifications are left in place."""
    user = get_user(db, user_id)
    db.delete(user)
    try:
        db.commit()
    except IntegrityError as err:
        # databases enforcing foreign keys refuse while tasks still reference the user
        db.rollback()
        raise ConflictError("User still owns tasks or notifications") from err
    logger.info("user deleted id=%s", user_id)
