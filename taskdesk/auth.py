# PURPOSE: password hashing, session tokens and the access gate dependency.

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

import bcrypt
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from .clock import now_utc
from .config import settings
from .db import get_db
from .db_models import UserDB
from .errors import AuthenticationError, PermissionDeniedError
from .models import CurrentUser

logger = logging.getLogger(__name__)

# Header scheme; auto_error is off because the cookie is an equally valid source
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# --- Password helpers (bcrypt, no passlib) ---

def _secret_bytes(password: str) -> bytes:
    # bcrypt only reads the first 72 bytes; recent releases reject longer input
    return password.encode("utf-8")[:72]


def hash_password(password: str) -> str:
    """Return a bcrypt hash for the given plain password."""
    if not isinstance(password, str):
        raise TypeError("password must be a string")
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(_secret_bytes(password), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify a plain password against its bcrypt hash."""
    try:
        return bcrypt.checkpw(
            _secret_bytes(plain_password),
            password_hash.encode("utf-8"),
        )
    except (TypeError, ValueError):
        # malformed stored hash
        return False


# --- JWT helpers ---

def get_access_token_ttl_minutes() -> int:
    """
    Return session token TTL in minutes, parsed safely from settings.
    Falls back to one day if the configured value is not a positive integer.
    """
    try:
        minutes = int(settings.JWT_EXPIRE_MIN)
    except (TypeError, ValueError):
        return 60 * 24
    return minutes if minutes > 0 else 60 * 24


def create_access_token(user_id: int, extra: Optional[Dict[str, Any]] = None) -> str:
    """
    Create a signed JWT for a user.
    - `sub` carries the user id as a string (JWT requires a string subject).
    - Expiration controlled by settings.JWT_EXPIRE_MIN.
    """
    payload: Dict[str, Any] = {**(extra or {}), "sub": str(user_id)}
    expire = now_utc() + timedelta(minutes=get_access_token_ttl_minutes())
    payload["exp"] = expire
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> int:
    """Verify signature and expiry; return the user id carried in `sub`."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as err:
        raise AuthenticationError() from err
    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError) as err:
        raise AuthenticationError() from err


def extract_token(request: Request, header_token: Optional[str]) -> Optional[str]:
    """Cookie first, then the Authorization: Bearer header."""
    cookie = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if cookie:
        return cookie
    return header_token or None


# --- Access gate ---

def get_current_user(
    request: Request,
    header_token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """Resolve the caller from the session token or fail with 401."""
    token = extract_token(request, header_token)
    if not token:
        raise AuthenticationError()

    user_id = decode_access_token(token)
    row = db.get(UserDB, user_id)
    if row is None:
        logger.info("token for missing user id=%s", user_id)
        raise AuthenticationError("User not found")

    return CurrentUser(id=row.id, email=row.email, name=row.name, is_admin=row.is_admin)


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise PermissionDeniedError()
    return user
