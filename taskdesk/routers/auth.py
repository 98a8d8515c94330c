# taskdesk/routers/auth.py
# PURPOSE: /api/auth/register, /login, /check-email, /logout, /me

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from .. import accounts
from ..auth import get_access_token_ttl_minutes, get_current_user
from ..config import settings
from ..db import get_db
from ..models import (
    AuthPayload,
    CheckEmailRequest,
    CurrentUser,
    EmailExists,
    Envelope,
    LoginRequest,
    Message,
    RegisterRequest,
    UserPublic,
)
from ..rate_limit import limiter

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.AUTH_COOKIE_SECURE,
        samesite=settings.AUTH_COOKIE_SAMESITE,
        max_age=60 * get_access_token_ttl_minutes(),
    )


@router.post("/register", response_model=Envelope[AuthPayload], status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_REGISTER)
def register_user(
    request: Request, response: Response, payload: RegisterRequest, db: Session = Depends(get_db)
):
    user, token = accounts.register(db, payload)
    _set_session_cookie(response, token)
    return Envelope(data=AuthPayload(user=UserPublic.model_validate(user), token=token))


@router.post("/login", response_model=Envelope[AuthPayload])
@limiter.limit(settings.RATE_LIMIT_LOGIN)
def login(
    request: Request, response: Response, payload: LoginRequest, db: Session = Depends(get_db)
):
    user, token = accounts.login(db, payload.email, payload.password)
    _set_session_cookie(response, token)
    return Envelope(data=AuthPayload(user=UserPublic.model_validate(user), token=token))


@router.post("/check-email", response_model=Envelope[EmailExists])
def check_email(payload: CheckEmailRequest, db: Session = Depends(get_db)):
    # existence check for the login form; not an authentication decision
    return Envelope(data=EmailExists(exists=accounts.check_email_exists(db, payload.email)))


@router.post("/logout", response_model=Message)
def logout(response: Response):
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return Message(message="Logout successful")


@router.get("/me", response_model=Envelope[UserPublic])
def me(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return Envelope(data=UserPublic.model_validate(accounts.get_user(db, user.id)))
