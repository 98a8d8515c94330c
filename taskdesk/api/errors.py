import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..errors import AppError, AuthenticationError, UnexpectedError

logger = logging.getLogger(__name__)


def error_body(message: str, **extra) -> dict:
    return {"success": False, "message": message, **extra}


def _validation_message(errors: list) -> str:
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    msg = first.get("msg", "Invalid value")
    return f"{loc}: {msg}" if loc else msg


def register_exception_handlers(app: FastAPI) -> None:
    """Attach JSON error handlers producing {"success": false, "message": ...}."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
        if exc.status_code >= 500:
            logger.error("request failed path=%s error=%s", request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message),
            headers=headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.detail if isinstance(exc.detail, str) else "HTTPError"),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        return JSONResponse(
            status_code=400,
            content=error_body(
                _validation_message(errors),
                details=[
                    {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
                    for e in errors
                ],
            ),
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("database error path=%s", request.url.path)
        return JSONResponse(status_code=500, content=error_body("Database error"))

    @app.exception_handler(Exception)
    async def unexpected_exception_handler(request: Request, exc: Exception):
        # anything that escaped the handlers above is reported as UnexpectedError
        logger.exception("unhandled error path=%s", request.url.path)
        err = UnexpectedError()
        return JSONResponse(status_code=err.status_code, content=error_body(err.message))
