# PURPOSE: HTTP middleware: request id + access log, CORS, security headers.

import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..config import settings
from ..logging_utils import request_id_var

access_log = logging.getLogger("taskdesk.request")

# Swagger/ReDoc pull scripts from a CDN; their pages get no CSP
_DOC_PREFIXES = ("/docs", "/redoc")


def install_request_context(app: FastAPI) -> None:
    @app.middleware("http")
    async def request_context(request: Request, call_next):
        started = time.perf_counter()
        req_id = request.headers.get(settings.REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = req_id
        reset_token = request_id_var.set(req_id)
        status_code = 500  # unless call_next returns a response
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers.setdefault(settings.REQUEST_ID_HEADER, req_id)
            return response
        finally:
            access_log.info(
                "method=%s path=%s status=%s duration_ms=%s",
                request.method,
                request.url.path,
                status_code,
                int((time.perf_counter() - started) * 1000),
            )
            request_id_var.reset(reset_token)


def install_cors(app: FastAPI) -> None:
    # credentials (the session cookie) need an explicit origin list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", settings.REQUEST_ID_HEADER],
        expose_headers=["X-Total-Count", "Location", settings.REQUEST_ID_HEADER],
    )


def install_security_headers(app: FastAPI) -> None:
    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        headers = response.headers
        headers.setdefault("X-Content-Type-Options", "nosniff")
        headers.setdefault("X-Frame-Options", "DENY")
        headers.setdefault("Referrer-Policy", "no-referrer")
        if settings.SECURITY_CSP and not request.url.path.startswith(_DOC_PREFIXES):
            headers["Content-Security-Policy"] = settings.SECURITY_CSP
        if settings.SECURITY_ENABLE_HSTS:
            headers.setdefault("Strict-Transport-Security", "max-age=15552000; includeSubDomains")
        return response
