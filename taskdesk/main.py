# PURPOSE: assemble the FastAPI application.
# Run with: uvicorn taskdesk.main:app

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from . import __version__
from .api import health, middleware
from .api.errors import register_exception_handlers
from .api.router import api_router
from .config import settings
from .db import engine
from .logging_utils import setup_logging
from .rate_limit import limiter, rate_limit_exceeded_handler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Schema is managed by Alembic (alembic upgrade head), not created here
    setup_logging(settings.LOG_LEVEL)
    logger.info("taskdesk %s starting database=%s", __version__, engine.url.render_as_string())
    yield
    logger.info("taskdesk stopping")


tags_metadata = [
    {"name": "auth", "description": "Registration, login, email check, session."},
    {"name": "tasks", "description": "Tasks: CRUD, status, trash, subtasks, stats."},
    {"name": "users", "description": "Settings, profile, notifications, admin."},
    {"name": "health", "description": "Health, liveness and readiness."},
]

app = FastAPI(
    title="Taskdesk API",
    version=__version__,
    description=(
        "Personal task manager JSON API under /api. "
        "Authenticate with the `token` cookie or an `Authorization: Bearer` header."
    ),
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(api_router)
register_exception_handlers(app)

# Rate limiting: per-route limits live on the auth endpoints
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# Added last runs first: the request id is in place before anything logs
middleware.install_security_headers(app)
middleware.install_cors(app)
middleware.install_request_context(app)

# Prometheus metrics at /metrics
Instrumentator().instrument(app).expose(app, include_in_schema=False)
