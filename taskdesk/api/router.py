from fastapi import APIRouter

from ..routers import auth as auth_router
from ..routers import tasks as tasks_router
from ..routers import users as users_router

api_router = APIRouter(prefix="/api")

# Endpoints live at /api/auth, /api/tasks and /api/users
api_router.include_router(auth_router.router)
api_router.include_router(tasks_router.router)
api_router.include_router(users_router.router)


@api_router.get("", tags=["auth"])  # lightweight meta endpoint
def api_info():
    return {
        "name": "Taskdesk API",
        "docs": "/docs",
        "auth": {
            "register": "/api/auth/register",
            "login": "/api/auth/login",
            "checkEmail": "/api/auth/check-email",
            "me": "/api/auth/me",
        },
        "tasks": "/api/tasks",
        "users": "/api/users",
    }
