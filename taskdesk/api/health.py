from fastapi import APIRouter, HTTPException, status
from sqlalchemy import text

from ..db import engine

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Simple healthcheck endpoint."""
    return {"status": "ok"}


@router.get("/live")
def live():
    return {"status": "live"}


@router.get("/ready")
def ready():
    # ready once the database answers
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="not ready") from exc
    return {"status": "ready"}
