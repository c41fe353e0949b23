# routers/health.py

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from core.config import settings
from core.errors import extract_db_error
from database import get_session

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


# -----------------------------------------------------
# GET /health/db
# Round-trips one query through the configured store
# No auth required
# -----------------------------------------------------
@router.get("/db", summary="Database health check")
def health_db(session: Session = Depends(get_session)):
    """
    Safe for external health monitors (no auth required).
    """
    try:
        session.execute(text("SELECT 1"))
        return {
            "service": "database",
            "status": "ok",
        }

    except SQLAlchemyError as e:
        return {
            "service": "database",
            "status": "error",
            "error": extract_db_error(e),
        }


# -----------------------------------------------------
# GET /health/app
# Simple API health check
# -----------------------------------------------------
@router.get("/app", summary="App health check")
async def health_app():
    """
    Lightweight health check for uptime monitors.
    """
    return {
        "service": settings.PROJECT_NAME,
        "status": "ok",
    }
