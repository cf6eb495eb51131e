"""Health check API endpoints."""
from fastapi import APIRouter

from database import get_db_manager

router = APIRouter(tags=["health"])


@router.get("/")
def read_root():
    return {
        "status": "ok",
        "service": "Teaching Practice Workflow API",
        "version": "1.0.0",
    }


@router.get("/health/db")
def database_health():
    """Report whether the database answers a trivial query."""
    if get_db_manager().health_check():
        return {"status": "ok", "database": "connected"}
    return {"status": "error", "database": "connection_failed"}
