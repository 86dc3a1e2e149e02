from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.core.config import get_settings
from app.db.bootstrap import missing_tables
from app.db.session import engine
from app.services.cancellation import run_registry

router = APIRouter()

settings = get_settings()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/health/ready")
def health_ready() -> JSONResponse:
    """Readiness check: database reachable and every scheduling table present."""
    db_ok = True
    missing: list[str] = []
    db_error: str | None = None

    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        missing = missing_tables()
    except Exception as exc:  # pragma: no cover - environment dependent
        db_ok = False
        db_error = str(exc)

    ready = db_ok and not missing
    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "database": {
            "ok": db_ok,
            "dialect": engine.dialect.name,
            "schema_ok": not missing,
            "missing_tables": missing,
            "error": db_error,
        },
        "active_runs": run_registry.active_runs(),
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
