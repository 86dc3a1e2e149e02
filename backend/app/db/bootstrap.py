from __future__ import annotations

import logging

from sqlalchemy import inspect

from app.db.base import Base
from app.db.session import engine
import app.models  # noqa: F401

logger = logging.getLogger(__name__)

REQUIRED_TABLES: set[str] = {
    "school_years",
    "classrooms",
    "teachers",
    "subjects",
    "sections",
    "schedule_entries",
}


def missing_tables() -> list[str]:
    with engine.connect() as connection:
        existing = set(inspect(connection).get_table_names())
    return sorted(REQUIRED_TABLES - existing)


def ensure_runtime_schema() -> None:
    """Create tables on SQLite development databases; only report on others.

    PostgreSQL schemas are owned by the Alembic migrations under
    ``database/migrations``.
    """
    if engine.dialect.name == "sqlite":
        Base.metadata.create_all(bind=engine)
        return
    missing = missing_tables()
    if missing:
        logger.warning(
            "Database schema is missing tables %s; run `alembic upgrade head` before generating schedules",
            ", ".join(missing),
        )
