from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from app.core.config import get_settings
from app.db.base import Base
import app.models  # noqa: F401
from app.db.session import engine as default_engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "subjects": {"id", "school_id", "name", "class_name", "hours_per_week", "credits", "eligible_teacher_ids"},
    "teachers": {"id", "school_id", "name", "is_active"},
    "rooms": {"id", "school_id", "name", "status"},
    "timetable_entries": {
        "id",
        "school_id",
        "class_name",
        "section",
        "day",
        "period",
        "subject",
        "teacher_id",
        "teacher_name",
        "room",
    },
}


def find_schema_gaps(bind: Engine) -> tuple[list[str], dict[str, list[str]]]:
    with bind.connect() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = sorted(name for name in REQUIRED_COLUMNS if name not in table_names)
        missing_columns: dict[str, list[str]] = {}
        for table_name, required in REQUIRED_COLUMNS.items():
            if table_name not in table_names:
                continue
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            missing = sorted(required - existing)
            if missing:
                missing_columns[table_name] = missing
    return missing_tables, missing_columns


def ensure_runtime_schema_compatibility(bind: Engine | None = None) -> None:
    bind = bind or default_engine
    settings = get_settings()
    try:
        if settings.auto_create_schema:
            Base.metadata.create_all(bind=bind)
        missing_tables, missing_columns = find_schema_gaps(bind)
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc

    if missing_tables:
        logger.error("Missing required tables: %s (run `alembic upgrade head`)", ", ".join(missing_tables))
        raise RuntimeError(f"Missing required tables: {', '.join(missing_tables)}")
    if missing_columns:
        flattened = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
        logger.error("Missing required columns: %s", ", ".join(flattened))
        raise RuntimeError(f"Missing required columns: {', '.join(flattened)}")
