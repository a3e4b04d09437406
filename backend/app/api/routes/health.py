from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.db.bootstrap import find_schema_gaps
from app.db.session import engine

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/health/ready")
def health_ready() -> JSONResponse:
    db_ok = True
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    db_error: str | None = None

    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        missing_tables, missing_columns = find_schema_gaps(engine)
    except Exception as exc:  # pragma: no cover - environment dependent
        db_ok = False
        db_error = str(exc)

    schema_ok = not missing_tables and not missing_columns
    ready = db_ok and schema_ok
    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": {
            "ok": db_ok,
            "schema_ok": schema_ok,
            "missing_tables": missing_tables,
            "missing_columns": missing_columns,
            "error": db_error,
        },
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
