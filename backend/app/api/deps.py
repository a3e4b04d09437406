from collections.abc import Generator

from fastapi import Header, HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.db.session import SessionLocal


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_school_id(x_school_id: str | None = Header(default=None, alias="X-School-Id")) -> str:
    school_id = (x_school_id or "").strip()
    if not school_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="X-School-Id header is required")
    if len(school_id) > 36:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="X-School-Id is too long")
    return school_id


def get_app_settings() -> Settings:
    return get_settings()
