import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class TimetableEntry(Base):
    """One filled (day, period) slot of a class timetable."""

    __tablename__ = "timetable_entries"
    __table_args__ = (
        UniqueConstraint("school_id", "class_name", "section", "day", "period", name="uq_timetable_class_slot"),
        Index("ix_timetable_school_slot", "school_id", "day", "period"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    school_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    class_name: Mapped[str] = mapped_column(String(100), nullable=False)
    # Empty string rather than NULL so the unique constraint also covers section-less classes.
    section: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    academic_year: Mapped[str | None] = mapped_column(String(20), nullable=True)
    day: Mapped[str] = mapped_column(String(20), nullable=False)
    period: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    subject_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    teacher_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    teacher_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    room: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
