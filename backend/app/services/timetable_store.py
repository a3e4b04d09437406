from __future__ import annotations

import logging
from typing import Iterable, Mapping, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.exceptions import PersistenceError
from app.models.timetable import TimetableEntry
from app.schemas.calendar import day_sort_key, format_minutes, parse_time_to_minutes
from app.schemas.generator import GeneratedSlot

logger = logging.getLogger(__name__)


def period_window(period: int, settings: Settings) -> tuple[str, str]:
    day_start = parse_time_to_minutes(settings.school_day_start)
    start = day_start + (period - 1) * settings.period_minutes
    return format_minutes(start), format_minutes(start + settings.period_minutes)


def entries_from_grid(
    *,
    school_id: str,
    class_name: str,
    section: str,
    academic_year: str | None,
    timetable: Mapping[str, Sequence[GeneratedSlot]],
    settings: Settings,
) -> list[TimetableEntry]:
    entries: list[TimetableEntry] = []
    seen: set[tuple[str, int]] = set()
    for day, slots in timetable.items():
        for slot in slots:
            key = (day, slot.period)
            if key in seen:
                raise ValueError(f"{day} period {slot.period} appears more than once")
            seen.add(key)
            default_start, default_end = period_window(slot.period, settings)
            entries.append(
                TimetableEntry(
                    school_id=school_id,
                    class_name=class_name,
                    section=section,
                    academic_year=academic_year,
                    day=day,
                    period=slot.period,
                    start_time=slot.start_time or default_start,
                    end_time=slot.end_time or default_end,
                    subject=slot.subject,
                    subject_id=slot.subject_id,
                    teacher_id=slot.teacher_id,
                    teacher_name=slot.teacher or "",
                    room=slot.room or "",
                )
            )
    return entries


def _scope(school_id: str, class_name: str, section: str):
    return (
        TimetableEntry.school_id == school_id,
        TimetableEntry.class_name == class_name,
        TimetableEntry.section == section,
    )


def replace_class_timetable(
    db: Session,
    *,
    school_id: str,
    class_name: str,
    section: str,
    entries: Iterable[TimetableEntry],
    retry_attempts: int = 2,
) -> int:
    """Replace every stored entry of one class with ``entries`` in a single transaction.

    Either the whole new set becomes visible or the previous timetable stays
    untouched. A unique-constraint violation means another save for the same
    class interleaved with this one; the replacement is retried from scratch.
    """
    rows = list(entries)
    attempts = max(1, retry_attempts)
    for attempt in range(1, attempts + 1):
        try:
            # Row locks serialize concurrent saves for the same class where the backend supports them.
            db.execute(select(TimetableEntry.id).where(*_scope(school_id, class_name, section)).with_for_update())
            db.execute(delete(TimetableEntry).where(*_scope(school_id, class_name, section)))
            fresh = [_copy_entry(row) for row in rows]
            db.add_all(fresh)
            db.flush()
            db.commit()
            return len(fresh)
        except IntegrityError:
            db.rollback()
            logger.warning(
                "TIMETABLE SAVE RETRY | school_id=%s | class=%s | section=%s | attempt=%s/%s",
                school_id,
                class_name,
                section,
                attempt,
                attempts,
            )
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception(
                "TIMETABLE SAVE FAILED | school_id=%s | class=%s | section=%s",
                school_id,
                class_name,
                section,
            )
            raise PersistenceError(
                "Failed to save timetable; the previous timetable is unchanged",
                details={"class_name": class_name, "section": section},
            ) from exc

    raise PersistenceError(
        "Failed to save timetable after concurrent updates; the previous timetable is unchanged",
        details={"class_name": class_name, "section": section, "attempts": attempts},
    )


def _copy_entry(entry: TimetableEntry) -> TimetableEntry:
    return TimetableEntry(
        school_id=entry.school_id,
        class_name=entry.class_name,
        section=entry.section,
        academic_year=entry.academic_year,
        day=entry.day,
        period=entry.period,
        start_time=entry.start_time,
        end_time=entry.end_time,
        subject=entry.subject,
        subject_id=entry.subject_id,
        teacher_id=entry.teacher_id,
        teacher_name=entry.teacher_name,
        room=entry.room,
    )


def list_entries(
    db: Session,
    *,
    school_id: str,
    class_name: str | None = None,
    section: str | None = None,
    day: str | None = None,
    teacher: str | None = None,
) -> list[TimetableEntry]:
    query = select(TimetableEntry).where(TimetableEntry.school_id == school_id)
    if class_name:
        query = query.where(TimetableEntry.class_name == class_name)
    if section is not None:
        query = query.where(TimetableEntry.section == section)
    if day:
        query = query.where(TimetableEntry.day == day)
    if teacher:
        query = query.where(TimetableEntry.teacher_name.ilike(f"%{_escape_like(teacher)}%", escape="\\"))
    entries = list(db.execute(query).scalars())
    entries.sort(key=lambda entry: (day_sort_key(entry.day), entry.period, entry.class_name, entry.section))
    return entries


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
