import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_app_settings, get_db, get_school_id
from app.core.config import Settings
from app.core.exceptions import ResourceNotFoundError, TimetableConflictError
from app.models.teacher import Teacher
from app.models.timetable import TimetableEntry
from app.schemas.calendar import normalize_day
from app.schemas.conflict import ConflictDetail
from app.schemas.timetable import (
    TimetableEntryCreate,
    TimetableEntryMutationOut,
    TimetableEntryOut,
    TimetableEntryUpdate,
    TimetableListOut,
)
from app.services.conflict_service import CandidateEntry, validate_entry
from app.services.timetable_store import list_entries, period_window

router = APIRouter()
logger = logging.getLogger(__name__)


def _resolve_teacher_name(db: Session, school_id: str, teacher_id: str | None, teacher_name: str | None) -> str:
    if teacher_name:
        return teacher_name
    if not teacher_id:
        return ""
    teacher = db.execute(
        select(Teacher).where(Teacher.id == teacher_id, Teacher.school_id == school_id)
    ).scalar_one_or_none()
    if teacher is None:
        raise ResourceNotFoundError("Teacher", teacher_id)
    return teacher.name


def _reject(candidate: CandidateEntry, conflicts: list[ConflictDetail], school_id: str) -> None:
    logger.warning(
        "TIMETABLE ENTRY REJECTED | school_id=%s | class=%s | section=%s | day=%s | period=%s | dimensions=%s",
        school_id,
        candidate.class_name,
        candidate.section,
        candidate.day,
        candidate.period,
        ",".join(conflict.dimension for conflict in conflicts),
    )
    raise TimetableConflictError(
        conflicts[0].description,
        conflicts=[conflict.model_dump() for conflict in conflicts],
    )


def _get_entry(db: Session, school_id: str, entry_id: str) -> TimetableEntry:
    entry = db.execute(
        select(TimetableEntry).where(TimetableEntry.id == entry_id, TimetableEntry.school_id == school_id)
    ).scalar_one_or_none()
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Timetable entry not found")
    return entry


@router.get("/", response_model=TimetableListOut)
def list_timetable(
    class_name: str | None = Query(default=None, alias="class"),
    section: str | None = None,
    day: str | None = None,
    teacher: str | None = None,
    school_id: str = Depends(get_school_id),
    db: Session = Depends(get_db),
) -> TimetableListOut:
    if day:
        try:
            day = normalize_day(day)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

    entries = [
        TimetableEntryOut.model_validate(entry)
        for entry in list_entries(
            db,
            school_id=school_id,
            class_name=class_name,
            section=section,
            day=day,
            teacher=teacher,
        )
    ]
    by_day: dict[str, list[TimetableEntryOut]] = {}
    for entry in entries:
        by_day.setdefault(entry.day, []).append(entry)
    classes = sorted({entry.class_name for entry in entries})
    return TimetableListOut(data=entries, by_day=by_day, classes=classes)


@router.post("/", response_model=TimetableEntryMutationOut, status_code=status.HTTP_201_CREATED)
def create_timetable_entry(
    payload: TimetableEntryCreate,
    school_id: str = Depends(get_school_id),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> TimetableEntryMutationOut:
    teacher_name = _resolve_teacher_name(db, school_id, payload.teacher_id, payload.teacher_name)
    candidate = CandidateEntry(
        class_name=payload.class_name,
        section=payload.section,
        day=payload.day,
        period=payload.period,
        subject=payload.subject,
        teacher_id=payload.teacher_id,
        teacher_name=teacher_name,
        room=payload.room,
    )
    conflicts = validate_entry(
        db,
        school_id=school_id,
        candidate=candidate,
        unassigned_teacher_label=settings.unassigned_teacher_label,
        fallback_room_prefix=settings.fallback_room_prefix,
    )
    if conflicts:
        _reject(candidate, conflicts, school_id)

    default_start, default_end = period_window(payload.period, settings)
    entry = TimetableEntry(
        school_id=school_id,
        class_name=payload.class_name,
        section=payload.section,
        academic_year=payload.academic_year,
        day=payload.day,
        period=payload.period,
        start_time=payload.start_time or default_start,
        end_time=payload.end_time or default_end,
        subject=payload.subject,
        subject_id=payload.subject_id,
        teacher_id=payload.teacher_id,
        teacher_name=teacher_name,
        room=payload.room,
    )
    db.add(entry)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        # Another request claimed the slot between validation and commit.
        conflicts = validate_entry(
            db,
            school_id=school_id,
            candidate=candidate,
            unassigned_teacher_label=settings.unassigned_teacher_label,
            fallback_room_prefix=settings.fallback_room_prefix,
        )
        if conflicts:
            _reject(candidate, conflicts, school_id)
        raise
    db.refresh(entry)
    logger.info(
        "TIMETABLE ENTRY CREATED | school_id=%s | entry_id=%s | class=%s | day=%s | period=%s",
        school_id,
        entry.id,
        entry.class_name,
        entry.day,
        entry.period,
    )
    return TimetableEntryMutationOut(message="Timetable entry added", entry=TimetableEntryOut.model_validate(entry))


@router.put("/{entry_id}", response_model=TimetableEntryMutationOut)
def update_timetable_entry(
    entry_id: str,
    payload: TimetableEntryUpdate,
    school_id: str = Depends(get_school_id),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> TimetableEntryMutationOut:
    entry = _get_entry(db, school_id, entry_id)
    data = payload.model_dump(exclude_unset=True)

    teacher_id = data.get("teacher_id", entry.teacher_id)
    if "teacher_id" in data and "teacher_name" not in data:
        teacher_name = _resolve_teacher_name(db, school_id, teacher_id, None)
    else:
        teacher_name = data.get("teacher_name", entry.teacher_name) or ""

    candidate = CandidateEntry(
        class_name=entry.class_name,
        section=entry.section,
        day=data.get("day") or entry.day,
        period=data.get("period") or entry.period,
        subject=data.get("subject") or entry.subject,
        teacher_id=teacher_id,
        teacher_name=teacher_name,
        room=data.get("room", entry.room) or "",
    )
    conflicts = validate_entry(
        db,
        school_id=school_id,
        candidate=candidate,
        exclude_entry_id=entry.id,
        unassigned_teacher_label=settings.unassigned_teacher_label,
        fallback_room_prefix=settings.fallback_room_prefix,
    )
    if conflicts:
        _reject(candidate, conflicts, school_id)

    period_changed = candidate.period != entry.period
    entry.day = candidate.day
    entry.period = candidate.period
    entry.subject = candidate.subject
    entry.teacher_id = candidate.teacher_id
    entry.teacher_name = candidate.teacher_name
    entry.room = candidate.room
    if "subject_id" in data:
        entry.subject_id = data["subject_id"]
    if period_changed:
        entry.start_time, entry.end_time = period_window(candidate.period, settings)
    if data.get("start_time"):
        entry.start_time = data["start_time"]
    if data.get("end_time"):
        entry.end_time = data["end_time"]

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        # Another request claimed the target slot between validation and commit.
        conflicts = validate_entry(
            db,
            school_id=school_id,
            candidate=candidate,
            exclude_entry_id=entry_id,
            unassigned_teacher_label=settings.unassigned_teacher_label,
            fallback_room_prefix=settings.fallback_room_prefix,
        )
        if conflicts:
            _reject(candidate, conflicts, school_id)
        raise
    db.refresh(entry)
    logger.info(
        "TIMETABLE ENTRY UPDATED | school_id=%s | entry_id=%s | class=%s | day=%s | period=%s",
        school_id,
        entry.id,
        entry.class_name,
        entry.day,
        entry.period,
    )
    return TimetableEntryMutationOut(message="Timetable entry updated", entry=TimetableEntryOut.model_validate(entry))


@router.delete("/{entry_id}")
def delete_timetable_entry(
    entry_id: str,
    school_id: str = Depends(get_school_id),
    db: Session = Depends(get_db),
) -> dict:
    entry = _get_entry(db, school_id, entry_id)
    class_name, day, period = entry.class_name, entry.day, entry.period
    db.delete(entry)
    db.commit()
    logger.info(
        "TIMETABLE ENTRY DELETED | school_id=%s | entry_id=%s | class=%s | day=%s | period=%s",
        school_id,
        entry_id,
        class_name,
        day,
        period,
    )
    return {"success": True}
