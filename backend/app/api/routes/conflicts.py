from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_app_settings, get_db, get_school_id
from app.core.config import Settings
from app.schemas.conflict import ConflictReport
from app.schemas.timetable import TimetableEntryCreate
from app.services.conflict_service import CandidateEntry, ConflictService, load_school_entries, validate_entry

router = APIRouter()


@router.post("/check", response_model=ConflictReport)
def check_entry_conflicts(
    payload: TimetableEntryCreate,
    exclude_entry_id: str | None = Query(default=None),
    school_id: str = Depends(get_school_id),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> ConflictReport:
    candidate = CandidateEntry(
        class_name=payload.class_name,
        section=payload.section,
        day=payload.day,
        period=payload.period,
        subject=payload.subject,
        teacher_id=payload.teacher_id,
        teacher_name=payload.teacher_name,
        room=payload.room,
    )
    conflicts = validate_entry(
        db,
        school_id=school_id,
        candidate=candidate,
        exclude_entry_id=exclude_entry_id,
        unassigned_teacher_label=settings.unassigned_teacher_label,
        fallback_room_prefix=settings.fallback_room_prefix,
    )
    return ConflictReport(accepted=not conflicts, conflicts=conflicts)


@router.get("/detect", response_model=ConflictReport)
def detect_stored_conflicts(
    class_name: str | None = Query(default=None, alias="class"),
    school_id: str = Depends(get_school_id),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> ConflictReport:
    service = ConflictService(
        load_school_entries(db, school_id=school_id),
        unassigned_teacher_label=settings.unassigned_teacher_label,
        fallback_room_prefix=settings.fallback_room_prefix,
    )
    return service.detect_conflicts(class_name=class_name)
