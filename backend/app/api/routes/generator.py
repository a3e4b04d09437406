import logging
from time import perf_counter

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_app_settings, get_db, get_school_id
from app.core.config import Settings
from app.core.exceptions import TimetableConflictError
from app.schemas.generator import (
    GenerateTimetableRequest,
    GenerateTimetableResponse,
    SaveTimetableRequest,
    SaveTimetableResponse,
)
from app.services.conflict_service import ConflictService, load_school_entries
from app.services.timetable_generator import generate_timetable
from app.services.timetable_store import entries_from_grid, replace_class_timetable

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/timetable/generate", response_model=GenerateTimetableResponse)
def generate_class_timetable(
    payload: GenerateTimetableRequest,
    school_id: str = Depends(get_school_id),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> GenerateTimetableResponse:
    started = perf_counter()
    logger.info(
        "TIMETABLE GENERATION START | school_id=%s | class=%s | section=%s | periods=%s | days=%s | strict=%s | seed=%s",
        school_id,
        payload.class_name,
        payload.section,
        payload.periods_per_day,
        payload.working_days,
        payload.strict_cross_class,
        payload.seed,
    )
    try:
        result = generate_timetable(db, school_id=school_id, payload=payload, settings=settings)
    except Exception:
        elapsed_ms = int((perf_counter() - started) * 1000)
        logger.exception(
            "TIMETABLE GENERATION FAILED | school_id=%s | class=%s | section=%s | wall_ms=%s",
            school_id,
            payload.class_name,
            payload.section,
            elapsed_ms,
        )
        raise

    elapsed_ms = int((perf_counter() - started) * 1000)
    logger.info(
        "TIMETABLE GENERATION COMPLETE | school_id=%s | class=%s | section=%s | filled=%s/%s | conflicts=%s | seed=%s | wall_ms=%s",
        school_id,
        result.class_name,
        result.section,
        result.stats.filled_slots,
        result.stats.total_slots,
        len(result.conflicts),
        result.seed,
        elapsed_ms,
    )
    return result


@router.put("/timetable/generate", response_model=SaveTimetableResponse)
def save_class_timetable(
    payload: SaveTimetableRequest,
    school_id: str = Depends(get_school_id),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> SaveTimetableResponse:
    logger.info(
        "TIMETABLE SAVE START | school_id=%s | class=%s | section=%s | days=%s | check_conflicts=%s",
        school_id,
        payload.class_name,
        payload.section,
        len(payload.timetable),
        payload.check_conflicts,
    )
    entries = entries_from_grid(
        school_id=school_id,
        class_name=payload.class_name,
        section=payload.section,
        academic_year=payload.academic_year,
        timetable=payload.timetable,
        settings=settings,
    )

    if payload.check_conflicts:
        scope = (payload.class_name, payload.section)
        others = [
            entry
            for entry in load_school_entries(db, school_id=school_id)
            if (entry.class_name, entry.section) != scope
        ]
        service = ConflictService(
            others,
            unassigned_teacher_label=settings.unassigned_teacher_label,
            fallback_room_prefix=settings.fallback_room_prefix,
        )
        conflicts = [detail for entry in entries for detail in service.check(entry)]
        if conflicts:
            logger.warning(
                "TIMETABLE SAVE REJECTED | school_id=%s | class=%s | section=%s | conflicts=%s",
                school_id,
                payload.class_name,
                payload.section,
                len(conflicts),
            )
            raise TimetableConflictError(
                f"Timetable for {payload.class_name} collides with {len(conflicts)} existing entries",
                conflicts=[detail.model_dump() for detail in conflicts],
            )

    count = replace_class_timetable(
        db,
        school_id=school_id,
        class_name=payload.class_name,
        section=payload.section,
        entries=entries,
        retry_attempts=settings.save_retry_attempts,
    )
    logger.info(
        "TIMETABLE SAVE COMPLETE | school_id=%s | class=%s | section=%s | count=%s",
        school_id,
        payload.class_name,
        payload.section,
        count,
    )
    return SaveTimetableResponse(message="Timetable saved", count=count)
