from __future__ import annotations

import logging
import random
from collections import Counter

from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.exceptions import EmptyCatalogError, SchedulerError
from app.schemas.calendar import DAY_VALUES
from app.schemas.generator import GenerateTimetableRequest, GenerateTimetableResponse, GeneratedSlot, GenerationStats
from app.services.catalog import fallback_room_label, load_class_catalog
from app.services.conflict_service import seed_occupancy
from app.services.quota_planner import plan_quotas
from app.services.slot_allocator import AllocationResult, Grid, SlotAllocator
from app.services.timetable_store import period_window

logger = logging.getLogger(__name__)


def resolve_grid(payload: GenerateTimetableRequest, settings: Settings) -> Grid:
    working_days = payload.working_days if payload.working_days is not None else settings.default_working_days
    periods_per_day = payload.periods_per_day if payload.periods_per_day is not None else settings.default_periods_per_day

    if not working_days:
        raise SchedulerError("At least one working day is required")
    unknown = [day for day in working_days if day not in DAY_VALUES]
    if unknown:
        raise SchedulerError("Unknown working day(s)", details={"days": unknown})
    if len(set(working_days)) != len(working_days):
        raise SchedulerError("working_days must not repeat a day")
    if periods_per_day < 1:
        raise SchedulerError("periods_per_day must be at least 1", details={"periods_per_day": periods_per_day})
    return Grid(working_days=tuple(working_days), periods_per_day=periods_per_day)


def generate_timetable(
    db: Session,
    *,
    school_id: str,
    payload: GenerateTimetableRequest,
    settings: Settings,
) -> GenerateTimetableResponse:
    class_name = payload.class_name.strip()
    if not class_name:
        raise SchedulerError("class_name is required")
    grid = resolve_grid(payload, settings)

    catalog = load_class_catalog(db, school_id=school_id, class_name=class_name)
    if not catalog.subjects:
        raise EmptyCatalogError(class_name)
    names = Counter(subject.name for subject in catalog.subjects)
    duplicates = sorted(name for name, count in names.items() if count > 1)
    if duplicates:
        # Responses key quotas and distribution by subject name.
        raise SchedulerError(
            f"Class {class_name} has more than one active subject with the same name",
            details={"class_name": class_name, "subjects": duplicates},
            status_code=409,
        )

    strict = settings.strict_cross_class_generation if payload.strict_cross_class is None else payload.strict_cross_class
    seed = payload.seed if payload.seed is not None else random.SystemRandom().randrange(2_000_000_000)

    occupancy = None
    if strict:
        occupancy = seed_occupancy(
            db,
            school_id=school_id,
            exclude_class=(class_name, payload.section),
            teacher_names=catalog.teacher_names,
            unassigned_teacher_label=settings.unassigned_teacher_label,
            fallback_room_prefix=settings.fallback_room_prefix,
        )

    quotas = plan_quotas(catalog.subjects, grid)
    logger.info(
        "TIMETABLE QUOTA PLAN | school_id=%s | class=%s | capacity=%s | planned=%s | subjects=%s",
        school_id,
        class_name,
        grid.capacity,
        sum(quotas.values()),
        len(catalog.subjects),
    )

    allocator = SlotAllocator(
        grid=grid,
        subjects=catalog.subjects,
        quotas=quotas,
        teacher_names=catalog.teacher_names,
        rooms=catalog.rooms,
        fallback_room=fallback_room_label(class_name, payload.section, settings.fallback_room_prefix),
        unassigned_teacher_label=settings.unassigned_teacher_label,
        occupancy=occupancy,
        seed=seed,
    )
    result = allocator.allocate()

    subject_names = {subject.id: subject.name for subject in catalog.subjects}
    return build_response(
        payload=payload,
        class_name=class_name,
        result=result,
        subject_names=subject_names,
        strict=strict,
        seed=seed,
        settings=settings,
    )


def build_response(
    *,
    payload: GenerateTimetableRequest,
    class_name: str,
    result: AllocationResult,
    subject_names: dict[str, str],
    strict: bool,
    seed: int,
    settings: Settings,
) -> GenerateTimetableResponse:
    timetable: dict[str, list[GeneratedSlot]] = {}
    for day, assignments in result.by_day().items():
        rows = []
        for assignment in assignments:
            start_time, end_time = period_window(assignment.slot.period, settings)
            rows.append(
                GeneratedSlot(
                    period=assignment.slot.period,
                    subject=assignment.subject,
                    subject_id=assignment.subject_id,
                    teacher=assignment.teacher,
                    teacher_id=assignment.teacher_id,
                    room=assignment.room,
                    start_time=start_time,
                    end_time=end_time,
                )
            )
        timetable[day] = rows

    stats = result.stats()
    return GenerateTimetableResponse(
        class_name=class_name,
        section=payload.section,
        academic_year=payload.academic_year,
        periods_per_day=result.grid.periods_per_day,
        working_days=list(result.grid.working_days),
        strict_cross_class=strict,
        seed=seed,
        timetable=timetable,
        subject_distribution=result.distribution(),
        quotas={subject_names[subject_id]: count for subject_id, count in result.quotas.items()},
        conflicts=[conflict.describe() for conflict in result.conflicts],
        stats=GenerationStats(
            total_slots=stats.total_slots,
            filled_slots=stats.filled_slots,
            subjects_scheduled=stats.subjects_scheduled,
            utilization=stats.utilization,
        ),
    )
