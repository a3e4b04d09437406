from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.room import Room, RoomStatus
from app.models.subject import Subject, SubjectStatus
from app.models.teacher import Teacher


@dataclass(frozen=True)
class SubjectSpec:
    id: str
    name: str
    weekly_hours: int | None = None
    eligible_teacher_ids: tuple[str, ...] = ()


@dataclass
class ClassCatalog:
    class_name: str
    subjects: list[SubjectSpec] = field(default_factory=list)
    teacher_names: dict[str, str] = field(default_factory=dict)
    rooms: list[str] = field(default_factory=list)


def fallback_room_label(class_name: str, section: str = "", prefix: str = "Classroom") -> str:
    label = f"{prefix} {class_name}"
    if section:
        label = f"{label}-{section}"
    return label


def weekly_target(subject: Subject) -> int | None:
    for value in (subject.hours_per_week, subject.credits):
        if value is not None and value > 0:
            return int(value)
    return None


def load_class_catalog(db: Session, *, school_id: str, class_name: str) -> ClassCatalog:
    subjects = list(
        db.execute(
            select(Subject)
            .where(
                Subject.school_id == school_id,
                Subject.class_name == class_name,
                Subject.status == SubjectStatus.active,
            )
            .order_by(Subject.name, Subject.id)
        ).scalars()
    )
    teachers = list(
        db.execute(
            select(Teacher).where(Teacher.school_id == school_id, Teacher.is_active.is_(True)).order_by(Teacher.name)
        ).scalars()
    )
    rooms = list(
        db.execute(
            select(Room.name)
            .where(Room.school_id == school_id, Room.status == RoomStatus.available)
            .order_by(Room.name)
        ).scalars()
    )

    teacher_names = {teacher.id: teacher.name for teacher in teachers}
    specs = [
        SubjectSpec(
            id=subject.id,
            name=subject.name,
            weekly_hours=weekly_target(subject),
            eligible_teacher_ids=tuple(
                teacher_id
                for teacher_id in dict.fromkeys(subject.eligible_teacher_ids or [])
                if teacher_id in teacher_names
            ),
        )
        for subject in subjects
    ]
    return ClassCatalog(class_name=class_name, subjects=specs, teacher_names=teacher_names, rooms=rooms)
