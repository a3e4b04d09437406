from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.timetable import TimetableEntry
from app.schemas.conflict import ConflictDetail, ConflictReport
from app.services.catalog import fallback_room_label
from app.services.slot_allocator import OccupancySets, Slot


class EntryLike(Protocol):
    class_name: str
    section: str
    day: str
    period: int
    subject: str
    teacher_id: str | None
    teacher_name: str
    room: str


@dataclass
class CandidateEntry:
    class_name: str
    day: str
    period: int
    subject: str
    section: str = ""
    teacher_id: str | None = None
    teacher_name: str = ""
    room: str = ""


def _class_label(class_name: str, section: str) -> str:
    return f"{class_name} {section}".strip()


class ConflictService:
    def __init__(
        self,
        existing_entries: Iterable[EntryLike],
        *,
        unassigned_teacher_label: str = "TBA",
        fallback_room_prefix: str = "Classroom",
    ):
        self.entries = list(existing_entries)
        self.unassigned_teacher_label = unassigned_teacher_label
        self.fallback_room_prefix = fallback_room_prefix

    def has_teacher(self, entry: EntryLike) -> bool:
        if entry.teacher_id:
            return True
        name = (entry.teacher_name or "").strip()
        return bool(name) and name.casefold() != self.unassigned_teacher_label.casefold()

    def has_room(self, entry: EntryLike) -> bool:
        room = (entry.room or "").strip()
        if not room:
            return False
        placeholder = fallback_room_label(entry.class_name, entry.section or "", self.fallback_room_prefix)
        return room.casefold() != placeholder.casefold()

    def same_teacher(self, left: EntryLike, right: EntryLike) -> bool:
        if not (self.has_teacher(left) and self.has_teacher(right)):
            return False
        if left.teacher_id and right.teacher_id:
            return left.teacher_id == right.teacher_id
        left_name = (left.teacher_name or "").strip().casefold()
        right_name = (right.teacher_name or "").strip().casefold()
        return bool(left_name) and left_name == right_name

    def same_room(self, left: EntryLike, right: EntryLike) -> bool:
        if not (self.has_room(left) and self.has_room(right)):
            return False
        return left.room.strip().casefold() == right.room.strip().casefold()

    def check(self, candidate: EntryLike, exclude_entry_id: str | None = None) -> List[ConflictDetail]:
        conflicts: List[ConflictDetail] = []
        for existing in self.entries:
            if exclude_entry_id is not None and getattr(existing, "id", None) == exclude_entry_id:
                continue
            if existing.day != candidate.day or existing.period != candidate.period:
                continue

            if existing.class_name == candidate.class_name and (existing.section or "") == (candidate.section or ""):
                conflicts.append(
                    self._detail(
                        "class_slot",
                        existing,
                        f"{_class_label(existing.class_name, existing.section)} already has "
                        f"{existing.subject} on {existing.day} period {existing.period}",
                    )
                )
            if self.same_teacher(candidate, existing):
                teacher = candidate.teacher_name or existing.teacher_name or candidate.teacher_id
                conflicts.append(
                    self._detail(
                        "teacher_slot",
                        existing,
                        f"{teacher} already has a class "
                        f"({_class_label(existing.class_name, existing.section)}) on "
                        f"{existing.day} period {existing.period}",
                        teacher=teacher,
                    )
                )
            if self.same_room(candidate, existing):
                conflicts.append(
                    self._detail(
                        "room_slot",
                        existing,
                        f"Room {existing.room} is already assigned to "
                        f"{_class_label(existing.class_name, existing.section)} on "
                        f"{existing.day} period {existing.period}",
                        room=existing.room,
                    )
                )
        return conflicts

    def detect_conflicts(self, class_name: str | None = None) -> ConflictReport:
        conflicts: List[ConflictDetail] = []

        slots = defaultdict(list)
        for entry in self.entries:
            slots[(entry.day, entry.period)].append(entry)

        for day_entries in slots.values():
            for index, entry in enumerate(day_entries):
                earlier = ConflictService(
                    day_entries[:index],
                    unassigned_teacher_label=self.unassigned_teacher_label,
                    fallback_room_prefix=self.fallback_room_prefix,
                )
                for detail in earlier.check(entry):
                    if class_name is None or class_name in (entry.class_name, detail.existing_class):
                        conflicts.append(detail)

        return ConflictReport(accepted=not conflicts, conflicts=conflicts)

    def occupancy(
        self,
        *,
        exclude_class: tuple[str, str] | None = None,
        teacher_names: Mapping[str, str] | None = None,
    ) -> OccupancySets:
        """Claim every teacher and room slot the stored entries hold.

        Entries that carry only a teacher name are resolved against ``teacher_names``
        (id -> name) with the same case-insensitive match ``same_teacher`` uses.
        """
        ids_by_name: dict[str, list[str]] = defaultdict(list)
        for teacher_id, name in (teacher_names or {}).items():
            ids_by_name[name.strip().casefold()].append(teacher_id)

        occupancy = OccupancySets()
        for entry in self.entries:
            if exclude_class is not None and (entry.class_name, entry.section or "") == exclude_class:
                continue
            slot = Slot(entry.day, entry.period)
            if entry.teacher_id:
                occupancy.claim_teacher(entry.teacher_id, slot)
            elif self.has_teacher(entry):
                for teacher_id in ids_by_name.get(entry.teacher_name.strip().casefold(), ()):
                    occupancy.claim_teacher(teacher_id, slot)
            if self.has_room(entry):
                occupancy.claim_room(entry.room.strip(), slot)
        return occupancy

    def _detail(
        self,
        dimension: str,
        existing: EntryLike,
        description: str,
        *,
        teacher: str | None = None,
        room: str | None = None,
    ) -> ConflictDetail:
        return ConflictDetail(
            dimension=dimension,
            description=description,
            day=existing.day,
            period=existing.period,
            existing_entry_id=getattr(existing, "id", None),
            existing_class=existing.class_name,
            existing_section=existing.section or "",
            existing_subject=existing.subject,
            teacher=teacher,
            room=room,
        )


def load_slot_entries(db: Session, *, school_id: str, day: str, period: int) -> list[TimetableEntry]:
    return list(
        db.execute(
            select(TimetableEntry).where(
                TimetableEntry.school_id == school_id,
                TimetableEntry.day == day,
                TimetableEntry.period == period,
            )
        ).scalars()
    )


def load_school_entries(db: Session, *, school_id: str, class_name: str | None = None) -> list[TimetableEntry]:
    query = select(TimetableEntry).where(TimetableEntry.school_id == school_id)
    if class_name:
        query = query.where(TimetableEntry.class_name == class_name)
    return list(db.execute(query.order_by(TimetableEntry.day, TimetableEntry.period)).scalars())


def validate_entry(
    db: Session,
    *,
    school_id: str,
    candidate: EntryLike,
    exclude_entry_id: str | None = None,
    unassigned_teacher_label: str = "TBA",
    fallback_room_prefix: str = "Classroom",
) -> List[ConflictDetail]:
    existing = load_slot_entries(db, school_id=school_id, day=candidate.day, period=candidate.period)
    service = ConflictService(
        existing,
        unassigned_teacher_label=unassigned_teacher_label,
        fallback_room_prefix=fallback_room_prefix,
    )
    return service.check(candidate, exclude_entry_id=exclude_entry_id)


def seed_occupancy(
    db: Session,
    *,
    school_id: str,
    exclude_class: tuple[str, str],
    teacher_names: Mapping[str, str] | None = None,
    unassigned_teacher_label: str = "TBA",
    fallback_room_prefix: str = "Classroom",
) -> OccupancySets:
    service = ConflictService(
        load_school_entries(db, school_id=school_id),
        unassigned_teacher_label=unassigned_teacher_label,
        fallback_room_prefix=fallback_room_prefix,
    )
    return service.occupancy(exclude_class=exclude_class, teacher_names=teacher_names)
