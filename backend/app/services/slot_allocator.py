"""Greedy day-by-day, period-by-period timetable allocation for one class.

The allocator walks the grid in declared order. For every slot it picks a
subject with quota left (avoiding a repeat of the previous period when it
can), then the first eligible free teacher and the first free room. A slot
is only left empty once every quota is spent; such slots are reported as
``UnfilledSlot`` records instead of raising.
"""

from __future__ import annotations

import logging
import math
import random
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterator, Mapping, Sequence

from app.services.catalog import SubjectSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class Slot:
    day: str
    period: int

    def label(self) -> str:
        return f"{self.day} Period {self.period}"


@dataclass(frozen=True)
class Grid:
    working_days: tuple[str, ...]
    periods_per_day: int

    @property
    def capacity(self) -> int:
        return self.periods_per_day * len(self.working_days)

    def slots(self) -> Iterator[Slot]:
        for day in self.working_days:
            for period in range(1, self.periods_per_day + 1):
                yield Slot(day, period)


def room_key(room: str) -> str:
    return room.strip().casefold()


@dataclass
class OccupancySets:
    teachers: dict[str, set[Slot]] = field(default_factory=lambda: defaultdict(set))
    rooms: dict[str, set[Slot]] = field(default_factory=lambda: defaultdict(set))

    def teacher_free(self, teacher_id: str, slot: Slot) -> bool:
        return slot not in self.teachers.get(teacher_id, ())

    def room_free(self, room: str, slot: Slot) -> bool:
        return slot not in self.rooms.get(room_key(room), ())

    def claim_teacher(self, teacher_id: str, slot: Slot) -> None:
        self.teachers[teacher_id].add(slot)

    def claim_room(self, room: str, slot: Slot) -> None:
        self.rooms[room_key(room)].add(slot)


@dataclass(frozen=True)
class Assignment:
    slot: Slot
    subject_id: str
    subject: str
    teacher_id: str | None
    teacher: str
    room: str


@dataclass(frozen=True)
class UnfilledSlot:
    slot: Slot

    def describe(self) -> str:
        return f"{self.slot.label()}: No valid assignment found"


@dataclass(frozen=True)
class AllocationStats:
    total_slots: int
    filled_slots: int
    subjects_scheduled: int
    utilization: int


@dataclass
class AllocationResult:
    grid: Grid
    quotas: dict[str, int]
    assignments: list[Assignment] = field(default_factory=list)
    conflicts: list[UnfilledSlot] = field(default_factory=list)

    def stats(self) -> AllocationStats:
        total = self.grid.capacity
        filled = len(self.assignments)
        utilization = int(math.floor(filled * 100 / total + 0.5)) if total else 0
        return AllocationStats(
            total_slots=total,
            filled_slots=filled,
            subjects_scheduled=len({assignment.subject_id for assignment in self.assignments}),
            utilization=utilization,
        )

    def distribution(self) -> dict[str, dict[str, int]]:
        counts: dict[str, dict[str, int]] = {}
        for assignment in self.assignments:
            per_day = counts.setdefault(assignment.subject, {})
            per_day[assignment.slot.day] = per_day.get(assignment.slot.day, 0) + 1
        return counts

    def by_day(self) -> dict[str, list[Assignment]]:
        grouped: dict[str, list[Assignment]] = {day: [] for day in self.grid.working_days}
        for assignment in self.assignments:
            grouped[assignment.slot.day].append(assignment)
        for day_assignments in grouped.values():
            day_assignments.sort(key=lambda assignment: assignment.slot.period)
        return grouped


class SlotAllocator:
    def __init__(
        self,
        *,
        grid: Grid,
        subjects: Sequence[SubjectSpec],
        quotas: Mapping[str, int],
        teacher_names: Mapping[str, str],
        rooms: Sequence[str],
        fallback_room: str,
        unassigned_teacher_label: str = "TBA",
        occupancy: OccupancySets | None = None,
        seed: int | None = None,
    ) -> None:
        self.grid = grid
        self.subjects = list(subjects)
        self.quotas = {subject.id: int(quotas.get(subject.id, 0)) for subject in self.subjects}
        self.teacher_names = dict(teacher_names)
        self.rooms = list(rooms)
        self.fallback_room = fallback_room
        self.unassigned_teacher_label = unassigned_teacher_label
        self.occupancy = occupancy if occupancy is not None else OccupancySets()
        self.random = random.Random(seed)

    def allocate(self) -> AllocationResult:
        remaining = dict(self.quotas)
        placed: dict[Slot, Assignment] = {}
        result = AllocationResult(grid=self.grid, quotas=dict(self.quotas))

        for slot in self.grid.slots():
            previous = placed.get(Slot(slot.day, slot.period - 1)) if slot.period > 1 else None
            candidates = self._candidates(remaining, previous.subject_id if previous else None)
            if not candidates:
                result.conflicts.append(UnfilledSlot(slot))
                continue

            subject = candidates[0]
            teacher_id = self._free_teacher(subject, slot)
            room = self._free_room(slot)
            assignment = Assignment(
                slot=slot,
                subject_id=subject.id,
                subject=subject.name,
                teacher_id=teacher_id,
                teacher=self.teacher_names.get(teacher_id, "") if teacher_id else self.unassigned_teacher_label,
                room=room,
            )
            placed[slot] = assignment
            result.assignments.append(assignment)
            remaining[subject.id] -= 1
            if teacher_id:
                self.occupancy.claim_teacher(teacher_id, slot)
            if room != self.fallback_room:
                self.occupancy.claim_room(room, slot)

        if result.conflicts:
            logger.debug(
                "ALLOCATION LEFT SLOTS EMPTY | slots=%s",
                ",".join(conflict.slot.label() for conflict in result.conflicts),
            )
        return result

    def _candidates(self, remaining: Mapping[str, int], previous_subject_id: str | None) -> list[SubjectSpec]:
        open_subjects = [subject for subject in self.subjects if remaining[subject.id] > 0]
        shuffled = list(open_subjects)
        self.random.shuffle(shuffled)
        preferred = [subject for subject in shuffled if subject.id != previous_subject_id]
        # Repeating the previous subject beats leaving the slot empty.
        return preferred or shuffled

    def _free_teacher(self, subject: SubjectSpec, slot: Slot) -> str | None:
        for teacher_id in subject.eligible_teacher_ids:
            if teacher_id in self.teacher_names and self.occupancy.teacher_free(teacher_id, slot):
                return teacher_id
        return None

    def _free_room(self, slot: Slot) -> str:
        for room in self.rooms:
            if self.occupancy.room_free(room, slot):
                return room
        return self.fallback_room
