"""Seed a demo school catalog (teachers, rooms, subjects) for timetable generation.

Run:
  PYTHONPATH=backend python scripts/seed_demo_school.py
"""

from __future__ import annotations

import os

from sqlalchemy import select

from app.db.session import SessionLocal
from app.models.room import Room, RoomStatus
from app.models.subject import Subject, SubjectStatus
from app.models.teacher import Teacher

SCHOOL_ID = os.getenv("DEMO_SCHOOL_ID", "demo-school")

DEMO_TEACHERS = ["Anita Rao", "Brian Cole", "Chen Wei", "Dana Okafor"]
DEMO_ROOMS = ["R-101", "R-102", "Lab-1"]
DEMO_SUBJECTS = {
    "10A": [
        ("Mathematics", "MATH10", 8, ["Anita Rao"]),
        ("Physics", "PHY10", 6, ["Brian Cole"]),
        ("Chemistry", "CHEM10", 6, ["Brian Cole", "Chen Wei"]),
        ("English", "ENG10", 6, ["Dana Okafor"]),
        ("History", "HIST10", None, ["Dana Okafor"]),
    ],
    "10B": [
        ("Mathematics", "MATH10B", 8, ["Anita Rao"]),
        ("Biology", "BIO10B", 6, ["Chen Wei"]),
        ("English", "ENG10B", 6, ["Dana Okafor"]),
    ],
}


def _upsert_teacher(session, name: str) -> Teacher:
    teacher = session.execute(
        select(Teacher).where(Teacher.school_id == SCHOOL_ID, Teacher.name == name)
    ).scalar_one_or_none()
    if teacher is None:
        teacher = Teacher(school_id=SCHOOL_ID, name=name, is_active=True)
        session.add(teacher)
        session.flush()
    else:
        teacher.is_active = True
    return teacher


def _upsert_room(session, name: str) -> Room:
    room = session.execute(select(Room).where(Room.school_id == SCHOOL_ID, Room.name == name)).scalar_one_or_none()
    if room is None:
        room = Room(school_id=SCHOOL_ID, name=name, status=RoomStatus.available)
        session.add(room)
    else:
        room.status = RoomStatus.available
    return room


def main() -> None:
    with SessionLocal() as session:
        teacher_ids = {name: _upsert_teacher(session, name).id for name in DEMO_TEACHERS}
        for name in DEMO_ROOMS:
            _upsert_room(session, name)

        for class_name, subjects in DEMO_SUBJECTS.items():
            for name, code, hours, teachers in subjects:
                subject = session.execute(
                    select(Subject).where(Subject.school_id == SCHOOL_ID, Subject.code == code)
                ).scalar_one_or_none()
                if subject is None:
                    subject = Subject(school_id=SCHOOL_ID, code=code)
                    session.add(subject)
                subject.name = name
                subject.class_name = class_name
                subject.hours_per_week = hours
                subject.status = SubjectStatus.active
                subject.eligible_teacher_ids = [teacher_ids[teacher] for teacher in teachers]
        session.commit()

    print(f"Seeded demo catalog for school {SCHOOL_ID}: classes {', '.join(DEMO_SUBJECTS)}")


if __name__ == "__main__":
    main()
