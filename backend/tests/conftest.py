import os

# Point the app at a throwaway in-memory database before any app module builds its engine.
os.environ["DATABASE_URL"] = "sqlite+pysqlite://"
os.environ["AUTO_CREATE_SCHEMA"] = "true"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.db.base import Base
import app.models  # noqa: F401
from app.main import app
from app.models.room import Room, RoomStatus
from app.models.subject import Subject, SubjectStatus
from app.models.teacher import Teacher

SCHOOL_ID = "school-1"


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app, headers={"X-School-Id": SCHOOL_ID}) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def seed_class(db_session):
    """Create teachers, rooms and subjects for one class and return the teacher ids by name.

    ``subjects`` is a list of ``(name, hours_per_week, [teacher names])``.
    """

    def _seed(class_name, subjects, *, rooms=(), school_id=SCHOOL_ID):
        teacher_ids = {}
        for _, _, teacher_names in subjects:
            for name in teacher_names:
                if name in teacher_ids:
                    continue
                existing = (
                    db_session.query(Teacher)
                    .filter(Teacher.school_id == school_id, Teacher.name == name)
                    .one_or_none()
                )
                if existing is None:
                    existing = Teacher(school_id=school_id, name=name, is_active=True)
                    db_session.add(existing)
                    db_session.flush()
                teacher_ids[name] = existing.id
        for room in rooms:
            db_session.add(Room(school_id=school_id, name=room, status=RoomStatus.available))
        for name, hours, teacher_names in subjects:
            db_session.add(
                Subject(
                    school_id=school_id,
                    name=name,
                    code=f"{class_name}-{name}".upper(),
                    class_name=class_name,
                    hours_per_week=hours,
                    status=SubjectStatus.active,
                    eligible_teacher_ids=[teacher_ids[teacher] for teacher in teacher_names],
                )
            )
        db_session.commit()
        return teacher_ids

    return _seed
