from app.models.room import Room, RoomStatus  # noqa: F401
from app.models.subject import Subject, SubjectStatus  # noqa: F401
from app.models.teacher import Teacher  # noqa: F401
from app.models.timetable import TimetableEntry  # noqa: F401
