from pydantic import BaseModel
from typing import Literal, Optional, List

ConflictDimension = Literal["class_slot", "teacher_slot", "room_slot"]


class ConflictDetail(BaseModel):
    dimension: ConflictDimension
    description: str
    day: str
    period: int
    existing_entry_id: Optional[str] = None
    existing_class: str
    existing_section: str = ""
    existing_subject: str
    teacher: Optional[str] = None
    room: Optional[str] = None


class ConflictReport(BaseModel):
    accepted: bool
    conflicts: List[ConflictDetail]
