from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from app.schemas.calendar import normalize_day, parse_time_to_minutes, validate_optional_time


class TimetableEntryBase(BaseModel):
    class_name: str = Field(min_length=1, max_length=100)
    section: str = Field(default="", max_length=50)
    academic_year: str | None = Field(default=None, max_length=20)
    day: str
    period: int = Field(ge=1, le=16)
    subject: str = Field(min_length=1, max_length=200)
    subject_id: str | None = Field(default=None, max_length=36)
    teacher_id: str | None = Field(default=None, max_length=36)
    teacher_name: str = Field(default="", max_length=200)
    room: str = Field(default="", max_length=100)
    start_time: str | None = None
    end_time: str | None = None

    @field_validator("class_name", "section", "teacher_name", "room")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return normalize_day(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str | None) -> str | None:
        return validate_optional_time(value)

    @model_validator(mode="after")
    def validate_order(self) -> "TimetableEntryBase":
        if self.start_time and self.end_time:
            if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
                raise ValueError("end_time must be after start_time")
        return self


class TimetableEntryCreate(TimetableEntryBase):
    pass


class TimetableEntryUpdate(BaseModel):
    day: str | None = None
    period: int | None = Field(default=None, ge=1, le=16)
    subject: str | None = Field(default=None, min_length=1, max_length=200)
    subject_id: str | None = Field(default=None, max_length=36)
    teacher_id: str | None = Field(default=None, max_length=36)
    teacher_name: str | None = Field(default=None, max_length=200)
    room: str | None = Field(default=None, max_length=100)
    start_time: str | None = None
    end_time: str | None = None

    @field_validator("subject", "teacher_name", "room")
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        return None if value is None else value.strip()

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str | None) -> str | None:
        return None if value is None else normalize_day(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str | None) -> str | None:
        return validate_optional_time(value)


class TimetableEntryOut(BaseModel):
    id: str
    class_name: str
    section: str
    academic_year: str | None
    day: str
    period: int
    start_time: str
    end_time: str
    subject: str
    subject_id: str | None
    teacher_id: str | None
    teacher_name: str
    room: str

    model_config = {"from_attributes": True}


class TimetableListOut(BaseModel):
    data: list[TimetableEntryOut]
    by_day: dict[str, list[TimetableEntryOut]]
    classes: list[str]


class TimetableEntryMutationOut(BaseModel):
    message: str
    entry: TimetableEntryOut
