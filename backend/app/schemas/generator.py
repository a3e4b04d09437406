from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from app.schemas.calendar import normalize_day, validate_optional_time


class GenerateTimetableRequest(BaseModel):
    class_name: str = Field(min_length=1, max_length=100)
    section: str = Field(default="", max_length=50)
    academic_year: str | None = Field(default=None, max_length=20)
    periods_per_day: int | None = Field(default=None, ge=1, le=16)
    working_days: list[str] | None = Field(default=None, min_length=1, max_length=7)
    strict_cross_class: bool | None = None
    seed: int | None = Field(default=None, ge=0, le=2_000_000_000)

    @field_validator("class_name", "section")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        days = [normalize_day(day) for day in value]
        if len(set(days)) != len(days):
            raise ValueError("working_days must not repeat a day")
        return days


class GeneratedSlot(BaseModel):
    period: int = Field(ge=1, le=16)
    subject: str = Field(min_length=1, max_length=200)
    subject_id: str | None = None
    teacher: str = ""
    teacher_id: str | None = None
    room: str = ""
    start_time: str | None = None
    end_time: str | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str | None) -> str | None:
        return validate_optional_time(value)


class GenerationStats(BaseModel):
    total_slots: int
    filled_slots: int
    subjects_scheduled: int
    utilization: int


class GenerateTimetableResponse(BaseModel):
    class_name: str
    section: str
    academic_year: str | None
    periods_per_day: int
    working_days: list[str]
    strict_cross_class: bool
    seed: int
    timetable: dict[str, list[GeneratedSlot]]
    subject_distribution: dict[str, dict[str, int]]
    quotas: dict[str, int]
    conflicts: list[str]
    stats: GenerationStats


class SaveTimetableRequest(BaseModel):
    class_name: str = Field(min_length=1, max_length=100)
    section: str = Field(default="", max_length=50)
    academic_year: str | None = Field(default=None, max_length=20)
    timetable: dict[str, list[GeneratedSlot]]
    check_conflicts: bool = True

    @field_validator("class_name", "section")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()

    @field_validator("timetable")
    @classmethod
    def normalize_grid_days(cls, value: dict[str, list[GeneratedSlot]]) -> dict[str, list[GeneratedSlot]]:
        normalized: dict[str, list[GeneratedSlot]] = {}
        for day, slots in value.items():
            key = normalize_day(day)
            if key in normalized:
                raise ValueError(f"Day {key} appears more than once")
            normalized[key] = slots
        return normalized

    @model_validator(mode="after")
    def validate_unique_periods(self) -> "SaveTimetableRequest":
        for day, slots in self.timetable.items():
            periods = [slot.period for slot in slots]
            duplicates = sorted({period for period in periods if periods.count(period) > 1})
            if duplicates:
                raise ValueError(f"{day} has more than one entry for period(s) {duplicates}")
        return self


class SaveTimetableResponse(BaseModel):
    message: str
    count: int
