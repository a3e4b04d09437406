from __future__ import annotations

import re

DAY_ORDER = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]

DAY_VALUES = set(DAY_ORDER)

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_minutes(total_minutes: int) -> str:
    if not 0 <= total_minutes < 24 * 60:
        raise ValueError("Time falls outside a single day")
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def normalize_day(value: str) -> str:
    day = value.strip().capitalize()
    if day not in DAY_VALUES:
        raise ValueError(f"Invalid day value: {value}")
    return day


def day_sort_key(day: str) -> int:
    try:
        return DAY_ORDER.index(day)
    except ValueError:
        return len(DAY_ORDER)


def validate_optional_time(value: str | None) -> str | None:
    if value is None or value == "":
        return None
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    return value
