from __future__ import annotations

import re
from datetime import datetime, time

from pydantic import BaseModel, Field, field_validator, model_validator

from classtime.models.classroom import ClassroomType
from classtime.schemas.common import PageMeta

TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)(?::([0-5]\d))?$")
DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def parse_clock_time(value: str) -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS`` (24-hour) into a wall-clock time."""
    match = TIME_PATTERN.match(value.strip())
    if match is None:
        raise ValueError("Time must be in HH:MM or HH:MM:SS format")
    hours, minutes, seconds = match.groups()
    return time(int(hours), int(minutes), int(seconds or 0))


def _coerce_clock_time(value: object) -> object:
    # Numbers would otherwise be read as seconds since midnight.
    if value is None:
        return None
    if isinstance(value, str):
        return parse_clock_time(value)
    if isinstance(value, time) and value.microsecond == 0:
        return value
    raise ValueError("Time must be in HH:MM or HH:MM:SS format")


class ScheduleCreate(BaseModel):
    course_id: str = Field(min_length=1, max_length=36)
    classroom_id: int = Field(ge=1)
    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_time_format(cls, value: object) -> object:
        return _coerce_clock_time(value)

    @model_validator(mode="after")
    def validate_order(self) -> "ScheduleCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ScheduleUpdate(BaseModel):
    course_id: str | None = Field(default=None, min_length=1, max_length=36)
    classroom_id: int | None = Field(default=None, ge=1)
    day_of_week: int | None = Field(default=None, ge=0, le=6)
    start_time: time | None = None
    end_time: time | None = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_time_format(cls, value: object) -> object:
        return _coerce_clock_time(value)


class CourseSummary(BaseModel):
    id: str
    code: str
    name: str

    model_config = {"from_attributes": True}


class ClassroomSummary(BaseModel):
    id: int
    room_label: str
    building: str | None = None
    type: ClassroomType

    model_config = {"from_attributes": True}


class ScheduleOut(BaseModel):
    id: int
    course_id: str
    classroom_id: int
    day_of_week: int
    start_time: time
    end_time: time
    course: CourseSummary | None = None
    classroom: ClassroomSummary | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class SchedulePage(BaseModel):
    data: list[ScheduleOut]
    meta: PageMeta
