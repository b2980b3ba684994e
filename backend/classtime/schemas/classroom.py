from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from classtime.models.classroom import ClassroomType
from classtime.schemas.common import PageMeta


def _normalize_label(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    if not trimmed:
        raise ValueError("room_label cannot be empty")
    return trimmed


def _normalize_building(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


class ClassroomBase(BaseModel):
    room_label: str = Field(min_length=1, max_length=20)
    building: str | None = Field(default=None, max_length=100)
    capacity: int = Field(ge=1)
    type: ClassroomType = ClassroomType.lecture

    @field_validator("room_label")
    @classmethod
    def normalize_room_label(cls, value: str) -> str:
        return _normalize_label(value)

    @field_validator("building")
    @classmethod
    def normalize_building(cls, value: str | None) -> str | None:
        return _normalize_building(value)


class ClassroomCreate(ClassroomBase):
    pass


class ClassroomUpdate(BaseModel):
    room_label: str | None = Field(default=None, min_length=1, max_length=20)
    building: str | None = Field(default=None, max_length=100)
    capacity: int | None = Field(default=None, ge=1)
    type: ClassroomType | None = None

    @field_validator("room_label")
    @classmethod
    def normalize_room_label(cls, value: str | None) -> str | None:
        return _normalize_label(value)

    @field_validator("building")
    @classmethod
    def normalize_building(cls, value: str | None) -> str | None:
        return _normalize_building(value)


class ClassroomOut(ClassroomBase):
    id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ClassroomPage(BaseModel):
    data: list[ClassroomOut]
    meta: PageMeta
