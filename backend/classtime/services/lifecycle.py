"""Soft-delete lifecycle as a tagged variant.

Rows persist a nullable ``deleted_at`` column; callers should reason about
:class:`Active` / :class:`Tombstoned` instead of checking the timestamp.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol, Union

from classtime.core.exceptions import ConflictError, NotFoundError


class SoftDeletable(Protocol):
    id: int
    deleted_at: datetime | None


@dataclass(frozen=True)
class Active:
    pass


@dataclass(frozen=True)
class Tombstoned:
    at: datetime


Lifecycle = Union[Active, Tombstoned]


def lifecycle_of(record: SoftDeletable) -> Lifecycle:
    if record.deleted_at is None:
        return Active()
    return Tombstoned(at=record.deleted_at)


def tombstone(record: SoftDeletable, at: datetime | None = None) -> None:
    record.deleted_at = at or datetime.now(timezone.utc)


def revive(record: SoftDeletable) -> None:
    record.deleted_at = None


def require_deletable(record: SoftDeletable | None, label: str, record_id: int) -> SoftDeletable:
    if record is None:
        raise NotFoundError(f"{label} not found")
    if isinstance(lifecycle_of(record), Tombstoned):
        raise ConflictError(f"{label} with ID {record_id} is already deleted")
    return record


def require_restorable(record: SoftDeletable | None, label: str, record_id: int) -> SoftDeletable:
    if record is None:
        raise NotFoundError(f"{label} with ID {record_id} not found")
    if isinstance(lifecycle_of(record), Active):
        raise ConflictError(f"{label} with ID {record_id} is not deleted")
    return record
