from __future__ import annotations

from sqlalchemy.orm import Session

from classtime.models.activity_log import ActivityLog
from classtime.models.user import User


def log_activity(
    db: Session,
    *,
    user: User | None,
    action: str,
    entity_type: str | None = None,
    entity_id: int | str | None = None,
    details: dict | None = None,
) -> None:
    record = ActivityLog(
        user_id=user.id if user is not None else None,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        details=details or {},
    )
    db.add(record)
