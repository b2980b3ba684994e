from __future__ import annotations

import logging

from sqlalchemy import inspect, text

from classtime.db.base import Base
from classtime.db.session import engine
import classtime.models  # noqa: F401
from classtime.models.schedule import SCHEDULE_OVERLAP_CONSTRAINT, SCHEDULE_OVERLAP_DDL

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "role", "is_active"},
    "courses": {"id", "code", "deleted_at"},
    "course_teachers": {"course_id", "user_id"},
    "classrooms": {"id", "room_label", "capacity", "type", "deleted_at"},
    "schedules": {
        "id",
        "course_id",
        "classroom_id",
        "day_of_week",
        "start_time",
        "end_time",
        "deleted_at",
    },
}


def _ensure_schedule_overlap_exclusion() -> None:
    with engine.begin() as connection:
        if connection.dialect.name != "postgresql":
            return
        inspector = inspect(connection)
        if "schedules" not in set(inspector.get_table_names()):
            return
        exists = connection.execute(
            text("SELECT 1 FROM pg_constraint WHERE conname = :name"),
            {"name": SCHEDULE_OVERLAP_CONSTRAINT},
        ).scalar()
        if exists:
            return
        connection.execute(text("CREATE EXTENSION IF NOT EXISTS btree_gist"))
        connection.execute(text(SCHEDULE_OVERLAP_DDL))


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def ensure_runtime_schema_compatibility() -> None:
    try:
        # Ensure missing tables are present before additive compatibility patches.
        Base.metadata.create_all(bind=engine)
        _ensure_schedule_overlap_exclusion()
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
