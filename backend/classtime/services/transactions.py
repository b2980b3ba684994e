from __future__ import annotations

import logging
from collections.abc import Collection, Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from classtime.core.exceptions import ConflictError

logger = logging.getLogger(__name__)


def violated_constraint(exc: IntegrityError) -> str:
    """Name of the constraint behind ``exc``, or the driver message when it has none.

    psycopg reports the name through ``diag``; SQLite only puts it in the message.
    """
    diag = getattr(exc.orig, "diag", None)
    name = getattr(diag, "constraint_name", None)
    return name or str(exc.orig)


def violates_any(exc: IntegrityError, constraints: Collection[str]) -> bool:
    reported = violated_constraint(exc)
    return any(constraint in reported for constraint in constraints)


@contextmanager
def unit_of_work(
    db: Session,
    *,
    conflict_message: str,
    constraints: Collection[str] = (),
) -> Iterator[None]:
    """Commit on success, roll back on any error.

    A violation of one of ``constraints`` at commit time means another
    transaction won the race and surfaces as ``ConflictError``. Other
    integrity errors propagate unchanged.
    """
    try:
        yield
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if not violates_any(exc, constraints):
            raise
        logger.info("Rejected write at commit: %s", violated_constraint(exc))
        raise ConflictError(conflict_message) from exc
    except Exception:
        db.rollback()
        raise
