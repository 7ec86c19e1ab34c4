"""
locking.py
----------
Write serialization per staff member, shared by the booking and leave services.

- lock_staff(): SELECT ... FOR UPDATE on the staff row. On PostgreSQL a second
  writer for the same staff member waits here until the first commits.
- On SQLite row locks are ignored; the database runs every transaction as
  BEGIN IMMEDIATE (settings.DATABASES OPTIONS), so writers queue on the
  database lock instead.
- contention_as_conflict(): when the database gives up waiting (SQLite busy
  timeout) or aborts a writer (PostgreSQL deadlock / serialization failure),
  the loser gets ConflictError like any other taken slot, never a raw
  OperationalError.
"""

import logging
from contextlib import contextmanager

from django.db import OperationalError

from ..exceptions import ConflictError
from ..models import Staff

logger = logging.getLogger(__name__)

# PostgreSQL serialization_failure and deadlock_detected.
CONTENTION_SQLSTATES = frozenset({"40001", "40P01"})


def is_lock_contention(exc) -> bool:
    cause = exc.__cause__
    sqlstate = getattr(cause, "sqlstate", None) or getattr(cause, "pgcode", None)
    if sqlstate in CONTENTION_SQLSTATES:
        return True
    # sqlite3: "database is locked" / "database table is locked"
    return "locked" in str(exc).lower()


def lock_staff(staff):
    Staff.objects.select_for_update().get(pk=getattr(staff, "pk", staff))


@contextmanager
def contention_as_conflict(message="This time slot is not available.", code="slot_unavailable", **extra):
    """
    Wrap a transaction.atomic() block:

        with contention_as_conflict(start_time=start), transaction.atomic():
            lock_staff(staff)
            ...
    """
    try:
        yield
    except OperationalError as exc:
        if not is_lock_contention(exc):
            raise
        logger.warning("Concurrent write lost the lock race (%s): %s", code, exc)
        raise ConflictError(message, code=code, **extra) from exc
