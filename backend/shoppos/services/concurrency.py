# Overview: Transaction helpers shared by the write paths (sales, ledger payments).

from __future__ import annotations

import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, see begin_write().
    """
    return query.with_for_update()


def begin_write() -> None:
    """
    Start the current unit of work as a write transaction.

    SQLite has no row locks; BEGIN IMMEDIATE takes the database write lock up
    front so two tills cannot both pass a stock check and then both write.
    Whatever read transaction request setup left open (session validation,
    loading the current user) is ended first so the lock is really taken.
    Other dialects rely on lock_for_update() and conditional updates.
    """
    if db.engine.dialect.name != "sqlite":
        return
    session = db.session()
    if session.in_transaction():
        session.commit()
    session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts on Due/Purchase version_id).
    Any other exception rolls the session back and propagates.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise
    if last_exc:
        raise last_exc
