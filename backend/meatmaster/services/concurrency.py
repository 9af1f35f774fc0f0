# Overview: Storage-layer transaction boundary and row locking shared by the write paths.

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..extensions import db


class StorageFailure(Exception):
    """Raised when the store could not complete a unit of work; nothing was committed."""


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; there atomic() takes the
    database write lock up front instead.
    """
    return query.with_for_update()


def _begin_write(session: Session) -> None:
    """
    On SQLite, take the write lock before the first read (BEGIN IMMEDIATE).

    Two sales against the same product then serialize at the store: the
    second one reads stock only after the first has committed.
    """
    if session.get_bind().dialect.name != "sqlite":
        return
    raw = session.connection().connection.driver_connection
    if not raw.in_transaction:
        session.execute(text("BEGIN IMMEDIATE"))


@contextmanager
def atomic(session: Session | None = None) -> Iterator[Session]:
    """
    Scoped write transaction: commit on normal exit, roll back on any exception.

    SQLAlchemy errors (including a failing commit) surface as StorageFailure;
    every other exception is re-raised unchanged after the rollback.

    Usage:
        with atomic(session) as s:
            s.add(row)
    """
    session = session or db.session
    try:
        _begin_write(session)
        yield session
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        raise StorageFailure("Storage transaction failed") from exc
    except BaseException:
        session.rollback()
        raise
