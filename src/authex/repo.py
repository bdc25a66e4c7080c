"""Repo: the persistence layer behind the users context.

Learn: The repo is the only component that talks to the database. It
takes changesets from the schema, writes them when valid, and translates
constraint violations back into changeset errors. Each call opens its own
Session from the factory and closes it on the way out, so a Repo is safe
to share across requests.

Write results follow the context's contract:
- ``Ok(record)`` on success
- ``Err(changeset)`` when the changeset is invalid (no DB access happens)
  or the database rejects the write with an IntegrityError

Updates never mutate the caller's record. The stored row is loaded by
primary key, only the changeset's changes are applied to it, and that
row is returned.
"""

from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from authex.changeset import Changeset
from authex.result import Err, Ok, Result

logger = structlog.get_logger()

TAKEN = "has already been taken"


class Repo:
    """SQLAlchemy-backed user persistence."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    @classmethod
    def from_settings(cls) -> "Repo":
        """Repo on the process-wide engine configured by AUTHEX_DATABASE_URL."""
        from authex.db.engine import session_factory

        return cls(session_factory)

    # ─── Writes ─────────────────────────────────────────

    def insert(self, changeset: Changeset) -> Result:
        changeset.action = "insert"
        if not changeset.valid:
            return Err(changeset)

        with self.session_factory() as session:
            record = changeset.apply_changes()
            session.add(record)
            if not self._commit(session, changeset):
                return Err(changeset)
            session.refresh(record)

        logger.info("repo.insert", table=_table_name(record), id=_identity(record))
        return Ok(record)

    def update(self, changeset: Changeset) -> Result:
        changeset.action = "update"
        if not changeset.valid:
            return Err(changeset)

        with self.session_factory() as session:
            record = _attach(session, changeset.data)
            for name, value in changeset.changes.items():
                setattr(record, name, value)
            if not self._commit(session, changeset):
                return Err(changeset)
            session.refresh(record)

        logger.info("repo.update", table=_table_name(record), id=_identity(record))
        return Ok(record)

    def delete(self, record: Any) -> Result:
        with self.session_factory() as session:
            attached = _attach(session, record)
            session.delete(attached)
            changeset = Changeset(data=record, action="delete")
            if not self._commit(session, changeset):
                return Err(changeset)

        logger.info("repo.delete", table=_table_name(record), id=_identity(record))
        return Ok(record)

    # ─── Reads ──────────────────────────────────────────

    def get_by(
        self,
        schema: type,
        clauses: Mapping[str, Any] | Iterable[tuple[str, Any]],
    ) -> Any | None:
        """Fetch a single record matching every clause, or None.

        Raises sqlalchemy.exc.MultipleResultsFound if more than one row
        matches.
        """
        with self.session_factory() as session:
            result = session.execute(select(schema).filter_by(**dict(clauses)))
            return result.scalars().one_or_none()

    # ─── Helpers ────────────────────────────────────────

    def _commit(self, session: Session, changeset: Changeset) -> bool:
        """Commit, mapping an IntegrityError onto ``changeset``. False on failure."""
        try:
            session.commit()
        except IntegrityError as e:
            session.rollback()
            field = _constraint_field(type(changeset.data), e)
            if field:
                changeset.add_error(field, TAKEN)
            else:
                changeset.add_error("base", "violates a database constraint")
            logger.warning(
                f"repo.{changeset.action}.conflict",
                table=_table_name(changeset.data),
                field=field,
            )
            return False
        return True


def _attach(session: Session, record: Any) -> Any:
    """Load the stored row behind a detached ``record``. The row must still exist.

    Nothing is copied from ``record``; only changeset changes reach the row.
    """
    identity = inspect(record).identity
    attached = session.get(type(record), identity) if identity else None
    if attached is None:
        raise StaleDataError(
            f"{type(record).__name__} {_identity(record)} no longer exists"
        )
    return attached


def _constraint_field(schema: type, error: IntegrityError) -> str | None:
    """Name the unique column an IntegrityError complains about, if any."""
    table = getattr(schema, "__table__", None)
    if table is None:
        return None
    message = str(error.orig)
    if "unique" not in message.lower():
        return None
    for column in table.columns:
        if column.unique and column.name in message:
            return column.name
    return None


def _table_name(record: Any) -> str | None:
    return getattr(record, "__tablename__", None)


def _identity(record: Any) -> str | None:
    record_id = getattr(record, "id", None)
    return str(record_id) if record_id is not None else None
