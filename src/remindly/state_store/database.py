"""SQLite engine and session handling for the state store."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from remindly.exceptions import StoreUnavailableError
from remindly.state_store.models import Base

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Engine

logger = logging.getLogger("remindly.state_store")

IN_MEMORY = ":memory:"


def _enable_pragmas(dbapi_connection: Any, _connection_record: Any) -> None:
    # Foreign keys are required for the reschedule-request cascade
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def build_engine(db_path: str) -> Engine:
    """Create a SQLite engine for a file path or ``:memory:``.

    An in-memory database lives in a single shared connection, so it is
    pinned with StaticPool to keep every session on the same data.
    """
    options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if db_path == IN_MEMORY:
        options["poolclass"] = StaticPool
    else:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(f"sqlite:///{db_path}", **options)
    event.listen(engine, "connect", _enable_pragmas)
    return engine


class Database:
    """Owns the engine and hands out short-lived sessions."""

    def __init__(self, db_path: str = "remindly.db") -> None:
        self.db_path = db_path
        self._engine: Engine | None = None
        self._sessions: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = build_engine(self.db_path)
        return self._engine

    @property
    def sessions(self) -> sessionmaker[Session]:
        if self._sessions is None:
            self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)
        return self._sessions

    def create_tables(self) -> None:
        """Create any missing tables and indexes."""
        Base.metadata.create_all(self.engine)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Yield a session, rolling back on error and closing it afterwards.

        Raises:
            IntegrityError: Passed through for the store to translate into a
                conflict (duplicate email, second pending request, ...)
            StoreUnavailableError: For every other database failure
        """
        session = self.sessions()
        try:
            yield session
        except IntegrityError:
            session.rollback()
            raise
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Database operation failed on %s: %s", self.db_path, e)
            raise StoreUnavailableError("Storage is unavailable") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def is_wal_mode(self) -> bool:
        """Whether the journal mode is WAL (always false for ``:memory:``)."""
        with self.engine.connect() as conn:
            return conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"

    def close(self) -> None:
        """Dispose of the engine. The next access builds a fresh one."""
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._sessions = None
