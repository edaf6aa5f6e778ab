"""Engine and session handling for the audit store."""

import os
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .models import Base


DATABASE_URL_ENV = "CLAUSE_RESOLUTION_DATABASE_URL"


def get_database_url() -> str:
    """
    Resolve the audit database URL from the environment.

    CLAUSE_RESOLUTION_DATABASE_URL wins. Otherwise a PostgreSQL URL is
    assembled from the usual POSTGRES_* variables, with a local
    `clause_resolution` database as the default.
    """
    explicit = os.environ.get(DATABASE_URL_ENV)
    if explicit:
        return explicit

    host = os.environ.get("POSTGRES_HOST", "localhost")
    port = os.environ.get("POSTGRES_PORT", "5432")
    database = os.environ.get("POSTGRES_DB", "clause_resolution")
    user = os.environ.get("POSTGRES_USER", "postgres")
    password = os.environ.get("POSTGRES_PASSWORD", "postgres")
    return f"postgresql://{user}:{password}@{host}:{port}/{database}"


class DatabaseManager:
    """
    Owns the engine behind the audit trail and report history.

    PostgreSQL in deployment, SQLite for local runs and tests. The engine is
    created lazily on first use.
    """

    def __init__(self, database_url: Optional[str] = None, echo: bool = False):
        self._url = database_url or get_database_url()
        self._echo = echo
        self._engine: Optional[Engine] = None
        self._sessions: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            if self._url.startswith("sqlite"):
                # API requests reach the same SQLite file from worker threads
                self._engine = create_engine(
                    self._url,
                    echo=self._echo,
                    connect_args={"check_same_thread": False},
                )
            else:
                self._engine = create_engine(
                    self._url, echo=self._echo, pool_pre_ping=True
                )
        return self._engine

    def _session_factory(self) -> sessionmaker:
        if self._sessions is None:
            self._sessions = sessionmaker(
                bind=self.engine, autoflush=False, expire_on_commit=False
            )
        return self._sessions

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """
        Yield a session that commits on success and rolls back on error.

        Example:
            with db_manager.get_session() as session:
                session.add(AuditEventModel(...))
        """
        session = self._session_factory()()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def init_database(self) -> None:
        """Create the audit event and report snapshot tables if missing."""
        Base.metadata.create_all(self.engine)

    def health_check(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False

    def close(self) -> None:
        """Dispose of the engine; the next use reconnects."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._sessions = None
