"""
clipkeep.database

Shared SQLAlchemy declarative base and engine/session management for the history store.

Overview:
- Provides a single `declarative_base()` instance (`Base`) inherited by the ORM entities.
- Includes a utility class that owns the SQLite engine, hands out sessions, and creates
    the schema.

Contents:
- Base:
    Singleton `declarative_base` instance. ClipboardItemEntity inherits from it.

- DatabaseSessionGenerator:
    Owns the SQLAlchemy engine for one SQLite database file.
    - __init__(settings: DatabaseSettings, engine: Optional[Engine] = None):
        Creates the parent directory and the engine (WAL journal, busy timeout). An
        already built engine may be injected (tests use an in-memory StaticPool engine).
    - get_session() -> Session:
        Creates a new synchronous SQLAlchemy session.
    - init_db():
        Creates all tables defined in the ORM models that do not exist yet.
    - dispose():
        Releases every pooled connection.

Design Notes:
- Failures to create the directory, open the file, or create the schema are raised as
    StorageUnavailable; there is no degraded in-memory mode.
- `PRAGMA journal_mode=WAL` lets readers keep a committed snapshot while the single
    writer holds its transaction.
"""

from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from clipkeep.config import DatabaseSettings
from clipkeep.errors import StorageUnavailable


Base = declarative_base()
"""Singleton `declarative_base` instance for ORM models."""


def _set_sqlite_pragmas(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


class DatabaseSessionGenerator:
    """
    Utility class to generate SQLAlchemy sessions bound to a specific engine.

    Attributes:
        engine (sqlalchemy.engine.Engine): The SQLAlchemy engine to bind sessions to.
        settings (DatabaseSettings): The settings the engine was built from.
    """

    def __init__(self, settings: DatabaseSettings, engine: Optional[Engine] = None):
        self.settings = settings
        if engine is None:
            engine = self._create_engine(settings)
        self.engine = engine
        self._sessionmaker = sessionmaker(bind=self.engine, expire_on_commit=False)

    @staticmethod
    def _create_engine(settings: DatabaseSettings) -> Engine:
        db_path = Path(settings.db_path).expanduser()
        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailable(
                f"Cannot create database directory {db_path.parent}: {e}"
            ) from e
        engine = create_engine(
            settings.database_url,
            echo=settings.echo,
            connect_args={
                "timeout": settings.busy_timeout,
                "check_same_thread": False,
            },
        )
        event.listen(engine, "connect", _set_sqlite_pragmas)
        return engine

    def get_session(self) -> Session:
        """
        Creates a new SQLAlchemy session bound to the configured engine.

        Returns:
            sqlalchemy.orm.Session: A new session instance.
        """
        return self._sessionmaker()

    def init_db(self) -> None:
        """
        Initializes the database by creating all tables defined in the ORM models.

        Raises:
            StorageUnavailable: If the database cannot be opened or written.
        """
        # Entities must be imported so they register on Base.metadata.
        from clipkeep.models import ClipboardItemEntity  # noqa: F401

        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StorageUnavailable(
                f"Cannot open database {self.engine.url}: {e}"
            ) from e

    def dispose(self) -> None:
        """Releases pooled connections held by the engine."""
        self.engine.dispose()


__all__ = ["Base", "DatabaseSessionGenerator"]
