"""Database connection and session management

The store handle is created explicitly and injected into services:
  - connect() builds the engine and creates the tables
  - session() commits on success, rolls back on error
  - disconnect() disposes the engine

SQLite (default) and PostgreSQL URLs are both supported.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from atelier.exceptions import DuplicateRecordError, PersistenceError, StoreNotReadyError

_logger = logging.getLogger(__name__)

# Declarative base for every model
Base = declarative_base()


def _is_local_sqlite(url: str) -> bool:
    """Local SQLite file URL"""
    return url.startswith("sqlite:///")


def _is_postgresql(url: str) -> bool:
    """PostgreSQL URL"""
    return url.startswith(("postgresql://", "postgres://"))


def _create_engine_for_url(url: str) -> Engine:
    """Build an engine suited to the URL"""
    if _is_local_sqlite(url):
        eng = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 30},
            echo=False,
            pool_pre_ping=True,
        )

        # WAL mode + busy_timeout
        @event.listens_for(eng, "connect")
        def _set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA busy_timeout=30000")
            try:
                cursor.execute("PRAGMA journal_mode=WAL")
            except Exception:
                _logger.debug("WAL switch failed (database locked), keeping journal mode")
            cursor.close()
        return eng
    elif _is_postgresql(url):
        _logger.info("Connecting with the PostgreSQL engine")
        return create_engine(
            url,
            echo=False,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
        )
    return create_engine(url, echo=False, pool_pre_ping=True)


def normalize_database_url(db_path: str) -> str:
    """Accept either a URL or a plain SQLite file path"""
    if "://" in db_path:
        return db_path
    return f"sqlite:///{db_path}"


class Store:
    """
    Store handle

    One instance per process, passed to every service.

    Attributes:
        url: SQLAlchemy database URL
    """

    def __init__(self, url: str):
        self.url = normalize_database_url(url)
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StoreNotReadyError()
        return self._engine

    def connect(self) -> "Store":
        """Create the engine and the tables (idempotent)"""
        if self._engine is not None:
            return self

        # Register every model on Base.metadata
        import atelier.models  # noqa: F401

        try:
            self._engine = _create_engine_for_url(self.url)
            Base.metadata.create_all(bind=self._engine)
        except SQLAlchemyError as e:
            self._engine = None
            raise PersistenceError(f"database connection failed: {e}") from e

        self._session_factory = sessionmaker(
            bind=self._engine, autocommit=False, autoflush=True, expire_on_commit=False
        )
        if _is_postgresql(self.url):
            _db_type = "PostgreSQL"
        elif _is_local_sqlite(self.url):
            _db_type = "local SQLite"
        else:
            _db_type = "custom"
        _logger.info("Store connected: %s", _db_type)
        return self

    def disconnect(self):
        """Dispose the engine"""
        if self._engine is not None:
            self._engine.dispose()
            _logger.info("Store disconnected")
        self._engine = None
        self._session_factory = None

    def is_ready(self) -> bool:
        """Connected and usable"""
        return self._engine is not None and self._session_factory is not None

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Transactional session

        Commits when the block succeeds, rolls back otherwise.

        Raises:
            StoreNotReadyError: store not connected
            DuplicateRecordError: uniqueness constraint violated
            PersistenceError: any other database error

        Usage:
            with store.session() as session:
                session.add(item)
        """
        if not self.is_ready():
            raise StoreNotReadyError()

        session = self._session_factory()
        try:
            yield session
            session.commit()
        except IntegrityError as e:
            session.rollback()
            _logger.warning(f"Integrity error, rolled back: {e.orig}")
            raise DuplicateRecordError(str(e.orig)) from e
        except SQLAlchemyError as e:
            session.rollback()
            _logger.error(f"Database error, rolled back: {e}")
            raise PersistenceError(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def __repr__(self):
        return f"<Store(url='{self.url}', ready={self.is_ready()})>"
