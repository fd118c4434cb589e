"""
Module: inventory_kernel.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management,
    and transactional scope utilities.
Architecture position: Kernel > DB.  May import from db/base.py and the
    logging/settings modules.  create_tables() imports models so that
    Base.metadata is complete.

Invariants enforced:
    - No process-wide engine.  A ``Database`` handle is constructed at
      process start, passed explicitly to the InventoryEngine, and disposed
      at shutdown (``with Database(...)`` or ``close()``).
    - PostgreSQL sessions run at READ COMMITTED; the load-bearing
      invariants are unique constraints, so concurrent writers are
      serialized by the database rather than by application locks.
    - SQLite connections use a busy timeout and enforce foreign keys.

Failure modes:
    - OperationalError / InterfaceError when the database is unreachable.
    - Connection pool exhaustion if pool_size + max_overflow is exceeded.

Audit relevance:
    All database transactions flow through ``session_scope()``, which
    commits on success and rolls back on any exception.  That is the
    atomicity boundary for a scan and its discrepancy and audit entry.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from inventory_kernel.db.base import Base
from inventory_kernel.logging_config import get_logger
from inventory_kernel.settings import InventorySettings

logger = get_logger("db.engine")


def create_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_timeout: int = 30,
    sqlite_busy_timeout: int = 30,
) -> Engine:
    """
    Build an engine for the given URL.

    Args:
        database_url: SQLAlchemy URL (postgresql://... or sqlite:///...).
        echo: If True, log all SQL statements.
        pool_size: Connections kept in the pool (server databases only).
        max_overflow: Max connections beyond pool_size (server databases only).
        pool_timeout: Seconds to wait for a pooled connection.
        sqlite_busy_timeout: Seconds SQLite waits on a locked database.

    Returns:
        SQLAlchemy Engine instance.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            echo=echo,
            connect_args={
                "check_same_thread": False,
                "timeout": sqlite_busy_timeout,
            },
        )
        event.listen(engine, "connect", _sqlite_on_connect)
        dialect = "sqlite"
    else:
        engine = create_engine(
            database_url,
            echo=echo,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
            pool_timeout=pool_timeout,
            isolation_level="READ COMMITTED",
        )
        dialect = engine.dialect.name

    logger.info(
        "engine_initialized",
        extra={"dialect": dialect, "echo": echo},
    )
    return engine


def _sqlite_on_connect(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Explicit storage handle: one engine and its session factory.

    Contract:
        Created once at process start and handed to every component that
        needs storage.  ``close()`` (or leaving the ``with`` block)
        disposes pooled connections.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.session_factory: sessionmaker[Session] = sessionmaker(
            bind=engine, expire_on_commit=False
        )

    @classmethod
    def from_url(cls, database_url: str, **engine_kwargs) -> "Database":
        return cls(create_engine_from_url(database_url, **engine_kwargs))

    @classmethod
    def from_settings(cls, settings: InventorySettings) -> "Database":
        return cls(
            create_engine_from_url(
                settings.database_url,
                echo=settings.echo_sql,
                pool_size=settings.pool_size,
                max_overflow=settings.max_overflow,
                pool_timeout=settings.pool_timeout,
                sqlite_busy_timeout=settings.sqlite_busy_timeout,
            )
        )

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    def session(self) -> Session:
        """Open a new session; the caller owns commit/rollback/close."""
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of operations.

        Postconditions: On normal exit, session is committed and closed.
            On exception, session is rolled back and closed, and the
            exception is re-raised to the caller.
        """
        session = self.session_factory()
        logger.debug("transaction_started")
        try:
            yield session
            session.commit()
            logger.debug("transaction_committed")
        except Exception:
            session.rollback()
            logger.debug("transaction_rolled_back")
            raise
        finally:
            session.close()

    def create_tables(self) -> None:
        """Create all kernel tables (idempotent)."""
        import inventory_kernel.models  # noqa: F401  (registers all tables)

        Base.metadata.create_all(self.engine)
        logger.info(
            "tables_created",
            extra={"tables": sorted(Base.metadata.tables)},
        )

    def drop_tables(self) -> None:
        """Drop all tables. Use with caution - primarily for testing."""
        import inventory_kernel.models  # noqa: F401

        Base.metadata.drop_all(self.engine)

    def close(self) -> None:
        """Dispose the engine and release all pooled connections."""
        self.engine.dispose()
        logger.debug("engine_disposed")

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
