"""Database initialization and utilities."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import Session

from staffing.config import DEFAULT_DB_URL

from .models import Base

# Connection execution options read by the SQLite "begin" hook
WRITE_LOCK_OPTION = "staffing_write_lock"
LOCK_TIMEOUT_OPTION = "staffing_lock_timeout_ms"
# pysqlite's own default busy timeout
DEFAULT_SQLITE_BUSY_TIMEOUT_MS = 5000


def _configure_sqlite_connection(dbapi_connection, connection_record) -> None:
    # pysqlite must not open transactions on its own; _sqlite_begin emits BEGIN
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _sqlite_begin(conn: Connection) -> None:
    """Emit BEGIN, or BEGIN IMMEDIATE for writers so the write lock is held before the first read."""
    options = conn.get_execution_options()
    timeout_ms = int(options.get(LOCK_TIMEOUT_OPTION, DEFAULT_SQLITE_BUSY_TIMEOUT_MS))
    conn.exec_driver_sql(f"PRAGMA busy_timeout = {timeout_ms}")
    conn.exec_driver_sql("BEGIN IMMEDIATE" if options.get(WRITE_LOCK_OPTION) else "BEGIN")


def create_db_engine(db_url: str = DEFAULT_DB_URL, echo: bool = False) -> Engine:
    """Create SQLAlchemy engine; SQLite connections enforce foreign keys."""
    engine = create_engine(db_url, echo=echo)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _configure_sqlite_connection)
        event.listen(engine, "begin", _sqlite_begin)
    return engine


def lock_timeout_statement(dialect_name: str, timeout_ms: int) -> Optional[str]:
    """Statement bounding row-lock waits for the current transaction, if the backend has one."""
    if dialect_name == "postgresql":
        return f"SET LOCAL lock_timeout = {int(timeout_ms)}"
    return None


def begin_write_transaction(session: Session, lock_timeout: float) -> None:
    """
    Start the session's transaction as a writer.

    SQLite has a single database-wide writer lock, taken up front with
    BEGIN IMMEDIATE. PostgreSQL gets a transaction-local lock_timeout so
    that SELECT ... FOR UPDATE cannot wait forever. Must be called before
    the session has been used.

    Args:
        session: Fresh session
        lock_timeout: Seconds to wait for database locks

    Raises:
        OperationalError: If the lock is not obtained in time
    """
    timeout_ms = max(int(lock_timeout * 1000), 1)
    dialect_name = session.get_bind().dialect.name
    if dialect_name == "sqlite":
        session.connection(
            execution_options={WRITE_LOCK_OPTION: True, LOCK_TIMEOUT_OPTION: timeout_ms}
        )
        return
    statement = lock_timeout_statement(dialect_name, timeout_ms)
    if statement is not None:
        session.execute(text(statement))


def init_database(db_url: str = DEFAULT_DB_URL) -> None:
    """Initialize database and create all tables."""
    engine = create_db_engine(db_url)
    Base.metadata.create_all(engine)
    engine.dispose()
    print(f"[INFO] Database initialized: {db_url}")


def reset_database(db_url: str = DEFAULT_DB_URL) -> None:
    """Drop all tables and recreate (WARNING: deletes all data!)."""
    engine = create_db_engine(db_url)
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    engine.dispose()
    print(f"[WARN] Database reset: {db_url}")
