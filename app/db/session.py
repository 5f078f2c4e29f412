import logging
from contextlib import contextmanager
from typing import Iterator
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError
from sqlmodel import SQLModel, create_engine, Session
from app.core.config import settings

logger = logging.getLogger(__name__)

# PostgreSQL serialization failure / deadlock detected
PG_RETRY_ERRCODES = {"40001", "40P01"}
SQLITE_RETRY_MESSAGES = ("database is locked", "database is busy", "database table is locked")


def build_engine(database_url: str, **kwargs) -> Engine:
    is_sqlite = database_url.startswith("sqlite")
    # check_same_thread is needed for SQLite, remove for PostgreSQL
    connect_args = {"check_same_thread": False, "timeout": settings.SQLITE_BUSY_TIMEOUT} if is_sqlite else {}
    engine = create_engine(database_url, connect_args=connect_args, **kwargs)

    if is_sqlite and settings.SQLITE_IMMEDIATE_TRANSACTIONS:
        # pysqlite defers BEGIN until the first write, which lets two checkouts
        # read the same stock before either one writes. Take the write lock up front.
        @event.listens_for(engine, "connect")
        def _disable_pysqlite_begin(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


engine = build_engine(settings.DATABASE_URL)

def get_session():
    with Session(engine) as session:
        yield session

def create_db_and_tables(bind: Engine = None):
    SQLModel.metadata.create_all(bind or engine)


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """Commit everything done in the block, or roll all of it back."""
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise


def _pgcode_from(exc: BaseException):
    orig = getattr(exc, "orig", None)
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_retryable(exc: BaseException) -> bool:
    """True for lock contention and serialization failures that a fresh transaction may clear."""
    if not isinstance(exc, DBAPIError):
        return False
    code = _pgcode_from(exc)
    if code and code in PG_RETRY_ERRCODES:
        return True
    msg = str(exc).lower()
    return any(m in msg for m in SQLITE_RETRY_MESSAGES) or "deadlock detected" in msg or "could not serialize access" in msg
