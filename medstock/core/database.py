from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from medstock.core.config import get_settings

settings = get_settings()


def build_engine(database_url: str, **engine_kwargs) -> Engine:
    """
    Create the SQLAlchemy engine for the given URL.

    PostgreSQL gets row locks from SELECT ... FOR UPDATE. SQLite ignores
    FOR UPDATE, so every SQLite transaction is opened with BEGIN IMMEDIATE
    instead, which takes the database write lock up front and serialises
    concurrent read-modify-write transactions.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, future=True, pool_pre_ping=True, **engine_kwargs)

    engine = create_engine(
        database_url,
        future=True,
        connect_args={"check_same_thread": False, "timeout": 30},
        **engine_kwargs,
    )

    @event.listens_for(engine, "connect")
    def _sqlite_on_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _sqlite_on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def build_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=bind,
        future=True,
    )


engine = build_engine(str(settings.database_url))

# Session factory
SessionLocal = build_session_factory(engine)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a DB session.

    Services own their transaction boundaries (commit / rollback); this
    only guarantees the session is closed when the request ends.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> None:
    """Create all tables that do not exist yet."""
    from medstock.models import Base

    Base.metadata.create_all(bind=bind or engine)
