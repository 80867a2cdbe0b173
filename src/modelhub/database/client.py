from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .schema import create_all


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless foreign keys are enabled per connection.
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON;")
    finally:
        cursor.close()


def get_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Build an engine for the given URL and make sure all tables exist.

    SQLite engines get foreign-key enforcement switched on for every
    connection so cascading deletes run in the store.
    """
    engine = create_engine(database_url, echo=echo, future=True)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    create_all(engine)
    return engine


def get_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_session(engine: Engine) -> Session:
    """Get a SQLAlchemy session (caller must close it)."""
    return get_session_factory(engine)()


@contextmanager
def session_context(engine: Engine) -> Generator[Session, None, None]:
    """
    Context manager for SQLAlchemy sessions.

    Rolls back on any exception and always closes the session.

    Usage:
        with session_context(engine) as session:
            repo = EntityRepository(session, DATASET)
            repo.create({"name": "A", "source": "S"})
    """
    session = get_session(engine)
    try:
        yield session
        # Repository mutations commit themselves; nothing to flush here.
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
