from collections.abc import Generator
from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from ledgerbook.app.core.config import settings


class Base(DeclarativeBase):
    pass


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str, **kwargs: Any) -> Engine:
    """Build an engine for ``url``.

    SQLite connections get foreign-key enforcement and a busy timeout so
    concurrent writers wait on the database lock instead of failing.
    """
    if url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        connect_args.setdefault("timeout", settings.SQLITE_BUSY_TIMEOUT)
        engine = create_engine(
            url, echo=settings.DB_ECHO, connect_args=connect_args, **kwargs
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    kwargs.setdefault("pool_size", settings.DB_POOL_SIZE)
    kwargs.setdefault("max_overflow", settings.DB_MAX_OVERFLOW)
    kwargs.setdefault("pool_pre_ping", True)
    return create_engine(url, echo=settings.DB_ECHO, **kwargs)


engine = create_db_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def init_db(bind: Engine) -> None:
    """Create every table and the journal sequence counter row."""
    # Registers all mappers on Base.metadata
    from ledgerbook.app.models import accounting  # noqa: F401
    from ledgerbook.app.models.sequence import JOURNAL_SEQUENCE, LedgerSequence

    Base.metadata.create_all(bind)
    with Session(bind) as db:
        if db.get(LedgerSequence, JOURNAL_SEQUENCE) is None:
            db.add(LedgerSequence(name=JOURNAL_SEQUENCE, current_value=0))
            db.commit()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
