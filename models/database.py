import os
from contextlib import contextmanager
from datetime import timezone
from typing import Iterator

from sqlalchemy import DateTime, TypeDecorator, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """Creates the SQLAlchemy engine for DATABASE_URL"""
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite and ":///./" in database_url:
        # sqlite:///./storage/app.db needs its folder
        directory = os.path.dirname(database_url.split(":///", 1)[1])
        if directory:
            os.makedirs(directory, exist_ok=True)

    # SQLite needs check_same_thread=False
    engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False} if is_sqlite else {},
        echo=False,
    )

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Creates every table registered on Base"""
    # the model modules must be imported so their tables are registered
    from . import item, shelf, user  # noqa: F401

    Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope(session_factory: sessionmaker) -> Iterator[Session]:
    """One transaction: commit on success, rollback on any error"""
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


class UTCDateTime(TypeDecorator):
    """Stores aware datetimes as UTC and hands them back aware (SQLite drops tzinfo)"""
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value
