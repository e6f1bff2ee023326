"""SQLAlchemy database setup and session management."""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import MetaData, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from vello.config import settings


# Naming convention for constraints
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    metadata = MetaData(naming_convention=convention)


def create_db_engine(url: Optional[str] = None) -> Engine:
    """Create an engine for the draft database.

    SQLite connections are shared with the autosave timer thread.
    """
    url = url or settings.database_url
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(
        url,
        echo=settings.log_level == "DEBUG",
        connect_args=connect_args,
    )


def create_session_factory(bind: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind, class_=Session, expire_on_commit=False)


# Default engine and session factory
engine = create_db_engine()
session_factory = create_session_factory(engine)


@contextmanager
def get_session(
    factory: Optional[sessionmaker[Session]] = None,
) -> Generator[Session, None, None]:
    """Get a database session that commits on success and rolls back on error."""
    with (factory or session_factory)() as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise


def init_db(bind: Optional[Engine] = None) -> None:
    """Create tables that do not exist yet."""
    Base.metadata.create_all(bind or engine)


def close_db() -> None:
    """Close database connections."""
    engine.dispose()
