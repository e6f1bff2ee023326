"""Draft storage layer for Vello.

Persists unsaved builder state via SQLAlchemy (SQLite by default).
"""

from .database import (
    Base,
    close_db,
    create_db_engine,
    create_session_factory,
    engine,
    get_session,
    init_db,
    session_factory,
)
from .orm_models import TemplateDraftORM
from .repositories import DraftRepository, draft_age

__all__ = [
    # Database
    "Base",
    "engine",
    "session_factory",
    "create_db_engine",
    "create_session_factory",
    "get_session",
    "init_db",
    "close_db",
    # ORM Models
    "TemplateDraftORM",
    # Repositories
    "DraftRepository",
    "draft_age",
]
