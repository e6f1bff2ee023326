"""SQLAlchemy ORM models for template drafts.

A draft is the builder's most recent unsaved state for one template, kept
so that work survives a closed tab or a crash.
"""

from sqlalchemy import JSON, Float, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


class TemplateDraftORM(Base):
    """Draft table - one row per template being edited."""

    __tablename__ = "template_drafts"

    template_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    template_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Camel-case wire form of blocks, styles, guides and page settings
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)

    # Unix timestamp in seconds
    saved_at: Mapped[float] = mapped_column(Float, nullable=False)

    __table_args__ = (Index("ix_template_drafts_saved_at", "saved_at"),)
