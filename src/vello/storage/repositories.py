"""Repository layer for draft CRUD operations."""

import logging
import time
from typing import Callable, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from vello.config import settings
from vello.models import TemplateDraft

from .orm_models import TemplateDraftORM

logger = logging.getLogger(__name__)


class DraftRepository:
    """Repository for TemplateDraft operations.

    Drafts older than the expiry window are treated as missing and are
    deleted when encountered.
    """

    def __init__(
        self,
        session: Session,
        expiry_hours: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.session = session
        self.expiry_hours = (
            settings.draft_expiry_hours if expiry_hours is None else expiry_hours
        )
        self.clock = clock

    @property
    def expiry_seconds(self) -> float:
        return self.expiry_hours * 3600

    def _is_expired(self, row: TemplateDraftORM) -> bool:
        return self.clock() - row.saved_at > self.expiry_seconds

    @staticmethod
    def _to_model(row: TemplateDraftORM) -> TemplateDraft:
        return TemplateDraft.model_validate(
            {
                **row.payload,
                "templateId": row.template_id,
                "templateName": row.template_name,
                "savedAt": row.saved_at,
            }
        )

    def save(self, draft: TemplateDraft) -> TemplateDraftORM:
        """Insert or replace the draft for ``draft.template_id``."""
        row = TemplateDraftORM(
            template_id=draft.template_id,
            template_name=draft.template_name,
            payload=draft.payload(),
            saved_at=self.clock(),
        )
        row = self.session.merge(row)
        self.session.flush()
        logger.debug("Saved draft for template %s", draft.template_id)
        return row

    def load(self, template_id: str) -> Optional[TemplateDraft]:
        """Get the draft for a template, or None if missing or expired."""
        row = self.session.get(TemplateDraftORM, template_id)
        if row is None:
            return None
        if self._is_expired(row):
            logger.info("Discarding expired draft for template %s", template_id)
            self.session.delete(row)
            self.session.flush()
            return None
        return self._to_model(row)

    def clear(self, template_id: str) -> bool:
        """Delete the draft for a template.

        Returns:
            True if a draft existed.
        """
        result = self.session.execute(
            delete(TemplateDraftORM).where(TemplateDraftORM.template_id == template_id)
        )
        return result.rowcount > 0

    def has_draft(self, template_id: str) -> bool:
        return self.load(template_id) is not None

    def list_recent(self, limit: int = 20) -> Sequence[TemplateDraft]:
        """Get unexpired drafts, most recently saved first."""
        cutoff = self.clock() - self.expiry_seconds
        result = self.session.execute(
            select(TemplateDraftORM)
            .where(TemplateDraftORM.saved_at >= cutoff)
            .order_by(TemplateDraftORM.saved_at.desc())
            .limit(limit)
        )
        return [self._to_model(row) for row in result.scalars()]

    def purge_expired(self) -> int:
        """Delete every expired draft; returns the number removed."""
        cutoff = self.clock() - self.expiry_seconds
        result = self.session.execute(
            delete(TemplateDraftORM).where(TemplateDraftORM.saved_at < cutoff)
        )
        return result.rowcount


def draft_age(draft: TemplateDraft, now: Optional[float] = None) -> str:
    """Human-readable age of a draft, e.g. '5 minutes ago'."""
    seconds = max(0.0, (time.time() if now is None else now) - draft.saved_at)
    minutes = int(seconds // 60)
    hours = int(minutes // 60)
    days = int(hours // 24)

    if days > 0:
        return f"{days} day{'s' if days > 1 else ''} ago"
    if hours > 0:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    if minutes > 0:
        return f"{minutes} minute{'s' if minutes > 1 else ''} ago"
    return "just now"
