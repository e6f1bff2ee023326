"""Debounced draft autosave for a builder store."""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from vello.config import settings
from vello.models import TemplateDraft
from vello.storage import DraftRepository, get_session

from .debounce import Debouncer, Scheduler
from .store import TemplateBuilderStore

logger = logging.getLogger(__name__)


class AutoSaver:
    """Write a draft of the store's state after each burst of edits.

    The draft is captured when the store changes, so the timer thread never
    reads the store. Drafts are only written for templates that have an id
    and unsaved changes.

    Usage::

        saver = AutoSaver(store)
        saver.start()
        ...
        saver.stop()  # writes any pending draft
    """

    def __init__(
        self,
        store: TemplateBuilderStore,
        factory: Optional[sessionmaker[Session]] = None,
        delay: Optional[float] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        self.store = store
        self.factory = factory
        self.saved_count = 0
        self._unsubscribe = None
        self._debouncer = Debouncer(
            self._save,
            settings.autosave_debounce_seconds if delay is None else delay,
            scheduler,
        )

    @property
    def running(self) -> bool:
        return self._unsubscribe is not None

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self._on_change)

    def stop(self) -> None:
        """Write a pending draft and stop listening."""
        self.flush()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def flush(self) -> bool:
        return self._debouncer.flush()

    def _on_change(self, store: TemplateBuilderStore) -> None:
        if not store.is_dirty:
            return
        draft = store.to_draft()
        if draft is not None:
            self._debouncer(draft)

    def _save(self, draft: TemplateDraft) -> None:
        try:
            with get_session(self.factory) as session:
                DraftRepository(session).save(draft)
        except SQLAlchemyError as e:
            logger.warning("Failed to save draft for template %s: %s", draft.template_id, e)
            return
        self.saved_count += 1

    def __enter__(self) -> "AutoSaver":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()
