"""Debounced editing of text-block content."""

from typing import Optional

from vello.config import settings
from vello.models import TextBlock

from .debounce import Debouncer, Scheduler
from .store import TemplateBuilderStore


class TextContentEditor:
    """In-place editor for one text block.

    Keystrokes update ``draft`` immediately; the store receives the content
    after a quiet period, or at once on blur/close.

    ``scheduler`` must fire on the thread that owns the store, since the
    delayed update mutates it and notifies its listeners. Pass a
    ``TickScheduler`` polled by the host loop, or ``loop.call_later``.
    """

    def __init__(
        self,
        store: TemplateBuilderStore,
        block_id: str,
        scheduler: Scheduler,
        delay: Optional[float] = None,
    ):
        block = store.get_block(block_id)
        if not isinstance(block, TextBlock):
            raise ValueError(f"Block {block_id} is not a text block")
        self.store = store
        self.block_id = block_id
        self.draft = block.properties.content
        self._debouncer = Debouncer(
            self._apply,
            settings.text_debounce_seconds if delay is None else delay,
            scheduler,
        )

    def _apply(self, content: str) -> None:
        block = self.store.get_block(self.block_id)
        if isinstance(block, TextBlock) and block.properties.content != content:
            self.store.update_block_properties(self.block_id, content=content)

    def type(self, content: str) -> None:
        """Record the latest content typed by the user."""
        self.draft = content
        self._debouncer(content)

    def blur(self) -> None:
        """Commit any pending content immediately."""
        self._debouncer.flush()

    def close(self) -> None:
        self.blur()
