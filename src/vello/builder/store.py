"""Builder store - the single owner of template editing state.

The store composes the history, transform and table-binding engines
against one mutable state. Each discrete action records a history snapshot
before mutating; gesture controllers record once at gesture start and then
apply uncommitted moves through ``apply_positions`` / ``apply_block``.

Observers subscribe explicitly and receive the store after every change::

    store = TemplateBuilderStore()
    unsubscribe = store.subscribe(lambda s: print(s.is_dirty))
    store.add_block_at_position(BlockType.TEXT, 40, 40)
    unsubscribe()
"""

import logging
import random
import string
from typing import Any, Callable, Iterable, Optional, Union

from vello.config import settings
from vello.models import (
    MIN_BLOCK_HEIGHT,
    MIN_BLOCK_WIDTH,
    Block,
    BlockType,
    GlobalStyles,
    Guide,
    GuideOrientation,
    HistorySnapshot,
    Orientation,
    PaperSize,
    TableBlock,
    TableCell,
    TableRow,
    TemplateDraft,
    TemplateSchema,
    TemplateType,
    TemplateVariable,
    canvas_size,
    create_block,
)

from . import binding, transform
from .history import History
from .transform import Alignment, Axis

logger = logging.getLogger(__name__)

Listener = Callable[["TemplateBuilderStore"], None]

ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 7
DUPLICATE_OFFSET = 20.0
DEFAULT_TEMPLATE_NAME = "Untitled Template"


class TemplateBuilderStore:
    """Editing state for one template plus the actions that change it."""

    def __init__(
        self,
        history_limit: Optional[int] = None,
        align_margin: Optional[float] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize an empty builder.

        Args:
            history_limit: Maximum undo entries. Defaults to settings.
            align_margin: Canvas margin for single-block alignment.
            rng: Random source for block ids; pass a seeded instance for
                deterministic ids.
        """
        self.history = History(history_limit or settings.history_limit)
        self.align_margin = (
            align_margin if align_margin is not None else settings.align_margin
        )
        self._rng = rng or random.Random()
        self._listeners: list[Listener] = []
        self._reset_state()

    def _reset_state(self) -> None:
        self.template_id: Optional[str] = None
        self.template_name: str = DEFAULT_TEMPLATE_NAME
        self.template_type: Optional[TemplateType] = None
        self.blocks: list[Block] = []
        self.selected_block_ids: list[str] = []
        self.global_styles: GlobalStyles = GlobalStyles()
        self.paper_size: PaperSize = PaperSize.A4
        self.orientation: Orientation = Orientation.PORTRAIT
        self.guides: list[Guide] = []
        self.recipient_email_field: Optional[str] = None
        self.recipient_name_field: Optional[str] = None
        self.clipboard: list[Block] = []
        self.is_dirty: bool = False
        self.history.clear()

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _commit(self, dirty: bool = True) -> None:
        if dirty:
            self.is_dirty = True
        self._notify()

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def canvas_size(self) -> tuple[float, float]:
        """Canvas (width, height) in pixels."""
        return canvas_size(self.paper_size, self.orientation)

    @property
    def selected_block_id(self) -> Optional[str]:
        """First selected block id, if any."""
        return self.selected_block_ids[0] if self.selected_block_ids else None

    @property
    def selected_blocks(self) -> list[Block]:
        selected = set(self.selected_block_ids)
        return [b for b in self.blocks if b.id in selected]

    def get_block(self, block_id: Optional[str]) -> Optional[Block]:
        return transform.find_block(self.blocks, block_id)

    def new_id(self) -> str:
        """Generate a short random block id."""
        return "".join(self._rng.choice(ID_ALPHABET) for _ in range(ID_LENGTH))

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def capture(self) -> HistorySnapshot:
        """Deep copy of the state covered by undo/redo."""
        return HistorySnapshot(
            blocks=[b.model_copy(deep=True) for b in self.blocks],
            global_styles=self.global_styles.model_copy(deep=True),
            paper_size=self.paper_size,
            orientation=self.orientation,
            template_name=self.template_name,
            template_type=self.template_type,
            recipient_email_field=self.recipient_email_field,
            recipient_name_field=self.recipient_name_field,
        )

    def _restore(self, snapshot: HistorySnapshot) -> None:
        self.blocks = [b.model_copy(deep=True) for b in snapshot.blocks]
        self.global_styles = snapshot.global_styles.model_copy(deep=True)
        self.paper_size = snapshot.paper_size
        self.orientation = snapshot.orientation
        self.template_name = snapshot.template_name
        self.template_type = snapshot.template_type
        self.recipient_email_field = snapshot.recipient_email_field
        self.recipient_name_field = snapshot.recipient_name_field
        existing = {b.id for b in self.blocks}
        self.selected_block_ids = [i for i in self.selected_block_ids if i in existing]

    def push_history_snapshot(self) -> None:
        """Record the current state before a mutation."""
        self.history.push(self.capture())

    def undo(self) -> None:
        snapshot = self.history.undo(self.capture())
        if snapshot is None:
            return
        self._restore(snapshot)
        self._commit()

    def redo(self) -> None:
        snapshot = self.history.redo()
        if snapshot is None:
            return
        self._restore(snapshot)
        self._commit()

    def can_undo(self) -> bool:
        return self.history.can_undo

    def can_redo(self) -> bool:
        return self.history.can_redo

    def _set_blocks(self, blocks: list[Block]) -> bool:
        """Record history and replace blocks when they actually changed."""
        if blocks is self.blocks or blocks == self.blocks:
            return False
        self.push_history_snapshot()
        self.blocks = blocks
        self._commit()
        return True

    # ------------------------------------------------------------------
    # Template settings
    # ------------------------------------------------------------------

    def set_template_name(self, name: str) -> None:
        self.push_history_snapshot()
        self.template_name = name
        self._commit()

    def set_template_type(self, template_type: Optional[TemplateType]) -> None:
        self.push_history_snapshot()
        self.template_type = TemplateType(template_type) if template_type else None
        self._commit()

    def set_paper_size(self, paper_size: PaperSize) -> None:
        self.push_history_snapshot()
        self.paper_size = PaperSize(paper_size)
        self._commit()

    def set_orientation(self, orientation: Orientation) -> None:
        self.push_history_snapshot()
        self.orientation = Orientation(orientation)
        self._commit()

    def set_global_styles(self, **styles: Any) -> None:
        """Merge global style defaults, e.g. ``set_global_styles(font_size=11)``."""
        global_styles = self.global_styles.merged(styles)
        self.push_history_snapshot()
        self.global_styles = global_styles
        self._commit()

    def set_recipient_fields(
        self, email_field: Optional[str] = None, name_field: Optional[str] = None
    ) -> None:
        """Set which record fields identify each email recipient."""
        self.push_history_snapshot()
        self.recipient_email_field = email_field
        self.recipient_name_field = name_field
        self._commit()

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def add_block(self, block: Block) -> None:
        self.push_history_snapshot()
        self.blocks = [*self.blocks, block]
        self.selected_block_ids = [block.id]
        self._commit()

    def add_block_at_position(self, block_type: BlockType, x: float, y: float) -> str:
        """Add a default block of ``block_type`` at (x, y); returns its id."""
        block = create_block(block_type, self.new_id(), max(0.0, x), max(0.0, y))
        self.add_block(block)
        return block.id

    def update_block_properties(self, block_id: str, **properties: Any) -> None:
        block = self.get_block(block_id)
        if block is None:
            return
        updated = block.model_copy(update={"properties": block.properties.merged(properties)})
        self._set_blocks(transform.replace_block(self.blocks, updated))

    def update_block_style(self, block_id: str, **style: Any) -> None:
        """Merge style attributes; geometry is clamped to its invariants."""
        block = self.get_block(block_id)
        if block is None:
            return
        merged = block.style.merged(style)
        merged = merged.model_copy(
            update={
                "x": max(0.0, merged.x),
                "y": max(0.0, merged.y),
                "width": max(MIN_BLOCK_WIDTH, merged.width),
                "height": max(MIN_BLOCK_HEIGHT, merged.height),
            }
        )
        resized = transform.set_size(block, merged.width, merged.height)
        updated = resized.model_copy(update={"style": merged})
        self._set_blocks(transform.replace_block(self.blocks, updated))

    def update_block_position(self, block_id: str, x: float, y: float) -> None:
        if self.get_block(block_id) is None:
            return
        self._set_blocks(transform.move_blocks(self.blocks, {block_id: (x, y)}))

    def update_block_size(self, block_id: str, width: float, height: float) -> None:
        block = self.get_block(block_id)
        if block is None:
            return
        updated = transform.set_size(
            block, max(MIN_BLOCK_WIDTH, width), max(MIN_BLOCK_HEIGHT, height)
        )
        self._set_blocks(transform.replace_block(self.blocks, updated))

    def remove_block(self, block_id: str) -> None:
        if self.get_block(block_id) is None:
            return
        self._deselect([block_id])
        self._set_blocks(transform.remove_blocks(self.blocks, [block_id]))

    def remove_selected_blocks(self) -> None:
        ids = list(self.selected_block_ids)
        if not ids:
            return
        self._deselect(ids)
        self._set_blocks(transform.remove_blocks(self.blocks, ids))

    def duplicate_block(self, block_id: str) -> Optional[str]:
        """Duplicate one block; returns the copy's id."""
        blocks, new_ids = transform.duplicate_blocks(
            self.blocks, [block_id], self.new_id, DUPLICATE_OFFSET
        )
        if not new_ids:
            return None
        self.selected_block_ids = new_ids
        self._set_blocks(blocks)
        return new_ids[0]

    def duplicate_selected_blocks(self) -> list[str]:
        blocks, new_ids = transform.duplicate_blocks(
            self.blocks, self.selected_block_ids, self.new_id, DUPLICATE_OFFSET
        )
        if not new_ids:
            return []
        self.selected_block_ids = new_ids
        self._set_blocks(blocks)
        return new_ids

    def bring_to_front(self, block_id: str) -> None:
        self._set_blocks(transform.bring_to_front(self.blocks, block_id))

    def send_to_back(self, block_id: str) -> None:
        self._set_blocks(transform.send_to_back(self.blocks, block_id))

    # ------------------------------------------------------------------
    # Selection and clipboard
    # ------------------------------------------------------------------

    def select_block(self, block_id: Optional[str], additive: bool = False) -> None:
        """Select a block.

        Args:
            block_id: Block to select, or None to clear the selection.
            additive: Toggle ``block_id`` in the current selection instead
                of replacing it.
        """
        if block_id is None:
            self.selected_block_ids = []
        elif additive:
            if block_id in self.selected_block_ids:
                self.selected_block_ids = [
                    i for i in self.selected_block_ids if i != block_id
                ]
            elif self.get_block(block_id) is not None:
                self.selected_block_ids = [*self.selected_block_ids, block_id]
        elif self.get_block(block_id) is not None:
            self.selected_block_ids = [block_id]
        self._commit(dirty=False)

    def select_blocks(self, block_ids: Iterable[str]) -> None:
        existing = {b.id for b in self.blocks}
        self.selected_block_ids = [i for i in dict.fromkeys(block_ids) if i in existing]
        self._commit(dirty=False)

    def select_all_blocks(self) -> None:
        self.select_blocks(b.id for b in self.blocks)

    def _deselect(self, block_ids: Iterable[str]) -> None:
        removed = set(block_ids)
        self.selected_block_ids = [i for i in self.selected_block_ids if i not in removed]

    def copy_selected_blocks(self) -> None:
        """Copy the selection to the internal clipboard."""
        self.clipboard = [b.model_copy(deep=True) for b in self.selected_blocks]
        self._commit(dirty=False)

    def paste_blocks(self) -> list[str]:
        """Paste clipboard blocks with fresh ids, offset from the originals."""
        if not self.clipboard:
            return []
        copies = [
            transform.clone_block(b, self.new_id, DUPLICATE_OFFSET, DUPLICATE_OFFSET)
            for b in self.clipboard
        ]
        # Successive pastes keep stepping away from the originals
        self.clipboard = [c.model_copy(deep=True) for c in copies]
        self.selected_block_ids = [c.id for c in copies]
        self._set_blocks([*self.blocks, *copies])
        return self.selected_block_ids

    # ------------------------------------------------------------------
    # Multi-block transforms
    # ------------------------------------------------------------------

    def nudge_selected_blocks(self, dx: float, dy: float) -> None:
        if not self.selected_block_ids:
            return
        self._set_blocks(
            transform.translate_blocks(self.blocks, self.selected_block_ids, dx, dy)
        )

    def align_block(self, block_id: str, alignment: Alignment) -> None:
        """Align a block, or the whole selection when it is part of one."""
        if self.get_block(block_id) is None:
            return
        if block_id in self.selected_block_ids and len(self.selected_block_ids) > 1:
            ids = self.selected_block_ids
        else:
            ids = [block_id]
        width, height = self.canvas_size
        self._set_blocks(
            transform.align_blocks(
                self.blocks, ids, alignment, width, height, self.align_margin
            )
        )

    def distribute_blocks(self, axis: Axis, gap: Optional[float] = None) -> None:
        gap = settings.distribute_gap if gap is None else gap
        self._set_blocks(
            transform.distribute_blocks(self.blocks, self.selected_block_ids, axis, gap)
        )

    def group_selected_blocks(self) -> Optional[str]:
        """Group the selection into a container; returns its id."""
        blocks, container_id = transform.group_blocks(
            self.blocks, self.selected_block_ids, self.new_id()
        )
        if container_id is None:
            return None
        self.selected_block_ids = [container_id]
        self._set_blocks(blocks)
        return container_id

    def ungroup_selected_blocks(self) -> None:
        blocks, selection = transform.ungroup_blocks(self.blocks, self.selected_block_ids)
        if blocks is self.blocks:
            return
        self.selected_block_ids = selection
        self._set_blocks(blocks)

    # ------------------------------------------------------------------
    # Gesture support (no history; the gesture records at its start)
    # ------------------------------------------------------------------

    def apply_positions(self, positions: dict[str, tuple[float, float]]) -> None:
        """Move blocks as part of an in-progress gesture."""
        self.blocks = transform.move_blocks(self.blocks, positions)
        self._commit()

    def apply_block(self, block: Block) -> None:
        """Replace a block as part of an in-progress gesture."""
        self.blocks = transform.replace_block(self.blocks, block)
        self._commit()

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def _get_table(self, block_id: str) -> Optional[TableBlock]:
        block = self.get_block(block_id)
        return block if isinstance(block, TableBlock) else None

    def _set_rows(self, table: TableBlock, rows: list[TableRow]) -> None:
        updated = table.model_copy(
            update={"properties": table.properties.model_copy(update={"rows": rows})}
        )
        self._set_blocks(transform.replace_block(self.blocks, updated))

    def add_table_row(self, block_id: str, after_index: Optional[int] = None) -> None:
        table = self._get_table(block_id)
        if table is None:
            return
        rows = [r.model_copy(deep=True) for r in table.properties.rows]
        col_count = table.properties.num_cols or 2
        new_row = TableRow(cells=[TableCell(content="") for _ in range(col_count)], is_header=False)
        insert_at = len(rows) if after_index is None else after_index + 1
        rows.insert(insert_at, new_row)
        self._set_rows(table, rows)

    def remove_table_row(self, block_id: str, row_index: int) -> None:
        table = self._get_table(block_id)
        if table is None or table.properties.num_rows <= 1:
            return
        if not 0 <= row_index < table.properties.num_rows:
            return
        rows = [
            r.model_copy(deep=True)
            for i, r in enumerate(table.properties.rows)
            if i != row_index
        ]
        self._set_rows(table, rows)

    def add_table_column(self, block_id: str, after_index: Optional[int] = None) -> None:
        table = self._get_table(block_id)
        if table is None:
            return
        rows = [r.model_copy(deep=True) for r in table.properties.rows]
        for row in rows:
            insert_at = len(row.cells) if after_index is None else after_index + 1
            row.cells.insert(insert_at, TableCell(content=""))
        self._set_rows(table, rows)

    def remove_table_column(self, block_id: str, col_index: int) -> None:
        table = self._get_table(block_id)
        if table is None or table.properties.num_cols <= 1:
            return
        if not 0 <= col_index < table.properties.num_cols:
            return
        rows = [r.model_copy(deep=True) for r in table.properties.rows]
        for row in rows:
            row.cells = [c for i, c in enumerate(row.cells) if i != col_index]
        self._set_rows(table, rows)

    def _update_cell(
        self, block_id: str, row_index: int, col_index: int, change: Callable[[TableCell], TableCell]
    ) -> None:
        table = self._get_table(block_id)
        if table is None:
            return
        cell = table.properties.get_cell(row_index, col_index)
        if cell is None:
            return
        rows = [r.model_copy(deep=True) for r in table.properties.rows]
        rows[row_index].cells[col_index] = change(cell.model_copy(deep=True))
        self._set_rows(table, rows)

    def update_table_cell(
        self, block_id: str, row_index: int, col_index: int, **updates: Any
    ) -> None:
        """Merge cell attributes; a binding and a label never coexist."""
        self._update_cell(
            block_id, row_index, col_index,
            lambda cell: binding.apply_cell_updates(cell, updates),
        )

    def bind_table_cell_variable(
        self,
        block_id: str,
        row_index: int,
        col_index: int,
        key: str,
        extra_variables: Iterable[TemplateVariable] = (),
    ) -> None:
        """Bind a variable to a cell, showing the variable's label."""
        variables = binding.available_variables(self.blocks, extra_variables)
        self._update_cell(
            block_id, row_index, col_index,
            lambda cell: binding.bind_variable(cell, key, variables),
        )

    def mark_table_cell_label(
        self, block_id: str, row_index: int, col_index: int, label_id: Optional[str] = None
    ) -> None:
        self._update_cell(
            block_id, row_index, col_index,
            lambda cell: binding.mark_label(cell, label_id),
        )

    def clear_table_cell_variable(self, block_id: str, row_index: int, col_index: int) -> None:
        self._update_cell(block_id, row_index, col_index, binding.clear_variable)

    def remove_table_cell_label(self, block_id: str, row_index: int, col_index: int) -> None:
        self._update_cell(block_id, row_index, col_index, binding.remove_label)

    # ------------------------------------------------------------------
    # Guides (not part of undo history)
    # ------------------------------------------------------------------

    def add_guide(self, orientation: GuideOrientation, position: float) -> str:
        guide = Guide(id=self.new_id(), orientation=orientation, position=max(0.0, position))
        self.guides = [*self.guides, guide]
        self._commit()
        return guide.id

    def update_guide(self, guide_id: str, position: float) -> None:
        width, height = self.canvas_size
        guides = []
        for guide in self.guides:
            if guide.id == guide_id:
                limit = width if guide.orientation == GuideOrientation.VERTICAL else height
                guide = guide.model_copy(update={"position": min(limit, max(0.0, position))})
            guides.append(guide)
        self.guides = guides
        self._commit()

    def remove_guide(self, guide_id: str) -> None:
        self.guides = [g for g in self.guides if g.id != guide_id]
        self._commit()

    def clear_guides(self) -> None:
        self.guides = []
        self._commit()

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    def load_template(
        self,
        schema: Union[TemplateSchema, dict, str],
        template_id: Optional[str] = None,
        name: Optional[str] = None,
        paper_size: Optional[PaperSize] = None,
        orientation: Optional[Orientation] = None,
        recipient_email_field: Optional[str] = None,
        recipient_name_field: Optional[str] = None,
    ) -> None:
        """Replace the editing session with a persisted template.

        Args:
            schema: TemplateSchema, wire-form dict or JSON string. Invalid
                input raises ``pydantic.ValidationError``.
        """
        if isinstance(schema, str):
            schema = TemplateSchema.from_json(schema)
        elif not isinstance(schema, TemplateSchema):
            schema = TemplateSchema.model_validate(schema)

        self._reset_state()
        self.template_id = template_id
        self.template_name = name or DEFAULT_TEMPLATE_NAME
        self.template_type = schema.template_type
        self.blocks = [b.model_copy(deep=True) for b in schema.blocks]
        self.global_styles = schema.global_styles.model_copy(deep=True)
        self.guides = [g.model_copy() for g in schema.guides]
        self.paper_size = PaperSize(paper_size) if paper_size else PaperSize.A4
        self.orientation = Orientation(orientation) if orientation else Orientation.PORTRAIT
        self.recipient_email_field = recipient_email_field
        self.recipient_name_field = recipient_name_field
        logger.info("Loaded template %s with %d blocks", template_id or "(new)", len(self.blocks))
        self._commit(dirty=False)

    def get_schema(self) -> TemplateSchema:
        """Snapshot of the template in its persisted shape."""
        return TemplateSchema(
            blocks=[b.model_copy(deep=True) for b in self.blocks],
            variables=binding.extract_used_variables(self.blocks),
            guides=[g.model_copy() for g in self.guides],
            global_styles=self.global_styles.model_copy(deep=True),
            template_type=self.template_type,
        )

    def to_draft(self) -> Optional[TemplateDraft]:
        """Draft of the current state, or None for a template never saved."""
        if self.template_id is None:
            return None
        return TemplateDraft(
            template_id=self.template_id,
            template_name=self.template_name,
            blocks=[b.model_copy(deep=True) for b in self.blocks],
            global_styles=self.global_styles.model_copy(deep=True),
            paper_size=self.paper_size,
            orientation=self.orientation,
            guides=[g.model_copy() for g in self.guides],
        )

    def restore_draft(self, draft: TemplateDraft) -> None:
        """Replace the editing session with a recovered draft.

        The restored state is dirty; the draft has not been saved.
        """
        self._reset_state()
        self.template_id = draft.template_id
        self.template_name = draft.template_name
        self.blocks = [b.model_copy(deep=True) for b in draft.blocks]
        self.global_styles = draft.global_styles.model_copy(deep=True)
        self.paper_size = draft.paper_size
        self.orientation = draft.orientation
        self.guides = [g.model_copy() for g in draft.guides]
        logger.info("Restored draft for template %s", draft.template_id)
        self._commit()

    def reset_dirty(self) -> None:
        self.is_dirty = False
        self._notify()

    def reset(self) -> None:
        self._reset_state()
        self._notify()
