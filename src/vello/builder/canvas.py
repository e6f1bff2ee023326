"""Canvas interaction layer.

Translates pointer gestures on the canvas into store and transform calls.
Pointer coordinates are screen pixels; they are divided by the zoom scale
to get canvas pixels.

A gesture records one history snapshot, before its first change, and then
applies every move as an uncommitted mutation of the live state, so a whole
drag or resize undoes in one step. A click without movement records
nothing.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from vello.config import settings
from vello.models import DEFAULT_BLOCK_SIZES, Block, BlockType, GuideOrientation

from . import transform
from .snapping import SnapLine, collect_targets, compute_snap, quantize
from .store import TemplateBuilderStore

logger = logging.getLogger(__name__)

MIN_ZOOM = 0.25
MAX_ZOOM = 2.0
ZOOM_STEP = 0.1


@dataclass
class DragGesture:
    block_id: str
    start_x: float
    start_y: float
    origins: dict[str, tuple[float, float]] = field(default_factory=dict)
    recorded: bool = False


@dataclass
class ResizeGesture:
    block_id: str
    handle: str
    start_x: float
    start_y: float
    origin: Block
    recorded: bool = False


@dataclass
class GuideGesture:
    guide_id: str
    orientation: GuideOrientation
    start_x: float
    start_y: float
    origin: float


Gesture = Union[DragGesture, ResizeGesture, GuideGesture]


class BuilderCanvas:
    """Pointer-gesture controller for one store."""

    def __init__(
        self,
        store: TemplateBuilderStore,
        zoom: float = 1.0,
        grid_size: Optional[float] = None,
        snap_to_grid: Optional[bool] = None,
        snap_threshold: Optional[float] = None,
    ):
        """Initialize the canvas.

        Args:
            store: Store receiving the gestures.
            zoom: Display scale.
            grid_size: Grid spacing in canvas pixels. Defaults to settings.
            snap_to_grid: Quantize drags to the grid. Defaults to settings.
            snap_threshold: Pixel distance for snapping to alignment targets.
        """
        self.store = store
        self.zoom = self._clamp_zoom(zoom)
        self.grid_size = settings.grid_size if grid_size is None else grid_size
        self.snap_to_grid = settings.snap_to_grid if snap_to_grid is None else snap_to_grid
        self.snap_threshold = (
            settings.snap_threshold if snap_threshold is None else snap_threshold
        )
        self.snap_lines: list[SnapLine] = []
        self.gesture: Optional[Gesture] = None

    # ------------------------------------------------------------------
    # Zoom
    # ------------------------------------------------------------------

    @staticmethod
    def _clamp_zoom(zoom: float) -> float:
        return min(MAX_ZOOM, max(MIN_ZOOM, zoom))

    def set_zoom(self, zoom: float) -> None:
        self.zoom = self._clamp_zoom(zoom)

    def zoom_in(self) -> None:
        self.set_zoom(round(self.zoom + ZOOM_STEP, 2))

    def zoom_out(self) -> None:
        self.set_zoom(round(self.zoom - ZOOM_STEP, 2))

    def reset_zoom(self) -> None:
        self.zoom = 1.0

    def to_canvas(self, x: float, y: float) -> tuple[float, float]:
        """Convert a screen offset from the canvas origin to canvas pixels."""
        return x / self.zoom, y / self.zoom

    # ------------------------------------------------------------------
    # Gestures
    # ------------------------------------------------------------------

    @property
    def is_dragging(self) -> bool:
        return isinstance(self.gesture, DragGesture)

    @property
    def is_resizing(self) -> bool:
        return isinstance(self.gesture, ResizeGesture)

    def pointer_down(self, block_id: str, x: float, y: float, shift: bool = False) -> None:
        """Start dragging a block.

        Without shift, pressing an already-selected block drags the whole
        selection and pressing any other block selects and drags it alone.
        With shift the block is toggled in the selection; the rest of the
        selection is dragged with it unless it was toggled off.
        """
        store = self.store
        if store.get_block(block_id) is None:
            return

        if shift:
            store.select_block(block_id, additive=True)
            if block_id not in store.selected_block_ids:
                return
            drag_ids = list(store.selected_block_ids)
        elif block_id in store.selected_block_ids:
            drag_ids = list(store.selected_block_ids)
        else:
            store.select_block(block_id)
            drag_ids = [block_id]

        dragged = set(drag_ids)
        self.gesture = DragGesture(
            block_id=block_id,
            start_x=x,
            start_y=y,
            origins={
                b.id: (b.style.x, b.style.y) for b in store.blocks if b.id in dragged
            },
        )
        logger.debug("Drag start on %s with %d blocks", block_id, len(dragged))

    def resize_pointer_down(self, block_id: str, handle: str, x: float, y: float) -> None:
        """Start resizing a block from one of its handles."""
        if handle not in transform.RESIZE_HANDLES:
            raise ValueError(f"Unknown resize handle: {handle}")
        block = self.store.get_block(block_id)
        if block is None:
            return
        self.store.select_block(block_id)
        self.gesture = ResizeGesture(
            block_id=block_id,
            handle=handle,
            start_x=x,
            start_y=y,
            origin=block.model_copy(deep=True),
        )

    def guide_pointer_down(self, guide_id: str, x: float, y: float) -> None:
        """Start dragging a persistent guide."""
        guide = next((g for g in self.store.guides if g.id == guide_id), None)
        if guide is None:
            return
        self.gesture = GuideGesture(
            guide_id=guide_id,
            orientation=guide.orientation,
            start_x=x,
            start_y=y,
            origin=guide.position,
        )

    def pointer_move(self, x: float, y: float, lock_aspect: bool = False) -> None:
        """Continue the active gesture.

        Args:
            x: Pointer x in screen pixels.
            y: Pointer y in screen pixels.
            lock_aspect: Keep the aspect ratio while resizing.
        """
        gesture = self.gesture
        if gesture is None:
            return
        dx, dy = self.to_canvas(x - gesture.start_x, y - gesture.start_y)

        if isinstance(gesture, DragGesture):
            self._drag(gesture, dx, dy)
        elif isinstance(gesture, ResizeGesture):
            self._resize(gesture, dx, dy, lock_aspect)
        else:
            delta = dx if gesture.orientation == GuideOrientation.VERTICAL else dy
            self.store.update_guide(gesture.guide_id, gesture.origin + delta)

    def pointer_up(self) -> None:
        """End the active gesture and clear transient guide lines."""
        if self.gesture is not None:
            logger.debug("Gesture end: %s", type(self.gesture).__name__)
        self.gesture = None
        self.snap_lines = []

    def _drag(self, gesture: DragGesture, dx: float, dy: float) -> None:
        block = self.store.get_block(gesture.block_id)
        origin = gesture.origins.get(gesture.block_id)
        if block is None or origin is None:
            return

        x = origin[0] + dx
        y = origin[1] + dy
        if self.snap_to_grid:
            x = quantize(x, self.grid_size)
            y = quantize(y, self.grid_size)

        width, height = self.store.canvas_size
        targets = collect_targets(
            width,
            height,
            guides=self.store.guides,
            blocks=self.store.blocks,
            exclude_ids=gesture.origins,
        )
        snap = compute_snap(
            x, y, block.style.width, block.style.height, targets, self.snap_threshold
        )
        self.snap_lines = snap.lines

        # The primary block's resolved delta moves the whole drag set
        ddx = snap.x - origin[0]
        ddy = snap.y - origin[1]
        positions = {
            block_id: (ox + ddx, oy + ddy)
            for block_id, (ox, oy) in gesture.origins.items()
        }
        if not gesture.recorded:
            self.store.push_history_snapshot()
            gesture.recorded = True
        self.store.apply_positions(positions)

    def _resize(
        self, gesture: ResizeGesture, dx: float, dy: float, lock_aspect: bool
    ) -> None:
        if self.store.get_block(gesture.block_id) is None:
            return
        resized = transform.resize_block(
            gesture.origin, gesture.handle, dx, dy, lock_aspect
        )
        if not gesture.recorded:
            self.store.push_history_snapshot()
            gesture.recorded = True
        self.store.apply_block(resized)

    # ------------------------------------------------------------------
    # Clicks and drops
    # ------------------------------------------------------------------

    def click_empty(self) -> None:
        """Clicking the bare canvas clears the selection."""
        self.store.select_block(None)

    def drop_block(self, block_type: BlockType, x: float, y: float) -> str:
        """Add a palette block centred on a drop point given in screen pixels."""
        block_type = BlockType(block_type)
        cx, cy = self.to_canvas(x, y)
        width, height = DEFAULT_BLOCK_SIZES[block_type]
        return self.store.add_block_at_position(block_type, cx - width / 2, cy - height / 2)
