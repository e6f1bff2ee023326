"""Transform engine - geometry mutation of blocks.

All functions take the current top-level block list and return a new list.
Input blocks are never mutated in place; changed blocks are replaced by
copies. Operations on unknown ids or too-small selections return the input
list unchanged.

Positional invariants held by every function here:
- x, y >= 0
- width >= MIN_BLOCK_WIDTH, height >= MIN_BLOCK_HEIGHT after a resize
"""

import logging
from typing import Callable, Iterable, Literal, Optional

from vello.models import (
    MIN_BLOCK_HEIGHT,
    MIN_BLOCK_WIDTH,
    Block,
    BlockStyle,
    ContainerBlock,
    ContainerBlockProperties,
)

logger = logging.getLogger(__name__)

Alignment = Literal["left", "center", "right", "top", "middle", "bottom"]
Axis = Literal["horizontal", "vertical"]
IdFactory = Callable[[], str]

RESIZE_HANDLES = ("n", "e", "s", "w", "ne", "se", "sw", "nw")


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------


def find_block(blocks: list[Block], block_id: Optional[str]) -> Optional[Block]:
    """Get a top-level block by id."""
    for block in blocks:
        if block.id == block_id:
            return block
    return None


def replace_block(blocks: list[Block], updated: Block) -> list[Block]:
    """Replace the top-level block sharing ``updated.id``."""
    return [updated if b.id == updated.id else b for b in blocks]


def with_style(block: Block, **changes) -> Block:
    """Copy a block with some style attributes replaced."""
    return block.model_copy(update={"style": block.style.model_copy(update=changes)})


def selection_bounds(blocks: Iterable[Block]) -> Optional[tuple[float, float, float, float]]:
    """Combined extents (min_x, min_y, max_x, max_y) of some blocks."""
    blocks = list(blocks)
    if not blocks:
        return None
    return (
        min(b.style.x for b in blocks),
        min(b.style.y for b in blocks),
        max(b.style.x2 for b in blocks),
        max(b.style.y2 for b in blocks),
    )


def _selected(blocks: list[Block], ids: Iterable[str]) -> list[Block]:
    wanted = set(ids)
    return [b for b in blocks if b.id in wanted]


# ---------------------------------------------------------------------------
# Position
# ---------------------------------------------------------------------------


def move_blocks(
    blocks: list[Block], positions: dict[str, tuple[float, float]]
) -> list[Block]:
    """Set absolute positions for several blocks, clamping to >= 0."""
    if not positions:
        return blocks
    result = []
    for block in blocks:
        if block.id in positions:
            x, y = positions[block.id]
            block = with_style(block, x=max(0.0, x), y=max(0.0, y))
        result.append(block)
    return result


def translate_blocks(
    blocks: list[Block], ids: Iterable[str], dx: float, dy: float
) -> list[Block]:
    """Move some blocks by the same delta."""
    positions = {
        b.id: (b.style.x + dx, b.style.y + dy) for b in _selected(blocks, ids)
    }
    return move_blocks(blocks, positions)


# ---------------------------------------------------------------------------
# Resize and proportional scaling
# ---------------------------------------------------------------------------


def compute_resize(
    start: BlockStyle,
    handle: str,
    dx: float,
    dy: float,
    lock_aspect: bool = False,
    min_width: float = MIN_BLOCK_WIDTH,
    min_height: float = MIN_BLOCK_HEIGHT,
) -> tuple[float, float, float, float]:
    """Compute new geometry for a resize handle drag.

    Args:
        start: Block style at gesture start.
        handle: One of n, e, s, w, ne, se, sw, nw.
        dx: Horizontal pointer movement in canvas pixels.
        dy: Vertical pointer movement in canvas pixels.
        lock_aspect: Keep the original width/height ratio. Corner handles
            follow whichever axis changed more; edge handles derive the
            perpendicular dimension.
        min_width: Minimum resulting width.
        min_height: Minimum resulting height.

    Returns:
        (x, y, width, height). Edges opposite to the handle stay anchored.
    """
    if handle not in RESIZE_HANDLES:
        raise ValueError(f"Unknown resize handle: {handle}")

    width = start.width
    height = start.height

    if "e" in handle:
        width = start.width + dx
    if "w" in handle:
        width = start.width - dx
    if "s" in handle:
        height = start.height + dy
    if "n" in handle:
        height = start.height - dy

    width = max(min_width, width)
    height = max(min_height, height)

    if lock_aspect and start.width > 0 and start.height > 0:
        ratio = start.width / start.height
        if len(handle) == 2:
            width_change = abs(width - start.width) / start.width
            height_change = abs(height - start.height) / start.height
            if width_change >= height_change:
                height = width / ratio
            else:
                width = height * ratio
        elif handle in ("e", "w"):
            height = width / ratio
        else:
            width = height * ratio
        width = max(min_width, width)
        height = max(min_height, height)

    x = start.x + start.width - width if "w" in handle else start.x
    y = start.y + start.height - height if "n" in handle else start.y

    return max(0.0, x), max(0.0, y), width, height


def _scale_style(style: BlockStyle, sx: float, sy: float) -> BlockStyle:
    """Scale geometry and scale-sensitive style values of a descendant."""
    uniform = min(sx, sy)
    changes = {
        "x": style.x * sx,
        "y": style.y * sy,
        "width": style.width * sx,
        "height": style.height * sy,
    }
    for name, factor in (
        ("padding_left", sx),
        ("padding_right", sx),
        ("padding_top", sy),
        ("padding_bottom", sy),
        ("font_size", uniform),
        ("border_width", uniform),
        ("border_radius", uniform),
    ):
        value = getattr(style, name)
        if value is not None:
            changes[name] = value * factor
    return style.model_copy(update=changes)


def scale_blocks(blocks: list[Block], sx: float, sy: float) -> list[Block]:
    """Recursively scale blocks positioned relative to a scaled parent."""
    scaled = []
    for block in blocks:
        update = {"style": _scale_style(block.style, sx, sy)}
        if isinstance(block, ContainerBlock) and block.has_children:
            update["properties"] = block.properties.model_copy(
                update={"children": scale_blocks(block.properties.children, sx, sy)}
            )
        scaled.append(block.model_copy(update=update))
    return scaled


def scale_container(container: ContainerBlock, width: float, height: float) -> ContainerBlock:
    """Resize a container, proportionally rescaling every descendant."""
    sx = width / container.style.width if container.style.width else 1.0
    sy = height / container.style.height if container.style.height else 1.0
    children = scale_blocks(container.properties.children, sx, sy)
    return container.model_copy(
        update={
            "style": container.style.model_copy(update={"width": width, "height": height}),
            "properties": container.properties.model_copy(update={"children": children}),
        }
    )


def set_size(block: Block, width: float, height: float) -> Block:
    """Give a block a new size, rescaling any nested children."""
    if isinstance(block, ContainerBlock) and block.has_children:
        return scale_container(block, width, height)
    return with_style(block, width=width, height=height)


def resize_block(
    origin: Block,
    handle: str,
    dx: float,
    dy: float,
    lock_aspect: bool = False,
) -> Block:
    """Resize a block relative to its gesture-start copy.

    Containers with children are scaled proportionally so that nested
    geometry stays visually consistent.
    """
    x, y, width, height = compute_resize(origin.style, handle, dx, dy, lock_aspect)
    return with_style(set_size(origin, width, height), x=x, y=y)


# ---------------------------------------------------------------------------
# Alignment and distribution
# ---------------------------------------------------------------------------


def align_blocks(
    blocks: list[Block],
    ids: Iterable[str],
    alignment: Alignment,
    canvas_width: float,
    canvas_height: float,
    margin: float = 20.0,
) -> list[Block]:
    """Align blocks against the canvas or against their own bounding box.

    A single block is aligned to the canvas bounds (fixed margin, or exact
    centring). Several blocks are aligned to the extents of the selection,
    changing only the axis implied by the alignment.
    """
    selected = _selected(blocks, ids)
    if not selected:
        return blocks

    if len(selected) == 1:
        min_x, min_y = margin, margin
        max_x, max_y = canvas_width - margin, canvas_height - margin
        mid_x, mid_y = canvas_width / 2, canvas_height / 2
    else:
        min_x, min_y, max_x, max_y = selection_bounds(selected)
        mid_x, mid_y = (min_x + max_x) / 2, (min_y + max_y) / 2

    positions = {}
    for block in selected:
        x, y = block.style.x, block.style.y
        if alignment == "left":
            x = min_x
        elif alignment == "center":
            x = mid_x - block.style.width / 2
        elif alignment == "right":
            x = max_x - block.style.width
        elif alignment == "top":
            y = min_y
        elif alignment == "middle":
            y = mid_y - block.style.height / 2
        elif alignment == "bottom":
            y = max_y - block.style.height
        else:
            raise ValueError(f"Unknown alignment: {alignment}")
        positions[block.id] = (x, y)

    return move_blocks(blocks, positions)


def distribute_blocks(
    blocks: list[Block],
    ids: Iterable[str],
    axis: Axis,
    gap: float = 10.0,
) -> list[Block]:
    """Lay out blocks sequentially along an axis with a fixed gap.

    Blocks are sorted by position along the axis, aligned to the minimum
    coordinate on the perpendicular axis, and placed one after another
    starting from the first block's original position.
    """
    selected = _selected(blocks, ids)
    if len(selected) < 2:
        return blocks

    positions = {}
    if axis == "horizontal":
        ordered = sorted(selected, key=lambda b: b.style.x)
        top = min(b.style.y for b in selected)
        cursor = ordered[0].style.x
        for block in ordered:
            positions[block.id] = (cursor, top)
            cursor += block.style.width + gap
    elif axis == "vertical":
        ordered = sorted(selected, key=lambda b: b.style.y)
        left = min(b.style.x for b in selected)
        cursor = ordered[0].style.y
        for block in ordered:
            positions[block.id] = (left, cursor)
            cursor += block.style.height + gap
    else:
        raise ValueError(f"Unknown axis: {axis}")

    return move_blocks(blocks, positions)


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------


def group_blocks(
    blocks: list[Block], ids: Iterable[str], container_id: str
) -> tuple[list[Block], Optional[str]]:
    """Reparent two or more blocks into a new container.

    The container is placed at the selection's bounding box, children get
    coordinates relative to its origin, and it takes the z-position of the
    first grouped block.

    Returns:
        (new blocks, container id), or (blocks, None) when nothing was grouped.
    """
    selected = _selected(blocks, ids)
    if len(selected) < 2:
        return blocks, None

    min_x, min_y, max_x, max_y = selection_bounds(selected)
    children = [
        with_style(b, x=b.style.x - min_x, y=b.style.y - min_y) for b in selected
    ]
    container = ContainerBlock(
        id=container_id,
        style=BlockStyle(
            x=min_x,
            y=min_y,
            width=max(MIN_BLOCK_WIDTH, max_x - min_x),
            height=max(MIN_BLOCK_HEIGHT, max_y - min_y),
        ),
        properties=ContainerBlockProperties(
            direction="column",
            gap=0,
            justify_content="start",
            align_items="stretch",
            children=children,
        ),
    )

    selected_ids = {b.id for b in selected}
    insert_at = next(i for i, b in enumerate(blocks) if b.id in selected_ids)
    remaining = [b for b in blocks if b.id not in selected_ids]
    remaining.insert(insert_at, container)

    logger.info("Grouped %d blocks into container %s", len(selected), container_id)
    return remaining, container_id


def ungroup_blocks(
    blocks: list[Block], selected_ids: list[str]
) -> tuple[list[Block], list[str]]:
    """Dissolve every selected container that has children.

    Children are translated back to absolute canvas coordinates and spliced
    into the top-level list where the container was.

    Returns:
        (new blocks, new selection). Selected non-container siblings stay
        selected together with the liberated children.
    """
    wanted = set(selected_ids)
    result: list[Block] = []
    dissolved: set[str] = set()
    liberated: list[str] = []

    for block in blocks:
        if block.id in wanted and isinstance(block, ContainerBlock) and block.has_children:
            origin_x, origin_y = block.style.x, block.style.y
            for child in block.properties.children:
                result.append(
                    with_style(
                        child,
                        x=max(0.0, child.style.x + origin_x),
                        y=max(0.0, child.style.y + origin_y),
                    )
                )
                liberated.append(child.id)
            dissolved.add(block.id)
        else:
            result.append(block)

    if not dissolved:
        return blocks, list(selected_ids)

    existing = {b.id for b in result}
    selection = [i for i in selected_ids if i not in dissolved and i in existing]
    selection.extend(i for i in liberated if i not in selection)

    logger.info("Ungrouped %d containers into %d blocks", len(dissolved), len(liberated))
    return result, selection


# ---------------------------------------------------------------------------
# Ordering, removal and duplication
# ---------------------------------------------------------------------------


def bring_to_front(blocks: list[Block], block_id: str) -> list[Block]:
    block = find_block(blocks, block_id)
    if block is None:
        return blocks
    return [b for b in blocks if b.id != block_id] + [block]


def send_to_back(blocks: list[Block], block_id: str) -> list[Block]:
    block = find_block(blocks, block_id)
    if block is None:
        return blocks
    return [block] + [b for b in blocks if b.id != block_id]


def remove_blocks(blocks: list[Block], ids: Iterable[str]) -> list[Block]:
    wanted = set(ids)
    return [b for b in blocks if b.id not in wanted]


def clone_block(block: Block, new_id: IdFactory, dx: float = 0.0, dy: float = 0.0) -> Block:
    """Deep-copy a block with fresh ids for it and every descendant."""
    clone = block.model_copy(deep=True)
    clone.id = new_id()
    clone.style.x = max(0.0, clone.style.x + dx)
    clone.style.y = max(0.0, clone.style.y + dy)
    if isinstance(clone, ContainerBlock):
        clone.properties.children = [
            clone_block(child, new_id) for child in clone.properties.children
        ]
    return clone


def duplicate_blocks(
    blocks: list[Block], ids: Iterable[str], new_id: IdFactory, offset: float = 20.0
) -> tuple[list[Block], list[str]]:
    """Append offset copies of some blocks.

    Returns:
        (new blocks, ids of the copies in order).
    """
    copies = [clone_block(b, new_id, offset, offset) for b in _selected(blocks, ids)]
    if not copies:
        return blocks, []
    return blocks + copies, [c.id for c in copies]
