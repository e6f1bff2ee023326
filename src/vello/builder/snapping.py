"""Snap/guide computation for dragged blocks.

Only the actively dragged block snaps. Its start edge, centre and end edge
on each axis are compared against the canvas midlines, persistent guides
and the same three reference points of every block outside the drag set.
The closest match per axis within the threshold wins and produces a
transient guide line at the matched coordinate.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from vello.models import Block, Guide, GuideOrientation

DEFAULT_SNAP_THRESHOLD = 5.0


@dataclass(frozen=True)
class SnapLine:
    """Transient guide line shown while a gesture is snapped."""

    orientation: GuideOrientation
    position: float


@dataclass
class SnapTargets:
    """Candidate coordinates on each axis."""

    x: list[float] = field(default_factory=list)
    y: list[float] = field(default_factory=list)


@dataclass
class SnapResult:
    """Snapped position of the dragged block and the lines to display."""

    x: float
    y: float
    lines: list[SnapLine] = field(default_factory=list)

    @property
    def snapped(self) -> bool:
        return bool(self.lines)


def quantize(value: float, grid_size: Optional[float]) -> float:
    """Round a coordinate to the nearest grid line."""
    if not grid_size or grid_size <= 0:
        return value
    return round(value / grid_size) * grid_size


def collect_targets(
    canvas_width: float,
    canvas_height: float,
    guides: Iterable[Guide] = (),
    blocks: Iterable[Block] = (),
    exclude_ids: Iterable[str] = (),
) -> SnapTargets:
    """Gather snap targets for a drag.

    Args:
        canvas_width: Canvas width in pixels.
        canvas_height: Canvas height in pixels.
        guides: Persistent guides. Vertical guides snap x, horizontal snap y.
        blocks: Blocks on the canvas.
        exclude_ids: Ids of the drag set, which never act as targets.
    """
    excluded = set(exclude_ids)
    targets = SnapTargets(x=[canvas_width / 2], y=[canvas_height / 2])

    for guide in guides:
        if guide.orientation == GuideOrientation.VERTICAL:
            targets.x.append(guide.position)
        else:
            targets.y.append(guide.position)

    for block in blocks:
        if block.id in excluded:
            continue
        style = block.style
        targets.x.extend((style.x, style.center_x, style.x2))
        targets.y.extend((style.y, style.center_y, style.y2))

    return targets


def _snap_axis(
    start: float, size: float, targets: list[float], threshold: float
) -> Optional[tuple[float, float]]:
    """Find the closest (snapped start, matched coordinate) on one axis."""
    offsets = (0.0, size / 2, size)
    best: Optional[tuple[float, float]] = None
    best_distance = threshold
    for offset in offsets:
        point = start + offset
        for target in targets:
            distance = abs(point - target)
            if distance < best_distance:
                best_distance = distance
                best = (target - offset, target)
    return best


def compute_snap(
    x: float,
    y: float,
    width: float,
    height: float,
    targets: SnapTargets,
    threshold: float = DEFAULT_SNAP_THRESHOLD,
) -> SnapResult:
    """Snap a block's proposed position to the nearest targets.

    Args:
        x: Proposed left edge.
        y: Proposed top edge.
        width: Block width.
        height: Block height.
        targets: Candidate coordinates.
        threshold: Maximum distance in pixels (exclusive).

    Returns:
        SnapResult with the adjusted position and one line per snapped axis.
    """
    result = SnapResult(x=x, y=y)

    match_x = _snap_axis(x, width, targets.x, threshold)
    if match_x is not None:
        result.x, position = match_x
        result.lines.append(SnapLine(GuideOrientation.VERTICAL, position))

    match_y = _snap_axis(y, height, targets.y, threshold)
    if match_y is not None:
        result.y, position = match_y
        result.lines.append(SnapLine(GuideOrientation.HORIZONTAL, position))

    return result
