"""Tests for the canvas interaction layer."""

import pytest

from vello.builder import BuilderCanvas
from vello.models import BlockType, GuideOrientation, TemplateSchema


@pytest.fixture
def canvas(store):
    """Canvas without grid snapping."""
    return BuilderCanvas(store, snap_to_grid=False, snap_threshold=5)


@pytest.fixture
def loaded(store, make_text):
    """Store holding three blocks far from any snap target."""
    store.load_template(
        TemplateSchema(
            blocks=[
                make_text("a", 10, 10, 60, 30),
                make_text("b", 300, 400, 60, 30),
                make_text("c", 600, 900, 60, 30),
            ]
        ),
        template_id="tpl-1",
    )
    return store


def positions(store):
    return {b.id: (b.style.x, b.style.y) for b in store.blocks}


class TestDrag:
    """Tests for drag gestures."""

    def test_unselected_block_drags_alone(self, loaded, canvas):
        """Pressing an unselected block selects it and drags only it."""
        loaded.select_blocks(["b", "c"])
        canvas.pointer_down("a", 0, 0)
        canvas.pointer_move(7, 13)
        canvas.pointer_up()

        assert loaded.selected_block_ids == ["a"]
        assert positions(loaded)["a"] == (17, 23)
        assert positions(loaded)["b"] == (300, 400)

    def test_selected_block_drags_selection(self, loaded, canvas):
        """Pressing a selected block drags the whole selection by one delta."""
        loaded.select_blocks(["a", "b"])
        canvas.pointer_down("a", 0, 0)
        canvas.pointer_move(7, 13)

        assert positions(loaded)["a"] == (17, 23)
        assert positions(loaded)["b"] == (307, 413)
        assert positions(loaded)["c"] == (600, 900)

    def test_shift_adds_to_drag_set(self, loaded, canvas):
        loaded.select_blocks(["b"])
        canvas.pointer_down("a", 0, 0, shift=True)
        assert loaded.selected_block_ids == ["b", "a"]
        canvas.pointer_move(7, 13)
        assert positions(loaded)["b"] == (307, 413)

    def test_shift_toggle_off_starts_no_drag(self, loaded, canvas):
        loaded.select_blocks(["a", "b"])
        canvas.pointer_down("a", 0, 0, shift=True)
        assert loaded.selected_block_ids == ["b"]
        assert canvas.gesture is None

    def test_drag_is_one_history_entry(self, loaded, canvas):
        """Many pointer moves undo in one step."""
        before = positions(loaded)
        canvas.pointer_down("a", 0, 0)
        for step in range(1, 20):
            canvas.pointer_move(step * 3, step * 2)
        canvas.pointer_up()

        assert len(loaded.history) == 1
        loaded.undo()
        assert positions(loaded) == before

    def test_click_without_move_records_nothing(self, loaded, canvas):
        canvas.pointer_down("a", 0, 0)
        canvas.pointer_up()
        assert len(loaded.history) == 0

    def test_clamped_at_origin(self, loaded, canvas):
        """Every block in the drag set stays at x, y >= 0."""
        loaded.select_blocks(["a", "b"])
        canvas.pointer_down("b", 0, 0)
        canvas.pointer_move(-50, -50)
        assert positions(loaded)["a"] == (0, 0)
        assert positions(loaded)["b"] == (250, 350)

    def test_zoom_scales_delta(self, loaded, store):
        canvas = BuilderCanvas(store, zoom=2.0, snap_to_grid=False)
        canvas.pointer_down("a", 0, 0)
        canvas.pointer_move(14, 26)
        assert positions(loaded)["a"] == (17, 23)

    def test_grid_quantization(self, loaded, store):
        canvas = BuilderCanvas(store, grid_size=10, snap_to_grid=True, snap_threshold=0)
        canvas.pointer_down("a", 0, 0)
        canvas.pointer_move(14, 3)
        assert positions(loaded)["a"] == (20, 10)

    def test_unknown_block_ignored(self, loaded, canvas):
        canvas.pointer_down("ghost", 0, 0)
        canvas.pointer_move(10, 10)
        assert canvas.gesture is None
        assert len(loaded.history) == 0


class TestDragSnapping:
    """Tests for snapping during drags."""

    def test_snaps_to_other_block_edge(self, loaded, canvas):
        """The dragged block's left edge snaps to a nearby block's left edge."""
        canvas.pointer_down("a", 0, 0)
        canvas.pointer_move(288, 100)

        assert positions(loaded)["a"][0] == 300
        assert [line.position for line in canvas.snap_lines] == [300]
        assert canvas.snap_lines[0].orientation == GuideOrientation.VERTICAL

    def test_snap_delta_moves_whole_set(self, loaded, canvas):
        """Blocks following the dragged block receive the snapped delta."""
        loaded.select_blocks(["a", "c"])
        canvas.pointer_down("a", 0, 0)
        canvas.pointer_move(288, 100)
        assert positions(loaded)["c"][0] == 890

    def test_snaps_to_guide(self, loaded, canvas):
        loaded.add_guide(GuideOrientation.HORIZONTAL, 500)
        canvas.pointer_down("a", 0, 0)
        canvas.pointer_move(200, 488)
        assert positions(loaded)["a"][1] == 500

    def test_lines_cleared_on_pointer_up(self, loaded, canvas):
        canvas.pointer_down("a", 0, 0)
        canvas.pointer_move(288, 100)
        assert canvas.snap_lines
        canvas.pointer_up()
        assert canvas.snap_lines == []
        assert canvas.gesture is None

    def test_drag_set_never_targets(self, loaded, canvas):
        """Blocks being dragged together do not snap to each other."""
        loaded.select_blocks(["a", "b"])
        canvas.pointer_down("a", 0, 0)
        canvas.pointer_move(288, 100)
        assert positions(loaded)["a"][0] == 298


class TestResize:
    """Tests for resize gestures."""

    def test_resize_from_gesture_origin(self, loaded, canvas):
        """Each move is applied to the gesture-start geometry."""
        canvas.resize_pointer_down("a", "se", 0, 0)
        canvas.pointer_move(10, 10)
        canvas.pointer_move(40, 20)
        canvas.pointer_up()

        block = loaded.get_block("a")
        assert (block.style.width, block.style.height) == (100, 50)
        assert len(loaded.history) == 1

    def test_resize_with_aspect_lock(self, loaded, canvas):
        canvas.resize_pointer_down("a", "e", 0, 0)
        canvas.pointer_move(60, 0, lock_aspect=True)
        block = loaded.get_block("a")
        assert (block.style.width, block.style.height) == (120, 60)

    def test_resize_selects_block(self, loaded, canvas):
        loaded.select_blocks(["b"])
        canvas.resize_pointer_down("a", "w", 0, 0)
        assert loaded.selected_block_ids == ["a"]
        assert canvas.is_resizing

    def test_unknown_handle(self, loaded, canvas):
        with pytest.raises(ValueError):
            canvas.resize_pointer_down("a", "middle", 0, 0)


class TestGuidesAndDrops:
    """Tests for guide dragging, drops and empty clicks."""

    def test_guide_drag_clamped(self, loaded, canvas):
        guide_id = loaded.add_guide(GuideOrientation.VERTICAL, 100)
        canvas.guide_pointer_down(guide_id, 0, 0)
        canvas.pointer_move(50, 999)
        assert loaded.guides[0].position == 150
        canvas.pointer_move(-500, 0)
        assert loaded.guides[0].position == 0
        canvas.pointer_up()
        assert len(loaded.history) == 0

    def test_drop_centres_block(self, store, canvas):
        block_id = canvas.drop_block(BlockType.TEXT, 300, 200)
        block = store.get_block(block_id)
        assert (block.style.x, block.style.y) == (200, 180)

    def test_drop_respects_zoom(self, store):
        canvas = BuilderCanvas(store, zoom=0.5)
        block_id = canvas.drop_block(BlockType.IMAGE, 200, 200)
        block = store.get_block(block_id)
        assert (block.style.x, block.style.y) == (325, 350)

    def test_drop_near_origin_clamped(self, store, canvas):
        block_id = canvas.drop_block(BlockType.TABLE, 10, 10)
        block = store.get_block(block_id)
        assert (block.style.x, block.style.y) == (0, 0)

    def test_click_empty_deselects(self, loaded, canvas):
        loaded.select_all_blocks()
        canvas.click_empty()
        assert loaded.selected_block_ids == []


class TestZoom:
    """Tests for zoom limits."""

    def test_zoom_bounds(self, store):
        canvas = BuilderCanvas(store, zoom=10)
        assert canvas.zoom == 2.0
        canvas.set_zoom(0.01)
        assert canvas.zoom == 0.25

    def test_zoom_steps(self, store):
        canvas = BuilderCanvas(store)
        canvas.zoom_in()
        assert canvas.zoom == 1.1
        canvas.zoom_out()
        canvas.zoom_out()
        assert canvas.zoom == 0.9
        canvas.reset_zoom()
        assert canvas.zoom == 1.0
