"""
Tests for InteractionController.

Pointer positions are display pixels on a 640x480 canvas; the fake
clock makes click timing deterministic.
"""

import pytest

from roi_annotation.core.annotation import Mode
from roi_annotation.core.annotation.interaction import (
    DraggingPolygon,
    DraggingVertex,
    is_dragging,
)
from roi_annotation.storage import roi_path_for

# Vertices at (160, 120), (480, 120) and (320, 360) on screen
TRIANGLE = [(0.25, 0.25), (0.75, 0.25), (0.5, 0.75)]
INSIDE = (320, 200)


@pytest.fixture
def triangle_id(session):
    for x, y in TRIANGLE:
        session.handle_message({"type": "addPoint", "x": x, "y": y})
    session.handle_message({"type": "closePolygon"})
    return session.state.roi_data.polygons[0].id


@pytest.fixture
def editing(controller, triangle_id):
    controller.set_mode("edit")
    return controller


def polygon_points(controller, polygon_id):
    return controller.state.roi_data.get_polygon(polygon_id).points


class TestDrawMode:
    def test_click_adds_point(self, controller, clock):
        controller.click(320, 120)
        current = controller.state.current_polygon
        assert len(current.points) == 1
        assert current.points[0].x == pytest.approx(0.5)
        assert current.points[0].y == pytest.approx(0.25)

    def test_fast_nearby_click_is_ignored(self, controller, clock):
        controller.click(100, 100)
        clock.advance_ms(150)
        controller.click(102, 101)
        assert len(controller.state.current_polygon.points) == 1

    def test_slow_or_distant_clicks_are_added(self, controller, clock):
        controller.click(100, 100)
        clock.advance_ms(400)
        controller.click(101, 100)
        clock.advance_ms(50)
        controller.click(300, 300)
        assert len(controller.state.current_polygon.points) == 3

    def test_double_click_closes(self, controller, clock):
        for x, y in [(100, 100), (300, 100)]:
            controller.click(x, y)
            clock.advance_ms(400)
        # Browser delivers click, click, dblclick for the last vertex
        controller.click(200, 300)
        clock.advance_ms(80)
        controller.click(200, 300)
        controller.double_click(200, 300)

        state = controller.state
        assert state.current_polygon_id is None
        polygon = state.roi_data.polygons[0]
        assert polygon.closed
        assert len(polygon.points) == 3

    def test_double_click_with_two_points_keeps_drawing(self, controller, clock):
        controller.click(100, 100)
        clock.advance_ms(400)
        controller.click(300, 100)
        controller.double_click(300, 100)
        assert controller.state.current_polygon_id is not None

    def test_pointer_down_does_nothing(self, controller, triangle_id):
        controller.pointer_down(*INSIDE)
        assert not is_dragging(controller.drag)


class TestEditMode:
    def test_vertex_drag(self, editing, triangle_id, clock):
        history = editing.session.engine.history
        depth = history.undo_depth
        before = editing.state

        editing.pointer_down(162, 121)
        assert editing.drag == DraggingVertex(triangle_id, 0)
        editing.pointer_move(100, 110)
        editing.pointer_move(64, 96)
        assert history.undo_depth == depth
        editing.pointer_up(64, 96)

        assert not is_dragging(editing.drag)
        assert history.undo_depth == depth + 1
        moved = polygon_points(editing, triangle_id)[0]
        assert moved.x == pytest.approx(0.1)
        assert moved.y == pytest.approx(0.2)

        editing.key_down("z", ctrl=True)
        assert editing.state == before

    def test_polygon_drag_uses_incremental_deltas(self, editing, triangle_id):
        depth = editing.session.engine.history.undo_depth
        editing.pointer_down(*INSIDE)
        assert isinstance(editing.drag, DraggingPolygon)
        editing.pointer_move(352, 200)
        editing.pointer_move(384, 200)
        editing.pointer_up(384, 200)

        xs = [p.x for p in polygon_points(editing, triangle_id)]
        assert xs == [pytest.approx(0.35), pytest.approx(0.85), pytest.approx(0.6)]
        assert editing.session.engine.history.undo_depth == depth + 1

    def test_vertex_wins_over_polygon(self, editing, triangle_id):
        # Inside the triangle and within reach of the bottom vertex
        editing.pointer_down(320, 354)
        assert editing.drag == DraggingVertex(triangle_id, 2)

    def test_down_on_empty_canvas(self, editing):
        depth = editing.session.engine.history.undo_depth
        editing.pointer_down(10, 470)
        assert not is_dragging(editing.drag)
        editing.pointer_up(10, 470)
        assert editing.session.engine.history.undo_depth == depth

    def test_leave_finalizes_drag(self, editing, triangle_id):
        depth = editing.session.engine.history.undo_depth
        editing.pointer_down(*INSIDE)
        editing.pointer_move(330, 200)
        editing.pointer_leave()

        assert not is_dragging(editing.drag)
        assert editing.cursor is None
        assert editing.session.engine.history.undo_depth == depth + 1

    def test_click_after_drag_is_not_a_click(self, editing, clock):
        editing.pointer_down(*INSIDE)
        editing.pointer_move(330, 200)
        editing.pointer_up(330, 200)
        editing.set_mode("draw")
        editing.click(330, 200)
        assert editing.state.current_polygon_id is None

        # Later clicks are handled normally
        clock.advance_ms(500)
        editing.click(20, 20)
        assert editing.state.current_polygon_id is not None

    def test_click_ignored(self, editing):
        before = editing.state
        editing.click(20, 20)
        assert editing.state == before


class TestSelectMode:
    def test_click_selects_topmost(self, controller, triangle_id):
        controller.set_mode(Mode.SELECT)
        controller.click(*INSIDE)
        assert controller.state.selected_polygon_id == triangle_id

    def test_click_outside_deselects(self, controller, triangle_id, clock):
        controller.set_mode(Mode.SELECT)
        controller.click(*INSIDE)
        clock.advance_ms(500)
        controller.click(10, 470)
        assert controller.state.selected_polygon_id is None


class TestKeyboard:
    def test_undo_redo(self, controller, triangle_id):
        closed = controller.state
        assert controller.key_down("z", ctrl=True)
        assert controller.state.current_polygon_id is not None
        assert controller.key_down("Z", meta=True, shift=True)
        assert controller.state == closed
        controller.key_down("z", ctrl=True)
        assert controller.key_down("y", ctrl=True)
        assert controller.state == closed

    def test_save(self, controller, triangle_id, test_image):
        assert controller.key_down("s", ctrl=True)
        assert roi_path_for(test_image).is_file()

    def test_escape_cancels_drawing(self, controller):
        controller.click(100, 100)
        assert controller.key_down("Escape")
        assert controller.state.roi_data.polygons == ()

    def test_escape_deselects(self, controller, triangle_id):
        controller.session.handle_message(
            {"type": "selectPolygon", "polygonId": triangle_id}
        )
        assert controller.key_down("Escape")
        assert controller.state.selected_polygon_id is None

    def test_delete_selected(self, controller, triangle_id):
        controller.session.handle_message(
            {"type": "selectPolygon", "polygonId": triangle_id}
        )
        assert controller.key_down("Backspace")
        assert controller.state.roi_data.polygons == ()
        assert controller.state.selected_polygon_id is None

    def test_unhandled_keys(self, controller):
        assert not controller.key_down("Delete")
        assert not controller.key_down("Escape")
        assert not controller.key_down("a")


class TestCursorAndView:
    def test_cursor_hints(self, controller, triangle_id):
        assert controller.cursor_hint() == "crosshair"
        controller.set_mode("edit")
        controller.pointer_move(161, 119)
        assert controller.cursor_hint() == "grab"
        controller.pointer_move(*INSIDE)
        assert controller.cursor_hint() == "move"
        controller.pointer_down(*INSIDE)
        assert controller.cursor_hint() == "grabbing"
        controller.pointer_up(*INSIDE)
        controller.pointer_move(10, 470)
        assert controller.cursor_hint() == "default"

    def test_resize_fits_image(self, controller):
        # The test image is 64x48 and is never upscaled
        assert controller.resize((1000, 1000)) == (64.0, 48.0)
        assert controller.resize((72, 100)) == pytest.approx((32.0, 24.0))

    def test_render_plan_preview(self, controller):
        controller.click(100, 100)
        controller.pointer_move(200, 200)
        plan = controller.render_plan()
        assert len(plan.polygons) == 1
        assert plan.preview.start == pytest.approx((100.0, 100.0))
        assert plan.preview.end == (200, 200)

    def test_mode_change_ends_drag(self, editing):
        editing.pointer_down(*INSIDE)
        editing.set_mode("select")
        assert not is_dragging(editing.drag)
        assert editing.state.mode is Mode.SELECT

    def test_drag_without_click_does_not_swallow_next_mode(self, editing, clock):
        editing.pointer_down(*INSIDE)
        editing.pointer_move(330, 210)
        editing.pointer_up(330, 210)
        # Host delivered no click for the drag
        editing.set_mode("draw")
        clock.advance_ms(500)

        editing.click(20, 20)
        assert editing.state.current_polygon is not None

    def test_mode_change_forgets_last_click(self, controller, clock):
        controller.click(100, 100)
        controller.set_mode("select")
        controller.set_mode("draw")
        clock.advance_ms(50)

        controller.click(101, 100)
        assert len(controller.state.current_polygon.points) == 2
