"""
Pointer and keyboard interaction for the annotation canvas.

Turns raw host input (pointer down/move/up, clicks, double clicks,
leaving the canvas, key presses) into session commands. Positions are
display pixels relative to the top-left corner of the shown image.

Dragging is an explicit state machine:

    Idle --down on vertex--> DraggingVertex --up/leave--> Idle
    Idle --down in polygon--> DraggingPolygon --up/leave--> Idle

Every drag that starts ends with exactly one ``finalizeDrag``.
"""

import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional, Union

from easydict import EasyDict as edict

from .geometry import (
    Extent,
    ScreenPoint,
    fit_display_extent,
    nearest_vertex,
    screen_distance,
    to_normalized,
    topmost_polygon_at,
    vertex_hit_threshold,
)
from .render import RenderPlan, build_render_plan
from .session import AnnotationSession
from .state import EditorState, Mode, Point

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class DraggingVertex:
    polygon_id: str
    point_index: int


@dataclass(frozen=True)
class DraggingPolygon:
    polygon_id: str
    last_pos: Point


DragState = Union[Idle, DraggingVertex, DraggingPolygon]

IDLE = Idle()


def is_dragging(drag: DragState) -> bool:
    return not isinstance(drag, Idle)


class InteractionController:
    """
    Maps input events of one canvas to commands on an AnnotationSession.

    Args:
        session: Initialized session receiving the commands
        display_extent: (width, height) of the displayed image
        cfg: Interaction settings (``cfg.interaction`` of the editor config)
        clock: Monotonic clock in seconds, used for click disambiguation
    """

    def __init__(
        self,
        session: AnnotationSession,
        display_extent: Extent = (0.0, 0.0),
        cfg: Optional[edict] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if cfg is None:
            cfg = session.cfg.interaction

        self.session = session
        self.display_extent = display_extent
        self.clock = clock

        self.vertex_radius = cfg.vertex_radius
        self.hit_threshold = vertex_hit_threshold(cfg.vertex_radius, cfg.hit_margin)
        self.click_suppress_ms = cfg.click_suppress_ms
        self.double_click_ms = cfg.double_click_ms
        self.double_click_px = cfg.double_click_px

        self.drag: DragState = IDLE
        self.cursor: Optional[ScreenPoint] = None

        # Click disambiguation
        self._drag_started = False
        self._last_release_ms: Optional[float] = None
        self._last_click_ms: Optional[float] = None
        self._last_click_pos: Optional[ScreenPoint] = None

    @property
    def state(self) -> Optional[EditorState]:
        return self.session.state

    def resize(self, container_extent: Extent) -> Extent:
        """Fit the image into a resized container; returns the new extent."""
        state = self.state
        if state is not None:
            self.display_extent = fit_display_extent(
                state.roi_data.image_dimensions, container_extent
            )
        return self.display_extent

    def set_mode(self, mode: Union[Mode, str]):
        self._end_drag()
        # Click history of the previous mode does not carry over
        self._drag_started = False
        self._last_click_ms = None
        self._last_click_pos = None
        self._send({"type": "setMode", "mode": Mode(mode).value})

    # Pointer events

    def pointer_down(self, x: float, y: float):
        state = self.state
        if state is None or state.mode is not Mode.EDIT:
            return
        self.drag = self._start_drag(self.drag, (x, y), state)
        if is_dragging(self.drag):
            self._drag_started = True
            logger.debug("Drag started: %s", self.drag)

    def pointer_move(self, x: float, y: float):
        self.cursor = (x, y)
        if self.state is None:
            return
        self.drag = self._continue_drag(self.drag, (x, y))

    def pointer_up(self, x: float, y: float):
        if is_dragging(self.drag):
            self._last_release_ms = self._now_ms()
            self._end_drag()

    def pointer_leave(self):
        if is_dragging(self.drag):
            self._end_drag()
            self._drag_started = False
        self.cursor = None

    def click(self, x: float, y: float):
        """Single click (delivered after pointer up)."""
        state = self.state
        if state is None:
            return

        now = self._now_ms()
        # The click that ends a drag is not an annotation click
        suppressed = self._drag_started or (
            self._last_release_ms is not None
            and now - self._last_release_ms < self.click_suppress_ms
        )
        self._drag_started = False
        if suppressed:
            return

        # Edit mode acts on pointer down/up only
        if state.mode is Mode.EDIT:
            return

        pos = (x, y)
        if (
            self._last_click_ms is not None
            and now - self._last_click_ms < self.double_click_ms
            and self._last_click_pos is not None
            and screen_distance(pos, self._last_click_pos) < self.double_click_px
        ):
            # Second half of a double click
            self._last_click_ms = None
            self._last_click_pos = None
            return

        self._last_click_ms = now
        self._last_click_pos = pos

        if state.mode is Mode.DRAW:
            point = to_normalized(pos, self.display_extent)
            self._send({"type": "addPoint", "x": point.x, "y": point.y})
        elif state.mode is Mode.SELECT:
            polygon_id = topmost_polygon_at(
                pos, state.roi_data.polygons, self.display_extent
            )
            self._send({"type": "selectPolygon", "polygonId": polygon_id})

    def double_click(self, x: float, y: float):
        state = self.state
        if state is None or state.mode is not Mode.DRAW:
            return
        self._send({"type": "closePolygon"})

    # Keyboard

    def key_down(
        self, key: str, ctrl: bool = False, meta: bool = False, shift: bool = False
    ) -> bool:
        """
        Handle a key press.

        Returns:
            True if the key was consumed
        """
        state = self.state
        if state is None:
            return False

        modifier = ctrl or meta
        letter = key.lower() if len(key) == 1 else key

        if modifier and letter == "z":
            self._end_drag()
            self._send({"type": "redo" if shift else "undo"})
            return True
        if modifier and letter == "y":
            self._end_drag()
            self._send({"type": "redo"})
            return True
        if modifier and letter == "s":
            self._send({"type": "save"})
            return True
        if key in ("Delete", "Backspace") and state.selected_polygon_id:
            self._send(
                {"type": "deletePolygon", "polygonId": state.selected_polygon_id}
            )
            return True
        if key == "Escape":
            if state.current_polygon_id:
                self._send({"type": "cancelCurrentPolygon"})
                return True
            if state.selected_polygon_id:
                self._send({"type": "selectPolygon", "polygonId": None})
                return True
        return False

    # Rendering helpers

    def cursor_hint(self) -> str:
        """Pointer cursor the host should show at the last known position."""
        state = self.state
        if is_dragging(self.drag):
            return "grabbing"
        if state is None:
            return "default"
        if state.mode is Mode.DRAW:
            return "crosshair"
        if state.mode is Mode.EDIT and self.cursor is not None:
            polygons = state.roi_data.polygons
            if nearest_vertex(
                self.cursor, polygons, self.display_extent, self.hit_threshold
            ):
                return "grab"
            if topmost_polygon_at(self.cursor, polygons, self.display_extent):
                return "move"
        return "default"

    def render_plan(self) -> Optional[RenderPlan]:
        state = self.state
        if state is None:
            return None
        return build_render_plan(
            state,
            self.display_extent,
            cursor=self.cursor,
            vertex_radius=self.vertex_radius,
            cfg=self.session.cfg.get("render"),
        )

    # Drag state machine

    def _start_drag(
        self, drag: DragState, pos: ScreenPoint, state: EditorState
    ) -> DragState:
        if is_dragging(drag):
            return drag

        polygons = state.roi_data.polygons
        hit = nearest_vertex(pos, polygons, self.display_extent, self.hit_threshold)
        if hit is not None:
            return DraggingVertex(hit.polygon_id, hit.point_index)

        polygon_id = topmost_polygon_at(pos, polygons, self.display_extent)
        if polygon_id is not None:
            return DraggingPolygon(polygon_id, to_normalized(pos, self.display_extent))

        return IDLE

    def _continue_drag(self, drag: DragState, pos: ScreenPoint) -> DragState:
        if isinstance(drag, DraggingVertex):
            point = to_normalized(pos, self.display_extent)
            self._send(
                {
                    "type": "updatePoint",
                    "polygonId": drag.polygon_id,
                    "pointIndex": drag.point_index,
                    "x": point.x,
                    "y": point.y,
                    "isDragging": True,
                }
            )
            return drag

        if isinstance(drag, DraggingPolygon):
            point = to_normalized(pos, self.display_extent)
            # Incremental delta since the previous move event
            self._send(
                {
                    "type": "movePolygon",
                    "polygonId": drag.polygon_id,
                    "deltaX": point.x - drag.last_pos.x,
                    "deltaY": point.y - drag.last_pos.y,
                    "isDragging": True,
                }
            )
            return replace(drag, last_pos=point)

        return drag

    def _end_drag(self):
        if not is_dragging(self.drag):
            return
        self._send({"type": "finalizeDrag"})
        self.drag = IDLE

    def _send(self, message: dict) -> Optional[EditorState]:
        return self.session.handle_message(message)

    def _now_ms(self) -> float:
        return self.clock() * 1000.0
