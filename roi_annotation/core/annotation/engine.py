"""
ROI engine: the polygon editing operation set.

Every operation reads the live state, builds the next state value and
either commits it (one undo entry) or applies it ephemerally (no undo
entry, used while dragging). Invalid input never raises: coordinates
are clamped, unknown ids and out-of-range indices leave the state as is.
"""

import logging
import uuid
from dataclasses import replace
from typing import Callable, Optional, Sequence, Union

from .events import AnnotationEvent, EventEmitter, EventType
from .history import HistoryManager
from .state import EditorState, Mode, Point, Polygon, is_hex_color

logger = logging.getLogger(__name__)

DEFAULT_PALETTE = (
    "#FF5733",
    "#33FF57",
    "#3357FF",
    "#FF33F5",
    "#F5FF33",
    "#33FFF5",
    "#FF8C33",
    "#8C33FF",
)


def new_polygon_id() -> str:
    return str(uuid.uuid4())


class ROIEngine:
    """
    Applies editing operations to an EditorState and routes them through
    a HistoryManager.

    All public operations return the resulting live state; ``undo`` and
    ``redo`` return None when there is nothing to step to.
    """

    def __init__(
        self,
        initial_state: EditorState,
        max_history_size: int = 50,
        palette: Optional[Sequence[str]] = None,
        id_factory: Optional[Callable[[], str]] = None,
        events: Optional[EventEmitter] = None,
    ):
        """
        Initialize the engine.

        Args:
            initial_state: State to start editing from
            max_history_size: Maximum number of undo entries kept
            palette: Colors assigned round-robin to new polygons
            id_factory: Generator of fresh polygon ids
            events: Emitter used to notify listeners
        """
        self.history = HistoryManager(initial_state, max_history_size)
        self.palette = tuple(palette or DEFAULT_PALETTE)
        if not self.palette:
            raise ValueError("Palette must contain at least one color")
        bad = [c for c in self.palette if not is_hex_color(c)]
        if bad:
            raise ValueError(f"Palette colors must be #RRGGBB: {bad}")
        self.id_factory = id_factory or new_polygon_id
        self.events = events or EventEmitter()

        # Continue the palette after any polygons that already exist
        self._color_index = len(initial_state.roi_data.polygons) % len(self.palette)

    @property
    def state(self) -> EditorState:
        return self.history.current_state

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    # Drawing

    def add_point(self, x: float, y: float) -> EditorState:
        """Append a point to the current polygon, starting one if needed."""
        state = self.state
        point = Point(x, y)
        current = state.current_polygon

        if current is None or current.closed:
            polygon = Polygon(
                id=self._next_id(state),
                points=(point,),
                color=self._next_color(),
                closed=False,
            )
            roi_data = replace(
                state.roi_data, polygons=state.roi_data.polygons + (polygon,)
            )
            new_state = replace(
                state, roi_data=roi_data, current_polygon_id=polygon.id
            )
            event = AnnotationEvent(
                EventType.POLYGON_CREATED,
                {"polygon_id": polygon.id, "color": polygon.color},
            )
        else:
            polygon = replace(current, points=current.points + (point,))
            new_state = replace(state, roi_data=state.roi_data.with_polygon(polygon))
            event = AnnotationEvent(
                EventType.POINT_ADDED,
                {"polygon_id": polygon.id, "num_points": len(polygon.points)},
            )

        logger.debug("Point (%.4f, %.4f) added to %s", point.x, point.y, polygon.id)
        return self._commit(new_state, event)

    def close_polygon(self) -> EditorState:
        """Close the current polygon if it has at least 3 points."""
        state = self.state
        current = state.current_polygon

        if current is None or len(current.points) < 3:
            logger.debug("Close ignored: no current polygon with 3+ points")
            return state

        polygon = replace(current, closed=True)
        new_state = replace(
            state,
            roi_data=state.roi_data.with_polygon(polygon),
            current_polygon_id=None,
        )
        return self._commit(
            new_state,
            AnnotationEvent(
                EventType.POLYGON_CLOSED,
                {"polygon_id": polygon.id, "num_points": len(polygon.points)},
            ),
        )

    def cancel_current_polygon(self) -> EditorState:
        """Discard the polygon being drawn."""
        state = self.state
        if state.current_polygon_id is None:
            return state

        polygon_id = state.current_polygon_id
        new_state = self._without(state, polygon_id)
        return self._commit(
            new_state,
            AnnotationEvent(EventType.POLYGON_CANCELLED, {"polygon_id": polygon_id}),
        )

    def delete_polygon(self, polygon_id: str) -> EditorState:
        """Remove a polygon and any editor pointer referencing it."""
        state = self.state
        if state.roi_data.get_polygon(polygon_id) is None:
            logger.debug("Delete ignored: unknown polygon %s", polygon_id)
            return state

        new_state = self._without(state, polygon_id)
        return self._commit(
            new_state,
            AnnotationEvent(EventType.POLYGON_DELETED, {"polygon_id": polygon_id}),
        )

    # Editing

    def update_point(
        self,
        polygon_id: str,
        point_index: int,
        x: float,
        y: float,
        is_dragging: bool = False,
    ) -> EditorState:
        """Move one vertex; ephemeral while ``is_dragging``."""
        state = self.state
        polygon = state.roi_data.get_polygon(polygon_id)
        if polygon is None or not 0 <= point_index < len(polygon.points):
            return state

        points = list(polygon.points)
        points[point_index] = Point(x, y)
        new_state = replace(
            state,
            roi_data=state.roi_data.with_polygon(replace(polygon, points=points)),
        )
        event = AnnotationEvent(
            EventType.POINT_UPDATED,
            {"polygon_id": polygon_id, "point_index": point_index},
        )
        if is_dragging:
            return self._apply_ephemeral(new_state, event)
        return self._commit(new_state, event)

    def move_polygon(
        self,
        polygon_id: str,
        delta_x: float,
        delta_y: float,
        is_dragging: bool = False,
    ) -> EditorState:
        """
        Translate every vertex of a polygon.

        Each vertex is clamped on its own, so a polygon pushed against
        the image border flattens instead of stopping.
        """
        state = self.state
        polygon = state.roi_data.get_polygon(polygon_id)
        if polygon is None:
            return state

        points = tuple(Point(p.x + delta_x, p.y + delta_y) for p in polygon.points)
        new_state = replace(
            state,
            roi_data=state.roi_data.with_polygon(replace(polygon, points=points)),
        )
        event = AnnotationEvent(
            EventType.POLYGON_MOVED,
            {"polygon_id": polygon_id, "delta": (delta_x, delta_y)},
        )
        if is_dragging:
            return self._apply_ephemeral(new_state, event)
        return self._commit(new_state, event)

    def finalize_drag(self) -> EditorState:
        """Record the outcome of a drag as exactly one undo entry."""
        state = self.state
        self.history.push_state(state)
        logger.debug("Drag finalized, undo depth %d", self.history.undo_depth)
        self._notify(AnnotationEvent(EventType.DRAG_FINALIZED))
        return state

    # View state, never recorded in history

    def select_polygon(self, polygon_id: Optional[str]) -> EditorState:
        state = self.state
        if polygon_id is not None and state.roi_data.get_polygon(polygon_id) is None:
            return state
        if polygon_id == state.selected_polygon_id:
            return state

        new_state = replace(state, selected_polygon_id=polygon_id)
        self.history.replace_current_state(new_state)
        self._notify(
            AnnotationEvent(EventType.SELECTION_CHANGED, {"polygon_id": polygon_id})
        )
        return new_state

    def set_mode(self, mode: Union[Mode, str]) -> EditorState:
        state = self.state
        mode = Mode(mode)
        if mode is state.mode:
            return state

        new_state = replace(state, mode=mode)
        self.history.replace_current_state(new_state)
        self._notify(AnnotationEvent(EventType.MODE_CHANGED, {"mode": mode.value}))
        return new_state

    # History

    def undo(self) -> Optional[EditorState]:
        mode = self.state.mode
        restored = self.history.undo()
        if restored is None:
            return None
        return self._restored(restored, mode, EventType.UNDONE)

    def redo(self) -> Optional[EditorState]:
        mode = self.state.mode
        restored = self.history.redo()
        if restored is None:
            return None
        return self._restored(restored, mode, EventType.REDONE)

    # Internals

    def _restored(self, state: EditorState, mode: Mode, event_type: EventType):
        # The interaction mode is not part of the edit history
        if state.mode is not mode:
            state = replace(state, mode=mode)
            self.history.replace_current_state(state)
        self._notify(AnnotationEvent(event_type))
        return state

    def _commit(self, new_state: EditorState, event: AnnotationEvent) -> EditorState:
        if new_state == self.state and not self.history.has_pending_ephemeral:
            return self.state
        self.history.push_state(new_state)
        self._notify(event)
        return new_state

    def _apply_ephemeral(
        self, new_state: EditorState, event: AnnotationEvent
    ) -> EditorState:
        self.history.update_current_state(new_state)
        self._notify(event)
        return new_state

    def _notify(self, event: AnnotationEvent):
        self.events.emit(event)
        self.events.emit(AnnotationEvent(EventType.STATE_CHANGED, {"state": self.state}))

    @staticmethod
    def _without(state: EditorState, polygon_id: str) -> EditorState:
        return replace(
            state,
            roi_data=state.roi_data.without_polygon(polygon_id),
            current_polygon_id=(
                None
                if state.current_polygon_id == polygon_id
                else state.current_polygon_id
            ),
            selected_polygon_id=(
                None
                if state.selected_polygon_id == polygon_id
                else state.selected_polygon_id
            ),
        )

    def _next_id(self, state: EditorState) -> str:
        polygon_id = self.id_factory()
        while state.roi_data.get_polygon(polygon_id) is not None:
            polygon_id = self.id_factory()
        return polygon_id

    def _next_color(self) -> str:
        color = self.palette[self._color_index]
        self._color_index = (self._color_index + 1) % len(self.palette)
        return color
