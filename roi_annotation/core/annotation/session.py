"""
Annotation session management.

Core logic for managing an ROI annotation session over one image.
UI-agnostic - hosts talk to it through plain message dictionaries.
"""

import json
import logging
from dataclasses import replace
from gettext import gettext as _
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Union

from easydict import EasyDict as edict

from ...storage.errors import ROIStorageError
from .engine import ROIEngine
from .events import AnnotationEvent, EventEmitter, EventType
from .messages import error_message, parse_message, state_updated
from .state import EditorState, ImageDimensions, ROIData

if TYPE_CHECKING:
    from ...storage.roi_storage import ROIStorage

logger = logging.getLogger(__name__)

Message = Dict[str, Any]


class AnnotationSession:
    """
    Owns the editor state of one image and applies host commands to it.

    This class handles:
    - Session initialization (image reference, dimensions, existing ROIs)
    - Dispatch of inbound commands to the ROI engine
    - Save/export through the storage collaborator
    - Outbound ``stateUpdated``/``error`` messages

    Errors from malformed commands or persistence are reported once as
    an ``error`` message; they never escape ``handle_message``.
    """

    def __init__(
        self,
        cfg: Optional[edict] = None,
        storage: Optional["ROIStorage"] = None,
        post_message: Optional[Callable[[Message], None]] = None,
        export_sink: Optional[Callable[[str], None]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        """
        Initialize annotation session.

        Args:
            cfg: Editor configuration (see ``utils.config``)
            storage: Persistence collaborator
            post_message: Receives outbound messages for the host
            export_sink: Receives exported JSON text (e.g. clipboard writer)
            id_factory: Polygon id generator passed to the engine
        """
        if cfg is None:
            from ...utils.config import get_default_cfg

            cfg = get_default_cfg()
        if storage is None:
            from ...storage.roi_storage import ROIStorage

            storage = ROIStorage(supported_version=cfg.roi_version)

        self.cfg = cfg
        self.storage = storage
        self.post_message = post_message
        self.export_sink = export_sink
        self.id_factory = id_factory

        # Event emitter for host notifications
        self.events = EventEmitter()

        self.engine: Optional[ROIEngine] = None
        self.image_path: Optional[Path] = None
        self._metadata = None

    @property
    def is_initialized(self) -> bool:
        return self.engine is not None

    @property
    def state(self) -> Optional[EditorState]:
        return self.engine.state if self.engine is not None else None

    def initialize(
        self,
        image_path: Union[str, Path],
        image_dimensions: Optional[ImageDimensions] = None,
        roi_data: Optional[ROIData] = None,
        load_existing: bool = True,
    ) -> EditorState:
        """
        Start editing an image.

        Args:
            image_path: Image being annotated
            image_dimensions: Pixel size; read from the image when omitted
            roi_data: Pre-existing ROI data; loaded from disk when omitted
            load_existing: Look for a stored ROI file when ``roi_data`` is None

        Returns:
            Initial editor state (draw mode, nothing current or selected)

        Raises:
            ROIStorageError: If existing data or the image cannot be read
        """
        image_path = Path(image_path)

        if roi_data is None and load_existing:
            roi_data = self.storage.load(image_path)
            if roi_data is not None:
                self.events.emit(
                    AnnotationEvent(
                        EventType.ROI_LOADED, {"num_polygons": len(roi_data.polygons)}
                    )
                )

        if roi_data is None:
            if image_dimensions is None:
                from ...storage.roi_storage import read_image_dimensions

                image_dimensions = read_image_dimensions(image_path)
            roi_data = ROIData(
                image_uri=str(image_path),
                image_dimensions=image_dimensions,
                version=self.cfg.roi_version,
            )

        self.image_path = image_path
        self._metadata = roi_data.metadata
        self.engine = ROIEngine(
            EditorState.initial(roi_data),
            max_history_size=int(self.cfg.max_history_size),
            palette=self.cfg.palette,
            id_factory=self.id_factory,
            events=self.events,
        )

        self.events.emit(
            AnnotationEvent(
                EventType.SESSION_STARTED,
                {"path": str(self.image_path), "num_polygons": len(roi_data.polygons)},
            )
        )
        logger.debug(
            "Session started for %s with %d polygons",
            self.image_path,
            len(roi_data.polygons),
        )
        self._post(state_updated(self.engine.state))
        return self.engine.state

    def handle_message(self, message: Message) -> Optional[EditorState]:
        """
        Apply one inbound command.

        ``init`` (re)starts the session on the image it names; every
        other command needs an initialized session.

        Returns:
            The resulting state, or None if the command produced none
            (undo/redo at the end of history, save, export, errors)
        """
        try:
            command = parse_message(message)
            if command.type == "init":
                # Posts its own stateUpdated
                return self.initialize(
                    command.image_uri, command.image_dimensions, command.roi_data
                )
            engine = self._require_engine()
            previous = engine.state
            new_state = self.dispatch(command)
        except (ValueError, ROIStorageError) as e:
            logger.error("Command %r failed: %s", message, e)
            self.events.emit(AnnotationEvent(EventType.ERROR, {"message": str(e)}))
            self._post(error_message(str(e)))
            return None

        if new_state is not None and new_state != previous:
            self._post(state_updated(new_state))
        return new_state

    def dispatch(self, command: edict) -> Optional[EditorState]:
        """Route a validated command to the engine or the storage."""
        engine = self._require_engine()
        kind = command.type

        if kind == "addPoint":
            return engine.add_point(command.x, command.y)
        if kind == "closePolygon":
            return engine.close_polygon()
        if kind == "cancelCurrentPolygon":
            return engine.cancel_current_polygon()
        if kind == "selectPolygon":
            return engine.select_polygon(command.polygon_id)
        if kind == "deletePolygon":
            return engine.delete_polygon(command.polygon_id)
        if kind == "updatePoint":
            return engine.update_point(
                command.polygon_id,
                command.point_index,
                command.x,
                command.y,
                command.is_dragging,
            )
        if kind == "movePolygon":
            return engine.move_polygon(
                command.polygon_id,
                command.delta_x,
                command.delta_y,
                command.is_dragging,
            )
        if kind == "finalizeDrag":
            return engine.finalize_drag()
        if kind == "undo":
            return engine.undo()
        if kind == "redo":
            return engine.redo()
        if kind == "setMode":
            return engine.set_mode(command.mode)
        if kind == "save":
            self.save()
            return None
        if kind == "export":
            self.export()
            return None
        # "ready" carries no operation
        return None

    def save(self) -> ROIData:
        """
        Persist the current ROI data next to the image.

        Raises:
            ROIStorageError: If writing fails
        """
        engine = self._require_engine()
        roi_data = engine.state.roi_data
        if self._metadata is not None:
            roi_data = replace(roi_data, metadata=self._metadata)

        saved = self.storage.save(self.image_path, roi_data)
        self._metadata = saved.metadata
        self.events.emit(
            AnnotationEvent(
                EventType.ROI_SAVED,
                {"path": str(self.image_path), "num_polygons": len(saved.polygons)},
            )
        )
        return saved

    def export(self) -> str:
        """Send the current ROI data as JSON to the export sink."""
        engine = self._require_engine()
        if self.export_sink is None:
            raise ValueError(_("No export target configured"))
        text = self.storage.export(engine.state.roi_data, self.export_sink)
        self.events.emit(AnnotationEvent(EventType.ROI_EXPORTED))
        return text

    def selected_polygon_json(self) -> Optional[str]:
        """Selected polygon as indented JSON, for display or copying."""
        state = self.state
        if state is None or state.selected_polygon is None:
            return None
        return json.dumps(state.selected_polygon.to_dict(), indent=2)

    def _require_engine(self) -> ROIEngine:
        if self.engine is None:
            raise ValueError(_("No image loaded"))
        return self.engine

    def _post(self, message: Message):
        if self.post_message is not None:
            self.post_message(message)
