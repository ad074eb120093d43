"""
Core annotation module - UI-agnostic ROI annotation logic.

This module provides the state model, editing operations, undo history
and interaction geometry of the polygon ROI editor, usable with any UI
framework (Qt, Tkinter, Web, CLI).
"""

from .state import (
    ROI_VERSION,
    EditorState,
    ImageDimensions,
    Metadata,
    Mode,
    Point,
    Polygon,
    ROIData,
)
from .geometry import (
    VertexHit,
    fit_display_extent,
    nearest_vertex,
    point_in_polygon,
    to_normalized,
    to_screen,
    topmost_polygon_at,
)
from .history import HistoryManager
from .events import AnnotationEvent, EventType, EventEmitter
from .engine import ROIEngine
from .messages import MessageError, parse_message
from .render import RenderPlan, build_render_plan
from .session import AnnotationSession
from .interaction import InteractionController

__all__ = [
    "ROI_VERSION",
    "EditorState",
    "ImageDimensions",
    "Metadata",
    "Mode",
    "Point",
    "Polygon",
    "ROIData",
    "VertexHit",
    "fit_display_extent",
    "nearest_vertex",
    "point_in_polygon",
    "to_normalized",
    "to_screen",
    "topmost_polygon_at",
    "HistoryManager",
    "AnnotationEvent",
    "EventType",
    "EventEmitter",
    "ROIEngine",
    "MessageError",
    "parse_message",
    "RenderPlan",
    "build_render_plan",
    "AnnotationSession",
    "InteractionController",
]
