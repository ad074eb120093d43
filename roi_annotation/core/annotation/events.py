"""
Event system for the annotation workflow.

Provides a decoupled way for the annotation core to notify hosts about
state changes without depending on specific UI frameworks.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of events that can occur during annotation."""

    # Polygon events
    POLYGON_CREATED = "polygon_created"
    POINT_ADDED = "point_added"
    POLYGON_CLOSED = "polygon_closed"
    POLYGON_CANCELLED = "polygon_cancelled"
    POLYGON_DELETED = "polygon_deleted"
    POINT_UPDATED = "point_updated"
    POLYGON_MOVED = "polygon_moved"
    DRAG_FINALIZED = "drag_finalized"

    # Editor events
    SELECTION_CHANGED = "selection_changed"
    MODE_CHANGED = "mode_changed"
    UNDONE = "undone"
    REDONE = "redone"
    STATE_CHANGED = "state_changed"

    # Session events
    SESSION_STARTED = "session_started"
    ROI_LOADED = "roi_loaded"
    ROI_SAVED = "roi_saved"
    ROI_EXPORTED = "roi_exported"
    ERROR = "error"


@dataclass
class AnnotationEvent:
    """Event that occurs during annotation."""

    event_type: EventType
    data: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if self.data is None:
            self.data = {}


class EventEmitter:
    """
    Simple event emitter for pub/sub pattern.

    Allows components to subscribe to events without tight coupling.
    """

    def __init__(self):
        self._listeners: Dict[EventType, List[Callable]] = {}

    def on(self, event_type: EventType, callback: Callable[[AnnotationEvent], None]):
        """Subscribe to an event type."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        self._listeners[event_type].append(callback)

    def off(self, event_type: EventType, callback: Callable[[AnnotationEvent], None]):
        """Unsubscribe from an event type."""
        if event_type in self._listeners:
            self._listeners[event_type].remove(callback)

    def emit(self, event: AnnotationEvent):
        """Emit an event to all subscribers."""
        for callback in list(self._listeners.get(event.event_type, [])):
            try:
                callback(event)
            except Exception:
                # Listener failures are logged, never propagated
                logger.exception(
                    "Error in event listener for %s", event.event_type.value
                )

    def clear(self):
        """Clear all event listeners."""
        self._listeners.clear()
