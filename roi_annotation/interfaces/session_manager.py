"""
Registry of open editing sessions.

Hosts that edit several images at once (one tab or window per image)
keep one session and one canvas controller per image here, keyed by
the resolved image path.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterator, Optional, Union

from easydict import EasyDict as edict

from ..core.annotation import (
    AnnotationSession,
    EventType,
    ImageDimensions,
    InteractionController,
    ROIData,
)
from ..storage import ROIStorage

logger = logging.getLogger(__name__)


def session_key(image_path: Union[str, Path]) -> str:
    return str(Path(image_path).resolve())


@dataclass
class ManagedSession:
    """One open editor: the session and the controller of its canvas."""

    key: str
    session: AnnotationSession
    controller: InteractionController


class SessionManager:
    """
    Creates sessions on first open and disposes them on close.

    Opening an image that already has a session returns the existing one.
    """

    def __init__(
        self,
        cfg: Optional[edict] = None,
        storage: Optional[ROIStorage] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        if cfg is None:
            from ..utils.config import load_cfg

            cfg = load_cfg()
        self.cfg = cfg
        self.storage = storage or ROIStorage(supported_version=cfg.roi_version)
        self.clock = clock
        self._sessions: Dict[str, ManagedSession] = {}

    def open(
        self,
        image_path: Union[str, Path],
        image_dimensions: Optional[ImageDimensions] = None,
        roi_data: Optional[ROIData] = None,
        post_message: Optional[Callable[[dict], None]] = None,
        export_sink: Optional[Callable[[str], None]] = None,
        on_state_changed: Optional[Callable] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> ManagedSession:
        """
        Open (or return the already open) editor for an image.

        Raises:
            ROIStorageError: If stored ROI data or the image cannot be read
        """
        key = session_key(image_path)
        if key in self._sessions:
            logger.debug("Session for %s already open", key)
            return self._sessions[key]

        session = AnnotationSession(
            cfg=self.cfg,
            storage=self.storage,
            post_message=post_message,
            export_sink=export_sink,
            id_factory=id_factory,
        )
        if on_state_changed is not None:
            session.events.on(EventType.STATE_CHANGED, on_state_changed)
        session.initialize(image_path, image_dimensions, roi_data)

        controller_kwargs = {}
        if self.clock is not None:
            controller_kwargs["clock"] = self.clock
        controller = InteractionController(session, **controller_kwargs)

        managed = ManagedSession(key=key, session=session, controller=controller)
        self._sessions[key] = managed
        logger.info("Opened session for %s", key)
        return managed

    def get(self, image_path: Union[str, Path]) -> Optional[ManagedSession]:
        return self._sessions.get(session_key(image_path))

    def dispose(self, image_path: Union[str, Path]) -> bool:
        """
        Close the editor for an image.

        An unfinished drag is finalized first so no edit is lost.

        Returns:
            True if a session was open
        """
        managed = self._sessions.pop(session_key(image_path), None)
        if managed is None:
            return False
        managed.controller.pointer_leave()
        managed.session.events.clear()
        logger.info("Disposed session for %s", managed.key)
        return True

    def dispose_all(self):
        for key in list(self._sessions):
            self.dispose(key)

    def __contains__(self, image_path) -> bool:
        return session_key(image_path) in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[ManagedSession]:
        return iter(list(self._sessions.values()))
