"""
Test fixtures and utilities for ROI annotation tests.

Provides reusable fixtures for editor states, engines, sessions and
images on disk.
"""

from unittest.mock import Mock

import cv2
import numpy as np
import pytest

from roi_annotation.core.annotation import (
    AnnotationSession,
    EditorState,
    ImageDimensions,
    InteractionController,
    Point,
    Polygon,
    ROIData,
    ROIEngine,
)
from roi_annotation.storage import ROIStorage
from roi_annotation.utils.config import get_default_cfg
from roi_annotation.utils.misc import sequential_ids

SQUARE = (
    Point(0.2, 0.2),
    Point(0.8, 0.2),
    Point(0.8, 0.8),
    Point(0.2, 0.8),
)


class FakeClock:
    """Monotonic clock under test control (seconds)."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float):
        self.now += ms / 1000.0


def make_polygon(polygon_id="sq", points=SQUARE, closed=True, color="#FF5733"):
    return Polygon(id=polygon_id, points=points, color=color, closed=closed)


@pytest.fixture
def cfg():
    return get_default_cfg()


@pytest.fixture
def roi_data():
    """Empty ROI data for a 640x480 image."""
    return ROIData(
        image_uri="test.png",
        image_dimensions=ImageDimensions(width=640, height=480),
    )


@pytest.fixture
def initial_state(roi_data):
    return EditorState.initial(roi_data)


@pytest.fixture
def engine(initial_state):
    """Engine with reproducible polygon ids (roi-1, roi-2, ...)."""
    return ROIEngine(initial_state, max_history_size=50, id_factory=sequential_ids())


@pytest.fixture
def square_engine(roi_data):
    """Engine over one closed square polygon with id ``sq``."""
    data = ROIData(
        image_uri=roi_data.image_uri,
        image_dimensions=roi_data.image_dimensions,
        polygons=(make_polygon(),),
    )
    return ROIEngine(EditorState.initial(data), id_factory=sequential_ids())


@pytest.fixture
def test_image(tmp_path):
    """A 64x48 black PNG on disk."""
    path = tmp_path / "photo.png"
    assert cv2.imwrite(str(path), np.zeros((48, 64, 3), dtype=np.uint8))
    return path


@pytest.fixture
def storage():
    return ROIStorage(clock=lambda: "2024-01-01T00:00:00.000Z")


@pytest.fixture
def outbox():
    """Collects outbound messages."""
    return Mock()


@pytest.fixture
def session(test_image, storage, outbox, cfg):
    """Initialized session over ``test_image``."""
    session = AnnotationSession(
        cfg=cfg,
        storage=storage,
        post_message=outbox,
        export_sink=Mock(),
        id_factory=sequential_ids(),
    )
    session.initialize(test_image)
    return session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def controller(session, clock):
    """Controller showing the image at 640x480 display pixels."""
    return InteractionController(session, display_extent=(640, 480), clock=clock)
