"""
Tests for the multi-image SessionManager.
"""

from unittest.mock import Mock

import pytest

from roi_annotation.core.annotation import ImageDimensions
from roi_annotation.interfaces import SessionManager, session_key
from roi_annotation.storage import ROIStorageError


@pytest.fixture
def manager(cfg, storage, clock):
    return SessionManager(cfg=cfg, storage=storage, clock=clock)


def test_open_creates_session(manager, test_image):
    outbox = Mock()
    managed = manager.open(test_image, post_message=outbox)

    assert managed.key == session_key(test_image)
    assert managed.session.is_initialized
    assert managed.controller.session is managed.session
    assert test_image in manager
    assert len(manager) == 1
    outbox.assert_called_once()


def test_open_twice_returns_same_session(manager, test_image, tmp_path):
    first = manager.open(test_image)
    # Same file through a different spelling of the path
    again = manager.open(tmp_path / "." / test_image.name)
    assert again is first
    assert len(manager) == 1


def test_sessions_are_independent(manager, test_image, tmp_path):
    other = tmp_path / "other.png"
    a = manager.open(test_image)
    b = manager.open(other, image_dimensions=ImageDimensions(10, 10))

    a.session.handle_message({"type": "addPoint", "x": 0.5, "y": 0.5})
    assert len(a.session.state.roi_data.polygons) == 1
    assert b.session.state.roi_data.polygons == ()
    assert [m.key for m in manager] == [a.key, b.key]


def test_state_listener(manager, test_image):
    listener = Mock()
    managed = manager.open(test_image, on_state_changed=listener)
    managed.session.handle_message({"type": "addPoint", "x": 0.5, "y": 0.5})
    listener.assert_called_once()


def test_dispose_finalizes_drag(manager, test_image):
    managed = manager.open(test_image)
    session, controller = managed.session, managed.controller
    for x, y in [(0.2, 0.2), (0.8, 0.2), (0.5, 0.8)]:
        session.handle_message({"type": "addPoint", "x": x, "y": y})
    session.handle_message({"type": "closePolygon"})
    controller.display_extent = (100, 100)
    controller.set_mode("edit")
    depth = session.engine.history.undo_depth

    controller.pointer_down(50, 40)
    controller.pointer_move(55, 40)
    assert manager.dispose(test_image)

    assert session.engine.history.undo_depth == depth + 1
    assert test_image not in manager
    assert not manager.dispose(test_image)


def test_dispose_all(manager, test_image, tmp_path):
    manager.open(test_image)
    manager.open(tmp_path / "other.png", image_dimensions=ImageDimensions(10, 10))
    manager.dispose_all()
    assert len(manager) == 0


def test_open_failure_registers_nothing(manager, tmp_path):
    with pytest.raises(ROIStorageError):
        manager.open(tmp_path / "missing.png")
    assert len(manager) == 0
