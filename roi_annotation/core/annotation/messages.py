"""
Message boundary between a host and the annotation core.

Inbound commands arrive as plain dictionaries (already decoded from
whatever transport the host uses) and are validated into EasyDicts with
snake_case fields. Outbound messages are plain dictionaries ready to be
encoded.
"""

from gettext import gettext as _
from typing import Any, Dict

from easydict import EasyDict as edict

from .state import EditorState, ImageDimensions, Mode, ROIData


class MessageError(ValueError):
    """Raised for malformed inbound commands."""


def _number(value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError
    return float(value)


def _index(value):
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError
    return value


def _polygon_id(value):
    if not isinstance(value, str):
        raise TypeError
    return value


def _optional_polygon_id(value):
    return None if value is None else _polygon_id(value)


def _flag(value):
    if not isinstance(value, bool):
        raise TypeError
    return value


def _mode(value):
    return Mode(value)


def _image_uri(value):
    if not isinstance(value, str) or not value:
        raise TypeError
    return value


def _dimensions(value):
    if value is None:
        return None
    try:
        dims = ImageDimensions.from_dict(value)
    except KeyError:
        raise ValueError from None
    if dims.width <= 0 or dims.height <= 0:
        raise ValueError
    return dims


def _roi_data(value):
    if value is None:
        return None
    try:
        return ROIData.from_dict(value)
    except KeyError:
        raise ValueError from None


# wire name -> (field name, converter, required, default)
COMMANDS = {
    "init": {
        "imageUri": ("image_uri", _image_uri, True, None),
        "imageDimensions": ("image_dimensions", _dimensions, False, None),
        "roiData": ("roi_data", _roi_data, False, None),
    },
    "ready": {},
    "addPoint": {
        "x": ("x", _number, True, None),
        "y": ("y", _number, True, None),
    },
    "closePolygon": {},
    "cancelCurrentPolygon": {},
    "selectPolygon": {
        "polygonId": ("polygon_id", _optional_polygon_id, True, None),
    },
    "deletePolygon": {
        "polygonId": ("polygon_id", _polygon_id, True, None),
    },
    "updatePoint": {
        "polygonId": ("polygon_id", _polygon_id, True, None),
        "pointIndex": ("point_index", _index, True, None),
        "x": ("x", _number, True, None),
        "y": ("y", _number, True, None),
        "isDragging": ("is_dragging", _flag, False, False),
    },
    "movePolygon": {
        "polygonId": ("polygon_id", _polygon_id, True, None),
        "deltaX": ("delta_x", _number, True, None),
        "deltaY": ("delta_y", _number, True, None),
        "isDragging": ("is_dragging", _flag, False, False),
    },
    "finalizeDrag": {},
    "undo": {},
    "redo": {},
    "setMode": {
        "mode": ("mode", _mode, True, None),
    },
    "save": {},
    "export": {},
}


def parse_message(message: Dict[str, Any]) -> edict:
    """
    Validate an inbound command.

    Args:
        message: Decoded message with a ``type`` key

    Returns:
        EasyDict with ``type`` plus snake_case payload fields

    Raises:
        MessageError: If the type is unknown or a field is missing or invalid
    """
    if not isinstance(message, dict):
        raise MessageError(_("Message must be an object"))

    message_type = message.get("type")
    if message_type not in COMMANDS:
        raise MessageError(
            _("Unknown message type: {type}").format(type=message_type)
        )

    parsed = edict(type=message_type)
    for wire_name, (name, convert, required, default) in COMMANDS[
        message_type
    ].items():
        if wire_name not in message:
            if required:
                raise MessageError(
                    _("Missing field '{field}' for '{type}'").format(
                        field=wire_name, type=message_type
                    )
                )
            parsed[name] = default
            continue
        try:
            parsed[name] = convert(message[wire_name])
        except (TypeError, ValueError):
            raise MessageError(
                _("Invalid value for '{field}' in '{type}': {value!r}").format(
                    field=wire_name, type=message_type, value=message[wire_name]
                )
            ) from None
    return parsed


def state_updated(state: EditorState) -> Dict[str, Any]:
    return {"type": "stateUpdated", "state": state.to_dict()}


def error_message(message: str) -> Dict[str, Any]:
    return {"type": "error", "message": message}
