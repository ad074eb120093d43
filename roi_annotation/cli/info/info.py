import logging
import sys
from gettext import gettext as _

from roi_annotation.core.annotation import EditorState
from roi_annotation.storage import ROIStorage, ROIStorageError, roi_path_for
from roi_annotation.utils.config import load_cfg

logger = logging.getLogger(__name__)


def describe(roi_data) -> list:
    """One line per polygon, in z-order."""
    state = EditorState.initial(roi_data)
    lines = []
    for polygon in roi_data.polygons:
        status = _("closed") if polygon.closed else _("open")
        lines.append(
            _("{label}: {count} points, {status}, {color}").format(
                label=state.polygon_label(polygon.id),
                count=len(polygon.points),
                status=status,
                color=polygon.color,
            )
        )
    return lines


def handle(args):
    cfg = load_cfg()
    storage = ROIStorage(supported_version=cfg.roi_version)
    try:
        roi_data = storage.load(args.image)
    except ROIStorageError as e:
        print(e, file=sys.stderr)
        return 1
    if roi_data is None:
        print(_("No ROI file at {path}").format(path=roi_path_for(args.image)))
        return 1

    dims = roi_data.image_dimensions
    print(
        _("{path} ({width}x{height}, version {version})").format(
            path=roi_path_for(args.image),
            width=dims.width,
            height=dims.height,
            version=roi_data.version,
        )
    )
    if roi_data.metadata is not None:
        print(
            _("Created {created}, modified {modified}").format(
                created=roi_data.metadata.created_at,
                modified=roi_data.metadata.modified_at,
            )
        )
    for line in describe(roi_data):
        print(f"  {line}")
    return 0
