"""
Persistence of ROI data next to the annotated image.

``photo.png`` is annotated by ``photo.roi.json`` in the same folder.
"""

import json
import logging
from datetime import datetime, timezone
from gettext import gettext as _
from pathlib import Path
from typing import Callable, Optional, Union

from .errors import ROIStorageError
from ..core.annotation.state import ROI_VERSION, ImageDimensions, Metadata, ROIData

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

ROI_SUFFIX = ".roi.json"


def iso_now() -> str:
    """Current UTC time in ISO-8601 with millisecond precision."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def roi_path_for(image_path: PathLike) -> Path:
    """Path of the ROI file annotating ``image_path``."""
    image_path = Path(image_path)
    return image_path.with_name(image_path.stem + ROI_SUFFIX)


def read_image_dimensions(image_path: PathLike) -> ImageDimensions:
    """
    Read the pixel dimensions of an image.

    Raises:
        ROIStorageError: If the image cannot be decoded
    """
    import cv2

    image = cv2.imread(str(image_path), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise ROIStorageError(
            _("Could not read image: {path}").format(path=image_path)
        )
    height, width = image.shape[:2]
    return ImageDimensions(width=int(width), height=int(height))


class ROIStorage:
    """
    Saves and loads ROIData as indented JSON.

    Args:
        supported_version: ROI format version written by this engine
        clock: Returns the ISO-8601 timestamp used for metadata
    """

    def __init__(
        self,
        supported_version: str = ROI_VERSION,
        clock: Callable[[], str] = iso_now,
    ):
        self.supported_version = supported_version
        self.clock = clock

    def save(self, image_path: PathLike, roi_data: ROIData) -> ROIData:
        """
        Write ``roi_data`` next to the image.

        ``createdAt`` is kept when present, ``modifiedAt`` is always now.

        Returns:
            The data as written, with refreshed metadata

        Raises:
            ROIStorageError: If the file cannot be written
        """
        now = self.clock()
        created_at = roi_data.metadata.created_at if roi_data.metadata else now
        to_save = ROIData(
            image_uri=roi_data.image_uri,
            image_dimensions=roi_data.image_dimensions,
            polygons=roi_data.polygons,
            version=roi_data.version,
            metadata=Metadata(created_at=created_at, modified_at=now),
        )

        roi_path = roi_path_for(image_path)
        try:
            roi_path.write_text(self.to_json(to_save), encoding="utf-8")
        except OSError as e:
            logger.error("Failed to save %s: %s", roi_path, e)
            raise ROIStorageError(
                _("Failed to save ROI data: {error}").format(error=e)
            ) from e

        logger.info("Saved %d polygons to %s", len(to_save.polygons), roi_path)
        return to_save

    def load(self, image_path: PathLike) -> Optional[ROIData]:
        """
        Read the ROI file for an image.

        Returns:
            ROIData, or None if no ROI file exists

        Raises:
            ROIStorageError: If the file exists but cannot be decoded
        """
        roi_path = roi_path_for(image_path)
        if not roi_path.is_file():
            return None

        try:
            data = json.loads(roi_path.read_text(encoding="utf-8"))
            roi_data = ROIData.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error("Failed to load %s: %s", roi_path, e)
            raise ROIStorageError(
                _("Failed to load ROI data: {error}").format(error=e)
            ) from e

        if data.get("version") != self.supported_version:
            logger.warning(
                _(
                    "ROI file version mismatch ({found} != {expected}). "
                    "Data may not load correctly."
                ).format(found=data.get("version"), expected=self.supported_version)
            )

        return roi_data

    def exists(self, image_path: PathLike) -> bool:
        return roi_path_for(image_path).is_file()

    @staticmethod
    def to_json(roi_data: ROIData) -> str:
        return json.dumps(roi_data.to_dict(), indent=2)

    def export(self, roi_data: ROIData, sink: Callable[[str], None]) -> str:
        """
        Hand the ROI JSON to an export target (e.g. the clipboard).

        Returns:
            The exported text
        """
        text = self.to_json(roi_data)
        sink(text)
        logger.info("Exported %d polygons", len(roi_data.polygons))
        return text
