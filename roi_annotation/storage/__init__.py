"""
Storage module - persistence of ROI data.
"""

from .errors import ROIStorageError
from .roi_storage import (
    ROIStorage,
    read_image_dimensions,
    roi_path_for,
)

__all__ = [
    "ROIStorage",
    "ROIStorageError",
    "read_image_dimensions",
    "roi_path_for",
]
