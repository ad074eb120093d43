class ROIStorageError(Exception):
    """Raised when ROI data or an image cannot be read or written."""
