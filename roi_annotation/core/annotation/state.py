"""
State management for annotation sessions.

Contains the value types describing an ROI annotation session. Every
type here is frozen: operations build new values with
``dataclasses.replace`` so a state handed out (or kept in the undo
history) can never be changed behind its owner's back.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple

ROI_VERSION = "1.0.0"

HEX_COLOR = re.compile(r"#[0-9A-Fa-f]{6}")


def is_hex_color(value) -> bool:
    """True for ``#RRGGBB`` strings."""
    return isinstance(value, str) and HEX_COLOR.fullmatch(value) is not None


def _mapping(data, kind: str) -> Mapping:
    if not isinstance(data, Mapping):
        raise TypeError(f"{kind} must be an object, got {type(data).__name__}")
    return data


def clamp_unit(value: float) -> float:
    """Clamp a coordinate to the normalized [0, 1] range."""
    return max(0.0, min(1.0, float(value)))


class Mode(Enum):
    """Editor interaction modes."""

    DRAW = "draw"
    EDIT = "edit"
    SELECT = "select"


@dataclass(frozen=True)
class Point:
    """A vertex in normalized image coordinates."""

    x: float
    y: float

    def __post_init__(self):
        object.__setattr__(self, "x", clamp_unit(self.x))
        object.__setattr__(self, "y", clamp_unit(self.y))

    def to_dict(self):
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict):
        data = _mapping(data, "Point")
        return cls(x=data["x"], y=data["y"])


@dataclass(frozen=True)
class Polygon:
    """A single region of interest."""

    id: str
    points: Tuple[Point, ...] = ()
    color: str = "#FF5733"
    label: Optional[str] = None
    closed: bool = False

    def __post_init__(self):
        object.__setattr__(self, "points", tuple(self.points))
        if not is_hex_color(self.color):
            raise ValueError(
                f"Polygon {self.id} color must be #RRGGBB, got {self.color!r}"
            )
        if self.closed and len(self.points) < 3:
            raise ValueError(
                f"Polygon {self.id} cannot be closed with {len(self.points)} points"
            )

    def to_dict(self):
        """Convert to dictionary for serialization."""
        data = {
            "id": self.id,
            "points": [p.to_dict() for p in self.points],
            "color": self.color,
            "closed": self.closed,
        }
        if self.label is not None:
            data["label"] = self.label
        return data

    @classmethod
    def from_dict(cls, data: dict):
        """Create from dictionary."""
        data = _mapping(data, "Polygon")
        return cls(
            id=data["id"],
            points=tuple(Point.from_dict(p) for p in data.get("points", [])),
            color=data.get("color", "#FF5733"),
            label=data.get("label"),
            closed=bool(data.get("closed", False)),
        )


@dataclass(frozen=True)
class ImageDimensions:
    width: int
    height: int

    def to_dict(self):
        return {"width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: dict):
        data = _mapping(data, "imageDimensions")
        return cls(width=int(data["width"]), height=int(data["height"]))


@dataclass(frozen=True)
class Metadata:
    created_at: str
    modified_at: str

    def to_dict(self):
        return {"createdAt": self.created_at, "modifiedAt": self.modified_at}

    @classmethod
    def from_dict(cls, data: dict):
        data = _mapping(data, "metadata")
        return cls(created_at=data["createdAt"], modified_at=data["modifiedAt"])


@dataclass(frozen=True)
class ROIData:
    """
    All polygons drawn over one image.

    ``polygons`` is ordered bottom to top: its order is the z-order used
    for drawing and for hit-testing.
    """

    image_uri: str
    image_dimensions: ImageDimensions
    polygons: Tuple[Polygon, ...] = ()
    version: str = ROI_VERSION
    metadata: Optional[Metadata] = None

    def __post_init__(self):
        object.__setattr__(self, "polygons", tuple(self.polygons))
        ids = [p.id for p in self.polygons]
        if len(ids) != len(set(ids)):
            raise ValueError("Polygon ids must be unique")

    def get_polygon(self, polygon_id: Optional[str]) -> Optional[Polygon]:
        """Find a polygon by id, or None."""
        if polygon_id is None:
            return None
        for polygon in self.polygons:
            if polygon.id == polygon_id:
                return polygon
        return None

    def index_of(self, polygon_id: str) -> int:
        for idx, polygon in enumerate(self.polygons):
            if polygon.id == polygon_id:
                return idx
        return -1

    def with_polygon(self, polygon: Polygon) -> "ROIData":
        """Replace the polygon with the same id, keeping its z-order slot."""
        polygons = tuple(
            polygon if p.id == polygon.id else p for p in self.polygons
        )
        return replace(self, polygons=polygons)

    def without_polygon(self, polygon_id: str) -> "ROIData":
        polygons = tuple(p for p in self.polygons if p.id != polygon_id)
        return replace(self, polygons=polygons)

    def to_dict(self):
        """Convert to the persisted JSON layout."""
        data = {
            "version": self.version,
            "imageUri": self.image_uri,
            "imageDimensions": self.image_dimensions.to_dict(),
            "polygons": [p.to_dict() for p in self.polygons],
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict):
        """Create from the persisted JSON layout."""
        data = _mapping(data, "ROI data")
        metadata = data.get("metadata")
        return cls(
            version=data.get("version", ROI_VERSION),
            image_uri=data.get("imageUri", ""),
            image_dimensions=ImageDimensions.from_dict(data["imageDimensions"]),
            polygons=tuple(Polygon.from_dict(p) for p in data.get("polygons", [])),
            metadata=Metadata.from_dict(metadata) if metadata else None,
        )


@dataclass(frozen=True)
class EditorState:
    """
    Complete state of an annotation session for a single image.

    ``current_polygon_id`` always points at an open polygon and
    ``selected_polygon_id`` at an existing one; both are None otherwise.
    """

    roi_data: ROIData
    current_polygon_id: Optional[str] = None
    selected_polygon_id: Optional[str] = None
    mode: Mode = field(default=Mode.DRAW)

    def __post_init__(self):
        if not isinstance(self.mode, Mode):
            object.__setattr__(self, "mode", Mode(self.mode))
        current = self.roi_data.get_polygon(self.current_polygon_id)
        if self.current_polygon_id is not None and (
            current is None or current.closed
        ):
            raise ValueError(
                f"Current polygon {self.current_polygon_id} must be an open polygon"
            )
        if (
            self.selected_polygon_id is not None
            and self.roi_data.get_polygon(self.selected_polygon_id) is None
        ):
            raise ValueError(
                f"Selected polygon {self.selected_polygon_id} does not exist"
            )

    @classmethod
    def initial(cls, roi_data: ROIData) -> "EditorState":
        """Fresh editor state over ``roi_data``: draw mode, nothing in progress."""
        return cls(roi_data=roi_data)

    @property
    def current_polygon(self) -> Optional[Polygon]:
        return self.roi_data.get_polygon(self.current_polygon_id)

    @property
    def selected_polygon(self) -> Optional[Polygon]:
        return self.roi_data.get_polygon(self.selected_polygon_id)

    def polygon_label(self, polygon_id: str) -> Optional[str]:
        """Display label: the polygon's own label or ``Polygon <n>``."""
        idx = self.roi_data.index_of(polygon_id)
        if idx < 0:
            return None
        polygon = self.roi_data.polygons[idx]
        return polygon.label or f"Polygon {idx + 1}"

    def to_dict(self):
        """Convert to the ``stateUpdated`` wire layout."""
        return {
            "roiData": self.roi_data.to_dict(),
            "currentPolygonId": self.current_polygon_id,
            "selectedPolygonId": self.selected_polygon_id,
            "mode": self.mode.value,
        }

    @classmethod
    def from_dict(cls, data: dict):
        data = _mapping(data, "Editor state")
        return cls(
            roi_data=ROIData.from_dict(data["roiData"]),
            current_polygon_id=data.get("currentPolygonId"),
            selected_polygon_id=data.get("selectedPolygonId"),
            mode=Mode(data.get("mode", Mode.DRAW.value)),
        )
