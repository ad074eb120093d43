"""
Pure geometry functions for the annotation canvas.

Screen positions are pixel offsets relative to the top-left corner of
the displayed image; normalized points live in [0, 1] x [0, 1]. These
functions have no side effects and can be tested in isolation.
"""

from typing import Iterable, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np

from .state import ImageDimensions, Point, Polygon

ScreenPoint = Tuple[float, float]
Extent = Tuple[float, float]

DEFAULT_VERTEX_RADIUS = 6
DEFAULT_HIT_MARGIN = 3


class VertexHit(NamedTuple):
    polygon_id: str
    point_index: int


def vertex_hit_threshold(
    vertex_radius: float = DEFAULT_VERTEX_RADIUS,
    hit_margin: float = DEFAULT_HIT_MARGIN,
) -> float:
    """Distance in pixels within which a pointer grabs a vertex."""
    return float(vertex_radius + hit_margin)


def to_normalized(screen_point: ScreenPoint, display_extent: Extent) -> Point:
    """
    Map a screen position to normalized image coordinates.

    Args:
        screen_point: (x, y) in display pixels
        display_extent: (width, height) of the displayed image

    Returns:
        Point clamped to [0, 1]
    """
    width, height = display_extent
    sx, sy = screen_point
    x = sx / width if width > 0 else 0.0
    y = sy / height if height > 0 else 0.0
    return Point(x, y)


def to_screen(point: Point, display_extent: Extent) -> ScreenPoint:
    """Map a normalized point to display pixels (unclamped)."""
    width, height = display_extent
    return (point.x * width, point.y * height)


def _as_array(points: Iterable[Point]) -> np.ndarray:
    return np.array([(p.x, p.y) for p in points], dtype=np.float64).reshape(-1, 2)


def nearest_vertex(
    screen_pos: ScreenPoint,
    polygons: Sequence[Polygon],
    display_extent: Extent,
    threshold: Optional[float] = None,
) -> Optional[VertexHit]:
    """
    Find the first vertex within ``threshold`` pixels of ``screen_pos``.

    Polygons are scanned in declaration order and vertices in point
    order; the first vertex inside the threshold wins even when a later
    one is closer.

    Returns:
        VertexHit(polygon_id, point_index) or None
    """
    if threshold is None:
        threshold = vertex_hit_threshold()

    scale = np.asarray(display_extent, dtype=np.float64)
    target = np.asarray(screen_pos, dtype=np.float64)

    for polygon in polygons:
        if not polygon.points:
            continue
        screen = _as_array(polygon.points) * scale
        distances = np.hypot(*(screen - target).T)
        hits = np.flatnonzero(distances <= threshold)
        if hits.size:
            return VertexHit(polygon.id, int(hits[0]))

    return None


def point_in_polygon(
    point: Point, polygon: Union[Polygon, Sequence[Point]]
) -> bool:
    """
    Even-odd ray casting test.

    Args:
        point: Normalized point to test
        polygon: Polygon or its vertices

    Returns:
        True if the point is inside. Fewer than 3 vertices is never inside.
    """
    vertices = polygon.points if isinstance(polygon, Polygon) else polygon
    if len(vertices) < 3:
        return False

    pts = _as_array(vertices)
    xi, yi = pts[:, 0], pts[:, 1]
    xj, yj = np.roll(xi, 1), np.roll(yi, 1)

    crosses = (yi > point.y) != (yj > point.y)
    # Non-crossing edges may be horizontal; keep their denominator non-zero
    dy = np.where(crosses, yj - yi, 1.0)
    x_at_y = (xj - xi) * (point.y - yi) / dy + xi

    intersections = np.count_nonzero(crosses & (point.x < x_at_y))
    return bool(intersections % 2)


def topmost_polygon_at(
    screen_pos: ScreenPoint,
    polygons: Sequence[Polygon],
    display_extent: Extent,
) -> Optional[str]:
    """
    Id of the topmost closed polygon under ``screen_pos``.

    Polygons are tested top to bottom (reverse z-order). Open polygons
    are never hit.
    """
    point = to_normalized(screen_pos, display_extent)
    for polygon in reversed(polygons):
        if polygon.closed and point_in_polygon(point, polygon):
            return polygon.id
    return None


def screen_distance(a: ScreenPoint, b: ScreenPoint) -> float:
    return float(np.hypot(a[0] - b[0], a[1] - b[1]))


def fit_display_extent(
    image_dimensions: ImageDimensions,
    container_extent: Extent,
    padding: float = 40,
) -> Extent:
    """
    Largest display extent that keeps the image aspect ratio.

    The image is fitted inside the container minus ``padding`` and is
    never scaled above its native size.

    Returns:
        (width, height) in display pixels
    """
    if image_dimensions.width <= 0 or image_dimensions.height <= 0:
        return (0.0, 0.0)

    container_w = max(container_extent[0] - padding, 0.0)
    container_h = max(container_extent[1] - padding, 0.0)
    if container_w == 0 or container_h == 0:
        return (0.0, 0.0)

    image_aspect = image_dimensions.width / image_dimensions.height
    container_aspect = container_w / container_h

    if container_aspect > image_aspect:
        height = min(container_h, image_dimensions.height)
        width = height * image_aspect
    else:
        width = min(container_w, image_dimensions.width)
        height = width / image_aspect

    return (float(width), float(height))
