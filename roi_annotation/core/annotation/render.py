"""
Render planning: what to draw for an editor state, never how.

Hosts paint the returned plan with whatever toolkit they use.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .geometry import Extent, ScreenPoint, to_screen
from .state import EditorState, Mode, Polygon

RGBA = Tuple[int, int, int, float]

PREVIEW_RGBA: RGBA = (255, 255, 255, 0.5)
PREVIEW_DASH = (5, 5)


def hex_to_rgba(hex_color: str, alpha: float) -> RGBA:
    """Convert ``#RRGGBB`` to an (r, g, b, alpha) tuple."""
    value = hex_color.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Invalid hex color: {hex_color}")
    r, g, b = (int(value[i:i + 2], 16) for i in (0, 2, 4))
    return (r, g, b, alpha)


@dataclass
class PolygonDrawItem:
    polygon_id: str
    points: List[ScreenPoint]
    closed: bool
    selected: bool
    stroke: RGBA
    fill: Optional[RGBA] = None
    vertex_color: str = ""


@dataclass
class PreviewLine:
    start: ScreenPoint
    end: ScreenPoint
    color: RGBA = PREVIEW_RGBA
    dash: Tuple[int, int] = PREVIEW_DASH


@dataclass
class RenderPlan:
    extent: Extent
    polygons: List[PolygonDrawItem] = field(default_factory=list)
    preview: Optional[PreviewLine] = None
    vertex_radius: float = 6
    line_width: float = 2


def _draw_item(polygon: Polygon, selected: bool, extent: Extent, cfg) -> PolygonDrawItem:
    fill_alpha = cfg["selected_fill_alpha"] if selected else cfg["fill_alpha"]
    stroke_alpha = cfg["selected_stroke_alpha"] if selected else cfg["stroke_alpha"]
    fill = None
    if polygon.closed and len(polygon.points) >= 3:
        fill = hex_to_rgba(polygon.color, fill_alpha)
    return PolygonDrawItem(
        polygon_id=polygon.id,
        points=[to_screen(p, extent) for p in polygon.points],
        closed=polygon.closed,
        selected=selected,
        stroke=hex_to_rgba(polygon.color, stroke_alpha),
        fill=fill,
        vertex_color=polygon.color,
    )


DEFAULT_RENDER_CFG = {
    "fill_alpha": 0.2,
    "selected_fill_alpha": 0.3,
    "stroke_alpha": 0.8,
    "selected_stroke_alpha": 1.0,
    "line_width": 2,
}


def build_render_plan(
    state: EditorState,
    extent: Extent,
    cursor: Optional[ScreenPoint] = None,
    vertex_radius: float = 6,
    cfg: Optional[dict] = None,
) -> RenderPlan:
    """
    Describe the overlay for ``state`` at the given display extent.

    Polygons are listed bottom to top. In draw mode a preview segment
    runs from the last vertex of the polygon in progress to the cursor.
    """
    cfg = {**DEFAULT_RENDER_CFG, **(cfg or {})}
    plan = RenderPlan(
        extent=extent, vertex_radius=vertex_radius, line_width=cfg["line_width"]
    )

    for polygon in state.roi_data.polygons:
        if not polygon.points:
            continue
        selected = polygon.id == state.selected_polygon_id
        plan.polygons.append(_draw_item(polygon, selected, extent, cfg))

    current = state.current_polygon
    if (
        state.mode is Mode.DRAW
        and cursor is not None
        and current is not None
        and current.points
    ):
        plan.preview = PreviewLine(
            start=to_screen(current.points[-1], extent), end=tuple(cursor)
        )

    return plan
