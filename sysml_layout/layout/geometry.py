"""Point and rectangle math used to attach edge routes to node boundaries."""

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

from sysml_layout.models.layout_result import RoutePoint

PointLike = Union[RoutePoint, Tuple[float, float]]


@dataclass(frozen=True)
class NodeGeometry:
    """Absolute rectangle of a laid-out node (top-left origin)."""

    x: float
    y: float
    width: float
    height: float

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    @property
    def center(self) -> RoutePoint:
        return RoutePoint(x=self.center_x, y=self.center_y)

    def contains(self, point: PointLike, tolerance: float = 1e-6) -> bool:
        px, py = _xy(point)
        return (
            self.x - tolerance <= px <= self.x + self.width + tolerance
            and self.y - tolerance <= py <= self.y + self.height + tolerance
        )

    def on_boundary(self, point: PointLike, tolerance: float = 1e-6) -> bool:
        """True when the point lies on the rectangle outline."""
        if not self.contains(point, tolerance):
            return False
        px, py = _xy(point)
        return (
            abs(px - self.x) <= tolerance
            or abs(px - (self.x + self.width)) <= tolerance
            or abs(py - self.y) <= tolerance
            or abs(py - (self.y + self.height)) <= tolerance
        )


def _xy(point: PointLike) -> Tuple[float, float]:
    if isinstance(point, RoutePoint):
        return point.x, point.y
    return float(point[0]), float(point[1])


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def distance(a: PointLike, b: PointLike) -> float:
    ax, ay = _xy(a)
    bx, by = _xy(b)
    return math.hypot(bx - ax, by - ay)


def project_to_boundary(direction_point: PointLike, rect: NodeGeometry) -> RoutePoint:
    """Point where a ray from the rectangle center toward direction_point exits.

    The ray leaves through the left/right side when its slope is flatter than
    the rectangle's aspect ratio, otherwise through the top/bottom side. The
    free coordinate is clamped to the span of the side it exits through.

    A direction point sitting on the center has no direction; the ray is then
    taken to point right (dx=1, dy=0).
    """
    px, py = _xy(direction_point)
    cx, cy = rect.center_x, rect.center_y
    dx = px - cx
    dy = py - cy
    if dx == 0 and dy == 0:
        dx, dy = 1.0, 0.0

    half_w = rect.width / 2
    half_h = rect.height / 2

    # |dy| / |dx| <= half_h / half_w, cross-multiplied to avoid dividing by 0
    if abs(dy) * half_w <= abs(dx) * half_h:
        x = cx + math.copysign(half_w, dx)
        y = cy + dy * (half_w / abs(dx))
        return RoutePoint(x=x, y=clamp(y, rect.y, rect.y + rect.height))

    y = cy + math.copysign(half_h, dy)
    x = cx + dx * (half_h / abs(dy))
    return RoutePoint(x=clamp(x, rect.x, rect.x + rect.width), y=y)


def ensure_minimum_distance(
    points: List[RoutePoint],
    i: int,
    j: int,
    min_distance: float,
    extend_from_i: bool = True,
) -> None:
    """Push one point of the i/j segment out until it is min_distance long.

    With extend_from_i, points[i] is the anchor and points[j] moves along the
    i->j direction; otherwise points[j] anchors and points[i] moves.
    Coincident points have no direction and are left as they are.
    Mutates points in place.
    """
    if not extend_from_i:
        i, j = j, i
    anchor = points[i]
    moved = points[j]
    dx = moved.x - anchor.x
    dy = moved.y - anchor.y
    length = math.hypot(dx, dy)
    if length == 0 or length >= min_distance:
        return
    scale = min_distance / length
    points[j] = RoutePoint(x=anchor.x + dx * scale, y=anchor.y + dy * scale)


def dedupe_consecutive(points: Sequence[PointLike]) -> List[RoutePoint]:
    """Drop points that repeat the coordinates of their predecessor."""
    result: List[RoutePoint] = []
    for point in points:
        x, y = _xy(point)
        if result and result[-1].x == x and result[-1].y == y:
            continue
        result.append(RoutePoint(x=x, y=y))
    return result


__all__ = [
    "NodeGeometry",
    "clamp",
    "distance",
    "project_to_boundary",
    "ensure_minimum_distance",
    "dedupe_consecutive",
]
