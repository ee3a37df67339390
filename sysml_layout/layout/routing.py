"""Edge routing: routing-mode classification and route extraction.

Turns the solver's laid-out graph into one EdgeRoute per edge:
1. Collect edges from every nesting level of the result graph
2. Flatten each edge's sections into a single point list
3. Snap the first/last point from the node center onto the node boundary
4. Keep a visible stub at both ends of orthogonal routes
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sysml_layout.layout.geometry import (
    NodeGeometry,
    dedupe_consecutive,
    ensure_minimum_distance,
    project_to_boundary,
)
from sysml_layout.models.layout_result import (
    EdgeRoute,
    LayoutEdge,
    RoutePoint,
    RoutingMode,
)

logger = logging.getLogger(__name__)

# Minimum length of the first and last segment of an orthogonal route
ORTHOGONAL_CLEARANCE = 24.0

ALIGNMENT_TOLERANCE = 1e-6

# Structural relationships drawn as right-angle connectors
ORTHOGONAL_EDGE_KINDS = frozenset({
    "composition",
    "aggregation",
    "association",
    "specialization",
    "conjugation",
    "feature-typing",
    "feature-membership",
    "owning-membership",
    "variant-membership",
    "type-featuring",
    "feature-chaining",
    "binding-connector",
})

Offset = Tuple[float, float]


def normalize_edge_kind(kind: Optional[str]) -> str:
    """Lower-case a kind tag and unify '_' and ' ' separators to '-'."""
    if not kind:
        return ""
    return kind.strip().lower().replace("_", "-").replace(" ", "-")


def classify_edge(kind: Optional[str]) -> RoutingMode:
    """Routing mode for an edge kind; untagged and unknown kinds are splines."""
    if normalize_edge_kind(kind) in ORTHOGONAL_EDGE_KINDS:
        return RoutingMode.ORTHOGONAL
    return RoutingMode.SPLINE


def collect_edges(graph: Dict[str, Any], offset: Offset = (0.0, 0.0)) -> List[Tuple[Dict[str, Any], Offset]]:
    """Collect every edge of a (possibly nested) ELK graph.

    Edge coordinates are relative to the graph that contains the edge, so
    each edge is returned with the absolute offset of its container.
    """
    collected: List[Tuple[Dict[str, Any], Offset]] = []
    for edge in graph.get("edges", []) or []:
        collected.append((edge, offset))
    for child in graph.get("children", []) or []:
        child_offset = (offset[0] + child.get("x", 0), offset[1] + child.get("y", 0))
        collected.extend(collect_edges(child, child_offset))
    return collected


def section_points(edge: Dict[str, Any], offset: Offset = (0.0, 0.0)) -> List[RoutePoint]:
    """Concatenate start, bend and end points of all sections of an edge."""
    ox, oy = offset
    raw: List[Tuple[float, float]] = []
    for section in edge.get("sections", []) or []:
        start = section.get("startPoint")
        if start is not None:
            raw.append((ox + start["x"], oy + start["y"]))
        for bend in section.get("bendPoints", []) or []:
            raw.append((ox + bend["x"], oy + bend["y"]))
        end = section.get("endPoint")
        if end is not None:
            raw.append((ox + end["x"], oy + end["y"]))
    return dedupe_consecutive(raw)


def adjust_route(
    points: List[RoutePoint],
    source: NodeGeometry,
    target: NodeGeometry,
    routing_mode: RoutingMode,
    clearance: float = ORTHOGONAL_CLEARANCE,
) -> List[RoutePoint]:
    """Attach a route to the node outlines.

    The first point is replaced by the exit point of the source rectangle
    toward the second point, the last point by the entry point of the target
    rectangle from the second-to-last point. Orthogonal routes then get their
    first and last segments stretched to the clearance; only interior bend
    points are moved, so the terminals stay on the boundaries. A bend that
    moves drags its interior neighbour along so right angles survive.
    """
    adjusted = list(points)
    adjusted[0] = project_to_boundary(adjusted[1], source)
    adjusted[-1] = project_to_boundary(adjusted[-2], target)

    if routing_mode == RoutingMode.ORTHOGONAL and len(adjusted) >= 3:
        last = len(adjusted) - 1

        before = adjusted[1]
        ensure_minimum_distance(adjusted, 0, 1, clearance)
        _carry_bend(adjusted, 1, 2, before)

        before = adjusted[last - 1]
        ensure_minimum_distance(adjusted, last - 1, last, clearance, extend_from_i=False)
        _carry_bend(adjusted, last - 1, last - 2, before)
    return adjusted


def _carry_bend(points: List[RoutePoint], moved: int, neighbour: int, before: RoutePoint) -> None:
    """Shift an interior neighbour so its segment to a moved bend keeps its axis."""
    if neighbour <= 0 or neighbour >= len(points) - 1:
        return
    after = points[moved]
    other = points[neighbour]
    if abs(other.y - before.y) <= ALIGNMENT_TOLERANCE:
        points[neighbour] = RoutePoint(x=other.x, y=after.y)
    elif abs(other.x - before.x) <= ALIGNMENT_TOLERANCE:
        points[neighbour] = RoutePoint(x=after.x, y=other.y)


def extract_routes(
    elk_result: Dict[str, Any],
    geometries: Dict[str, NodeGeometry],
    edges: Iterable[LayoutEdge],
) -> Tuple[Dict[str, EdgeRoute], List[str]]:
    """Build one EdgeRoute per submitted edge from a laid-out ELK graph.

    Args:
        elk_result: Laid-out ELK JSON graph
        geometries: Absolute node rectangles keyed by node id
        edges: The edges that were submitted to the solver

    Returns:
        (routes keyed by edge id, ids of edges that got no route)
    """
    by_id = {edge.id: edge for edge in edges}
    routes: Dict[str, EdgeRoute] = {}
    skipped: List[str] = []

    for raw_edge, offset in collect_edges(elk_result):
        edge = by_id.get(raw_edge.get("id"))
        if edge is None:
            continue

        points = section_points(raw_edge, offset)
        if len(points) < 2:
            logger.warning(f"Edge {edge.id} has a degenerate route ({len(points)} points), skipping")
            skipped.append(edge.id)
            continue

        source = geometries.get(edge.source)
        target = geometries.get(edge.target)
        if source is None or target is None:
            logger.warning(f"Edge {edge.id} references an unplaced node, skipping route")
            skipped.append(edge.id)
            continue

        mode = classify_edge(edge.kind)
        routes[edge.id] = EdgeRoute(
            points=adjust_route(points, source, target, mode),
            routing_mode=mode,
        )

    for edge_id in by_id:
        if edge_id not in routes and edge_id not in skipped:
            logger.warning(f"Solver returned no sections for edge {edge_id}")
            skipped.append(edge_id)

    # Input edge order, independent of the solver's output order
    ordered = {edge_id: routes[edge_id] for edge_id in by_id if edge_id in routes}
    return ordered, skipped


__all__ = [
    "ORTHOGONAL_CLEARANCE",
    "ORTHOGONAL_EDGE_KINDS",
    "normalize_edge_kind",
    "classify_edge",
    "collect_edges",
    "section_points",
    "adjust_route",
    "extract_routes",
]
