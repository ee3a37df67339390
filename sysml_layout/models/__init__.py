"""Layout schemas for the SysML layout engine."""

from .layout_result import (
    BoundingBox,
    EdgeRoute,
    LayoutAlgorithm,
    LayoutConfig,
    LayoutDirection,
    LayoutEdge,
    LayoutNode,
    LayoutResult,
    NodePosition,
    RoutePoint,
    RoutingMode,
)

__all__ = [
    "BoundingBox",
    "EdgeRoute",
    "LayoutAlgorithm",
    "LayoutConfig",
    "LayoutDirection",
    "LayoutEdge",
    "LayoutNode",
    "LayoutResult",
    "NodePosition",
    "RoutePoint",
    "RoutingMode",
]
