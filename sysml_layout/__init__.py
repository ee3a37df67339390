"""Automatic layout and edge routing for SysML diagrams."""

from sysml_layout.errors import (
    InvalidConfigError,
    LayoutError,
    SolverFailureError,
    UnknownDiagramFamilyError,
    UnknownEngineError,
)
from sysml_layout.layout import (
    RECOMMENDED_LAYOUTS,
    apply_layout,
    apply_layout_sync,
    apply_recommended_layout,
    build_layout_nodes,
    get_recommended_config,
)
from sysml_layout.models import (
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

__version__ = "0.1.0"

__all__ = [
    "InvalidConfigError",
    "LayoutError",
    "SolverFailureError",
    "UnknownDiagramFamilyError",
    "UnknownEngineError",
    "RECOMMENDED_LAYOUTS",
    "apply_layout",
    "apply_layout_sync",
    "apply_recommended_layout",
    "build_layout_nodes",
    "get_recommended_config",
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
