"""Algorithm adapter between the abstract layout graph and ELK JSON.

Builds a fresh ELK request graph per call (sized children, edges carrying a
per-edge routing hint, algorithm-specific layoutOptions), hands it to a
LayoutEngine, and reads the nested result back into flat node positions and
edge routes.
"""

import logging
from typing import Any, Dict, List, Sequence, Tuple

from sysml_layout.errors import LayoutError, SolverFailureError
from sysml_layout.layout.engines.base import LayoutEngine
from sysml_layout.layout.geometry import NodeGeometry
from sysml_layout.layout.routing import classify_edge, extract_routes
from sysml_layout.models.layout_result import (
    LayoutAlgorithm,
    LayoutConfig,
    LayoutEdge,
    LayoutNode,
    LayoutResult,
    NodePosition,
    RoutingMode,
)

logger = logging.getLogger(__name__)

# Floors that keep routes from bunching up under very small custom spacing
MIN_EDGE_NODE_SPACING = 32.0
MIN_EDGE_EDGE_SPACING = 16.0

ELK_EDGE_ROUTING = {
    RoutingMode.ORTHOGONAL: "ORTHOGONAL",
    RoutingMode.SPLINE: "SPLINES",
}


def format_option(value: float) -> str:
    """Render a number the way elkjs option strings expect ('80', not '80.0')."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return str(value)


def build_layout_options(config: LayoutConfig) -> Dict[str, str]:
    """Map a LayoutConfig onto ELK layoutOptions.

    Args:
        config: Layout configuration (must not be the sequence algorithm)

    Returns:
        ELK option name -> string value
    """
    options = {
        "elk.spacing.nodeNode": format_option(config.node_spacing),
        "elk.layered.spacing.nodeNodeBetweenLayers": format_option(config.layer_spacing),
        "elk.spacing.edgeNode": format_option(
            max(config.node_spacing / 2, MIN_EDGE_NODE_SPACING)
        ),
        "elk.spacing.edgeEdge": format_option(
            max(config.node_spacing / 4, MIN_EDGE_EDGE_SPACING)
        ),
    }

    algorithm = config.algorithm
    if algorithm == LayoutAlgorithm.LAYERED:
        options.update({
            "elk.algorithm": "layered",
            "elk.direction": config.direction.value,
            "elk.layered.nodePlacement.strategy": "NETWORK_SIMPLEX",
            "elk.layered.crossingMinimization.strategy": "LAYER_SWEEP",
            "elk.layered.cycleBreaking.strategy": "GREEDY",
            "elk.edgeRouting": "ORTHOGONAL",
        })
    elif algorithm == LayoutAlgorithm.FORCE:
        options.update({
            "elk.algorithm": "force",
            "elk.force.repulsion": "200.0",
            "elk.force.attraction": "0.1",
        })
    elif algorithm == LayoutAlgorithm.MRTREE:
        options.update({
            "elk.algorithm": "mrtree",
            "elk.direction": config.direction.value,
        })
    elif algorithm == LayoutAlgorithm.BOX:
        options.update({
            "elk.algorithm": "box",
            "elk.box.packingMode": "GROUP_DEC",
        })
    else:
        raise ValueError(f"{algorithm.value} layout is not solved through ELK")

    return options


def build_elk_graph(
    nodes: Sequence[LayoutNode],
    edges: Sequence[LayoutEdge],
    config: LayoutConfig,
) -> Dict[str, Any]:
    """Convert nodes and edges into an ELK JSON graph."""
    children = []
    for node in nodes:
        width, height = node.resolved_size(config)
        children.append({"id": node.id, "width": width, "height": height})

    elk_edges = []
    for edge in edges:
        mode = classify_edge(edge.kind)
        elk_edges.append({
            "id": edge.id,
            "sources": [edge.source],
            "targets": [edge.target],
            "layoutOptions": {"elk.edgeRouting": ELK_EDGE_ROUTING[mode]},
        })

    return {
        "id": "root",
        "layoutOptions": build_layout_options(config),
        "children": children,
        "edges": elk_edges,
    }


def read_node_geometries(
    elk_result: Dict[str, Any],
    offset: Tuple[float, float] = (0.0, 0.0),
) -> Dict[str, NodeGeometry]:
    """Absolute rectangles of every positioned node in a nested ELK result.

    Child coordinates are relative to their parent, so offsets accumulate on
    the way down. Nodes without x/y are left out.
    """
    geometries: Dict[str, NodeGeometry] = {}
    for child in elk_result.get("children", []) or []:
        x = child.get("x")
        y = child.get("y")
        if x is not None and y is not None:
            geometries[child["id"]] = NodeGeometry(
                x=offset[0] + x,
                y=offset[1] + y,
                width=child.get("width", 0.0),
                height=child.get("height", 0.0),
            )
        child_offset = (offset[0] + (x or 0.0), offset[1] + (y or 0.0))
        geometries.update(read_node_geometries(child, child_offset))
    return geometries


def drop_dangling_edges(
    nodes: Sequence[LayoutNode],
    edges: Sequence[LayoutEdge],
) -> List[LayoutEdge]:
    """Remove edges whose source or target is not among the nodes."""
    node_ids = {node.id for node in nodes}
    kept = []
    for edge in edges:
        if edge.source not in node_ids or edge.target not in node_ids:
            logger.warning(
                f"Dropping edge {edge.id}: endpoint {edge.source} -> {edge.target} not in graph"
            )
            continue
        kept.append(edge)
    return kept


async def solve_layout(
    nodes: Sequence[LayoutNode],
    edges: Sequence[LayoutEdge],
    config: LayoutConfig,
    engine: LayoutEngine,
) -> LayoutResult:
    """Lay out a graph with a solver and extract positions and routes.

    Raises:
        SolverFailureError: If the solver fails; no partial result is returned
    """
    edges = drop_dangling_edges(nodes, edges)
    elk_graph = build_elk_graph(nodes, edges, config)
    logger.debug(f"ELK layout options: {elk_graph['layoutOptions']}")

    try:
        elk_result = await engine.solve(elk_graph)
    except LayoutError:
        raise
    except Exception as e:
        raise SolverFailureError(engine.name, str(e)) from e

    geometries = read_node_geometries(elk_result)

    positions: Dict[str, NodePosition] = {}
    unpositioned: List[str] = []
    for node in nodes:
        geometry = geometries.get(node.id)
        if geometry is None:
            logger.warning(f"Layout incomplete for node {node.id}, keeping fallback position")
            positions[node.id] = node.fallback_position()
            unpositioned.append(node.id)
            continue
        if geometry.width <= 0 or geometry.height <= 0:
            width, height = node.resolved_size(config)
            geometries[node.id] = geometry = NodeGeometry(
                x=geometry.x, y=geometry.y, width=width, height=height
            )
        positions[node.id] = NodePosition(x=geometry.x, y=geometry.y)

    routes, skipped = extract_routes(elk_result, geometries, edges)

    return LayoutResult(
        algorithm=config.algorithm,
        positions=positions,
        routes=routes,
        unpositioned=unpositioned,
        skipped_routes=skipped,
    )


__all__ = [
    "MIN_EDGE_NODE_SPACING",
    "MIN_EDGE_EDGE_SPACING",
    "format_option",
    "build_layout_options",
    "build_elk_graph",
    "read_node_geometries",
    "drop_dangling_edges",
    "solve_layout",
]
