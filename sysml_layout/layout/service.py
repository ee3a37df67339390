"""Layout entry points.

apply_layout() dispatches a call either to the solver pipeline (ELK graph
build, solve, route extraction) or to the sequence layout. Every call is
independent: a fresh request graph and a fresh engine instance are used, and
nothing is cached between calls.

Usage:
    from sysml_layout import apply_recommended_layout

    result = await apply_recommended_layout(nodes, edges, "requirements")
    for node_id, position in result.positions.items():
        ...
"""

import asyncio
import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from sysml_layout.layout.adapter import solve_layout
from sysml_layout.layout.engines import resolve_engine
from sysml_layout.layout.engines.base import LayoutEngine
from sysml_layout.layout.presets import get_recommended_config
from sysml_layout.layout.sequence import apply_sequence_layout
from sysml_layout.models.layout_result import (
    LayoutAlgorithm,
    LayoutConfig,
    LayoutEdge,
    LayoutNode,
    LayoutResult,
)

logger = logging.getLogger(__name__)

EngineSpec = Union[LayoutEngine, str, None]
ConfigSpec = Union[LayoutConfig, Dict[str, Any], None]


def _as_config(config: ConfigSpec) -> LayoutConfig:
    if isinstance(config, LayoutConfig):
        return config
    return LayoutConfig.from_options(config)


async def apply_layout(
    nodes: Sequence[LayoutNode],
    edges: Sequence[LayoutEdge],
    config: ConfigSpec = None,
    engine: EngineSpec = None,
) -> LayoutResult:
    """Compute node positions and edge routes.

    Args:
        nodes: Nodes to position, in a stable order
        edges: Edges to route; self-loops are allowed
        config: LayoutConfig or options dict (defaults: layered, DOWN)
        engine: LayoutEngine instance or engine name; defaults to the
            'engine' setting

    Returns:
        LayoutResult with one position per node

    Raises:
        InvalidConfigError: If the configuration is invalid
        SolverFailureError: If the solver fails
    """
    config = _as_config(config)

    if not nodes:
        return LayoutResult(algorithm=config.algorithm)

    if config.algorithm == LayoutAlgorithm.SEQUENCE:
        return apply_sequence_layout(nodes, edges, config)

    if not isinstance(engine, LayoutEngine):
        engine = await resolve_engine(engine)

    logger.debug(
        f"Applying {config.algorithm.value} layout to {len(nodes)} nodes and "
        f"{len(edges)} edges with {engine.name}"
    )
    result = await solve_layout(nodes, edges, config, engine)
    if result.unpositioned or result.skipped_routes:
        logger.warning(
            f"Layout incomplete: {len(result.unpositioned)} unpositioned node(s), "
            f"{len(result.skipped_routes)} edge(s) without route"
        )
    return result


async def apply_recommended_layout(
    nodes: Sequence[LayoutNode],
    edges: Sequence[LayoutEdge],
    family: str,
    overrides: Optional[Dict[str, Any]] = None,
    engine: EngineSpec = None,
) -> LayoutResult:
    """Apply the recommended layout for a diagram family.

    Args:
        nodes: Nodes to position
        edges: Edges to route
        family: Diagram family ('bdd', 'ibd', 'requirements', 'stateMachine',
            'activity', 'sequence', 'useCase', 'package')
        overrides: Per-field overrides of the recommended settings
        engine: LayoutEngine instance or engine name

    Raises:
        UnknownDiagramFamilyError: If the family is unknown
    """
    config = get_recommended_config(family, overrides)
    return await apply_layout(nodes, edges, config, engine)


def apply_layout_sync(
    nodes: Sequence[LayoutNode],
    edges: Sequence[LayoutEdge],
    config: ConfigSpec = None,
    engine: EngineSpec = None,
) -> LayoutResult:
    """Blocking apply_layout() for callers without an event loop."""
    return asyncio.run(apply_layout(nodes, edges, config, engine))


def build_layout_nodes(
    node_ids: Iterable[str],
    measured: Optional[Mapping[str, Tuple[float, float]]] = None,
    kinds: Optional[Mapping[str, str]] = None,
) -> List[LayoutNode]:
    """Merge (possibly partial) measurements into LayoutNode records.

    Ids missing from measured, or measured with a non-positive or non-finite
    size, stay unmeasured and fall back to the config node size at layout
    time.

    Args:
        node_ids: Node ids in layout order
        measured: Node id -> (width, height) from the measurement service
        kinds: Node id -> SysML node kind tag

    Returns:
        LayoutNode list in node_ids order
    """
    measured = measured or {}
    kinds = kinds or {}
    nodes = []
    for node_id in node_ids:
        size = measured.get(node_id)
        if size and all(math.isfinite(v) and v > 0 for v in size):
            width, height = size
        else:
            width, height = None, None
        nodes.append(
            LayoutNode(id=node_id, width=width, height=height, kind=kinds.get(node_id))
        )
    return nodes


__all__ = [
    "apply_layout",
    "apply_recommended_layout",
    "apply_layout_sync",
    "build_layout_nodes",
]
