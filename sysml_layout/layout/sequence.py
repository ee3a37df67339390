"""Sequence diagram layout.

Sequence diagrams are positional rather than graph-shaped: lifelines sit in
a single row and an optional interaction frame sits above them. No solver
is involved and no edge routes are produced; messages are styled at render
time from their own semantics (sync/async/return).
"""

import logging
from typing import Dict, List, Sequence

from sysml_layout.models.layout_result import (
    LayoutAlgorithm,
    LayoutConfig,
    LayoutEdge,
    LayoutNode,
    LayoutResult,
    NodePosition,
)

logger = logging.getLogger(__name__)

LIFELINE_KIND = "sequence-lifeline"
INTERACTION_KIND = "interaction"


def apply_sequence_layout(
    nodes: Sequence[LayoutNode],
    edges: Sequence[LayoutEdge],
    config: LayoutConfig,
) -> LayoutResult:
    """Place lifelines in a row and interactions centered above them.

    Lifeline i goes to x = i * (node_spacing + node_width), y = 0, in input
    order. Interaction nodes go to y = -(node_height + layer_spacing),
    horizontally centered on the lifeline row. Any other node keeps its
    previous position (origin if none) and is reported as unpositioned.

    Args:
        nodes: Nodes to place; kind tags select lifelines and interactions
        edges: Messages; passed through without routes
        config: Spacing and fallback sizes

    Returns:
        LayoutResult with positions only
    """
    lifelines = [node for node in nodes if node.kind == LIFELINE_KIND]
    others = [node for node in nodes if node.kind != LIFELINE_KIND]

    stride = config.node_spacing + config.node_width
    positions: Dict[str, NodePosition] = {}
    unpositioned: List[str] = []

    for index, node in enumerate(lifelines):
        positions[node.id] = NodePosition(x=index * stride, y=0.0)

    center_x = (len(lifelines) - 1) * stride / 2
    for node in others:
        if node.kind == INTERACTION_KIND:
            positions[node.id] = NodePosition(
                x=center_x - config.node_width / 2,
                y=-(config.node_height + config.layer_spacing),
            )
        else:
            positions[node.id] = node.fallback_position()
            unpositioned.append(node.id)

    if unpositioned:
        logger.debug(f"Sequence layout left {len(unpositioned)} non-lifeline node(s) in place")

    return LayoutResult(
        algorithm=LayoutAlgorithm.SEQUENCE,
        positions=positions,
        unpositioned=unpositioned,
    )


__all__ = ["LIFELINE_KIND", "INTERACTION_KIND", "apply_sequence_layout"]
