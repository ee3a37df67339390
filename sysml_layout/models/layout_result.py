"""Layout schemas: input records, configuration and layout results.

This module provides the pydantic models exchanged with the layout engine:
- LayoutNode / LayoutEdge: the abstract graph handed in by the caller
- LayoutConfig: algorithm, direction, spacing and fallback node sizes
- NodePosition / RoutePoint / EdgeRoute: the computed geometry
- LayoutResult: positions keyed by node id and routes keyed by edge id

All models are created fresh per layout call. Coordinates use a top-left
origin with y growing downwards, matching ELK.
"""

import math
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sysml_layout.errors import InvalidConfigError

DEFAULT_NODE_WIDTH = 250.0
DEFAULT_NODE_HEIGHT = 150.0


class LayoutAlgorithm(str, Enum):
    """Layout algorithms supported for SysML diagrams."""

    LAYERED = "layered"    # Sugiyama-style ranks (BDD, requirements, packages)
    FORCE = "force"        # Force-directed (state machines, use cases)
    MRTREE = "mrtree"      # Multi-root tree (containment hierarchies)
    BOX = "box"            # Rectangle packing (IBD)
    SEQUENCE = "sequence"  # Positional lifeline row, no solver


class LayoutDirection(str, Enum):
    """Direction for layered and tree layouts."""

    DOWN = "DOWN"
    UP = "UP"
    LEFT = "LEFT"
    RIGHT = "RIGHT"


class RoutingMode(str, Enum):
    """How a renderer draws an edge route."""

    ORTHOGONAL = "orthogonal"  # Right-angle stepped path
    SPLINE = "spline"          # Smooth curve through the points


def _coerce_enum(enum_cls, value: Any, field: str, normalize):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(normalize(value.strip()))
        except ValueError:
            pass
    available = ", ".join(member.value for member in enum_cls)
    raise InvalidConfigError(
        f"Unknown {field}: '{value}'. Available: {available}"
    )


class LayoutNode(BaseModel):
    """A node to position.

    Attributes:
        id: Unique node identifier
        width: Measured width, None when unmeasured (config fallback is used)
        height: Measured height, None when unmeasured
        kind: SysML node kind tag (e.g. 'sequence-lifeline', 'interaction')
        x: Previous x position, kept when the solver omits the node
        y: Previous y position, kept when the solver omits the node
    """

    id: str = Field(..., description="Unique node identifier")
    width: Optional[float] = Field(
        default=None, gt=0, allow_inf_nan=False, description="Measured width"
    )
    height: Optional[float] = Field(
        default=None, gt=0, allow_inf_nan=False, description="Measured height"
    )
    kind: Optional[str] = Field(default=None, description="SysML node kind tag")
    x: Optional[float] = Field(default=None, allow_inf_nan=False, description="Previous x position")
    y: Optional[float] = Field(default=None, allow_inf_nan=False, description="Previous y position")

    def resolved_size(self, config: "LayoutConfig") -> Tuple[float, float]:
        """Return (width, height), falling back to the config sizes."""
        width = self.width if self.width is not None else config.node_width
        height = self.height if self.height is not None else config.node_height
        return width, height

    def fallback_position(self) -> "NodePosition":
        """Previous position if one was supplied, else the origin."""
        if self.x is not None and self.y is not None:
            return NodePosition(x=self.x, y=self.y)
        return NodePosition(x=0.0, y=0.0)


class LayoutEdge(BaseModel):
    """A typed relationship between two nodes.

    Self-loops (source == target) are legal.
    """

    id: str = Field(..., description="Edge identifier, unique within a call")
    source: str = Field(..., description="Source node id")
    target: str = Field(..., description="Target node id")
    kind: Optional[str] = Field(
        default=None, description="Relationship kind used to pick the routing mode"
    )

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target


class LayoutConfig(BaseModel):
    """Layout configuration for a single call.

    Accepts both snake_case field names and the camelCase names used by the
    diagram front end (nodeSpacing, layerSpacing, nodeWidth, nodeHeight).
    Spacing and fallback sizes must be positive and finite; anything else raises
    InvalidConfigError.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    algorithm: LayoutAlgorithm = Field(
        default=LayoutAlgorithm.LAYERED, description="Layout algorithm"
    )
    direction: LayoutDirection = Field(
        default=LayoutDirection.DOWN,
        description="Direction for layered and mrtree layouts",
    )
    node_spacing: float = Field(
        default=80.0, alias="nodeSpacing", description="Spacing between nodes"
    )
    layer_spacing: float = Field(
        default=100.0, alias="layerSpacing", description="Spacing between layers/ranks"
    )
    node_width: float = Field(
        default=DEFAULT_NODE_WIDTH, alias="nodeWidth", description="Fallback node width"
    )
    node_height: float = Field(
        default=DEFAULT_NODE_HEIGHT, alias="nodeHeight", description="Fallback node height"
    )

    @field_validator("algorithm", mode="before")
    @classmethod
    def validate_algorithm(cls, v: Any) -> LayoutAlgorithm:
        return _coerce_enum(LayoutAlgorithm, v, "layout algorithm", str.lower)

    @field_validator("direction", mode="before")
    @classmethod
    def validate_direction(cls, v: Any) -> LayoutDirection:
        return _coerce_enum(LayoutDirection, v, "layout direction", str.upper)

    @field_validator("node_spacing", "layer_spacing", "node_width", "node_height")
    @classmethod
    def validate_positive(cls, v: float, info) -> float:
        if not math.isfinite(v) or v <= 0:
            raise InvalidConfigError(
                f"{info.field_name} must be a positive finite number, got {v}"
            )
        return v

    @classmethod
    def from_options(cls, options: Optional[Dict[str, Any]] = None) -> "LayoutConfig":
        """Build a config from a plain options dict.

        Raises:
            InvalidConfigError: If any option is unknown or invalid
        """
        try:
            return cls.model_validate(options or {})
        except ValidationError as e:
            raise InvalidConfigError(f"Invalid layout options: {e}") from e


class NodePosition(BaseModel):
    """Top-left position of a node in layout space."""

    x: float = Field(..., description="Horizontal coordinate")
    y: float = Field(..., description="Vertical coordinate")

    def to_list(self) -> List[float]:
        return [self.x, self.y]


class RoutePoint(BaseModel):
    """A single point on an edge route."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


class EdgeRoute(BaseModel):
    """Polyline for an edge, touching the source and target boundaries."""

    points: List[RoutePoint] = Field(..., min_length=2, description="Ordered route points")
    routing_mode: RoutingMode = Field(..., description="Orthogonal or spline rendering")

    def midpoint(self) -> RoutePoint:
        """Arithmetic mean of the route points, used as the label anchor."""
        count = len(self.points)
        return RoutePoint(
            x=sum(p.x for p in self.points) / count,
            y=sum(p.y for p in self.points) / count,
        )

    def to_list(self) -> List[List[float]]:
        return [[p.x, p.y] for p in self.points]


class BoundingBox(BaseModel):
    """Bounding box of a set of node positions."""

    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


class LayoutResult(BaseModel):
    """Outcome of a layout call.

    Attributes:
        algorithm: Algorithm that produced the result
        positions: Node id -> top-left position, in input order
        routes: Edge id -> route; edges without a usable route are absent
        unpositioned: Node ids that kept their previous/default position
        skipped_routes: Edge ids whose route was degenerate and dropped
    """

    algorithm: LayoutAlgorithm = Field(..., description="Algorithm used")
    positions: Dict[str, NodePosition] = Field(default_factory=dict)
    routes: Dict[str, EdgeRoute] = Field(default_factory=dict)
    unpositioned: List[str] = Field(default_factory=list)
    skipped_routes: List[str] = Field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        """True when every node was positioned by the algorithm."""
        return not self.unpositioned

    def bounding_box(self) -> Optional[BoundingBox]:
        """Bounding box of the node positions, None for an empty layout."""
        if not self.positions:
            return None
        xs = [pos.x for pos in self.positions.values()]
        ys = [pos.y for pos in self.positions.values()]
        return BoundingBox(min_x=min(xs), max_x=max(xs), min_y=min(ys), max_y=max(ys))

    def to_dict(self) -> Dict[str, Any]:
        """Export with sorted keys and list-shaped coordinates."""
        return {
            "algorithm": self.algorithm.value,
            "positions": {
                node_id: pos.to_list() for node_id, pos in sorted(self.positions.items())
            },
            "routes": {
                edge_id: {
                    "points": route.to_list(),
                    "routing_mode": route.routing_mode.value,
                }
                for edge_id, route in sorted(self.routes.items())
            },
            "skipped_routes": sorted(self.skipped_routes),
            "unpositioned": sorted(self.unpositioned),
        }


__all__ = [
    "DEFAULT_NODE_WIDTH",
    "DEFAULT_NODE_HEIGHT",
    "LayoutAlgorithm",
    "LayoutDirection",
    "RoutingMode",
    "LayoutNode",
    "LayoutEdge",
    "LayoutConfig",
    "NodePosition",
    "RoutePoint",
    "EdgeRoute",
    "BoundingBox",
    "LayoutResult",
]
