"""Tests for the in-process NetworkX layout engine."""

import math

import pytest

from sysml_layout.errors import SolverFailureError
from sysml_layout.layout.adapter import build_elk_graph, solve_layout
from sysml_layout.layout.engines.networkx_engine import NetworkXLayoutEngine
from sysml_layout.layout.geometry import distance
from sysml_layout.layout.routing import ORTHOGONAL_CLEARANCE
from sysml_layout.models.layout_result import (
    LayoutConfig,
    LayoutEdge,
    LayoutNode,
    NodePosition,
    RoutePoint,
    RoutingMode,
)


def assert_right_angles(route):
    for a, b in zip(route.points, route.points[1:]):
        assert a.x == pytest.approx(b.x) or a.y == pytest.approx(b.y), (a, b)


@pytest.fixture
def engine():
    return NetworkXLayoutEngine(seed=42)


@pytest.fixture
def requirements():
    """Two requirements refining a parent (edges point child -> parent)."""
    nodes = [LayoutNode(id="REQ-1"), LayoutNode(id="REQ-2"), LayoutNode(id="REQ-3")]
    edges = [
        LayoutEdge(id="e21", source="REQ-2", target="REQ-1", kind="specialization"),
        LayoutEdge(id="e31", source="REQ-3", target="REQ-1", kind="specialization"),
    ]
    return nodes, edges


class TestEngineBasics:
    def test_properties(self, engine):
        assert engine.name == "networkx"

    @pytest.mark.asyncio
    async def test_always_available(self, engine):
        assert await engine.is_available() is True

    def test_unsupported_algorithm(self, engine):
        graph = {"id": "root", "layoutOptions": {"elk.algorithm": "radial"}, "children": []}
        with pytest.raises(SolverFailureError):
            engine.layout_graph(graph)

    def test_request_graph_is_not_mutated(self, engine, requirements):
        nodes, edges = requirements
        graph = build_elk_graph(nodes, edges, LayoutConfig())
        engine.layout_graph(graph)
        assert all("x" not in child for child in graph["children"])
        assert all("sections" not in edge for edge in graph["edges"])


class TestLayered:
    """Test layered placement in every direction."""

    @pytest.mark.asyncio
    async def test_down(self, engine, requirements):
        nodes, edges = requirements
        result = await solve_layout(nodes, edges, LayoutConfig(), engine)

        assert result.positions == {
            "REQ-1": NodePosition(x=165, y=250),
            "REQ-2": NodePosition(x=0, y=0),
            "REQ-3": NodePosition(x=330, y=0),
        }
        route = result.routes["e21"]
        assert route.routing_mode == RoutingMode.ORTHOGONAL
        assert route.points == [
            RoutePoint(x=125, y=150),
            RoutePoint(x=125, y=200),
            RoutePoint(x=290, y=200),
            RoutePoint(x=290, y=250),
        ]

    @pytest.mark.asyncio
    async def test_right(self, engine, requirements):
        nodes, edges = requirements
        result = await solve_layout(nodes, edges, LayoutConfig(direction="RIGHT"), engine)

        assert result.positions["REQ-2"] == NodePosition(x=0, y=0)
        assert result.positions["REQ-3"] == NodePosition(x=0, y=230)
        assert result.positions["REQ-1"] == NodePosition(x=350, y=115)

    @pytest.mark.asyncio
    async def test_up(self, engine, requirements):
        nodes, edges = requirements
        result = await solve_layout(nodes, edges, LayoutConfig(direction="UP"), engine)

        assert result.positions["REQ-1"].y == 0
        assert result.positions["REQ-2"].y == 250
        assert result.positions["REQ-3"].y == 250

    @pytest.mark.asyncio
    async def test_left_mirrors_right(self, engine, requirements):
        nodes, edges = requirements
        result = await solve_layout(nodes, edges, LayoutConfig(direction="LEFT"), engine)

        assert result.positions["REQ-1"].x == 0
        assert result.positions["REQ-2"].x == 350
        assert result.positions["REQ-3"].x == 350

    @pytest.mark.asyncio
    async def test_cycle_is_layered(self, engine):
        nodes = [LayoutNode(id=n) for n in ("a", "b", "c")]
        edges = [
            LayoutEdge(id="ab", source="a", target="b", kind="association"),
            LayoutEdge(id="bc", source="b", target="c", kind="association"),
            LayoutEdge(id="ca", source="c", target="a", kind="association"),
        ]
        result = await solve_layout(nodes, edges, LayoutConfig(), engine)

        assert result.is_complete
        assert len({p.y for p in result.positions.values()}) == 3
        assert set(result.routes) == {"ab", "bc", "ca"}

    @pytest.mark.asyncio
    async def test_spline_edges_stay_spline(self, engine):
        nodes = [LayoutNode(id="req"), LayoutNode(id="part")]
        edges = [LayoutEdge(id="sat", source="part", target="req", kind="satisfy")]
        result = await solve_layout(nodes, edges, LayoutConfig(), engine)

        route = result.routes["sat"]
        assert route.routing_mode == RoutingMode.SPLINE
        assert len(route.points) == 2

    @pytest.mark.asyncio
    async def test_self_loop(self, engine):
        nodes = [LayoutNode(id="block")]
        edges = [LayoutEdge(id="loop", source="block", target="block", kind="composition")]
        result = await solve_layout(nodes, edges, LayoutConfig(), engine)

        points = result.routes["loop"].points
        assert len(points) == 5
        assert points[0] == RoutePoint(x=250, y=75)
        assert points[1] == RoutePoint(x=274, y=75)
        assert points[-2] == RoutePoint(x=125, y=-24)
        assert points[-1] == RoutePoint(x=125, y=0)
        assert points[2] == RoutePoint(x=274, y=-24)
        assert_right_angles(result.routes["loop"])

    @pytest.mark.asyncio
    async def test_narrow_layer_gap_keeps_stubs(self, engine, requirements):
        """Layer gaps below two clearances are widened for the routing channel."""
        nodes, edges = requirements
        config = LayoutConfig(layer_spacing=30)
        result = await solve_layout(nodes, edges, config, engine)

        assert result.positions["REQ-1"] == NodePosition(x=165, y=198)
        route = result.routes["e21"]
        assert route.points == [
            RoutePoint(x=125, y=150),
            RoutePoint(x=125, y=174),
            RoutePoint(x=290, y=174),
            RoutePoint(x=290, y=198),
        ]
        for route in result.routes.values():
            assert_right_angles(route)
            assert distance(route.points[0], route.points[1]) >= ORTHOGONAL_CLEARANCE
            assert distance(route.points[-2], route.points[-1]) >= ORTHOGONAL_CLEARANCE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("algorithm", ["layered", "mrtree", "box"])
    @pytest.mark.parametrize("direction", ["DOWN", "UP", "LEFT", "RIGHT"])
    @pytest.mark.parametrize("layer_spacing", [20, 100])
    async def test_orthogonal_routes_are_axis_aligned(self, engine, algorithm, direction, layer_spacing):
        nodes = [
            LayoutNode(id="Vehicle", width=200, height=120),
            LayoutNode(id="Engine", width=160, height=90),
            LayoutNode(id="Wheel", width=160, height=90),
            LayoutNode(id="Battery", width=120, height=80),
        ]
        edges = [
            LayoutEdge(id="c1", source="Vehicle", target="Engine", kind="composition"),
            LayoutEdge(id="c2", source="Vehicle", target="Wheel", kind="composition"),
            LayoutEdge(id="c3", source="Engine", target="Battery", kind="composition"),
            LayoutEdge(id="a1", source="Battery", target="Vehicle", kind="association"),
            LayoutEdge(id="loop", source="Wheel", target="Wheel", kind="composition"),
        ]
        config = LayoutConfig(algorithm=algorithm, direction=direction, layer_spacing=layer_spacing)
        result = await solve_layout(nodes, edges, config, engine)

        assert set(result.routes) == {edge.id for edge in edges}
        for route in result.routes.values():
            assert route.routing_mode == RoutingMode.ORTHOGONAL
            assert_right_angles(route)


class TestTreeForceBox:
    """Test mrtree, force and box placement."""

    @pytest.mark.asyncio
    async def test_mrtree_levels(self, engine):
        nodes = [LayoutNode(id=n) for n in ("A", "B", "C", "D")]
        edges = [
            LayoutEdge(id="ab", source="A", target="B", kind="composition"),
            LayoutEdge(id="ac", source="A", target="C", kind="composition"),
            LayoutEdge(id="bd", source="B", target="D", kind="composition"),
        ]
        result = await solve_layout(nodes, edges, LayoutConfig(algorithm="mrtree"), engine)

        positions = result.positions
        assert positions["B"].y == positions["C"].y == 250
        assert positions["D"].y == 500
        assert positions["B"].x < positions["C"].x
        assert min(p.y for p in positions.values()) == positions["A"].y == 0

    @pytest.mark.asyncio
    async def test_force_is_deterministic(self, requirements):
        nodes, edges = requirements
        config = LayoutConfig(algorithm="force")
        first = await solve_layout(nodes, edges, config, NetworkXLayoutEngine(seed=7))
        second = await solve_layout(nodes, edges, config, NetworkXLayoutEngine(seed=7))

        assert first.positions == second.positions
        for position in first.positions.values():
            assert math.isfinite(position.x) and math.isfinite(position.y)
            assert position.x >= 0 and position.y >= 0

    @pytest.mark.asyncio
    async def test_force_single_node(self, engine):
        result = await solve_layout([LayoutNode(id="only")], [], LayoutConfig(algorithm="force"), engine)
        assert result.positions == {"only": NodePosition(x=0, y=0)}

    @pytest.mark.asyncio
    async def test_box_packs_by_area(self, engine):
        nodes = [
            LayoutNode(id="small", width=100, height=50),
            LayoutNode(id="big", width=300, height=200),
            LayoutNode(id="medium", width=200, height=100),
        ]
        result = await solve_layout(nodes, [], LayoutConfig(algorithm="box"), engine)

        assert result.positions == {
            "small": NodePosition(x=280, y=280),
            "big": NodePosition(x=0, y=0),
            "medium": NodePosition(x=0, y=280),
        }

    @pytest.mark.asyncio
    async def test_box_nodes_do_not_overlap(self, engine):
        nodes = [LayoutNode(id=f"part{i}", width=120, height=80) for i in range(7)]
        result = await solve_layout(nodes, [], LayoutConfig(algorithm="box"), engine)

        rects = [(p.x, p.y, 120, 80) for p in result.positions.values()]
        for i, (ax, ay, aw, ah) in enumerate(rects):
            for bx, by, bw, bh in rects[i + 1:]:
                separated = ax + aw <= bx or bx + bw <= ax or ay + ah <= by or by + bh <= ay
                assert separated
