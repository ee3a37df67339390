"""Tests for the layout entry points and recommended settings.

Layouts here run on the in-process networkx engine so they do not depend on
Node.js being installed.
"""

import pytest

from sysml_layout import (
    InvalidConfigError,
    LayoutAlgorithm,
    LayoutConfig,
    LayoutDirection,
    LayoutEdge,
    LayoutNode,
    NodePosition,
    RECOMMENDED_LAYOUTS,
    SolverFailureError,
    UnknownDiagramFamilyError,
    UnknownEngineError,
    apply_layout,
    apply_layout_sync,
    apply_recommended_layout,
    build_layout_nodes,
    get_recommended_config,
)
from sysml_layout.config import get_setting, set_setting
from sysml_layout.layout.engines import ELKLayoutEngine, NetworkXLayoutEngine, resolve_engine
from sysml_layout.layout.engines.base import LayoutEngine
from sysml_layout.layout.geometry import NodeGeometry
from sysml_layout.layout.sequence import LIFELINE_KIND


@pytest.fixture
def bdd_graph():
    """Vehicle block hierarchy with a specialization and a satisfy link."""
    nodes = [
        LayoutNode(id="Vehicle", width=200, height=120),
        LayoutNode(id="Engine", width=160, height=90),
        LayoutNode(id="Wheel", width=160, height=90),
        LayoutNode(id="ElectricEngine"),
        LayoutNode(id="REQ-Range", kind="requirement"),
    ]
    edges = [
        LayoutEdge(id="c1", source="Vehicle", target="Engine", kind="composition"),
        LayoutEdge(id="c2", source="Vehicle", target="Wheel", kind="composition"),
        LayoutEdge(id="s1", source="ElectricEngine", target="Engine", kind="specialization"),
        LayoutEdge(id="sat", source="Vehicle", target="REQ-Range", kind="satisfy"),
    ]
    return nodes, edges


class BrokenEngine(LayoutEngine):
    @property
    def name(self) -> str:
        return "broken"

    async def is_available(self) -> bool:
        return True

    async def solve(self, graph):
        raise SolverFailureError(self.name, "solver crashed")


# =============================================================================
# apply_layout
# =============================================================================


class TestApplyLayout:
    """Test the main layout entry point."""

    @pytest.mark.asyncio
    async def test_empty_input(self):
        result = await apply_layout([], [], engine=BrokenEngine())
        assert result.positions == {}
        assert result.routes == {}
        assert result.algorithm == LayoutAlgorithm.LAYERED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("algorithm", ["layered", "mrtree", "force", "box"])
    async def test_every_node_positioned(self, bdd_graph, algorithm):
        nodes, edges = bdd_graph
        result = await apply_layout(nodes, edges, {"algorithm": algorithm}, engine="networkx")

        assert set(result.positions) == {node.id for node in nodes}
        assert result.unpositioned == []
        assert result.algorithm == LayoutAlgorithm(algorithm)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("direction", ["DOWN", "UP", "LEFT", "RIGHT"])
    async def test_route_endpoints_on_node_boundaries(self, bdd_graph, direction):
        nodes, edges = bdd_graph
        config = LayoutConfig(direction=direction)
        result = await apply_layout(nodes, edges, config, engine=NetworkXLayoutEngine())

        geometries = {}
        for node in nodes:
            width, height = node.resolved_size(config)
            position = result.positions[node.id]
            geometries[node.id] = NodeGeometry(position.x, position.y, width, height)

        assert set(result.routes) == {edge.id for edge in edges}
        for edge in edges:
            route = result.routes[edge.id]
            assert len(route.points) >= 2
            assert geometries[edge.source].on_boundary(route.points[0])
            assert geometries[edge.target].on_boundary(route.points[-1])

    @pytest.mark.asyncio
    async def test_routing_mode_follows_edge_kind(self, bdd_graph):
        nodes, edges = bdd_graph
        result = await apply_layout(nodes, edges, engine="networkx")
        assert result.routes["c1"].routing_mode.value == "orthogonal"
        assert result.routes["sat"].routing_mode.value == "spline"

    @pytest.mark.asyncio
    async def test_repeat_calls_match(self, bdd_graph):
        nodes, edges = bdd_graph
        first = await apply_layout(nodes, edges, engine="networkx")
        second = await apply_layout(nodes, edges, engine="networkx")
        assert first.to_dict() == second.to_dict()

    @pytest.mark.asyncio
    async def test_dangling_edge_dropped(self, bdd_graph):
        nodes, edges = bdd_graph
        edges = edges + [LayoutEdge(id="ghost", source="Vehicle", target="Trailer")]
        result = await apply_layout(nodes, edges, engine="networkx")
        assert "ghost" not in result.routes
        assert "Trailer" not in result.positions

    @pytest.mark.asyncio
    async def test_solver_failure_propagates(self, bdd_graph):
        nodes, edges = bdd_graph
        with pytest.raises(SolverFailureError) as exc_info:
            await apply_layout(nodes, edges, engine=BrokenEngine())
        assert exc_info.value.engine == "broken"

    @pytest.mark.asyncio
    async def test_invalid_config_dict(self, bdd_graph):
        nodes, edges = bdd_graph
        with pytest.raises(InvalidConfigError):
            await apply_layout(nodes, edges, {"nodeSpacing": -5}, engine="networkx")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    async def test_non_finite_config_dict(self, bdd_graph, value):
        nodes, edges = bdd_graph
        with pytest.raises(InvalidConfigError):
            await apply_layout(nodes, edges, {"nodeSpacing": value, "algorithm": "box"}, engine="networkx")

    @pytest.mark.asyncio
    async def test_unknown_engine(self, bdd_graph):
        nodes, edges = bdd_graph
        with pytest.raises(UnknownEngineError):
            await apply_layout(nodes, edges, engine="graphviz")

    @pytest.mark.asyncio
    async def test_sequence_skips_solver(self):
        nodes = [LayoutNode(id="A", kind=LIFELINE_KIND), LayoutNode(id="B", kind=LIFELINE_KIND)]
        result = await apply_layout(nodes, [], {"algorithm": "sequence"}, engine=BrokenEngine())
        assert result.positions["A"] == NodePosition(x=0, y=0)
        assert result.positions["B"] == NodePosition(x=330, y=0)

    def test_sync_wrapper(self, bdd_graph):
        nodes, edges = bdd_graph
        result = apply_layout_sync(nodes, edges, {"algorithm": "box"}, engine="networkx")
        assert set(result.positions) == {node.id for node in nodes}


# =============================================================================
# Recommended layouts
# =============================================================================


class TestRecommendedLayouts:
    """Test per-family recommended settings."""

    def test_families(self):
        assert set(RECOMMENDED_LAYOUTS) == {
            "bdd", "ibd", "requirements", "stateMachine",
            "activity", "sequence", "useCase", "package",
        }

    @pytest.mark.parametrize("family,algorithm,node_spacing,layer_spacing", [
        ("bdd", "layered", 100, 120),
        ("ibd", "box", 80, 80),
        ("requirements", "layered", 90, 110),
        ("stateMachine", "force", 120, 120),
        ("activity", "layered", 70, 90),
        ("sequence", "sequence", 280, 100),
        ("useCase", "force", 150, 150),
        ("package", "mrtree", 100, 120),
    ])
    def test_recommended_values(self, family, algorithm, node_spacing, layer_spacing):
        config = get_recommended_config(family)
        assert config.algorithm == LayoutAlgorithm(algorithm)
        assert config.node_spacing == node_spacing
        assert config.layer_spacing == layer_spacing

    def test_sequence_node_size(self):
        config = get_recommended_config("sequence")
        assert (config.node_width, config.node_height) == (200, 100)

    def test_override_keeps_other_fields(self):
        config = get_recommended_config("stateMachine", {"nodeSpacing": 50})
        assert config.algorithm == LayoutAlgorithm.FORCE
        assert config.node_spacing == 50
        assert config.layer_spacing == 120

    def test_override_direction(self):
        config = get_recommended_config("bdd", {"direction": "RIGHT", "layer_spacing": None})
        assert config.direction == LayoutDirection.RIGHT
        assert config.layer_spacing == 120

    def test_unknown_family(self):
        with pytest.raises(UnknownDiagramFamilyError) as exc_info:
            get_recommended_config("timing")
        assert "stateMachine" in str(exc_info.value)

    def test_unknown_override(self):
        with pytest.raises(InvalidConfigError):
            get_recommended_config("bdd", {"edgeStyle": "curved"})

    def test_invalid_override_value(self):
        with pytest.raises(InvalidConfigError):
            get_recommended_config("bdd", {"nodeSpacing": 0})

    @pytest.mark.asyncio
    async def test_apply_recommended(self, bdd_graph):
        nodes, edges = bdd_graph
        result = await apply_recommended_layout(nodes, edges, "ibd", engine="networkx")
        assert result.algorithm == LayoutAlgorithm.BOX
        assert set(result.positions) == {node.id for node in nodes}
        assert set(result.routes) == {edge.id for edge in edges}

    @pytest.mark.asyncio
    async def test_apply_recommended_unknown_family(self, bdd_graph):
        nodes, edges = bdd_graph
        with pytest.raises(UnknownDiagramFamilyError):
            await apply_recommended_layout(nodes, edges, "timing", engine="networkx")


# =============================================================================
# Engine resolution and helpers
# =============================================================================


class TestEngineResolution:
    """Test engine selection from names and settings."""

    @pytest.mark.asyncio
    async def test_named_engines(self):
        assert isinstance(await resolve_engine("networkx"), NetworkXLayoutEngine)
        assert isinstance(await resolve_engine("ELK"), ELKLayoutEngine)

    @pytest.mark.asyncio
    async def test_auto_falls_back_to_networkx(self, monkeypatch):
        async def unavailable(self):
            return False

        monkeypatch.setattr(ELKLayoutEngine, "is_available", unavailable)
        assert isinstance(await resolve_engine("auto"), NetworkXLayoutEngine)

    @pytest.mark.asyncio
    async def test_auto_prefers_elk(self, monkeypatch):
        async def available(self):
            return True

        monkeypatch.setattr(ELKLayoutEngine, "is_available", available)
        assert isinstance(await resolve_engine("auto"), ELKLayoutEngine)

    @pytest.mark.asyncio
    async def test_engine_from_setting(self):
        original = get_setting("engine")
        try:
            set_setting("engine", "networkx")
            assert isinstance(await resolve_engine(), NetworkXLayoutEngine)
        finally:
            set_setting("engine", original)


class TestBuildLayoutNodes:
    """Test merging measured sizes into layout nodes."""

    def test_partial_measurements(self):
        nodes = build_layout_nodes(
            ["a", "b", "c"],
            measured={"a": (120, 60), "c": (0, 40)},
            kinds={"b": "requirement"},
        )
        assert [node.id for node in nodes] == ["a", "b", "c"]
        assert (nodes[0].width, nodes[0].height) == (120, 60)
        assert nodes[1].width is None and nodes[1].kind == "requirement"
        assert nodes[2].width is None

    def test_unmeasured_nodes_use_config_size(self):
        nodes = build_layout_nodes(["a"])
        assert nodes[0].resolved_size(LayoutConfig(node_width=300, node_height=200)) == (300, 200)

    @pytest.mark.parametrize("size", [(float("nan"), 40), (120, float("inf"))])
    def test_non_finite_measurements_ignored(self, size):
        nodes = build_layout_nodes(["a"], measured={"a": size})
        assert nodes[0].width is None and nodes[0].height is None
