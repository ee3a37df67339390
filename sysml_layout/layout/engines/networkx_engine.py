"""In-process layout engine built on NetworkX.

Accepts the same ELK JSON graph as the ELK engine and answers in the same
shape (x/y on children, sections on edges), so it can stand in for ELK
wherever Node.js is not installed. Results are deterministic for a given
input order and seed.

Algorithms:
- layered: greedy cycle breaking, longest-path layering, barycenter sweeps
- mrtree: breadth-first depth from the roots, discovery order within a level
- force: NetworkX spring layout with a fixed seed, scaled to node sizes
- box: rows of nodes packed by decreasing area
"""

import copy
import logging
import math
from typing import Any, Dict, List, Optional, Tuple

import networkx as nx

from sysml_layout.config.settings import get_setting
from sysml_layout.errors import SolverFailureError
from sysml_layout.layout.engines.base import LayoutEngine
from sysml_layout.layout.routing import ORTHOGONAL_CLEARANCE

logger = logging.getLogger(__name__)

Point = Tuple[float, float]
Rect = Tuple[float, float, float, float]  # x, y, width, height

CROSSING_SWEEPS = 4
BOX_ASPECT_RATIO = 1.3


def _greedy_order(graph: nx.DiGraph) -> List[str]:
    """Eades-Lin-Smyth vertex ordering; edges pointing backwards form the feedback set."""
    g = graph.copy()
    g.remove_edges_from(list(nx.selfloop_edges(g)))
    head: List[str] = []
    tail: List[str] = []
    while len(g):
        changed = True
        while changed:
            changed = False
            for node in [n for n in g if g.out_degree(n) == 0]:
                tail.insert(0, node)
                g.remove_node(node)
                changed = True
            for node in [n for n in g if g.in_degree(n) == 0]:
                head.append(node)
                g.remove_node(node)
                changed = True
        if len(g):
            node = max(g, key=lambda n: g.out_degree(n) - g.in_degree(n))
            head.append(node)
            g.remove_node(node)
    return head + tail


class NetworkXLayoutEngine(LayoutEngine):
    """Deterministic in-process solver speaking the ELK JSON dialect."""

    def __init__(self, seed: Optional[int] = None):
        self._seed = seed if seed is not None else get_setting('seed')

    @property
    def name(self) -> str:
        return "networkx"

    async def is_available(self) -> bool:
        return True

    async def solve(self, graph: Dict[str, Any]) -> Dict[str, Any]:
        return self.layout_graph(graph)

    def layout_graph(self, graph: Dict[str, Any]) -> Dict[str, Any]:
        """Synchronous variant of solve()."""
        options = graph.get("layoutOptions", {}) or {}
        algorithm = str(options.get("elk.algorithm", "layered")).lower()
        direction = str(options.get("elk.direction", "DOWN")).upper()
        node_spacing = float(options.get("elk.spacing.nodeNode", 80))
        layer_spacing = float(options.get("elk.layered.spacing.nodeNodeBetweenLayers", 100))
        loop_offset = max(float(options.get("elk.spacing.edgeEdge", 16)), ORTHOGONAL_CLEARANCE)

        sizes: Dict[str, Tuple[float, float]] = {}
        for child in graph.get("children", []) or []:
            sizes[child["id"]] = (float(child.get("width", 0)), float(child.get("height", 0)))

        digraph = nx.DiGraph()
        digraph.add_nodes_from(sizes)
        for edge in graph.get("edges", []) or []:
            source, target = self._endpoints(edge)
            if source in sizes and target in sizes:
                digraph.add_edge(source, target)

        logger.debug(f"networkx {algorithm} layout of {len(sizes)} nodes")

        if algorithm in ("layered", "mrtree"):
            if algorithm == "layered":
                layers = self._layered_levels(digraph)
            else:
                layers = self._tree_levels(digraph)
            rects, sections = self._place_levels(
                digraph, graph, layers, sizes, node_spacing, layer_spacing, direction
            )
        elif algorithm == "force":
            rects = self._force_rects(digraph, sizes, node_spacing)
            sections = {}
        elif algorithm == "box":
            rects = self._box_rects(sizes, node_spacing)
            sections = {}
        else:
            raise SolverFailureError(self.name, f"unsupported algorithm '{algorithm}'")

        return self._build_result(graph, rects, sections, loop_offset)

    # ------------------------------------------------------------------ #
    # Level assignment
    # ------------------------------------------------------------------ #

    def _endpoints(self, edge: Dict[str, Any]) -> Tuple[Optional[str], Optional[str]]:
        sources = edge.get("sources") or [None]
        targets = edge.get("targets") or [None]
        return sources[0], targets[0]

    def _layered_levels(self, digraph: nx.DiGraph) -> List[List[str]]:
        order = _greedy_order(digraph)
        rank = {node: i for i, node in enumerate(order)}

        acyclic = nx.DiGraph()
        acyclic.add_nodes_from(digraph)
        for source, target in digraph.edges():
            if source == target:
                continue
            if rank[source] < rank[target]:
                acyclic.add_edge(source, target)
            else:
                acyclic.add_edge(target, source)

        level: Dict[str, int] = {}
        for node in order:
            level[node] = max((level[p] + 1 for p in acyclic.predecessors(node)), default=0)

        count = max(level.values(), default=-1) + 1
        layers: List[List[str]] = [[] for _ in range(count)]
        for node in digraph.nodes():
            layers[level[node]].append(node)

        undirected = acyclic.to_undirected()
        for sweep in range(CROSSING_SWEEPS):
            downward = sweep % 2 == 0
            indices = range(1, count) if downward else range(count - 2, -1, -1)
            for i in indices:
                layers[i] = self._barycenter_order(layers, i, level, undirected, downward)
        return layers

    def _barycenter_order(
        self,
        layers: List[List[str]],
        i: int,
        level: Dict[str, int],
        undirected: nx.Graph,
        downward: bool,
    ) -> List[str]:
        position = {node: idx for layer in layers for idx, node in enumerate(layer)}

        def key(node: str) -> Tuple[float, int]:
            if downward:
                fixed = [n for n in undirected.neighbors(node) if level[n] < i]
            else:
                fixed = [n for n in undirected.neighbors(node) if level[n] > i]
            if not fixed:
                return (float(position[node]), position[node])
            return (sum(position[n] for n in fixed) / len(fixed), position[node])

        return sorted(layers[i], key=key)

    def _tree_levels(self, digraph: nx.DiGraph) -> List[List[str]]:
        depth: Dict[str, int] = {}
        discovered: List[str] = []

        def visit(root: str) -> None:
            depth[root] = 0
            discovered.append(root)
            queue = [root]
            while queue:
                current = queue.pop(0)
                for child in digraph.successors(current):
                    if child not in depth:
                        depth[child] = depth[current] + 1
                        discovered.append(child)
                        queue.append(child)

        for node in digraph.nodes():
            indegree = sum(1 for p in digraph.predecessors(node) if p != node)
            if indegree == 0 and node not in depth:
                visit(node)
        for node in digraph.nodes():
            if node not in depth:
                visit(node)

        count = max(depth.values(), default=-1) + 1
        layers: List[List[str]] = [[] for _ in range(count)]
        for node in discovered:
            layers[depth[node]].append(node)
        return layers

    # ------------------------------------------------------------------ #
    # Placement
    # ------------------------------------------------------------------ #

    def _place_levels(
        self,
        digraph: nx.DiGraph,
        graph: Dict[str, Any],
        layers: List[List[str]],
        sizes: Dict[str, Tuple[float, float]],
        node_spacing: float,
        layer_spacing: float,
        direction: str,
    ) -> Tuple[Dict[str, Rect], Dict[str, List[Point]]]:
        """Stack levels along the layout direction and route edges between them.

        Placement happens in a DOWN frame (levels stacked along y) and is
        rotated/mirrored into the requested direction afterwards. Layer gaps
        are at least two clearances wide so the channel between levels leaves
        a full stub at both ends of every orthogonal route.
        """
        layer_spacing = max(layer_spacing, 2 * ORTHOGONAL_CLEARANCE)
        horizontal = direction in ("LEFT", "RIGHT")

        def frame_size(node: str) -> Tuple[float, float]:
            w, h = sizes[node]
            return (h, w) if horizontal else (w, h)

        frame: Dict[str, Rect] = {}
        level_of: Dict[str, int] = {}
        level_top: List[float] = []
        level_bottom: List[float] = []
        y = 0.0
        for index, layer in enumerate(layers):
            thickness = max((frame_size(n)[1] for n in layer), default=0.0)
            total = sum(frame_size(n)[0] for n in layer) + node_spacing * max(len(layer) - 1, 0)
            x = -total / 2
            for node in layer:
                fw, fh = frame_size(node)
                frame[node] = (x, y + (thickness - fh) / 2, fw, fh)
                level_of[node] = index
                x += fw + node_spacing
            level_top.append(y)
            level_bottom.append(y + thickness)
            y += thickness + layer_spacing

        frame_sections: Dict[str, List[Point]] = {}
        for edge in graph.get("edges", []) or []:
            source, target = self._endpoints(edge)
            if source not in frame or target not in frame or source == target:
                continue
            if not self._is_orthogonal(edge, graph):
                continue
            frame_sections[edge["id"]] = self._level_route(
                frame[source], frame[target], level_of[source], level_of[target],
                level_top, level_bottom, layer_spacing,
            )

        def to_real(point: Point) -> Point:
            px, py = point
            if direction == "UP":
                return (px, -py)
            if direction == "RIGHT":
                return (py, px)
            if direction == "LEFT":
                return (-py, px)
            return (px, py)

        rects: Dict[str, Rect] = {}
        for node, (fx, fy, fw, fh) in frame.items():
            if direction == "UP":
                rects[node] = (fx, -(fy + fh), fw, fh)
            elif direction == "RIGHT":
                rects[node] = (fy, fx, fh, fw)
            elif direction == "LEFT":
                rects[node] = (-(fy + fh), fx, fh, fw)
            else:
                rects[node] = (fx, fy, fw, fh)

        sections = {
            edge_id: [to_real(p) for p in points] for edge_id, points in frame_sections.items()
        }
        return self._normalize(rects, sections)

    def _level_route(
        self,
        source: Rect,
        target: Rect,
        source_level: int,
        target_level: int,
        level_top: List[float],
        level_bottom: List[float],
        layer_spacing: float,
    ) -> List[Point]:
        """Right-angle route between two nodes in the DOWN frame."""
        sx, sy, sw, sh = source
        tx, ty, tw, th = target
        scx = sx + sw / 2
        tcx = tx + tw / 2

        if source_level < target_level:
            start, end = (scx, sy + sh), (tcx, ty)
            channel = level_bottom[source_level] + layer_spacing / 2
        elif source_level > target_level:
            start, end = (scx, sy), (tcx, ty + th)
            channel = level_top[source_level] - layer_spacing / 2
        else:
            start, end = (scx, sy + sh), (tcx, ty + th)
            channel = level_bottom[source_level] + layer_spacing / 2

        if scx == tcx and source_level != target_level:
            return [start, end]
        return [start, (scx, channel), (tcx, channel), end]

    def _force_rects(
        self,
        digraph: nx.DiGraph,
        sizes: Dict[str, Tuple[float, float]],
        node_spacing: float,
    ) -> Dict[str, Rect]:
        if not sizes:
            return {}
        undirected = nx.Graph()
        undirected.add_nodes_from(digraph.nodes())
        undirected.add_edges_from((u, v) for u, v in digraph.edges() if u != v)

        if len(undirected) == 1:
            centers = {node: (0.0, 0.0) for node in undirected}
        else:
            raw = nx.spring_layout(undirected, seed=self._seed)
            centers = {node: (float(p[0]), float(p[1])) for node, p in raw.items()}

        largest = max(max(w, h) for w, h in sizes.values())
        scale = (largest + node_spacing) * max(1.0, math.sqrt(len(sizes)))
        rects = {}
        for node in digraph.nodes():
            w, h = sizes[node]
            cx, cy = centers[node]
            rects[node] = (cx * scale - w / 2, cy * scale - h / 2, w, h)
        return self._normalize(rects, {})[0]

    def _box_rects(
        self,
        sizes: Dict[str, Tuple[float, float]],
        node_spacing: float,
    ) -> Dict[str, Rect]:
        if not sizes:
            return {}
        ordered = sorted(sizes, key=lambda n: -(sizes[n][0] * sizes[n][1]))
        area = sum((w + node_spacing) * (h + node_spacing) for w, h in sizes.values())
        widest = max(w for w, _ in sizes.values())
        row_limit = max(widest, math.sqrt(area * BOX_ASPECT_RATIO))

        rects: Dict[str, Rect] = {}
        x = y = row_height = 0.0
        for node in ordered:
            w, h = sizes[node]
            if x > 0 and x + w > row_limit:
                x = 0.0
                y += row_height + node_spacing
                row_height = 0.0
            rects[node] = (x, y, w, h)
            x += w + node_spacing
            row_height = max(row_height, h)
        return rects

    def _normalize(
        self,
        rects: Dict[str, Rect],
        sections: Dict[str, List[Point]],
    ) -> Tuple[Dict[str, Rect], Dict[str, List[Point]]]:
        """Shift everything so the top-left node corner sits at the origin."""
        if not rects:
            return rects, sections
        min_x = min(r[0] for r in rects.values())
        min_y = min(r[1] for r in rects.values())
        shifted = {n: (x - min_x, y - min_y, w, h) for n, (x, y, w, h) in rects.items()}
        moved = {
            edge_id: [(px - min_x, py - min_y) for px, py in points]
            for edge_id, points in sections.items()
        }
        return shifted, moved

    # ------------------------------------------------------------------ #
    # Result
    # ------------------------------------------------------------------ #

    def _is_orthogonal(self, edge: Dict[str, Any], graph: Dict[str, Any]) -> bool:
        edge_options = edge.get("layoutOptions", {}) or {}
        graph_options = graph.get("layoutOptions", {}) or {}
        routing = edge_options.get("elk.edgeRouting", graph_options.get("elk.edgeRouting", "SPLINES"))
        return str(routing).upper() == "ORTHOGONAL"

    def _build_result(
        self,
        graph: Dict[str, Any],
        rects: Dict[str, Rect],
        level_sections: Dict[str, List[Point]],
        loop_offset: float,
    ) -> Dict[str, Any]:
        result = copy.deepcopy(graph)
        for child in result.get("children", []) or []:
            if child["id"] in rects:
                x, y, _, _ = rects[child["id"]]
                child["x"] = x
                child["y"] = y

        for edge in result.get("edges", []) or []:
            source, target = self._endpoints(edge)
            if source not in rects or target not in rects:
                continue
            if edge["id"] in level_sections:
                points = level_sections[edge["id"]]
            elif source == target:
                points = self._self_loop(rects[source], loop_offset)
            else:
                points = self._direct_route(rects[source], rects[target], self._is_orthogonal(edge, graph))
            edge["sections"] = [{
                "id": f"{edge['id']}_s0",
                "startPoint": {"x": points[0][0], "y": points[0][1]},
                "endPoint": {"x": points[-1][0], "y": points[-1][1]},
                "bendPoints": [{"x": px, "y": py} for px, py in points[1:-1]],
            }]
        return result

    def _direct_route(self, source: Rect, target: Rect, orthogonal: bool) -> List[Point]:
        """Center-to-center route; orthogonal edges get right-angle bends.

        Nodes stacked over each other are joined through a horizontal channel
        halfway between them, nodes side by side through a vertical one, and
        diagonal neighbours through a single elbow.
        """
        scx, scy = source[0] + source[2] / 2, source[1] + source[3] / 2
        tcx, tcy = target[0] + target[2] / 2, target[1] + target[3] / 2
        if not orthogonal or scx == tcx or scy == tcy:
            return [(scx, scy), (tcx, tcy)]

        x_overlap = abs(scx - tcx) < (source[2] + target[2]) / 2
        y_overlap = abs(scy - tcy) < (source[3] + target[3]) / 2
        if x_overlap and not y_overlap:
            channel = (scy + tcy) / 2
            return [(scx, scy), (scx, channel), (tcx, channel), (tcx, tcy)]
        if y_overlap and not x_overlap:
            channel = (scx + tcx) / 2
            return [(scx, scy), (channel, scy), (channel, tcy), (tcx, tcy)]
        return [(scx, scy), (scx, tcy), (tcx, tcy)]

    def _self_loop(self, rect: Rect, offset: float) -> List[Point]:
        """Loop leaving the right side and re-entering through the top."""
        x, y, w, h = rect
        right = x + w
        cy = y + h / 2
        cx = x + w / 2
        return [
            (right, cy),
            (right + offset, cy),
            (right + offset, y - offset),
            (cx, y - offset),
            (cx, y),
        ]


__all__ = ["NetworkXLayoutEngine"]
