#!/usr/bin/env python3
"""Layered (top-down) layout of the visible ER graph.

The engine only sees node sizes and directed edges. The default engine is a
Sugiyama-style layout:

  1. break cycles by reversing DFS back edges
  2. assign layers by longest path from the sources
  3. reduce crossings with alternating barycenter sweeps
  4. place layers top-down, each centred on the widest layer

Node size follows the field count: fixed width, height
``max(min_node_height, node_base_height + field_row_height * fields)``.
Edges that name an absent node are skipped; a node the engine did not place
sits at the origin.

Usage:
    python -m formgen.er.layout --file PCS1001_fmb.xml --show-external
"""

import argparse
import asyncio
import json
import logging
import sys
import textwrap
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from formgen.config import section
from formgen.er.extractor import derive_er_diagram, visible_graph
from formgen.errors import LayoutError
from formgen.model.er import ErDiagramData, ErLayout, NodePosition

logger = logging.getLogger("formgen.er.layout")

Size = Tuple[float, float]
Edge = Tuple[str, str]


class LayoutEngine(ABC):
    """Positions nodes given their sizes and the directed edge list."""

    @abstractmethod
    def layout(self, nodes: Dict[str, Size], edges: Sequence[Edge]) -> Dict[str, Tuple[float, float]]:
        """Return the top-left corner of every node it could place.

        Raises:
            LayoutError: the graph cannot be laid out.
        """


class LayeredLayout(LayoutEngine):
    """Top-down hierarchical layout."""

    def __init__(self, node_spacing: float = 50, layer_spacing: float = 80, sweeps: int = 4):
        self.node_spacing = node_spacing
        self.layer_spacing = layer_spacing
        self.sweeps = sweeps

    # -- phase 1 ---------------------------------------------------------
    @staticmethod
    def acyclic_edges(node_ids: Sequence[str], edges: Sequence[Edge]) -> List[Edge]:
        """Edges with every DFS back edge reversed and self-loops dropped."""
        adjacency: Dict[str, List[str]] = {n: [] for n in node_ids}
        for source, target in edges:
            if source != target:
                adjacency[source].append(target)

        state: Dict[str, int] = {}  # 1 = on stack, 2 = done
        back = set()
        for root in node_ids:
            if root in state:
                continue
            stack = [(root, iter(adjacency[root]))]
            state[root] = 1
            while stack:
                node, children = stack[-1]
                child = next(children, None)
                if child is None:
                    state[node] = 2
                    stack.pop()
                elif state.get(child) == 1:
                    back.add((node, child))
                elif child not in state:
                    state[child] = 1
                    stack.append((child, iter(adjacency[child])))

        result = []
        for source, target in edges:
            if source == target:
                continue
            result.append((target, source) if (source, target) in back else (source, target))
        return result

    # -- phase 2 ---------------------------------------------------------
    @staticmethod
    def assign_layers(node_ids: Sequence[str], edges: Sequence[Edge]) -> Dict[str, int]:
        """Longest-path layering over a DAG (Kahn's algorithm)."""
        in_degree: Dict[str, int] = {n: 0 for n in node_ids}
        adjacency: Dict[str, List[str]] = {n: [] for n in node_ids}
        for source, target in edges:
            adjacency[source].append(target)
            in_degree[target] += 1

        layer = {n: 0 for n in node_ids}
        queue = [n for n in node_ids if in_degree[n] == 0]
        visited = 0
        while queue:
            node = queue.pop(0)
            visited += 1
            for neighbor in adjacency[node]:
                layer[neighbor] = max(layer[neighbor], layer[node] + 1)
                in_degree[neighbor] -= 1
                if in_degree[neighbor] == 0:
                    queue.append(neighbor)

        if visited != len(node_ids):
            stuck = [n for n in node_ids if in_degree[n] > 0]
            raise LayoutError("Cycle left after cycle breaking", node_ids=stuck)
        return layer

    # -- phase 3 ---------------------------------------------------------
    def order_layers(self, node_ids: Sequence[str], edges: Sequence[Edge],
                     layer: Dict[str, int]) -> List[List[str]]:
        depth = max(layer.values(), default=-1) + 1
        layers: List[List[str]] = [[] for _ in range(depth)]
        for n in node_ids:
            layers[layer[n]].append(n)

        predecessors: Dict[str, List[str]] = {n: [] for n in node_ids}
        successors: Dict[str, List[str]] = {n: [] for n in node_ids}
        for source, target in edges:
            predecessors[target].append(source)
            successors[source].append(target)

        def sweep(rows: List[List[str]], neighbors: Dict[str, List[str]], downward: bool):
            indices = range(1, len(rows)) if downward else range(len(rows) - 2, -1, -1)
            for i in indices:
                fixed = rows[i - 1] if downward else rows[i + 1]
                position = {n: p for p, n in enumerate(fixed)}

                def barycenter(item):
                    p, n = item
                    linked = [position[m] for m in neighbors[n] if m in position]
                    return (sum(linked) / len(linked)) if linked else float(p)

                rows[i] = [n for _, n in sorted(enumerate(rows[i]), key=barycenter)]

        for k in range(self.sweeps):
            if k % 2 == 0:
                sweep(layers, predecessors, downward=True)
            else:
                sweep(layers, successors, downward=False)
        return layers

    # -- phase 4 ---------------------------------------------------------
    def place(self, layers: List[List[str]], nodes: Dict[str, Size]) -> Dict[str, Tuple[float, float]]:
        widths = [
            sum(nodes[n][0] for n in row) + self.node_spacing * max(len(row) - 1, 0)
            for row in layers
        ]
        widest = max(widths, default=0)
        positions = {}
        y = 0.0
        for row, row_width in zip(layers, widths):
            x = (widest - row_width) / 2
            for n in row:
                positions[n] = (x, y)
                x += nodes[n][0] + self.node_spacing
            y += max((nodes[n][1] for n in row), default=0) + self.layer_spacing
        return positions

    def layout(self, nodes: Dict[str, Size], edges: Sequence[Edge]) -> Dict[str, Tuple[float, float]]:
        node_ids = list(nodes)
        dag = self.acyclic_edges(node_ids, edges)
        layer = self.assign_layers(node_ids, dag)
        layers = self.order_layers(node_ids, dag, layer)
        return self.place(layers, nodes)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def node_size(field_count: int, config=None) -> Size:
    cfg = section("layout", config)
    height = max(cfg["min_node_height"], cfg["node_base_height"] + cfg["field_row_height"] * field_count)
    return float(cfg["node_width"]), float(height)


def default_engine(config=None) -> LayeredLayout:
    cfg = section("layout", config)
    return LayeredLayout(
        node_spacing=cfg["node_spacing"],
        layer_spacing=cfg["layer_spacing"],
        sweeps=int(cfg["sweeps"]),
    )


def compute_layout(data: ErDiagramData, engine: Optional[LayoutEngine] = None,
                   config=None) -> ErLayout:
    """Lay out the entities and relationships visible under the current toggle."""
    visible = visible_graph(data)
    engine = engine or default_engine(config)

    sizes = {e.id: node_size(len(e.fields), config) for e in visible.entities}
    edges, laid_out, skipped = [], [], []
    for rel in visible.relationships:
        if rel.source_entity_id in sizes and rel.target_entity_id in sizes:
            edges.append((rel.source_entity_id, rel.target_entity_id))
            laid_out.append(rel)
        else:
            skipped.append(rel.id)
    if skipped:
        logger.warning("Skipped %d edge(s) with a missing endpoint: %s", len(skipped), ", ".join(skipped))

    try:
        positions = engine.layout(sizes, edges)
    except LayoutError as e:
        logger.warning("Layout failed (%s); %d node(s) placed at origin", e, len(e.node_ids) or len(sizes))
        positions = {}

    nodes = []
    for entity_id, (width, height) in sizes.items():
        x, y = positions.get(entity_id, (0.0, 0.0))
        nodes.append(NodePosition(id=entity_id, x=x, y=y, width=width, height=height))
    return ErLayout(nodes=nodes, edges=laid_out, skipped_edges=skipped)


async def compute_layout_async(data: ErDiagramData, engine: Optional[LayoutEngine] = None,
                               config=None) -> ErLayout:
    """``compute_layout`` in a worker thread; a new call supersedes the old one at the caller."""
    return await asyncio.to_thread(compute_layout, data, engine, config)


def main():
    from formgen.legacy.fmb_parser import parse_fmb_file
    from formgen.legacy.form_spec import extract_form_spec

    parser = argparse.ArgumentParser(
        description="FormGen ER Layout: legacy form -> positioned entity graph",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python -m formgen.er.layout --file PCS1001_fmb.xml
              python -m formgen.er.layout --file PCS1001_fmb.xml --show-external --json
        """),
    )
    parser.add_argument("--file", required=True, help="Oracle Forms XML export")
    parser.add_argument("--show-external", action="store_true", help="Include lookup tables")
    parser.add_argument("--json", action="store_true", dest="json_output", help="JSON output")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    path = Path(args.file)
    if not path.exists():
        print(f"[ERROR] File does not exist: {path}", file=sys.stderr)
        sys.exit(1)

    data = derive_er_diagram(extract_form_spec(parse_fmb_file(path)), show_external_refs=args.show_external)
    result = compute_layout(data)
    if args.json_output:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return
    for node in result.nodes:
        print(f"  {node.id:<30} x={node.x:>7.1f} y={node.y:>7.1f} {node.width:.0f}x{node.height:.0f}")
    print(f"  Edges: {len(result.edges)}  Skipped: {len(result.skipped_edges)}")


if __name__ == "__main__":
    main()
