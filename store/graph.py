"""
graph.py — Weighted Graph Store
================================
Node ids are the element refs; the adjacency map
`_adj[node_id] → {neighbour_id: weight}` is the container's shape.

Responsibilities:
  1. Structural edits on nodes & edges            (add / remove, lock-gated)
  2. Adjacency queries                            (neighbours, weight, edges)
  3. Graph-generation factory methods             (random, adjacency-list text)
  4. Serialisation round-trip                     (to_dict / container dict)
  5. An admissible A* heuristic over node coordinates

Design decisions:
  - Edges are undirected unless the graph is built with directed=True;
    an undirected edge is stored in both adjacency rows.
  - Weights must be non-negative: Dijkstra and A* rely on it.
  - Neighbour order is insertion order, so every traversal is
    deterministic for a given container.
  - The heuristic is Manhattan distance on (x, y) scaled by the smallest
    weight/distance ratio over all edges.  That makes it consistent for
    any coordinates the user drags nodes to, so A* stays optimal.

Container format:
    {"directed": False,
     "nodes": [{"id": "A", "x": 100, "y": 80}, …],
     "edges": [{"source": "A", "target": "B", "weight": 4}, …],
     "start": "A", "target": "F", "walls": ["C"]}
"""

import math
import random
from typing import Any, Dict, List, Optional, Set, Tuple

from errors import UserInputError
from store.base import VisualStore
from store.element import Flag


class GraphStore(VisualStore):
    family = "graph"

    def __init__(self, container: Optional[Dict[str, Any]] = None, directed: bool = False):
        self.directed: bool                        = directed
        self._adj:     Dict[str, Dict[str, float]] = {}
        self._scale:   Optional[float]             = None
        super().__init__(container)

    def _load(self, container: Optional[Dict[str, Any]]) -> None:
        container = container or {}
        self.directed = bool(container.get("directed", self.directed))
        self._adj = {}
        self._scale = None
        for nd in container.get("nodes", []):
            self._insert_node(str(nd["id"]), float(nd.get("x", 0.0)), float(nd.get("y", 0.0)), nd.get("value", 0))
        for ed in container.get("edges", []):
            self._insert_edge(str(ed["source"]), str(ed["target"]), float(ed.get("weight", 1.0)))
        for nid in container.get("walls", []):
            self.set_flags(str(nid), Flag.WALL)
        if container.get("start") is not None:
            self.set_flags(str(container["start"]), Flag.START)
        if container.get("target") is not None:
            self.set_flags(str(container["target"]), Flag.TARGET)

    # ==================================================================
    # NODE / EDGE EDITS
    # ==================================================================
    def add_node(self, node_id: str, x: float = 0.0, y: float = 0.0, value: Any = 0) -> None:
        self._check_unlocked("add a node")
        if node_id in self._elements:
            raise UserInputError(f"Node '{node_id}' already exists")
        self._insert_node(node_id, x, y, value)

    def add_edge(self, source: str, target: str, weight: float = 1.0) -> None:
        self._check_unlocked("add an edge")
        self._insert_edge(source, target, weight)

    def remove_node(self, node_id: str) -> None:
        self._check_unlocked("remove a node")
        self.element(node_id)
        for row in self._adj.values():
            row.pop(node_id, None)
        del self._adj[node_id]
        del self._elements[node_id]
        self._scale = None

    def remove_edge(self, source: str, target: str) -> None:
        self._check_unlocked("remove an edge")
        self._adj.get(source, {}).pop(target, None)
        if not self.directed:
            self._adj.get(target, {}).pop(source, None)
        self._scale = None

    def _insert_node(self, node_id: str, x: float, y: float, value: Any) -> None:
        el = self._add(node_id, value)
        el.meta["x"] = x
        el.meta["y"] = y
        self._adj.setdefault(node_id, {})
        self._scale = None

    def _insert_edge(self, source: str, target: str, weight: float) -> None:
        if source not in self._elements or target not in self._elements:
            raise UserInputError(f"Edge {source}–{target} refers to an unknown node")
        if source == target:
            raise UserInputError("Self-loops are not supported")
        if weight < 0:
            raise UserInputError("Edge weights must be non-negative")
        self._adj[source][target] = weight
        if not self.directed:
            self._adj[target][source] = weight
        self._scale = None

    # ==================================================================
    # ADJACENCY QUERIES
    # ==================================================================
    def neighbours(self, node_id: str) -> List[Tuple[str, float]]:
        """[(neighbour_id, weight)] in insertion order, walls skipped."""
        self.element(node_id)
        return [
            (nbr, w) for nbr, w in self._adj[node_id].items()
            if Flag.WALL not in self._elements[nbr].flags
        ]

    def weight(self, a: str, b: str) -> Optional[float]:
        return self._adj.get(a, {}).get(b)

    def edges(self) -> List[Tuple[str, str, float]]:
        """Each undirected edge once, in insertion order."""
        seen: Set[frozenset] = set()
        result = []
        for a, row in self._adj.items():
            for b, w in row.items():
                key = (a, b) if self.directed else frozenset((a, b))
                if key in seen:
                    continue
                seen.add(key)
                result.append((a, b, w))
        return result

    def coords(self, node_id: str) -> Tuple[float, float]:
        meta = self.element(node_id).meta
        return meta.get("x", 0.0), meta.get("y", 0.0)

    def heuristic(self, node_id: str, goal: str) -> float:
        (x1, y1), (x2, y2) = self.coords(node_id), self.coords(goal)
        return self._heuristic_scale() * (abs(x1 - x2) + abs(y1 - y2))

    def _heuristic_scale(self) -> float:
        if self._scale is None:
            ratios = []
            for a, b, w in self.edges():
                (x1, y1), (x2, y2) = self.coords(a), self.coords(b)
                dist = abs(x1 - x2) + abs(y1 - y2)
                if dist > 0:
                    ratios.append(w / dist)
            self._scale = min(ratios) if ratios else 0.0
        return self._scale

    def clear_run_flags(self) -> None:
        # coordinates live in meta but belong to the container
        for el in self._elements.values():
            x, y = el.meta.get("x", 0.0), el.meta.get("y", 0.0)
            el.reset_run_state()
            el.meta["x"], el.meta["y"] = x, y

    def is_blocked(self, node_id: str) -> bool:
        return self.has_flag(node_id, Flag.WALL)

    @property
    def start(self) -> Optional[str]:
        found = self.refs_with(Flag.START)
        return found[0] if found else None

    @property
    def target(self) -> Optional[str]:
        found = self.refs_with(Flag.TARGET)
        return found[0] if found else None

    def set_start(self, node_id: str) -> None:
        self._move_endpoint(node_id, Flag.START)

    def set_target(self, node_id: str) -> None:
        self._move_endpoint(node_id, Flag.TARGET)

    def toggle_wall(self, node_id: str) -> bool:
        self._check_unlocked("toggle a wall")
        el = self.element(node_id)
        if Flag.START in el.flags or Flag.TARGET in el.flags:
            raise UserInputError("Start and target nodes cannot be blocked")
        if Flag.WALL in el.flags:
            el.flags.discard(Flag.WALL)
            return False
        el.flags.add(Flag.WALL)
        return True

    def _move_endpoint(self, node_id: str, flag: Flag) -> None:
        self._check_unlocked(f"move the {flag.value}")
        el = self.element(node_id)
        for ref in self.refs_with(flag):
            self._elements[ref].flags.discard(flag)
        el.flags.discard(Flag.WALL)
        el.flags.add(flag)

    # ==================================================================
    # SERIALISATION
    # ==================================================================
    def _structure(self) -> Dict[str, Any]:
        return {
            "directed": self.directed,
            "edges": [{"source": a, "target": b, "weight": w} for a, b, w in self.edges()],
        }

    def to_dict(self) -> dict:
        return {
            "directed": self.directed,
            "nodes": [
                {"id": nid, "x": el.meta.get("x", 0.0), "y": el.meta.get("y", 0.0), "value": el.value}
                for nid, el in self._elements.items()
            ],
            "edges": self._structure()["edges"],
            "walls": self.refs_with(Flag.WALL),
            "start": self.start,
            "target": self.target,
        }

    # ==================================================================
    # GENERATORS — Factory class-methods
    # ==================================================================
    @classmethod
    def generate_random(
        cls,
        num_nodes: int = 8,
        edge_probability: float = 0.3,
        weight_range: Tuple[int, int] = (1, 10),
        directed: bool = False,
        seed: Optional[int] = None,
        canvas_w: float = 800,
        canvas_h: float = 500,
    ) -> "GraphStore":
        """
        Erdős–Rényi style random graph laid out on a jittered circle,
        plus a spanning-path backbone so every node is reachable.
        """
        rng = random.Random(seed)
        margin = 40
        nodes, edges = [], []
        pairs: Set[Tuple[str, str]] = set()

        for i in range(num_nodes):
            angle  = 2 * math.pi * i / max(num_nodes, 1)
            radius = min(canvas_w, canvas_h) * 0.35
            x = canvas_w / 2 + radius * math.cos(angle) + rng.uniform(-30, 30)
            y = canvas_h / 2 + radius * math.sin(angle) + rng.uniform(-30, 30)
            nodes.append({
                "id": str(i),
                "x": round(max(margin, min(canvas_w - margin, x)), 1),
                "y": round(max(margin, min(canvas_h - margin, y)), 1),
            })

        def link(a: str, b: str) -> None:
            key = (a, b) if directed else tuple(sorted((a, b)))
            if key in pairs:
                return
            pairs.add(key)
            edges.append({"source": a, "target": b, "weight": rng.randint(*weight_range)})

        for i in range(num_nodes):
            first = 0 if directed else i + 1
            for j in range(first, num_nodes):
                if i != j and rng.random() < edge_probability:
                    link(str(i), str(j))

        order = [str(i) for i in range(num_nodes)]
        rng.shuffle(order)
        for k in range(1, len(order)):
            link(order[k - 1], order[k])

        return cls({"directed": directed, "nodes": nodes, "edges": edges})

    @classmethod
    def from_adjacency_list(
        cls,
        text: str,
        directed: bool = False,
        canvas_w: float = 800,
        canvas_h: float = 500,
    ) -> "GraphStore":
        """
        Parse a simple text adjacency list, one node per line:

            A: B C D        → A connects to B, C, D  (weight 1)
            A: B(3) C(7)    → A–B weight 3, A–C weight 7
            0 -> 1, 2       → alternate arrow syntax

        Nodes are laid out on a circle in first-seen order.
        """
        adjacency: Dict[str, List[Tuple[str, float]]] = {}

        for line in text.strip().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            for sep in (":", "→", "->"):
                if sep in line:
                    src, rest = line.split(sep, 1)
                    break
            else:
                raise UserInputError(f"Cannot parse adjacency line: {line!r}")

            src = src.strip()
            adjacency.setdefault(src, [])
            for token in rest.replace(",", " ").split():
                if "(" in token and token.endswith(")"):
                    tgt, w_str = token[:-1].split("(", 1)
                    try:
                        w = float(w_str)
                    except ValueError:
                        raise UserInputError(f"Bad weight in {token!r}") from None
                else:
                    tgt, w = token, 1.0
                adjacency.setdefault(tgt, [])
                adjacency[src].append((tgt, w))

        labels = list(adjacency)
        n = len(labels)
        cx, cy = canvas_w / 2, canvas_h / 2
        radius = min(canvas_w, canvas_h) * 0.35
        nodes = [
            {
                "id": label,
                "x": round(cx + radius * math.cos(2 * math.pi * i / n), 1),
                "y": round(cy + radius * math.sin(2 * math.pi * i / n), 1),
            }
            for i, label in enumerate(labels)
        ]

        seen: Set = set()
        edges = []
        for src, targets in adjacency.items():
            for tgt, w in targets:
                key = (src, tgt) if directed else frozenset((src, tgt))
                if key in seen:
                    continue
                seen.add(key)
                edges.append({"source": src, "target": tgt, "weight": w})

        return cls({"directed": directed, "nodes": nodes, "edges": edges})
